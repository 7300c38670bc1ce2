"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

load_dotenv()

CONFIG_ENV_VAR = "SCRIPTED_PROBER_CONFIG"
SECRET_FIELDS = {"runner_token", "secrets_api_token"}


class TomlConfigSource(PydanticBaseSettingsSource):
    """Lowest-precedence source reading a TOML config file.

    The file may hold settings at the top level or under a
    [scripted_prober] table.
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def _find_path(self) -> Path | None:
        if self._path:
            return self._path
        local_config = Path("scripted-prober.toml")
        user_config = Path.home() / ".config" / "scripted-prober" / "config.toml"
        if local_config.exists():
            return local_config
        if user_config.exists():
            return user_config
        return None

    def __call__(self) -> dict[str, Any]:
        path = self._find_path()
        if path is None or not path.exists():
            return {}

        with path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get("scripted_prober", data)
        if not isinstance(body, dict):
            return {}

        for key in SECRET_FIELDS:
            if key in body:
                raise ValueError(
                    f"Security violation: '{key}' found in TOML config file. "
                    f"Secrets must only be provided via environment variables or CLI flags."
                )

        return body


class ProberSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with SCRIPTED_PROBER_)
    - Config file (TOML), lowest precedence
    """

    # --- logging ---
    log_level: str = "INFO"

    # --- script runner ---
    runner_url: str | None = None
    runner_token: SecretStr | None = None
    runner_max_tries: int = Field(default=3, ge=1)
    runner_timeout_grace: float = Field(
        default=20.0,
        ge=0,
        description="Extra seconds allowed on top of the script timeout for the runner round trip.",
    )

    # --- secrets API ---
    secrets_api_url: str | None = None
    secrets_api_token: SecretStr | None = None
    secrets_max_tries: int = Field(default=3, ge=1)
    secrets_request_timeout: float = Field(default=10.0, gt=0)

    # --- agent identity ---
    region_id: int = Field(default=0, ge=0, le=999)

    model_config = SettingsConfigDict(
        env_prefix="SCRIPTED_PROBER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("runner_token", "secrets_api_token", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get(CONFIG_ENV_VAR)
        cfg_path = Path(env_cfg) if env_cfg else None

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump()
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def runner_url_required(self) -> str:
        """Get runner_url, raising ValueError if not set."""
        if self.runner_url is None:
            raise ValueError("runner_url must be configured")
        return self.runner_url

    @property
    def secrets_api_url_required(self) -> str:
        """Get secrets_api_url, raising ValueError if not set."""
        if self.secrets_api_url is None:
            raise ValueError("secrets_api_url must be configured")
        return self.secrets_api_url

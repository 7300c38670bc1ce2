"""Data exchanged with the script execution engine."""

from __future__ import annotations

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from ..model import Check


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class Settings:
    """Execution settings for a script. Timeout is in seconds."""

    timeout: float


@dataclass(frozen=True)
class CheckInfo:
    """Check metadata attached to every script execution.

    metadata, including nested mappings, is read-only once constructed.
    """

    type: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _freeze(self.metadata))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "metadata": _thaw(self.metadata)}


def check_info_from_check(check: Check) -> CheckInfo:
    """Derive execution metadata from a check."""
    return CheckInfo(
        type=check.type.value,
        metadata={
            "id": check.id,
            "tenant_id": check.tenant_id,
            "region_id": check.region_id,
            "job": check.job,
            "target": check.target,
            "frequency": check.frequency,
            "timeout": check.timeout,
            "created": check.created,
            "modified": check.modified,
            "labels": {label.name: label.value for label in check.labels},
        },
    )


@dataclass(frozen=True)
class Script:
    """A script together with everything the engine needs to run it."""

    script: bytes
    settings: Settings
    check_info: CheckInfo

    def to_dict(self) -> dict[str, Any]:
        return {
            "script": base64.b64encode(self.script).decode("ascii"),
            "settings": {"timeout": int(self.settings.timeout * 1000)},
            "check": self.check_info.to_dict(),
        }


@dataclass(frozen=True)
class SecretStore:
    """Credentials the script runtime uses to reach the tenant's secrets.

    Both fields are empty when the tenant has no credentials configured.
    """

    url: str = ""
    token: str = field(default="", repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.url and not self.token

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "token": self.token}


@dataclass(frozen=True)
class RunResponse:
    """Outcome of one script execution.

    metrics holds Prometheus text exposition, logs holds one log line per
    line. A non-empty error or error_code means the script ran and failed.
    """

    metrics: bytes = b""
    logs: bytes = b""
    error: str = ""
    error_code: str = ""

    @property
    def failed(self) -> bool:
        return bool(self.error or self.error_code)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunResponse":
        """Decode a runner response whose metrics and logs are base64 encoded."""
        return cls(
            metrics=base64.b64decode(data.get("metrics") or b""),
            logs=base64.b64decode(data.get("logs") or b""),
            error=data.get("error") or "",
            error_code=data.get("errorCode") or "",
        )

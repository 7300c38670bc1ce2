"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest
from pydantic import SecretStr, ValidationError

from scripted_prober.settings import ProberSettings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep real config files and SCRIPTED_PROBER_* variables out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in (
        "SCRIPTED_PROBER_CONFIG",
        "SCRIPTED_PROBER_RUNNER_URL",
        "SCRIPTED_PROBER_RUNNER_TOKEN",
        "SCRIPTED_PROBER_SECRETS_API_URL",
        "SCRIPTED_PROBER_SECRETS_API_TOKEN",
        "SCRIPTED_PROBER_LOG_LEVEL",
        "SCRIPTED_PROBER_REGION_ID",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = ProberSettings()

    assert settings.log_level == "INFO"
    assert settings.runner_url is None
    assert settings.runner_max_tries == 3
    assert settings.secrets_api_url is None
    assert settings.region_id == 0


def test_loads_toml_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [scripted_prober]
            runner_url = "https://runner.example"
            runner_max_tries = 5
            secrets_api_url = "https://api.example"
            region_id = 4
            log_level = "debug"
            """
        ).strip()
    )
    monkeypatch.setenv("SCRIPTED_PROBER_CONFIG", str(config_path))

    settings = ProberSettings()

    assert settings.runner_url == "https://runner.example"
    assert settings.runner_max_tries == 5
    assert settings.secrets_api_url == "https://api.example"
    assert settings.region_id == 4
    assert settings.log_level == "DEBUG"


def test_finds_local_config_file(tmp_path):
    (tmp_path / "scripted-prober.toml").write_text('runner_url = "https://local.example"')

    settings = ProberSettings()

    assert settings.runner_url == "https://local.example"


def test_precedence_cli_over_env_over_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        'runner_url = "https://file.example"\nsecrets_api_url = "https://file-api.example"'
    )
    monkeypatch.setenv("SCRIPTED_PROBER_CONFIG", str(config_path))
    monkeypatch.setenv("SCRIPTED_PROBER_RUNNER_URL", "https://env.example")
    monkeypatch.setenv("SCRIPTED_PROBER_SECRETS_API_URL", "https://env-api.example")

    settings = ProberSettings(runner_url="https://cli.example")

    assert settings.runner_url == "https://cli.example"
    assert settings.secrets_api_url == "https://env-api.example"


def test_rejects_secrets_in_config_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('runner_token = "oops"')
    monkeypatch.setenv("SCRIPTED_PROBER_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="Security violation"):
        ProberSettings()


def test_secrets_from_env_are_wrapped(monkeypatch):
    monkeypatch.setenv("SCRIPTED_PROBER_RUNNER_TOKEN", "runner-secret")

    settings = ProberSettings()

    assert isinstance(settings.runner_token, SecretStr)
    assert settings.runner_token.get_secret_value() == "runner-secret"


def test_as_safe_dict_redacts_secrets():
    settings = ProberSettings(
        runner_url="https://runner.example",
        runner_token="runner-secret",
        secrets_api_token="api-secret",
    )

    data = settings.as_safe_dict()

    assert data["runner_token"] == "***redacted***"
    assert data["secrets_api_token"] == "***redacted***"
    assert data["runner_url"] == "https://runner.example"


def test_as_safe_dict_without_secrets():
    data = ProberSettings().as_safe_dict()

    assert data["runner_token"] is None
    assert data["secrets_api_token"] is None


def test_required_accessors():
    settings = ProberSettings()

    with pytest.raises(ValueError, match="runner_url must be configured"):
        settings.runner_url_required
    with pytest.raises(ValueError, match="secrets_api_url must be configured"):
        settings.secrets_api_url_required

    settings = ProberSettings(runner_url="https://r", secrets_api_url="https://a")
    assert settings.runner_url_required == "https://r"
    assert settings.secrets_api_url_required == "https://a"


@pytest.mark.parametrize("region_id", [-1, 1000])
def test_region_id_range(region_id):
    with pytest.raises(ValidationError):
        ProberSettings(region_id=region_id)


def test_runner_max_tries_must_be_positive():
    with pytest.raises(ValidationError, match="greater than or equal to 1"):
        ProberSettings(runner_max_tries=0)

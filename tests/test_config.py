from __future__ import annotations

import pytest

from qbo_gateway.core.config import (
    PRODUCTION,
    SANDBOX,
    QuickBooksSettings,
    load_settings,
)
from qbo_gateway.core.errors import ConfigurationMissing
from qbo_gateway.main import create_app, run

REQUIRED_ENV_KEYS = ["QBO_CLIENT_ID", "QBO_CLIENT_SECRET", "QBO_REDIRECT_URI"]


def _settings(**overrides: str) -> QuickBooksSettings:
    values = {
        "QBO_CLIENT_ID": "client",
        "QBO_CLIENT_SECRET": "secret",
        "QBO_REDIRECT_URI": "https://example.com/auth/callback",
    }
    values.update(overrides)
    return QuickBooksSettings(**values)


def test_defaults_target_sandbox(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("QBO_ENV", raising=False)
    monkeypatch.delenv("PORT", raising=False)

    settings = load_settings(env_file=None)

    assert settings.port == 3000
    assert settings.quickbooks.environment == SANDBOX
    assert settings.quickbooks.api_host == "https://sandbox-quickbooks.api.intuit.com"
    assert settings.quickbooks.minor_version == "73"
    assert settings.quickbooks.http_timeout_seconds > 0


@pytest.mark.parametrize(
    ("value", "expected"),
    [("production", PRODUCTION), ("PRODUCTION", PRODUCTION), ("staging", SANDBOX)],
)
def test_environment_selects_host(value: str, expected: str) -> None:
    settings = _settings(QBO_ENV=value)

    assert settings.environment == expected
    if expected == PRODUCTION:
        assert settings.api_host == "https://quickbooks.api.intuit.com"


def test_port_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8080")

    assert load_settings(env_file=None).port == 8080


@pytest.mark.parametrize("missing", REQUIRED_ENV_KEYS)
def test_missing_required_value_is_configuration_missing(
    monkeypatch: pytest.MonkeyPatch, missing: str
) -> None:
    monkeypatch.delenv(missing, raising=False)

    with pytest.raises(ConfigurationMissing) as excinfo:
        load_settings(env_file=None)

    assert missing in excinfo.value.fields


def test_redirect_uri_must_be_http() -> None:
    with pytest.raises(ValueError):
        _settings(QBO_REDIRECT_URI="not-a-url")


def test_create_app_refuses_to_start_without_configuration(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)

    from qbo_gateway.core import config

    config.get_settings.cache_clear()
    try:
        with pytest.raises(ConfigurationMissing):
            create_app()
        with pytest.raises(SystemExit) as excinfo:
            run()
        assert excinfo.value.code == 1
    finally:
        config.get_settings.cache_clear()

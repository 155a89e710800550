"""
Application configuration models and helpers.

Settings are read from the process environment, optionally seeded from a
``.env`` file. The QuickBooks client id, secret and redirect URI are required;
``get_settings`` raises ``ConfigurationMissing`` when any is absent so the
process refuses to start.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from qbo_gateway.core.errors import ConfigurationMissing

SANDBOX = "sandbox"
PRODUCTION = "production"

API_HOSTS = {
    SANDBOX: "https://sandbox-quickbooks.api.intuit.com",
    PRODUCTION: "https://quickbooks.api.intuit.com",
}


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


class QuickBooksSettings(BaseSettings):
    """Credentials and endpoints for the Intuit developer app."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    client_id: str = Field(..., alias="QBO_CLIENT_ID", min_length=1)
    client_secret: str = Field(..., alias="QBO_CLIENT_SECRET", min_length=1)
    redirect_uri: str = Field(..., alias="QBO_REDIRECT_URI", min_length=1)
    environment: str = Field(
        SANDBOX,
        alias="QBO_ENV",
        description="Either 'sandbox' or 'production'; selects the API host.",
    )
    minor_version: str = Field("73", alias="QBO_MINOR_VERSION")
    http_timeout_seconds: float = Field(30.0, alias="QBO_HTTP_TIMEOUT", gt=0)
    token_refresh_margin_seconds: int = Field(
        60,
        alias="QBO_TOKEN_REFRESH_MARGIN",
        ge=0,
        description="Refresh access tokens this many seconds before they expire.",
    )

    @field_validator("redirect_uri")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("redirect URI must be an http(s) URL")
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, value: str | None) -> str:
        """Anything other than 'production' targets the sandbox."""
        if value and str(value).strip().lower() == PRODUCTION:
            return PRODUCTION
        return SANDBOX

    @property
    def api_host(self) -> str:
        return API_HOSTS[self.environment]


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    state_ttl_seconds: int = Field(900, alias="OAUTH_STATE_TTL", gt=0)
    scope: str = Field(
        "com.intuit.quickbooks.accounting",
        alias="OAUTH_SCOPES",
        description="Comma- or space-separated list of Intuit scopes.",
    )

    @property
    def scopes(self) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        return tuple(
            scope for scope in self.scope.replace(",", " ").split() if scope
        )


class AppSettings(BaseSettings):
    """Root settings object for the gateway."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, alias="PORT")
    quickbooks: QuickBooksSettings = Field(default_factory=QuickBooksSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)


def _missing_fields(exc: ValidationError) -> list[str]:
    return [str(error["loc"][-1]) for error in exc.errors() if error.get("loc")]


def load_settings(env_file: str | None = ".env") -> AppSettings:
    """Build settings from the environment, translating validation failures."""
    if env_file:
        _load_env_file(env_file)
    try:
        return AppSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise ConfigurationMissing(_missing_fields(exc)) from exc


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return load_settings()


__all__ = [
    "API_HOSTS",
    "AppSettings",
    "OAuthSettings",
    "PRODUCTION",
    "QuickBooksSettings",
    "SANDBOX",
    "get_settings",
    "load_settings",
]

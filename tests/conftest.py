"""Pytest configuration shared across the suite."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Callable

import httpx
import pytest

from qbo_gateway.clients.intuit_auth import OAuthTokenExchangeError
from qbo_gateway.core.config import AppSettings, OAuthSettings, QuickBooksSettings
from qbo_gateway.main import create_app
from qbo_gateway.models import AccountLink, TokenPair

REALM_ID = "9130355377"


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


def make_token_pair(
    access_token: str = "access-token",
    refresh_token: str = "refresh-token",
    *,
    expires_in: int = 3600,
) -> TokenPair:
    now = datetime.now(timezone.utc)
    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        access_expires_at=now + timedelta(seconds=expires_in),
        refresh_expires_at=now + timedelta(days=100),
    )


class DummyOAuthClient:
    redirect_uri = "https://example.com/auth/callback"

    def __init__(self) -> None:
        self.states: list[str] = []
        self.codes: list[str] = []
        self.refresh_calls: list[str] = []
        self.exchange_error: dict | None = None
        self.refresh_error: dict | None = None
        self.refresh_delay = 0.0

    def build_authorization_url(self, state: str) -> str:
        self.states.append(state)
        return f"https://oauth.example.com/auth?state={state}"

    async def exchange_authorization_code(self, code: str) -> TokenPair:
        self.codes.append(code)
        if self.exchange_error is not None:
            raise OAuthTokenExchangeError(self.exchange_error, status_code=400)
        return make_token_pair()

    async def refresh_token(self, refresh_token: str) -> TokenPair:
        self.refresh_calls.append(refresh_token)
        await asyncio.sleep(self.refresh_delay)
        if self.refresh_error is not None:
            raise OAuthTokenExchangeError(self.refresh_error, status_code=400)
        return make_token_pair(
            f"refreshed-access-{len(self.refresh_calls)}", "rotated-refresh"
        )


class RecordingApi:
    """httpx.MockTransport handler that replays queued QuickBooks responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Exception] = []

    def queue(self, status_code: int = 200, **kwargs) -> None:
        self.responses.append(httpx.Response(status_code, **kwargs))

    def fail(self, error: Exception) -> None:
        """Raise ``error`` from the transport instead of answering."""
        self.responses.append(error)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected QuickBooks call: {request.url}")
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        quickbooks=QuickBooksSettings(
            QBO_CLIENT_ID="client",
            QBO_CLIENT_SECRET="secret",
            QBO_REDIRECT_URI="https://example.com/auth/callback",
            QBO_ENV="sandbox",
        ),
        oauth=OAuthSettings(),
    )


@pytest.fixture
def oauth_client() -> DummyOAuthClient:
    return DummyOAuthClient()


@pytest.fixture
def api() -> RecordingApi:
    return RecordingApi()


@pytest.fixture
def gateway_app(settings, oauth_client, api):
    return create_app(
        settings,
        oauth_client=oauth_client,
        api_transport=httpx.MockTransport(api),
    )


@pytest.fixture
def connect(gateway_app) -> Callable[..., None]:
    """Link the app's credential store to a realm without the browser flow."""

    def _connect(*, expires_in: int = 3600) -> None:
        gateway_app.state.gateway.store.set(
            AccountLink(realm_id=REALM_ID), make_token_pair(expires_in=expires_in)
        )

    return _connect


@pytest.fixture
async def client(gateway_app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=gateway_app), base_url="http://testserver"
    ) as http_client:
        yield http_client

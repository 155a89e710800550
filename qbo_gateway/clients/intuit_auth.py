"""
Intuit OAuth utilities.

These helpers build the consent URL and talk to Intuit's bearer token
endpoint for the authorization-code and refresh-token grants.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import logging
from datetime import datetime, timezone
from hashlib import sha256
from typing import Any, Dict
from urllib.parse import urlencode

import httpx

from qbo_gateway.core.config import OAuthSettings, QuickBooksSettings
from qbo_gateway.core.errors import InvalidAuthState, parse_error_body
from qbo_gateway.models import TokenPair

logger = logging.getLogger(__name__)


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise InvalidAuthState("malformed state") from exc
        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise InvalidAuthState("signature mismatch")
        return json.loads(serialized)


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""

    def __init__(self, body: Any, status_code: int | None = None) -> None:
        super().__init__(str(body))
        self.body = body
        self.status_code = status_code


class IntuitOAuthClient:
    """Build Intuit authorization URLs and exchange or refresh tokens."""

    AUTH_BASE_URL = "https://appcenter.intuit.com/connect/oauth2"
    TOKEN_URL = "https://oauth.platform.intuit.com/oauth2/v1/tokens/bearer"

    def __init__(
        self,
        qbo_settings: QuickBooksSettings,
        oauth_settings: OAuthSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._qbo = qbo_settings
        self._oauth = oauth_settings
        self._transport = transport

    @property
    def redirect_uri(self) -> str:
        return self._qbo.redirect_uri

    def build_authorization_url(self, state: str) -> str:
        """Construct the Intuit OAuth consent URL."""
        params = {
            "client_id": self._qbo.client_id,
            "redirect_uri": self._qbo.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._oauth.scopes),
            "state": state,
        }
        query = urlencode(params)
        return f"{self.AUTH_BASE_URL}?{query}"

    async def exchange_authorization_code(self, code: str) -> TokenPair:
        """Exchange an authorization code for a token pair."""
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._qbo.redirect_uri,
        }
        return await self._request_tokens(payload)

    async def refresh_token(self, refresh_token: str) -> TokenPair:
        """Mint a new access token; Intuit may rotate the refresh token too."""
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        return await self._request_tokens(payload, fallback_refresh_token=refresh_token)

    async def _request_tokens(
        self, payload: Dict[str, str], *, fallback_refresh_token: str | None = None
    ) -> TokenPair:
        issued_at = datetime.now(timezone.utc)
        try:
            async with httpx.AsyncClient(
                timeout=self._qbo.http_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data=payload,
                    auth=(self._qbo.client_id, self._qbo.client_secret),
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Intuit token endpoint unreachable: %s", exc)
            raise OAuthTokenExchangeError({"error": str(exc) or type(exc).__name__}) from exc

        if response.status_code != httpx.codes.OK:
            body = parse_error_body(response.content)
            raise OAuthTokenExchangeError(
                body if body is not None else {"error": response.text},
                status_code=response.status_code,
            )

        try:
            return TokenPair.from_token_response(
                response.json(),
                issued_at=issued_at,
                fallback_refresh_token=fallback_refresh_token,
            )
        except ValueError as exc:
            raise OAuthTokenExchangeError({"error": str(exc)}, response.status_code) from exc


__all__ = [
    "IntuitOAuthClient",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
]

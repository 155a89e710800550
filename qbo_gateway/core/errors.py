"""
Error taxonomy shared by the OAuth flow, token lifecycle and invoice proxy.

Every failure a caller can observe is a ``GatewayError`` carrying the HTTP
status it maps to and a JSON-serializable body. ``translate_remote_error``
normalizes the QuickBooks API's JSON, plain-text and empty error responses
into a single ``RemoteApiError`` shape.
"""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any, Iterable

import httpx

NOT_CONNECTED_MESSAGE = "Not connected to QuickBooks. Visit /auth/connect first."


class GatewayError(Exception):
    """Base class for failures surfaced to HTTP callers."""

    status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message}


class ConfigurationMissing(Exception):
    """Raised at startup when required settings are absent or invalid."""

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(
            "Missing or invalid configuration: " + ", ".join(self.fields)
        )


class Unauthenticated(GatewayError):
    """No QuickBooks company is connected."""

    status_code = HTTPStatus.UNAUTHORIZED

    def __init__(self, message: str = NOT_CONNECTED_MESSAGE) -> None:
        super().__init__(message)


class NotAuthenticated(Unauthenticated):
    """The token guardian found no token pair to work with."""


class ProviderDenied(GatewayError):
    """The user or Intuit rejected the consent request."""

    def __init__(self, error: str, description: str | None = None) -> None:
        self.error = error
        self.description = description
        super().__init__(f"OAuth error: {error} {description or ''}".rstrip())


class MissingCallbackParams(GatewayError):
    """The OAuth redirect lacked ``code`` or ``realmId``."""

    def __init__(self) -> None:
        super().__init__("Missing code/realmId. Start at /auth/connect.")


class InvalidAuthState(GatewayError):
    """The ``state`` returned on the callback was not one this process issued."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid OAuth state: {reason}. Start at /auth/connect.")


class TokenExchangeFailed(GatewayError):
    """Intuit's token endpoint refused the authorization code."""

    def __init__(self, provider_body: Any = None) -> None:
        self.provider_body = provider_body
        super().__init__("Token exchange failed.")

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, "detail": self.provider_body}


class RefreshFailed(GatewayError):
    """The refresh token was rejected; the client must reconnect."""

    status_code = HTTPStatus.UNAUTHORIZED

    def __init__(self, provider_body: Any = None) -> None:
        self.provider_body = provider_body
        super().__init__(
            "Failed to refresh the QuickBooks access token. Visit /auth/connect to reconnect."
        )

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, "detail": self.provider_body}


class RemoteApiError(GatewayError):
    """A proxied QuickBooks call failed.

    ``remote_status`` is the upstream HTTP status, or ``None`` when the call
    never produced a response (timeout, connection failure). ``body`` is the
    payload returned to the caller verbatim.
    """

    def __init__(
        self,
        body: Any,
        *,
        remote_status: int | None = None,
        kind: str = "http",
    ) -> None:
        self.body = body
        self.remote_status = remote_status
        self.kind = kind
        # Only 4xx/5xx statuses are mirrored to the caller.
        if remote_status and remote_status >= HTTPStatus.BAD_REQUEST:
            self.status_code = remote_status
        else:
            self.status_code = HTTPStatus.BAD_REQUEST
        message = body.get("error") if isinstance(body, dict) else None
        super().__init__(str(message or f"QuickBooks API error ({remote_status})"))

    def respond_with(self, status_code: int) -> "RemoteApiError":
        """Return a copy that renders with ``status_code`` instead of the remote one."""
        clone = RemoteApiError(self.body, remote_status=self.remote_status, kind=self.kind)
        clone.status_code = status_code
        return clone

    def to_body(self) -> Any:
        return self.body


def parse_error_body(raw: bytes | str) -> Any:
    """Best-effort decode of an error payload.

    Returns the parsed JSON value when possible, otherwise ``None``.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    text = raw.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def translate_remote_error(response: httpx.Response) -> RemoteApiError:
    """Convert a non-2xx QuickBooks response into a ``RemoteApiError``."""
    parsed = parse_error_body(response.content)
    if isinstance(parsed, (dict, list)):
        body = parsed
    elif response.text.strip():
        body = {"error": response.text.strip()}
    else:
        body = {
            "error": f"QuickBooks API request failed with status {response.status_code}"
        }
    return RemoteApiError(body, remote_status=response.status_code)


def translate_transport_error(exc: httpx.HTTPError) -> RemoteApiError:
    """Wrap a timeout or connection failure that produced no response."""
    if isinstance(exc, httpx.TimeoutException):
        return RemoteApiError(
            {"error": f"QuickBooks API request timed out: {exc}"}, kind="timeout"
        )
    return RemoteApiError(
        {"error": f"QuickBooks API request failed: {exc}"}, kind="transport"
    )


__all__ = [
    "ConfigurationMissing",
    "GatewayError",
    "InvalidAuthState",
    "MissingCallbackParams",
    "NOT_CONNECTED_MESSAGE",
    "NotAuthenticated",
    "ProviderDenied",
    "RefreshFailed",
    "RemoteApiError",
    "TokenExchangeFailed",
    "Unauthenticated",
    "parse_error_body",
    "translate_remote_error",
    "translate_transport_error",
]

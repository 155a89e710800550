"""
Domain models for the in-memory OAuth session.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountLink(BaseModel):
    """The QuickBooks company (realm) this gateway is connected to."""

    model_config = ConfigDict(frozen=True)

    realm_id: str = Field(..., min_length=1)


class TokenPair(BaseModel):
    """Access and refresh tokens with their absolute expiry times."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: Optional[datetime] = None

    @classmethod
    def from_token_response(
        cls,
        payload: dict[str, Any],
        *,
        issued_at: datetime | None = None,
        fallback_refresh_token: str | None = None,
    ) -> "TokenPair":
        """Build a pair from Intuit's bearer token response.

        Raises ``ValueError`` when the payload lacks the access token, its
        lifetime, or any refresh token to carry forward.
        """
        issued_at = issued_at or _utcnow()
        access_token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        refresh_token = payload.get("refresh_token") or fallback_refresh_token
        if not access_token or not expires_in or not refresh_token:
            raise ValueError("Incomplete token payload returned from Intuit.")

        refresh_expires_in = payload.get("x_refresh_token_expires_in")
        refresh_expires_at = (
            issued_at + timedelta(seconds=int(refresh_expires_in))
            if refresh_expires_in
            else None
        )
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=issued_at + timedelta(seconds=int(expires_in)),
            refresh_expires_at=refresh_expires_at,
        )

    def access_expired(
        self, *, margin: timedelta = timedelta(0), now: datetime | None = None
    ) -> bool:
        now = now or _utcnow()
        return self.access_expires_at <= now + margin


class Connection(BaseModel):
    """One connected realm and its tokens; the unit the credential store swaps."""

    model_config = ConfigDict(frozen=True)

    account: AccountLink
    tokens: TokenPair
    connected_at: datetime = Field(default_factory=_utcnow)
    refresh_error: Any = None
    refresh_failed: bool = False


__all__ = ["AccountLink", "Connection", "TokenPair"]

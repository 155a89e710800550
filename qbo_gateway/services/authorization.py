"""
OAuth authorization-code flow for connecting a QuickBooks company.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from qbo_gateway.clients.intuit_auth import (
    IntuitOAuthClient,
    OAuthStateEncoder,
    OAuthTokenExchangeError,
)
from qbo_gateway.core.config import OAuthSettings
from qbo_gateway.core.errors import (
    InvalidAuthState,
    MissingCallbackParams,
    ProviderDenied,
    TokenExchangeFailed,
)
from qbo_gateway.models import AccountLink
from qbo_gateway.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallbackParams:
    """Query parameters Intuit appends to the redirect URI."""

    code: Optional[str] = None
    realm_id: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "CallbackParams":
        return cls(
            code=query.get("code") or None,
            realm_id=query.get("realmId") or None,
            state=query.get("state") or None,
            error=query.get("error") or None,
            error_description=query.get("error_description") or None,
        )


class AuthorizationFlow:
    """Issue consent URLs and complete the code exchange.

    Each consent URL carries a signed state token. The nonce inside it is kept
    in memory until the matching callback arrives, so a state is accepted at
    most once and only if this process issued it within the TTL.
    At most ``MAX_PENDING_STATES`` attempts are tracked; the oldest is
    forgotten first.
    """

    MAX_PENDING_STATES = 50

    def __init__(
        self,
        *,
        oauth_client: IntuitOAuthClient,
        state_encoder: OAuthStateEncoder,
        store: CredentialStore,
        oauth_settings: OAuthSettings,
    ) -> None:
        self._client = oauth_client
        self._encoder = state_encoder
        self._store = store
        self._state_ttl = timedelta(seconds=oauth_settings.state_ttl_seconds)
        self._pending: dict[str, datetime] = {}

    def build_consent_url(self) -> str:
        now = datetime.now(timezone.utc)
        self._prune_expired(now)
        while len(self._pending) >= self.MAX_PENDING_STATES:
            del self._pending[next(iter(self._pending))]
        nonce = uuid.uuid4().hex
        self._pending[nonce] = now
        state = self._encoder.encode({"nonce": nonce, "issued_at": now.isoformat()})
        url = self._client.build_authorization_url(state=state)
        logger.info("Issued QuickBooks consent URL (redirect_uri=%s)", self._client.redirect_uri)
        return url

    async def complete_exchange(self, params: CallbackParams) -> AccountLink:
        """Validate the callback, exchange the code and connect the realm."""
        if params.error:
            logger.warning(
                "QuickBooks consent denied: %s %s",
                params.error,
                params.error_description or "",
            )
            raise ProviderDenied(params.error, params.error_description)
        if not params.code or not params.realm_id:
            raise MissingCallbackParams()
        self._consume_state(params.state)

        try:
            token_pair = await self._client.exchange_authorization_code(params.code)
        except OAuthTokenExchangeError as exc:
            logger.warning("Token exchange failed: %s", exc.body)
            raise TokenExchangeFailed(exc.body) from exc

        account = AccountLink(realm_id=params.realm_id)
        self._store.set(account, token_pair)
        return account

    def _consume_state(self, state: Optional[str]) -> None:
        if not state:
            raise InvalidAuthState("missing state")
        payload = self._encoder.decode(state)
        nonce = payload.get("nonce")
        issued_at = self._pending.pop(nonce, None) if isinstance(nonce, str) else None
        if issued_at is None:
            raise InvalidAuthState("unknown or already used state")
        if datetime.now(timezone.utc) - issued_at > self._state_ttl:
            raise InvalidAuthState("state has expired")

    def _prune_expired(self, now: datetime) -> None:
        expired = [
            nonce
            for nonce, issued_at in self._pending.items()
            if now - issued_at > self._state_ttl
        ]
        for nonce in expired:
            del self._pending[nonce]


__all__ = ["AuthorizationFlow", "CallbackParams"]

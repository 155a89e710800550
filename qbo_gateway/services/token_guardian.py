"""
Helpers for handing out a valid QuickBooks access token, refreshing it when
necessary.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from qbo_gateway.clients.intuit_auth import IntuitOAuthClient, OAuthTokenExchangeError
from qbo_gateway.core.errors import NotAuthenticated, RefreshFailed
from qbo_gateway.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class TokenGuardian:
    """Returns the current access token, refreshing it at most once at a time.

    Refresh runs under a lock. Callers that queued behind an in-flight refresh
    re-read the store once they hold the lock and reuse the token it produced,
    so concurrent requests never send the same refresh token twice.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        oauth_client: IntuitOAuthClient,
        refresh_margin: timedelta = timedelta(seconds=60),
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._margin = refresh_margin
        self._lock = asyncio.Lock()

    async def get_valid_access_token(self) -> str:
        connection = self._store.connection
        if connection is None:
            raise NotAuthenticated()
        if connection.refresh_failed:
            raise RefreshFailed(connection.refresh_error)
        if not connection.tokens.access_expired(margin=self._margin):
            return connection.tokens.access_token

        async with self._lock:
            connection = self._store.connection
            if connection is None:
                raise NotAuthenticated()
            if connection.refresh_failed:
                raise RefreshFailed(connection.refresh_error)
            current = connection.tokens
            if not current.access_expired(margin=self._margin):
                return current.access_token

            logger.info(
                "Refreshing QuickBooks access token for realm %s",
                connection.account.realm_id,
            )
            try:
                refreshed = await self._oauth.refresh_token(current.refresh_token)
            except OAuthTokenExchangeError as exc:
                logger.warning("QuickBooks token refresh failed: %s", exc.body)
                self._store.mark_refresh_failed(exc.body, expected=current)
                raise RefreshFailed(exc.body) from exc

            if self._store.replace_tokens(refreshed, expected=current):
                return refreshed.access_token

        # Disconnected or reconnected while the refresh was in flight.
        latest = self._store.get_token_pair()
        if latest is None:
            raise NotAuthenticated()
        return latest.access_token


__all__ = ["TokenGuardian"]

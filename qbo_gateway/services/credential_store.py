"""
Process-local holder for the single connected QuickBooks session.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from qbo_gateway.models import AccountLink, Connection, TokenPair

logger = logging.getLogger(__name__)


class CredentialStore:
    """Holds at most one ``Connection``.

    Every mutation replaces the whole immutable ``Connection`` in a single
    assignment, so readers observe either the old session or the new one and
    the realm is present exactly when tokens are.
    """

    def __init__(self) -> None:
        self._connection: Optional[Connection] = None

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def set(self, account_link: AccountLink, token_pair: TokenPair) -> None:
        """Replace any existing session with a freshly authorized one."""
        self._connection = Connection(account=account_link, tokens=token_pair)
        logger.info("Connected QuickBooks realm %s", account_link.realm_id)

    def get_account_link(self) -> Optional[AccountLink]:
        connection = self._connection
        return connection.account if connection else None

    def get_token_pair(self) -> Optional[TokenPair]:
        connection = self._connection
        return connection.tokens if connection else None

    def replace_tokens(self, token_pair: TokenPair, *, expected: TokenPair) -> bool:
        """Swap in refreshed tokens if ``expected`` is still the live pair.

        Returns ``False`` when the session was cleared or replaced while the
        refresh was in flight; the refreshed tokens are then discarded.
        """
        connection = self._connection
        if connection is None or connection.tokens is not expected:
            return False
        self._connection = connection.model_copy(update={"tokens": token_pair})
        return True

    def mark_refresh_failed(self, detail: Any, *, expected: TokenPair) -> bool:
        """Flag the live session as unrecoverable without re-authorization."""
        connection = self._connection
        if connection is None or connection.tokens is not expected:
            return False
        self._connection = connection.model_copy(
            update={"refresh_failed": True, "refresh_error": detail}
        )
        return True

    def clear(self) -> None:
        """Forget the session locally; Intuit is not notified."""
        if self._connection is not None:
            logger.info(
                "Disconnected QuickBooks realm %s", self._connection.account.realm_id
            )
        self._connection = None


__all__ = ["CredentialStore"]

"""
Precondition applied to every invoice route.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from qbo_gateway.core.errors import Unauthenticated
from qbo_gateway.dependencies.context import get_credential_store
from qbo_gateway.services import CredentialStore


def require_connected(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> None:
    """Reject the request unless a realm and its tokens are both present."""
    if store.get_account_link() is None or store.get_token_pair() is None:
        raise Unauthenticated()


RequireConnected = Depends(require_connected)

__all__ = ["RequireConnected", "require_connected"]

"""Expose dependency helpers for FastAPI routers."""

from .context import (
    GatewayContext,
    get_authorization_flow,
    get_credential_store,
    get_gateway_context,
    get_quickbooks_client,
)
from .gate import RequireConnected, require_connected

__all__ = [
    "GatewayContext",
    "RequireConnected",
    "get_authorization_flow",
    "get_credential_store",
    "get_gateway_context",
    "get_quickbooks_client",
    "require_connected",
]

"""
Per-application container for the gateway's shared state and clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import httpx
from fastapi import Request

from qbo_gateway.clients import IntuitOAuthClient, OAuthStateEncoder, QuickBooksClient
from qbo_gateway.core.config import AppSettings
from qbo_gateway.services import AuthorizationFlow, CredentialStore, TokenGuardian


@dataclass
class GatewayContext:
    """Everything a request handler needs, owned by one FastAPI app."""

    settings: AppSettings
    store: CredentialStore
    oauth_client: IntuitOAuthClient
    authorization: AuthorizationFlow
    token_guardian: TokenGuardian
    quickbooks: QuickBooksClient

    @classmethod
    def build(
        cls,
        settings: AppSettings,
        *,
        oauth_client: IntuitOAuthClient | None = None,
        api_transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GatewayContext":
        store = CredentialStore()
        oauth_client = oauth_client or IntuitOAuthClient(settings.quickbooks, settings.oauth)
        guardian = TokenGuardian(
            store=store,
            oauth_client=oauth_client,
            refresh_margin=timedelta(
                seconds=settings.quickbooks.token_refresh_margin_seconds
            ),
        )
        return cls(
            settings=settings,
            store=store,
            oauth_client=oauth_client,
            authorization=AuthorizationFlow(
                oauth_client=oauth_client,
                state_encoder=OAuthStateEncoder(
                    secret_key=settings.quickbooks.client_secret
                ),
                store=store,
                oauth_settings=settings.oauth,
            ),
            token_guardian=guardian,
            quickbooks=QuickBooksClient(
                settings=settings.quickbooks,
                store=store,
                token_guardian=guardian,
                transport=api_transport,
            ),
        )


def get_gateway_context(request: Request) -> GatewayContext:
    """FastAPI dependency returning the context attached by ``create_app``."""
    return request.app.state.gateway


def get_credential_store(request: Request) -> CredentialStore:
    return get_gateway_context(request).store


def get_authorization_flow(request: Request) -> AuthorizationFlow:
    return get_gateway_context(request).authorization


def get_quickbooks_client(request: Request) -> QuickBooksClient:
    return get_gateway_context(request).quickbooks


__all__ = [
    "GatewayContext",
    "get_authorization_flow",
    "get_credential_store",
    "get_gateway_context",
    "get_quickbooks_client",
]

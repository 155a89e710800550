"""
Authenticated wrapper around the QuickBooks Online Accounting API.

Every call asks the token guardian for a valid access token, targets the
connected company's base URL, forwards the caller's payload untouched and
turns non-2xx responses into ``RemoteApiError``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from qbo_gateway.core.config import QuickBooksSettings
from qbo_gateway.core.errors import (
    NotAuthenticated,
    RemoteApiError,
    translate_remote_error,
    translate_transport_error,
)
from qbo_gateway.services.credential_store import CredentialStore
from qbo_gateway.services.token_guardian import TokenGuardian

logger = logging.getLogger(__name__)

MAX_QUERY_RESULTS = 100
DEFAULT_QUERY_RESULTS = 50


def clamp_page(start: int | None, max_results: int | None) -> tuple[int, int]:
    """Normalize pagination to QuickBooks' 1-based start and 100-row ceiling."""
    start = max(1, start or 1)
    if max_results is None:
        max_results = DEFAULT_QUERY_RESULTS
    return start, min(max(1, max_results), MAX_QUERY_RESULTS)


class QuickBooksClient:
    """Thin invoice proxy bound to the single connected realm."""

    def __init__(
        self,
        *,
        settings: QuickBooksSettings,
        store: CredentialStore,
        token_guardian: TokenGuardian,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._guardian = token_guardian
        self._transport = transport

    def company_url(self, realm_id: str) -> str:
        return f"{self._settings.api_host}/v3/company/{quote(realm_id, safe='')}"

    async def create_invoice(self, invoice: Any) -> Any:
        response = await self._request(
            "POST",
            "invoice",
            json=invoice,
            headers={"Content-Type": "application/json"},
        )
        return _json_body(response)

    async def get_invoice(self, invoice_id: str) -> Any:
        response = await self._request("GET", f"invoice/{_segment(invoice_id)}")
        return _json_body(response)

    async def query_invoices(
        self, *, start: int | None = None, max_results: int | None = None
    ) -> Any:
        start, max_results = clamp_page(start, max_results)
        statement = (
            f"select * from Invoice startposition {start} maxresults {max_results}"
        )
        response = await self._request("GET", "query", params={"query": statement})
        return _json_body(response)

    async def get_invoice_pdf(self, invoice_id: str) -> bytes:
        response = await self._request(
            "GET",
            f"invoice/{_segment(invoice_id)}/pdf",
            accept="application/pdf",
        )
        return response.content

    async def send_invoice(self, invoice_id: str, *, send_to: Optional[str] = None) -> Any:
        """Email the invoice; without ``send_to`` Intuit uses the customer's address."""
        params = {"sendTo": send_to} if send_to else None
        response = await self._request(
            "POST",
            f"invoice/{_segment(invoice_id)}/send",
            params=params,
            headers={"Content-Type": "application/octet-stream"},
        )
        return _json_body(response)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        accept: str = "application/json",
    ) -> httpx.Response:
        access_token = await self._guardian.get_valid_access_token()
        account = self._store.get_account_link()
        if account is None:
            raise NotAuthenticated()

        url = f"{self.company_url(account.realm_id)}/{path}"
        query = {"minorversion": self._settings.minor_version, **(params or {})}
        request_headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": accept,
            **(headers or {}),
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.request(
                    method, url, params=query, json=json, headers=request_headers
                )
        except httpx.HTTPError as exc:
            logger.warning("QuickBooks %s %s failed: %s", method, path, exc)
            raise translate_transport_error(exc) from exc

        if response.is_success:
            return response

        error = translate_remote_error(response)
        logger.warning(
            "QuickBooks %s %s returned HTTP %s", method, path, response.status_code
        )
        raise error


def _segment(value: str) -> str:
    return quote(value, safe="")


def _json_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError as exc:
        raise RemoteApiError(
            {"error": "QuickBooks returned a response that is not valid JSON."},
            kind="decode",
        ) from exc


__all__ = [
    "DEFAULT_QUERY_RESULTS",
    "MAX_QUERY_RESULTS",
    "QuickBooksClient",
    "clamp_page",
]

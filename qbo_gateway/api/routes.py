"""
FastAPI routes for the QuickBooks invoice gateway.
"""

from __future__ import annotations

import logging
import re
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, Request, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

from qbo_gateway.clients import QuickBooksClient
from qbo_gateway.core.errors import GatewayError, RemoteApiError
from qbo_gateway.dependencies import (
    RequireConnected,
    get_authorization_flow,
    get_credential_store,
    get_quickbooks_client,
)
from qbo_gateway.schemas import HealthStatus, InvoiceEmailRequest, OkResponse
from qbo_gateway.services import AuthorizationFlow, CallbackParams, CredentialStore

router = APIRouter()
logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")

StoreDependency = Annotated[CredentialStore, Depends(get_credential_store)]
FlowDependency = Annotated[AuthorizationFlow, Depends(get_authorization_flow)]
QuickBooksDependency = Annotated[QuickBooksClient, Depends(get_quickbooks_client)]


@router.get("/", status_code=HTTPStatus.OK)
async def healthcheck(store: StoreDependency) -> HealthStatus:
    """Liveness plus whether a QuickBooks company is linked."""
    return HealthStatus(ok=True, connected=store.is_connected)


@router.get("/auth/connect")
async def connect(flow: FlowDependency) -> RedirectResponse:
    """Send the browser to Intuit's consent screen."""
    return RedirectResponse(url=flow.build_consent_url(), status_code=HTTPStatus.FOUND)


@router.get("/auth/callback", response_class=PlainTextResponse)
async def oauth_callback(request: Request, flow: FlowDependency) -> PlainTextResponse:
    """Finish the authorization-code exchange Intuit redirected back with."""
    params = CallbackParams.from_query(request.query_params)
    logger.info(
        "QuickBooks callback received (realmId=%s, error=%s)",
        params.realm_id,
        params.error,
    )
    try:
        await flow.complete_exchange(params)
    except GatewayError as exc:
        return PlainTextResponse(exc.message, status_code=HTTPStatus.BAD_REQUEST)
    return PlainTextResponse("Connected. Use /invoices endpoints.")


@router.post("/auth/disconnect", status_code=HTTPStatus.OK)
async def disconnect(store: StoreDependency) -> OkResponse:
    store.clear()
    return OkResponse()


@router.post(
    "/invoices",
    status_code=HTTPStatus.CREATED,
    dependencies=[RequireConnected],
)
async def create_invoice(
    invoice: Annotated[
        Any, Body(description="QuickBooks Invoice object, forwarded as-is.")
    ],
    quickbooks: QuickBooksDependency,
) -> Any:
    try:
        return await quickbooks.create_invoice(invoice)
    except RemoteApiError as exc:
        raise exc.respond_with(HTTPStatus.BAD_REQUEST) from exc


@router.get("/invoices", status_code=HTTPStatus.OK, dependencies=[RequireConnected])
async def list_invoices(
    quickbooks: QuickBooksDependency,
    start: int = Query(1, description="1-based position of the first invoice."),
    max_results: int = Query(
        50, alias="max", description="Page size; capped at 100 by QuickBooks."
    ),
) -> Any:
    try:
        return await quickbooks.query_invoices(start=start, max_results=max_results)
    except RemoteApiError as exc:
        raise exc.respond_with(HTTPStatus.BAD_REQUEST) from exc


@router.get(
    "/invoices/{invoice_id}",
    status_code=HTTPStatus.OK,
    dependencies=[RequireConnected],
)
async def get_invoice(invoice_id: str, quickbooks: QuickBooksDependency) -> Any:
    try:
        return await quickbooks.get_invoice(invoice_id)
    except RemoteApiError as exc:
        raise exc.respond_with(HTTPStatus.BAD_REQUEST) from exc


@router.get(
    "/invoices/{invoice_id}/pdf",
    response_class=Response,
    dependencies=[RequireConnected],
)
async def download_invoice_pdf(
    invoice_id: str, quickbooks: QuickBooksDependency
) -> Response:
    """Stream the invoice PDF; remote errors keep their original status."""
    pdf = await quickbooks.get_invoice_pdf(invoice_id)
    filename = f"invoice-{_UNSAFE_FILENAME_CHARS.sub('_', invoice_id)}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post(
    "/invoices/{invoice_id}/email",
    status_code=HTTPStatus.OK,
    dependencies=[RequireConnected],
)
async def email_invoice(
    invoice_id: str,
    quickbooks: QuickBooksDependency,
    to: str | None = Query(None, description="Recipient override."),
    payload: Annotated[InvoiceEmailRequest | None, Body()] = None,
) -> Any:
    """Ask QuickBooks to email the invoice, to ``to`` or the customer on file."""
    recipient = to or (payload.to if payload else None)
    return await quickbooks.send_invoice(invoice_id, send_to=recipient)


__all__ = ["router"]

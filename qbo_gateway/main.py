"""
FastAPI application entrypoint for the QuickBooks invoice gateway.
"""

from __future__ import annotations

import logging
import sys
from http import HTTPStatus

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from qbo_gateway import __version__
from qbo_gateway.api.routes import router
from qbo_gateway.clients import IntuitOAuthClient
from qbo_gateway.core.config import AppSettings, get_settings
from qbo_gateway.core.errors import ConfigurationMissing, GatewayError
from qbo_gateway.core.logging import configure_logging
from qbo_gateway.dependencies import GatewayContext

logger = logging.getLogger(__name__)


async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    logger.warning(
        "%s %s failed with %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc.message,
    )
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_body())


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning("%s %s rejected: invalid request", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
        content={
            "error": "Invalid request.",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


def create_app(
    settings: AppSettings | None = None,
    *,
    oauth_client: IntuitOAuthClient | None = None,
    api_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Factory for the FastAPI application.

    Raises ``ConfigurationMissing`` when required settings are absent.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="QuickBooks Invoice Gateway",
        version=__version__,
        description="Single-tenant OAuth gateway for QuickBooks Online invoices.",
    )
    app.state.gateway = GatewayContext.build(
        settings, oauth_client=oauth_client, api_transport=api_transport
    )
    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(router)
    return app


def run() -> None:
    """Console entry point: start uvicorn or exit if configuration is missing."""
    try:
        settings = get_settings()
    except ConfigurationMissing as exc:
        configure_logging()
        logger.error("%s. Check .env", exc)
        sys.exit(1)

    app = create_app(settings)
    logger.info("Server on http://localhost:%s", settings.port)
    logger.info("Visit /auth/connect to link QuickBooks.")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


__all__ = ["create_app", "run"]


if __name__ == "__main__":  # pragma: no cover - script entry point
    run()

"""Schemas for the gateway's own envelopes; invoice bodies stay opaque."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OkResponse(BaseModel):
    ok: bool = True


class HealthStatus(OkResponse):
    connected: bool = Field(..., description="Whether a QuickBooks company is linked.")


class InvoiceEmailRequest(BaseModel):
    """Optional body for the send-invoice route."""

    to: Optional[str] = Field(
        None,
        description="Recipient override; the customer's email on file is used when omitted.",
    )


__all__ = ["HealthStatus", "InvoiceEmailRequest", "OkResponse"]

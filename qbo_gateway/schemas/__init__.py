"""Pydantic schemas for request and response payloads."""

from .invoice import HealthStatus, InvoiceEmailRequest, OkResponse

__all__ = ["HealthStatus", "InvoiceEmailRequest", "OkResponse"]

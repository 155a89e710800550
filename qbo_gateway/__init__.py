"""Single-tenant QuickBooks Online invoice gateway."""

__version__ = "0.1.0"

"""Domain models for the connected QuickBooks session."""

from .credentials import AccountLink, Connection, TokenPair

__all__ = ["AccountLink", "Connection", "TokenPair"]

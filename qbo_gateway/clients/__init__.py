"""Expose constructed client wrappers."""

from .intuit_auth import IntuitOAuthClient, OAuthStateEncoder, OAuthTokenExchangeError
from .quickbooks import QuickBooksClient

__all__ = [
    "IntuitOAuthClient",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
    "QuickBooksClient",
]

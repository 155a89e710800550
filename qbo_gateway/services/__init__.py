"""Service layer exports."""

from .authorization import AuthorizationFlow, CallbackParams
from .credential_store import CredentialStore
from .token_guardian import TokenGuardian

__all__ = [
    "AuthorizationFlow",
    "CallbackParams",
    "CredentialStore",
    "TokenGuardian",
]

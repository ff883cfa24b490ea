"""Password hashing and session token primitives."""

from .credentials import CredentialVault, DerivedCredential
from .tokens import SessionClaims, SessionTokenService, TokenErrorKind, TokenVerification

__all__ = [
    "CredentialVault",
    "DerivedCredential",
    "SessionClaims",
    "SessionTokenService",
    "TokenErrorKind",
    "TokenVerification",
]

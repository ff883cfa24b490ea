"""Domain models for Displayables Auth"""

from displayables_auth.domain.models.api_auth import (
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    PasswordUpdateRequest,
    RefreshBody,
    RegisterBody,
    RegisterRequest,
    SessionBody,
    UserInfoResponse,
)
from displayables_auth.domain.models.auth import (
    AuthRequest,
    AuthState,
    ExternalIdentity,
    FederationResult,
    ProviderName,
    RefreshResponse,
    RefreshResult,
    SessionResponse,
    User,
    bearer,
    strip_bearer,
)

__all__ = [
    # Auth models
    "AuthRequest",
    "AuthState",
    "ExternalIdentity",
    "FederationResult",
    "ProviderName",
    "RefreshResponse",
    "RefreshResult",
    "SessionResponse",
    "User",
    "bearer",
    "strip_bearer",
    # API models
    "ErrorResponse",
    "LoginRequest",
    "MessageResponse",
    "PasswordUpdateRequest",
    "RefreshBody",
    "RegisterBody",
    "RegisterRequest",
    "SessionBody",
    "UserInfoResponse",
]

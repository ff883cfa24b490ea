"""Authentication Data Models

Purpose: Define data structures shared by the authentication core

Key Components:
- ProviderName: The fixed set of identity sources
- User: A platform identity as read from the user store
- ExternalIdentity: A provider-verified identity, valid for one request
- AuthRequest: Framework-agnostic view of an inbound request
- SessionResponse / RefreshResponse: What a completed flow hands back
- AuthState: States a request moves through in the dispatcher
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

BEARER_SCHEME = "bearer"


class ProviderName(str, Enum):
    """Identity sources a user can authenticate through"""

    LOCAL = "local"
    GOOGLE = "google"
    FACEBOOK = "facebook"
    GITHUB = "github"

    @classmethod
    def resolve(cls, tag: Optional[str]) -> "ProviderName":
        """Map a request-supplied tag to a provider, defaulting to local."""
        if not tag:
            return cls.LOCAL
        try:
            return cls(tag.strip().lower())
        except ValueError:
            return cls.LOCAL


class AuthState(str, Enum):
    """Per-request authentication states"""

    UNAUTHENTICATED = "unauthenticated"
    PROVIDER_VERIFYING = "provider_verifying"
    FEDERATING = "federating"
    SESSION_ISSUED = "session_issued"
    REJECTED = "rejected"


@dataclass
class User:
    """User account

    Attributes:
        id: Store-assigned numeric id
        username: Unique, lowercase username (the external id for federated users)
        name: Display name
        password_hash: Hex hash, empty for externally provisioned users
        salt: Password salt, empty for externally provisioned users
        provider: Provider the account belongs to
        created_at: Creation timestamp
    """

    id: int
    username: str
    name: str
    password_hash: str = ""
    salt: str = ""
    provider: ProviderName = ProviderName.LOCAL
    created_at: Optional[datetime] = None

    @property
    def has_local_password(self) -> bool:
        return bool(self.password_hash and self.salt)


class ExternalIdentity(BaseModel):
    """Identity returned by a provider adapter.

    Attributes:
        external_id: Provider-side identifier (the username for local)
        display_name: Name to show for the user
        provider: Provider that verified the credential
        credential: Bearer value that proved the identity (after any exchange)
        user_id: Local id when the credential already carries it (local tokens)
        metadata: Provider-specific data (claims, raw profile)
    """

    external_id: str
    display_name: str
    provider: ProviderName
    credential: str
    user_id: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


@dataclass
class AuthRequest:
    """Transport-neutral inbound request for the authentication core"""

    provider: ProviderName = ProviderName.LOCAL
    authorization: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    locale: Optional[str] = None

    @property
    def bearer_token(self) -> Optional[str]:
        """Credential from the Authorization header, scheme tag removed."""
        return strip_bearer(self.authorization)


@dataclass
class FederationResult:
    """Outcome of resolving an external identity to a local user"""

    user: User
    created: bool = False


@dataclass
class SessionResponse:
    """Completed login: response body fields plus the Authorization header"""

    message: str
    username: str
    id: int
    provider: str
    name: str
    authorization: str

    def to_body(self) -> dict:
        return {
            "message": self.message,
            "username": self.username,
            "id": self.id,
            "provider": self.provider,
            "name": self.name,
        }


@dataclass
class RefreshResponse:
    """Completed refresh: body fields plus the (possibly unchanged) credential"""

    message: str
    username: str
    id: Optional[int]
    authorization: str

    def to_body(self) -> dict:
        return {"message": self.message, "username": self.username, "id": self.id}


@dataclass
class RefreshResult:
    """What an adapter's refresh hands back to the dispatcher"""

    username: str
    name: str
    credential: str
    user_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def strip_bearer(value: Optional[str]) -> Optional[str]:
    """Remove a leading bearer scheme tag (any case) from a header value."""
    if value is None:
        return None
    value = value.strip()
    if value.lower() == BEARER_SCHEME:
        return None
    if value[: len(BEARER_SCHEME) + 1].lower() == f"{BEARER_SCHEME} ":
        value = value[len(BEARER_SCHEME) + 1 :].strip()
    return value or None


def bearer(credential: str) -> str:
    """Format a credential for the Authorization header with exactly one scheme tag."""
    return f"{BEARER_SCHEME} {strip_bearer(credential) or ''}".rstrip()

"""Session Token Service

Issues and verifies signed, self-contained session tokens.

Token Format:
{
    "username": "alice",      # Lowercase username
    "name": "Alice",          # Display name
    "id": 42,                 # Local user id
    "iat": 1700000000,        # Issued at
    "exp": 1700010800         # Expires at (absolute, not sliding)
}

Tokens are not persisted. Validity depends only on the signature and the expiry
at verification time.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

import jwt

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["username", "id", "iat", "exp"]


class TokenErrorKind(str, Enum):
    """Why a session token failed verification"""

    EXPIRED = "expired"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    INVALID = "invalid"


@dataclass
class SessionClaims:
    """Claims carried by a session token"""

    username: str
    name: str
    id: int
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    provider: str = "local"

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SessionClaims":
        return cls(
            username=payload["username"],
            name=payload.get("name") or payload["username"],
            id=payload["id"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


@dataclass
class TokenVerification:
    """Result of session token verification"""

    valid: bool
    claims: Optional[SessionClaims] = None
    error: Optional[TokenErrorKind] = None
    message: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


class SessionTokenService:
    """Signs and verifies HS256 session tokens with a fixed validity window."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_hours: int = 3,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize token service

        Args:
            secret: Signing secret
            algorithm: JWT signing algorithm
            expire_hours: Token lifetime from issuance
            clock: Returns the current UTC time (defaults to the wall clock)
        """
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime = timedelta(hours=expire_hours)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, username: str, name: str, user_id: int) -> str:
        """Create a signed session token for a user

        Args:
            username: Username claim
            name: Display name claim
            user_id: Local user id claim

        Returns:
            Encoded token string
        """
        now = self._clock()
        payload = {
            "username": username,
            "name": name,
            "id": user_id,
            "iat": int(now.timestamp()),
            "exp": int((now + self.lifetime).timestamp()),
        }

        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        logger.debug(f"Issued session token for user {user_id}")
        return token

    def verify(self, token: Optional[str]) -> TokenVerification:
        """Verify signature, structure and expiry of a session token

        Never raises; the failure reason is reported in the result.
        """
        if not token or not isinstance(token, str):
            return TokenVerification(valid=False, error=TokenErrorKind.MALFORMED, message="empty token")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )

        except jwt.ExpiredSignatureError as e:
            logger.info("Session token expired")
            return TokenVerification(valid=False, error=TokenErrorKind.EXPIRED, message=str(e))

        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            logger.warning(f"Session token has invalid signature: {e}")
            return TokenVerification(valid=False, error=TokenErrorKind.BAD_SIGNATURE, message=str(e))

        except (jwt.DecodeError, jwt.MissingRequiredClaimError) as e:
            logger.warning(f"Failed to decode session token: {e}")
            return TokenVerification(valid=False, error=TokenErrorKind.MALFORMED, message=str(e))

        except jwt.InvalidTokenError as e:
            logger.warning(f"Session token rejected: {e}")
            return TokenVerification(valid=False, error=TokenErrorKind.INVALID, message=str(e))

        return TokenVerification(valid=True, claims=SessionClaims.from_payload(payload), payload=payload)

    def decode(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """Read claims without checking the signature.

        For display only, never for authorization. Returns None when the token
        cannot be parsed.
        """
        if not token:
            return None
        try:
            return jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
        except jwt.InvalidTokenError:
            return None

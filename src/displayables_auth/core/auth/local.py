"""Local session provider.

Handles bearer credentials that are session tokens signed by this service.
Password verification for local login happens in the dispatcher against the
credential vault; this adapter covers the token side: guard checks, refresh
(re-signing) and finalizing the login response.
"""

import logging
from typing import Optional

from displayables_auth.core.errors import AuthenticationError
from displayables_auth.core.messages import Describe, MessageKey
from displayables_auth.core.security.tokens import (
    SessionClaims,
    SessionTokenService,
    TokenErrorKind,
)
from displayables_auth.domain.models import (
    AuthRequest,
    ExternalIdentity,
    ProviderName,
    RefreshResult,
    User,
)

from .provider import ProviderAdapter

logger = logging.getLogger(__name__)

TOKEN_ERROR_MESSAGES = {
    TokenErrorKind.EXPIRED: MessageKey.TOKEN_SESSION_EXPIRED,
    TokenErrorKind.MALFORMED: MessageKey.TOKEN_MALFORMED,
    TokenErrorKind.BAD_SIGNATURE: MessageKey.INVALID_MISSING_SIGNATURE,
    TokenErrorKind.INVALID: MessageKey.FAILED_TOKEN_VALIDATION,
}


class LocalProviderAdapter(ProviderAdapter):
    """Local session tokens (HS256, signed with the service secret)."""

    name = ProviderName.LOCAL

    def __init__(self, tokens: SessionTokenService, describe_fn: Optional[Describe] = None):
        """Initialize local adapter

        Args:
            tokens: Session token service holding the signing secret
            describe_fn: Message formatter
        """
        super().__init__(describe_fn)
        self.tokens = tokens

    async def check_incoming_credential(self, request: AuthRequest) -> ExternalIdentity:
        """Validate the session token in the Authorization header."""
        token = request.bearer_token
        claims = self._verify(token)

        return ExternalIdentity(
            external_id=claims.username,
            display_name=claims.name,
            provider=self.name,
            credential=token,
            user_id=claims.id,
        )

    async def refresh(self, request: AuthRequest) -> RefreshResult:
        """Validate the current session token and re-sign a fresh one."""
        claims = self._verify(request.bearer_token)
        new_token = self.tokens.issue(claims.username, claims.name, claims.id)

        logger.info(f"Session token refreshed for user {claims.id}")
        return RefreshResult(
            username=claims.username,
            name=claims.name,
            credential=new_token,
            user_id=claims.id,
        )

    def greeting_name(self, user: User) -> str:
        return user.username

    def _verify(self, token: Optional[str]) -> SessionClaims:
        if not token:
            raise AuthenticationError(MessageKey.INVALID_TOKEN)

        result = self.tokens.verify(token)
        if not result.valid:
            raise AuthenticationError(TOKEN_ERROR_MESSAGES[result.error], detail=result.message)

        return result.claims

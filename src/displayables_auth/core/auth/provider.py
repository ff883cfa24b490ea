"""Abstract identity provider adapter interface.

Every identity source (local sessions and each external provider) implements the
same three capabilities, so the dispatcher can pick an adapter once by provider
tag and never branch on the provider again.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from displayables_auth.core.errors import InternalError
from displayables_auth.core.messages import Describe, MessageKey, describe
from displayables_auth.domain.models import (
    AuthRequest,
    ExternalIdentity,
    ProviderName,
    RefreshResult,
    SessionResponse,
    User,
    bearer,
)
from displayables_auth.infrastructure.persistence.user_store import UserStore

logger = logging.getLogger(__name__)


class ProviderAdapter(ABC):
    """Uniform capability set for an identity source.

    Capabilities:
        check_incoming_credential: Verify the inbound bearer credential and
            return the identity it proves.
        refresh: Re-validate the current credential and return the credential
            the client should use next.
        finalize: Complete a successful login from the canonical stored user.
    """

    name: ProviderName

    def __init__(self, describe_fn: Optional[Describe] = None):
        """Initialize adapter

        Args:
            describe_fn: Message formatter (key, locale, **params) -> str
        """
        self.describe = describe_fn or describe

    @abstractmethod
    async def check_incoming_credential(self, request: AuthRequest) -> ExternalIdentity:
        """Validate the bearer credential carried by the request.

        Args:
            request: Inbound request (bearer value in ``authorization``)

        Returns:
            ExternalIdentity proven by the credential

        Raises:
            AuthenticationError: If the credential is missing, invalid, expired,
                or the provider could not confirm it
        """
        pass

    @abstractmethod
    async def refresh(self, request: AuthRequest) -> RefreshResult:
        """Re-validate the current credential and produce the next one.

        Raises:
            AuthenticationError: If the current credential is not valid
        """
        pass

    async def finalize(
        self, request: AuthRequest, user_id: int, credential: str, store: UserStore
    ) -> SessionResponse:
        """Complete a login from the canonical stored user.

        Re-reads the user so the response reflects what is stored, and formats
        the credential with exactly one bearer scheme tag.

        Args:
            request: Inbound request (for the locale)
            user_id: Local id of the authenticated user
            credential: Session token (local) or provider token (external)
            store: User store to re-read from

        Returns:
            SessionResponse with body fields and the Authorization header value
        """
        user = await store.get_user_by_id(user_id)
        if user is None:
            raise InternalError(MessageKey.FAILED_USER_AUTHENTICATE, detail=f"User {user_id} vanished")

        message = self.describe(MessageKey.AUTHENTICATED, request.locale, name=self.greeting_name(user))
        logger.info(f"Login finalized for user {user.id} via {self.name.value}")

        return SessionResponse(
            message=message,
            username=user.username,
            id=user.id,
            provider=user.provider.value,
            name=user.name,
            authorization=bearer(credential),
        )

    def greeting_name(self, user: User) -> str:
        return user.name

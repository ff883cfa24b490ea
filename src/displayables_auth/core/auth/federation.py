"""Identity Federation Resolver

Maps a provider-verified external identity to its local user record, creating
the record on first login. This is the only way an account is created for an
external provider; there is no separate external registration step.
"""

import logging
from typing import Optional

from displayables_auth.core.errors import AuthenticationError, DuplicateUsernameError
from displayables_auth.core.messages import MessageKey
from displayables_auth.domain.models import ExternalIdentity, FederationResult, ProviderName, User
from displayables_auth.infrastructure.persistence.user_store import UserStore

logger = logging.getLogger(__name__)


class IdentityFederationResolver:
    """Find-or-create for externally authenticated users.

    Idempotent: resolving the same identity twice yields the same user id and a
    single record. Concurrent first logins are settled by the store's unique
    username constraint; the loser re-reads the winner's record.
    """

    def __init__(self, store: UserStore):
        self.store = store

    async def lookup(self, identity: ExternalIdentity) -> Optional[User]:
        """Read-only lookup of the local record for an identity.

        Raises:
            AuthenticationError: If the username belongs to another provider
        """
        user = await self.store.find_user_by_username(identity.external_id)
        if user is not None and user.provider != identity.provider:
            logger.warning(
                f"Identity {identity.external_id} from {identity.provider.value} "
                f"collides with a {user.provider.value} account"
            )
            raise AuthenticationError(MessageKey.PROVIDER_MISMATCH)
        return user

    async def resolve(self, identity: ExternalIdentity) -> FederationResult:
        """Return the local user for an identity, provisioning it if absent.

        Args:
            identity: Identity verified by an external provider adapter

        Returns:
            FederationResult with the canonical user and whether it was created

        Raises:
            AuthenticationError: If the username belongs to another provider
        """
        if identity.provider == ProviderName.LOCAL:
            raise ValueError("Local identities are not federated")

        existing = await self.lookup(identity)
        if existing is not None:
            return FederationResult(user=existing, created=False)

        provider_id = await self.store.get_provider_id_by_name(identity.provider.value)

        try:
            user_id = await self.store.create_external_user(
                identity.external_id, identity.display_name, provider_id
            )
        except DuplicateUsernameError:
            logger.info(f"Concurrent first login for {identity.external_id}, re-reading record")
            winner = await self.lookup(identity)
            if winner is None:
                raise
            return FederationResult(user=winner, created=False)

        user = await self.store.get_user_by_id(user_id)
        logger.info(f"Provisioned user {user_id} for {identity.provider.value} identity {identity.external_id}")
        return FederationResult(user=user, created=True)

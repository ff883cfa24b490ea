"""User Storage

Purpose: The persistence collaborator for the authentication core

Provides the user lookups and inserts the core depends on, on top of an async
SQLAlchemy session. Username uniqueness is enforced by the database; a violation
is reported as DuplicateUsernameError so callers can re-read instead of failing.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from displayables_auth.core.errors import DuplicateUsernameError
from displayables_auth.domain.models import ProviderName, User
from displayables_auth.infrastructure.persistence.models import IdentityProvider, UserAccount

logger = logging.getLogger(__name__)


class UserStore:
    """User and provider storage backed by SQLAlchemy

    All usernames are normalized to lowercase on the way in.
    """

    def __init__(self, session: AsyncSession):
        """Initialize user store

        Args:
            session: Async database session for this request
        """
        self.session = session

    async def find_user_by_username(self, username: str) -> Optional[User]:
        """Get user by username

        Args:
            username: Username to search for (case-insensitive)

        Returns:
            User if found, None otherwise
        """
        if not username:
            return None

        result = await self.session.execute(
            select(UserAccount)
            .options(selectinload(UserAccount.provider))
            .execution_options(populate_existing=True)
            .where(UserAccount.username == username.lower())
        )
        record = result.scalar_one_or_none()
        return self._to_domain(record) if record else None

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by id

        Args:
            user_id: Local user id

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(
            select(UserAccount)
            .options(selectinload(UserAccount.provider))
            .execution_options(populate_existing=True)
            .where(UserAccount.id == user_id)
        )
        record = result.scalar_one_or_none()
        return self._to_domain(record) if record else None

    async def get_provider_id_by_name(self, name: str) -> int:
        """Get the id of a seeded provider

        Raises:
            LookupError: If no provider exists by that name
        """
        result = await self.session.execute(
            select(IdentityProvider.id).where(IdentityProvider.name == name)
        )
        provider_id = result.scalar_one_or_none()

        if provider_id is None:
            raise LookupError(f"No provider exists by the name {name}")
        return provider_id

    async def create_user(
        self, username: str, name: str, password_hash: str, salt: str, provider_id: int
    ) -> int:
        """Insert a user with local credentials

        Returns:
            New user id

        Raises:
            DuplicateUsernameError: If the username is already taken
        """
        return await self._insert(
            UserAccount(
                username=username.lower(),
                name=name,
                password_hash=password_hash,
                salt=salt,
                provider_id=provider_id,
            )
        )

    async def create_external_user(self, external_id: str, name: str, provider_id: int) -> int:
        """Insert a reference user for an externally authenticated identity

        Returns:
            New user id

        Raises:
            DuplicateUsernameError: If the username is already taken
        """
        return await self._insert(
            UserAccount(
                username=external_id.lower(),
                name=name,
                password_hash="",
                salt="",
                provider_id=provider_id,
            )
        )

    async def update_user_password(self, user_id: int, password_hash: str, salt: str) -> None:
        """Replace the stored password hash and salt

        Raises:
            LookupError: If the user does not exist
        """
        record = await self.session.get(UserAccount, user_id)
        if record is None:
            raise LookupError(f"User does not exist by id {user_id}")

        record.password_hash = password_hash
        record.salt = salt
        await self.session.commit()
        logger.info(f"Updated password for user {user_id}")

    async def _insert(self, record: UserAccount) -> int:
        username = record.username
        self.session.add(record)
        try:
            await self.session.flush()
            user_id = record.id
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info(f"Username '{username}' already exists: {e.orig}")
            raise DuplicateUsernameError(username) from e

        logger.info(f"Created user {user_id} with username '{username}'")
        return user_id

    @staticmethod
    def _to_domain(record: UserAccount) -> User:
        return User(
            id=record.id,
            username=record.username,
            name=record.name,
            password_hash=record.password_hash or "",
            salt=record.salt or "",
            provider=ProviderName(record.provider.name),
            created_at=record.created_at,
        )

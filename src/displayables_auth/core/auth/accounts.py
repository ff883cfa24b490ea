"""Local account management.

Registration and password changes for local (username/password) accounts.
External accounts are only ever created by federation.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from displayables_auth.config.settings import Settings
from displayables_auth.core.errors import (
    AuthenticationError,
    DuplicateUsernameError,
    ValidationError,
    internal_error_boundary,
)
from displayables_auth.core.messages import MessageKey
from displayables_auth.core.security import CredentialVault
from displayables_auth.domain.models import ProviderName, User
from displayables_auth.infrastructure.persistence.user_store import UserStore

logger = logging.getLogger(__name__)


def _encodable(value: str) -> bool:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


@dataclass
class AccountRules:
    """Username and password constraints for local accounts"""

    username_min_length: int = 3
    username_max_length: int = 20
    password_min_length: int = 6
    password_max_length: int = 64
    restricted_usernames: List[str] = field(
        default_factory=lambda: ["admin", "administrator", "example"]
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AccountRules":
        return cls(
            username_min_length=settings.username_min_length,
            username_max_length=settings.username_max_length,
            password_min_length=settings.password_min_length,
            password_max_length=settings.password_max_length,
            restricted_usernames=list(settings.restricted_usernames),
        )

    def check_username(self, username: str) -> str:
        """Return the normalized username or raise ValidationError."""
        username = username.strip().lower()

        self.check_username_length(username)
        if any(word in username for word in self.restricted_usernames):
            raise ValidationError(MessageKey.INVALID_USERNAME_RESTRICTED)

        return username

    def check_username_length(self, username: str) -> None:
        if not _encodable(username):
            raise ValidationError(MessageKey.INVALID_USERNAME_RESTRICTED)
        if not self.username_min_length <= len(username) <= self.username_max_length:
            raise ValidationError(
                MessageKey.INVALID_USERNAME_LENGTH,
                min=self.username_min_length,
                max=self.username_max_length,
            )

    def check_password_length(self, password: str) -> None:
        if not self.password_min_length <= len(password) <= self.password_max_length:
            raise ValidationError(
                MessageKey.INVALID_PASSWORD_LENGTH,
                min=self.password_min_length,
                max=self.password_max_length,
            )

    def check_password(self, password: str) -> None:
        """Length bounds plus the password must be encodable for hashing."""
        self.check_password_length(password)
        if not _encodable(password):
            raise ValidationError(MessageKey.INVALID_PASSWORD_CHARACTERS)

    def check_login(self, username: str, password: str) -> None:
        """Length bounds for a local login attempt."""
        self.check_username_length(username.strip())
        self.check_password_length(password)


class AccountService:
    """Creates local accounts and changes their passwords."""

    def __init__(self, store: UserStore, vault: CredentialVault, rules: Optional[AccountRules] = None):
        self.store = store
        self.vault = vault
        self.rules = rules or AccountRules()

    async def register(self, username: Optional[str], password: Optional[str], name: Optional[str] = None) -> User:
        """Register a local user

        Args:
            username: Requested username (lowercased)
            password: Plaintext password
            name: Display name, defaults to the username

        Returns:
            The created user

        Raises:
            ValidationError: Missing, malformed, restricted or taken username,
                or a password of the wrong length
        """
        if not username or not password:
            raise ValidationError(MessageKey.LOGIN_DETAILS_REQUIRED)

        username = self.rules.check_username(username)
        self.rules.check_password(password)

        if await self.store.find_user_by_username(username) is not None:
            raise ValidationError(MessageKey.USERNAME_ALREADY_EXISTS, username=username)

        with internal_error_boundary(MessageKey.FAILED_USER_CREATION, username=username):
            credential = self.vault.derive_credential(password)
            provider_id = await self.store.get_provider_id_by_name(ProviderName.LOCAL.value)

            try:
                user_id = await self.store.create_user(
                    username,
                    (name or "").strip() or username,
                    credential.hash,
                    credential.salt,
                    provider_id,
                )
            except DuplicateUsernameError:
                raise ValidationError(MessageKey.USERNAME_ALREADY_EXISTS, username=username)

            user = await self.store.get_user_by_id(user_id)

        logger.info(f"Registered local user {user.id}")
        return user

    async def update_password(self, user_id: int, old_password: Optional[str], password: Optional[str]) -> None:
        """Change a local user's password after checking the current one.

        A fresh salt is generated for the new password.

        Raises:
            ValidationError: Missing fields or a password of the wrong length
            AuthenticationError: Wrong current password, or not a local account
        """
        if not old_password or not password:
            raise ValidationError(MessageKey.PASSWORD_UPDATE_DETAILS_REQUIRED)

        self.rules.check_password(password)

        user = await self.store.get_user_by_id(user_id)
        if user is None or user.provider != ProviderName.LOCAL or not user.has_local_password:
            raise AuthenticationError(MessageKey.EXTERNAL_ACCOUNT)

        if not self.vault.verify(old_password, user.salt, user.password_hash):
            raise AuthenticationError(MessageKey.INCORRECT_PASSWORD)

        with internal_error_boundary(MessageKey.FAILED_PASSWORD_UPDATE):
            credential = self.vault.derive_credential(password)
            await self.store.update_user_password(user_id, credential.hash, credential.salt)

"""Authentication Dispatcher

Entry point of the authentication core. Picks the provider adapter from the
request's provider tag and drives the login, verify and refresh flows through
the per-request states:

    Unauthenticated -> ProviderVerifying -> [Federating] -> SessionIssued
                                         \\-> Rejected

Validation and authentication failures propagate as typed errors; anything
unexpected is logged and re-raised as ``InternalError``.
"""

import logging
from typing import List, Optional

from displayables_auth.core.errors import (
    AuthenticationError,
    AuthServiceError,
    ValidationError,
    internal_error_boundary,
)
from displayables_auth.core.messages import Describe, MessageKey, describe
from displayables_auth.core.security import CredentialVault, SessionClaims
from displayables_auth.domain.models import (
    AuthRequest,
    AuthState,
    ExternalIdentity,
    ProviderName,
    RefreshResponse,
    SessionResponse,
    User,
    bearer,
)
from displayables_auth.infrastructure.persistence.user_store import UserStore

from .accounts import AccountRules
from .factory import ProviderRegistry
from .federation import IdentityFederationResolver

logger = logging.getLogger(__name__)


class AuthenticationDispatcher:
    """Orchestrates one request's authentication flow.

    Built per request; ``state`` and ``transitions`` record where the request is
    and how it got there.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        store: UserStore,
        vault: CredentialVault,
        describe_fn: Optional[Describe] = None,
        rules: Optional[AccountRules] = None,
    ):
        """Initialize dispatcher

        Args:
            registry: Provider adapters keyed by provider tag
            store: Session-bound user store
            vault: Credential vault for local passwords
            describe_fn: Message formatter
            rules: Username and password bounds for local login
        """
        self.registry = registry
        self.store = store
        self.vault = vault
        self.rules = rules or AccountRules()
        self.describe = describe_fn or describe
        self.resolver = IdentityFederationResolver(store)

        self.state = AuthState.UNAUTHENTICATED
        self.transitions: List[AuthState] = [AuthState.UNAUTHENTICATED]

    async def login(self, request: AuthRequest) -> SessionResponse:
        """Authenticate a login request and issue the session.

        Local: username/password checked against the vault, then a session token
        is signed. External: the bearer credential is verified with the provider,
        the identity is federated to a local user, and the provider credential
        is handed back as the session credential.

        Raises:
            ValidationError: Missing credentials or unknown username (local)
            AuthenticationError: Wrong password or rejected credential
            InternalError: Unexpected failure
        """
        adapter = self.registry.get(request.provider.value)
        self._transition(AuthState.PROVIDER_VERIFYING)

        try:
            with internal_error_boundary(MessageKey.FAILED_USER_AUTHENTICATE):
                if adapter.name == ProviderName.LOCAL:
                    user = await self._check_password(request)
                    credential = self.registry.tokens.issue(user.username, user.name, user.id)
                else:
                    identity = await adapter.check_incoming_credential(request)

                    self._transition(AuthState.FEDERATING)
                    with internal_error_boundary(
                        MessageKey.FAILED_USER_CREATION, username=identity.display_name
                    ):
                        result = await self.resolver.resolve(identity)
                    user = result.user
                    credential = identity.credential

                response = await adapter.finalize(request, user.id, credential, self.store)

        except AuthServiceError as e:
            self._reject("login", adapter.name, e)
            raise

        self._transition(AuthState.SESSION_ISSUED)
        logger.info(f"User {response.id} logged in via {adapter.name.value}")
        return response

    async def verify(self, request: AuthRequest) -> SessionClaims:
        """Guard check for protected routes.

        Local tokens are verified against the signing secret. External
        credentials go back out to the provider on every call, and the local
        record is looked up (never created) to attach the local id.

        Returns:
            SessionClaims to attach to the request

        Raises:
            AuthenticationError: If the credential is rejected
        """
        adapter = self.registry.get(request.provider.value)
        self._transition(AuthState.PROVIDER_VERIFYING)

        try:
            with internal_error_boundary(MessageKey.FAILED_TOKEN_VALIDATION):
                identity = await adapter.check_incoming_credential(request)

                if adapter.name == ProviderName.LOCAL:
                    claims = SessionClaims(
                        username=identity.external_id,
                        name=identity.display_name,
                        id=identity.user_id,
                        provider=ProviderName.LOCAL.value,
                    )
                else:
                    user = await self.resolver.lookup(identity)
                    if user is None:
                        raise AuthenticationError(MessageKey.ACCOUNT_NOT_PROVISIONED)
                    claims = SessionClaims(
                        username=user.username,
                        name=user.name,
                        id=user.id,
                        provider=user.provider.value,
                    )

        except AuthServiceError as e:
            self._reject("verify", adapter.name, e)
            raise

        self._transition(AuthState.SESSION_ISSUED)
        return claims

    async def refresh(self, request: AuthRequest) -> RefreshResponse:
        """Re-validate the current credential and hand back the next one.

        Local tokens are re-signed with a fresh window; external credentials
        are confirmed live and echoed back unchanged.

        Raises:
            AuthenticationError: If the current credential is rejected
        """
        adapter = self.registry.get(request.provider.value)
        self._transition(AuthState.PROVIDER_VERIFYING)

        try:
            with internal_error_boundary(MessageKey.FAILED_TOKEN_VALIDATION):
                result = await adapter.refresh(request)

                username, user_id = result.username, result.user_id
                if adapter.name != ProviderName.LOCAL:
                    user = await self.resolver.lookup(
                        ExternalIdentity(
                            external_id=result.username,
                            display_name=result.name,
                            provider=adapter.name,
                            credential=result.credential,
                        )
                    )
                    if user is None:
                        raise AuthenticationError(MessageKey.ACCOUNT_NOT_PROVISIONED)
                    username, user_id = user.username, user.id

        except AuthServiceError as e:
            self._reject("refresh", adapter.name, e)
            raise

        self._transition(AuthState.SESSION_ISSUED)
        return RefreshResponse(
            message=self.describe(MessageKey.TOKEN_REFRESH, request.locale, name=result.name),
            username=username,
            id=user_id,
            authorization=bearer(result.credential),
        )

    async def _check_password(self, request: AuthRequest) -> User:
        if not request.username or not request.password:
            raise ValidationError(MessageKey.LOGIN_DETAILS_REQUIRED)

        self.rules.check_login(request.username, request.password)

        user = await self.store.find_user_by_username(request.username)
        if user is None:
            raise ValidationError(MessageKey.USERNAME_DOES_NOT_EXIST, username=request.username.lower())

        if user.provider != ProviderName.LOCAL or not user.has_local_password:
            raise AuthenticationError(MessageKey.EXTERNAL_ACCOUNT)

        if not self.vault.verify(request.password, user.salt, user.password_hash):
            raise AuthenticationError(MessageKey.INCORRECT_PASSWORD)

        return user

    def _transition(self, state: AuthState) -> None:
        self.state = state
        self.transitions.append(state)

    def _reject(self, flow: str, provider: ProviderName, error: AuthServiceError) -> None:
        self._transition(AuthState.REJECTED)
        logger.info(f"{flow} rejected for {provider.value} ({error.category}: {error.key.value})")

"""FastAPI dependencies

Adapts inbound HTTP requests to the authentication core: builds the
transport-neutral AuthRequest, wires the per-request dispatcher to a database
session, and guards protected routes.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Query
from fastapi.security import HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from displayables_auth.config.settings import Settings, get_settings
from displayables_auth.core.auth import (
    AccountRules,
    AccountService,
    AuthenticationDispatcher,
    ProviderRegistry,
    get_provider_registry,
)
from displayables_auth.core.security import CredentialVault, SessionClaims
from displayables_auth.domain.models import AuthRequest, ProviderName
from displayables_auth.infrastructure.persistence.database import get_db
from displayables_auth.infrastructure.persistence.user_store import UserStore

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(auto_error=False)


async def get_auth_request(
    provider_query: Optional[str] = Query(None, alias="provider"),
    provider_header: Optional[str] = Header(None, alias="provider"),
    authorization: Optional[str] = Header(None, alias="Authorization"),
    lang: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> AuthRequest:
    """Provider tag (query parameter first, then header), bearer value and locale"""
    return AuthRequest(
        provider=ProviderName.resolve(provider_query or provider_header),
        authorization=authorization,
        locale=lang or settings.default_locale,
    )


def get_credential_vault(settings: Settings = Depends(get_settings)) -> CredentialVault:
    return CredentialVault(
        iterations=settings.password_hash_iterations,
        key_length=settings.password_hash_length,
        salt_bytes=settings.password_salt_bytes,
    )


async def get_user_store(session: AsyncSession = Depends(get_db)) -> UserStore:
    return UserStore(session)


async def get_dispatcher(
    registry: ProviderRegistry = Depends(get_provider_registry),
    store: UserStore = Depends(get_user_store),
    vault: CredentialVault = Depends(get_credential_vault),
    settings: Settings = Depends(get_settings),
) -> AuthenticationDispatcher:
    """Per-request dispatcher bound to this request's database session"""
    return AuthenticationDispatcher(registry, store, vault, rules=AccountRules.from_settings(settings))


async def get_account_service(
    store: UserStore = Depends(get_user_store),
    vault: CredentialVault = Depends(get_credential_vault),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(store, vault, AccountRules.from_settings(settings))


async def require_session(
    auth_request: AuthRequest = Depends(get_auth_request),
    dispatcher: AuthenticationDispatcher = Depends(get_dispatcher),
) -> SessionClaims:
    """Require a valid session credential (raises AuthenticationError if not)"""
    claims = await dispatcher.verify(auth_request)
    logger.debug(f"Session verified for user {claims.id}")
    return claims

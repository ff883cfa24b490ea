"""Provider adapter registry.

Adapters are stateless apart from cached provider metadata, so one instance per
provider is built on first use and shared by every request. The dispatcher
selects from the registry by provider tag; unknown tags resolve to local.
"""

import logging
from typing import Dict, Optional

import httpx

from displayables_auth.config.settings import DEFAULT_SECRET_KEY, Settings, get_settings
from displayables_auth.core.messages import Describe, describe
from displayables_auth.core.security import SessionTokenService
from displayables_auth.domain.models import ProviderName

from .facebook import FacebookProviderAdapter
from .github import GitHubProviderAdapter
from .google import GoogleProviderAdapter
from .local import LocalProviderAdapter
from .provider import ProviderAdapter

logger = logging.getLogger(__name__)

# Global registry instance (initialized on first call)
_registry: Optional["ProviderRegistry"] = None


class ProviderRegistry:
    """Lookup table from provider tag to adapter"""

    def __init__(self, adapters: Dict[ProviderName, ProviderAdapter], tokens: SessionTokenService):
        if ProviderName.LOCAL not in adapters:
            raise ValueError("A provider registry must contain the local adapter")
        self._adapters = adapters
        self.tokens = tokens

    def get(self, tag: Optional[str]) -> ProviderAdapter:
        """Adapter for a request-supplied tag, defaulting to local."""
        return self._adapters.get(ProviderName.resolve(tag), self._adapters[ProviderName.LOCAL])

    def __getitem__(self, provider: ProviderName) -> ProviderAdapter:
        return self._adapters[provider]

    @property
    def providers(self) -> list[ProviderName]:
        return list(self._adapters)


def build_token_service(settings: Settings) -> SessionTokenService:
    """Session token service bound to the configured secret."""
    if settings.secret_key == DEFAULT_SECRET_KEY:
        logger.warning("Using the default secret key; set SECRET_KEY in production")

    return SessionTokenService(
        secret=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        expire_hours=settings.session_token_expire_hours,
    )


def build_registry(
    settings: Settings,
    tokens: Optional[SessionTokenService] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    describe_fn: Optional[Describe] = None,
) -> ProviderRegistry:
    """Build one adapter per provider from settings.

    Args:
        settings: Service settings
        tokens: Session token service (built from settings when omitted)
        transport: httpx transport shared by the external adapters
        describe_fn: Message formatter handed to every adapter

    Returns:
        ProviderRegistry covering all four providers
    """
    tokens = tokens or build_token_service(settings)
    describe_fn = describe_fn or describe
    external = {
        "timeout": settings.provider_timeout_seconds,
        "transport": transport,
        "describe_fn": describe_fn,
    }

    adapters: Dict[ProviderName, ProviderAdapter] = {
        ProviderName.LOCAL: LocalProviderAdapter(tokens, describe_fn=describe_fn),
        ProviderName.GOOGLE: GoogleProviderAdapter(
            client_id=settings.google_client_id or "",
            discovery_url=settings.google_discovery_url,
            issuers=settings.google_issuers,
            **external,
        ),
        ProviderName.FACEBOOK: FacebookProviderAdapter(
            graph_url=settings.facebook_graph_url,
            **external,
        ),
        ProviderName.GITHUB: GitHubProviderAdapter(
            api_url=settings.github_api_url,
            oauth_url=settings.github_oauth_url,
            client_id=settings.github_client_id or "",
            client_secret=settings.github_client_secret or "",
            redirect_uri=settings.github_redirect_uri,
            exchange_code_length=settings.github_exchange_code_length,
            **external,
        ),
    }

    if not settings.google_client_id:
        logger.warning("GOOGLE_CLIENT_ID is not set; google logins will be rejected")
    if not settings.github_client_id:
        logger.warning("GITHUB_CLIENT_ID is not set; github code exchange will fail")

    return ProviderRegistry(adapters, tokens)


def get_provider_registry() -> ProviderRegistry:
    """Get the shared provider registry, building it on first call."""
    global _registry

    if _registry is not None:
        return _registry

    _registry = build_registry(get_settings())
    logger.info(f"Provider registry initialized: {', '.join(p.value for p in _registry.providers)}")
    return _registry


def reset_registry() -> None:
    """Reset the global registry instance (for testing)."""
    global _registry
    _registry = None

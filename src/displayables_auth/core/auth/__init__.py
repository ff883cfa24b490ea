"""Pluggable authentication providers and the flows that use them."""

from .accounts import AccountRules, AccountService
from .dispatcher import AuthenticationDispatcher
from .external import ExternalProviderAdapter
from .facebook import FacebookProviderAdapter
from .factory import (
    ProviderRegistry,
    build_registry,
    build_token_service,
    get_provider_registry,
    reset_registry,
)
from .federation import IdentityFederationResolver
from .github import GitHubProviderAdapter
from .google import GoogleProviderAdapter
from .local import LocalProviderAdapter
from .provider import ProviderAdapter

__all__ = [
    "AccountRules",
    "AccountService",
    "AuthenticationDispatcher",
    "ExternalProviderAdapter",
    "FacebookProviderAdapter",
    "GitHubProviderAdapter",
    "GoogleProviderAdapter",
    "IdentityFederationResolver",
    "LocalProviderAdapter",
    "ProviderAdapter",
    "ProviderRegistry",
    "build_registry",
    "build_token_service",
    "get_provider_registry",
    "reset_registry",
]

"""
Pytest configuration and fixtures for Displayables Auth tests.

Provides fixtures for:
- Settings tuned for fast tests
- Database engine and session (file-based SQLite per test)
- Credential vault, token service and provider registry
- Fake external providers served through httpx.MockTransport
- Test client with dependency overrides
"""

import time
from typing import AsyncGenerator, Callable, Optional
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from jose import jwk, jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from displayables_auth.api.dependencies import get_credential_vault
from displayables_auth.config.settings import Settings, get_settings
from displayables_auth.core.auth import (
    AccountService,
    AuthenticationDispatcher,
    ProviderRegistry,
    build_registry,
    get_provider_registry,
)
from displayables_auth.core.security import CredentialVault, SessionTokenService
from displayables_auth.domain.models import User
from displayables_auth.infrastructure.persistence.database import get_db, init_db
from displayables_auth.infrastructure.persistence.user_store import UserStore
from displayables_auth.main import app

TEST_SECRET = "test-secret-key-for-displayables-sessions"
GOOGLE_CLIENT_ID = "test-client.apps.googleusercontent.com"
GOOGLE_KEY_ID = "test-key"
GOOGLE_JWKS_URI = "https://www.googleapis.com/oauth2/v3/certs"


class FakeProviders:
    """In-process stand-in for Google, Facebook and GitHub.

    Register tokens/codes on the instance, then hand ``transport`` to the
    adapters. Every request is recorded in ``requests``.
    """

    def __init__(self, google_jwk: dict):
        self.google_jwk = google_jwk
        self.facebook_profiles: dict[str, dict] = {}
        self.github_profiles: dict[str, dict] = {}
        self.github_codes: dict[str, str] = {}
        self.requests: list[httpx.Request] = []
        self.error: Optional[Exception] = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error

        url = request.url

        if url.host == "graph.facebook.com" and url.path == "/v3.2/me":
            profile = self.facebook_profiles.get(url.params.get("access_token"))
            if profile is None:
                return httpx.Response(
                    400,
                    json={"error": {"message": "Invalid OAuth access token.", "type": "OAuthException", "code": 190}},
                )
            return httpx.Response(200, json=profile)

        if url.host == "api.github.com" and url.path == "/user":
            token = request.headers.get("Authorization", "").removeprefix("Bearer ")
            profile = self.github_profiles.get(token)
            if profile is None:
                return httpx.Response(
                    401,
                    json={"message": "Bad credentials", "documentation_url": "https://docs.github.com/rest"},
                )
            return httpx.Response(200, json=profile)

        if url.host == "github.com" and url.path == "/login/oauth/access_token":
            form = parse_qs(request.content.decode())
            token = self.github_codes.get(form.get("code", [""])[0])
            if token is None:
                return httpx.Response(
                    200,
                    json={"error": "bad_verification_code", "error_description": "The code passed is incorrect or expired."},
                )
            return httpx.Response(200, json={"access_token": token, "token_type": "bearer", "scope": ""})

        if url.host == "accounts.google.com" and url.path == "/.well-known/openid-configuration":
            return httpx.Response(200, json={"issuer": "https://accounts.google.com", "jwks_uri": GOOGLE_JWKS_URI})

        if url.host == "www.googleapis.com" and url.path == "/oauth2/v3/certs":
            return httpx.Response(200, json={"keys": [self.google_jwk]})

        return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture(scope="session")
def google_private_key():
    """RSA key standing in for Google's ID token signing key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def google_jwk(google_private_key) -> dict:
    public_pem = google_private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    key = jwk.construct(public_pem.decode(), "RS256").to_dict()
    key.update({"kid": GOOGLE_KEY_ID, "use": "sig"})
    return key


@pytest.fixture
def make_google_token(google_private_key) -> Callable[..., str]:
    """Factory for Google-style ID tokens signed with the test key."""
    private_pem = google_private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()

    def _make(sub: str = "ext-42", name: Optional[str] = "Bob", **overrides) -> str:
        now = int(time.time())
        claims = {
            "iss": "https://accounts.google.com",
            "aud": GOOGLE_CLIENT_ID,
            "sub": sub,
            "iat": now,
            "exp": now + 3600,
        }
        if name is not None:
            claims["name"] = name
        claims.update(overrides)
        return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": GOOGLE_KEY_ID})

    return _make


@pytest.fixture
def fake_providers(google_jwk) -> FakeProviders:
    return FakeProviders(google_jwk)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings for tests: low hash cost, fixed secret, temp database."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test_db.sqlite'}",
        secret_key=TEST_SECRET,
        password_hash_iterations=1000,
        google_client_id=GOOGLE_CLIENT_ID,
        github_client_id="github-client-id",
        github_client_secret="github-client-secret",
    )


@pytest.fixture
def vault(settings: Settings) -> CredentialVault:
    return CredentialVault(iterations=settings.password_hash_iterations)


@pytest.fixture
def tokens() -> SessionTokenService:
    return SessionTokenService(TEST_SECRET)


@pytest.fixture
def registry(settings: Settings, tokens: SessionTokenService, fake_providers: FakeProviders) -> ProviderRegistry:
    return build_registry(settings, tokens=tokens, transport=fake_providers.transport)


@pytest_asyncio.fixture
async def test_engine(settings: Settings):
    """Create test database engine with schema and seeded providers."""
    engine = create_async_engine(settings.database_url, poolclass=NullPool, echo=False)

    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def store(test_db: AsyncSession) -> UserStore:
    return UserStore(test_db)


@pytest_asyncio.fixture
async def dispatcher(registry: ProviderRegistry, store: UserStore, vault: CredentialVault) -> AuthenticationDispatcher:
    return AuthenticationDispatcher(registry, store, vault)


@pytest_asyncio.fixture
async def alice(store: UserStore, vault: CredentialVault) -> User:
    """Local user alice / Secret123."""
    return await AccountService(store, vault).register("alice", "Secret123", "Alice")


@pytest_asyncio.fixture
async def client(
    settings: Settings,
    session_factory,
    registry: ProviderRegistry,
    vault: CredentialVault,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with settings, database and provider overrides."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_provider_registry] = lambda: registry
    app.dependency_overrides[get_credential_vault] = lambda: vault

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

"""
Integration tests for registration and protected user endpoints.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from displayables_auth.core.security import SessionTokenService


async def register_and_login(client: AsyncClient, username="alice", password="Secret123") -> str:
    await client.post("/api/v1/register", json={"username": username, "password": password, "name": "Alice"})
    response = await client.post("/api/v1/login", json={"username": username, "password": password})
    return response.headers["Authorization"]


@pytest.mark.integration
class TestRegister:
    """Test POST /api/v1/register."""

    @pytest.mark.asyncio
    async def test_register(self, client: AsyncClient):
        response = await client.post("/api/v1/register", json={"username": "Alice", "password": "Secret123"})

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "alice"
        assert data["message"] == "User alice created."
        assert isinstance(data["id"], int)

    @pytest.mark.asyncio
    async def test_register_is_always_local(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/register",
            params={"provider": "github"},
            json={"username": "alice", "password": "Secret123"},
        )
        login = await client.post("/api/v1/login", json={"username": "alice", "password": "Secret123"})

        assert response.status_code == 201
        assert login.json()["provider"] == "local"

    @pytest.mark.asyncio
    async def test_duplicate(self, client: AsyncClient):
        await client.post("/api/v1/register", json={"username": "alice", "password": "Secret123"})

        response = await client.post("/api/v1/register", json={"username": "alice", "password": "Secret123"})

        assert response.status_code == 400
        assert response.json()["description"] == "The username alice already exists."

    @pytest.mark.asyncio
    async def test_restricted(self, client: AsyncClient):
        response = await client.post("/api/v1/register", json={"username": "siteadmin", "password": "Secret123"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation"

    @pytest.mark.asyncio
    async def test_short_password(self, client: AsyncClient):
        response = await client.post("/api/v1/register", json={"username": "alice", "password": "123"})

        assert response.status_code == 400
        assert response.json()["description"] == "Passwords must be between 6 and 64 characters long."


@pytest.mark.integration
class TestSelf:
    """Test GET /api/v1/users/self."""

    @pytest.mark.asyncio
    async def test_self_with_session(self, client: AsyncClient):
        authorization = await register_and_login(client)

        response = await client.get("/api/v1/users/self", headers={"Authorization": authorization})

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["name"] == "Alice"
        assert data["provider"] == "local"

    @pytest.mark.asyncio
    async def test_self_without_session(self, client: AsyncClient):
        response = await client.get("/api/v1/users/self")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_expired_session(self, client: AsyncClient, tokens):
        """A token verified after its 3-hour window is an expiry failure."""
        user_id = (
            await client.post("/api/v1/register", json={"username": "alice", "password": "Secret123"})
        ).json()["id"]
        issued = datetime.now(timezone.utc) - timedelta(hours=3, minutes=1)
        token = SessionTokenService(tokens.secret, clock=lambda: issued).issue("alice", "alice", user_id)

        response = await client.get("/api/v1/users/self", headers={"Authorization": f"bearer {token}"})

        assert response.status_code == 401
        assert response.json() == {
            "error": "authentication",
            "description": "Your session has expired, please log in again.",
        }

    @pytest.mark.asyncio
    async def test_forged_session(self, client: AsyncClient):
        forged = SessionTokenService("not-the-service-secret-at-all-0000").issue("alice", "Alice", 1)

        response = await client.get("/api/v1/users/self", headers={"Authorization": f"bearer {forged}"})

        assert response.status_code == 401
        assert response.json()["description"] == "The authentication token signature is invalid or missing."

    @pytest.mark.asyncio
    async def test_external_session(self, client: AsyncClient, fake_providers):
        fake_providers.facebook_profiles["fb-token"] = {"id": "ext-42", "name": "Bob"}
        headers = {"Authorization": "bearer fb-token", "provider": "facebook"}
        await client.post("/api/v1/login", headers=headers)

        response = await client.get("/api/v1/users/self", headers=headers)

        assert response.status_code == 200
        assert response.json()["username"] == "ext-42"
        assert response.json()["provider"] == "facebook"


@pytest.mark.integration
class TestPasswordUpdate:
    """Test PATCH /api/v1/users/self/password."""

    @pytest.mark.asyncio
    async def test_update_password(self, client: AsyncClient):
        authorization = await register_and_login(client)

        response = await client.patch(
            "/api/v1/users/self/password",
            headers={"Authorization": authorization},
            json={"oldPassword": "Secret123", "password": "Secret456"},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Password updated."}

        old = await client.post("/api/v1/login", json={"username": "alice", "password": "Secret123"})
        new = await client.post("/api/v1/login", json={"username": "alice", "password": "Secret456"})
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_old_password(self, client: AsyncClient):
        authorization = await register_and_login(client)

        response = await client.patch(
            "/api/v1/users/self/password",
            headers={"Authorization": authorization},
            json={"oldPassword": "WrongPass", "password": "Secret456"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_requires_session(self, client: AsyncClient):
        response = await client.patch(
            "/api/v1/users/self/password",
            json={"oldPassword": "Secret123", "password": "Secret456"},
        )

        assert response.status_code == 401


@pytest.mark.integration
class TestServiceEndpoints:
    """Test health and root endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.json()["service"] == "displayables-auth"

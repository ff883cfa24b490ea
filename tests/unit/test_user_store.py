"""Unit tests for UserStore

Runs against a file-backed SQLite database per test.
"""

import pytest

from displayables_auth.core.errors import DuplicateUsernameError
from displayables_auth.domain.models import ProviderName
from displayables_auth.infrastructure.persistence.database import init_db, seed_providers


@pytest.mark.unit
class TestProviders:
    """Test provider reference data"""

    @pytest.mark.asyncio
    async def test_all_providers_seeded(self, store):
        ids = [await store.get_provider_id_by_name(p.value) for p in ProviderName]

        assert len(set(ids)) == 4

    @pytest.mark.asyncio
    async def test_seeding_is_idempotent(self, test_engine, store, test_db):
        before = await store.get_provider_id_by_name("github")

        await init_db(test_engine)
        await seed_providers(test_db)

        assert await store.get_provider_id_by_name("github") == before

    @pytest.mark.asyncio
    async def test_unknown_provider(self, store):
        with pytest.raises(LookupError):
            await store.get_provider_id_by_name("twitter")


@pytest.mark.unit
class TestUsers:
    """Test user reads and writes"""

    @pytest.mark.asyncio
    async def test_create_and_find_local_user(self, store):
        provider_id = await store.get_provider_id_by_name("local")

        user_id = await store.create_user("Alice", "Alice", "hash", "salt", provider_id)
        user = await store.find_user_by_username("ALICE")

        assert user.id == user_id
        assert user.username == "alice"
        assert user.provider == ProviderName.LOCAL
        assert user.has_local_password is True

    @pytest.mark.asyncio
    async def test_create_external_user(self, store):
        provider_id = await store.get_provider_id_by_name("facebook")

        user_id = await store.create_external_user("ext-42", "Bob", provider_id)
        user = await store.get_user_by_id(user_id)

        assert user.username == "ext-42"
        assert user.name == "Bob"
        assert user.provider == ProviderName.FACEBOOK
        assert user.password_hash == ""
        assert user.salt == ""

    @pytest.mark.asyncio
    async def test_duplicate_username(self, store):
        provider_id = await store.get_provider_id_by_name("github")
        await store.create_external_user("ext-42", "Bob", provider_id)

        with pytest.raises(DuplicateUsernameError) as exc_info:
            await store.create_external_user("EXT-42", "Bob", provider_id)

        assert exc_info.value.username == "ext-42"
        # Session is still usable after the rollback
        assert (await store.find_user_by_username("ext-42")).name == "Bob"

    @pytest.mark.asyncio
    async def test_missing_users(self, store):
        assert await store.find_user_by_username("nobody") is None
        assert await store.find_user_by_username("") is None
        assert await store.get_user_by_id(9999) is None

    @pytest.mark.asyncio
    async def test_update_password(self, store):
        provider_id = await store.get_provider_id_by_name("local")
        user_id = await store.create_user("alice", "Alice", "old-hash", "old-salt", provider_id)

        await store.update_user_password(user_id, "new-hash", "new-salt")
        user = await store.get_user_by_id(user_id)

        assert user.password_hash == "new-hash"
        assert user.salt == "new-salt"

    @pytest.mark.asyncio
    async def test_update_password_missing_user(self, store):
        with pytest.raises(LookupError):
            await store.update_user_password(9999, "hash", "salt")

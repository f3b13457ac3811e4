"""MongoCredentialStore tests; require a MongoDB server at MONGO_URL_TEST."""

import pytest

from simulcast.services.store.credential_store import (
    DESTINATIONS_COLLECTION,
    SECRETS_COLLECTION,
    USERS_COLLECTION,
    MongoCredentialStore,
)


@pytest.fixture
def mongo_store(mongo_db) -> MongoCredentialStore:
    return MongoCredentialStore(mongo_db)


class TestSecrets:
    async def test_set_secret_merges_fields(self, mongo_store, mongo_db):
        await mongo_store.set_secret("u1", "youtube", {"access_token": "a", "refresh_token": "r"})
        await mongo_store.set_secret("u1", "youtube", {"access_token": "a2"})

        record = await mongo_store.get_secret("u1", "youtube")

        assert record["_id"] == "u1_youtube"
        assert record["access_token"] == "a2"
        assert record["refresh_token"] == "r"
        assert await mongo_db[SECRETS_COLLECTION].count_documents({}) == 1

    async def test_delete_is_idempotent(self, mongo_store):
        await mongo_store.set_secret("u1", "twitch", {"access_token": "a"})

        await mongo_store.delete_secret("u1", "twitch")
        await mongo_store.delete_secret("u1", "twitch")

        assert await mongo_store.get_secret("u1", "twitch") is None


class TestDestinations:
    async def test_list_is_scoped_to_user(self, mongo_store):
        await mongo_store.set_destination("u1", "youtube", {"channel": {"id": "UC1"}, "tokens": "blob"})
        await mongo_store.set_destination("u1", "twitch", {"channel": {"id": "tw"}, "tokens": "blob"})
        await mongo_store.set_destination("u2", "twitch", {"channel": {"id": "other"}, "tokens": "blob"})

        destinations = await mongo_store.list_destinations("u1")

        assert set(destinations) == {"youtube", "twitch"}
        assert destinations["youtube"]["_id"] == "u1:youtube"

    async def test_set_destination_replaces_document(self, mongo_store):
        await mongo_store.set_destination("u1", "twitch", {"channel": {"streamKey": "k1"}, "extra": True})
        await mongo_store.set_destination("u1", "twitch", {"channel": {"streamKey": "k2"}})

        doc = await mongo_store.get_destination("u1", "twitch")

        assert doc["channel"] == {"streamKey": "k2"}
        assert "extra" not in doc
        assert doc["updated_at"].tzinfo is not None

    async def test_delete_destination(self, mongo_store, mongo_db):
        await mongo_store.set_destination("u1", "youtube", {"channel": {}})

        await mongo_store.delete_destination("u1", "youtube")

        assert await mongo_db[DESTINATIONS_COLLECTION].count_documents({}) == 0


class TestChannelConnections:
    async def test_set_and_unset(self, mongo_store, mongo_db):
        await mongo_store.set_channel_connection("u1", "youtube", {"channel_id": "UC1", "title": "T"})
        await mongo_store.set_channel_connection("u1", "twitch", {"channel_id": "tw", "title": "T2"})

        await mongo_store.unset_channel_connection("u1", "youtube")

        user = await mongo_db[USERS_COLLECTION].find_one({"_id": "u1"})
        assert set(user["channel_connections"]) == {"twitch"}

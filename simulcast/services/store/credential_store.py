"""Document-store access for platform credentials and destination snapshots.

Layout:
- `channel_secrets`  `_id = "{uid}_{platform}"`  raw OAuth grant (access/refresh token, scope, expiry)
- `destinations`     `_id = "{uid}:{platform}"`  channel snapshot + encrypted token blob
- `users`            `_id = uid`                 `channel_connections.{platform}` public metadata
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase

from simulcast.shared.storage.mongo import mongo_manager

SECRETS_COLLECTION = "channel_secrets"
DESTINATIONS_COLLECTION = "destinations"
USERS_COLLECTION = "users"


def secret_doc_id(uid: str, platform: str) -> str:
    return f"{uid}_{platform}"


def destination_doc_id(uid: str, platform: str) -> str:
    return f"{uid}:{platform}"


class CredentialStore(ABC):
    """Read/merge-write access to per-user platform records.

    Deletes are idempotent: removing an absent record is not an error.
    """

    @abstractmethod
    async def get_secret(self, uid: str, platform: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def set_secret(self, uid: str, platform: str, data: dict[str, Any]) -> None:
        """Merge `data` into the secret record, creating it when missing."""

    @abstractmethod
    async def delete_secret(self, uid: str, platform: str) -> None: ...

    @abstractmethod
    async def list_destinations(self, uid: str) -> dict[str, dict[str, Any]]:
        """All destination snapshots of a user, keyed by platform id."""

    @abstractmethod
    async def set_destination(self, uid: str, platform: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    async def delete_destination(self, uid: str, platform: str) -> None: ...

    @abstractmethod
    async def set_channel_connection(self, uid: str, platform: str, metadata: dict[str, Any]) -> None: ...

    @abstractmethod
    async def unset_channel_connection(self, uid: str, platform: str) -> None: ...

    async def get_destination(self, uid: str, platform: str) -> dict[str, Any] | None:
        return (await self.list_destinations(uid)).get(platform)


class MongoCredentialStore(CredentialStore):
    def __init__(self, db: AsyncIOMotorDatabase | None = None):
        self._db = db

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if self._db is None:
            self._db = mongo_manager.get_database()
        return self._db

    async def get_secret(self, uid: str, platform: str) -> dict[str, Any] | None:
        return await self.db[SECRETS_COLLECTION].find_one({"_id": secret_doc_id(uid, platform)})

    async def set_secret(self, uid: str, platform: str, data: dict[str, Any]) -> None:
        await self.db[SECRETS_COLLECTION].update_one(
            {"_id": secret_doc_id(uid, platform)},
            {
                "$set": {**data, "uid": uid, "platform": platform, "updated_at": _now()},
            },
            upsert=True,
        )

    async def delete_secret(self, uid: str, platform: str) -> None:
        result = await self.db[SECRETS_COLLECTION].delete_one({"_id": secret_doc_id(uid, platform)})
        if not result.deleted_count:
            logger.debug(f"No {platform} secret record to delete for user {uid}")

    async def list_destinations(self, uid: str) -> dict[str, dict[str, Any]]:
        results: dict[str, dict[str, Any]] = {}
        async for doc in self.db[DESTINATIONS_COLLECTION].find({"uid": uid}):
            results[doc["platform"]] = doc
        return results

    async def get_destination(self, uid: str, platform: str) -> dict[str, Any] | None:
        return await self.db[DESTINATIONS_COLLECTION].find_one(
            {"_id": destination_doc_id(uid, platform)}
        )

    async def set_destination(self, uid: str, platform: str, data: dict[str, Any]) -> None:
        await self.db[DESTINATIONS_COLLECTION].replace_one(
            {"_id": destination_doc_id(uid, platform)},
            {**data, "uid": uid, "platform": platform, "updated_at": _now()},
            upsert=True,
        )

    async def delete_destination(self, uid: str, platform: str) -> None:
        await self.db[DESTINATIONS_COLLECTION].delete_one({"_id": destination_doc_id(uid, platform)})

    async def set_channel_connection(self, uid: str, platform: str, metadata: dict[str, Any]) -> None:
        await self.db[USERS_COLLECTION].update_one(
            {"_id": uid},
            {"$set": {f"channel_connections.{platform}": {**metadata, "updated_at": _now()}}},
            upsert=True,
        )

    async def unset_channel_connection(self, uid: str, platform: str) -> None:
        await self.db[USERS_COLLECTION].update_one(
            {"_id": uid},
            {"$unset": {f"channel_connections.{platform}": ""}},
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)


credential_store: CredentialStore = MongoCredentialStore()


def get_credential_store() -> CredentialStore:
    return credential_store

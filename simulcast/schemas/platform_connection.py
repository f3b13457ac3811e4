"""Stored platform connection (OAuth grant + platform metadata)."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class PlatformId(str, Enum):
    YOUTUBE = "youtube"
    TWITCH = "twitch"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def oauth_providers(cls) -> list["PlatformId"]:
        return [cls.YOUTUBE, cls.TWITCH]


class PlatformConnection(BaseModel):
    """Decrypted credentials for one user on one platform.

    Read-only to the broadcast core; only the OAuth flow writes these records.
    """

    platform_id: str
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scope: str | None = None
    platform_metadata: dict[str, Any] = Field(default_factory=dict)

    def has_usable_access_token(self, skew_seconds: int = 60) -> bool:
        if not self.access_token:
            return False
        if self.expires_at is None:
            return True
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at.timestamp() - skew_seconds > datetime.now(timezone.utc).timestamp()

"""Resolve stored, decrypted platform credentials for a user."""

from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger

from simulcast.schemas import PlatformConnection
from simulcast.services.integrations.google_oauth import GoogleOAuthClient, get_google_oauth_client
from simulcast.services.store.credential_store import CredentialStore, get_credential_store
from simulcast.utils.app_errors import MissingTokenError, NotConnectedError

from .token_cipher import TokenCipher, get_token_cipher


def _parse_expiry(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        # Epoch milliseconds, as stored in encrypted token blobs.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


class CredentialResolver:
    """Read-only view over stored platform connections.

    Two sources back a connection:
    - the secret record, which holds the OAuth grant and is required by `resolve`
    - the destination snapshot, which holds the channel metadata and an encrypted
      token blob and is what `load_connections` reads for go-live
    """

    def __init__(
        self,
        store: CredentialStore | None = None,
        cipher: TokenCipher | None = None,
        oauth_client: GoogleOAuthClient | None = None,
    ):
        self._store = store
        self._cipher = cipher
        self._oauth_client = oauth_client

    @property
    def store(self) -> CredentialStore:
        return self._store or get_credential_store()

    @property
    def cipher(self) -> TokenCipher:
        return self._cipher or get_token_cipher()

    @property
    def oauth_client(self) -> GoogleOAuthClient:
        return self._oauth_client or get_google_oauth_client()

    async def resolve(self, uid: str, platform: str) -> PlatformConnection:
        """Return the user's connection for `platform`.

        Raises:
            NotConnectedError: no secret record exists (404)
            MissingTokenError: the record has no refresh token (400, reconnect)
        """
        record = await self.store.get_secret(uid, platform)
        if not record:
            raise NotConnectedError(platform)

        refresh_token = record.get("refresh_token")
        if not refresh_token:
            raise MissingTokenError(platform)

        destination = await self.store.get_destination(uid, platform) or {}
        return PlatformConnection(
            platform_id=platform,
            access_token=record.get("access_token"),
            refresh_token=refresh_token,
            expires_at=_parse_expiry(record.get("expires_at")),
            scope=record.get("scope"),
            platform_metadata=dict(destination.get("channel") or {}),
        )

    def connection_from_destination(self, platform: str, doc: dict[str, Any]) -> PlatformConnection:
        """Build a connection from a destination snapshot.

        An unreadable token blob yields a connection without tokens; handlers
        that need tokens must check for them.
        """
        tokens = self.cipher.decrypt(doc.get("tokens"))
        if tokens is None:
            if doc.get("tokens"):
                logger.warning(f"Stored {platform} tokens could not be decrypted")
            tokens = {}

        metadata = dict(doc.get("channel") or {})
        if not metadata.get("streamKey") and tokens.get("streamKey"):
            metadata["streamKey"] = tokens["streamKey"]

        return PlatformConnection(
            platform_id=platform,
            access_token=tokens.get("accessToken"),
            refresh_token=tokens.get("refreshToken"),
            expires_at=_parse_expiry(tokens.get("expiry")),
            scope=tokens.get("scope"),
            platform_metadata=metadata,
        )

    async def load_connections(
        self, uid: str, platform_ids: list[str] | None = None
    ) -> dict[str, PlatformConnection]:
        """All stored connections, filtered to `platform_ids` (empty means all)."""
        destinations = await self.store.list_destinations(uid)
        wanted = set(platform_ids or [])
        return {
            platform: self.connection_from_destination(platform, doc)
            for platform, doc in destinations.items()
            if not wanted or platform in wanted
        }

    async def ensure_access_token(self, connection: PlatformConnection) -> str:
        """Return a usable access token, refreshing it in memory when expired."""
        if connection.has_usable_access_token():
            return connection.access_token

        if not connection.refresh_token:
            raise MissingTokenError(connection.platform_id)

        logger.info(f"🔄 Refreshing {connection.platform_id} access token")
        tokens = await self.oauth_client.refresh_access_token(connection.refresh_token)
        connection.access_token = tokens.get("access_token")
        expires_in = tokens.get("expires_in")
        connection.expires_at = (
            datetime.now(timezone.utc) + timedelta(seconds=int(expires_in)) if expires_in else None
        )
        if not connection.access_token:
            raise MissingTokenError(connection.platform_id)
        return connection.access_token


credential_resolver = CredentialResolver()


def get_credential_resolver() -> CredentialResolver:
    return credential_resolver

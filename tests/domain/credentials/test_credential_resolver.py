"""Tests for CredentialResolver."""

from datetime import datetime, timedelta, timezone

import pytest

from simulcast.schemas import PlatformConnection
from simulcast.utils.app_errors import MissingTokenError, NotConnectedError
from tests.fixtures.store_fixtures import twitch_destination, youtube_destination


class TestResolve:
    async def test_missing_record_raises_not_connected(self, resolver):
        with pytest.raises(NotConnectedError) as exc_info:
            await resolver.resolve("user-1", "youtube")
        assert exc_info.value.status_code == 404

    async def test_record_without_refresh_token_raises_missing_token(self, resolver, store):
        await store.set_secret("user-1", "youtube", {"access_token": "a", "refresh_token": None})

        with pytest.raises(MissingTokenError) as exc_info:
            await resolver.resolve("user-1", "youtube")
        assert exc_info.value.status_code == 400

    async def test_returns_connection_with_channel_metadata(self, resolver, store, cipher):
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=30)
        await store.set_secret(
            "user-1",
            "youtube",
            {"access_token": "a", "refresh_token": "r", "scope": "s", "expires_at": expires_at},
        )
        await store.set_destination("user-1", "youtube", youtube_destination(cipher))

        connection = await resolver.resolve("user-1", "youtube")

        assert connection.access_token == "a"
        assert connection.refresh_token == "r"
        assert connection.expires_at == expires_at
        assert connection.platform_metadata["id"] == "UC123"


class TestLoadConnections:
    async def test_filters_by_requested_platforms(self, resolver, store, cipher):
        await store.set_destination("user-1", "youtube", youtube_destination(cipher))
        await store.set_destination("user-1", "twitch", twitch_destination(cipher))

        connections = await resolver.load_connections("user-1", ["twitch"])

        assert list(connections) == ["twitch"]
        assert connections["twitch"].platform_metadata["streamKey"] == "abc123"

    async def test_empty_filter_means_all(self, resolver, store, cipher):
        await store.set_destination("user-1", "youtube", youtube_destination(cipher))
        await store.set_destination("user-1", "twitch", twitch_destination(cipher))

        connections = await resolver.load_connections("user-1", [])

        assert set(connections) == {"youtube", "twitch"}

    async def test_undecryptable_tokens_yield_tokenless_connection(self, resolver, store):
        await store.set_destination(
            "user-1", "youtube", {"channel": {"id": "UC1"}, "tokens": "corrupted-blob"}
        )

        connection = (await resolver.load_connections("user-1"))["youtube"]

        assert connection.access_token is None
        assert connection.refresh_token is None
        assert connection.platform_metadata == {"id": "UC1"}

    async def test_stream_key_falls_back_to_encrypted_tokens(self, resolver, store, cipher):
        await store.set_destination(
            "user-1",
            "twitch",
            {"channel": {"id": "tw"}, "tokens": cipher.encrypt({"streamKey": "from-tokens"})},
        )

        connection = (await resolver.load_connections("user-1"))["twitch"]

        assert connection.platform_metadata["streamKey"] == "from-tokens"


class TestEnsureAccessToken:
    async def test_unexpired_token_is_used_as_is(self, resolver, oauth_client):
        connection = PlatformConnection(
            platform_id="youtube",
            access_token="still-good",
            refresh_token="r",
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )

        assert await resolver.ensure_access_token(connection) == "still-good"
        oauth_client.refresh_access_token.assert_not_called()

    async def test_expired_token_is_refreshed_in_memory(self, resolver, oauth_client, store):
        connection = PlatformConnection(
            platform_id="youtube",
            access_token="stale",
            refresh_token="r",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )

        assert await resolver.ensure_access_token(connection) == "refreshed-token"
        oauth_client.refresh_access_token.assert_awaited_once_with("r")
        assert connection.access_token == "refreshed-token"
        assert store.secrets == {}

    async def test_no_tokens_raises_missing_token(self, resolver):
        connection = PlatformConnection(platform_id="youtube")

        with pytest.raises(MissingTokenError):
            await resolver.ensure_access_token(connection)

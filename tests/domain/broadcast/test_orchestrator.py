"""Tests for go-live orchestration across platforms."""

from simulcast.domain.broadcast.broadcast_domain import BroadcastService
from simulcast.domain.broadcast.ingest_handlers import (
    Fail,
    Ready,
    Skip,
    TwitchIngestHandler,
    run_handler,
)
from simulcast.domain.broadcast.orchestrator import BroadcastOrchestrator
from simulcast.schemas import BroadcastSession, ManualTarget, PlatformConnection
from simulcast.services.integrations.youtube_client import YouTubeApiError
from tests.fixtures.store_fixtures import twitch_destination, youtube_destination


def make_service(resolver, youtube) -> BroadcastService:
    return BroadcastService(resolver=resolver, youtube_client_factory=lambda token: youtube)


class TestGoLive:
    async def test_twitch_only_yields_single_target(self, resolver, store, cipher, youtube):
        await store.set_destination("user-1", "twitch", twitch_destination(cipher, stream_key="abc123"))

        result = await make_service(resolver, youtube).go_live("user-1", "Show", [], [])

        assert [t.url for t in result.ingest_targets] == ["rtmp://live.twitch.tv/app/abc123"]
        assert result.ingest_targets[0].platform == "twitch"
        assert result.skipped == []
        assert youtube.calls == []

    async def test_requested_but_unconnected_platform_is_excluded(self, resolver, store, cipher, youtube):
        await store.set_destination("user-1", "twitch", twitch_destination(cipher, stream_key="abc123"))

        result = await make_service(resolver, youtube).go_live("user-1", "Show", ["youtube", "twitch"], [])

        assert [t.url for t in result.ingest_targets] == ["rtmp://live.twitch.tv/app/abc123"]
        assert result.skipped == []
        assert youtube.calls == []

    async def test_youtube_and_twitch_with_manual_target(self, resolver, store, cipher, youtube):
        await store.set_destination("user-1", "youtube", youtube_destination(cipher))
        await store.set_destination("user-1", "twitch", twitch_destination(cipher))
        manual = ManualTarget(url="rtmp://custom.example.com/live", stream_key="custom-key")

        result = await make_service(resolver, youtube).go_live("user-1", "Show", [], [manual])

        assert [s.platform for s in result.sessions] == ["youtube", "twitch", "custom"]
        youtube_target, twitch_target, custom_target = result.ingest_targets
        assert youtube_target.url == "rtmp://a.rtmp.youtube.com/live2/yt-key-1"
        assert youtube_target.broadcast_id == "broadcast-2"
        assert twitch_target.url == "rtmp://live.twitch.tv/app/abc123"
        assert custom_target.url == "rtmp://custom.example.com/live"
        assert custom_target.stream_key == "custom-key"

    async def test_destination_filter_limits_platforms(self, resolver, store, cipher, youtube):
        await store.set_destination("user-1", "youtube", youtube_destination(cipher))
        await store.set_destination("user-1", "twitch", twitch_destination(cipher))

        result = await make_service(resolver, youtube).go_live("user-1", "Show", ["twitch"], [])

        assert [s.platform for s in result.sessions] == ["twitch"]
        assert youtube.calls == []

    async def test_failing_platform_is_skipped_without_aborting_others(self, resolver, store, cipher, youtube):
        await store.set_destination("user-1", "youtube", youtube_destination(cipher))
        await store.set_destination("user-1", "twitch", twitch_destination(cipher))
        youtube.fail("insert_stream", YouTubeApiError("Live streaming is not enabled.", status_code=403))

        result = await make_service(resolver, youtube).go_live("user-1", "Show", [], [])

        assert [t.platform for t in result.ingest_targets] == ["twitch"]
        assert len(result.skipped) == 1
        assert result.skipped[0].platform == "youtube"
        assert "not enabled" in result.skipped[0].reason

    async def test_twitch_without_stream_key_is_skipped(self, resolver, store, cipher, youtube):
        await store.set_destination("user-1", "twitch", twitch_destination(cipher, stream_key=None))

        result = await make_service(resolver, youtube).go_live("user-1", "Show", [], [])

        assert result.ingest_targets == []
        assert result.skipped[0].platform == "twitch"

    async def test_youtube_without_tokens_is_skipped(self, resolver, store, youtube):
        await store.set_destination("user-1", "youtube", {"channel": {"id": "UC1"}, "tokens": None})

        result = await make_service(resolver, youtube).go_live("user-1", "Show", [], [])

        assert result.sessions == []
        assert result.skipped[0].reason == "no stored YouTube tokens"
        assert youtube.calls == []

    async def test_no_connections_and_no_manual_targets(self, resolver, youtube):
        result = await make_service(resolver, youtube).go_live("user-1", "Show", [], [])

        assert result.sessions == []
        assert result.ingest_targets == []


class TestIngestHandlers:
    async def test_twitch_handler_strips_trailing_slash(self):
        handler = TwitchIngestHandler(ingest_url="rtmp://ingest.example.com/app/")
        connection = PlatformConnection(platform_id="twitch", platform_metadata={"streamKey": "k"})

        outcome = await handler.resolve_ingest(connection, "Show")

        assert isinstance(outcome, Ready)
        assert outcome.session.ingest_url == "rtmp://ingest.example.com/app/k"

    async def test_twitch_handler_skips_without_key(self):
        outcome = await TwitchIngestHandler().resolve_ingest(PlatformConnection(platform_id="twitch"), "Show")
        assert isinstance(outcome, Skip)

    async def test_run_handler_converts_errors(self):
        class Exploding(TwitchIngestHandler):
            async def resolve_ingest(self, connection, title):
                raise RuntimeError("kaboom")

        outcome = await run_handler(Exploding(), PlatformConnection(platform_id="twitch"), "Show")

        assert isinstance(outcome, Fail)
        assert outcome.reason == "kaboom"


class TestBuildIngestTargets:
    def test_sessions_without_address_are_dropped(self):
        sessions = [
            BroadcastSession(platform="youtube", remote_broadcast_id="b-1"),
            BroadcastSession(platform="twitch", ingestion_address="rtmp://x/app", stream_name="k"),
        ]

        targets = BroadcastOrchestrator.build_ingest_targets(sessions)

        assert [t.url for t in targets] == ["rtmp://x/app/k"]

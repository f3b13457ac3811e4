"""Per-platform ingest resolution.

Each handler turns a stored connection into a broadcast session and reports
one of three outcomes; the orchestrator keeps `Ready` sessions and drops the rest.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Union

from loguru import logger

from simulcast.app_config import get_app_environ_config
from simulcast.domain.credentials.credential_resolver import CredentialResolver
from simulcast.schemas import BroadcastSession, ManualTarget, PlatformConnection, PlatformId
from simulcast.services.integrations.youtube_client import YouTubeClient

from .lifecycle import YouTubeBroadcastLifecycle


@dataclass(frozen=True)
class Ready:
    session: BroadcastSession


@dataclass(frozen=True)
class Skip:
    platform: str
    reason: str


@dataclass(frozen=True)
class Fail:
    platform: str
    error: Exception

    @property
    def reason(self) -> str:
        return getattr(self.error, "errmesg", None) or str(self.error) or type(self.error).__name__


IngestOutcome = Union[Ready, Skip, Fail]


class IngestHandler(ABC):
    platform: str

    @abstractmethod
    async def resolve_ingest(self, connection: PlatformConnection, title: str) -> IngestOutcome: ...


class YouTubeIngestHandler(IngestHandler):
    platform = PlatformId.YOUTUBE.value

    def __init__(
        self,
        resolver: CredentialResolver,
        client_factory: Callable[[str], YouTubeClient] = YouTubeClient,
    ):
        self.resolver = resolver
        self.client_factory = client_factory

    async def resolve_ingest(self, connection: PlatformConnection, title: str) -> IngestOutcome:
        if not connection.access_token and not connection.refresh_token:
            return Skip(self.platform, "no stored YouTube tokens")

        access_token = await self.resolver.ensure_access_token(connection)
        lifecycle = YouTubeBroadcastLifecycle(self.client_factory(access_token))
        result = await lifecycle.start_broadcast(title)
        return Ready(
            BroadcastSession(
                platform=self.platform,
                remote_stream_id=result.stream_id,
                remote_broadcast_id=result.broadcast_id,
                ingestion_address=result.ingestion_address,
                stream_name=result.stream_name,
                lifecycle_status=result.lifecycle_status,
            )
        )


class TwitchIngestHandler(IngestHandler):
    """Twitch needs no API call; the stream key was stored at connect time."""

    platform = PlatformId.TWITCH.value

    def __init__(self, ingest_url: str | None = None):
        self.ingest_url = ingest_url

    async def resolve_ingest(self, connection: PlatformConnection, title: str) -> IngestOutcome:
        stream_key = connection.platform_metadata.get("streamKey")
        if not stream_key:
            return Skip(self.platform, "no stored Twitch stream key")
        ingest_url = self.ingest_url or get_app_environ_config().TWITCH_INGEST_URL
        return Ready(
            BroadcastSession(
                platform=self.platform,
                ingestion_address=ingest_url.rstrip("/"),
                stream_name=stream_key,
            )
        )


class CustomIngestHandler:
    platform = PlatformId.CUSTOM.value

    def session_for(self, target: ManualTarget) -> BroadcastSession:
        return BroadcastSession(platform=self.platform, target=target)


async def run_handler(handler: IngestHandler, connection: PlatformConnection, title: str) -> IngestOutcome:
    """Run a handler, turning any raised error into a `Fail` outcome."""
    try:
        return await handler.resolve_ingest(connection, title)
    except Exception as e:
        logger.exception(f"Ingest resolution failed for {handler.platform}: {e!r}")
        return Fail(handler.platform, e)

"""Broadcast service used by the API routers."""

from typing import Callable

from loguru import logger

from simulcast.domain.credentials.credential_resolver import (
    CredentialResolver,
    get_credential_resolver,
)
from simulcast.schemas import LifecycleStatus, ManualTarget, PlatformId
from simulcast.services.integrations.youtube_client import YouTubeClient

from .broadcast_models import GoLiveResult, StartBroadcastResult, TransitionResult
from .ingest_handlers import TwitchIngestHandler, YouTubeIngestHandler
from .lifecycle import YouTubeBroadcastLifecycle
from .orchestrator import BroadcastOrchestrator


class BroadcastService:
    def __init__(
        self,
        resolver: CredentialResolver | None = None,
        youtube_client_factory: Callable[[str], YouTubeClient] = YouTubeClient,
    ):
        self._resolver = resolver
        self.youtube_client_factory = youtube_client_factory

    @property
    def resolver(self) -> CredentialResolver:
        return self._resolver or get_credential_resolver()

    def orchestrator(self) -> BroadcastOrchestrator:
        return BroadcastOrchestrator(
            self.resolver,
            handlers=[
                YouTubeIngestHandler(self.resolver, self.youtube_client_factory),
                TwitchIngestHandler(),
            ],
        )

    async def _youtube_lifecycle(self, uid: str) -> YouTubeBroadcastLifecycle:
        connection = await self.resolver.resolve(uid, PlatformId.YOUTUBE.value)
        access_token = await self.resolver.ensure_access_token(connection)
        return YouTubeBroadcastLifecycle(self.youtube_client_factory(access_token))

    async def go_live(
        self,
        uid: str,
        title: str,
        destinations: list[str],
        manual_targets: list[ManualTarget],
    ) -> GoLiveResult:
        result = await self.orchestrator().go_live(uid, title, destinations, manual_targets)
        logger.info(
            f"✅ go_live user={uid}: {len(result.ingest_targets)} ingest target(s), "
            f"{len(result.skipped)} skipped"
        )
        return result

    async def start_youtube_broadcast(self, uid: str, title: str) -> StartBroadcastResult:
        lifecycle = await self._youtube_lifecycle(uid)
        return await lifecycle.start_broadcast(title)

    async def transition_youtube_broadcast(
        self, uid: str, broadcast_id: str, status: LifecycleStatus
    ) -> TransitionResult:
        lifecycle = await self._youtube_lifecycle(uid)
        return await lifecycle.transition_broadcast(broadcast_id, status)


broadcast_service = BroadcastService()


def get_broadcast_service() -> BroadcastService:
    return broadcast_service

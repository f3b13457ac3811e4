"""Go-live fan-out across the user's connected platforms."""

import asyncio

from loguru import logger

from simulcast.domain.credentials.credential_resolver import CredentialResolver
from simulcast.schemas import BroadcastSession, IngestTarget, ManualTarget

from .broadcast_models import GoLiveResult, SkippedDestination
from .ingest_handlers import (
    CustomIngestHandler,
    Fail,
    IngestHandler,
    Ready,
    Skip,
    run_handler,
)


class BroadcastOrchestrator:
    """Prepare one session per destination and derive the relay ingest targets.

    Platforms are processed concurrently in handler order. A platform that
    fails or has nothing to publish to is reported in `skipped` and never
    aborts the others.
    """

    def __init__(self, resolver: CredentialResolver, handlers: list[IngestHandler]):
        self.resolver = resolver
        self.handlers = handlers
        self.custom_handler = CustomIngestHandler()

    async def go_live(
        self,
        uid: str,
        title: str,
        destinations: list[str] | None = None,
        manual_targets: list[ManualTarget] | None = None,
    ) -> GoLiveResult:
        manual_targets = manual_targets or []
        connections = await self.resolver.load_connections(uid, destinations or [])
        logger.info(
            f"🚀 go_live user={uid} destinations={destinations or 'all'} "
            f"connected={sorted(connections)} manual_targets={len(manual_targets)}"
        )

        present = [h for h in self.handlers if h.platform in connections]
        outcomes = await asyncio.gather(
            *(run_handler(h, connections[h.platform], title) for h in present)
        )

        result = GoLiveResult()
        for outcome in outcomes:
            if isinstance(outcome, Ready):
                result.sessions.append(outcome.session)
            elif isinstance(outcome, Skip):
                logger.info(f"Skipping {outcome.platform}: {outcome.reason}")
                result.skipped.append(SkippedDestination(platform=outcome.platform, reason=outcome.reason))
            elif isinstance(outcome, Fail):
                result.skipped.append(SkippedDestination(platform=outcome.platform, reason=outcome.reason))

        for target in manual_targets:
            result.sessions.append(self.custom_handler.session_for(target))

        result.ingest_targets = self.build_ingest_targets(result.sessions)
        return result

    @staticmethod
    def build_ingest_targets(sessions: list[BroadcastSession]) -> list[IngestTarget]:
        targets = []
        for session in sessions:
            if session.target is not None:
                targets.append(
                    IngestTarget(
                        platform=session.platform,
                        url=session.target.url,
                        stream_key=session.target.stream_key,
                    )
                )
                continue
            url = session.ingest_url
            if url is None:
                continue
            targets.append(
                IngestTarget(platform=session.platform, url=url, broadcast_id=session.remote_broadcast_id)
            )
        return targets

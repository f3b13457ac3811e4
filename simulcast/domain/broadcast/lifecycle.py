"""YouTube broadcast creation and lifecycle transitions.

Creation builds a stream, a broadcast and binds them. Both remote objects are
deleted if any step fails, so a failed attempt never leaves orphans behind.
Transitions walk the minimal path computed by the state machine, retrying
calls the platform rejects only because it has not caught up yet.
"""

import asyncio
from datetime import datetime, timedelta, timezone

from loguru import logger

from simulcast.app_config import get_app_environ_config
from simulcast.schemas import LifecycleStatus
from simulcast.services.integrations.youtube_client import YouTubeApiError, YouTubeClient
from simulcast.utils.app_errors import (
    AppError,
    AppErrorCode,
    ConfigurationError,
    HttpStatusCode,
)

from .broadcast_models import StartBroadcastResult, TransitionError, TransitionResult
from .error_classifier import ErrorDisposition, classify_youtube_error
from .lifecycle_state_machine import BroadcastLifecycleStateMachine


class YouTubeBroadcastLifecycle:
    def __init__(
        self,
        client: YouTubeClient,
        *,
        max_attempts: int | None = None,
        retry_base_seconds: float | None = None,
        transition_max_attempts: int | None = None,
        transition_retry_base_seconds: float | None = None,
        poll_interval_seconds: float | None = None,
        poll_timeout_seconds: float | None = None,
        broadcast_duration_seconds: int | None = None,
        privacy_status: str | None = None,
    ):
        config = get_app_environ_config()
        self.client = client
        self.max_attempts = max_attempts or config.YOUTUBE_MAX_ATTEMPTS
        self.retry_base_seconds = _pick(retry_base_seconds, config.YOUTUBE_RETRY_BASE_SECONDS)
        self.transition_max_attempts = transition_max_attempts or config.YOUTUBE_TRANSITION_MAX_ATTEMPTS
        self.transition_retry_base_seconds = _pick(
            transition_retry_base_seconds, config.YOUTUBE_TRANSITION_RETRY_BASE_SECONDS
        )
        self.poll_interval_seconds = _pick(poll_interval_seconds, config.YOUTUBE_POLL_INTERVAL_SECONDS)
        self.poll_timeout_seconds = _pick(poll_timeout_seconds, config.YOUTUBE_POLL_TIMEOUT_SECONDS)
        self.broadcast_duration_seconds = (
            broadcast_duration_seconds or config.YOUTUBE_BROADCAST_DURATION_SECONDS
        )
        self.privacy_status = privacy_status or config.YOUTUBE_PRIVACY_STATUS

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def fetch_status(self, broadcast_id: str) -> LifecycleStatus:
        broadcast = await self.client.get_broadcast(broadcast_id)
        if broadcast is None:
            raise AppError(
                errcode=AppErrorCode.E_YOUTUBE_BROADCAST_MISSING,
                errmesg=f"YouTube broadcast {broadcast_id} was not found.",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return LifecycleStatus.from_youtube((broadcast.get("status") or {}).get("lifeCycleStatus"))

    async def _try_fetch_status(self, broadcast_id: str) -> LifecycleStatus | None:
        try:
            return await self.fetch_status(broadcast_id)
        except (YouTubeApiError, AppError) as e:
            logger.warning(f"Unable to fetch status of broadcast {broadcast_id}: {e}")
            return None

    async def _poll_status(
        self,
        broadcast_id: str,
        accept: set[LifecycleStatus],
        last: LifecycleStatus,
    ) -> tuple[LifecycleStatus, bool]:
        """Poll until the status is in `accept` or the poll timeout elapses.

        Returns the last observed status and whether it was accepted.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.poll_timeout_seconds
        while True:
            status = await self._try_fetch_status(broadcast_id)
            if status is not None:
                last = status
                if status in accept:
                    return status, True
            if loop.time() >= deadline:
                return last, False
            await asyncio.sleep(self.poll_interval_seconds)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def start_broadcast(self, title: str, wait_for_status: bool = True) -> StartBroadcastResult:
        """Create, bind and optionally poll a new broadcast.

        The whole sequence is retried with linear backoff for transient
        failures only; the last error is re-raised unchanged.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                result = await self._create_and_bind(title)
                break
            except Exception as e:
                disposition = classify_youtube_error(e)
                if disposition is not ErrorDisposition.RETRYABLE or attempt >= self.max_attempts:
                    logger.error(
                        f"❌ YouTube broadcast creation failed (attempt {attempt}/{self.max_attempts}, "
                        f"{disposition}): {e!r}"
                    )
                    raise
                delay = attempt * self.retry_base_seconds
                logger.warning(
                    f"⏳ YouTube broadcast creation attempt {attempt}/{self.max_attempts} failed "
                    f"({e!r}), retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        logger.info(f"✅ YouTube broadcast {result.broadcast_id} bound to stream {result.stream_id}")

        if wait_for_status and result.lifecycle_status == LifecycleStatus.UNKNOWN:
            concrete = {s for s in LifecycleStatus if s != LifecycleStatus.UNKNOWN}
            status, settled = await self._poll_status(result.broadcast_id, concrete, result.lifecycle_status)
            if not settled:
                logger.warning(f"Broadcast {result.broadcast_id} status still {status} after polling")
            result.lifecycle_status = status
        return result

    async def _create_and_bind(self, title: str) -> StartBroadcastResult:
        stream_id: str | None = None
        broadcast_id: str | None = None
        try:
            stream = await self.client.insert_stream(title)
            stream_id = stream.get("id")
            ingestion = (stream.get("cdn") or {}).get("ingestionInfo") or {}
            address = ingestion.get("ingestionAddress")
            stream_name = ingestion.get("streamName")
            if not stream_id or not address or not stream_name:
                raise ConfigurationError(
                    "YouTube did not return ingestion details.",
                    errcode=AppErrorCode.E_YOUTUBE_INGESTION_MISSING,
                )

            now = datetime.now(timezone.utc)
            broadcast = await self.client.insert_broadcast(
                title,
                scheduled_start=now,
                scheduled_end=now + timedelta(seconds=self.broadcast_duration_seconds),
                privacy_status=self.privacy_status,
            )
            broadcast_id = broadcast.get("id")
            if not broadcast_id:
                raise AppError(
                    errcode=AppErrorCode.E_YOUTUBE_BROADCAST_MISSING,
                    errmesg="YouTube broadcast could not be created.",
                    status_code=HttpStatusCode.BAD_GATEWAY,
                )

            await self.client.bind_broadcast(broadcast_id, stream_id)
        except Exception:
            await self._delete_remote_objects(stream_id=stream_id, broadcast_id=broadcast_id)
            raise

        return StartBroadcastResult(
            broadcast_id=broadcast_id,
            stream_id=stream_id,
            ingestion_address=address,
            stream_name=stream_name,
            lifecycle_status=LifecycleStatus.from_youtube(
                (broadcast.get("status") or {}).get("lifeCycleStatus")
            ),
        )

    async def _delete_remote_objects(self, stream_id: str | None, broadcast_id: str | None) -> None:
        # Deletion failures are logged; the original error is what the caller sees.
        if broadcast_id:
            try:
                await self.client.delete_broadcast(broadcast_id)
                logger.info(f"🧹 Deleted orphaned YouTube broadcast {broadcast_id}")
            except Exception as e:
                logger.error(f"Failed to delete YouTube broadcast {broadcast_id}: {e!r}")
        if stream_id:
            try:
                await self.client.delete_stream(stream_id)
                logger.info(f"🧹 Deleted orphaned YouTube stream {stream_id}")
            except Exception as e:
                logger.error(f"Failed to delete YouTube stream {stream_id}: {e!r}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def transition_broadcast(
        self, broadcast_id: str, desired: LifecycleStatus | str
    ) -> TransitionResult:
        desired = LifecycleStatus(desired)
        if desired not in LifecycleStatus.transition_targets():
            raise AppError(
                errcode=AppErrorCode.E_INVALID_PARAMS,
                errmesg=f"Unsupported broadcast status '{desired}'.",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        try:
            snapshot = await self.fetch_status(broadcast_id)
        except YouTubeApiError as e:
            raise TransitionError(
                e.message,
                reason=e.reason,
                snapshot_status=LifecycleStatus.UNKNOWN,
                status_code=e.status_code,
            ) from e
        if snapshot == desired:
            logger.info(f"Broadcast {broadcast_id} already {desired}, nothing to do")
            return TransitionResult(broadcast_id=broadcast_id, status=snapshot)

        path = BroadcastLifecycleStateMachine.compute_path(snapshot, desired)
        logger.info(f"🎬 Broadcast {broadcast_id}: {snapshot} -> {desired} via {[str(s) for s in path]}")

        applied: list[LifecycleStatus] = []
        for step in path:
            if snapshot.is_at_or_past(step):
                continue

            try:
                snapshot = await self._transition_step(broadcast_id, step)
            except YouTubeApiError as e:
                reconciled = None
                if step == LifecycleStatus.TESTING:
                    reconciled = await self._try_fetch_status(broadcast_id)
                if reconciled is not None and reconciled.is_at_or_past(LifecycleStatus.TESTING):
                    logger.info(
                        f"Broadcast {broadcast_id} already {reconciled} after rejected testing transition"
                    )
                    snapshot = reconciled
                    continue
                raise TransitionError(
                    e.message,
                    reason=e.reason,
                    snapshot_status=reconciled or snapshot,
                    status_code=e.status_code,
                ) from e

            applied.append(step)

            if step == LifecycleStatus.TESTING and desired == LifecycleStatus.LIVE:
                snapshot, settled = await self._poll_status(
                    broadcast_id, {LifecycleStatus.TESTING, LifecycleStatus.LIVE}, snapshot
                )
                if not settled:
                    raise TransitionError(
                        f"Broadcast {broadcast_id} did not reach testing in time.",
                        reason="statusPollTimeout",
                        snapshot_status=snapshot,
                        status_code=HttpStatusCode.GATEWAY_TIMEOUT,
                    )

        return TransitionResult(broadcast_id=broadcast_id, status=snapshot, applied=applied)

    async def _transition_step(self, broadcast_id: str, step: LifecycleStatus) -> LifecycleStatus:
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self.client.transition_broadcast(broadcast_id, step.value)
            except YouTubeApiError as e:
                disposition = classify_youtube_error(e)
                if (
                    disposition is not ErrorDisposition.NEEDS_RECONCILIATION
                    or attempt >= self.transition_max_attempts
                ):
                    raise
                delay = attempt * self.transition_retry_base_seconds
                logger.warning(
                    f"⏳ Broadcast {broadcast_id} not ready for {step} "
                    f"(attempt {attempt}/{self.transition_max_attempts}), retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                continue

            status = LifecycleStatus.from_youtube((response.get("status") or {}).get("lifeCycleStatus"))
            return step if status == LifecycleStatus.UNKNOWN else status


def _pick(value: float | None, default: float) -> float:
    return default if value is None else value

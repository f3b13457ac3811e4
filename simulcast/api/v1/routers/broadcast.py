from fastapi import APIRouter, Depends

from simulcast.api.v1.dependency import CurrentUser
from simulcast.api.v1.schemas.base import ApiOut
from simulcast.api.v1.schemas.broadcast import (
    GoLiveIn,
    GoLiveOut,
    SkippedDestinationOut,
    StartBroadcastIn,
    StartBroadcastOut,
    TransitionBroadcastIn,
    TransitionBroadcastOut,
)
from simulcast.domain.broadcast.broadcast_domain import BroadcastService, get_broadcast_service
from simulcast.schemas import LifecycleStatus

router = APIRouter(prefix="/broadcast")


@router.post("/go_live")
async def go_live(
    body: GoLiveIn,
    user: CurrentUser,
    service: BroadcastService = Depends(get_broadcast_service),
) -> ApiOut[GoLiveOut]:
    """Prepare every selected destination and return the relay ingest targets.

    Destinations that cannot be prepared are listed in `skipped`; they never
    fail the request.
    """
    result = await service.go_live(
        uid=user.user_id,
        title=body.title,
        destinations=body.destinations,
        manual_targets=body.manual_targets,
    )
    return ApiOut[GoLiveOut](
        results=GoLiveOut(
            sessions=result.sessions,
            ingest_targets=result.ingest_targets,
            skipped=[SkippedDestinationOut(platform=s.platform, reason=s.reason) for s in result.skipped],
        )
    )


@router.post("/youtube/start")
async def start_youtube_broadcast(
    body: StartBroadcastIn,
    user: CurrentUser,
    service: BroadcastService = Depends(get_broadcast_service),
) -> ApiOut[StartBroadcastOut]:
    result = await service.start_youtube_broadcast(user.user_id, body.resolved_title)
    return ApiOut[StartBroadcastOut](
        results=StartBroadcastOut(
            broadcast_id=result.broadcast_id,
            stream_id=result.stream_id,
            ingestion_address=result.ingestion_address,
            stream_name=result.stream_name,
            rtmp_url=result.rtmp_url,
            lifecycle_status=result.lifecycle_status,
        )
    )


@router.post("/youtube/transition")
async def transition_youtube_broadcast(
    body: TransitionBroadcastIn,
    user: CurrentUser,
    service: BroadcastService = Depends(get_broadcast_service),
) -> ApiOut[TransitionBroadcastOut]:
    """Move a broadcast to testing, live or complete.

    Requesting the current status is a no-op. Failures carry `reason` and
    `snapshot_status` in `details`.
    """
    result = await service.transition_youtube_broadcast(
        user.user_id, body.broadcast_id, LifecycleStatus(body.status)
    )
    return ApiOut[TransitionBroadcastOut](
        results=TransitionBroadcastOut(
            broadcast_id=result.broadcast_id,
            status=result.status,
            applied=result.applied,
        )
    )

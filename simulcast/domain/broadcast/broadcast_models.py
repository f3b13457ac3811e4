"""Results and errors produced by the broadcast domain."""

from typing import Any

from pydantic import BaseModel, Field

from simulcast.schemas import BroadcastSession, IngestTarget, LifecycleStatus
from simulcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class StartBroadcastResult(BaseModel):
    broadcast_id: str
    stream_id: str
    ingestion_address: str
    stream_name: str
    lifecycle_status: LifecycleStatus = LifecycleStatus.UNKNOWN

    @property
    def rtmp_url(self) -> str:
        return f"{self.ingestion_address}/{self.stream_name}"


class TransitionResult(BaseModel):
    broadcast_id: str
    status: LifecycleStatus
    applied: list[LifecycleStatus] = Field(default_factory=list)


class SkippedDestination(BaseModel):
    platform: str
    reason: str


class GoLiveResult(BaseModel):
    sessions: list[BroadcastSession] = Field(default_factory=list)
    ingest_targets: list[IngestTarget] = Field(default_factory=list)
    skipped: list[SkippedDestination] = Field(default_factory=list)


class TransitionError(AppError):
    """A broadcast transition that could not be completed.

    `details` carries the platform reason code and the last observed status so
    callers can decide whether to retry on their side.
    """

    def __init__(
        self,
        errmesg: str,
        reason: str | None = None,
        snapshot_status: LifecycleStatus | None = None,
        status_code: int | None = None,
    ):
        details: dict[str, Any] = {
            "reason": reason,
            "snapshot_status": snapshot_status.value if snapshot_status else None,
        }
        super().__init__(
            errcode=AppErrorCode.E_TRANSITION_FAILED,
            errmesg=errmesg,
            status_code=status_code or HttpStatusCode.BAD_GATEWAY,
            details=details,
        )
        self.reason = reason
        self.snapshot_status = snapshot_status

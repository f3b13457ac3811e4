"""Broadcast session and ingest target models."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .lifecycle_status import LifecycleStatus


class ManualTarget(BaseModel):
    """A user-supplied custom RTMP destination that bypasses platform APIs."""

    url: str
    stream_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("stream_key", "streamKey"),
    )

    model_config = ConfigDict(populate_by_name=True)


class BroadcastSession(BaseModel):
    """One destination prepared by a go-live request.

    YouTube sessions own a remote stream and broadcast that are torn down together.
    """

    platform: str
    remote_stream_id: str | None = None
    remote_broadcast_id: str | None = None
    ingestion_address: str | None = None
    stream_name: str | None = None
    lifecycle_status: LifecycleStatus = LifecycleStatus.UNKNOWN
    target: ManualTarget | None = None

    @property
    def ingest_url(self) -> str | None:
        if not self.ingestion_address or not self.stream_name:
            return None
        return f"{self.ingestion_address}/{self.stream_name}"


class IngestTarget(BaseModel):
    """Immutable address the relay's transcoder publishes to."""

    platform: str
    url: str
    broadcast_id: str | None = None
    stream_key: str | None = None

    model_config = ConfigDict(frozen=True)

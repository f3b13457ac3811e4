from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from simulcast.schemas import BroadcastSession, IngestTarget, LifecycleStatus, ManualTarget

DEFAULT_BROADCAST_TITLE = "Simulcast Live"


class GoLiveIn(BaseModel):
    title: str = Field(min_length=1, description="Title used for every created broadcast")
    destinations: list[str] = Field(
        default_factory=list,
        description="Platform ids to publish to; empty means every connected platform",
    )
    manual_targets: list[ManualTarget] = Field(
        default_factory=list,
        validation_alias=AliasChoices("manual_targets", "manualTargets"),
        description="Custom RTMP destinations passed through verbatim",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @field_validator("destinations")
    @classmethod
    def normalize_destinations(cls, v: list[str]) -> list[str]:
        return [item.strip().lower() for item in v if item.strip()]


class SkippedDestinationOut(BaseModel):
    platform: str
    reason: str


class GoLiveOut(BaseModel):
    sessions: list[BroadcastSession]
    ingest_targets: list[IngestTarget]
    skipped: list[SkippedDestinationOut] = Field(default_factory=list)


class StartBroadcastIn(BaseModel):
    title: str | None = Field(default=None, description=f"Defaults to '{DEFAULT_BROADCAST_TITLE}'")

    @property
    def resolved_title(self) -> str:
        return (self.title or "").strip() or DEFAULT_BROADCAST_TITLE


class StartBroadcastOut(BaseModel):
    broadcast_id: str
    stream_id: str
    ingestion_address: str
    stream_name: str
    rtmp_url: str
    lifecycle_status: LifecycleStatus


class TransitionBroadcastIn(BaseModel):
    broadcast_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("broadcast_id", "broadcastId"),
    )
    status: Literal["testing", "live", "complete"]

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class TransitionBroadcastOut(BaseModel):
    broadcast_id: str
    status: LifecycleStatus
    applied: list[LifecycleStatus] = Field(default_factory=list)

"""Pydantic models for the broadcast data model."""

from .broadcast import BroadcastSession, IngestTarget, ManualTarget
from .lifecycle_status import LifecycleStatus
from .platform_connection import PlatformConnection, PlatformId

__all__ = [
    "BroadcastSession",
    "IngestTarget",
    "LifecycleStatus",
    "ManualTarget",
    "PlatformConnection",
    "PlatformId",
]

"""Remote broadcast lifecycle states."""

from enum import Enum


class LifecycleStatus(str, Enum):
    """Authoritative lifecycle state of a remote (YouTube) broadcast.

    State flow:

    UNKNOWN → CREATED → TESTING → LIVE → COMPLETE

    - UNKNOWN: no authoritative snapshot fetched yet.
    - CREATED: broadcast exists (YouTube `created` / `ready`).
    - TESTING: preview starting or running (YouTube `testStarting` / `testing`).
    - LIVE: going or gone live (YouTube `liveStarting` / `live`).
    - COMPLETE: ended (YouTube `complete` / `revoked`). Terminal.

    TESTING and LIVE may be skipped when the remote object is already past them.
    """

    UNKNOWN = "unknown"
    CREATED = "created"
    TESTING = "testing"
    LIVE = "live"
    COMPLETE = "complete"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def is_at_or_past(self, other: "LifecycleStatus") -> bool:
        return self.rank >= other.rank

    @classmethod
    def from_youtube(cls, value: str | None) -> "LifecycleStatus":
        """Normalize a YouTube `status.lifeCycleStatus` value."""
        if not value:
            return cls.UNKNOWN
        return _YOUTUBE_STATUS_MAP.get(value, cls.UNKNOWN)

    @classmethod
    def transition_targets(cls) -> list["LifecycleStatus"]:
        """States a client may request through a transition call."""
        return [cls.TESTING, cls.LIVE, cls.COMPLETE]


_RANKS = {
    LifecycleStatus.UNKNOWN: 0,
    LifecycleStatus.CREATED: 1,
    LifecycleStatus.TESTING: 2,
    LifecycleStatus.LIVE: 3,
    LifecycleStatus.COMPLETE: 4,
}

_YOUTUBE_STATUS_MAP = {
    "created": LifecycleStatus.CREATED,
    "ready": LifecycleStatus.CREATED,
    "testStarting": LifecycleStatus.TESTING,
    "testing": LifecycleStatus.TESTING,
    "liveStarting": LifecycleStatus.LIVE,
    "live": LifecycleStatus.LIVE,
    "complete": LifecycleStatus.COMPLETE,
    "revoked": LifecycleStatus.COMPLETE,
}


__all__ = ["LifecycleStatus"]

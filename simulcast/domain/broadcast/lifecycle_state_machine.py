"""Transition planning for remote broadcast lifecycle states."""

from simulcast.schemas import LifecycleStatus


class BroadcastLifecycleStateMachine:
    """Single-step transitions a remote broadcast accepts.

    - UNKNOWN / CREATED -> TESTING | COMPLETE
    - TESTING -> LIVE | COMPLETE
    - LIVE -> COMPLETE
    - COMPLETE is terminal

    LIVE is only reachable through TESTING; a broadcast never moves backwards.
    """

    TRANSITIONS: dict[LifecycleStatus, set[LifecycleStatus]] = {
        LifecycleStatus.UNKNOWN: {LifecycleStatus.TESTING, LifecycleStatus.COMPLETE},
        LifecycleStatus.CREATED: {LifecycleStatus.TESTING, LifecycleStatus.COMPLETE},
        LifecycleStatus.TESTING: {LifecycleStatus.LIVE, LifecycleStatus.COMPLETE},
        LifecycleStatus.LIVE: {LifecycleStatus.COMPLETE},
        LifecycleStatus.COMPLETE: set(),
    }

    TERMINAL_STATES: set[LifecycleStatus] = {LifecycleStatus.COMPLETE}

    @classmethod
    def can_transition(cls, current: LifecycleStatus, new: LifecycleStatus) -> bool:
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_terminal(cls, state: LifecycleStatus) -> bool:
        return state in cls.TERMINAL_STATES

    @classmethod
    def compute_path(cls, current: LifecycleStatus, desired: LifecycleStatus) -> list[LifecycleStatus]:
        """Minimal ordered list of transition calls taking `current` to `desired`.

        Returns an empty list when nothing needs to be applied: the broadcast is
        already there, already past it, or in a terminal state.
        """
        if current == desired or cls.is_terminal(current):
            return []

        if desired == LifecycleStatus.COMPLETE:
            return [LifecycleStatus.COMPLETE]

        if desired == LifecycleStatus.LIVE:
            if current in (LifecycleStatus.UNKNOWN, LifecycleStatus.CREATED):
                return [LifecycleStatus.TESTING, LifecycleStatus.LIVE]
            if current == LifecycleStatus.TESTING:
                return [LifecycleStatus.LIVE]
            return []

        if desired == LifecycleStatus.TESTING:
            if current in (LifecycleStatus.UNKNOWN, LifecycleStatus.CREATED):
                return [LifecycleStatus.TESTING]
            return []

        return []

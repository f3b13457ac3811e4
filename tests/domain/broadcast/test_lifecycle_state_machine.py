"""Tests for broadcast lifecycle path planning."""

import itertools

import pytest

from simulcast.domain.broadcast.lifecycle_state_machine import BroadcastLifecycleStateMachine
from simulcast.schemas import LifecycleStatus

ALL_STATES = list(LifecycleStatus)
TARGETS = LifecycleStatus.transition_targets()


class TestComputePath:
    @pytest.mark.parametrize(
        "current, desired, expected",
        [
            (LifecycleStatus.CREATED, LifecycleStatus.LIVE, [LifecycleStatus.TESTING, LifecycleStatus.LIVE]),
            (LifecycleStatus.UNKNOWN, LifecycleStatus.LIVE, [LifecycleStatus.TESTING, LifecycleStatus.LIVE]),
            (LifecycleStatus.TESTING, LifecycleStatus.LIVE, [LifecycleStatus.LIVE]),
            (LifecycleStatus.CREATED, LifecycleStatus.TESTING, [LifecycleStatus.TESTING]),
            (LifecycleStatus.CREATED, LifecycleStatus.COMPLETE, [LifecycleStatus.COMPLETE]),
            (LifecycleStatus.LIVE, LifecycleStatus.COMPLETE, [LifecycleStatus.COMPLETE]),
            (LifecycleStatus.LIVE, LifecycleStatus.TESTING, []),
            (LifecycleStatus.LIVE, LifecycleStatus.LIVE, []),
            (LifecycleStatus.COMPLETE, LifecycleStatus.LIVE, []),
            (LifecycleStatus.COMPLETE, LifecycleStatus.COMPLETE, []),
        ],
    )
    def test_known_paths(self, current, desired, expected):
        assert BroadcastLifecycleStateMachine.compute_path(current, desired) == expected

    @pytest.mark.parametrize("current, desired", list(itertools.product(ALL_STATES, TARGETS)))
    def test_paths_are_short_valid_and_never_regress(self, current, desired):
        path = BroadcastLifecycleStateMachine.compute_path(current, desired)

        assert len(path) <= 2
        previous = current
        for step in path:
            assert BroadcastLifecycleStateMachine.can_transition(previous, step)
            assert step.rank > previous.rank
            previous = step
        if path:
            assert path[-1] == desired


class TestTransitions:
    def test_live_requires_testing_first(self):
        assert not BroadcastLifecycleStateMachine.can_transition(LifecycleStatus.CREATED, LifecycleStatus.LIVE)
        assert BroadcastLifecycleStateMachine.can_transition(LifecycleStatus.TESTING, LifecycleStatus.LIVE)

    def test_complete_is_terminal(self):
        assert BroadcastLifecycleStateMachine.is_terminal(LifecycleStatus.COMPLETE)
        for state in ALL_STATES:
            assert not BroadcastLifecycleStateMachine.can_transition(LifecycleStatus.COMPLETE, state)


class TestFromYouTube:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("ready", LifecycleStatus.CREATED),
            ("testStarting", LifecycleStatus.TESTING),
            ("liveStarting", LifecycleStatus.LIVE),
            ("live", LifecycleStatus.LIVE),
            ("revoked", LifecycleStatus.COMPLETE),
            (None, LifecycleStatus.UNKNOWN),
            ("somethingNew", LifecycleStatus.UNKNOWN),
        ],
    )
    def test_maps_platform_values(self, raw, expected):
        assert LifecycleStatus.from_youtube(raw) == expected

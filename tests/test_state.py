"""Tests for state module - task status machine."""

import pytest

from jackmem.state import (
    VALID_TRANSITIONS,
    TaskPriority,
    TaskStatus,
    can_transition,
    coerce_priority,
    coerce_status,
)


class TestTaskStatus:
    """Tests for TaskStatus enum and transitions."""

    def test_all_statuses_have_transitions(self):
        """Every status has an entry in the transition table."""
        for status in TaskStatus:
            assert status in VALID_TRANSITIONS

    def test_terminal_statuses(self):
        """Completed and cancelled have no outgoing transitions."""
        assert VALID_TRANSITIONS[TaskStatus.COMPLETED] == set()
        assert VALID_TRANSITIONS[TaskStatus.CANCELLED] == set()
        assert TaskStatus.COMPLETED.is_terminal
        assert not TaskStatus.BLOCKED.is_terminal

    def test_live_statuses_can_be_cancelled(self):
        for status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED):
            assert can_transition(status, TaskStatus.CANCELLED)

    def test_main_path(self):
        """pending -> in_progress -> completed."""
        assert can_transition(TaskStatus.PENDING, TaskStatus.IN_PROGRESS)
        assert can_transition(TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED)

    def test_blocked_round_trip(self):
        """in_progress -> blocked -> in_progress."""
        assert can_transition(TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED)
        assert can_transition(TaskStatus.BLOCKED, TaskStatus.IN_PROGRESS)

    def test_invalid_transitions(self):
        assert not can_transition(TaskStatus.PENDING, TaskStatus.BLOCKED)
        assert not can_transition(TaskStatus.IN_PROGRESS, TaskStatus.PENDING)
        assert not can_transition(TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS)

    def test_same_status(self):
        """Staying put is fine for live tasks only."""
        assert can_transition(TaskStatus.PENDING, TaskStatus.PENDING)
        assert not can_transition(TaskStatus.CANCELLED, TaskStatus.CANCELLED)


class TestCoercion:
    """Tests for tag parsing helpers."""

    def test_status_from_string(self):
        assert coerce_status("In_Progress") == TaskStatus.IN_PROGRESS

    def test_unknown_status_raises(self):
        with pytest.raises(ValueError):
            coerce_status("finished")

    def test_priority_fallback(self):
        assert coerce_priority("HIGH") == TaskPriority.HIGH
        assert coerce_priority("urgent") == TaskPriority.MEDIUM

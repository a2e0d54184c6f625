"""Tests for SessionMemory - end-to-end behaviour across restarts."""

import json
from datetime import timedelta

from jackmem.config import MemoryConfig
from jackmem.engine import SessionMemory
from jackmem.persistence import RestoreOutcome
from jackmem.state import TaskType


def _events(log_dir, name="memory.jsonl"):
    path = log_dir / name
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestAutoTasks:
    """Tests for analyze_and_create_tasks()."""

    def test_creates_one_task_per_request(self, memory):
        ids = memory.analyze_and_create_tasks("Please fix the login bug. Also write tests for the parser.")
        assert len(ids) == 2
        first, second = (memory.tasks.get_task(i) for i in ids)
        assert first.type == TaskType.DEBUGGING.value
        assert second.type == TaskType.CODING.value
        assert memory.get_progress().total == 2

    def test_nothing_to_do(self, memory):
        assert memory.analyze_and_create_tasks("Thanks a lot, great work") == []


class TestRestart:
    """Tests for restoring state when a new SessionMemory is opened."""

    def test_recent_session_restored(self, config, clock):
        with SessionMemory(config, clock=clock) as first:
            first.record_turn("hello there", "hi")
            task_id = first.create_task("Build it")

        clock.advance(minutes=20)
        with SessionMemory(config, clock=clock) as second:
            assert second.restore_report.session.outcome == RestoreOutcome.RESTORED
            assert second.session_id == first.session_id
            assert second.store.session.conversation_history[-1].user_message == "hello there"
            assert second.tasks.get_task(task_id) is not None

    def test_stale_session_replaced_but_tasks_kept(self, config, clock):
        with SessionMemory(config, clock=clock) as first:
            first.record_turn("old conversation", "old reply")
            task_id = first.create_task("Long running work")

        # Age the snapshot by hand
        data = json.loads(config.session_path.read_text())
        data["lastActivity"] = (clock() - timedelta(hours=2)).isoformat()
        config.session_path.write_text(json.dumps(data))

        with SessionMemory(config, clock=clock) as second:
            assert second.restore_report.session.outcome == RestoreOutcome.STALE
            assert second.session_id != first.session_id
            assert second.store.session.conversation_history == []
            assert second.tasks.get_task(task_id).description == "Long running work"

    def test_corrupt_snapshot_starts_fresh(self, config, clock, isolated_logs, caplog):
        config.memory_dir.mkdir(parents=True)
        config.session_path.write_text("{ this is not json")

        with SessionMemory(config, clock=clock) as memory:
            assert memory.restore_report.session.outcome == RestoreOutcome.CORRUPT
            assert memory.store.session.conversation_history == []

        assert "ignored unreadable snapshot" in caplog.text
        restore = [e for e in _events(isolated_logs) if e["event_type"] == "restore"]
        assert restore[-1]["outcome"] == "corrupt"

    def test_restore_logging_can_be_skipped(self, config, clock, isolated_logs):
        with SessionMemory(config, clock=clock, log_restore=False) as memory:
            assert memory.restore_report.session.outcome == RestoreOutcome.MISSING
        assert _events(isolated_logs) == []


class TestPersistenceFailure:
    """Write failures keep the session usable."""

    def test_unwritable_memory_dir(self, tmp_path, clock, caplog):
        data_dir = tmp_path / "ro"
        data_dir.mkdir()
        (data_dir / ".memory").write_text("a file where the directory should be")

        with SessionMemory(MemoryConfig(data_dir=data_dir), clock=clock) as memory:
            memory.record_turn("still works", "yes")
            task_id = memory.create_task("Keep going")
            assert memory.tasks.get_task(task_id) is not None
            assert memory.store.writer.failures > 0

        assert "Failed to save session memory" in caplog.text


class TestBackgroundWrites:
    """SessionMemory with the background writer."""

    def test_close_flushes(self, tmp_path, clock):
        config = MemoryConfig(data_dir=tmp_path / "bg", background_writes=True)
        memory = SessionMemory(config, clock=clock)
        for i in range(30):
            memory.record_action(f"step_{i}")
        memory.close()

        saved = json.loads(config.session_path.read_text())
        assert saved["recentActions"][-1]["action"] == "step_29"


class TestTelemetry:
    """Task telemetry reaches the configured sink."""

    def test_sink_receives_events(self, memory, telemetry):
        task_id = memory.create_task("Tracked", "high", "testing")
        memory.complete_task(task_id, "green")
        assert telemetry.created[0][:3] == (task_id, "testing", "high")
        assert telemetry.completed[0][0] == task_id
        assert telemetry.completed[0][3] is True

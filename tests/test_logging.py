"""Tests for the JSONL event logs."""

import json
import logging

from jackmem.logging import LogConfig, MemoryLogEntry, TaskLogEntry, now_iso
from jackmem.logging.handlers import build_event_logger
from jackmem.memory.telemetry import JsonlTelemetry


def _lines(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestEntries:
    """Tests for log entry dataclasses."""

    def test_memory_entry_roundtrip(self):
        entry = MemoryLogEntry(timestamp=now_iso(), session_id="s", event_type="restore", outcome="stale")
        restored = MemoryLogEntry.from_dict(json.loads(entry.to_json()))
        assert restored == entry

    def test_from_dict_ignores_unknown_keys(self):
        entry = TaskLogEntry.from_dict({"timestamp": "t", "task_id": "x", "event_type": "created", "extra": 1})
        assert entry.task_id == "x"


class TestJsonlHandler:
    """Tests for JSONLRotatingHandler via build_event_logger()."""

    def test_json_passthrough_and_wrapping(self, tmp_path):
        path = tmp_path / "events.jsonl"
        logger = build_event_logger("jackmem.test.events", path)
        logger.info(json.dumps({"event": "a"}))
        logger.warning("plain text")
        for handler in logger.handlers:
            handler.close()

        first, second = _lines(path)
        assert first == {"event": "a"}
        assert second["message"] == "plain text"
        assert second["level"] == "WARNING"
        assert logger.propagate is False


class TestLogConfig:
    """Tests for LogConfig.from_env()."""

    def test_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JACKMEM_LOG_DIR", str(tmp_path / "elsewhere"))
        monkeypatch.setenv("JACKMEM_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("JACKMEM_LOG_MAX_SIZE_MB", "2")
        config = LogConfig.from_env()
        assert config.path_for("memory") == tmp_path / "elsewhere" / "memory.jsonl"
        assert config.level_for("task") == "DEBUG"
        assert config.max_file_size_bytes == 2 * 1024 * 1024


class TestJsonlTelemetry:
    """Tests for the task telemetry log."""

    def test_writes_task_events(self, isolated_logs):
        sink = JsonlTelemetry()
        sink.record_task_creation("task_1", "coding", "high", "x" * 300)
        sink.record_task_completion("task_1", "coding", 5, True, "done")
        logging.getLogger("jackmem.events.task").handlers[0].flush()

        created, completed = _lines(isolated_logs / "tasks.jsonl")
        assert created["event_type"] == "created"
        assert len(created["description"]) == 103
        assert completed["duration_minutes"] == 5
        assert completed["result"] == "done"


class TestEventWrapping:
    """Tests for record_to_event()."""

    def test_exception_text_kept(self, tmp_path):
        path = tmp_path / "errors.jsonl"
        logger = build_event_logger("jackmem.test.errors", path)
        try:
            raise RuntimeError("disk on fire")
        except RuntimeError:
            logger.exception("write failed")
        for handler in logger.handlers:
            handler.close()

        (event,) = _lines(path)
        assert event["message"] == "write failed"
        assert "disk on fire" in event["exception"]

    def test_json_array_is_wrapped(self, tmp_path):
        path = tmp_path / "arrays.jsonl"
        logger = build_event_logger("jackmem.test.arrays", path)
        logger.info("[1, 2]")
        for handler in logger.handlers:
            handler.close()
        assert _lines(path)[0]["message"] == "[1, 2]"

    def test_bad_env_values_ignored(self):
        config = LogConfig.from_env({"JACKMEM_LOG_LEVEL": "chatty", "JACKMEM_LOG_MAX_SIZE_MB": "big"})
        assert config.level_for("memory") == "INFO"
        assert config.max_file_size_bytes == 10 * 1024 * 1024

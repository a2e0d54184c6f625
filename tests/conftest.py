"""Shared fixtures for jackmem tests."""

from datetime import datetime, timedelta

import pytest

from jackmem.config import MemoryConfig
from jackmem.engine import SessionMemory
from jackmem.logging import LogConfig, reset_loggers, set_config


class FakeClock:
    """Controllable time source."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 1, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class RecordingTelemetry:
    """Telemetry sink that remembers what it was told."""

    def __init__(self):
        self.created: list[tuple] = []
        self.completed: list[tuple] = []

    def record_task_creation(self, task_id, task_type, priority, description):
        self.created.append((task_id, task_type, priority, description))

    def record_task_completion(self, task_id, task_type, duration_minutes, success, result=None):
        self.completed.append((task_id, task_type, duration_minutes, success, result))


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path):
    """Send event logs to a temporary directory."""
    reset_loggers()
    set_config(LogConfig(log_dir=tmp_path / "logs"))
    yield tmp_path / "logs"
    reset_loggers()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    return MemoryConfig(data_dir=tmp_path / "workspace")


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def memory(config, clock, telemetry):
    mem = SessionMemory(config, telemetry=telemetry, clock=clock)
    yield mem
    mem.close()

"""
Event log entries.

One dataclass per stream. Entries are logged as their JSON text and read
back with from_dict(), which ignores keys written by newer versions.
"""

import json
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any, TypeVar

E = TypeVar("E", bound="_Entry")


class _Entry:
    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls: type[E], data: dict[str, Any]) -> E:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class MemoryLogEntry(_Entry):
    """A snapshot lifecycle event: "restore", "persist_failed"."""

    timestamp: str
    session_id: str
    event_type: str

    outcome: str = ""  # restored, missing, stale, corrupt
    snapshot_path: str = ""
    snapshot_age_seconds: float | None = None

    # Sizes after the event
    conversation_turns: int = 0
    tool_calls: int = 0
    current_tasks: int = 0
    completed_tasks: int = 0

    error: str | None = None
    error_type: str | None = None


@dataclass
class TaskLogEntry(_Entry):
    """A task telemetry event: "created", "completed"."""

    timestamp: str
    task_id: str
    event_type: str

    task_type: str = ""
    priority: str = ""
    description: str = ""

    duration_minutes: int | None = None
    success: bool = True
    result: Any = None


def now_iso() -> str:
    return datetime.now().isoformat()

"""
Task telemetry sinks.

The task registry reports creations and completions to an optional sink.
NullTelemetry is used when none is configured; JsonlTelemetry writes the
events to the tasks.jsonl event log.
"""

from typing import Any, Protocol

from jackmem.logging import TaskLogEntry, now_iso, task_logger
from jackmem.models import truncate


class TelemetrySink(Protocol):
    """What the task registry needs from a telemetry collaborator."""

    def record_task_creation(self, task_id: str, task_type: str, priority: str, description: str) -> None:
        ...

    def record_task_completion(
        self,
        task_id: str,
        task_type: str,
        duration_minutes: int | None,
        success: bool,
        result: Any = None,
    ) -> None:
        ...


class NullTelemetry:
    """Telemetry sink that discards everything."""

    def record_task_creation(self, task_id: str, task_type: str, priority: str, description: str) -> None:
        pass

    def record_task_completion(
        self,
        task_id: str,
        task_type: str,
        duration_minutes: int | None,
        success: bool,
        result: Any = None,
    ) -> None:
        pass


class JsonlTelemetry:
    """Telemetry sink backed by the task event log."""

    def record_task_creation(self, task_id: str, task_type: str, priority: str, description: str) -> None:
        entry = TaskLogEntry(
            timestamp=now_iso(),
            task_id=task_id,
            event_type="created",
            task_type=task_type,
            priority=priority,
            description=truncate(description, 100),
        )
        task_logger.info(entry.to_json())

    def record_task_completion(
        self,
        task_id: str,
        task_type: str,
        duration_minutes: int | None,
        success: bool,
        result: Any = None,
    ) -> None:
        entry = TaskLogEntry(
            timestamp=now_iso(),
            task_id=task_id,
            event_type="completed",
            task_type=task_type,
            duration_minutes=duration_minutes,
            success=success,
            result=result,
        )
        task_logger.info(entry.to_json())

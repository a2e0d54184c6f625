"""
Jackmem - Exception Hierarchy

All jackmem-specific exceptions inherit from JackMemError.

Most of these never reach callers of the memory engine: persistence
errors are caught at the store boundary and logged, and lookup failures
are reported through False/None returns. They exist so that the layers
underneath have something precise to raise.
"""

from typing import Any


class JackMemError(Exception):
    """Base exception for all jackmem errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Configuration Errors
class ConfigError(JackMemError):
    """Raised when configuration is invalid."""

    pass


# Persistence Errors
class PersistenceError(JackMemError):
    """Base exception for snapshot storage errors."""

    def __init__(self, message: str, path: str, details: dict[str, Any] | None = None):
        super().__init__(message, {"path": path, **(details or {})})
        self.path = path


class SnapshotReadError(PersistenceError):
    """Raised when a snapshot file exists but cannot be read."""

    pass


class SnapshotCorruptError(PersistenceError):
    """Raised when a snapshot file is not valid JSON or has the wrong shape."""

    pass


class SnapshotWriteError(PersistenceError):
    """Raised when a snapshot cannot be written."""

    pass


# Task Errors
class TaskError(JackMemError):
    """Base exception for task-related errors."""

    pass


class TaskNotFoundError(TaskError):
    """Raised when a task id is unknown.

    The registry itself reports unknown ids with False/None; this is for
    callers that prefer exceptions (see TaskRegistry.require_task).
    """

    def __init__(self, task_id: str):
        super().__init__(f"Task '{task_id}' not found", {"task_id": task_id})
        self.task_id = task_id


class TaskTransitionError(TaskError):
    """Raised when an invalid task status transition is attempted.

    Includes the current status and the attempted target status for debugging.
    """

    def __init__(self, message: str, task_id: str, from_status: str, to_status: str):
        super().__init__(
            message,
            {"task_id": task_id, "from_status": from_status, "to_status": to_status},
        )
        self.task_id = task_id
        self.from_status = from_status
        self.to_status = to_status

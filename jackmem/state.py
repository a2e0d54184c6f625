"""
Jackmem - Task State Machine

Status, type and priority tags for tasks, and the table of legal
status transitions.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """
    Lifecycle status of a task.

    State transitions:
    PENDING -> IN_PROGRESS -> COMPLETED (terminal)
    IN_PROGRESS <-> BLOCKED
    PENDING | IN_PROGRESS | BLOCKED -> CANCELLED (terminal)
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


class TaskType(str, Enum):
    """Kind of work a task represents."""

    CODING = "coding"
    DEBUGGING = "debugging"
    TESTING = "testing"
    ANALYSIS = "analysis"
    RESEARCH = "research"
    OPTIMIZATION = "optimization"
    DOCUMENTATION = "documentation"
    GENERAL = "general"


class TaskPriority(str, Enum):
    """Task priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.IN_PROGRESS: {
        TaskStatus.COMPLETED,
        TaskStatus.BLOCKED,
        TaskStatus.CANCELLED,
    },
    TaskStatus.BLOCKED: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.COMPLETED: set(),  # Terminal state
    TaskStatus.CANCELLED: set(),  # Terminal state
}

# complete_task() is an explicit shortcut and may finish a task from any live status
COMPLETABLE_FROM: frozenset[TaskStatus] = frozenset(
    {TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED}
)


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    """Check if a task may move from current to target."""
    if current == target:
        return not current.is_terminal
    return target in VALID_TRANSITIONS.get(current, set())


def coerce_status(value: "TaskStatus | str") -> TaskStatus:
    """Parse a status tag. Raises ValueError for unknown statuses."""
    if isinstance(value, TaskStatus):
        return value
    return TaskStatus(str(value).lower())


def coerce_priority(value: "TaskPriority | str") -> TaskPriority:
    """Parse a priority tag, treating unknown values as medium."""
    if isinstance(value, TaskPriority):
        return value
    try:
        return TaskPriority(str(value).lower())
    except ValueError:
        return TaskPriority.MEDIUM

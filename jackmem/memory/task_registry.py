"""
Task Registry - hierarchical task lifecycle.

Tasks live in the workspace context: live tasks in current_tasks,
finished ones (completed or cancelled) in the bounded completed_tasks
history. Every operation records an action on the session store, which
persists both snapshots.

Unknown task ids are reported with False/None, never with exceptions.
"""

import logging
from dataclasses import dataclass
from typing import Any

from jackmem.exceptions import TaskNotFoundError, TaskTransitionError
from jackmem.memory.session_store import SessionStore, keep_newest
from jackmem.memory.telemetry import NullTelemetry, TelemetrySink
from jackmem.models import Task, TaskNote, TaskToolUse, generate_task_id
from jackmem.state import (
    COMPLETABLE_FROM,
    TaskPriority,
    TaskStatus,
    TaskType,
    can_transition,
    coerce_priority,
    coerce_status,
)

logger = logging.getLogger(__name__)

# Fields update_task() may merge into a task
UPDATABLE_FIELDS = frozenset(
    {
        "description",
        "type",
        "priority",
        "status",
        "progress",
        "estimated_duration",
        "actual_duration",
        "dependencies",
        "result",
    }
)


@dataclass
class TaskProgress:
    """Aggregate task counters."""

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    pending: int = 0  # everything not completed or in progress, blocked included
    completion_rate: int = 0  # percent

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "inProgress": self.in_progress,
            "pending": self.pending,
            "completionRate": self.completion_rate,
        }


def _type_value(task_type: "TaskType | str") -> str:
    return task_type.value if isinstance(task_type, TaskType) else str(task_type or "general")


def _coerce_update(name: str, value: Any) -> Any:
    """Convert an update_task() value to the type stored on Task. Raises TypeError or ValueError."""
    if name == "priority":
        return coerce_priority(value)
    if name == "type":
        return _type_value(value)
    if name == "progress":
        return int(value)
    if name == "description":
        return str(value).strip()
    if name == "dependencies":
        return list(value or [])
    if name in ("estimated_duration", "actual_duration"):
        return None if value is None else int(value)
    return value


class TaskRegistry:
    """Creates, updates and completes tasks held in the store's workspace context."""

    def __init__(self, store: SessionStore, telemetry: TelemetrySink | None = None):
        self.store = store
        self.telemetry = telemetry or NullTelemetry()
        self._issued_ids: set[str] = {t.id for t in self._all_tasks()}

    @property
    def _current(self) -> list[Task]:
        return self.store.context.current_tasks

    def _all_tasks(self) -> list[Task]:
        return [*self.store.context.current_tasks, *self.store.context.completed_tasks]

    def _new_id(self) -> str:
        task_id = generate_task_id()
        while task_id in self._issued_ids:
            task_id = generate_task_id()
        self._issued_ids.add(task_id)
        return task_id

    def _find_current(self, task_id: str) -> Task | None:
        for task in self._current:
            if task.id == task_id:
                return task
        return None

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_task(self, task_id: str) -> Task | None:
        """Find a task among current and finished tasks."""
        for task in self._all_tasks():
            if task.id == task_id:
                return task
        return None

    def require_task(self, task_id: str) -> Task:
        """
        Like get_task() but raises for unknown ids.

        Raises:
            TaskNotFoundError: If no task has this id
        """
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def current_tasks(self) -> list[Task]:
        """Live tasks in creation order (a copy of the list)."""
        return list(self._current)

    def completed_tasks(self) -> list[Task]:
        """Finished tasks, oldest first (a copy of the list)."""
        return list(self.store.context.completed_tasks)

    def active_tasks_by_type(self, task_type: TaskType | str) -> list[Task]:
        wanted = _type_value(task_type)
        return [t for t in self._current if t.type == wanted]

    def get_progress(self) -> TaskProgress:
        """
        Counters over live tasks plus the retained completion history.

        Cancelled tasks are left out of every counter.
        """
        completed = sum(
            1 for t in self.store.context.completed_tasks if t.status == TaskStatus.COMPLETED
        )
        in_progress = sum(1 for t in self._current if t.status == TaskStatus.IN_PROGRESS)
        total = len(self._current) + completed
        return TaskProgress(
            total=total,
            completed=completed,
            in_progress=in_progress,
            pending=total - completed - in_progress,
            completion_rate=round(completed / total * 100) if total else 0,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create_task(
        self,
        description: str,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        task_type: TaskType | str = TaskType.GENERAL,
        parent_task_id: str | None = None,
    ) -> str:
        """
        Create a pending task.

        Args:
            description: What needs doing (surrounding whitespace is dropped)
            priority: high, medium or low
            task_type: Work category; any tag is accepted
            parent_task_id: Optional back-reference to a parent task

        Returns:
            The new task id
        """
        now = self.store.now()
        task = Task(
            id=self._new_id(),
            description=description.strip(),
            type=_type_value(task_type),
            priority=coerce_priority(priority),
            created_at=now,
            updated_at=now,
            parent_task_id=parent_task_id,
        )
        self._current.append(task)
        self.store.record_action(
            "task_created",
            {
                "taskId": task.id,
                "description": task.description,
                "type": task.type,
                "priority": task.priority.value,
            },
        )
        self._emit_creation(task)
        logger.debug(f"Task created: {task.id} [{task.type}] '{task.description[:50]}'")
        return task.id

    def update_task(self, task_id: str, **fields: Any) -> bool:
        """
        Merge fields into a live task.

        Setting status to completed routes through the completion path;
        setting it to cancelled routes through cancel_task(). Progress is
        kept below 100 for tasks that are not completed.

        Returns:
            False if the task is unknown, the status transition is not
            allowed, or a field is not updatable or has an unusable value
        """
        task = self._find_current(task_id)
        if task is None:
            return False

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            logger.warning(f"Ignoring update of {task_id}: unknown fields {sorted(unknown)}")
            return False

        target = None
        if "status" in fields:
            try:
                target = coerce_status(fields.pop("status"))
            except ValueError as e:
                logger.warning(f"Ignoring update of {task_id}: {e}")
                return False
            if not self._transition_allowed(task.status, target):
                logger.warning(
                    f"Rejected task transition {task_id}: {task.status.value} -> {target.value}"
                )
                return False

        result = fields.pop("result", None)
        try:
            values = {name: _coerce_update(name, value) for name, value in fields.items()}
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring update of {task_id}: {e}")
            return False

        # Nothing below can fail, so a rejected update leaves the task untouched
        for name, value in values.items():
            if name == "progress":
                task.set_progress(value)
            else:
                setattr(task, name, value)
        task.updated_at = self.store.now()

        if target == TaskStatus.COMPLETED:
            return self._finish(task, result)
        if target == TaskStatus.CANCELLED:
            return self._cancel(task, reason=None)

        if result is not None:
            task.result = result
        if target is not None:
            task.status = target

        changes = dict(fields)
        if target is not None:
            changes["status"] = target.value
        self.store.record_action("task_updated", {"taskId": task_id, "updates": changes})
        return True

    def complete_task(self, task_id: str, result: Any = None) -> bool:
        """
        Mark a live task completed and move it to the completion history.

        Returns:
            False if the task is unknown or not live
        """
        task = self._find_current(task_id)
        if task is None:
            return False
        return self._finish(task, result)

    def cancel_task(self, task_id: str, reason: str | None = None) -> bool:
        """
        Cancel a live task. It leaves current_tasks and is kept in the history.

        Returns:
            False if the task is unknown
        """
        task = self._find_current(task_id)
        if task is None:
            return False
        return self._cancel(task, reason)

    def require_transition(self, task_id: str, status: TaskStatus | str) -> None:
        """
        Apply a status change that must succeed.

        Raises:
            TaskNotFoundError: If the task is not live
            TaskTransitionError: If the transition is not allowed
        """
        task = self._find_current(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        target = coerce_status(status)
        if not self._transition_allowed(task.status, target):
            raise TaskTransitionError(
                f"Invalid task transition: {task.status.value} -> {target.value}",
                task_id=task_id,
                from_status=task.status.value,
                to_status=target.value,
            )
        self.update_task(task_id, status=target)

    def add_subtask(
        self,
        parent_task_id: str,
        description: str,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
    ) -> str | None:
        """
        Create a child task with the parent's type.

        Returns:
            The subtask id, or None if the parent is not a live task
        """
        parent = self._find_current(parent_task_id)
        if parent is None:
            return None
        subtask_id = self.create_task(description, priority, parent.type, parent_task_id)
        parent.subtasks.append(subtask_id)
        self.store.persist()
        return subtask_id

    # -------------------------------------------------------------------------
    # Correlation helpers
    # -------------------------------------------------------------------------

    def link_file(self, task_id: str, file_path: str) -> bool:
        """Relate a file to a task. Linking the same path twice is a no-op."""
        task = self._find_current(task_id)
        if task is None:
            return False
        if file_path not in task.related_files:
            task.related_files.append(file_path)
            self.store.persist()
        return True

    def link_tool(self, task_id: str, tool_name: str, args: Any = None) -> bool:
        """Record that a tool was used for a task."""
        task = self._find_current(task_id)
        if task is None:
            return False
        task.tools_used.append(TaskToolUse(tool=tool_name, args=args, timestamp=self.store.now()))
        self.store.persist()
        return True

    def add_note(self, task_id: str, note: str) -> bool:
        """Attach a note to a task."""
        task = self._find_current(task_id)
        if task is None:
            return False
        task.notes.append(TaskNote(note=note, timestamp=self.store.now()))
        self.store.persist()
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _transition_allowed(current: TaskStatus, target: TaskStatus) -> bool:
        if target == TaskStatus.COMPLETED:
            return current in COMPLETABLE_FROM
        return can_transition(current, target)

    def _retire(self, task: Task) -> None:
        """Move a task from current_tasks to the bounded history."""
        context = self.store.context
        context.current_tasks = [t for t in context.current_tasks if t.id != task.id]
        context.completed_tasks.append(task)
        context.completed_tasks = keep_newest(context.completed_tasks, self.store.config.max_completed_tasks)

    def _finish(self, task: Task, result: Any) -> bool:
        task.mark_completed(result, now=self.store.now())
        self._retire(task)
        self.store.record_action(
            "task_completed",
            {"taskId": task.id, "description": task.description, "duration": task.actual_duration},
        )
        self._emit_completion(task, result)
        logger.debug(f"Task completed: {task.id} in {task.actual_duration}m")
        return True

    def _cancel(self, task: Task, reason: str | None) -> bool:
        task.status = TaskStatus.CANCELLED
        task.updated_at = self.store.now()
        if reason:
            task.notes.append(TaskNote(note=f"Cancelled: {reason}", timestamp=task.updated_at))
        self._retire(task)
        self.store.record_action(
            "task_cancelled",
            {"taskId": task.id, "description": task.description, "reason": reason},
        )
        return True

    def _emit_creation(self, task: Task) -> None:
        try:
            self.telemetry.record_task_creation(task.id, task.type, task.priority.value, task.description)
        except Exception as e:
            logger.warning(f"Telemetry failed for task creation {task.id}: {e}")

    def _emit_completion(self, task: Task, result: Any) -> None:
        try:
            self.telemetry.record_task_completion(task.id, task.type, task.actual_duration, True, result)
        except Exception as e:
            logger.warning(f"Telemetry failed for task completion {task.id}: {e}")

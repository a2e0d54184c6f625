"""
Jackmem - Session Memory Engine

SessionMemory wires the session store, task registry, auto-task detector
and context assembler around one explicitly owned session. Construct one
per process and pass it to whatever needs it:

    memory = SessionMemory(load_config(workspace_root))
    memory.seed_workspace(scanner_result)
    ...
    memory.record_turn(user_message, ai_response, tool_calls)
    memory.analyze_and_create_tasks(user_message)
    prompt = memory.get_enhanced_system_prompt(BASE_PROMPT)
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from jackmem.config import MemoryConfig, load_config
from jackmem.logging import MemoryLogEntry, memory_logger, now_iso
from jackmem.memory.activity import ActivityAnalyzer
from jackmem.memory.assembler import ContextAssembler
from jackmem.memory.detector import AutoTaskDetector
from jackmem.memory.session_store import SessionStore
from jackmem.memory.task_registry import TaskProgress, TaskRegistry
from jackmem.memory.telemetry import TelemetrySink
from jackmem.models import ActionRecord, ConversationTurn, ToolCallRecord, WorkspaceInfo
from jackmem.persistence import (
    BackgroundSnapshotWriter,
    RestoreReport,
    SnapshotStore,
    SnapshotWriter,
)
from jackmem.state import TaskPriority, TaskType

logger = logging.getLogger(__name__)


def log_restore_report(report: RestoreReport, store: SessionStore) -> None:
    """Report how the snapshots were restored: problems as warnings, the rest at info."""
    for diagnostic in (report.session, report.context):
        if diagnostic.is_problem:
            logger.warning(f"Session memory: {diagnostic.describe()}")
        else:
            logger.info(f"Session memory: {diagnostic.describe()}")

    session = store.session
    entry = MemoryLogEntry(
        timestamp=now_iso(),
        session_id=session.session_id,
        event_type="restore",
        outcome=report.session.outcome.value,
        snapshot_path=report.session.path,
        snapshot_age_seconds=report.session.age_seconds,
        conversation_turns=len(session.conversation_history),
        tool_calls=len(session.tool_call_chain),
        current_tasks=len(store.context.current_tasks),
        completed_tasks=len(store.context.completed_tasks),
        error=report.session.error or report.context.error,
    )
    try:
        memory_logger.info(entry.to_json())
    except OSError as e:
        logger.debug(f"Could not write memory event log: {e}")


class SessionMemory:
    """One interactive session's memory: history, tasks and prompt context."""

    def __init__(
        self,
        config: MemoryConfig | None = None,
        telemetry: TelemetrySink | None = None,
        clock: Callable[[], datetime] = datetime.now,
        log_restore: bool = True,
    ):
        """
        Open the memory store, restoring the previous session when it is recent.

        Args:
            config: Memory configuration (defaults to load_config())
            telemetry: Optional task telemetry sink
            clock: Time source
            log_restore: Log the restore report; pass False to inspect
                self.restore_report and report it yourself
        """
        self.config = config or load_config()
        snapshots = SnapshotStore.from_config(self.config)
        if self.config.background_writes:
            writer: SnapshotWriter = BackgroundSnapshotWriter(snapshots, self.config.write_queue_size)
        else:
            writer = SnapshotWriter(snapshots)

        self.store, self.restore_report = SessionStore.open(self.config, writer, clock)
        self.tasks = TaskRegistry(self.store, telemetry)
        self.detector = AutoTaskDetector()
        self.assembler = ContextAssembler(self.store, self.tasks)
        self.activity = ActivityAnalyzer(self.store)

        if log_restore:
            log_restore_report(self.restore_report, self.store)

    @property
    def session_id(self) -> str:
        return self.store.session.session_id

    # Session store -----------------------------------------------------------

    def record_turn(
        self,
        user_message: str,
        ai_response: str,
        tool_calls: Iterable[dict[str, Any]] | None = None,
    ) -> ConversationTurn:
        return self.store.record_turn(user_message, ai_response, tool_calls)

    def record_tool_call(self, tool_name: str, args: Any, result: Any) -> ToolCallRecord:
        return self.store.record_tool_call(tool_name, args, result)

    def record_action(
        self, action: str, details: dict[str, Any] | None = None, success: bool = True
    ) -> ActionRecord:
        return self.store.record_action(action, details, success)

    def set_intent(self, intent: str | None, goals: Iterable[str] | None = None) -> None:
        self.store.set_intent(intent, goals)

    def set_current_project(
        self, name: str, project_type: str = "", description: str = "", status: str = "in_progress"
    ) -> None:
        self.store.set_current_project(name, project_type, description, status)

    def record_edit_outcome(self, operation: str, file_path: str, accepted: bool) -> None:
        self.store.record_edit_outcome(operation, file_path, accepted)

    def seed_workspace(self, info: WorkspaceInfo | dict[str, Any]) -> None:
        self.store.seed_workspace(info)

    # Tasks -------------------------------------------------------------------

    def create_task(
        self,
        description: str,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        task_type: TaskType | str = TaskType.GENERAL,
        parent_task_id: str | None = None,
    ) -> str:
        return self.tasks.create_task(description, priority, task_type, parent_task_id)

    def update_task(self, task_id: str, **fields: Any) -> bool:
        return self.tasks.update_task(task_id, **fields)

    def complete_task(self, task_id: str, result: Any = None) -> bool:
        return self.tasks.complete_task(task_id, result)

    def get_progress(self) -> TaskProgress:
        return self.tasks.get_progress()

    def analyze_and_create_tasks(self, user_message: str) -> list[str]:
        """
        Create a task for every sentence the detector recognizes.

        Returns:
            Ids of the created tasks, in sentence order
        """
        return [
            self.tasks.create_task(candidate.description, candidate.priority, candidate.type)
            for candidate in self.detector.detect(user_message)
        ]

    # Context -----------------------------------------------------------------

    def get_context_for_ai(self) -> dict[str, Any]:
        """Bounded memory snapshot as plain data."""
        return self.assembler.build_snapshot().to_dict()

    def get_enhanced_system_prompt(self, base_prompt: str) -> str:
        """base_prompt with the session memory sections appended."""
        return self.assembler.render(base_prompt)

    # Lifecycle ---------------------------------------------------------------

    def close(self) -> None:
        """Wait for pending snapshot writes and stop the writer."""
        self.store.close()

    def __enter__(self) -> "SessionMemory":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

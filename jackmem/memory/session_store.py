"""
Session Store - conversation, tool and action history for one session.

Holds the Session and the WorkspaceContext in memory and writes both
snapshots after every mutation. Collections are bounded by dropping the
oldest entries on insert. Persistence failures are logged by the writer
and never surface here.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from jackmem.config import MemoryConfig
from jackmem.models import (
    ActionRecord,
    ConversationTurn,
    EditOutcome,
    ProjectInfo,
    Session,
    ToolCallRecord,
    ToolResult,
    TurnToolCall,
    WorkspaceContext,
    WorkspaceInfo,
    parse_tool_args,
)
from jackmem.persistence import (
    RestoreReport,
    SnapshotStore,
    SnapshotWriter,
    encode_snapshot,
    restore_context,
    restore_session,
)

logger = logging.getLogger(__name__)


def keep_newest(items: list, limit: int) -> list:
    """Keep the newest `limit` entries. A limit of zero or less keeps none."""
    if limit <= 0:
        return []
    if len(items) > limit:
        return items[-limit:]
    return items


class SessionStore:
    """
    In-memory session state with write-through persistence.

    One store per process. It is not thread-safe: the embedding
    application serializes calls through its own control flow.
    """

    def __init__(
        self,
        session: Session,
        context: WorkspaceContext,
        writer: SnapshotWriter,
        config: MemoryConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.context = context
        self.writer = writer
        self.config = config or MemoryConfig()
        self._clock = clock

    @classmethod
    def open(
        cls,
        config: MemoryConfig,
        writer: SnapshotWriter | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> tuple["SessionStore", RestoreReport]:
        """
        Restore the last session if it is fresh enough, otherwise start a new one.

        The workspace context (and with it the task lists) is restored
        regardless of session staleness.

        Args:
            config: Memory configuration
            writer: Snapshot writer (defaults to a synchronous writer)
            clock: Time source

        Returns:
            (store, report) where report says what happened to each snapshot
        """
        snapshots = SnapshotStore.from_config(config)
        session, session_diag = restore_session(snapshots, config.stale_after_seconds, now=clock())
        context, context_diag = restore_context(snapshots)
        if not session_diag.restored:
            session.start_time = session.last_activity = clock()

        # Honour caps even if the snapshot was written with larger ones
        session.conversation_history = keep_newest(
            session.conversation_history, config.max_conversation_turns
        )
        session.tool_call_chain = keep_newest(session.tool_call_chain, config.max_tool_calls)
        session.recent_actions = keep_newest(session.recent_actions, config.max_recent_actions)
        context.completed_tasks = keep_newest(context.completed_tasks, config.max_completed_tasks)

        store = cls(session, context, writer or SnapshotWriter(snapshots), config, clock)
        return store, RestoreReport(session=session_diag, context=context_diag)

    def now(self) -> datetime:
        return self._clock()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def persist(self) -> bool:
        """
        Refresh lastActivity and the summary, then hand both snapshots to the writer.

        Returns:
            False if a synchronous write failed (the in-memory state is kept)
        """
        self.session.last_activity = self.now()
        self.update_context_summary()
        return self.writer.submit(
            self.session.session_id,
            encode_snapshot(self.session.to_dict()),
            encode_snapshot(self.context.to_dict()),
        )

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_turn(
        self,
        user_message: str,
        ai_response: str,
        tool_calls: Iterable[dict[str, Any] | TurnToolCall] | None = None,
    ) -> ConversationTurn:
        """
        Append a conversation turn. Message bodies are stored verbatim.

        Args:
            user_message: Full user message
            ai_response: Full assistant response
            tool_calls: Tool invocations made during the turn, either as
                {"function": {"name", "arguments"}, "result"} or
                {"tool", "args", "result"} mappings

        Returns:
            The recorded turn
        """
        calls = [
            tc if isinstance(tc, TurnToolCall) else TurnToolCall.from_raw(tc)
            for tc in (tool_calls or [])
        ]
        turn = ConversationTurn(
            user_message=user_message,
            ai_response=ai_response,
            tool_calls=calls,
            timestamp=self.now(),
        )
        self.session.conversation_history.append(turn)
        self.session.conversation_history = keep_newest(
            self.session.conversation_history, self.config.max_conversation_turns
        )
        self.persist()
        return turn

    def record_tool_call(self, tool_name: str, args: Any, result: Any) -> ToolCallRecord:
        """
        Append a tool execution. Write tools mark their target file active.

        Args:
            tool_name: Name of the executed tool
            args: Tool arguments (mapping, JSON string or typed payload)
            result: Tool result; a mapping with a truthy "error" marks failure

        Returns:
            The recorded tool call
        """
        record = ToolCallRecord(
            tool=tool_name,
            args=parse_tool_args(tool_name, args),
            result=ToolResult.from_raw(result),
            timestamp=self.now(),
        )
        self.session.tool_call_chain.append(record)
        self.session.tool_call_chain = keep_newest(self.session.tool_call_chain, self.config.max_tool_calls)

        if tool_name in self.config.write_tools and record.args.target_path:
            self.session.active_files.add(record.args.target_path)

        self.persist()
        return record

    def record_action(
        self,
        action: str,
        details: dict[str, Any] | None = None,
        success: bool = True,
    ) -> ActionRecord:
        """Append an action record and persist."""
        record = ActionRecord(
            action=action,
            details=details or {},
            success=success,
            timestamp=self.now(),
        )
        self.session.recent_actions.append(record)
        self.session.recent_actions = keep_newest(self.session.recent_actions, self.config.max_recent_actions)
        self.persist()
        return record

    def set_intent(self, intent: str | None, goals: Iterable[str] | None = None) -> None:
        """Overwrite the user's intent and goals."""
        self.session.user_intent = intent
        self.session.project_goals = list(goals or [])
        self.record_action("user_intent_set", {"intent": intent, "goals": self.session.project_goals})

    def set_current_project(
        self,
        name: str,
        project_type: str = "",
        description: str = "",
        status: str = "in_progress",
    ) -> ProjectInfo:
        """Record the project the user is working on."""
        project = ProjectInfo(
            name=name,
            type=project_type,
            description=description,
            status=status or "in_progress",
            started_at=self.now(),
        )
        self.session.current_project = project
        self.record_action(
            "project_started",
            {"name": name, "type": project_type, "description": description, "status": project.status},
        )
        return project

    def record_edit_outcome(self, operation: str, file_path: str, accepted: bool) -> EditOutcome:
        """Record whether the user accepted or rejected a proposed file operation."""
        outcome = EditOutcome(
            operation=operation,
            file_path=file_path,
            accepted=accepted,
            timestamp=self.now(),
        )
        self.context.recent_edits.append(outcome)
        self.context.recent_edits = keep_newest(self.context.recent_edits, self.config.max_recent_edits)
        self.record_action(
            "edit_accepted" if accepted else "edit_rejected",
            {"operation": operation, "filePath": file_path},
            success=accepted,
        )
        return outcome

    def seed_workspace(self, info: WorkspaceInfo | dict[str, Any]) -> None:
        """Take the workspace scanner's findings."""
        if isinstance(info, dict):
            info = WorkspaceInfo.from_dict(info)
        self.context.workspace = info
        logger.debug(f"Workspace seeded: {info.type} ({info.language})")
        self.persist()

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def recent_active_files(self, limit: int = 5) -> list[str]:
        """
        Active files, most recently written first.

        Recency comes from the tool call chain; files whose write has
        aged out of the chain follow in sorted order.
        """
        ordered: list[str] = []
        for record in reversed(self.session.tool_call_chain):
            path = record.args.target_path
            if path and path in self.session.active_files and path not in ordered:
                ordered.append(path)
                if len(ordered) >= limit:
                    return ordered
        for path in sorted(self.session.active_files):
            if path not in ordered:
                ordered.append(path)
                if len(ordered) >= limit:
                    break
        return ordered

    def update_context_summary(self) -> str:
        """Recompute the short summary string cached on the session."""
        workspace = self.context.workspace
        lines = [f"Current workspace: {workspace.type} ({workspace.language})"]

        project = self.session.current_project
        if project:
            lines.append(f"Active project: {project.name} - {project.description}")

        if self.session.user_intent:
            lines.append(f"User intent: {self.session.user_intent}")

        if self.session.active_files:
            lines.append(f"Recently modified files: {', '.join(self.recent_active_files(5))}")

        recent_tools = self.session.tool_call_chain[-10:]
        if recent_tools:
            glyphs = ", ".join(f"{t.tool}({'✓' if t.success else '✗'})" for t in recent_tools)
            lines.append(f"Recent tools: {glyphs}")

        self.session.context_summary = "\n".join(lines)
        return self.session.context_summary

    def session_duration_minutes(self) -> int:
        return round((self.now() - self.session.start_time).total_seconds() / 60)

    def session_duration(self) -> str:
        """Session age as '<minutes>m'."""
        return f"{self.session_duration_minutes()}m"

    def close(self) -> None:
        """Flush pending writes and stop the writer."""
        self.writer.flush()
        self.writer.close()

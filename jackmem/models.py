"""
Jackmem Models

Dataclasses for everything the memory engine records and persists.
Designed for:
- Type safety with enums and typed tool payloads
- Lossless round-tripping through the JSON snapshots
- Datetimes in memory, ISO strings on disk
"""

from __future__ import annotations

import itertools
import json
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Union

from jackmem.state import TaskPriority, TaskStatus, coerce_priority, coerce_status


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

_BASE36 = string.digits + string.ascii_lowercase
_action_counter = itertools.count(1)


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def generate_session_id() -> str:
    """Generate a new session id: session_<epoch ms>_<9 base36 chars>."""
    return f"session_{_epoch_ms()}_{_random_suffix(9)}"


def generate_task_id() -> str:
    """Generate a task id candidate: task_<epoch ms>_<6 base36 chars>."""
    return f"task_{_epoch_ms()}_{_random_suffix(6)}"


def generate_action_id() -> str:
    """Generate an action id, unique within the process."""
    return f"action_{_epoch_ms()}_{next(_action_counter)}"


def generate_turn_id() -> str:
    """Generate a conversation turn id."""
    return f"turn_{_epoch_ms()}_{_random_suffix(4)}"


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO datetime string (a trailing Z is accepted)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    # Snapshots written by other tools may carry an offset; we compare naive local times
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_datetime(value: datetime | None) -> str | None:
    """Format a datetime as ISO string, passing None through."""
    return value.isoformat() if value is not None else None


def truncate(text: str, limit: int) -> str:
    """Hard-truncate text to limit characters, marking the cut with '...'."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


# ============================================================================
# TOOL PAYLOADS - typed arguments per known tool, generic fallback
# ============================================================================


def _first_str(values: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = values.get(key)
        if isinstance(value, str) and value:
            return value
    return None


_PATH_KEYS = ("filePath", "file_path", "path")


def _take_path(values: dict[str, Any]) -> tuple[str | None, str, dict[str, Any]]:
    """Split off the path entry: (key it came from, path, remaining values)."""
    path_key = next((k for k in _PATH_KEYS if _first_str(values, k)), None)
    if path_key is None:
        return None, "", dict(values)
    return path_key, values[path_key], {k: v for k, v in values.items() if k != path_key}


def _split(values: dict[str, Any], typed: dict[str, type]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Pull out keys whose value has the expected type; the rest is kept as extra."""
    taken: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in values.items():
        if key in typed and isinstance(value, typed[key]):
            taken[key] = value
        else:
            extra[key] = value
    return taken, extra


def _present(**fields: Any) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


# Typed payloads keep the key names and fields of the mapping they were
# parsed from, so to_dict() gives that mapping back.


@dataclass
class WriteFileArgs:
    """Arguments of write_file: full-file create/replace or append."""

    tool: ClassVar[str] = "write_file"

    file_path: str
    content: str | None = None
    mode: str | None = None  # overwrite or append; None when not given
    path_key: str | None = "filePath"
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def target_path(self) -> str | None:
        return self.file_path or None

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> WriteFileArgs:
        path_key, file_path, rest = _take_path(values)
        taken, extra = _split(rest, {"content": str, "mode": str})
        return cls(
            file_path=file_path,
            content=taken.get("content"),
            mode=taken.get("mode"),
            path_key=path_key,
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        data = {self.path_key: self.file_path} if self.path_key else {}
        return {**data, **_present(content=self.content, mode=self.mode), **self.extra}


@dataclass
class SurgicalEditArgs:
    """Arguments of surgical_edit: targeted in-place change of one file."""

    tool: ClassVar[str] = "surgical_edit"

    file_path: str
    path_key: str | None = "filePath"
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def target_path(self) -> str | None:
        return self.file_path or None

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> SurgicalEditArgs:
        path_key, file_path, rest = _take_path(values)
        return cls(file_path=file_path, path_key=path_key, extra=rest)

    def to_dict(self) -> dict[str, Any]:
        data = {self.path_key: self.file_path} if self.path_key else {}
        return {**data, **self.extra}


@dataclass
class ReadFileArgs:
    """Arguments of read_file."""

    tool: ClassVar[str] = "read_file"

    file_path: str
    path_key: str | None = "filePath"
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def target_path(self) -> str | None:
        return self.file_path or None

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> ReadFileArgs:
        path_key, file_path, rest = _take_path(values)
        return cls(file_path=file_path, path_key=path_key, extra=rest)

    def to_dict(self) -> dict[str, Any]:
        data = {self.path_key: self.file_path} if self.path_key else {}
        return {**data, **self.extra}


@dataclass
class ExecuteCommandArgs:
    """Arguments of execute_command."""

    tool: ClassVar[str] = "execute_command"

    command: str | None = None
    cwd: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def target_path(self) -> str | None:
        return None

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> ExecuteCommandArgs:
        taken, extra = _split(values, {"command": str, "cwd": str})
        return cls(command=taken.get("command"), cwd=taken.get("cwd"), extra=extra)

    def to_dict(self) -> dict[str, Any]:
        return {**_present(command=self.command, cwd=self.cwd), **self.extra}


@dataclass
class GitOperationArgs:
    """Arguments of git_operation."""

    tool: ClassVar[str] = "git_operation"

    operation: str | None = None
    args: list[str] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def target_path(self) -> str | None:
        return None

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> GitOperationArgs:
        taken, extra = _split(values, {"operation": str, "args": list})
        args = taken.get("args")
        if args is not None and not all(isinstance(a, str) for a in args):
            extra["args"] = args
            args = None
        return cls(operation=taken.get("operation"), args=args, extra=extra)

    def to_dict(self) -> dict[str, Any]:
        return {**_present(operation=self.operation, args=self.args), **self.extra}


@dataclass
class GenericToolArgs:
    """Arguments of a tool without a dedicated schema."""

    values: dict[str, Any] = field(default_factory=dict)

    @property
    def target_path(self) -> str | None:
        return _first_str(self.values, *_PATH_KEYS)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.values)


ToolArgs = Union[
    WriteFileArgs,
    SurgicalEditArgs,
    ReadFileArgs,
    ExecuteCommandArgs,
    GitOperationArgs,
    GenericToolArgs,
]

TOOL_ARG_TYPES: dict[str, Any] = {
    cls.tool: cls
    for cls in (WriteFileArgs, SurgicalEditArgs, ReadFileArgs, ExecuteCommandArgs, GitOperationArgs)
}


def parse_tool_args(tool_name: str, raw: Any) -> ToolArgs:
    """
    Parse raw tool arguments into the typed payload for tool_name.

    Models often send arguments as a JSON string; those are decoded first.
    Anything that is not a mapping ends up in GenericToolArgs under "value".
    """
    if isinstance(raw, (GenericToolArgs, *TOOL_ARG_TYPES.values())):
        return raw
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            decoded = None
        raw = decoded if isinstance(decoded, dict) else ({"value": raw} if raw else {})
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return GenericToolArgs({"value": raw})

    arg_type = TOOL_ARG_TYPES.get(tool_name)
    if arg_type is None:
        return GenericToolArgs(dict(raw))
    return arg_type.from_mapping(raw)


@dataclass
class ToolResult:
    """Result of a tool execution. A truthy "error" entry marks failure."""

    output: Any = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return not self.error

    @classmethod
    def from_raw(cls, raw: Any) -> ToolResult:
        if isinstance(raw, ToolResult):
            return raw
        if isinstance(raw, dict) and raw.get("error"):
            return cls(output=raw, error=str(raw["error"]))
        return cls(output=raw)

    def to_dict(self) -> Any:
        return self.output

    def preview(self, limit: int = 100) -> str:
        """Short text form of the output for prompts."""
        if self.output is None:
            return ""
        if isinstance(self.output, str):
            text = self.output
        else:
            text = json.dumps(self.output, default=str, ensure_ascii=False)
        return truncate(text, limit)


# ============================================================================
# SESSION ENTITIES
# ============================================================================


@dataclass
class ProjectInfo:
    """The project the user is currently working on."""

    name: str
    type: str = ""
    description: str = ""
    status: str = "in_progress"
    started_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "status": self.status,
            "startedAt": format_datetime(self.started_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectInfo:
        return cls(
            name=data.get("name", ""),
            type=data.get("type", ""),
            description=data.get("description", ""),
            status=data.get("status", "in_progress"),
            started_at=parse_datetime(data.get("startedAt")) or datetime.now(),
        )


@dataclass
class TurnToolCall:
    """A tool invocation made during a conversation turn."""

    tool: str
    args: ToolArgs
    result: ToolResult

    @property
    def success(self) -> bool:
        return self.result.success

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> TurnToolCall:
        """Accept both {"function": {"name", "arguments"}} and {"tool", "args"} shapes."""
        function = raw.get("function") or {}
        tool = function.get("name") or raw.get("tool") or ""
        args = function.get("arguments") if function.get("arguments") is not None else raw.get("args")
        return cls(
            tool=tool,
            args=parse_tool_args(tool, args),
            result=ToolResult.from_raw(raw.get("result")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "args": self.args.to_dict(),
            "result": self.result.to_dict(),
            "success": self.success,
        }


@dataclass
class ConversationTurn:
    """One user message and the assistant's reply, stored verbatim."""

    user_message: str
    ai_response: str
    tool_calls: list[TurnToolCall] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)
    turn_id: str = field(default_factory=generate_turn_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": format_datetime(self.timestamp),
            "userMessage": self.user_message,
            "aiResponse": self.ai_response,
            "toolCalls": [tc.to_dict() for tc in self.tool_calls],
            "turnId": self.turn_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationTurn:
        return cls(
            user_message=data.get("userMessage", ""),
            ai_response=data.get("aiResponse", ""),
            tool_calls=[TurnToolCall.from_raw(tc) for tc in data.get("toolCalls", [])],
            timestamp=parse_datetime(data.get("timestamp")) or datetime.now(),
            turn_id=data.get("turnId") or generate_turn_id(),
        )


@dataclass
class ToolCallRecord:
    """A tool execution reported by the tool executor."""

    tool: str
    args: ToolArgs
    result: ToolResult
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def success(self) -> bool:
        return self.result.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": format_datetime(self.timestamp),
            "tool": self.tool,
            "args": self.args.to_dict(),
            "result": self.result.to_dict(),
            "success": self.success,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolCallRecord:
        tool = data.get("tool", "")
        return cls(
            tool=tool,
            args=parse_tool_args(tool, data.get("args")),
            result=ToolResult.from_raw(data.get("result")),
            timestamp=parse_datetime(data.get("timestamp")) or datetime.now(),
        )


@dataclass
class ActionRecord:
    """A notable event in the session (task created, intent set, ...)."""

    action: str
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=generate_action_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": format_datetime(self.timestamp),
            "action": self.action,
            "details": self.details,
            "success": self.success,
            "id": self.id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionRecord:
        details = data.get("details")
        return cls(
            action=data.get("action", ""),
            details=details if isinstance(details, dict) else {"value": details},
            success=bool(data.get("success", True)),
            timestamp=parse_datetime(data.get("timestamp")) or datetime.now(),
            id=data.get("id") or generate_action_id(),
        )


@dataclass
class Session:
    """Root record of one interactive run."""

    session_id: str = field(default_factory=generate_session_id)
    start_time: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)
    conversation_history: list[ConversationTurn] = field(default_factory=list)
    tool_call_chain: list[ToolCallRecord] = field(default_factory=list)
    recent_actions: list[ActionRecord] = field(default_factory=list)
    active_files: set[str] = field(default_factory=set)
    user_intent: str | None = None
    project_goals: list[str] = field(default_factory=list)
    current_project: ProjectInfo | None = None
    context_summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "startTime": format_datetime(self.start_time),
            "lastActivity": format_datetime(self.last_activity),
            "conversationHistory": [t.to_dict() for t in self.conversation_history],
            "currentProject": self.current_project.to_dict() if self.current_project else None,
            "activeFiles": sorted(self.active_files),
            "toolCallChain": [t.to_dict() for t in self.tool_call_chain],
            "userIntent": self.user_intent,
            "projectGoals": list(self.project_goals),
            "recentActions": [a.to_dict() for a in self.recent_actions],
            "contextSummary": self.context_summary,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        """Build a Session from snapshot data. Raises KeyError/ValueError/TypeError on bad shape."""
        project = data.get("currentProject")
        return cls(
            session_id=data["sessionId"],
            start_time=parse_datetime(data.get("startTime")) or datetime.now(),
            last_activity=parse_datetime(data["lastActivity"]),
            conversation_history=[
                ConversationTurn.from_dict(t) for t in data.get("conversationHistory") or []
            ],
            tool_call_chain=[ToolCallRecord.from_dict(t) for t in data.get("toolCallChain") or []],
            recent_actions=[ActionRecord.from_dict(a) for a in data.get("recentActions") or []],
            active_files=set(data.get("activeFiles") or []),
            user_intent=data.get("userIntent"),
            project_goals=list(data.get("projectGoals") or []),
            current_project=ProjectInfo.from_dict(project) if project else None,
            context_summary=data.get("contextSummary", ""),
        )


# ============================================================================
# TASK ENTITIES
# ============================================================================


@dataclass
class TaskToolUse:
    """A tool correlated with a task."""

    tool: str
    args: Any = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {"tool": self.tool, "args": self.args, "timestamp": format_datetime(self.timestamp)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskToolUse:
        return cls(
            tool=data.get("tool", ""),
            args=data.get("args"),
            timestamp=parse_datetime(data.get("timestamp")) or datetime.now(),
        )


@dataclass
class TaskNote:
    """A free-text note attached to a task."""

    note: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {"note": self.note, "timestamp": format_datetime(self.timestamp)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskNote:
        return cls(
            note=data.get("note", ""),
            timestamp=parse_datetime(data.get("timestamp")) or datetime.now(),
        )


@dataclass
class Task:
    """A unit of user-intended work."""

    id: str
    description: str
    type: str = "general"
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    progress: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    estimated_duration: int | None = None  # minutes
    actual_duration: int | None = None  # minutes
    parent_task_id: str | None = None
    subtasks: list[str] = field(default_factory=list)
    related_files: list[str] = field(default_factory=list)
    tools_used: list[TaskToolUse] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    notes: list[TaskNote] = field(default_factory=list)
    result: Any = None

    def elapsed_minutes(self, now: datetime | None = None) -> int:
        """Whole minutes since creation, rounded."""
        now = now or datetime.now()
        return round((now - self.created_at).total_seconds() / 60)

    def set_progress(self, value: int) -> None:
        """Clamp progress to 0..99; only completion reaches 100."""
        self.progress = max(0, min(int(value), 99))

    def mark_completed(self, result: Any = None, now: datetime | None = None) -> None:
        now = now or datetime.now()
        self.status = TaskStatus.COMPLETED
        self.progress = 100
        self.completed_at = now
        self.updated_at = now
        if self.actual_duration is None:
            self.actual_duration = self.elapsed_minutes(now)
        if result is not None:
            self.result = result

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "type": self.type,
            "priority": self.priority.value,
            "status": self.status.value,
            "progress": self.progress,
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
            "completedAt": format_datetime(self.completed_at),
            "estimatedDuration": self.estimated_duration,
            "actualDuration": self.actual_duration,
            "parentTaskId": self.parent_task_id,
            "subtasks": list(self.subtasks),
            "relatedFiles": list(self.related_files),
            "toolsUsed": [t.to_dict() for t in self.tools_used],
            "dependencies": list(self.dependencies),
            "notes": [n.to_dict() for n in self.notes],
            "result": self.result,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        return cls(
            id=data["id"],
            description=data.get("description", ""),
            type=data.get("type", "general"),
            priority=coerce_priority(data.get("priority", "medium")),
            status=coerce_status(data.get("status", "pending")),
            progress=int(data.get("progress", 0)),
            created_at=parse_datetime(data.get("createdAt")) or datetime.now(),
            updated_at=parse_datetime(data.get("updatedAt")) or datetime.now(),
            completed_at=parse_datetime(data.get("completedAt")),
            estimated_duration=data.get("estimatedDuration"),
            actual_duration=data.get("actualDuration"),
            parent_task_id=data.get("parentTaskId"),
            subtasks=list(data.get("subtasks") or []),
            related_files=list(data.get("relatedFiles") or []),
            tools_used=[TaskToolUse.from_dict(t) for t in data.get("toolsUsed") or []],
            dependencies=list(data.get("dependencies") or []),
            notes=[TaskNote.from_dict(n) for n in data.get("notes") or []],
            result=data.get("result"),
        )


# ============================================================================
# WORKSPACE ENTITIES
# ============================================================================


@dataclass
class EditOutcome:
    """Outcome of a proposed file operation from the approval flow."""

    operation: str
    file_path: str
    accepted: bool
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "filePath": self.file_path,
            "accepted": self.accepted,
            "timestamp": format_datetime(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditOutcome:
        return cls(
            operation=data.get("operation", ""),
            file_path=data.get("filePath", ""),
            accepted=bool(data.get("accepted", False)),
            timestamp=parse_datetime(data.get("timestamp")) or datetime.now(),
        )


@dataclass
class WorkspaceInfo:
    """What the workspace scanner found at startup."""

    type: str = "unknown"
    language: str = "unknown"
    framework: str = "unknown"
    structure: dict[str, Any] = field(default_factory=dict)
    dependencies: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "language": self.language,
            "framework": self.framework,
            "structure": self.structure,
            "dependencies": self.dependencies,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkspaceInfo:
        return cls(
            type=data.get("type") or "unknown",
            language=data.get("language") or "unknown",
            framework=data.get("framework") or "unknown",
            structure=dict(data.get("structure") or {}),
            dependencies=dict(data.get("dependencies") or {}),
        )


@dataclass
class WorkspaceContext:
    """Workspace facts and the task lists."""

    workspace: WorkspaceInfo = field(default_factory=WorkspaceInfo)
    recent_edits: list[EditOutcome] = field(default_factory=list)
    build_status: str = "unknown"
    current_tasks: list[Task] = field(default_factory=list)
    completed_tasks: list[Task] = field(default_factory=list)
    known_issues: list[str] = field(default_factory=list)
    user_preferences: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspace": self.workspace.to_dict(),
            "recentEdits": [e.to_dict() for e in self.recent_edits],
            "buildStatus": self.build_status,
            "currentTasks": [t.to_dict() for t in self.current_tasks],
            "completedTasks": [t.to_dict() for t in self.completed_tasks],
            "knownIssues": list(self.known_issues),
            "userPreferences": dict(self.user_preferences),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkspaceContext:
        """Build from snapshot data. Raises KeyError/ValueError/TypeError on bad shape."""
        return cls(
            workspace=WorkspaceInfo.from_dict(data.get("workspace") or {}),
            recent_edits=[EditOutcome.from_dict(e) for e in data.get("recentEdits") or []],
            build_status=data.get("buildStatus", "unknown"),
            current_tasks=[Task.from_dict(t) for t in data.get("currentTasks") or []],
            completed_tasks=[Task.from_dict(t) for t in data.get("completedTasks") or []],
            known_issues=list(data.get("knownIssues") or []),
            user_preferences=dict(data.get("userPreferences") or {}),
        )

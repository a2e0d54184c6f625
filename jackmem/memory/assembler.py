"""
Context Assembler - bounded memory snapshot for prompt injection.

build_snapshot() selects the recent slices of session and task state;
render() turns them into prose sections appended to a base system prompt.
Long values are hard-truncated at fixed lengths to keep the prompt small.
"""

from dataclasses import dataclass, field
from typing import Any

from jackmem.memory.session_store import SessionStore
from jackmem.memory.task_registry import TaskProgress, TaskRegistry
from jackmem.models import (
    ActionRecord,
    ConversationTurn,
    ProjectInfo,
    Task,
    ToolCallRecord,
    WorkspaceInfo,
    truncate,
)
from jackmem.state import TaskStatus

RECENT_ACTIONS = 5
RECENT_TOOL_CALLS = 10
RECENT_TURNS = 3
ACTIVE_TASKS = 5
RECENTLY_COMPLETED = 3
RENDERED_FILES = 10

TURN_TEXT_LIMIT = 150
TASK_TEXT_LIMIT = 100
COMPLETED_TEXT_LIMIT = 80
TOOL_RESULT_LIMIT = 100
ACTION_DETAIL_LIMIT = 100

STATUS_ICONS = {
    TaskStatus.COMPLETED: "✅",
    TaskStatus.IN_PROGRESS: "🔄",
    TaskStatus.BLOCKED: "🚫",
}

GUIDELINES = [
    "Remember your previous work and build upon it coherently",
    "Reference what you've already created when suggesting modifications",
    "Maintain context between tool calls and conversations",
    "Stay focused on active tasks and track your progress",
    "Update task status as you complete work",
    "Link files and tools to relevant tasks to maintain correlation",
    "Ask clarifying questions if you've lost context about the project",
    "Use verbose, detailed descriptions when proposing edits",
    "Never run inappropriate commands (like pytest on HTML projects)",
    "Always consider workspace type and project context before suggesting tools",
]


@dataclass
class ContextSnapshot:
    """Everything the model gets to see about the session, already bounded."""

    session_id: str  # short form
    duration: str
    summary: str
    workspace: WorkspaceInfo
    current_project: ProjectInfo | None = None
    user_intent: str | None = None
    recent_actions: list[ActionRecord] = field(default_factory=list)
    recent_tool_calls: list[ToolCallRecord] = field(default_factory=list)
    conversation: list[ConversationTurn] = field(default_factory=list)
    active_files: list[str] = field(default_factory=list)
    active_tasks: list[Task] = field(default_factory=list)
    progress: TaskProgress = field(default_factory=TaskProgress)
    recently_completed: list[Task] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form with the same truncation the prompt uses for tasks."""
        return {
            "sessionInfo": {
                "sessionId": self.session_id,
                "duration": self.duration,
                "summary": self.summary,
            },
            "workspace": self.workspace.to_dict(),
            "currentProject": self.current_project.to_dict() if self.current_project else None,
            "userIntent": self.user_intent,
            "recentActions": [a.to_dict() for a in self.recent_actions],
            "recentToolCalls": [t.to_dict() for t in self.recent_tool_calls],
            "activeFiles": list(self.active_files),
            "conversationContext": [t.to_dict() for t in self.conversation],
            "activeTasks": [
                {
                    "id": t.id,
                    "type": t.type,
                    "status": t.status.value,
                    "description": truncate(t.description, TASK_TEXT_LIMIT),
                    "progress": t.progress,
                }
                for t in self.active_tasks
            ],
            "taskProgress": self.progress.to_dict(),
            "recentlyCompleted": [
                {"id": t.id, "type": t.type, "description": truncate(t.description, COMPLETED_TEXT_LIMIT)}
                for t in self.recently_completed
            ],
        }


def _format_details(details: dict[str, Any]) -> str:
    text = ", ".join(f"{key}={value}" for key, value in details.items())
    return truncate(text, ACTION_DETAIL_LIMIT)


class ContextAssembler:
    """Builds and renders the memory context for the model."""

    def __init__(self, store: SessionStore, registry: TaskRegistry):
        self.store = store
        self.registry = registry

    def build_snapshot(self) -> ContextSnapshot:
        """Collect the bounded view. Refreshes the summary cache, nothing else."""
        session = self.store.session
        completed = [
            t for t in self.store.context.completed_tasks if t.status == TaskStatus.COMPLETED
        ]
        return ContextSnapshot(
            session_id=session.session_id[-9:],
            duration=self.store.session_duration(),
            summary=self.store.update_context_summary(),
            workspace=self.store.context.workspace,
            current_project=session.current_project,
            user_intent=session.user_intent,
            recent_actions=session.recent_actions[-RECENT_ACTIONS:],
            recent_tool_calls=session.tool_call_chain[-RECENT_TOOL_CALLS:],
            conversation=session.conversation_history[-RECENT_TURNS:],
            active_files=self.store.recent_active_files(len(session.active_files)),
            active_tasks=self.registry.current_tasks()[-ACTIVE_TASKS:],
            progress=self.registry.get_progress(),
            recently_completed=completed[-RECENTLY_COMPLETED:],
        )

    def render(self, base_prompt: str) -> str:
        """Append the memory sections to base_prompt."""
        snap = self.build_snapshot()
        lines = [base_prompt, ""]

        lines.append("## 🧠 SESSION MEMORY & CONTEXT AWARENESS")
        lines.append(
            "You have persistent memory of this conversation session. Remember what you've built, "
            "what the user is working on, and maintain context across tool chains."
        )
        lines.append("")
        lines.append(f"**Session:** {snap.session_id} ({snap.duration})")
        lines.append(f"**Context:** {snap.summary}")
        lines.append("")

        if snap.current_project:
            lines.append(f"**Current Project:** {snap.current_project.name} ({snap.current_project.type})")
            lines.append(f"**Description:** {snap.current_project.description}")
            lines.append("")

        if snap.user_intent:
            lines.append(f"**User Intent:** {snap.user_intent}")
            lines.append("")

        if snap.recent_actions:
            lines.append("**Recent Actions:**")
            for action in snap.recent_actions:
                icon = "✅" if action.success else "❌"
                lines.append(f"- {icon} {action.action}: {_format_details(action.details)}")
            lines.append("")

        if snap.recent_tool_calls:
            lines.append("**Recent Tool Executions:**")
            for call in snap.recent_tool_calls:
                icon = "✅" if call.success else "❌"
                lines.append(f"- {icon} {call.tool}: {call.result.preview(TOOL_RESULT_LIMIT)}")
            lines.append("")

        files = snap.active_files[:RENDERED_FILES]
        if files:
            lines.append("**Active Files:**")
            lines.extend(f"- {path}" for path in files)
            lines.append("")

        if snap.conversation:
            lines.append("**Recent Conversation:**")
            for turn in snap.conversation:
                lines.append(f"- User: {truncate(turn.user_message, TURN_TEXT_LIMIT)}")
                lines.append(f"- AI: {truncate(turn.ai_response, TURN_TEXT_LIMIT)}")
            lines.append("")

        if snap.active_tasks:
            lines.append("**Active Tasks:**")
            for task in snap.active_tasks:
                icon = STATUS_ICONS.get(task.status, "⏳")
                description = truncate(task.description, TASK_TEXT_LIMIT)
                lines.append(f"- {icon} [{task.type}] {description} ({task.progress}%)")
            progress = snap.progress
            lines.append(
                f"- **Progress**: {progress.completed}/{progress.total} completed "
                f"({progress.completion_rate}%)"
            )
            lines.append("")

        if snap.recently_completed:
            lines.append("**Recently Completed:**")
            for task in snap.recently_completed:
                lines.append(f"- ✅ [{task.type}] {truncate(task.description, COMPLETED_TEXT_LIMIT)}")
            lines.append("")

        lines.append("## 🎯 MEMORY & TASK GUIDELINES")
        lines.extend(f"- {rule}" for rule in GUIDELINES)
        lines.append("")

        return "\n".join(lines) + "\n"

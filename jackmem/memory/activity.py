"""
Activity analysis over the tool call chain.

Read-only views used by the approval UI and the status commands: tool
statistics, a recent-activity feed, and per-file relevance, history and
edit context.
"""

import json
import re
from collections import Counter
from pathlib import PurePath
from typing import Any

from jackmem.memory.session_store import SessionStore, keep_newest
from jackmem.models import ToolCallRecord, format_datetime

FILE_ROLES = {
    "index.html": "main_entry_point",
    "package.json": "project_config",
    "pyproject.toml": "project_config",
    "README.md": "documentation",
}
EXTENSION_ROLES = {
    ".css": "styling",
    ".js": "functionality",
    ".ts": "functionality",
    ".py": "functionality",
    ".json": "data_config",
}


def _mentions(record: ToolCallRecord, file_path: str) -> bool:
    args = json.dumps(record.args.to_dict(), default=str)
    result = record.result.to_dict()
    result_text = result if isinstance(result, str) else json.dumps(result, default=str)
    return file_path in args or file_path in result_text


def file_role(file_path: str) -> str:
    """Rough role of a file in the project, from its name."""
    path = PurePath(file_path)
    if path.name in FILE_ROLES:
        return FILE_ROLES[path.name]
    return EXTENSION_ROLES.get(path.suffix, "supporting_file")


def analyze_content(content: str, file_path: str) -> dict[str, Any]:
    """Cheap structural counts for a file body."""
    suffix = PurePath(file_path).suffix
    analysis: dict[str, Any] = {
        "characterCount": len(content),
        "lineCount": len(content.split("\n")),
        "isEmpty": not content.strip(),
    }
    if suffix in (".js", ".ts"):
        analysis["functions"] = len(re.findall(r"function\s+\w+|const\s+\w+\s*=\s*\(", content))
        analysis["imports"] = len(re.findall(r"import\s+.*from|require\(", content))
        analysis["hasAsyncCode"] = "async" in content or "await" in content
    elif suffix == ".py":
        analysis["functions"] = len(re.findall(r"^\s*(?:async\s+)?def\s+\w+", content, re.MULTILINE))
        analysis["classes"] = len(re.findall(r"^\s*class\s+\w+", content, re.MULTILINE))
        analysis["imports"] = len(re.findall(r"^\s*(?:import|from)\s+\w+", content, re.MULTILINE))
    elif suffix == ".html":
        analysis["elements"] = len(re.findall(r"<[^/][^>]*>", content))
        analysis["scripts"] = content.count("<script")
        analysis["stylesheets"] = len(re.findall(r"<link.*stylesheet", content))
    elif suffix == ".css":
        analysis["rules"] = len(re.findall(r"[^}]*{[^}]*}", content))
    return analysis


def workspace_impact(file_path: str) -> dict[str, Any]:
    """How far a change to file_path is likely to reach."""
    path = PurePath(file_path)
    impact: dict[str, Any] = {"scope": "file_level", "affectedSystems": []}

    if path.name in ("package.json", "pyproject.toml", "requirements.txt"):
        impact["scope"] = "project_level"
        impact["affectedSystems"] += ["dependency_management", "build_system"]
    elif path.name == "index.html":
        impact["scope"] = "application_level"
        impact["affectedSystems"] += ["user_interface", "application_structure"]

    if path.suffix in (".js", ".ts", ".py"):
        impact["affectedSystems"].append("application_logic")
        if "server" in path.name or "app" in path.name:
            impact["scope"] = "system_level"

    return impact


class ActivityAnalyzer:
    """Statistics and per-file views over a session store."""

    def __init__(self, store: SessionStore):
        self.store = store

    def tool_call_stats(self) -> dict[str, Any]:
        chain = self.store.session.tool_call_chain
        counts = Counter(record.tool for record in chain)
        successful = sum(1 for record in chain if record.success)
        return {
            "totalCalls": len(chain),
            "successfulCalls": successful,
            "successRate": round(successful / len(chain) * 100, 1) if chain else 0.0,
            "toolCounts": dict(counts),
            "mostUsedTools": counts.most_common(10),
            "uniqueTools": len(counts),
        }

    def recent_activity(self, limit: int = 50) -> dict[str, list[dict[str, Any]]]:
        session = self.store.session
        return {
            "toolCalls": [record.to_dict() for record in keep_newest(session.tool_call_chain, limit)],
            "recentActions": [action.to_dict() for action in keep_newest(session.recent_actions, limit)],
        }

    def file_relevance(self, file_path: str) -> dict[str, Any]:
        recent = self.store.session.tool_call_chain[-10:]
        return {
            "recentlyModified": file_path in self.store.session.active_files,
            "relatedToolCalls": sum(1 for record in recent if _mentions(record, file_path)),
            "projectRole": file_role(file_path),
        }

    def file_history(self, file_path: str, limit: int = 3) -> list[dict[str, Any]]:
        """Most recent write calls that touched file_path, oldest first."""
        write_tools = self.store.config.write_tools
        history = [
            record
            for record in self.store.session.tool_call_chain
            if record.tool in write_tools and record.args.target_path == file_path
        ]
        return [
            {
                "timestamp": format_datetime(record.timestamp),
                "success": record.success,
                "summary": f"{record.tool} - {'successful' if record.success else 'failed'}",
            }
            for record in keep_newest(history, limit)
        ]

    def edit_context(self, operation: str, file_path: str, content: str | None = None) -> dict[str, Any]:
        """Everything the approval UI shows next to a proposed edit."""
        path = PurePath(file_path)
        context: dict[str, Any] = {
            "fileInfo": {
                "path": file_path,
                "size": len(content) if content else 0,
                "lines": len(content.split("\n")) if content else 0,
                "type": path.suffix.lstrip(".") or "unknown",
            },
            "operationDetails": {
                "operation": operation,
                "timestamp": format_datetime(self.store.now()),
                "contextualRelevance": self.file_relevance(file_path),
            },
            "workspaceImpact": workspace_impact(file_path),
            "previousHistory": self.file_history(file_path),
        }
        if content:
            context["contentAnalysis"] = analyze_content(content, file_path)
        return context

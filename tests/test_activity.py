"""Tests for activity analysis over the tool call chain."""

import pytest

from jackmem.memory.activity import ActivityAnalyzer, analyze_content, file_role, workspace_impact


@pytest.fixture
def activity(memory):
    memory.record_tool_call("write_file", {"filePath": "src/app.js", "content": "x"}, {"success": True})
    memory.record_tool_call("read_file", {"filePath": "src/app.js"}, {"content": "x"})
    memory.record_tool_call("write_file", {"filePath": "src/app.js"}, {"error": "denied"})
    memory.record_tool_call("execute_command", {"command": "npm test"}, {"output": "ok"})
    return memory.activity


class TestToolCallStats:
    """Tests for tool_call_stats()."""

    def test_counts(self, activity):
        stats = activity.tool_call_stats()
        assert stats["totalCalls"] == 4
        assert stats["successfulCalls"] == 3
        assert stats["successRate"] == 75.0
        assert stats["toolCounts"]["write_file"] == 2
        assert stats["mostUsedTools"][0] == ("write_file", 2)
        assert stats["uniqueTools"] == 3

    def test_empty(self, memory):
        stats = ActivityAnalyzer(memory.store).tool_call_stats()
        assert stats["totalCalls"] == 0
        assert stats["successRate"] == 0.0


class TestFileViews:
    """Tests for file_relevance(), file_history() and edit_context()."""

    def test_relevance(self, activity):
        relevance = activity.file_relevance("src/app.js")
        assert relevance["recentlyModified"] is True
        assert relevance["relatedToolCalls"] == 3
        assert relevance["projectRole"] == "functionality"

    def test_history_only_write_tools(self, activity):
        history = activity.file_history("src/app.js")
        assert [h["summary"] for h in history] == [
            "write_file - successful",
            "write_file - failed",
        ]

    def test_edit_context(self, activity):
        context = activity.edit_context("write_file", "src/app.js", "function a() {}\nconst b = () => 1")
        assert context["fileInfo"] == {"path": "src/app.js", "size": 33, "lines": 2, "type": "js"}
        assert context["operationDetails"]["operation"] == "write_file"
        assert context["contentAnalysis"]["functions"] == 2
        assert len(context["previousHistory"]) == 2

    def test_recent_activity(self, activity, memory):
        memory.record_action("something")
        feed = activity.recent_activity(limit=2)
        assert len(feed["toolCalls"]) == 2
        assert feed["recentActions"][-1]["action"] == "something"


class TestHelpers:
    """Tests for module-level helpers."""

    def test_file_role(self):
        assert file_role("site/index.html") == "main_entry_point"
        assert file_role("styles/main.css") == "styling"
        assert file_role("notes.txt") == "supporting_file"

    def test_python_analysis(self):
        content = "import os\n\nclass A:\n    def run(self):\n        pass\n"
        analysis = analyze_content(content, "a.py")
        assert analysis["classes"] == 1
        assert analysis["functions"] == 1
        assert analysis["imports"] == 1

    def test_workspace_impact(self):
        assert workspace_impact("package.json")["scope"] == "project_level"
        assert workspace_impact("server.js")["scope"] == "system_level"
        assert workspace_impact("notes.txt") == {"scope": "file_level", "affectedSystems": []}

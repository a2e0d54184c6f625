"""Tests for SessionStore - bounded history and write-through persistence."""

import json

import pytest

from jackmem.config import MemoryConfig
from jackmem.memory.session_store import SessionStore
from jackmem.persistence import RestoreOutcome


@pytest.fixture
def store(config, clock):
    store, _ = SessionStore.open(config, clock=clock)
    yield store
    store.close()


def _saved_session(config):
    return json.loads(config.session_path.read_text())


class TestOpen:
    """Tests for SessionStore.open()."""

    def test_fresh_session_uses_clock(self, config, clock):
        store, report = SessionStore.open(config, clock=clock)
        assert report.session.outcome == RestoreOutcome.MISSING
        assert store.session.start_time == clock()
        assert store.session.last_activity == clock()

    def test_restores_recent_session(self, config, clock):
        first, _ = SessionStore.open(config, clock=clock)
        first.set_intent("build a todo app")
        clock.advance(minutes=30)

        second, report = SessionStore.open(config, clock=clock)
        assert report.session.restored
        assert second.session.session_id == first.session.session_id
        assert second.session.user_intent == "build a todo app"

    def test_trims_oversized_snapshot(self, tmp_path, clock):
        big = MemoryConfig(data_dir=tmp_path / "ws", max_conversation_turns=10)
        store, _ = SessionStore.open(big, clock=clock)
        for i in range(10):
            store.record_turn(f"q{i}", f"a{i}")

        small = MemoryConfig(data_dir=tmp_path / "ws", max_conversation_turns=3)
        restored, _ = SessionStore.open(small, clock=clock)
        assert [t.user_message for t in restored.session.conversation_history] == ["q7", "q8", "q9"]


class TestRecording:
    """Tests for record_turn(), record_tool_call() and record_action()."""

    def test_turn_stored_verbatim(self, store):
        message = "x" * 5000
        store.record_turn(message, "ok")
        assert store.session.conversation_history[-1].user_message == message

    def test_lone_surrogate_saved_and_restored(self, store, config, clock):
        message = "bad \ud800 text"
        store.record_turn(message, "ok")
        assert store.writer.last_error is None
        assert "\\ud800" in config.session_path.read_text()

        restored, _ = SessionStore.open(config, clock=clock)
        assert restored.session.conversation_history[-1].user_message == message

    def test_zero_cap_keeps_nothing(self, tmp_path, clock):
        config = MemoryConfig(data_dir=tmp_path / "ws", max_recent_actions=0)
        store, _ = SessionStore.open(config, clock=clock)
        for i in range(5):
            store.record_action(f"action_{i}")
        assert store.session.recent_actions == []
        assert _saved_session(config)["recentActions"] == []
        store.close()

    def test_conversation_cap(self, store):
        for i in range(105):
            store.record_turn(f"message {i}", "reply")
        history = store.session.conversation_history
        assert len(history) == 100
        assert history[0].user_message == "message 5"

    def test_tool_call_cap(self, store):
        for i in range(205):
            store.record_tool_call("read_file", {"filePath": f"f{i}.py"}, {"content": ""})
        chain = store.session.tool_call_chain
        assert len(chain) == 200
        assert chain[0].args.target_path == "f5.py"

    def test_action_cap(self, store):
        for i in range(60):
            store.record_action(f"action_{i}")
        actions = store.session.recent_actions
        assert len(actions) == 50
        assert actions[0].action == "action_10"

    def test_write_tools_mark_files_active(self, store):
        store.record_tool_call("write_file", {"filePath": "index.html", "content": ""}, {"success": True})
        store.record_tool_call("surgical_edit", {"filePath": "app.js"}, {"success": True})
        store.record_tool_call("read_file", {"filePath": "README.md"}, {"content": "hi"})
        assert store.session.active_files == {"index.html", "app.js"}

    def test_active_files_are_a_set(self, store):
        for _ in range(3):
            store.record_tool_call("write_file", {"filePath": "a.js"}, {})
        assert store.session.active_files == {"a.js"}

    def test_failed_write_still_marks_file(self, store):
        store.record_tool_call("write_file", {"filePath": "a.js"}, {"error": "disk full"})
        assert "a.js" in store.session.active_files
        assert not store.session.tool_call_chain[-1].success

    def test_every_mutation_persists(self, store, config, clock):
        clock.advance(minutes=5)
        store.record_action("something_happened", {"k": "v"})
        saved = _saved_session(config)
        assert saved["recentActions"][-1]["action"] == "something_happened"
        assert saved["lastActivity"] == clock().isoformat()

    def test_turn_with_tool_calls(self, store):
        turn = store.record_turn(
            "make a page",
            "done",
            [{"function": {"name": "write_file", "arguments": {"filePath": "index.html"}}, "result": {}}],
        )
        assert turn.tool_calls[0].tool == "write_file"
        assert turn.tool_calls[0].args.target_path == "index.html"


class TestIntentAndProject:
    """Tests for set_intent(), set_current_project() and record_edit_outcome()."""

    def test_set_intent_overwrites(self, store):
        store.set_intent("first", ["a"])
        store.set_intent("second")
        assert store.session.user_intent == "second"
        assert store.session.project_goals == []
        assert store.session.recent_actions[-1].action == "user_intent_set"

    def test_set_current_project(self, store, clock):
        project = store.set_current_project("snake", "game", "A snake game")
        assert store.session.current_project is project
        assert project.started_at == clock()
        assert store.session.recent_actions[-1].action == "project_started"

    def test_edit_outcomes(self, store):
        store.record_edit_outcome("write_file", "a.js", accepted=True)
        store.record_edit_outcome("surgical_edit", "b.js", accepted=False)
        assert [e.accepted for e in store.context.recent_edits] == [True, False]
        last = store.session.recent_actions[-1]
        assert last.action == "edit_rejected"
        assert last.success is False


class TestSummary:
    """Tests for update_context_summary() and recent_active_files()."""

    def test_summary_lines(self, store):
        store.seed_workspace({"type": "web", "language": "javascript"})
        store.set_current_project("shop", "web", "Online shop")
        store.set_intent("add a cart")
        store.record_tool_call("write_file", {"filePath": "cart.js"}, {"success": True})
        store.record_tool_call("execute_command", {"command": "npm test"}, {"error": "failed"})

        summary = store.update_context_summary()
        lines = summary.split("\n")
        assert lines[0] == "Current workspace: web (javascript)"
        assert "Active project: shop - Online shop" in lines
        assert "User intent: add a cart" in lines
        assert "Recently modified files: cart.js" in lines
        assert lines[-1] == "Recent tools: write_file(✓), execute_command(✗)"

    def test_default_workspace_line(self, store):
        assert store.update_context_summary() == "Current workspace: unknown (unknown)"

    def test_recent_active_files_order(self, store):
        for path in ("a.js", "b.js", "c.js"):
            store.record_tool_call("write_file", {"filePath": path}, {})
        store.record_tool_call("write_file", {"filePath": "a.js"}, {})
        assert store.recent_active_files(2) == ["a.js", "c.js"]

    def test_session_duration(self, store, clock):
        clock.advance(minutes=42)
        assert store.session_duration() == "42m"

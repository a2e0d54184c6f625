"""Tests for config module."""

import json

import pytest

from jackmem.config import (
    STALE_AFTER_SECONDS,
    MemoryConfig,
    load_config,
    save_config,
)
from jackmem.exceptions import ConfigError


class TestMemoryConfig:
    """Tests for MemoryConfig dataclass."""

    def test_defaults(self, tmp_path):
        """Defaults match the documented limits."""
        config = MemoryConfig(data_dir=tmp_path)
        assert config.stale_after_seconds == 3600
        assert config.max_conversation_turns == 100
        assert config.max_tool_calls == 200
        assert config.max_recent_actions == 50
        assert config.max_completed_tasks == 50
        assert config.background_writes is False

    def test_snapshot_paths(self, tmp_path):
        """Snapshots live in the .memory directory under the data dir."""
        config = MemoryConfig(data_dir=tmp_path)
        assert config.session_path == tmp_path / ".memory" / "session.json"
        assert config.context_path == tmp_path / ".memory" / "context.json"

    def test_data_dir_expansion(self):
        """~ is expanded in data_dir."""
        config = MemoryConfig(data_dir="~/somewhere")
        assert not str(config.data_dir).startswith("~")

    def test_write_tools_include_extras(self, tmp_path):
        """Extra write tools are added to the built-in ones."""
        config = MemoryConfig(data_dir=tmp_path, extra_write_tools=["patch_file"])
        assert {"write_file", "surgical_edit", "patch_file"} <= config.write_tools


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_without_file(self, tmp_path, monkeypatch):
        """Missing config.json yields defaults."""
        monkeypatch.delenv("JACKMEM_STALE_AFTER_SECONDS", raising=False)
        monkeypatch.delenv("JACKMEM_BACKGROUND_WRITES", raising=False)
        config = load_config(tmp_path)
        assert config.data_dir == tmp_path
        assert config.stale_after_seconds == STALE_AFTER_SECONDS

    def test_data_dir_from_env(self, tmp_path, monkeypatch):
        """JACKMEM_DATA_DIR is used when no directory is passed."""
        monkeypatch.setenv("JACKMEM_DATA_DIR", str(tmp_path))
        assert load_config().data_dir == tmp_path

    def test_save_and_load_roundtrip(self, tmp_path, monkeypatch):
        """Saved settings are loaded back."""
        monkeypatch.delenv("JACKMEM_STALE_AFTER_SECONDS", raising=False)
        config = MemoryConfig(data_dir=tmp_path, stale_after_seconds=120, extra_write_tools=["x"])
        save_config(config)

        loaded = load_config(tmp_path)
        assert loaded.stale_after_seconds == 120
        assert loaded.extra_write_tools == ["x"]

    def test_invalid_json(self, tmp_path):
        """Broken config.json raises ConfigError."""
        memory_dir = tmp_path / ".memory"
        memory_dir.mkdir()
        (memory_dir / "config.json").write_text("{not json")

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert "Invalid JSON" in str(exc_info.value)

    def test_invalid_value(self, tmp_path):
        """Non-numeric limits raise ConfigError."""
        memory_dir = tmp_path / ".memory"
        memory_dir.mkdir()
        (memory_dir / "config.json").write_text(json.dumps({"max_tool_calls": "many"}))

        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_negative_cap_rejected(self, tmp_path):
        """Negative collection caps raise ConfigError."""
        memory_dir = tmp_path / ".memory"
        memory_dir.mkdir()
        (memory_dir / "config.json").write_text(json.dumps({"max_recent_actions": -1}))

        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert "max_recent_actions" in str(exc_info.value)

    def test_env_overrides(self, tmp_path, monkeypatch):
        """Environment variables override file settings."""
        monkeypatch.setenv("JACKMEM_STALE_AFTER_SECONDS", "60")
        monkeypatch.setenv("JACKMEM_BACKGROUND_WRITES", "true")
        config = load_config(tmp_path)
        assert config.stale_after_seconds == 60
        assert config.background_writes is True

    def test_bad_env_override(self, tmp_path, monkeypatch):
        """Non-integer staleness in the environment raises ConfigError."""
        monkeypatch.setenv("JACKMEM_STALE_AFTER_SECONDS", "soon")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

"""
Jackmem - Configuration Management

Handles environment variables and the optional config.json that lives
next to the snapshots. Snapshots are stored in <data_dir>/.memory/
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jackmem.exceptions import ConfigError


# Configuration paths
DEFAULT_DATA_DIR = Path.home() / ".jack"
MEMORY_DIR_NAME = ".memory"
SESSION_FILE_NAME = "session.json"
CONTEXT_FILE_NAME = "context.json"
CONFIG_FILE_NAME = "config.json"

# Bounded collection sizes
MAX_CONVERSATION_TURNS = 100
MAX_TOOL_CALLS = 200
MAX_RECENT_ACTIONS = 50
MAX_COMPLETED_TASKS = 50
MAX_RECENT_EDITS = 50

# Snapshots older than this are ignored on restore
STALE_AFTER_SECONDS = 3600

# Tools whose path argument marks a file as active
WRITE_TOOLS = frozenset({"write_file", "surgical_edit"})


def _cap(data: dict[str, Any], key: str, default: int) -> int:
    value = int(data.get(key, default))
    if value < 0:
        raise ValueError(f"{key} must not be negative, got {value}")
    return value


@dataclass
class MemoryConfig:
    """Main configuration container for the memory engine."""

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    stale_after_seconds: int = STALE_AFTER_SECONDS
    max_conversation_turns: int = MAX_CONVERSATION_TURNS
    max_tool_calls: int = MAX_TOOL_CALLS
    max_recent_actions: int = MAX_RECENT_ACTIONS
    max_completed_tasks: int = MAX_COMPLETED_TASKS
    max_recent_edits: int = MAX_RECENT_EDITS
    extra_write_tools: list[str] = field(default_factory=list)
    background_writes: bool = False
    write_queue_size: int = 256

    def __post_init__(self) -> None:
        # Expand ~ in path
        self.data_dir = Path(self.data_dir).expanduser()

    @property
    def memory_dir(self) -> Path:
        """Directory holding the snapshot files."""
        return self.data_dir / MEMORY_DIR_NAME

    @property
    def session_path(self) -> Path:
        """Path to the session snapshot."""
        return self.memory_dir / SESSION_FILE_NAME

    @property
    def context_path(self) -> Path:
        """Path to the workspace context snapshot."""
        return self.memory_dir / CONTEXT_FILE_NAME

    @property
    def write_tools(self) -> frozenset[str]:
        """All tool names treated as file writes."""
        return WRITE_TOOLS | frozenset(self.extra_write_tools)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "stale_after_seconds": self.stale_after_seconds,
            "max_conversation_turns": self.max_conversation_turns,
            "max_tool_calls": self.max_tool_calls,
            "max_recent_actions": self.max_recent_actions,
            "max_completed_tasks": self.max_completed_tasks,
            "max_recent_edits": self.max_recent_edits,
            "extra_write_tools": self.extra_write_tools,
            "background_writes": self.background_writes,
            "write_queue_size": self.write_queue_size,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], data_dir: Path | str | None = None) -> "MemoryConfig":
        """Create MemoryConfig from dictionary."""
        return cls(
            data_dir=Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR,
            stale_after_seconds=int(data.get("stale_after_seconds", STALE_AFTER_SECONDS)),
            max_conversation_turns=_cap(data, "max_conversation_turns", MAX_CONVERSATION_TURNS),
            max_tool_calls=_cap(data, "max_tool_calls", MAX_TOOL_CALLS),
            max_recent_actions=_cap(data, "max_recent_actions", MAX_RECENT_ACTIONS),
            max_completed_tasks=_cap(data, "max_completed_tasks", MAX_COMPLETED_TASKS),
            max_recent_edits=_cap(data, "max_recent_edits", MAX_RECENT_EDITS),
            extra_write_tools=list(data.get("extra_write_tools", [])),
            background_writes=bool(data.get("background_writes", False)),
            write_queue_size=int(data.get("write_queue_size", 256)),
        )


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(data_dir: Path | str | None = None) -> MemoryConfig:
    """
    Load configuration from config.json and environment.

    Precedence: explicit data_dir argument, then JACKMEM_DATA_DIR, then
    the default. Environment overrides win over config.json values.

    Args:
        data_dir: Root directory for the memory store

    Returns:
        MemoryConfig with all settings loaded

    Raises:
        ConfigError: If config.json or an environment override is invalid
    """
    if data_dir is None:
        data_dir = os.environ.get("JACKMEM_DATA_DIR") or DEFAULT_DATA_DIR
    config = MemoryConfig(data_dir=Path(data_dir))

    config_file = config.memory_dir / CONFIG_FILE_NAME
    if config_file.exists():
        try:
            with open(config_file, encoding="utf-8") as f:
                data = json.load(f)
            config = MemoryConfig.from_dict(data, data_dir=config.data_dir)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in {config_file}",
                {"error": str(e)},
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(
                "Invalid value in memory config",
                {"error": str(e)},
            )

    if stale := os.environ.get("JACKMEM_STALE_AFTER_SECONDS"):
        try:
            config.stale_after_seconds = int(stale)
        except ValueError:
            raise ConfigError(
                "JACKMEM_STALE_AFTER_SECONDS must be an integer",
                {"value": stale},
            )

    if background := os.environ.get("JACKMEM_BACKGROUND_WRITES"):
        config.background_writes = _env_flag(background)

    return config


def save_config(config: MemoryConfig) -> None:
    """
    Save configuration next to the snapshots.

    Args:
        config: MemoryConfig to save
    """
    config.memory_dir.mkdir(parents=True, exist_ok=True)

    with open(config.memory_dir / CONFIG_FILE_NAME, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)

"""
Event log settings.

Each event stream ("memory", "task") gets its own JSONL file under
log_dir and its own level. Settings come from JACKMEM_LOG_* variables.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from jackmem.config import DEFAULT_DATA_DIR

# stream name -> file name
STREAM_FILES = {
    "memory": "memory.jsonl",
    "task": "tasks.jsonl",
}

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class LogConfig:
    """Where the event streams go and how much of them is kept."""

    log_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR / "logs")
    max_file_size_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    levels: dict[str, str] = field(default_factory=lambda: {name: "INFO" for name in STREAM_FILES})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LogConfig":
        """
        Build settings from the environment.

        JACKMEM_LOG_LEVEL applies to every stream; unknown level names and
        non-numeric JACKMEM_LOG_MAX_SIZE_MB values are ignored.
        """
        env = os.environ if environ is None else environ
        config = cls()

        level = env.get("JACKMEM_LOG_LEVEL", "").strip().upper()
        if level in LEVELS:
            config.levels = {name: level for name in STREAM_FILES}

        if log_dir := env.get("JACKMEM_LOG_DIR"):
            config.log_dir = Path(log_dir).expanduser()

        size_mb = env.get("JACKMEM_LOG_MAX_SIZE_MB", "")
        if size_mb.isdigit():
            config.max_file_size_bytes = int(size_mb) * 1024 * 1024

        return config

    def path_for(self, stream: str) -> Path:
        return self.log_dir / STREAM_FILES[stream]

    def level_for(self, stream: str) -> str:
        return self.levels.get(stream, "INFO")


_config: LogConfig | None = None


def get_config() -> LogConfig:
    """Active settings, read from the environment on first use."""
    global _config
    if _config is None:
        _config = LogConfig.from_env()
    return _config


def set_config(config: LogConfig) -> None:
    """Replace the active settings. Loggers already built keep the old ones until reset_loggers()."""
    global _config
    _config = config

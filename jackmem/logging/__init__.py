"""
jackmem event logging.

Two JSONL event streams next to the ordinary module loggers:
- memory: snapshot restore outcomes and persistence failures (memory.jsonl)
- task: task creation and completion telemetry (tasks.jsonl)

Usage:
    from jackmem.logging import MemoryLogEntry, memory_logger, now_iso

    memory_logger.info(MemoryLogEntry(
        timestamp=now_iso(),
        session_id=session.session_id,
        event_type="restore",
        outcome="stale",
    ).to_json())

Files live in ~/.jack/logs/ unless JACKMEM_LOG_DIR says otherwise. The
loggers are built on first use so importing this package touches no files.
"""

import logging
import threading

from .config import STREAM_FILES, LogConfig, get_config, set_config
from .entries import MemoryLogEntry, TaskLogEntry, now_iso
from .handlers import build_event_logger

_loggers: dict[str, logging.Logger] = {}
_init_lock = threading.Lock()


def _stream_logger(stream: str) -> logging.Logger:
    logger = _loggers.get(stream)
    if logger is not None:
        return logger

    with _init_lock:
        if stream not in _loggers:
            config = get_config()
            _loggers[stream] = build_event_logger(
                f"jackmem.events.{stream}",
                config.path_for(stream),
                level=config.level_for(stream),
                max_bytes=config.max_file_size_bytes,
                backup_count=config.backup_count,
            )
        return _loggers[stream]


def reset_loggers() -> None:
    """Close the event files; the next event rebuilds loggers from the current LogConfig."""
    with _init_lock:
        for logger in _loggers.values():
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
        _loggers.clear()


class _EventStream:
    """Stands in for the stream's logger until the first event is logged."""

    def __init__(self, stream: str):
        if stream not in STREAM_FILES:
            raise ValueError(f"Unknown event stream: {stream}")
        self.stream = stream

    def debug(self, msg: str, *args, **kwargs) -> None:
        _stream_logger(self.stream).debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        _stream_logger(self.stream).info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        _stream_logger(self.stream).warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        _stream_logger(self.stream).error(msg, *args, **kwargs)


memory_logger = _EventStream("memory")
task_logger = _EventStream("task")


__all__ = [
    "memory_logger",
    "task_logger",
    "MemoryLogEntry",
    "TaskLogEntry",
    "now_iso",
    "reset_loggers",
    "LogConfig",
    "get_config",
    "set_config",
]

"""
JSONL file output for the event streams.

Entries are logged as the JSON text of a log entry dataclass and land in
the file unchanged. Any other message (a stray string, an exception) is
turned into a small JSON object so every line of the file stays parseable.
"""

import json
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any


def record_to_event(record: logging.LogRecord) -> dict[str, Any]:
    """The JSON object written for a log record."""
    message = record.getMessage()
    if message.startswith("{"):
        try:
            event = json.loads(message)
        except ValueError:
            event = None
        if isinstance(event, dict):
            return event

    event = {
        "timestamp": datetime.fromtimestamp(record.created).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": message,
    }
    if record.exc_info:
        event["exception"] = logging.Formatter().formatException(record.exc_info)
    return event


class JSONLRotatingHandler(RotatingFileHandler):
    """Size-rotated file with one JSON object per line."""

    def __init__(self, path: Path, max_bytes: int, backup_count: int):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(record_to_event(record), default=str)


def build_event_logger(
    name: str,
    path: Path,
    level: str = "INFO",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Logger that writes only to its own JSONL file.

    Propagation is off so events never show up on the console.
    Calling this again for the same name replaces the file handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    logger.propagate = False

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.addHandler(JSONLRotatingHandler(path, max_bytes, backup_count))
    return logger

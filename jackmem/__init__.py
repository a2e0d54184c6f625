"""
Jackmem - session and task memory for an AI coding assistant.

Records conversation turns, tool executions and user-derived tasks over a
long interactive session, persists them as JSON snapshots, and renders a
bounded context block for every model prompt.
"""

__version__ = "0.1.0"

from jackmem.engine import SessionMemory
from jackmem.exceptions import (
    ConfigError,
    JackMemError,
    PersistenceError,
    TaskError,
)

__all__ = [
    "__version__",
    "SessionMemory",
    "JackMemError",
    "ConfigError",
    "PersistenceError",
    "TaskError",
]

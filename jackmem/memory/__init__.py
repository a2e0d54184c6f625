"""Session memory components: store, tasks, detection, context assembly."""

from jackmem.memory.activity import ActivityAnalyzer
from jackmem.memory.assembler import ContextAssembler, ContextSnapshot
from jackmem.memory.detector import AutoTaskDetector, TaskCandidate
from jackmem.memory.session_store import SessionStore
from jackmem.memory.task_registry import TaskProgress, TaskRegistry
from jackmem.memory.telemetry import JsonlTelemetry, NullTelemetry, TelemetrySink

__all__ = [
    "SessionStore",
    "TaskRegistry",
    "TaskProgress",
    "AutoTaskDetector",
    "TaskCandidate",
    "ContextAssembler",
    "ContextSnapshot",
    "ActivityAnalyzer",
    "TelemetrySink",
    "NullTelemetry",
    "JsonlTelemetry",
]

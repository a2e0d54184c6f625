"""
Jackmem Persistence Layer

Two JSON snapshots (session state and workspace context) with atomic
whole-file rewrites, restore-or-fresh decisions and snapshot writers.
"""

from jackmem.persistence.restore import (
    RestoreDiagnostic,
    RestoreOutcome,
    RestoreReport,
    restore_context,
    restore_session,
)
from jackmem.persistence.snapshot import SnapshotStore, atomic_write_text, encode_snapshot
from jackmem.persistence.writer import BackgroundSnapshotWriter, SnapshotWriter

__all__ = [
    "SnapshotStore",
    "atomic_write_text",
    "encode_snapshot",
    "RestoreOutcome",
    "RestoreDiagnostic",
    "RestoreReport",
    "restore_session",
    "restore_context",
    "SnapshotWriter",
    "BackgroundSnapshotWriter",
]

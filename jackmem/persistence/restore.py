"""
Restore-or-fresh decisions for the two snapshots.

Restoring never raises. The functions return the state to use together
with a RestoreDiagnostic describing what happened, and the caller decides
how to report it.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from jackmem.config import STALE_AFTER_SECONDS
from jackmem.exceptions import PersistenceError
from jackmem.models import Session, WorkspaceContext
from jackmem.persistence.snapshot import SnapshotStore


class RestoreOutcome(str, Enum):
    """How a restore attempt ended."""

    RESTORED = "restored"
    MISSING = "missing"
    STALE = "stale"
    CORRUPT = "corrupt"


@dataclass
class RestoreDiagnostic:
    """Result details of restoring one snapshot."""

    outcome: RestoreOutcome
    path: str
    age_seconds: float | None = None
    error: str | None = None

    @property
    def restored(self) -> bool:
        return self.outcome == RestoreOutcome.RESTORED

    @property
    def is_problem(self) -> bool:
        """True when the snapshot existed but could not be used."""
        return self.outcome in (RestoreOutcome.STALE, RestoreOutcome.CORRUPT)

    def describe(self) -> str:
        if self.outcome == RestoreOutcome.RESTORED:
            return f"restored from {self.path}"
        if self.outcome == RestoreOutcome.MISSING:
            return f"no snapshot at {self.path}"
        if self.outcome == RestoreOutcome.STALE:
            return f"ignored stale snapshot {self.path} ({self.age_seconds:.0f}s old)"
        return f"ignored unreadable snapshot {self.path}: {self.error}"


def restore_session(
    store: SnapshotStore,
    stale_after_seconds: int = STALE_AFTER_SECONDS,
    now: datetime | None = None,
) -> tuple[Session, RestoreDiagnostic]:
    """
    Load the last session if it is recent enough, otherwise start fresh.

    Args:
        store: Snapshot files to read
        stale_after_seconds: Maximum age of lastActivity for a restore
        now: Reference time (defaults to datetime.now())

    Returns:
        (session, diagnostic). The session is new unless the outcome is RESTORED.
    """
    path = str(store.session_path)
    try:
        saved = store.read_session()
    except PersistenceError as e:
        return Session(), RestoreDiagnostic(RestoreOutcome.CORRUPT, path, error=e.message)

    if saved is None:
        return Session(), RestoreDiagnostic(RestoreOutcome.MISSING, path)

    age = ((now or datetime.now()) - saved.last_activity).total_seconds()
    if age >= stale_after_seconds:
        return Session(), RestoreDiagnostic(RestoreOutcome.STALE, path, age_seconds=age)

    return saved, RestoreDiagnostic(RestoreOutcome.RESTORED, path, age_seconds=age)


def restore_context(store: SnapshotStore) -> tuple[WorkspaceContext, RestoreDiagnostic]:
    """
    Load the workspace context. Tasks outlive sessions, so there is no staleness check.

    Returns:
        (context, diagnostic). The context is empty unless the outcome is RESTORED.
    """
    path = str(store.context_path)
    try:
        saved = store.read_context()
    except PersistenceError as e:
        return WorkspaceContext(), RestoreDiagnostic(RestoreOutcome.CORRUPT, path, error=e.message)

    if saved is None:
        return WorkspaceContext(), RestoreDiagnostic(RestoreOutcome.MISSING, path)
    return saved, RestoreDiagnostic(RestoreOutcome.RESTORED, path)


@dataclass
class RestoreReport:
    """Diagnostics for both snapshots, as returned when a memory store is opened."""

    session: RestoreDiagnostic
    context: RestoreDiagnostic

    @property
    def problems(self) -> list[RestoreDiagnostic]:
        return [d for d in (self.session, self.context) if d.is_problem]

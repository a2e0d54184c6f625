"""
Snapshot files for session state and workspace context.

Each snapshot is a whole-file JSON rewrite: the new content goes to a
temporary file in the same directory which then replaces the old file,
so readers never see a half-written snapshot.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from jackmem.config import MemoryConfig
from jackmem.exceptions import SnapshotCorruptError, SnapshotReadError, SnapshotWriteError
from jackmem.models import Session, WorkspaceContext

logger = logging.getLogger(__name__)


def encode_snapshot(data: dict[str, Any]) -> str:
    """Render snapshot data as indented, human-readable JSON."""
    return json.dumps(data, indent=2, default=str)


def atomic_write_text(path: Path, text: str) -> None:
    """
    Replace path with text atomically.

    Raises:
        SnapshotWriteError: If the directory or file cannot be written,
            or the text cannot be encoded as UTF-8
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
    except (OSError, ValueError) as e:
        # ValueError covers text the codec refuses (lone surrogates)
        raise SnapshotWriteError(
            f"Failed to write snapshot {path.name}",
            str(path),
            {"error": str(e), "error_type": type(e).__name__},
        )


class SnapshotStore:
    """
    Reads and writes the two snapshot files.

    Read methods return None when a snapshot does not exist and raise
    PersistenceError subclasses when it exists but is unusable. Callers
    decide how to degrade.
    """

    def __init__(self, session_path: Path, context_path: Path):
        self.session_path = Path(session_path)
        self.context_path = Path(context_path)

    @classmethod
    def from_config(cls, config: MemoryConfig) -> "SnapshotStore":
        return cls(config.session_path, config.context_path)

    def _read_json(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SnapshotReadError(f"Cannot read snapshot {path.name}", str(path), {"error": str(e)})
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise SnapshotCorruptError(f"Snapshot {path.name} is not valid JSON", str(path), {"error": str(e)})
        if not isinstance(data, dict):
            raise SnapshotCorruptError(
                f"Snapshot {path.name} is not a JSON object",
                str(path),
                {"found": type(data).__name__},
            )
        return data

    def read_session(self) -> Session | None:
        """
        Load the session snapshot.

        Returns:
            Session, or None if no snapshot exists

        Raises:
            SnapshotReadError: If the file cannot be read
            SnapshotCorruptError: If the content is not a valid session
        """
        data = self._read_json(self.session_path)
        if data is None:
            return None
        try:
            session = Session.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotCorruptError(
                "Session snapshot has an invalid shape",
                str(self.session_path),
                {"error": f"{type(e).__name__}: {e}"},
            )
        if session.last_activity is None:
            raise SnapshotCorruptError("Session snapshot has no lastActivity", str(self.session_path))
        return session

    def read_context(self) -> WorkspaceContext | None:
        """
        Load the workspace context snapshot.

        Returns:
            WorkspaceContext, or None if no snapshot exists

        Raises:
            SnapshotReadError: If the file cannot be read
            SnapshotCorruptError: If the content is not a valid context
        """
        data = self._read_json(self.context_path)
        if data is None:
            return None
        try:
            return WorkspaceContext.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SnapshotCorruptError(
                "Context snapshot has an invalid shape",
                str(self.context_path),
                {"error": f"{type(e).__name__}: {e}"},
            )

    def write_encoded(self, session_text: str, context_text: str) -> None:
        """
        Write both snapshots from already-encoded JSON.

        Raises:
            SnapshotWriteError: If either file cannot be written
        """
        atomic_write_text(self.session_path, session_text)
        atomic_write_text(self.context_path, context_text)

    def write(self, session: Session, context: WorkspaceContext) -> None:
        """Encode and write both snapshots."""
        self.write_encoded(encode_snapshot(session.to_dict()), encode_snapshot(context.to_dict()))

    def clear(self) -> list[Path]:
        """Delete both snapshot files. Returns the paths that were removed."""
        removed = []
        for path in (self.session_path, self.context_path):
            if path.exists():
                path.unlink()
                removed.append(path)
                logger.debug(f"Removed snapshot {path}")
        return removed

"""
Snapshot writers.

Every mutation of the memory engine hands a freshly encoded snapshot to a
writer. SnapshotWriter writes it before returning; BackgroundSnapshotWriter
hands it to a dedicated thread through a bounded FIFO queue so writes land
in the order they were issued. Neither raises on write failure: the error
is logged and kept in last_error.
"""

import logging
import queue
import threading

from jackmem.exceptions import PersistenceError, SnapshotWriteError
from jackmem.logging import MemoryLogEntry, memory_logger, now_iso
from jackmem.persistence.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

_STOP = object()


class SnapshotWriter:
    """Writes snapshots synchronously on the caller's thread."""

    def __init__(self, store: SnapshotStore):
        self.store = store
        self.last_error: PersistenceError | None = None
        self.failures = 0

    def submit(self, session_id: str, session_text: str, context_text: str) -> bool:
        """
        Persist both snapshots.

        Returns:
            True if the write succeeded
        """
        return self._write(session_id, session_text, context_text)

    def _write(self, session_id: str, session_text: str, context_text: str) -> bool:
        try:
            self.store.write_encoded(session_text, context_text)
        except PersistenceError as e:
            self._report_failure(session_id, e)
            return False
        self.last_error = None
        return True

    def _report_failure(self, session_id: str, error: PersistenceError) -> None:
        self.last_error = error
        self.failures += 1
        logger.warning(f"Failed to save session memory: {error}")
        try:
            entry = MemoryLogEntry(
                timestamp=now_iso(),
                session_id=session_id,
                event_type="persist_failed",
                snapshot_path=error.path,
                error=error.message,
                error_type=type(error).__name__,
            )
            memory_logger.warning(entry.to_json())
        except OSError as e:
            logger.debug(f"Could not write memory event log: {e}")

    def flush(self) -> None:
        """Wait for outstanding writes (nothing to wait for here)."""

    def close(self) -> None:
        """Release resources."""


class BackgroundSnapshotWriter(SnapshotWriter):
    """
    Writes snapshots on a dedicated daemon thread.

    submit() blocks when the queue is full, so memory use stays bounded and
    no write is dropped.
    """

    def __init__(self, store: SnapshotStore, max_pending: int = 256):
        super().__init__(store)
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._closed = False
        self._thread = threading.Thread(target=self._run, name="jackmem-writer", daemon=True)
        self._thread.start()

    def submit(self, session_id: str, session_text: str, context_text: str) -> bool:
        """
        Queue both snapshots for writing.

        Returns:
            True if queued. Falls back to a synchronous write after close().
        """
        if self._closed:
            return self._write(session_id, session_text, context_text)
        self._queue.put((session_id, session_text, context_text))
        return True

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                try:
                    self._write(*item)
                except Exception as e:
                    # The thread must outlive any single bad write or flush() never returns
                    logger.exception("Snapshot writer hit an unexpected error")
                    self._report_failure(
                        item[0],
                        SnapshotWriteError(
                            f"Unexpected error writing snapshot: {e}",
                            str(self.store.session_path),
                            {"error_type": type(e).__name__},
                        ),
                    )
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until every queued snapshot has been written."""
        if not self._closed:
            self._queue.join()

    def close(self) -> None:
        """Drain the queue and stop the writer thread."""
        if self._closed:
            return
        self._queue.put(_STOP)
        self._queue.join()
        self._thread.join(timeout=5.0)
        self._closed = True

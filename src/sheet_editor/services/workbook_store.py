"""In-memory store for uploaded workbooks.

Each uploaded workbook is held under a generated file identifier until it is
closed or sits idle longer than the configured TTL.

Key features:
- Thread-safe entry map plus one lock per file identifier, so operations on
  the same workbook are serialized while different workbooks run in parallel
- Sliding TTL expiry, refreshed on every access
- Optional background thread that sweeps expired entries
"""

import logging
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sheet_editor.config import settings
from sheet_editor.utils.exceptions import WorkbookExpiredError, WorkbookNotFoundError
from sheet_editor.workbook_document import WorkbookDocument

logger = logging.getLogger(__name__)


@dataclass
class StoredWorkbook:
    """A workbook held by the store."""

    file_id: str
    filename: str
    document: WorkbookDocument
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None = None
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) > self.expires_at


@dataclass
class WorkbookStoreConfig:
    """Configuration for the workbook store."""

    ttl_seconds: int = field(default_factory=lambda: settings.workbook_ttl_seconds)
    cleanup_interval_seconds: int = field(
        default_factory=lambda: settings.cleanup_interval_seconds
    )
    enable_auto_cleanup: bool = True


class WorkbookStore:
    """Thread-safe in-memory workbook store with TTL support."""

    def __init__(self, config: WorkbookStoreConfig | None = None) -> None:
        """Initialize the store.

        Args:
            config: Optional configuration. Uses defaults if not provided.
        """
        self.config = config or WorkbookStoreConfig()
        self._entries: dict[str, StoredWorkbook] = {}
        self._lock = threading.RLock()
        self._cleanup_thread: threading.Thread | None = None
        self._stop_cleanup = threading.Event()

        if self.config.enable_auto_cleanup and self.config.ttl_seconds > 0:
            self._start_cleanup_thread()

    def _start_cleanup_thread(self) -> None:
        """Start the background cleanup thread."""
        self._stop_cleanup.clear()
        self._cleanup_thread = threading.Thread(
            target=self._cleanup_loop,
            daemon=True,
            name="WorkbookStoreCleanup",
        )
        self._cleanup_thread.start()
        logger.info("Workbook store cleanup thread started")

    def _cleanup_loop(self) -> None:
        """Background loop for removing expired workbooks."""
        while not self._stop_cleanup.wait(self.config.cleanup_interval_seconds):
            try:
                self.cleanup_expired()
            except Exception as e:
                logger.error(f"Error in workbook cleanup: {e}")

    def stop_cleanup(self) -> None:
        """Stop the background cleanup thread."""
        self._stop_cleanup.set()
        if self._cleanup_thread and self._cleanup_thread.is_alive():
            self._cleanup_thread.join(timeout=5.0)
            logger.info("Workbook store cleanup thread stopped")

    def _next_expiry(self) -> datetime | None:
        if self.config.ttl_seconds <= 0:
            return None
        return datetime.fromtimestamp(time.time() + self.config.ttl_seconds, tz=UTC)

    def create(
        self,
        filename: str,
        document: WorkbookDocument,
        file_id: str | None = None,
    ) -> StoredWorkbook:
        """Store a parsed workbook under a new file identifier.

        Args:
            filename: Original upload filename.
            document: Parsed document. The store takes ownership of it.
            file_id: Optional identifier; a uuid4 is generated when omitted.

        Returns:
            The stored entry.
        """
        now = datetime.now(UTC)
        entry = StoredWorkbook(
            file_id=file_id or str(uuid.uuid4()),
            filename=filename,
            document=document,
            created_at=now,
            updated_at=now,
            expires_at=self._next_expiry(),
        )

        with self._lock:
            self._entries[entry.file_id] = entry

        logger.info(f"Workbook stored: {entry.file_id}, filename={filename}")
        return entry

    def get(self, file_id: str) -> StoredWorkbook:
        """Look up an entry and refresh its expiry.

        Callers that read or change ``entry.document`` must do so inside
        :meth:`open` to hold the per-file lock.

        Raises:
            WorkbookNotFoundError: If the identifier is unknown.
            WorkbookExpiredError: If the entry outlived its TTL.
        """
        with self._lock:
            entry = self._entries.get(file_id)

            if entry is None:
                raise WorkbookNotFoundError(file_id)

            if entry.is_expired():
                del self._entries[file_id]
                raise WorkbookExpiredError(file_id, ttl_seconds=self.config.ttl_seconds)

            entry.expires_at = self._next_expiry()
            return entry

    @contextmanager
    def open(self, file_id: str) -> Iterator[StoredWorkbook]:
        """Hold the per-file lock for the duration of the block.

        Usage:
            with store.open(file_id) as entry:
                entry.document.update_cell(0, 1, "31")

        Raises:
            WorkbookNotFoundError: If the identifier is unknown or was closed
                while waiting for the lock.
        """
        entry = self.get(file_id)
        with entry.lock:
            with self._lock:
                if self._entries.get(file_id) is not entry:
                    raise WorkbookNotFoundError(file_id)
            yield entry
            entry.updated_at = datetime.now(UTC)

    def exists(self, file_id: str) -> bool:
        """Check if a workbook is stored and not expired."""
        try:
            self.get(file_id)
            return True
        except WorkbookNotFoundError:
            return False

    def close(self, file_id: str) -> StoredWorkbook:
        """Remove a workbook from the store.

        Returns:
            The removed entry.

        Raises:
            WorkbookNotFoundError: If the identifier is unknown.
        """
        entry = self.get(file_id)
        with entry.lock:
            with self._lock:
                self._entries.pop(file_id, None)
        logger.info(f"Workbook closed: {file_id}")
        return entry

    def cleanup_expired(self) -> int:
        """Remove expired workbooks from storage.

        Returns:
            Number of workbooks removed.
        """
        now = datetime.now(UTC)

        with self._lock:
            expired_ids = [
                file_id
                for file_id, entry in self._entries.items()
                if entry.is_expired(now)
            ]
            for file_id in expired_ids:
                del self._entries[file_id]

        if expired_ids:
            logger.info(f"Cleaned up {len(expired_ids)} expired workbooks")

        return len(expired_ids)

    def count(self) -> int:
        """Get the current number of stored workbooks."""
        with self._lock:
            return len(self._entries)

    def clear_all(self) -> None:
        """Remove every workbook from storage."""
        with self._lock:
            self._entries.clear()
        logger.info("All workbooks cleared")

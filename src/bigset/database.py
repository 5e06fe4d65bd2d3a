"""SQLite handle management for set tables.

One writer connection, guarded by a lock, runs every mutation inside an
explicit transaction. Reads go through one connection per thread so that
cursors streaming a large set do not hold up the writer (WAL mode).
"""

from __future__ import annotations

import logging
import sqlite3
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .cancellation import CancelToken, check
from .config import StorageSettings
from .errors import BackingStoreError, CancellationError
from .naming import quote_identifier

logger = logging.getLogger(__name__)

SIDECAR_SUFFIXES = ("-wal", "-shm", "-journal")


def remove_database_files(path: Path) -> None:
    """Delete a database file together with its journal and WAL sidecars."""

    path.unlink(missing_ok=True)
    for suffix in SIDECAR_SUFFIXES:
        Path(f"{path}{suffix}").unlink(missing_ok=True)


def _temporary_path(temp_dir: Path | None) -> Path:
    if temp_dir is not None:
        temp_dir.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        prefix="bigset-", suffix=".sqlite", dir=temp_dir, delete=False
    )
    handle.close()
    return Path(handle.name)


class SetDatabase:
    def __init__(self, settings: StorageSettings) -> None:
        self._settings = settings
        self.persistent = settings.persistent
        try:
            if settings.path is not None:
                settings.path.parent.mkdir(parents=True, exist_ok=True)
                self.path = settings.path
            else:
                self.path = _temporary_path(settings.temp_dir)
        except OSError as exc:
            raise BackingStoreError(f"cannot prepare set database file: {exc}") from exc
        self._write_lock = threading.RLock()
        self._readers_lock = threading.Lock()
        self._readers: list[sqlite3.Connection] = []
        self._local = threading.local()
        self._initialised: set[str] = set()
        self._pending: set[str] = set()
        try:
            self._writer = self._connect()
            self._writer.execute(f"PRAGMA journal_mode={settings.journal_mode};")
            self._writer.execute(f"PRAGMA synchronous={settings.synchronous};")
        except sqlite3.Error as exc:
            if not self.persistent:
                self._remove_files()
            raise BackingStoreError(f"cannot open set database at {self.path}: {exc}") from exc
        logger.debug(
            "Opened set database %s (persistent=%s, journal_mode=%s)",
            self.path,
            self.persistent,
            settings.journal_mode,
        )

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(
            self.path,
            timeout=self._settings.busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )

    def reader(self) -> sqlite3.Connection:
        """Return this thread's read-only connection, opening it on first use."""

        conn = getattr(self._local, "conn", None)
        if conn is None:
            try:
                conn = self._connect()
                conn.execute("PRAGMA query_only = ON;")
            except sqlite3.Error as exc:
                raise BackingStoreError(f"cannot open reader for {self.path}: {exc}") from exc
            with self._readers_lock:
                self._readers.append(conn)
            self._local.conn = conn
        return conn

    @contextmanager
    def interruptible(
        self, conn: sqlite3.Connection, cancel: CancelToken | None
    ) -> Iterator[sqlite3.Connection]:
        """Abort the running statement on ``conn`` as soon as ``cancel`` fires."""

        if cancel is None:
            yield conn
            return
        conn.set_progress_handler(
            lambda: 1 if cancel.cancelled else 0, self._settings.progress_interval
        )
        try:
            yield conn
        finally:
            conn.set_progress_handler(None, 0)

    @contextmanager
    def translate_errors(self, context: str, cancel: CancelToken | None = None) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            if cancel is not None and cancel.cancelled:
                raise CancellationError(f"{context}: operation cancelled") from exc
            if "no such table" in str(exc):
                # another handle dropped a table; re-create lazily on next write
                self._initialised.clear()
            raise BackingStoreError(f"{context}: {exc}") from exc

    @contextmanager
    def read(self, context: str, cancel: CancelToken | None = None) -> Iterator[sqlite3.Connection]:
        check(cancel)
        conn = self.reader()
        with self.translate_errors(context, cancel), self.interruptible(conn, cancel):
            yield conn

    @contextmanager
    def write(self, context: str, cancel: CancelToken | None = None) -> Iterator[sqlite3.Connection]:
        """Run the body in one ``BEGIN IMMEDIATE`` transaction on the writer.

        The transaction commits when the body returns and rolls back when it
        raises, whatever the exception type, so a failed call leaves every
        table it touched unchanged.
        """

        check(cancel)
        with self._write_lock, self.translate_errors(context, cancel):
            conn = self._writer
            self._pending.clear()
            conn.execute("BEGIN IMMEDIATE")
            try:
                with self.interruptible(conn, cancel):
                    yield conn
                conn.execute("COMMIT")
            except BaseException:
                self._pending.clear()
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            self._initialised.update(self._pending)
            self._pending.clear()

    def table_exists(self, conn: sqlite3.Connection, name: str) -> bool:
        """Report whether ``name`` has a table visible to ``conn``.

        Tables created by the writer's open transaction count only for the
        writer itself; readers see them once committed.
        """

        if name in self._initialised:
            return True
        if conn is self._writer and name in self._pending:
            return True
        row = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
        ).fetchone()
        return row is not None

    def ensure_table(self, conn: sqlite3.Connection, name: str) -> None:
        """Create the table backing ``name`` inside the current write transaction."""

        if name in self._initialised or name in self._pending:
            return
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {quote_identifier(name)} (k BLOB UNIQUE, v BLOB);"
        )
        self._pending.add(name)
        logger.debug("Initialised set table %r", name)

    def close(self) -> None:
        with self._write_lock:
            with self._readers_lock:
                readers, self._readers = self._readers, []
            for conn in readers:
                conn.close()
            self._writer.close()
            self._initialised.clear()
        if not self.persistent:
            self._remove_files()
        logger.debug("Closed set database %s", self.path)

    def _remove_files(self) -> None:
        remove_database_files(self.path)

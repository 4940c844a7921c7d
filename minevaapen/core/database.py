"""SQLite connection ownership and statement execution.

A :class:`Database` owns the single connection to the store file. The
connection is opened lazily on first use and can be closed at any time; the
next statement reopens it. Restoring a backup relies on this: the file is
only replaced while the connection is closed (see :meth:`Database.detached`).
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from .exceptions import StorageError

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class QueryResult:
    """Rows and bookkeeping returned by :meth:`Database.execute`."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    change_count: int = 0
    last_insert_id: int | None = None

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        row = self.first()
        if row is None:
            return None
        return next(iter(row.values()), None)


class Database:
    """Single connection to the embedded store.

    Statements are executed one at a time on the shared connection. Multi
    statement writes go through :meth:`transaction` so that a reader never
    sees a half-applied change.
    """

    def __init__(self, path: Path | str) -> None:
        """Bind to the database file at ``path`` without opening it yet."""
        self.path = Path(path)
        self._conn: sqlite3.Connection | None = None
        # Serialises use of the shared connection across threads.
        self._lock = threading.RLock()
        self._savepoints = 0

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        return self._savepoints > 0

    def connection(self) -> sqlite3.Connection:
        """Return the open connection, opening it on first use."""
        with self._lock:
            if self._conn is None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                try:
                    conn = sqlite3.connect(
                        str(self.path), check_same_thread=False, isolation_level=None
                    )
                    conn.row_factory = sqlite3.Row
                    conn.execute("PRAGMA foreign_keys = ON")
                except sqlite3.Error as exc:
                    raise StorageError(f"Unable to open {self.path}: {exc}") from exc
                log.debug("Opened database %s", self.path)
                self._conn = conn
            return self._conn

    def close(self) -> None:
        """Close the connection. The next statement opens it again."""
        with self._lock:
            if self._conn is None:
                return
            if self._savepoints:
                raise StorageError("Cannot close the database inside a transaction")
            self._conn.close()
            self._conn = None
            log.debug("Closed database %s", self.path)

    @contextmanager
    def detached(self) -> Iterator[Path]:
        """Close the connection and keep it closed for the ``with`` block.

        Yields the database file path so the caller can safely replace or
        delete the file. No other thread can reopen the connection until the
        block exits.
        """
        with self._lock:
            self.close()
            yield self.path

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------
    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Run a single parameterised statement and collect its rows."""
        with self._lock:
            conn = self.connection()
            try:
                cursor = conn.execute(sql, tuple(params))
                rows = [dict(row) for row in cursor.fetchall()]
            except sqlite3.Error as exc:
                raise StorageError(str(exc)) from exc
            return QueryResult(
                rows=rows,
                change_count=max(cursor.rowcount, 0),
                last_insert_id=cursor.lastrowid,
            )

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """Run the ``with`` block atomically.

        The outermost block opens an ``IMMEDIATE`` transaction; nested blocks
        become savepoints. Any exception rolls back the block's work and is
        re-raised unchanged.
        """
        with self._lock:
            conn = self.connection()
            depth = self._savepoints
            outermost = depth == 0
            savepoint = f"sp_{depth}"
            self._sql(conn, "BEGIN IMMEDIATE" if outermost else f"SAVEPOINT {savepoint}")
            self._savepoints += 1
            try:
                yield self
            except BaseException:
                self._savepoints -= 1
                if outermost:
                    self._sql(conn, "ROLLBACK")
                    log.warning("Transaction rolled back")
                else:
                    self._sql(conn, f"ROLLBACK TO {savepoint}")
                    self._sql(conn, f"RELEASE {savepoint}")
                raise
            self._savepoints -= 1
            try:
                self._sql(conn, "COMMIT" if outermost else f"RELEASE {savepoint}")
            except StorageError:
                if outermost and conn.in_transaction:
                    self._sql(conn, "ROLLBACK")
                raise

    def with_transaction(self, body: Callable[[Database], T]) -> T:
        """Call ``body(self)`` inside :meth:`transaction` and return its result."""
        with self.transaction() as db:
            return body(db)

    def backup_to(self, target: Path) -> None:
        """Write a consistent copy of the committed database to ``target``."""
        with self._lock:
            conn = self.connection()
            try:
                dest = sqlite3.connect(str(target))
                try:
                    conn.backup(dest)
                finally:
                    dest.close()
            except sqlite3.Error as exc:
                raise StorageError(f"Backup to {target} failed: {exc}") from exc

    @staticmethod
    def _sql(conn: sqlite3.Connection, statement: str) -> None:
        try:
            conn.execute(statement)
        except sqlite3.Error as exc:
            raise StorageError(f"{statement} failed: {exc}") from exc

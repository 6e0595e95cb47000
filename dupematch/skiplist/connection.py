"""
SQLite connection handling for the skip-list store.

Each operation opens a short-lived connection inside one transaction.
Writes are serialized with a lock; sqlite3 errors surface as SkipListError.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generator, Optional

from ..exceptions import SkipListError


class ConnectionManager:
    """
    Opens transactional SQLite connections to one database file.

    The optional initializer runs once, inside the first write transaction,
    to create or migrate the schema.
    """

    def __init__(self, db_path: str, initializer: Optional[Callable[[sqlite3.Connection], None]] = None):
        self.db_path = str(db_path)
        self._initializer = initializer
        self._initialized = initializer is None
        self._write_lock = threading.Lock()

    def _ensure_directory(self) -> None:
        parent = Path(self.db_path).resolve().parent
        parent.mkdir(parents=True, exist_ok=True)

    def _open(self) -> sqlite3.Connection:
        self._ensure_directory()
        conn = sqlite3.connect(self.db_path, timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def initialize(self) -> None:
        """Run the schema initializer if it has not run yet."""
        if self._initialized:
            return
        with self.connection(exclusive=True):
            pass

    @contextmanager
    def connection(self, exclusive: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """
        Yield a connection inside BEGIN/COMMIT, rolling back on error.

        Args:
            exclusive: Hold the write lock and start the transaction with BEGIN IMMEDIATE

        Raises:
            SkipListError: if SQLite or the filesystem fails
        """
        lock = self._write_lock if exclusive or not self._initialized else None
        if lock is not None:
            lock.acquire()
        try:
            try:
                conn = self._open()
            except (sqlite3.Error, OSError) as e:
                raise SkipListError(f"Cannot open {self.db_path}: {e}") from e

            try:
                # IMMEDIATE takes the database write lock before the first read
                conn.execute("BEGIN IMMEDIATE" if lock is not None else "BEGIN")
                if not self._initialized:
                    self._initializer(conn)
                    self._initialized = True
                yield conn
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise SkipListError(f"Skip-list database error in {self.db_path}: {e}") from e
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            finally:
                conn.close()
        finally:
            if lock is not None:
                lock.release()


__all__ = ['ConnectionManager']

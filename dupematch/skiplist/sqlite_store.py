"""
SQLite-backed skip-list store.

The dismissed pair keys are kept as a JSON array under the fixed key
'skippedDuplicatePairs' in a small key/value table, so the database can hold
other host settings next to it.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional

from ..config import SKIPPED_PAIRS_KEY
from ..exceptions import SkipListError
from .base import SkipListStore, make_pair_key
from .connection import ConnectionManager
from .schema import initialize_schema


logger = logging.getLogger(__name__)


class SqliteSkipListStore(SkipListStore):
    """
    Durable skip-list in a SQLite database file.

    skip() reads and rewrites the list inside one BEGIN IMMEDIATE
    transaction, so concurrent skips from threads or processes never
    overwrite each other. Reads take no lock.
    """

    def __init__(self, db_path: Optional[str] = None, key: str = SKIPPED_PAIRS_KEY):
        """
        Args:
            db_path: Database file. Uses the configured default if None.
            key: Name of the key/value entry holding the skip-list
        """
        super().__init__()
        if db_path is None:
            from ..user_config import get_user_config
            db_path = get_user_config().skiplist_db_file
        self.db_path = str(db_path)
        self.key = key
        self._conn_mgr: Optional[ConnectionManager] = None

    def open(self) -> 'SqliteSkipListStore':
        if self._conn_mgr is None:
            self._conn_mgr = ConnectionManager(self.db_path, initializer=initialize_schema)
            self._conn_mgr.initialize()
            logger.debug(f"Opened skip-list database {self.db_path}")
        return super().open()

    def close(self) -> None:
        self._conn_mgr = None
        super().close()

    def _select(self, conn: sqlite3.Connection) -> set:
        row = conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (self.key,)
        ).fetchone()

        if row is None:
            return set()
        try:
            keys = json.loads(row['value'])
        except json.JSONDecodeError as e:
            raise SkipListError(f"Stored skip-list under {self.key!r} is not valid JSON: {e}") from e
        if not isinstance(keys, list):
            raise SkipListError(f"Stored skip-list under {self.key!r} is not a list")
        return {str(k) for k in keys}

    def _store(self, conn: sqlite3.Connection, keys: set) -> None:
        if keys:
            conn.execute("""
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, strftime('%s', 'now'))
            """, (self.key, json.dumps(sorted(keys))))
        else:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (self.key,))

    def read(self) -> set:
        self._ensure_open()
        with self._conn_mgr.connection(exclusive=False) as conn:
            return self._select(conn)

    def write(self, keys: set) -> None:
        self._ensure_open()
        with self._conn_mgr.connection(exclusive=True) as conn:
            self._store(conn, keys)

    def skip(self, id_a: str, id_b: str) -> None:
        """Permanently dismiss a pair in a single write transaction."""
        pair_key = make_pair_key(id_a, id_b)
        try:
            self._ensure_open()
            with self._conn_mgr.connection(exclusive=True) as conn:
                try:
                    keys = self._select(conn)
                except SkipListError as e:
                    logger.warning(f"Could not read skipped pairs, starting a new list: {e}")
                    keys = set()
                keys.add(pair_key)
                self._store(conn, keys)
            logger.info(f"Pair skipped: {pair_key}")
        except SkipListError as e:
            logger.error(f"Failed to save skipped pair {pair_key}: {e}")


__all__ = ['SqliteSkipListStore']

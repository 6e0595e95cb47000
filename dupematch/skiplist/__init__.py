"""
Skip-list storage for dismissed duplicate pairs.

Users can permanently dismiss a reported pair; dismissed pairs are stored
as canonical pair keys and suppressed by every later matching run.

Public API:
- SkipListStore: Store interface (open/read/write/close)
- MemorySkipListStore, SqliteSkipListStore, JsonSkipListStore: Implementations
- make_pair_key(): Canonical order-independent key for two ids
- get_skip_list_store(): Global durable store (SQLite)
- reset_skip_list_store(): Reset global instance (testing)
- skip_duplicate_pair() / clear_skipped_pairs() / is_pair_skipped(): Host helpers
"""

from __future__ import annotations

import threading
from typing import Optional

from .base import SkipListStore, make_pair_key
from .memory import MemorySkipListStore
from .sqlite_store import SqliteSkipListStore
from .json_store import JsonSkipListStore


# Global store instance (singleton pattern)
_store_instance: Optional[SkipListStore] = None
_store_lock = threading.Lock()


def get_skip_list_store() -> SkipListStore:
    """
    Get or create the global skip-list store (thread-safe).

    The database path comes from UserConfig.skiplist_db_file.
    """
    global _store_instance
    if _store_instance is None:
        with _store_lock:
            # Double-check after acquiring lock
            if _store_instance is None:
                _store_instance = SqliteSkipListStore()
    return _store_instance


def reset_skip_list_store():
    """Reset the global store instance (mainly for testing)."""
    global _store_instance
    with _store_lock:
        if _store_instance is not None:
            _store_instance.close()
        _store_instance = None


def skip_duplicate_pair(id_a: str, id_b: str, store: Optional[SkipListStore] = None) -> None:
    """Dismiss a pair so later runs no longer report it."""
    (store or get_skip_list_store()).skip(id_a, id_b)


def clear_skipped_pairs(store: Optional[SkipListStore] = None) -> None:
    """Forget every dismissed pair."""
    (store or get_skip_list_store()).clear_all()


def is_pair_skipped(id_a: str, id_b: str, store: Optional[SkipListStore] = None) -> bool:
    """True if the pair was dismissed, in either order."""
    return (store or get_skip_list_store()).is_skipped(id_a, id_b)


__all__ = [
    'SkipListStore',
    'MemorySkipListStore',
    'SqliteSkipListStore',
    'JsonSkipListStore',
    'make_pair_key',
    'get_skip_list_store',
    'reset_skip_list_store',
    'skip_duplicate_pair',
    'clear_skipped_pairs',
    'is_pair_skipped',
]

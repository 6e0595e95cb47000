"""
Skip-list store interface.

A skip-list is the set of canonical pair keys the user chose to ignore.
Stores implement open/read/write/close; the helpers on the base class turn
storage failures into logged degradation so a matching run is never blocked.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from ..exceptions import SkipListError
from ..models import make_pair_key


logger = logging.getLogger(__name__)


class SkipListStore(ABC):
    """
    Durable set of dismissed pair keys.

    Usage:
        with SqliteSkipListStore(path) as store:
            store.skip('card-1', 'card-2')
            assert store.is_skipped('card-2', 'card-1')
    """

    def __init__(self):
        self._opened = False
        # serializes read-modify-write in skip() and clear_all()
        self._update_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> 'SkipListStore':
        """Prepare the backing storage. Safe to call more than once."""
        self._opened = True
        return self

    def close(self) -> None:
        """Release the backing storage."""
        self._opened = False

    def __enter__(self) -> 'SkipListStore':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if not self._opened:
            self.open()

    @abstractmethod
    def read(self) -> set:
        """
        Return every stored pair key.

        Raises:
            SkipListError: if the storage cannot be read
        """

    @abstractmethod
    def write(self, keys: set) -> None:
        """
        Replace the stored pair keys.

        Raises:
            SkipListError: if the storage cannot be written
        """

    def snapshot(self) -> set:
        """
        Read the full skip-list once, treating read failures as an empty list.
        """
        try:
            return set(self.read())
        except SkipListError as e:
            logger.warning(f"Could not read skipped pairs, continuing without them: {e}")
            return set()

    def is_skipped(self, id_a: str, id_b: str) -> bool:
        """True if the pair was dismissed, in either order."""
        return make_pair_key(id_a, id_b) in self.snapshot()

    def skip(self, id_a: str, id_b: str) -> None:
        """Permanently dismiss a pair."""
        pair_key = make_pair_key(id_a, id_b)
        try:
            with self._update_lock:
                keys = self.snapshot()
                keys.add(pair_key)
                self.write(keys)
            logger.info(f"Pair skipped: {pair_key}")
        except SkipListError as e:
            logger.error(f"Failed to save skipped pair {pair_key}: {e}")

    def clear_all(self) -> None:
        """Forget every dismissed pair."""
        try:
            with self._update_lock:
                self.write(set())
            logger.info("Skipped pairs cleared")
        except SkipListError as e:
            logger.error(f"Failed to clear skipped pairs: {e}")


__all__ = ['SkipListStore', 'make_pair_key']

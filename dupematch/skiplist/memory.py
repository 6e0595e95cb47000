"""
In-process skip-list store.

Nothing survives the process; useful for tests and for hosts that keep
their own persistence.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .base import SkipListStore


class MemorySkipListStore(SkipListStore):
    """Skip-list held in a Python set."""

    def __init__(self, keys: Optional[Iterable[str]] = None):
        super().__init__()
        self._keys = set(keys or ())

    def read(self) -> set:
        return set(self._keys)

    def write(self, keys: set) -> None:
        self._keys = set(keys)


__all__ = ['MemorySkipListStore']

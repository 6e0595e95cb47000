"""
JSON-file skip-list store.

Writes a single document {"skippedDuplicatePairs": [...]} and replaces the
file atomically so a crash mid-write leaves the previous list intact.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from ..config import SKIPPED_PAIRS_KEY
from ..exceptions import SkipListError
from .base import SkipListStore


class JsonSkipListStore(SkipListStore):
    """Skip-list persisted as a JSON document on disk."""

    def __init__(self, path: str | Path, key: str = SKIPPED_PAIRS_KEY):
        super().__init__()
        self.path = Path(path)
        self.key = key

    def read(self) -> set:
        if not self.path.exists():
            return set()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SkipListError(f"Could not read {self.path}: {e}") from e

        keys = document.get(self.key, []) if isinstance(document, dict) else None
        if not isinstance(keys, list):
            raise SkipListError(f"{self.path} does not hold a list under {self.key!r}")
        return {str(k) for k in keys}

    def write(self, keys: set) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump({self.key: sorted(keys)}, f)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise SkipListError(f"Could not write {self.path}: {e}") from e


__all__ = ['JsonSkipListStore']

"""
Exception hierarchy for dupematch.

DecodeError is per-image and recoverable: the matcher logs it and excludes
the record. ConfigMismatchError is a programmer error and always propagates.
"""

from __future__ import annotations


class DupeMatchError(Exception):
    """Base class for all dupematch errors."""


class DecodeError(DupeMatchError):
    """An image file could not be read or is not a supported raster format."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = str(file_path)
        self.reason = reason
        super().__init__(f"Cannot decode {self.file_path}: {reason}")


class ConfigMismatchError(DupeMatchError, ValueError):
    """Fingerprints (or samples) produced under different configurations were combined."""


class SkipListError(DupeMatchError):
    """The skip-list store could not be read or written."""


__all__ = [
    'DupeMatchError',
    'DecodeError',
    'ConfigMismatchError',
    'SkipListError',
]

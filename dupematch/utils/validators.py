"""
Input validation for dupematch.

Validators return (is_valid, error_message) tuples; the matcher turns a
failed validation into ValueError before any image is decoded.
"""

from __future__ import annotations

from typing import Any, Optional

from ..config import VARIANTS


def validate_threshold(threshold: Any) -> tuple[bool, str]:
    """
    Validate that a similarity threshold is a percentage.

    Examples:
        >>> validate_threshold(85)
        (True, '')
        >>> validate_threshold(120)
        (False, 'Threshold must be between 0 and 100')
    """
    try:
        threshold = float(threshold)
    except (ValueError, TypeError):
        return False, "Threshold must be a number"
    if not 0.0 <= threshold <= 100.0:
        return False, "Threshold must be between 0 and 100"
    return True, ""


def validate_variant(variant: Any) -> tuple[bool, str]:
    """
    Validate the fingerprint variant name.

    Examples:
        >>> validate_variant('advanced')
        (True, '')
        >>> validate_variant('fast')
        (False, 'Variant must be one of: basic, advanced')
    """
    if variant not in VARIANTS:
        return False, f"Variant must be one of: {', '.join(VARIANTS)}"
    return True, ""


def validate_chi_square_cap(cap: Optional[float]) -> tuple[bool, str]:
    """Validate the histogram normalization constant (None = default)."""
    if cap is None:
        return True, ""
    try:
        cap = float(cap)
    except (ValueError, TypeError):
        return False, "chi_square_cap must be a number"
    if cap <= 0:
        return False, "chi_square_cap must be positive"
    return True, ""


def validate_records(records: list) -> tuple[bool, str]:
    """
    Validate that every record exposes an id and a file path.

    Duplicate ids are allowed; the matcher never pairs a record with itself.
    """
    for index, record in enumerate(records):
        if isinstance(record, dict):
            has_id = 'id' in record
            has_path = 'file_path' in record or 'filePath' in record
        else:
            has_id = hasattr(record, 'id')
            has_path = hasattr(record, 'file_path') or hasattr(record, 'filePath')
        if not has_id:
            return False, f"Record at index {index} has no id"
        if not has_path:
            return False, f"Record at index {index} has no file path"
    return True, ""


def validate_match_options(options) -> tuple[bool, str]:
    """Validate all MatchOptions fields."""
    is_valid, error = validate_variant(options.variant)
    if not is_valid:
        return False, error

    is_valid, error = validate_threshold(options.threshold)
    if not is_valid:
        return False, error

    is_valid, error = validate_chi_square_cap(options.chi_square_cap)
    if not is_valid:
        return False, error

    if options.on_progress is not None and not callable(options.on_progress):
        return False, "on_progress must be callable"

    if options.should_cancel is not None and not callable(options.should_cancel):
        return False, "should_cancel must be callable"

    return True, ""


__all__ = [
    'validate_threshold',
    'validate_variant',
    'validate_chi_square_cap',
    'validate_records',
    'validate_match_options',
]

"""
Utilities package for dupematch.

Provides:
- formatters: Human-readable formatting for counts, durations and scores
- validators: Option and record validation
"""

from __future__ import annotations

from . import formatters
from . import validators

from .formatters import format_number, format_time_estimate, format_similarity
from .validators import (
    validate_threshold,
    validate_variant,
    validate_chi_square_cap,
    validate_records,
    validate_match_options,
)

__all__ = [
    # Submodules
    'formatters',
    'validators',
    # Formatters
    'format_number',
    'format_time_estimate',
    'format_similarity',
    # Validators
    'validate_threshold',
    'validate_variant',
    'validate_chi_square_cap',
    'validate_records',
    'validate_match_options',
]

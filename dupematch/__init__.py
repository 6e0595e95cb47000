"""
dupematch
=========
Perceptual duplicate-image detection for media libraries.

Features:
- Basic 8x8 average hash and advanced 32x32 DCT hash
- Colour histogram check against same-shape, different-palette false positives
- Rotation-aware matching (90/180/270 degrees)
- Durable skip-list for pairs the user dismissed
- Lazy, cancellable matching with progress events

Example:
    from dupematch import ImageRecord, find_duplicates

    records = [ImageRecord('a', '/photos/a.jpg'), ImageRecord('b', '/photos/b.png')]
    for pair in find_duplicates(records):
        print(pair.id_a, pair.id_b, pair.similarity, pair.method)
"""

__version__ = "1.0.0"

import logging

from .models import (
    ImageRecord,
    RasterSample,
    FingerprintConfig,
    Fingerprint,
    Comparison,
    DuplicatePair,
    MatchMethod,
    MatchOptions,
    MatchProgress,
    MatchReport,
    make_pair_key,
)
from .exceptions import DupeMatchError, DecodeError, ConfigMismatchError, SkipListError
from .config import DEFAULT_THRESHOLDS, SKIPPED_PAIRS_KEY
from .scanner import (
    decode_image,
    extract_fingerprint,
    fingerprint_image,
    compare_fingerprints,
    compute_fingerprints,
    iter_matches,
    find_duplicates,
    find_duplicates_report,
)
from .skiplist import (
    SkipListStore,
    MemorySkipListStore,
    SqliteSkipListStore,
    JsonSkipListStore,
    get_skip_list_store,
    reset_skip_list_store,
    skip_duplicate_pair,
    clear_skipped_pairs,
    is_pair_skipped,
)
from .user_config import get_user_config


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure root logging for host scripts.

    Args:
        verbose: Enable verbose (DEBUG level) logging

    Returns:
        The package logger
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger(__name__)


__all__ = [
    "ImageRecord",
    "RasterSample",
    "FingerprintConfig",
    "Fingerprint",
    "Comparison",
    "DuplicatePair",
    "MatchMethod",
    "MatchOptions",
    "MatchProgress",
    "MatchReport",
    "make_pair_key",
    "DupeMatchError",
    "DecodeError",
    "ConfigMismatchError",
    "SkipListError",
    "DEFAULT_THRESHOLDS",
    "SKIPPED_PAIRS_KEY",
    "decode_image",
    "extract_fingerprint",
    "fingerprint_image",
    "compare_fingerprints",
    "compute_fingerprints",
    "iter_matches",
    "find_duplicates",
    "find_duplicates_report",
    "SkipListStore",
    "MemorySkipListStore",
    "SqliteSkipListStore",
    "JsonSkipListStore",
    "get_skip_list_store",
    "reset_skip_list_store",
    "skip_duplicate_pair",
    "clear_skipped_pairs",
    "is_pair_skipped",
    "get_user_config",
    "setup_logging",
]

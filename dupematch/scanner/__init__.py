"""
Scanner package for dupematch.

Turns image records into fingerprints and fingerprints into duplicate pairs.

Public API:
- decode_image / decode_image_bytes: Rasterize an image to a small RGBA grid
- dct_2d / rotate_90: Matrix transforms behind the advanced hash
- average_hash / dct_hash / color_histogram: Fingerprint components
- extract_fingerprint / fingerprint_image: Build a Fingerprint
- hamming_similarity / histogram_similarity / compare_fingerprints: Scoring
- compute_fingerprints: Fingerprint a batch of records
- iter_matches: Lazy stream of progress events and duplicate pairs
- find_duplicates / find_duplicates_report: Batch matching
- has_heif_support: Check if HEIC/HEIF support is available
"""

from __future__ import annotations

from .decoding import decode_image, decode_image_bytes
from .transforms import dct_2d, rotate_90
from .fingerprint import (
    average_hash,
    dct_hash,
    rotation_hashes,
    color_histogram,
    extract_fingerprint,
    fingerprint_image,
)
from .similarity import (
    hamming_similarity,
    chi_square_distance,
    histogram_similarity,
    compare_fingerprints,
)
from .matching import (
    compute_fingerprints,
    iter_matches,
    sort_pairs,
    find_duplicates,
    find_duplicates_report,
)

from .dependencies import HAS_HEIF_SUPPORT


def has_heif_support() -> bool:
    """Check if HEIC/HEIF support is available."""
    return HAS_HEIF_SUPPORT


__all__ = [
    # Decoding
    'decode_image',
    'decode_image_bytes',
    # Transforms
    'dct_2d',
    'rotate_90',
    # Fingerprints
    'average_hash',
    'dct_hash',
    'rotation_hashes',
    'color_histogram',
    'extract_fingerprint',
    'fingerprint_image',
    # Similarity
    'hamming_similarity',
    'chi_square_distance',
    'histogram_similarity',
    'compare_fingerprints',
    # Matching
    'compute_fingerprints',
    'iter_matches',
    'sort_pairs',
    'find_duplicates',
    'find_duplicates_report',
    # Feature detection
    'has_heif_support',
]

"""
Similarity module for the scanner package.

Scores two fingerprints on a 0-100 scale:

- structural similarity: 100 - percentage of differing hash bits
- colour similarity: chi-square distance between 48-bin histograms, mapped
  to 0-100 through an empirical cap
- advanced score: 0.7 * structural + 0.3 * colour, maximized over the
  orientations of both images when rotation hashes are present
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..config import (
    BLEND_ROTATION_WITH_COLOR,
    CHI_SQUARE_CAP,
    COLOR_WEIGHT,
    EXACT_SIMILARITY,
    STRUCTURAL_WEIGHT,
)
from ..exceptions import ConfigMismatchError
from ..models import Comparison, Fingerprint, MatchMethod
from .dependencies import imagehash


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


def hamming_similarity(hash_a: imagehash.ImageHash, hash_b: imagehash.ImageHash) -> float:
    """
    Similarity of two equal-length hashes: 100 - 100 * differing_bits / total_bits.

    Raises:
        ConfigMismatchError: if the hashes have different lengths
    """
    total = hash_a.hash.size
    if total != hash_b.hash.size:
        raise ConfigMismatchError(
            f"Cannot compare a {total}-bit hash with a {hash_b.hash.size}-bit hash"
        )
    distance = 100.0 * (hash_a - hash_b) / total
    return _clamp(100.0 - distance)


def chi_square_distance(hist_a: Sequence[float], hist_b: Sequence[float]) -> float:
    """Sum of (a - b)^2 / (a + b) over bins where a + b is non-zero."""
    if len(hist_a) != len(hist_b):
        raise ConfigMismatchError(
            f"Cannot compare a {len(hist_a)}-bin histogram with a {len(hist_b)}-bin histogram"
        )
    chi_square = 0.0
    for a, b in zip(hist_a, hist_b):
        total = a + b
        if total > 0:
            diff = a - b
            chi_square += (diff * diff) / total
    return chi_square


def histogram_similarity(
    hist_a: Sequence[float],
    hist_b: Sequence[float],
    chi_square_cap: float = CHI_SQUARE_CAP,
) -> float:
    """
    Colour similarity: 100 - min(100, chi_square / cap * 100).
    """
    if chi_square_cap <= 0:
        raise ValueError("chi_square_cap must be positive")
    chi_square = chi_square_distance(hist_a, hist_b)
    return _clamp(100.0 - min(100.0, (chi_square / chi_square_cap) * 100.0))


def _blend(structural: float, color: float) -> float:
    return _clamp(STRUCTURAL_WEIGHT * structural + COLOR_WEIGHT * color)


def compare_fingerprints(
    fp_a: Fingerprint,
    fp_b: Fingerprint,
    chi_square_cap: Optional[float] = None,
    blend_rotation_with_color: bool = BLEND_ROTATION_WITH_COLOR,
) -> Comparison:
    """
    Compare two fingerprints computed with the same configuration.

    By default the best rotated structural score is blended with colour
    similarity before it competes with the combined score. The classic
    max(combined, rotated structural) rule is used when
    blend_rotation_with_color is False.

    Args:
        fp_a: First fingerprint
        fp_b: Second fingerprint
        chi_square_cap: Histogram normalization constant (default 2.0)
        blend_rotation_with_color: Weight the best rotated structural score with
            colour similarity like the unrotated score; if False the raw
            rotated structural similarity competes with the combined score

    Returns:
        Comparison with the final similarity and detection method

    Raises:
        ConfigMismatchError: if the fingerprints' configurations differ
    """
    if fp_a.config != fp_b.config:
        raise ConfigMismatchError(
            f"Fingerprint configurations differ: {fp_a.config} vs {fp_b.config}"
        )

    structural = hamming_similarity(fp_a.structural_hash, fp_b.structural_hash)

    # Average hash is a single signal
    if fp_a.config.is_basic:
        return Comparison(similarity=structural, method=None, structural_similarity=structural)

    if fp_a.color_histogram is None or fp_b.color_histogram is None:
        raise ConfigMismatchError("Advanced fingerprints must carry a colour histogram")

    cap = CHI_SQUARE_CAP if chi_square_cap is None else chi_square_cap
    color = histogram_similarity(fp_a.color_histogram, fp_b.color_histogram, cap)
    combined = _blend(structural, color)

    rotation = None
    rotated_score = combined
    if fp_a.rotation_hashes and fp_b.rotation_hashes:
        rotation = max(
            hamming_similarity(hash_a, hash_b)
            for hash_a in fp_a.orientation_hashes
            for hash_b in fp_b.orientation_hashes
        )
        rotated_score = _blend(rotation, color) if blend_rotation_with_color else rotation

    if structural > EXACT_SIMILARITY:
        method = MatchMethod.EXACT
    elif rotated_score > combined:
        method = MatchMethod.ROTATED
    else:
        # also covers the same shape under a different palette
        method = MatchMethod.PERCEPTUAL

    return Comparison(
        similarity=max(combined, rotated_score),
        method=method,
        structural_similarity=structural,
        color_similarity=color,
        rotation_similarity=rotation,
    )


__all__ = [
    'hamming_similarity',
    'chi_square_distance',
    'histogram_similarity',
    'compare_fingerprints',
]

"""
Fingerprint extraction module for the scanner package.

Two variants are supported:

basic
    8x8 average hash. One bit per pixel, set when the pixel's luminance
    exceeds the mean luminance.

advanced
    32x32 luminance matrix -> 2-D DCT -> top-left 8x8 block of low
    frequencies -> one bit per coefficient, set when it exceeds the block
    median. Adds a 48-bin RGB histogram and, optionally, the hashes of the
    90/180/270 degree clockwise rotations.
"""

from __future__ import annotations

from pathlib import Path

from ..config import (
    DCT_ROUND_DECIMALS,
    HASH_SIZE,
    HISTOGRAM_BINS,
    HISTOGRAM_CHANNELS,
    VARIANT_ADVANCED,
    VARIANT_BASIC,
)
from ..exceptions import ConfigMismatchError
from ..models import Fingerprint, FingerprintConfig, RasterSample
from .decoding import decode_image
from .dependencies import imagehash, np
from .transforms import dct_2d, rotate_90


def average_hash(luminance: np.ndarray) -> imagehash.ImageHash:
    """
    Average hash of a luminance matrix.

    Args:
        luminance: 2-D float array

    Returns:
        ImageHash with one bit per cell in row-major order
    """
    luminance = np.asarray(luminance, dtype=np.float64)
    return imagehash.ImageHash(luminance > luminance.mean())


def dct_hash(luminance: np.ndarray, hash_size: int = HASH_SIZE) -> imagehash.ImageHash:
    """
    DCT hash of a square luminance matrix.

    The top-left hash_size x hash_size block of DCT coefficients is compared
    against its median (the upper median, sorted[len // 2]).
    """
    coefficients = dct_2d(luminance)
    block = np.round(coefficients[:hash_size, :hash_size], DCT_ROUND_DECIMALS)
    median = np.sort(block, axis=None)[block.size // 2]
    return imagehash.ImageHash(block > median)


def rotation_hashes(luminance: np.ndarray, hash_size: int = HASH_SIZE) -> tuple:
    """DCT hashes of the matrix rotated 90, 180 and 270 degrees clockwise."""
    hashes = []
    rotated = np.asarray(luminance, dtype=np.float64)
    for _ in range(3):
        rotated = rotate_90(rotated)
        hashes.append(dct_hash(rotated, hash_size))
    return tuple(hashes)


def color_histogram(pixels: np.ndarray, bins: int = HISTOGRAM_BINS) -> tuple:
    """
    Normalized per-channel histogram of 8-bit RGB values.

    Args:
        pixels: uint8 array of shape (..., 3) or (..., 4); alpha is ignored
        bins: Equal-width bins per channel

    Returns:
        Tuple of 3 * bins floats: R bins, then G bins, then B bins
    """
    rgb = np.asarray(pixels)[..., :HISTOGRAM_CHANNELS].reshape(-1, HISTOGRAM_CHANNELS).astype(np.int64)
    total = rgb.shape[0]
    bin_width = 256 // bins
    histogram = []
    for channel in range(HISTOGRAM_CHANNELS):
        counts = np.bincount(rgb[:, channel] // bin_width, minlength=bins)[:bins]
        histogram.extend(float(c) / total for c in counts)
    return tuple(histogram)


def extract_fingerprint(
    sample: RasterSample,
    variant: str = VARIANT_ADVANCED,
    with_rotations: bool = True,
) -> Fingerprint:
    """
    Compute the fingerprint of a raster sample.

    Args:
        sample: Decoded raster; its size must match the variant
        variant: 'basic' or 'advanced'
        with_rotations: Compute rotation hashes (advanced only)

    Returns:
        Fingerprint tagged with the configuration used

    Raises:
        ConfigMismatchError: if the sample size does not match the variant
    """
    if variant not in (VARIANT_BASIC, VARIANT_ADVANCED):
        raise ValueError(f"Unknown variant {variant!r}")

    config = FingerprintConfig.for_variant(variant, with_rotations)
    if sample.size != config.raster_size:
        raise ConfigMismatchError(
            f"{variant} fingerprints need a {config.raster_size}x{config.raster_size} "
            f"sample, got {sample.size}x{sample.size}"
        )

    luminance = sample.luminance

    if config.is_basic:
        return Fingerprint(config=config, structural_hash=average_hash(luminance))

    return Fingerprint(
        config=config,
        structural_hash=dct_hash(luminance, config.hash_size),
        color_histogram=color_histogram(sample.pixels),
        rotation_hashes=rotation_hashes(luminance, config.hash_size) if config.include_rotations else (),
    )


def fingerprint_image(file_path: str | Path, config: FingerprintConfig) -> Fingerprint:
    """
    Decode an image file and fingerprint it.

    Raises:
        DecodeError: if the file cannot be decoded
    """
    sample = decode_image(file_path, config.raster_size)
    return extract_fingerprint(sample, config.variant, config.include_rotations)


__all__ = [
    'average_hash',
    'dct_hash',
    'rotation_hashes',
    'color_histogram',
    'extract_fingerprint',
    'fingerprint_image',
]

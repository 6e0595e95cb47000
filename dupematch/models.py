"""
Data models for dupematch.

Contains dataclasses for image records, raster samples, fingerprints,
comparison results, duplicate pairs and matching options.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import imagehash
import numpy as np

from .config import (
    ADVANCED_RASTER_SIZE,
    BASIC_RASTER_SIZE,
    DEFAULT_INCLUDE_ROTATIONS,
    DEFAULT_THRESHOLDS,
    DEFAULT_VARIANT,
    HASH_SIZE,
    LUMA_WEIGHTS,
    PAIR_KEY_SEPARATOR,
    VARIANT_BASIC,
)


def make_pair_key(id_a: str, id_b: str) -> str:
    """
    Build the canonical, order-independent key for a pair of record ids.

    The ids are sorted lexicographically and joined with '-', so
    make_pair_key('b', 'a') == make_pair_key('a', 'b') == 'a-b'.
    """
    id_a, id_b = str(id_a), str(id_b)
    if id_b < id_a:
        id_a, id_b = id_b, id_a
    return f"{id_a}{PAIR_KEY_SEPARATOR}{id_b}"


class MatchMethod:
    """How a duplicate pair was detected."""
    EXACT = 'exact'
    PERCEPTUAL = 'perceptual'
    COLOR = 'color'
    ROTATED = 'rotated'

    ALL = (EXACT, PERCEPTUAL, COLOR, ROTATED)


@dataclass(frozen=True)
class ImageRecord:
    """
    An image supplied by the caller.

    Attributes:
        id: Unique, stable identifier
        file_path: Location the decoder can read
        file_name: Display name used in log messages (defaults to basename)
    """
    id: str
    file_path: str
    file_name: str = ""

    def __post_init__(self):
        if not self.file_name:
            object.__setattr__(self, 'file_name', os.path.basename(str(self.file_path)))

    @classmethod
    def from_dict(cls, data: dict) -> 'ImageRecord':
        """Create an ImageRecord from a host document (camelCase or snake_case keys)."""
        file_path = data.get('file_path', data.get('filePath'))
        if file_path is None:
            raise ValueError(f"Record {data.get('id')!r} has no file path")
        return cls(
            id=str(data['id']),
            file_path=str(file_path),
            file_name=data.get('file_name', data.get('fileName', '')) or '',
        )


def as_image_record(obj: Any) -> ImageRecord:
    """Coerce an ImageRecord, a dict, or any object with id/file_path attributes."""
    if isinstance(obj, ImageRecord):
        return obj
    if isinstance(obj, dict):
        return ImageRecord.from_dict(obj)
    file_path = getattr(obj, 'file_path', None) or getattr(obj, 'filePath', None)
    if file_path is None or not hasattr(obj, 'id'):
        raise TypeError(f"Cannot use {type(obj).__name__} as an image record")
    return ImageRecord(
        id=str(obj.id),
        file_path=str(file_path),
        file_name=getattr(obj, 'file_name', '') or getattr(obj, 'fileName', '') or '',
    )


@dataclass(eq=False)
class RasterSample:
    """
    A square RGBA pixel grid produced by the decoder.

    Attributes:
        size: Side of the grid in pixels
        pixels: uint8 array of shape (size, size, 4)
    """
    size: int
    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.shape != (self.size, self.size, 4):
            raise ValueError(
                f"Expected pixels of shape ({self.size}, {self.size}, 4), "
                f"got {self.pixels.shape}"
            )

    @property
    def rgb(self) -> np.ndarray:
        """RGB channels as float64, shape (size, size, 3)."""
        return self.pixels[:, :, :3].astype(np.float64)

    @property
    def luminance(self) -> np.ndarray:
        """Per-pixel luminance Y = 0.299R + 0.587G + 0.114B."""
        return self.rgb @ np.array(LUMA_WEIGHTS, dtype=np.float64)


@dataclass(frozen=True)
class FingerprintConfig:
    """
    The settings a fingerprint was computed with.

    Two fingerprints may only be compared when their configs are equal.
    """
    variant: str
    raster_size: int
    hash_size: int
    include_rotations: bool

    @classmethod
    def for_variant(cls, variant: str = DEFAULT_VARIANT,
                    include_rotations: bool = DEFAULT_INCLUDE_ROTATIONS) -> 'FingerprintConfig':
        """Build the canonical config for a variant."""
        if variant == VARIANT_BASIC:
            # average hash carries no rotation signal
            return cls(variant, BASIC_RASTER_SIZE, BASIC_RASTER_SIZE, False)
        return cls(variant, ADVANCED_RASTER_SIZE, HASH_SIZE, bool(include_rotations))

    @property
    def is_basic(self) -> bool:
        return self.variant == VARIANT_BASIC

    @property
    def bit_length(self) -> int:
        return self.hash_size * self.hash_size

    def to_dict(self) -> dict:
        return {
            'variant': self.variant,
            'raster_size': self.raster_size,
            'hash_size': self.hash_size,
            'include_rotations': self.include_rotations,
        }


def hash_to_bits(image_hash: imagehash.ImageHash) -> str:
    """Render an ImageHash as a row-major '0'/'1' string."""
    return ''.join('1' if bit else '0' for bit in image_hash.hash.flatten())


@dataclass(frozen=True)
class Fingerprint:
    """
    Content-based fingerprint of one image.

    Attributes:
        config: Configuration the fingerprint was computed with
        structural_hash: Average hash (basic) or DCT hash (advanced)
        color_histogram: 48 normalized bins (16 R, 16 G, 16 B), advanced only
        rotation_hashes: Hashes of the 90, 180 and 270 degree rotations
    """
    config: FingerprintConfig
    structural_hash: imagehash.ImageHash
    color_histogram: Optional[tuple] = None
    rotation_hashes: tuple = ()

    @property
    def bits(self) -> str:
        """Structural hash as a bit string."""
        return hash_to_bits(self.structural_hash)

    @property
    def orientation_hashes(self) -> tuple:
        """Unrotated hash followed by the rotation hashes."""
        return (self.structural_hash,) + tuple(self.rotation_hashes)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'config': self.config.to_dict(),
            'structural_hash': str(self.structural_hash),
            'color_histogram': list(self.color_histogram) if self.color_histogram is not None else None,
            'rotation_hashes': [str(h) for h in self.rotation_hashes],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Fingerprint':
        """Create a Fingerprint from dictionary."""
        histogram = data.get('color_histogram')
        return cls(
            config=FingerprintConfig(**data['config']),
            structural_hash=imagehash.hex_to_hash(data['structural_hash']),
            color_histogram=tuple(histogram) if histogram is not None else None,
            rotation_hashes=tuple(imagehash.hex_to_hash(h) for h in data.get('rotation_hashes', [])),
        )


@dataclass(frozen=True)
class Comparison:
    """
    Result of comparing two fingerprints.

    Attributes:
        similarity: Final score in [0, 100]
        method: MatchMethod value, or None for the single-signal basic variant
        structural_similarity: Unrotated hash similarity
        color_similarity: Histogram similarity (advanced only)
        rotation_similarity: Best structural similarity over all orientations
    """
    similarity: float
    method: Optional[str]
    structural_similarity: float
    color_similarity: Optional[float] = None
    rotation_similarity: Optional[float] = None


@dataclass(frozen=True)
class DuplicatePair:
    """
    Two records judged to be duplicates.

    Attributes:
        id_a: First record id (earlier in the input order)
        id_b: Second record id
        similarity: Score in [0, 100]
        method: How the pair was detected (None for the basic variant)
    """
    id_a: str
    id_b: str
    similarity: float
    method: Optional[str] = MatchMethod.PERCEPTUAL

    def __post_init__(self):
        if self.id_a == self.id_b:
            raise ValueError(f"A duplicate pair needs two distinct ids, got {self.id_a!r} twice")
        if not 0.0 <= self.similarity <= 100.0:
            raise ValueError(f"Similarity must be within [0, 100], got {self.similarity}")
        if self.method is not None and self.method not in MatchMethod.ALL:
            raise ValueError(f"Unknown match method {self.method!r}")

    @property
    def key(self) -> str:
        """Canonical pair key, identical for (a, b) and (b, a)."""
        return make_pair_key(self.id_a, self.id_b)

    def involves(self, record_id: str) -> bool:
        """True if either side of the pair is record_id."""
        return record_id in (self.id_a, self.id_b)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'idA': self.id_a,
            'idB': self.id_b,
            'similarity': round(self.similarity, 2),
            'method': self.method,
        }


@dataclass
class MatchOptions:
    """
    Options recognized by the matcher.

    Attributes:
        similarity_threshold: Inclusive cut-off in percent; None = variant default
        include_rotations: Compute 90/180/270 degree hashes (advanced only)
        variant: 'basic' (8x8 average hash) or 'advanced' (32x32 DCT + colour)
        on_progress: Optional callback(done, total)
        show_progress: Show tqdm progress bars when tqdm is installed
        should_cancel: Optional callable polled between fingerprints and comparison batches
        chi_square_cap: Override for the histogram normalization constant
    """
    similarity_threshold: Optional[float] = None
    include_rotations: bool = DEFAULT_INCLUDE_ROTATIONS
    variant: str = DEFAULT_VARIANT
    on_progress: Optional[Callable[[int, int], None]] = None
    show_progress: bool = True
    should_cancel: Optional[Callable[[], bool]] = None
    chi_square_cap: Optional[float] = None

    @property
    def threshold(self) -> float:
        """Effective threshold (falls back to the per-variant default)."""
        if self.similarity_threshold is not None:
            return float(self.similarity_threshold)
        return DEFAULT_THRESHOLDS[self.variant]

    @property
    def fingerprint_config(self) -> FingerprintConfig:
        return FingerprintConfig.for_variant(self.variant, self.include_rotations)

    @classmethod
    def from_user_config(cls, **overrides) -> 'MatchOptions':
        """Seed options from the user's configuration file and environment."""
        from .user_config import get_user_config

        config = get_user_config()
        values = {
            'similarity_threshold': config.similarity_threshold,
            'include_rotations': config.include_rotations,
            'variant': config.variant,
            'chi_square_cap': config.chi_square_cap,
        }
        values.update(overrides)
        return cls(**values)


STAGE_FINGERPRINTING = 'fingerprinting'
STAGE_COMPARING = 'comparing'


@dataclass(frozen=True)
class MatchProgress:
    """Progress event emitted by the matcher."""
    stage: str
    done: int
    total: int

    @property
    def percent(self) -> float:
        """
        Overall progress: fingerprinting fills 0-50%, comparing 50-100%.
        """
        fraction = self.done / self.total if self.total else 1.0
        offset = 0.0 if self.stage == STAGE_FINGERPRINTING else 50.0
        return offset + fraction * 50.0


@dataclass
class MatchReport:
    """
    Summary of one matching run.

    Attributes:
        pairs: Duplicate pairs sorted by descending similarity
        fingerprinted: Number of records fingerprinted successfully
        excluded: Record id -> reason for records that could not be decoded
        skipped_pairs: Pairs suppressed by the skip-list
        comparisons: Fingerprint comparisons actually performed
        cancelled: True if the run stopped early
    """
    pairs: list = field(default_factory=list)
    fingerprinted: int = 0
    excluded: dict = field(default_factory=dict)
    skipped_pairs: int = 0
    comparisons: int = 0
    cancelled: bool = False

    @property
    def excluded_count(self) -> int:
        return len(self.excluded)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'pairs': [p.to_dict() for p in self.pairs],
            'pair_count': len(self.pairs),
            'fingerprinted': self.fingerprinted,
            'excluded': dict(self.excluded),
            'skipped_pairs': self.skipped_pairs,
            'comparisons': self.comparisons,
            'cancelled': self.cancelled,
        }

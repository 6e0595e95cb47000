"""
Image decoding module for the scanner package.

Turns an image file (or its bytes) into a small square RGBA raster. The
source is resampled with bicubic filtering; aspect ratio is not preserved.
"""

from __future__ import annotations

import io
import os
from pathlib import Path

from ..exceptions import DecodeError
from ..models import RasterSample
from .dependencies import Image, np, HAS_HEIF_SUPPORT, _logger

HEIF_EXTENSIONS = {'.heic', '.heif'}


def _rasterize(img: 'Image.Image', size: int) -> RasterSample:
    """Convert an opened image to an RGBA size x size sample."""
    if img.mode != 'RGBA':
        img = img.convert('RGBA')
    resized = img.resize((size, size), Image.Resampling.BICUBIC)
    pixels = np.asarray(resized, dtype=np.uint8).copy()
    return RasterSample(size=size, pixels=pixels)


def decode_image(file_path: str | Path, size: int) -> RasterSample:
    """
    Load an image file and rasterize it to a size x size RGBA grid.

    Args:
        file_path: Path to the image
        size: Side of the output raster

    Returns:
        RasterSample of the requested size

    Raises:
        DecodeError: if the file is missing, unreadable, or not a supported image
    """
    file_path = str(file_path)

    if not os.path.exists(file_path):
        raise DecodeError(file_path, "File not found")
    if not os.access(file_path, os.R_OK):
        raise DecodeError(file_path, "File not readable (permission denied)")

    ext = os.path.splitext(file_path)[1].lower()
    if ext in HEIF_EXTENSIONS and not HAS_HEIF_SUPPORT:
        raise DecodeError(file_path, "HEIC/HEIF support not installed (pip install pillow-heif)")

    try:
        with Image.open(file_path) as img:
            # Force load to detect truncated images early
            img.load()
            sample = _rasterize(img, size)
    except Image.UnidentifiedImageError as e:
        raise DecodeError(file_path, f"Not a valid image file: {e}") from e
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        # Pillow reports truncated and corrupt data as OSError / SyntaxError
        raise DecodeError(file_path, f"Corrupt or truncated image: {e}") from e

    _logger.debug(f"Decoded {file_path} to {size}x{size}")
    return sample


def decode_image_bytes(data: bytes, size: int, name: str = '<bytes>') -> RasterSample:
    """
    Rasterize an image held in memory.

    Args:
        data: Encoded image bytes (PNG, JPEG, ...)
        size: Side of the output raster
        name: Label used in error messages

    Raises:
        DecodeError: if the bytes are not a supported image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return _rasterize(img, size)
    except Image.UnidentifiedImageError as e:
        raise DecodeError(name, f"Not a valid image file: {e}") from e
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise DecodeError(name, f"Corrupt or truncated image: {e}") from e


__all__ = ['decode_image', 'decode_image_bytes']

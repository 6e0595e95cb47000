"""
Unit tests for the image decoder.
"""

import io

import numpy as np
import pytest
from PIL import Image

from dupematch.exceptions import DecodeError
from dupematch.scanner import decode_image, decode_image_bytes


class TestDecodeImage:
    """Test decode_image function."""

    def test_decodes_to_requested_size(self, sample_images):
        sample = decode_image(sample_images['original'], 32)
        assert sample.size == 32
        assert sample.pixels.shape == (32, 32, 4)
        assert sample.pixels.dtype == np.uint8

    def test_aspect_ratio_not_preserved(self, temp_dir):
        path = temp_dir / "wide.png"
        Image.new('RGB', (300, 50), color='green').save(path)
        sample = decode_image(path, 8)
        assert sample.pixels.shape == (8, 8, 4)

    def test_solid_colour_survives_resampling(self, sample_images):
        sample = decode_image(sample_images['red'], 32)
        assert (sample.pixels[:, :, 0] >= 250).all()
        assert (sample.pixels[:, :, 1] <= 5).all()
        assert (sample.pixels[:, :, 3] == 255).all()

    def test_luminance(self, sample_images):
        sample = decode_image(sample_images['red'], 8)
        assert sample.luminance == pytest.approx(np.full((8, 8), 0.299 * 255), abs=2.0)

    def test_palette_image(self, temp_dir):
        path = temp_dir / "palette.gif"
        Image.new('P', (40, 40), color=3).save(path)
        assert decode_image(path, 8).size == 8

    def test_missing_file(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_image("/nonexistent/image.jpg", 32)
        assert exc_info.value.file_path == "/nonexistent/image.jpg"

    def test_not_an_image(self, sample_images):
        with pytest.raises(DecodeError):
            decode_image(sample_images['corrupted'], 32)

    def test_truncated_image(self, sample_images):
        with pytest.raises(DecodeError):
            decode_image(sample_images['truncated'], 32)


class TestDecodeImageBytes:
    """Test decode_image_bytes function."""

    def test_png_bytes(self):
        buffer = io.BytesIO()
        Image.new('RGB', (20, 10), color='blue').save(buffer, 'PNG')
        sample = decode_image_bytes(buffer.getvalue(), 8)
        assert (sample.pixels[:, :, 2] == 255).all()

    def test_garbage_bytes(self):
        with pytest.raises(DecodeError):
            decode_image_bytes(b"definitely not an image", 8)

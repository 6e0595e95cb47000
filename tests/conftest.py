"""
Pytest configuration and shared fixtures for test suite.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

import numpy as np
from PIL import Image


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, temp_dir):
    """Point user config and the global skip-list at the temp directory."""
    from dupematch.user_config import get_user_config
    from dupematch.skiplist import reset_skip_list_store

    for var in (
        'DUPEMATCH_VARIANT',
        'DUPEMATCH_THRESHOLD',
        'DUPEMATCH_INCLUDE_ROTATIONS',
        'DUPEMATCH_CHI_SQUARE_CAP',
        'DUPEMATCH_MAX_PIXELS',
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv('DUPEMATCH_CONFIG_DIR', str(temp_dir / 'config'))
    monkeypatch.setenv('DUPEMATCH_SKIPLIST_DB', str(temp_dir / 'config' / 'skiplist.db'))

    get_user_config().reload()
    reset_skip_list_store()
    yield
    reset_skip_list_store()
    get_user_config().reload()


def block_pattern(seed: int, blocks: int = 8, block_px: int = 20, palette: str = 'full') -> Image.Image:
    """
    Random grid of flat colour blocks.

    Low DCT frequencies of such images are widely spread, which keeps their
    hashes stable under resampling.
    """
    rng = np.random.default_rng(seed)
    if palette == 'blue':
        colours = np.stack([
            rng.integers(0, 40, (blocks, blocks)),
            rng.integers(0, 80, (blocks, blocks)),
            rng.integers(180, 256, (blocks, blocks)),
        ], axis=-1)
    else:
        colours = rng.integers(0, 256, (blocks, blocks, 3))
    small = Image.fromarray(colours.astype(np.uint8), 'RGB')
    return small.resize((blocks * block_px, blocks * block_px), Image.Resampling.NEAREST)


@pytest.fixture
def sample_images(temp_dir):
    """
    Create a set of sample images for testing.

    Returns:
        dict with paths to:
        - original.png: random colour blocks
        - copy.png: byte copy of original.png
        - resized.png: original upscaled to 320x320
        - rotated.png: original rotated 90 degrees clockwise
        - unrelated.png: different blocks in a blue palette
        - red.png, blue.png: solid 100x100 squares
        - corrupted.png: text with an image extension
        - truncated.png: first half of a PNG file
    """
    images = {}

    original = block_pattern(seed=7)
    path = temp_dir / "original.png"
    original.save(path, 'PNG')
    images['original'] = str(path)

    copy_path = temp_dir / "copy.png"
    shutil.copyfile(path, copy_path)
    images['copy'] = str(copy_path)

    resized = original.resize((320, 320), Image.Resampling.BICUBIC)
    path = temp_dir / "resized.png"
    resized.save(path, 'PNG')
    images['resized'] = str(path)

    rotated = original.transpose(Image.Transpose.ROTATE_270)
    path = temp_dir / "rotated.png"
    rotated.save(path, 'PNG')
    images['rotated'] = str(path)

    unrelated = block_pattern(seed=99, palette='blue')
    path = temp_dir / "unrelated.png"
    unrelated.save(path, 'PNG')
    images['unrelated'] = str(path)

    for name, colour in (('red', 'red'), ('blue', 'blue')):
        path = temp_dir / f"{name}.png"
        Image.new('RGB', (100, 100), color=colour).save(path, 'PNG')
        images[name] = str(path)

    path = temp_dir / "corrupted.png"
    path.write_text("not an image")
    images['corrupted'] = str(path)

    data = Path(images['original']).read_bytes()
    path = temp_dir / "truncated.png"
    path.write_bytes(data[:len(data) // 2])
    images['truncated'] = str(path)

    return images


@pytest.fixture
def records(sample_images):
    """ImageRecords keyed by sample name, id == name."""
    from dupematch.models import ImageRecord

    return {name: ImageRecord(id=name, file_path=p) for name, p in sample_images.items()}

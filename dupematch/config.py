"""
Configuration constants for dupematch.

This module contains all tunable settings including:
- Raster and hash sizes for the basic and advanced fingerprint variants
- Similarity weights, cutoffs and default thresholds
- Progress reporting cadence
- Skip-list storage location and key name
"""

import os

# Fingerprint variants
VARIANT_BASIC = 'basic'
VARIANT_ADVANCED = 'advanced'
VARIANTS = (VARIANT_BASIC, VARIANT_ADVANCED)

# Side of the square raster each image is resampled to
BASIC_RASTER_SIZE = 8       # 8x8 average hash
ADVANCED_RASTER_SIZE = 32   # 32x32 luminance matrix fed to the DCT

# Side of the low-frequency block kept from the DCT (8x8 = 64 bits)
HASH_SIZE = 8

# Colour histogram: bins per channel, 3 channels (R, G, B)
HISTOGRAM_BINS = 16
HISTOGRAM_CHANNELS = 3

# DCT coefficients are rounded before thresholding so that flat images
# produce the same hash on every platform
DCT_ROUND_DECIMALS = 6

# Luminance weights (ITU-R BT.601)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

# Combined score for the advanced variant
STRUCTURAL_WEIGHT = 0.7
COLOR_WEIGHT = 0.3

# Method tagging cutoff (percent)
EXACT_SIMILARITY = 99.5

# Chi-square distances on normalized histograms rarely exceed this value.
# Empirical, tune against your own library.
CHI_SQUARE_CAP = 2.0

# Rotation-maximized structural similarity is blended with colour similarity
# using the same weights as the unrotated score
BLEND_ROTATION_WITH_COLOR = True

# Default similarity thresholds (percent, inclusive)
DEFAULT_THRESHOLDS = {
    VARIANT_BASIC: 90.0,
    VARIANT_ADVANCED: 85.0,
}
DEFAULT_VARIANT = VARIANT_ADVANCED
DEFAULT_INCLUDE_ROTATIONS = True

# Progress reporting cadence
FINGERPRINT_PROGRESS_EVERY = 10
COMPARISON_PROGRESS_EVERY = 1000

# Show a tqdm bar for the comparison stage only above this many comparisons
PROGRESS_BAR_MIN_COMPARISONS = 1000

# Decompression bomb limit for very large source images
MAX_IMAGE_PIXELS = 500_000_000

# Skip-list storage
SKIPPED_PAIRS_KEY = 'skippedDuplicatePairs'
PAIR_KEY_SEPARATOR = '-'
CONFIG_DIR = os.path.join(os.path.expanduser('~'), '.dupematch')
SKIPLIST_DB_FILE = os.path.join(CONFIG_DIR, 'skiplist.db')

"""
Matrix transforms used by the fingerprint extractor.

- dct_2d: two-dimensional DCT-II with c(0) = 1/sqrt(2), c(k>0) = 1 and a 2/N factor
- rotate_90: clockwise quarter turn of a square matrix
"""

from __future__ import annotations

from functools import lru_cache

from .dependencies import np


@lru_cache(maxsize=8)
def dct_basis(n: int) -> np.ndarray:
    """
    DCT-II basis matrix C with C[u, x] = c(u) * cos((2x + 1) * u * pi / 2n).

    The matrix is cached per size and must not be modified by callers.
    """
    u = np.arange(n).reshape(-1, 1)
    x = np.arange(n).reshape(1, -1)
    basis = np.cos((2 * x + 1) * u * np.pi / (2 * n))
    basis[0, :] *= 1 / np.sqrt(2)
    basis.setflags(write=False)
    return basis


def dct_2d(matrix: np.ndarray) -> np.ndarray:
    """
    Two-dimensional DCT-II of a square matrix.

    result[u, v] = (2/N) * sum_x sum_y c(u) c(v) m[x, y]
                   * cos((2x+1) u pi / 2N) * cos((2y+1) v pi / 2N)
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    n, m = matrix.shape
    if n != m:
        raise ValueError(f"DCT input must be square, got {matrix.shape}")
    basis = dct_basis(n)
    return (2.0 / n) * (basis @ matrix @ basis.T)


def rotate_90(matrix: np.ndarray) -> np.ndarray:
    """Rotate a square matrix 90 degrees clockwise: result[j][N-1-i] = m[i][j]."""
    return np.rot90(matrix, k=-1)


__all__ = ['dct_basis', 'dct_2d', 'rotate_90']

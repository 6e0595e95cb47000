"""
Unit tests for the DCT and rotation transforms.
"""

import math

import numpy as np
import pytest

from dupematch.scanner import dct_2d, rotate_90
from dupematch.scanner.transforms import dct_basis


def _reference_dct(matrix):
    """Direct evaluation of the 2-D DCT-II sum."""
    n = len(matrix)
    result = np.zeros((n, n))
    for u in range(n):
        for v in range(n):
            cu = 1 / math.sqrt(2) if u == 0 else 1.0
            cv = 1 / math.sqrt(2) if v == 0 else 1.0
            total = 0.0
            for x in range(n):
                for y in range(n):
                    total += (matrix[x][y]
                              * math.cos((2 * x + 1) * u * math.pi / (2 * n))
                              * math.cos((2 * y + 1) * v * math.pi / (2 * n)))
            result[u, v] = (2 / n) * cu * cv * total
    return result


class TestDct2d:
    """Test the two-dimensional DCT."""

    def test_matches_direct_formula(self):
        rng = np.random.default_rng(3)
        matrix = rng.uniform(0, 255, (6, 6))
        assert dct_2d(matrix) == pytest.approx(_reference_dct(matrix.tolist()), abs=1e-9)

    def test_constant_matrix_has_only_dc(self):
        coefficients = dct_2d(np.full((32, 32), 1.0))
        assert coefficients[0, 0] == pytest.approx(32.0)
        rest = coefficients.copy()
        rest[0, 0] = 0.0
        assert np.abs(rest).max() < 1e-9

    def test_rejects_non_square(self):
        with pytest.raises(ValueError):
            dct_2d(np.zeros((4, 5)))

    def test_basis_is_read_only(self):
        basis = dct_basis(8)
        with pytest.raises(ValueError):
            basis[0, 0] = 1.0


class TestRotate90:
    """Test clockwise rotation."""

    def test_clockwise(self):
        matrix = np.array([[1, 2], [3, 4]])
        assert rotate_90(matrix).tolist() == [[3, 1], [4, 2]]

    def test_index_mapping(self):
        matrix = np.arange(16).reshape(4, 4)
        rotated = rotate_90(matrix)
        for i in range(4):
            for j in range(4):
                assert rotated[j][3 - i] == matrix[i][j]

    def test_four_turns_is_identity(self):
        matrix = np.arange(9).reshape(3, 3)
        result = matrix
        for _ in range(4):
            result = rotate_90(result)
        assert (result == matrix).all()

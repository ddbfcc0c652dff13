"""
Tests for half-up rounding of reported figures.
"""

import numpy as np
import pytest

from utils.rounding import round_half_up


class TestRoundHalfUp:

    @pytest.mark.parametrize("value,expected", [
        (4.5, 5),
        (2.5, 3),
        (1000.5, 1001),
        (4.4999, 4),
        (-2.5, -3),
    ])
    def test_integers(self, value, expected):
        assert round_half_up(value) == expected
        assert isinstance(round_half_up(value), int)

    def test_one_decimal(self):
        assert round_half_up(-16.65, 1) == -16.7
        assert round_half_up(0.25, 1) == 0.3
        assert round_half_up(10.000000000000009, 1) == 10.0

    def test_numpy_scalar(self):
        assert round_half_up(np.float64(1050.5)) == 1051

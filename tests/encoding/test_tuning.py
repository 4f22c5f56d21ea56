"""Tests for tuning-curve statistics."""

import numpy as np
import pytest

from neurodecode.encoding import directionality_index, selectivity_index


class TestSelectivityIndex:
    def test_flat_curve_is_zero(self):
        assert selectivity_index(np.full(10, 3.0)) == 0.0

    def test_peaked_curve(self):
        # (4 - 0) / mean([0, 4, 0, 0]) = 4 / 1
        assert selectivity_index([0.0, 4.0, 0.0, 0.0]) == pytest.approx(4.0)

    def test_nan_bins_ignored(self):
        assert selectivity_index([np.nan, 1.0, 3.0]) == pytest.approx(1.0)

    def test_2d_map(self):
        assert selectivity_index([[0.0, 2.0], [2.0, 0.0]]) == pytest.approx(2.0)

    def test_undefined_cases(self):
        assert np.isnan(selectivity_index([np.nan, np.nan]))
        assert np.isnan(selectivity_index([0.0, 0.0]))


class TestDirectionalityIndex:
    def test_unidirectional_cell(self):
        assert directionality_index([0.0, 5.0, 1.0], [0.0, 0.0, 0.0]) == pytest.approx(1.0)

    def test_symmetric(self):
        t1 = np.array([1.0, 4.0, 2.0])
        t2 = np.array([2.0, 1.0, 1.0])
        assert directionality_index(t1, t2) == pytest.approx(directionality_index(t2, t1))
        assert directionality_index(t1, t2) == pytest.approx(3.0 / 11.0)

    def test_only_jointly_defined_bins_count(self):
        assert directionality_index([1.0, np.nan], [1.0, 10.0]) == 0.0

    def test_undefined_cases(self):
        assert np.isnan(directionality_index([np.nan], [1.0]))
        assert np.isnan(directionality_index([0.0], [0.0]))

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError, match="same shape"):
            directionality_index([1.0, 2.0], [1.0])

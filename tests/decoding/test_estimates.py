"""Tests for point estimates in neurodecode.decoding.estimates."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from neurodecode.decoding.estimates import expected_bin, map_estimate


class TestMapEstimate:
    """Tests for map_estimate."""

    def test_argmax_per_row(self) -> None:
        posterior = np.array([[0.1, 0.7, 0.2], [0.6, 0.3, 0.1]])
        assert_array_equal(map_estimate(posterior), [1, 0])

    def test_tie_goes_to_lowest_index(self) -> None:
        posterior = np.array([[0.2, 0.4, 0.4], [0.5, 0.0, 0.5]])
        assert_array_equal(map_estimate(posterior), [1, 0])

    def test_nan_never_wins(self) -> None:
        posterior = np.array([[np.nan, 0.3, 0.7], [0.9, np.nan, 0.1]])
        assert_array_equal(map_estimate(posterior), [2, 0])

    def test_all_nan_row_is_minus_one(self) -> None:
        posterior = np.array([[np.nan, np.nan], [0.0, 1.0]])
        assert_array_equal(map_estimate(posterior), [-1, 1])

    def test_zero_bins(self) -> None:
        assert_array_equal(map_estimate(np.empty((3, 0))), [-1, -1, -1])

    def test_dtype(self) -> None:
        assert map_estimate([[1.0]]).dtype == np.int64

    def test_must_be_2d(self) -> None:
        with pytest.raises(ValueError, match="2D"):
            map_estimate([0.5, 0.5])


class TestExpectedBin:
    """Tests for expected_bin."""

    def test_delta_posterior(self) -> None:
        assert_allclose(expected_bin([[0.0, 0.0, 1.0]]), [[2.0]])

    def test_weighted_mean(self) -> None:
        assert_allclose(expected_bin([[0.25, 0.75]]), [[0.75]])

    def test_nan_counts_as_zero_mass(self) -> None:
        assert_allclose(expected_bin([[0.5, np.nan, 0.5]]), [[1.0]])

    def test_undefined_row(self) -> None:
        result = expected_bin([[np.nan, np.nan], [0.0, 0.0]])
        assert np.isnan(result).all()

    def test_2d_grid(self) -> None:
        # Grid (2, 3): half the mass at (0, 0), half at (1, 2).
        posterior = np.zeros((1, 6))
        posterior[0, 0] = 0.5
        posterior[0, 5] = 0.5
        assert_allclose(expected_bin(posterior, grid_shape=(2, 3)), [[0.5, 1.0]])

    def test_grid_shape_mismatch(self) -> None:
        with pytest.raises(ValueError, match="grid_shape"):
            expected_bin(np.ones((1, 5)), grid_shape=(2, 3))

"""Tests for discretization helpers in neurodecode.binning."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from neurodecode.binning import (
    bin_centers,
    bin_spike_times,
    discretize,
    interval_mask,
    nearest_sample,
    validate_bin_edges,
)


class TestValidateBinEdges:
    """Tests for validate_bin_edges."""

    def test_returns_float_array(self) -> None:
        edges = validate_bin_edges([0, 1, 2])
        assert edges.dtype == np.float64
        assert_array_equal(edges, [0.0, 1.0, 2.0])

    @pytest.mark.parametrize(
        "edges",
        [[], [1.0], [0.0, 0.0, 1.0], [2.0, 1.0], [0.0, np.nan], [[0.0, 1.0]]],
    )
    def test_malformed_edges_raise(self, edges) -> None:
        with pytest.raises(ValueError, match=r"\[E2003\]"):
            validate_bin_edges(edges)

    def test_name_in_message(self) -> None:
        with pytest.raises(ValueError, match="y_bin_edges"):
            validate_bin_edges([1.0], "y_bin_edges")


class TestDiscretize:
    """Tests for discretize."""

    def test_half_open_bins(self) -> None:
        idx = discretize([0.0, 0.99, 1.0, 1.5], [0.0, 1.0, 2.0])
        assert_array_equal(idx, [0, 0, 1, 1])

    def test_last_edge_inclusive(self) -> None:
        idx = discretize([2.0], [0.0, 1.0, 2.0])
        assert_array_equal(idx, [1])

    def test_outside_and_nan_are_minus_one(self) -> None:
        idx = discretize([-0.1, 2.1, np.nan, np.inf], [0.0, 1.0, 2.0])
        assert_array_equal(idx, [-1, -1, -1, -1])

    def test_dtype_is_int64(self) -> None:
        assert discretize([0.5], [0.0, 1.0]).dtype == np.int64

    def test_bad_edges_raise(self) -> None:
        with pytest.raises(ValueError, match=r"\[E2003\]"):
            discretize([0.5], [1.0, 0.0])


class TestBinCenters:
    """Tests for bin_centers."""

    def test_uniform_edges(self) -> None:
        assert_allclose(bin_centers([0.0, 2.0, 4.0]), [1.0, 3.0])

    def test_irregular_edges(self) -> None:
        assert_allclose(bin_centers([0.0, 1.0, 4.0]), [0.5, 2.5])


class TestBinSpikeTimes:
    """Tests for bin_spike_times."""

    def test_counts_per_sample(self) -> None:
        sample_times = np.array([0.0, 0.1, 0.2, 0.3])
        spike_times = np.array([0.01, 0.05, 0.15, 0.35, 0.12])
        spike_ids = np.array([1, 1, 1, 1, 2])

        spike_train, ids = bin_spike_times(spike_times, spike_ids, sample_times)

        assert_array_equal(ids, [1, 2])
        assert_array_equal(spike_train[:, 0], [2, 1, 0, 1])
        assert_array_equal(spike_train[:, 1], [0, 1, 0, 0])

    def test_spikes_outside_recording_dropped(self) -> None:
        sample_times = np.array([1.0, 2.0])
        spike_train, _ = bin_spike_times([0.5, 3.5], [0, 0], sample_times)
        assert spike_train.sum() == 0

    def test_cell_ids_define_column_order(self) -> None:
        sample_times = np.array([0.0, 1.0])
        spike_train, ids = bin_spike_times(
            [0.5, 0.5], [3, 7], sample_times, cell_ids=[7, 3, 9]
        )
        assert_array_equal(ids, [7, 3, 9])
        assert_array_equal(spike_train[0], [1, 1, 0])

    def test_mismatched_lengths_raise(self) -> None:
        with pytest.raises(ValueError, match="same shape"):
            bin_spike_times([0.1, 0.2], [1], [0.0, 1.0])

    def test_single_sample_raises(self) -> None:
        with pytest.raises(ValueError, match="at least 2"):
            bin_spike_times([0.1], [1], [0.0])


class TestIntervalMask:
    """Tests for interval_mask."""

    def test_inclusive_bounds(self) -> None:
        times = np.arange(6.0)
        mask = interval_mask(times, [1.0, 4.0], [2.0, 4.0])
        assert_array_equal(mask, [False, True, True, False, True, False])

    def test_no_intervals(self) -> None:
        mask = interval_mask(np.arange(3.0), [], [])
        assert not mask.any()

    def test_mismatched_bounds_raise(self) -> None:
        with pytest.raises(ValueError, match="same shape"):
            interval_mask(np.arange(3.0), [0.0, 1.0], [1.0])


class TestNearestSample:
    """Tests for nearest_sample."""

    def test_nearest(self) -> None:
        times = np.array([0.0, 1.0, 2.0])
        assert_array_equal(nearest_sample(times, [0.2, 0.9, 1.6, 5.0, -3.0]), [0, 1, 2, 2, 0])

    def test_tie_goes_to_earlier_sample(self) -> None:
        assert_array_equal(nearest_sample([0.0, 1.0], [0.5]), [0])

    def test_single_sample(self) -> None:
        assert_array_equal(nearest_sample([3.0], [1.0, 7.0]), [0, 0])

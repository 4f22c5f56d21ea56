"""Tests for the Poisson log-likelihood in neurodecode.decoding.likelihood."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.testing import assert_allclose

from neurodecode.decoding.likelihood import log_poisson_likelihood

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def simple_spike_counts() -> np.ndarray:
    """Spike counts: (2 time samples, 2 cells)."""
    return np.array([[0.0, 1.0], [2.0, 0.0]])


@pytest.fixture
def simple_rate_maps() -> np.ndarray:
    """Rate maps: (2 cells, 3 bins)."""
    return np.array([[1.0, 2.0, 3.0], [3.0, 2.0, 1.0]])


# =============================================================================
# Tests
# =============================================================================


class TestLogPoissonLikelihood:
    """Tests for log_poisson_likelihood."""

    def test_output_shape(self, simple_spike_counts, simple_rate_maps) -> None:
        ll = log_poisson_likelihood(simple_spike_counts, simple_rate_maps, window=0.5)
        assert ll.shape == (2, 3)

    def test_matches_closed_form(self, simple_spike_counts, simple_rate_maps) -> None:
        window = 0.5
        ll = log_poisson_likelihood(
            simple_spike_counts, simple_rate_maps, window, min_rate=0.0
        )
        expected = (
            -window * simple_rate_maps.sum(axis=0)
            + simple_spike_counts @ np.log(simple_rate_maps)
        )
        assert_allclose(ll, expected)

    def test_higher_rate_wins_for_many_spikes(self) -> None:
        """One cell, rates [5, 1] Hz, 3 spikes in 1 s: bin 0 is more likely."""
        ll = log_poisson_likelihood(np.array([[3.0]]), np.array([[5.0, 1.0]]), window=1.0)
        assert ll[0, 0] > ll[0, 1]

    def test_zero_rate_is_floored(self) -> None:
        ll = log_poisson_likelihood(np.array([[2.0]]), np.array([[0.0, 1.0]]), window=1.0)
        assert np.all(np.isfinite(ll))
        assert ll[0, 0] < ll[0, 1]
        assert_allclose(ll[0, 0], -1e-10 + 2.0 * np.log(1e-10))

    def test_floor_is_added(self) -> None:
        ll = log_poisson_likelihood(
            np.array([[1.0]]), np.array([[1.0]]), window=1.0, min_rate=1.0
        )
        assert_allclose(ll, [[-2.0 + np.log(2.0)]])

    def test_nan_rate_propagates_to_bin(self) -> None:
        rates = np.array([[1.0, np.nan], [2.0, 2.0]])
        ll = log_poisson_likelihood(np.array([[0.0, 0.0], [1.0, 3.0]]), rates, window=1.0)
        assert np.isnan(ll[:, 1]).all()
        assert np.isfinite(ll[:, 0]).all()

    def test_silent_sample_only_rate_penalty(self, simple_rate_maps) -> None:
        ll = log_poisson_likelihood(np.zeros((1, 2)), simple_rate_maps, window=2.0, min_rate=0.0)
        assert_allclose(ll[0], -2.0 * simple_rate_maps.sum(axis=0))

    def test_cell_order_is_irrelevant(self, rng) -> None:
        counts = rng.poisson(2.0, size=(20, 6)).astype(float)
        rates = rng.uniform(0.1, 10.0, size=(6, 15))
        order = rng.permutation(6)
        ll = log_poisson_likelihood(counts, rates, window=0.25)
        ll_permuted = log_poisson_likelihood(counts[:, order], rates[order], window=0.25)
        assert_allclose(ll, ll_permuted)

    def test_deterministic(self, rng) -> None:
        counts = rng.poisson(1.0, size=(10, 4)).astype(float)
        rates = rng.uniform(0.0, 5.0, size=(4, 8))
        first = log_poisson_likelihood(counts, rates, window=0.3)
        second = log_poisson_likelihood(counts, rates, window=0.3)
        np.testing.assert_array_equal(first, second)

    def test_does_not_mutate_inputs(self, simple_spike_counts, simple_rate_maps) -> None:
        counts_copy = simple_spike_counts.copy()
        rates_copy = simple_rate_maps.copy()
        log_poisson_likelihood(simple_spike_counts, simple_rate_maps, window=1.0)
        np.testing.assert_array_equal(simple_spike_counts, counts_copy)
        np.testing.assert_array_equal(simple_rate_maps, rates_copy)

    def test_missing_count_gives_undefined_sample(self, simple_rate_maps) -> None:
        counts = np.array([[1.0, np.nan], [1.0, 0.0]])
        ll = log_poisson_likelihood(counts, simple_rate_maps, window=1.0)
        assert np.isnan(ll[0]).all()
        assert np.isfinite(ll[1]).all()

    def test_no_cells(self) -> None:
        ll = log_poisson_likelihood(np.zeros((3, 0)), np.zeros((0, 4)), window=1.0)
        assert_allclose(ll, np.zeros((3, 4)))


class TestLogPoissonLikelihoodValidation:
    """Input validation for log_poisson_likelihood."""

    def test_cell_count_mismatch(self, simple_rate_maps) -> None:
        with pytest.raises(ValueError, match=r"\[E2001\]"):
            log_poisson_likelihood(np.zeros((4, 3)), simple_rate_maps, window=1.0)

    def test_counts_must_be_2d(self, simple_rate_maps) -> None:
        with pytest.raises(ValueError, match="2D"):
            log_poisson_likelihood(np.zeros(2), simple_rate_maps, window=1.0)

    def test_rates_must_be_2d(self) -> None:
        with pytest.raises(ValueError, match="2D"):
            log_poisson_likelihood(np.zeros((2, 1)), np.zeros(3), window=1.0)

    @pytest.mark.parametrize("window", [0.0, -1.0, np.nan])
    def test_window_must_be_positive(self, simple_spike_counts, simple_rate_maps, window) -> None:
        with pytest.raises(ValueError, match="window"):
            log_poisson_likelihood(simple_spike_counts, simple_rate_maps, window=window)

    def test_negative_rates(self, simple_spike_counts) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            log_poisson_likelihood(simple_spike_counts, -np.ones((2, 3)), window=1.0)

    def test_negative_counts(self, simple_rate_maps) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            log_poisson_likelihood(-np.ones((1, 2)), simple_rate_maps, window=1.0)

    def test_infinite_counts(self, simple_rate_maps) -> None:
        with pytest.raises(ValueError, match="finite"):
            log_poisson_likelihood(np.array([[np.inf, 0.0]]), simple_rate_maps, window=1.0)

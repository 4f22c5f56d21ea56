"""Tests for event-triggered snippets and ripple-triggered decoding."""

from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from neurodecode.decoding.analysis import decoding_analysis
from neurodecode.events import (
    TriggeredResult,
    event_window,
    plot_triggered,
    ripple_triggered_decoding,
    triggered_snippets,
)


@pytest.fixture(scope="module")
def track_result(track_1d):
    return decoding_analysis(*track_1d)


class TestEventWindow:
    """Tests for event_window."""

    def test_symmetric(self) -> None:
        assert_array_equal(event_window(0.1, 20.0), [-2, -1, 0, 1, 2])

    def test_rounds_half_width(self) -> None:
        assert_array_equal(event_window(0.13, 20.0), [-3, -2, -1, 0, 1, 2, 3])

    def test_zero_width(self) -> None:
        assert_array_equal(event_window(0.0, 50.0), [0])

    def test_negative_half_width(self) -> None:
        with pytest.raises(ValueError, match="half_width"):
            event_window(-0.1, 20.0)

    def test_non_positive_rate(self) -> None:
        with pytest.raises(ValueError, match="sample_rate"):
            event_window(0.1, 0.0)


class TestTriggeredSnippets:
    """Tests for triggered_snippets."""

    def test_edges_padded_with_nan(self) -> None:
        result = triggered_snippets(np.arange(5.0), [0, 4], [-1, 0, 1])
        assert_array_equal(result.snippets, [[np.nan, 0.0, 1.0], [3.0, 4.0, np.nan]])
        assert_allclose(result.mean, [3.0, 2.0, 1.0])
        assert result.n_events == 2

    def test_sem(self) -> None:
        signal = np.array([0.0, 1.0, 0.0, 3.0, 0.0, 5.0])
        result = triggered_snippets(signal, [1, 3, 5], [0])
        values = np.array([1.0, 3.0, 5.0])
        assert_allclose(result.mean, [3.0])
        assert_allclose(result.sem, [values.std(ddof=1) / np.sqrt(3)])

    def test_sem_undefined_with_one_event(self) -> None:
        result = triggered_snippets(np.arange(5.0), [2], [-1, 0, 1])
        assert_allclose(result.mean, [1.0, 2.0, 3.0])
        assert np.isnan(result.sem).all()

    def test_nan_signal_ignored_in_mean(self) -> None:
        signal = np.array([1.0, np.nan, 3.0, 5.0])
        result = triggered_snippets(signal, [1, 2], [0, 1])
        assert_allclose(result.mean, [3.0, 4.0])

    def test_no_events_warns(self) -> None:
        with pytest.warns(UserWarning, match="No events"):
            result = triggered_snippets(np.arange(5.0), [], [-1, 0, 1])
        assert result.snippets.shape == (0, 3)
        assert np.isnan(result.mean).all()
        assert np.isnan(result.sem).all()

    def test_lags(self) -> None:
        result = triggered_snippets(np.arange(10.0), [5], event_window(0.1, 20.0))
        assert_allclose(result.lags(20.0), [-0.1, -0.05, 0.0, 0.05, 0.1])

    def test_event_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="event_indices"):
            triggered_snippets(np.arange(5.0), [5], [0])

    def test_signal_must_be_1d(self) -> None:
        with pytest.raises(ValueError, match="1D"):
            triggered_snippets(np.zeros((5, 2)), [1], [0])


class TestRippleTriggeredDecoding:
    """Tests for ripple_triggered_decoding."""

    def test_aligns_decoded_position(self, track_result) -> None:
        peaks = np.zeros(track_result.n_time, dtype=bool)
        peaks[[300, 800, 1300]] = True
        triggered = ripple_triggered_decoding(track_result, peaks, sample_rate=50.0)

        assert isinstance(triggered, TriggeredResult)
        assert triggered.n_events == 3
        assert_array_equal(triggered.offsets, np.arange(-5, 6))
        position = track_result.map_position[:, 0]
        assert_array_equal(triggered.snippets[:, 5], position[[300, 800, 1300]])

    def test_mean_estimate_and_half_width(self, track_result) -> None:
        peaks = np.zeros(track_result.n_time, dtype=bool)
        peaks[1000] = True
        triggered = ripple_triggered_decoding(
            track_result, peaks, sample_rate=50.0, half_width=0.2, estimate="mean"
        )
        assert triggered.snippets.shape == (1, 21)
        assert_allclose(triggered.snippets[0], track_result.mean_position[990:1011, 0])

    def test_mask_length_mismatch(self, track_result) -> None:
        with pytest.raises(ValueError, match=r"\[E2004\]"):
            ripple_triggered_decoding(track_result, np.zeros(10, dtype=bool), sample_rate=50.0)

    def test_invalid_dim(self, track_result) -> None:
        peaks = np.zeros(track_result.n_time, dtype=bool)
        with pytest.raises(ValueError, match="dim"):
            ripple_triggered_decoding(track_result, peaks, sample_rate=50.0, dim=1)


class TestPlotTriggered:
    """Tests for plot_triggered."""

    def teardown_method(self) -> None:
        plt.close("all")

    def test_returns_axes(self) -> None:
        result = triggered_snippets(np.arange(20.0), [5, 10, 15], event_window(0.1, 20.0))
        ax = plot_triggered(result, 20.0)
        assert_allclose(ax.get_lines()[0].get_xdata(), result.lags(20.0))
        assert "n=3" in ax.get_title()
        assert ax.get_xlabel() == "Time from event (s)"

    def test_existing_axes_without_sem(self) -> None:
        result = triggered_snippets(np.arange(20.0), [5, 10], [-1, 0, 1])
        _, ax = plt.subplots()
        returned = plot_triggered(result, 20.0, ax=ax, show_sem=False, ylabel="x (cm)")
        assert returned is ax
        assert len(ax.collections) == 0
        assert ax.get_ylabel() == "x (cm)"

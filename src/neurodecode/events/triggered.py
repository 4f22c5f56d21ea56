"""Event-triggered snippets of per-sample signals.

Functions
---------
event_window : Symmetric sample offsets around an event
triggered_snippets : Signal snippets around events, with mean and SEM
ripple_triggered_decoding : Decoded trajectory around ripple peaks
plot_triggered : Plot the event-triggered mean with SEM shading

Notes
-----
Snippets extending beyond the recording are padded with NaN. The mean and
SEM at each offset use only the events where the signal is defined there.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

if TYPE_CHECKING:
    from matplotlib.axes import Axes

    from neurodecode.decoding._result import DecodingAnalysisResult

__all__ = [
    "TriggeredResult",
    "event_window",
    "plot_triggered",
    "ripple_triggered_decoding",
    "triggered_snippets",
]


@dataclass(frozen=True)
class TriggeredResult:
    """Signal snippets aligned on events.

    Attributes
    ----------
    offsets : NDArray[np.int64], shape (n_offsets,)
        Sample offsets relative to the event.
    snippets : NDArray[np.float64], shape (n_events, n_offsets)
        Signal around each event. NaN beyond the recording edges or where
        the signal is undefined.
    mean : NDArray[np.float64], shape (n_offsets,)
        Mean across events of the defined values.
    sem : NDArray[np.float64], shape (n_offsets,)
        Standard error of the mean (``ddof=1``). NaN where fewer than two
        events are defined.
    n_events : int
        Number of events.
    """

    offsets: NDArray[np.int64]
    snippets: NDArray[np.float64]
    mean: NDArray[np.float64]
    sem: NDArray[np.float64]
    n_events: int

    def lags(self, sample_rate: float) -> NDArray[np.float64]:
        """Offsets converted to seconds."""
        return self.offsets / float(sample_rate)


def event_window(half_width: float, sample_rate: float) -> NDArray[np.int64]:
    """Symmetric sample offsets spanning ``[-half_width, half_width]``.

    Parameters
    ----------
    half_width : float
        Half-width of the window (seconds).
    sample_rate : float
        Sampling rate (Hz).

    Returns
    -------
    NDArray[np.int64], shape (2 * n + 1,)
        ``-n, ..., 0, ..., n`` with ``n = round(half_width * sample_rate)``.

    Examples
    --------
    >>> event_window(0.1, 20.0)
    array([-2, -1,  0,  1,  2])
    """
    if half_width < 0:
        raise ValueError(f"half_width must be non-negative, got {half_width}.")
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}.")
    n = int(np.round(half_width * sample_rate))
    return np.arange(-n, n + 1, dtype=np.int64)


def triggered_snippets(
    signal: ArrayLike,
    event_indices: ArrayLike,
    offsets: ArrayLike,
) -> TriggeredResult:
    """Snippets of a signal around events.

    Parameters
    ----------
    signal : array-like, shape (n_time,)
        Per-sample signal. NaN marks undefined samples.
    event_indices : array-like of int, shape (n_events,)
        Sample index of each event.
    offsets : array-like of int, shape (n_offsets,)
        Sample offsets to extract around each event, e.g. from
        ``event_window``.

    Returns
    -------
    TriggeredResult
        Snippets with their mean and SEM across events.

    Warns
    -----
    UserWarning
        If there are no events; mean and SEM are then NaN.

    Examples
    --------
    >>> result = triggered_snippets(np.arange(5.0), [0, 4], [-1, 0, 1])
    >>> result.snippets
    array([[nan,  0.,  1.],
           [ 3.,  4., nan]])
    >>> result.mean
    array([3., 2., 1.])
    """
    signal = np.asarray(signal, dtype=np.float64)
    event_indices = np.asarray(event_indices, dtype=np.int64).ravel()
    offsets = np.asarray(offsets, dtype=np.int64).ravel()
    if signal.ndim != 1:
        raise ValueError(f"signal must be 1D (n_time,), got shape {signal.shape}.")
    if np.any((event_indices < 0) | (event_indices >= signal.size)):
        raise ValueError(f"event_indices must be in [0, {signal.size}).")

    if event_indices.size == 0:
        warnings.warn(
            "No events given; the triggered mean and SEM are undefined.",
            UserWarning,
            stacklevel=2,
        )

    positions = event_indices[:, np.newaxis] + offsets[np.newaxis, :]
    inside = (positions >= 0) & (positions < signal.size)
    snippets = np.full(positions.shape, np.nan)
    snippets[inside] = signal[positions[inside]]

    defined = np.isfinite(snippets)
    n_defined = defined.sum(axis=0)
    total = np.where(defined, snippets, 0.0).sum(axis=0)

    mean = np.full(offsets.shape, np.nan)
    has_data = n_defined > 0
    mean[has_data] = total[has_data] / n_defined[has_data]

    sem = np.full(offsets.shape, np.nan)
    enough = n_defined > 1
    if np.any(enough):
        deviations = np.where(defined, snippets - mean, 0.0)
        variance = (deviations**2).sum(axis=0)[enough] / (n_defined[enough] - 1)
        sem[enough] = np.sqrt(variance) / np.sqrt(n_defined[enough])

    return TriggeredResult(
        offsets=offsets,
        snippets=snippets,
        mean=mean,
        sem=sem,
        n_events=int(event_indices.size),
    )


def ripple_triggered_decoding(
    result: DecodingAnalysisResult,
    ripple_peak_mask: ArrayLike,
    sample_rate: float,
    half_width: float = 0.1,
    dim: int = 0,
    estimate: Literal["map", "mean"] = "map",
) -> TriggeredResult:
    """Decoded trajectory around sharp-wave ripple peaks.

    Parameters
    ----------
    result : DecodingAnalysisResult
        Output of ``decoding_analysis``.
    ripple_peak_mask : array-like of bool, shape (n_time,)
        True at the sample of each ripple peak.
    sample_rate : float
        Sampling rate of the decoded samples (Hz).
    half_width : float, default=0.1
        Half-width of the window around each peak (seconds).
    dim : int, default=0
        Decoded dimension.
    estimate : {"map", "mean"}, default="map"
        Which estimate to align.

    Returns
    -------
    TriggeredResult
        Decoded positions (units of the decoded variable) around each
        ripple peak. Undefined estimates are NaN.

    Raises
    ------
    ValueError
        [E2004] If ``ripple_peak_mask`` does not have one entry per decoded
        sample.
    """
    peaks = np.asarray(ripple_peak_mask, dtype=bool)
    if peaks.shape != (result.n_time,):
        raise ValueError(
            f"[E2004] ripple_peak_mask has shape {peaks.shape} but the decoding "
            f"result has {result.n_time} samples.\n"
            "  WHY: Ripple peaks are located on the decoded samples.\n"
            "  HOW: Detect ripples on the same sample times as the spike train, "
            "e.g. with neurodecode.binning.nearest_sample."
        )
    if estimate not in ("map", "mean"):
        raise ValueError(f"estimate must be 'map' or 'mean', got {estimate!r}.")
    if not 0 <= dim < result.n_dims:
        raise ValueError(f"dim must be in [0, {result.n_dims}), got {dim}.")

    position = result.map_position if estimate == "map" else result.mean_position
    return triggered_snippets(
        position[:, dim],
        np.flatnonzero(peaks),
        event_window(half_width, sample_rate),
    )


def plot_triggered(
    result: TriggeredResult,
    sample_rate: float,
    ax: Axes | None = None,
    *,
    show_sem: bool = True,
    color: str = "C0",
    ylabel: str = "Decoded position",
) -> Axes:
    """Plot the event-triggered mean with SEM shading.

    Parameters
    ----------
    result : TriggeredResult
        Output of ``triggered_snippets`` or ``ripple_triggered_decoding``.
    sample_rate : float
        Sampling rate used to convert offsets to seconds.
    ax : matplotlib.axes.Axes, optional
        Axes to draw on. A new figure is created when None.
    show_sem : bool, default=True
        Shade mean +/- SEM.
    color : str, default="C0"
        Line color.
    ylabel : str, default="Decoded position"
        Y-axis label.

    Returns
    -------
    matplotlib.axes.Axes
        The axes with the plot.
    """
    import matplotlib.pyplot as plt

    if ax is None:
        _, ax = plt.subplots()

    lags = result.lags(sample_rate)
    ax.plot(lags, result.mean, color=color, linewidth=1.5)
    if show_sem:
        ax.fill_between(
            lags, result.mean - result.sem, result.mean + result.sem, color=color, alpha=0.3
        )
    ax.axvline(0, color="gray", linestyle="--", alpha=0.5, linewidth=1)
    ax.set_xlabel("Time from event (s)")
    ax.set_ylabel(ylabel)
    ax.set_title(f"Event-triggered average (n={result.n_events} events)")
    return ax

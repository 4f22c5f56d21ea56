"""Discretization helpers shared by encoding and decoding.

Functions
---------
validate_bin_edges : Check a bin-edge sequence and return it as an array
discretize : Map continuous values to bin indices (``-1`` when outside)
bin_centers : Centers of consecutive bin edges
bin_spike_times : Resample spike times into a sample-aligned spike train
interval_mask : Boolean mask of samples falling inside time intervals
nearest_sample : Index of the sample closest to each event time

Notes
-----
Bin indices are 0-based. Undefined indices (value outside the edge range or
not finite) are encoded as ``-1`` so that an integer array never confuses a
missing value with bin 0.
"""

from __future__ import annotations

from typing import cast

import numpy as np
from numpy.typing import ArrayLike, NDArray

__all__ = [
    "bin_centers",
    "bin_spike_times",
    "discretize",
    "interval_mask",
    "nearest_sample",
    "validate_bin_edges",
]


def validate_bin_edges(edges: ArrayLike, name: str = "bin_edges") -> NDArray[np.float64]:
    """Validate a bin-edge sequence.

    Parameters
    ----------
    edges : array-like, shape (n_bins + 1,)
        Monotonically increasing bin edges.
    name : str, default="bin_edges"
        Parameter name used in error messages.

    Returns
    -------
    NDArray[np.float64], shape (n_bins + 1,)
        Edges as a float array.

    Raises
    ------
    ValueError
        [E2003] If fewer than two edges are given, or edges are not finite,
        or not strictly increasing.
    """
    arr = np.asarray(edges, dtype=np.float64)
    if arr.ndim != 1 or arr.size < 2:
        raise ValueError(
            f"[E2003] {name} must be a 1D sequence with at least 2 edges "
            f"(got shape {arr.shape}).\n"
            "  WHY: At least one bin is needed to discretize the variable.\n"
            "  HOW: Pass edges such as np.arange(0, 102, 2)."
        )
    if not np.all(np.isfinite(arr)):
        raise ValueError(
            f"[E2003] {name} contains NaN or Inf values.\n"
            "  WHY: Bin boundaries must be well-defined numbers.\n"
            "  HOW: Remove non-finite values from the edge sequence."
        )
    if np.any(np.diff(arr) <= 0):
        raise ValueError(
            f"[E2003] {name} must be strictly increasing.\n"
            "  WHY: Overlapping or empty bins make discretization ambiguous.\n"
            "  HOW: Sort the edges and remove duplicates."
        )
    return arr


def discretize(values: ArrayLike, edges: ArrayLike) -> NDArray[np.int64]:
    """Map continuous values to 0-based bin indices.

    Bins are half-open ``[edges[i], edges[i + 1])`` except the last one,
    which also includes ``edges[-1]``.

    Parameters
    ----------
    values : array-like
        Values to discretize. Any shape.
    edges : array-like, shape (n_bins + 1,)
        Strictly increasing bin edges.

    Returns
    -------
    NDArray[np.int64]
        Bin index for each value, same shape as ``values``. Values outside
        ``[edges[0], edges[-1]]`` or not finite get ``-1``.

    Examples
    --------
    >>> discretize([0.0, 0.5, 1.0, 2.0, 2.5, np.nan], [0.0, 1.0, 2.0])
    array([ 0,  0,  1,  1, -1, -1])
    """
    edges_arr = validate_bin_edges(edges, name="edges")
    vals = np.asarray(values, dtype=np.float64)
    n_bins = edges_arr.size - 1

    idx = np.searchsorted(edges_arr, vals, side="right") - 1
    idx = np.where(vals == edges_arr[-1], n_bins - 1, idx)

    outside = ~np.isfinite(vals) | (vals < edges_arr[0]) | (vals > edges_arr[-1])
    idx = np.where(outside, -1, idx)
    return cast("NDArray[np.int64]", idx.astype(np.int64))


def bin_centers(edges: ArrayLike) -> NDArray[np.float64]:
    """Centers of consecutive bin edges."""
    edges_arr = validate_bin_edges(edges, name="edges")
    return cast("NDArray[np.float64]", 0.5 * (edges_arr[:-1] + edges_arr[1:]))


def bin_spike_times(
    spike_times: ArrayLike,
    spike_ids: ArrayLike,
    sample_times: ArrayLike,
    *,
    cell_ids: ArrayLike | None = None,
) -> tuple[NDArray[np.float64], NDArray[np.int64]]:
    """Resample spike times into a spike train aligned with sample times.

    Each sample ``t_i`` collects the spikes falling in
    ``[t_i, t_{i+1})``; the last sample extends by one sampling period.
    Spikes before the first sample or after the last bin are dropped.

    Parameters
    ----------
    spike_times : array-like, shape (n_spikes,)
        Spike times in seconds.
    spike_ids : array-like, shape (n_spikes,)
        Cluster identifier of each spike.
    sample_times : array-like, shape (n_samples,)
        Regularly spaced sample timestamps in seconds.
    cell_ids : array-like, optional
        Cluster identifiers defining the column order. Defaults to the
        sorted unique values of ``spike_ids``.

    Returns
    -------
    spike_train : NDArray[np.float64], shape (n_samples, n_cells)
        Spike counts per sample and cell.
    cell_ids : NDArray[np.int64], shape (n_cells,)
        Cluster identifier of each column.

    Raises
    ------
    ValueError
        If ``spike_times`` and ``spike_ids`` differ in length or fewer than
        two sample times are given.
    """
    spike_times = np.asarray(spike_times, dtype=np.float64)
    spike_ids = np.asarray(spike_ids)
    sample_times = np.asarray(sample_times, dtype=np.float64)

    if spike_times.shape != spike_ids.shape:
        raise ValueError(
            f"spike_times and spike_ids must have the same shape, got "
            f"{spike_times.shape} and {spike_ids.shape}."
        )
    if sample_times.size < 2:
        raise ValueError(
            "sample_times must contain at least 2 timestamps to infer the "
            "sampling period."
        )

    if cell_ids is None:
        ids = np.unique(spike_ids)
    else:
        ids = np.asarray(cell_ids)

    sample_period = float(np.mean(np.diff(sample_times)))
    edges = np.append(sample_times, sample_times[-1] + sample_period)

    spike_train = np.zeros((sample_times.size, ids.size), dtype=np.float64)
    for icell, cell_id in enumerate(ids):
        counts, _ = np.histogram(spike_times[spike_ids == cell_id], bins=edges)
        spike_train[:, icell] = counts

    return spike_train, ids.astype(np.int64)


def interval_mask(
    sample_times: ArrayLike,
    starts: ArrayLike,
    stops: ArrayLike,
) -> NDArray[np.bool_]:
    """Samples falling inside any ``[start, stop]`` interval (inclusive)."""
    sample_times = np.asarray(sample_times, dtype=np.float64)
    starts = np.atleast_1d(np.asarray(starts, dtype=np.float64))
    stops = np.atleast_1d(np.asarray(stops, dtype=np.float64))
    if starts.shape != stops.shape:
        raise ValueError(
            f"starts and stops must have the same shape, got {starts.shape} "
            f"and {stops.shape}."
        )

    mask = np.zeros(sample_times.shape, dtype=bool)
    for start, stop in zip(starts, stops, strict=True):
        mask |= (sample_times >= start) & (sample_times <= stop)
    return mask


def nearest_sample(
    sample_times: ArrayLike,
    event_times: ArrayLike,
) -> NDArray[np.int64]:
    """Index of the sample closest in time to each event.

    Parameters
    ----------
    sample_times : array-like, shape (n_samples,)
        Sorted sample timestamps.
    event_times : array-like, shape (n_events,)
        Event timestamps.

    Returns
    -------
    NDArray[np.int64], shape (n_events,)
        Sample index for each event. Ties go to the earlier sample.
    """
    sample_times = np.asarray(sample_times, dtype=np.float64)
    event_times = np.atleast_1d(np.asarray(event_times, dtype=np.float64))
    if sample_times.size == 1:
        return np.zeros(event_times.shape, dtype=np.int64)

    right = np.clip(np.searchsorted(sample_times, event_times), 1, sample_times.size - 1)
    left = right - 1
    pick_left = np.abs(event_times - sample_times[left]) <= np.abs(
        sample_times[right] - event_times
    )
    return cast("NDArray[np.int64]", np.where(pick_left, left, right).astype(np.int64))

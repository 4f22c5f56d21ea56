"""Rate-map construction for decoding.

A rate map is the smoothed spike-count map of a cell divided by the smoothed
occupancy map, both accumulated over the same discretized samples. Bins whose
occupancy is at or below a threshold are undefined (NaN) in every map, and
stay undefined after smoothing, so that "never visited" is never mistaken for
"zero firing".

Functions
---------
compute_map : Accumulate per-sample weights on a bin grid
smooth_map : NaN-aware Gaussian smoothing (linear or circular axes)
compute_rate_maps : Occupancy and per-cell rate maps from binned samples
smooth_spike_counts : Spike counts summed over a centered sliding window

Notes
-----
Smoothing widths are expressed in bins, not in units of the binned
variable.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import cast

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.ndimage import convolve1d, gaussian_filter

__all__ = [
    "RateMaps",
    "compute_map",
    "compute_rate_maps",
    "smooth_map",
    "smooth_spike_counts",
]


@dataclass(frozen=True)
class RateMaps:
    """Rate maps and the occupancy they were normalized by.

    Attributes
    ----------
    rate_maps : NDArray[np.float64], shape (n_cells, *grid_shape)
        Firing rate per bin (spikes per unit of occupancy, Hz when the
        occupancy is in seconds). NaN where occupancy is undefined.
    occupancy : NDArray[np.float64], shape grid_shape
        Smoothed occupancy. NaN at or below the occupancy threshold.
    """

    rate_maps: NDArray[np.float64]
    occupancy: NDArray[np.float64]

    @property
    def n_cells(self) -> int:
        """Number of cells."""
        return int(self.rate_maps.shape[0])


def _as_index_tuple(
    bin_indices: tuple[ArrayLike, ...] | ArrayLike,
) -> tuple[NDArray[np.int64], ...]:
    if isinstance(bin_indices, tuple):
        return tuple(np.asarray(idx, dtype=np.int64) for idx in bin_indices)
    # A 2D array (or nested list) holds one row of indices per dimension.
    arr = np.asarray(bin_indices, dtype=np.int64)
    if arr.ndim == 2:
        return tuple(arr)
    return (arr,)


def compute_map(
    bin_indices: tuple[ArrayLike, ...] | ArrayLike,
    weights: ArrayLike,
    n_bins: Sequence[int] | int,
) -> NDArray[np.float64]:
    """Accumulate per-sample weights on a bin grid.

    Parameters
    ----------
    bin_indices : array-like or tuple of array-like
        Bin index of every sample: a 1D array for a 1D grid, otherwise a
        tuple of one (n_samples,) array per dimension (or a 2D array with one
        row per dimension). Samples with a negative index in any dimension
        are ignored.
    weights : array-like, shape (n_samples,)
        Value added to the bin of each sample. Non-finite weights are
        ignored.
    n_bins : int or sequence of int
        Grid shape.

    Returns
    -------
    NDArray[np.float64], shape n_bins
        Sum of weights per bin. Bins without samples are 0.

    Examples
    --------
    >>> compute_map([0, 0, 2, -1], [1.0, 1.0, 1.0, 1.0], 3)
    array([2., 0., 1.])
    """
    indices = _as_index_tuple(bin_indices)
    shape = (int(n_bins),) if np.isscalar(n_bins) else tuple(int(n) for n in n_bins)
    weights = np.asarray(weights, dtype=np.float64)

    if len(indices) != len(shape):
        raise ValueError(
            f"Got bin indices for {len(indices)} dimension(s) but a grid of "
            f"shape {shape}."
        )
    for idx, n in zip(indices, shape, strict=True):
        if idx.shape != weights.shape:
            raise ValueError(
                f"bin indices have shape {idx.shape} but weights have shape "
                f"{weights.shape}."
            )
        if np.any(idx >= n):
            raise ValueError(f"bin index out of range for a dimension of {n} bins.")

    keep = np.isfinite(weights)
    for idx in indices:
        keep &= idx >= 0

    flat = np.ravel_multi_index(tuple(idx[keep] for idx in indices), shape)
    counts = np.bincount(flat, weights=weights[keep], minlength=int(np.prod(shape)))
    return cast("NDArray[np.float64]", counts.reshape(shape))


def smooth_map(
    values: ArrayLike,
    sigma_bins: Sequence[float] | float,
    *,
    circular: Sequence[bool] | bool = False,
) -> NDArray[np.float64]:
    """NaN-aware Gaussian smoothing of a map.

    Undefined (NaN) bins do not contribute to their neighbours: the map and
    a validity mask are smoothed separately and divided, which renormalizes
    the kernel over defined bins. Undefined bins remain undefined.

    Parameters
    ----------
    values : array-like
        Map to smooth (any number of dimensions).
    sigma_bins : float or sequence of float
        Gaussian SD per axis, in bins. 0 leaves an axis unsmoothed.
    circular : bool or sequence of bool, default=False
        Axes that wrap around (e.g. oscillation phase).

    Returns
    -------
    NDArray[np.float64]
        Smoothed map, same shape as ``values``.
    """
    values = np.asarray(values, dtype=np.float64)
    ndim = values.ndim
    sigmas = [float(sigma_bins)] * ndim if np.isscalar(sigma_bins) else list(sigma_bins)
    wraps = [bool(circular)] * ndim if isinstance(circular, bool) else list(circular)
    if len(sigmas) != ndim or len(wraps) != ndim:
        raise ValueError(
            f"sigma_bins and circular must have one entry per axis ({ndim})."
        )
    if any(s < 0 for s in sigmas):
        raise ValueError(f"sigma_bins must be non-negative, got {sigmas}.")

    if all(s == 0 for s in sigmas):
        return values.copy()

    modes = ["wrap" if w else "constant" for w in wraps]
    defined = np.isfinite(values)
    filled = np.where(defined, values, 0.0)

    smoothed = gaussian_filter(filled, sigma=sigmas, mode=modes, cval=0.0)
    weights = gaussian_filter(defined.astype(np.float64), sigma=sigmas, mode=modes, cval=0.0)

    result = np.full(values.shape, np.nan)
    valid = defined & (weights > 0)
    result[valid] = smoothed[valid] / weights[valid]
    return result


def compute_rate_maps(
    bin_indices: tuple[ArrayLike, ...] | ArrayLike,
    spike_train: ArrayLike,
    grid_shape: Sequence[int] | int,
    *,
    sample_duration: float,
    occupancy_threshold: float = 0.0,
    smooth_bins: Sequence[float] | float = 0.0,
    circular: Sequence[bool] | bool = False,
) -> RateMaps:
    """Occupancy map and per-cell rate maps from binned samples.

    Parameters
    ----------
    bin_indices : array-like or tuple of array-like
        Bin index of every sample, as accepted by ``compute_map``.
        Negative indices mark samples outside the grid.
    spike_train : array-like, shape (n_samples, n_cells)
        Spike counts per sample and cell.
    grid_shape : int or sequence of int
        Number of bins per dimension.
    sample_duration : float
        Occupancy contributed by one sample (seconds).
    occupancy_threshold : float, default=0.0
        Bins with occupancy at or below this value are undefined. With the
        default, unvisited bins are undefined.
    smooth_bins : float or sequence of float, default=0.0
        Gaussian smoothing SD per axis, in bins.
    circular : bool or sequence of bool, default=False
        Axes that wrap around during smoothing.

    Returns
    -------
    RateMaps
        Rate maps of shape (n_cells, *grid_shape) and the occupancy map.

    Examples
    --------
    >>> x_bins = np.array([0, 0, 1, 1])
    >>> spikes = np.array([[1.0], [1.0], [0.0], [2.0]])
    >>> maps = compute_rate_maps(x_bins, spikes, 2, sample_duration=0.5)
    >>> maps.rate_maps
    array([[2., 2.]])
    """
    spike_train = np.asarray(spike_train, dtype=np.float64)
    if spike_train.ndim != 2:
        raise ValueError(
            f"spike_train must be 2D (n_samples, n_cells), got shape {spike_train.shape}."
        )
    shape = (int(grid_shape),) if np.isscalar(grid_shape) else tuple(int(n) for n in grid_shape)

    flat = np.full(spike_train.shape[0], float(sample_duration))
    occupancy = compute_map(bin_indices, flat, shape)
    occupancy[occupancy <= occupancy_threshold] = np.nan
    occupancy = smooth_map(occupancy, smooth_bins, circular=circular)

    undefined = np.isnan(occupancy)
    n_cells = spike_train.shape[1]
    rate_maps = np.full((n_cells, *shape), np.nan)
    for icell in range(n_cells):
        spike_map = compute_map(bin_indices, spike_train[:, icell], shape)
        spike_map[undefined] = np.nan
        spike_map = smooth_map(spike_map, smooth_bins, circular=circular)
        rate_maps[icell] = spike_map / occupancy

    return RateMaps(rate_maps=rate_maps, occupancy=occupancy)


def smooth_spike_counts(spike_train: ArrayLike, n_samples: int) -> NDArray[np.float64]:
    """Spike counts summed over a centered sliding window.

    Parameters
    ----------
    spike_train : array-like, shape (n_samples_total, n_cells)
        Spike counts per sample.
    n_samples : int
        Odd window length in samples.

    Returns
    -------
    NDArray[np.float64], shape (n_samples_total, n_cells)
        Sum of spike counts in the window centered on each sample. The
        window is truncated at the recording edges.

    Raises
    ------
    ValueError
        If ``n_samples`` is not a positive odd integer.
    """
    if n_samples < 1 or n_samples % 2 == 0:
        raise ValueError(f"n_samples must be a positive odd integer, got {n_samples}.")
    spike_train = np.asarray(spike_train, dtype=np.float64)
    if n_samples == 1:
        return spike_train.copy()
    kernel = np.ones(n_samples, dtype=np.float64)
    return cast(
        "NDArray[np.float64]",
        convolve1d(spike_train, kernel, axis=0, mode="constant", cval=0.0),
    )

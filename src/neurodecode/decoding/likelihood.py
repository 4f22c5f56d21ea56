"""Poisson likelihood for Bayesian decoding.

Under an independent Poisson model with rate ``lambda_c(b)`` for cell ``c``
at bin ``b``, the probability of observing counts ``n_c`` in a window of
duration ``tau`` is proportional (across bins) to::

    exp(-tau * sum_c lambda_c(b)) * prod_c lambda_c(b) ** n_c

In log space (dropping terms constant across bins)::

    log L(b) = -tau * sum_c lambda_c(b) + sum_c n_c * log(lambda_c(b))

Functions
---------
log_poisson_likelihood : Log-likelihood over bins, accumulated cell by cell

Notes
-----
The ``n_c * log(tau)`` and ``-log(n_c!)`` terms are omitted. They are
constant across bins for a given time sample and cancel during posterior
normalization.
"""

from __future__ import annotations

from typing import cast

import numpy as np
from numpy.typing import ArrayLike, NDArray

__all__ = ["log_poisson_likelihood"]


def log_poisson_likelihood(
    spike_counts: ArrayLike,
    rate_maps: ArrayLike,
    window: float,
    *,
    min_rate: float = 1e-10,
) -> NDArray[np.float64]:
    """Log Poisson likelihood of spike counts for every bin.

    The sum over cells is a reduce with one ``(n_time, n_bins)``
    accumulator: each cell adds its ``n_c * log(lambda_c)`` term in turn,
    so memory stays O(n_time * n_bins) whatever the number of cells. The
    reduction is associative, so cells may be accumulated in any order.

    Parameters
    ----------
    spike_counts : array-like, shape (n_time, n_cells)
        Spike counts observed in each decoding window. May be real-valued
        (smoothed counts). NaN marks a sample whose counts are missing.
    rate_maps : array-like, shape (n_cells, n_bins)
        Firing rates per flattened bin, in events per second. NaN marks an
        undefined bin.
    window : float
        Duration of the decoding window (seconds).
    min_rate : float, default=1e-10
        Floor **added** to every rate so that a zero rate does not make the
        likelihood of a bin exactly zero for any nonzero count.

    Returns
    -------
    NDArray[np.float64], shape (n_time, n_bins)
        Log-likelihood up to an additive constant per row. NaN at bins where
        any cell's rate is undefined, and over whole rows where any count
        is NaN.

    Raises
    ------
    ValueError
        [E2001] If the number of cells differs between ``spike_counts`` and
        ``rate_maps``. Also if arrays have the wrong dimensionality, if
        ``window`` is not positive, if rates or counts are negative, or if a
        count is infinite.

    Examples
    --------
    >>> counts = np.array([[3.0]])
    >>> rates = np.array([[5.0, 1.0]])
    >>> ll = log_poisson_likelihood(counts, rates, window=1.0)
    >>> int(np.argmax(ll[0]))
    0
    """
    spike_counts = np.asarray(spike_counts, dtype=np.float64)
    rate_maps = np.asarray(rate_maps, dtype=np.float64)

    if spike_counts.ndim != 2:
        raise ValueError(
            f"spike_counts must be 2D (n_time, n_cells), got shape {spike_counts.shape}."
        )
    if rate_maps.ndim != 2:
        raise ValueError(
            f"rate_maps must be 2D (n_cells, n_bins), got shape {rate_maps.shape}."
        )
    if rate_maps.shape[0] != spike_counts.shape[1]:
        raise ValueError(
            f"[E2001] rate_maps has {rate_maps.shape[0]} cells but spike_counts "
            f"has {spike_counts.shape[1]} columns.\n"
            "  WHY: Each column of spike_counts must correspond to the rate "
            "map of the same cell.\n"
            "  HOW: Subset rate maps and spike counts with the same cell "
            "indices, in the same order."
        )
    if not np.isfinite(window) or window <= 0:
        raise ValueError(f"window must be positive (seconds), got {window}.")
    if np.any(rate_maps < 0):
        raise ValueError("rate_maps must be non-negative (NaN allowed).")
    if np.any(spike_counts < 0):
        raise ValueError("spike_counts must be non-negative.")
    if np.any(np.isinf(spike_counts)):
        raise ValueError("spike_counts must be finite (NaN marks a missing sample).")

    rates = rate_maps + min_rate
    n_time = spike_counts.shape[0]
    n_bins = rates.shape[1]

    # Rate penalty; NaN in any cell makes the whole bin undefined.
    accumulator = np.empty((n_time, n_bins), dtype=np.float64)
    accumulator[:] = -window * rates.sum(axis=0)

    with np.errstate(divide="ignore", invalid="ignore"):
        log_rates = np.log(rates)

    for icell in range(rates.shape[0]):
        counts = spike_counts[:, icell]
        fired = counts > 0
        if not np.any(fired):
            continue
        # rate ** 0 == 1: samples with no spike contribute nothing.
        accumulator[fired] += counts[fired, np.newaxis] * log_rates[icell]

    # A missing count leaves the sample undefined rather than silent.
    accumulator[np.isnan(spike_counts).any(axis=1)] = np.nan

    return cast("NDArray[np.float64]", accumulator)

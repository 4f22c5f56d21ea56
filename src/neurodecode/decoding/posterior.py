"""Posterior normalization and Bayesian decoding.

Functions
---------
normalize_to_posterior : NaN-aware row normalization of log-probabilities
decode_posterior : Posterior over the bin grid for every time sample
bayesian_decode : MAP and posterior-mean estimates with a validity mask

Notes
-----
All computations are performed in the log domain. Each row is shifted by its
maximum over defined entries before exponentiation, so large spike counts
cannot overflow. NaN entries (bins where a rate is undefined) stay NaN in
the posterior and are excluded from the normalizing sum.
"""

from __future__ import annotations

import logging
from typing import cast

import numpy as np
from numpy.typing import ArrayLike, NDArray

from neurodecode.decoding._result import BayesianEstimates
from neurodecode.decoding.estimates import expected_bin, map_estimate
from neurodecode.decoding.likelihood import log_poisson_likelihood

__all__ = [
    "bayesian_decode",
    "decode_posterior",
    "normalize_to_posterior",
]

logger = logging.getLogger(__name__)


def normalize_to_posterior(log_probability: ArrayLike) -> NDArray[np.float64]:
    """Convert unnormalized log-probabilities to a posterior, row by row.

    Parameters
    ----------
    log_probability : array-like, shape (n_time, n_bins)
        Log-probability up to an additive constant per row. NaN marks
        undefined bins; ``-inf`` marks bins with zero probability.

    Returns
    -------
    NDArray[np.float64], shape (n_time, n_bins)
        Posterior. Each row sums to 1 over its defined entries; NaN entries
        stay NaN. Rows without any defined entry of nonzero probability are
        entirely NaN.

    Examples
    --------
    >>> posterior = normalize_to_posterior([[0.0, 0.0, np.nan]])
    >>> posterior
    array([[0.5, 0.5, nan]])
    >>> normalize_to_posterior([[np.nan, np.nan]])
    array([[nan, nan]])
    """
    log_probability = np.asarray(log_probability, dtype=np.float64)
    if log_probability.ndim != 2:
        raise ValueError(
            f"log_probability must be 2D (n_time, n_bins), got shape "
            f"{log_probability.shape}."
        )

    defined = ~np.isnan(log_probability)
    filled = np.where(defined, log_probability, -np.inf)
    if filled.shape[1] == 0:
        return np.full(filled.shape, np.nan)

    row_max = filled.max(axis=1, keepdims=True)
    degenerate = ~np.isfinite(row_max[:, 0])
    row_max[degenerate] = 0.0

    posterior = np.exp(filled - row_max)
    total = posterior.sum(axis=1, keepdims=True)
    total[degenerate] = 1.0
    posterior /= total

    posterior[~defined] = np.nan
    posterior[degenerate] = np.nan
    return cast("NDArray[np.float64]", posterior)


def _log_prior(prior: ArrayLike | None, grid_shape: tuple[int, ...]) -> NDArray[np.float64]:
    """Normalized log prior over flattened bins (0 for a flat prior)."""
    n_bins = int(np.prod(grid_shape))
    if prior is None:
        return np.zeros(n_bins)

    prior_arr = np.asarray(prior, dtype=np.float64)
    if prior_arr.shape not in (grid_shape, (n_bins,)):
        raise ValueError(
            f"[E2005] prior has shape {prior_arr.shape} but the bin grid has "
            f"shape {grid_shape}.\n"
            "  WHY: The prior assigns one probability to every bin of the "
            "rate maps.\n"
            f"  HOW: Pass a prior of shape {grid_shape} or ({n_bins},), or "
            "None for a flat prior."
        )
    prior_arr = prior_arr.ravel()
    if not np.all(np.isfinite(prior_arr)) or np.any(prior_arr < 0):
        raise ValueError(
            "[E2005] prior must be finite and non-negative.\n"
            "  WHY: A prior is a probability distribution over bins.\n"
            "  HOW: Replace NaN or negative entries with 0."
        )
    total = prior_arr.sum()
    if total <= 0:
        raise ValueError(
            "[E2005] prior must have positive total mass.\n"
            "  WHY: An all-zero prior rules out every bin.\n"
            "  HOW: Give at least one bin a positive prior probability."
        )
    with np.errstate(divide="ignore"):
        return cast("NDArray[np.float64]", np.log(prior_arr / total))


def _flatten_rate_maps(rate_maps: ArrayLike) -> tuple[NDArray[np.float64], tuple[int, ...]]:
    rate_maps = np.asarray(rate_maps, dtype=np.float64)
    if rate_maps.ndim not in (2, 3):
        raise ValueError(
            "rate_maps must have shape (n_cells, n_x) or (n_cells, n_x, n_y), "
            f"got shape {rate_maps.shape}."
        )
    grid_shape = tuple(int(n) for n in rate_maps.shape[1:])
    # Explicit width: -1 cannot be inferred when there are no cells.
    n_bins = int(np.prod(grid_shape))
    return rate_maps.reshape(rate_maps.shape[0], n_bins), grid_shape


def decode_posterior(
    rate_maps: ArrayLike,
    spike_counts: ArrayLike,
    window: float,
    *,
    prior: ArrayLike | None = None,
    min_rate: float = 1e-10,
) -> NDArray[np.float64]:
    """Posterior over the bin grid for every time sample.

    Computes ``P(b | n) ∝ prior(b) * exp(-window * Σ_c λ_c(b)) * Π_c λ_c(b)^n_c``
    for every sample, under independent Poisson firing.

    Parameters
    ----------
    rate_maps : array-like, shape (n_cells, n_x) or (n_cells, n_x, n_y)
        Firing rate per bin (Hz). NaN marks undefined bins.
    spike_counts : array-like, shape (n_time, n_cells)
        Spike counts in the decoding window around each sample, with cells in
        the same order as ``rate_maps``.
    window : float
        Duration of the decoding window (seconds).
    prior : array-like, optional
        Prior over bins, grid-shaped or flat. Normalized internally. None
        is a flat prior.
    min_rate : float, default=1e-10
        Floor added to every rate.

    Returns
    -------
    NDArray[np.float64], shape (n_time, *grid_shape)
        Posterior probability per bin. Each row sums to 1 over defined bins.

    Raises
    ------
    ValueError
        [E2001] cell-count mismatch; [E2005] invalid prior; also for
        malformed shapes or a non-positive window.

    See Also
    --------
    bayesian_decode : Point estimates from the same posterior.
    """
    flat_maps, grid_shape = _flatten_rate_maps(rate_maps)
    log_prior = _log_prior(prior, grid_shape)
    log_likelihood = log_poisson_likelihood(
        spike_counts, flat_maps, window, min_rate=min_rate
    )
    posterior = normalize_to_posterior(log_likelihood + log_prior)
    return posterior.reshape(posterior.shape[0], *grid_shape)


def bayesian_decode(
    rate_maps: ArrayLike,
    spike_counts: ArrayLike,
    window: float,
    *,
    prior: ArrayLike | None = None,
    min_rate: float = 1e-10,
    mask_silent: bool = True,
) -> BayesianEstimates:
    """Decode the binned variable from population spike counts.

    Parameters
    ----------
    rate_maps : array-like, shape (n_cells, n_x) or (n_cells, n_x, n_y)
        Firing rate per bin (Hz). NaN marks undefined bins.
    spike_counts : array-like, shape (n_time, n_cells)
        Spike counts in the decoding window around each sample. A NaN
        count makes that sample's estimates undefined.
    window : float
        Duration of the decoding window (seconds).
    prior : array-like, optional
        Prior over bins, grid-shaped or flat. None is a flat prior.
    min_rate : float, default=1e-10
        Floor added to every rate.
    mask_silent : bool, default=True
        If True, samples where no cell fired get undefined estimates. With
        no spikes the posterior only reflects the summed rate maps and the
        prior, not the animal's position.

    Returns
    -------
    BayesianEstimates
        MAP bin index and posterior-mean bin coordinate per dimension, with
        the validity mask.

    Raises
    ------
    ValueError
        [E2001] cell-count mismatch; [E2005] invalid prior; also for
        malformed shapes or a non-positive window.

    Examples
    --------
    >>> estimates = bayesian_decode(np.array([[5.0, 1.0]]), np.array([[3.0]]), 1.0)
    >>> estimates.map_bins
    array([[0]])
    >>> silent = bayesian_decode(np.array([[5.0, 1.0]]), np.array([[0.0]]), 1.0)
    >>> bool(silent.valid[0])
    False
    """
    flat_maps, grid_shape = _flatten_rate_maps(rate_maps)
    posterior = decode_posterior(
        rate_maps, spike_counts, window, prior=prior, min_rate=min_rate
    )
    flat_posterior = posterior.reshape(posterior.shape[0], flat_maps.shape[1])
    n_time = flat_posterior.shape[0]

    flat_map = map_estimate(flat_posterior)
    mean_bins = expected_bin(flat_posterior, grid_shape)
    valid = (flat_map >= 0) & np.all(np.isfinite(mean_bins), axis=1)

    if mask_silent:
        silent = np.asarray(spike_counts, dtype=np.float64).sum(axis=1) == 0
        if np.any(silent):
            logger.debug("%d of %d samples have no spikes", int(silent.sum()), n_time)
        valid &= ~silent

    map_bins = np.full((n_time, len(grid_shape)), -1, dtype=np.int64)
    if np.any(valid):
        unravelled = np.unravel_index(flat_map[valid], grid_shape)
        map_bins[valid] = np.column_stack(unravelled)
    mean_bins[~valid] = np.nan

    if flat_maps.shape[0] == 0:
        logger.debug("Decoding with no cells; every estimate is undefined")
        valid[:] = False
        map_bins[:] = -1
        mean_bins[:] = np.nan

    return BayesianEstimates(map_bins=map_bins, mean_bins=mean_bins, valid=valid)

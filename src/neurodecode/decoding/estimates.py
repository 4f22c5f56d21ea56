"""Point estimates from posterior distributions.

Functions
---------
map_estimate : Flat index of the maximum a posteriori bin
expected_bin : Posterior mean bin coordinate along each dimension

Notes
-----
Both functions accept posteriors containing NaN (undefined bins). NaN bins
never win the argmax and carry no mass in the expectation. A row without
any defined bin has an undefined estimate: ``-1`` for the MAP index, NaN
for the expectation.

Tie-breaking: when several defined bins share the maximal probability, the
MAP estimate is the one with the lowest flat (row-major) index.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import cast

import numpy as np
from numpy.typing import ArrayLike, NDArray

__all__ = [
    "expected_bin",
    "map_estimate",
]


def map_estimate(posterior: ArrayLike) -> NDArray[np.int64]:
    """Flat index of the maximum a posteriori bin for each time sample.

    Parameters
    ----------
    posterior : array-like, shape (n_time, n_bins)
        Posterior distribution over flattened bins. NaN marks undefined
        bins.

    Returns
    -------
    NDArray[np.int64], shape (n_time,)
        Index of the most probable defined bin; ties go to the lowest
        index. ``-1`` for rows without any defined bin.

    Examples
    --------
    >>> map_estimate([[0.25, 0.5, 0.25], [0.5, 0.5, 0.0], [np.nan, np.nan, np.nan]])
    array([ 1,  0, -1])
    >>> map_estimate([[np.nan, 0.4, 0.6]])
    array([2])
    """
    posterior = np.asarray(posterior, dtype=np.float64)
    if posterior.ndim != 2:
        raise ValueError(
            f"posterior must be 2D (n_time, n_bins), got shape {posterior.shape}."
        )
    if posterior.shape[1] == 0:
        return np.full(posterior.shape[0], -1, dtype=np.int64)

    defined = ~np.isnan(posterior)
    filled = np.where(defined, posterior, -np.inf)
    # np.argmax returns the first occurrence of the maximum.
    index = np.argmax(filled, axis=1).astype(np.int64)
    index[~defined.any(axis=1)] = -1
    return cast("NDArray[np.int64]", index)


def expected_bin(
    posterior: ArrayLike,
    grid_shape: Sequence[int] | None = None,
) -> NDArray[np.float64]:
    """Posterior mean bin coordinate along each dimension.

    Parameters
    ----------
    posterior : array-like, shape (n_time, n_bins)
        Posterior distribution over flattened bins (row-major order of
        ``grid_shape``). NaN marks undefined bins, counted as zero mass.
    grid_shape : sequence of int, optional
        Shape of the bin grid. Defaults to ``(n_bins,)``.

    Returns
    -------
    NDArray[np.float64], shape (n_time, n_dims)
        Expected 0-based bin index along each dimension. NaN for rows with
        no defined bin or zero total mass.

    Examples
    --------
    >>> expected_bin([[0.5, 0.0, 0.5]])
    array([[1.]])
    >>> expected_bin([[0.0, 1.0, 0.0, 0.0]], grid_shape=(2, 2))
    array([[0., 1.]])
    """
    posterior = np.asarray(posterior, dtype=np.float64)
    if posterior.ndim != 2:
        raise ValueError(
            f"posterior must be 2D (n_time, n_bins), got shape {posterior.shape}."
        )
    shape = (posterior.shape[1],) if grid_shape is None else tuple(grid_shape)
    if int(np.prod(shape)) != posterior.shape[1]:
        raise ValueError(
            f"grid_shape {shape} does not match {posterior.shape[1]} posterior bins."
        )

    coords = np.indices(shape, dtype=np.float64).reshape(len(shape), -1).T
    mass = np.nan_to_num(posterior, nan=0.0)
    total = mass.sum(axis=1)

    expected = np.full((posterior.shape[0], len(shape)), np.nan)
    has_mass = total > 0
    expected[has_mass] = (mass[has_mass] @ coords) / total[has_mass, np.newaxis]
    return expected

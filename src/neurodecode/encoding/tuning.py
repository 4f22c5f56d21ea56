"""Descriptive statistics of tuning curves.

Functions
---------
selectivity_index : Peak-to-trough modulation relative to the mean rate
directionality_index : Discrepancy between two direction-specific maps
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

__all__ = [
    "directionality_index",
    "selectivity_index",
]


def selectivity_index(tuning_curve: ArrayLike) -> float:
    """Selectivity of a tuning curve, ``(max - min) / mean``.

    Parameters
    ----------
    tuning_curve : array-like
        Firing rate per bin (any shape). NaN bins are ignored.

    Returns
    -------
    float
        Selectivity index, >= 0. NaN if no bin is defined or the mean rate
        is zero.

    Examples
    --------
    >>> selectivity_index([1.0, 1.0, 1.0])
    0.0
    >>> selectivity_index([0.0, 3.0, np.nan])
    2.0
    """
    t = np.asarray(tuning_curve, dtype=np.float64).ravel()
    t = t[np.isfinite(t)]
    if t.size == 0:
        return np.nan
    mean_rate = t.mean()
    if mean_rate == 0:
        return np.nan
    return float((t.max() - t.min()) / mean_rate)


def directionality_index(tuning_curve_1: ArrayLike, tuning_curve_2: ArrayLike) -> float:
    """Directionality index between two tuning curves.

    Computed as ``|sum(t1 - t2)| / sum(t1 + t2)`` over bins defined in both
    curves. 0 means identical mean rates in both directions, 1 means the
    cell fires in one direction only.

    Parameters
    ----------
    tuning_curve_1, tuning_curve_2 : array-like
        Tuning curves of identical shape (e.g. rate maps for the two running
        directions on a linear track).

    Returns
    -------
    float
        Directionality index in [0, 1] for non-negative rates. NaN if no
        bin is defined in both curves or both curves sum to zero.

    Raises
    ------
    ValueError
        If the tuning curves have different shapes.

    Examples
    --------
    >>> directionality_index([2.0, 0.0], [0.0, 0.0])
    1.0
    >>> directionality_index([1.0, 2.0], [2.0, 1.0])
    0.0
    """
    t1 = np.asarray(tuning_curve_1, dtype=np.float64)
    t2 = np.asarray(tuning_curve_2, dtype=np.float64)
    if t1.shape != t2.shape:
        raise ValueError(
            f"Tuning curves must have the same shape, got {t1.shape} and {t2.shape}."
        )
    valid = np.isfinite(t1) & np.isfinite(t2)
    if not np.any(valid):
        return np.nan
    total = np.sum(t1[valid] + t2[valid])
    if total == 0:
        return np.nan
    return float(np.abs(np.sum(t1[valid] - t2[valid])) / total)

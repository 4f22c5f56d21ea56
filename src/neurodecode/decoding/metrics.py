"""Decoding quality metrics.

Functions
---------
decoding_error : Signed decoded-minus-actual error per sample
confusion_matrix : Distribution of decoded bins for each actual bin
"""

from __future__ import annotations

from typing import cast

import numpy as np
from numpy.typing import ArrayLike, NDArray

__all__ = [
    "confusion_matrix",
    "decoding_error",
]


def decoding_error(decoded: ArrayLike, actual: ArrayLike) -> NDArray[np.float64]:
    """Signed decoding error in bin units.

    Parameters
    ----------
    decoded : array-like
        Decoded bin (MAP index or fractional posterior mean). Negative or
        NaN values mark undefined estimates.
    actual : array-like, same shape as ``decoded``
        Actual bin index. Negative values (``-1``) mark samples outside the
        bin range.

    Returns
    -------
    NDArray[np.float64]
        ``decoded - actual``. NaN wherever either side is undefined.

    Examples
    --------
    >>> decoding_error([3, -1, 2.5], [1, 4, 3])
    array([ 2. ,  nan, -0.5])
    """
    decoded = np.asarray(decoded, dtype=np.float64)
    actual = np.asarray(actual, dtype=np.float64)
    if decoded.shape != actual.shape:
        raise ValueError(
            f"decoded has shape {decoded.shape} but actual has shape {actual.shape}."
        )
    defined = np.isfinite(decoded) & (decoded >= 0) & np.isfinite(actual) & (actual >= 0)
    error = np.full(decoded.shape, np.nan)
    error[defined] = decoded[defined] - actual[defined]
    return error


def confusion_matrix(
    actual_bins: ArrayLike,
    decoded_bins: ArrayLike,
    n_bins: int,
) -> NDArray[np.float64]:
    """Distribution of decoded bins for each actual bin.

    Parameters
    ----------
    actual_bins : array-like of int, shape (n_samples,)
        Actual bin index per sample; ``-1`` when undefined.
    decoded_bins : array-like of int, shape (n_samples,)
        Decoded (MAP) bin index per sample; ``-1`` when undefined.
    n_bins : int
        Number of bins.

    Returns
    -------
    NDArray[np.float64], shape (n_bins, n_bins)
        Matrix indexed ``[decoded_bin, actual_bin]``. Each column is the
        fraction of samples at that actual bin decoded to each bin, and sums
        to 1. Columns of actual bins without any defined sample are NaN.
        Samples where either index is undefined are ignored.

    Examples
    --------
    >>> confusion_matrix([0, 0, 1], [0, 1, 1], n_bins=3)
    array([[0.5, 0. , nan],
           [0.5, 1. , nan],
           [0. , 0. , nan]])
    """
    actual_bins = np.asarray(actual_bins, dtype=np.int64)
    decoded_bins = np.asarray(decoded_bins, dtype=np.int64)
    if actual_bins.shape != decoded_bins.shape or actual_bins.ndim != 1:
        raise ValueError(
            "actual_bins and decoded_bins must be 1D with the same length, got "
            f"shapes {actual_bins.shape} and {decoded_bins.shape}."
        )
    if np.any(actual_bins >= n_bins) or np.any(decoded_bins >= n_bins):
        raise ValueError(f"bin indices must be < n_bins ({n_bins}).")

    defined = (actual_bins >= 0) & (decoded_bins >= 0)
    counts = np.zeros((n_bins, n_bins), dtype=np.float64)
    np.add.at(counts, (decoded_bins[defined], actual_bins[defined]), 1.0)

    column_totals = counts.sum(axis=0)
    matrix = np.full((n_bins, n_bins), np.nan)
    visited = column_totals > 0
    matrix[:, visited] = counts[:, visited] / column_totals[visited]
    return cast("NDArray[np.float64]", matrix)

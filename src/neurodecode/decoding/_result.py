"""Result containers for Bayesian decoding.

This module provides ``BayesianEstimates`` (point estimates returned by the
decoder) and ``DecodingAnalysisResult`` (output of the cross-validated
decoding pipeline).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from neurodecode.binning import bin_centers

if TYPE_CHECKING:
    from matplotlib.axes import Axes

    from neurodecode.config import DecodingParams

_DIM_NAMES = ("x", "y")


def _bins_to_coordinates(
    bins: NDArray[np.float64],
    bin_edges: Sequence[NDArray[np.float64]],
) -> NDArray[np.float64]:
    """Map (possibly fractional) 0-based bin indices to bin-center coordinates.

    Negative or NaN indices map to NaN. Fractional indices are linearly
    interpolated between neighbouring centers.
    """
    bins = np.asarray(bins, dtype=np.float64)
    if bins.shape[1] != len(bin_edges):
        raise ValueError(
            f"Got {len(bin_edges)} bin-edge sequence(s) for {bins.shape[1]} "
            "decoded dimension(s)."
        )
    coords = np.full(bins.shape, np.nan)
    for dim, edges in enumerate(bin_edges):
        centers = bin_centers(edges)
        index = bins[:, dim]
        defined = np.isfinite(index) & (index >= 0)
        coords[defined, dim] = np.interp(
            index[defined], np.arange(centers.size, dtype=np.float64), centers
        )
    return coords


@dataclass(frozen=True, eq=False)
class BayesianEstimates:
    """Point estimates of the decoded variable(s).

    Parameters
    ----------
    map_bins : NDArray[np.int64], shape (n_time, n_dims)
        Maximum a posteriori bin index along each dimension. ``-1`` where
        the estimate is undefined.
    mean_bins : NDArray[np.float64], shape (n_time, n_dims)
        Posterior mean bin coordinate (0-based, fractional) along each
        dimension. NaN where the estimate is undefined.
    valid : NDArray[np.bool_], shape (n_time,)
        True where both estimates are defined.

    Notes
    -----
    An estimate is undefined when no bin of the posterior is defined, or
    (by default) when no cell fired in the decoding window. The ``valid``
    mask is the authoritative record of this; ``-1`` and NaN are the
    corresponding fill values.
    """

    map_bins: NDArray[np.int64]
    mean_bins: NDArray[np.float64]
    valid: NDArray[np.bool_]

    def __post_init__(self) -> None:
        map_bins = np.asarray(self.map_bins, dtype=np.int64)
        mean_bins = np.asarray(self.mean_bins, dtype=np.float64)
        valid = np.asarray(self.valid, dtype=bool)
        if map_bins.ndim != 2 or map_bins.shape != mean_bins.shape:
            raise ValueError(
                f"map_bins and mean_bins must share a (n_time, n_dims) shape, got "
                f"{map_bins.shape} and {mean_bins.shape}."
            )
        if valid.shape != (map_bins.shape[0],):
            raise ValueError(
                f"valid must have shape ({map_bins.shape[0]},), got {valid.shape}."
            )
        for name, arr in (("map_bins", map_bins), ("mean_bins", mean_bins), ("valid", valid)):
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @classmethod
    def undefined(cls, n_time: int, n_dims: int) -> BayesianEstimates:
        """Estimates that are undefined for every sample."""
        return cls(
            map_bins=np.full((n_time, n_dims), -1, dtype=np.int64),
            mean_bins=np.full((n_time, n_dims), np.nan),
            valid=np.zeros(n_time, dtype=bool),
        )

    @property
    def n_time(self) -> int:
        """Number of decoded samples."""
        return int(self.map_bins.shape[0])

    @property
    def n_dims(self) -> int:
        """Number of decoded dimensions."""
        return int(self.map_bins.shape[1])

    def map_position(self, bin_edges: Sequence[NDArray[np.float64]]) -> NDArray[np.float64]:
        """MAP estimate as bin-center coordinates, shape (n_time, n_dims)."""
        return _bins_to_coordinates(self.map_bins.astype(np.float64), bin_edges)

    def mean_position(self, bin_edges: Sequence[NDArray[np.float64]]) -> NDArray[np.float64]:
        """Posterior-mean estimate as coordinates, shape (n_time, n_dims).

        Fractional bin coordinates are interpolated between bin centers.
        """
        return _bins_to_coordinates(self.mean_bins, bin_edges)


@dataclass(frozen=True, eq=False)
class DecodingAnalysisResult:
    """Output of the cross-validated decoding pipeline.

    Parameters
    ----------
    params : DecodingParams
        Parameters the analysis was run with.
    training_mask : NDArray[np.bool_], shape (n_time,)
        Samples selected to estimate rate maps.
    cell_indices : NDArray[np.int64], shape (n_selected,)
        Columns of the input spike train used for decoding.
    rate_maps : NDArray[np.float64], shape (n_cells, *grid_shape)
        Rate maps estimated on the full training selection. NaN rows for
        cells not used for decoding.
    rate_maps_cv : NDArray[np.float64], shape (n_folds, n_cells, *grid_shape)
        Rate maps estimated on the training part of each fold.
    occupancy : NDArray[np.float64], shape grid_shape
        Occupancy (seconds) of the full training selection.
    fold_index : NDArray[np.int64], shape (n_time,)
        Fold whose test set contains each training sample; ``-1`` for
        samples outside the training selection.
    true_bins : NDArray[np.int64], shape (n_time, n_dims)
        Discretized actual value of the decoded variable(s); ``-1`` when
        outside the bin range or unknown.
    estimates : BayesianEstimates
        Decoded estimates, in original sample order.
    map_error, mean_error : NDArray[np.float64], shape (n_time, n_dims)
        Decoded minus actual bin, for each estimate. NaN when either is
        undefined.
    confusion_matrices : tuple of NDArray[np.float64]
        One ``(n_bins, n_bins)`` matrix per dimension, indexed
        ``[decoded_bin, true_bin]`` over the training selection. Each column
        sums to 1; columns of never-visited bins are NaN.
    """

    params: DecodingParams
    training_mask: NDArray[np.bool_]
    cell_indices: NDArray[np.int64]
    rate_maps: NDArray[np.float64]
    rate_maps_cv: NDArray[np.float64]
    occupancy: NDArray[np.float64]
    fold_index: NDArray[np.int64]
    true_bins: NDArray[np.int64]
    estimates: BayesianEstimates
    map_error: NDArray[np.float64]
    mean_error: NDArray[np.float64]
    confusion_matrices: tuple[NDArray[np.float64], ...]

    @property
    def n_time(self) -> int:
        """Number of samples."""
        return int(self.training_mask.size)

    @property
    def n_dims(self) -> int:
        """Number of decoded dimensions."""
        return self.params.n_dims

    @property
    def bin_edges(self) -> tuple[NDArray[np.float64], ...]:
        """Bin edges per decoded dimension."""
        return self.params.bin_edges

    @property
    def bin_centers(self) -> tuple[NDArray[np.float64], ...]:
        """Bin centers per decoded dimension."""
        return tuple(bin_centers(edges) for edges in self.params.bin_edges)

    @property
    def map_position(self) -> NDArray[np.float64]:
        """MAP estimate in units of the decoded variable(s)."""
        return self.estimates.map_position(self.params.bin_edges)

    @property
    def mean_position(self) -> NDArray[np.float64]:
        """Posterior-mean estimate in units of the decoded variable(s)."""
        return self.estimates.mean_position(self.params.bin_edges)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per sample with actual and decoded bins and errors.

        Returns
        -------
        pd.DataFrame
            Columns, for each decoded dimension ``d`` in ``x`` (and ``y``):

            - ``{d}_bin`` : actual bin (nullable ``Int64``)
            - ``{d}_map_bin`` : MAP bin (nullable ``Int64``)
            - ``{d}_mean_bin`` : posterior-mean bin coordinate
            - ``{d}_map_error``, ``{d}_mean_error`` : decoded minus actual

            plus ``valid`` (estimate defined), ``in_training`` and ``fold``
            (nullable ``Int64``, missing outside the training selection).
        """
        data: dict[str, Any] = {}
        for dim in range(self.n_dims):
            name = _DIM_NAMES[dim]
            true_bins = self.true_bins[:, dim]
            map_bins = self.estimates.map_bins[:, dim]
            data[f"{name}_bin"] = pd.array(
                np.where(true_bins >= 0, true_bins, 0), dtype="Int64"
            )
            data[f"{name}_bin"][true_bins < 0] = pd.NA
            data[f"{name}_map_bin"] = pd.array(
                np.where(map_bins >= 0, map_bins, 0), dtype="Int64"
            )
            data[f"{name}_map_bin"][map_bins < 0] = pd.NA
            data[f"{name}_mean_bin"] = self.estimates.mean_bins[:, dim]
            data[f"{name}_map_error"] = self.map_error[:, dim]
            data[f"{name}_mean_error"] = self.mean_error[:, dim]

        data["valid"] = self.estimates.valid
        data["in_training"] = self.training_mask
        fold = pd.array(np.where(self.fold_index >= 0, self.fold_index, 0), dtype="Int64")
        fold[self.fold_index < 0] = pd.NA
        data["fold"] = fold
        return pd.DataFrame(data)

    def plot_confusion_matrix(
        self,
        dim: int = 0,
        ax: Axes | None = None,
        *,
        cmap: str = "viridis",
        colorbar: bool = True,
        **kwargs: Any,
    ) -> Axes:
        """Plot the confusion matrix of one decoded dimension.

        Parameters
        ----------
        dim : int, default=0
            Decoded dimension (0 for x, 1 for y).
        ax : matplotlib.axes.Axes, optional
            Axes to draw on. A new figure is created when None.
        cmap : str, default="viridis"
            Colormap name.
        colorbar : bool, default=True
            Whether to add a colorbar.
        **kwargs
            Passed to ``ax.imshow``.

        Returns
        -------
        matplotlib.axes.Axes
            The axes the matrix was drawn on.
        """
        import matplotlib.pyplot as plt

        if not 0 <= dim < self.n_dims:
            raise ValueError(f"dim must be in [0, {self.n_dims}), got {dim}.")

        if ax is None:
            _, ax = plt.subplots()

        edges = self.params.bin_edges[dim]
        im_kwargs: dict[str, Any] = {
            "aspect": "auto",
            "origin": "lower",
            "interpolation": "nearest",
            "cmap": cmap,
            "extent": [edges[0], edges[-1], edges[0], edges[-1]],
        }
        im_kwargs.update(kwargs)

        im = ax.imshow(self.confusion_matrices[dim], **im_kwargs)
        if colorbar:
            plt.colorbar(im, ax=ax, label="P(decoded | actual)")

        name = _DIM_NAMES[dim]
        ax.set_xlabel(f"Actual {name}")
        ax.set_ylabel(f"Decoded {name}")
        ax.set_title("Cross-validated decoding")
        return ax

"""Immutable parameter and input containers.

Parameter bundles are frozen dataclasses validated on construction. Array
fields are copied and made read-only, so a parameter object can be shared
between analyses without any of them altering it. Use
``dataclasses.replace`` to derive a variant::

    >>> from dataclasses import replace
    >>> params = DecodingParams(sample_rate=50.0, x_bin_edges=np.arange(0, 102, 2))
    >>> params_5fold = replace(params, n_folds=5)

Classes
-------
DecodingParams : Parameters of the cross-validated decoding pipeline
ThetaParams : Parameters of the theta-phase analyses
BehaviorData : Per-sample behavioral variables aligned with the spike train
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from neurodecode.binning import validate_bin_edges

__all__ = [
    "BehaviorData",
    "DecodingParams",
    "ThetaParams",
]


def _frozen_array(values: ArrayLike, dtype: type | None = None) -> NDArray:
    """Copy ``values`` into a read-only array."""
    arr = np.array(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


def _frozen_labels(values: ArrayLike | None) -> NDArray | None:
    if values is None:
        return None
    return _frozen_array(np.atleast_1d(np.asarray(values)))


@dataclass(frozen=True, eq=False)
class DecodingParams:
    """Parameters of the cross-validated decoding pipeline.

    Parameters
    ----------
    sample_rate : float
        Sampling rate of the behavioral and spike data (Hz).
    x_bin_edges : array-like, shape (n_x + 1,)
        Bin edges of the first decoded variable.
    y_bin_edges : array-like, optional
        Bin edges of the second decoded variable. None decodes in 1D.
    window : float, default=0.3
        Decoding window (seconds). Spike counts are summed over
        ``2 * floor(0.5 * window * sample_rate) + 1`` samples.
    n_folds : int, default=10
        Number of cross-validation folds (>= 2).
    min_spikes : float, default=100
        A cell is decoded from only if its spike total over the training
        selection is strictly greater than this value.
    occupancy_threshold : float, default=0.0
        Occupancy (seconds) at or below which map bins are undefined.
    x_smooth_bins, y_smooth_bins : float, default=1.0
        Gaussian smoothing SD of the maps, in bins. 0 disables smoothing.
    conditions : array-like, optional
        Experimental conditions used for training. None accepts all.
    directions : array-like, optional
        Running directions used for training. None accepts all.
    speed_threshold : float, default=2.5
        Samples are used for training only if speed is strictly greater.
    cell_mask : array-like, optional
        Boolean mask or integer indices of candidate cells. None uses all.
    prior : array-like, optional
        Prior over the bin grid, shape ``(n_x,)`` or ``(n_x, n_y)``.
        None is a flat prior.
    scaling_factor : float, optional
        Occupancy (seconds) contributed by one sample. Defaults to
        ``1 / sample_rate``.
    min_rate : float, default=1e-10
        Floor added to every rate before decoding.
    mask_silent : bool, default=True
        Report undefined estimates for samples where no cell fired.
    cv_strategy : {"contiguous", "interleaved"}, default="contiguous"
        How training samples are assigned to folds.

    Raises
    ------
    ValueError
        If a value is out of range. Bin-edge problems raise with code
        [E2003], invalid fold counts with [E2002], invalid priors with
        [E2005].
    """

    sample_rate: float
    x_bin_edges: NDArray[np.float64]
    y_bin_edges: NDArray[np.float64] | None = None
    window: float = 0.3
    n_folds: int = 10
    min_spikes: float = 100
    occupancy_threshold: float = 0.0
    x_smooth_bins: float = 1.0
    y_smooth_bins: float = 1.0
    conditions: NDArray | None = None
    directions: NDArray | None = None
    speed_threshold: float = 2.5
    cell_mask: NDArray | None = None
    prior: NDArray[np.float64] | None = None
    scaling_factor: float | None = None
    min_rate: float = 1e-10
    mask_silent: bool = True
    cv_strategy: Literal["contiguous", "interleaved"] = "contiguous"

    def __post_init__(self) -> None:
        if not np.isfinite(self.sample_rate) or self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}.")
        if not np.isfinite(self.window) or self.window <= 0:
            raise ValueError(f"window must be positive (seconds), got {self.window}.")
        if self.n_folds < 2:
            raise ValueError(
                f"[E2002] n_folds must be >= 2, got {self.n_folds}.\n"
                "  WHY: Cross-validation needs at least one held-out fold and "
                "one training fold.\n"
                "  HOW: Use n_folds=10 (default) or any integer >= 2."
            )
        if self.min_rate < 0:
            raise ValueError(f"min_rate must be non-negative, got {self.min_rate}.")
        if self.x_smooth_bins < 0 or self.y_smooth_bins < 0:
            raise ValueError("Smoothing widths must be non-negative.")
        if self.cv_strategy not in ("contiguous", "interleaved"):
            raise ValueError(
                f"cv_strategy must be 'contiguous' or 'interleaved', "
                f"got {self.cv_strategy!r}."
            )
        if self.scaling_factor is not None and self.scaling_factor <= 0:
            raise ValueError(
                f"scaling_factor must be positive, got {self.scaling_factor}."
            )

        object.__setattr__(
            self,
            "x_bin_edges",
            _frozen_array(validate_bin_edges(self.x_bin_edges, "x_bin_edges")),
        )
        if self.y_bin_edges is not None:
            object.__setattr__(
                self,
                "y_bin_edges",
                _frozen_array(validate_bin_edges(self.y_bin_edges, "y_bin_edges")),
            )
        object.__setattr__(self, "conditions", _frozen_labels(self.conditions))
        object.__setattr__(self, "directions", _frozen_labels(self.directions))
        if self.cell_mask is not None:
            object.__setattr__(self, "cell_mask", _frozen_array(self.cell_mask))

        if self.prior is not None:
            prior = np.asarray(self.prior, dtype=np.float64)
            if prior.size != int(np.prod(self.grid_shape)) or prior.ndim > 2:
                raise ValueError(
                    f"[E2005] prior must have shape {self.grid_shape} to match "
                    f"the bin grid, got {prior.shape}."
                )
            if np.any(prior < 0):
                raise ValueError("[E2005] prior must be non-negative.")
            object.__setattr__(
                self, "prior", _frozen_array(prior.reshape(self.grid_shape))
            )

    @property
    def n_dims(self) -> int:
        """Number of decoded variables (1 or 2)."""
        return 1 if self.y_bin_edges is None else 2

    @property
    def grid_shape(self) -> tuple[int, ...]:
        """Shape of the bin grid, ``(n_x,)`` or ``(n_x, n_y)``."""
        n_x = self.x_bin_edges.size - 1
        if self.y_bin_edges is None:
            return (n_x,)
        return (n_x, self.y_bin_edges.size - 1)

    @property
    def bin_edges(self) -> tuple[NDArray[np.float64], ...]:
        """Bin edges per decoded dimension."""
        if self.y_bin_edges is None:
            return (self.x_bin_edges,)
        return (self.x_bin_edges, self.y_bin_edges)

    @property
    def smooth_bins(self) -> tuple[float, ...]:
        """Gaussian smoothing SD per decoded dimension, in bins."""
        return (self.x_smooth_bins, self.y_smooth_bins)[: self.n_dims]

    @property
    def window_samples(self) -> int:
        """Odd number of samples spanned by the decoding window."""
        return 2 * int(np.floor(0.5 * self.window * self.sample_rate)) + 1

    @property
    def sample_duration(self) -> float:
        """Occupancy (seconds) contributed by one sample."""
        if self.scaling_factor is not None:
            return float(self.scaling_factor)
        return 1.0 / self.sample_rate


@dataclass(frozen=True, eq=False)
class ThetaParams:
    """Parameters of the theta-phase analyses.

    Parameters
    ----------
    sample_rate : float
        Sampling rate of the behavioral and LFP-derived data (Hz).
    phase_bin_edges : array-like, default=0:20:360
        Theta phase bin edges in degrees.
    x_bin_edges : array-like, default=0:2:100
        Position bin edges for position x phase maps.
    position_range : tuple[float, float], default=(25.0, 75.0)
        Positions (exclusive bounds) kept when relating decoding error to
        phase, to avoid the track ends.
    conditions, directions : array-like, optional
        Selection filters. None accepts all.
    speed_threshold : float, default=2.5
        Samples are kept only if speed is greater or equal.
    phase_smooth_bins : float, default=1.0
        Circular Gaussian smoothing SD along phase, in bins.
    x_smooth_bins : float, default=1.0
        Gaussian smoothing SD along position, in bins.
    occupancy_threshold : float, default=0.0
        Occupancy (seconds) at or below which map bins are undefined.
    """

    sample_rate: float
    phase_bin_edges: NDArray[np.float64] = field(
        default_factory=lambda: np.arange(0.0, 361.0, 20.0)
    )
    x_bin_edges: NDArray[np.float64] = field(
        default_factory=lambda: np.arange(0.0, 102.0, 2.0)
    )
    position_range: tuple[float, float] = (25.0, 75.0)
    conditions: NDArray | None = None
    directions: NDArray | None = None
    speed_threshold: float = 2.5
    phase_smooth_bins: float = 1.0
    x_smooth_bins: float = 1.0
    occupancy_threshold: float = 0.0

    def __post_init__(self) -> None:
        if not np.isfinite(self.sample_rate) or self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}.")
        if self.position_range[0] >= self.position_range[1]:
            raise ValueError(
                f"position_range must be (low, high) with low < high, "
                f"got {self.position_range}."
            )
        object.__setattr__(
            self,
            "phase_bin_edges",
            _frozen_array(validate_bin_edges(self.phase_bin_edges, "phase_bin_edges")),
        )
        object.__setattr__(
            self,
            "x_bin_edges",
            _frozen_array(validate_bin_edges(self.x_bin_edges, "x_bin_edges")),
        )
        object.__setattr__(self, "conditions", _frozen_labels(self.conditions))
        object.__setattr__(self, "directions", _frozen_labels(self.directions))


@dataclass(frozen=True, eq=False)
class BehaviorData:
    """Per-sample behavioral variables aligned with the spike train.

    Parameters
    ----------
    x : array-like, shape (n_samples,)
        First decoded variable (e.g. linearized position). NaN when unknown.
    y : array-like, optional
        Second decoded variable. None for 1D decoding.
    condition : array-like, optional
        Experimental condition label of each sample.
    direction : array-like, optional
        Running direction label of each sample (e.g. -1 / +1).
    speed : array-like, optional
        Running speed of each sample.

    Raises
    ------
    ValueError
        [E2004] If the arrays do not all have ``n_samples`` entries.
    """

    x: NDArray[np.float64]
    y: NDArray[np.float64] | None = None
    condition: NDArray | None = None
    direction: NDArray | None = None
    speed: NDArray[np.float64] | None = None

    def __post_init__(self) -> None:
        x = _frozen_array(self.x, dtype=np.float64)
        if x.ndim != 1:
            raise ValueError(f"x must be 1D, got shape {x.shape}.")
        object.__setattr__(self, "x", x)

        for name in ("y", "speed"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _frozen_array(value, dtype=np.float64))
        for name in ("condition", "direction"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _frozen_array(value))

        for name in ("y", "condition", "direction", "speed"):
            value = getattr(self, name)
            if value is not None and value.shape != x.shape:
                raise ValueError(
                    f"[E2004] {name} has shape {value.shape} but x has shape "
                    f"{x.shape}.\n"
                    "  WHY: All behavioral variables must be sampled at the "
                    "same timestamps.\n"
                    "  HOW: Resample every variable onto the spike-train "
                    "sample times."
                )

    @property
    def n_samples(self) -> int:
        """Number of samples."""
        return int(self.x.size)

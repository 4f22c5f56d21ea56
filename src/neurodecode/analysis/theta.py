"""Theta-phase analyses of decoding error and firing.

Functions
---------
theta_selection : Samples kept for theta-phase analyses
direction_signed_error : Decoding error signed by running direction
phase_resolved_error : Mean decoding error per theta phase bin
theta_decoding_error : Phase-resolved error of a decoding analysis
phase_position_rate_maps : Position x theta phase rate maps
field_limits : Peak and edges of each cell's firing field
field_normalized_phase_maps : Field-normalized position x theta phase maps

Notes
-----
Phases are in degrees. Phase is a circular variable: every smoothing along
phase wraps around, so the first and last phase bins are neighbours.

Signing the decoding error by the running direction makes positive errors
mean "ahead of the animal" in both directions. A sawtooth of this error
across the theta cycle is the population signature of theta sequences.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.ndimage import gaussian_filter1d

from neurodecode.binning import bin_centers, discretize, validate_bin_edges
from neurodecode.encoding.rate_maps import RateMaps, compute_map, compute_rate_maps

if TYPE_CHECKING:
    from matplotlib.axes import Axes

    from neurodecode.config import BehaviorData, ThetaParams
    from neurodecode.decoding._result import DecodingAnalysisResult

__all__ = [
    "PhaseErrorProfile",
    "direction_signed_error",
    "field_limits",
    "field_normalized_phase_maps",
    "phase_position_rate_maps",
    "phase_resolved_error",
    "theta_decoding_error",
    "theta_selection",
]


@dataclass(frozen=True)
class PhaseErrorProfile:
    """Decoding error as a function of theta phase.

    Attributes
    ----------
    phase_bin_edges : NDArray[np.float64], shape (n_phase + 1,)
        Phase bin edges (degrees).
    mean_error : NDArray[np.float64], shape (n_phase,)
        Smoothed mean decoding error per phase bin (bins of the decoded
        variable). NaN for phase bins without any sample after smoothing.
    n_samples : NDArray[np.int64], shape (n_phase,)
        Number of samples with a defined error in each phase bin, before
        smoothing.
    """

    phase_bin_edges: NDArray[np.float64]
    mean_error: NDArray[np.float64]
    n_samples: NDArray[np.int64]

    @property
    def phase_bin_centers(self) -> NDArray[np.float64]:
        """Phase bin centers (degrees)."""
        return bin_centers(self.phase_bin_edges)

    def plot(self, ax: Axes | None = None, *, n_cycles: int = 2, color: str = "C0") -> Axes:
        """Plot the mean error against phase, repeated over ``n_cycles`` cycles.

        Returns
        -------
        matplotlib.axes.Axes
            The axes with the plot.
        """
        import matplotlib.pyplot as plt

        if ax is None:
            _, ax = plt.subplots()

        period = self.phase_bin_edges[-1] - self.phase_bin_edges[0]
        centers = self.phase_bin_centers
        phases = np.concatenate([centers + cycle * period for cycle in range(n_cycles)])
        ax.plot(phases, np.tile(self.mean_error, n_cycles), color=color, linewidth=1.5)
        ax.axhline(0, color="gray", linestyle="--", alpha=0.5, linewidth=1)
        ax.set_xlabel("Theta phase (deg)")
        ax.set_ylabel("Decoding error (bins)")
        return ax


def theta_selection(behavior: BehaviorData, params: ThetaParams) -> NDArray[np.bool_]:
    """Samples kept for theta-phase analyses.

    A sample is kept when its condition and direction are accepted, its
    speed is greater than or equal to ``speed_threshold``, and its position
    is finite.
    """
    mask = np.isfinite(behavior.x)
    for labels, accepted, name in (
        (behavior.condition, params.conditions, "condition"),
        (behavior.direction, params.directions, "direction"),
    ):
        if accepted is None:
            continue
        if labels is None:
            raise ValueError(
                f"A {name} filter was given but the behavior data has no {name} labels."
            )
        mask &= np.isin(labels, accepted)
    if behavior.speed is not None:
        with np.errstate(invalid="ignore"):
            mask &= behavior.speed >= params.speed_threshold
    return mask


def direction_signed_error(error: ArrayLike, direction: ArrayLike) -> NDArray[np.float64]:
    """Decoding error multiplied by the sign of the running direction.

    Parameters
    ----------
    error : array-like, shape (n_time,)
        Decoded minus actual value. NaN where undefined.
    direction : array-like, shape (n_time,)
        Running direction; only its sign is used. A direction of 0 gives an
        error of 0.

    Returns
    -------
    NDArray[np.float64], shape (n_time,)

    Examples
    --------
    >>> direction_signed_error([2.0, 2.0, np.nan], [1, -1, 1])
    array([ 2., -2., nan])
    """
    error = np.asarray(error, dtype=np.float64)
    direction = np.asarray(direction, dtype=np.float64)
    if error.shape != direction.shape:
        raise ValueError(
            f"error has shape {error.shape} but direction has shape {direction.shape}."
        )
    return error * np.sign(direction)


def _circular_smooth(values: NDArray[np.float64], sigma_bins: float) -> NDArray[np.float64]:
    if sigma_bins == 0:
        return values
    return gaussian_filter1d(values, sigma_bins, mode="wrap")


def phase_resolved_error(
    error: ArrayLike,
    phase: ArrayLike,
    phase_bin_edges: ArrayLike,
    *,
    mask: ArrayLike | None = None,
    smooth_bins: float = 1.0,
) -> PhaseErrorProfile:
    """Mean decoding error per theta phase bin.

    The per-bin sum of errors and the per-bin sample count are each smoothed
    with a circular Gaussian kernel before taking their ratio.

    Parameters
    ----------
    error : array-like, shape (n_time,)
        Decoding error. NaN marks undefined errors, which are excluded.
    phase : array-like, shape (n_time,)
        Theta phase of each sample (degrees).
    phase_bin_edges : array-like, shape (n_phase + 1,)
        Phase bin edges (degrees).
    mask : array-like of bool, optional
        Samples to include. None includes all.
    smooth_bins : float, default=1.0
        Circular Gaussian SD in phase bins. 0 disables smoothing.

    Returns
    -------
    PhaseErrorProfile

    Examples
    --------
    >>> profile = phase_resolved_error(
    ...     [1.0, 3.0, -2.0], [10.0, 30.0, 200.0], [0, 180, 360], smooth_bins=0
    ... )
    >>> profile.mean_error
    array([ 2., -2.])
    """
    error = np.asarray(error, dtype=np.float64)
    phase = np.asarray(phase, dtype=np.float64)
    edges = validate_bin_edges(phase_bin_edges, "phase_bin_edges")
    if error.shape != phase.shape or error.ndim != 1:
        raise ValueError(
            f"error and phase must be 1D with the same shape, got {error.shape} "
            f"and {phase.shape}."
        )
    if smooth_bins < 0:
        raise ValueError(f"smooth_bins must be non-negative, got {smooth_bins}.")

    keep = np.isfinite(error)
    if mask is not None:
        keep &= np.asarray(mask, dtype=bool)

    n_phase = edges.size - 1
    phase_bins = discretize(phase, edges)
    phase_bins[~keep] = -1
    error_sum = compute_map(phase_bins, np.where(keep, error, 0.0), n_phase)
    counts = compute_map(phase_bins, np.ones(error.shape), n_phase)

    smoothed_sum = _circular_smooth(error_sum, smooth_bins)
    smoothed_counts = _circular_smooth(counts, smooth_bins)
    mean_error = np.full(n_phase, np.nan)
    has_data = smoothed_counts > 0
    mean_error[has_data] = smoothed_sum[has_data] / smoothed_counts[has_data]

    return PhaseErrorProfile(
        phase_bin_edges=edges,
        mean_error=mean_error,
        n_samples=counts.astype(np.int64),
    )


def theta_decoding_error(
    result: DecodingAnalysisResult,
    behavior: BehaviorData,
    phase: ArrayLike,
    params: ThetaParams,
    *,
    estimate: Literal["map", "mean"] = "map",
) -> PhaseErrorProfile:
    """Phase-resolved, direction-signed error of a 1D decoding analysis.

    Parameters
    ----------
    result : DecodingAnalysisResult
        Output of ``decoding_analysis`` on ``behavior``.
    behavior : BehaviorData
        Behavioral variables the decoding was run on.
    phase : array-like, shape (n_time,)
        Theta phase of each sample (degrees).
    params : ThetaParams
        Sample selection, ``position_range`` (exclusive bounds, in units of
        ``behavior.x``), phase bins and phase smoothing.
    estimate : {"map", "mean"}, default="map"
        Which decoded estimate to use.

    Returns
    -------
    PhaseErrorProfile
        Mean error (in decoded bins) per phase bin. The error is signed by
        the running direction when ``behavior.direction`` is available.

    Raises
    ------
    ValueError
        [E2004] If ``phase`` or ``behavior`` does not match the decoded
        samples.
    """
    phase = np.asarray(phase, dtype=np.float64)
    if phase.shape != (result.n_time,) or behavior.n_samples != result.n_time:
        raise ValueError(
            f"[E2004] Got {phase.size} phase samples and {behavior.n_samples} "
            f"behavior samples for {result.n_time} decoded samples.\n"
            "  WHY: Phase, behavior and decoding must share sample times.\n"
            "  HOW: Interpolate the theta phase onto the behavioral sample times."
        )
    if estimate not in ("map", "mean"):
        raise ValueError(f"estimate must be 'map' or 'mean', got {estimate!r}.")

    error = (result.map_error if estimate == "map" else result.mean_error)[:, 0]
    if behavior.direction is not None:
        error = direction_signed_error(error, behavior.direction)

    low, high = params.position_range
    with np.errstate(invalid="ignore"):
        mask = theta_selection(behavior, params) & (behavior.x > low) & (behavior.x < high)

    return phase_resolved_error(
        error,
        phase,
        params.phase_bin_edges,
        mask=mask,
        smooth_bins=params.phase_smooth_bins,
    )


def phase_position_rate_maps(
    position: ArrayLike,
    phase: ArrayLike,
    spike_train: ArrayLike,
    params: ThetaParams,
    *,
    mask: ArrayLike | None = None,
) -> RateMaps:
    """Firing rate as a function of position and theta phase.

    Parameters
    ----------
    position : array-like, shape (n_time,)
        Position of each sample.
    phase : array-like, shape (n_time,)
        Theta phase of each sample (degrees).
    spike_train : array-like, shape (n_time, n_cells)
        Spike counts per sample.
    params : ThetaParams
        Position and phase bins, smoothing widths and occupancy threshold.
    mask : array-like of bool, optional
        Samples to include (e.g. from ``theta_selection``). None includes
        all.

    Returns
    -------
    RateMaps
        Rate maps of shape ``(n_cells, n_x, n_phase)``. Smoothing wraps
        around along phase.
    """
    position = np.asarray(position, dtype=np.float64)
    phase = np.asarray(phase, dtype=np.float64)
    spike_train = np.asarray(spike_train, dtype=np.float64)
    if position.shape != phase.shape or spike_train.shape[:1] != position.shape:
        raise ValueError(
            f"[E2004] position {position.shape}, phase {phase.shape} and "
            f"spike_train {spike_train.shape} must share the sample axis.\n"
            "  WHY: Each sample pairs one position and one phase with one "
            "spike-train row.\n"
            "  HOW: Resample every variable onto the spike-train sample times."
        )

    x_bins = discretize(position, params.x_bin_edges)
    phase_bins = discretize(phase, params.phase_bin_edges)
    if mask is not None:
        excluded = ~np.asarray(mask, dtype=bool)
        x_bins[excluded] = -1
        phase_bins[excluded] = -1

    return compute_rate_maps(
        (x_bins, phase_bins),
        spike_train,
        (params.x_bin_edges.size - 1, params.phase_bin_edges.size - 1),
        sample_duration=1.0 / params.sample_rate,
        occupancy_threshold=params.occupancy_threshold,
        smooth_bins=(params.x_smooth_bins, params.phase_smooth_bins),
        circular=(False, True),
    )


def field_limits(
    rate_maps: ArrayLike,
    bin_edges: ArrayLike,
    *,
    threshold: float = 0.1,
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
    """Peak position and edges of each cell's main firing field.

    A field edge is the closest bin, on either side of the peak, where the
    rate drops to ``min + threshold * (max - min)`` or below. When the rate
    never drops that low on one side, the first or last bin is used.

    Parameters
    ----------
    rate_maps : array-like, shape (n_cells, n_x)
        1D rate maps. NaN bins are ignored.
    bin_edges : array-like, shape (n_x + 1,)
        Position bin edges of the rate maps.
    threshold : float, default=0.1
        Fraction of the peak-to-trough amplitude defining the field edges.

    Returns
    -------
    peak, start, end : NDArray[np.float64], shape (n_cells,)
        Bin-center positions of the peak and of the field edges. NaN for
        cells without any defined bin.

    Examples
    --------
    >>> peak, start, end = field_limits(
    ...     [[0.0, 1.0, 5.0, 10.0, 6.0, 2.0, 0.0]], np.arange(8.0)
    ... )
    >>> float(peak[0]), float(start[0]), float(end[0])
    (3.5, 1.5, 6.5)
    """
    rate_maps = np.asarray(rate_maps, dtype=np.float64)
    centers = bin_centers(validate_bin_edges(bin_edges, "bin_edges"))
    if rate_maps.ndim != 2 or rate_maps.shape[1] != centers.size:
        raise ValueError(
            f"rate_maps must have shape (n_cells, {centers.size}) to match the "
            f"bin edges, got {rate_maps.shape}."
        )
    if not 0 <= threshold < 1:
        raise ValueError(f"threshold must be in [0, 1), got {threshold}.")

    n_cells = rate_maps.shape[0]
    peak = np.full(n_cells, np.nan)
    start = np.full(n_cells, np.nan)
    end = np.full(n_cells, np.nan)
    for icell, tuning in enumerate(rate_maps):
        defined = np.isfinite(tuning)
        if not defined.any():
            continue
        filled = np.where(defined, tuning, -np.inf)
        ipeak = int(np.argmax(filled))
        low = np.nanmin(tuning)
        below = defined & (tuning <= low + threshold * (np.nanmax(tuning) - low))

        left = np.flatnonzero(below[: ipeak + 1])
        right = np.flatnonzero(below[ipeak + 1 :])
        istart = left[-1] if left.size else 0
        iend = ipeak + 1 + right[0] if right.size else tuning.size - 1
        peak[icell], start[icell], end[icell] = centers[[ipeak, istart, iend]]
    return peak, start, end


def field_normalized_phase_maps(
    position: ArrayLike,
    phase: ArrayLike,
    spike_train: ArrayLike,
    rate_maps: ArrayLike,
    params: ThetaParams,
    *,
    mask: ArrayLike | None = None,
    direction: float = 1.0,
    threshold: float = 0.1,
    norm_bin_edges: ArrayLike | None = None,
    norm_smooth_bins: float = 2.0,
) -> NDArray[np.float64]:
    """Position x theta phase maps with position normalized to each field.

    For every cell, position is centered on the field peak and scaled so
    that the field start maps to -1 and the field end to +1 (each side
    scaled separately). Samples outside ``[-1, 1]`` are dropped. Maps are
    then built as in ``phase_position_rate_maps``, wrapping along phase.

    Parameters
    ----------
    position : array-like, shape (n_time,)
        Position of each sample, in units of ``params.x_bin_edges``.
    phase : array-like, shape (n_time,)
        Theta phase of each sample (degrees).
    spike_train : array-like, shape (n_time, n_cells)
        Spike counts per sample.
    rate_maps : array-like, shape (n_cells, n_x)
        Position rate maps over ``params.x_bin_edges``, used to locate each
        cell's field with ``field_limits``.
    params : ThetaParams
        Position and phase bins, phase smoothing and occupancy threshold.
    mask : array-like of bool, optional
        Samples to include. None includes all.
    direction : float, default=1.0
        Running direction of the included samples; only its sign is used.
        With a negative direction, the field is traversed from ``end`` to
        ``start`` and normalized positions are mirrored accordingly.
    threshold : float, default=0.1
        Field-edge threshold passed to ``field_limits``.
    norm_bin_edges : array-like, optional
        Bin edges of the normalized position. Defaults to 20 bins on
        ``[-1, 1]``.
    norm_smooth_bins : float, default=2.0
        Gaussian smoothing SD along normalized position, in bins.

    Returns
    -------
    NDArray[np.float64], shape (n_cells, n_norm, n_phase)
        Firing rate per normalized-position x phase bin. NaN for cells
        without a defined field and for bins below the occupancy threshold.

    Raises
    ------
    ValueError
        [E2004] If the per-sample arrays or rate maps disagree in size.
    """
    position = np.asarray(position, dtype=np.float64)
    phase = np.asarray(phase, dtype=np.float64)
    spike_train = np.asarray(spike_train, dtype=np.float64)
    rate_maps = np.asarray(rate_maps, dtype=np.float64)
    if (
        position.shape != phase.shape
        or spike_train.ndim != 2
        or spike_train.shape[0] != position.size
        or rate_maps.shape[:1] != spike_train.shape[1:]
    ):
        raise ValueError(
            f"[E2004] position {position.shape}, phase {phase.shape}, "
            f"spike_train {spike_train.shape} and rate_maps {rate_maps.shape} "
            "do not line up.\n"
            "  WHY: Each sample pairs one position and one phase with one "
            "spike-train row, and each cell needs one rate map.\n"
            "  HOW: Resample every variable onto the spike-train sample times "
            "and pass the rate maps of the same cells."
        )
    if direction == 0 or not np.isfinite(direction):
        raise ValueError(f"direction must be non-zero, got {direction}.")

    edges = (
        np.linspace(-1.0, 1.0, 21)
        if norm_bin_edges is None
        else validate_bin_edges(norm_bin_edges, "norm_bin_edges")
    )
    grid_shape = (edges.size - 1, params.phase_bin_edges.size - 1)
    peak, start, end = field_limits(rate_maps, params.x_bin_edges, threshold=threshold)

    phase_bins = discretize(phase, params.phase_bin_edges)
    if mask is not None:
        phase_bins[~np.asarray(mask, dtype=bool)] = -1

    maps = np.full((spike_train.shape[1], *grid_shape), np.nan)
    for icell in range(spike_train.shape[1]):
        if np.isnan(peak[icell]):
            continue
        offset = (position - peak[icell]) * np.sign(direction)
        # Scale each side of the field separately; the side entered first
        # is the one before the peak in the running direction.
        if direction > 0:
            before, after = start[icell], end[icell]
        else:
            before, after = end[icell], start[icell]
        normalized = np.full(position.shape, np.nan)
        with np.errstate(divide="ignore", invalid="ignore"):
            normalized[offset == 0] = 0.0
            lead = offset < 0
            normalized[lead] = offset[lead] / abs(peak[icell] - before)
            trail = offset > 0
            normalized[trail] = offset[trail] / abs(after - peak[icell])
        norm_bins = discretize(normalized, edges)

        maps[icell] = compute_rate_maps(
            (norm_bins, phase_bins),
            spike_train[:, [icell]],
            grid_shape,
            sample_duration=1.0 / params.sample_rate,
            occupancy_threshold=params.occupancy_threshold,
            smooth_bins=(norm_smooth_bins, params.phase_smooth_bins),
            circular=(False, True),
        ).rate_maps[0]
    return maps

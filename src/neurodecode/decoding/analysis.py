"""Cross-validated decoding of behavioral variables from spike trains.

Functions
---------
select_training_samples : Samples used to estimate rate maps
select_cells : Cells used for decoding
decoding_analysis : Full pipeline, from spike train to decoding errors

Notes
-----
Samples outside the training selection are decoded with rate maps estimated
on the whole training selection. Samples inside it are decoded with k-fold
cross-validation: each fold's held-out samples are decoded with rate maps
estimated on the remaining training samples only.
"""

from __future__ import annotations

import logging
import warnings

import numpy as np
from numpy.typing import ArrayLike, NDArray

from neurodecode.binning import discretize
from neurodecode.config import BehaviorData, DecodingParams
from neurodecode.decoding._result import BayesianEstimates, DecodingAnalysisResult
from neurodecode.decoding.cross_validation import crossval_partition
from neurodecode.decoding.metrics import confusion_matrix, decoding_error
from neurodecode.decoding.posterior import bayesian_decode
from neurodecode.encoding.rate_maps import (
    RateMaps,
    compute_rate_maps,
    smooth_spike_counts,
)

__all__ = [
    "decoding_analysis",
    "select_cells",
    "select_training_samples",
]

logger = logging.getLogger(__name__)


def _label_mask(
    labels: NDArray | None, accepted: NDArray | None, name: str
) -> NDArray[np.bool_] | None:
    if accepted is None:
        return None
    if labels is None:
        raise ValueError(
            f"A {name} filter was given but the behavior data has no {name} "
            "labels. Pass them to BehaviorData or drop the filter."
        )
    return np.isin(labels, accepted)


def select_training_samples(
    behavior: BehaviorData, params: DecodingParams
) -> NDArray[np.bool_]:
    """Samples used to estimate rate maps.

    A sample is selected when its condition and direction are among the
    accepted ones, its speed is strictly above ``speed_threshold``, and
    every decoded variable is finite and inside its bin-edge range.

    Parameters
    ----------
    behavior : BehaviorData
        Per-sample behavioral variables.
    params : DecodingParams
        Selection parameters.

    Returns
    -------
    NDArray[np.bool_], shape (n_samples,)
        Training selection mask.

    Notes
    -----
    Samples without a speed measurement (``behavior.speed`` is None) are not
    filtered on speed.
    """
    mask = np.ones(behavior.n_samples, dtype=bool)
    for labels, accepted, name in (
        (behavior.condition, params.conditions, "condition"),
        (behavior.direction, params.directions, "direction"),
    ):
        selected = _label_mask(labels, accepted, name)
        if selected is not None:
            mask &= selected

    if behavior.speed is not None:
        with np.errstate(invalid="ignore"):
            mask &= behavior.speed > params.speed_threshold

    for values, edges in zip(_decoded_variables(behavior, params), params.bin_edges, strict=True):
        with np.errstate(invalid="ignore"):
            mask &= np.isfinite(values) & (values >= edges[0]) & (values <= edges[-1])
    return mask


def _decoded_variables(
    behavior: BehaviorData, params: DecodingParams
) -> tuple[NDArray[np.float64], ...]:
    if params.n_dims == 1:
        return (behavior.x,)
    if behavior.y is None:
        raise ValueError(
            "y_bin_edges was given but the behavior data has no y variable. "
            "Pass y to BehaviorData or decode in 1D."
        )
    return (behavior.x, behavior.y)


def select_cells(
    spike_train: ArrayLike,
    training_mask: ArrayLike,
    params: DecodingParams,
) -> NDArray[np.int64]:
    """Cells used for decoding.

    Parameters
    ----------
    spike_train : array-like, shape (n_samples, n_cells)
        Spike counts per sample.
    training_mask : array-like of bool, shape (n_samples,)
        Training selection.
    params : DecodingParams
        ``cell_mask`` restricts the candidates (boolean mask or indices);
        a candidate is kept when its spike total over the training
        selection is strictly greater than ``min_spikes``.

    Returns
    -------
    NDArray[np.int64]
        Sorted column indices of the selected cells.
    """
    spike_train = np.asarray(spike_train, dtype=np.float64)
    training_mask = np.asarray(training_mask, dtype=bool)
    n_cells = spike_train.shape[1]

    if params.cell_mask is None:
        candidates = np.arange(n_cells, dtype=np.int64)
    elif params.cell_mask.dtype == bool:
        if params.cell_mask.shape != (n_cells,):
            raise ValueError(
                f"Boolean cell_mask must have shape ({n_cells},), got "
                f"{params.cell_mask.shape}."
            )
        candidates = np.flatnonzero(params.cell_mask).astype(np.int64)
    else:
        candidates = np.unique(params.cell_mask.astype(np.int64))
        if candidates.size and (candidates[0] < 0 or candidates[-1] >= n_cells):
            raise ValueError(f"cell_mask indices must be in [0, {n_cells}).")

    totals = np.nansum(spike_train[training_mask][:, candidates], axis=0)
    return candidates[totals > params.min_spikes]


def decoding_analysis(
    behavior: BehaviorData,
    spike_train: ArrayLike,
    params: DecodingParams,
) -> DecodingAnalysisResult:
    """Decode behavioral variables from a population spike train.

    Parameters
    ----------
    behavior : BehaviorData
        Per-sample behavioral variables; ``x`` (and ``y`` for 2D decoding)
        are decoded.
    spike_train : array-like, shape (n_samples, n_cells)
        Spike counts per sample, aligned with ``behavior``.
    params : DecodingParams
        Analysis parameters.

    Returns
    -------
    DecodingAnalysisResult
        Rate maps, decoded estimates, errors and confusion matrices.

    Raises
    ------
    ValueError
        [E2004] If ``spike_train`` and ``behavior`` have different numbers
        of samples. [E2002] If no sample passes the training selection, or
        if there are fewer training samples than folds.

    Warns
    -----
    UserWarning
        If no cell passes the selection (every estimate is then undefined),
        or if some bins are never visited during training.

    Examples
    --------
    >>> rng = np.random.default_rng(0)
    >>> x = np.tile(np.linspace(0, 100, 200), 10)
    >>> behavior = BehaviorData(x=x, speed=np.full(x.size, 10.0))
    >>> centers = np.linspace(0, 100, 20)
    >>> rates = 20 * np.exp(-((x[:, None] - centers) ** 2) / 50.0)
    >>> spikes = rng.poisson(rates / 50.0).astype(float)
    >>> params = DecodingParams(
    ...     sample_rate=50.0, x_bin_edges=np.arange(0, 105, 5), min_spikes=10
    ... )
    >>> result = decoding_analysis(behavior, spikes, params)
    >>> result.estimates.map_bins.shape
    (2000, 1)
    """
    spike_train = np.asarray(spike_train, dtype=np.float64)
    if spike_train.ndim != 2:
        raise ValueError(
            f"spike_train must be 2D (n_samples, n_cells), got shape {spike_train.shape}."
        )
    if spike_train.shape[0] != behavior.n_samples:
        raise ValueError(
            f"[E2004] spike_train has {spike_train.shape[0]} samples but the "
            f"behavior data has {behavior.n_samples}.\n"
            "  WHY: Every spike-train row must correspond to one behavioral "
            "sample.\n"
            "  HOW: Bin spikes on the behavioral sample times, e.g. with "
            "neurodecode.binning.bin_spike_times."
        )

    n_time, n_cells_total = spike_train.shape
    grid_shape = params.grid_shape
    n_dims = params.n_dims

    training_mask = select_training_samples(behavior, params)
    train_idx = np.flatnonzero(training_mask)
    if train_idx.size == 0:
        raise ValueError(
            "[E2002] No sample passes the training selection, so no fold can "
            "be formed.\n"
            "  WHY: Rate maps are estimated from samples that meet the speed, "
            "position and label criteria.\n"
            "  HOW: Lower speed_threshold or widen the direction and "
            "condition filters."
        )
    cell_indices = select_cells(spike_train, training_mask, params)
    logger.info(
        "Decoding %d samples with %d-fold cross-validation; "
        "%d training samples, %d of %d cells",
        n_time,
        params.n_folds,
        train_idx.size,
        cell_indices.size,
        n_cells_total,
    )
    if cell_indices.size == 0:
        warnings.warn(
            f"No cell fired more than {params.min_spikes} spikes over the "
            f"{train_idx.size} training samples; every estimate is undefined. "
            "Lower min_spikes or widen the training selection.",
            UserWarning,
            stacklevel=2,
        )

    folds = crossval_partition(train_idx.size, params.n_folds, strategy=params.cv_strategy)

    true_bins = np.column_stack(
        [discretize(values, edges) for values, edges in zip(
            _decoded_variables(behavior, params), params.bin_edges, strict=True
        )]
    ).astype(np.int64)

    spikes = spike_train[:, cell_indices]
    spike_counts = smooth_spike_counts(spikes, params.window_samples)

    def _rate_maps(samples: NDArray[np.int64]) -> RateMaps:
        return compute_rate_maps(
            tuple(true_bins[samples, dim] for dim in range(n_dims)),
            spikes[samples],
            grid_shape,
            sample_duration=params.sample_duration,
            occupancy_threshold=params.occupancy_threshold,
            smooth_bins=params.smooth_bins,
        )

    def _decode(rate_maps: NDArray[np.float64], samples: NDArray[np.int64]) -> BayesianEstimates:
        return bayesian_decode(
            rate_maps,
            spike_counts[samples],
            params.window,
            prior=params.prior,
            min_rate=params.min_rate,
            mask_silent=params.mask_silent,
        )

    map_bins = np.full((n_time, n_dims), -1, dtype=np.int64)
    mean_bins = np.full((n_time, n_dims), np.nan)
    valid = np.zeros(n_time, dtype=bool)
    fold_index = np.full(n_time, -1, dtype=np.int64)

    def _store(samples: NDArray[np.int64], estimates: BayesianEstimates) -> None:
        map_bins[samples] = estimates.map_bins
        mean_bins[samples] = estimates.mean_bins
        valid[samples] = estimates.valid

    full = _rate_maps(train_idx)
    n_unvisited = int(np.isnan(full.occupancy).sum())
    if n_unvisited:
        warnings.warn(
            f"{n_unvisited} of {full.occupancy.size} bins have no occupancy "
            "above the threshold in the training selection; they are "
            "undefined in the rate maps and can never be decoded.",
            UserWarning,
            stacklevel=2,
        )

    test_idx = np.flatnonzero(~training_mask)
    if test_idx.size:
        _store(test_idx, _decode(full.rate_maps, test_idx))

    rate_maps = np.full((n_cells_total, *grid_shape), np.nan)
    rate_maps[cell_indices] = full.rate_maps
    rate_maps_cv = np.full((params.n_folds, n_cells_total, *grid_shape), np.nan)

    for ifold, fold in enumerate(folds):
        logger.debug(
            "Fold %d/%d: %d training, %d test samples",
            ifold + 1,
            len(folds),
            fold.n_train,
            fold.n_test,
        )
        fold_maps = _rate_maps(train_idx[fold.train])
        rate_maps_cv[ifold, cell_indices] = fold_maps.rate_maps
        held_out = train_idx[fold.test]
        fold_index[held_out] = ifold
        _store(held_out, _decode(fold_maps.rate_maps, held_out))

    estimates = BayesianEstimates(map_bins=map_bins, mean_bins=mean_bins, valid=valid)
    map_error = decoding_error(estimates.map_bins, true_bins)
    mean_error = decoding_error(estimates.mean_bins, true_bins)
    confusion_matrices = tuple(
        confusion_matrix(
            true_bins[training_mask, dim], estimates.map_bins[training_mask, dim], n_bins
        )
        for dim, n_bins in enumerate(grid_shape)
    )
    logger.info(
        "Decoded %d of %d samples; median |MAP error| %.2f bins",
        int(valid.sum()),
        n_time,
        float(np.nanmedian(np.abs(map_error))) if np.isfinite(map_error).any() else np.nan,
    )

    for arr in (
        training_mask,
        cell_indices,
        true_bins,
        fold_index,
        map_error,
        mean_error,
        rate_maps,
        rate_maps_cv,
    ):
        arr.setflags(write=False)

    return DecodingAnalysisResult(
        params=params,
        training_mask=training_mask,
        cell_indices=cell_indices,
        rate_maps=rate_maps,
        rate_maps_cv=rate_maps_cv,
        occupancy=full.occupancy,
        fold_index=fold_index,
        true_bins=true_bins,
        estimates=estimates,
        map_error=map_error,
        mean_error=mean_error,
        confusion_matrices=confusion_matrices,
    )

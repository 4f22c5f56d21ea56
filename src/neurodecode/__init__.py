"""Bayesian decoding of behavioral variables from population spike trains.

**neurodecode** decodes position (1D or 2D) or oscillatory phase from
simultaneously recorded spike trains using a maximum-a-posteriori estimator
built on per-cell rate maps. Rate maps are learned either on a held-out
training selection or with k-fold cross-validation, so that every decoded
sample is evaluated out-of-sample.

Submodule Organization
----------------------
decoding : Bayesian decoding engine and orchestration
    Poisson likelihood, posterior normalization, point estimates, k-fold
    partitioning, the cross-validated decoding pipeline and its metrics.

    >>> from neurodecode.decoding import bayesian_decode, decoding_analysis

encoding : Rate maps and tuning-curve statistics
    Occupancy/spike-count maps, NaN-aware Gaussian smoothing, selectivity
    and directionality indices.

    >>> from neurodecode.encoding import compute_rate_maps

analysis : Phase-conditioned analyses
    Decoding error as a function of theta phase, position x phase maps.

    >>> from neurodecode.analysis import theta_decoding_error

events : Event-conditioned analyses
    Triggered snippets of decoded trajectories around ripple peaks.

    >>> from neurodecode.events import ripple_triggered_decoding

binning : Discretization helpers
    Bin edges to indices, spike times to sample-aligned spike trains.

config : Immutable parameter objects
    ``DecodingParams``, ``ThetaParams`` and ``BehaviorData``.

Examples
--------
Decode a 1D position with 10-fold cross-validation::

    >>> import numpy as np
    >>> from neurodecode.config import BehaviorData, DecodingParams
    >>> from neurodecode.decoding import decoding_analysis
    >>>
    >>> behavior = BehaviorData(x=x, condition=cond, direction=xdir, speed=spd)
    >>> params = DecodingParams(
    ...     sample_rate=50.0,
    ...     x_bin_edges=np.arange(0.0, 102.0, 2.0),
    ...     window=0.3,
    ...     n_folds=10,
    ... )
    >>> result = decoding_analysis(behavior, spike_train, params)  # doctest: +SKIP
    >>> result.to_dataframe().head()  # doctest: +SKIP
"""

import logging

from neurodecode.config import BehaviorData, DecodingParams, ThetaParams

# Add NullHandler to prevent "No handler found" warnings if user doesn't configure logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "BehaviorData",
    "DecodingParams",
    "ThetaParams",
]

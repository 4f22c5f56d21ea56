"""Bayesian decoding of binned behavioral variables.

This subpackage decodes one or two discretized behavioral variables (e.g.
linear position, or position and running direction) from population spike
counts, under an independent Poisson model of each cell's firing.

Core Functions
--------------
bayesian_decode : MAP and posterior-mean estimates with a validity mask
    Main entry point for decoding with given rate maps.

decode_posterior : Posterior over the bin grid for every sample

log_poisson_likelihood : Poisson log-likelihood, accumulated cell by cell

normalize_to_posterior : NaN-aware row normalization of log-probabilities

Estimates
---------
map_estimate : Flat index of the maximum a posteriori bin
expected_bin : Posterior mean bin coordinate along each dimension

Cross-Validated Pipeline
------------------------
decoding_analysis : Rate maps, k-fold decoding, errors and confusion matrices
crossval_partition : Deterministic k-fold partition of sample indices
select_training_samples : Samples used to estimate rate maps
select_cells : Cells used for decoding

Quality Metrics
---------------
decoding_error : Signed decoded-minus-actual error
confusion_matrix : Distribution of decoded bins for each actual bin

Result Containers
-----------------
BayesianEstimates : Point estimates with their validity mask
DecodingAnalysisResult : Output of ``decoding_analysis``
Fold : One train/test split

Examples
--------
Decoding with known rate maps::

    >>> import numpy as np
    >>> from neurodecode.decoding import bayesian_decode
    >>> rate_maps = np.array([[5.0, 1.0], [1.0, 5.0]])
    >>> counts = np.array([[4.0, 0.0], [0.0, 4.0], [0.0, 0.0]])
    >>> estimates = bayesian_decode(rate_maps, counts, window=1.0)
    >>> estimates.map_bins[:, 0]
    array([ 0,  1, -1])
    >>> estimates.valid
    array([ True,  True, False])
"""

from neurodecode.decoding._result import BayesianEstimates, DecodingAnalysisResult
from neurodecode.decoding.analysis import (
    decoding_analysis,
    select_cells,
    select_training_samples,
)
from neurodecode.decoding.cross_validation import Fold, crossval_partition
from neurodecode.decoding.estimates import expected_bin, map_estimate
from neurodecode.decoding.likelihood import log_poisson_likelihood
from neurodecode.decoding.metrics import confusion_matrix, decoding_error
from neurodecode.decoding.posterior import (
    bayesian_decode,
    decode_posterior,
    normalize_to_posterior,
)

__all__ = [
    "BayesianEstimates",
    "DecodingAnalysisResult",
    "Fold",
    "bayesian_decode",
    "confusion_matrix",
    "crossval_partition",
    "decode_posterior",
    "decoding_analysis",
    "decoding_error",
    "expected_bin",
    "log_poisson_likelihood",
    "map_estimate",
    "normalize_to_posterior",
    "select_cells",
    "select_training_samples",
]

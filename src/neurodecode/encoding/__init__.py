"""Rate maps and tuning-curve statistics.

Rate Maps
---------
compute_map : Accumulate per-sample weights on a bin grid
smooth_map : NaN-aware Gaussian smoothing (linear or circular axes)
compute_rate_maps : Occupancy and per-cell rate maps from binned samples
smooth_spike_counts : Spike counts summed over a centered sliding window
RateMaps : Container for rate maps and their occupancy

Tuning Statistics
-----------------
selectivity_index : ``(max - min) / mean`` of a tuning curve
directionality_index : Discrepancy between two direction-specific maps
"""

from neurodecode.encoding.rate_maps import (
    RateMaps,
    compute_map,
    compute_rate_maps,
    smooth_map,
    smooth_spike_counts,
)
from neurodecode.encoding.tuning import directionality_index, selectivity_index

__all__ = [
    "RateMaps",
    "compute_map",
    "compute_rate_maps",
    "directionality_index",
    "selectivity_index",
    "smooth_map",
    "smooth_spike_counts",
]

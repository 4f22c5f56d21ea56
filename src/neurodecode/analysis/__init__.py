"""Downstream analyses of decoding results.

Theta Phase
-----------
theta_selection : Samples kept for theta-phase analyses
direction_signed_error : Decoding error signed by running direction
phase_resolved_error : Mean decoding error per theta phase bin
theta_decoding_error : Phase-resolved error of a decoding analysis
phase_position_rate_maps : Position x theta phase rate maps
field_limits : Peak and edges of each cell's firing field
field_normalized_phase_maps : Field-normalized position x theta phase maps
PhaseErrorProfile : Decoding error as a function of theta phase
"""

from neurodecode.analysis.theta import (
    PhaseErrorProfile,
    direction_signed_error,
    field_limits,
    field_normalized_phase_maps,
    phase_position_rate_maps,
    phase_resolved_error,
    theta_decoding_error,
    theta_selection,
)

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

"""Warping pipeline: similarity filtering, shift estimation and shift application."""

from gwarp.warping.data_warping import DataWarping, create_dynamic_warping
from gwarp.warping.dispatch import dispatch_shifts
from gwarp.warping.rms_filter import (
    equalize,
    local_similarity_filter,
    rms,
    similarity_weights,
)
from gwarp.warping.solver import (
    decimate,
    find_decimated_shifts,
    interpolate_shifts,
    solve_shifts,
)

__all__ = [
    "DataWarping",
    "create_dynamic_warping",
    "dispatch_shifts",
    "equalize",
    "local_similarity_filter",
    "rms",
    "similarity_weights",
    "decimate",
    "find_decimated_shifts",
    "interpolate_shifts",
    "solve_shifts",
]

"""Configuration models for gwarp."""

from gwarp.config.models import (
    ERROR_EXTRAPOLATION,
    ERROR_SMOOTHING_PASSES,
    RMS_EPSILON,
    ErrorExtrapolation,
    ShiftInterpolation,
    WarpingConfig,
    WarpMode,
    create_warping_config,
)

__all__ = [
    "ERROR_EXTRAPOLATION",
    "ERROR_SMOOTHING_PASSES",
    "RMS_EPSILON",
    "ErrorExtrapolation",
    "ShiftInterpolation",
    "WarpingConfig",
    "WarpMode",
    "create_warping_config",
]

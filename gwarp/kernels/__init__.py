"""Numerical kernels for gwarp."""

from gwarp.kernels.dynamic_warping import DynamicWarping, normalize_errors
from gwarp.kernels.interpolation import (
    UniformLinearInterpolator,
    get_method_code,
    interpolate_sample,
    resample_traces,
)
from gwarp.kernels.parallel import parallel_for
from gwarp.kernels.smoothing import GaussianSmoother, smooth_axes

__all__ = [
    "DynamicWarping",
    "normalize_errors",
    "UniformLinearInterpolator",
    "get_method_code",
    "interpolate_sample",
    "resample_traces",
    "parallel_for",
    "GaussianSmoother",
    "smooth_axes",
]

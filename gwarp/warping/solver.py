"""
Shift estimation on a decimated time axis.

The alignment runs on data subsampled every ``td`` time samples. For
``td > 1`` the decimated shifts are scaled back to full-resolution samples
and linearly interpolated along time to the full grid.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from gwarp.config.models import WarpingConfig
from gwarp.data.gather import ReceiverGather, stack_gathers
from gwarp.kernels.dynamic_warping import DynamicWarping
from gwarp.kernels.interpolation import UniformLinearInterpolator
from gwarp.kernels.parallel import parallel_for
from gwarp.utils.logging import get_logger
from gwarp.utils.validation import check_finite
from gwarp.warping.dispatch import dispatch_shifts
from gwarp.warping.rms_filter import local_similarity_filter

logger = get_logger(__name__)


def decimate(
    gathers: Sequence[ReceiverGather],
    td: int,
) -> NDArray[np.float32]:
    """
    Strided copy of gather data keeping every ``td``-th time sample.

    Returns:
        (n_shots, n_receivers, n_samples // td) volume starting at sample 0
    """
    nt = gathers[0].data.shape[1]
    return stack_gathers(gathers, step=td, n_samples=nt // td)


def find_decimated_shifts(
    warping: DynamicWarping,
    config: WarpingConfig,
    predicted: NDArray[np.float32],
    observed: NDArray[np.float32],
) -> NDArray[np.float32]:
    """
    Filter decimated volumes by local similarity and align them.

    Returns:
        Shifts in decimated samples, same shape as the volumes
    """
    xf, yf, _ = local_similarity_filter(predicted, observed, config.sigma_rms, config.is_3d)
    shifts = np.zeros(predicted.shape, dtype=np.float32)
    return dispatch_shifts(warping, xf, yf, shifts, config.is_3d, config.max_workers)


class _ShotInterpolationTask:
    """Fills one shot's slice of the full-resolution shifts."""

    def __init__(
        self,
        interpolator: UniformLinearInterpolator,
        shifts: NDArray[np.float32],
    ):
        self.interpolator = interpolator
        self.shifts = shifts
        self.t = np.arange(shifts.shape[2], dtype=np.float64)
        self.r = np.arange(shifts.shape[1], dtype=np.float64)

    def __call__(self, shot: int) -> None:
        self.shifts[shot] = self.interpolator.interpolate_grid(self.t, self.r, [float(shot)])[0]


def interpolate_shifts(
    decimated: NDArray[np.float32],
    td: int,
    shifts: NDArray[np.float32],
    max_workers: int | None = None,
) -> NDArray[np.float32]:
    """
    Fill full-resolution shifts from shifts sampled every ``td`` time samples.

    Decimated values must already be in full-resolution samples. Beyond the
    last decimated time the last value is held.

    Args:
        decimated: (n_shots, n_receivers, ntm) shifts
        td: Time decimation factor
        shifts: (n_shots, n_receivers, nt) output, written in place
        max_workers: Worker threads for the shot loop

    Returns:
        shifts
    """
    interpolator = UniformLinearInterpolator.from_decimated(decimated, td)
    parallel_for(
        shifts.shape[0],
        _ShotInterpolationTask(interpolator, shifts),
        max_workers=max_workers,
        thread_name_prefix="gwarp-interp",
    )
    return shifts


def solve_shifts(
    warping: DynamicWarping,
    config: WarpingConfig,
    predicted: Sequence[ReceiverGather],
    observed: Sequence[ReceiverGather],
    shifts: NDArray[np.float32],
) -> NDArray[np.float32]:
    """
    Estimate full-resolution shifts between predicted and observed gathers.

    Args:
        warping: Frozen dynamic warping instance
        config: Warping configuration
        predicted: Predicted gathers, one per shot
        observed: Observed gathers, one per shot
        shifts: (n_shots, n_receivers, n_samples) output, written in place

    Returns:
        shifts
    """
    td = config.td
    nt = shifts.shape[2]
    ntm = nt // td

    ep = decimate(predicted, td)
    eo = decimate(observed, td)
    check_finite(ep, "predicted data")
    check_finite(eo, "observed data")
    logger.debug(f"Decimated {nt} -> {ntm} samples (td={td})")

    uu = find_decimated_shifts(warping, config, ep, eo)

    if td > 1:
        uu *= np.float32(td)
        interpolate_shifts(uu, td, shifts, config.max_workers)
    else:
        shifts[...] = uu
    return shifts

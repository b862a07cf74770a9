"""
2D/3D dispatch of the alignment.

In 3D mode one alignment spans the whole (shot, receiver, time) volume, so
strain limits couple neighboring shots. In 2D mode every shot is aligned on
its own (receiver, time) section, shots in parallel.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from gwarp.kernels.dynamic_warping import DynamicWarping
from gwarp.kernels.parallel import parallel_for
from gwarp.utils.logging import get_logger

logger = get_logger(__name__)


class _ShotAlignmentTask:
    """Aligns one shot section and writes that shot's slice of the shifts."""

    def __init__(
        self,
        warping: DynamicWarping,
        predicted: NDArray[np.float32],
        observed: NDArray[np.float32],
        shifts: NDArray[np.float32],
    ):
        self.warping = warping
        self.predicted = predicted
        self.observed = observed
        self.shifts = shifts

    def __call__(self, shot: int) -> None:
        self.warping.find_shifts(self.predicted[shot], self.observed[shot], self.shifts[shot])


def dispatch_shifts(
    warping: DynamicWarping,
    predicted: NDArray[np.float32],
    observed: NDArray[np.float32],
    shifts: NDArray[np.float32],
    three_d: bool,
    max_workers: int | None = None,
) -> NDArray[np.float32]:
    """
    Compute shifts for (n_shots, n_receivers, n_samples) volumes.

    Args:
        warping: Frozen dynamic warping instance, shared read-only
        predicted: Filtered predicted volume
        observed: Filtered observed volume
        shifts: Output shifts, same shape, written in place
        three_d: One 3D alignment instead of one 2D alignment per shot
        max_workers: Worker threads for the 2D shot loop

    Returns:
        shifts
    """
    ns = predicted.shape[0]
    if three_d:
        logger.debug(f"3D alignment of volume {predicted.shape}")
        warping.find_shifts(predicted, observed, shifts)
    else:
        logger.debug(f"2D alignment of {ns} shots of shape {predicted.shape[1:]}")
        parallel_for(
            ns,
            _ShotAlignmentTask(warping, predicted, observed, shifts),
            max_workers=max_workers,
            thread_name_prefix="gwarp-align",
        )
    return shifts

"""
Warping of observed receiver gathers onto predicted receiver gathers.

Usage:
    from gwarp import DataWarping, WarpingConfig

    config = WarpingConfig(
        strain_max_t=0.25, strain_max_r=0.5, strain_max_s=-1.0,
        smooth_t=8.0, smooth_r=2.0, smooth_s=0.0,
        max_shift=0.05, dt=0.004, td=2,
    )
    warping = DataWarping(config)

    shifts = np.zeros((ns, nr, nt), dtype=np.float32)
    warped = warping.warp(predicted, observed, shifts)
"""

from __future__ import annotations

import time
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from gwarp.config.models import (
    ERROR_EXTRAPOLATION,
    ERROR_SMOOTHING_PASSES,
    WarpingConfig,
    create_warping_config,
)
from gwarp.data.gather import ReceiverGather
from gwarp.kernels.dynamic_warping import DynamicWarping
from gwarp.kernels.parallel import parallel_for
from gwarp.utils.logging import get_logger
from gwarp.utils.validation import (
    ShapeMismatchError,
    validate_gather_pair,
    validate_shift_field,
)
from gwarp.warping.solver import solve_shifts

logger = get_logger(__name__)


def create_dynamic_warping(config: WarpingConfig) -> DynamicWarping:
    """
    Build the frozen alignment collaborator for a configuration.

    Search bounds are [-shift_max, shift_max]; the time smoothing sigma is
    divided by the decimation factor.
    """
    dw = DynamicWarping(-config.shift_max, config.shift_max)
    dw.set_shift_smoothing(*config.shift_smoothing)
    dw.set_error_extrapolation(ERROR_EXTRAPOLATION)
    dw.set_error_smoothing(ERROR_SMOOTHING_PASSES)
    dw.set_strain_max(*config.strain_limits)
    dw.set_interpolation(config.interpolation)
    return dw.freeze()


class _ShotWarpTask:
    """Creates one shot's output gather and resamples its observed traces."""

    def __init__(
        self,
        warping: DynamicWarping,
        observed: Sequence[ReceiverGather],
        shifts: NDArray[np.float32],
        output: list[ReceiverGather | None],
    ):
        self.warping = warping
        self.observed = observed
        self.shifts = shifts
        self.output = output

    def __call__(self, shot: int) -> None:
        source = self.observed[shot]
        nt = self.shifts.shape[2]
        gather = ReceiverGather.zeros(source.x_indices, source.z_indices, nt)
        self.warping.apply_shifts(self.shifts[shot], source.data, gather.data)
        self.output[shot] = gather


class DataWarping:
    """
    Estimates time shifts between predicted and observed receiver gathers
    and warps the observed gathers accordingly.

    The configuration, the 2D/3D mode and the alignment collaborator are
    fixed at construction. A DataWarping instance holds no per-call state,
    so concurrent ``warp`` calls are safe.
    """

    def __init__(self, config: WarpingConfig):
        self._config = config
        self._warping = create_dynamic_warping(config)
        logger.info(config.summary())
        if config.shift_max == 0:
            logger.warning(
                f"max_shift {config.max_shift} is shorter than one decimated sample "
                f"({config.td * config.dt}); all shifts will be zero"
            )

    @classmethod
    def from_parameters(
        cls,
        strain_t: float,
        strain_r: float,
        strain_s: float,
        smooth_t: float,
        smooth_r: float,
        smooth_s: float,
        max_shift: float,
        dt: float,
        td: int = 1,
    ) -> "DataWarping":
        """Construct from physical parameters; a negative strain_s selects 2D mode."""
        return cls(
            create_warping_config(
                strain_t, strain_r, strain_s, smooth_t, smooth_r, smooth_s, max_shift, dt, td
            )
        )

    @property
    def config(self) -> WarpingConfig:
        return self._config

    @property
    def dynamic_warping(self) -> DynamicWarping:
        return self._warping

    @property
    def is_3d(self) -> bool:
        return self._config.is_3d

    @property
    def shift_max(self) -> int:
        return self._config.shift_max

    @property
    def sigma_rms(self) -> float:
        return self._config.sigma_rms

    def _check_inputs(
        self,
        predicted: Sequence[ReceiverGather],
        observed: Sequence[ReceiverGather],
        shifts: NDArray[np.float32] | None,
    ) -> tuple[int, int, int]:
        shape = validate_gather_pair(predicted, observed)
        if shifts is not None:
            validate_shift_field(shifts, shape)
        if shape[2] // self._config.td < 1:
            raise ShapeMismatchError(
                f"Traces of {shape[2]} samples are shorter than the decimation factor {self._config.td}"
            )
        return shape

    def find_shifts(
        self,
        predicted: Sequence[ReceiverGather],
        observed: Sequence[ReceiverGather],
        shifts: NDArray[np.float32] | None = None,
    ) -> NDArray[np.float32]:
        """
        Estimate shifts u such that observed[i + u[i]] ~ predicted[i].

        Args:
            predicted: Predicted gathers, one per shot
            observed: Observed gathers, one per shot
            shifts: Optional float32 (n_shots, n_receivers, n_samples)
                output, written in place

        Returns:
            Shift field in full-resolution samples
        """
        shape = self._check_inputs(predicted, observed, shifts)
        if shifts is None:
            shifts = np.zeros(shape, dtype=np.float32)

        t0 = time.perf_counter()
        solve_shifts(self._warping, self._config, predicted, observed, shifts)
        logger.info(
            f"Estimated shifts for {shape[0]} shots x {shape[1]} receivers x {shape[2]} samples "
            f"in {time.perf_counter() - t0:.2f}s (range [{float(shifts.min()):.2f}, {float(shifts.max()):.2f}])"
        )
        return shifts

    def apply_shifts(
        self,
        observed: Sequence[ReceiverGather],
        shifts: NDArray[np.float32],
    ) -> list[ReceiverGather]:
        """
        Warp observed gathers by a shift field.

        Returns:
            New gathers with the observed receiver indices and resampled traces
        """
        ns = len(observed)
        if shifts.ndim != 3 or shifts.shape[0] != ns:
            raise ShapeMismatchError(
                f"Shift field shape {shifts.shape} does not match {ns} shots",
                actual=shifts.shape,
            )
        for shot, gather in enumerate(observed):
            if gather.data.shape != shifts.shape[1:]:
                raise ShapeMismatchError(
                    f"Shot {shot} has shape {gather.data.shape}, shift field has {shifts.shape[1:]}",
                    expected=shifts.shape[1:],
                    actual=gather.data.shape,
                )

        output: list[ReceiverGather | None] = [None] * ns
        parallel_for(
            ns,
            _ShotWarpTask(self._warping, observed, shifts, output),
            max_workers=self._config.max_workers,
            thread_name_prefix="gwarp-apply",
        )
        return output  # type: ignore[return-value]

    def warp(
        self,
        predicted: Sequence[ReceiverGather],
        observed: Sequence[ReceiverGather],
        shifts: NDArray[np.float32] | None = None,
    ) -> list[ReceiverGather]:
        """
        Warp observed gathers onto predicted gathers.

        Args:
            predicted: Predicted gathers, one per shot
            observed: Observed gathers, one per shot
            shifts: Optional float32 (n_shots, n_receivers, n_samples)
                array that receives the estimated shifts; allocated and
                discarded internally when None

        Returns:
            Warped observed gathers, one new gather per shot
        """
        shifts = self.find_shifts(predicted, observed, shifts)
        return self.apply_shifts(observed, shifts)

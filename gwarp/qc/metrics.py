"""
Quality control metrics for warping results.

Compares predicted gathers with observed gathers before and after warping.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from gwarp.data.gather import ReceiverGather, stack_gathers
from gwarp.utils.logging import (
    get_logger,
    print_metric,
    print_section,
    print_success,
    print_warning,
)
from gwarp.utils.validation import ShapeMismatchError

logger = get_logger(__name__)


def normalized_rms_misfit(reference: NDArray[np.floating], candidate: NDArray[np.floating]) -> float:
    """
    RMS of the difference divided by the RMS of the reference.

    Returns 0 for identical arrays and inf when the reference is silent but
    the candidate is not.
    """
    reference = np.asarray(reference, dtype=np.float64)
    candidate = np.asarray(candidate, dtype=np.float64)
    if reference.shape != candidate.shape:
        raise ShapeMismatchError(
            f"Shapes differ: {reference.shape} vs {candidate.shape}",
            expected=reference.shape,
            actual=candidate.shape,
        )
    diff = float(np.sqrt(np.mean((candidate - reference) ** 2)))
    ref = float(np.sqrt(np.mean(reference**2)))
    if ref == 0.0:
        return 0.0 if diff == 0.0 else float("inf")
    return diff / ref


def trace_correlation(a: NDArray[np.floating], b: NDArray[np.floating]) -> NDArray[np.float64]:
    """
    Zero-lag normalized correlation of corresponding traces along the last axis.

    Silent traces get a correlation of 0.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    num = np.sum(a * b, axis=-1)
    den = np.sqrt(np.sum(a * a, axis=-1) * np.sum(b * b, axis=-1))
    with np.errstate(invalid="ignore", divide="ignore"):
        corr = np.where(den > 0.0, num / np.where(den > 0.0, den, 1.0), 0.0)
    return corr


@dataclass
class WarpQC:
    """Misfit and correlation of observed data against predicted data."""

    misfit_before: float
    misfit_after: float
    correlation_before: float  # mean trace correlation
    correlation_after: float
    max_abs_shift: float | None = None

    @property
    def misfit_reduction(self) -> float:
        """Fractional misfit reduction achieved by warping."""
        if self.misfit_before == 0.0 or not np.isfinite(self.misfit_before):
            return 0.0
        return 1.0 - self.misfit_after / self.misfit_before

    def to_dict(self) -> dict[str, Any]:
        return {
            "misfit_before": self.misfit_before,
            "misfit_after": self.misfit_after,
            "misfit_reduction": self.misfit_reduction,
            "correlation_before": self.correlation_before,
            "correlation_after": self.correlation_after,
            "max_abs_shift": self.max_abs_shift,
        }

    def print_report(self) -> None:
        """Print the report to the console."""
        print_section("Warp QC")
        print_metric("Misfit before", self.misfit_before)
        print_metric("Misfit after", self.misfit_after)
        print_metric("Correlation before", self.correlation_before)
        print_metric("Correlation after", self.correlation_after)
        if self.max_abs_shift is not None:
            print_metric("Max |shift|", self.max_abs_shift, "samples")
        if self.misfit_after < self.misfit_before:
            print_success(f"Misfit reduced by {100.0 * self.misfit_reduction:.1f}%")
        else:
            print_warning("Warping did not reduce the misfit")


def warp_quality(
    predicted: Sequence[ReceiverGather],
    observed: Sequence[ReceiverGather],
    warped: Sequence[ReceiverGather],
    shifts: NDArray[np.float32] | None = None,
) -> WarpQC:
    """
    Compare observed and warped gathers against predicted gathers.

    Args:
        predicted: Predicted gathers
        observed: Observed gathers before warping
        warped: Observed gathers after warping
        shifts: Optional shift field, for the max-shift statistic

    Returns:
        WarpQC report
    """
    p = stack_gathers(predicted)
    o = stack_gathers(observed)
    w = stack_gathers(warped)

    report = WarpQC(
        misfit_before=normalized_rms_misfit(p, o),
        misfit_after=normalized_rms_misfit(p, w),
        correlation_before=float(np.mean(trace_correlation(p, o))),
        correlation_after=float(np.mean(trace_correlation(p, w))),
        max_abs_shift=float(np.max(np.abs(shifts))) if shifts is not None else None,
    )
    logger.info(
        f"Warp QC: misfit {report.misfit_before:.3f} -> {report.misfit_after:.3f}, "
        f"correlation {report.correlation_before:.3f} -> {report.correlation_after:.3f}"
    )
    return report

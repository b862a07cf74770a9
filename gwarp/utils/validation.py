"""
Error types and precondition checks for gwarp.

All checks run before any numerical work starts, so a failed check never
leaves a partially written output behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

import numpy as np
from numpy.typing import NDArray

from gwarp.utils.logging import get_logger

if TYPE_CHECKING:
    from gwarp.data.gather import ReceiverGather

logger = get_logger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class WarpingError(Exception):
    """Base class for gwarp errors."""


class ShapeMismatchError(WarpingError, ValueError):
    """Predicted, observed and shift volumes do not share the same extents."""

    def __init__(self, message: str, expected: tuple | None = None, actual: tuple | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class DegenerateInputError(WarpingError, ValueError):
    """Input with zero or non-finite energy where a finite nonzero RMS is required."""


class FrozenCollaboratorError(WarpingError, RuntimeError):
    """Attempt to reconfigure a dynamic warping instance after it was frozen."""


# =============================================================================
# Checks
# =============================================================================


def gather_shape(gathers: Sequence["ReceiverGather"]) -> tuple[int, int, int]:
    """
    Get the (n_shots, n_receivers, n_samples) extent of a dataset.

    Raises:
        ShapeMismatchError: if the dataset is empty or shots differ in extent
    """
    if len(gathers) == 0:
        raise ShapeMismatchError("Dataset contains no shots")

    nr, nt = gathers[0].data.shape
    for i, g in enumerate(gathers):
        if g.data.shape != (nr, nt):
            raise ShapeMismatchError(
                f"Shot {i} has shape {g.data.shape}, expected {(nr, nt)}",
                expected=(nr, nt),
                actual=tuple(g.data.shape),
            )
    return len(gathers), nr, nt


def validate_gather_pair(
    predicted: Sequence["ReceiverGather"],
    observed: Sequence["ReceiverGather"],
) -> tuple[int, int, int]:
    """
    Check that predicted and observed datasets have identical extents.

    Args:
        predicted: Predicted gathers, one per shot
        observed: Observed gathers, one per shot

    Returns:
        Common (n_shots, n_receivers, n_samples)

    Raises:
        ShapeMismatchError: on any extent difference
    """
    shape_p = gather_shape(predicted)
    shape_o = gather_shape(observed)
    if shape_p != shape_o:
        raise ShapeMismatchError(
            f"Predicted shape {shape_p} does not match observed shape {shape_o}",
            expected=shape_p,
            actual=shape_o,
        )
    return shape_p


def validate_shift_field(
    shifts: NDArray[np.float32],
    expected_shape: tuple[int, int, int],
) -> None:
    """
    Check a caller-supplied shift field.

    The field is written in place, so it must be a writable float32 array of
    exactly the data shape.
    """
    if not isinstance(shifts, np.ndarray):
        raise ShapeMismatchError(f"Shift field must be a numpy array, got {type(shifts).__name__}")
    if shifts.shape != tuple(expected_shape):
        raise ShapeMismatchError(
            f"Shift field shape {shifts.shape} does not match data shape {tuple(expected_shape)}",
            expected=tuple(expected_shape),
            actual=shifts.shape,
        )
    if shifts.dtype != np.float32:
        raise ShapeMismatchError(f"Shift field must be float32, got {shifts.dtype}")
    if not shifts.flags.writeable:
        raise ShapeMismatchError("Shift field is read-only")


def check_finite(x: NDArray, name: str) -> None:
    """Raise DegenerateInputError if ``x`` holds NaN or Inf."""
    if not np.all(np.isfinite(x)):
        n_bad = int(np.count_nonzero(~np.isfinite(x)))
        raise DegenerateInputError(f"{name} contains {n_bad} NaN/Inf values")

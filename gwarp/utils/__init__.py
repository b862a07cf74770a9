"""Utility functions for gwarp."""

from gwarp.utils.logging import (
    LogCapture,
    console,
    get_logger,
    log_exception,
    print_metric,
    print_section,
    print_success,
    print_warning,
    setup_logging,
)
from gwarp.utils.validation import (
    DegenerateInputError,
    FrozenCollaboratorError,
    ShapeMismatchError,
    WarpingError,
    check_finite,
    gather_shape,
    validate_gather_pair,
    validate_shift_field,
)

__all__ = [
    # Logging
    "LogCapture",
    "console",
    "get_logger",
    "log_exception",
    "print_metric",
    "print_section",
    "print_success",
    "print_warning",
    "setup_logging",
    # Validation
    "DegenerateInputError",
    "FrozenCollaboratorError",
    "ShapeMismatchError",
    "WarpingError",
    "check_finite",
    "gather_shape",
    "validate_gather_pair",
    "validate_shift_field",
]

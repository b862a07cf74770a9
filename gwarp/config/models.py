"""
Pydantic configuration models for gwarp.

Defines the immutable warping configuration and the quantities derived from
it: the integer shift search range, the RMS-filter smoothing scale and the
2D/3D mode.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# Enumerations
# =============================================================================


class ErrorExtrapolation(str, Enum):
    """How alignment errors are filled where a lag reaches past the trace ends."""
    NEAREST = "nearest"
    AVERAGE = "average"
    REFLECT = "reflect"


class ShiftInterpolation(str, Enum):
    """Trace resampling used when applying shifts."""
    LINEAR = "linear"
    SINC8 = "sinc8"


class WarpMode(str, Enum):
    """Alignment dimensionality."""
    MODE_2D = "2d"
    MODE_3D = "3d"


# =============================================================================
# Type Aliases
# =============================================================================

PositiveFloat = Annotated[float, Field(gt=0)]
NonNegativeFloat = Annotated[float, Field(ge=0)]
StrainFraction = Annotated[float, Field(gt=0, le=1)]


# =============================================================================
# Base Configuration
# =============================================================================


class BaseConfig(BaseModel):
    """Base configuration with common settings."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        use_enum_values=False,
    )


# =============================================================================
# Warping Configuration
# =============================================================================


# Fixed alignment-collaborator parameters
ERROR_SMOOTHING_PASSES = 2
ERROR_EXTRAPOLATION = ErrorExtrapolation.AVERAGE
RMS_EPSILON = 1.0e-6


class WarpingConfig(BaseConfig):
    """
    Configuration for receiver-gather warping.

    Strains are maximum shift derivatives along time, receiver and shot axes.
    A negative shot strain selects 2D mode (each shot aligned on its own).
    Smoothing sigmas are in samples (time) and traces (receiver, shot);
    ``max_shift`` and ``dt`` share the same physical time unit.
    """

    strain_max_t: StrainFraction = Field(description="Max strain along time")
    strain_max_r: StrainFraction = Field(description="Max strain along receivers")
    strain_max_s: float = Field(
        default=-1.0,
        le=1,
        description="Max strain along shots; negative selects 2D mode",
    )

    smooth_t: NonNegativeFloat = Field(default=0.0, description="Shift smoothing sigma along time")
    smooth_r: NonNegativeFloat = Field(default=0.0, description="Shift smoothing sigma along receivers")
    smooth_s: NonNegativeFloat = Field(default=0.0, description="Shift smoothing sigma along shots")

    max_shift: PositiveFloat = Field(description="Maximum admissible time shift")
    dt: PositiveFloat = Field(description="Time sample interval")
    td: int = Field(default=1, ge=1, description="Time decimation factor")

    interpolation: ShiftInterpolation = Field(
        default=ShiftInterpolation.LINEAR,
        description="Trace resampling used when applying shifts",
    )
    max_workers: int | None = Field(
        default=None,
        gt=0,
        description="Worker threads for shot-parallel loops (None = runtime setting)",
    )

    @field_validator("strain_max_s")
    @classmethod
    def validate_shot_strain(cls, v: float) -> float:
        """Shot strain is either negative (2D) or a strain fraction in (0, 1]."""
        if v == 0.0:
            raise ValueError("strain_max_s must be negative (2D mode) or in (0, 1]")
        return v

    # -------------------------------------------------------------------------
    # Derived quantities
    # -------------------------------------------------------------------------

    @property
    def is_3d(self) -> bool:
        """True when a shot strain is supplied."""
        return self.strain_max_s >= 0.0

    @property
    def mode(self) -> WarpMode:
        return WarpMode.MODE_3D if self.is_3d else WarpMode.MODE_2D

    @property
    def shift_max(self) -> int:
        """Half-width of the integer lag search range, in decimated samples."""
        return int(math.floor(self.max_shift / (self.td * self.dt)))

    @property
    def sigma_rms(self) -> float:
        """Gaussian sigma for local RMS filtering, in decimated samples."""
        return 0.5 * self.max_shift / (self.td * self.dt)

    @property
    def shift_smoothing(self) -> tuple[float, float, float]:
        """Shift smoothing sigmas on the decimated grid (time sigma divided by td)."""
        return (self.smooth_t / self.td, self.smooth_r, self.smooth_s)

    @property
    def strain_limits(self) -> tuple[float, ...]:
        """Strain limits installed in the alignment: 2 in 2D mode, 3 in 3D mode."""
        if self.is_3d:
            return (self.strain_max_t, self.strain_max_r, self.strain_max_s)
        return (self.strain_max_t, self.strain_max_r)

    def summary(self) -> str:
        return (
            f"{self.mode.value.upper()} warping: shifts in [{-self.shift_max}, {self.shift_max}], "
            f"td={self.td}, strain={self.strain_limits}, smoothing={self.shift_smoothing}, "
            f"sigma_rms={self.sigma_rms:.2f}"
        )


def create_warping_config(
    strain_t: float,
    strain_r: float,
    strain_s: float,
    smooth_t: float,
    smooth_r: float,
    smooth_s: float,
    max_shift: float,
    dt: float,
    td: int = 1,
) -> WarpingConfig:
    """
    Create a warping configuration from positional physical parameters.

    Args:
        strain_t: Max strain along time
        strain_r: Max strain along receivers
        strain_s: Max strain along shots (negative for 2D mode)
        smooth_t: Shift smoothing sigma along time (full-resolution samples)
        smooth_r: Shift smoothing sigma along receivers
        smooth_s: Shift smoothing sigma along shots
        max_shift: Maximum time shift
        dt: Time sample interval
        td: Time decimation factor

    Returns:
        Validated WarpingConfig
    """
    return WarpingConfig(
        strain_max_t=strain_t,
        strain_max_r=strain_r,
        strain_max_s=strain_s,
        smooth_t=smooth_t,
        smooth_r=smooth_r,
        smooth_s=smooth_s,
        max_shift=max_shift,
        dt=dt,
        td=td,
    )

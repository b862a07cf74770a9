"""
Interpolation for gwarp.

Two kinds of interpolation are needed by the warping pipeline:

- trace resampling at fractional sample positions, used when applying
  shifts (Numba kernels: linear and 8-point windowed sinc);
- linear interpolation of a shift volume sampled on a uniform 3-axis grid,
  used to bring decimated shifts back to full time resolution.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numba import njit
from numpy.typing import NDArray
from scipy.interpolate import RegularGridInterpolator

from gwarp.config.models import ShiftInterpolation


# =============================================================================
# Numba trace resampling kernels
# =============================================================================


@njit(cache=True, nogil=True)
def _linear_interp(trace: np.ndarray, t_sample: float) -> float:
    """
    Linear interpolation of trace amplitude.

    Zero outside [0, n_samples - 1], exact at integer positions.
    """
    n_samples = len(trace)

    if t_sample < 0.0 or t_sample > n_samples - 1:
        return 0.0

    i0 = int(t_sample)
    if i0 >= n_samples - 1:
        return trace[n_samples - 1]

    frac = t_sample - i0
    if frac == 0.0:
        return trace[i0]
    return trace[i0] * (1.0 - frac) + trace[i0 + 1] * frac


@njit(cache=True, nogil=True)
def _sinc_value(x: float) -> float:
    """Compute sinc(x) = sin(pi*x) / (pi*x)."""
    if abs(x) < 1e-10:
        return 1.0
    return np.sin(np.pi * x) / (np.pi * x)


@njit(cache=True, nogil=True)
def _hanning_window(x: float, half_width: int) -> float:
    if abs(x) >= half_width:
        return 0.0
    return 0.5 * (1.0 + np.cos(np.pi * x / half_width))


@njit(cache=True, nogil=True)
def _sinc8_interp(trace: np.ndarray, t_sample: float) -> float:
    """
    8-point Hanning-windowed sinc interpolation.

    Falls back to linear within 4 samples of either end.
    """
    half_width = 4
    n_samples = len(trace)

    if t_sample < half_width or t_sample >= n_samples - half_width:
        return _linear_interp(trace, t_sample)

    # taps i0 - 3 .. i0 + 4 straddle t_sample symmetrically
    i0 = int(t_sample)
    frac = t_sample - i0
    if frac == 0.0:
        return trace[i0]

    result = 0.0
    norm = 0.0
    for k in range(-half_width + 1, half_width + 1):
        i = i0 + k
        if 0 <= i < n_samples:
            x = frac - k
            w = _sinc_value(x) * _hanning_window(x, half_width)
            result += trace[i] * w
            norm += w

    if norm > 1e-10:
        return result / norm
    return 0.0


@njit(cache=True, nogil=True)
def interpolate_sample(trace: np.ndarray, t_sample: float, method: int) -> float:
    """
    Interpolate trace amplitude at fractional sample index.

    Args:
        trace: Trace amplitude array
        t_sample: Fractional sample index
        method: 0 = linear, 1 = sinc8

    Returns:
        Interpolated amplitude
    """
    if method == 1:
        return _sinc8_interp(trace, t_sample)
    return _linear_interp(trace, t_sample)


@njit(cache=True, nogil=True)
def resample_traces(
    shifts: np.ndarray,  # (n_traces, n_samples)
    traces: np.ndarray,  # (n_traces, n_samples)
    out: np.ndarray,  # (n_traces, n_samples)
    method: int,
) -> None:
    """Write out[j, i] = traces[j](i + shifts[j, i]) for every trace."""
    n_traces, n_samples = traces.shape
    for j in range(n_traces):
        trace = traces[j]
        for i in range(n_samples):
            out[j, i] = interpolate_sample(trace, i + shifts[j, i], method)


def get_method_code(method: str | ShiftInterpolation) -> int:
    """
    Convert method name to numeric code for Numba.

    Raises:
        ValueError: for unknown methods
    """
    if isinstance(method, ShiftInterpolation):
        method = method.value
    codes = {
        "linear": 0,
        "sinc8": 1,
        "sinc": 1,
    }
    key = method.lower().strip()
    if key not in codes:
        raise ValueError(f"Unknown interpolation method: {method!r}")
    return codes[key]


# =============================================================================
# Uniform-grid linear interpolation
# =============================================================================


class UniformLinearInterpolator:
    """
    Linear interpolation of values sampled on a uniform 3-axis grid.

    Axes are given fastest first (time, receiver, shot) while the values
    array is indexed slowest first, ``values[i3, i2, i1]``. Queries outside
    the grid take the value at the nearest grid edge (constant
    extrapolation).
    """

    def __init__(
        self,
        n1: int, d1: float, f1: float,
        n2: int, d2: float, f2: float,
        n3: int, d3: float, f3: float,
        values: NDArray[np.floating],
    ):
        values = np.asarray(values)
        if values.shape != (n3, n2, n1):
            raise ValueError(f"values shape {values.shape} does not match grid {(n3, n2, n1)}")
        for n, d in ((n1, d1), (n2, d2), (n3, d3)):
            if n < 1:
                raise ValueError("every grid axis needs at least one sample")
            if n > 1 and d <= 0.0:
                raise ValueError(f"grid spacing must be positive, got {d}")

        self.dtype = values.dtype
        # Slowest first, matching values
        self._axes = [
            (n3, float(d3), float(f3)),
            (n2, float(d2), float(f2)),
            (n1, float(d1), float(f1)),
        ]
        # Singleton axes are dropped from the interpolation grid
        self._active = [k for k, (n, _, _) in enumerate(self._axes) if n > 1]

        squeezed = values.reshape([self._axes[k][0] for k in self._active])
        if self._active:
            grid = tuple(f + d * np.arange(n) for n, d, f in (self._axes[k] for k in self._active))
            self._rgi: RegularGridInterpolator | None = RegularGridInterpolator(
                grid,
                squeezed.astype(np.float64),
                method="linear",
                bounds_error=False,
                fill_value=None,
            )
            self._constant = None
        else:
            self._rgi = None
            self._constant = values.reshape(()).item()

    @classmethod
    def from_decimated(
        cls,
        values: NDArray[np.floating],
        td: int,
    ) -> "UniformLinearInterpolator":
        """Interpolator for a (ns, nr, ntm) field sampled every ``td`` time samples."""
        ns, nr, ntm = values.shape
        return cls(ntm, float(td), 0.0, nr, 1.0, 0.0, ns, 1.0, 0.0, values)

    def _clamp(self, k: int, x: NDArray[np.float64]) -> NDArray[np.float64]:
        n, d, f = self._axes[k]
        return np.clip(x, f, f + d * (n - 1))

    def interpolate(self, x1: float, x2: float, x3: float) -> float:
        """Value at time ``x1``, receiver ``x2``, shot ``x3``."""
        return float(
            self.interpolate_grid(
                np.array([x1], dtype=np.float64),
                np.array([x2], dtype=np.float64),
                np.array([x3], dtype=np.float64),
            )[0, 0, 0]
        )

    def interpolate_grid(
        self,
        x1: Sequence[float] | NDArray[np.float64],
        x2: Sequence[float] | NDArray[np.float64],
        x3: Sequence[float] | NDArray[np.float64],
    ) -> NDArray[np.floating]:
        """
        Values on the tensor product of coordinate vectors.

        Returns:
            Array of shape (len(x3), len(x2), len(x1)) in the values' dtype
        """
        coords = [
            np.asarray(x3, dtype=np.float64),
            np.asarray(x2, dtype=np.float64),
            np.asarray(x1, dtype=np.float64),
        ]
        shape = tuple(len(c) for c in coords)
        if self._rgi is None:
            return np.full(shape, self._constant, dtype=self.dtype)

        active = [self._clamp(k, coords[k]) for k in self._active]
        mesh = np.meshgrid(*active, indexing="ij")
        points = np.stack([m.ravel() for m in mesh], axis=-1)
        result = self._rgi(points).reshape([len(a) for a in active])

        # Restore the dropped singleton axes by broadcasting
        full_shape = [len(coords[k]) if k in self._active else 1 for k in range(3)]
        return np.broadcast_to(result.reshape(full_shape), shape).astype(self.dtype)

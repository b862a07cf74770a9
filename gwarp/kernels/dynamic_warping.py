"""
Dynamic warping of sampled signals.

Estimates shifts u such that g[i + u[i]] best matches f[i] for 1D traces,
2D (receiver, time) sections and 3D (shot, receiver, time) volumes. Shifts
are integer lags in [shift_min, shift_max] found by dynamic programming over
alignment errors; smoothness comes from strain limits, which allow the lag
to change by at most one every ``ceil(1/strain)`` samples along an axis.

Steps for an array of any dimensionality:

1. alignment errors e[..., i, l] = (f[..., i] - g[..., i + lag_l])^2,
   extrapolated where i + lag_l falls outside the trace;
2. error smoothing: along each axis, errors are replaced by the sum of
   forward and reverse strain-limited accumulations minus the error itself,
   then normalized to [0, 1]; repeated ``error_smoothing`` times;
3. per trace, forward accumulation along time and reverse backtracking to
   find the minimum-error lag sequence;
4. Gaussian smoothing of the shifts along each axis.

A DynamicWarping instance is configured through its setters and then frozen.
A frozen instance is never modified by ``find_shifts`` or ``apply_shifts``,
so one instance may be shared by concurrent threads.
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit
from numpy.typing import NDArray

from gwarp.config.models import ErrorExtrapolation, ShiftInterpolation
from gwarp.kernels.interpolation import get_method_code, resample_traces
from gwarp.kernels.smoothing import smooth_axes
from gwarp.utils.logging import get_logger
from gwarp.utils.validation import FrozenCollaboratorError, ShapeMismatchError

logger = get_logger(__name__)

_EXTRAPOLATION_CODES = {
    ErrorExtrapolation.NEAREST: 0,
    ErrorExtrapolation.AVERAGE: 1,
    ErrorExtrapolation.REFLECT: 2,
}


# =============================================================================
# Low-level Numba JIT functions
# =============================================================================


@njit(cache=True, nogil=True)
def _compute_errors(
    f: np.ndarray,  # (n_traces, n1)
    g: np.ndarray,  # (n_traces, n1)
    lmin: int,
    extrapolation: int,
    e: np.ndarray,  # (n_traces, n1, nl)
) -> None:
    """Squared-difference alignment errors with out-of-bounds extrapolation."""
    n_traces, n1 = f.shape
    nl = e.shape[2]
    for j in range(n_traces):
        total = 0.0
        count = 0
        for il in range(nl):
            lag = lmin + il
            ilo = max(0, -lag)
            ihi = min(n1, n1 - lag)
            for i in range(ilo, ihi):
                diff = f[j, i] - g[j, i + lag]
                e[j, i, il] = diff * diff
                total += diff * diff
            if ihi > ilo:
                count += ihi - ilo
        fallback = total / count if count > 0 else 0.0

        for il in range(nl):
            lag = lmin + il
            ilo = max(0, -lag)
            ihi = min(n1, n1 - lag)
            if ihi <= ilo:
                # Lag longer than the trace
                for i in range(n1):
                    e[j, i, il] = fallback
            elif extrapolation == 1:
                avg = 0.0
                for i in range(ilo, ihi):
                    avg += e[j, i, il]
                avg /= ihi - ilo
                for i in range(0, ilo):
                    e[j, i, il] = avg
                for i in range(ihi, n1):
                    e[j, i, il] = avg
            elif extrapolation == 2:
                for i in range(0, ilo):
                    e[j, i, il] = e[j, min(2 * ilo - i, ihi - 1), il]
                for i in range(ihi, n1):
                    e[j, i, il] = e[j, max(2 * (ihi - 1) - i, ilo), il]
            else:
                for i in range(0, ilo):
                    e[j, i, il] = e[j, ilo, il]
                for i in range(ihi, n1):
                    e[j, i, il] = e[j, ihi - 1, il]


@njit(cache=True, nogil=True)
def _accumulate(
    direction: int,
    b: int,
    e: np.ndarray,  # (n, m, nl)
    j: int,
    d: np.ndarray,  # (n, nl)
) -> None:
    """
    Strain-limited accumulation of errors e[:, j, :] along the first axis.

    A lag change of one is allowed only across ``b`` samples, along which the
    errors of the new lag are summed.
    """
    n = e.shape[0]
    nl = e.shape[2]
    nm = n - 1
    step = 1 if direction > 0 else -1
    ib = 0 if direction > 0 else nm
    ie = n if direction > 0 else -1

    for il in range(nl):
        d[ib, il] = e[ib, j, il]

    i = ib + step
    while i != ie:
        ji = max(0, min(nm, i - step))
        jb = max(0, min(nm, i - step * b))
        for il in range(nl):
            ilm1 = il - 1 if il > 0 else 0
            ilp1 = il + 1 if il < nl - 1 else nl - 1
            dm = d[jb, ilm1]
            di = d[ji, il]
            dp = d[jb, ilp1]
            kb = ji
            while kb != jb:
                dm += e[kb, j, ilm1]
                dp += e[kb, j, ilp1]
                kb -= step
            d[i, il] = min(dm, min(di, dp)) + e[i, j, il]
        i += step


@njit(cache=True, nogil=True)
def _smooth_errors_first_axis(
    b: int,
    e: np.ndarray,  # (n, m, nl)
    es: np.ndarray,  # (n, m, nl)
) -> None:
    """Replace errors by forward + reverse accumulation minus the error itself."""
    n, m, nl = e.shape
    ef = np.empty((n, nl), dtype=np.float64)
    er = np.empty((n, nl), dtype=np.float64)
    for j in range(m):
        _accumulate(1, b, e, j, ef)
        _accumulate(-1, b, e, j, er)
        for i in range(n):
            for il in range(nl):
                es[i, j, il] = ef[i, il] + er[i, il] - e[i, j, il]


@njit(cache=True, nogil=True)
def _backtrack_reverse(
    b: int,
    lmin: int,
    d: np.ndarray,  # (n, nl) forward accumulation
    e: np.ndarray,  # (n, m, nl)
    j: int,
    u: np.ndarray,  # (n,)
) -> None:
    """Trace the minimum-error lag path from the last sample back to the first."""
    n, nl = d.shape

    # Among equal minima, prefer the lag closest to zero
    i = n - 1
    il = 0
    dl = d[i, 0]
    for k in range(1, nl):
        if d[i, k] < dl or (d[i, k] == dl and abs(k + lmin) < abs(il + lmin)):
            dl = d[i, k]
            il = k
    u[i] = il + lmin

    while i > 0:
        ji = i - 1
        jb = max(0, i - b)
        ilm1 = il - 1 if il > 0 else 0
        ilp1 = il + 1 if il < nl - 1 else nl - 1
        dm = d[jb, ilm1]
        di = d[ji, il]
        dp = d[jb, ilp1]
        kb = ji
        while kb != jb:
            dm += e[kb, j, ilm1]
            dp += e[kb, j, ilp1]
            kb -= 1
        if di <= dm and di <= dp:
            i = ji
        else:
            il = ilm1 if dm <= dp else ilp1
            for k in range(ji, jb, -1):
                u[k] = il + lmin
            i = jb
        u[i] = il + lmin


@njit(cache=True, nogil=True)
def _find_shifts_columns(
    b: int,
    lmin: int,
    e: np.ndarray,  # (n1, m, nl), time first
    u: np.ndarray,  # (m, n1)
) -> None:
    """Minimum-error lag sequence for every trace column of e."""
    n1, m, nl = e.shape
    d = np.empty((n1, nl), dtype=np.float64)
    for j in range(m):
        _accumulate(1, b, e, j, d)
        _backtrack_reverse(b, lmin, d, e, j, u[j])


# =============================================================================
# Array layout helpers
# =============================================================================


def _axis_first(e: NDArray[np.float32], axis: int) -> NDArray[np.float32]:
    """(..., n_axis, ..., nl) -> contiguous (n_axis, m, nl)."""
    moved = np.moveaxis(e, axis, 0)
    return np.ascontiguousarray(moved.reshape(moved.shape[0], -1, moved.shape[-1]))


def _axis_restore(ea: NDArray[np.float32], axis: int, shape: tuple[int, ...]) -> NDArray[np.float32]:
    """Inverse of _axis_first for an error array of the given shape."""
    moved_shape = (shape[axis],) + tuple(s for k, s in enumerate(shape) if k != axis)
    return np.ascontiguousarray(np.moveaxis(ea.reshape(moved_shape), 0, axis))


def normalize_errors(e: NDArray[np.float32]) -> None:
    """Scale errors in place to the range [0, 1]."""
    emin = float(e.min())
    emax = float(e.max())
    e -= emin
    if emax > emin:
        e *= 1.0 / (emax - emin)


# =============================================================================
# Dynamic warping
# =============================================================================


class DynamicWarping:
    """
    Dynamic warping for 1D, 2D and 3D arrays sampled on uniform grids.

    Axis order everywhere is slowest first: (shot, receiver, time). Strain
    limits and smoothing sigmas are given fastest first: (time, receiver,
    shot).
    """

    def __init__(self, shift_min: int, shift_max: int):
        """
        Initialize with the integer lag search range.

        Args:
            shift_min: Smallest lag, in samples
            shift_max: Largest lag, in samples
        """
        if shift_max < shift_min:
            raise ValueError(f"shift_max {shift_max} < shift_min {shift_min}")
        self._shift_min = int(shift_min)
        self._shift_max = int(shift_max)
        self._strain_max: tuple[float, float, float] = (1.0, 1.0, 1.0)
        self._bstrain: tuple[int, int, int] = (1, 1, 1)
        self._shift_smoothing: tuple[float, float, float] = (0.0, 0.0, 0.0)
        self._error_extrapolation = ErrorExtrapolation.NEAREST
        self._error_smoothing = 0
        self._interpolation = ShiftInterpolation.LINEAR
        self._frozen = False

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenCollaboratorError("DynamicWarping is frozen and cannot be reconfigured")

    def set_strain_max(self, *strains: float) -> None:
        """
        Set maximum strains along time, receiver and (optionally) shot axes.

        Axes not given keep a strain of 1.
        """
        self._check_mutable()
        if not 1 <= len(strains) <= 3:
            raise ValueError("set_strain_max takes one to three strains")
        values = list(self._strain_max)
        for k, s in enumerate(strains):
            if not 0.0 < s <= 1.0:
                raise ValueError(f"strain must be in (0, 1], got {s}")
            values[k] = float(s)
        self._strain_max = (values[0], values[1], values[2])
        self._bstrain = tuple(int(math.ceil(1.0 / s)) for s in self._strain_max)  # type: ignore[assignment]

    def set_shift_smoothing(self, *sigmas: float) -> None:
        """Set Gaussian sigmas for shift smoothing along time, receiver and shot axes."""
        self._check_mutable()
        if not 1 <= len(sigmas) <= 3:
            raise ValueError("set_shift_smoothing takes one to three sigmas")
        values = [0.0, 0.0, 0.0]
        for k, s in enumerate(sigmas):
            if s < 0.0:
                raise ValueError(f"sigma must be non-negative, got {s}")
            values[k] = float(s)
        self._shift_smoothing = (values[0], values[1], values[2])

    def set_error_extrapolation(self, extrapolation: ErrorExtrapolation) -> None:
        self._check_mutable()
        self._error_extrapolation = ErrorExtrapolation(extrapolation)

    def set_error_smoothing(self, n_passes: int) -> None:
        """Set the number of error smoothing passes."""
        self._check_mutable()
        if n_passes < 0:
            raise ValueError(f"n_passes must be non-negative, got {n_passes}")
        self._error_smoothing = int(n_passes)

    def set_interpolation(self, method: ShiftInterpolation | str) -> None:
        """Set trace resampling used by apply_shifts."""
        self._check_mutable()
        self._interpolation = ShiftInterpolation(method)

    def freeze(self) -> "DynamicWarping":
        """Disallow further reconfiguration."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def shift_min(self) -> int:
        return self._shift_min

    @property
    def shift_max(self) -> int:
        return self._shift_max

    @property
    def n_lags(self) -> int:
        return self._shift_max - self._shift_min + 1

    @property
    def strain_max(self) -> tuple[float, float, float]:
        return self._strain_max

    @property
    def bstrain(self) -> tuple[int, int, int]:
        """Samples per unit lag change along time, receiver and shot axes."""
        return self._bstrain

    @property
    def shift_smoothing(self) -> tuple[float, float, float]:
        return self._shift_smoothing

    @property
    def error_extrapolation(self) -> ErrorExtrapolation:
        return self._error_extrapolation

    @property
    def error_smoothing(self) -> int:
        return self._error_smoothing

    @property
    def interpolation(self) -> ShiftInterpolation:
        return self._interpolation

    # -------------------------------------------------------------------------
    # Alignment errors
    # -------------------------------------------------------------------------

    def compute_errors(self, f: NDArray[np.floating], g: NDArray[np.floating]) -> NDArray[np.float32]:
        """
        Alignment errors for every sample and lag.

        Returns:
            float32 array of shape f.shape + (n_lags,)
        """
        f = np.asarray(f, dtype=np.float32)
        g = np.asarray(g, dtype=np.float32)
        if f.shape != g.shape:
            raise ShapeMismatchError(
                f"f shape {f.shape} does not match g shape {g.shape}",
                expected=f.shape,
                actual=g.shape,
            )
        n1 = f.shape[-1]
        f2 = np.ascontiguousarray(f.reshape(-1, n1))
        g2 = np.ascontiguousarray(g.reshape(-1, n1))
        e = np.empty((f2.shape[0], n1, self.n_lags), dtype=np.float32)
        _compute_errors(
            f2, g2, self._shift_min, _EXTRAPOLATION_CODES[self._error_extrapolation], e
        )
        return e.reshape(f.shape + (self.n_lags,))

    def smooth_errors(self, e: NDArray[np.float32]) -> NDArray[np.float32]:
        """
        One error smoothing pass along every data axis, time first.

        Errors are normalized after each axis.
        """
        ndim = e.ndim - 1
        out = e
        for k in range(ndim):
            axis = ndim - 1 - k
            ea = _axis_first(out, axis)
            es = np.empty_like(ea)
            _smooth_errors_first_axis(self._bstrain[k], ea, es)
            out = _axis_restore(es, axis, e.shape)
            normalize_errors(out)
        return out

    def accumulate(self, direction: int, errors: NDArray[np.float32], axis_index: int = 0) -> NDArray[np.float64]:
        """
        Strain-limited accumulation of a (n, n_lags) error array.

        Args:
            direction: 1 for forward, -1 for reverse
            errors: Errors along one axis
            axis_index: 0 time, 1 receiver, 2 shot (selects the strain)
        """
        e3 = np.ascontiguousarray(errors, dtype=np.float32)[:, None, :]
        d = np.empty((e3.shape[0], e3.shape[2]), dtype=np.float64)
        _accumulate(1 if direction > 0 else -1, self._bstrain[axis_index], e3, 0, d)
        return d

    # -------------------------------------------------------------------------
    # Shifts
    # -------------------------------------------------------------------------

    def find_shifts(
        self,
        f: NDArray[np.floating],
        g: NDArray[np.floating],
        u: NDArray[np.float32],
    ) -> NDArray[np.float32]:
        """
        Compute shifts u such that g[i + u[i]] ~ f[i].

        Args:
            f: Reference array, 1D (nt), 2D (nr, nt) or 3D (ns, nr, nt)
            g: Array to be warped, same shape as f
            u: Output shifts in samples, same shape as f, written in place

        Returns:
            u
        """
        if not 1 <= np.ndim(f) <= 3:
            raise ValueError(f"find_shifts supports 1D to 3D arrays, got {np.ndim(f)}D")
        if u.shape != np.shape(f):
            raise ShapeMismatchError(
                f"shift shape {u.shape} does not match data shape {np.shape(f)}",
                expected=np.shape(f),
                actual=u.shape,
            )

        e = self.compute_errors(f, g)
        for _ in range(self._error_smoothing):
            e = self.smooth_errors(e)
        normalize_errors(e)

        time_axis = e.ndim - 2
        et = _axis_first(e, time_axis)
        ut = np.empty((et.shape[1], et.shape[0]), dtype=np.float32)
        _find_shifts_columns(self._bstrain[0], self._shift_min, et, ut)

        shifts = ut.reshape(u.shape)
        if any(s > 0.0 for s in self._shift_smoothing):
            shifts = smooth_axes(shifts, self._shift_smoothing)
        u[...] = shifts
        return u

    def apply_shifts(
        self,
        u: NDArray[np.float32],
        g: NDArray[np.floating],
        h: NDArray[np.float32] | None = None,
    ) -> NDArray[np.float32]:
        """
        Resample g at the shifted positions: h[..., i] = g[..., i + u[..., i]].

        Args:
            u: Shifts in samples
            g: Array to be warped, same shape as u
            h: Optional output array, same shape as u

        Returns:
            h
        """
        g = np.asarray(g, dtype=np.float32)
        if u.shape != g.shape:
            raise ShapeMismatchError(
                f"shift shape {u.shape} does not match data shape {g.shape}",
                expected=g.shape,
                actual=u.shape,
            )
        if h is None:
            h = np.empty(g.shape, dtype=np.float32)
        elif h.shape != g.shape:
            raise ShapeMismatchError(
                f"output shape {h.shape} does not match data shape {g.shape}",
                expected=g.shape,
                actual=h.shape,
            )

        n1 = g.shape[-1]
        out = np.empty((g.size // n1, n1), dtype=np.float32)
        resample_traces(
            np.ascontiguousarray(u.reshape(-1, n1), dtype=np.float32),
            np.ascontiguousarray(g.reshape(-1, n1)),
            out,
            get_method_code(self._interpolation),
        )
        h[...] = out.reshape(g.shape)
        return h

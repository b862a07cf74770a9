"""
Separable Gaussian smoothing for gwarp.

Used by the local similarity filter (smoothing squared amplitudes) and by the
dynamic warping shift smoothing.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import gaussian_filter1d


class GaussianSmoother:
    """
    Gaussian smoother with a fixed sigma, applied along selected axes.

    Boundaries use zero-slope (edge-replicating) extension, so a constant
    array is returned unchanged. A sigma of zero is the identity.
    """

    def __init__(self, sigma: float):
        if sigma < 0.0:
            raise ValueError(f"sigma must be non-negative, got {sigma}")
        self.sigma = float(sigma)

    def apply(
        self,
        x: NDArray[np.floating],
        axes: Sequence[int] | None = None,
        out: NDArray[np.floating] | None = None,
    ) -> NDArray[np.floating]:
        """
        Smooth ``x`` along ``axes`` (all axes when None).

        Args:
            x: Input array
            axes: Axes to smooth along, one separable pass each
            out: Optional output array (may be ``x``)

        Returns:
            Smoothed array with the dtype of ``x``
        """
        if axes is None:
            axes = range(x.ndim)

        y = np.array(x, copy=True)
        if self.sigma > 0.0:
            for axis in axes:
                if y.shape[axis] > 1:
                    y = gaussian_filter1d(y, self.sigma, axis=axis, mode="nearest")

        if out is None:
            return y
        out[...] = y
        return out


def smooth_axes(
    x: NDArray[np.floating],
    sigmas: Sequence[float],
) -> NDArray[np.floating]:
    """
    Smooth with a separate sigma per axis.

    ``sigmas[k]`` applies to axis ``-1 - k``, so the first sigma is always the
    fastest (time) axis whatever the dimensionality.
    """
    y = np.array(x, copy=True)
    for k, sigma in enumerate(sigmas):
        axis = x.ndim - 1 - k
        if axis < 0:
            break
        if sigma > 0.0 and y.shape[axis] > 1:
            y = gaussian_filter1d(y, sigma, axis=axis, mode="nearest")
    return y

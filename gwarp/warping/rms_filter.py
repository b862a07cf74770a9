"""
RMS equalization and local similarity filtering.

Before alignment, predicted and observed volumes are re-weighted so that
the alignment errors respond to time shifts rather than to amplitude
differences. The weight is a local similarity of smoothed energies:

    w = 2 XX YY / (XX^2 + YY^2 + eps)

where XX and YY are the Gaussian-smoothed squared amplitudes. w is near 1
where both volumes carry similar local energy and near 0 where one of them
is much stronger than the other.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from gwarp.config.models import RMS_EPSILON
from gwarp.kernels.smoothing import GaussianSmoother
from gwarp.utils.logging import get_logger
from gwarp.utils.validation import DegenerateInputError, ShapeMismatchError

logger = get_logger(__name__)


def rms(x: NDArray[np.floating]) -> float:
    """Root-mean-square amplitude over all samples."""
    x = np.asarray(x)
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(x, dtype=np.float64))))


def equalize(x: NDArray[np.float32], y: NDArray[np.float32]) -> NDArray[np.float32]:
    """
    Scale x so that its RMS amplitude equals that of y.

    Returns:
        New float32 array x * rms(y) / rms(x)

    Raises:
        DegenerateInputError: if x has zero or non-finite energy
    """
    rms_x = rms(x)
    rms_y = rms(y)
    if not np.isfinite(rms_x) or not np.isfinite(rms_y):
        raise DegenerateInputError("Cannot equalize: input energy is not finite")
    if rms_x == 0.0:
        raise DegenerateInputError("Cannot equalize: input has zero energy")
    return (np.asarray(x, dtype=np.float32) * np.float32(rms_y / rms_x)).astype(np.float32)


def similarity_weights(
    xx: NDArray[np.float32],
    yy: NDArray[np.float32],
    epsilon: float = RMS_EPSILON,
) -> NDArray[np.float32]:
    """Local similarity weight 2 xx yy / (xx^2 + yy^2 + epsilon), elementwise."""
    num = 2.0 * xx * yy
    den = xx * xx + yy * yy + np.float32(epsilon)
    return (num / den).astype(np.float32)


def local_similarity_filter(
    x: NDArray[np.float32],
    y: NDArray[np.float32],
    sigma: float,
    three_d: bool,
    epsilon: float = RMS_EPSILON,
) -> tuple[NDArray[np.float32], NDArray[np.float32], NDArray[np.float32]]:
    """
    Equalize two (n_shots, n_receivers, n_samples) volumes by local similarity.

    Args:
        x: Predicted volume
        y: Observed volume
        sigma: Gaussian sigma for smoothing squared amplitudes, in samples
        three_d: Smooth along shots as well; otherwise only along receivers
            and time, each shot on its own
        epsilon: Stabilizer in the similarity weight denominator

    Returns:
        (filtered x, filtered y, weights), all new arrays; the RMS of the
        filtered x equals the RMS of the filtered y
    """
    if x.shape != y.shape:
        raise ShapeMismatchError(
            f"Volumes differ in shape: {x.shape} vs {y.shape}",
            expected=x.shape,
            actual=y.shape,
        )
    if x.ndim != 3:
        raise ValueError(f"Expected (n_shots, n_receivers, n_samples) volumes, got {x.ndim}D")

    y = np.asarray(y, dtype=np.float32)
    x = equalize(x, y)

    xx = x * x
    yy = y * y
    smoother = GaussianSmoother(sigma)
    axes = (0, 1, 2) if three_d else (1, 2)
    xx = smoother.apply(xx, axes=axes)
    yy = smoother.apply(yy, axes=axes)

    w = similarity_weights(xx, yy, epsilon)
    xf = equalize(w * x, w * y)
    yf = (w * y).astype(np.float32)

    logger.debug(
        f"Local similarity filter: sigma={sigma:.2f}, axes={axes}, "
        f"weight range [{float(w.min()):.3f}, {float(w.max()):.3f}]"
    )
    return xf, yf, w

"""
Synthetic receiver gathers for testing and demonstration.

Creates predicted/observed gather pairs that differ by known time shifts.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from gwarp.data.gather import ReceiverGather, gathers_from_volume
from gwarp.utils.logging import get_logger

logger = get_logger(__name__)


def generate_ricker_wavelet(
    freq_hz: float,
    dt: float,
    length: float | None = None,
) -> NDArray[np.float32]:
    """
    Generate a Ricker (Mexican hat) wavelet.

    Args:
        freq_hz: Dominant frequency in Hz
        dt: Sample interval in seconds
        length: Wavelet length in seconds (default: 2.4 / freq_hz)

    Returns:
        Wavelet amplitude array, odd length, peak at the center sample
    """
    if length is None:
        length = 2.4 / freq_hz
    half = max(1, int(round(0.5 * length / dt)))
    t = np.arange(-half, half + 1) * dt

    pi_f_t = np.pi * freq_hz * t
    wavelet = (1 - 2 * pi_f_t**2) * np.exp(-(pi_f_t**2))

    return wavelet.astype(np.float32)


def generate_reflectivity_volume(
    n_shots: int,
    n_receivers: int,
    n_samples: int,
    dt: float = 0.004,
    freq_hz: float = 25.0,
    density: float = 0.1,
    noise_level: float = 0.01,
    lateral_continuity: bool = True,
    seed: int | None = None,
) -> NDArray[np.float32]:
    """
    Generate band-limited traces from random sparse reflectivity.

    Args:
        n_shots: Number of shots
        n_receivers: Receivers per shot
        n_samples: Samples per trace
        dt: Sample interval in seconds
        freq_hz: Ricker wavelet frequency
        density: Fraction of samples carrying a reflection
        noise_level: Gaussian noise level relative to the peak amplitude
        lateral_continuity: Same reflectivity series for every trace
        seed: Random seed for reproducibility

    Returns:
        (n_shots, n_receivers, n_samples) float32 volume
    """
    rng = np.random.default_rng(seed)
    wavelet = generate_ricker_wavelet(freq_hz, dt)

    shape = (n_shots, n_receivers, n_samples)
    if lateral_continuity:
        series = rng.standard_normal(n_samples) * (rng.random(n_samples) < density)
        reflectivity = np.broadcast_to(series, shape)
    else:
        reflectivity = rng.standard_normal(shape) * (rng.random(shape) < density)

    volume = np.empty(shape, dtype=np.float32)
    for s in range(n_shots):
        for r in range(n_receivers):
            volume[s, r] = np.convolve(reflectivity[s, r], wavelet, mode="same")

    peak = float(np.abs(volume).max())
    if noise_level > 0 and peak > 0:
        volume += (noise_level * peak * rng.standard_normal(shape)).astype(np.float32)

    return volume


def shift_volume(
    volume: NDArray[np.float32],
    shifts: float | NDArray[np.floating],
) -> NDArray[np.float32]:
    """
    Delay traces by ``shifts`` samples: out[..., i] = volume[..., i - shifts].

    Positions outside a trace take the nearest edge value.

    Args:
        volume: (..., n_samples) data
        shifts: Scalar or array broadcastable to volume, in samples

    Returns:
        Shifted float32 copy
    """
    volume = np.asarray(volume, dtype=np.float32)
    n1 = volume.shape[-1]
    s = np.broadcast_to(np.asarray(shifts, dtype=np.float64), volume.shape)
    t = np.arange(n1, dtype=np.float64)

    flat = volume.reshape(-1, n1)
    s_flat = s.reshape(-1, n1)
    out = np.empty_like(flat)
    for j in range(flat.shape[0]):
        out[j] = np.interp(t - s_flat[j], t, flat[j])
    return out.reshape(volume.shape)


def make_shifted_pair(
    n_shots: int,
    n_receivers: int,
    n_samples: int,
    shift: float | NDArray[np.floating] = 0.0,
    dt: float = 0.004,
    freq_hz: float = 25.0,
    noise_level: float = 0.01,
    pad: int = 32,
    seed: int | None = None,
) -> tuple[list[ReceiverGather], list[ReceiverGather]]:
    """
    Create predicted gathers and observed gathers delayed by ``shift`` samples.

    Both are cut from a longer padded volume so that the delay brings real
    signal, not edge values, into the observed traces.

    Args:
        n_shots: Number of shots
        n_receivers: Receivers per shot
        n_samples: Samples per trace
        shift: Delay in samples, scalar or (n_shots, n_receivers, n_samples)
        dt: Sample interval in seconds
        freq_hz: Ricker wavelet frequency
        noise_level: Noise relative to the peak amplitude
        pad: Extra samples on each side of the generated volume
        seed: Random seed

    Returns:
        (predicted, observed) gather lists; observed[i + shift] ~ predicted[i]
    """
    base = generate_reflectivity_volume(
        n_shots, n_receivers, n_samples + 2 * pad, dt, freq_hz,
        noise_level=noise_level, seed=seed,
    )
    shift_arr = np.broadcast_to(np.asarray(shift, dtype=np.float64), (n_shots, n_receivers, n_samples))
    shift_padded = np.pad(shift_arr, ((0, 0), (0, 0), (pad, pad)), mode="edge")

    predicted = base[:, :, pad : pad + n_samples]
    observed = shift_volume(base, shift_padded)[:, :, pad : pad + n_samples]

    logger.debug(
        f"Synthetic pair: {n_shots} shots x {n_receivers} receivers x {n_samples} samples, "
        f"shift range [{float(shift_arr.min()):.2f}, {float(shift_arr.max()):.2f}]"
    )
    x = np.arange(n_receivers, dtype=np.int32)
    z = np.zeros(n_receivers, dtype=np.int32)
    return gathers_from_volume(predicted, x, z), gathers_from_volume(observed, x, z)

"""
Gather fixtures for gwarp tests.
"""

from __future__ import annotations

import numpy as np

from gwarp.data.gather import ReceiverGather, gathers_from_volume
from gwarp.synthetic.gathers import generate_reflectivity_volume, make_shifted_pair


def identical_pair(
    n_shots: int = 1,
    n_receivers: int = 1,
    n_samples: int = 64,
    seed: int = 7,
) -> tuple[list[ReceiverGather], list[ReceiverGather]]:
    """Predicted and observed gathers holding the same data in separate arrays."""
    volume = generate_reflectivity_volume(
        n_shots, n_receivers, n_samples, density=0.2, noise_level=0.05, seed=seed
    )
    return gathers_from_volume(volume), gathers_from_volume(volume.copy())


def constant_shift_pair(
    shift: int,
    n_shots: int = 2,
    n_receivers: int = 3,
    n_samples: int = 160,
    seed: int = 11,
) -> tuple[list[ReceiverGather], list[ReceiverGather]]:
    """Observed gathers delayed by a constant integer number of samples."""
    return make_shifted_pair(
        n_shots, n_receivers, n_samples, shift=float(shift), noise_level=0.02, seed=seed
    )


def snapshot(gathers: list[ReceiverGather]) -> list[np.ndarray]:
    return [g.data.copy() for g in gathers]

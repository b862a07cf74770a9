"""
Receiver gather container for gwarp.

A dataset is a sequence of ReceiverGather objects, one per shot. Each gather
holds its receiver traces as a (n_receivers, n_samples) float32 array plus
the receiver spatial index sequences, which are carried opaquely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray


@dataclass
class ReceiverGather:
    """
    Traces recorded at the receivers of one shot.

    All traces share a uniform time axis. ``x_indices`` and ``z_indices`` are
    the receivers' grid indices; the warping pipeline never interprets them,
    it only copies them into new gathers.
    """

    # Receiver spatial indices: (n_receivers,)
    x_indices: NDArray[np.int32]
    z_indices: NDArray[np.int32]

    # Trace data: (n_receivers, n_samples)
    data: NDArray[np.float32]

    def __post_init__(self) -> None:
        self.data = np.asarray(self.data, dtype=np.float32)
        if self.data.ndim != 2:
            raise ValueError(f"Gather data must be 2D (n_receivers, n_samples), got {self.data.ndim}D")
        self.x_indices = np.asarray(self.x_indices)
        self.z_indices = np.asarray(self.z_indices)
        if len(self.x_indices) != len(self.z_indices):
            raise ValueError(
                f"x_indices length {len(self.x_indices)} != z_indices length {len(self.z_indices)}"
            )

    @classmethod
    def zeros(
        cls,
        x_indices: NDArray[np.int32],
        z_indices: NDArray[np.int32],
        n_samples: int,
    ) -> "ReceiverGather":
        """Create a zero-filled gather with copies of the given receiver indices."""
        x = np.array(x_indices, copy=True)
        z = np.array(z_indices, copy=True)
        return cls(x_indices=x, z_indices=z, data=np.zeros((len(x), n_samples), dtype=np.float32))

    @property
    def n_receivers(self) -> int:
        return self.data.shape[0]

    @property
    def n_samples(self) -> int:
        return self.data.shape[1]

    def copy(self) -> "ReceiverGather":
        return ReceiverGather(
            x_indices=self.x_indices.copy(),
            z_indices=self.z_indices.copy(),
            data=self.data.copy(),
        )


def stack_gathers(
    gathers: Sequence[ReceiverGather],
    step: int = 1,
    n_samples: int | None = None,
) -> NDArray[np.float32]:
    """
    Copy gather data into a contiguous (n_shots, n_receivers, n_out) volume.

    Samples are taken every ``step``-th time index starting at 0, without any
    anti-alias filtering.

    Args:
        gathers: One gather per shot, all of equal shape
        step: Time subsampling stride
        n_samples: Number of output samples (default: n_samples // step)

    Returns:
        float32 volume that shares no memory with the gathers
    """
    nr, nt = gathers[0].data.shape
    n_out = nt // step if n_samples is None else n_samples
    volume = np.empty((len(gathers), nr, n_out), dtype=np.float32)
    for i, g in enumerate(gathers):
        volume[i] = g.data[:, 0 : n_out * step : step]
    return volume


def gathers_from_volume(
    volume: NDArray[np.float32],
    x_indices: NDArray[np.int32] | None = None,
    z_indices: NDArray[np.int32] | None = None,
) -> list[ReceiverGather]:
    """
    Split a (n_shots, n_receivers, n_samples) volume into gathers.

    Receiver indices default to 0..n_receivers-1 along x and 0 along z.
    """
    volume = np.asarray(volume, dtype=np.float32)
    ns, nr, _ = volume.shape
    if x_indices is None:
        x_indices = np.arange(nr, dtype=np.int32)
    if z_indices is None:
        z_indices = np.zeros(nr, dtype=np.int32)
    return [
        ReceiverGather(
            x_indices=np.array(x_indices, copy=True),
            z_indices=np.array(z_indices, copy=True),
            data=volume[i].copy(),
        )
        for i in range(ns)
    ]

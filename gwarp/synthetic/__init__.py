"""Synthetic data generation for gwarp testing."""

from gwarp.synthetic.gathers import (
    generate_reflectivity_volume,
    generate_ricker_wavelet,
    make_shifted_pair,
    shift_volume,
)

__all__ = [
    "generate_reflectivity_volume",
    "generate_ricker_wavelet",
    "make_shifted_pair",
    "shift_volume",
]

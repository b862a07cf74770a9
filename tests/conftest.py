"""Shared pytest fixtures for gwarp tests."""

import numpy as np
import pytest

from gwarp.config.models import WarpingConfig
from gwarp.settings import reset_settings


@pytest.fixture(autouse=True)
def _default_settings():
    """Every test starts and ends with default runtime settings."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def config_2d() -> WarpingConfig:
    return WarpingConfig(
        strain_max_t=0.5,
        strain_max_r=0.5,
        strain_max_s=-1.0,
        smooth_t=2.0,
        smooth_r=1.0,
        smooth_s=0.0,
        max_shift=0.04,
        dt=0.004,
    )


@pytest.fixture
def config_3d(config_2d) -> WarpingConfig:
    return config_2d.model_copy(update={"strain_max_s": 0.5})


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)

"""
gwarp - Dynamic warping of seismic receiver gathers

Estimates smooth, strain-limited time shifts between predicted and observed
receiver gathers and warps the observed gathers onto the predicted ones.
"""

__version__ = "0.1.0"

from gwarp.config.models import WarpingConfig, create_warping_config
from gwarp.data.gather import ReceiverGather
from gwarp.settings import (
    ApplicationSettings,
    get_settings,
    load_settings,
    reset_settings,
)
from gwarp.warping.data_warping import DataWarping

__all__ = [
    "DataWarping",
    "ReceiverGather",
    "WarpingConfig",
    "create_warping_config",
    "__version__",
    # Settings
    "ApplicationSettings",
    "get_settings",
    "load_settings",
    "reset_settings",
]

"""Quality control for gwarp."""

from gwarp.qc.metrics import (
    WarpQC,
    normalized_rms_misfit,
    trace_correlation,
    warp_quality,
)

__all__ = [
    "WarpQC",
    "normalized_rms_misfit",
    "trace_correlation",
    "warp_quality",
]

"""Data containers for gwarp."""

from gwarp.data.gather import ReceiverGather, gathers_from_volume, stack_gathers

__all__ = [
    "ReceiverGather",
    "gathers_from_volume",
    "stack_gathers",
]

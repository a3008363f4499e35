"""Device layer: driver-independent instrument abstractions."""

from cct_meter.devices.photometer import (
    ConfirmCallback,
    Photometer,
    PhotometerStatistics,
)

__all__ = [
    "ConfirmCallback",
    "Photometer",
    "PhotometerStatistics",
]

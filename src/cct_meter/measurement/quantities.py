"""The fixed set of quantities tracked per measurement session."""

from __future__ import annotations

from enum import Enum

__all__ = ["Quantity", "TRACKED_QUANTITIES"]


class Quantity(str, Enum):
    """Scalar quantities reported by the photometer for every sample."""

    ILLUMINANCE = "illuminance"  # lx
    CCT = "cct"  # correlated color temperature, K
    INTERNAL_TEMPERATURE = "internal_temperature"  # °C
    INTEGRATION_TIME = "integration_time"  # s

    @property
    def unit(self) -> str:
        """Display unit of the quantity."""
        return _UNITS[self]

    @property
    def label(self) -> str:
        """Human-readable name used in reports."""
        return _LABELS[self]


_UNITS: dict[Quantity, str] = {
    Quantity.ILLUMINANCE: "lx",
    Quantity.CCT: "K",
    Quantity.INTERNAL_TEMPERATURE: "°C",
    Quantity.INTEGRATION_TIME: "s",
}

_LABELS: dict[Quantity, str] = {
    Quantity.ILLUMINANCE: "Illuminance",
    Quantity.CCT: "CCT value",
    Quantity.INTERNAL_TEMPERATURE: "Internal temperature",
    Quantity.INTEGRATION_TIME: "Integration time",
}

#: Quantities every SessionTracker tracks, in report order.
TRACKED_QUANTITIES: tuple[Quantity, ...] = (
    Quantity.CCT,
    Quantity.ILLUMINANCE,
    Quantity.INTERNAL_TEMPERATURE,
    Quantity.INTEGRATION_TIME,
)

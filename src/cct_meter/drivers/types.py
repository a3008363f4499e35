"""Photometer driver type definitions and protocols.

Kept separate from the implementations so the device layer and the
measurement loop can reference these types without importing a concrete
driver.

Types defined here:
- PhotometerReading: one sample from the instrument
- InstrumentFault: acquisition failure raised by drivers
- PhotometerInstance: protocol for an open instrument connection
- PhotometerDriver: protocol for instrument discovery and connection
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, TypedDict, runtime_checkable

from cct_meter.measurement.quantities import Quantity

__all__ = [
    "AvailablePhotometer",
    "InstrumentFault",
    "PhotometerDriver",
    "PhotometerInfo",
    "PhotometerInstance",
    "PhotometerReading",
]


class InstrumentFault(RuntimeError):
    """Raised by a driver when the instrument cannot deliver a measurement.

    The measurement core never retries or masks it; the fault travels
    unchanged to the top-level driver of the run.
    """

    def __init__(self, message: str, device: str | None = None) -> None:
        self.device = device
        super().__init__(f"{device}: {message}" if device else message)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class PhotometerReading:
    """A single photometer measurement.

    Attributes:
        illuminance: Photopic illuminance in lx.
        cct: Correlated color temperature in K.
        internal_temperature: Instrument temperature in °C.
        integration_time: Integration time used for the sample, in s.
        valid: False when the instrument flags the sample as unusable
            (e.g. overrange). Invalid samples are not folded into the
            session statistics.
        timestamp: When the reading was taken (UTC).
    """

    illuminance: float
    cct: float
    internal_temperature: float
    integration_time: float
    valid: bool = True
    timestamp: datetime = field(default_factory=_utc_now)

    def values(self) -> dict[Quantity, float]:
        """Return the scalar values keyed by Quantity."""
        return {
            Quantity.ILLUMINANCE: self.illuminance,
            Quantity.CCT: self.cct,
            Quantity.INTERNAL_TEMPERATURE: self.internal_temperature,
            Quantity.INTEGRATION_TIME: self.integration_time,
        }


class PhotometerInfo(TypedDict):
    """Identification of an open instrument."""

    type: str
    manufacturer: str
    instrument_id: str
    device: str
    has_shutter: bool


class AvailablePhotometer(TypedDict):
    """Descriptor of a discoverable instrument."""

    id: int
    type: str
    device: str
    name: str


@runtime_checkable
class PhotometerInstance(Protocol):  # pragma: no cover
    """Protocol for an open photometer connection.

    Implementations: DigitalTwinPhotometerInstance. All methods except
    ``close`` raise InstrumentFault once the connection is closed.
    """

    @property
    def has_shutter(self) -> bool:
        """True if the instrument can close its own shutter for dark
        measurements; otherwise the operator must cover the sensor."""
        ...

    def get_info(self) -> PhotometerInfo:
        """Return manufacturer, instrument id and capabilities."""
        ...

    def measure(self) -> PhotometerReading:
        """Acquire one sample. Blocks until the instrument answers.

        Raises:
            InstrumentFault: If the acquisition fails.
        """
        ...

    def measure_dark(self) -> None:
        """Acquire a dark offset with the sensor shielded from light.

        Raises:
            InstrumentFault: If the acquisition fails.
        """
        ...

    def set_dynamic_dark_mode(self, enabled: bool) -> None:
        """Enable or disable automatic dark correction per sample."""
        ...

    def close(self) -> None:
        """Release the connection. Safe to call multiple times."""
        ...


@runtime_checkable
class PhotometerDriver(Protocol):  # pragma: no cover
    """Protocol for photometer drivers (discovery and connection)."""

    def get_available_devices(self) -> list[AvailablePhotometer]:
        """List instruments this driver can open."""
        ...

    def open(self, device: str) -> PhotometerInstance:
        """Open the named instrument.

        Raises:
            InstrumentFault: If the instrument is not found or already open.
        """
        ...

    def close(self) -> None:
        """Close the open instrument, if any."""
        ...

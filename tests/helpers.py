"""Test helpers for cct-meter.

Provides protocol compliance checks and scripted collaborators for the
measurement loop, so loop tests control every reading and timestamp.

Example:
    from tests.helpers import ScriptedInstrument, make_reading

    instrument = ScriptedInstrument([
        make_reading(cct=4000.0, illuminance=100.0),
        InstrumentFault("lost connection"),
    ])
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Protocol

from cct_meter.drivers.types import PhotometerReading


def assert_implements_protocol(instance: object, protocol: type[Protocol]) -> None:
    """Assert that an instance implements a runtime-checkable Protocol.

    Args:
        instance: Object to check.
        protocol: Protocol class decorated with ``@runtime_checkable``.

    Raises:
        AssertionError: Listing the protocol members the instance lacks.
    """
    if isinstance(instance, protocol):
        return

    object_attrs = set(dir(object))
    expected = {
        attr
        for attr in set(dir(protocol)) - object_attrs
        if not attr.startswith("_")
    }
    missing = sorted(attr for attr in expected if not hasattr(instance, attr))
    missing_str = ", ".join(missing) if missing else "unknown"
    raise AssertionError(
        f"{type(instance).__name__} does not implement {protocol.__name__}. "
        f"Missing: {missing_str}"
    )


def make_reading(
    cct: float = 4000.0,
    illuminance: float = 100.0,
    internal_temperature: float = 25.0,
    integration_time: float = 0.5,
    valid: bool = True,
) -> PhotometerReading:
    """Build a PhotometerReading with defaults for the uninteresting values."""
    return PhotometerReading(
        illuminance=illuminance,
        cct=cct,
        internal_temperature=internal_temperature,
        integration_time=integration_time,
        valid=valid,
    )


class ScriptedInstrument:
    """Instrument source replaying a fixed script.

    Script items are readings, returned in order, or exceptions, raised
    when reached. Once the script is exhausted the last item repeats.
    """

    def __init__(self, script: Iterable[PhotometerReading | Exception]) -> None:
        self._script = list(script)
        if not self._script:
            raise ValueError("ScriptedInstrument needs at least one item")
        self.sample_calls = 0
        self.dark_calls = 0

    def measure_one_sample(self) -> PhotometerReading:
        index = min(self.sample_calls, len(self._script) - 1)
        self.sample_calls += 1
        item = self._script[index]
        if isinstance(item, Exception):
            raise item
        return item

    def measure_dark_offset(self) -> None:
        self.dark_calls += 1


class SteppingClock:
    """Clock advancing one second per call, starting at a fixed time."""

    def __init__(self, start: datetime | None = None) -> None:
        self._next = start or datetime(2026, 10, 19, 9, 15, 0, tzinfo=UTC)

    def now(self) -> datetime:
        current = self._next
        self._next = current + timedelta(seconds=1)
        return current

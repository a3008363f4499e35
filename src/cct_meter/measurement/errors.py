"""Exceptions raised by the measurement core.

Instrument failures are not defined here: drivers raise
``cct_meter.drivers.InstrumentFault`` and the core propagates it unchanged.
"""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "MeasurementError",
    "MissingQuantityError",
    "IterationCapExceededError",
]


class MeasurementError(Exception):
    """Base exception for measurement core failures."""

    pass


class MissingQuantityError(MeasurementError):
    """Raised when a sample lacks a value for a tracked quantity.

    Indicates a wiring bug between the loop and the tracker; never
    expected in correct operation and never recovered from.
    """

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(
            f"Sample is missing tracked quantities: {', '.join(self.missing)}"
        )


class IterationCapExceededError(MeasurementError):
    """Raised when a session hits the iteration cap before its target.

    The instrument kept answering without advancing the sample count.
    Fatal for the whole run.
    """

    def __init__(self, iterations: int, samples: int, target: int) -> None:
        self.iterations = iterations
        self.samples = samples
        self.target = target
        super().__init__(
            f"Too many iterations: {iterations} instrument reads yielded "
            f"{samples} of {target} samples"
        )

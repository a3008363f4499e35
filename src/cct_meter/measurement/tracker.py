"""Per-session statistics for all tracked quantities.

A SessionTracker owns one StatisticsAccumulator per quantity and updates
them together, once per sample, so every accumulator always holds the same
sample count. ``snapshot()`` freezes the current state into a SessionReport
that carries no reference back to the tracker.

Example:
    tracker = SessionTracker()
    tracker.restart_all()
    tracker.update_all({
        Quantity.ILLUMINANCE: 100.0,
        Quantity.CCT: 4000.0,
        Quantity.INTERNAL_TEMPERATURE: 24.5,
        Quantity.INTEGRATION_TIME: 0.05,
    })
    report = tracker.snapshot()
    report.cct.mean  # 4000.0
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from cct_meter.measurement.errors import MissingQuantityError
from cct_meter.measurement.quantities import TRACKED_QUANTITIES, Quantity
from cct_meter.measurement.statistics import StatisticsAccumulator

__all__ = [
    "QuantityStatistics",
    "SessionReport",
    "SessionTracker",
]


@dataclass(frozen=True)
class QuantityStatistics:
    """Statistics of one quantity at snapshot time.

    Attributes:
        count: Number of samples.
        mean: Arithmetic mean, NaN when count is 0.
        standard_deviation: Sample standard deviation, NaN when count < 2.
    """

    count: int
    mean: float
    standard_deviation: float

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe dict; undefined values become None."""
        return {
            "count": self.count,
            "mean": self.mean if math.isfinite(self.mean) else None,
            "standard_deviation": (
                self.standard_deviation
                if math.isfinite(self.standard_deviation)
                else None
            ),
        }


@dataclass(frozen=True)
class SessionReport:
    """Immutable snapshot of a session's aggregated statistics.

    Attributes:
        statistics: Read-only mapping from Quantity to QuantityStatistics,
            in report order.
    """

    statistics: Mapping[Quantity, QuantityStatistics]

    def __getitem__(self, quantity: Quantity | str) -> QuantityStatistics:
        """Statistics of one quantity, by enum member or its string value.

        Raises:
            KeyError: If the quantity is not part of the report.
            ValueError: If the string names no known quantity.
        """
        return self.statistics[Quantity(quantity)]

    @property
    def quantities(self) -> tuple[Quantity, ...]:
        """Quantities contained in the report."""
        return tuple(self.statistics)

    @property
    def sample_count(self) -> int:
        """Common sample count of the session (0 for an empty report)."""
        return next(iter(self.statistics.values())).count if self.statistics else 0

    @property
    def illuminance(self) -> QuantityStatistics:
        """Illuminance in lx."""
        return self.statistics[Quantity.ILLUMINANCE]

    @property
    def cct(self) -> QuantityStatistics:
        """Correlated color temperature in K."""
        return self.statistics[Quantity.CCT]

    @property
    def internal_temperature(self) -> QuantityStatistics:
        """Instrument internal temperature in °C."""
        return self.statistics[Quantity.INTERNAL_TEMPERATURE]

    @property
    def integration_time(self) -> QuantityStatistics:
        """Sensor integration time in s."""
        return self.statistics[Quantity.INTEGRATION_TIME]

    def to_dict(self) -> dict[str, Any]:
        """Export as ``{quantity_name: {count, mean, standard_deviation}}``."""
        return {
            quantity.value: stats.to_dict()
            for quantity, stats in self.statistics.items()
        }


class SessionTracker:
    """Owns one accumulator per tracked quantity.

    The quantity set is fixed at construction. All updates go through
    ``update_all``, which validates the whole sample before touching any
    accumulator, so sample counts never diverge.
    """

    def __init__(self, quantities: Iterable[Quantity] = TRACKED_QUANTITIES) -> None:
        """Create a tracker with empty accumulators.

        Args:
            quantities: Quantities to track, in report order. Defaults to
                illuminance, CCT, internal temperature and integration time.

        Raises:
            ValueError: If ``quantities`` is empty or has duplicates.
        """
        ordered = tuple(Quantity(q) for q in quantities)
        if not ordered:
            raise ValueError("SessionTracker needs at least one quantity")
        if len(set(ordered)) != len(ordered):
            raise ValueError(f"Duplicate quantities: {ordered}")

        self._accumulators: dict[Quantity, StatisticsAccumulator] = {
            quantity: StatisticsAccumulator(quantity.value) for quantity in ordered
        }

    @property
    def quantities(self) -> tuple[Quantity, ...]:
        return tuple(self._accumulators)

    @property
    def sample_count(self) -> int:
        """Common sample count of all accumulators."""
        return next(iter(self._accumulators.values())).sample_count

    def accumulator(self, quantity: Quantity | str) -> StatisticsAccumulator:
        """Return the live accumulator for ``quantity``.

        Raises:
            KeyError: If the quantity is not tracked.
            ValueError: If ``quantity`` is not a Quantity name.
        """
        return self._accumulators[Quantity(quantity)]

    def restart_all(self) -> None:
        """Restart every accumulator."""
        for accumulator in self._accumulators.values():
            accumulator.restart()

    def update_all(self, values: Mapping[Quantity | str, float]) -> None:
        """Fold one sample into every accumulator.

        Keys may be Quantity members or their string values. Keys for
        untracked quantities are ignored.

        Args:
            values: One value per tracked quantity.

        Raises:
            MissingQuantityError: If a tracked quantity has no value. No
                accumulator is updated in that case.
        """
        resolved: dict[Quantity, float] = {}
        missing: list[str] = []
        for quantity in self._accumulators:
            if quantity in values:
                resolved[quantity] = values[quantity]
            elif quantity.value in values:
                resolved[quantity] = values[quantity.value]
            else:
                missing.append(quantity.value)

        if missing:
            raise MissingQuantityError(missing)

        for quantity, accumulator in self._accumulators.items():
            accumulator.update(resolved[quantity])

    def snapshot(self) -> SessionReport:
        """Freeze the current statistics into a SessionReport."""
        return SessionReport(
            statistics=MappingProxyType(
                {
                    quantity: QuantityStatistics(
                        count=accumulator.sample_count,
                        mean=accumulator.mean,
                        standard_deviation=accumulator.standard_deviation,
                    )
                    for quantity, accumulator in self._accumulators.items()
                }
            )
        )

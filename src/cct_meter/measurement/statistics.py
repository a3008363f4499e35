"""Running statistics for a single measured quantity.

Implements Welford's incremental algorithm: every observation is folded in
O(1) time and memory, and the variance is accumulated as a sum of squared
deviations from the running mean instead of a raw sum of squares, which
avoids catastrophic cancellation for large, nearly constant values such as
color temperatures around 4000 K.

Example:
    acc = StatisticsAccumulator("cct")
    for value in (4000.0, 4010.0, 3990.0):
        acc.update(value)

    acc.sample_count         # 3
    acc.mean                 # 4000.0
    acc.standard_deviation   # 10.0
"""

from __future__ import annotations

import math
from typing import Any

__all__ = ["StatisticsAccumulator"]


class StatisticsAccumulator:
    """Running count, mean and sample standard deviation.

    Undefined statistics are reported as NaN: the mean for zero samples,
    the standard deviation (Bessel corrected, divisor ``n - 1``) for fewer
    than two samples. Non-finite input is not rejected; a NaN observation
    makes mean and deviation NaN until the next ``restart()``.

    Not thread-safe. The measurement loop owns its accumulators
    exclusively.
    """

    __slots__ = ("name", "_count", "_mean", "_m2")

    def __init__(self, name: str = "") -> None:
        """Create an empty accumulator.

        Args:
            name: Label used in logs and ``to_dict()``. Purely descriptive.
        """
        self.name = name
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def __repr__(self) -> str:
        return (
            f"StatisticsAccumulator(name={self.name!r}, n={self._count}, "
            f"mean={self.mean}, std={self.standard_deviation})"
        )

    def restart(self) -> None:
        """Discard all observations and return to the empty state.

        The accumulator is reset in place, so references held by a
        SessionTracker stay valid.
        """
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def update(self, value: float) -> None:
        """Fold one observation into the running statistics.

        Args:
            value: New observation. Any float; NaN and infinities propagate.

        Example:
            >>> acc = StatisticsAccumulator()
            >>> acc.update(100.0)
            >>> acc.update(102.0)
            >>> acc.mean
            101.0
        """
        self._count += 1
        delta = value - self._mean
        self._mean += delta / self._count
        # Second factor uses the updated mean.
        self._m2 += delta * (value - self._mean)

    @property
    def sample_count(self) -> int:
        """Number of observations since construction or the last restart."""
        return self._count

    @property
    def mean(self) -> float:
        """Arithmetic mean of the observations, NaN when empty."""
        if self._count == 0:
            return math.nan
        return self._mean

    @property
    def variance(self) -> float:
        """Sample variance (divisor ``n - 1``), NaN for fewer than 2 samples."""
        if self._count < 2:
            return math.nan
        return self._m2 / (self._count - 1)

    @property
    def standard_deviation(self) -> float:
        """Sample standard deviation, NaN for fewer than 2 samples."""
        if self._count < 2:
            return math.nan
        return math.sqrt(self.variance)

    def to_dict(self) -> dict[str, Any]:
        """Export the current statistics.

        Returns:
            Dict with ``name``, ``count``, ``mean`` and
            ``standard_deviation``. Undefined values are None so the
            result is JSON-safe.
        """
        return {
            "name": self.name,
            "count": self._count,
            "mean": _finite_or_none(self.mean),
            "standard_deviation": _finite_or_none(self.standard_deviation),
        }


def _finite_or_none(value: float) -> float | None:
    """Return ``value`` unless it is NaN or infinite, in which case None."""
    return value if math.isfinite(value) else None

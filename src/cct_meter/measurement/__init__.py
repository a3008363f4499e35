"""Measurement core: running statistics, session tracking and the loop.

Example:
    from cct_meter.measurement import (
        MeasurementLoop,
        ScriptedSignalSource,
        SessionSignal,
        SessionTracker,
    )

    loop = MeasurementLoop(
        SessionTracker(),
        photometer,
        ScriptedSignalSource([SessionSignal.START_SESSION]),
    )
    results = list(loop.run(target_sample_count=5))
"""

from cct_meter.measurement.errors import (
    IterationCapExceededError,
    MeasurementError,
    MissingQuantityError,
)
from cct_meter.measurement.loop import (
    Clock,
    InstrumentSource,
    LoopState,
    MeasurementLoop,
    SessionResult,
    SystemClock,
    clamp_sample_count,
)
from cct_meter.measurement.quantities import TRACKED_QUANTITIES, Quantity
from cct_meter.measurement.signals import (
    ConsoleSignalSource,
    ScriptedSignalSource,
    SessionSignal,
    SignalSource,
    parse_signal,
)
from cct_meter.measurement.statistics import StatisticsAccumulator
from cct_meter.measurement.tracker import (
    QuantityStatistics,
    SessionReport,
    SessionTracker,
)

__all__ = [
    # Statistics
    "StatisticsAccumulator",
    "Quantity",
    "TRACKED_QUANTITIES",
    "QuantityStatistics",
    "SessionReport",
    "SessionTracker",
    # Loop
    "Clock",
    "InstrumentSource",
    "LoopState",
    "MeasurementLoop",
    "SessionResult",
    "SystemClock",
    "clamp_sample_count",
    # Signals
    "ConsoleSignalSource",
    "ScriptedSignalSource",
    "SessionSignal",
    "SignalSource",
    "parse_signal",
    # Errors
    "IterationCapExceededError",
    "MeasurementError",
    "MissingQuantityError",
]

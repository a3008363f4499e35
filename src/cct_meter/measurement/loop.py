"""Session-based measurement control loop.

State machine per session:

    IDLE ──start signal──▶ SAMPLING ──target reached──▶ COMPLETED
                               │
                               └──iteration cap reached──▶ ABORTED

Between sessions the loop blocks on a SignalSource. START_SESSION starts a
session, START_WITH_OFFSET first acquires a dark offset, QUIT ends the run.
Inside a session the loop blocks on the instrument for every sample and
folds valid samples into the SessionTracker. A completed session yields a
SessionResult; an aborted session raises IterationCapExceededError and ends
the run. Instrument faults propagate unchanged and discard the session.

The requested sample count is clamped into ``[2, cap - 1]`` so a session
always terminates within the cap and always ends with a defined standard
deviation.

Example:
    loop = MeasurementLoop(SessionTracker(), photometer, ConsoleSignalSource())
    for result in loop.run(target_sample_count=10, comment_prefix="lamp A"):
        sink.publish(result)
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from cct_meter.config import MAX_ITERATIONS, MIN_SAMPLES
from cct_meter.measurement.errors import IterationCapExceededError
from cct_meter.measurement.signals import SessionSignal, SignalSource
from cct_meter.measurement.tracker import SessionReport, SessionTracker
from cct_meter.observability import LogContext, get_logger

if TYPE_CHECKING:
    from cct_meter.drivers.types import PhotometerReading

logger = get_logger(__name__)

__all__ = [
    "Clock",
    "InstrumentSource",
    "LoopState",
    "MeasurementLoop",
    "ProgressCallback",
    "SessionResult",
    "SystemClock",
    "clamp_sample_count",
]

#: Called after every instrument read with (sample count, reading).
ProgressCallback = Callable[[int, "PhotometerReading"], object]

#: Called when a session enters SAMPLING, with the 1-based session index.
SessionStartCallback = Callable[[int], object]


class LoopState(Enum):
    """Session states of the measurement loop."""

    IDLE = "idle"
    SAMPLING = "sampling"
    COMPLETED = "completed"
    ABORTED = "aborted"


@runtime_checkable
class InstrumentSource(Protocol):  # pragma: no cover
    """Instrument capability consumed by the loop (see devices.Photometer)."""

    def measure_one_sample(self) -> PhotometerReading:
        """Acquire one sample, blocking. Raises InstrumentFault on failure."""
        ...

    def measure_dark_offset(self) -> None:
        """Acquire a dark offset. Raises InstrumentFault on failure."""
        ...


@runtime_checkable
class Clock(Protocol):  # pragma: no cover
    """Wall clock used to timestamp session starts (injectable for tests)."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Default clock using the system time in UTC."""

    def now(self) -> datetime:
        """Return the current system time in UTC."""
        return datetime.now(UTC)


@dataclass(frozen=True)
class SessionResult:
    """A completed session with its metadata, handed to the report sink.

    Attributes:
        index: 1-based measurement number within the run.
        started_at: UTC time the session entered SAMPLING.
        comment: Free-text comment attached to the session.
        report: Aggregated statistics of the session.
        iterations: Instrument reads needed, including invalid samples.
    """

    index: int
    started_at: datetime
    comment: str
    report: SessionReport
    iterations: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict.

        Returns:
            Session metadata with ``started_at`` as an ISO 8601 string and
            the report under ``statistics``.
        """
        return {
            "index": self.index,
            "started_at": self.started_at.isoformat(),
            "comment": self.comment,
            "iterations": self.iterations,
            "statistics": self.report.to_dict(),
        }


def clamp_sample_count(requested: int, cap: int = MAX_ITERATIONS) -> int:
    """Clamp a requested sample count into ``[2, cap - 1]``.

    Out-of-range requests are adjusted, never rejected; the adjustment is
    only logged at debug level.

    Example:
        >>> clamp_sample_count(1)
        2
        >>> clamp_sample_count(1000, cap=100)
        99
    """
    clamped = max(MIN_SAMPLES, min(requested, cap - 1))
    if clamped != requested:
        logger.debug(
            "Sample count adjusted", requested=requested, clamped=clamped, cap=cap
        )
    return clamped


class MeasurementLoop:
    """Orchestrates measurement sessions.

    Owns no instrument or tracker state of its own beyond the current
    session bookkeeping; all collaborators are injected.

    Attributes:
        state: Current LoopState.
        session_index: Number of sessions started so far.
        iteration_index: Instrument reads in the current session.
        target_sample_count: Clamped target of the current session.
        session_started_at: Start time of the current session.
    """

    def __init__(
        self,
        tracker: SessionTracker,
        instrument: InstrumentSource,
        signals: SignalSource,
        *,
        iteration_cap: int = MAX_ITERATIONS,
        clock: Clock | None = None,
        on_progress: ProgressCallback | None = None,
        on_session_start: SessionStartCallback | None = None,
    ) -> None:
        """Wire the loop to its collaborators.

        Args:
            tracker: Statistics for the running session; restarted at the
                start of every session.
            instrument: Blocking sample source.
            signals: Blocking session control signal source.
            iteration_cap: Safety bound on instrument reads per session.
            clock: Time source for session timestamps.
            on_progress: Optional per-read notification for display.
            on_session_start: Optional notification when sampling begins.

        Raises:
            ValueError: If ``iteration_cap`` leaves no valid sample count.
        """
        if iteration_cap <= MIN_SAMPLES:
            raise ValueError(
                f"iteration_cap must be greater than {MIN_SAMPLES}, got {iteration_cap}"
            )
        self._tracker = tracker
        self._instrument = instrument
        self._signals = signals
        self._cap = iteration_cap
        self._clock = clock or SystemClock()
        self._on_progress = on_progress
        self._on_session_start = on_session_start

        self.state = LoopState.IDLE
        self.session_index = 0
        self.iteration_index = 0
        self.target_sample_count = 0
        self.session_started_at: datetime | None = None

    @property
    def iteration_cap(self) -> int:
        return self._cap

    def run(
        self, target_sample_count: int, comment_prefix: str = ""
    ) -> Iterator[SessionResult]:
        """Run sessions until QUIT, yielding one result per completed session.

        Blocks on the signal source between sessions. QUIT is only observed
        between sessions, never during one.

        Args:
            target_sample_count: Requested samples per session, clamped
                into ``[2, cap - 1]``.
            comment_prefix: Comment attached to every session result.

        Yields:
            SessionResult for every completed session.

        Raises:
            IterationCapExceededError: A session hit the iteration cap;
                the run is over.
            InstrumentFault: Propagated unchanged from the instrument.
            RuntimeError: If the loop was aborted by an earlier run.
        """
        self._ensure_not_aborted()
        target = clamp_sample_count(target_sample_count, self._cap)
        logger.info("Measurement run started", target_samples=target, cap=self._cap)

        while True:
            self.state = LoopState.IDLE
            signal = self._signals.next_signal()
            if signal is SessionSignal.QUIT:
                logger.info("Measurement run finished", sessions=self.session_index)
                return
            yield self.measure_session(
                target,
                comment_prefix,
                with_offset=signal is SessionSignal.START_WITH_OFFSET,
            )

    def measure_session(
        self,
        target_sample_count: int,
        comment: str = "",
        *,
        with_offset: bool = False,
    ) -> SessionResult:
        """Run exactly one session from IDLE to COMPLETED.

        Args:
            target_sample_count: Requested samples, clamped.
            comment: Comment for the session result.
            with_offset: Acquire a dark offset before sampling.

        Returns:
            SessionResult of the completed session.

        Raises:
            RuntimeError: If a previous session was aborted.
            IterationCapExceededError: If the cap is reached first.
            InstrumentFault: Propagated unchanged; the loop returns to IDLE
                and no result is produced.
        """
        self._ensure_not_aborted()
        target = clamp_sample_count(target_sample_count, self._cap)
        if with_offset:
            self._instrument.measure_dark_offset()

        self._begin_session(target)
        with LogContext(measurement=self.session_index):
            try:
                self._sample_until_target()
            except IterationCapExceededError:
                self.state = LoopState.ABORTED
                raise
            except Exception:
                self.state = LoopState.IDLE
                logger.error(
                    "Session discarded",
                    iterations=self.iteration_index,
                    samples=self._tracker.sample_count,
                )
                raise
            return self._complete_session(comment)

    def _ensure_not_aborted(self) -> None:
        # ABORTED is terminal for the loop instance.
        if self.state is LoopState.ABORTED:
            raise RuntimeError("Measurement run was aborted; no further sessions")

    def _begin_session(self, target: int) -> None:
        self.session_index += 1
        self.target_sample_count = target
        self.iteration_index = 0
        self._tracker.restart_all()
        self.session_started_at = self._clock.now()
        self.state = LoopState.SAMPLING
        if self._on_session_start is not None:
            self._on_session_start(self.session_index)
        logger.debug(
            "Session started", measurement=self.session_index, target_samples=target
        )

    def _sample_until_target(self) -> None:
        while self._tracker.sample_count < self.target_sample_count:
            if self.iteration_index >= self._cap:
                logger.error(
                    "Too many iterations, giving up",
                    iterations=self.iteration_index,
                    samples=self._tracker.sample_count,
                    target_samples=self.target_sample_count,
                )
                raise IterationCapExceededError(
                    self.iteration_index,
                    self._tracker.sample_count,
                    self.target_sample_count,
                )

            reading = self._instrument.measure_one_sample()
            self.iteration_index += 1
            if reading.valid:
                self._tracker.update_all(reading.values())
            else:
                logger.warning(
                    "Invalid sample discarded", iteration=self.iteration_index
                )

            if self._on_progress is not None:
                self._on_progress(self._tracker.sample_count, reading)

    def _complete_session(self, comment: str) -> SessionResult:
        assert self.session_started_at is not None
        report = self._tracker.snapshot()
        self.state = LoopState.COMPLETED
        logger.info(
            "Session completed",
            samples=report.sample_count,
            iterations=self.iteration_index,
        )
        return SessionResult(
            index=self.session_index,
            started_at=self.session_started_at,
            comment=comment,
            report=report,
            iterations=self.iteration_index,
        )

"""Report sinks: presentation of measurement runs.

The measurement core hands over structured data only (RunHeader,
SessionResult); all formatting happens here. TextReportSink writes the
classic meter layout: some lines go only to the measurement log, some only
to the console, the results to both.

Log excerpt:

    ================================================================================
    Application:  cct-meter 0.1.0
    StartTimeUTC: 19-10-2026 09:15
    InstrumentID: Gigahertz-Optik MSC15 digital twin
    Samples (n):  10
    Comment:      lamp A
    ================================================================================
    Measurement number:            1
    Triggered at:                  19-10-2026 09:15:42
    CCT value:                     4001.3 ± 7.9 K
    Illuminance:                   500.41 ± 2.37 lx
    Internal temperature:          25.0 °C
    Integration time:              0.0999 s
    --------------------------------------------------------------------------------
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

from cct_meter.config import FAT_SEPARATOR, THIN_SEPARATOR
from cct_meter.measurement.quantities import Quantity

if TYPE_CHECKING:
    from cct_meter.drivers.types import PhotometerReading
    from cct_meter.measurement.loop import SessionResult
    from cct_meter.measurement.tracker import SessionReport

__all__ = [
    "ReportSink",
    "RunHeader",
    "TextReportSink",
    "format_value",
]

_DATE_FORMAT = "%d-%m-%Y %H:%M"
_DATETIME_FORMAT = "%d-%m-%Y %H:%M:%S"
_LABEL_WIDTH = 31

#: Decimal places per quantity in reports.
DECIMALS: dict[Quantity, int] = {
    Quantity.CCT: 1,
    Quantity.ILLUMINANCE: 2,
    Quantity.INTERNAL_TEMPERATURE: 1,
    Quantity.INTEGRATION_TIME: 4,
}

NOT_AVAILABLE = "n/a"


@dataclass(frozen=True)
class RunHeader:
    """Metadata written once at the start of a run.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        started_at: UTC start time of the run.
        manufacturer: Instrument manufacturer.
        instrument_id: Instrument identification.
        samples: Clamped samples per session.
        comment: User comment.
    """

    app_name: str
    app_version: str
    started_at: datetime
    manufacturer: str
    instrument_id: str
    samples: int
    comment: str


@runtime_checkable
class ReportSink(Protocol):  # pragma: no cover
    """Consumer of run metadata and session results."""

    def start_run(self, header: RunHeader) -> None:
        """Write the run header.

        Args:
            header: Run metadata. ``samples`` should already be clamped.
        """
        ...

    def session_started(self, index: int) -> None:
        """Announce session ``index`` on the console."""
        ...

    def progress(self, sample_count: int, reading: PhotometerReading) -> None:
        """Show one instrument read on the console.

        Args:
            sample_count: Valid samples collected so far in the session.
            reading: The read just taken; invalid reads are marked.

        Example:
            Console line for the first valid sample::

                   1:   4012 K    99.88 lx
        """
        ...

    def publish(self, result: SessionResult) -> None:
        """Write the result block of a completed session.

        Args:
            result: Completed session from the measurement loop.
        """
        ...

    def finish_run(self, session_count: int, stopped_at: datetime) -> None:
        """Write the run footer and say goodbye on the console.

        Args:
            session_count: Sessions published during the run.
            stopped_at: UTC end time of the run.
        """
        ...


def format_value(value: float, decimals: int) -> str:
    """Fixed-point formatting; NaN and infinities become ``n/a``.

    Example:
        >>> format_value(4000.04, 1)
        '4000.0'
        >>> format_value(float("nan"), 2)
        'n/a'
    """
    if not math.isfinite(value):
        return NOT_AVAILABLE
    return f"{value:.{decimals}f}"


def _labelled(label: str, text: str) -> str:
    return f"{label + ':':<{_LABEL_WIDTH}}{text}"


class TextReportSink:
    """Plain text sink writing to a log stream and a display stream.

    The log stream is flushed after every line so an interrupted run keeps
    everything written so far.
    """

    def __init__(self, log: TextIO, display: TextIO | None = None) -> None:
        """Create the sink.

        Args:
            log: Measurement log, typically a file opened for appending.
            display: Console stream, ``sys.stdout`` by default.
        """
        self._log = log
        self._display = display if display is not None else sys.stdout

    # -------------------------------------------------------------------------
    # Line primitives
    # -------------------------------------------------------------------------

    def log_only(self, line: str) -> None:
        """Write one line to the measurement log only and flush it."""
        self._log.write(line + "\n")
        self._log.flush()

    def display_only(self, line: str) -> None:
        """Write one line to the console only.

        Also serves as the output function of ConsoleSignalSource, so
        prompts follow the same display stream.
        """
        self._display.write(line + "\n")
        self._display.flush()

    def log_and_display(self, line: str) -> None:
        """Write one line to the console and the measurement log."""
        self.display_only(line)
        self.log_only(line)

    # -------------------------------------------------------------------------
    # ReportSink
    # -------------------------------------------------------------------------

    def start_run(self, header: RunHeader) -> None:
        """Header framed by fat separators in the log, bare on the console."""
        self.display_only("")
        self.log_only(FAT_SEPARATOR)
        self.log_and_display(f"Application:  {header.app_name} {header.app_version}")
        self.log_and_display(f"StartTimeUTC: {header.started_at:{_DATE_FORMAT}}")
        self.log_and_display(
            f"InstrumentID: {header.manufacturer} {header.instrument_id}"
        )
        self.log_and_display(f"Samples (n):  {header.samples}")
        self.log_and_display(f"Comment:      {header.comment}")
        self.log_only(FAT_SEPARATOR)
        self.display_only("")

    def session_started(self, index: int) -> None:
        """Blank line and a ``Measurement #N`` heading on the console."""
        self.display_only("")
        self.display_only(f"Measurement #{index}")

    def progress(self, sample_count: int, reading: PhotometerReading) -> None:
        """One console line per read; invalid reads are flagged."""
        flag = "" if reading.valid else "   (invalid)"
        self.display_only(
            f"{sample_count:4d}:   {reading.cct:.0f} K    "
            f"{reading.illuminance:.2f} lx{flag}"
        )

    def publish(self, result: SessionResult) -> None:
        """Write the session block.

        Measurement number, trigger time and comment go to the log only.
        CCT and illuminance are shown as mean ± standard deviation, the
        internal temperature and integration time as mean only; these go
        to both streams. The log block ends with a thin separator.
        """
        report = result.report
        self.display_only("")
        self.log_only(_labelled("Measurement number", str(result.index)))
        self.log_only(
            _labelled("Triggered at", f"{result.started_at:{_DATETIME_FORMAT}}")
        )
        if result.comment:
            self.log_only(_labelled("Comment", result.comment))
        self.log_and_display(
            _labelled(Quantity.CCT.label, self._with_deviation(report, Quantity.CCT))
        )
        self.log_and_display(
            _labelled(
                Quantity.ILLUMINANCE.label,
                self._with_deviation(report, Quantity.ILLUMINANCE),
            )
        )
        for quantity in (Quantity.INTERNAL_TEMPERATURE, Quantity.INTEGRATION_TIME):
            mean = format_value(report[quantity].mean, DECIMALS[quantity])
            self.log_and_display(_labelled(quantity.label, f"{mean} {quantity.unit}"))
        self.log_only(THIN_SEPARATOR)

    def finish_run(self, session_count: int, stopped_at: datetime) -> None:
        """Footer with session count and stop time; ``bye.`` on the console."""
        noun = "measurement" if session_count == 1 else "measurements"
        self.display_only("bye.")
        self.log_only("")
        self.log_only(FAT_SEPARATOR)
        self.log_only(
            f"{session_count} {noun} logged - StopTimeUTC: {stopped_at:{_DATE_FORMAT}}"
        )
        self.log_only(FAT_SEPARATOR)
        self.log_only("")

    @staticmethod
    def _with_deviation(report: SessionReport, quantity: Quantity) -> str:
        stats = report[quantity]
        decimals = DECIMALS[quantity]
        mean = format_value(stats.mean, decimals)
        deviation = format_value(stats.standard_deviation, decimals)
        return f"{mean} ± {deviation} {quantity.unit}"

"""CLI entry point for cct-meter.

Operates a photometer in repeated measurement sessions and appends the
results to a log file.

Usage::

    # 10 samples per session, log to ./cctmeter.log
    cct-meter

    # 20 samples, with comment, skipping the startup dark offset
    cct-meter -n 20 --comment "lamp A, 1 m" --skipdark

    # Diagnostics as JSON on stderr
    cct-meter --log-level debug --json-logs

At the prompt: enter starts a measurement, ``d`` + enter starts one after a
fresh dark offset, ``q`` + enter quits.

Exit codes:
    0  normal quit
    1  run aborted (iteration cap exceeded)
    2  instrument fault
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TextIO

from cct_meter import __version__
from cct_meter.config import (
    DEFAULT_COMMENT,
    DEFAULT_DEVICE,
    DEFAULT_LOG_FILE,
    DEFAULT_SAMPLES,
    MeterConfig,
)
from cct_meter.devices import ConfirmCallback, Photometer
from cct_meter.drivers import (
    DigitalTwinPhotometerConfig,
    DigitalTwinPhotometerDriver,
    InstrumentFault,
    PhotometerDriver,
)
from cct_meter.measurement import (
    ConsoleSignalSource,
    IterationCapExceededError,
    MeasurementLoop,
    SessionTracker,
    SignalSource,
    clamp_sample_count,
)
from cct_meter.observability import configure_logging, get_logger
from cct_meter.report import RunHeader, TextReportSink

logger = get_logger(__name__)

APP_NAME = "cct-meter"

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_INSTRUMENT_FAULT = 2

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def build_parser() -> argparse.ArgumentParser:
    """Build the ``cct-meter`` argument parser.

    Option names follow the original meter: ``-n/--number``,
    ``--comment``, ``--device``, ``--logfile``, ``-s/--skipdark``.
    """
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=(
            "Operate a spectroradiometer in repeated measurement sessions. "
            "Measurement results are logged in a file."
        ),
    )
    parser.add_argument(
        "-n",
        "--number",
        dest="samples",
        type=int,
        default=DEFAULT_SAMPLES,
        help=f"Number of samples per measurement (default {DEFAULT_SAMPLES}).",
    )
    parser.add_argument(
        "--comment",
        default=DEFAULT_COMMENT,
        help="User supplied comment string.",
    )
    parser.add_argument(
        "--device",
        default=DEFAULT_DEVICE,
        help=f"Device name (default {DEFAULT_DEVICE}).",
    )
    parser.add_argument(
        "--logfile",
        dest="log_file",
        default=DEFAULT_LOG_FILE,
        help=f"Log file path (default {DEFAULT_LOG_FILE}).",
    )
    parser.add_argument(
        "-s",
        "--skipdark",
        dest="skip_dark",
        action="store_true",
        help="Skip dark offset measurement at startup.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the simulated instrument.",
    )
    parser.add_argument(
        "--log-level",
        choices=_LOG_LEVELS,
        default="warning",
        help="Diagnostic log level on stderr (default warning).",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit diagnostic logs as JSON lines.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def run_meter(
    config: MeterConfig,
    *,
    driver: PhotometerDriver | None = None,
    signals: SignalSource | None = None,
    confirm: ConfirmCallback | None = None,
    display: TextIO | None = None,
) -> int:
    """Run the meter until the operator quits or the run fails.

    Collaborators default to the console and the digital twin instrument;
    pass them explicitly for testing.

    Args:
        config: Run configuration.
        driver: Photometer driver. Defaults to a digital twin answering to
            ``config.device``.
        signals: Session control signal source. Defaults to console input.
        confirm: Operator confirmation for manual dark measurements.
        display: Console stream for the sink, ``sys.stdout`` by default.

    Returns:
        Exit code (EXIT_OK, EXIT_ABORTED or EXIT_INSTRUMENT_FAULT).
    """
    target = clamp_sample_count(config.samples, config.iteration_cap)
    if driver is None:
        driver = DigitalTwinPhotometerDriver(
            DigitalTwinPhotometerConfig(device=config.device, seed=config.seed)
        )
    photometer = Photometer(driver, config.device, confirm=confirm)
    session_count = 0
    exit_code = EXIT_OK

    with config.log_file.open("a", encoding="utf-8") as log_stream:
        sink = TextReportSink(log_stream, display)
        try:
            with photometer:
                sink.start_run(
                    RunHeader(
                        app_name=APP_NAME,
                        app_version=__version__,
                        started_at=datetime.now(UTC),
                        manufacturer=photometer.manufacturer,
                        instrument_id=photometer.instrument_id,
                        samples=target,
                        comment=config.comment,
                    )
                )
                if not config.skip_dark:
                    if photometer.has_shutter:
                        sink.display_only("measure dark offset ...")
                    photometer.measure_dark_offset()
                if photometer.configure_dark_mode():
                    sink.display_only("Dynamic dark mode activated.")
                else:
                    sink.display_only("Dynamic dark mode deactivated.")

                loop = MeasurementLoop(
                    SessionTracker(),
                    photometer,
                    signals or ConsoleSignalSource(output_func=sink.display_only),
                    iteration_cap=config.iteration_cap,
                    on_progress=sink.progress,
                    on_session_start=sink.session_started,
                )
                for result in loop.run(target, config.comment):
                    sink.publish(result)
                    session_count += 1
        except IterationCapExceededError as exc:
            sink.display_only("Too many iterations! Giving up ...")
            logger.error("Measurement run aborted", error=str(exc))
            exit_code = EXIT_ABORTED
        except InstrumentFault as exc:
            sink.display_only(f"Instrument fault: {exc}")
            logger.error("Measurement run ended by instrument fault", error=str(exc))
            exit_code = EXIT_INSTRUMENT_FAULT

        sink.finish_run(session_count, datetime.now(UTC))

    return exit_code


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point for cct-meter.

    Args:
        argv: Arguments without the program name; ``sys.argv[1:]`` if None.

    Returns:
        Exit code, see module docstring.

    Raises:
        SystemExit: On --help, --version or argument errors.
    """
    args = build_parser().parse_args(argv)
    configure_logging(
        level=args.log_level.upper(), json_format=args.json_logs, force=True
    )
    config = MeterConfig.from_args(args)
    logger.debug(
        "Configuration loaded",
        samples=config.samples,
        device=config.device,
        log_file=str(config.log_file),
        skip_dark=config.skip_dark,
    )
    return run_meter(config)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

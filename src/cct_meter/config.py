"""Run configuration and process-wide constants.

Defaults mirror the command line options of the meter. ``MeterConfig`` is
built once at startup (usually from an argparse namespace) and is not
modified afterwards; the target sample count is clamped later by the
measurement loop, not here.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path

# =============================================================================
# Constants
# =============================================================================

#: Hard bound on loop iterations per session. A session that has not
#: collected its target sample count after this many instrument reads is
#: aborted and the run ends.
MAX_ITERATIONS: int = 100

#: Smallest accepted sample count; two samples keep the standard deviation
#: defined at session end.
MIN_SAMPLES: int = 2

DEFAULT_SAMPLES: int = 10
DEFAULT_DEVICE: str = "MSC15_0"
DEFAULT_LOG_FILE: str = "cctmeter.log"
DEFAULT_COMMENT: str = ""

#: Width of the separator lines in the measurement log.
SEPARATOR_WIDTH: int = 80
FAT_SEPARATOR: str = "=" * SEPARATOR_WIDTH
THIN_SEPARATOR: str = "-" * SEPARATOR_WIDTH


@dataclass
class MeterConfig:
    """Configuration for one run of the meter.

    Attributes:
        samples: Requested samples per measurement session (unclamped).
        comment: User supplied comment written to the log header and
            attached to every session.
        device: Instrument device name passed to the driver.
        log_file: Path of the measurement log (appended to).
        skip_dark: Skip the dark offset measurement at startup.
        iteration_cap: Safety bound on instrument reads per session.
        seed: Random seed for the simulated instrument, None for entropy.
    """

    samples: int = DEFAULT_SAMPLES
    comment: str = DEFAULT_COMMENT
    device: str = DEFAULT_DEVICE
    log_file: Path = Path(DEFAULT_LOG_FILE)
    skip_dark: bool = False
    iteration_cap: int = MAX_ITERATIONS
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.iteration_cap <= MIN_SAMPLES:
            raise ValueError(
                f"iteration_cap must be greater than {MIN_SAMPLES}, "
                f"got {self.iteration_cap}"
            )
        self.log_file = Path(self.log_file)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> MeterConfig:
        """Build a config from parsed command line arguments.

        Args:
            args: Namespace produced by the ``cct-meter`` argument parser.
                Attributes missing from the namespace keep their defaults.

        Returns:
            MeterConfig with the values from ``args``.

        Example:
            >>> ns = argparse.Namespace(samples=5, comment="lamp A")
            >>> MeterConfig.from_args(ns).samples
            5
        """
        return cls(
            samples=getattr(args, "samples", DEFAULT_SAMPLES),
            comment=getattr(args, "comment", DEFAULT_COMMENT),
            device=getattr(args, "device", DEFAULT_DEVICE),
            log_file=Path(getattr(args, "log_file", DEFAULT_LOG_FILE)),
            skip_dark=getattr(args, "skip_dark", False),
            seed=getattr(args, "seed", None),
        )

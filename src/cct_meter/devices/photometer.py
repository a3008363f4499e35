"""Photometer device abstraction.

Wraps a PhotometerDriver with the operations the measurement loop and the
CLI need: connect/disconnect, one blocking sample, dark offset acquisition
(with operator interaction for instruments without a shutter) and dynamic
dark mode setup.

Architecture:

    MeasurementLoop ──uses──▶ Photometer ──uses──▶ PhotometerDriver
                                                    ├─ DigitalTwinPhotometerDriver
                                                    └─ (hardware drivers)

Instrument faults are counted and logged here, then re-raised unchanged.

Example:
    from cct_meter.devices import Photometer
    from cct_meter.drivers import DigitalTwinPhotometerDriver

    with Photometer(DigitalTwinPhotometerDriver(), "MSC15_0") as photometer:
        photometer.measure_dark_offset()
        reading = photometer.measure_one_sample()
"""

from __future__ import annotations

from collections.abc import Callable
from types import TracebackType
from typing import TYPE_CHECKING, TypedDict

from cct_meter.drivers.types import InstrumentFault
from cct_meter.observability import get_logger

if TYPE_CHECKING:
    from cct_meter.drivers.types import (
        PhotometerDriver,
        PhotometerInfo,
        PhotometerInstance,
        PhotometerReading,
    )

logger = get_logger(__name__)

__all__ = [
    "Photometer",
    "PhotometerStatistics",
    "ConfirmCallback",
]

#: Blocking operator confirmation, called with the instruction to show.
ConfirmCallback = Callable[[str], object]

CLOSE_SHUTTER_PROMPT = "close shutter and press enter"
OPEN_SHUTTER_PROMPT = "open shutter and press enter"


class PhotometerStatistics(TypedDict):
    """Usage statistics of a Photometer device.

    Keys:
        read_count: Successful sample acquisitions.
        dark_count: Successful dark offset acquisitions.
        fault_count: Instrument faults raised.
    """

    read_count: int
    dark_count: int
    fault_count: int


def _console_confirm(message: str) -> None:
    print(message)
    input()


class Photometer:
    """High-level photometer used as the loop's instrument source.

    Example:
        photometer = Photometer(driver, "MSC15_0")
        photometer.connect()
        photometer.configure_dark_mode()
        reading = photometer.measure_one_sample()
        photometer.disconnect()
    """

    def __init__(
        self,
        driver: PhotometerDriver,
        device: str,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        """Create a device wrapper; nothing is opened yet.

        Args:
            driver: Driver used to open the instrument.
            device: Device name passed to ``driver.open``.
            confirm: Operator confirmation used around dark measurements
                on instruments without a shutter. Defaults to printing the
                instruction and waiting for enter on the console.
        """
        self._driver = driver
        self._device = device
        self._confirm = confirm or _console_confirm
        self._instance: PhotometerInstance | None = None
        self._info: PhotometerInfo | None = None
        self._read_count = 0
        self._dark_count = 0
        self._fault_count = 0

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    @property
    def device(self) -> str:
        return self._device

    @property
    def connected(self) -> bool:
        return self._instance is not None

    def connect(self) -> None:
        """Open the instrument and cache its identification.

        Raises:
            RuntimeError: If already connected.
            InstrumentFault: If the driver cannot open the instrument.
        """
        if self._instance is not None:
            raise RuntimeError(f"Photometer {self._device} already connected")

        self._instance = self._driver.open(self._device)
        self._info = self._instance.get_info()
        logger.info(
            "Photometer connected",
            device=self._device,
            manufacturer=self._info["manufacturer"],
            instrument_id=self._info["instrument_id"],
            has_shutter=self._info["has_shutter"],
        )

    def disconnect(self) -> None:
        """Close the instrument. Safe to call when not connected."""
        if self._instance is None:
            return
        self._driver.close()
        self._instance = None
        logger.info("Photometer disconnected", device=self._device)

    def _require_instance(self) -> PhotometerInstance:
        if self._instance is None:
            raise RuntimeError(f"Photometer {self._device} not connected")
        return self._instance

    def __enter__(self) -> Photometer:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.disconnect()

    # -------------------------------------------------------------------------
    # Identification
    # -------------------------------------------------------------------------

    @property
    def manufacturer(self) -> str:
        return self._require_info()["manufacturer"]

    @property
    def instrument_id(self) -> str:
        return self._require_info()["instrument_id"]

    @property
    def has_shutter(self) -> bool:
        return self._require_instance().has_shutter

    def _require_info(self) -> PhotometerInfo:
        if self._info is None:
            raise RuntimeError(f"Photometer {self._device} not connected")
        return self._info

    # -------------------------------------------------------------------------
    # Measurement
    # -------------------------------------------------------------------------

    def measure_one_sample(self) -> PhotometerReading:
        """Acquire one sample; blocks until the instrument answers.

        Raises:
            RuntimeError: If not connected.
            InstrumentFault: Propagated unchanged from the driver.
        """
        instance = self._require_instance()
        try:
            reading = instance.measure()
        except InstrumentFault as exc:
            self._fault_count += 1
            logger.error("Instrument fault during measurement", error=str(exc))
            raise
        self._read_count += 1
        return reading

    def measure_dark_offset(self) -> None:
        """Acquire a dark offset.

        Shuttered instruments do this on their own. Without a shutter the
        operator is asked to cover the sensor before and uncover it after
        the dark measurement.

        Raises:
            RuntimeError: If not connected.
            InstrumentFault: Propagated unchanged from the driver.
        """
        instance = self._require_instance()
        shuttered = instance.has_shutter
        if shuttered:
            logger.info("Measuring dark offset", device=self._device)
        else:
            self._confirm(CLOSE_SHUTTER_PROMPT)

        try:
            instance.measure_dark()
        except InstrumentFault as exc:
            self._fault_count += 1
            logger.error("Instrument fault during dark measurement", error=str(exc))
            raise

        self._dark_count += 1
        if not shuttered:
            self._confirm(OPEN_SHUTTER_PROMPT)
        logger.info("Dark offset measured", device=self._device, shutter=shuttered)

    def configure_dark_mode(self) -> bool:
        """Enable dynamic dark mode on shuttered instruments, disable it
        otherwise.

        Returns:
            True if dynamic dark mode is now active.
        """
        instance = self._require_instance()
        enabled = instance.has_shutter
        instance.set_dynamic_dark_mode(enabled)
        logger.info(
            "Dynamic dark mode " + ("activated" if enabled else "deactivated"),
            device=self._device,
        )
        return enabled

    def get_statistics(self) -> PhotometerStatistics:
        return PhotometerStatistics(
            read_count=self._read_count,
            dark_count=self._dark_count,
            fault_count=self._fault_count,
        )

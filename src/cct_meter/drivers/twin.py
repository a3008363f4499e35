"""Digital twin photometer driver for running without hardware.

Simulates a handheld spectroradiometer of the MSC15 kind: illuminance and
CCT around configurable nominal values with relative gaussian noise, an
auto-ranged integration time, a sensor bias that only a dark measurement
removes, and optional injection of invalid readings and instrument faults.

Randomness comes from a numpy Generator so a seeded twin is reproducible.

Example:
    from cct_meter.drivers import DigitalTwinPhotometerDriver

    with DigitalTwinPhotometerDriver() as instrument:
        instrument.measure_dark()
        reading = instrument.measure()
        print(f"{reading.cct:.0f} K  {reading.illuminance:.2f} lx")
"""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType

import numpy as np

from cct_meter.drivers.types import (
    AvailablePhotometer,
    InstrumentFault,
    PhotometerInfo,
    PhotometerInstance,
    PhotometerReading,
)
from cct_meter.observability import get_logger

logger = get_logger(__name__)

__all__ = [
    "DigitalTwinPhotometerConfig",
    "DigitalTwinPhotometerDriver",
    "DigitalTwinPhotometerInstance",
]

_TWIN_TYPE = "digital_twin"


@dataclass
class DigitalTwinPhotometerConfig:
    """Configuration for digital twin photometer behavior.

    Attributes:
        device: Device name the twin answers to.
        manufacturer: Reported manufacturer string.
        instrument_id: Reported instrument id / serial.
        illuminance: Nominal illuminance in lx.
        cct: Nominal correlated color temperature in K.
        internal_temperature: Nominal instrument temperature in °C.
        illuminance_noise: Relative standard deviation of illuminance.
        cct_noise: Relative standard deviation of CCT.
        temperature_noise_std: Standard deviation of temperature in °C.
        dark_bias: Illuminance offset in lx present until a dark
            measurement has been taken.
        exposure_lx_s: Target exposure for auto-ranging; integration time
            is ``exposure_lx_s / illuminance``.
        min_integration_time: Lower integration time limit in s.
        max_integration_time: Upper integration time limit in s.
        has_shutter: Whether the instrument has an internal shutter.
        invalid_rate: Probability that a reading is flagged invalid.
        fault_after: Raise InstrumentFault on the measurement following
            this many successful ones. None disables fault injection.
        seed: Seed for the numpy random generator.
    """

    device: str = "MSC15_0"
    manufacturer: str = "Gigahertz-Optik"
    instrument_id: str = "MSC15 digital twin"
    illuminance: float = 500.0
    cct: float = 4000.0
    internal_temperature: float = 25.0
    illuminance_noise: float = 0.005
    cct_noise: float = 0.002
    temperature_noise_std: float = 0.05
    dark_bias: float = 0.8
    exposure_lx_s: float = 50.0
    min_integration_time: float = 0.001
    max_integration_time: float = 5.0
    has_shutter: bool = False
    invalid_rate: float = 0.0
    fault_after: int | None = None
    seed: int | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.invalid_rate <= 1.0:
            raise ValueError(
                f"invalid_rate must be within [0, 1], got {self.invalid_rate}"
            )
        if self.min_integration_time > self.max_integration_time:
            raise ValueError("min_integration_time exceeds max_integration_time")


class DigitalTwinPhotometerInstance:
    """Simulated open photometer.

    Note:
        This class is NOT thread-safe.
    """

    def __init__(self, config: DigitalTwinPhotometerConfig) -> None:
        self._config = config
        self._rng = np.random.default_rng(config.seed)
        self._bias = config.dark_bias
        self._dynamic_dark = False
        self._measure_count = 0
        self._is_open = True

        logger.debug(
            "Digital twin photometer initialized",
            device=config.device,
            cct=config.cct,
            illuminance=config.illuminance,
        )

    def _ensure_open(self) -> None:
        if not self._is_open:
            raise InstrumentFault("Instrument is closed", device=self._config.device)

    @property
    def has_shutter(self) -> bool:
        return self._config.has_shutter

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def dark_measured(self) -> bool:
        """True once a dark offset has removed the sensor bias."""
        return self._bias == 0.0

    @property
    def dynamic_dark_mode(self) -> bool:
        return self._dynamic_dark

    def get_info(self) -> PhotometerInfo:
        self._ensure_open()
        return PhotometerInfo(
            type=_TWIN_TYPE,
            manufacturer=self._config.manufacturer,
            instrument_id=self._config.instrument_id,
            device=self._config.device,
            has_shutter=self._config.has_shutter,
        )

    def measure(self) -> PhotometerReading:
        """Simulate one acquisition.

        Illuminance and CCT scatter around the nominal values; the dark
        bias is added unless removed by ``measure_dark`` or corrected by
        dynamic dark mode on a shuttered instrument.

        Raises:
            InstrumentFault: If closed or when the configured fault point
                is reached.
        """
        self._ensure_open()
        cfg = self._config

        if cfg.fault_after is not None and self._measure_count >= cfg.fault_after:
            raise InstrumentFault(
                f"No response after {self._measure_count} measurements",
                device=cfg.device,
            )

        illuminance = cfg.illuminance * (
            1.0 + self._rng.normal(0.0, cfg.illuminance_noise)
        )
        if not (self._dynamic_dark and cfg.has_shutter):
            illuminance += self._bias
        cct = cfg.cct * (1.0 + self._rng.normal(0.0, cfg.cct_noise))
        temperature = cfg.internal_temperature + self._rng.normal(
            0.0, cfg.temperature_noise_std
        )
        integration_time = float(
            np.clip(
                cfg.exposure_lx_s / max(illuminance, 1e-9),
                cfg.min_integration_time,
                cfg.max_integration_time,
            )
        )
        valid = bool(self._rng.random() >= cfg.invalid_rate)

        self._measure_count += 1
        return PhotometerReading(
            illuminance=float(illuminance),
            cct=float(cct),
            internal_temperature=float(temperature),
            integration_time=integration_time,
            valid=valid,
        )

    def measure_dark(self) -> None:
        self._ensure_open()
        self._bias = 0.0
        logger.debug("Dark offset measured", device=self._config.device)

    def set_dynamic_dark_mode(self, enabled: bool) -> None:
        self._ensure_open()
        self._dynamic_dark = enabled
        logger.debug(
            "Dynamic dark mode changed",
            device=self._config.device,
            enabled=enabled,
        )

    def close(self) -> None:
        self._is_open = False
        logger.debug("Digital twin photometer closed", device=self._config.device)


class DigitalTwinPhotometerDriver:
    """Driver creating simulated photometer instances.

    Only one instance can be open at a time, matching real USB
    instruments.

    Example:
        driver = DigitalTwinPhotometerDriver(
            DigitalTwinPhotometerConfig(cct=6500.0, seed=1)
        )
        instrument = driver.open("MSC15_0")
    """

    def __init__(self, config: DigitalTwinPhotometerConfig | None = None) -> None:
        self._config = config or DigitalTwinPhotometerConfig()
        self._instance: DigitalTwinPhotometerInstance | None = None

    @property
    def config(self) -> DigitalTwinPhotometerConfig:
        return self._config

    def get_available_devices(self) -> list[AvailablePhotometer]:
        return [
            AvailablePhotometer(
                id=0,
                type=_TWIN_TYPE,
                device=self._config.device,
                name=f"{self._config.manufacturer} {self._config.instrument_id}",
            )
        ]

    def open(self, device: str | None = None) -> PhotometerInstance:
        """Open the simulated instrument.

        Args:
            device: Device name; must match the configured name. None opens
                the configured device.

        Raises:
            InstrumentFault: If the name is unknown or an instance is
                already open.
        """
        name = device or self._config.device
        if name != self._config.device:
            raise InstrumentFault("Instrument not found", device=name)
        if self._instance is not None and self._instance.is_open:
            raise InstrumentFault("Instrument already open", device=name)

        self._instance = DigitalTwinPhotometerInstance(self._config)
        logger.debug("Digital twin photometer opened", device=name)
        return self._instance

    def close(self) -> None:
        if self._instance is not None:
            self._instance.close()
            self._instance = None

    def __enter__(self) -> DigitalTwinPhotometerInstance:
        instance = self.open()
        assert isinstance(instance, DigitalTwinPhotometerInstance)
        return instance

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

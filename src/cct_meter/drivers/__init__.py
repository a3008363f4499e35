"""Photometer drivers.

- PhotometerReading: one sample (illuminance, CCT, temperatures, timing)
- PhotometerDriver / PhotometerInstance: driver protocols
- InstrumentFault: acquisition failure
- DigitalTwinPhotometerDriver: simulated instrument

Example:
    from cct_meter.drivers import DigitalTwinPhotometerDriver

    driver = DigitalTwinPhotometerDriver()
    instance = driver.open("MSC15_0")
    reading = instance.measure()
"""

# Import order: types first (avoid circular imports), then implementations
from cct_meter.drivers.types import (
    AvailablePhotometer,
    InstrumentFault,
    PhotometerDriver,
    PhotometerInfo,
    PhotometerInstance,
    PhotometerReading,
)
from cct_meter.drivers.twin import (
    DigitalTwinPhotometerConfig,
    DigitalTwinPhotometerDriver,
    DigitalTwinPhotometerInstance,
)

__all__ = [
    # Data classes
    "PhotometerReading",
    # Protocols
    "PhotometerDriver",
    "PhotometerInstance",
    # Type definitions
    "AvailablePhotometer",
    "PhotometerInfo",
    # Errors
    "InstrumentFault",
    # Digital twin
    "DigitalTwinPhotometerConfig",
    "DigitalTwinPhotometerDriver",
    "DigitalTwinPhotometerInstance",
]

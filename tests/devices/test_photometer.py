"""Tests for the Photometer device layer.

Test Categories:
- Connection lifecycle
- Identification
- Sampling and fault accounting
- Dark offset (operator prompts vs shutter) and dynamic dark mode
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from cct_meter.devices import Photometer
from cct_meter.devices.photometer import CLOSE_SHUTTER_PROMPT, OPEN_SHUTTER_PROMPT
from cct_meter.drivers import (
    DigitalTwinPhotometerConfig,
    DigitalTwinPhotometerDriver,
    InstrumentFault,
)
from cct_meter.measurement import InstrumentSource
from tests.helpers import assert_implements_protocol

# =============================================================================
# Connection
# =============================================================================


class TestConnection:
    """connect/disconnect and context manager."""

    def test_connect_caches_identification(self, twin_driver) -> None:
        photometer = Photometer(twin_driver, "MSC15_0", confirm=MagicMock())
        assert not photometer.connected

        photometer.connect()

        assert photometer.connected
        assert photometer.device == "MSC15_0"
        assert photometer.manufacturer == "Gigahertz-Optik"
        assert photometer.instrument_id == "MSC15 digital twin"
        assert photometer.has_shutter is False
        photometer.disconnect()
        assert not photometer.connected

    def test_connect_twice_fails(self, photometer: Photometer) -> None:
        with pytest.raises(RuntimeError, match="already connected"):
            photometer.connect()

    def test_unknown_device_fault(self, twin_driver) -> None:
        photometer = Photometer(twin_driver, "CAS140", confirm=MagicMock())

        with pytest.raises(InstrumentFault, match="not found"):
            photometer.connect()
        assert not photometer.connected

    def test_context_manager_closes_driver(self, twin_driver) -> None:
        with Photometer(twin_driver, "MSC15_0", confirm=MagicMock()) as photometer:
            photometer.measure_one_sample()

        assert not photometer.connected
        # Driver accepts a new open after the context closed it.
        twin_driver.open("MSC15_0")
        twin_driver.close()

    def test_disconnect_when_not_connected(self, twin_driver) -> None:
        Photometer(twin_driver, "MSC15_0").disconnect()

    @pytest.mark.parametrize(
        "operation",
        ["measure_one_sample", "measure_dark_offset", "configure_dark_mode"],
    )
    def test_operations_require_connection(self, twin_driver, operation) -> None:
        photometer = Photometer(twin_driver, "MSC15_0", confirm=MagicMock())

        with pytest.raises(RuntimeError, match="not connected"):
            getattr(photometer, operation)()

    def test_identification_requires_connection(self, twin_driver) -> None:
        with pytest.raises(RuntimeError):
            _ = Photometer(twin_driver, "MSC15_0").manufacturer


# =============================================================================
# Sampling
# =============================================================================


class TestSampling:
    """Blocking sample acquisition."""

    def test_measure_one_sample(self, photometer: Photometer) -> None:
        reading = photometer.measure_one_sample()

        assert reading.cct == pytest.approx(4000.0)
        assert photometer.get_statistics()["read_count"] == 1

    def test_fault_counted_and_reraised(self, log_stream) -> None:
        """Verifies instrument faults pass through unchanged.

        Arrangement:
        1. Twin faulting on the second measurement.
        2. Diagnostics captured at DEBUG.

        Action:
        Measures twice.

        Assertion Strategy:
        - Second call raises InstrumentFault from the driver.
        - Statistics: 1 read, 1 fault.
        - Error logged with the fault message.
        """
        driver = DigitalTwinPhotometerDriver(DigitalTwinPhotometerConfig(fault_after=1))
        with Photometer(driver, "MSC15_0") as photometer:
            photometer.measure_one_sample()
            with pytest.raises(InstrumentFault, match="No response"):
                photometer.measure_one_sample()

            stats = photometer.get_statistics()

        assert stats == {"read_count": 1, "dark_count": 0, "fault_count": 1}
        assert "Instrument fault during measurement" in log_stream.getvalue()

    def test_implements_instrument_source(self, photometer: Photometer) -> None:
        assert_implements_protocol(photometer, InstrumentSource)


# =============================================================================
# Dark offset
# =============================================================================


class TestDarkOffset:
    """Dark offset acquisition and dynamic dark mode."""

    def test_operator_prompted_without_shutter(self, photometer: Photometer) -> None:
        """Verifies the operator covers and uncovers the sensor.

        Arrangement:
        1. Connected photometer on a twin without shutter.
        2. confirm callback records prompts.

        Action:
        Calls measure_dark_offset().

        Assertion Strategy:
        - Prompts, in order: close shutter, open shutter.
        - Following readings have no dark bias (exactly 500 lx).
        - dark_count is 1.
        """
        photometer.measure_dark_offset()

        assert photometer.prompts == [CLOSE_SHUTTER_PROMPT, OPEN_SHUTTER_PROMPT]
        assert photometer.measure_one_sample().illuminance == pytest.approx(500.0)
        assert photometer.get_statistics()["dark_count"] == 1

    def test_no_prompt_with_shutter(self) -> None:
        confirm = MagicMock()
        driver = DigitalTwinPhotometerDriver(
            DigitalTwinPhotometerConfig(has_shutter=True)
        )
        with Photometer(driver, "MSC15_0", confirm=confirm) as photometer:
            photometer.measure_dark_offset()

        confirm.assert_not_called()

    def test_dark_fault_skips_open_prompt(self) -> None:
        confirm = MagicMock()
        driver = MagicMock()
        instance = driver.open.return_value
        instance.has_shutter = False
        instance.get_info.return_value = {
            "manufacturer": "Test",
            "instrument_id": "X",
            "has_shutter": False,
        }
        instance.measure_dark.side_effect = InstrumentFault("dark failed")
        photometer = Photometer(driver, "X", confirm=confirm)
        photometer.connect()

        with pytest.raises(InstrumentFault):
            photometer.measure_dark_offset()

        confirm.assert_called_once_with(CLOSE_SHUTTER_PROMPT)
        assert photometer.get_statistics()["fault_count"] == 1

    def test_dynamic_dark_mode_follows_shutter(self) -> None:
        with Photometer(DigitalTwinPhotometerDriver(), "MSC15_0") as plain:
            assert plain.configure_dark_mode() is False

        driver = DigitalTwinPhotometerDriver(
            DigitalTwinPhotometerConfig(has_shutter=True)
        )
        with Photometer(driver, "MSC15_0") as shuttered:
            assert shuttered.configure_dark_mode() is True

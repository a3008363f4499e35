"""Pytest configuration and fixtures for cct-meter tests.

Every test runs with freshly reset diagnostic logging so handlers
installed by one test (or by ``cli.main``) never leak into the next.
"""

from __future__ import annotations

import io
from collections.abc import Iterator

import pytest

from cct_meter.devices import Photometer
from cct_meter.drivers import (
    DigitalTwinPhotometerConfig,
    DigitalTwinPhotometerDriver,
)
from cct_meter.observability import configure_logging, reset_logging


@pytest.fixture(autouse=True)
def _isolated_logging() -> Iterator[None]:
    """Reset the cct_meter logger hierarchy around each test."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def log_stream() -> io.StringIO:
    """Capture cct_meter diagnostics at DEBUG level in a StringIO.

    The package root logger does not propagate, so whether pytest's caplog
    sees these records depends on the pytest version; tests read this
    buffer instead.
    """
    stream = io.StringIO()
    configure_logging(level="DEBUG", stream=stream, force=True)
    return stream


@pytest.fixture
def quiet_twin_config() -> DigitalTwinPhotometerConfig:
    """Noise-free twin configuration with deterministic readings."""
    return DigitalTwinPhotometerConfig(
        illuminance_noise=0.0,
        cct_noise=0.0,
        temperature_noise_std=0.0,
        seed=7,
    )


@pytest.fixture
def twin_driver(
    quiet_twin_config: DigitalTwinPhotometerConfig,
) -> DigitalTwinPhotometerDriver:
    return DigitalTwinPhotometerDriver(quiet_twin_config)


@pytest.fixture
def photometer(twin_driver: DigitalTwinPhotometerDriver) -> Iterator[Photometer]:
    """Connected photometer on the noise-free twin, confirm calls recorded."""
    prompts: list[str] = []
    device = Photometer(twin_driver, "MSC15_0", confirm=prompts.append)
    device.connect()
    device.prompts = prompts  # type: ignore[attr-defined]
    yield device
    device.disconnect()

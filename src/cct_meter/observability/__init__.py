"""Observability module for cct-meter.

Provides structured diagnostic logging for the measurement loop,
instrument drivers and CLI.

Example:
    from cct_meter.observability import get_logger, LogContext

    logger = get_logger(__name__)
    logger.info("Instrument connected")

    with LogContext(measurement=1):
        logger.info("Session completed", samples=10, iterations=10)
"""

from cct_meter.observability.logging import (
    JSONFormatter,
    LogContext,
    StructuredFormatter,
    StructuredLogger,
    configure_logging,
    get_logger,
    reset_logging,
)

__all__ = [
    "JSONFormatter",
    "LogContext",
    "StructuredFormatter",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

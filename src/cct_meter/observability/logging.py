"""Structured logging for cct-meter.

Builds on Python's standard logging module with:
- Structured data via keyword arguments (``logger.info("msg", key=value)``)
- Human-readable ``| key=value`` or single-line JSON output
- Context management to tag every record of a measurement session

Diagnostic logging is separate from the measurement log file: the report
sink owns the measurement log, these loggers write to stderr.

Example:
    logger = get_logger(__name__)
    logger.info("Instrument connected", device="MSC15_0")

    with LogContext(measurement=3):
        logger.debug("Sample acquired", cct=4012.3)

    configure_logging(level="DEBUG", json_format=True, force=True)
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import threading
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, cast

#: Name of the package root logger; all module loggers hang below it.
ROOT_LOGGER_NAME = "cct_meter"

_log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "log_context", default={}
)


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger(logging.Logger):
    """Logger that turns keyword arguments into structured data.

    The standard ``debug``/``info``/... methods forward their keyword
    arguments to ``_log``; this class collects everything that is not a
    logging keyword into ``record.structured_data``, merged on top of the
    active ``LogContext``.

    Usage:
        logger = StructuredLogger("cct_meter.example")
        logger.info("Session completed", measurement=2, samples=10)
    """

    def _log(  # type: ignore[override]
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: Mapping[str, object] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **kwargs: Any,
    ) -> None:
        """Log a message, attaching context and kwargs as structured data.

        Merge order is LogContext values first, explicit kwargs second, so
        a call site can override an ambient value.

        Args:
            level: Numeric log level.
            msg: Log message, may contain % placeholders.
            args: Arguments for % formatting.
            exc_info: Exception info as accepted by ``logging.Logger``.
            extra: Additional LogRecord attributes. ``structured_data`` is
                always overwritten.
            stack_info: Include stack trace when True.
            stacklevel: Frames to skip for caller detection. One extra frame
                is skipped for this override.
            **kwargs: Structured key-value pairs, e.g. ``cct=4000.0``.
        """
        structured_data = {**_log_context.get(), **kwargs}
        merged_extra = dict(extra) if extra else {}
        merged_extra["structured_data"] = structured_data

        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=merged_extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


# =============================================================================
# Formatters
# =============================================================================


class StructuredFormatter(logging.Formatter):
    """Human-readable formatter with structured data.

    Format: timestamp - name - level - message | key=value key=value
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        include_structured: bool = True,
    ) -> None:
        """Initialize the formatter.

        Args:
            fmt: Format string; defaults to
                ``%(asctime)s - %(name)s - %(levelname)s - %(message)s``.
            datefmt: Date format for ``%(asctime)s``.
            include_structured: Append `` | key=value`` pairs when True.
        """
        if fmt is None:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt, datefmt)
        self.include_structured = include_structured

    def format(self, record: logging.LogRecord) -> str:
        """Format the record and append its structured data, if any.

        Args:
            record: Record to format. A missing or empty
                ``structured_data`` attribute yields the base format only.

        Returns:
            Formatted line, e.g.
            ``... - INFO - Session completed | measurement=1 samples=10``.
        """
        base = super().format(record)

        if not self.include_structured:
            return base

        structured = getattr(record, "structured_data", {})
        if not structured:
            return base

        pairs = " ".join(f"{k}={_format_value(v)}" for k, v in structured.items())
        return f"{base} | {pairs}"


class JSONFormatter(logging.Formatter):
    """JSON formatter, one object per line.

    Keys: timestamp (ISO, UTC), level, logger, message, optional exception,
    plus every structured data key at top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the record as a single-line JSON object.

        Non-serializable values fall back to ``str()``.
        """
        log_dict: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        log_dict.update(getattr(record, "structured_data", {}))

        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_dict, default=str)


def _format_value(value: Any) -> str:
    """Format a structured value for ``key=value`` output.

    Rules:
    - None becomes ``null``
    - strings containing spaces are double-quoted
    - dicts and lists are JSON-encoded
    - everything else uses ``str()``

    Example:
        >>> _format_value(None)
        'null'
        >>> _format_value("MSC15 0")
        '"MSC15 0"'
        >>> _format_value(4000.5)
        '4000.5'
    """
    if value is None:
        return "null"
    if isinstance(value, str):
        if " " in value:
            return f'"{value}"'
        return value
    if isinstance(value, dict | list):
        return json.dumps(value, default=str)
    return str(value)


# =============================================================================
# Context Management
# =============================================================================


class LogContext:
    """Context manager adding key-value pairs to every record in scope.

    Nested contexts merge, inner values win. Uses contextvars so the
    context never leaks across threads.

    Usage:
        with LogContext(measurement=1):
            logger.info("Sampling")  # includes measurement=1
            with LogContext(iteration=4):
                logger.debug("Sample")  # includes both
    """

    def __init__(self, **kwargs: Any) -> None:
        self._kwargs = kwargs
        self._token: contextvars.Token[dict[str, Any]] | None = None

    def __enter__(self) -> LogContext:
        current = _log_context.get()
        self._token = _log_context.set({**current, **self._kwargs})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


# =============================================================================
# Configuration
# =============================================================================

_configured = False
_handler: logging.Handler | None = None
_config_lock = threading.Lock()


def configure_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
    stream: Any = None,
    include_structured: bool = True,
    force: bool = False,
) -> None:
    """Configure the cct-meter diagnostic logging system.

    Installs one stream handler on the ``cct_meter`` root logger and stops
    propagation to the Python root logger. Idempotent unless ``force`` is
    set, in which case the previously installed handler is replaced.
    Handlers added to the ``cct_meter`` logger by others (for example a
    test runner's capture handler) are left alone.

    Args:
        level: Minimum level, as int or name (``"DEBUG"``).
        json_format: Use JSONFormatter instead of StructuredFormatter.
        stream: Output stream, default ``sys.stderr``.
        include_structured: Append structured data in text mode.
        force: Reconfigure even if already configured.

    Example:
        >>> import io
        >>> buffer = io.StringIO()
        >>> configure_logging(level="DEBUG", stream=buffer, force=True)
    """
    with _config_lock:
        if force:
            _reset_logging_impl()
        _configure_logging_impl(level, json_format, stream, include_structured)


def _configure_logging_impl(
    level: int | str = logging.INFO,
    json_format: bool = False,
    stream: Any = None,
    include_structured: bool = True,
) -> None:
    """Internal implementation of configure_logging (assumes lock is held)."""
    global _configured, _handler

    if _configured:
        return

    logging.setLoggerClass(StructuredLogger)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = StructuredFormatter(include_structured=include_structured)
    handler.setFormatter(formatter)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.addHandler(handler)
    root.propagate = False

    _handler = handler
    _configured = True


def _reset_logging_impl() -> None:
    """Internal implementation of reset_logging (assumes lock is held)."""
    global _configured, _handler

    if _handler is not None:
        logging.getLogger(ROOT_LOGGER_NAME).removeHandler(_handler)
        _handler.close()
        _handler = None

    _configured = False


def reset_logging() -> None:
    """Remove the cct-meter handler and mark logging unconfigured (for tests)."""
    with _config_lock:
        _reset_logging_impl()


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger, configuring defaults on first use.

    Loggers created before ``configure_logging`` still become
    StructuredLogger instances because the logger class is installed here
    on first call.

    Args:
        name: Logger name, normally ``__name__``.

    Returns:
        StructuredLogger accepting ``logger.info("msg", key=value)``.
    """
    if not _configured:
        with _config_lock:
            if not _configured:  # pragma: no branch
                _configure_logging_impl()

    return cast(StructuredLogger, logging.getLogger(name))

"""Telemetry module - structured logging and timing."""

from vidpipe.commons.telemetry.decorators import LogContext, timed
from vidpipe.commons.telemetry.logger import (
    JsonFormatter,
    TextFormatter,
    configure_logging,
    get_logger,
    set_correlation_id,
)

__all__ = [
    # Decorators
    "timed",
    "LogContext",
    # Logger
    "get_logger",
    "configure_logging",
    "JsonFormatter",
    "TextFormatter",
    # Correlation ID
    "set_correlation_id",
]

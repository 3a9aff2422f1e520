"""Observability infrastructure for structured logging."""

from respimg.infrastructure.observability.error_formatting import format_oserror_message
from respimg.infrastructure.observability.logger_template import (
    log_operation,
    log_slow_operation,
)
from respimg.infrastructure.observability.logging import configure_logging

__all__ = [
    "configure_logging",
    "format_oserror_message",
    "log_operation",
    "log_slow_operation",
]

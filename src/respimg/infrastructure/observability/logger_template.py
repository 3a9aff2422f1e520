"""Operation timing helpers for consistent log lines.

USAGE:
    logger = logging.getLogger(__name__)

    async with log_operation(logger, "placeholder_fetch", url=url):
        body = await client.fetch(url)
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Hey future me, start/end logs share the **context fields so a grep for the URL shows
# both lines. On exception the failure is logged and the exception RE-RAISED - this
# helper never swallows anything. Per-item operations (one per image!) should pass
# log_level=logging.DEBUG or a big build floods the log.
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    log_level: int = logging.INFO,
    **context: Any,
) -> AsyncIterator[None]:
    """Log {operation}.started / .completed / .failed with duration_ms.

    Args:
        logger: Module logger
        operation: Operation name, e.g. "placeholder_fetch"
        log_level: Level for started/completed (failures are always ERROR)
        **context: Extra fields for every line
    """
    start = time.perf_counter()
    logger.log(log_level, f"{operation}.started", extra=context)

    try:
        yield
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.error(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise

    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.log(
        log_level,
        f"{operation}.completed",
        extra={**context, "duration_ms": duration_ms},
    )
    log_slow_operation(logger, operation, duration_ms, **context)


def log_slow_operation(
    logger: logging.Logger,
    operation: str,
    duration_ms: int,
    threshold_ms: int = 5000,
    **context: Any,
) -> None:
    """Log a warning when an operation took longer than threshold_ms.

    Example:
        >>> log_slow_operation(logger, "placeholder_fetch", 7300, url=url)
        # WARNING: operation.slow {"operation": "placeholder_fetch", "duration_ms": 7300, ...}
    """
    if duration_ms > threshold_ms:
        logger.warning(
            "operation.slow",
            extra={
                **context,
                "operation": operation,
                "duration_ms": duration_ms,
                "threshold_ms": threshold_ms,
            },
        )

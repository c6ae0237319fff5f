"""Duration logging for awaited backend operations."""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SLOW_OPERATION_MS = 1000.0


async def measure_async_operation(
    name: str,
    operation: Callable[[], Awaitable[T]],
    *,
    slow_threshold_ms: float = SLOW_OPERATION_MS,
) -> T:
    """Await ``operation()`` and log how long it took.

    Logs at DEBUG on success, WARNING when slower than ``slow_threshold_ms``
    and ERROR when the operation raises. The exception is re-raised unchanged.
    """
    start = time.perf_counter()
    try:
        result = await operation()
    except Exception:
        logger.error("%s failed after %.2fms", name, _elapsed_ms(start))
        raise

    duration = _elapsed_ms(start)
    logger.debug("%s completed in %.2fms", name, duration)
    if duration > slow_threshold_ms:
        logger.warning("Slow operation detected: %s took %.2fms", name, duration)
    return result


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0

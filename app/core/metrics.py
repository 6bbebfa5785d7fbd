"""
Recorders for balance computation timings.

A recorder is handed to the balance service by whoever calls it (the route
dependency in production, a fake in tests). Nothing here is process-global.
"""
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class BalanceRecorder(Protocol):
    def record(self, operation: str, duration_ms: float, **context) -> None:
        ...


class NullRecorder:
    def record(self, operation: str, duration_ms: float, **context) -> None:
        return None


class LoggingRecorder:
    def __init__(self, slow_ms: float = 500.0):
        self.slow_ms = slow_ms

    def record(self, operation: str, duration_ms: float, **context) -> None:
        if duration_ms >= self.slow_ms:
            logger.warning("Slow %s: %.1fms %s", operation, duration_ms, context)
        else:
            logger.debug("%s took %.1fms %s", operation, duration_ms, context)

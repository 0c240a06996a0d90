"""Performance Logging.

Timing for sweep ticks and other periodic work that must stay short.
"""

import logging
import time
from typing import Optional

from signal_monitor.logging_config.config import DEFAULT_LOGGING_CONFIG

logger = logging.getLogger(__name__)


class PerformanceTimer:
    """Context manager for timing code blocks.

    Logs at DEBUG normally, at WARNING when the block exceeds the
    threshold, and at ERROR when it raises.

    Example:
        with PerformanceTimer("expiry_sweep") as timer:
            removed = registry.expire_older_than(timeout_ms, now_ms)
        print(f"Sweep took {timer.duration_ms:.1f}ms")
    """

    def __init__(self, operation_name: str, threshold_ms: Optional[float] = None):
        self.operation_name = operation_name
        self.threshold_ms = threshold_ms if threshold_ms is not None else DEFAULT_LOGGING_CONFIG.slow_threshold_ms
        self.start_time: float = 0
        self.duration_ms: float = 0

    def __enter__(self) -> "PerformanceTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        extra = {"duration_ms": round(self.duration_ms, 2)}

        if exc_type is not None:
            logger.error(
                f"{self.operation_name} failed after {self.duration_ms:.1f}ms: {exc_type.__name__}",
                extra=extra,
            )
        elif self.duration_ms >= self.threshold_ms:
            logger.warning(
                f"Slow operation: {self.operation_name} took {self.duration_ms:.1f}ms",
                extra=extra,
            )
        else:
            logger.debug(
                f"{self.operation_name} completed in {self.duration_ms:.1f}ms",
                extra=extra,
            )

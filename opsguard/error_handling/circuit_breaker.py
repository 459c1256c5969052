"""
Circuit breaker pattern implementation for fault tolerance.
Blocks an operation after repeated consecutive failures and closes again
on its own once the most recent failure is old enough.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from opsguard.config import (
    CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    CIRCUIT_BREAKER_RESET_TIMEOUT,
)

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """Two-state (closed/open) circuit breaker for a single operation name."""

    def __init__(
        self,
        failure_threshold: int = CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        reset_timeout: float = CIRCUIT_BREAKER_RESET_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self.failures = 0
        self.last_failure: Optional[float] = None
        self.is_open = False

    def record_success(self):
        """Record successful operation."""
        self.failures = 0
        self.is_open = False

    def record_failure(self):
        """Record failed operation and potentially open circuit."""
        self.failures += 1
        self.last_failure = self._clock()

        if self.failures >= self.failure_threshold and not self.is_open:
            self.is_open = True
            logger.warning(f"Circuit breaker opened after {self.failures} failures")

    def is_circuit_open(self) -> bool:
        """Check whether calls must be refused, closing the circuit if it has cooled down."""
        if not self.is_open:
            return False

        if self.last_failure is not None:
            elapsed = self._clock() - self.last_failure
            if elapsed > self.reset_timeout:
                self.is_open = False
                self.failures = 0
                logger.info(
                    f"Circuit breaker closed after {elapsed:.1f}s without failures"
                )
                return False

        return True

    def snapshot(self) -> Dict[str, Any]:
        return {
            "failures": self.failures,
            "last_failure": self.last_failure,
            "is_open": self.is_open,
        }

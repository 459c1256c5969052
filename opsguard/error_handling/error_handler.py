"""
Error handler with retry, circuit breaking and audit persistence.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from opsguard.config import (
    APPLICATION_ERROR_EVENT,
    AUDIT_TABLE,
    CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    CIRCUIT_BREAKER_RESET_TIMEOUT,
    DEFAULT_RETRYABLE_ERRORS,
)
from opsguard.context.activity_log import StructuredLogger
from opsguard.models.protocols import DataStore
from opsguard.models.retry_models import RetryConfig
from .circuit_breaker import CircuitBreaker
from .error_context import CircuitOpenError, EnhancedError, ErrorContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorHandler:
    """
    Process-wide error handling service.

    Owns the per-operation circuit breakers, drives retries with exponential
    backoff and persists terminal failures to the audit table. Construct one
    per process and pass it to whoever needs it.
    """

    def __init__(
        self,
        data_store: Optional[DataStore] = None,
        activity: Optional[StructuredLogger] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        failure_threshold: int = CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        reset_timeout: float = CIRCUIT_BREAKER_RESET_TIMEOUT,
        audit_table: str = AUDIT_TABLE,
    ):
        self.data_store = data_store
        self.activity = activity or StructuredLogger()
        self.audit_table = audit_table
        self.error_history: List[EnhancedError] = []
        self.circuit_breakers: Dict[str, CircuitBreaker] = {}
        self._clock = clock
        self._sleep = sleep
        self._failure_threshold = failure_threshold
        self._reset_timeout = reset_timeout

    def _breaker(self, operation: str) -> CircuitBreaker:
        breaker = self.circuit_breakers.get(operation)
        if breaker is None:
            breaker = CircuitBreaker(
                failure_threshold=self._failure_threshold,
                reset_timeout=self._reset_timeout,
                clock=self._clock,
            )
            self.circuit_breakers[operation] = breaker
        return breaker

    def is_circuit_open(self, operation: str) -> bool:
        breaker = self.circuit_breakers.get(operation)
        if breaker is None:
            return False
        return breaker.is_circuit_open()

    def get_circuit_state(self, operation: str) -> Dict[str, Any]:
        """Read-only view of the breaker for an operation name."""
        breaker = self.circuit_breakers.get(operation)
        if breaker is None:
            return {"failures": 0, "last_failure": None, "is_open": False}
        return breaker.snapshot()

    async def handle_error(
        self, error: BaseException, context: ErrorContext
    ) -> EnhancedError:
        """
        Report a failure: structured log, circuit-breaker failure, history and
        audit persistence.

        Returns:
            The EnhancedError that was reported.
        """
        enhanced = (
            error
            if isinstance(error, EnhancedError)
            else EnhancedError(str(error), context, error)
        )

        self._log_structured_error(enhanced)
        self._breaker(enhanced.context.operation).record_failure()
        self.error_history.append(enhanced)
        await self._store_error(enhanced)

        return enhanced

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        config: RetryConfig,
        context: ErrorContext,
    ) -> T:
        """
        Run ``operation`` with exponential backoff.

        Raises:
            CircuitOpenError: the circuit for ``context.operation`` is open;
                no attempt is made.
            EnhancedError: attempts are exhausted or the failure is not
                retryable.
        """
        breaker = self._breaker(context.operation)
        if breaker.is_circuit_open():
            raise CircuitOpenError(context, breaker.failures)

        attempt = 0
        while True:
            attempt += 1
            try:
                result = await operation()
            except Exception as e:
                retryable = self.is_retryable_error(e, config.retryable_errors)

                if attempt >= config.max_attempts or not retryable:
                    final_context = context.with_metadata(
                        attempts=attempt, finalAttempt=True
                    )
                    await self.handle_error(
                        EnhancedError(str(e), final_context, e), final_context
                    )
                    raise EnhancedError(
                        f"Operation failed after {attempt} attempts: {e}",
                        final_context,
                        e,
                        is_retryable=False,
                    ) from e

                delay_ms = config.delay_for_attempt(attempt)
                self.activity.warning(
                    "retry_attempt",
                    f"Attempt {attempt} failed, retrying in {delay_ms:g}ms",
                    {
                        "correlationId": context.correlation_id,
                        "operation": context.operation,
                        "error": str(e),
                        "nextDelay": delay_ms,
                    },
                )
                await self._sleep(delay_ms / 1000)
                continue

            breaker.record_success()
            if attempt > 1:
                self.activity.info(
                    "retry_success",
                    f"Operation succeeded after {attempt} attempts",
                    {
                        "correlationId": context.correlation_id,
                        "operation": context.operation,
                        "attempts": attempt,
                    },
                )
            return result

    def is_retryable_error(
        self, error: BaseException, retryable_errors: Optional[Iterable[str]] = None
    ) -> bool:
        """Whether the error message contains any retryable phrase."""
        patterns = (
            DEFAULT_RETRYABLE_ERRORS if retryable_errors is None else retryable_errors
        )
        message = str(error).lower()
        return any(pattern.lower() in message for pattern in patterns)

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of error history."""
        if not self.error_history:
            return {"total_errors": 0}

        summary: Dict[str, Any] = {
            "total_errors": len(self.error_history),
            "by_operation": {},
            "by_component": {},
            "open_circuits": [
                name
                for name, breaker in self.circuit_breakers.items()
                if breaker.is_open
            ],
            "recent_errors": [],
        }

        for error in self.error_history:
            operation = error.context.operation
            summary["by_operation"][operation] = (
                summary["by_operation"].get(operation, 0) + 1
            )
            component = error.context.component
            summary["by_component"][component] = (
                summary["by_component"].get(component, 0) + 1
            )

        summary["recent_errors"] = [
            {
                "correlation_id": err.correlation_id,
                "operation": err.context.operation,
                "message": err.message,
                "timestamp": err.context.timestamp,
            }
            for err in self.error_history[-5:]
        ]

        return summary

    def _log_structured_error(self, error: EnhancedError) -> None:
        self.activity.error(
            "structured_error",
            error.message,
            {
                "correlationId": error.correlation_id,
                "operation": error.context.operation,
                "component": error.context.component,
                "metadata": error.context.metadata,
                "userId": error.context.user_id,
                "originalError": str(error.original_error)
                if error.original_error
                else None,
                "isRetryable": error.is_retryable,
            },
        )

    async def _store_error(self, error: EnhancedError) -> None:
        if self.data_store is None:
            return

        try:
            await self.data_store.insert(
                self.audit_table,
                {
                    "event_type": APPLICATION_ERROR_EVENT,
                    "user_id": error.context.user_id,
                    "details": error.to_audit_details(),
                },
            )
        except Exception as db_error:
            logger.error(f"Failed to store error in database: {db_error}")


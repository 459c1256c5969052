"""
Error context and enhanced error definitions for correlated failure reporting.
"""

import traceback
import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from opsguard.exceptions import ErrorType, OpsGuardError


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ErrorContext:
    """Context information carried by one call attempt."""

    correlation_id: str
    operation: str
    component: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None
    timestamp: str = field(default_factory=_utc_now_iso)

    def __post_init__(self):
        # Detach from the caller's dict
        object.__setattr__(self, "metadata", dict(self.metadata))

    @classmethod
    def create(
        cls,
        operation: str,
        component: str,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> "ErrorContext":
        """Build a context with a fresh correlation id and timestamp."""
        return cls(
            correlation_id=correlation_id or str(uuid.uuid4()),
            operation=operation,
            component=component,
            metadata=dict(metadata or {}),
            user_id=user_id,
        )

    def with_metadata(self, **updates: Any) -> "ErrorContext":
        """Return a copy with merged metadata; this context is left untouched."""
        return replace(self, metadata={**self.metadata, **updates})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EnhancedError(OpsGuardError):
    """
    Error carrying a correlation id, the calling context, an optional
    original cause and a retryability flag.

    Instances are never mutated after construction.
    """

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        original_error: Optional[BaseException] = None,
        is_retryable: bool = False,
        error_type: ErrorType = ErrorType.TERMINAL,
    ):
        if context is None:
            context = ErrorContext.create("unknown", "unknown")
        self.context = replace(
            context,
            operation=context.operation or "unknown",
            component=context.component or "unknown",
            correlation_id=context.correlation_id or str(uuid.uuid4()),
            metadata=dict(context.metadata),
            timestamp=_utc_now_iso(),
        )
        self.correlation_id = self.context.correlation_id
        self.original_error = original_error
        self.is_retryable = is_retryable
        super().__init__(
            message,
            error_type,
            {
                "correlation_id": self.correlation_id,
                "operation": self.context.operation,
                "component": self.context.component,
            },
        )

    @property
    def message(self) -> str:
        return str(self)

    def stack_text(self) -> str:
        """Formatted traceback of this error, or of its cause when not raised yet."""
        source: BaseException = self
        if self.__traceback__ is None and self.original_error is not None:
            source = self.original_error
        return "".join(
            traceback.format_exception(type(source), source, source.__traceback__)
        )

    def to_audit_details(self) -> Dict[str, Any]:
        """Serialized form persisted with the audit record."""
        return {
            "correlation_id": self.correlation_id,
            "error_message": self.message,
            "error_context": self.context.to_dict(),
            "stack_trace": self.stack_text(),
            "original_error": str(self.original_error) if self.original_error else "",
            "is_retryable": self.is_retryable,
        }


class CircuitOpenError(EnhancedError):
    """Raised when the circuit breaker for an operation is open."""

    def __init__(self, context: ErrorContext, failure_count: int):
        self.failure_count = failure_count
        super().__init__(
            f"Circuit breaker is open for operation: {context.operation}",
            context,
            original_error=None,
            is_retryable=False,
            error_type=ErrorType.CIRCUIT_OPEN,
        )

"""
Error handling module for correlated, retryable failure management.
Provides the circuit breaker, the enhanced error type and the retry executor.
"""

from .circuit_breaker import CircuitBreaker
from .error_context import CircuitOpenError, EnhancedError, ErrorContext
from .error_handler import ErrorHandler

__all__ = [
    "CircuitBreaker",
    "CircuitOpenError",
    "EnhancedError",
    "ErrorContext",
    "ErrorHandler",
]

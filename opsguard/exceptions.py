"""
Custom exception classes for the opsguard resilience layer.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorType(str, Enum):
    """Types of errors that can occur."""

    TRANSIENT = "transient"  # Matched a retryable message pattern
    TERMINAL = "terminal"  # Exhausted, non-retryable, or wrapped for the caller
    CIRCUIT_OPEN = "circuit_open"
    COMPENSATION = "compensation"  # A rollback step failed during unwind
    DATA_STORE = "data_store"
    REMOTE_FUNCTION = "remote_function"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"


class OpsGuardError(Exception):
    """Base exception for all opsguard errors."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.TERMINAL,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.error_type = error_type
        self.details = details or {}


class ConfigurationError(OpsGuardError):
    """Raised when configuration is invalid."""

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        super().__init__(
            f"Invalid configuration for '{setting}': {reason}",
            ErrorType.CONFIGURATION,
            {"setting": setting},
        )


class DataStoreError(OpsGuardError):
    """Raised when a data store operation fails.

    The message keeps the backend's own wording so the retry classifier can
    match transient phrases such as "timeout" or "rate limit".
    """

    def __init__(self, table: str, operation: str, reason: str):
        self.table = table
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"{operation} on '{table}' failed: {reason}",
            ErrorType.DATA_STORE,
            {"table": table, "operation": operation},
        )


class RemoteFunctionError(OpsGuardError):
    """Raised when a remote function invocation fails."""

    def __init__(self, function_name: str, reason: str):
        self.function_name = function_name
        self.reason = reason
        super().__init__(
            f"Remote function '{function_name}' failed: {reason}",
            ErrorType.REMOTE_FUNCTION,
            {"function_name": function_name},
        )

"""
Configuration constants and settings for the opsguard resilience layer.
"""

import os

from dotenv import load_dotenv

from opsguard.exceptions import ConfigurationError

load_dotenv()

# Circuit breaker (fixed by contract, not tunable per deployment)
CIRCUIT_BREAKER_FAILURE_THRESHOLD = 5
CIRCUIT_BREAKER_RESET_TIMEOUT = 5 * 60.0  # seconds

# Activity log buffer
LOG_BUFFER_CAPACITY = 1000

# Retry defaults
DEFAULT_MAX_ATTEMPTS = int(os.getenv("OPSGUARD_MAX_ATTEMPTS", "3"))
DEFAULT_BASE_DELAY_MS = int(os.getenv("OPSGUARD_BASE_DELAY_MS", "1000"))
DEFAULT_MAX_DELAY_MS = int(os.getenv("OPSGUARD_MAX_DELAY_MS", "10000"))
DEFAULT_BACKOFF_MULTIPLIER = float(os.getenv("OPSGUARD_BACKOFF_MULTIPLIER", "2.0"))

DEFAULT_RETRYABLE_ERRORS = (
    "fetch failed",
    "network error",
    "timeout",
    "connection refused",
    "rate limit",
    "service unavailable",
    "internal server error",
)

# Error persistence
AUDIT_TABLE = os.getenv("OPSGUARD_AUDIT_TABLE", "audit_logs")
APPLICATION_ERROR_EVENT = "application_error"

# Backend
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Recovery guidance
RECOVERY_SUCCESS_STEPS = [
    "Monitor system stability",
    "Review logs for root cause",
]
RECOVERY_ESCALATION_STEPS = [
    "Review system logs",
    "Check network connectivity",
    "Contact system administrator",
    "Consider manual intervention",
]


def validate_config() -> None:
    """Validate configuration settings."""
    if DEFAULT_MAX_ATTEMPTS < 1:
        raise ConfigurationError(
            "OPSGUARD_MAX_ATTEMPTS", "must be a positive integer"
        )

    if DEFAULT_BASE_DELAY_MS < 0:
        raise ConfigurationError("OPSGUARD_BASE_DELAY_MS", "must not be negative")

    if DEFAULT_MAX_DELAY_MS < DEFAULT_BASE_DELAY_MS:
        raise ConfigurationError(
            "OPSGUARD_MAX_DELAY_MS", "must be at least OPSGUARD_BASE_DELAY_MS"
        )

    if DEFAULT_BACKOFF_MULTIPLIER < 1:
        raise ConfigurationError(
            "OPSGUARD_BACKOFF_MULTIPLIER", "must be greater than or equal to 1"
        )

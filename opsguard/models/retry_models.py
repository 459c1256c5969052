"""
Retry configuration model.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from opsguard.config import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY_MS,
)


class RetryConfig(BaseModel):
    """Per-call retry policy supplied by the caller. Never persisted."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(..., ge=1, description="Total attempts, 1 means no retries")
    base_delay_ms: float = Field(..., ge=0, description="Delay before the first retry")
    max_delay_ms: float = Field(..., ge=0, description="Upper bound for any delay")
    backoff_multiplier: float = Field(
        2.0, ge=1.0, description="Multiplicative factor applied per attempt"
    )
    retryable_errors: Optional[List[str]] = Field(
        None,
        description="Case-insensitive substrings marking an error as retryable; "
        "None selects the built-in list",
    )

    @model_validator(mode="after")
    def validate_delay_bounds(self) -> "RetryConfig":
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be greater than or equal to base_delay_ms")
        return self

    @classmethod
    def default(cls, **overrides) -> "RetryConfig":
        """Policy built from the configured defaults."""
        values = {
            "max_attempts": DEFAULT_MAX_ATTEMPTS,
            "base_delay_ms": DEFAULT_BASE_DELAY_MS,
            "max_delay_ms": DEFAULT_MAX_DELAY_MS,
            "backoff_multiplier": DEFAULT_BACKOFF_MULTIPLIER,
        }
        values.update(overrides)
        return cls(**values)

    def delay_for_attempt(self, attempt: int) -> float:
        """Delay in milliseconds after the given (1-based) failed attempt."""
        return min(
            self.base_delay_ms * self.backoff_multiplier ** (attempt - 1),
            self.max_delay_ms,
        )

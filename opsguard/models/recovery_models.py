"""
Recovery strategy and result models.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional


@dataclass
class RecoveryStrategy:
    """A named recovery action with an optional compensating rollback."""

    name: str
    description: str
    execute: Callable[[], Awaitable[bool]]
    rollback: Optional[Callable[[], Awaitable[None]]] = None


@dataclass
class RecoveryResult:
    """Outcome of a recovery run."""

    success: bool
    strategy: str
    message: str
    data: Optional[Any] = None
    next_steps: List[str] = field(default_factory=list)

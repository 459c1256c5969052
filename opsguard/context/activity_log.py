"""
Per-user activity log.

Every entry goes to the standard logging tree immediately and is also kept
in a bounded, newest-first buffer for the user who is signed in at call
time. Logging never raises into the caller.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from opsguard.config import LOG_BUFFER_CAPACITY
from opsguard.models.log_models import LogEntry, LogLevel
from opsguard.models.protocols import LogStorage

logger = logging.getLogger(__name__)

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_STDLIB_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.SUCCESS: SUCCESS,
}


class InMemoryLogStorage:
    """Process-lifetime log storage partitioned by user id."""

    def __init__(self):
        self._entries: Dict[str, List[LogEntry]] = defaultdict(list)

    def load(self, user_id: str) -> List[LogEntry]:
        return list(self._entries.get(user_id, []))

    def save(self, user_id: str, entries: List[LogEntry]) -> None:
        self._entries[user_id] = list(entries)


class StructuredLogger:
    """Activity logger with four severities and a capped per-user buffer."""

    def __init__(
        self,
        storage: Optional[LogStorage] = None,
        user_resolver: Optional[Callable[[], Optional[str]]] = None,
        capacity: int = LOG_BUFFER_CAPACITY,
        sink: Optional[logging.Logger] = None,
    ):
        self.storage = storage if storage is not None else InMemoryLogStorage()
        self.user_resolver = user_resolver or (lambda: None)
        self.capacity = capacity
        self.sink = sink or logging.getLogger("opsguard.activity")

    def info(self, category: str, message: str, details: Any = None) -> None:
        self._log(LogLevel.INFO, category, message, details)

    def warning(self, category: str, message: str, details: Any = None) -> None:
        self._log(LogLevel.WARNING, category, message, details)

    def error(self, category: str, message: str, details: Any = None) -> None:
        self._log(LogLevel.ERROR, category, message, details)

    def success(self, category: str, message: str, details: Any = None) -> None:
        self._log(LogLevel.SUCCESS, category, message, details)

    def get_logs(self, user_id: str) -> List[LogEntry]:
        """Entries for one user, newest first."""
        return self.storage.load(user_id)

    def clear_logs(self, user_id: str) -> None:
        self.storage.save(user_id, [])

    def _log(self, level: LogLevel, category: str, message: str, details: Any) -> None:
        try:
            if details is None:
                self.sink.log(_STDLIB_LEVELS[level], f"[{category}] {message}")
            else:
                self.sink.log(
                    _STDLIB_LEVELS[level], f"[{category}] {message} {details}"
                )
        except Exception as e:
            logger.debug(f"Console logging failed: {e}")

        try:
            user_id = self.user_resolver()
            if not user_id:
                return

            entry = LogEntry(
                level=level,
                category=category,
                message=message,
                details=details,
                user_id=user_id,
            )
            entries = self.storage.load(user_id)
            entries.insert(0, entry)
            if len(entries) > self.capacity:
                del entries[self.capacity:]
            self.storage.save(user_id, entries)
        except Exception as e:
            logger.debug(f"Failed to persist activity log entry: {e}")

"""
Protocol definitions for the external collaborators this layer wraps.
"""

from typing import Any, Dict, List, Optional, Protocol
from abc import abstractmethod

from opsguard.models.log_models import LogEntry

Row = Dict[str, Any]


class DataStore(Protocol):
    """Generic table store. Every call returns the affected rows."""

    @abstractmethod
    async def insert(self, table: str, data: Any) -> List[Row]:
        ...

    @abstractmethod
    async def update(
        self, table: str, data: Row, conditions: Optional[Dict[str, Any]] = None
    ) -> List[Row]:
        ...

    @abstractmethod
    async def delete(
        self, table: str, conditions: Optional[Dict[str, Any]] = None
    ) -> List[Row]:
        ...

    @abstractmethod
    async def upsert(self, table: str, data: Any) -> List[Row]:
        ...


class FunctionInvoker(Protocol):
    """Remote procedure invocation: named function plus JSON payload."""

    @abstractmethod
    async def invoke(self, name: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        ...


class LogStorage(Protocol):
    """Per-user storage for activity log entries, newest first."""

    def load(self, user_id: str) -> List[LogEntry]:
        ...

    def save(self, user_id: str, entries: List[LogEntry]) -> None:
        ...

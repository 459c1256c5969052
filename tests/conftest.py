"""
Pytest configuration and shared fakes for the resilience layer tests.
"""

import itertools
from typing import Any, Dict, List, Optional, Tuple

import pytest

from opsguard.context.activity_log import InMemoryLogStorage, StructuredLogger
from opsguard.error_handling import ErrorContext, ErrorHandler


class InMemoryDataStore:
    """Table store kept in dictionaries, with injectable failures."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, str, Any, Optional[Dict[str, Any]]]] = []
        self.failures: Dict[Tuple[str, str], List[BaseException]] = {}
        self._ids = itertools.count(1)

    def fail_next(self, kind: str, table: str, error: BaseException, times: int = 1):
        """Make the next ``times`` calls of ``kind`` on ``table`` raise ``error``."""
        self.failures.setdefault((kind, table), []).extend([error] * times)

    def _maybe_fail(self, kind: str, table: str) -> None:
        pending = self.failures.get((kind, table))
        if pending:
            raise pending.pop(0)

    def _matches(self, row: Dict[str, Any], conditions: Optional[Dict[str, Any]]) -> bool:
        return all(row.get(k) == v for k, v in (conditions or {}).items())

    async def insert(self, table: str, data: Any) -> List[Dict[str, Any]]:
        self.calls.append(("insert", table, data, None))
        self._maybe_fail("insert", table)
        rows = data if isinstance(data, list) else [data]
        inserted = []
        for row in rows:
            stored = dict(row)
            stored.setdefault("id", next(self._ids))
            self.tables.setdefault(table, []).append(stored)
            inserted.append(dict(stored))
        return inserted

    async def update(
        self, table: str, data: Dict[str, Any], conditions: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        self.calls.append(("update", table, data, conditions))
        self._maybe_fail("update", table)
        updated = []
        for row in self.tables.get(table, []):
            if self._matches(row, conditions):
                row.update(data)
                updated.append(dict(row))
        return updated

    async def delete(
        self, table: str, conditions: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        self.calls.append(("delete", table, None, conditions))
        self._maybe_fail("delete", table)
        kept, removed = [], []
        for row in self.tables.get(table, []):
            (removed if self._matches(row, conditions) else kept).append(row)
        self.tables[table] = kept
        return [dict(row) for row in removed]

    async def upsert(self, table: str, data: Any) -> List[Dict[str, Any]]:
        self.calls.append(("upsert", table, data, None))
        self._maybe_fail("upsert", table)
        rows = data if isinstance(data, list) else [data]
        result = []
        for row in rows:
            existing = [
                r for r in self.tables.get(table, []) if "id" in row and r["id"] == row["id"]
            ]
            if existing:
                existing[0].update(row)
                result.append(dict(existing[0]))
            else:
                result.extend(await self.insert(table, row))
        return result


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement recording requested delays in seconds."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FlakyOperation:
    """Async callable failing a fixed number of times before returning."""

    def __init__(self, failures: int, error: Optional[BaseException] = None, result: Any = "ok"):
        self.remaining = failures
        self.error = error or ConnectionError("Network error: fetch failed")
        self.result = result
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.remaining > 0:
            self.remaining -= 1
            raise self.error
        return self.result


@pytest.fixture
def data_store():
    """Provide a fresh in-memory data store."""
    return InMemoryDataStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def log_storage():
    return InMemoryLogStorage()


@pytest.fixture
def activity(log_storage):
    """Structured logger persisting entries for a signed-in test user."""
    return StructuredLogger(storage=log_storage, user_resolver=lambda: "user-1")


@pytest.fixture
def error_handler(data_store, activity, clock, recording_sleep):
    """Error handler wired to the fakes."""
    return ErrorHandler(
        data_store=data_store, activity=activity, clock=clock, sleep=recording_sleep
    )


@pytest.fixture
def error_context():
    return ErrorContext.create(
        operation="catalog_sync", component="StoreSync", user_id="user-1"
    )


@pytest.fixture
def flaky():
    """Factory for operations that fail a given number of times."""
    return FlakyOperation

"""
Tests for the per-user structured activity logger.
"""

import logging

import pytest
from unittest.mock import Mock

from opsguard.context.activity_log import SUCCESS, InMemoryLogStorage, StructuredLogger
from opsguard.models.log_models import LogLevel


class TestStructuredLogger:
    """Test buffering, severity mapping and failure isolation."""

    def test_entries_newest_first(self, activity):
        activity.info("sync", "first")
        activity.warning("sync", "second", {"page": 2})

        entries = activity.get_logs("user-1")
        assert [e.message for e in entries] == ["second", "first"]
        assert entries[0].level == LogLevel.WARNING
        assert entries[0].details == {"page": 2}
        assert entries[0].user_id == "user-1"

    def test_buffer_is_capped(self, log_storage):
        logger = StructuredLogger(storage=log_storage, user_resolver=lambda: "u")

        for i in range(1001):
            logger.info("bulk", f"entry {i}")

        entries = logger.get_logs("u")
        assert len(entries) == 1000
        assert entries[0].message == "entry 1000"
        assert entries[-1].message == "entry 1"

    def test_small_capacity_evicts_oldest(self, log_storage):
        logger = StructuredLogger(storage=log_storage, user_resolver=lambda: "u", capacity=2)
        logger.info("c", "a")
        logger.info("c", "b")
        logger.success("c", "c")

        assert [e.message for e in logger.get_logs("u")] == ["c", "b"]

    def test_no_user_skips_persistence(self, log_storage):
        sink = Mock(spec=logging.Logger)
        logger = StructuredLogger(storage=log_storage, user_resolver=lambda: None, sink=sink)

        logger.error("auth", "no session")

        sink.log.assert_called_once_with(logging.ERROR, "[auth] no session")
        assert log_storage.load("") == []

    def test_users_are_partitioned(self, log_storage):
        current = {"user": "alice"}
        logger = StructuredLogger(storage=log_storage, user_resolver=lambda: current["user"])

        logger.info("c", "alice entry")
        current["user"] = "bob"
        logger.info("c", "bob entry")

        assert [e.message for e in logger.get_logs("alice")] == ["alice entry"]
        assert [e.message for e in logger.get_logs("bob")] == ["bob entry"]

    @pytest.mark.parametrize(
        "method,level",
        [
            ("info", logging.INFO),
            ("warning", logging.WARNING),
            ("error", logging.ERROR),
            ("success", SUCCESS),
        ],
    )
    def test_severity_mapping(self, method, level):
        sink = Mock(spec=logging.Logger)
        logger = StructuredLogger(sink=sink)

        getattr(logger, method)("cat", "msg")

        assert sink.log.call_args[0][0] == level
        assert logging.getLevelName(SUCCESS) == "SUCCESS"

    def test_storage_failure_is_swallowed(self):
        storage = Mock()
        storage.load.side_effect = OSError("quota exceeded")
        logger = StructuredLogger(storage=storage, user_resolver=lambda: "u")

        logger.info("c", "still fine")

        storage.save.assert_not_called()

    def test_resolver_failure_is_swallowed(self, log_storage):
        def broken_resolver():
            raise RuntimeError("auth client not ready")

        logger = StructuredLogger(storage=log_storage, user_resolver=broken_resolver)
        logger.warning("c", "still fine")

    def test_clear_logs(self, activity):
        activity.info("c", "x")
        activity.clear_logs("user-1")
        assert activity.get_logs("user-1") == []

    def test_entry_serialization(self, activity):
        activity.success("billing", "invoice paid")
        dumped = activity.get_logs("user-1")[0].model_dump(mode="json")

        assert dumped["level"] == "success"
        assert dumped["category"] == "billing"
        assert isinstance(dumped["timestamp"], str)
        assert dumped["id"]


class TestInMemoryLogStorage:
    def test_load_returns_copy(self):
        storage = InMemoryLogStorage()
        storage.save("u", [])
        loaded = storage.load("u")
        loaded.append("x")
        assert storage.load("u") == []

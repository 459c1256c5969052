"""
Tests for the resilience context and remote function client.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from opsguard.context.app_context import ResilienceContext
from opsguard.error_handling import CircuitOpenError, EnhancedError, ErrorContext
from opsguard.exceptions import RemoteFunctionError
from opsguard.handlers import RemoteFunctionClient
from opsguard.models.retry_models import RetryConfig
from opsguard.models.transaction_models import InsertOperation


class FakeInvoker:
    """Function invoker failing a fixed number of times."""

    def __init__(self, failures=0, reason="service unavailable", result=None):
        self.failures = failures
        self.reason = reason
        self.result = result if result is not None else {"ok": True}
        self.calls = []

    async def invoke(self, name, payload=None):
        self.calls.append((name, payload))
        if self.failures:
            self.failures -= 1
            raise RemoteFunctionError(name, self.reason)
        return self.result


class TestRemoteFunctionClient:
    """Test remote invocations through the retry executor."""

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self, error_handler, recording_sleep):
        invoker = FakeInvoker(failures=2, result={"score": 0.9})
        client = RemoteFunctionClient(
            invoker,
            error_handler,
            RetryConfig(max_attempts=3, base_delay_ms=50, max_delay_ms=500),
        )

        result = await client.invoke("ai-optimize", {"product_id": 1})

        assert result == {"score": 0.9}
        assert len(invoker.calls) == 3
        assert recording_sleep.delays == pytest.approx([0.05, 0.1])

    @pytest.mark.asyncio
    async def test_default_context_keys_breaker_by_function(self, error_handler):
        invoker = FakeInvoker(failures=100, reason="invalid signature")
        client = RemoteFunctionClient(
            invoker, error_handler, RetryConfig(max_attempts=1, base_delay_ms=0, max_delay_ms=0)
        )

        for _ in range(5):
            with pytest.raises(EnhancedError):
                await client.invoke("verify-payment")

        with pytest.raises(CircuitOpenError):
            await client.invoke("verify-payment")
        assert len(invoker.calls) == 5
        assert error_handler.is_circuit_open("verify-payment") is True
        assert error_handler.is_circuit_open("ai-optimize") is False

    @pytest.mark.asyncio
    async def test_explicit_context(self, error_handler):
        invoker = FakeInvoker()
        client = RemoteFunctionClient(invoker, error_handler)
        context = ErrorContext.create("catalog_sync", "StoreSync")

        await client.invoke("sync-catalog", {"page": 1}, context=context)

        assert invoker.calls == [("sync-catalog", {"page": 1})]
        assert "catalog_sync" in error_handler.circuit_breakers


class TestResilienceContext:
    """Test service wiring."""

    def test_services_share_logger_and_store(self, data_store):
        context = ResilienceContext(data_store, invoker=FakeInvoker(), user_resolver=lambda: "u1")

        assert context.error_handler.activity is context.activity
        assert context.transaction_manager.activity is context.activity
        assert context.recovery_manager.activity is context.activity
        assert context.error_handler.data_store is data_store
        assert context.transaction_manager.data_store is data_store
        assert context.remote_functions.error_handler is context.error_handler

    def test_without_invoker(self, data_store):
        context = ResilienceContext(data_store)
        assert context.remote_functions is None

    @pytest.mark.asyncio
    async def test_transaction_failure_reported_to_user_log(self, data_store):
        context = ResilienceContext(data_store, user_resolver=lambda: "u1")
        data_store.fail_next("insert", "products", RuntimeError("boom"))

        result = await context.transaction_manager.execute_transaction(
            [InsertOperation(table="products", data={"sku": "A"})],
            ErrorContext.create("bulk_edit", "BulkEditDialog", user_id="u1"),
        )

        assert result.success is False
        categories = [e.category for e in context.activity.get_logs("u1")]
        assert "transaction_failed" in categories

    @pytest.mark.asyncio
    async def test_from_supabase(self):
        fake_client = MagicMock()
        with patch(
            "opsguard.context.app_context.create_supabase_client",
            new_callable=AsyncMock,
            return_value=fake_client,
        ):
            context = await ResilienceContext.from_supabase("https://x.supabase.co", "anon")

        assert context.data_store.client is fake_client
        assert context.remote_functions.invoker.client is fake_client

"""
Application context wiring the resilience services together.
One instance per process, built explicitly and passed to callers.
"""

import logging
from typing import Callable, Optional

from opsguard.context.activity_log import InMemoryLogStorage, StructuredLogger
from opsguard.error_handling import ErrorHandler
from opsguard.handlers import RecoveryManager, RemoteFunctionClient, TransactionManager
from opsguard.models.protocols import DataStore, FunctionInvoker, LogStorage
from opsguard.models.retry_models import RetryConfig
from opsguard.providers import (
    SupabaseDataStore,
    SupabaseFunctionInvoker,
    create_supabase_client,
)

logger = logging.getLogger(__name__)


class ResilienceContext:
    """
    Holds the shared logger, error handler, transaction manager, recovery
    manager and remote function client for one process.
    """

    def __init__(
        self,
        data_store: DataStore,
        invoker: Optional[FunctionInvoker] = None,
        log_storage: Optional[LogStorage] = None,
        user_resolver: Optional[Callable[[], Optional[str]]] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """Initialize every service around the given backends."""
        self.data_store = data_store
        self.activity = StructuredLogger(
            storage=log_storage or InMemoryLogStorage(),
            user_resolver=user_resolver,
        )
        self.error_handler = ErrorHandler(data_store=data_store, activity=self.activity)
        self.transaction_manager = TransactionManager(data_store, self.activity)
        self.recovery_manager = RecoveryManager(data_store, self.activity)

        self.remote_functions: Optional[RemoteFunctionClient] = None
        if invoker is not None:
            self.remote_functions = RemoteFunctionClient(
                invoker, self.error_handler, retry_config
            )

        logger.info("Resilience context initialized")

    @classmethod
    async def from_supabase(
        cls,
        url: Optional[str] = None,
        key: Optional[str] = None,
        user_resolver: Optional[Callable[[], Optional[str]]] = None,
        retry_config: Optional[RetryConfig] = None,
    ) -> "ResilienceContext":
        """Build the context on top of a Supabase project."""
        client = await create_supabase_client(url, key)
        return cls(
            data_store=SupabaseDataStore(client),
            invoker=SupabaseFunctionInvoker(client),
            user_resolver=user_resolver,
            retry_config=retry_config,
        )

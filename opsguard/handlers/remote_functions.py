"""
Remote function invocation with retry and circuit breaking.
"""

import logging
from typing import Any, Dict, Optional

from opsguard.error_handling import ErrorContext, ErrorHandler
from opsguard.models.protocols import FunctionInvoker
from opsguard.models.retry_models import RetryConfig

logger = logging.getLogger(__name__)


class RemoteFunctionClient:
    """
    Invokes named backend functions through the retry executor.

    AI optimization, payment verification and catalog sync routines all go
    through the same path; the circuit breaker is keyed by the context's
    operation name.
    """

    def __init__(
        self,
        invoker: FunctionInvoker,
        error_handler: ErrorHandler,
        default_config: Optional[RetryConfig] = None,
    ):
        self.invoker = invoker
        self.error_handler = error_handler
        self.default_config = default_config or RetryConfig.default()

    async def invoke(
        self,
        name: str,
        payload: Optional[Dict[str, Any]] = None,
        context: Optional[ErrorContext] = None,
        config: Optional[RetryConfig] = None,
    ) -> Any:
        if context is None:
            context = ErrorContext.create(operation=name, component="remote_function")

        logger.debug(f"Invoking remote function '{name}' ({context.correlation_id})")

        async def call() -> Any:
            return await self.invoker.invoke(name, payload)

        return await self.error_handler.with_retry(
            call, config or self.default_config, context
        )

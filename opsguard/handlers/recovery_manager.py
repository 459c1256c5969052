"""
Ordered recovery strategies run after a failure.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from opsguard.config import RECOVERY_ESCALATION_STEPS, RECOVERY_SUCCESS_STEPS
from opsguard.context.activity_log import StructuredLogger
from opsguard.error_handling import ErrorContext
from opsguard.models.protocols import DataStore
from opsguard.models.recovery_models import RecoveryResult, RecoveryStrategy

logger = logging.getLogger(__name__)

MARKETPLACE_SYNC_TABLE = "marketplace_sync_status"
SHOPIFY_SYNC_TABLE = "shopify_sync_status"


class RecoveryManager:
    """Tries recovery strategies in order until one succeeds."""

    def __init__(
        self,
        data_store: Optional[DataStore] = None,
        activity: Optional[StructuredLogger] = None,
    ):
        self.data_store = data_store
        self.activity = activity or StructuredLogger()

    async def execute_recovery(
        self, strategies: Sequence[RecoveryStrategy], context: ErrorContext
    ) -> RecoveryResult:
        """
        Run ``strategies`` in list order, stopping at the first success.

        A strategy that raises has its own rollback run (if any) and the scan
        moves on; rollback failures are logged only.
        """
        self.activity.info(
            "recovery_start",
            f"Starting recovery with {len(strategies)} strategies",
            {
                "correlationId": context.correlation_id,
                "strategies": [s.name for s in strategies],
            },
        )

        for strategy in strategies:
            self.activity.info(
                "recovery_strategy_attempt",
                f"Attempting strategy: {strategy.name}",
                {
                    "correlationId": context.correlation_id,
                    "strategy": strategy.name,
                    "description": strategy.description,
                },
            )

            try:
                succeeded = await strategy.execute()
            except Exception as e:
                self.activity.error(
                    "recovery_strategy_error",
                    f"Strategy error: {strategy.name}",
                    {
                        "correlationId": context.correlation_id,
                        "strategy": strategy.name,
                        "error": str(e),
                    },
                )
                await self._rollback(strategy, context)
                continue

            if succeeded:
                self.activity.success(
                    "recovery_strategy_success",
                    f"Strategy succeeded: {strategy.name}",
                    {"correlationId": context.correlation_id, "strategy": strategy.name},
                )
                return RecoveryResult(
                    success=True,
                    strategy=strategy.name,
                    message=f"Recovery successful using strategy: {strategy.description}",
                    next_steps=list(RECOVERY_SUCCESS_STEPS),
                )

            self.activity.warning(
                "recovery_strategy_failed",
                f"Strategy failed: {strategy.name}",
                {"correlationId": context.correlation_id, "strategy": strategy.name},
            )

        return RecoveryResult(
            success=False,
            strategy="none",
            message="All recovery strategies failed",
            next_steps=list(RECOVERY_ESCALATION_STEPS),
        )

    async def _rollback(self, strategy: RecoveryStrategy, context: ErrorContext) -> None:
        if strategy.rollback is None:
            return
        try:
            await strategy.rollback()
        except Exception as e:
            self.activity.error(
                "recovery_rollback_failed",
                f"Rollback failed for strategy: {strategy.name}",
                {
                    "correlationId": context.correlation_id,
                    "strategy": strategy.name,
                    "rollbackError": str(e),
                },
            )
            return
        self.activity.info(
            "recovery_rollback_success",
            f"Rollback completed for strategy: {strategy.name}",
            {"correlationId": context.correlation_id, "strategy": strategy.name},
        )

    def create_sync_recovery_strategies(
        self, user_id: str, marketplace: str, context: ErrorContext
    ) -> List[RecoveryStrategy]:
        """
        Recovery catalog for a failed marketplace synchronization job.

        The cheaper strategy (resume from the last known state) comes first;
        resetting pagination restarts the sync from the beginning.
        """
        if self.data_store is None:
            raise ValueError("Sync recovery requires a data store")

        store = self.data_store
        current_time = datetime.now(timezone.utc).isoformat()
        sync_filter = {"user_id": user_id, "marketplace_name": marketplace}

        async def resume_sync() -> bool:
            await store.update(
                MARKETPLACE_SYNC_TABLE,
                {
                    "sync_status": "pending",
                    "error_message": None,
                    "updated_at": current_time,
                },
                sync_filter,
            )
            return True

        async def reset_pagination() -> bool:
            await store.update(
                MARKETPLACE_SYNC_TABLE,
                {
                    "sync_status": "pending",
                    "current_page": 1,
                    "last_page_info": None,
                    "updated_at": current_time,
                },
                sync_filter,
            )
            await store.update(
                SHOPIFY_SYNC_TABLE,
                {
                    "sync_status": "idle",
                    "last_page_info": None,
                    "updated_at": current_time,
                },
                {"user_id": user_id},
            )
            return True

        logger.debug(
            f"Built sync recovery strategies for {marketplace} ({context.correlation_id})"
        )
        return [
            RecoveryStrategy(
                name="resume_sync",
                description="Resume sync from last known good state",
                execute=resume_sync,
            ),
            RecoveryStrategy(
                name="reset_pagination",
                description="Reset pagination data and restart sync",
                execute=reset_pagination,
            ),
        ]

    async def handle_sync_failure(
        self,
        user_id: str,
        marketplace: str,
        error: BaseException,
        context: ErrorContext,
    ) -> RecoveryResult:
        """Log a failed sync job and run the sync recovery catalog."""
        self.activity.error(
            "sync_failure",
            f"Sync failure detected: {error}",
            {
                "correlationId": context.correlation_id,
                "marketplace": marketplace,
                "userId": user_id,
            },
        )
        strategies = self.create_sync_recovery_strategies(user_id, marketplace, context)
        return await self.execute_recovery(strategies, context)

"""
Application-level transactions over the data store.

Operations run strictly in order. After each success a compensating
operation is derived from the operation and the rows it returned; on
failure every recorded compensation is replayed, most recent first. This is
a best-effort compensation log, not an ACID transaction: nothing is held
open in the backing store and an unwind can itself fail part way.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from opsguard.context.activity_log import StructuredLogger
from opsguard.error_handling import EnhancedError, ErrorContext
from opsguard.models.protocols import DataStore
from opsguard.models.transaction_models import (
    DeleteOperation,
    InsertOperation,
    Row,
    TransactionOperation,
    TransactionResult,
    UpdateOperation,
    UpsertOperation,
)

logger = logging.getLogger(__name__)


class TransactionManager:
    """Sequential executor with reverse-order compensation on failure."""

    def __init__(self, data_store: DataStore, activity: Optional[StructuredLogger] = None):
        self.data_store = data_store
        self.activity = activity or StructuredLogger()
        self.active_transactions: Dict[str, List[TransactionOperation]] = {}

    async def execute_transaction(
        self, operations: Sequence[TransactionOperation], context: ErrorContext
    ) -> TransactionResult:
        """
        Execute ``operations`` in declaration order.

        Returns:
            TransactionResult with the per-operation rows, the compensations
            recorded so far (most recent first) and, on failure, a
            non-retryable EnhancedError.
        """
        transaction_id = str(uuid.uuid4())
        rollback_operations: List[TransactionOperation] = []
        results: List[List[Row]] = []

        self.active_transactions[transaction_id] = list(operations)
        self.activity.info(
            "transaction_start",
            f"Starting transaction with {len(operations)} operations",
            {
                "correlationId": context.correlation_id,
                "transactionId": transaction_id,
                "operationCount": len(operations),
            },
        )

        try:
            for index, operation in enumerate(operations, start=1):
                self.activity.info(
                    "transaction_operation",
                    f"Executing operation {index}/{len(operations)}",
                    {
                        "correlationId": context.correlation_id,
                        "transactionId": transaction_id,
                        "table": operation.table,
                        "operation": operation.kind,
                    },
                )

                rows = await self._execute_operation(operation, context)
                results.append(rows)

                compensation = self.prepare_rollback_operation(operation, rows)
                if compensation is not None:
                    rollback_operations.insert(0, compensation)

        except Exception as e:
            self.activity.error(
                "transaction_failed",
                "Transaction failed, initiating rollback",
                {
                    "correlationId": context.correlation_id,
                    "transactionId": transaction_id,
                    "error": str(e),
                },
            )

            await self.rollback(rollback_operations, context, transaction_id)

            error = EnhancedError(
                f"Transaction failed: {e}",
                context.with_metadata(transactionId=transaction_id),
                e,
                is_retryable=False,
            )
            return TransactionResult(
                success=False,
                results=results,
                rollback_operations=rollback_operations,
                error=error,
                transaction_id=transaction_id,
            )
        finally:
            self.active_transactions.pop(transaction_id, None)

        self.activity.success(
            "transaction_complete",
            "Transaction completed successfully",
            {
                "correlationId": context.correlation_id,
                "transactionId": transaction_id,
                "operationsExecuted": len(operations),
            },
        )
        return TransactionResult(
            success=True,
            results=results,
            rollback_operations=rollback_operations,
            transaction_id=transaction_id,
        )

    async def with_transaction(
        self, operations: Sequence[TransactionOperation], context: ErrorContext
    ) -> List[List[Row]]:
        """Run a transaction and return its rows, raising its error on failure."""
        result = await self.execute_transaction(operations, context)
        if not result.success:
            if result.error is not None:
                raise result.error
            raise EnhancedError("Transaction failed", context)
        return result.results

    @staticmethod
    def prepare_rollback_operation(
        operation: TransactionOperation, rows: List[Row]
    ) -> Optional[TransactionOperation]:
        """
        Derive the compensation for a completed operation.

        Updates are only compensated when the caller supplied
        ``rollback_data``; upserts are never compensated because the rows do
        not say whether they were inserted or updated.
        """
        if not rows:
            return None

        first = rows[0]

        if isinstance(operation, InsertOperation):
            if "id" not in first:
                logger.warning(
                    f"Inserted row in '{operation.table}' has no id; cannot compensate"
                )
                return None
            return DeleteOperation(table=operation.table, conditions={"id": first["id"]})

        if isinstance(operation, UpdateOperation):
            if operation.rollback_data is None or "id" not in first:
                return None
            return UpdateOperation(
                table=operation.table,
                data=operation.rollback_data,
                conditions={"id": first["id"]},
            )

        if isinstance(operation, DeleteOperation):
            return InsertOperation(table=operation.table, data=first)

        if isinstance(operation, UpsertOperation):
            return None

        return None

    async def rollback(
        self,
        rollback_operations: Sequence[TransactionOperation],
        context: ErrorContext,
        transaction_id: str,
    ) -> int:
        """
        Replay compensations in the given order.

        Returns:
            Number of compensations that failed. Failures never stop the
            remaining compensations.
        """
        if not rollback_operations:
            self.activity.info(
                "rollback_skip",
                "No rollback operations needed",
                {"correlationId": context.correlation_id, "transactionId": transaction_id},
            )
            return 0

        self.activity.info(
            "rollback_start",
            f"Starting rollback of {len(rollback_operations)} operations",
            {
                "correlationId": context.correlation_id,
                "transactionId": transaction_id,
                "rollbackCount": len(rollback_operations),
            },
        )

        rollback_errors = 0
        for compensation in rollback_operations:
            details: Dict[str, Any] = {
                "correlationId": context.correlation_id,
                "transactionId": transaction_id,
                "table": compensation.table,
                "operation": compensation.kind,
            }
            try:
                await self._execute_operation(compensation, context)
            except Exception as e:
                rollback_errors += 1
                self.activity.error(
                    "rollback_operation_failed",
                    "Rollback operation failed",
                    {**details, "error": str(e)},
                )
                continue
            self.activity.info(
                "rollback_operation_success", "Rollback operation completed", details
            )

        if rollback_errors:
            self.activity.error(
                "rollback_partial_failure",
                f"Rollback completed with {rollback_errors} failures",
                {
                    "correlationId": context.correlation_id,
                    "transactionId": transaction_id,
                    "totalOperations": len(rollback_operations),
                    "failures": rollback_errors,
                },
            )
        else:
            self.activity.success(
                "rollback_complete",
                "All rollback operations completed successfully",
                {"correlationId": context.correlation_id, "transactionId": transaction_id},
            )
        return rollback_errors

    async def _execute_operation(
        self, operation: TransactionOperation, context: ErrorContext
    ) -> List[Row]:
        try:
            if isinstance(operation, InsertOperation):
                return await self.data_store.insert(operation.table, operation.data)
            if isinstance(operation, UpdateOperation):
                return await self.data_store.update(
                    operation.table, operation.data, operation.conditions
                )
            if isinstance(operation, DeleteOperation):
                return await self.data_store.delete(operation.table, operation.conditions)
            if isinstance(operation, UpsertOperation):
                return await self.data_store.upsert(operation.table, operation.data)
            raise TypeError(f"Unsupported operation: {operation!r}")
        except Exception as e:
            self.activity.error(
                "transaction_operation_failed",
                f"Operation {operation.kind} failed on table {operation.table}",
                {
                    "correlationId": context.correlation_id,
                    "table": operation.table,
                    "operation": operation.kind,
                    "error": str(e),
                },
            )
            raise

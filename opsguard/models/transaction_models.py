"""
Transaction operation models.

Each operation kind is its own model carrying exactly the fields it needs;
``TransactionOperation`` is the closed union over them, discriminated by
``kind``.
"""

import uuid
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from opsguard.error_handling.error_context import EnhancedError

Row = Dict[str, Any]


class _BaseOperation(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    table: str = Field(..., min_length=1, description="Target collection name")


class InsertOperation(_BaseOperation):
    kind: Literal["insert"] = "insert"
    data: Union[Row, List[Row]]


class UpdateOperation(_BaseOperation):
    kind: Literal["update"] = "update"
    data: Row
    conditions: Dict[str, Any] = Field(default_factory=dict)
    rollback_data: Optional[Row] = Field(
        None, description="Values restored if the transaction has to be unwound"
    )


class DeleteOperation(_BaseOperation):
    kind: Literal["delete"] = "delete"
    conditions: Dict[str, Any] = Field(default_factory=dict)


class UpsertOperation(_BaseOperation):
    kind: Literal["upsert"] = "upsert"
    data: Union[Row, List[Row]]


TransactionOperation = Annotated[
    Union[InsertOperation, UpdateOperation, DeleteOperation, UpsertOperation],
    Field(discriminator="kind"),
]

_operation_adapter: TypeAdapter = TypeAdapter(TransactionOperation)


def parse_operation(raw: Dict[str, Any]) -> TransactionOperation:
    """Validate a raw mapping into the matching operation model.

    Accepts ``operation`` as an alias of ``kind`` and ``rollbackData`` as an
    alias of ``rollback_data`` for payloads produced by the web console.
    """
    payload = {key: value for key, value in raw.items() if value is not None}
    if "kind" not in payload and "operation" in payload:
        payload["kind"] = payload.pop("operation")
    if "rollbackData" in payload:
        payload["rollback_data"] = payload.pop("rollbackData")
    return _operation_adapter.validate_python(payload)


@dataclass
class TransactionResult:
    """Outcome of a transaction run."""

    success: bool
    results: List[List[Row]] = field(default_factory=list)
    rollback_operations: List[TransactionOperation] = field(default_factory=list)
    error: Optional[EnhancedError] = None
    transaction_id: str = field(default_factory=lambda: str(uuid.uuid4()))

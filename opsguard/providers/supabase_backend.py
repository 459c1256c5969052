"""
Supabase-backed implementations of the data store and function invoker.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import AsyncClient

from opsguard.exceptions import DataStoreError, RemoteFunctionError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _reason(error: Exception) -> str:
    # postgrest APIError keeps the readable text in .message
    return getattr(error, "message", None) or str(error)


def _rows(table: str, operation: str, data: Any) -> List[Row]:
    """Validate the payload returned by PostgREST into a list of rows."""
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
        raise DataStoreError(
            table, operation, f"unexpected response shape: {type(data).__name__}"
        )
    return data


class SupabaseDataStore:
    """Table operations through the Supabase PostgREST client."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def insert(self, table: str, data: Any) -> List[Row]:
        try:
            response = await self.client.table(table).insert(data).execute()
        except Exception as e:
            raise DataStoreError(table, "insert", _reason(e)) from e
        return _rows(table, "insert", response.data)

    async def update(
        self, table: str, data: Row, conditions: Optional[Dict[str, Any]] = None
    ) -> List[Row]:
        query = self.client.table(table).update(data)
        for column, value in (conditions or {}).items():
            query = query.eq(column, value)
        try:
            response = await query.execute()
        except Exception as e:
            raise DataStoreError(table, "update", _reason(e)) from e
        return _rows(table, "update", response.data)

    async def delete(
        self, table: str, conditions: Optional[Dict[str, Any]] = None
    ) -> List[Row]:
        query = self.client.table(table).delete()
        for column, value in (conditions or {}).items():
            query = query.eq(column, value)
        try:
            response = await query.execute()
        except Exception as e:
            raise DataStoreError(table, "delete", _reason(e)) from e
        return _rows(table, "delete", response.data)

    async def upsert(self, table: str, data: Any) -> List[Row]:
        try:
            response = await self.client.table(table).upsert(data).execute()
        except Exception as e:
            raise DataStoreError(table, "upsert", _reason(e)) from e
        return _rows(table, "upsert", response.data)


class SupabaseFunctionInvoker:
    """Edge Function invocation returning the decoded JSON body."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def invoke(self, name: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        try:
            return await self.client.functions.invoke(
                name,
                invoke_options={"body": payload or {}, "responseType": "json"},
            )
        except Exception as e:
            raise RemoteFunctionError(name, _reason(e)) from e

"""Backend adapters for the data store and remote function interfaces."""

from .base import BackendConfig, create_supabase_client
from .supabase_backend import SupabaseDataStore, SupabaseFunctionInvoker

__all__ = [
    "BackendConfig",
    "create_supabase_client",
    "SupabaseDataStore",
    "SupabaseFunctionInvoker",
]

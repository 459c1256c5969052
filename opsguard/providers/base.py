"""
Backend client factory.
"""

import logging
from typing import Optional

from supabase import AsyncClient, acreate_client

from opsguard import config
from opsguard.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class BackendConfig:
    """Connection settings for the managed backend."""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self.url = url if url is not None else config.SUPABASE_URL
        self.key = key if key is not None else config.SUPABASE_KEY

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)

    def validate(self) -> None:
        """Validates that the URL and key are set."""
        if not self.url:
            raise ConfigurationError("SUPABASE_URL", "missing backend URL")
        if not self.key:
            raise ConfigurationError("SUPABASE_KEY", "missing backend key")


async def create_supabase_client(
    url: Optional[str] = None, key: Optional[str] = None
) -> AsyncClient:
    """
    Creates the async Supabase client.

    Raises:
        ConfigurationError: If URL or key is not available
    """
    backend = BackendConfig(url, key)
    backend.validate()
    client = await acreate_client(backend.url, backend.key)
    logger.info(f"Connected backend client to {backend.url}")
    return client

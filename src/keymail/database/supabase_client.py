"""
Supabase client.

Singleton connection to the database.
"""

from functools import lru_cache

import structlog
from supabase import create_client, Client

from keymail.config import get_settings

logger = structlog.get_logger()


class SupabaseClient:
    """Wrapper around the Supabase client with helper methods."""

    def __init__(self, client: Client):
        self._client = client

    def table(self, name: str):
        """Access a specific table."""
        return self._client.table(name)


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """
    Return the Supabase client (cached singleton).

    Raises:
        ValueError: If the credentials are not configured
    """
    settings = get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_KEY are required. "
            "Set the environment variables."
        )

    # Prefer the service key for server-side jobs
    key = settings.supabase_service_key or settings.supabase_key

    client = create_client(settings.supabase_url, key)
    logger.info("Supabase client initialized", url=settings.supabase_url)

    return SupabaseClient(client)

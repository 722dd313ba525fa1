"""Supabase client wrapper shared by the services."""
from supabase import create_client, acreate_client, Client, AsyncClient, ClientOptions
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Wrapper for Supabase clients with utility methods."""

    def __init__(self, url: str, key: str):
        """Initialize the shared Supabase client."""
        self.url = url
        self.key = key
        self.client: Client = create_client(url, key)
        self.async_client: Optional[AsyncClient] = None
        logger.info(f"Supabase client initialized for {url}")

    def get_client(self) -> Client:
        """Get Supabase client instance."""
        return self.client

    def auth_client(self) -> Client:
        """Create a throwaway client for a single auth call.

        The shared client must never hold a user session, so sign-in and
        token checks run on a client that neither persists nor refreshes.
        """
        options = ClientOptions(persist_session=False, auto_refresh_token=False)
        return create_client(self.url, self.key, options=options)

    async def get_async_client(self) -> AsyncClient:
        """Get (lazily creating) the async client used for realtime channels."""
        if self.async_client is None:
            self.async_client = await acreate_client(self.url, self.key)
            logger.info("Supabase realtime client initialized")
        return self.async_client


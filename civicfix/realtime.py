"""Realtime resync: refetch a view whenever the issues table changes."""
from typing import Optional, Set, Any
import asyncio
import logging

from .store import ViewStore

logger = logging.getLogger(__name__)


class ResyncListener:
    """Subscribe to ``postgres_changes`` on ``public.issues`` for one view.

    Every insert, update or delete triggers a full refetch of the bound
    store; the event payload is ignored. Reconnection is left to the
    realtime client.
    """

    def __init__(self, client: Any, store: ViewStore, channel_name: str, table: str = "issues"):
        """
        Args:
            client: Supabase async client (anything exposing ``channel`` and ``remove_channel``)
            store: Store refreshed on each change event
            channel_name: Realtime channel name, e.g. 'admin-realtime'
            table: Table to watch
        """
        self.client = client
        self.store = store
        self.channel_name = channel_name
        self.table = table
        self.channel = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        return self.channel is not None

    async def start(self) -> None:
        if self.channel is not None:
            return

        channel = self.client.channel(self.channel_name)
        channel.on_postgres_changes("*", self._on_change, table=self.table, schema="public")
        await channel.subscribe()
        self.channel = channel
        logger.info(f"Realtime channel {self.channel_name} subscribed to {self.table}")

    async def stop(self) -> None:
        if self.channel is None:
            return

        channel, self.channel = self.channel, None
        try:
            await self.client.remove_channel(channel)
        except Exception as e:
            logger.error(f"Error removing realtime channel {self.channel_name}: {e}")
        logger.info(f"Realtime channel {self.channel_name} removed")

    def _on_change(self, payload: Optional[dict] = None) -> None:
        payload = payload or {}
        event = payload.get("data", {}).get("type") or payload.get("eventType")
        logger.info(f"Change on {self.table} ({event}), resyncing {self.channel_name}")
        task = asyncio.get_running_loop().create_task(self._resync())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _resync(self) -> None:
        try:
            await self.store.refresh()
        except Exception as e:
            logger.error(f"Resync of {self.channel_name} failed: {e}")

    async def drain(self) -> None:
        """Wait for resyncs already triggered by change events."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

"""Per-view state store.

A store is loaded once when its view activates, changed only through
``apply`` and replaced wholesale by ``refresh``. Every change is published
to subscriber queues as a snapshot.
"""
from typing import Any, Awaitable, Callable, Dict, List
import asyncio
import copy
import logging

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]


def replace_field(items: List[Dict[str, Any]], entity_id: Any, field: str, value: Any) -> List[Dict[str, Any]]:
    """Return a copy of ``items`` with ``field`` set on the entity matching ``entity_id``."""
    return [
        {**item, field: value} if item.get("id") == entity_id else item
        for item in items
    ]


class ViewStore:
    """Single source of truth for one mounted view."""

    def __init__(self, loader: Loader, name: str = "view"):
        self.loader = loader
        self.name = name
        self.state: Any = None
        self.version = 0
        self._subscribers: List[asyncio.Queue] = []
        self._refresh_lock = asyncio.Lock()

    def snapshot(self) -> Any:
        return copy.deepcopy(self.state)

    async def refresh(self) -> Any:
        """Refetch from the remote source and replace the state."""
        async with self._refresh_lock:
            state = await self.loader()
            self._set(state)
            logger.debug(f"Store {self.name} refreshed (version {self.version})")
        return self.snapshot()

    def apply(self, mutator: Callable[[Any], Any]) -> Any:
        """Run a local mutation and publish the result."""
        self._set(mutator(self.state))
        return self.snapshot()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _set(self, state: Any) -> None:
        self.state = state
        self.version += 1
        for queue in self._subscribers:
            queue.put_nowait(self.snapshot())

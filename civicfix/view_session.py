"""Mounted view sessions: store, optimistic controller and realtime listener."""
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
import asyncio
import logging

from .db_service import DatabaseService
from .optimistic import OptimisticUpdateController
from .realtime import ResyncListener
from .store import Loader, ViewStore

logger = logging.getLogger(__name__)

ClientProvider = Callable[[], Awaitable[Any]]


class ViewSession:
    """Everything one mounted view needs to stay in sync."""

    def __init__(self, view: str, user_id: str, store: ViewStore,
                 controller: OptimisticUpdateController, listener: Optional[ResyncListener]):
        self.view = view
        self.user_id = user_id
        self.store = store
        self.controller = controller
        self.listener = listener
        self.mounts = 0

    async def activate(self) -> None:
        await self.store.refresh()
        if self.listener is not None:
            await self.listener.start()

    async def deactivate(self) -> None:
        if self.listener is not None:
            await self.listener.stop()


class ViewRegistry:
    """Track mounted views per user so actions reach the live store.

    The first mount of a (view, user) pair loads the store and subscribes to
    realtime changes; the last unmount removes the subscription.
    """

    def __init__(self, db_service: DatabaseService, client_provider: Optional[ClientProvider] = None):
        """
        Args:
            db_service: Repository used by optimistic controllers
            client_provider: Coroutine returning the realtime-capable client;
                without one, sessions are mounted without realtime
        """
        self.db = db_service
        self.client_provider = client_provider
        self._sessions: Dict[Tuple[str, str], ViewSession] = {}
        # Mount and unmount are serialized per (view, user) pair
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)

    def lookup(self, view: str, user_id: str) -> Optional[ViewSession]:
        return self._sessions.get((view, user_id))

    async def build(self, view: str, user_id: str, loader: Loader, realtime: bool = True) -> ViewSession:
        """Create an unregistered session."""
        store = ViewStore(loader, name=f"{view}:{user_id}")
        controller = OptimisticUpdateController(store, self.db)
        listener = None

        if realtime and self.client_provider is not None:
            client = await self.client_provider()
            listener = ResyncListener(client, store, f"{view}-realtime:{user_id}")

        return ViewSession(view, user_id, store, controller, listener)

    async def mount(self, view: str, user_id: str, loader: Loader) -> ViewSession:
        key = (view, user_id)
        async with self._locks[key]:
            session = self._sessions.get(key)

            if session is None:
                session = await self.build(view, user_id, loader)
                await session.activate()
                self._sessions[key] = session
                logger.info(f"View {view} mounted for {user_id}")

            session.mounts += 1
            return session

    async def unmount(self, session: ViewSession) -> None:
        async with self._locks[(session.view, session.user_id)]:
            session.mounts -= 1
            if session.mounts > 0:
                return

            self._sessions.pop((session.view, session.user_id), None)
            await session.deactivate()
            logger.info(f"View {session.view} unmounted for {session.user_id}")

    async def close(self) -> None:
        """Tear down every mounted session (application shutdown)."""
        sessions = list(self._sessions.values())
        self._sessions.clear()

        for session in sessions:
            await session.deactivate()

    @property
    def mounted(self) -> int:
        return len(self._sessions)

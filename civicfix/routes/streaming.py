"""Server-Sent Events for mounted views."""
from typing import Any, Callable, Dict
from fastapi import Request
from sse_starlette.sse import EventSourceResponse
import asyncio
import json
import logging

from ..store import Loader
from ..view_session import ViewRegistry

logger = logging.getLogger(__name__)

Renderer = Callable[[Any], Dict[str, Any]]


def view_event(view: str, state: Any, render: Renderer) -> Dict[str, str]:
    return {"event": view, "data": json.dumps(render(state), default=str)}


def stream_view(request: Request, registry: ViewRegistry, view: str, user_id: str,
                loader: Loader, render: Renderer) -> EventSourceResponse:
    """
    Mount a view for the lifetime of an SSE connection.

    The current view is sent on connect and again after every store change
    (optimistic updates and realtime resyncs). Disconnecting unmounts the view.

    Usage:
    const source = new EventSource('/admin/stream');
    source.addEventListener('admin', (event) => render(JSON.parse(event.data)));
    """

    async def event_generator():
        session = await registry.mount(view, user_id, loader)
        queue = session.store.subscribe()

        try:
            yield view_event(view, session.store.snapshot(), render)

            while True:
                if await request.is_disconnected():
                    break

                try:
                    state = await asyncio.wait_for(queue.get(), timeout=1.0)
                    yield view_event(view, state, render)
                except asyncio.TimeoutError:
                    continue

        except asyncio.CancelledError:
            logger.info(f"Client disconnected from {view} stream (user_id: {user_id})")
            raise

        finally:
            session.store.unsubscribe(queue)
            await registry.unmount(session)

    return EventSourceResponse(event_generator())

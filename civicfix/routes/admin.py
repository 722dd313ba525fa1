from fastapi import APIRouter, Depends, Request
import logging

from ..db_service import DatabaseService
from ..dependencies import get_db_service, get_registry
from ..models import Identity, Role, StatusUpdateRequest
from ..session_guard import require_session
from ..view_session import ViewRegistry
from .. import views
from .streaming import stream_view

logger = logging.getLogger(__name__)

router = APIRouter()

ADMIN_VIEW = "admin"


@router.get("/admin")
async def admin_console(
    identity: Identity = Depends(require_session(Role.ADMIN)),
    db: DatabaseService = Depends(get_db_service),
    registry: ViewRegistry = Depends(get_registry)
):
    """Every issue, newest first, with resolved/pending counts."""
    session = registry.lookup(ADMIN_VIEW, identity.user_id)
    if session is not None:
        return views.render_admin(session.store.snapshot())
    return views.render_admin(await views.load_all_issues(db))


@router.get("/admin/stream")
async def admin_stream(
    request: Request,
    identity: Identity = Depends(require_session(Role.ADMIN)),
    db: DatabaseService = Depends(get_db_service),
    registry: ViewRegistry = Depends(get_registry)
):
    return stream_view(
        request, registry, ADMIN_VIEW, identity.user_id,
        lambda: views.load_all_issues(db),
        views.render_admin
    )


@router.patch("/api/admin/issues/{issue_id}/status")
async def update_issue_status(
    issue_id: int,
    request: StatusUpdateRequest,
    identity: Identity = Depends(require_session(Role.ADMIN)),
    db: DatabaseService = Depends(get_db_service),
    registry: ViewRegistry = Depends(get_registry)
):
    """
    Change an issue's status optimistically.

    When the admin console is mounted (an open stream) the change is pushed
    to it at once; otherwise a one-off view is loaded for the request. Either
    way the list is refetched afterwards and returned.
    """
    session = registry.lookup(ADMIN_VIEW, identity.user_id)
    if session is None:
        session = await registry.build(
            ADMIN_VIEW, identity.user_id, lambda: views.load_all_issues(db), realtime=False
        )
        await session.store.refresh()

    outcome = await session.controller.update_status(issue_id, request.status.value)

    return {
        **views.render_admin(outcome.issues),
        "update": {"issue_id": outcome.issue_id, "status": outcome.status, "error": outcome.error},
    }

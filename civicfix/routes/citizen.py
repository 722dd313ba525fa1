from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from pydantic import ValidationError
from typing import Optional
import logging
import uuid

from ..config import get_settings
from ..db_service import DatabaseService
from ..dependencies import get_db_service, get_geocoder, get_registry, get_vote_guard
from ..errors import RemoteOperationError
from ..geocoding import Geocoder
from ..models import Identity, Issue, IssueCreate, Verification, VoteRequest
from ..session_guard import require_session
from ..view_session import ViewRegistry
from ..votes import VoteGuard
from .. import views
from .streaming import stream_view

logger = logging.getLogger(__name__)

router = APIRouter()


def file_extension(filename: Optional[str], default: str = "jpg") -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return default


# ============= Pages =============

@router.get("/dashboard")
async def dashboard(
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service),
    registry: ViewRegistry = Depends(get_registry)
):
    """Welcome view: global counts plus the user's three latest reports."""
    session = registry.lookup("dashboard", identity.user_id)
    if session is not None:
        return views.render_dashboard(session.store.snapshot())
    return views.render_dashboard(await views.load_dashboard(db, identity))


@router.get("/track")
async def track(
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service)
):
    """The user's own reports with their status progress."""
    return views.render_track(await views.load_my_issues(db, identity))


@router.get("/community")
async def community(
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service),
    vote_guard: VoteGuard = Depends(get_vote_guard)
):
    """Feed of unresolved issues from everyone."""
    issues = await views.load_open_issues(db)
    return views.render_community(issues, vote_guard.votes_of(identity.user_id))


@router.get("/community/map")
async def community_map(
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service)
):
    settings = get_settings()
    issues = await views.load_open_issues(db)
    center = (settings.map_center_lat, settings.map_center_lng)
    return views.render_map(issues, center, settings.map_tile_url)


# ============= Streams =============

@router.get("/dashboard/stream")
async def dashboard_stream(
    request: Request,
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service),
    registry: ViewRegistry = Depends(get_registry)
):
    return stream_view(
        request, registry, "dashboard", identity.user_id,
        lambda: views.load_dashboard(db, identity),
        views.render_dashboard
    )


@router.get("/track/stream")
async def track_stream(
    request: Request,
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service),
    registry: ViewRegistry = Depends(get_registry)
):
    return stream_view(
        request, registry, "track", identity.user_id,
        lambda: views.load_my_issues(db, identity),
        views.render_track
    )


@router.get("/community/stream")
async def community_stream(
    request: Request,
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service),
    registry: ViewRegistry = Depends(get_registry),
    vote_guard: VoteGuard = Depends(get_vote_guard)
):
    return stream_view(
        request, registry, "community", identity.user_id,
        lambda: views.load_open_issues(db),
        lambda issues: views.render_community(issues, vote_guard.votes_of(identity.user_id))
    )


# ============= Issue Endpoints =============

@router.post("/api/issues", status_code=status.HTTP_201_CREATED)
async def create_issue(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    location: str = Form(...),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    is_emergency: bool = Form(False),
    photo: Optional[UploadFile] = File(None),
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service)
):
    """Submit a new report, uploading the photo first when one is attached."""
    try:
        issue = IssueCreate(
            title=title,
            description=description,
            category=category,
            location=location,
            latitude=latitude,
            longitude=longitude,
            is_emergency=is_emergency
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    image_url = None
    if photo is not None and photo.filename:
        path = f"{uuid.uuid4().hex}.{file_extension(photo.filename)}"
        try:
            image_url = await db.upload_file(path, await photo.read(), photo.content_type)
        except RemoteOperationError as e:
            # The report still goes through without evidence
            logger.warning(f"Photo upload failed, submitting without image: {e}")

    created = await db.create_issue(issue, identity.user_id, image_url)
    return {"message": "Report submitted", "issue": Issue(**created)}


@router.post("/api/issues/{issue_id}/votes", status_code=status.HTTP_201_CREATED)
async def vote(
    issue_id: int,
    request: VoteRequest,
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service),
    vote_guard: VoteGuard = Depends(get_vote_guard)
):
    """Verify or dispute an issue, once per user."""
    if not vote_guard.record(identity.user_id, issue_id, request.is_dispute):
        raise HTTPException(status_code=409, detail="Already voted!")

    try:
        verification = await db.insert_verification(issue_id, identity.user_id, request.is_dispute)
    except RemoteOperationError:
        vote_guard.forget(identity.user_id, issue_id)
        raise

    return {"message": "Vote recorded", "verification": Verification(**verification)}


@router.get("/api/geocode")
def reverse_geocode(
    lat: float,
    lng: float,
    identity: Identity = Depends(require_session()),
    geocoder: Geocoder = Depends(get_geocoder)
):
    """Address for the reporter's current position."""
    return {"latitude": lat, "longitude": lng, "location": geocoder.reverse(lat, lng)}

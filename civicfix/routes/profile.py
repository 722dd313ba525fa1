from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
import logging

from ..db_service import DatabaseService
from ..dependencies import get_db_service
from ..errors import RemoteOperationError
from ..models import Badge, Identity, Profile, ProfileUpdate
from ..session_guard import require_session
from .. import views
from .citizen import file_extension

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile")
async def get_profile(
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service)
):
    profile = await db.get_profile(identity.user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return views.render_profile(Profile(**profile).model_dump(mode="json"))


@router.patch("/api/profile")
async def update_profile(
    request: ProfileUpdate,
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service)
):
    """Update name, handle and phone."""
    fields = request.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="Nothing to update")

    profile = await db.update_profile(identity.user_id, fields)
    return {"message": "Profile updated!", **views.render_profile(Profile(**profile).model_dump(mode="json"))}


@router.post("/api/profile/avatar")
async def upload_avatar(
    avatar: UploadFile = File(...),
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service)
):
    """Store the avatar under the user's folder, replacing any previous one."""
    path = f"{identity.user_id}/avatar.{file_extension(avatar.filename)}"

    try:
        avatar_url = await db.upload_file(path, await avatar.read(), avatar.content_type, upsert=True)
        profile = await db.update_profile(identity.user_id, {"avatar_url": avatar_url})
    except RemoteOperationError as e:
        logger.error(f"Avatar upload failed for {identity.user_id}: {e}")
        raise HTTPException(status_code=502, detail="Error uploading avatar!")

    return {
        "message": "Avatar updated!",
        "avatar_url": avatar_url,
        **views.render_profile(Profile(**profile).model_dump(mode="json"))
    }


@router.get("/rewards")
async def rewards(
    identity: Identity = Depends(require_session()),
    db: DatabaseService = Depends(get_db_service)
):
    """Points, level progress and badges."""
    profile = await db.get_profile(identity.user_id) or {}
    badges = [Badge(**row).model_dump() for row in await db.list_badges(identity.user_id)]
    return views.render_rewards(profile.get("points") or 0, badges)

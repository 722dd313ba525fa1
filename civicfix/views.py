"""View models for each page, plus the loaders that feed their stores."""
from typing import Any, Dict, List, Optional
import random

from .db_service import DatabaseService
from .models import Identity, IssueStatus
from . import stats

RECENT_ACTIVITY_LIMIT = 3
MAP_JITTER = 0.025

NAV_ITEMS = [
    {"name": "Home", "path": "/dashboard"},
    {"name": "Track", "path": "/track"},
    {"name": "Feed", "path": "/community"},
    {"name": "Profile", "path": "/profile"},
]
NAV_HIDDEN_ON = {"/", "/login", "/signup"}


def navigation(path: str) -> Optional[List[Dict[str, Any]]]:
    """Bottom navigation for mobile, or None on the public pages."""
    if path in NAV_HIDDEN_ON:
        return None
    return [{**item, "active": item["path"] == path} for item in NAV_ITEMS]


# ============= Loaders =============

async def load_dashboard(db: DatabaseService, identity: Identity) -> Dict[str, Any]:
    profile = await db.get_profile(identity.user_id) or {}
    resolved = await db.count_issues(status=IssueStatus.RESOLVED.value)
    pending = await db.count_issues(exclude_status=IssueStatus.RESOLVED.value)
    recent = await db.list_issues(submitted_by=identity.user_id, limit=RECENT_ACTIVITY_LIMIT)

    return {
        "username": profile.get("username") or "Citizen",
        "email": identity.email,
        "stats": {"resolved": resolved, "pending": pending},
        "recent_issues": recent,
    }


async def load_all_issues(db: DatabaseService) -> List[Dict[str, Any]]:
    return await db.list_issues()


async def load_my_issues(db: DatabaseService, identity: Identity) -> List[Dict[str, Any]]:
    return await db.list_issues(submitted_by=identity.user_id)


async def load_open_issues(db: DatabaseService) -> List[Dict[str, Any]]:
    return await db.list_issues(exclude_status=IssueStatus.RESOLVED.value)


# ============= Renderers =============

def render_landing(user_count: int, issue_count: int) -> Dict[str, Any]:
    return {"view": "landing", "stats": {"users": user_count, "issues": issue_count}}


def render_dashboard(state: Dict[str, Any]) -> Dict[str, Any]:
    return {"view": "dashboard", **state, "navigation": navigation("/dashboard")}


def render_admin(issues: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Admin console: every issue plus counts derived from them."""
    return {
        "view": "admin",
        "stats": stats.issue_counts(issues),
        "statuses": [s.value for s in IssueStatus],
        "issues": issues,
    }


def render_track(issues: List[Dict[str, Any]]) -> Dict[str, Any]:
    items = [{**issue, "progress": stats.track_progress(issue.get("status"))} for issue in issues]
    return {"view": "track", "issues": items, "navigation": navigation("/track")}


def render_community(issues: List[Dict[str, Any]], votes: Dict[int, str]) -> Dict[str, Any]:
    items = [{**issue, "my_vote": votes.get(issue.get("id"))} for issue in issues]
    return {"view": "community", "issues": items, "navigation": navigation("/community")}


def map_pins(issues: List[Dict[str, Any]], center: tuple) -> List[Dict[str, Any]]:
    """Marker positions; issues without coordinates are scattered near the centre."""
    pins = []

    for issue in issues:
        lat = issue.get("latitude")
        lng = issue.get("longitude")
        approximate = not lat or not lng

        if approximate:
            rng = random.Random(issue.get("id"))
            lat = center[0] + rng.uniform(-MAP_JITTER, MAP_JITTER)
            lng = center[1] + rng.uniform(-MAP_JITTER, MAP_JITTER)

        pins.append({
            "id": issue.get("id"),
            "title": issue.get("title"),
            "category": issue.get("category"),
            "status": issue.get("status"),
            "latitude": lat,
            "longitude": lng,
            "approximate": approximate,
        })

    return pins


def render_map(issues: List[Dict[str, Any]], center: tuple, tile_url: str) -> Dict[str, Any]:
    return {
        "view": "map",
        "center": list(center),
        "tile_url": tile_url,
        "pins": map_pins(issues, center),
    }


def render_profile(profile: Dict[str, Any]) -> Dict[str, Any]:
    points = profile.get("points") or 0
    return {
        "view": "profile",
        "profile": {
            **profile,
            "full_name": profile.get("full_name") or "Anonymous",
            "mobile_verified": False if profile.get("mobile") else None,
        },
        "level": stats.level_for_points(points),
        "navigation": navigation("/profile"),
    }


def render_rewards(points: int, badges: List[Dict[str, Any]]) -> Dict[str, Any]:
    level = stats.level_for_points(points)
    return {
        "view": "rewards",
        "points": points,
        "level": level,
        "level_title": stats.level_title(level),
        "progress_percent": stats.progress_percent(points),
        "points_to_next_level": stats.points_to_next_level(points),
        "next_level": level + 1,
        "badges": stats.earned_badges(points, badges),
    }

"""Derived values computed from fetched issues and profiles.

Nothing here is persisted; views recompute these on every render.
"""
from typing import Any, Dict, Iterable, List

from .models import IssueStatus

# Lower bound of each level; the last entry caps the top level's bar.
LEVEL_THRESHOLDS = [0, 100, 500, 1000]

LEVEL_TITLES = {
    1: "Citizen Observer",
    2: "Community Activist",
    3: "Civic Champion",
}

BADGES = [
    {"title": "First Report", "desc": "Submitted 1st issue", "icon": "🥇"},
    {"title": "Top Verifier", "desc": "Verified 10 issues", "icon": "✅"},
    {"title": "Problem Solver", "desc": "5 issues resolved", "icon": "🔧"},
    {"title": "Civic Star", "desc": "1000+ Points", "icon": "⭐"},
]

TRACK_PROGRESS = {
    IssueStatus.RESOLVED.value: 100,
    IssueStatus.IN_PROGRESS.value: 50,
}


def issue_counts(issues: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Count resolved, pending (anything not resolved) and emergency issues."""
    counts = {"total": 0, "resolved": 0, "pending": 0, "emergency": 0}

    for issue in issues:
        counts["total"] += 1
        if issue.get("status") == IssueStatus.RESOLVED.value:
            counts["resolved"] += 1
        else:
            counts["pending"] += 1
        if issue.get("is_emergency"):
            counts["emergency"] += 1

    return counts


def level_for_points(points: int) -> int:
    if points < LEVEL_THRESHOLDS[1]:
        return 1
    if points < LEVEL_THRESHOLDS[2]:
        return 2
    return 3


def level_bounds(level: int) -> tuple:
    """Points at which ``level`` starts and the next one begins."""
    return LEVEL_THRESHOLDS[level - 1], LEVEL_THRESHOLDS[level]


def progress_percent(points: int) -> float:
    """Position between the current level's threshold and the next, 0-100."""
    start, end = level_bounds(level_for_points(points))
    percent = (points - start) / (end - start) * 100
    return min(100.0, max(0.0, percent))


def points_to_next_level(points: int) -> int:
    _, end = level_bounds(level_for_points(points))
    return end - points


def level_title(level: int) -> str:
    return LEVEL_TITLES[level]


def earned_badges(points: int, badges: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Badge cards with an ``earned`` flag."""
    owned = {b.get("badge_type") for b in badges}
    earned = {
        "First Report": points > 0,
        "Top Verifier": "Top Verifier" in owned,
        "Problem Solver": "Problem Solver" in owned,
        "Civic Star": points >= LEVEL_THRESHOLDS[-1],
    }
    return [{**badge, "earned": earned[badge["title"]]} for badge in BADGES]


def track_progress(status: str) -> int:
    """Width of the tracking bar for a status."""
    return TRACK_PROGRESS.get(status, 10)

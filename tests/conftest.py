"""Shared fixtures: in-memory stand-ins for the Supabase-backed services."""
import os

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import asyncio
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from civicfix.auth_service import AuthService
from civicfix.errors import RemoteOperationError
from civicfix.geocoding import Geocoder
from civicfix.main import app
from civicfix.models import IssueStatus
from civicfix.view_session import ViewRegistry
from civicfix.votes import VoteGuard

CITIZEN_TOKEN = "citizen-token"
ADMIN_TOKEN = "admin-token"
CITIZEN_ID = "11111111-1111-1111-1111-111111111111"
ADMIN_ID = "22222222-2222-2222-2222-222222222222"


class FakeDatabase:
    """Mimics DatabaseService over plain lists and dicts."""

    def __init__(self):
        self.issues = []
        self.profiles = {}
        self.verifications = []
        self.badges = []
        self.uploads = {}
        self.fail_updates = False
        self.update_gate = None
        self.list_calls = 0
        self._clock = datetime(2025, 1, 1, 9, 0, 0)

    def add_issue(self, title, status=IssueStatus.SUBMITTED.value, submitted_by=CITIZEN_ID, **fields):
        self._clock += timedelta(minutes=1)
        issue = {
            "id": len(self.issues) + 1,
            "title": title,
            "description": fields.get("description", "details"),
            "category": fields.get("category", "Pothole"),
            "location": fields.get("location", "Main Road"),
            "latitude": fields.get("latitude"),
            "longitude": fields.get("longitude"),
            "image_url": fields.get("image_url"),
            "is_emergency": fields.get("is_emergency", False),
            "status": status,
            "submitted_by": submitted_by,
            "created_at": self._clock.isoformat(),
        }
        self.issues.append(issue)
        return issue

    async def list_issues(self, submitted_by=None, exclude_status=None, limit=None):
        self.list_calls += 1
        rows = [dict(i) for i in self.issues]
        if submitted_by:
            rows = [i for i in rows if i["submitted_by"] == submitted_by]
        if exclude_status:
            rows = [i for i in rows if i["status"] != exclude_status]
        rows.sort(key=lambda i: i["created_at"], reverse=True)
        return rows[:limit] if limit else rows

    async def count_issues(self, status=None, exclude_status=None):
        rows = await self.list_issues()
        if status:
            rows = [i for i in rows if i["status"] == status]
        if exclude_status:
            rows = [i for i in rows if i["status"] != exclude_status]
        return len(rows)

    async def create_issue(self, issue, user_id, image_url=None):
        return dict(self.add_issue(
            issue.title,
            submitted_by=user_id,
            description=issue.description,
            category=issue.category.value,
            location=issue.location,
            latitude=issue.latitude,
            longitude=issue.longitude,
            image_url=image_url,
            is_emergency=issue.is_emergency,
        ))

    async def update_issue_status(self, issue_id, status):
        if self.update_gate is not None:
            await self.update_gate.wait()
        if self.fail_updates:
            raise RemoteOperationError("permission denied for table issues")
        for issue in self.issues:
            if issue["id"] == issue_id:
                issue["status"] = status
                return dict(issue)
        raise RemoteOperationError(f"Issue {issue_id} not found")

    async def get_profile(self, user_id):
        profile = self.profiles.get(user_id)
        return dict(profile) if profile else None

    async def count_profiles(self):
        return len(self.profiles)

    async def upsert_profile(self, profile):
        self.profiles[profile["id"]] = dict(profile)
        return dict(profile)

    async def update_profile(self, user_id, fields):
        if user_id not in self.profiles:
            raise RemoteOperationError(f"Profile {user_id} not found")
        self.profiles[user_id].update(fields)
        return dict(self.profiles[user_id])

    async def insert_verification(self, issue_id, user_id, is_dispute):
        row = {"id": len(self.verifications) + 1, "issue_id": issue_id,
               "user_id": user_id, "is_dispute": is_dispute}
        self.verifications.append(row)
        return row

    async def list_badges(self, user_id):
        return [b for b in self.badges if b["user_id"] == user_id]

    async def upload_file(self, path, content, content_type=None, upsert=False):
        self.uploads[path] = content
        return f"http://localhost:54321/storage/v1/object/public/issue-images/{path}"


class FakeAuthClient:
    """The ``auth`` namespace of a Supabase client."""

    def __init__(self, tokens):
        self.tokens = tokens
        self.sign_ups = []
        self.verified = []

    def get_user(self, token):
        if token not in self.tokens:
            raise Exception("invalid JWT: unable to parse or verify signature")
        user_id, email = self.tokens[token]
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email))

    def sign_up(self, credentials):
        self.sign_ups.append(credentials)
        user = SimpleNamespace(id="33333333-3333-3333-3333-333333333333", email=credentials["email"])
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token="new-token"))

    def sign_in_with_password(self, credentials):
        for token, (user_id, email) in self.tokens.items():
            if email == credentials["email"] and credentials["password"] == "correct-horse":
                return SimpleNamespace(
                    user=SimpleNamespace(id=user_id, email=email),
                    session=SimpleNamespace(access_token=token)
                )
        raise Exception("Invalid login credentials")

    def verify_otp(self, params):
        self.verified.append(params)
        if params.get("token_hash") != "valid-hash":
            raise Exception("Email link is invalid or has expired")
        return SimpleNamespace(
            user=SimpleNamespace(id=CITIZEN_ID, email="asha@example.com"),
            session=SimpleNamespace(access_token="fresh-token")
        )


class FakeChannel:
    def __init__(self, name):
        self.name = name
        self.callbacks = []
        self.subscribed = False

    def on_postgres_changes(self, event, callback, table="*", schema="public", filter=None):
        self.callbacks.append({"event": event, "callback": callback, "table": table, "schema": schema})
        return self

    async def subscribe(self):
        self.subscribed = True
        return self

    def emit(self, event_type="UPDATE"):
        for entry in self.callbacks:
            entry["callback"]({"data": {"type": event_type, "table": entry["table"]}})


class FakeRealtimeClient:
    def __init__(self):
        self.channels = []
        self.removed = []

    def channel(self, name):
        channel = FakeChannel(name)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel):
        self.removed.append(channel)


@pytest.fixture
def fake_db():
    db = FakeDatabase()
    db.profiles[CITIZEN_ID] = {
        "id": CITIZEN_ID, "full_name": "Asha Rao", "username": "asha",
        "mobile": "9876543210", "avatar_url": None, "role": "citizen", "points": 450,
    }
    db.profiles[ADMIN_ID] = {
        "id": ADMIN_ID, "full_name": "Ward Officer", "username": "officer",
        "mobile": "9123456780", "avatar_url": None, "role": "admin", "points": 0,
    }
    return db


@pytest.fixture
def fake_auth_client():
    return FakeAuthClient({
        CITIZEN_TOKEN: (CITIZEN_ID, "asha@example.com"),
        ADMIN_TOKEN: (ADMIN_ID, "officer@example.com"),
    })


@pytest.fixture
def client_factory(fake_auth_client):
    return MagicMock(return_value=SimpleNamespace(auth=fake_auth_client))


@pytest.fixture
def realtime_client():
    return FakeRealtimeClient()


@pytest.fixture
def registry(fake_db, realtime_client):
    async def provider():
        return realtime_client
    return ViewRegistry(fake_db, client_provider=provider)


@pytest.fixture
async def client(fake_db, client_factory, registry):
    """Test client wired to the in-memory services."""
    app.state.db_service = fake_db
    app.state.auth_service = AuthService(client_factory, fake_db, "http://test")
    app.state.registry = registry
    app.state.vote_guard = VoteGuard()
    app.state.geocoder = Geocoder("http://geocoder.test/reverse")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


async def settle():
    """Let scheduled callbacks and tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)

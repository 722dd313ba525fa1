"""Tests for reporting, tracking and community voting."""
from unittest.mock import MagicMock, patch

import pytest

from civicfix.errors import RemoteOperationError

from conftest import CITIZEN_ID, CITIZEN_TOKEN, bearer


def report_form(**overrides):
    form = {
        "title": "Broken streetlight",
        "description": "Light out near the bus stop",
        "category": "Electricity",
        "location": "Station Road",
    }
    form.update(overrides)
    return form


@pytest.mark.asyncio
async def test_report_without_photo_appears_in_my_reports(client, fake_db):
    response = await client.post("/api/issues", data=report_form(), headers=bearer(CITIZEN_TOKEN))

    assert response.status_code == 201
    created = response.json()["issue"]
    assert created["image_url"] is None
    assert created["submitted_by"] == CITIZEN_ID

    tracked = await client.get("/track", headers=bearer(CITIZEN_TOKEN))

    issues = tracked.json()["issues"]
    assert len(issues) == 1
    assert issues[0]["title"] == "Broken streetlight"
    assert issues[0]["category"] == "Electricity"
    assert issues[0]["status"] == "Submitted"
    assert issues[0]["progress"] == 10


@pytest.mark.asyncio
async def test_report_with_photo_uploads_first(client, fake_db):
    response = await client.post(
        "/api/issues",
        data=report_form(is_emergency="true", latitude="23.35", longitude="85.32"),
        files={"photo": ("evidence.PNG", b"\x89PNG...", "image/png")},
        headers=bearer(CITIZEN_TOKEN)
    )

    assert response.status_code == 201
    created = response.json()["issue"]
    [path] = fake_db.uploads
    assert path.endswith(".png")
    assert created["image_url"].endswith(path)
    assert created["is_emergency"] is True
    assert created["latitude"] == 23.35


@pytest.mark.asyncio
async def test_report_survives_failed_photo_upload(client, fake_db):
    async def reject(*args, **kwargs):
        raise RemoteOperationError("bucket not found")
    fake_db.upload_file = reject

    response = await client.post(
        "/api/issues",
        data=report_form(),
        files={"photo": ("evidence.jpg", b"jpeg", "image/jpeg")},
        headers=bearer(CITIZEN_TOKEN)
    )

    assert response.status_code == 201
    assert response.json()["issue"]["image_url"] is None


@pytest.mark.asyncio
async def test_report_with_unknown_category_rejected(client, fake_db):
    response = await client.post("/api/issues", data=report_form(category="Noise"), headers=bearer(CITIZEN_TOKEN))

    assert response.status_code == 422
    assert fake_db.issues == []


@pytest.mark.asyncio
async def test_insert_failure_is_reported(client, fake_db):
    async def reject(*args, **kwargs):
        raise RemoteOperationError("new row violates row-level security policy")
    fake_db.create_issue = reject

    response = await client.post("/api/issues", data=report_form(), headers=bearer(CITIZEN_TOKEN))

    assert response.status_code == 502
    assert "row-level security" in response.json()["detail"]


@pytest.mark.asyncio
async def test_track_shows_only_my_issues(client, fake_db):
    fake_db.add_issue("Mine", status="In Progress")
    fake_db.add_issue("Not mine", submitted_by="someone-else")

    response = await client.get("/track", headers=bearer(CITIZEN_TOKEN))

    issues = response.json()["issues"]
    assert [i["title"] for i in issues] == ["Mine"]
    assert issues[0]["progress"] == 50


@pytest.mark.asyncio
async def test_community_hides_resolved(client, fake_db):
    fake_db.add_issue("Open", submitted_by="someone-else")
    fake_db.add_issue("Done", status="Resolved")

    response = await client.get("/community", headers=bearer(CITIZEN_TOKEN))

    assert [i["title"] for i in response.json()["issues"]] == ["Open"]


@pytest.mark.asyncio
async def test_vote_once_per_issue(client, fake_db):
    issue = fake_db.add_issue("Garbage pile", submitted_by="someone-else")

    first = await client.post(f"/api/issues/{issue['id']}/votes", json={"is_dispute": False}, headers=bearer(CITIZEN_TOKEN))
    second = await client.post(f"/api/issues/{issue['id']}/votes", json={"is_dispute": True}, headers=bearer(CITIZEN_TOKEN))

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "Already voted!"
    assert fake_db.verifications == [
        {"id": 1, "issue_id": issue["id"], "user_id": CITIZEN_ID, "is_dispute": False}
    ]

    feed = await client.get("/community", headers=bearer(CITIZEN_TOKEN))
    assert feed.json()["issues"][0]["my_vote"] == "verify"


@pytest.mark.asyncio
async def test_vote_requires_login(client, fake_db):
    issue = fake_db.add_issue("Garbage pile")

    response = await client.post(f"/api/issues/{issue['id']}/votes", json={"is_dispute": False})

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert fake_db.verifications == []


@pytest.mark.asyncio
async def test_map_pins_fall_back_near_centre(client, fake_db):
    fake_db.add_issue("Located", latitude=23.40, longitude=85.30)
    fake_db.add_issue("Old data")

    response = await client.get("/community/map", headers=bearer(CITIZEN_TOKEN))

    data = response.json()
    assert data["tile_url"].startswith("https://")
    pins = {p["title"]: p for p in data["pins"]}
    assert pins["Located"]["latitude"] == 23.40
    assert not pins["Located"]["approximate"]
    assert pins["Old data"]["approximate"]
    assert abs(pins["Old data"]["latitude"] - data["center"][0]) <= 0.025
    assert abs(pins["Old data"]["longitude"] - data["center"][1]) <= 0.025


@pytest.mark.asyncio
async def test_geocode_endpoint(client):
    response_mock = MagicMock()
    response_mock.json.return_value = {"display_name": "Station Road, Ranchi"}

    with patch("civicfix.geocoding.requests.get", return_value=response_mock):
        response = await client.get("/api/geocode", params={"lat": 23.34, "lng": 85.31}, headers=bearer(CITIZEN_TOKEN))

    assert response.json()["location"] == "Station Road, Ranchi"

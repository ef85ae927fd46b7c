"""Tests for the JSON API routes and error mapping."""

import pytest
from httpx import AsyncClient

from app.core.errors import StoreUnavailable


async def _create_profile(client: AsyncClient, user_id: str = "u1", **body) -> dict:
    resp = await client.post(f"/api/profiles/{user_id}", json=body)
    assert resp.status_code == 200, f"Create profile failed: {resp.text}"
    return resp.json()


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_catalog_listings(client: AsyncClient):
    quizzes = (await client.get("/api/catalog/quizzes")).json()
    assert [q["id"] for q in quizzes] == ["ten", "two"]

    quiz = await client.get("/api/catalog/quizzes/two")
    assert quiz.status_code == 200
    assert len(quiz.json()["questions"]) == 2
    assert (await client.get("/api/catalog/quizzes/nope")).status_code == 404

    badges = (await client.get("/api/catalog/badges")).json()
    assert {b["id"] for b in badges} == {"perfect_score", "four_habits"}

    monthly = (await client.get("/api/catalog/habits", params={"frequency": "monthly"})).json()
    assert [h["id"] for h in monthly] == ["backupData"]


@pytest.mark.asyncio
async def test_tip_of_the_day(client: AsyncClient):
    resp = await client.get("/api/tips/today", params={"day": "2026-01-01"})
    assert resp.status_code == 200
    assert resp.json()["tip"] == "Tip two"  # day 1 of the year, two tips


@pytest.mark.asyncio
async def test_create_and_get_profile(client: AsyncClient):
    created = await _create_profile(client, email="kim@example.com")
    assert created["display_name"] == "kim"
    assert created["level"] == 1

    resp = await client.get("/api/profiles/u1")
    assert resp.status_code == 200
    assert resp.json()["user_id"] == "u1"


@pytest.mark.asyncio
async def test_missing_profile_is_404(client: AsyncClient):
    resp = await client.get("/api/profiles/ghost")
    assert resp.status_code == 404
    assert resp.json()["error"] == "ProfileNotFound"


@pytest.mark.asyncio
async def test_submit_perfect_quiz(client: AsyncClient):
    await _create_profile(client)

    resp = await client.post("/api/profiles/u1/quizzes/ten/results", json={"answers": [0] * 10})

    assert resp.status_code == 200
    data = resp.json()
    assert data["result"]["percentage"] == 100
    assert data["points_awarded"] == 175
    assert [b["id"] for b in data["awarded_badges"]] == ["perfect_score"]
    assert data["profile"]["badges"][0]["earned_at"]

    history = (await client.get("/api/profiles/u1/quizzes/history")).json()
    assert len(history) == 1
    assert history[0]["answers"] == [0] * 10


@pytest.mark.asyncio
async def test_submit_quiz_errors(client: AsyncClient):
    await _create_profile(client)

    missing = await client.post("/api/profiles/u1/quizzes/nope/results", json={"answers": [0]})
    assert missing.status_code == 404

    short = await client.post("/api/profiles/u1/quizzes/two/results", json={"answers": [0]})
    assert short.status_code == 400
    assert short.json()["error"] == "InvalidAnswer"

    unanswered = await client.post("/api/profiles/u1/quizzes/two/results", json={"answers": [0, None]})
    assert unanswered.status_code == 400
    assert unanswered.json()["error"] == "NoAnswerSelected"


@pytest.mark.asyncio
async def test_habit_toggle_and_today(client: AsyncClient):
    await _create_profile(client)

    resp = await client.put("/api/profiles/u1/habits/lockScreen", json={"enabled": True})
    assert resp.status_code == 200
    assert resp.json()["points_awarded"] == 10

    today = (await client.get("/api/profiles/u1/habits/today", params={"day": "2026-10-18"})).json()
    assert {h["id"]: h["enabled"] for h in today}["lockScreen"] is True

    unknown = await client.put("/api/profiles/u1/habits/unicornMode", json={"enabled": True})
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_points_endpoints(client: AsyncClient):
    await _create_profile(client)

    resp = await client.post("/api/profiles/u1/points", json={"amount": 500, "reason": "event"})
    assert resp.status_code == 200
    assert resp.json()["profile"]["level"] == 2

    bad = await client.post("/api/profiles/u1/points", json={"amount": -3, "reason": "oops"})
    assert bad.status_code == 400
    assert bad.json()["error"] == "InvalidAmount"

    history = (await client.get("/api/profiles/u1/points/history")).json()
    assert [t["amount"] for t in history] == [500]


@pytest.mark.asyncio
async def test_evaluate_dashboard_and_leaderboard(client: AsyncClient):
    await _create_profile(client, "a", display_name="Ann")
    await _create_profile(client, "b", display_name="Ben")
    await client.post("/api/profiles/b/points", json={"amount": 40, "reason": "seed"})

    evaluated = await client.post("/api/profiles/a/badges/evaluate")
    assert evaluated.status_code == 200
    assert evaluated.json()["awarded_badges"] == []

    dashboard = (await client.get("/api/profiles/b/dashboard")).json()
    assert dashboard["stats"]["total_points"] == 40
    assert dashboard["security_score"] == 0

    board = (await client.get("/api/leaderboard")).json()
    assert [(e["rank"], e["display_name"]) for e in board] == [(1, "Ben"), (2, "Ann")]


@pytest.mark.asyncio
async def test_store_unavailable_is_503(client: AsyncClient, service, monkeypatch):
    async def broken(user_id):
        raise StoreUnavailable("database is locked")

    monkeypatch.setattr(service.store, "get", broken)

    resp = await client.get("/api/profiles/u1")
    assert resp.status_code == 503
    assert resp.json()["error"] == "StoreUnavailable"

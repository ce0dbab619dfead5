from __future__ import annotations

from datetime import timedelta

import pytest
import pytest_asyncio

from daybook.app import create_app
from daybook.app.services.container import AppServices


@pytest_asyncio.fixture
async def app(db, streak_service, entry_service):
    services = AppServices(
        db=db,
        streak_service=streak_service,
        entry_service=entry_service,
    )
    application = create_app(services)
    async with application.test_app() as test_app:
        yield test_app


async def _client_for(app, user_id: str | None):
    client = app.test_client()
    if user_id is not None:
        async with client.session_transaction() as sess:
            sess["uid"] = user_id
    return client


def _path(day, username: str = "ada") -> str:
    return f"/api/entries/{username}/{day.year}/{day.month}/{day.day}"


async def test_create_entry_returns_streaks(app, user_id, today):
    client = await _client_for(app, user_id)

    response = await client.post(
        _path(today),
        json={"content": "wrote a little today", "is_private": False, "word_count": 99},
    )

    assert response.status_code == 201
    body = await response.get_json()
    assert body["entry"]["word_count"] == 4
    assert body["currentStreak"] == 1
    assert body["highestStreak"] == 1
    assert body["totalWords"] == 4
    assert body["totalEntries"] == 1


async def test_requires_signed_in_user(app, user_id, today):
    client = await _client_for(app, None)

    response = await client.post(_path(today), json={"content": "hi"})

    assert response.status_code == 401


async def test_cannot_write_someone_elses_journal(app, db, user_id, today):
    other_id = await db.users.create_user("grace")
    client = await _client_for(app, other_id)

    response = await client.post(_path(today), json={"content": "hi"})

    assert response.status_code == 403


@pytest.mark.parametrize(
    "payload",
    [None, {"content": 5}, {"content": "ok", "is_private": "yes"}],
)
async def test_rejects_malformed_payload(app, user_id, today, payload):
    client = await _client_for(app, user_id)

    response = await client.post(_path(today), json=payload)

    assert response.status_code == 400


async def test_rejects_invalid_and_future_dates(app, user_id, today):
    client = await _client_for(app, user_id)

    invalid = await client.post("/api/entries/ada/2025/2/30", json={"content": "x"})
    future = await client.post(_path(today + timedelta(days=1)), json={"content": "x"})

    assert invalid.status_code == 400
    assert future.status_code == 400


async def test_duplicate_create_conflicts(app, user_id, today):
    client = await _client_for(app, user_id)
    await client.post(_path(today), json={"content": "first"})

    response = await client.post(_path(today), json={"content": "again"})

    assert response.status_code == 409


async def test_blank_update_deletes_entry(app, user_id, today):
    client = await _client_for(app, user_id)
    await client.post(_path(today - timedelta(days=1)), json={"content": "yesterday"})
    await client.post(_path(today), json={"content": "today"})

    response = await client.put(_path(today), json={"content": "   "})

    assert response.status_code == 200
    body = await response.get_json()
    assert body["deleted"] is True
    assert body["entry"] is None
    assert body["currentStreak"] == 1
    assert body["highestStreak"] == 2
    missing = await client.get(_path(today))
    assert missing.status_code == 404


async def test_private_entry_hidden_from_others(app, db, user_id, today):
    owner = await _client_for(app, user_id)
    await owner.post(_path(today), json={"content": "secret", "is_private": True})
    other_id = await db.users.create_user("grace")
    other = await _client_for(app, other_id)

    assert (await owner.get(_path(today))).status_code == 200
    assert (await other.get(_path(today))).status_code == 404


async def test_delete_entry(app, user_id, today):
    client = await _client_for(app, user_id)
    await client.post(_path(today), json={"content": "short lived"})

    response = await client.delete(_path(today))

    assert response.status_code == 200
    body = await response.get_json()
    assert body["totalEntries"] == 0
    assert body["currentStreak"] == 0


async def test_profile_reports_fresh_streaks(app, user_id, today, clock):
    client = await _client_for(app, user_id)
    await client.post(_path(today - timedelta(days=1)), json={"content": "one"})
    await client.post(_path(today), json={"content": "two"})

    clock.advance(2)
    response = await client.get("/api/profile/ada")

    assert response.status_code == 200
    body = await response.get_json()
    assert body["username"] == "ada"
    assert body["stats"] == {
        "currentStreak": 0,
        "highestStreak": 2,
        "totalWords": 2,
        "totalEntries": 2,
    }


async def test_unknown_profile(app):
    client = await _client_for(app, None)

    response = await client.get("/api/profile/nobody")

    assert response.status_code == 404


async def test_heatmap(app, user_id, today):
    client = await _client_for(app, user_id)
    await client.post(_path(today), json={"content": "three small words"})

    response = await client.get("/api/entries/ada/heatmap")
    bad = await client.get("/api/entries/ada/heatmap?year=soon")

    assert response.status_code == 200
    body = await response.get_json()
    assert body["max_count"] == 3
    assert len(body["months"]) == 12
    assert bad.status_code == 400


async def test_healthz(app):
    client = await _client_for(app, None)

    response = await client.get("/healthz")

    assert response.status_code == 200


async def test_heatmap_year_bounds(app, user_id):
    client = await _client_for(app, user_id)

    last = await client.get("/api/entries/ada/heatmap?year=9998")
    beyond = await client.get("/api/entries/ada/heatmap?year=9999")

    assert last.status_code == 200
    body = await last.get_json()
    assert body["end"] == "9998-12-31"
    assert beyond.status_code == 400


async def test_heatmap_all_reaches_first_entry(app, user_id, today):
    client = await _client_for(app, user_id)
    first = today.replace(year=today.year - 2, month=1, day=5)
    await client.post(_path(first), json={"content": "long ago"})

    response = await client.get("/api/entries/ada/heatmap?year=all")

    assert response.status_code == 200
    body = await response.get_json()
    assert body["start"] == first.replace(day=1).isoformat()
    assert len(body["months"]) == 24 + today.month
    assert body["max_count"] == 2


async def test_deleted_user_with_cached_session_cannot_write(app, db, user_id, today):
    client = await _client_for(app, user_id)
    assert (await client.get("/api/profile")).status_code == 200

    await db.users.delete_user(user_id)
    response = await client.post(_path(today), json={"content": "still here?"})

    assert response.status_code == 404

from __future__ import annotations

import sqlite3
from datetime import timedelta

import pytest

from daybook.app.services.errors import StreakUpdateError, UserNotFoundError
from daybook.app.services.journal_config import StreakConfig
from daybook.app.services.streak_service import StreakService, UserSummary
from daybook.app.services.streaks import StreakResult


async def _seed(db, user_id, today, *offsets, words: str = "one two three"):
    for offset in offsets:
        await db.entries.insert_entry(
            user_id, today - timedelta(days=offset), words, len(words.split())
        )


async def test_calculate_streaks_does_not_write(db, streak_service, user_id, today):
    await _seed(db, user_id, today, 2, 1, 0)

    result = await streak_service.calculate_streaks(user_id)

    assert result == StreakResult(3, 3)
    stored = await db.users.get_summary(user_id)
    assert stored["current_streak"] == 0
    assert stored["highest_streak"] == 0
    assert stored["streaks_updated_at"] is None


async def test_calculate_streaks_for_new_user_is_zero(streak_service, user_id):
    assert await streak_service.calculate_streaks(user_id) == StreakResult(0, 0)


async def test_update_streaks_persists_summary(db, streak_service, user_id, today):
    await _seed(db, user_id, today, 6, 5, 4, 1, 0, words="a b c d")

    result = await streak_service.update_streaks(user_id)

    assert result == StreakResult(2, 3)
    stored = await db.users.get_summary(user_id)
    assert stored["current_streak"] == 2
    assert stored["highest_streak"] == 3
    assert stored["total_entries"] == 5
    assert stored["total_words"] == 20
    assert stored["highest_streak_year"] == today.year


async def test_blank_rows_are_not_counted(db, streak_service, user_id, today):
    await _seed(db, user_id, today, 1)
    await db.entries.insert_entry(user_id, today, " \n\t ", 0)

    summary = await streak_service.refresh_summary(user_id)

    assert summary == UserSummary(
        current_streak=1, highest_streak=1, total_words=3, total_entries=1
    )


async def test_stored_highest_never_decreases(
    db, streak_service, entry_service, user_id, today
):
    await _seed(db, user_id, today, 10, 9, 8, 7, 0)
    first = await streak_service.update_streaks(user_id)
    assert first == StreakResult(1, 4)

    for offset in (10, 9, 8):
        await entry_service.delete_entry(user_id, today - timedelta(days=offset))

    assert await streak_service.calculate_streaks(user_id) == StreakResult(1, 1)
    assert await streak_service.update_streaks(user_id) == StreakResult(1, 4)


async def test_calendar_year_scope_resets_previous_years_best(db, user_id, clock):
    service = StreakService(
        db,
        StreakConfig(highest_scope="calendar_year"),
        today_provider=clock,
    )
    await db.users.write_summary(
        user_id,
        current_streak=0,
        highest_streak=12,
        highest_streak_year=clock.today.year - 1,
        total_words=0,
        total_entries=0,
    )
    await _seed(db, user_id, clock.today, 1, 0)

    assert await service.update_streaks(user_id) == StreakResult(2, 2)


async def test_calendar_year_scope_keeps_this_years_best(db, user_id, clock):
    service = StreakService(
        db,
        StreakConfig(highest_scope="calendar_year"),
        today_provider=clock,
    )
    await db.users.write_summary(
        user_id,
        current_streak=0,
        highest_streak=6,
        highest_streak_year=clock.today.year,
        total_words=0,
        total_entries=0,
    )
    await _seed(db, user_id, clock.today, 0)

    assert await service.update_streaks(user_id) == StreakResult(1, 6)


async def test_unknown_user_raises(streak_service):
    with pytest.raises(UserNotFoundError):
        await streak_service.update_streaks("01HZZZZZZZZZZZZZZZZZZZZZZZ")
    with pytest.raises(UserNotFoundError):
        await streak_service.calculate_streaks("01HZZZZZZZZZZZZZZZZZZZZZZZ")


async def test_summary_read_recomputes_broken_streak(
    db, streak_service, user_id, clock
):
    await _seed(db, user_id, clock.today, 1, 0)
    assert await streak_service.update_streaks(user_id) == StreakResult(2, 2)

    clock.advance(3)
    summary = await streak_service.get_summary(user_id)

    assert summary.streaks == StreakResult(0, 2)
    stored = await db.users.get_summary(user_id)
    assert stored["current_streak"] == 0


async def test_summary_read_without_recompute_returns_stored(db, user_id, clock):
    service = StreakService(
        db,
        StreakConfig(recompute_on_read=False),
        today_provider=clock,
    )
    await _seed(db, user_id, clock.today, 1, 0)
    await service.update_streaks(user_id)

    clock.advance(3)
    summary = await service.get_summary(user_id)

    assert summary.streaks == StreakResult(2, 2)


async def test_failed_summary_write_keeps_previous_values(
    db, streak_service, user_id, today, monkeypatch
):
    await _seed(db, user_id, today, 0)
    await streak_service.update_streaks(user_id)
    await _seed(db, user_id, today, 1, 2)

    async def _broken_write(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(db.users, "write_summary", _broken_write)

    with pytest.raises(StreakUpdateError):
        await streak_service.update_streaks(user_id)

    monkeypatch.undo()
    stored = await db.users.get_summary(user_id)
    assert stored["current_streak"] == 1
    assert stored["total_entries"] == 1

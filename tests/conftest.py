from __future__ import annotations

from datetime import date, timedelta

import pytest
import pytest_asyncio

from daybook.app.services.entry_service import EntryService
from daybook.app.services.journal_config import EntryLimits, StreakConfig
from daybook.app.services.streak_service import StreakService
from daybook.persistence.local_db import LocalDB

TODAY = date(2025, 3, 12)


class FixedClock:
    """Callable stand-in for ``server_today`` that tests can move forward."""

    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1) -> None:
        self.today += timedelta(days=days)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clock(today: date) -> FixedClock:
    return FixedClock(today)


@pytest.fixture
def streak_config() -> StreakConfig:
    return StreakConfig()


@pytest_asyncio.fixture
async def db(tmp_path):
    database = LocalDB(tmp_path / "daybook.sqlite3")
    await database.init()
    try:
        yield database
    finally:
        await database.close()


@pytest.fixture
def streak_service(db, streak_config, clock) -> StreakService:
    return StreakService(db, streak_config, today_provider=clock)


@pytest.fixture
def entry_service(db, streak_service) -> EntryService:
    return EntryService(db, streak_service, EntryLimits(max_entry_length=500))


@pytest_asyncio.fixture
async def user_id(db) -> str:
    return await db.users.create_user("ada", email="ada@example.com")

"""Keep a user's stored streak and word aggregates in step with their entries."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from aiosqlitepool import PoolClosedError, PoolConnectionAcquireTimeoutError

from daybook.app.db.base import run_in_transaction
from daybook.app.services.errors import StreakUpdateError, UserNotFoundError
from daybook.app.services.journal_config import StreakConfig
from daybook.app.services.streaks import StreakResult, calculate_streaks
from daybook.app.services.time import server_today
from daybook.persistence.local_db import LocalDB
from daybook.settings import HIGHEST_SCOPE_CALENDAR_YEAR

logger = logging.getLogger(__name__)

DATA_ACCESS_ERRORS = (
    sqlite3.Error,
    PoolClosedError,
    PoolConnectionAcquireTimeoutError,
)


@dataclass(frozen=True, slots=True)
class UserSummary:
    current_streak: int = 0
    highest_streak: int = 0
    total_words: int = 0
    total_entries: int = 0

    @property
    def streaks(self) -> StreakResult:
        return StreakResult(self.current_streak, self.highest_streak)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "UserSummary":
        return cls(
            current_streak=int(row.get("current_streak") or 0),
            highest_streak=int(row.get("highest_streak") or 0),
            total_words=int(row.get("total_words") or 0),
            total_entries=int(row.get("total_entries") or 0),
        )

    def as_dict(self) -> dict[str, int]:
        return {
            **self.streaks.as_dict(),
            "totalWords": self.total_words,
            "totalEntries": self.total_entries,
        }


class StreakService:
    """Recompute streaks from the full entry history and persist them.

    Every refresh re-reads all of the user's non-blank entries instead of
    adjusting stored counters, so edits, deletions and backfills all take the
    same path.
    """

    def __init__(
        self,
        db: LocalDB,
        config: StreakConfig | None = None,
        *,
        today_provider: Callable[[], date] = server_today,
    ) -> None:
        self._db = db
        self._config = config or StreakConfig()
        self._today = today_provider

    @property
    def config(self) -> StreakConfig:
        return self._config

    def today(self) -> date:
        return self._today()

    async def calculate_streaks(self, user_id: str) -> StreakResult:
        """Compute streaks for *user_id* without writing anything."""

        try:
            user = await self._db.users.get_user_by_id(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            rows = await self._db.entries.qualifying_entries(user_id)
        except DATA_ACCESS_ERRORS as exc:
            raise StreakUpdateError(
                f"could not read entries for user {user_id}"
            ) from exc
        return calculate_streaks(
            (day for day, _ in rows),
            self.today(),
            scope=self._config.highest_scope,
        )

    async def update_streaks(self, user_id: str, *, conn=None) -> StreakResult:
        """Recompute and persist streaks, returning the stored values."""

        summary = await self.refresh_summary(user_id, conn=conn)
        return summary.streaks

    async def refresh_summary(self, user_id: str, *, conn=None) -> UserSummary:
        """Rewrite the user's aggregate fields from their entries.

        With ``conn`` the work joins the caller's transaction; otherwise it
        runs in a transaction of its own. Either way a failure leaves the
        previously stored values untouched and raises.
        """

        try:
            if conn is not None:
                return await self._refresh(user_id, conn)
            async with self._db.require_pool().connection() as owned:
                return await run_in_transaction(owned, self._refresh, user_id, owned)
        except DATA_ACCESS_ERRORS as exc:
            logger.exception("Streak refresh failed for user %s", user_id)
            raise StreakUpdateError(
                f"could not refresh streaks for user {user_id}"
            ) from exc

    async def get_summary(self, user_id: str) -> UserSummary:
        """Summary for a profile view.

        When ``recompute_on_read`` is enabled the stored values are refreshed
        first, so a streak broken by a missed day reads as zero right away.
        """

        if self._config.recompute_on_read:
            return await self.refresh_summary(user_id)
        try:
            row = await self._db.users.get_summary(user_id)
        except DATA_ACCESS_ERRORS as exc:
            raise StreakUpdateError(
                f"could not read summary for user {user_id}"
            ) from exc
        if row is None:
            raise UserNotFoundError(user_id)
        return UserSummary.from_row(row)

    async def _refresh(self, user_id: str, conn) -> UserSummary:
        stored = await self._db.users.get_summary(user_id, conn=conn)
        if stored is None:
            raise UserNotFoundError(user_id)

        rows = await self._db.entries.qualifying_entries(user_id, conn=conn)
        today = self.today()
        result = calculate_streaks(
            (day for day, _ in rows),
            today,
            scope=self._config.highest_scope,
        )

        highest = max(result.highest_streak, self._stored_highest(stored, today))
        summary = UserSummary(
            current_streak=result.current_streak,
            highest_streak=highest,
            total_words=sum(words for _, words in rows),
            total_entries=len(rows),
        )
        await self._db.users.write_summary(
            user_id,
            current_streak=summary.current_streak,
            highest_streak=summary.highest_streak,
            highest_streak_year=today.year,
            total_words=summary.total_words,
            total_entries=summary.total_entries,
            conn=conn,
        )
        logger.debug(
            "Refreshed streaks for user %s: current=%s highest=%s entries=%s",
            user_id,
            summary.current_streak,
            summary.highest_streak,
            summary.total_entries,
        )
        return summary

    def _stored_highest(self, stored: dict[str, Any], today: date) -> int:
        previous = int(stored.get("highest_streak") or 0)
        if self._config.highest_scope != HIGHEST_SCOPE_CALENDAR_YEAR:
            return previous
        # A best run from an earlier year does not carry into this one.
        if stored.get("highest_streak_year") != today.year:
            return 0
        return previous


__all__ = ["StreakService", "UserSummary", "DATA_ACCESS_ERRORS"]

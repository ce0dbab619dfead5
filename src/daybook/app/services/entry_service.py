"""Entry writes and the summary refresh that follows each of them."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable

from daybook.app.db.base import run_in_transaction
from daybook.app.services.errors import (
    EntryExistsError,
    EntryNotFoundError,
    EntryValidationError,
    FutureEntryError,
    JournalError,
    StreakUpdateError,
    UserNotFoundError,
)
from daybook.app.services.journal_config import EntryLimits
from daybook.app.services.streak_service import (
    DATA_ACCESS_ERRORS,
    StreakService,
    UserSummary,
)
from daybook.app.util.text import count_words, is_blank
from daybook.persistence.local_db import LocalDB

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EntryMutation:
    """Outcome of a write: the entry as stored (``None`` if removed) and the
    refreshed user summary."""

    entry: dict[str, Any] | None
    summary: UserSummary
    deleted: bool = False

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "entry": self.entry,
            "deleted": self.deleted,
        }
        payload.update(self.summary.as_dict())
        return payload


class EntryService:
    """Validate and persist entries, refreshing the owner's summary each time.

    The entry change, the re-read of the owner's entries and the summary write
    share one transaction: if any step fails the entry change is rolled back
    and the error propagates.
    """

    def __init__(
        self,
        db: LocalDB,
        streaks: StreakService,
        limits: EntryLimits | None = None,
    ) -> None:
        self._db = db
        self._streaks = streaks
        self._limits = limits or EntryLimits()

    async def get_entry(
        self,
        user_id: str,
        day: date,
        *,
        viewer_id: str | None = None,
    ) -> dict[str, Any]:
        entry = await self._db.entries.get_entry(user_id, day)
        if entry is None:
            raise EntryNotFoundError(f"no entry for {day.isoformat()}")
        if entry["is_private"] and viewer_id != user_id:
            # Private entries look absent to everyone but their owner.
            raise EntryNotFoundError(f"no entry for {day.isoformat()}")
        return entry

    async def create_entry(
        self,
        user_id: str,
        day: date,
        content: str,
        *,
        is_private: bool = False,
    ) -> EntryMutation:
        self._validate_day(day)
        self._validate_length(content)
        if is_blank(content):
            raise EntryValidationError("Cannot create an empty journal entry")

        async def _create(conn) -> EntryMutation:
            if await self._db.entries.get_entry(user_id, day, conn=conn):
                raise EntryExistsError(f"entry already exists for {day.isoformat()}")
            try:
                await self._db.entries.insert_entry(
                    user_id, day, content, count_words(content), is_private, conn=conn
                )
            except sqlite3.IntegrityError as exc:
                raise EntryExistsError(
                    f"entry already exists for {day.isoformat()}"
                ) from exc
            return await self._finish(user_id, day, conn)

        return await self._mutate(user_id, "create", _create)

    async def update_entry(
        self,
        user_id: str,
        day: date,
        content: str,
        *,
        is_private: bool = False,
    ) -> EntryMutation:
        """Replace an entry's content; blank content removes the entry."""

        self._validate_day(day)
        self._validate_length(content)

        async def _update(conn) -> EntryMutation:
            existing = await self._db.entries.get_entry(user_id, day, conn=conn)
            if existing is None:
                raise EntryNotFoundError(f"no entry for {day.isoformat()}")
            if is_blank(content):
                await self._db.entries.delete_entry(user_id, day, conn=conn)
                return await self._finish(user_id, day, conn, deleted=True)
            await self._db.entries.update_entry(
                user_id, day, content, count_words(content), is_private, conn=conn
            )
            return await self._finish(user_id, day, conn)

        return await self._mutate(user_id, "update", _update)

    async def save_entry(
        self,
        user_id: str,
        day: date,
        content: str,
        *,
        is_private: bool = False,
    ) -> EntryMutation:
        """Create or update the entry for *day*, whichever applies."""

        existing = await self._db.entries.get_entry(user_id, day)
        if existing is None:
            return await self.create_entry(user_id, day, content, is_private=is_private)
        return await self.update_entry(user_id, day, content, is_private=is_private)

    async def delete_entry(self, user_id: str, day: date) -> EntryMutation:
        async def _delete(conn) -> EntryMutation:
            if not await self._db.entries.delete_entry(user_id, day, conn=conn):
                raise EntryNotFoundError(f"no entry for {day.isoformat()}")
            return await self._finish(user_id, day, conn, deleted=True)

        return await self._mutate(user_id, "delete", _delete)

    async def _finish(
        self, user_id: str, day: date, conn, *, deleted: bool = False
    ) -> EntryMutation:
        summary = await self._streaks.refresh_summary(user_id, conn=conn)
        entry = None
        if not deleted:
            entry = await self._db.entries.get_entry(user_id, day, conn=conn)
        return EntryMutation(entry=entry, summary=summary, deleted=deleted)

    async def _mutate(
        self,
        user_id: str,
        action: str,
        work: Callable[[Any], Awaitable[EntryMutation]],
    ) -> EntryMutation:
        try:
            if await self._db.users.get_user_by_id(user_id) is None:
                raise UserNotFoundError(user_id)
            async with self._db.require_pool().connection() as conn:
                result = await run_in_transaction(conn, work, conn)
        except JournalError:
            raise
        except DATA_ACCESS_ERRORS as exc:
            logger.exception("Entry %s failed for user %s", action, user_id)
            raise StreakUpdateError(f"entry {action} failed for user {user_id}") from exc
        logger.info(
            "Entry %s for user %s: current streak %s, %s entries",
            action,
            user_id,
            result.summary.current_streak,
            result.summary.total_entries,
        )
        return result

    def _validate_day(self, day: date) -> None:
        if day > self._streaks.today():
            raise FutureEntryError(f"{day.isoformat()} is in the future")

    def _validate_length(self, content: str) -> None:
        if len(content or "") > self._limits.max_entry_length:
            raise EntryValidationError(
                f"Entry exceeds {self._limits.max_entry_length} characters"
            )


__all__ = ["EntryService", "EntryMutation"]

from __future__ import annotations

from datetime import date

from aiosqlitepool import SQLiteConnectionPool
from ulid import ULID

from .base import BaseRepository

# SQLite's trim() only strips spaces unless told otherwise.
_BLANK_CHARS = "char(32, 9, 10, 11, 12, 13)"
_NON_BLANK = f"trim(content, {_BLANK_CHARS}) <> ''"


def _iso(day: date | str) -> str:
    if isinstance(day, date):
        return day.isoformat()
    return str(day)


def _row_to_entry(row) -> dict:
    return {
        "id": row["id"],
        "user_id": row["user_id"],
        "date": row["entry_date"],
        "content": row["content"],
        "word_count": int(row["word_count"] or 0),
        "is_private": bool(row["is_private"]),
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


class EntriesRepository(BaseRepository):
    """Persistence helpers for dated journal entries (one per user per day)."""

    def __init__(self, pool: SQLiteConnectionPool) -> None:
        super().__init__(pool)

    async def get_entry(self, user_id: str, day: date | str, *, conn=None) -> dict | None:
        row = await self._fetchone(
            "SELECT * FROM entries WHERE user_id = ? AND entry_date = ?",
            (user_id, _iso(day)),
            conn=conn,
        )
        return _row_to_entry(row) if row else None

    async def insert_entry(
        self,
        user_id: str,
        day: date | str,
        content: str,
        word_count: int,
        is_private: bool = False,
        *,
        conn=None,
    ) -> str:
        entry_id = str(ULID())
        await self._write(
            """
            INSERT INTO entries (id, user_id, entry_date, content, word_count, is_private)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (entry_id, user_id, _iso(day), content, int(word_count), int(is_private)),
            conn=conn,
        )
        return entry_id

    async def update_entry(
        self,
        user_id: str,
        day: date | str,
        content: str,
        word_count: int,
        is_private: bool,
        *,
        conn=None,
    ) -> bool:
        updated = await self._write(
            """
            UPDATE entries
            SET content = ?, word_count = ?, is_private = ?, updated_at = CURRENT_TIMESTAMP
            WHERE user_id = ? AND entry_date = ?
            """,
            (content, int(word_count), int(is_private), user_id, _iso(day)),
            conn=conn,
        )
        return updated > 0

    async def delete_entry(self, user_id: str, day: date | str, *, conn=None) -> bool:
        deleted = await self._write(
            "DELETE FROM entries WHERE user_id = ? AND entry_date = ?",
            (user_id, _iso(day)),
            conn=conn,
        )
        return deleted > 0

    async def list_entries(
        self,
        user_id: str,
        start: date | str | None = None,
        end: date | str | None = None,
        *,
        include_private: bool = True,
    ) -> list[dict]:
        clauses = ["user_id = ?"]
        params: list[object] = [user_id]
        if start is not None:
            clauses.append("entry_date >= ?")
            params.append(_iso(start))
        if end is not None:
            clauses.append("entry_date <= ?")
            params.append(_iso(end))
        if not include_private:
            clauses.append("is_private = 0")
        rows = await self._fetchall(
            f"SELECT * FROM entries WHERE {' AND '.join(clauses)} ORDER BY entry_date ASC",
            tuple(params),
        )
        return [_row_to_entry(row) for row in rows]

    async def qualifying_entries(self, user_id: str, *, conn=None) -> list[tuple[str, int]]:
        """Return ``(iso_date, word_count)`` for every non-blank entry, ascending."""

        rows = await self._fetchall(
            f"""
            SELECT entry_date, word_count
            FROM entries
            WHERE user_id = ? AND {_NON_BLANK}
            ORDER BY entry_date ASC
            """,
            (user_id,),
            conn=conn,
        )
        return [(row["entry_date"], int(row["word_count"] or 0)) for row in rows]

    async def get_first_entry_date(self, user_id: str) -> str | None:
        row = await self._fetchone(
            f"SELECT MIN(entry_date) AS first_date FROM entries WHERE user_id = ? AND {_NON_BLANK}",
            (user_id,),
        )
        return row["first_date"] if row and row["first_date"] else None

    async def word_counts_by_day(
        self,
        user_id: str,
        start: date | str,
        end: date | str,
    ) -> dict[str, int]:
        rows = await self._fetchall(
            f"""
            SELECT entry_date, word_count
            FROM entries
            WHERE user_id = ? AND entry_date >= ? AND entry_date <= ? AND {_NON_BLANK}
            """,
            (user_id, _iso(start), _iso(end)),
        )
        return {row["entry_date"]: int(row["word_count"] or 0) for row in rows}

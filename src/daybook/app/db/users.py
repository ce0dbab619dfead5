from __future__ import annotations

from aiosqlitepool import SQLiteConnectionPool
from ulid import ULID

from .base import BaseRepository

SUMMARY_FIELDS = (
    "current_streak",
    "highest_streak",
    "highest_streak_year",
    "total_words",
    "total_entries",
    "streaks_updated_at",
)


class UsersRepository(BaseRepository):
    """Data access helpers for the users table."""

    def __init__(self, pool: SQLiteConnectionPool):
        super().__init__(pool)

    async def create_user(
        self,
        username: str,
        password_hash: str = "",
        email: str | None = None,
    ) -> str:
        user_id = str(ULID())
        await self._write(
            """
            INSERT INTO users (id, username, email, password_hash)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, username, email, password_hash),
        )
        return user_id

    async def get_user_by_username(self, username: str) -> dict | None:
        row = await self._fetchone(
            "SELECT * FROM users WHERE username = ?", (username,)
        )
        return dict(row) if row else None

    async def get_user_by_id(self, user_id: str, *, conn=None) -> dict | None:
        row = await self._fetchone(
            "SELECT * FROM users WHERE id = ?", (user_id,), conn=conn
        )
        return dict(row) if row else None

    async def get_summary(self, user_id: str, *, conn=None) -> dict | None:
        """Return the stored streak/word aggregates for *user_id*."""

        columns = ", ".join(SUMMARY_FIELDS)
        row = await self._fetchone(
            f"SELECT {columns} FROM users WHERE id = ?", (user_id,), conn=conn
        )
        return dict(row) if row else None

    async def write_summary(
        self,
        user_id: str,
        *,
        current_streak: int,
        highest_streak: int,
        highest_streak_year: int | None,
        total_words: int,
        total_entries: int,
        conn=None,
    ) -> None:
        """Overwrite the aggregate fields in a single statement."""

        updated = await self._write(
            """
            UPDATE users
            SET current_streak = ?,
                highest_streak = ?,
                highest_streak_year = ?,
                total_words = ?,
                total_entries = ?,
                streaks_updated_at = CURRENT_TIMESTAMP,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (
                int(current_streak),
                int(highest_streak),
                highest_streak_year,
                int(total_words),
                int(total_entries),
                user_id,
            ),
            conn=conn,
        )
        if updated != 1:
            raise LookupError(f"user {user_id} not found")

    async def delete_user(self, user_id: str) -> None:
        # Entries go with the user through ON DELETE CASCADE.
        await self._write("DELETE FROM users WHERE id = ?", (user_id,))

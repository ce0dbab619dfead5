from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from aiosqlitepool import SQLiteConnectionPool


async def run_in_transaction(conn, func, *args, **kwargs):
    """Execute the given coroutine within a transaction."""
    try:
        result = await func(*args, **kwargs)
        await conn.commit()
        return result
    except Exception:
        if conn.in_transaction:
            await conn.rollback()
        raise


class BaseRepository:
    """Common functionality shared by repository classes.

    Methods take an optional ``conn``. When given, the statement runs on that
    connection and the caller owns the transaction; otherwise a pooled
    connection is borrowed and writes are committed immediately.
    """

    def __init__(self, pool: SQLiteConnectionPool):
        self.pool = pool

    async def _run_in_transaction(self, conn, func, *args, **kwargs):
        return await run_in_transaction(conn, func, *args, **kwargs)

    @asynccontextmanager
    async def _borrow(self, conn=None) -> AsyncIterator[Any]:
        if conn is not None:
            yield conn
            return
        async with self.pool.connection() as owned:
            yield owned

    async def _fetchone(self, sql: str, params: tuple = (), *, conn=None):
        async with self._borrow(conn) as active:
            cursor = await active.execute(sql, params)
            return await cursor.fetchone()

    async def _fetchall(self, sql: str, params: tuple = (), *, conn=None):
        async with self._borrow(conn) as active:
            cursor = await active.execute(sql, params)
            return await cursor.fetchall()

    async def _write(self, sql: str, params: tuple = (), *, conn=None) -> int:
        """Run a write statement and return the affected row count."""

        if conn is not None:
            cursor = await conn.execute(sql, params)
            return cursor.rowcount or 0

        async with self.pool.connection() as owned:
            cursor = await self._run_in_transaction(owned, owned.execute, sql, params)
            return cursor.rowcount or 0

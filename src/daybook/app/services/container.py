"""Application service and lifecycle helpers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from daybook.app.services.entry_service import EntryService
from daybook.app.services.journal_config import EntryLimits, StreakConfig
from daybook.app.services.streak_service import StreakService
from daybook.persistence.local_db import LocalDB
from daybook.settings import settings


logger = logging.getLogger(__name__)

SERVICES_EXTENSION_KEY = "daybook"


@dataclass(slots=True)
class AppServices:
    """Bundle long-lived application services."""

    db: LocalDB
    streak_service: StreakService
    entry_service: EntryService

    @classmethod
    def create(cls, db_path: str | None = None) -> "AppServices":
        db = LocalDB(db_path)
        streak_service = StreakService(db, StreakConfig.from_settings(settings))
        entry_service = EntryService(
            db,
            streak_service,
            EntryLimits.from_settings(settings),
        )
        return cls(
            db=db,
            streak_service=streak_service,
            entry_service=entry_service,
        )


class AppLifecycle:
    """Manage startup and shutdown of long-lived application services."""

    def __init__(self, services: AppServices) -> None:
        self._services = services
        self._lock = asyncio.Lock()
        self._started = False

    async def __aenter__(self) -> "AppLifecycle":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self) -> None:
        async with self._lock:
            if self._started:
                return
            await self._services.db.init()
            self._started = True
            logger.info("Application lifecycle started")

    async def stop(self) -> None:
        async with self._lock:
            if not self._started:
                return
            self._started = False
            try:
                await self._services.db.close()
            except Exception:
                logger.exception("Failed to close database cleanly")
                raise
        logger.info("Application lifecycle stopped")

    @property
    def services(self) -> AppServices:
        return self._services


def get_services() -> AppServices:
    """Return the :class:`AppServices` container of the running app."""

    from quart import current_app

    services = current_app.extensions.get(SERVICES_EXTENSION_KEY)
    if services is None:
        raise RuntimeError("App services container is not initialised")
    return services


def get_db() -> LocalDB:
    """Convenience accessor for the application database."""

    return get_services().db


def get_entry_service() -> EntryService:
    return get_services().entry_service


def get_streak_service() -> StreakService:
    return get_services().streak_service

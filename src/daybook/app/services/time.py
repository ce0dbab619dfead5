from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from daybook.settings import settings


def server_timezone() -> ZoneInfo | None:
    """Return the configured journal timezone, or ``None`` for server-local time.

    ``APP.timezone`` is validated when settings load.
    """

    name = str(settings.get("APP.timezone") or "").strip()
    return ZoneInfo(name) if name else None


def server_today() -> date:
    """Today's calendar date as the server defines a journal day."""

    tz = server_timezone()
    if tz is None:
        return datetime.now().astimezone().date()
    return datetime.now(tz).date()


def to_journal_date(value: datetime) -> date:
    """Strip the time of day, converting aware datetimes to the journal zone first."""

    if value.tzinfo is not None:
        tz = server_timezone()
        value = value.astimezone(tz) if tz is not None else value.astimezone()
    return value.date()


def parse_iso_date(raw: str) -> date:
    """Parse ``YYYY-MM-DD`` or an ISO datetime, keeping only the day.

    ``ValueError`` is raised for any unparseable input.
    """

    if not isinstance(raw, str):
        raise ValueError("Date value must be a string")

    value = raw.strip()
    if not value:
        raise ValueError("Date value is empty")

    try:
        return date.fromisoformat(value)
    except ValueError:
        pass

    try:
        normalised = value.replace("Z", "+00:00")
        return to_journal_date(datetime.fromisoformat(normalised))
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {raw}") from exc

"""Streak arithmetic over a user's writing days.

Everything here is pure: callers pass the entry dates and "today", and get
back a :class:`StreakResult`. No storage access, no clock reads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from daybook.app.services.time import parse_iso_date, to_journal_date
from daybook.settings import HIGHEST_SCOPE_ALL_TIME, HIGHEST_SCOPE_CALENDAR_YEAR

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True, slots=True)
class StreakResult:
    current_streak: int = 0
    highest_streak: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "currentStreak": self.current_streak,
            "highestStreak": self.highest_streak,
        }


def _coerce_day(value: object) -> date | None:
    # datetime is a date subclass, so check it first.
    if isinstance(value, datetime):
        return to_journal_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_date(value)
        except ValueError:
            return None
    return None


def normalize_entry_dates(values: Iterable[object]) -> list[date]:
    """Return distinct calendar days, ascending.

    Accepts ``date``, ``datetime`` and ISO strings. Several timestamps on the
    same day collapse into one. Values that cannot be read as a day are
    dropped rather than raised.
    """

    days: set[date] = set()
    for value in values:
        day = _coerce_day(value)
        if day is None:
            logger.debug("Ignoring unparseable entry date %r", value)
            continue
        days.add(day)
    return sorted(days)


def current_streak(dates: Iterable[object], today: date) -> int:
    """Length of the run of consecutive days ending today or yesterday."""

    days = [day for day in normalize_entry_dates(dates) if day <= today]
    if not days:
        return 0

    latest = days[-1]
    if (today - latest).days > 1:
        return 0

    count = 1
    previous = latest
    for day in reversed(days[:-1]):
        if previous - day != _ONE_DAY:
            break
        count += 1
        previous = day
    return count


def highest_streak(dates: Iterable[object]) -> int:
    """Longest run of consecutive days anywhere in *dates*."""

    days = normalize_entry_dates(dates)
    if not days:
        return 0

    best = 1
    running = 1
    for previous, day in zip(days, days[1:]):
        if day - previous == _ONE_DAY:
            running += 1
            best = max(best, running)
        else:
            running = 1
    return best


def calculate_streaks(
    dates: Iterable[object],
    today: date,
    *,
    scope: str = HIGHEST_SCOPE_ALL_TIME,
) -> StreakResult:
    """Compute both streaks from scratch.

    ``scope`` selects the window for the highest streak: the whole history
    (``"all_time"``) or only days in ``today.year`` (``"calendar_year"``).
    Dates after ``today`` are ignored.
    """

    days = [day for day in normalize_entry_dates(dates) if day <= today]
    current = current_streak(days, today)

    if scope == HIGHEST_SCOPE_CALENDAR_YEAR:
        scoped = [day for day in days if day.year == today.year]
    elif scope == HIGHEST_SCOPE_ALL_TIME:
        scoped = days
    else:
        raise ValueError(f"Unknown highest streak scope: {scope!r}")

    highest = highest_streak(scoped)
    # A current run that crossed January 1st is longer than its in-year part.
    return StreakResult(current_streak=current, highest_streak=max(highest, current))


__all__ = [
    "StreakResult",
    "normalize_entry_dates",
    "current_streak",
    "highest_streak",
    "calculate_streaks",
]

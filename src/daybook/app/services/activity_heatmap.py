"""Helpers for building word-count activity heatmaps."""

from __future__ import annotations

from calendar import monthrange
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from logging import getLogger
import math

from daybook.app.services.time import parse_iso_date, server_today
from daybook.persistence.local_db import LocalDB

logger = getLogger(__name__)

# December 9999 pads its last week into year 10000, which ``date`` cannot hold.
MAX_HEATMAP_YEAR = 9998


@dataclass(slots=True)
class ActivityHeatmapCell:
    date: str
    count: int
    level: int
    in_month: bool


@dataclass(slots=True)
class ActivityHeatmapWeek:
    days: tuple[ActivityHeatmapCell, ...]


@dataclass(slots=True)
class ActivityHeatmapMonth:
    label: str
    aria_label: str
    year: int
    weeks: tuple[ActivityHeatmapWeek, ...]


@dataclass(slots=True)
class ActivityHeatmapData:
    start: str
    end: str
    max_count: int
    months: tuple[ActivityHeatmapMonth, ...]

    def as_dict(self) -> dict:
        return asdict(self)


def _level_for_count(count: int, max_count: int) -> int:
    if count <= 0 or max_count <= 0:
        return 0
    if max_count <= 1:
        return 1
    return min(4, max(1, math.ceil((count / max_count) * 4)))


def _month_start(target: date) -> date:
    return date(target.year, target.month, 1)


def _month_end(target: date) -> date:
    return target.replace(day=monthrange(target.year, target.month)[1])


def _months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + end.month - start.month + 1


def _shift_month(target: date, offset: int) -> date:
    year = target.year + (target.month - 1 + offset) // 12
    month = (target.month - 1 + offset) % 12 + 1
    return date(year, month, 1)


def build_activity_heatmap(
    counts: dict[str, int],
    *,
    end: date,
    months: int = 12,
) -> ActivityHeatmapData:
    """Lay ``{iso_date: words}`` out as Monday-first weeks per month.

    The window covers ``months`` whole months ending with the month of *end*.
    """

    months = max(1, months)
    window_end = _month_start(end)
    window_start = _shift_month(window_end, -(months - 1))

    max_count = max(counts.values(), default=0)
    month_blocks: list[ActivityHeatmapMonth] = []
    for index in range(months):
        month_start = _shift_month(window_start, index)
        month_end = _month_end(month_start)
        grid_start = month_start - timedelta(days=month_start.weekday())
        grid_end = month_end + timedelta(days=6 - month_end.weekday())
        weeks: list[ActivityHeatmapWeek] = []
        cursor = grid_start
        while cursor <= grid_end:
            days: list[ActivityHeatmapCell] = []
            for offset_day in range(7):
                current = cursor + timedelta(days=offset_day)
                iso_date = current.isoformat()
                in_month = month_start <= current <= month_end
                count = int(counts.get(iso_date, 0)) if in_month else 0
                level = _level_for_count(count, max_count) if in_month else 0
                days.append(
                    ActivityHeatmapCell(
                        date=iso_date,
                        count=count,
                        level=level,
                        in_month=in_month,
                    )
                )
            weeks.append(ActivityHeatmapWeek(days=tuple(days)))
            cursor += timedelta(days=7)
        month_blocks.append(
            ActivityHeatmapMonth(
                label=month_start.strftime("%b"),
                aria_label=month_start.strftime("%B %Y"),
                year=month_start.year,
                weeks=tuple(weeks),
            )
        )

    return ActivityHeatmapData(
        start=window_start.isoformat(),
        end=_month_end(window_end).isoformat(),
        max_count=max_count,
        months=tuple(month_blocks),
    )


async def get_activity_heatmap(
    db: LocalDB,
    user_id: str,
    *,
    year: int | None = None,
    today: date | None = None,
    months: int = 12,
    since_first_entry: bool = False,
) -> ActivityHeatmapData:
    """Heatmap for a calendar year, or the trailing ``months`` ending today.

    With ``since_first_entry`` the window instead stretches back to the month
    of the user's first entry, so every entry they wrote is on the grid.
    """

    if year is not None:
        if not 1 <= year <= MAX_HEATMAP_YEAR:
            raise ValueError(f"heatmap year must be between 1 and {MAX_HEATMAP_YEAR}")
        end = date(year, 12, 1)
        months = 12
    else:
        end = today or server_today()
        if since_first_entry:
            first = await db.entries.get_first_entry_date(user_id)
            first_day = parse_iso_date(first) if first else end
            months = max(1, _months_between(min(first_day, end), end))

    window_start = _shift_month(_month_start(end), -(max(1, months) - 1))
    counts = await db.entries.word_counts_by_day(
        user_id, window_start, _month_end(_month_start(end))
    )
    logger.debug(
        "Loaded %d heatmap days for user %s from %s", len(counts), user_id, window_start
    )
    return build_activity_heatmap(counts, end=end, months=months)


__all__ = [
    "MAX_HEATMAP_YEAR",
    "ActivityHeatmapCell",
    "ActivityHeatmapWeek",
    "ActivityHeatmapMonth",
    "ActivityHeatmapData",
    "build_activity_heatmap",
    "get_activity_heatmap",
]

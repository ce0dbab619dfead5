from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from daybook.settings import HIGHEST_SCOPE_ALL_TIME, normalise_highest_scope
from daybook.util import str_to_bool


@dataclass(slots=True, frozen=True)
class StreakConfig:
    """How streaks are scoped and when they are refreshed."""

    highest_scope: str = HIGHEST_SCOPE_ALL_TIME
    recompute_on_read: bool = True

    @classmethod
    def from_settings(cls, settings: Any) -> "StreakConfig":
        streaks = settings.STREAKS
        return cls(
            highest_scope=normalise_highest_scope(streaks.highest_scope),
            recompute_on_read=str_to_bool(streaks.recompute_on_read),
        )


@dataclass(slots=True, frozen=True)
class EntryLimits:
    """Limits applied to journal entry writes."""

    max_entry_length: int = 100_000

    @classmethod
    def from_settings(cls, settings: Any) -> "EntryLimits":
        return cls(max_entry_length=int(settings.LIMITS.max_entry_length))


__all__ = ["StreakConfig", "EntryLimits"]

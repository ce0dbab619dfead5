from __future__ import annotations

from types import SimpleNamespace

import pytest

from daybook.app.services.journal_config import EntryLimits, StreakConfig
from daybook.settings import (
    HIGHEST_SCOPE_ALL_TIME,
    HIGHEST_SCOPE_CALENDAR_YEAR,
    normalise_highest_scope,
    normalise_timezone,
)


def _settings(highest_scope="all_time", recompute_on_read=True, max_entry_length=100):
    return SimpleNamespace(
        STREAKS=SimpleNamespace(
            highest_scope=highest_scope,
            recompute_on_read=recompute_on_read,
        ),
        LIMITS=SimpleNamespace(max_entry_length=max_entry_length),
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("all_time", HIGHEST_SCOPE_ALL_TIME),
        ("Calendar-Year", HIGHEST_SCOPE_CALENDAR_YEAR),
        ("  CALENDAR_YEAR ", HIGHEST_SCOPE_CALENDAR_YEAR),
    ],
)
def test_highest_scope_is_normalised(raw, expected) -> None:
    assert normalise_highest_scope(raw) == expected


@pytest.mark.parametrize("raw", ["weekly", "", None])
def test_unknown_highest_scope_is_rejected(raw) -> None:
    with pytest.raises(ValueError, match="highest_scope"):
        normalise_highest_scope(raw)


def test_streak_config_from_settings_parses_strings() -> None:
    config = StreakConfig.from_settings(
        _settings(highest_scope="Calendar-Year", recompute_on_read="off")
    )

    assert config.highest_scope == HIGHEST_SCOPE_CALENDAR_YEAR
    assert config.recompute_on_read is False


def test_streak_config_from_settings_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        StreakConfig.from_settings(_settings(highest_scope="weekly"))
    with pytest.raises(ValueError):
        StreakConfig.from_settings(_settings(recompute_on_read="sometimes"))


def test_entry_limits_from_settings() -> None:
    assert EntryLimits.from_settings(_settings(max_entry_length="250")) == EntryLimits(
        max_entry_length=250
    )


def test_timezone_is_validated() -> None:
    assert normalise_timezone("") == ""
    assert normalise_timezone(None) == ""
    assert normalise_timezone(" UTC ") == "UTC"
    with pytest.raises(ValueError, match="APP.timezone"):
        normalise_timezone("Mars/Olympus_Mons")

from __future__ import annotations

import os
import secrets
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dynaconf import Dynaconf

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent

HIGHEST_SCOPE_ALL_TIME = "all_time"
HIGHEST_SCOPE_CALENDAR_YEAR = "calendar_year"
HIGHEST_SCOPES = (HIGHEST_SCOPE_ALL_TIME, HIGHEST_SCOPE_CALENDAR_YEAR)


def _resolve_config_dir() -> Path | None:
    env_override = os.environ.get("DAYBOOK_CONFIG_DIR")
    candidates: list[Path] = []

    if env_override:
        candidates.append(Path(env_override).expanduser())

    candidates.append(PROJECT_ROOT / "config")
    candidates.append(PROJECT_ROOT.parent / "config")

    for candidate in candidates:
        expanded = candidate.expanduser()
        if expanded.is_dir():
            return expanded.resolve()

    if env_override:
        searched = ", ".join(str(path) for path in candidates)
        raise RuntimeError(
            f"Unable to locate configuration directory. Searched: {searched}."
            " Set DAYBOOK_CONFIG_DIR to a valid directory."
        )
    # Installed without a config dir: run on DEFAULTS and DAYBOOK_* env vars.
    return None


CONFIG_DIR = _resolve_config_dir()


DEFAULTS: dict[str, Any] = {
    "APP_NAME": "Daybook",
    "SECRET_KEY": None,
    "LOG_LEVEL": "INFO",
    "APP": {
        "host": "127.0.0.1",
        "port": 5000,
        "timezone": "",
    },
    "LIMITS": {
        "max_username_length": 30,
        "max_entry_length": 100_000,
    },
    "STREAKS": {
        "highest_scope": HIGHEST_SCOPE_ALL_TIME,
        "recompute_on_read": True,
    },
    "HEATMAP": {
        "months": 12,
    },
    "DATABASE": {
        "path": "state.sqlite3",
        "pool_size": 10,
        "pool_acquire_timeout": 10,
        "timeout": 5.0,
        "busy_timeout": 5000,
    },
}

_settings_files: list[Path] = []
if CONFIG_DIR is not None:
    _settings_files = [
        CONFIG_DIR / "settings.toml",
        CONFIG_DIR / ".secrets.toml",
        CONFIG_DIR / "settings.local.toml",
    ]

settings = Dynaconf(
    envvar_prefix="DAYBOOK",
    settings_files=_settings_files,
    environments=True,
    env_switcher="DAYBOOK_ENV",
    load_dotenv=True,
    envvar_parse_values=True,
    merge_enabled=True,
    defaults=DEFAULTS,
)


_MISSING = object()


def _ensure_defaults(prefix: str, defaults: dict[str, Any]) -> None:
    for key, value in defaults.items():
        dotted = f"{prefix}.{key}" if prefix else key
        existing = settings.get(dotted, _MISSING)

        if isinstance(value, dict):
            if existing is _MISSING:
                settings.set(dotted, value.copy())
                existing = settings.get(dotted, _MISSING)
            # Only recurse into mappings so user-provided primitives survive.
            if isinstance(existing, Mapping):
                _ensure_defaults(dotted, value)
            continue

        if existing is _MISSING:
            settings.set(dotted, value)


_ensure_defaults("", DEFAULTS)


def _normalise_secret_key() -> None:
    secret = settings.get("SECRET_KEY")
    if secret:
        settings.set("SECRET_KEY", str(secret))
        return

    settings.set("SECRET_KEY", secrets.token_urlsafe(32))


def normalise_highest_scope(raw: object) -> str:
    """Return the canonical highest-streak scope or raise ``ValueError``."""

    value = str(raw or "").strip().lower().replace("-", "_")
    if value not in HIGHEST_SCOPES:
        allowed = ", ".join(HIGHEST_SCOPES)
        raise ValueError(
            f"Unsupported STREAKS.highest_scope {raw!r}; expected one of: {allowed}"
        )
    return value


def normalise_timezone(raw: object) -> str:
    """Return a loadable IANA zone name, ``""`` for server local, or raise ``ValueError``."""

    name = str(raw or "").strip()
    if not name:
        return ""
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown APP.timezone {raw!r}") from exc
    return name


_normalise_secret_key()

settings.set(
    "STREAKS.highest_scope",
    normalise_highest_scope(settings.get("STREAKS.highest_scope")),
)
settings.set("APP.timezone", normalise_timezone(settings.get("APP.timezone")))

__all__ = [
    "settings",
    "normalise_highest_scope",
    "normalise_timezone",
    "HIGHEST_SCOPES",
    "HIGHEST_SCOPE_ALL_TIME",
    "HIGHEST_SCOPE_CALENDAR_YEAR",
]

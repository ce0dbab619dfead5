from __future__ import annotations

from datetime import date
from typing import Any, Mapping

from quart import abort

from daybook.app.services.auth_helpers import get_current_user
from daybook.app.services.container import get_db
from daybook.app.services.errors import (
    EntryExistsError,
    EntryNotFoundError,
    EntryValidationError,
    JournalError,
    UserNotFoundError,
)


def require_date(year: int, month: int, day: int) -> date:
    """Build a calendar date from URL parts or abort with a 400 error."""

    try:
        return date(year, month, day)
    except ValueError as exc:
        abort(400, description="Invalid date")
        raise AssertionError("unreachable") from exc


async def require_owner(username: str) -> dict[str, Any]:
    """Look up the user named in the URL or abort with 404."""

    owner = await get_db().users.get_user_by_username(username)
    if owner is None:
        abort(404, description="User not found")
        raise AssertionError("unreachable")
    return owner


async def require_same_user(owner: Mapping[str, Any]) -> Mapping[str, Any]:
    """Abort with 403 unless the signed-in user owns the journal."""

    viewer = await get_current_user()
    if viewer is None or viewer["id"] != owner["id"]:
        abort(403, description="Not authorized to modify this journal")
        raise AssertionError("unreachable")
    return viewer


def journal_error_status(exc: JournalError) -> int:
    if isinstance(exc, EntryValidationError):
        return 400
    if isinstance(exc, EntryExistsError):
        return 409
    if isinstance(exc, (EntryNotFoundError, UserNotFoundError)):
        return 404
    return 500

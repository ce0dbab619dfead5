from __future__ import annotations

import logging

from quart import Blueprint, abort, jsonify, request

from daybook.app.routes.helpers import require_date, require_owner, require_same_user
from daybook.app.services.activity_heatmap import MAX_HEATMAP_YEAR, get_activity_heatmap
from daybook.app.services.auth_helpers import get_current_user, login_required
from daybook.app.services.container import get_db, get_entry_service, get_streak_service
from daybook.app.util.number import coerce_int
from daybook.settings import settings


entries_bp = Blueprint("entries", __name__, url_prefix="/api/entries")

logger = logging.getLogger(__name__)

_ENTRY_ROUTE = "/<username>/<int:year>/<int:month>/<int:day>"


async def _entry_payload() -> tuple[str, bool]:
    payload = await request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="Invalid journal data")
    content = payload.get("content")
    is_private = payload.get("is_private", False)
    if not isinstance(content, str) or not isinstance(is_private, bool):
        abort(400, description="Invalid journal data")
    # A client-supplied word_count is ignored; it is derived from content.
    return content, is_private


@entries_bp.get(_ENTRY_ROUTE)
@login_required
async def get_entry(username: str, year: int, month: int, day: int):
    target = require_date(year, month, day)
    owner = await require_owner(username)
    viewer = await get_current_user()
    entry = await get_entry_service().get_entry(
        owner["id"],
        target,
        viewer_id=viewer["id"] if viewer else None,
    )
    return jsonify(entry)


@entries_bp.post(_ENTRY_ROUTE)
@login_required
async def create_entry(username: str, year: int, month: int, day: int):
    target = require_date(year, month, day)
    owner = await require_owner(username)
    await require_same_user(owner)
    content, is_private = await _entry_payload()
    result = await get_entry_service().create_entry(
        owner["id"], target, content, is_private=is_private
    )
    return jsonify(result.as_dict()), 201


@entries_bp.put(_ENTRY_ROUTE)
@login_required
async def update_entry(username: str, year: int, month: int, day: int):
    target = require_date(year, month, day)
    owner = await require_owner(username)
    await require_same_user(owner)
    content, is_private = await _entry_payload()
    result = await get_entry_service().update_entry(
        owner["id"], target, content, is_private=is_private
    )
    if result.deleted:
        logger.debug("Entry %s for %s removed by blank update", target, username)
    return jsonify(result.as_dict())


@entries_bp.delete(_ENTRY_ROUTE)
@login_required
async def delete_entry(username: str, year: int, month: int, day: int):
    target = require_date(year, month, day)
    owner = await require_owner(username)
    await require_same_user(owner)
    result = await get_entry_service().delete_entry(owner["id"], target)
    return jsonify(result.as_dict())


@entries_bp.get("/<username>/heatmap")
@login_required
async def heatmap(username: str):
    owner = await require_owner(username)
    raw_year = request.args.get("year")
    since_first_entry = raw_year == "all"
    year = None
    if raw_year is not None and not since_first_entry:
        year = coerce_int(raw_year, minimum=1, maximum=MAX_HEATMAP_YEAR)
        if year is None:
            abort(400, description="Invalid year")
    data = await get_activity_heatmap(
        get_db(),
        owner["id"],
        year=year,
        today=get_streak_service().today(),
        months=int(settings.HEATMAP.months),
        since_first_entry=since_first_entry,
    )
    return jsonify(data.as_dict())

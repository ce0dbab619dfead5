from __future__ import annotations

from quart import Blueprint, abort, jsonify

from daybook.app.routes.helpers import require_owner
from daybook.app.services.auth_helpers import get_current_user, login_required
from daybook.app.services.container import get_streak_service

profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")


async def _profile_payload(user: dict) -> dict:
    summary = await get_streak_service().get_summary(user["id"])
    return {
        "username": user["username"],
        "stats": summary.as_dict(),
    }


@profile_bp.get("")
@login_required
async def own_profile():
    viewer = await get_current_user()
    if viewer is None:
        abort(401)
        raise AssertionError("unreachable")
    return jsonify(await _profile_payload(dict(viewer)))


@profile_bp.get("/<username>")
async def public_profile(username: str):
    owner = await require_owner(username)
    return jsonify(await _profile_payload(owner))

"""Request identity helpers.

Sign-in itself lives outside this application: whatever authenticates the
user stores their id under ``uid`` in the signed Quart session.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Mapping

from cachetools import TTLCache
from quart import current_app, g, jsonify, session

from daybook.app.services.container import get_services

SESSION_USER_KEY = "uid"
_MISSING_USER = object()

# Only identity columns are cached; streak fields are always read fresh.
# A deleted user's identity may linger for the TTL, but every route resolves
# the owner from the database, so writes for that user answer 404.
_IDENTITY_FIELDS = ("id", "username")
_user_cache: TTLCache[str, Any] = TTLCache(maxsize=2048, ttl=60)


async def get_current_user() -> Mapping[str, Any] | None:
    if hasattr(g, "_current_user"):
        return g._current_user

    uid = session.get(SESSION_USER_KEY)
    user: Mapping[str, Any] | None
    if not uid:
        user = None
    elif uid in _user_cache:
        cached = _user_cache[uid]
        user = None if cached is _MISSING_USER else cached
    else:
        row = await get_services().db.users.get_user_by_id(uid)
        user = {key: row[key] for key in _IDENTITY_FIELDS} if row else None
        _user_cache[uid] = user if user is not None else _MISSING_USER

    g._current_user = user
    return user


def login_required(f):
    @wraps(f)
    async def wrapper(*args, **kwargs):
        user = await get_current_user()
        if not user:
            current_app.logger.debug("Unauthenticated access to %s", f.__name__)
            return jsonify({"message": "Authentication required"}), 401
        return await f(*args, **kwargs)

    return wrapper

"""Middleware that requires a logged-in user."""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import web

from webstack.controllers import DB_KEY, USER_KEY
from webstack.response import error
from webstack.session import SESSION_KEY
from webstack.status_codes import StatusCode
from webstack.user import find_one

logger = logging.getLogger(__name__)


def _is_user_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@web.middleware
async def mw_require_auth(request: web.Request, handler: Any) -> web.StreamResponse:
    """Load the session's user into request[USER_KEY], or refuse the request."""
    logger.debug("--> MIDDLEWARE - mw_require_auth")
    user_id = request[SESSION_KEY].get("user_id")
    if not _is_user_id(user_id):
        return error(StatusCode.UNAUTHORIZED)
    logger.info("--> MIDDLEWARE - user_id: %s", user_id)
    try:
        user = await find_one(request.app[DB_KEY], user_id)
    except Exception:
        return error(StatusCode.INTERNAL_SERVER_ERROR)
    request[USER_KEY] = user
    return await handler(request)
"""Handlers for the user endpoints."""

from __future__ import annotations

import json
import logging

from aiohttp import web
from redis.exceptions import RedisError

from webstack.controllers import DB_KEY, REDIS_KEY, USER_KEY, read_json_body
from webstack.response import error, success, success_without_data
from webstack.session import SESSION_KEY
from webstack.status_codes import StatusCode
from webstack.user import User, create, find_all, find_by_username

logger = logging.getLogger(__name__)

CACHE_SECONDS = 5


async def action_current_user(request: web.Request) -> web.Response:
    """Return the authenticated user."""
    user: User = request[USER_KEY]
    return web.json_response(user.to_dict())


async def action_logout(request: web.Request) -> web.Response:
    """Destroy the current session."""
    request[SESSION_KEY].destroy()
    return success_without_data()


async def action_find_user(request: web.Request) -> web.Response:
    """Look a user up by name, caching the result briefly in Redis."""
    username = request.match_info["username"]
    redis = request.app[REDIS_KEY]
    try:
        cached = await redis.get(username)
    except RedisError:
        cached = None
    if cached is not None:
        data = json.loads(cached)
        user = User(id=int(data["id"]), username=data["username"])
        return web.json_response(user.to_dict())
    try:
        user = await find_by_username(request.app[DB_KEY], username)
    except Exception:
        return web.Response(status=404, text="Not Found")
    await redis.set(username, json.dumps(user.to_dict()), ex=CACHE_SECONDS)
    return web.json_response(user.to_dict())


async def action_create_user(request: web.Request) -> web.Response:
    """Create a user from a JSON body holding a username."""
    payload = await read_json_body(request, {"username": str})
    if not payload["username"].strip():
        return error(StatusCode.USERNAME_CANNOT_BE_EMPTY)
    try:
        user = await create(request.app[DB_KEY], payload["username"])
    except Exception as exc:
        logger.warning("%s", exc)
        return error(StatusCode.USERNAME_OR_PASSWORD_MISMATCH)
    return success(user)


async def action_list(request: web.Request) -> web.Response:
    """List every user."""
    users = await find_all(request.app[DB_KEY])
    return web.json_response([user.to_dict() for user in users])
"""Handlers for the root, status, cookie, outbound HTTP and login endpoints."""

from __future__ import annotations

import logging
import os
import uuid
from typing import Any

import aiohttp
from aiohttp import web

from webstack.response import error, success
from webstack.session import SESSION_KEY
from webstack.status_codes import StatusCode
from webstack.user import find_by_username

logger = logging.getLogger(__name__)

DB_KEY: web.AppKey[Any] = web.AppKey("db")
REDIS_KEY: web.AppKey[Any] = web.AppKey("redis")
HTTP_CLIENT_KEY: web.AppKey[Any] = web.AppKey("http_client")
IP_ECHO_URL_KEY: web.AppKey[str] = web.AppKey("ip_echo_url", str)
USER_KEY = "user"

LANGUAGE_COOKIE = "language"
DEFAULT_LANGUAGE = "zh-CN"
DEFAULT_IP_ECHO_URL = "https://ip.example.com"

CONNECT_TIMEOUT = 2
REQUEST_TIMEOUT = 5
KEEPALIVE_SECONDS = 30


async def read_json_body(request: web.Request, fields: dict[str, type]) -> dict[str, Any]:
    """Parse a JSON object body holding the given typed fields."""
    if request.content_type != "application/json":
        raise web.HTTPUnsupportedMediaType(
            text="Expected request with `Content-Type: application/json`"
        )
    try:
        payload = await request.json()
    except ValueError as exc:
        raise web.HTTPBadRequest(
            text=f"Failed to parse the request body as JSON: {exc}"
        ) from exc
    if not isinstance(payload, dict):
        raise web.HTTPUnprocessableEntity(text="Expected a JSON object")
    for name, kind in fields.items():
        if not isinstance(payload.get(name), kind):
            raise web.HTTPUnprocessableEntity(
                text=f"Failed to deserialize the JSON body: missing or invalid field `{name}`"
            )
    return {name: payload[name] for name in fields}


def new_http_client() -> aiohttp.ClientSession:
    """An outbound HTTP client with short connect and request timeouts."""
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT),
        connector=aiohttp.TCPConnector(keepalive_timeout=KEEPALIVE_SECONDS),
    )


async def root(request: web.Request) -> web.Response:
    """Respond with a static greeting."""
    return web.Response(text="Hello, World!")


async def action_status(request: web.Request) -> web.Response:
    """Health check."""
    return web.Response(text="OK")


async def action_cookie_language(request: web.Request) -> web.Response:
    """Report the language cookie, then reset it to the default."""
    language = request.cookies.get(LANGUAGE_COOKIE, DEFAULT_LANGUAGE)
    response = success(language)
    response.set_cookie(LANGUAGE_COOKIE, DEFAULT_LANGUAGE)
    return response


async def _fetch_text(client: aiohttp.ClientSession, url: str) -> str:
    async with client.get(url) as upstream:
        return await upstream.text()


async def action_request(request: web.Request) -> web.Response:
    """Fetch the IP echo service and relay its body."""
    url = request.app.get(IP_ECHO_URL_KEY) or os.environ.get("IP_ECHO_URL", DEFAULT_IP_ECHO_URL)
    client = request.app.get(HTTP_CLIENT_KEY)
    if client is None:
        async with new_http_client() as own_client:
            text = await _fetch_text(own_client, url)
    else:
        text = await _fetch_text(client, url)
    return web.Response(text=text)


async def action_login(request: web.Request) -> web.Response:
    """Log a user in by name and remember their id in the session."""
    session = request[SESSION_KEY]
    logger.debug("%r", session)
    payload = await read_json_body(request, {"username": str, "password": str})
    if not payload["username"]:
        return error(StatusCode.USERNAME_CANNOT_BE_EMPTY)
    try:
        user = await find_by_username(request.app[DB_KEY], payload["username"])
    except Exception as exc:
        logger.warning("%s", exc)
        return error(StatusCode.USERNAME_OR_PASSWORD_MISMATCH)
    token = uuid.uuid4()
    session.set("user_id", user.id)
    return success(
        {
            "user": {"id": user.id, "username": user.username},
            "token": str(token),
        }
    )
"""The route table of the web service."""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any, Awaitable, Callable

from aiohttp import web

from webstack import controllers, users, ws
from webstack.auth import mw_require_auth

DEFAULT_ASSETS_DIR = Path("assets") / "web"
INDEX_FILE = "index.html"

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _require_auth(handler: Handler) -> Handler:
    @functools.wraps(handler)
    async def guarded(request: web.Request) -> web.StreamResponse:
        return await mw_require_auth(request, handler)

    return guarded


def _resolve_static(root: Path, relative: str) -> Path | None:
    base = root.resolve()
    target = (base / relative).resolve()
    if target != base and base not in target.parents:
        return None
    if target.is_dir():
        target = target / INDEX_FILE
    return target if target.is_file() else None


def routes_static(assets_dir: str | Path = DEFAULT_ASSETS_DIR) -> list[web.RouteDef]:
    """Serve files under /static, answering directories with their index.html."""
    root = Path(assets_dir)

    async def serve_static(request: web.Request) -> web.StreamResponse:
        target = _resolve_static(root, request.match_info.get("path", ""))
        if target is None:
            raise web.HTTPNotFound()
        return web.FileResponse(target)

    return [
        web.get("/static", serve_static),
        web.get("/static/{path:.*}", serve_static),
    ]


def create_router(assets_dir: str | Path = DEFAULT_ASSETS_DIR) -> list[Any]:
    """Every route of the service, user routes guarded by authentication."""
    routes: list[Any] = [
        web.get("/", controllers.root),
        # Fixed segments are registered before the {username} pattern so they win.
        web.get("/users/self", _require_auth(users.action_current_user)),
        web.get("/users/logout", _require_auth(users.action_logout)),
        web.get("/users/{username}", _require_auth(users.action_find_user)),
        web.post("/users", _require_auth(users.action_create_user)),
        web.get("/users", _require_auth(users.action_list)),
        web.get("/ws", ws.ws_handler),
        web.get("/status", controllers.action_status),
        web.post("/login", controllers.action_login),
        web.get("/http/get", controllers.action_request),
        web.get("/cookie/language", controllers.action_cookie_language),
    ]
    routes.extend(routes_static(assets_dir))
    return routes
"""Application assembly and the command that runs the web service."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import socket
from pathlib import Path
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from aiohttp import web

from webstack.controllers import DB_KEY, HTTP_CLIENT_KEY, REDIS_KEY, new_http_client
from webstack.routes import DEFAULT_ASSETS_DIR, create_router
from webstack.session import DEFAULT_SESSION_NAME, RedisSessionStore, create_session_middleware
from webstack.store import get_db

logger = logging.getLogger(__name__)

LISTEN_FDS_START = 3


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


@web.middleware
async def _compression_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    response = await handler(request)
    if isinstance(response, web.Response):
        response.enable_compression()
    return response


async def _http_client(app: web.Application) -> AsyncIterator[None]:
    client = new_http_client()
    app[HTTP_CLIENT_KEY] = client
    try:
        yield
    finally:
        await client.close()


def create_app(
    db: Any,
    redis_client: Any,
    session_name: str = DEFAULT_SESSION_NAME,
    assets_dir: str | Path | None = None,
) -> web.Application:
    """Build the application around a database and a Redis client."""
    store = RedisSessionStore(redis_client, session_name)
    app = web.Application(
        middlewares=[_compression_middleware, create_session_middleware(store)]
    )
    app[DB_KEY] = db
    app[REDIS_KEY] = redis_client
    app.add_routes(create_router(DEFAULT_ASSETS_DIR if assets_dir is None else assets_dir))
    app.cleanup_ctx.append(_http_client)
    return app


def _load_dotenv(path: Path = Path(".env")) -> None:
    if not path.is_file():
        return
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):]
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        os.environ.setdefault(key.strip(), value)


def _require_env(name: str) -> str:
    value = os.environ.get(name)
    if value is None:
        raise ConfigError(f"{name} is not set")
    return value


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ConfigError(f"invalid address: {address!r}")
    try:
        return host.strip("[]"), int(port)
    except ValueError as exc:
        raise ConfigError(f"invalid port in address: {address!r}") from exc


def _inherited_socket() -> socket.socket | None:
    """The first listening socket passed by a socket-activating supervisor, if any."""
    pid = os.environ.get("LISTEN_PID")
    if pid is not None and pid != str(os.getpid()):
        return None
    try:
        count = int(os.environ.get("LISTEN_FDS", "0"))
    except ValueError:
        return None
    if count < 1:
        return None
    sock = socket.socket(fileno=LISTEN_FDS_START)
    sock.setblocking(False)
    return sock


def _format_address(address: Any) -> str:
    if isinstance(address, tuple):
        host, port = address[0], address[1]
        return f"[{host}]:{port}" if ":" in str(host) else f"{host}:{port}"
    return str(address)


async def _serve() -> None:
    database_url = _require_env("DATABASE_URL")
    db = await get_db(database_url)
    logger.debug("MySQL connection to address %s", database_url)

    redis_url = _require_env("REDIS_URL")
    logger.debug("Redis connection to address %s", redis_url)
    redis_client = aioredis.Redis.from_url(redis_url, decode_responses=True)

    session_name = os.environ.get("SESSION_NAME", DEFAULT_SESSION_NAME)
    app = create_app(db, redis_client, session_name)
    runner = web.AppRunner(app)
    await runner.setup()
    try:
        sock = _inherited_socket()
        if sock is not None:
            site: web.BaseSite = web.SockSite(runner, sock)
        else:
            host, port = _split_address(_require_env("WEB_SERVICE_ADDRESS"))
            site = web.TCPSite(runner, host, port)
        await site.start()
        for address in runner.addresses:
            logger.info("Web service listening on http://%s", _format_address(address))
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        await db.close()
        await redis_client.aclose()


def main(argv: list[str] | None = None) -> None:
    """Run the web service configured from the environment and a .env file."""
    parser = argparse.ArgumentParser(
        prog="webstack", description="Run the web service configured from the environment."
    )
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    _load_dotenv()
    try:
        asyncio.run(_serve())
    except ConfigError as exc:
        raise SystemExit(str(exc)) from exc
    except KeyboardInterrupt:
        pass
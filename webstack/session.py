"""Cookie-identified sessions persisted in Redis."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Awaitable, Callable

from aiohttp import web

SESSION_KEY = "session"
DEFAULT_SESSION_NAME = "session"
DEFAULT_LIFESPAN = timedelta(hours=6)


def _new_id() -> str:
    return uuid.uuid4().hex


def _is_valid_id(value: str) -> bool:
    try:
        return uuid.UUID(value).hex == value
    except ValueError:
        return False


@dataclass
class Session:
    """Key/value data belonging to one client."""

    id: str = field(default_factory=_new_id)
    data: dict[str, Any] = field(default_factory=dict)
    modified: bool = False
    destroyed: bool = False

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.modified = True

    def destroy(self) -> None:
        self.data.clear()
        self.destroyed = True
        self.modified = True


class RedisSessionStore:
    """Stores session data as JSON under a per-session Redis key."""

    def __init__(
        self,
        redis: Any,
        session_name: str = DEFAULT_SESSION_NAME,
        lifespan: timedelta = DEFAULT_LIFESPAN,
    ) -> None:
        self.redis = redis
        self.session_name = session_name
        self.lifespan = lifespan

    def _key(self, session_id: str) -> str:
        return f"{self.session_name}:{session_id}"

    async def load(self, session_id: str | None) -> Session:
        """Load a stored session, or start a fresh one."""
        if session_id and _is_valid_id(session_id):
            raw = await self.redis.get(self._key(session_id))
            if raw is not None:
                return Session(id=session_id, data=json.loads(raw))
        return Session()

    async def save(self, session: Session) -> None:
        """Persist a session, or remove it if destroyed."""
        key = self._key(session.id)
        if session.destroyed:
            await self.redis.delete(key)
            return
        await self.redis.set(
            key, json.dumps(session.data), ex=int(self.lifespan.total_seconds())
        )


Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def create_session_middleware(store: RedisSessionStore) -> Callable[..., Any]:
    """Middleware that attaches a Session to request[SESSION_KEY]."""

    @web.middleware
    async def session_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        session = await store.load(request.cookies.get(store.session_name))
        request[SESSION_KEY] = session
        response = await handler(request)
        if session.destroyed:
            await store.save(session)
            response.del_cookie(store.session_name, path="/")
        elif session.modified:
            await store.save(session)
            response.set_cookie(
                store.session_name,
                session.id,
                path="/",
                httponly=True,
                max_age=int(store.lifespan.total_seconds()),
            )
        return response

    return session_middleware
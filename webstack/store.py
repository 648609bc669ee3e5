"""Database access with an asynchronous interface over a DB-API connection."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, Sequence
from urllib.parse import unquote, urlsplit

import pymysql

DEFAULT_PORT = 3306
TIME_ZONE_STATEMENT = "set time_zone = 'Asia/Shanghai'"


class RowNotFound(LookupError):
    """Raised when a query expected to return a row returns none."""


def _row_dict(cursor: Any, row: Sequence[Any]) -> dict[str, Any]:
    names = [column[0] for column in cursor.description or ()]
    return dict(zip(names, row))


class Database:
    """A lazily opened connection whose queries run in a worker thread."""

    def __init__(self, connect: Callable[[], Any]) -> None:
        self._connect = connect
        self._conn: Any = None
        self._lock = threading.Lock()

    def _connection(self) -> Any:
        if self._conn is None:
            self._conn = self._connect()
        return self._conn

    def _open(self) -> None:
        with self._lock:
            self._connection()

    def _run(self, sql: str, params: Sequence[Any], consume: Callable[[Any], Any]) -> Any:
        with self._lock:
            conn = self._connection()
            cursor = conn.cursor()
            try:
                cursor.execute(sql, tuple(params))
                result = consume(cursor)
            finally:
                cursor.close()
            conn.commit()
            return result

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a statement and return the id of the last inserted row."""
        return await asyncio.to_thread(self._run, sql, params, lambda cur: cur.lastrowid)

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any]:
        """Return the first row as a dict; raise RowNotFound when there is none."""

        def consume(cursor: Any) -> dict[str, Any] | None:
            row = cursor.fetchone()
            return None if row is None else _row_dict(cursor, row)

        row = await asyncio.to_thread(self._run, sql, params, consume)
        if row is None:
            raise RowNotFound("no rows returned by a query that expected to return at least one row")
        return row

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Return every row as a dict."""

        def consume(cursor: Any) -> list[dict[str, Any]]:
            return [_row_dict(cursor, row) for row in cursor.fetchall()]

        return await asyncio.to_thread(self._run, sql, params, consume)

    async def close(self) -> None:
        """Close the underlying connection; a later query reopens it."""

        def shut() -> None:
            with self._lock:
                if self._conn is not None:
                    self._conn.close()
                    self._conn = None

        await asyncio.to_thread(shut)


def parse_database_url(url: str) -> dict[str, Any]:
    """Turn a mysql:// URL into connection keyword arguments."""
    parts = urlsplit(url)
    if parts.scheme not in ("mysql", "mariadb"):
        raise ValueError(f"unsupported database scheme: {parts.scheme!r}")
    if not parts.hostname:
        raise ValueError("database URL has no host")
    return {
        "host": parts.hostname,
        "port": parts.port or DEFAULT_PORT,
        "user": unquote(parts.username) if parts.username else None,
        "password": unquote(parts.password or ""),
        "database": unquote(parts.path.lstrip("/")) or None,
    }


async def get_db(url: str) -> Database:
    """Connect to MySQL at url, setting the session time zone to Asia/Shanghai."""
    options = parse_database_url(url)

    def connect() -> Any:
        conn = pymysql.connect(**options, autocommit=True, charset="utf8mb4")
        try:
            with conn.cursor() as cursor:
                cursor.execute(TIME_ZONE_STATEMENT)
        except pymysql.MySQLError:
            pass
        return conn

    db = Database(connect)
    await asyncio.to_thread(db._open)
    return db
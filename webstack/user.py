"""User records and the queries over the user table."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from webstack.store import Database


@dataclass
class User:
    """A user row."""

    id: int
    username: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def find_by_username(db: Database, username: str) -> User:
    """Fetch the user with the given name; raise RowNotFound if absent."""
    row = await db.fetch_one("select id,username from `user` where username = %s", (username,))
    return User(**row)


async def find_one(db: Database, user_id: int) -> User:
    """Fetch the user with the given id; raise RowNotFound if absent."""
    row = await db.fetch_one("select id,username from `user` where id = %s", (user_id,))
    return User(**row)


async def find_all(db: Database) -> list[User]:
    """Fetch every user."""
    rows = await db.fetch_all("select id,username from `user`")
    return [User(**row) for row in rows]


async def create(db: Database, username: str) -> User:
    """Insert a user and return it with its new id."""
    user_id = await db.execute("insert into `user`(username) values(%s);", (username,))
    return User(id=user_id, username=username)
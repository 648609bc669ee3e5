import sqlite3

import pytest

from webstack.store import Database, RowNotFound
from webstack.user import User, create, find_all, find_by_username, find_one


class FormatCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, sql, params=()):
        self._cursor.execute(sql.replace("%s", "?"), params)

    @property
    def description(self):
        return self._cursor.description

    @property
    def lastrowid(self):
        return self._cursor.lastrowid

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()

    def close(self):
        self._cursor.close()


class FormatConnection:
    def __init__(self):
        self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        self._conn.execute(
            "create table `user` (id integer primary key autoincrement, username text unique)"
        )

    def cursor(self):
        return FormatCursor(self._conn.cursor())

    def commit(self):
        self._conn.commit()

    def close(self):
        self._conn.close()


@pytest.fixture
def db():
    return Database(FormatConnection)


def test_to_dict():
    assert User(id=4, username="alice").to_dict() == {"id": 4, "username": "alice"}


@pytest.mark.asyncio
async def test_create_then_find_by_username(db):
    created = await create(db, "alice")
    assert created.username == "alice"
    assert await find_by_username(db, "alice") == created


@pytest.mark.asyncio
async def test_find_one_by_id(db):
    created = await create(db, "bob")
    assert await find_one(db, created.id) == created


@pytest.mark.asyncio
async def test_created_ids_are_distinct(db):
    first = await create(db, "a")
    second = await create(db, "b")
    assert first.id != second.id
    assert await find_all(db) == [first, second]


@pytest.mark.asyncio
async def test_find_all_empty(db):
    assert await find_all(db) == []


@pytest.mark.asyncio
async def test_missing_user_raises(db):
    with pytest.raises(RowNotFound):
        await find_by_username(db, "nobody")
    with pytest.raises(RowNotFound):
        await find_one(db, 999)


@pytest.mark.asyncio
async def test_duplicate_username_is_an_error(db):
    await create(db, "carol")
    with pytest.raises(sqlite3.IntegrityError):
        await create(db, "carol")
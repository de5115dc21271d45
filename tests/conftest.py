"""Shared fixtures for repograph tests."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from repograph.graph import EntityGraph
from repograph.records import ClassRecord, CommentRecord, FileRecord, FunctionRecord

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine


AUTH_JS = textwrap.dedent("""\
    import { hash } from './crypto';

    function login(user, password) {
      const digest = hash(password);
      return user.password === digest;
    }

    // Ends the current session.

    function logout(session) {
      session.destroy();
    }

    export { login, logout };
""")

STORE_PY = textwrap.dedent('''\
    import os
    from a import login


    class SessionStore:
        """Keeps active sessions."""

        def get(self, key):
            return self._data.get(key)


    def make_store():
        return SessionStore()
''')


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with all tables created."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Async SQLModel session bound to the in-memory engine."""
    factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with factory() as session:
        yield session


@pytest.fixture
def auth_record() -> FileRecord:
    """``a.js`` with ``login`` on line 3 and ``logout`` on line 10."""
    return FileRecord(
        path="a.js",
        language="javascript",
        raw=AUTH_JS,
        functions=(FunctionRecord("login", 3), FunctionRecord("logout", 10)),
        imports=("./crypto",),
        exports=("login", "logout"),
        comments=(CommentRecord("// Ends the current session.", 8),),
    )


@pytest.fixture
def store_record() -> FileRecord:
    return FileRecord(
        path="b.py",
        language="python",
        raw=STORE_PY,
        functions=(FunctionRecord("get", 8, "method"), FunctionRecord("make_store", 12)),
        classes=(ClassRecord("SessionStore", 5),),
        imports=("os", "a.login"),
        comments=(CommentRecord("Keeps active sessions.", 6, "docstring"),),
    )


@pytest.fixture
def graph(auth_record: FileRecord, store_record: FileRecord) -> EntityGraph:
    """Graph holding ``a.js`` and ``b.py``."""
    g = EntityGraph()
    g.add_entities(auth_record)
    g.add_entities(store_record)
    return g

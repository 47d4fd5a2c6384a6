"""
Test infrastructure for the Social Graph API.

Strategy
--------
- Each test gets its own file-backed SQLite database (aiosqlite) under
  ``tmp_path``.  File-backed rather than in-memory so every unit of work
  checks out its own connection: transactions are isolated the way they
  are on Postgres and the feed's two bulk fetches really run on two
  connections.
- The ``Database`` is built per test and handed to ``create_app`` and to
  the service functions directly; nothing is overridden globally.
- bcrypt runs at its minimum cost so registration-heavy tests stay fast.
"""
import itertools
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event

from socialgraph.database import Database
from socialgraph.main import create_app
from socialgraph.models import User
from socialgraph.repositories import UserRepository
from socialgraph.security import create_access_token, hash_password


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def database(tmp_path) -> Database:
    """Yield a freshly created database, disposed after the test."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'socialgraph.db'}")

    # SQLite only enforces foreign keys when asked to, per connection.
    @event.listens_for(db.engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def async_client(database: Database) -> AsyncClient:
    """Yield an httpx.AsyncClient wired to an app built on ``database``."""
    transport = ASGITransport(app=create_app(database))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def make_user(database: Database):
    """
    Return a coroutine that inserts a committed user row.

    Names and emails default to unique values so tests only spell out what
    they assert on.
    """
    counter = itertools.count(1)

    async def _make(
        name: str | None = None,
        *,
        email: str | None = None,
        phone: str | None = None,
    ) -> User:
        n = next(counter)
        if email is None and phone is None:
            email = f"user{n}@example.com"
        async with database.transaction() as session:
            return await UserRepository(session).create(
                name=name or f"User {n:03d}",
                password_hash=hash_password("secret"),
                email=email,
                phone=phone,
            )

    return _make


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


async def friend_count(database: Database, user_id: str) -> int:
    async with database.session() as session:
        user = await UserRepository(session).get_by_id(user_id)
    return user.friend_count

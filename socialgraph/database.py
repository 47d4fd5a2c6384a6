from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from socialgraph.config import Settings
from socialgraph.middleware import install_query_counter


class Base(DeclarativeBase):
    pass


class Database:
    """
    Owns one async engine and its session factory.

    Instances are constructed explicitly (application lifespan, tests,
    scripts) and handed to the service layer; nothing in the package keeps
    a process-wide engine.

    Two units of work are offered:

    - ``session()`` for reads and single-statement writes.
    - ``transaction()`` for multi-row mutations: commits when the block
      exits normally, rolls back on any exception (cancellation included).
    """

    def __init__(self, url: str, **engine_options) -> None:
        self.url = url
        self.engine = create_async_engine(url, pool_pre_ping=True, **engine_options)
        install_query_counter(self.engine)
        self._sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        options = {"echo": settings.DEBUG}
        if make_url(settings.DATABASE_URL).get_backend_name() != "sqlite":
            options.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_timeout=settings.DB_POOL_TIMEOUT,
            )
        return cls(settings.DATABASE_URL, **options)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._sessionmaker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        async with self._sessionmaker() as session, session.begin():
            yield session

    async def create_all(self) -> None:
        # Models must be imported so their tables are registered on Base.metadata.
        import socialgraph.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

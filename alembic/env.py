"""Alembic environment for the social graph schema.

The database URL comes from ``socialgraph.config.settings``; online runs go
through the same ``Database`` wrapper the application uses.
"""

import asyncio
from logging.config import fileConfig

from alembic import context

from socialgraph.config import settings
from socialgraph.database import Base, Database
import socialgraph.models  # noqa: F401  (registers tables on Base.metadata)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _apply(connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    db = Database(settings.DATABASE_URL)
    try:
        async with db.engine.connect() as connection:
            await connection.run_sync(_apply)
    finally:
        await db.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())

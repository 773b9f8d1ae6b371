"""Alembic environment for the eduprima schema.

Learn: The database URL comes from the app settings (EDUPRIMA_DATABASE_URL)
unless one is passed explicitly with `alembic -x url=...`, which is handy
for pointing a one-off migration at a scratch database. Online runs go
through an async engine (asyncpg) with NullPool; migrations themselves
run synchronously inside run_sync.

SQLite URLs get batch mode, since SQLite can't ALTER most constraints.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import create_async_engine

from eduprima.config import settings
from eduprima.db.models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or settings.database_url


def _configure(url: str, **kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=make_url(url).get_backend_name() == "sqlite",
        **kwargs,
    )


def migrate_offline(url: str) -> None:
    """Emit SQL to stdout instead of connecting (`alembic upgrade --sql`)."""
    _configure(url, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _migrate_with(connection: Connection, url: str) -> None:
    _configure(url, connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_online(url: str) -> None:
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate_with, url)
    finally:
        await engine.dispose()


url = _database_url()
if context.is_offline_mode():
    migrate_offline(url)
else:
    asyncio.run(migrate_online(url))

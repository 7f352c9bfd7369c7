"""Alembic environment configuration."""
import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from closecircle.infra.db.base import (
    Base,
    async_pg_connect_args,
    async_pg_url_without_sslmode,
    normalize_async_pg_url,
)
from closecircle.infra.db.models import *  # noqa: F401, F403
from closecircle.settings import settings

# this is the Alembic Config object
config = context.config

# Same URL handling as the app: asyncpg driver, sslmode turned into connect_args.
# A sqlalchemy.url passed with -x url=... wins over settings (handy for sqlite checks).
_db_url = normalize_async_pg_url(context.get_x_argument(as_dictionary=True).get("url") or settings.database_url)
_is_sqlite = _db_url.startswith("sqlite")
_db_connect_args = async_pg_connect_args(_db_url)
config.set_main_option("sqlalchemy.url", _db_url if _is_sqlite else async_pg_url_without_sslmode(_db_url))

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL)."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """Run migrations with connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=_is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations in 'online' mode using an async engine."""
    connectable = create_async_engine(
        config.get_main_option("sqlalchemy.url"),
        connect_args=_db_connect_args,
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())

"""Dialect-specific statement helpers (PostgreSQL in production, SQLite in tests)."""
from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def insert_ignore(session: AsyncSession, table: Table, rows: list[dict]):
    """INSERT ... ON CONFLICT DO NOTHING for the session's dialect."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(table).values(rows).on_conflict_do_nothing()
    if dialect == "sqlite":
        return sqlite_insert(table).values(rows).on_conflict_do_nothing()
    raise NotImplementedError(f"insert_ignore not supported for dialect {dialect}")

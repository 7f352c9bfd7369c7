"""Request-scoped database sessions."""
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from closecircle.infra.db.base import Database


def get_database(request: Request) -> Database:
    """Database handle created by the application lifespan."""
    return request.app.state.database


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session for the duration of one request."""
    database = get_database(request)
    async with database.session() as session:
        yield session

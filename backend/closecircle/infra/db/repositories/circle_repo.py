"""Close-circle membership repository implementation."""
from sqlalchemy import delete, func, or_, and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from closecircle.domain.circle.services import CircleRepository
from closecircle.domain.common.types import utcnow
from closecircle.domain.identity.models import User
from closecircle.infra.db.dialect import insert_ignore
from closecircle.infra.db.models.user import UserModel, close_circle_members


class CircleRepositoryImpl(CircleRepository):
    """Close-circle membership repository. Mutations are committed by the caller."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def is_member(self, owner_id: str, member_id: str) -> bool:
        result = await self.session.execute(
            select(close_circle_members.c.member_id).where(
                close_circle_members.c.owner_id == owner_id,
                close_circle_members.c.member_id == member_id,
            )
        )
        return result.first() is not None

    async def member_ids(self, owner_id: str) -> list[str]:
        result = await self.session.execute(
            select(close_circle_members.c.member_id).where(close_circle_members.c.owner_id == owner_id)
        )
        return list(result.scalars().all())

    async def list_members(self, owner_id: str) -> list[User]:
        """Members, newest accounts first."""
        result = await self.session.execute(
            select(UserModel)
            .join(close_circle_members, close_circle_members.c.member_id == UserModel.id)
            .where(close_circle_members.c.owner_id == owner_id)
            .order_by(UserModel.created_at.desc())
        )
        return [m.to_entity() for m in result.scalars().all()]

    async def count(self, owner_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(close_circle_members).where(close_circle_members.c.owner_id == owner_id)
        )
        return int(result.scalar_one())

    async def add_pair(self, user_a: str, user_b: str) -> None:
        """Insert both directions with set semantics."""
        now = utcnow()
        await self.session.execute(
            insert_ignore(
                self.session,
                close_circle_members,
                [
                    {"owner_id": user_a, "member_id": user_b, "added_at": now},
                    {"owner_id": user_b, "member_id": user_a, "added_at": now},
                ],
            )
        )

    async def remove_pair(self, user_a: str, user_b: str) -> int:
        """Delete both directions."""
        result = await self.session.execute(
            delete(close_circle_members).where(
                or_(
                    and_(close_circle_members.c.owner_id == user_a, close_circle_members.c.member_id == user_b),
                    and_(close_circle_members.c.owner_id == user_b, close_circle_members.c.member_id == user_a),
                )
            )
        )
        return result.rowcount

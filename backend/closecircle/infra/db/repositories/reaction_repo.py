"""Reaction repository implementation."""
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from closecircle.domain.common.errors import ConflictError
from closecircle.domain.reaction.models import Reaction, ReactionType
from closecircle.domain.reaction.services import ReactionRepository
from closecircle.infra.db.models.reaction import ReactionModel


class ReactionRepositoryImpl(ReactionRepository):
    """Reaction repository. add/remove are committed by the caller."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, journal_id: str, user_id: str, type: ReactionType = ReactionType.LIKE) -> Optional[Reaction]:
        result = await self.session.execute(
            select(ReactionModel).where(
                ReactionModel.journal_id == journal_id,
                ReactionModel.user_id == user_id,
                ReactionModel.type == type,
            )
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def add(self, reaction: Reaction) -> Reaction:
        self.session.add(ReactionModel.from_entity(reaction))
        try:
            await self.session.flush()
        except IntegrityError:
            # unique (user, journal, type) hit by a concurrent toggle in another process
            raise ConflictError("Reaction already recorded")
        return reaction

    async def remove(self, reaction_id: str) -> None:
        await self.session.execute(delete(ReactionModel).where(ReactionModel.id == reaction_id))

    async def count(self, journal_id: str, type: ReactionType = ReactionType.LIKE) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(ReactionModel)
            .where(ReactionModel.journal_id == journal_id, ReactionModel.type == type)
        )
        return int(result.scalar_one())

    async def count_likes_for(self, journal_ids: list[str]) -> dict[str, int]:
        """Grouped like counts for several journals."""
        if not journal_ids:
            return {}
        result = await self.session.execute(
            select(ReactionModel.journal_id, func.count())
            .where(ReactionModel.journal_id.in_(journal_ids), ReactionModel.type == ReactionType.LIKE)
            .group_by(ReactionModel.journal_id)
        )
        return {journal_id: int(count) for journal_id, count in result.all()}

    async def list_by_journal(self, journal_id: str) -> list[Reaction]:
        result = await self.session.execute(
            select(ReactionModel)
            .where(ReactionModel.journal_id == journal_id)
            .order_by(ReactionModel.created_at.desc())
        )
        return [m.to_entity() for m in result.scalars().all()]

    async def liked_journal_ids(self, user_id: str) -> list[str]:
        result = await self.session.execute(
            select(ReactionModel.journal_id)
            .where(ReactionModel.user_id == user_id, ReactionModel.type == ReactionType.LIKE)
            .order_by(ReactionModel.created_at.desc())
        )
        return list(result.scalars().all())

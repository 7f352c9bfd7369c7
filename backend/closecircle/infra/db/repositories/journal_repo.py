"""Journal repository implementation."""
from datetime import date, datetime
from typing import Optional

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from closecircle.domain.common.errors import ConflictError
from closecircle.domain.common.types import PageRequest
from closecircle.domain.journal.models import FeedQuery, FeedScope, Journal, Visibility
from closecircle.domain.journal.services import JournalRepository
from closecircle.infra.db.models.journal import JournalModel
from closecircle.infra.db.models.reaction import ReactionModel
from closecircle.infra.db.models.user import close_circle_members


def _authors_sharing_with(viewer_id: str):
    """Authors whose close circle contains the viewer."""
    return select(close_circle_members.c.owner_id).where(close_circle_members.c.member_id == viewer_id)


def _feed_conditions(query: FeedQuery) -> list:
    if query.scope == FeedScope.PUBLIC:
        return [JournalModel.visibility == Visibility.PUBLIC]
    if query.scope == FeedScope.CLOSE_CIRCLE:
        return [
            JournalModel.visibility == Visibility.CLOSE_CIRCLE,
            JournalModel.author_id.in_(_authors_sharing_with(query.viewer_id)),
        ]
    if query.scope == FeedScope.AUTHOR:
        return [
            JournalModel.author_id == query.author_id,
            JournalModel.visibility.in_(list(query.visibilities or {Visibility.PUBLIC})),
        ]
    return [
        or_(
            JournalModel.author_id == query.viewer_id,
            JournalModel.visibility == Visibility.PUBLIC,
            and_(
                JournalModel.visibility == Visibility.CLOSE_CIRCLE,
                JournalModel.author_id.in_(_authors_sharing_with(query.viewer_id)),
            ),
        )
    ]


class JournalRepositoryImpl(JournalRepository):
    """Journal repository implementation."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, journal: Journal) -> Journal:
        """Insert a journal."""
        model = JournalModel.from_entity(journal)
        self.session.add(model)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Journal already exists for this date")
        await self.session.refresh(model)
        return model.to_entity()

    async def get_by_id(self, journal_id: str) -> Optional[Journal]:
        """Get journal by ID."""
        result = await self.session.execute(select(JournalModel).where(JournalModel.id == journal_id))
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_by_author_and_date(self, author_id: str, journal_date: date) -> Optional[Journal]:
        result = await self.session.execute(
            select(JournalModel).where(
                JournalModel.author_id == author_id,
                JournalModel.journal_date == journal_date,
            )
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def list_by_author_between(self, author_id: str, start: date, end: date) -> list[Journal]:
        """Journals with start <= journal_date < end, oldest date first."""
        result = await self.session.execute(
            select(JournalModel)
            .where(
                JournalModel.author_id == author_id,
                JournalModel.journal_date >= start,
                JournalModel.journal_date < end,
            )
            .order_by(JournalModel.journal_date.asc())
        )
        return [m.to_entity() for m in result.scalars().all()]

    async def update(self, journal: Journal) -> Journal:
        """Write editable fields and commit."""
        await self.session.execute(
            update(JournalModel)
            .where(JournalModel.id == journal.id)
            .values(
                title=journal.title,
                content=journal.content,
                visibility=journal.visibility,
                is_anonymous=journal.is_anonymous,
                images=list(journal.images),
                updated_at=journal.updated_at,
            )
        )
        await self.session.commit()
        return await self.get_by_id(journal.id)

    async def delete(self, journal_id: str) -> None:
        """Delete a journal and its reactions."""
        await self.session.execute(delete(ReactionModel).where(ReactionModel.journal_id == journal_id))
        await self.session.execute(delete(JournalModel).where(JournalModel.id == journal_id))
        await self.session.commit()

    async def set_likes_count(self, journal_id: str, likes_count: int) -> None:
        await self.session.execute(
            update(JournalModel).where(JournalModel.id == journal_id).values(likes_count=likes_count)
        )

    async def increment_reads(self, journal_ids: list[str]) -> None:
        """Atomic in-database increment; the caller commits."""
        if not journal_ids:
            return
        await self.session.execute(
            update(JournalModel)
            .where(JournalModel.id.in_(journal_ids))
            .values(reads_count=JournalModel.reads_count + 1)
        )

    async def reads_counts(self, journal_ids: list[str]) -> dict[str, int]:
        if not journal_ids:
            return {}
        result = await self.session.execute(
            select(JournalModel.id, JournalModel.reads_count).where(JournalModel.id.in_(journal_ids))
        )
        return {row.id: row.reads_count for row in result}

    async def page_feed(self, query: FeedQuery, page: PageRequest) -> tuple[list[Journal], int]:
        """One page of journals matching the query, newest first, plus the total match count."""
        conditions = _feed_conditions(query)
        total = await self.session.execute(select(func.count()).select_from(JournalModel).where(*conditions))
        result = await self.session.execute(
            select(JournalModel)
            .where(*conditions)
            .order_by(JournalModel.created_at.desc(), JournalModel.id.desc())
            .offset(page.offset)
            .limit(page.limit)
        )
        return [m.to_entity() for m in result.scalars().all()], int(total.scalar_one())

    async def totals_for_author(self, author_id: str) -> tuple[int, int, int]:
        """(journal count, sum of likes_count, sum of reads_count)."""
        result = await self.session.execute(
            select(
                func.count(JournalModel.id),
                func.coalesce(func.sum(JournalModel.likes_count), 0),
                func.coalesce(func.sum(JournalModel.reads_count), 0),
            ).where(JournalModel.author_id == author_id)
        )
        count, likes, reads = result.one()
        return int(count), int(likes), int(reads)

    async def created_since(self, author_id: str, since: datetime) -> list[datetime]:
        result = await self.session.execute(
            select(JournalModel.created_at).where(
                JournalModel.author_id == author_id,
                JournalModel.created_at >= since,
            )
        )
        return list(result.scalars().all())

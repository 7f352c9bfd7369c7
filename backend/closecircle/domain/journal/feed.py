"""Visibility-scoped feeds with read counting."""
import logging
from typing import Optional, Protocol

from closecircle.domain.circle.services import CircleRepository, UnitOfWork
from closecircle.domain.common.errors import NotFoundError, ValidationError
from closecircle.domain.common.types import Page, PageRequest
from closecircle.domain.identity.models import PublicProfile
from closecircle.domain.identity.services import UserRepository
from closecircle.domain.journal.models import FeedEntry, FeedQuery, FeedScope, Journal
from closecircle.domain.journal.services import JournalRepository
from closecircle.domain.journal.visibility import allowed_visibilities

logger = logging.getLogger(__name__)


class LikeCounter(Protocol):
    """Like counts from the reaction ledger."""

    async def count_likes_for(self, journal_ids: list[str]) -> dict[str, int]:
        ...


class FeedService:
    """Resolves which journals a viewer may see, one page at a time.

    Public and close-circle pages count as reads: every returned
    entry gets reads_count + 1, and the response carries the incremented value.
    """

    def __init__(
        self,
        journal_repo: JournalRepository,
        circle_repo: CircleRepository,
        user_repo: UserRepository,
        like_counter: LikeCounter,
        uow: UnitOfWork,
        max_limit: int = 100,
    ):
        self.journal_repo = journal_repo
        self.circle_repo = circle_repo
        self.user_repo = user_repo
        self.like_counter = like_counter
        self.uow = uow
        self.max_limit = max_limit

    def _check_page(self, page: PageRequest) -> None:
        if page.page < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= page.limit <= self.max_limit:
            raise ValidationError(f"limit must be between 1 and {self.max_limit}")

    async def _query(self, viewer_id: str, scope: FeedScope, author_id: Optional[str]) -> FeedQuery:
        if scope != FeedScope.AUTHOR:
            return FeedQuery(scope=scope, viewer_id=viewer_id)
        if not author_id:
            raise ValidationError("author_id is required for an author feed")
        author = await self.user_repo.get_by_id(author_id)
        if author is None:
            raise NotFoundError("User", author_id, message="User not found")
        in_circle = viewer_id != author_id and await self.circle_repo.is_member(author_id, viewer_id)
        return FeedQuery(
            scope=scope,
            viewer_id=viewer_id,
            author_id=author_id,
            visibilities=allowed_visibilities(viewer_id, author_id, in_circle),
        )

    @staticmethod
    def _counts_as_read(query: FeedQuery) -> bool:
        return query.scope in (FeedScope.PUBLIC, FeedScope.CLOSE_CIRCLE)

    async def _record_reads(self, journals: list[Journal]) -> list[Journal]:
        ids = [j.id for j in journals]
        try:
            await self.journal_repo.increment_reads(ids)
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise
        counts = await self.journal_repo.reads_counts(ids)
        return [j.model_copy(update={"reads_count": counts.get(j.id, j.reads_count + 1)}) for j in journals]

    async def feed(
        self,
        viewer_id: str,
        scope: FeedScope,
        page: PageRequest,
        author_id: Optional[str] = None,
    ) -> Page[FeedEntry]:
        """One page of the viewer's feed for a scope, newest first."""
        self._check_page(page)
        query = await self._query(viewer_id, scope, author_id)
        journals, total = await self.journal_repo.page_feed(query, page)

        if journals and self._counts_as_read(query):
            journals = await self._record_reads(journals)

        ids = [j.id for j in journals]
        likes = await self.like_counter.count_likes_for(ids)
        author_ids = [j.author_id for j in journals if not j.is_anonymous]
        authors = await self.user_repo.get_by_ids(author_ids)

        items = []
        for journal in journals:
            author = authors.get(journal.author_id)
            items.append(FeedEntry.of(journal, PublicProfile.of(author) if author else None, likes.get(journal.id, 0)))
        logger.debug("Feed %s for %s: %d of %d", scope.value, viewer_id, len(items), total)
        return Page[FeedEntry].build(items, page, total)

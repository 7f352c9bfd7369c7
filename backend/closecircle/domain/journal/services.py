"""Journal domain services."""
import logging
from datetime import date, datetime
from typing import Optional, Protocol

from closecircle.domain.circle.services import CircleRepository
from closecircle.domain.common.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from closecircle.domain.common.locks import journal_locks
from closecircle.domain.common.types import PageRequest, utcnow
from closecircle.domain.identity.models import PublicProfile
from closecircle.domain.identity.services import UserRepository
from closecircle.domain.journal.models import (
    FeedEntry,
    FeedQuery,
    Journal,
    Visibility,
    month_bounds,
    parse_journal_date,
)
from closecircle.domain.journal.visibility import can_view
from closecircle.domain.media.models import ImageUpload, StoredImage
from closecircle.domain.media.services import MediaHost, discard_quietly

logger = logging.getLogger(__name__)


class JournalRepository(Protocol):
    """Journal repository protocol."""

    async def create(self, journal: Journal) -> Journal:
        """Insert a journal. Raises ConflictError on a duplicate (author, date)."""
        ...

    async def get_by_id(self, journal_id: str) -> Optional[Journal]:
        """Get journal by ID."""
        ...

    async def get_by_author_and_date(self, author_id: str, journal_date: date) -> Optional[Journal]:
        ...

    async def list_by_author_between(self, author_id: str, start: date, end: date) -> list[Journal]:
        """Journals with start <= journal_date < end, oldest date first."""
        ...

    async def update(self, journal: Journal) -> Journal:
        """Write editable fields and commit."""
        ...

    async def delete(self, journal_id: str) -> None:
        """Delete a journal and its reactions, and commit."""
        ...

    async def set_likes_count(self, journal_id: str, likes_count: int) -> None:
        """Write the cached like count; the caller commits."""
        ...

    async def increment_reads(self, journal_ids: list[str]) -> None:
        """reads_count = reads_count + 1 for each id; the caller commits."""
        ...

    async def reads_counts(self, journal_ids: list[str]) -> dict[str, int]:
        ...

    async def page_feed(self, query: FeedQuery, page: PageRequest) -> tuple[list[Journal], int]:
        """One page of journals matching the query, newest first, plus the total match count."""
        ...

    async def totals_for_author(self, author_id: str) -> tuple[int, int, int]:
        """(journal count, sum of likes_count, sum of reads_count)."""
        ...

    async def created_since(self, author_id: str, since: datetime) -> list[datetime]:
        ...


class JournalService:
    """Create, read, update and delete journals; attach images."""

    def __init__(
        self,
        journal_repo: JournalRepository,
        circle_repo: CircleRepository,
        user_repo: UserRepository,
        media_host: Optional[MediaHost] = None,
        media_folder: str = "journals",
        max_upload_bytes: int = 5 * 1024 * 1024,
    ):
        self.journal_repo = journal_repo
        self.circle_repo = circle_repo
        self.user_repo = user_repo
        self.media_host = media_host
        self.media_folder = media_folder
        self.max_upload_bytes = max_upload_bytes

    async def _upload(self, image: ImageUpload) -> StoredImage:
        image.validate_image(self.max_upload_bytes)
        if self.media_host is None:
            raise RuntimeError("JournalService needs a media host to store images")
        return await self.media_host.upload(image, folder=self.media_folder)

    async def _owned(self, journal_id: str, editor_id: str) -> Journal:
        journal = await self.journal_repo.get_by_id(journal_id)
        if journal is None:
            raise NotFoundError("Journal", journal_id, message="Journal not found")
        if journal.author_id != editor_id:
            raise AuthorizationError("Not authorized to modify this journal")
        return journal

    async def create(
        self,
        author_id: str,
        title: str,
        content: str,
        journal_date: str,
        visibility: Visibility = Visibility.PRIVATE,
        is_anonymous: bool = False,
        image: Optional[ImageUpload] = None,
    ) -> Journal:
        """One journal per author per date; an attached image is uploaded before the insert."""
        if not (title or "").strip() or not (content or "").strip():
            raise ValidationError("Title and content are required")
        day = parse_journal_date(journal_date)
        if await self.journal_repo.get_by_author_and_date(author_id, day):
            raise ConflictError("Journal already exists for this date")

        stored = await self._upload(image) if image is not None else None
        journal = Journal.create(
            author_id=author_id,
            title=title,
            content=content,
            journal_date=day,
            visibility=visibility,
            is_anonymous=is_anonymous,
            images=[stored.url] if stored else None,
        )
        try:
            journal = await self.journal_repo.create(journal)
        except Exception:
            if stored is not None:
                await discard_quietly(self.media_host, stored)
            raise
        logger.info("Journal %s created by %s for %s (%s)", journal.id, author_id, day, visibility.value)
        return journal

    async def get(self, journal_id: str, viewer_id: str) -> Journal:
        """Fetch one journal the viewer may see. Does not count as a read."""
        journal = await self.journal_repo.get_by_id(journal_id)
        if journal is None:
            raise NotFoundError("Journal", journal_id, message="Journal not found")
        in_circle = journal.author_id != viewer_id and await self.circle_repo.is_member(journal.author_id, viewer_id)
        if not can_view(journal, viewer_id, in_circle):
            raise AuthorizationError("Not authorized to view this journal")
        return journal

    async def get_entry(self, journal_id: str, viewer_id: str) -> FeedEntry:
        """Fetch one journal with its author block."""
        journal = await self.get(journal_id, viewer_id)
        author = await self.user_repo.get_by_id(journal.author_id)
        return FeedEntry.of(journal, PublicProfile.of(author) if author else None, journal.likes_count)

    async def update(
        self,
        journal_id: str,
        editor_id: str,
        title: str,
        content: str,
        visibility: Optional[Visibility] = None,
        is_anonymous: Optional[bool] = None,
        remove_image: bool = False,
        image: Optional[ImageUpload] = None,
    ) -> Journal:
        """Author-only edit. A new image replaces existing ones; remove_image clears them and wins over a new image.

        The upload finishes before anything is written, so a failed upload leaves
        the journal untouched.
        """
        if not (title or "").strip() or not (content or "").strip():
            raise ValidationError("Title and content are required")
        journal = await self._owned(journal_id, editor_id)

        stored = await self._upload(image) if image is not None and not remove_image else None
        if remove_image:
            images = []
        elif stored is not None:
            images = [stored.url]
        else:
            images = list(journal.images)

        changes = {
            "title": title.strip(),
            "content": content,
            "images": images,
            "updated_at": utcnow(),
        }
        if visibility is not None:
            changes["visibility"] = visibility
        if is_anonymous is not None:
            changes["is_anonymous"] = is_anonymous
        try:
            journal = await self.journal_repo.update(journal.model_copy(update=changes))
        except Exception:
            if stored is not None:
                await discard_quietly(self.media_host, stored)
            raise
        logger.info("Journal %s updated by %s", journal_id, editor_id)
        return journal

    async def delete(self, journal_id: str, editor_id: str) -> None:
        """Author-only delete; reactions go with it."""
        await self._owned(journal_id, editor_id)
        await self.journal_repo.delete(journal_id)
        logger.info("Journal %s deleted by %s", journal_id, editor_id)

    async def attach_image(self, journal_id: str, editor_id: str, image: ImageUpload) -> Journal:
        """Upload an image and append it to the journal's images."""
        await self._owned(journal_id, editor_id)
        stored = await self._upload(image)
        async with journal_locks.hold(journal_id):
            try:
                journal = await self._owned(journal_id, editor_id)
                journal = await self.journal_repo.update(
                    journal.model_copy(update={"images": [*journal.images, stored.url], "updated_at": utcnow()})
                )
            except Exception:
                await discard_quietly(self.media_host, stored)
                raise
        logger.info("Image attached to journal %s", journal_id)
        return journal

    async def get_by_date(self, author_id: str, journal_date: str) -> Journal:
        """The author's own journal for a date."""
        day = parse_journal_date(journal_date)
        journal = await self.journal_repo.get_by_author_and_date(author_id, day)
        if journal is None:
            raise NotFoundError("Journal", journal_date, message="No journal found for this date")
        return journal

    async def list_month(self, author_id: str, year: int, month: int) -> list[Journal]:
        """The author's own journals dated within a calendar month."""
        start, end = month_bounds(year, month)
        return await self.journal_repo.list_by_author_between(author_id, start, end)

    async def list_month_dates(self, author_id: str, year: int, month: int) -> list[date]:
        """Just the dates that have entries within a calendar month."""
        return [j.journal_date for j in await self.list_month(author_id, year, month)]

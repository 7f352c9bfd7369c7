"""Journal routes."""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import BaseModel

from closecircle.api.deps import (
    get_current_user,
    get_feed_service,
    get_journal_service,
    get_reaction_service,
    read_image_upload,
)
from closecircle.domain.common.errors import ValidationError
from closecircle.domain.common.types import Page, PageRequest
from closecircle.domain.identity.models import User
from closecircle.domain.journal.feed import FeedService
from closecircle.domain.journal.models import FeedEntry, FeedScope, Journal, Visibility
from closecircle.domain.journal.services import JournalService
from closecircle.domain.reaction.services import ReactionService
from closecircle.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


class MessageResponse(BaseModel):
    message: str


class MonthDatesResponse(BaseModel):
    dates: list[date]


class LikedJournalsResponse(BaseModel):
    journal_ids: list[str]


def _parse_visibility(value: Optional[str]) -> Optional[Visibility]:
    if value is None or value == "":
        return None
    try:
        return Visibility(value)
    except ValueError:
        raise ValidationError("Visibility must be one of: private, close-circle, public")


def _page(page: int, limit: Optional[int]) -> PageRequest:
    return PageRequest(page=page, limit=limit if limit is not None else settings.feed_default_limit)


@router.post("", response_model=Journal, status_code=status.HTTP_201_CREATED)
async def create_journal(
    title: str = Form(...),
    content: str = Form(...),
    journal_date: str = Form(..., description="YYYY-MM-DD"),
    visibility: Optional[str] = Form(None),
    is_anonymous: bool = Form(False),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    journals: JournalService = Depends(get_journal_service),
):
    """Create a journal for a date, optionally with an image."""
    logger.info(f"🔵 [SERVER] Create journal for {journal_date} by user: {current_user.id}")
    upload = await read_image_upload(image) if image is not None else None
    return await journals.create(
        author_id=current_user.id,
        title=title,
        content=content,
        journal_date=journal_date,
        visibility=_parse_visibility(visibility) or Visibility.PRIVATE,
        is_anonymous=is_anonymous,
        image=upload,
    )


@router.get("", response_model=Page[FeedEntry])
async def all_feed(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    """Everything the current user may see: own, public and close-circle journals."""
    return await feed.feed(current_user.id, FeedScope.ALL, _page(page, limit))


@router.get("/public", response_model=Page[FeedEntry])
async def public_feed(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    """Public journals. Each returned entry counts as a read."""
    return await feed.feed(current_user.id, FeedScope.PUBLIC, _page(page, limit))


@router.get("/close-circle", response_model=Page[FeedEntry])
async def close_circle_feed(
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    """Close-circle journals by authors who have the current user in their circle."""
    return await feed.feed(current_user.id, FeedScope.CLOSE_CIRCLE, _page(page, limit))


@router.get("/user/{user_id}", response_model=Page[FeedEntry])
async def author_feed(
    user_id: str,
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
):
    """One author's journals the current user may see."""
    return await feed.feed(current_user.id, FeedScope.AUTHOR, _page(page, limit), author_id=user_id)


@router.get("/date/{journal_date}", response_model=Journal)
async def get_journal_by_date(
    journal_date: str,
    current_user: User = Depends(get_current_user),
    journals: JournalService = Depends(get_journal_service),
):
    """The current user's journal for a date."""
    return await journals.get_by_date(current_user.id, journal_date)


@router.get("/month/{year}/{month}", response_model=list[Journal])
async def get_journals_by_month(
    year: int,
    month: int,
    current_user: User = Depends(get_current_user),
    journals: JournalService = Depends(get_journal_service),
):
    """The current user's journals within a calendar month."""
    return await journals.list_month(current_user.id, year, month)


@router.get("/month/{year}/{month}/dates-only", response_model=MonthDatesResponse)
async def get_journal_dates_by_month(
    year: int,
    month: int,
    current_user: User = Depends(get_current_user),
    journals: JournalService = Depends(get_journal_service),
):
    """Dates with an entry in a calendar month (calendar view)."""
    return MonthDatesResponse(dates=await journals.list_month_dates(current_user.id, year, month))


@router.get("/likes/mine", response_model=LikedJournalsResponse)
async def my_liked_journals(
    current_user: User = Depends(get_current_user),
    reactions: ReactionService = Depends(get_reaction_service),
):
    """Ids of journals the current user has liked."""
    return LikedJournalsResponse(journal_ids=await reactions.liked_journal_ids(current_user.id))


@router.get("/{journal_id}", response_model=FeedEntry)
async def get_journal(
    journal_id: str,
    current_user: User = Depends(get_current_user),
    journals: JournalService = Depends(get_journal_service),
):
    """A single journal. Not counted as a read."""
    return await journals.get_entry(journal_id, current_user.id)


@router.put("/{journal_id}", response_model=Journal)
async def update_journal(
    journal_id: str,
    title: str = Form(...),
    content: str = Form(...),
    visibility: Optional[str] = Form(None),
    is_anonymous: Optional[bool] = Form(None),
    remove_image: bool = Form(False),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    journals: JournalService = Depends(get_journal_service),
):
    """Edit a journal. A new image replaces the existing ones."""
    logger.info(f"🔵 [SERVER] Update journal {journal_id} by user: {current_user.id}")
    upload = await read_image_upload(image) if image is not None else None
    return await journals.update(
        journal_id,
        current_user.id,
        title=title,
        content=content,
        visibility=_parse_visibility(visibility),
        is_anonymous=is_anonymous,
        remove_image=remove_image,
        image=upload,
    )


@router.delete("/{journal_id}", response_model=MessageResponse)
async def delete_journal(
    journal_id: str,
    current_user: User = Depends(get_current_user),
    journals: JournalService = Depends(get_journal_service),
):
    """Delete a journal and its reactions."""
    logger.info(f"🔵 [SERVER] Delete journal {journal_id} by user: {current_user.id}")
    await journals.delete(journal_id, current_user.id)
    return MessageResponse(message="Journal deleted successfully")

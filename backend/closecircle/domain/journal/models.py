"""Journal domain models."""
import enum
import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from closecircle.domain.common.errors import ValidationError
from closecircle.domain.common.types import generate_id, utcnow
from closecircle.domain.identity.models import PublicProfile

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Visibility(str, enum.Enum):
    """Who may see a journal besides its author."""
    PRIVATE = "private"
    CLOSE_CIRCLE = "close-circle"
    PUBLIC = "public"

    @classmethod
    def _missing_(cls, value):
        # "everyone" is the legacy name for public
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered == "everyone":
                return cls.PUBLIC
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class FeedScope(str, enum.Enum):
    """Feed queries supported by the feed resolver."""
    ALL = "all"
    PUBLIC = "public"
    CLOSE_CIRCLE = "close-circle"
    AUTHOR = "author"


def parse_journal_date(value: str) -> date:
    """Parse a YYYY-MM-DD calendar date."""
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Half-open [first day of month, first day of next month)."""
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not 1 <= year <= 9998:
        raise ValidationError("Year out of range")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


class Journal(BaseModel):
    """Journal domain model."""

    id: str
    author_id: str
    title: str
    content: str
    journal_date: date
    visibility: Visibility = Visibility.PRIVATE
    is_anonymous: bool = False
    images: list[str] = Field(default_factory=list)
    likes_count: int = 0
    reads_count: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        author_id: str,
        title: str,
        content: str,
        journal_date: date,
        visibility: Visibility = Visibility.PRIVATE,
        is_anonymous: bool = False,
        images: Optional[list[str]] = None,
    ) -> "Journal":
        """Create a new journal entry."""
        now = utcnow()
        return cls(
            id=generate_id(),
            author_id=author_id,
            title=title.strip(),
            content=content,
            journal_date=journal_date,
            visibility=visibility,
            is_anonymous=is_anonymous,
            images=list(images or []),
            created_at=now,
            updated_at=now,
        )


class FeedEntry(BaseModel):
    """A journal as presented in a feed; author is None for anonymous entries."""

    id: str
    title: str
    content: str
    journal_date: date
    visibility: Visibility
    is_anonymous: bool
    images: list[str]
    likes_count: int
    reads_count: int
    created_at: datetime
    updated_at: datetime
    author: Optional[PublicProfile] = None

    @classmethod
    def of(cls, journal: Journal, author: Optional[PublicProfile], likes_count: int) -> "FeedEntry":
        return cls(
            id=journal.id,
            title=journal.title,
            content=journal.content,
            journal_date=journal.journal_date,
            visibility=journal.visibility,
            is_anonymous=journal.is_anonymous,
            images=journal.images,
            likes_count=likes_count,
            reads_count=journal.reads_count,
            created_at=journal.created_at,
            updated_at=journal.updated_at,
            author=None if journal.is_anonymous else author,
        )


class FeedQuery(BaseModel):
    """What a feed page should contain, before pagination."""

    scope: FeedScope
    viewer_id: str
    author_id: Optional[str] = None
    visibilities: Optional[set[Visibility]] = None  # author scope only

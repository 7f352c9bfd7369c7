"""Common domain types."""
import math
from datetime import datetime, timezone
from typing import Generic, TypeVar
from uuid import uuid4

from pydantic import BaseModel

T = TypeVar("T")


def generate_id() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp (columns are stored without tz)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PageRequest(BaseModel):
    """1-based pagination input."""

    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Page(BaseModel, Generic[T]):
    """One page of results plus totals."""

    items: list[T]
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool

    @classmethod
    def build(cls, items: list[T], request: PageRequest, total: int) -> "Page[T]":
        total_pages = math.ceil(total / request.limit) if total else 0
        return cls(
            items=items,
            page=request.page,
            limit=request.limit,
            total=total,
            total_pages=total_pages,
            has_more=request.page < total_pages,
        )

"""Reaction domain models."""
import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from closecircle.domain.common.types import generate_id, utcnow
from closecircle.domain.identity.models import PublicProfile


class ReactionType(str, enum.Enum):
    """Reaction kinds. Only likes exist today."""
    LIKE = "like"


class ToggleAction(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"


class Reaction(BaseModel):
    """Reaction domain model."""

    id: str
    journal_id: str
    user_id: str
    type: ReactionType = ReactionType.LIKE
    created_at: datetime

    @classmethod
    def create(cls, journal_id: str, user_id: str, type: ReactionType = ReactionType.LIKE) -> "Reaction":
        return cls(
            id=generate_id(),
            journal_id=journal_id,
            user_id=user_id,
            type=type,
            created_at=utcnow(),
        )


class ToggleResult(BaseModel):
    """Outcome of a like toggle."""

    action: ToggleAction
    liked: bool
    likes_count: int


class ReactionView(BaseModel):
    """A reaction with the reacting user's public profile."""

    id: str
    journal_id: str
    type: ReactionType
    created_at: datetime
    user: Optional[PublicProfile] = None

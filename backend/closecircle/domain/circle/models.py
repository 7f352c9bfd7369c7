"""Close-circle domain models."""
import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from closecircle.domain.common.types import generate_id, utcnow
from closecircle.domain.identity.models import PublicProfile


class FriendRequestStatus(str, enum.Enum):
    """Stored friend request state. Cancellation deletes the record instead."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RelationStatus(str, enum.Enum):
    """Status of the relation between a viewer and another user, as seen by the viewer."""
    NONE = "none"
    PENDING = "pending"
    RECEIVED = "received"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of users."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


class FriendRequest(BaseModel):
    """Friend request domain model."""

    id: str
    from_user_id: str
    to_user_id: str
    status: FriendRequestStatus
    created_at: datetime
    updated_at: datetime

    @property
    def pair_key(self) -> str:
        return pair_key(self.from_user_id, self.to_user_id)

    @classmethod
    def create(cls, from_user_id: str, to_user_id: str) -> "FriendRequest":
        """Create a new pending request."""
        now = utcnow()
        return cls(
            id=generate_id(),
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            status=FriendRequestStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    def status_for(self, viewer_id: str) -> RelationStatus:
        """Map the stored status to the viewer's perspective."""
        if self.status == FriendRequestStatus.PENDING:
            return RelationStatus.RECEIVED if viewer_id == self.to_user_id else RelationStatus.PENDING
        if self.status == FriendRequestStatus.ACCEPTED:
            return RelationStatus.ACCEPTED
        return RelationStatus.REJECTED


class FriendRequestView(BaseModel):
    """A friend request with both parties' public profiles."""

    id: str
    status: FriendRequestStatus
    created_at: datetime
    updated_at: datetime
    from_user: Optional[PublicProfile] = None
    to_user: Optional[PublicProfile] = None

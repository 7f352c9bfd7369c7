"""Friend request database model."""
from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Index, String, text

from closecircle.domain.circle.models import FriendRequest as FriendRequestEntity, FriendRequestStatus
from closecircle.domain.common.types import utcnow
from closecircle.infra.db.base import Base

_PENDING_ONLY = text("status = 'PENDING'")


class FriendRequestModel(Base):
    """Friend request database model."""

    __tablename__ = "friend_requests"
    __table_args__ = (
        # At most one pending request per unordered pair
        Index(
            "uq_friend_requests_pending_pair",
            "pair_key",
            unique=True,
            postgresql_where=_PENDING_ONLY,
            sqlite_where=_PENDING_ONLY,
        ),
    )

    id = Column(String, primary_key=True)
    from_user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    to_user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    pair_key = Column(String, index=True, nullable=False)
    status = Column(
        SQLEnum(FriendRequestStatus, name="friend_request_status"),
        nullable=False,
        default=FriendRequestStatus.PENDING,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_entity(self) -> FriendRequestEntity:
        """Convert to domain entity."""
        return FriendRequestEntity(
            id=self.id,
            from_user_id=self.from_user_id,
            to_user_id=self.to_user_id,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, entity: FriendRequestEntity) -> "FriendRequestModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            from_user_id=entity.from_user_id,
            to_user_id=entity.to_user_id,
            pair_key=entity.pair_key,
            status=entity.status,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

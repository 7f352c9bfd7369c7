"""User database model."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text

from closecircle.domain.common.types import utcnow
from closecircle.domain.identity.models import User as UserEntity
from closecircle.infra.db.base import Base

# Directed rows; every circle membership is stored as two rows (owner->member, member->owner)
close_circle_members = Table(
    "close_circle_members",
    Base.metadata,
    Column("owner_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("member_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
    Column("added_at", DateTime, default=utcnow, nullable=False),
)


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    profile_image = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    total_likes = Column(Integer, default=0, nullable=False)
    total_reads = Column(Integer, default=0, nullable=False)
    consistency = Column(Integer, default=0, nullable=False)
    reset_password_token_hash = Column(String, index=True, nullable=True)
    reset_password_expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_entity(self) -> UserEntity:
        """Convert to domain entity."""
        return UserEntity(
            id=self.id,
            name=self.name,
            username=self.username,
            email=self.email,
            password_hash=self.password_hash,
            profile_image=self.profile_image,
            bio=self.bio,
            location=self.location,
            total_likes=self.total_likes or 0,
            total_reads=self.total_reads or 0,
            consistency=self.consistency or 0,
            reset_password_token_hash=self.reset_password_token_hash,
            reset_password_expires_at=self.reset_password_expires_at,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, entity: UserEntity) -> "UserModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            name=entity.name,
            username=entity.username,
            email=entity.email,
            password_hash=entity.password_hash,
            profile_image=entity.profile_image,
            bio=entity.bio,
            location=entity.location,
            total_likes=entity.total_likes,
            total_reads=entity.total_reads,
            consistency=entity.consistency,
            reset_password_token_hash=entity.reset_password_token_hash,
            reset_password_expires_at=entity.reset_password_expires_at,
            is_active=entity.is_active,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

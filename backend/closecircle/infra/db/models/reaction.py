"""Reaction database model."""
from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, String, UniqueConstraint

from closecircle.domain.common.types import utcnow
from closecircle.domain.reaction.models import Reaction as ReactionEntity, ReactionType
from closecircle.infra.db.base import Base


class ReactionModel(Base):
    """Reaction database model."""

    __tablename__ = "reactions"
    __table_args__ = (
        UniqueConstraint("user_id", "journal_id", "type", name="uq_reactions_user_journal_type"),
    )

    id = Column(String, primary_key=True)
    journal_id = Column(String, ForeignKey("journals.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    type = Column(SQLEnum(ReactionType, name="reaction_type"), nullable=False, default=ReactionType.LIKE)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_entity(self) -> ReactionEntity:
        """Convert to domain entity."""
        return ReactionEntity(
            id=self.id,
            journal_id=self.journal_id,
            user_id=self.user_id,
            type=self.type,
            created_at=self.created_at,
        )

    @classmethod
    def from_entity(cls, entity: ReactionEntity) -> "ReactionModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            journal_id=entity.journal_id,
            user_id=entity.user_id,
            type=entity.type,
            created_at=entity.created_at,
        )

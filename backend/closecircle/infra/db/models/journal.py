"""Journal database model."""
from sqlalchemy import Boolean, Column, Date, DateTime, Enum as SQLEnum, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB

from closecircle.domain.common.types import utcnow
from closecircle.domain.journal.models import Journal as JournalEntity, Visibility
from closecircle.infra.db.base import Base


class JournalModel(Base):
    """Journal database model."""

    __tablename__ = "journals"
    __table_args__ = (
        UniqueConstraint("author_id", "journal_date", name="uq_journals_author_date"),
    )

    id = Column(String, primary_key=True)
    author_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    journal_date = Column(Date, nullable=False)
    visibility = Column(SQLEnum(Visibility, name="journal_visibility"), nullable=False, default=Visibility.PRIVATE)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    images = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list)
    likes_count = Column(Integer, default=0, nullable=False)
    reads_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_entity(self) -> JournalEntity:
        """Convert to domain entity."""
        return JournalEntity(
            id=self.id,
            author_id=self.author_id,
            title=self.title,
            content=self.content,
            journal_date=self.journal_date,
            visibility=self.visibility,
            is_anonymous=self.is_anonymous,
            images=list(self.images or []),
            likes_count=self.likes_count or 0,
            reads_count=self.reads_count or 0,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_entity(cls, entity: JournalEntity) -> "JournalModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            author_id=entity.author_id,
            title=entity.title,
            content=entity.content,
            journal_date=entity.journal_date,
            visibility=entity.visibility,
            is_anonymous=entity.is_anonymous,
            images=list(entity.images),
            likes_count=entity.likes_count,
            reads_count=entity.reads_count,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

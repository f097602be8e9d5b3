import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from localehub.database import Base


class Language(Base):
    """A locale enabled for a project. Only active locales count toward completion."""
    __tablename__ = "languages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)

    # Locale code (e.g., "en", "fr", "pt-BR")
    locale = Column(String(10), nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    project = relationship("Project", back_populates="languages")

    __table_args__ = (
        UniqueConstraint("project_id", "locale", name="uq_languages_project_locale"),
        Index("ix_languages_project_active", "project_id", "is_active"),
    )

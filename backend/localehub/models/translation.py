import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from localehub.database import Base


class Translation(Base):
    """
    Value of one localization key in one locale.

    An empty or missing value leaves the (key, locale) slot unfilled.
    AI-produced values are always stored with is_reviewed=False.
    """
    __tablename__ = "translations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    key_id = Column(UUID(as_uuid=True), ForeignKey("localization_keys.id", ondelete="CASCADE"), nullable=False)
    locale = Column(String(10), nullable=False)
    value = Column(Text, nullable=True)
    is_reviewed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    key = relationship("LocalizationKey", back_populates="translations")

    __table_args__ = (
        # One translation per key per locale; upserts conflict on this pair
        UniqueConstraint("key_id", "locale", name="uq_translations_key_locale"),
        Index("ix_translations_key_id", "key_id"),
        Index("ix_translations_updated_at", "updated_at"),
    )

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from localehub.database import Base


class LocalizationKey(Base):
    __tablename__ = "localization_keys"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    feature_id = Column(UUID(as_uuid=True), ForeignKey("features.id", ondelete="CASCADE"), nullable=False)

    # The key string itself, e.g. "welcome.title"
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))

    feature = relationship("Feature", back_populates="keys")
    translations = relationship(
        "Translation",
        back_populates="key",
        cascade="all, delete-orphan",
        order_by="Translation.locale",
    )

    __table_args__ = (
        UniqueConstraint("feature_id", "name", name="uq_localization_keys_feature_name"),
        # Duplicate-name detection across features groups by name
        Index("ix_localization_keys_name", "name"),
        Index("ix_localization_keys_feature_created", "feature_id", "created_at"),
    )

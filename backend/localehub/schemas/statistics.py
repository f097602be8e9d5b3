from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class MissingTranslation(BaseModel):
    """A key with at least one active locale lacking a value."""
    key_id: UUID
    key_name: str
    feature_id: UUID
    feature_name: str
    project_id: UUID
    missing_locales: List[str]
    filled_locales: List[str]


class LocaleCompletion(BaseModel):
    locale: str
    total: int
    filled: int
    percentage: int


class FeatureCompletion(BaseModel):
    feature_id: UUID
    feature_name: str
    total: int
    filled: int
    percentage: int


class RecentlyUpdated(BaseModel):
    key_id: UUID
    key_name: str
    locale: str
    value: str
    updated_at: Optional[datetime] = None


class MostActiveFeature(BaseModel):
    feature_id: UUID
    feature_name: str
    translation_count: int


class FeatureRef(BaseModel):
    feature_id: UUID
    feature_name: str


class DuplicateKey(BaseModel):
    """A key name used by more than one feature."""
    key_name: str
    features: List[FeatureRef]


class TranslationStatistics(BaseModel):
    """Completion and health metrics over the translations of a scope."""
    missing_translations: List[MissingTranslation]

    # Completion metrics
    overall_completion_percentage: int
    completion_by_locale: List[LocaleCompletion]
    completion_by_feature: List[FeatureCompletion]

    # Quality metrics
    empty_value_count: int
    recently_updated: List[RecentlyUpdated]

    # Activity metrics
    total_translations: int
    most_active_features: List[MostActiveFeature]

    # Health indicators
    orphaned_keys_count: int
    duplicate_keys: List[DuplicateKey]
    active_features_with_missing_translations: int

    model_config = ConfigDict(from_attributes=True)

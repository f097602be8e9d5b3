from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _clean_locales(value: List[str]) -> List[str]:
    cleaned = []
    for locale in value:
        code = locale.strip()
        if not code:
            raise ValueError("Locale codes must not be blank")
        if code not in cleaned:
            cleaned.append(code)
    return cleaned


# Stripped, non-blank, de-duplicated in caller order
LocaleList = Annotated[List[str], AfterValidator(_clean_locales)]


class TranslationResponse(BaseModel):
    id: UUID
    key_id: UUID
    locale: str
    value: Optional[str] = None
    is_reviewed: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TranslationCreate(BaseModel):
    key_id: UUID
    locale: str = Field(min_length=1, max_length=10)
    value: Optional[str] = None
    is_reviewed: bool = False


class TranslationUpdate(BaseModel):
    value: Optional[str] = None
    is_reviewed: Optional[bool] = None


class TranslationInput(BaseModel):
    locale: str = Field(min_length=1, max_length=10)
    value: Optional[str] = None


class BulkUpsertTranslations(BaseModel):
    key_id: UUID
    translations: List[TranslationInput]


class AiTranslateRequest(BaseModel):
    key_id: UUID
    target_locales: LocaleList = Field(min_length=1)
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


class AiTranslateBatchRequest(BaseModel):
    feature_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    target_locales: Optional[LocaleList] = None
    timeout_seconds: Optional[float] = Field(default=None, gt=0)


class LocaleError(BaseModel):
    locale: Optional[str] = None
    error: str


class KeyLocaleError(BaseModel):
    key_id: Optional[UUID] = None
    locale: Optional[str] = None
    error: str


class AiTranslateResult(BaseModel):
    success: bool
    translated_count: int
    skipped_count: int
    cancelled: bool = False
    errors: List[LocaleError]
    translations: List[TranslationResponse]


class BatchRunStatistics(BaseModel):
    total_keys: int
    processed_keys: int
    elapsed_seconds: float


class AiTranslateBatchResult(BaseModel):
    success: bool
    translated_count: int
    skipped_count: int
    cancelled: bool = False
    errors: List[KeyLocaleError]
    statistics: BatchRunStatistics

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from localehub.schemas.translation import TranslationResponse


class KeyCreate(BaseModel):
    feature_id: UUID
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class KeyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None


class KeyResponse(BaseModel):
    id: UUID
    feature_id: UUID
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class KeyWithTranslationsResponse(KeyResponse):
    translations: List[TranslationResponse] = []

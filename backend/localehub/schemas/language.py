from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LanguageCreate(BaseModel):
    project_id: UUID
    locale: str = Field(min_length=1, max_length=10)
    name: str = Field(min_length=1, max_length=100)
    is_active: bool = True

    @field_validator("locale")
    @classmethod
    def strip_locale(cls, v: str) -> str:
        value = v.strip()
        if not value:
            raise ValueError("Locale must not be blank")
        return value


class LanguageUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    is_active: Optional[bool] = None


class LanguageResponse(BaseModel):
    id: UUID
    project_id: UUID
    locale: str
    name: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

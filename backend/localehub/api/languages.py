from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from localehub.database import get_db
from localehub.models.language import Language
from localehub.models.project import Project
from localehub.schemas.language import LanguageCreate, LanguageResponse, LanguageUpdate
from localehub.utils.response_cache import STATISTICS_NAMESPACE, invalidate_namespace

router = APIRouter()


async def _get_language(db: AsyncSession, language_id: UUID) -> Language:
    language = await db.get(Language, language_id)
    if not language:
        raise HTTPException(status_code=404, detail="Language not found")
    return language


@router.post("", response_model=LanguageResponse, status_code=201)
async def create_language(payload: LanguageCreate, db: AsyncSession = Depends(get_db)):
    if not await db.get(Project, payload.project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    language = Language(
        project_id=payload.project_id,
        locale=payload.locale,
        name=payload.name.strip(),
        is_active=payload.is_active,
    )
    db.add(language)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=409,
            detail=f"Locale '{payload.locale}' already exists in this project",
        )
    await db.refresh(language)
    await invalidate_namespace(STATISTICS_NAMESPACE)
    return language


@router.get("", response_model=List[LanguageResponse])
async def list_languages(
    project_id: Optional[UUID] = Query(None),
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    query = select(Language).order_by(Language.locale)
    if project_id:
        query = query.where(Language.project_id == project_id)
    if active_only:
        query = query.where(Language.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{language_id}", response_model=LanguageResponse)
async def get_language(language_id: UUID, db: AsyncSession = Depends(get_db)):
    return await _get_language(db, language_id)


@router.patch("/{language_id}", response_model=LanguageResponse)
async def update_language(language_id: UUID, payload: LanguageUpdate, db: AsyncSession = Depends(get_db)):
    language = await _get_language(db, language_id)
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(language, field_name, value)
    await db.commit()
    await db.refresh(language)
    await invalidate_namespace(STATISTICS_NAMESPACE)
    return language


@router.delete("/{language_id}", status_code=204)
async def delete_language(language_id: UUID, db: AsyncSession = Depends(get_db)):
    """Remove a language from its project. Existing translations for the locale are kept."""
    language = await _get_language(db, language_id)
    await db.delete(language)
    await db.commit()
    await invalidate_namespace(STATISTICS_NAMESPACE)

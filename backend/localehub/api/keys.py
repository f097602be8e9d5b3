from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from localehub.database import get_db
from localehub.models.feature import Feature
from localehub.models.key import LocalizationKey
from localehub.schemas.key import KeyCreate, KeyResponse, KeyUpdate, KeyWithTranslationsResponse
from localehub.utils.response_cache import STATISTICS_NAMESPACE, invalidate_namespace

router = APIRouter()


async def _get_key(db: AsyncSession, key_id: UUID) -> LocalizationKey:
    key = await db.get(LocalizationKey, key_id)
    if not key:
        raise HTTPException(status_code=404, detail="Key not found")
    return key


async def _commit_or_conflict(db: AsyncSession, name: str) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Key '{name}' already exists in this feature")
    await invalidate_namespace(STATISTICS_NAMESPACE)


@router.post("", response_model=KeyResponse, status_code=201)
async def create_key(payload: KeyCreate, db: AsyncSession = Depends(get_db)):
    if not await db.get(Feature, payload.feature_id):
        raise HTTPException(status_code=404, detail="Feature not found")
    key = LocalizationKey(
        feature_id=payload.feature_id,
        name=payload.name.strip(),
        description=payload.description,
    )
    db.add(key)
    await _commit_or_conflict(db, key.name)
    await db.refresh(key)
    return key


@router.get("/feature/{feature_id}", response_model=List[KeyWithTranslationsResponse])
async def list_feature_keys(feature_id: UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(LocalizationKey)
        .options(selectinload(LocalizationKey.translations))
        .where(LocalizationKey.feature_id == feature_id)
        .order_by(LocalizationKey.name)
    )
    return result.scalars().all()


@router.get("/{key_id}", response_model=KeyWithTranslationsResponse)
async def get_key(key_id: UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(LocalizationKey)
        .options(selectinload(LocalizationKey.translations))
        .where(LocalizationKey.id == key_id)
    )
    key = result.scalar_one_or_none()
    if not key:
        raise HTTPException(status_code=404, detail="Key not found")
    return key


@router.patch("/{key_id}", response_model=KeyResponse)
async def update_key(key_id: UUID, payload: KeyUpdate, db: AsyncSession = Depends(get_db)):
    key = await _get_key(db, key_id)
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(key, field_name, value.strip() if field_name == "name" else value)
    await _commit_or_conflict(db, key.name)
    await db.refresh(key)
    return key


@router.delete("/{key_id}", status_code=204)
async def delete_key(key_id: UUID, db: AsyncSession = Depends(get_db)):
    key = await _get_key(db, key_id)
    await db.delete(key)
    await db.commit()
    await invalidate_namespace(STATISTICS_NAMESPACE)

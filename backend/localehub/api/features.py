from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from localehub.database import get_db
from localehub.models.feature import Feature
from localehub.models.project import Project
from localehub.schemas.feature import FeatureCreate, FeatureResponse, FeatureUpdate

router = APIRouter()


async def _get_feature(db: AsyncSession, feature_id: UUID) -> Feature:
    feature = await db.get(Feature, feature_id)
    if not feature:
        raise HTTPException(status_code=404, detail="Feature not found")
    return feature


@router.post("", response_model=FeatureResponse, status_code=201)
async def create_feature(payload: FeatureCreate, db: AsyncSession = Depends(get_db)):
    if not await db.get(Project, payload.project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    feature = Feature(
        project_id=payload.project_id,
        name=payload.name.strip(),
        description=payload.description,
    )
    db.add(feature)
    await db.commit()
    await db.refresh(feature)
    return feature


@router.get("", response_model=List[FeatureResponse])
async def list_features(
    project_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(Feature).order_by(Feature.created_at, Feature.name)
    if project_id:
        query = query.where(Feature.project_id == project_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{feature_id}", response_model=FeatureResponse)
async def get_feature(feature_id: UUID, db: AsyncSession = Depends(get_db)):
    return await _get_feature(db, feature_id)


@router.patch("/{feature_id}", response_model=FeatureResponse)
async def update_feature(feature_id: UUID, payload: FeatureUpdate, db: AsyncSession = Depends(get_db)):
    feature = await _get_feature(db, feature_id)
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(feature, field_name, value)
    await db.commit()
    await db.refresh(feature)
    return feature


@router.delete("/{feature_id}", status_code=204)
async def delete_feature(feature_id: UUID, db: AsyncSession = Depends(get_db)):
    """Delete a feature together with its keys and their translations."""
    feature = await _get_feature(db, feature_id)
    await db.delete(feature)
    await db.commit()

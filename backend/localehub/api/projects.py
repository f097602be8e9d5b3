from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from localehub.database import get_db
from localehub.models.project import Project
from localehub.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate

router = APIRouter()


async def _get_project(db: AsyncSession, project_id: UUID) -> Project:
    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(payload: ProjectCreate, db: AsyncSession = Depends(get_db)):
    project = Project(name=payload.name.strip(), description=payload.description)
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    include_inactive: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    query = select(Project).order_by(Project.created_at.desc())
    if not include_inactive:
        query = query.where(Project.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: UUID, db: AsyncSession = Depends(get_db)):
    return await _get_project(db, project_id)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: UUID, payload: ProjectUpdate, db: AsyncSession = Depends(get_db)):
    project = await _get_project(db, project_id)
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(project, field_name, value)
    await db.commit()
    await db.refresh(project)
    return project


@router.delete("/{project_id}", response_model=ProjectResponse)
async def delete_project(project_id: UUID, db: AsyncSession = Depends(get_db)):
    """Deactivate a project. Its features, keys and translations are kept."""
    project = await _get_project(db, project_id)
    project.is_active = False
    await db.commit()
    await db.refresh(project)
    return project

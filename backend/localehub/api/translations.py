import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from localehub.api.dependencies import get_orchestrator, get_repository, get_statistics_service
from localehub.config import get_settings
from localehub.database import get_db
from localehub.exceptions import NotFoundError
from localehub.models.translation import Translation
from localehub.schemas.statistics import TranslationStatistics
from localehub.schemas.translation import (
    AiTranslateBatchRequest,
    AiTranslateBatchResult,
    AiTranslateRequest,
    AiTranslateResult,
    BulkUpsertTranslations,
    TranslationCreate,
    TranslationResponse,
    TranslationUpdate,
)
from localehub.services.orchestrator import TranslationOrchestrator
from localehub.services.repository import TranslationRepository
from localehub.services.scope import resolve_scope
from localehub.services.statistics import TranslationStatisticsService
from localehub.utils.response_cache import STATISTICS_NAMESPACE, invalidate_namespace, response_cache

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


@router.get("/statistics", response_model=TranslationStatistics)
@response_cache(expire=settings.response_cache_ttl, namespace=STATISTICS_NAMESPACE)
async def get_translation_statistics(
    feature_id: Optional[UUID] = Query(None),
    project_id: Optional[UUID] = Query(None),
    repository: TranslationRepository = Depends(get_repository),
    service: TranslationStatisticsService = Depends(get_statistics_service),
):
    """
    Completion statistics for a feature, a project, or every project.

    Each key is measured against the active languages of its project.
    """
    scope = await resolve_scope(repository, feature_id=feature_id, project_id=project_id)
    return await service.get_statistics(scope)


@router.post("/ai-translate", response_model=AiTranslateResult)
async def ai_translate(
    request: AiTranslateRequest,
    orchestrator: TranslationOrchestrator = Depends(get_orchestrator),
):
    """Fill the requested locales of one key from its first available translation."""
    result = await orchestrator.translate_key(
        request.key_id,
        request.target_locales,
        timeout_seconds=request.timeout_seconds,
    )
    if result.translated_count:
        await invalidate_namespace(STATISTICS_NAMESPACE)
    return result


@router.post("/ai-translate-batch", response_model=AiTranslateBatchResult)
async def ai_translate_batch(
    request: AiTranslateBatchRequest,
    repository: TranslationRepository = Depends(get_repository),
    orchestrator: TranslationOrchestrator = Depends(get_orchestrator),
):
    """Fill every missing translation of a feature, a project, or every project."""
    scope = await resolve_scope(repository, feature_id=request.feature_id, project_id=request.project_id)
    result = await orchestrator.translate_batch(
        scope,
        target_locales=request.target_locales,
        timeout_seconds=request.timeout_seconds,
    )
    if result.translated_count:
        await invalidate_namespace(STATISTICS_NAMESPACE)
    return result


@router.post("", response_model=TranslationResponse)
async def upsert_translation(
    payload: TranslationCreate,
    repository: TranslationRepository = Depends(get_repository),
):
    key = await repository.find_key(payload.key_id)
    if key is None:
        raise NotFoundError("Key", payload.key_id)
    translation = await repository.upsert_translation(
        payload.key_id,
        payload.locale.strip(),
        payload.value,
        is_reviewed=payload.is_reviewed,
    )
    await invalidate_namespace(STATISTICS_NAMESPACE)
    return TranslationResponse.model_validate(translation)


@router.post("/bulk-upsert", response_model=List[TranslationResponse])
async def bulk_upsert_translations(
    payload: BulkUpsertTranslations,
    repository: TranslationRepository = Depends(get_repository),
):
    """Write several locales of one key in a single transaction."""
    key = await repository.find_key(payload.key_id)
    if key is None:
        raise NotFoundError("Key", payload.key_id)
    rows = await repository.upsert_many(
        payload.key_id,
        [
            {"locale": item.locale.strip(), "value": item.value, "is_reviewed": False}
            for item in payload.translations
        ],
    )
    logger.info(f"Bulk upserted {len(rows)} translations for key {payload.key_id}")
    await invalidate_namespace(STATISTICS_NAMESPACE)
    return [TranslationResponse.model_validate(row) for row in rows]


@router.get("/key/{key_id}", response_model=List[TranslationResponse])
async def get_key_translations(
    key_id: UUID,
    repository: TranslationRepository = Depends(get_repository),
):
    key = await repository.find_key(key_id)
    if key is None:
        raise NotFoundError("Key", key_id)
    return [TranslationResponse.model_validate(t) for t in key.translations]


@router.patch("/{translation_id}", response_model=TranslationResponse)
async def update_translation(
    translation_id: UUID,
    payload: TranslationUpdate,
    db: AsyncSession = Depends(get_db),
):
    translation = await db.get(Translation, translation_id)
    if translation is None:
        raise HTTPException(status_code=404, detail="Translation not found")

    updates = payload.model_dump(exclude_unset=True)
    if "is_reviewed" in updates and updates["is_reviewed"] is None:
        updates.pop("is_reviewed")
    for field_name, value in updates.items():
        setattr(translation, field_name, value)

    await db.commit()
    await db.refresh(translation)
    await invalidate_namespace(STATISTICS_NAMESPACE)
    return TranslationResponse.model_validate(translation)

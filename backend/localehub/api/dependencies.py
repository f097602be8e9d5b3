"""FastAPI dependency providers for the translation services.

Tests override these through ``app.dependency_overrides``.
"""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from localehub.database import get_db
from localehub.services.ai_translator import AITranslationClient, get_translation_client, request_interval_for
from localehub.services.orchestrator import TranslationOrchestrator
from localehub.services.repository import SqlTranslationRepository, TranslationRepository
from localehub.services.statistics import TranslationStatisticsService


async def get_repository(db: AsyncSession = Depends(get_db)) -> TranslationRepository:
    return SqlTranslationRepository(db)


@lru_cache()
def get_ai_client() -> AITranslationClient:
    return get_translation_client()


async def get_statistics_service(
    repository: TranslationRepository = Depends(get_repository),
) -> TranslationStatisticsService:
    return TranslationStatisticsService(repository)


async def get_orchestrator(
    repository: TranslationRepository = Depends(get_repository),
    client: AITranslationClient = Depends(get_ai_client),
) -> TranslationOrchestrator:
    return TranslationOrchestrator(
        repository,
        client,
        pacing_delay=request_interval_for(client.provider),
    )

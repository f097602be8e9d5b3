import logging
from typing import Optional

from localehub.config import get_settings
from localehub.database import AsyncSessionLocal
from localehub.jobs.retry import retry
from localehub.schemas.translation import AiTranslateBatchResult
from localehub.services.ai_translator import get_translation_client, request_interval_for
from localehub.services.orchestrator import TranslationOrchestrator
from localehub.services.repository import SqlTranslationRepository
from localehub.services.scope import Scope
from localehub.utils.response_cache import STATISTICS_NAMESPACE, invalidate_namespace

settings = get_settings()

logger = logging.getLogger(__name__)


@retry(max_attempts=2)
async def fill_missing_translations_job(timeout_seconds: Optional[float] = None) -> Optional[AiTranslateBatchResult]:
    """Translate every missing translation across all projects.

    The run stops at the next call boundary once ``timeout_seconds`` (the
    scheduling interval by default) has passed, so runs never overlap.
    """
    if timeout_seconds is None:
        timeout_seconds = settings.auto_translate_interval_minutes * 60

    client = get_translation_client()
    async with AsyncSessionLocal() as db:
        orchestrator = TranslationOrchestrator(
            SqlTranslationRepository(db),
            client,
            pacing_delay=request_interval_for(client.provider),
        )
        result = await orchestrator.translate_batch(Scope.everything(), timeout_seconds=timeout_seconds)

    if result.translated_count:
        await invalidate_namespace(STATISTICS_NAMESPACE)

    stats = result.statistics
    logger.info(
        f"Scheduled fill: {result.translated_count} translated, {result.skipped_count} skipped, "
        f"{len(result.errors)} errors, {stats.processed_keys}/{stats.total_keys} keys "
        f"in {stats.elapsed_seconds:.1f}s"
    )
    return result

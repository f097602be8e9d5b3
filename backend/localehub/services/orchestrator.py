"""AI translation orchestration for one key or a whole scope.

Provider calls are strictly sequential: one call in flight, consecutive calls
separated by a pacing delay. A run stops at the next call boundary when its
cancel event is set or its deadline passes; values already obtained for the
current key are still saved.
"""
import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
from uuid import UUID

from localehub.exceptions import InvalidInputError, NoSourceAvailableError, NotFoundError, ProviderError
from localehub.metrics import LOCALE_OUTCOMES, RUN_DURATION
from localehub.models.key import LocalizationKey
from localehub.models.translation import Translation
from localehub.schemas.translation import (
    AiTranslateBatchResult,
    AiTranslateResult,
    BatchRunStatistics,
    KeyLocaleError,
    LocaleError,
    TranslationResponse,
)
from localehub.services.ai_translator import AITranslationClient
from localehub.services.planner import plan_batch, plan_for_key
from localehub.services.repository import TranslationRepository, TranslationWrite
from localehub.services.scope import Scope
from localehub.services.statistics import TranslationStatisticsService, active_locales_by_project
from localehub.utils.retry import Sleep, default_sleep

logger = logging.getLogger(__name__)


class LocaleState(str, enum.Enum):
    PLANNED = "planned"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class _Run:
    """Stop conditions and pacing shared by every key of one run."""

    sleep: Sleep
    clock: Callable[[], float]
    pacing_delay: float
    cancel_event: Optional[asyncio.Event] = None
    deadline: Optional[float] = None
    calls_made: int = 0

    def should_stop(self) -> bool:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return True
        return self.deadline is not None and self.clock() >= self.deadline

    async def before_call(self) -> bool:
        """Pace the next provider call. Returns False when the run must stop instead."""
        if self.should_stop():
            return False
        if self.calls_made and self.pacing_delay > 0:
            await self.sleep(self.pacing_delay)
            if self.should_stop():
                return False
        self.calls_made += 1
        return True


@dataclass
class _KeyOutcome:
    states: Dict[str, LocaleState] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    translations: List[Translation] = field(default_factory=list)
    already_filled: int = 0
    cancelled: bool = False

    def count(self, state: LocaleState) -> int:
        return sum(1 for value in self.states.values() if value is state)

    @property
    def translated_count(self) -> int:
        return self.count(LocaleState.SUCCEEDED)

    @property
    def skipped_count(self) -> int:
        return self.already_filled + self.count(LocaleState.SKIPPED)


def _clean_locales(locales: Optional[Sequence[str]]) -> List[str]:
    return list(dict.fromkeys(code.strip() for code in (locales or []) if code and code.strip()))


class TranslationOrchestrator:
    """Fill missing translations through the AI client and save them.

    Args:
        repository: Data access for keys, languages and translation writes
        client: AI translation client
        statistics: Snapshot source for batch runs
        pacing_delay: Seconds between consecutive provider calls
        sleep: Awaitable used for pacing
        clock: Monotonic clock used for deadlines and elapsed time
    """

    def __init__(
        self,
        repository: TranslationRepository,
        client: AITranslationClient,
        statistics: Optional[TranslationStatisticsService] = None,
        *,
        pacing_delay: float = 0.0,
        sleep: Sleep = default_sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.client = client
        self.statistics = statistics or TranslationStatisticsService(repository)
        self.pacing_delay = pacing_delay
        self.sleep = sleep
        self.clock = clock

    def _new_run(self, cancel_event: Optional[asyncio.Event], timeout_seconds: Optional[float]) -> _Run:
        deadline = self.clock() + timeout_seconds if timeout_seconds else None
        return _Run(
            sleep=self.sleep,
            clock=self.clock,
            pacing_delay=self.pacing_delay,
            cancel_event=cancel_event,
            deadline=deadline,
        )

    async def translate_key(
        self,
        key_id: UUID,
        target_locales: Sequence[str],
        cancel_event: Optional[asyncio.Event] = None,
        timeout_seconds: Optional[float] = None,
    ) -> AiTranslateResult:
        """Translate one key into ``target_locales``.

        Raises:
            InvalidInputError: no target locale, or a locale inactive for the key's project
            NotFoundError: the key does not exist
        """
        started = self.clock()
        locales = _clean_locales(target_locales)
        if not locales:
            raise InvalidInputError("At least one target locale is required")

        key = await self.repository.find_key(key_id)
        if key is None:
            raise NotFoundError("Key", key_id)

        project_id = key.feature.project_id
        languages = await self.repository.list_active_locales(Scope.for_feature(key.feature_id, project_id))
        active = set(active_locales_by_project(languages).get(project_id, []))
        inactive = [locale for locale in locales if locale not in active]
        if inactive:
            raise InvalidInputError(f"Locales not active for project {project_id}: {', '.join(inactive)}")

        run = self._new_run(cancel_event, timeout_seconds)
        try:
            outcome = await self._translate_key(key, locales, run)
        except NoSourceAvailableError as e:
            logger.info(str(e))
            RUN_DURATION.labels(mode="single").observe(self.clock() - started)
            return AiTranslateResult(
                success=False,
                translated_count=0,
                skipped_count=0,
                errors=[LocaleError(error=str(e))],
                translations=[],
            )

        RUN_DURATION.labels(mode="single").observe(self.clock() - started)
        errors = [LocaleError(locale=locale, error=message) for locale, message in outcome.errors.items()]
        return AiTranslateResult(
            success=not errors,
            translated_count=outcome.translated_count,
            skipped_count=outcome.skipped_count,
            cancelled=outcome.cancelled,
            errors=errors,
            translations=[TranslationResponse.model_validate(row) for row in outcome.translations],
        )

    async def translate_batch(
        self,
        scope: Scope,
        target_locales: Optional[Sequence[str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
        timeout_seconds: Optional[float] = None,
    ) -> AiTranslateBatchResult:
        """Translate every key of ``scope`` that misses an active locale.

        Keys are handled in snapshot order. A key without any source value is
        counted as skipped; any other failure is reported for that key and
        the run moves on.

        Raises:
            InvalidInputError: an explicit locale list that is empty or names
                a locale active nowhere in the scope
        """
        started = self.clock()
        allowed: Optional[List[str]] = None
        if target_locales is not None:
            allowed = _clean_locales(target_locales)
            if not allowed:
                raise InvalidInputError("At least one target locale is required")

        languages = await self.repository.list_active_locales(scope)
        locales_by_project = active_locales_by_project(languages)
        if allowed is not None:
            known = {locale for codes in locales_by_project.values() for locale in codes}
            unknown = [locale for locale in allowed if locale not in known]
            if unknown:
                raise InvalidInputError(f"Locales not active in {scope.describe()}: {', '.join(unknown)}")

        snapshot = await self.statistics.get_statistics(scope)
        work = plan_batch(snapshot.missing_translations, locales_by_project, allowed)
        logger.info(f"Batch translation for {scope.describe()}: {len(work)} keys to process")

        run = self._new_run(cancel_event, timeout_seconds)
        translated = 0
        skipped = 0
        processed = 0
        cancelled = False
        errors: List[KeyLocaleError] = []

        for item in work:
            if run.should_stop():
                cancelled = True
                break

            key_id = item.record.key_id
            try:
                key = await self.repository.find_key(key_id)
                if key is None:
                    raise NotFoundError("Key", key_id)
                outcome = await self._translate_key(key, item.target_locales, run)
            except NoSourceAvailableError:
                logger.info(f"Skipping key {item.record.key_name}: no source translation")
                skipped += len(item.target_locales)
                LOCALE_OUTCOMES.labels(outcome=LocaleState.SKIPPED.value).inc(len(item.target_locales))
                processed += 1
                continue
            except Exception as e:
                logger.exception(f"Batch translation failed for key {key_id}")
                await self.repository.reset()
                errors.append(KeyLocaleError(key_id=key_id, error=str(e)))
                processed += 1
                continue

            translated += outcome.translated_count
            skipped += outcome.skipped_count
            errors.extend(
                KeyLocaleError(key_id=key_id, locale=locale, error=message)
                for locale, message in outcome.errors.items()
            )
            if outcome.cancelled:
                cancelled = True
                break
            processed += 1

        elapsed = self.clock() - started
        RUN_DURATION.labels(mode="batch").observe(elapsed)
        logger.info(
            f"Batch translation for {scope.describe()} finished: {translated} translated, "
            f"{skipped} skipped, {len(errors)} errors, {processed}/{len(work)} keys"
            + (" (cancelled)" if cancelled else "")
        )
        return AiTranslateBatchResult(
            success=not errors,
            translated_count=translated,
            skipped_count=skipped,
            cancelled=cancelled,
            errors=errors,
            statistics=BatchRunStatistics(
                total_keys=len(work),
                processed_keys=processed,
                elapsed_seconds=round(elapsed, 3),
            ),
        )

    async def _translate_key(self, key: LocalizationKey, target_locales: Sequence[str], run: _Run) -> _KeyOutcome:
        plan = plan_for_key(key.id, key.translations, target_locales)
        outcome = _KeyOutcome(already_filled=len(plan.skipped_locales))
        outcome.states = {locale: LocaleState.PLANNED for locale in plan.targets}
        values: Dict[str, str] = {}

        for locale in plan.targets:
            if not await run.before_call():
                outcome.cancelled = True
                break
            try:
                values[locale] = await self.client.translate(plan.source_text, locale, plan.source_locale)
                outcome.states[locale] = LocaleState.SUCCEEDED
            except ProviderError as e:
                logger.warning(f"Translation of {key.name} to {locale} failed: {e.message}")
                outcome.states[locale] = LocaleState.FAILED
                outcome.errors[locale] = e.message
            except Exception as e:
                logger.exception(f"Unexpected error translating {key.name} to {locale}")
                outcome.states[locale] = LocaleState.FAILED
                outcome.errors[locale] = str(e)

        for locale, state in outcome.states.items():
            if state is LocaleState.PLANNED:
                outcome.states[locale] = LocaleState.SKIPPED

        if values:
            writes: List[TranslationWrite] = [
                {"locale": locale, "value": value, "is_reviewed": False} for locale, value in values.items()
            ]
            try:
                outcome.translations = await self.repository.upsert_many(key.id, writes)
            except Exception as e:
                logger.exception(f"Saving {len(writes)} translations for {key.name} failed")
                for locale in values:
                    outcome.states[locale] = LocaleState.FAILED
                    outcome.errors[locale] = f"Failed to save translation: {e}"

        for state in outcome.states.values():
            LOCALE_OUTCOMES.labels(outcome=state.value).inc()
        if plan.skipped_locales:
            LOCALE_OUTCOMES.labels(outcome=LocaleState.SKIPPED.value).inc(len(plan.skipped_locales))
        return outcome

"""Translation Statistics - completion and health metrics over a scope.

The engine is a single pass over the keys of a scope. Every (key, active
locale) pair is a slot; a slot is filled when its translation exists with a
non-blank value. All metrics are derived from the slot classification:

- overall / per-locale / per-feature completion percentages
- missing translations (keys with at least one unfilled slot)
- empty values, orphaned keys, duplicate key names across features
- most active features and most recently updated values

``compute_statistics`` is pure and works on any objects exposing the ORM
attribute names, so it can be exercised without a database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from localehub.models.key import LocalizationKey
from localehub.models.language import Language
from localehub.schemas.statistics import (
    DuplicateKey,
    FeatureCompletion,
    FeatureRef,
    LocaleCompletion,
    MissingTranslation,
    MostActiveFeature,
    RecentlyUpdated,
    TranslationStatistics,
)
from localehub.services.repository import TranslationRepository
from localehub.services.scope import Scope

logger = logging.getLogger(__name__)

RECENTLY_UPDATED_LIMIT = 10
MOST_ACTIVE_FEATURES_LIMIT = 5

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def is_filled(value: Optional[str]) -> bool:
    """A value fills its slot when it has non-whitespace content."""
    return bool(value and value.strip())


def completion_percentage(filled: int, total: int) -> int:
    """round(filled / total * 100) with halves rounded up; 0 for an empty scope."""
    if total <= 0:
        return 0
    return (filled * 200 + total) // (2 * total)


@dataclass
class _Counter:
    total: int = 0
    filled: int = 0


@dataclass
class _FeatureCounter(_Counter):
    name: str = ""
    is_active: bool = True


@dataclass
class _RecentCandidate:
    key_id: UUID
    key_name: str
    locale: str
    value: str
    updated_at: Optional[datetime]

    def sort_key(self) -> datetime:
        moment = self.updated_at or _EPOCH
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment


@dataclass
class _DuplicateCandidate:
    features: Dict[UUID, str] = field(default_factory=dict)


def active_locales_by_project(languages: Iterable[Language]) -> Dict[UUID, List[str]]:
    """Group active locale codes by project, sorted and de-duplicated."""
    grouped: Dict[UUID, List[str]] = {}
    for language in languages:
        if not language.is_active:
            continue
        codes = grouped.setdefault(language.project_id, [])
        if language.locale not in codes:
            codes.append(language.locale)
    return {project_id: sorted(codes) for project_id, codes in grouped.items()}


def compute_statistics(
    keys: Sequence[LocalizationKey],
    languages: Sequence[Language],
    recent_limit: int = RECENTLY_UPDATED_LIMIT,
    most_active_limit: int = MOST_ACTIVE_FEATURES_LIMIT,
) -> TranslationStatistics:
    """Aggregate completion metrics for ``keys`` against the active ``languages``.

    Each key is measured against the active locales of its own project, which
    for a feature or project scope is the single locale set of that project.
    """
    locales_by_project = active_locales_by_project(languages)

    missing: List[MissingTranslation] = []
    by_locale: Dict[str, _Counter] = {}
    by_feature: Dict[UUID, _FeatureCounter] = {}
    names: Dict[str, _DuplicateCandidate] = {}
    recent: List[_RecentCandidate] = []

    total_slots = 0
    filled_slots = 0
    empty_value_count = 0
    orphaned_keys_count = 0
    total_translations = 0

    for key in keys:
        feature = key.feature
        locales = locales_by_project.get(feature.project_id, [])
        translations = {t.locale: t for t in key.translations}
        total_translations += len(key.translations)

        feature_counter = by_feature.get(feature.id)
        if feature_counter is None:
            feature_counter = _FeatureCounter(name=feature.name, is_active=bool(feature.is_active))
            by_feature[feature.id] = feature_counter

        names.setdefault(key.name, _DuplicateCandidate()).features.setdefault(feature.id, feature.name)

        filled_locales: List[str] = []
        missing_locales: List[str] = []
        for locale in locales:
            translation = translations.get(locale)
            locale_counter = by_locale.setdefault(locale, _Counter())
            locale_counter.total += 1
            feature_counter.total += 1

            if translation is not None and is_filled(translation.value):
                filled_locales.append(locale)
                locale_counter.filled += 1
                feature_counter.filled += 1
                recent.append(
                    _RecentCandidate(
                        key_id=key.id,
                        key_name=key.name,
                        locale=locale,
                        value=translation.value,
                        updated_at=translation.updated_at or translation.created_at,
                    )
                )
            else:
                if translation is not None:
                    # The record exists but carries no text
                    empty_value_count += 1
                missing_locales.append(locale)

        total_slots += len(locales)
        filled_slots += len(filled_locales)

        if not filled_locales:
            orphaned_keys_count += 1

        if missing_locales:
            missing.append(
                MissingTranslation(
                    key_id=key.id,
                    key_name=key.name,
                    feature_id=feature.id,
                    feature_name=feature.name,
                    project_id=feature.project_id,
                    missing_locales=missing_locales,
                    filled_locales=filled_locales,
                )
            )

    completion_by_locale = [
        LocaleCompletion(
            locale=locale,
            total=counter.total,
            filled=counter.filled,
            percentage=completion_percentage(counter.filled, counter.total),
        )
        for locale, counter in sorted(by_locale.items())
    ]
    completion_by_feature = [
        FeatureCompletion(
            feature_id=feature_id,
            feature_name=counter.name,
            total=counter.total,
            filled=counter.filled,
            percentage=completion_percentage(counter.filled, counter.total),
        )
        for feature_id, counter in by_feature.items()
    ]

    # sorted() is stable: equal counts keep first-seen order
    ranked = sorted(
        ((feature_id, counter) for feature_id, counter in by_feature.items() if counter.filled > 0),
        key=lambda item: item[1].filled,
        reverse=True,
    )
    most_active_features = [
        MostActiveFeature(feature_id=feature_id, feature_name=counter.name, translation_count=counter.filled)
        for feature_id, counter in ranked[:most_active_limit]
    ]

    recent.sort(key=_RecentCandidate.sort_key, reverse=True)
    recently_updated = [
        RecentlyUpdated(
            key_id=item.key_id,
            key_name=item.key_name,
            locale=item.locale,
            value=item.value,
            updated_at=item.updated_at,
        )
        for item in recent[:recent_limit]
    ]

    duplicate_keys = [
        DuplicateKey(
            key_name=name,
            features=[
                FeatureRef(feature_id=feature_id, feature_name=feature_name)
                for feature_id, feature_name in candidate.features.items()
            ],
        )
        for name, candidate in names.items()
        if len(candidate.features) > 1
    ]

    active_features_with_missing = sum(
        1 for counter in by_feature.values() if counter.is_active and counter.filled < counter.total
    )

    return TranslationStatistics(
        missing_translations=missing,
        overall_completion_percentage=completion_percentage(filled_slots, total_slots),
        completion_by_locale=completion_by_locale,
        completion_by_feature=completion_by_feature,
        empty_value_count=empty_value_count,
        recently_updated=recently_updated,
        total_translations=total_translations,
        most_active_features=most_active_features,
        orphaned_keys_count=orphaned_keys_count,
        duplicate_keys=duplicate_keys,
        active_features_with_missing_translations=active_features_with_missing,
    )


class TranslationStatisticsService:
    def __init__(self, repository: TranslationRepository):
        self.repository = repository

    async def get_statistics(self, scope: Scope) -> TranslationStatistics:
        languages = await self.repository.list_active_locales(scope)
        keys = await self.repository.list_keys_in_scope(scope)
        statistics = compute_statistics(keys, languages)
        logger.debug(
            f"Statistics for {scope.describe()}: {len(keys)} keys, "
            f"{statistics.overall_completion_percentage}% complete, "
            f"{len(statistics.missing_translations)} keys missing translations"
        )
        return statistics

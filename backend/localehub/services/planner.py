"""Translation request planning.

Decides, for one key, which existing value is fed to the provider and which
locales still need a value; and, for a statistics snapshot, which keys enter
a batch run with which target locales.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from localehub.exceptions import NoSourceAvailableError
from localehub.models.translation import Translation
from localehub.schemas.statistics import MissingTranslation
from localehub.services.statistics import is_filled


@dataclass
class TranslationPlan:
    key_id: UUID
    source_locale: str
    source_text: str
    targets: List[str] = field(default_factory=list)
    # Requested locales that already hold a value
    skipped_locales: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.targets


@dataclass
class WorkItem:
    record: MissingTranslation
    target_locales: List[str]


def select_source(translations: Iterable[Translation]) -> Optional[Translation]:
    """Pick the source translation: the first non-blank value by locale code.

    Review state is ignored; any non-blank value may serve as a source.
    """
    candidates = sorted((t for t in translations if is_filled(t.value)), key=lambda t: t.locale)
    return candidates[0] if candidates else None


def plan_for_key(
    key_id: UUID,
    translations: Sequence[Translation],
    target_locales: Sequence[str],
) -> TranslationPlan:
    """Plan the translation of one key into ``target_locales``.

    Locales that already hold a non-blank value are never overwritten; they
    end up in ``skipped_locales``.

    Raises:
        NoSourceAvailableError: the key has no non-blank value at all
    """
    source = select_source(translations)
    if source is None:
        raise NoSourceAvailableError(key_id)

    filled = {t.locale for t in translations if is_filled(t.value)}
    plan = TranslationPlan(key_id=key_id, source_locale=source.locale, source_text=source.value.strip())
    for locale in dict.fromkeys(target_locales):
        if locale in filled:
            plan.skipped_locales.append(locale)
        else:
            plan.targets.append(locale)
    return plan


def plan_batch(
    missing_translations: Sequence[MissingTranslation],
    locales_by_project: Dict[UUID, List[str]],
    allowed_locales: Optional[Sequence[str]] = None,
) -> List[WorkItem]:
    """Turn missing-translation records into batch work items.

    Each record's missing locales are intersected with ``allowed_locales``
    (all active locales when None) and with the active locales of the
    record's project. Records left with nothing to do are dropped. Targets
    follow the order of ``allowed_locales`` when given.
    """
    work: List[WorkItem] = []
    for record in missing_translations:
        active = set(locales_by_project.get(record.project_id, []))
        missing = set(record.missing_locales)
        order = list(dict.fromkeys(allowed_locales)) if allowed_locales is not None else record.missing_locales
        targets = [locale for locale in order if locale in missing and locale in active]
        if targets:
            work.append(WorkItem(record=record, target_locales=targets))
    return work

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest

from localehub.exceptions import InvalidInputError, NotFoundError, ProviderError
from localehub.services.orchestrator import TranslationOrchestrator
from localehub.services.repository import TranslationRepository
from localehub.services.scope import Scope, ScopeKind


class _FakeRepository(TranslationRepository):
    """In-memory projects, features, languages and keys."""

    def __init__(self) -> None:
        self.projects: Dict[uuid.UUID, SimpleNamespace] = {}
        self.features: Dict[uuid.UUID, SimpleNamespace] = {}
        self.languages: List[SimpleNamespace] = []
        self.keys: Dict[uuid.UUID, SimpleNamespace] = {}
        self.upserts: List[tuple] = []
        self.fail_writes = False
        self.resets = 0
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def add_project(self, *locales: str) -> SimpleNamespace:
        project = SimpleNamespace(id=uuid.uuid4(), name="project", is_active=True)
        self.projects[project.id] = project
        for locale in locales:
            self.languages.append(SimpleNamespace(project_id=project.id, locale=locale, is_active=True))
        return project

    def add_feature(self, project: SimpleNamespace, name: str = "feature") -> SimpleNamespace:
        feature = SimpleNamespace(id=uuid.uuid4(), project_id=project.id, name=name, is_active=True)
        self.features[feature.id] = feature
        return feature

    def add_key(self, feature: SimpleNamespace, name: str, values: Dict[str, Optional[str]]) -> SimpleNamespace:
        key = SimpleNamespace(
            id=uuid.uuid4(),
            name=name,
            feature=feature,
            feature_id=feature.id,
            translations=[],
        )
        for locale, value in values.items():
            key.translations.append(self._row(key.id, locale, value, True))
        self.keys[key.id] = key
        return key

    def _row(self, key_id, locale, value, is_reviewed) -> SimpleNamespace:
        self._clock += timedelta(seconds=1)
        return SimpleNamespace(
            id=uuid.uuid4(),
            key_id=key_id,
            locale=locale,
            value=value,
            is_reviewed=is_reviewed,
            created_at=self._clock,
            updated_at=self._clock,
        )

    def value(self, key, locale) -> Optional[str]:
        return next((t.value for t in key.translations if t.locale == locale), None)

    async def find_key(self, key_id):
        return self.keys.get(key_id)

    async def find_feature(self, feature_id):
        return self.features.get(feature_id)

    async def find_project(self, project_id):
        return self.projects.get(project_id)

    async def list_keys_in_scope(self, scope: Scope):
        keys = list(self.keys.values())
        if scope.kind is ScopeKind.FEATURE:
            return [k for k in keys if k.feature_id == scope.feature_id]
        if scope.kind is ScopeKind.PROJECT:
            return [k for k in keys if k.feature.project_id == scope.project_id]
        return keys

    async def list_active_locales(self, scope: Scope):
        languages = [language for language in self.languages if language.is_active]
        if scope.kind is not ScopeKind.ALL:
            languages = [language for language in languages if language.project_id == scope.project_id]
        return sorted(languages, key=lambda language: language.locale)

    async def reset(self):
        self.resets += 1

    async def upsert_many(self, key_id, items):
        if self.fail_writes:
            raise RuntimeError("database is locked")
        self.upserts.append((key_id, list(items)))
        key = self.keys[key_id]
        rows = []
        for item in items:
            row = next((t for t in key.translations if t.locale == item["locale"]), None)
            if row is None:
                row = self._row(key_id, item["locale"], item["value"], item["is_reviewed"])
                key.translations.append(row)
            else:
                row.value = item["value"]
                row.is_reviewed = item["is_reviewed"]
            rows.append(row)
        return rows


class _FakeClient:
    """Translates to '<locale>:<text>'; locales in ``fail`` raise a terminal error."""

    def __init__(self, fail=(), on_call=None) -> None:
        self.calls = []
        self.fail = set(fail)
        self.on_call = on_call

    async def translate(self, text, target_locale, source_locale=None):
        self.calls.append((text, target_locale, source_locale))
        if self.on_call:
            self.on_call(len(self.calls))
        if target_locale in self.fail:
            raise ProviderError(f"provider refused {target_locale}", provider="fake")
        return f"{target_locale}:{text}"


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


def _orchestrator(repository, client, pacing_delay=0.0, clock=None):
    clock = clock or _FakeClock()
    return TranslationOrchestrator(
        repository,
        client,
        pacing_delay=pacing_delay,
        sleep=clock.sleep,
        clock=clock,
    )


@pytest.fixture
def repository():
    return _FakeRepository()


@pytest.fixture
def greeting(repository):
    project = repository.add_project("en", "fr", "de")
    feature = repository.add_feature(project)
    return repository.add_key(feature, "greeting", {"en": "Hello", "fr": ""})


@pytest.mark.asyncio
async def test_translates_missing_locales(repository, greeting) -> None:
    client = _FakeClient()

    result = await _orchestrator(repository, client).translate_key(greeting.id, ["fr", "de"])

    assert result.success
    assert (result.translated_count, result.skipped_count) == (2, 0)
    assert [call[1] for call in client.calls] == ["fr", "de"]
    assert all(call[0] == "Hello" and call[2] == "en" for call in client.calls)
    assert len(repository.upserts) == 1
    _, items = repository.upserts[0]
    assert [item["locale"] for item in items] == ["fr", "de"]
    assert all(item["is_reviewed"] is False for item in items)
    assert repository.value(greeting, "de") == "de:Hello"
    assert {t.locale for t in result.translations} == {"fr", "de"}


@pytest.mark.asyncio
async def test_filled_locale_is_skipped(repository, greeting) -> None:
    client = _FakeClient()

    result = await _orchestrator(repository, client).translate_key(greeting.id, ["en", "fr"])

    assert (result.translated_count, result.skipped_count) == (1, 1)
    assert [call[1] for call in client.calls] == ["fr"]


@pytest.mark.asyncio
async def test_second_run_is_idempotent(repository, greeting) -> None:
    client = _FakeClient()
    orchestrator = _orchestrator(repository, client)

    await orchestrator.translate_key(greeting.id, ["fr", "de"])
    second = await orchestrator.translate_key(greeting.id, ["fr", "de"])

    assert (second.translated_count, second.skipped_count) == (0, 2)
    assert len(client.calls) == 2
    assert len(repository.upserts) == 1


@pytest.mark.asyncio
async def test_key_without_source(repository) -> None:
    project = repository.add_project("en", "fr")
    key = repository.add_key(repository.add_feature(project), "blank", {"en": "", "fr": "  "})
    client = _FakeClient()

    result = await _orchestrator(repository, client).translate_key(key.id, ["fr"])

    assert not result.success
    assert result.translated_count == 0
    assert "No source translation" in result.errors[0].error
    assert client.calls == []
    assert repository.upserts == []


@pytest.mark.asyncio
async def test_entry_validation(repository, greeting) -> None:
    client = _FakeClient()
    orchestrator = _orchestrator(repository, client)

    with pytest.raises(NotFoundError):
        await orchestrator.translate_key(uuid.uuid4(), ["fr"])
    with pytest.raises(InvalidInputError):
        await orchestrator.translate_key(greeting.id, [])
    with pytest.raises(InvalidInputError):
        await orchestrator.translate_key(greeting.id, ["fr", "ja"])

    assert client.calls == []


@pytest.mark.asyncio
async def test_failed_locale_does_not_block_others(repository, greeting) -> None:
    client = _FakeClient(fail={"fr"})

    result = await _orchestrator(repository, client).translate_key(greeting.id, ["fr", "de"])

    assert not result.success
    assert result.translated_count == 1
    assert [(e.locale, e.error) for e in result.errors] == [("fr", "provider refused fr")]
    _, items = repository.upserts[0]
    assert [item["locale"] for item in items] == ["de"]


@pytest.mark.asyncio
async def test_failed_write_reports_each_locale(repository, greeting) -> None:
    repository.fail_writes = True

    result = await _orchestrator(repository, _FakeClient()).translate_key(greeting.id, ["fr", "de"])

    assert result.translated_count == 0
    assert sorted(e.locale for e in result.errors) == ["de", "fr"]
    assert all("database is locked" in e.error for e in result.errors)


@pytest.mark.asyncio
async def test_pacing_between_calls_only(repository) -> None:
    project = repository.add_project("en", "fr", "de", "es")
    key = repository.add_key(repository.add_feature(project), "title", {"en": "Title"})
    clock = _FakeClock()

    await _orchestrator(repository, _FakeClient(), pacing_delay=0.5, clock=clock).translate_key(
        key.id, ["fr", "de", "es"]
    )

    assert clock.sleeps == [0.5, 0.5]


@pytest.mark.asyncio
async def test_cancellation_keeps_finished_work(repository) -> None:
    project = repository.add_project("en", "fr", "de", "es")
    key = repository.add_key(repository.add_feature(project), "title", {"en": "Title"})
    cancel = asyncio.Event()
    client = _FakeClient(on_call=lambda n: cancel.set())

    result = await _orchestrator(repository, client).translate_key(
        key.id, ["fr", "de", "es"], cancel_event=cancel
    )

    assert result.cancelled
    assert result.success
    assert (result.translated_count, result.skipped_count) == (1, 2)
    assert repository.value(key, "fr") == "fr:Title"
    assert repository.value(key, "de") is None


@pytest.mark.asyncio
async def test_deadline_stops_run(repository) -> None:
    project = repository.add_project("en", "fr", "de", "es")
    key = repository.add_key(repository.add_feature(project), "title", {"en": "Title"})
    clock = _FakeClock()

    result = await _orchestrator(repository, _FakeClient(), pacing_delay=4.0, clock=clock).translate_key(
        key.id, ["fr", "de", "es"], timeout_seconds=5.0
    )

    # fr at t=0, de after 4s of pacing, deadline passes during the next pause
    assert result.cancelled
    assert (result.translated_count, result.skipped_count) == (2, 1)


@pytest.mark.asyncio
async def test_batch_over_project(repository) -> None:
    project = repository.add_project("en", "fr", "de")
    feature = repository.add_feature(project)
    complete = repository.add_key(feature, "done", {"en": "Done", "fr": "Fini", "de": "Fertig"})
    partial = repository.add_key(feature, "partial", {"en": "Hello"})
    orphan = repository.add_key(feature, "orphan", {})
    client = _FakeClient(fail={"de"})
    clock = _FakeClock()

    result = await _orchestrator(repository, client, pacing_delay=1.0, clock=clock).translate_batch(
        Scope.for_project(project.id)
    )

    assert result.translated_count == 1
    # The orphan key has no source: all three of its locales are skipped
    assert result.skipped_count == 3
    assert [(e.key_id, e.locale) for e in result.errors] == [(partial.id, "de")]
    assert not result.success
    assert result.statistics.total_keys == 2
    assert result.statistics.processed_keys == 2
    assert repository.value(partial, "fr") == "fr:Hello"
    assert {call[0] for call in client.calls} == {"Hello"}
    assert repository.value(complete, "fr") == "Fini"
    assert orphan.translations == []
    assert clock.sleeps == [1.0]


@pytest.mark.asyncio
async def test_batch_paces_across_keys(repository) -> None:
    project = repository.add_project("en", "fr")
    feature = repository.add_feature(project)
    for name in ("a", "b", "c"):
        repository.add_key(feature, name, {"en": name})
    clock = _FakeClock()

    result = await _orchestrator(repository, _FakeClient(), pacing_delay=0.25, clock=clock).translate_batch(
        Scope.for_feature(feature.id, project.id)
    )

    assert result.translated_count == 3
    assert clock.sleeps == [0.25, 0.25]


@pytest.mark.asyncio
async def test_batch_target_locales_filter(repository) -> None:
    project = repository.add_project("en", "fr", "de")
    key = repository.add_key(repository.add_feature(project), "title", {"en": "Title"})
    client = _FakeClient()

    result = await _orchestrator(repository, client).translate_batch(
        Scope.for_project(project.id), target_locales=["de"]
    )

    assert result.translated_count == 1
    assert [call[1] for call in client.calls] == ["de"]
    assert repository.value(key, "fr") is None


@pytest.mark.asyncio
async def test_batch_rejects_unknown_locale(repository) -> None:
    project = repository.add_project("en", "fr")
    repository.add_key(repository.add_feature(project), "title", {"en": "Title"})
    client = _FakeClient()

    with pytest.raises(InvalidInputError):
        await _orchestrator(repository, client).translate_batch(Scope.for_project(project.id), ["ja"])
    with pytest.raises(InvalidInputError):
        await _orchestrator(repository, client).translate_batch(Scope.for_project(project.id), [])

    assert client.calls == []


@pytest.mark.asyncio
async def test_batch_vanished_key_is_reported_and_run_continues(repository) -> None:
    project = repository.add_project("en", "fr")
    feature = repository.add_feature(project)
    gone = repository.add_key(feature, "gone", {"en": "Gone"})
    kept = repository.add_key(feature, "kept", {"en": "Kept"})
    original_find_key = repository.find_key

    async def find_key(key_id):
        if key_id == gone.id:
            return None
        return await original_find_key(key_id)

    repository.find_key = find_key

    result = await _orchestrator(repository, _FakeClient()).translate_batch(Scope.for_project(project.id))

    assert result.translated_count == 1
    assert len(result.errors) == 1
    assert result.errors[0].key_id == gone.id
    assert result.errors[0].locale is None
    assert result.statistics.processed_keys == 2
    assert repository.value(kept, "fr") == "fr:Kept"


@pytest.mark.asyncio
async def test_batch_key_lookup_failure_resets_before_next_key(repository) -> None:
    project = repository.add_project("en", "fr")
    feature = repository.add_feature(project)
    broken = repository.add_key(feature, "broken", {"en": "Broken"})
    kept = repository.add_key(feature, "kept", {"en": "Kept"})
    original_find_key = repository.find_key
    state = {"aborted": False}

    async def find_key(key_id):
        if state["aborted"] and repository.resets == 0:
            raise RuntimeError("current transaction is aborted")
        if key_id == broken.id:
            state["aborted"] = True
            raise RuntimeError("connection reset by peer")
        return await original_find_key(key_id)

    repository.find_key = find_key

    result = await _orchestrator(repository, _FakeClient()).translate_batch(Scope.for_project(project.id))

    assert repository.resets == 1
    assert [(error.key_id, error.error) for error in result.errors] == [(broken.id, "connection reset by peer")]
    assert result.translated_count == 1
    assert result.statistics.processed_keys == 2
    assert repository.value(kept, "fr") == "fr:Kept"


@pytest.mark.asyncio
async def test_batch_cancellation_omits_remaining_keys(repository) -> None:
    project = repository.add_project("en", "fr", "de")
    feature = repository.add_feature(project)
    first = repository.add_key(feature, "first", {"en": "One"})
    second = repository.add_key(feature, "second", {"en": "Two"})
    cancel = asyncio.Event()
    client = _FakeClient(on_call=lambda n: cancel.set())

    result = await _orchestrator(repository, client).translate_batch(
        Scope.for_project(project.id), cancel_event=cancel
    )

    assert result.cancelled
    assert result.translated_count == 1
    assert result.skipped_count == 1
    assert result.statistics.total_keys == 2
    assert result.statistics.processed_keys == 0
    assert repository.value(first, "de") == "de:One"
    assert second.translations[0].locale == "en" and len(second.translations) == 1

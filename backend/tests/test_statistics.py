import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from localehub.services.statistics import (
    active_locales_by_project,
    completion_percentage,
    compute_statistics,
    is_filled,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _language(project_id, locale, is_active=True):
    return SimpleNamespace(project_id=project_id, locale=locale, is_active=is_active)


def _feature(project_id, name, is_active=True):
    return SimpleNamespace(id=uuid.uuid4(), project_id=project_id, name=name, is_active=is_active)


def _key(feature, name, values, updated_at=None):
    key_id = uuid.uuid4()
    translations = [
        SimpleNamespace(
            key_id=key_id,
            locale=locale,
            value=value,
            created_at=NOW - timedelta(days=1),
            updated_at=(updated_at or {}).get(locale),
        )
        for locale, value in values.items()
    ]
    return SimpleNamespace(id=key_id, name=name, feature=feature, feature_id=feature.id, translations=translations)


@pytest.fixture
def project_id():
    return uuid.uuid4()


@pytest.fixture
def languages(project_id):
    return [_language(project_id, code) for code in ("en", "fr", "de")]


def test_completion_percentage_rounds_half_up() -> None:
    assert completion_percentage(1, 8) == 13  # 12.5
    assert completion_percentage(1, 3) == 33
    assert completion_percentage(2, 3) == 67
    assert completion_percentage(5, 5) == 100
    assert completion_percentage(0, 7) == 0


def test_completion_percentage_empty_scope_is_zero() -> None:
    assert completion_percentage(0, 0) == 0


def test_is_filled_rejects_blank_values() -> None:
    assert is_filled("Hello")
    assert not is_filled("")
    assert not is_filled("   \n")
    assert not is_filled(None)


def test_key_with_empty_value_is_missing(project_id, languages) -> None:
    feature = _feature(project_id, "onboarding")
    key = _key(feature, "greeting", {"en": "Hello", "fr": ""})

    stats = compute_statistics([key], languages)

    assert len(stats.missing_translations) == 1
    record = stats.missing_translations[0]
    assert record.key_id == key.id
    assert set(record.missing_locales) == {"fr", "de"}
    assert record.filled_locales == ["en"]
    assert stats.empty_value_count == 1
    assert stats.overall_completion_percentage == 33
    assert stats.orphaned_keys_count == 0
    assert stats.total_translations == 2


def test_filled_and_missing_partition_active_locales(project_id, languages) -> None:
    feature = _feature(project_id, "settings")
    keys = [
        _key(feature, "a", {"en": "A", "fr": "A-fr", "de": "A-de"}),
        _key(feature, "b", {"en": "B"}),
        _key(feature, "c", {}),
        _key(feature, "d", {"de": "  "}),
    ]

    stats = compute_statistics(keys, languages)

    missing_ids = {record.key_id for record in stats.missing_translations}
    assert missing_ids == {keys[1].id, keys[2].id, keys[3].id}
    for record in stats.missing_translations:
        assert len(record.filled_locales) + len(record.missing_locales) == 3
    assert 0 <= stats.overall_completion_percentage <= 100
    assert stats.overall_completion_percentage == completion_percentage(4, 12)


def test_inactive_languages_are_ignored(project_id) -> None:
    languages = [_language(project_id, "en"), _language(project_id, "ja", is_active=False)]
    feature = _feature(project_id, "home")
    key = _key(feature, "title", {"en": "Home"})

    stats = compute_statistics([key], languages)

    assert stats.missing_translations == []
    assert stats.overall_completion_percentage == 100
    assert [item.locale for item in stats.completion_by_locale] == ["en"]


def test_duplicate_key_names_reported_once(project_id, languages) -> None:
    home = _feature(project_id, "home")
    landing = _feature(project_id, "landing")
    keys = [
        _key(home, "welcome.title", {"en": "Welcome"}),
        _key(landing, "welcome.title", {"en": "Welcome!"}),
        _key(landing, "welcome.subtitle", {"en": "Hi"}),
    ]

    stats = compute_statistics(keys, languages)

    assert len(stats.duplicate_keys) == 1
    duplicate = stats.duplicate_keys[0]
    assert duplicate.key_name == "welcome.title"
    assert {ref.feature_id for ref in duplicate.features} == {home.id, landing.id}


def test_same_name_in_one_feature_is_not_a_duplicate(project_id, languages) -> None:
    feature = _feature(project_id, "home")
    keys = [_key(feature, "title", {"en": "A"}), _key(feature, "title", {"en": "B"})]

    assert compute_statistics(keys, languages).duplicate_keys == []


def test_orphaned_keys_have_no_filled_slot(project_id, languages) -> None:
    feature = _feature(project_id, "home")
    keys = [
        _key(feature, "empty", {"en": "", "fr": " "}),
        _key(feature, "none", {}),
        _key(feature, "filled", {"fr": "Oui"}),
    ]

    stats = compute_statistics(keys, languages)

    assert stats.orphaned_keys_count == 2
    assert stats.empty_value_count == 2


def test_completion_by_locale_and_feature(project_id, languages) -> None:
    home = _feature(project_id, "home")
    cart = _feature(project_id, "cart")
    keys = [
        _key(home, "title", {"en": "Home", "fr": "Accueil"}),
        _key(cart, "title", {"en": "Cart", "fr": "Panier", "de": "Warenkorb"}),
    ]

    stats = compute_statistics(keys, languages)

    by_locale = {item.locale: item for item in stats.completion_by_locale}
    assert [item.locale for item in stats.completion_by_locale] == ["de", "en", "fr"]
    assert (by_locale["de"].filled, by_locale["de"].total, by_locale["de"].percentage) == (1, 2, 50)
    assert by_locale["en"].percentage == 100

    by_feature = {item.feature_id: item for item in stats.completion_by_feature}
    assert by_feature[home.id].percentage == 67
    assert by_feature[cart.id].percentage == 100


def test_all_scope_measures_each_key_against_its_project(languages, project_id) -> None:
    other_project = uuid.uuid4()
    all_languages = languages + [_language(other_project, "es")]
    web = _feature(project_id, "web")
    mobile = _feature(other_project, "mobile")
    keys = [
        _key(web, "title", {"en": "Title"}),
        _key(mobile, "title", {"es": "Titulo"}),
    ]

    stats = compute_statistics(keys, all_languages)

    assert [record.key_id for record in stats.missing_translations] == [keys[0].id]
    assert stats.overall_completion_percentage == completion_percentage(2, 4)
    # Same key name in features of different projects still counts as duplicate
    assert len(stats.duplicate_keys) == 1


def test_most_active_features_ranked_by_filled_slots(project_id, languages) -> None:
    quiet = _feature(project_id, "quiet")
    busy = _feature(project_id, "busy")
    medium = _feature(project_id, "medium")
    keys = [
        _key(quiet, "q", {"en": ""}),
        _key(busy, "b1", {"en": "1", "fr": "1", "de": "1"}),
        _key(busy, "b2", {"en": "2"}),
        _key(medium, "m", {"en": "1", "fr": "1"}),
    ]

    stats = compute_statistics(keys, languages)

    ranked = [(item.feature_name, item.translation_count) for item in stats.most_active_features]
    assert ranked == [("busy", 4), ("medium", 2)]


def test_most_active_features_limit(project_id, languages) -> None:
    keys = [_key(_feature(project_id, f"f{i}"), "k", {"en": "x"}) for i in range(7)]

    stats = compute_statistics(keys, languages)

    assert len(stats.most_active_features) == 5
    # Ties keep first-seen order
    assert [item.feature_name for item in stats.most_active_features] == ["f0", "f1", "f2", "f3", "f4"]


def test_recently_updated_newest_first(project_id, languages) -> None:
    feature = _feature(project_id, "home")
    key = _key(
        feature,
        "title",
        {"en": "Title", "fr": "Titre", "de": ""},
        updated_at={"en": NOW - timedelta(hours=2), "fr": NOW, "de": NOW + timedelta(hours=1)},
    )

    stats = compute_statistics([key], languages)

    assert [item.locale for item in stats.recently_updated] == ["fr", "en"]
    assert stats.recently_updated[0].value == "Titre"


def test_recently_updated_limit(project_id) -> None:
    languages = [_language(project_id, "en")]
    feature = _feature(project_id, "home")
    keys = [
        _key(feature, f"k{i}", {"en": str(i)}, updated_at={"en": NOW + timedelta(minutes=i)})
        for i in range(15)
    ]

    stats = compute_statistics(keys, languages)

    assert len(stats.recently_updated) == 10
    assert stats.recently_updated[0].key_name == "k14"


def test_active_features_with_missing_translations(project_id, languages) -> None:
    active = _feature(project_id, "active")
    retired = _feature(project_id, "retired", is_active=False)
    done = _feature(project_id, "done")
    keys = [
        _key(active, "a", {"en": "A"}),
        _key(retired, "r", {"en": "R"}),
        _key(done, "d", {"en": "D", "fr": "D", "de": "D"}),
    ]

    stats = compute_statistics(keys, languages)

    assert stats.active_features_with_missing_translations == 1


def test_empty_scope(languages) -> None:
    stats = compute_statistics([], languages)

    assert stats.overall_completion_percentage == 0
    assert stats.missing_translations == []
    assert stats.completion_by_locale == []
    assert stats.total_translations == 0


def test_active_locales_by_project_sorted_and_unique(project_id) -> None:
    other = uuid.uuid4()
    languages = [
        _language(project_id, "fr"),
        _language(project_id, "en"),
        _language(project_id, "en"),
        _language(project_id, "de", is_active=False),
        _language(other, "es"),
    ]

    assert active_locales_by_project(languages) == {project_id: ["en", "fr"], other: ["es"]}

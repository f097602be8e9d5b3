import uuid
from types import SimpleNamespace

import pytest

from localehub.exceptions import NoSourceAvailableError
from localehub.schemas.statistics import MissingTranslation
from localehub.services.planner import plan_batch, plan_for_key, select_source


def _translations(values):
    return [SimpleNamespace(locale=locale, value=value) for locale, value in values.items()]


def _missing(project_id, missing, filled=()):
    return MissingTranslation(
        key_id=uuid.uuid4(),
        key_name="key",
        feature_id=uuid.uuid4(),
        feature_name="feature",
        project_id=project_id,
        missing_locales=list(missing),
        filled_locales=list(filled),
    )


def test_select_source_uses_locale_code_order() -> None:
    source = select_source(_translations({"fr": "Bonjour", "de": "Hallo", "en": "Hello"}))

    assert source.locale == "de"


def test_select_source_skips_blank_values() -> None:
    source = select_source(_translations({"de": " ", "en": "", "fr": "Bonjour"}))

    assert source.locale == "fr"


def test_select_source_none_without_values() -> None:
    assert select_source(_translations({"en": "", "fr": None})) is None


def test_plan_skips_already_filled_locales() -> None:
    key_id = uuid.uuid4()

    plan = plan_for_key(key_id, _translations({"en": "Hello", "fr": ""}), ["en", "fr"])

    assert plan.source_locale == "en"
    assert plan.source_text == "Hello"
    assert plan.targets == ["fr"]
    assert plan.skipped_locales == ["en"]


def test_plan_keeps_caller_order_and_drops_repeats() -> None:
    plan = plan_for_key(uuid.uuid4(), _translations({"en": " Hello "}), ["fr", "de", "fr"])

    assert plan.targets == ["fr", "de"]
    assert plan.source_text == "Hello"
    assert not plan.is_empty


def test_plan_without_source_raises() -> None:
    key_id = uuid.uuid4()

    with pytest.raises(NoSourceAvailableError) as exc_info:
        plan_for_key(key_id, _translations({"en": "", "fr": "  "}), ["de"])

    assert exc_info.value.key_id == key_id


def test_plan_batch_intersects_with_project_locales() -> None:
    web, mobile = uuid.uuid4(), uuid.uuid4()
    records = [
        _missing(web, ["de", "fr"], ["en"]),
        _missing(mobile, ["ja"], ["en"]),
    ]
    locales = {web: ["de", "en", "fr"], mobile: ["en", "ja"]}

    work = plan_batch(records, locales)

    assert [item.target_locales for item in work] == [["de", "fr"], ["ja"]]


def test_plan_batch_allowed_locales_filter_and_order() -> None:
    project = uuid.uuid4()
    records = [
        _missing(project, ["de", "fr"], ["en"]),
        _missing(project, ["de"], ["en", "fr"]),
    ]
    locales = {project: ["de", "en", "fr"]}

    work = plan_batch(records, locales, allowed_locales=["fr", "de"])

    assert [item.target_locales for item in work] == [["fr", "de"], ["de"]]


def test_plan_batch_drops_records_with_nothing_to_do() -> None:
    project = uuid.uuid4()
    records = [_missing(project, ["de"], ["en"]), _missing(project, ["fr"], ["en"])]

    work = plan_batch(records, {project: ["de", "en", "fr"]}, allowed_locales=["fr"])

    assert len(work) == 1
    assert work[0].record is records[1]

import logging

import pytest

from run_compiler.errors import ConfigError
from run_compiler.models import EmailStrictness, GridDensity, RunConfig
from run_compiler.presets import PRESETS, apply_preset, get_preset, list_presets, merge_run_config

PRESET_IDS = [
    "high-reply-lead-gen",
    "max-coverage",
    "competitor-intelligence",
    "market-gap-finder",
    "partnership-finder",
]


def test_library_lists_all_presets() -> None:
    assert [preset.id for preset in list_presets()] == PRESET_IDS
    assert get_preset("max-coverage") is PRESETS[1]
    assert get_preset("nope") is None


def test_high_reply_lead_gen() -> None:
    config = apply_preset("high-reply-lead-gen")

    assert config.search.max_places == 100
    assert config.contacts.discover_contacts_from_website is True
    assert config.contacts.email_strictness is EmailStrictness.PERSONAL_ONLY


@pytest.mark.parametrize("preset_id", PRESET_IDS)
def test_every_preset_builds_a_typed_config(preset_id: str) -> None:
    config = apply_preset(preset_id)

    assert isinstance(config, RunConfig)
    assert config.automation.schedule is None


def test_overrides_win_over_preset_and_keep_siblings() -> None:
    config = apply_preset(
        "max-coverage",
        {"search": {"searchTerms": ["gym"], "maxPlaces": 20}, "geo": {"city": "Oslo"}},
    )

    assert config.search.search_terms == ("gym",)
    assert config.search.max_places == 20
    assert config.geo.city == "Oslo"
    assert config.geo.grid_density is GridDensity.HIGH
    assert config.extraction.include_opening_hours is False


def test_unknown_preset_uses_defaults_plus_overrides() -> None:
    config = apply_preset("does-not-exist", {"search": {"maxPlaces": 7}})

    assert config.search.max_places == 7
    assert config.search.sort_mode == RunConfig().search.sort_mode
    assert config.contacts == RunConfig().contacts


def test_arrays_and_nulls_replace_outright() -> None:
    base = apply_preset("high-reply-lead-gen")

    merged = merge_run_config(
        base,
        {"contacts": {"scanPages": ["/"]}, "qualityFilters": {"minRating": None}},
    )

    assert merged.contacts.scan_pages == ("/",)
    assert merged.quality_filters.min_rating is None
    assert merged.quality_filters.min_reviews == 5


def test_nested_sections_merge_recursively() -> None:
    merged = merge_run_config(RunConfig(), {"contacts": {"socialsEnabled": {"youtube": True}}})

    assert merged.contacts.socials_enabled.youtube is True
    assert merged.contacts.socials_enabled.facebook is True


def test_unknown_keys_are_ignored(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="run_compiler")

    merged = merge_run_config(RunConfig(), {"bogus": 1, "search": {"alsoBogus": True}})

    assert merged == RunConfig()
    assert any("bogus" in record.getMessage() for record in caplog.records)


def test_ill_typed_override_raises_config_error() -> None:
    with pytest.raises(ConfigError):
        merge_run_config(RunConfig(), {"search": {"maxPlaces": "many"}})
    with pytest.raises(ConfigError):
        merge_run_config(RunConfig(), {"reviews": {"includeReviews": 3}})


def test_patch_must_be_a_mapping() -> None:
    with pytest.raises(ConfigError):
        merge_run_config(RunConfig(), ["search"])


def test_merging_does_not_touch_the_preset() -> None:
    before = get_preset("partnership-finder").config["search"]["maxPlaces"]

    apply_preset("partnership-finder", {"search": {"maxPlaces": 1}})

    assert get_preset("partnership-finder").config["search"]["maxPlaces"] == before

import json
from typing import Any, Dict

import pytest

from run_compiler.models import GeoMode, ImageMode, RunConfig
from run_compiler.presets import PRESETS
from run_compiler.validation import SEARCH_TERM_REQUIRED, validate_run_config


def test_empty_input_requires_search_term_and_city() -> None:
    result = validate_run_config({})

    assert result.success is False
    assert result.config is None
    assert SEARCH_TERM_REQUIRED in result.errors
    assert 'City name is required when geoMode is "city"' in result.errors
    assert result.warnings == ()


@pytest.mark.parametrize("raw", [None, 42, "config", ["geo"]])
def test_non_object_input_is_rejected(raw: Any) -> None:
    result = validate_run_config(raw)

    assert result.success is False
    assert result.errors == ("Input must be an object",)


def test_valid_input_succeeds_without_errors(raw_config: Dict[str, Any]) -> None:
    result = validate_run_config(raw_config)

    assert result.success is True
    assert result.errors == ()
    assert result.config is not None
    assert result.config.search.search_terms == ("coffee",)
    assert result.config.geo.city == "Lisbon"


def test_blank_search_terms_do_not_count(raw_config: Dict[str, Any]) -> None:
    raw_config["search"]["searchTerms"] = ["   ", ""]

    result = validate_run_config(raw_config)

    assert result.errors == (SEARCH_TERM_REQUIRED,)


@pytest.mark.parametrize("mode,key", [("placeUrls", "placeUrls"), ("placeIds", "placeIds")])
def test_place_modes_do_not_need_search_terms(mode: str, key: str) -> None:
    result = validate_run_config({"geo": {"geoMode": mode, key: ["abc"]}})

    assert result.success is True
    assert result.config is not None
    assert result.config.geo.geo_mode is GeoMode(mode)


def test_place_ids_mode_with_empty_list_fails() -> None:
    result = validate_run_config({"geo": {"geoMode": "placeIds", "placeIds": []}})

    assert result.errors == ('At least one place ID is required when geoMode is "placeIds"',)


def test_zero_radius_is_rejected(raw_config: Dict[str, Any]) -> None:
    raw_config["geo"] = {"geoMode": "latlng_radius", "lat": 38.7, "lng": -9.1, "radiusKm": 0}

    result = validate_run_config(raw_config)

    assert result.errors == ('Positive radius is required when geoMode is "latlng_radius"',)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("lots", 100),
        (0, 100),
        (10001, 100),
        (True, 100),
        (float("nan"), 100),
        (12.5, 13),
        (250, 250),
    ],
)
def test_max_places_falls_back_or_rounds(raw_config: Dict[str, Any], value: Any, expected: int) -> None:
    raw_config["search"]["maxPlaces"] = value

    result = validate_run_config(raw_config)

    assert result.config is not None
    assert result.config.search.max_places == expected


def test_integers_beyond_float_range_fall_back() -> None:
    huge = "1" + "0" * 400
    raw = json.loads(
        "{"
        '"geo": {"geoMode": "city", "city": "Lisbon", "lat": %s},'
        '"search": {"searchTerms": ["coffee"], "maxPlaces": %s},'
        '"qualityFilters": {"minReviews": %s},'
        '"automation": {"timeoutMs": %s, "delayRangeMs": {"min": %s, "max": %s}}'
        "}" % ((huge,) * 6)
    )
    defaults = RunConfig()

    result = validate_run_config(raw)

    assert result.success is True
    config = result.config
    assert config is not None
    assert config.geo.lat is None
    assert config.search.max_places == 100
    assert config.quality_filters.min_reviews is None
    assert config.automation.timeout_ms == 300000
    assert config.automation.delay_range_ms == defaults.automation.delay_range_ms


def test_out_of_range_coordinates_report_geo_error() -> None:
    raw = {
        "geo": {"geoMode": "latlng_radius", "lat": 10**400, "lng": -9.1, "radiusKm": 5},
        "search": {"searchTerms": ["coffee"]},
    }

    result = validate_run_config(raw)

    assert result.success is False
    assert result.errors


def test_invalid_fields_fall_back_to_defaults(raw_config: Dict[str, Any]) -> None:
    raw_config.update(
        {
            "reviews": {"includeReviews": 7, "includeOwnerResponses": "yes"},
            "images": {"includeImages": "everything", "maxImagesPerPlace": 500},
            "qualityFilters": {"minRating": 9, "minReviews": -1},
            "automation": {"timeoutMs": 5, "retries": 2.4, "webhooks": ["nope", {"url": "https://hook"}]},
        }
    )

    config = validate_run_config(raw_config).config

    assert config is not None
    assert config.reviews.include_reviews == 0
    assert config.reviews.include_owner_responses is False
    assert config.images.include_images is ImageMode.OFF
    assert config.images.max_images_per_place == 5
    assert config.quality_filters.min_rating is None
    assert config.quality_filters.min_reviews is None
    assert config.automation.timeout_ms == 300000
    assert config.automation.retries == 2
    assert [hook.url for hook in config.automation.webhooks] == ["https://hook"]


def test_delay_range_max_never_below_min(raw_config: Dict[str, Any]) -> None:
    raw_config["automation"] = {"delayRangeMs": {"min": 5000, "max": 1000}}

    config = validate_run_config(raw_config).config

    assert config is not None
    assert config.automation.delay_range_ms.minimum == 5000
    assert config.automation.delay_range_ms.maximum == 5000


def test_accepts_an_existing_run_config(valid_config: RunConfig) -> None:
    result = validate_run_config(valid_config)

    assert result.success is True
    assert result.config == valid_config


def _rich_inputs() -> list:
    inputs = []
    for preset in PRESETS:
        raw = dict(preset.config)
        raw["search"] = {**raw["search"], "searchTerms": ["bakery", " bakery "]}
        raw["geo"] = {**raw.get("geo", {}), "geoMode": "city", "city": "Berlin"}
        inputs.append(raw)
    inputs.append(
        {
            "geo": {
                "geoMode": "latlng_radius",
                "lat": 52.5,
                "lng": 13.4,
                "radiusKm": 3,
                "locations": [{"lat": 48.1, "lng": 11.6, "radiusKm": 2}, "junk"],
                "gridDensity": "low",
            },
            "search": {"searchTerms": ["dentist"], "maxPlaces": 33.2},
            "automation": {"schedule": {"type": "weekly", "hour": 9, "dayOfWeek": 1}},
        }
    )
    return inputs


@pytest.mark.parametrize("raw", _rich_inputs())
def test_validation_is_idempotent(raw: Dict[str, Any]) -> None:
    first = validate_run_config(raw)
    assert first.config is not None

    second = validate_run_config(first.config.to_wire())

    assert second.success is True
    assert second.config == first.config

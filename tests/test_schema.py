import itertools
from typing import Any, Dict, List, Sequence, Tuple

import pytest

from run_compiler.features import (
    CONTACT_FEATURES,
    ENRICHMENT_FIELDS,
    IMAGES_FEATURE,
    PLACE_FEATURES,
    REVIEW_FEATURES,
    SOCIAL_PLATFORMS,
    Feature,
)
from run_compiler.models import RunConfig
from run_compiler.presets import apply_preset, merge_run_config
from run_compiler.prompt import build_prompt
from run_compiler.schema import build_output_schema


def _item_properties(schema: Dict[str, Any], collection: str) -> Dict[str, Any]:
    prop = schema["properties"].get(collection)
    if prop is None:
        return {}
    return prop["items"]["properties"]


def test_reviews_absent_when_not_collected(valid_config: RunConfig) -> None:
    schema = build_output_schema(valid_config)

    assert "reviews" not in schema["properties"]
    assert "reviews" not in schema["required"]
    assert schema["required"] == ["places", "diagnostics"]


def test_place_items_carry_base_fields(valid_config: RunConfig) -> None:
    schema = build_output_schema(valid_config)
    places = schema["properties"]["places"]

    assert places["type"] == "array"
    assert places["items"]["required"] == ["name", "placeId", "address"]
    assert {"name", "placeId", "cid", "fid", "postalCode", "reviewsCount"} <= set(places["items"]["properties"])
    assert set(schema["properties"]["diagnostics"]["properties"]) == {
        "pagesVisited",
        "totalResultsFound",
        "totalPlacesReturned",
        "durationMs",
        "errors",
        "warnings",
    }


def test_optional_collections_are_required_when_enabled(valid_config: RunConfig) -> None:
    config = merge_run_config(
        valid_config,
        {"reviews": {"includeReviews": 10}, "contacts": {"discoverContactsFromWebsite": True}},
    )

    schema = build_output_schema(config)

    assert schema["required"] == ["places", "diagnostics", "reviews", "contacts"]
    assert schema["properties"]["reviews"]["items"]["required"] == ["placeId", "rating", "date", "reviewerName"]
    assert schema["properties"]["contacts"]["items"]["required"] == ["placeId"]


def test_image_shape_follows_mode(valid_config: RunConfig) -> None:
    urls = merge_run_config(valid_config, {"images": {"includeImages": "urlsOnly"}})
    full = merge_run_config(valid_config, {"images": {"includeImages": "fullMetadata"}})

    url_images = _item_properties(build_output_schema(urls), "places")["images"]
    full_images = _item_properties(build_output_schema(full), "places")["images"]

    assert url_images == {"type": "array", "items": {"type": "string"}}
    assert set(full_images["items"]["properties"]) == {"url", "width", "height", "uploadDate", "contributor"}


def test_price_bracket_enum(valid_config: RunConfig) -> None:
    config = merge_run_config(valid_config, {"extraction": {"includePriceBracket": True}})

    price = _item_properties(build_output_schema(config), "places")["priceBracket"]

    assert price["enum"] == ["$", "$$", "$$$", "$$$$", None]


def test_contact_properties_follow_enabled_channels(valid_config: RunConfig) -> None:
    config = merge_run_config(
        valid_config,
        {
            "contacts": {
                "discoverContactsFromWebsite": True,
                "extractPhonesFromWebsite": False,
                "socialsEnabled": {"facebook": False, "instagram": False, "twitter": False},
            },
            "enrichment": {"enableDecisionMakerEnrichment": True, "enrichmentFields": {"jobTitle": False}},
        },
    )

    contacts = _item_properties(build_output_schema(config), "contacts")

    assert set(contacts) == {"placeId", "emails", "socialProfiles", "decisionMakers"}
    assert contacts["emails"]["items"]["properties"]["type"]["enum"] == ["personal", "role", "generic"]
    assert set(contacts["socialProfiles"]["properties"]) == {"linkedin"}
    assert set(contacts["decisionMakers"]["items"]["properties"]) == {"fullName", "linkedinUrl", "confidence"}


def test_every_call_returns_a_fresh_structure(valid_config: RunConfig) -> None:
    first = build_output_schema(valid_config)
    first["properties"]["places"]["items"]["properties"]["name"]["type"] = "number"
    first["required"].append("mutated")

    second = build_output_schema(valid_config)

    assert second["properties"]["places"]["items"]["properties"]["name"] == {"type": "string"}
    assert second["required"] == ["places", "diagnostics"]


def _instruction_lines(prompt: str) -> List[str]:
    return [line for line in prompt.splitlines() if not line.startswith("Do not")]


def _mentions(prompt: str, phrase: str) -> bool:
    return any(phrase in line for line in _instruction_lines(prompt))


def _assert_in_sync(config: RunConfig) -> None:
    prompt = build_prompt(config)
    schema = build_output_schema(config)
    catalogue = (
        [(feature, "places") for feature in PLACE_FEATURES]
        + [(feature, "reviews") for feature in REVIEW_FEATURES]
        + [(feature, "contacts") for feature in CONTACT_FEATURES]
    )

    for feature, collection in catalogue:
        properties = _item_properties(schema, collection)
        in_schema = all(name in properties for name in feature.properties)
        assert _mentions(prompt, feature.label) == in_schema, feature.field

    image_directive = any(
        _mentions(prompt, directive) for directive in ("Extract image URLs only", "Extract full image metadata")
    )
    place_properties = _item_properties(schema, "places")
    assert image_directive == all(name in place_properties for name in IMAGES_FEATURE.properties)

    decision_makers = _item_properties(schema, "contacts").get("decisionMakers")
    enriched = set(decision_makers["items"]["properties"]) if decision_makers else set()
    for _, phrase, prop in ENRICHMENT_FIELDS:
        assert _mentions(prompt, phrase) == (prop in enriched), prop


def _flag_paths(features: Sequence[Feature]) -> List[Tuple[str, str]]:
    paths = []
    for feature in features:
        section, key = feature.field.split(".")
        paths.append((section, key))
    return paths


def _sweep(valid_config: RunConfig, toggles: Sequence[Tuple[str, str]], base: Dict[str, Dict[str, Any]]) -> None:
    for values in itertools.product((False, True), repeat=len(toggles)):
        patch = {section: dict(fields) for section, fields in base.items()}
        for (section, key), value in zip(toggles, values):
            patch.setdefault(section, {})[key] = value

        _assert_in_sync(merge_run_config(valid_config, patch))


def test_prompt_and_schema_agree_across_place_toggles(valid_config: RunConfig) -> None:
    _sweep(valid_config, _flag_paths(PLACE_FEATURES), {})


@pytest.mark.parametrize("review_count", [0, 10, 50])
def test_prompt_and_schema_agree_across_review_toggles(valid_config: RunConfig, review_count: int) -> None:
    _sweep(valid_config, _flag_paths(REVIEW_FEATURES), {"reviews": {"includeReviews": review_count}})


_CONTACT_TOGGLES = [("contacts", "discoverContactsFromWebsite")] + _flag_paths(CONTACT_FEATURES)


@pytest.mark.parametrize("linkedin_only", [False, True])
def test_prompt_and_schema_agree_across_contact_toggles(valid_config: RunConfig, linkedin_only: bool) -> None:
    base: Dict[str, Dict[str, Any]] = {}
    if linkedin_only:
        base["contacts"] = {"socialsEnabled": {name: name == "linkedin" for name in SOCIAL_PLATFORMS}}
    _sweep(valid_config, _CONTACT_TOGGLES, base)


_MIXED_TOGGLES = (
    ("extraction", "includeCoordinates"),
    ("extraction", "includeAmenities"),
    ("reviews", "includeOwnerResponses"),
    ("reviews", "includeReviewTags"),
    ("contacts", "discoverContactsFromWebsite"),
    ("contacts", "extractCompanyEmails"),
    ("enrichment", "enableDecisionMakerEnrichment"),
)


@pytest.mark.parametrize("review_count", [0, 10])
@pytest.mark.parametrize("image_mode", ["off", "urlsOnly", "fullMetadata"])
def test_prompt_and_schema_agree_across_sections(
    valid_config: RunConfig, review_count: int, image_mode: str
) -> None:
    base = {"reviews": {"includeReviews": review_count}, "images": {"includeImages": image_mode}}
    _sweep(valid_config, _MIXED_TOGGLES, base)


@pytest.mark.parametrize(
    "preset_id",
    ["high-reply-lead-gen", "max-coverage", "competitor-intelligence", "market-gap-finder", "partnership-finder"],
)
def test_prompt_and_schema_agree_for_presets(preset_id: str) -> None:
    overrides = {
        "search": {"searchTerms": ["gym"]},
        "geo": {"city": "Madrid"},
        "enrichment": {"enableDecisionMakerEnrichment": True},
        "socials": {"ignored": True},
    }

    _assert_in_sync(apply_preset(preset_id, overrides))

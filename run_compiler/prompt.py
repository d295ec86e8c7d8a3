"""Natural-language instruction document for the extraction agent."""

from __future__ import annotations

import json
from typing import Callable, Dict, List, Tuple

from .features import (
    IMAGES_FEATURE,
    PLACE_FEATURES,
    REVIEW_FEATURES,
    contacts_enabled,
    decision_makers_enabled,
    emails_enabled,
    enabled_enrichment_fields,
    enabled_social_platforms,
    phones_enabled,
    reviews_enabled,
)
from .models import (
    CityTarget,
    EmailStrictness,
    GridDensity,
    ImageMode,
    MapsUrlTarget,
    PlaceIdsTarget,
    PlaceUrlsTarget,
    PolygonTarget,
    RadiusTarget,
    RunConfig,
    resolve_geo_target,
)

PLACE_BASE_FIELDS: Tuple[str, ...] = (
    "name",
    "category",
    "placeId",
    "address",
    "website",
    "phone",
    "rating",
    "reviewsCount",
)

REVIEW_BASE_FIELDS: Tuple[str, ...] = ("text", "rating", "date", "reviewerName")


def _num(value) -> str:
    """Render a number the way a JSON serializer would."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _city_lines(target: CityTarget) -> List[str]:
    lines = [f'Search in city: "{target.city}"']
    cities = [loc.city for loc in target.locations if loc.city]
    if cities:
        lines.append(f"Also search in cities: {', '.join(cities)}")
    return lines


def _radius_lines(target: RadiusTarget) -> List[str]:
    lines = [
        f"Search within {_num(target.radius_km)}km radius of coordinates "
        f"({_num(target.lat)}, {_num(target.lng)})"
    ]
    for loc in target.locations:
        if loc.lat is not None and loc.lng is not None and loc.radius_km is not None:
            lines.append(f"Also search: {_num(loc.radius_km)}km radius of ({_num(loc.lat)}, {_num(loc.lng)})")
    return lines


def _plain_numbers(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, list):
        return [_plain_numbers(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain_numbers(item) for key, item in value.items()}
    return value


def _polygon_lines(target: PolygonTarget) -> List[str]:
    geojson = json.dumps(_plain_numbers(target.geojson.to_wire()), separators=(",", ":"))
    return [
        f"Search within the provided GeoJSON {target.geo_mode} boundary",
        f"GeoJSON: {geojson}",
    ]


def _maps_url_lines(target: MapsUrlTarget) -> List[str]:
    lines = [f"Extract places from Google Maps URL: {target.maps_url}"]
    lines.extend(f"Also extract from: {loc.maps_url}" for loc in target.locations if loc.maps_url)
    return lines


def _place_url_lines(target: PlaceUrlsTarget) -> List[str]:
    lines = ["Extract details for these specific place URLs:"]
    lines.extend(f"  - {url}" for url in target.place_urls)
    return lines


def _place_id_lines(target: PlaceIdsTarget) -> List[str]:
    lines = ["Extract details for these Google Place IDs:"]
    lines.extend(f"  - {place_id}" for place_id in target.place_ids)
    return lines


GEO_RENDERERS: Dict[type, Callable] = {
    CityTarget: _city_lines,
    RadiusTarget: _radius_lines,
    PolygonTarget: _polygon_lines,
    MapsUrlTarget: _maps_url_lines,
    PlaceUrlsTarget: _place_url_lines,
    PlaceIdsTarget: _place_id_lines,
}


def build_geo_instructions(config: RunConfig) -> str:
    geo = config.geo
    target, errors = resolve_geo_target(geo)

    if target is None:
        lines = [f"No valid location for geoMode {geo.geo_mode.value}: {'; '.join(errors)}"]
    else:
        lines = GEO_RENDERERS[type(target)](target)

    if geo.grid_density is not GridDensity.MED:
        lines.append(f"Grid density for area coverage: {geo.grid_density.value}")

    return "\n".join(lines)


def build_search_instructions(config: RunConfig) -> str:
    search = config.search
    quoted = ', '.join(f'"{term}"' for term in search.search_terms)
    lines = [f"Search queries: {quoted}"]

    if search.categories:
        lines.append(f"Filter to categories: {', '.join(search.categories)}")
    if search.exclude_keywords:
        lines.append(f"Exclude results containing: {', '.join(search.exclude_keywords)}")
    if search.language:
        lines.append(f"Prefer results in language: {search.language}")

    lines.append(f"Sort results by: {search.sort_mode.value}")
    lines.append(f"Maximum places to return: {search.max_places}")
    return "\n".join(lines)


def build_extraction_instructions(config: RunConfig) -> str:
    fields = list(PLACE_BASE_FIELDS)
    fields.extend(feature.label for feature in PLACE_FEATURES if feature.enabled(config))

    return "\n".join(
        [
            f"Extraction detail level: {config.extraction.detail_pack.value}",
            f"Extract these fields for each place: {', '.join(fields)}",
        ]
    )


def build_review_instructions(config: RunConfig) -> str:
    if not reviews_enabled(config):
        return "Do not extract reviews."

    reviews = config.reviews
    fields = list(REVIEW_BASE_FIELDS)
    fields.extend(feature.label for feature in REVIEW_FEATURES if feature.enabled(config))

    return "\n".join(
        [
            f"Extract up to {reviews.include_reviews} reviews per place",
            f"Review selection strategy: {reviews.review_strategy.value}",
            f"For each review, extract: {', '.join(fields)}",
        ]
    )


def build_image_instructions(config: RunConfig) -> str:
    if not IMAGES_FEATURE.enabled(config):
        return "Do not extract images."

    images = config.images
    if images.include_images is ImageMode.URLS_ONLY:
        return f"Extract image URLs only (up to {images.max_images_per_place} per place)"
    return "\n".join(
        [
            f"Extract full image metadata (up to {images.max_images_per_place} per place)",
            "Include: URL, dimensions, upload date, contributor info if available",
        ]
    )


_EMAIL_PRIORITIES: Dict[EmailStrictness, Tuple[str, ...]] = {
    EmailStrictness.PERSONAL_ONLY: (
        "PRIORITY: Only return personal emails (firstname@, firstname.lastname@, etc.)",
        "Exclude generic emails entirely",
    ),
    EmailStrictness.PERSONAL_PLUS_NAMED_ROLE: (
        "PRIORITY: Prefer personal emails, also include named role emails (john.smith@, marketing@jane.com)",
        "Deprioritize but include generic role emails",
    ),
    EmailStrictness.ALL_EMAILS: ("Return all emails found",),
}


def build_contact_instructions(config: RunConfig) -> str:
    if not contacts_enabled(config):
        return "Do not scan websites for additional contact information."

    contacts = config.contacts
    lines = [
        "CONTACT DISCOVERY ENABLED",
        f"Scan these website pages: {', '.join(contacts.scan_pages)}",
    ]

    if emails_enabled(config):
        lines.append("Extract all email addresses found")
        lines.extend(_EMAIL_PRIORITIES[contacts.email_strictness])
        if contacts.generic_email_blocklist:
            lines.append(f"Block these email prefixes: {', '.join(contacts.generic_email_blocklist)}")
    else:
        lines.append("Do not extract email addresses.")

    if phones_enabled(config):
        lines.append("Extract additional phone numbers from website")
    else:
        lines.append("Do not extract additional phone numbers from website.")

    platforms = enabled_social_platforms(config)
    if platforms:
        lines.append(f"Extract social profiles for: {', '.join(platforms)}")
    else:
        lines.append("Do not extract social profiles.")

    return "\n".join(lines)


def build_enrichment_instructions(config: RunConfig) -> str:
    if not decision_makers_enabled(config):
        return "Do not perform decision-maker enrichment."

    enrichment = config.enrichment
    fields = [phrase for _, phrase, _ in enabled_enrichment_fields(config)]
    return "\n".join(
        [
            "DECISION-MAKER ENRICHMENT ENABLED",
            f"Target roles: {', '.join(enrichment.enrichment_targets)}",
            f"Enrich with: {', '.join(fields) if fields else 'confidence score only'}",
            f"Match confidence: {enrichment.enrichment_strictness.value}",
        ]
    )


def build_quality_filter_instructions(config: RunConfig) -> str:
    filters = config.quality_filters
    parts: List[str] = []

    if filters.min_rating is not None:
        parts.append(f"minimum rating: {_num(filters.min_rating)}")
    if filters.min_reviews is not None:
        parts.append(f"minimum reviews: {filters.min_reviews}")
    if filters.must_have_website:
        parts.append("must have website")
    if filters.must_have_phone:
        parts.append("must have phone")
    if filters.exclude_temporarily_closed:
        parts.append("exclude temporarily closed")
    if filters.exclude_permanently_closed:
        parts.append("exclude permanently closed")
    if filters.exclude_chains:
        parts.append("exclude chain businesses")

    if not parts:
        return "No quality filters applied."
    return f"Quality filters: {', '.join(parts)}"


def build_output_instructions(config: RunConfig) -> str:
    output = config.output
    lines = [
        f"Primary output view: {output.export_view.value}",
        f"Deduplicate results by: {output.dedupe_strategy.value}",
    ]
    if output.field_picker:
        lines.append(f"Only include these fields in output: {', '.join(output.field_picker)}")
    return "\n".join(lines)


SECTIONS: Tuple[Tuple[str, Callable[[RunConfig], str]], ...] = (
    ("SEARCH PARAMETERS", build_search_instructions),
    ("LOCATION", build_geo_instructions),
    ("EXTRACTION FIELDS", build_extraction_instructions),
    ("REVIEWS", build_review_instructions),
    ("IMAGES", build_image_instructions),
    ("CONTACT DISCOVERY", build_contact_instructions),
    ("ENRICHMENT", build_enrichment_instructions),
    ("QUALITY FILTERS", build_quality_filter_instructions),
    ("OUTPUT", build_output_instructions),
)


def build_prompt(config: RunConfig) -> str:
    """Compile the enforced configuration into the agent's instruction text."""

    lines = [
        "=== GOOGLE MAPS EXTRACTION TASK ===",
        "",
        "CRITICAL: Return ONLY valid JSON. No markdown, no explanations, no code fences.",
        "The output MUST conform exactly to the provided JSON schema.",
        "",
    ]
    for title, builder in SECTIONS:
        lines.append(f"--- {title} ---")
        lines.append(builder(config))
        lines.append("")
    lines.append("=== END TASK ===")
    return "\n".join(lines)

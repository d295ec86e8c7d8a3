"""Coercion of untrusted input into a canonical RunConfig.

Every section is coerced field by field: a value that fails its type or
range predicate silently falls back to the field's default. Only the
geo/search cross-field requirements produce hard errors.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, List, Optional, Tuple, Type

from pydantic import ValidationError

from .logging_utils import get_logger
from .models import (
    REVIEW_COUNTS,
    AutomationConfig,
    ChangeDetectionConfig,
    ComplianceConfig,
    ContactsConfig,
    DedupeStrategy,
    DelayRange,
    DetailPack,
    EmailStrictness,
    EnrichmentConfig,
    EnrichmentFields,
    EnrichmentStrictness,
    ExportFormat,
    ExportView,
    ExtractionConfig,
    GeoConfig,
    GeoJSON,
    GeoMode,
    GridDensity,
    ImageMode,
    ImagesConfig,
    LogsLevel,
    MultiLocation,
    OutputConfig,
    QualityFiltersConfig,
    ReviewsConfig,
    ReviewStrategy,
    RunConfig,
    RunMode,
    ScheduleConfig,
    ScheduleType,
    SearchConfig,
    SocialsEnabled,
    SortMode,
    ValidationResult,
    WebhookConfig,
    resolve_geo_target,
)

SEARCH_TERM_REQUIRED = "At least one search term is required unless using placeUrls or placeIds mode"

_MODES_WITHOUT_SEARCH_TERMS = (GeoMode.PLACE_URLS, GeoMode.PLACE_IDS)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers beyond float range.
        return False


def _round_half_up(value: float) -> int:
    if isinstance(value, int):
        return value
    return int(math.floor(value + 0.5))


def _as_mapping(value: Any) -> Optional[Mapping]:
    return value if isinstance(value, Mapping) else None


def _string(data: Mapping, key: str, default: Optional[str]) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else default


def _boolean(data: Mapping, key: str, default: bool) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else default


def _number(
    data: Mapping,
    key: str,
    default: Any,
    *,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    exclusive_minimum: Optional[float] = None,
    integer: bool = False,
) -> Any:
    value = data.get(key)
    if not _is_number(value):
        return default
    if integer:
        value = _round_half_up(value)
    if minimum is not None and value < minimum:
        return default
    if exclusive_minimum is not None and value <= exclusive_minimum:
        return default
    if maximum is not None and value > maximum:
        return default
    return value


def _choice(data: Mapping, key: str, enum_cls: Type[Enum], default: Enum) -> Enum:
    value = data.get(key)
    if isinstance(value, str):
        for member in enum_cls:
            if member.value == value:
                return member
    return default


def _string_list(data: Mapping, key: str, default: Optional[Tuple[str, ...]]) -> Optional[Tuple[str, ...]]:
    value = data.get(key)
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return tuple(value)
    return default


def _coerce_geojson(value: Any) -> Optional[GeoJSON]:
    data = _as_mapping(value)
    if data is None:
        return None
    if data.get("type") not in ("Polygon", "MultiPolygon"):
        return None
    coordinates = data.get("coordinates")
    if not isinstance(coordinates, (list, tuple)):
        return None
    return GeoJSON(type=data["type"], coordinates=list(coordinates))


def _coerce_locations(value: Any) -> Optional[Tuple[MultiLocation, ...]]:
    if not isinstance(value, (list, tuple)):
        return None
    locations: List[MultiLocation] = []
    for item in value:
        data = _as_mapping(item)
        if data is None:
            continue
        locations.append(
            MultiLocation(
                city=_string(data, "city", None),
                lat=_number(data, "lat", None),
                lng=_number(data, "lng", None),
                radius_km=_number(data, "radiusKm", None, exclusive_minimum=0),
                maps_url=_string(data, "mapsUrl", None),
            )
        )
    return tuple(locations)


def _coerce_geo(value: Any) -> GeoConfig:
    defaults = GeoConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    return GeoConfig(
        geo_mode=_choice(data, "geoMode", GeoMode, defaults.geo_mode),
        city=_string(data, "city", defaults.city),
        lat=_number(data, "lat", defaults.lat),
        lng=_number(data, "lng", defaults.lng),
        radius_km=_number(data, "radiusKm", defaults.radius_km),
        geojson=_coerce_geojson(data.get("geojson")),
        maps_url=_string(data, "mapsUrl", defaults.maps_url),
        place_urls=_string_list(data, "placeUrls", defaults.place_urls),
        place_ids=_string_list(data, "placeIds", defaults.place_ids),
        locations=_coerce_locations(data.get("locations")),
        grid_density=_choice(data, "gridDensity", GridDensity, defaults.grid_density),
    )


def _coerce_search(value: Any) -> SearchConfig:
    defaults = SearchConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    return SearchConfig(
        search_terms=_string_list(data, "searchTerms", defaults.search_terms),
        categories=_string_list(data, "categories", defaults.categories),
        exclude_keywords=_string_list(data, "excludeKeywords", defaults.exclude_keywords),
        language=_string(data, "language", defaults.language),
        sort_mode=_choice(data, "sortMode", SortMode, defaults.sort_mode),
        max_places=_number(data, "maxPlaces", defaults.max_places, minimum=1, maximum=10000, integer=True),
    )


_EXTRACTION_FLAGS = {
    "include_coordinates": "includeCoordinates",
    "include_opening_hours": "includeOpeningHours",
    "include_price_bracket": "includePriceBracket",
    "include_menu_url": "includeMenuUrl",
    "include_reservation_links": "includeReservationLinks",
    "include_order_links": "includeOrderLinks",
    "include_amenities": "includeAmenities",
    "include_popular_times": "includePopularTimes",
    "include_q_and_a": "includeQandA",
    "include_owner_updates": "includeOwnerUpdates",
    "include_people_also_search": "includePeopleAlsoSearch",
    "include_closed_status": "includeClosedStatus",
}


def _coerce_extraction(value: Any) -> ExtractionConfig:
    defaults = ExtractionConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    flags = {name: _boolean(data, key, getattr(defaults, name)) for name, key in _EXTRACTION_FLAGS.items()}
    return ExtractionConfig(
        detail_pack=_choice(data, "detailPack", DetailPack, defaults.detail_pack),
        **flags,
    )


def _coerce_reviews(value: Any) -> ReviewsConfig:
    defaults = ReviewsConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    include_reviews = data.get("includeReviews")
    if not (_is_number(include_reviews) and include_reviews in REVIEW_COUNTS):
        include_reviews = defaults.include_reviews

    return ReviewsConfig(
        include_reviews=int(include_reviews),
        review_strategy=_choice(data, "reviewStrategy", ReviewStrategy, defaults.review_strategy),
        include_owner_responses=_boolean(data, "includeOwnerResponses", defaults.include_owner_responses),
        include_review_images=_boolean(data, "includeReviewImages", defaults.include_review_images),
        include_review_detailed_ratings=_boolean(
            data, "includeReviewDetailedRatings", defaults.include_review_detailed_ratings
        ),
        include_review_tags=_boolean(data, "includeReviewTags", defaults.include_review_tags),
        include_reviewer_details=_boolean(data, "includeReviewerDetails", defaults.include_reviewer_details),
    )


def _coerce_images(value: Any) -> ImagesConfig:
    defaults = ImagesConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    return ImagesConfig(
        include_images=_choice(data, "includeImages", ImageMode, defaults.include_images),
        max_images_per_place=_number(
            data, "maxImagesPerPlace", defaults.max_images_per_place, minimum=0, maximum=100, integer=True
        ),
    )


def _coerce_flags(value: Any, defaults):
    """Coerce a record of plain boolean flags keyed by their wire names."""
    data = _as_mapping(value)
    if data is None:
        return defaults
    flags = {}
    for name, info in type(defaults).model_fields.items():
        flags[name] = _boolean(data, info.alias or name, getattr(defaults, name))
    return type(defaults)(**flags)


def _coerce_contacts(value: Any) -> ContactsConfig:
    defaults = ContactsConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    return ContactsConfig(
        discover_contacts_from_website=_boolean(
            data, "discoverContactsFromWebsite", defaults.discover_contacts_from_website
        ),
        scan_pages=_string_list(data, "scanPages", defaults.scan_pages),
        extract_company_emails=_boolean(data, "extractCompanyEmails", defaults.extract_company_emails),
        extract_phones_from_website=_boolean(
            data, "extractPhonesFromWebsite", defaults.extract_phones_from_website
        ),
        extract_social_profiles=_boolean(data, "extractSocialProfiles", defaults.extract_social_profiles),
        socials_enabled=_coerce_flags(data.get("socialsEnabled"), SocialsEnabled()),
        email_strictness=_choice(data, "emailStrictness", EmailStrictness, defaults.email_strictness),
        generic_email_blocklist=_string_list(data, "genericEmailBlocklist", defaults.generic_email_blocklist),
    )


def _coerce_enrichment(value: Any) -> EnrichmentConfig:
    defaults = EnrichmentConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    return EnrichmentConfig(
        enable_decision_maker_enrichment=_boolean(
            data, "enableDecisionMakerEnrichment", defaults.enable_decision_maker_enrichment
        ),
        enrichment_targets=_string_list(data, "enrichmentTargets", defaults.enrichment_targets),
        enrichment_fields=_coerce_flags(data.get("enrichmentFields"), EnrichmentFields()),
        enrichment_strictness=_choice(
            data, "enrichmentStrictness", EnrichmentStrictness, defaults.enrichment_strictness
        ),
    )


def _coerce_quality_filters(value: Any) -> QualityFiltersConfig:
    defaults = QualityFiltersConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    return QualityFiltersConfig(
        min_rating=_number(data, "minRating", defaults.min_rating, minimum=0, maximum=5),
        min_reviews=_number(data, "minReviews", defaults.min_reviews, minimum=0, integer=True),
        must_have_website=_boolean(data, "mustHaveWebsite", defaults.must_have_website),
        must_have_phone=_boolean(data, "mustHavePhone", defaults.must_have_phone),
        exclude_temporarily_closed=_boolean(
            data, "excludeTemporarilyClosed", defaults.exclude_temporarily_closed
        ),
        exclude_permanently_closed=_boolean(
            data, "excludePermanentlyClosed", defaults.exclude_permanently_closed
        ),
        exclude_chains=_boolean(data, "excludeChains", defaults.exclude_chains),
    )


def _coerce_output(value: Any) -> OutputConfig:
    defaults = OutputConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    return OutputConfig(
        export_format=_choice(data, "exportFormat", ExportFormat, defaults.export_format),
        export_view=_choice(data, "exportView", ExportView, defaults.export_view),
        field_picker=_string_list(data, "fieldPicker", defaults.field_picker),
        dedupe_strategy=_choice(data, "dedupeStrategy", DedupeStrategy, defaults.dedupe_strategy),
    )


def _coerce_schedule(value: Any) -> Optional[ScheduleConfig]:
    data = _as_mapping(value)
    if data is None:
        return None

    defaults = ScheduleConfig()
    return ScheduleConfig(
        type=_choice(data, "type", ScheduleType, defaults.type),
        timezone=_string(data, "timezone", defaults.timezone),
        hour=_number(data, "hour", None, minimum=0, maximum=23, integer=True),
        minute=_number(data, "minute", None, minimum=0, maximum=59, integer=True),
        day_of_week=_number(data, "dayOfWeek", None, minimum=0, maximum=6, integer=True),
        day_of_month=_number(data, "dayOfMonth", None, minimum=1, maximum=31, integer=True),
    )


def _coerce_webhooks(value: Any, default: Tuple[WebhookConfig, ...]) -> Tuple[WebhookConfig, ...]:
    if not isinstance(value, (list, tuple)):
        return default
    webhooks: List[WebhookConfig] = []
    for item in value:
        data = _as_mapping(item)
        if data is None or not isinstance(data.get("url"), str):
            continue
        webhooks.append(
            WebhookConfig(
                url=data["url"],
                events=_string_list(data, "events", ()),
                secret=_string(data, "secret", None),
            )
        )
    return tuple(webhooks)


def _coerce_delay_range(value: Any, defaults: DelayRange) -> DelayRange:
    data = _as_mapping(value)
    if data is None:
        return defaults
    minimum = _number(data, "min", defaults.minimum)
    maximum = _number(data, "max", defaults.maximum)
    minimum = max(0, _round_half_up(minimum))
    maximum = max(minimum, _round_half_up(maximum))
    return DelayRange(minimum=minimum, maximum=maximum)


def _coerce_automation(value: Any) -> AutomationConfig:
    defaults = AutomationConfig()
    data = _as_mapping(value)
    if data is None:
        return defaults

    return AutomationConfig(
        run_mode=_choice(data, "runMode", RunMode, defaults.run_mode),
        schedule=_coerce_schedule(data.get("schedule")),
        webhooks=_coerce_webhooks(data.get("webhooks"), defaults.webhooks),
        max_concurrency=_number(
            data, "maxConcurrency", defaults.max_concurrency, minimum=1, maximum=20, integer=True
        ),
        delay_range_ms=_coerce_delay_range(data.get("delayRangeMs"), defaults.delay_range_ms),
        retries=_number(data, "retries", defaults.retries, minimum=0, maximum=10, integer=True),
        timeout_ms=_number(data, "timeoutMs", defaults.timeout_ms, minimum=10000, maximum=600000, integer=True),
        logs_level=_choice(data, "logsLevel", LogsLevel, defaults.logs_level),
        save_screenshots=_boolean(data, "saveScreenshots", defaults.save_screenshots),
        change_detection=_coerce_flags(data.get("changeDetection"), ChangeDetectionConfig()),
    )


def _coerce_compliance(value: Any) -> ComplianceConfig:
    return _coerce_flags(value, ComplianceConfig())


def _cross_field_errors(config: RunConfig) -> List[str]:
    errors: List[str] = []

    has_term = any(term.strip() for term in config.search.search_terms)
    if not has_term and config.geo.geo_mode not in _MODES_WITHOUT_SEARCH_TERMS:
        errors.append(SEARCH_TERM_REQUIRED)

    _, geo_errors = resolve_geo_target(config.geo)
    errors.extend(geo_errors)
    return errors


def validate_run_config(raw: Any) -> ValidationResult:
    """Coerce untrusted input into a RunConfig; never raises."""

    logger = get_logger()

    if isinstance(raw, RunConfig):
        raw = raw.to_wire()
    if not isinstance(raw, Mapping):
        return ValidationResult(success=False, config=None, errors=("Input must be an object",))

    try:
        config = RunConfig(
            geo=_coerce_geo(raw.get("geo")),
            search=_coerce_search(raw.get("search")),
            extraction=_coerce_extraction(raw.get("extraction")),
            reviews=_coerce_reviews(raw.get("reviews")),
            images=_coerce_images(raw.get("images")),
            contacts=_coerce_contacts(raw.get("contacts")),
            enrichment=_coerce_enrichment(raw.get("enrichment")),
            quality_filters=_coerce_quality_filters(raw.get("qualityFilters")),
            output=_coerce_output(raw.get("output")),
            automation=_coerce_automation(raw.get("automation")),
            compliance=_coerce_compliance(raw.get("compliance")),
        )
    except ValidationError as exc:
        logger.error("Run configuration could not be coerced: %s", exc)
        return ValidationResult(
            success=False,
            config=None,
            errors=tuple(f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()),
        )

    errors = _cross_field_errors(config)
    if errors:
        logger.debug("Run configuration rejected: %s", "; ".join(errors))
        return ValidationResult(success=False, config=None, errors=tuple(errors))

    return ValidationResult(success=True, config=config)

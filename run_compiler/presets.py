"""Named starting configurations and the field-wise merge that applies them."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .errors import ConfigError
from .logging_utils import get_logger
from .models import Preset, RunConfig

logger = get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

_GENERIC_BLOCKLIST = ["info@", "contact@", "hello@", "support@", "sales@", "admin@", "noreply@", "no-reply@"]

_NO_SOCIALS = {
    "facebook": False,
    "instagram": False,
    "youtube": False,
    "tiktok": False,
    "twitter": False,
    "linkedin": False,
    "pinterest": False,
}

_NO_ENRICHMENT_FIELDS = {
    "fullName": False,
    "jobTitle": False,
    "linkedin": False,
    "workEmail": False,
    "mobile": False,
    "companySize": False,
}


PRESETS: Tuple[Preset, ...] = (
    Preset(
        id="high-reply-lead-gen",
        name="High-Reply Lead Gen (Notiq Mode)",
        description="Quality leads with personal emails, reviews for context, and contact discovery",
        icon="Target",
        config={
            "search": {
                "categories": [],
                "excludeKeywords": [],
                "language": None,
                "sortMode": "highestRating",
                "maxPlaces": 100,
            },
            "extraction": {
                "detailPack": "standard",
                "includeCoordinates": True,
                "includeOpeningHours": True,
                "includePriceBracket": False,
                "includeMenuUrl": False,
                "includeReservationLinks": False,
                "includeOrderLinks": False,
                "includeAmenities": False,
                "includePopularTimes": False,
                "includeQandA": False,
                "includeOwnerUpdates": False,
                "includePeopleAlsoSearch": False,
                "includeClosedStatus": True,
            },
            "reviews": {
                "includeReviews": 10,
                "reviewStrategy": "recentHelpfulMix",
                "includeOwnerResponses": True,
                "includeReviewImages": False,
                "includeReviewDetailedRatings": False,
                "includeReviewTags": True,
                "includeReviewerDetails": False,
            },
            "images": {"includeImages": "off", "maxImagesPerPlace": 0},
            "contacts": {
                "discoverContactsFromWebsite": True,
                "scanPages": ["contact", "about", "team", "leadership"],
                "extractCompanyEmails": True,
                "extractPhonesFromWebsite": True,
                "extractSocialProfiles": True,
                "socialsEnabled": {
                    "facebook": True,
                    "instagram": True,
                    "youtube": False,
                    "tiktok": False,
                    "twitter": True,
                    "linkedin": True,
                    "pinterest": False,
                },
                "emailStrictness": "personalOnly",
                "genericEmailBlocklist": _GENERIC_BLOCKLIST,
            },
            "enrichment": {
                "enableDecisionMakerEnrichment": False,
                "enrichmentTargets": ["Owner", "Founder", "Manager"],
                "enrichmentFields": {
                    "fullName": True,
                    "jobTitle": True,
                    "linkedin": True,
                    "workEmail": True,
                    "mobile": False,
                    "companySize": False,
                },
                "enrichmentStrictness": "confidentOnly",
            },
            "qualityFilters": {
                "minRating": 3.5,
                "minReviews": 5,
                "mustHaveWebsite": True,
                "mustHavePhone": False,
                "excludeTemporarilyClosed": True,
                "excludePermanentlyClosed": True,
                "excludeChains": False,
            },
            "output": {
                "exportFormat": "json",
                "exportView": "leads",
                "fieldPicker": None,
                "dedupeStrategy": "domain",
            },
            "automation": {
                "runMode": "manual",
                "schedule": None,
                "webhooks": [],
                "maxConcurrency": 5,
                "delayRangeMs": {"min": 1500, "max": 3500},
                "retries": 2,
                "timeoutMs": 120000,
                "logsLevel": "basic",
                "saveScreenshots": False,
                "changeDetection": {"enabled": False, "alerts": False},
            },
        },
    ),
    Preset(
        id="max-coverage",
        name="Max Coverage (Thousands of Places)",
        description="High volume scraping with minimal details for maximum coverage",
        icon="Globe",
        config={
            "search": {
                "categories": [],
                "excludeKeywords": [],
                "language": None,
                "sortMode": "googleDefault",
                "maxPlaces": 5000,
            },
            "geo": {
                "geoMode": "city",
                "city": None,
                "lat": None,
                "lng": None,
                "radiusKm": None,
                "geojson": None,
                "mapsUrl": None,
                "placeUrls": None,
                "placeIds": None,
                "locations": None,
                "gridDensity": "high",
            },
            "extraction": {
                "detailPack": "simple",
                "includeCoordinates": True,
                "includeOpeningHours": False,
                "includePriceBracket": False,
                "includeMenuUrl": False,
                "includeReservationLinks": False,
                "includeOrderLinks": False,
                "includeAmenities": False,
                "includePopularTimes": False,
                "includeQandA": False,
                "includeOwnerUpdates": False,
                "includePeopleAlsoSearch": False,
                "includeClosedStatus": True,
            },
            "reviews": {
                "includeReviews": 0,
                "reviewStrategy": "recent",
                "includeOwnerResponses": False,
                "includeReviewImages": False,
                "includeReviewDetailedRatings": False,
                "includeReviewTags": False,
                "includeReviewerDetails": False,
            },
            "images": {"includeImages": "off", "maxImagesPerPlace": 0},
            "contacts": {
                "discoverContactsFromWebsite": False,
                "scanPages": [],
                "extractCompanyEmails": False,
                "extractPhonesFromWebsite": False,
                "extractSocialProfiles": False,
                "socialsEnabled": _NO_SOCIALS,
                "emailStrictness": "allEmails",
                "genericEmailBlocklist": [],
            },
            "enrichment": {
                "enableDecisionMakerEnrichment": False,
                "enrichmentTargets": [],
                "enrichmentFields": _NO_ENRICHMENT_FIELDS,
                "enrichmentStrictness": "confidentOnly",
            },
            "qualityFilters": {
                "minRating": None,
                "minReviews": None,
                "mustHaveWebsite": False,
                "mustHavePhone": False,
                "excludeTemporarilyClosed": False,
                "excludePermanentlyClosed": True,
                "excludeChains": False,
            },
            "output": {
                "exportFormat": "json",
                "exportView": "places",
                "fieldPicker": None,
                "dedupeStrategy": "placeId",
            },
            "automation": {
                "runMode": "manual",
                "schedule": None,
                "webhooks": [],
                "maxConcurrency": 10,
                "delayRangeMs": {"min": 800, "max": 2000},
                "retries": 3,
                "timeoutMs": 300000,
                "logsLevel": "basic",
                "saveScreenshots": False,
                "changeDetection": {"enabled": False, "alerts": False},
            },
        },
    ),
    Preset(
        id="competitor-intelligence",
        name="Competitor Intelligence",
        description="Deep review analytics, popular times, and change detection for competitor monitoring",
        icon="Eye",
        config={
            "search": {
                "categories": [],
                "excludeKeywords": [],
                "language": None,
                "sortMode": "mostReviewsThenHighestRating",
                "maxPlaces": 50,
            },
            "extraction": {
                "detailPack": "deep",
                "includeCoordinates": True,
                "includeOpeningHours": True,
                "includePriceBracket": True,
                "includeMenuUrl": True,
                "includeReservationLinks": True,
                "includeOrderLinks": True,
                "includeAmenities": True,
                "includePopularTimes": True,
                "includeQandA": True,
                "includeOwnerUpdates": True,
                "includePeopleAlsoSearch": True,
                "includeClosedStatus": True,
            },
            "reviews": {
                "includeReviews": 200,
                "reviewStrategy": "balanced",
                "includeOwnerResponses": True,
                "includeReviewImages": True,
                "includeReviewDetailedRatings": True,
                "includeReviewTags": True,
                "includeReviewerDetails": False,
            },
            "images": {"includeImages": "fullMetadata", "maxImagesPerPlace": 20},
            "contacts": {
                "discoverContactsFromWebsite": True,
                "scanPages": ["contact", "about", "team", "leadership", "pricing"],
                "extractCompanyEmails": True,
                "extractPhonesFromWebsite": True,
                "extractSocialProfiles": True,
                "socialsEnabled": {
                    "facebook": True,
                    "instagram": True,
                    "youtube": True,
                    "tiktok": True,
                    "twitter": True,
                    "linkedin": True,
                    "pinterest": False,
                },
                "emailStrictness": "allEmails",
                "genericEmailBlocklist": [],
            },
            "enrichment": {
                "enableDecisionMakerEnrichment": False,
                "enrichmentTargets": ["Owner", "Founder", "CEO", "Manager"],
                "enrichmentFields": {
                    "fullName": True,
                    "jobTitle": True,
                    "linkedin": True,
                    "workEmail": True,
                    "mobile": False,
                    "companySize": True,
                },
                "enrichmentStrictness": "bestGuess",
            },
            "qualityFilters": {
                "minRating": None,
                "minReviews": 10,
                "mustHaveWebsite": False,
                "mustHavePhone": False,
                "excludeTemporarilyClosed": False,
                "excludePermanentlyClosed": False,
                "excludeChains": False,
            },
            "output": {
                "exportFormat": "json",
                "exportView": "competitor",
                "fieldPicker": None,
                "dedupeStrategy": "placeId",
            },
            "automation": {
                "runMode": "manual",
                "schedule": None,
                "webhooks": [],
                "maxConcurrency": 3,
                "delayRangeMs": {"min": 2000, "max": 4000},
                "retries": 2,
                "timeoutMs": 180000,
                "logsLevel": "verbose",
                "saveScreenshots": False,
                "changeDetection": {"enabled": True, "alerts": True},
            },
        },
    ),
    Preset(
        id="market-gap-finder",
        name="Market Gap Finder",
        description="Analyze amenities, pricing, and Q&A to identify market opportunities",
        icon="TrendingUp",
        config={
            "search": {
                "categories": [],
                "excludeKeywords": [],
                "language": None,
                "sortMode": "googleDefault",
                "maxPlaces": 200,
            },
            "extraction": {
                "detailPack": "deep",
                "includeCoordinates": True,
                "includeOpeningHours": True,
                "includePriceBracket": True,
                "includeMenuUrl": True,
                "includeReservationLinks": True,
                "includeOrderLinks": True,
                "includeAmenities": True,
                "includePopularTimes": True,
                "includeQandA": True,
                "includeOwnerUpdates": False,
                "includePeopleAlsoSearch": True,
                "includeClosedStatus": True,
            },
            "reviews": {
                "includeReviews": 50,
                "reviewStrategy": "balanced",
                "includeOwnerResponses": True,
                "includeReviewImages": False,
                "includeReviewDetailedRatings": True,
                "includeReviewTags": True,
                "includeReviewerDetails": False,
            },
            "images": {"includeImages": "urlsOnly", "maxImagesPerPlace": 5},
            "contacts": {
                "discoverContactsFromWebsite": False,
                "scanPages": [],
                "extractCompanyEmails": False,
                "extractPhonesFromWebsite": False,
                "extractSocialProfiles": False,
                "socialsEnabled": _NO_SOCIALS,
                "emailStrictness": "allEmails",
                "genericEmailBlocklist": [],
            },
            "enrichment": {
                "enableDecisionMakerEnrichment": False,
                "enrichmentTargets": [],
                "enrichmentFields": _NO_ENRICHMENT_FIELDS,
                "enrichmentStrictness": "confidentOnly",
            },
            "qualityFilters": {
                "minRating": None,
                "minReviews": None,
                "mustHaveWebsite": False,
                "mustHavePhone": False,
                "excludeTemporarilyClosed": False,
                "excludePermanentlyClosed": True,
                "excludeChains": False,
            },
            "output": {
                "exportFormat": "json",
                "exportView": "marketAnalysis",
                "fieldPicker": None,
                "dedupeStrategy": "placeId",
            },
            "automation": {
                "runMode": "manual",
                "schedule": None,
                "webhooks": [],
                "maxConcurrency": 5,
                "delayRangeMs": {"min": 1500, "max": 3000},
                "retries": 2,
                "timeoutMs": 180000,
                "logsLevel": "basic",
                "saveScreenshots": False,
                "changeDetection": {"enabled": False, "alerts": False},
            },
        },
    ),
    Preset(
        id="partnership-finder",
        name="Partnership Finder",
        description="Find high-quality partners with full social profiles, images, and deep business details",
        icon="Handshake",
        config={
            "search": {
                "categories": [],
                "excludeKeywords": [],
                "language": None,
                "sortMode": "highestRating",
                "maxPlaces": 100,
            },
            "extraction": {
                "detailPack": "deep",
                "includeCoordinates": True,
                "includeOpeningHours": True,
                "includePriceBracket": True,
                "includeMenuUrl": True,
                "includeReservationLinks": True,
                "includeOrderLinks": True,
                "includeAmenities": True,
                "includePopularTimes": True,
                "includeQandA": False,
                "includeOwnerUpdates": True,
                "includePeopleAlsoSearch": True,
                "includeClosedStatus": True,
            },
            "reviews": {
                "includeReviews": 100,
                "reviewStrategy": "helpful",
                "includeOwnerResponses": True,
                "includeReviewImages": True,
                "includeReviewDetailedRatings": True,
                "includeReviewTags": True,
                "includeReviewerDetails": False,
            },
            "images": {"includeImages": "fullMetadata", "maxImagesPerPlace": 30},
            "contacts": {
                "discoverContactsFromWebsite": True,
                "scanPages": ["contact", "about", "team", "leadership", "partners", "partnerships"],
                "extractCompanyEmails": True,
                "extractPhonesFromWebsite": True,
                "extractSocialProfiles": True,
                "socialsEnabled": {
                    "facebook": True,
                    "instagram": True,
                    "youtube": True,
                    "tiktok": True,
                    "twitter": True,
                    "linkedin": True,
                    "pinterest": True,
                },
                "emailStrictness": "personalPlusNamedRole",
                "genericEmailBlocklist": _GENERIC_BLOCKLIST,
            },
            "enrichment": {
                "enableDecisionMakerEnrichment": False,
                "enrichmentTargets": ["Owner", "Founder", "CEO", "Partner", "Director"],
                "enrichmentFields": {
                    "fullName": True,
                    "jobTitle": True,
                    "linkedin": True,
                    "workEmail": True,
                    "mobile": False,
                    "companySize": True,
                },
                "enrichmentStrictness": "confidentOnly",
            },
            "qualityFilters": {
                "minRating": 4.0,
                "minReviews": 50,
                "mustHaveWebsite": True,
                "mustHavePhone": False,
                "excludeTemporarilyClosed": True,
                "excludePermanentlyClosed": True,
                "excludeChains": True,
            },
            "output": {
                "exportFormat": "json",
                "exportView": "partnershipShortlist",
                "fieldPicker": None,
                "dedupeStrategy": "domain",
            },
            "automation": {
                "runMode": "manual",
                "schedule": None,
                "webhooks": [],
                "maxConcurrency": 3,
                "delayRangeMs": {"min": 2000, "max": 4000},
                "retries": 2,
                "timeoutMs": 180000,
                "logsLevel": "basic",
                "saveScreenshots": False,
                "changeDetection": {"enabled": False, "alerts": False},
            },
        },
    ),
)

_PRESETS_BY_ID: Dict[str, Preset] = {preset.id: preset for preset in PRESETS}

Patch = Union[Mapping, BaseModel, None]


def list_presets() -> Tuple[Preset, ...]:
    return PRESETS


def get_preset(preset_id: str) -> Optional[Preset]:
    return _PRESETS_BY_ID.get(preset_id)


def _merge_model(model: ModelT, patch: Mapping) -> ModelT:
    cls = type(model)
    data: Dict[str, Any] = model.model_dump(by_alias=True, mode="json")
    keys: Dict[str, Tuple[str, str]] = {}
    for name, field in cls.model_fields.items():
        alias = field.alias or name
        keys[alias] = (name, alias)
        keys[name] = (name, alias)

    for key, value in patch.items():
        if key not in keys:
            logger.debug("Ignoring unknown %s key %r during merge", cls.__name__, key)
            continue
        name, alias = keys[key]
        current = getattr(model, name)
        if isinstance(current, BaseModel) and isinstance(value, Mapping):
            data[alias] = _merge_model(current, value).model_dump(by_alias=True, mode="json")
        else:
            data[alias] = value

    return cls.model_validate(data)


def merge_run_config(base: RunConfig, *patches: Patch) -> RunConfig:
    """Apply partial configurations to ``base`` field by field.

    A nested section merges recursively with a mapping patch; arrays,
    primitives and ``None`` replace the current value outright. Raises
    ``ConfigError`` when a patched value does not fit the model.
    """

    merged = base
    for patch in patches:
        if patch is None:
            continue
        if isinstance(patch, BaseModel):
            patch = patch.model_dump(by_alias=True, mode="json")
        if not isinstance(patch, Mapping):
            raise ConfigError(f"Configuration patch must be a mapping, got {type(patch).__name__}")
        try:
            merged = _merge_model(merged, patch)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration override: {exc}") from exc
    return merged


def apply_preset(preset_id: str, overrides: Patch = None) -> RunConfig:
    """Build a configuration from the defaults, a preset and caller overrides.

    An unknown preset id falls back to the defaults with only the overrides
    applied.
    """

    preset = get_preset(preset_id)
    base = RunConfig()
    if preset is None:
        logger.info("Unknown preset %r; using defaults", preset_id)
        return merge_run_config(base, overrides)
    return merge_run_config(base, preset.config, overrides)

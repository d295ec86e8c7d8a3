"""JSON Schema for the extraction agent's reply, derived from the config."""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List

from .features import (
    CONTACT_FEATURES,
    IMAGES_FEATURE,
    PLACE_FEATURES,
    REVIEW_FEATURES,
    Feature,
    contacts_enabled,
    enabled_enrichment_fields,
    enabled_social_platforms,
    reviews_enabled,
)
from .models import ImageMode, RunConfig

_NULLABLE_STRING = {"type": ["string", "null"]}
_STRING_ARRAY = {"type": "array", "items": {"type": "string"}}
_CONFIDENCE = {"type": "number", "minimum": 0, "maximum": 1}

PLACE_REQUIRED = ("name", "placeId", "address")
REVIEW_REQUIRED = ("placeId", "rating", "date", "reviewerName")
CONTACT_REQUIRED = ("placeId",)

PLACE_BASE_PROPERTIES: Dict[str, Any] = {
    "name": {"type": "string"},
    "category": {"type": "string"},
    "subCategory": _NULLABLE_STRING,
    "placeId": {"type": "string"},
    "cid": _NULLABLE_STRING,
    "fid": _NULLABLE_STRING,
    "address": {"type": "string"},
    "street": _NULLABLE_STRING,
    "city": _NULLABLE_STRING,
    "state": _NULLABLE_STRING,
    "postalCode": _NULLABLE_STRING,
    "country": _NULLABLE_STRING,
    "website": _NULLABLE_STRING,
    "phone": _NULLABLE_STRING,
    "rating": {"type": ["number", "null"]},
    "reviewsCount": {"type": ["integer", "null"]},
}

PLACE_OPTIONAL_PROPERTIES: Dict[str, Any] = {
    "latitude": {"type": ["number", "null"]},
    "longitude": {"type": ["number", "null"]},
    "plusCode": _NULLABLE_STRING,
    "openingHours": {
        "type": ["object", "null"],
        "properties": {
            day: _NULLABLE_STRING
            for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
        },
    },
    "priceBracket": {"type": ["string", "null"], "enum": ["$", "$$", "$$$", "$$$$", None]},
    "menuUrl": _NULLABLE_STRING,
    "reservationLinks": _STRING_ARRAY,
    "orderLinks": _STRING_ARRAY,
    "amenities": _STRING_ARRAY,
    "additionalInfo": {"type": ["object", "null"]},
    "popularTimes": {
        "type": ["object", "null"],
        "additionalProperties": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"hour": {"type": "integer"}, "busyness": {"type": "integer"}},
            },
        },
    },
    "questionsAndAnswers": {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "question": {"type": "string"},
                "answer": _NULLABLE_STRING,
                "askedBy": _NULLABLE_STRING,
                "answeredBy": _NULLABLE_STRING,
            },
        },
    },
    "ownerUpdates": {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "date": {"type": "string"},
                "content": {"type": "string"},
                "type": _NULLABLE_STRING,
            },
        },
    },
    "peopleAlsoSearch": _STRING_ARRAY,
    "isTemporarilyClosed": {"type": "boolean"},
    "isPermanentlyClosed": {"type": "boolean"},
}

PLACE_IMAGE_PROPERTIES: Dict[ImageMode, Any] = {
    ImageMode.URLS_ONLY: _STRING_ARRAY,
    ImageMode.FULL_METADATA: {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "url": {"type": "string"},
                "width": {"type": ["integer", "null"]},
                "height": {"type": ["integer", "null"]},
                "uploadDate": _NULLABLE_STRING,
                "contributor": _NULLABLE_STRING,
            },
        },
    },
}

REVIEW_BASE_PROPERTIES: Dict[str, Any] = {
    "placeId": {"type": "string"},
    "text": _NULLABLE_STRING,
    "rating": {"type": "integer", "minimum": 1, "maximum": 5},
    "date": {"type": "string"},
    "reviewerName": {"type": "string"},
}

REVIEW_OPTIONAL_PROPERTIES: Dict[str, Any] = {
    "ownerResponse": {
        "type": ["object", "null"],
        "properties": {"text": {"type": "string"}, "date": _NULLABLE_STRING},
    },
    "images": _STRING_ARRAY,
    "detailedRatings": {
        "type": ["object", "null"],
        "additionalProperties": {"type": "integer", "minimum": 1, "maximum": 5},
    },
    "tags": _STRING_ARRAY,
    "reviewerDetails": {
        "type": ["object", "null"],
        "properties": {
            "profileUrl": _NULLABLE_STRING,
            "totalReviews": {"type": ["integer", "null"]},
            "level": _NULLABLE_STRING,
        },
    },
}

CONTACT_OPTIONAL_PROPERTIES: Dict[str, Any] = {
    "emails": {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "email": {"type": "string"},
                "type": {"type": "string", "enum": ["personal", "role", "generic"]},
                "confidence": _CONFIDENCE,
                "source": _NULLABLE_STRING,
            },
        },
    },
    "phones": {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                "number": {"type": "string"},
                "type": _NULLABLE_STRING,
                "source": _NULLABLE_STRING,
            },
        },
    },
}

DIAGNOSTICS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "pagesVisited": {"type": "integer"},
        "totalResultsFound": {"type": "integer"},
        "totalPlacesReturned": {"type": "integer"},
        "durationMs": {"type": "integer"},
        "errors": _STRING_ARRAY,
        "warnings": _STRING_ARRAY,
    },
}


def _with_features(
    base: Dict[str, Any], optional: Dict[str, Any], features: Iterable[Feature], config: RunConfig
) -> Dict[str, Any]:
    properties = copy.deepcopy(base)
    for feature in features:
        if feature.enabled(config):
            for name in feature.properties:
                properties[name] = copy.deepcopy(optional[name])
    return properties


def _array_of(properties: Dict[str, Any], required: Iterable[str]) -> Dict[str, Any]:
    return {
        "type": "array",
        "items": {"type": "object", "properties": properties, "required": list(required)},
    }


def build_place_properties(config: RunConfig) -> Dict[str, Any]:
    properties = _with_features(PLACE_BASE_PROPERTIES, PLACE_OPTIONAL_PROPERTIES, PLACE_FEATURES, config)
    if IMAGES_FEATURE.enabled(config):
        properties["images"] = copy.deepcopy(PLACE_IMAGE_PROPERTIES[config.images.include_images])
    return properties


def build_review_properties(config: RunConfig) -> Dict[str, Any]:
    return _with_features(REVIEW_BASE_PROPERTIES, REVIEW_OPTIONAL_PROPERTIES, REVIEW_FEATURES, config)


def _social_profiles_schema(platforms: Iterable[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {name: copy.deepcopy(_NULLABLE_STRING) for name in platforms},
    }


def _decision_makers_schema(config: RunConfig) -> Dict[str, Any]:
    properties: Dict[str, Any] = {
        prop: copy.deepcopy(_NULLABLE_STRING) for _, _, prop in enabled_enrichment_fields(config)
    }
    properties["confidence"] = copy.deepcopy(_CONFIDENCE)
    return {"type": "array", "items": {"type": "object", "properties": properties}}


def build_contact_properties(config: RunConfig) -> Dict[str, Any]:
    """Contact record properties; ``socialProfiles`` and ``decisionMakers`` are config-shaped."""

    optional = dict(CONTACT_OPTIONAL_PROPERTIES)
    optional["socialProfiles"] = _social_profiles_schema(enabled_social_platforms(config))
    optional["decisionMakers"] = _decision_makers_schema(config)

    base = {"placeId": {"type": "string"}}
    return _with_features(base, optional, CONTACT_FEATURES, config)


def build_output_schema(config: RunConfig) -> Dict[str, Any]:
    """Build the JSON Schema the agent's reply must satisfy.

    ``places`` and ``diagnostics`` are always present; ``reviews`` and
    ``contacts`` appear, and are required, exactly when their collection is
    enabled. Every call returns a fresh structure.
    """

    required: List[str] = ["places", "diagnostics"]
    schema: Dict[str, Any] = {
        "type": "object",
        "properties": {
            "places": _array_of(build_place_properties(config), PLACE_REQUIRED),
            "diagnostics": copy.deepcopy(DIAGNOSTICS_SCHEMA),
        },
        "required": required,
    }

    if reviews_enabled(config):
        schema["properties"]["reviews"] = _array_of(build_review_properties(config), REVIEW_REQUIRED)
        required.append("reviews")

    if contacts_enabled(config):
        schema["properties"]["contacts"] = _array_of(build_contact_properties(config), CONTACT_REQUIRED)
        required.append("contacts")

    return schema

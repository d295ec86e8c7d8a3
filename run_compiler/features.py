"""Optional output features shared by the prompt and schema compilers.

Each feature pairs the predicate that enables it with the phrase the prompt
uses and the schema properties it adds, so both compilers read the same
expression from the same enforced configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple

from .models import ImageMode, RunConfig


@dataclass(frozen=True)
class Feature:
    """One optional field group of an output collection."""

    field: str
    label: str
    properties: Tuple[str, ...]
    enabled: Callable[[RunConfig], bool]


def reviews_enabled(config: RunConfig) -> bool:
    return config.reviews.include_reviews > 0


def contacts_enabled(config: RunConfig) -> bool:
    return config.contacts.discover_contacts_from_website


def images_enabled(config: RunConfig) -> bool:
    return config.images.include_images is not ImageMode.OFF


def emails_enabled(config: RunConfig) -> bool:
    return contacts_enabled(config) and config.contacts.extract_company_emails


def phones_enabled(config: RunConfig) -> bool:
    return contacts_enabled(config) and config.contacts.extract_phones_from_website


def enabled_social_platforms(config: RunConfig) -> Tuple[str, ...]:
    """Platforms to collect, empty unless social profile extraction is on."""

    if not (contacts_enabled(config) and config.contacts.extract_social_profiles):
        return ()
    socials = config.contacts.socials_enabled
    return tuple(name for name in SOCIAL_PLATFORMS if getattr(socials, name))


def social_profiles_enabled(config: RunConfig) -> bool:
    return bool(enabled_social_platforms(config))


def decision_makers_enabled(config: RunConfig) -> bool:
    # Decision makers are reported inside the contacts collection.
    return contacts_enabled(config) and config.enrichment.enable_decision_maker_enrichment


SOCIAL_PLATFORMS: Tuple[str, ...] = (
    "facebook",
    "instagram",
    "youtube",
    "tiktok",
    "twitter",
    "linkedin",
    "pinterest",
)


PLACE_FEATURES: Tuple[Feature, ...] = (
    Feature(
        "extraction.includeCoordinates",
        "coordinates (lat/lng), plusCode",
        ("latitude", "longitude", "plusCode"),
        lambda c: c.extraction.include_coordinates,
    ),
    Feature(
        "extraction.includeOpeningHours",
        "opening hours",
        ("openingHours",),
        lambda c: c.extraction.include_opening_hours,
    ),
    Feature(
        "extraction.includePriceBracket",
        "price bracket",
        ("priceBracket",),
        lambda c: c.extraction.include_price_bracket,
    ),
    Feature(
        "extraction.includeMenuUrl",
        "menu URL",
        ("menuUrl",),
        lambda c: c.extraction.include_menu_url,
    ),
    Feature(
        "extraction.includeReservationLinks",
        "reservation links",
        ("reservationLinks",),
        lambda c: c.extraction.include_reservation_links,
    ),
    Feature(
        "extraction.includeOrderLinks",
        "order links",
        ("orderLinks",),
        lambda c: c.extraction.include_order_links,
    ),
    Feature(
        "extraction.includeAmenities",
        "amenities/additionalInfo",
        ("amenities", "additionalInfo"),
        lambda c: c.extraction.include_amenities,
    ),
    Feature(
        "extraction.includePopularTimes",
        "popular times",
        ("popularTimes",),
        lambda c: c.extraction.include_popular_times,
    ),
    Feature(
        "extraction.includeQandA",
        "Q&A",
        ("questionsAndAnswers",),
        lambda c: c.extraction.include_q_and_a,
    ),
    Feature(
        "extraction.includeOwnerUpdates",
        "owner updates",
        ("ownerUpdates",),
        lambda c: c.extraction.include_owner_updates,
    ),
    Feature(
        "extraction.includePeopleAlsoSearch",
        "people also search",
        ("peopleAlsoSearch",),
        lambda c: c.extraction.include_people_also_search,
    ),
    Feature(
        "extraction.includeClosedStatus",
        "closed status (temporarily/permanently)",
        ("isTemporarilyClosed", "isPermanentlyClosed"),
        lambda c: c.extraction.include_closed_status,
    ),
)

IMAGES_FEATURE = Feature("images.includeImages", "images", ("images",), images_enabled)

REVIEW_FEATURES: Tuple[Feature, ...] = (
    Feature(
        "reviews.includeOwnerResponses",
        "owner response",
        ("ownerResponse",),
        lambda c: reviews_enabled(c) and c.reviews.include_owner_responses,
    ),
    Feature(
        "reviews.includeReviewImages",
        "review images",
        ("images",),
        lambda c: reviews_enabled(c) and c.reviews.include_review_images,
    ),
    Feature(
        "reviews.includeReviewDetailedRatings",
        "detailed ratings (service, food, atmosphere, etc.)",
        ("detailedRatings",),
        lambda c: reviews_enabled(c) and c.reviews.include_review_detailed_ratings,
    ),
    Feature(
        "reviews.includeReviewTags",
        "review tags/topics",
        ("tags",),
        lambda c: reviews_enabled(c) and c.reviews.include_review_tags,
    ),
    Feature(
        "reviews.includeReviewerDetails",
        "reviewer profile details",
        ("reviewerDetails",),
        lambda c: reviews_enabled(c) and c.reviews.include_reviewer_details,
    ),
)

CONTACT_FEATURES: Tuple[Feature, ...] = (
    Feature("contacts.extractCompanyEmails", "email addresses", ("emails",), emails_enabled),
    Feature("contacts.extractPhonesFromWebsite", "phone numbers", ("phones",), phones_enabled),
    Feature("contacts.extractSocialProfiles", "social profiles", ("socialProfiles",), social_profiles_enabled),
    Feature(
        "enrichment.enableDecisionMakerEnrichment",
        "DECISION-MAKER ENRICHMENT ENABLED",
        ("decisionMakers",),
        decision_makers_enabled,
    ),
)

# Enrichment sub-fields: (flag attribute, prompt phrase, decisionMakers property).
ENRICHMENT_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("full_name", "full name", "fullName"),
    ("job_title", "job title", "jobTitle"),
    ("linkedin", "LinkedIn profile", "linkedinUrl"),
    ("work_email", "work email", "workEmail"),
    ("mobile", "mobile phone", "mobile"),
    ("company_size", "company size", "companySize"),
)


def enabled_enrichment_fields(config: RunConfig) -> Tuple[Tuple[str, str, str], ...]:
    if not decision_makers_enabled(config):
        return ()
    fields = config.enrichment.enrichment_fields
    return tuple(entry for entry in ENRICHMENT_FIELDS if getattr(fields, entry[0]))

"""Typed run configuration shared across the compiler pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class GeoMode(str, Enum):
    """How target locations are specified."""

    CITY = "city"
    LATLNG_RADIUS = "latlng_radius"
    POLYGON = "polygon"
    MULTIPOLYGON = "multipolygon"
    MAPS_URL = "mapsUrl"
    PLACE_URLS = "placeUrls"
    PLACE_IDS = "placeIds"


class GridDensity(str, Enum):
    """Sampling density used to tile a search area."""

    LOW = "low"
    MED = "med"
    HIGH = "high"


class DetailPack(str, Enum):
    """Extraction thoroughness tier."""

    SIMPLE = "simple"
    STANDARD = "standard"
    DEEP = "deep"


class ReviewStrategy(str, Enum):
    """Which reviews to prefer when a place has more than requested."""

    RECENT = "recent"
    HELPFUL = "helpful"
    BALANCED = "balanced"
    RECENT_HELPFUL_MIX = "recentHelpfulMix"


class ImageMode(str, Enum):
    """How much image data to collect per place."""

    OFF = "off"
    URLS_ONLY = "urlsOnly"
    FULL_METADATA = "fullMetadata"


class EmailStrictness(str, Enum):
    """Which kinds of email address count as usable contacts."""

    PERSONAL_ONLY = "personalOnly"
    PERSONAL_PLUS_NAMED_ROLE = "personalPlusNamedRole"
    ALL_EMAILS = "allEmails"


class EnrichmentStrictness(str, Enum):
    """Confidence required before a decision maker is reported."""

    CONFIDENT_ONLY = "confidentOnly"
    BEST_GUESS = "bestGuess"


class ExportFormat(str, Enum):
    """File format the orchestrator writes results in."""

    JSON = "json"
    CSV = "csv"
    XLSX = "xlsx"


class ExportView(str, Enum):
    """Shape of the exported dataset; some views require extra collections."""

    PLACES = "places"
    REVIEWS = "reviews"
    LEADS = "leads"
    MAP = "map"
    COMPETITOR = "competitor"
    MARKET_ANALYSIS = "marketAnalysis"
    PARTNERSHIP_SHORTLIST = "partnershipShortlist"


class DedupeStrategy(str, Enum):
    """Key used to merge duplicate places across searches."""

    PLACE_ID = "placeId"
    DOMAIN = "domain"
    PHONE = "phone"
    SMART = "smart"


class SortMode(str, Enum):
    """Ordering applied to search results before truncation."""

    GOOGLE_DEFAULT = "googleDefault"
    HIGHEST_RATING = "highestRating"
    MOST_REVIEWS_THEN_HIGHEST_RATING = "mostReviewsThenHighestRating"


class RunMode(str, Enum):
    """Whether a run is triggered by hand or by a schedule."""

    MANUAL = "manual"
    SCHEDULED = "scheduled"


class LogsLevel(str, Enum):
    """Verbosity of the orchestrator run log."""

    BASIC = "basic"
    VERBOSE = "verbose"
    DEBUG = "debug"


class ScheduleType(str, Enum):
    """Recurrence of a scheduled run."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# Only these per-place review counts are offered to the extraction agent.
REVIEW_COUNTS: Tuple[int, ...] = (0, 2, 10, 50, 100, 200, 500, 1000)

MAX_PLACES_LIMIT = 10000


class WireModel(BaseModel):
    """Frozen model whose JSON form uses the camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> Dict[str, Any]:
        """Return the JSON-compatible camelCase representation."""

        return self.model_dump(by_alias=True, mode="json")


class GeoJSON(WireModel):
    """Boundary payload for polygon targeting."""

    type: Literal["Polygon", "MultiPolygon"]
    coordinates: List[Any]


class MultiLocation(WireModel):
    """Additional location searched alongside the primary one."""

    city: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[float] = None
    maps_url: Optional[str] = None


class GeoConfig(WireModel):
    """Where to search; which fields matter depends on ``geo_mode``."""

    geo_mode: GeoMode = Field(
        default=GeoMode.CITY, description="Selects which of the fields below define the target"
    )
    city: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[float] = Field(default=None, description="Search radius around lat/lng, must be positive")
    geojson: Optional[GeoJSON] = None
    maps_url: Optional[str] = None
    place_urls: Optional[Tuple[str, ...]] = None
    place_ids: Optional[Tuple[str, ...]] = None
    locations: Optional[Tuple[MultiLocation, ...]] = Field(
        default=None, description="Extra cities, circles or Maps URLs searched alongside the primary target"
    )
    grid_density: GridDensity = GridDensity.MED


class SearchConfig(WireModel):
    """What to search for and how many places to keep."""

    search_terms: Tuple[str, ...] = Field(default=(), description="Google Maps queries, run one after another")
    categories: Tuple[str, ...] = ()
    exclude_keywords: Tuple[str, ...] = Field(
        default=(), description="Places whose name or category contains one are dropped"
    )
    language: Optional[str] = None
    sort_mode: SortMode = SortMode.GOOGLE_DEFAULT
    max_places: int = Field(default=100, ge=1, le=MAX_PLACES_LIMIT, description="Upper bound on places returned")


class ExtractionConfig(WireModel):
    """Optional place attributes to extract."""

    detail_pack: DetailPack = DetailPack.STANDARD
    include_coordinates: bool = True
    include_opening_hours: bool = True
    include_price_bracket: bool = False
    include_menu_url: bool = False
    include_reservation_links: bool = False
    include_order_links: bool = False
    include_amenities: bool = False
    include_popular_times: bool = False
    include_q_and_a: bool = Field(default=False, alias="includeQandA")
    include_owner_updates: bool = False
    include_people_also_search: bool = False
    include_closed_status: bool = True


class ReviewsConfig(WireModel):
    """Per-place review collection; ``include_reviews`` of 0 disables it."""

    include_reviews: int = Field(default=0, description="Reviews per place; one of REVIEW_COUNTS")
    review_strategy: ReviewStrategy = ReviewStrategy.RECENT
    include_owner_responses: bool = False
    include_review_images: bool = False
    include_review_detailed_ratings: bool = False
    include_review_tags: bool = False
    include_reviewer_details: bool = Field(
        default=False, description="Reviewer profile data; requires a confirmed legal basis"
    )

    @field_validator("include_reviews")
    @classmethod
    def validate_review_count(cls, v: int) -> int:
        """Validate the count is one of the offered review tiers."""
        if v not in REVIEW_COUNTS:
            raise ValueError(f"includeReviews must be one of {REVIEW_COUNTS}, got: {v}")
        return v


class ImagesConfig(WireModel):
    """Per-place image collection."""

    include_images: ImageMode = ImageMode.OFF
    max_images_per_place: int = Field(default=5, ge=0, le=100, description="Cap on images collected per place")


class SocialsEnabled(WireModel):
    """Social platforms to look for when social profile extraction is on."""

    facebook: bool = True
    instagram: bool = True
    youtube: bool = False
    tiktok: bool = False
    twitter: bool = True
    linkedin: bool = True
    pinterest: bool = False


class ContactsConfig(WireModel):
    """Website contact discovery for each place that lists a site."""

    discover_contacts_from_website: bool = False
    scan_pages: Tuple[str, ...] = Field(
        default=("/", "/contact", "/about"), description="Site paths visited when looking for contacts"
    )
    extract_company_emails: bool = True
    extract_phones_from_website: bool = True
    extract_social_profiles: bool = True
    socials_enabled: SocialsEnabled = Field(default_factory=SocialsEnabled)
    email_strictness: EmailStrictness = EmailStrictness.PERSONAL_PLUS_NAMED_ROLE
    generic_email_blocklist: Tuple[str, ...] = Field(
        default=("info@", "support@", "contact@", "hello@", "admin@", "noreply@", "no-reply@"),
        description="Local-part prefixes treated as generic role mailboxes",
    )


class EnrichmentFields(WireModel):
    """Attributes to report for each decision maker."""

    full_name: bool = True
    job_title: bool = True
    linkedin: bool = True
    work_email: bool = False
    mobile: bool = False
    company_size: bool = False


class EnrichmentConfig(WireModel):
    """Decision-maker lookup layered on top of contact discovery."""

    enable_decision_maker_enrichment: bool = Field(
        default=False, description="Requires contact discovery and a confirmed legal basis"
    )
    enrichment_targets: Tuple[str, ...] = Field(
        default=("Owner", "CEO", "Founder", "Manager", "Director"),
        description="Roles to look for, in priority order",
    )
    enrichment_fields: EnrichmentFields = Field(default_factory=EnrichmentFields)
    enrichment_strictness: EnrichmentStrictness = EnrichmentStrictness.CONFIDENT_ONLY


class QualityFiltersConfig(WireModel):
    """Filters applied to places before they are returned."""

    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    min_reviews: Optional[int] = Field(default=None, ge=0)
    must_have_website: bool = False
    must_have_phone: bool = False
    exclude_temporarily_closed: bool = False
    exclude_permanently_closed: bool = True
    exclude_chains: bool = False


class OutputConfig(WireModel):
    """Export settings consumed by the orchestrator."""

    export_format: ExportFormat = ExportFormat.JSON
    export_view: ExportView = ExportView.PLACES
    field_picker: Optional[Tuple[str, ...]] = Field(
        default=None, description="Columns to keep on export; None keeps all"
    )
    dedupe_strategy: DedupeStrategy = DedupeStrategy.PLACE_ID


class ScheduleConfig(WireModel):
    """When a scheduled run fires; unused fields stay None."""

    type: ScheduleType = ScheduleType.ONCE
    timezone: str = "UTC"
    hour: Optional[int] = Field(default=None, ge=0, le=23)
    minute: Optional[int] = Field(default=None, ge=0, le=59)
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)


class WebhookConfig(WireModel):
    """Endpoint notified about run events."""

    url: str
    events: Tuple[str, ...] = Field(default=(), description="Event names to deliver; empty means all")
    secret: Optional[str] = Field(default=None, description="Shared secret used to sign deliveries")


class DelayRange(WireModel):
    """Randomized pause between page loads, in milliseconds."""

    minimum: int = Field(default=1000, ge=0, alias="min")
    maximum: int = Field(default=3000, ge=0, alias="max")


class ChangeDetectionConfig(WireModel):
    """Comparison against the previous run of the same configuration."""

    enabled: bool = False
    alerts: bool = False


class AutomationConfig(WireModel):
    """Run scheduling and limits; enforced by the orchestrator, not the compiler."""

    run_mode: RunMode = RunMode.MANUAL
    schedule: Optional[ScheduleConfig] = None
    webhooks: Tuple[WebhookConfig, ...] = ()
    max_concurrency: int = Field(default=5, ge=1, le=20)
    delay_range_ms: DelayRange = Field(default_factory=DelayRange)
    retries: int = Field(default=3, ge=0, le=10)
    timeout_ms: int = Field(default=300000, ge=10000, le=600000)
    logs_level: LogsLevel = LogsLevel.BASIC
    save_screenshots: bool = False
    change_detection: ChangeDetectionConfig = Field(default_factory=ChangeDetectionConfig)


class ComplianceConfig(WireModel):
    """User-asserted legal basis for personally-identifying extraction."""

    decision_maker_enrichment_legal_basis_confirmed: bool = False
    reviewer_details_legal_basis_confirmed: bool = False


class RunConfig(WireModel):
    """Full scraping/extraction job specification."""

    geo: GeoConfig = Field(default_factory=GeoConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    reviews: ReviewsConfig = Field(default_factory=ReviewsConfig)
    images: ImagesConfig = Field(default_factory=ImagesConfig)
    contacts: ContactsConfig = Field(default_factory=ContactsConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    quality_filters: QualityFiltersConfig = Field(default_factory=QualityFiltersConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    automation: AutomationConfig = Field(default_factory=AutomationConfig)
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)


class ComplianceWarning(WireModel):
    """A policy downgrade that was already applied to the configuration."""

    field: str
    message: str
    auto_fixed: bool = Field(default=True, description="The change is already reflected in the returned config")


class ValidationResult(WireModel):
    """Outcome of coercing untrusted input into a RunConfig."""

    success: bool
    config: Optional[RunConfig] = None
    errors: Tuple[str, ...] = ()
    warnings: Tuple[ComplianceWarning, ...] = ()


class ComplianceResult(WireModel):
    """Policy-safe configuration plus the downgrades applied to it."""

    config: RunConfig
    warnings: Tuple[ComplianceWarning, ...] = ()


class Preset(WireModel):
    """Named partial configuration used to bootstrap a run."""

    id: str
    name: str
    description: str
    icon: str
    config: Dict[str, Any] = Field(default_factory=dict)


# --- geo targets -----------------------------------------------------------
# One variant per geo mode, each carrying only the payload that mode needs.


class CityTarget(WireModel):
    geo_mode: Literal["city"]
    city: str = Field(min_length=1)
    locations: Tuple[MultiLocation, ...] = ()


class RadiusTarget(WireModel):
    geo_mode: Literal["latlng_radius"]
    lat: float
    lng: float
    radius_km: float = Field(gt=0)
    locations: Tuple[MultiLocation, ...] = ()


class PolygonTarget(WireModel):
    geo_mode: Literal["polygon", "multipolygon"]
    geojson: GeoJSON


class MapsUrlTarget(WireModel):
    geo_mode: Literal["mapsUrl"]
    maps_url: str = Field(min_length=1)
    locations: Tuple[MultiLocation, ...] = ()


class PlaceUrlsTarget(WireModel):
    geo_mode: Literal["placeUrls"]
    place_urls: Tuple[str, ...] = Field(min_length=1)


class PlaceIdsTarget(WireModel):
    geo_mode: Literal["placeIds"]
    place_ids: Tuple[str, ...] = Field(min_length=1)


GeoTarget = Annotated[
    Union[CityTarget, RadiusTarget, PolygonTarget, MapsUrlTarget, PlaceUrlsTarget, PlaceIdsTarget],
    Field(discriminator="geo_mode"),
]

GEO_TARGET_TYPES: Dict[GeoMode, type] = {
    GeoMode.CITY: CityTarget,
    GeoMode.LATLNG_RADIUS: RadiusTarget,
    GeoMode.POLYGON: PolygonTarget,
    GeoMode.MULTIPOLYGON: PolygonTarget,
    GeoMode.MAPS_URL: MapsUrlTarget,
    GeoMode.PLACE_URLS: PlaceUrlsTarget,
    GeoMode.PLACE_IDS: PlaceIdsTarget,
}

_GEO_TARGET_ADAPTER: TypeAdapter = TypeAdapter(GeoTarget)

_LATLNG_REQUIRED = 'Latitude and longitude are required when geoMode is "latlng_radius"'

_GEO_FIELD_ERRORS: Dict[Tuple[str, str], str] = {
    ("city", "city"): 'City name is required when geoMode is "city"',
    ("latlng_radius", "lat"): _LATLNG_REQUIRED,
    ("latlng_radius", "lng"): _LATLNG_REQUIRED,
    ("latlng_radius", "radiusKm"): 'Positive radius is required when geoMode is "latlng_radius"',
    ("polygon", "geojson"): 'GeoJSON is required when geoMode is "polygon"',
    ("multipolygon", "geojson"): 'GeoJSON is required when geoMode is "multipolygon"',
    ("mapsUrl", "mapsUrl"): 'Maps URL is required when geoMode is "mapsUrl"',
    ("placeUrls", "placeUrls"): 'At least one place URL is required when geoMode is "placeUrls"',
    ("placeIds", "placeIds"): 'At least one place ID is required when geoMode is "placeIds"',
}


def resolve_geo_target(geo: GeoConfig) -> Tuple[Optional[GeoTarget], List[str]]:
    """Narrow the flat geo section to its mode's variant.

    Returns the variant and an empty list, or ``None`` and one message per
    missing requirement; every message names the geo mode.
    """

    payload = geo.to_wire()
    payload["locations"] = payload.get("locations") or []
    mode = payload["geoMode"]

    try:
        return _GEO_TARGET_ADAPTER.validate_python(payload), []
    except ValidationError as exc:
        messages: List[str] = []
        for error in exc.errors():
            location = [part for part in error["loc"] if isinstance(part, str)]
            field = location[-1] if location else ""
            message = _GEO_FIELD_ERRORS.get(
                (mode, field), f'Invalid {field or "location"} for geoMode "{mode}"'
            )
            if message not in messages:
                messages.append(message)
        return None, messages

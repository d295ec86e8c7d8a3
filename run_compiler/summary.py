"""Human-readable summaries and rough cost estimates for a configuration."""

from __future__ import annotations

import math
from typing import Dict, List

from .models import GeoMode, ImageMode, RunConfig, WireModel

PLACE_COST = 0.01
REVIEW_COST = 0.001
CONTACT_COST = 0.02
ENRICHMENT_COST = 0.05
IMAGE_COST = 0.001


class CostEstimate(WireModel):
    credits: int
    breakdown: Dict[str, float]


def estimate_cost(config: RunConfig) -> CostEstimate:
    """Estimate backend credits; each enabled collection adds a per-place charge."""

    places = config.search.max_places
    breakdown: Dict[str, float] = {"places": places * PLACE_COST}

    if config.reviews.include_reviews > 0:
        breakdown["reviews"] = places * config.reviews.include_reviews * REVIEW_COST
    if config.contacts.discover_contacts_from_website:
        breakdown["contacts"] = places * CONTACT_COST
    if config.enrichment.enable_decision_maker_enrichment:
        breakdown["enrichment"] = places * ENRICHMENT_COST
    if config.images.include_images is not ImageMode.OFF:
        breakdown["images"] = places * config.images.max_images_per_place * IMAGE_COST

    # Exact totals such as 100 * 0.01 must not round up to the next credit.
    total = round(sum(breakdown.values()), 6)
    return CostEstimate(credits=math.ceil(total), breakdown=breakdown)


def geo_summary(config: RunConfig) -> str:
    geo = config.geo
    mode = geo.geo_mode

    if mode is GeoMode.CITY:
        return geo.city or "No city specified"
    if mode is GeoMode.LATLNG_RADIUS:
        if geo.lat is not None and geo.lng is not None and geo.radius_km is not None:
            radius = int(geo.radius_km) if float(geo.radius_km).is_integer() else geo.radius_km
            return f"{geo.lat:.4f}, {geo.lng:.4f} ({radius}km radius)"
        return "Coordinates not specified"
    if mode in (GeoMode.POLYGON, GeoMode.MULTIPOLYGON):
        return "Custom polygon area" if geo.geojson else "No polygon defined"
    if mode is GeoMode.MAPS_URL:
        return "Google Maps URL" if geo.maps_url else "No URL specified"
    if mode is GeoMode.PLACE_URLS:
        return f"{len(geo.place_urls)} place URL(s)" if geo.place_urls else "No place URLs"
    return f"{len(geo.place_ids)} place ID(s)" if geo.place_ids else "No place IDs"


def config_summary(config: RunConfig) -> List[str]:
    lines = [
        f"Search: {', '.join(config.search.search_terms) or 'No terms'}",
        f"Location: {geo_summary(config)}",
        f"Max places: {config.search.max_places}",
    ]

    reviews = config.reviews
    if reviews.include_reviews > 0:
        lines.append(f"Reviews: {reviews.include_reviews} per place ({reviews.review_strategy.value})")
    if config.contacts.discover_contacts_from_website:
        lines.append(f"Contact discovery: ON ({config.contacts.email_strictness.value})")
    if config.enrichment.enable_decision_maker_enrichment:
        lines.append("Decision-maker enrichment: ON")

    lines.append(f"Export: {config.output.export_view.value} ({config.output.export_format.value})")
    return lines


def format_duration(ms: int) -> str:
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    if ms < 3600000:
        return f"{ms // 60000}m {(ms % 60000) // 1000}s"
    return f"{ms // 3600000}h {(ms % 3600000) // 60000}m"

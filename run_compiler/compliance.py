"""Policy downgrades applied to a valid configuration before compilation."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from .logging_utils import get_logger
from .models import ComplianceResult, ComplianceWarning, ExportView, RunConfig

logger = get_logger()

DEFAULT_REVIEWS_FOR_REVIEW_VIEW = 10


def normalize_string_list(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Trim entries, drop empty ones and de-duplicate keeping first occurrence."""

    if not values:
        return ()
    seen: List[str] = []
    for value in values:
        cleaned = value.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return tuple(seen)


def _warn(warnings: List[ComplianceWarning], field: str, message: str) -> None:
    logger.warning("Compliance auto-fix on %s: %s", field, message)
    warnings.append(ComplianceWarning(field=field, message=message, auto_fixed=True))


def enforce_compliance(config: RunConfig) -> ComplianceResult:
    """Return a policy-safe copy of ``config`` plus a warning per downgrade.

    The input is never modified. Only the two export-view rules can turn a
    feature on; every other rule turns features off or normalizes lists.
    Enrichment without contact discovery is dropped after the export-view
    rules have settled discovery.
    """

    warnings: List[ComplianceWarning] = []
    reviews = config.reviews
    enrichment = config.enrichment
    contacts = config.contacts
    compliance = config.compliance

    if reviews.include_reviewer_details and not compliance.reviewer_details_legal_basis_confirmed:
        reviews = reviews.model_copy(update={"include_reviewer_details": False})
        _warn(
            warnings,
            "reviews.includeReviewerDetails",
            "Reviewer details disabled: legal basis not confirmed. "
            "Set compliance.reviewerDetailsLegalBasisConfirmed to true to enable.",
        )

    if (
        enrichment.enable_decision_maker_enrichment
        and not compliance.decision_maker_enrichment_legal_basis_confirmed
    ):
        enrichment = enrichment.model_copy(update={"enable_decision_maker_enrichment": False})
        _warn(
            warnings,
            "enrichment.enableDecisionMakerEnrichment",
            "Decision-maker enrichment disabled: legal basis not confirmed. "
            "Set compliance.decisionMakerEnrichmentLegalBasisConfirmed to true to enable.",
        )

    export_view = config.output.export_view

    if export_view is ExportView.REVIEWS and reviews.include_reviews == 0:
        reviews = reviews.model_copy(update={"include_reviews": DEFAULT_REVIEWS_FOR_REVIEW_VIEW})
        _warn(
            warnings,
            "reviews.includeReviews",
            f"Reviews export view selected but includeReviews was 0. "
            f"Auto-set to {DEFAULT_REVIEWS_FOR_REVIEW_VIEW}.",
        )

    if export_view is ExportView.LEADS and not contacts.discover_contacts_from_website:
        contacts = contacts.model_copy(update={"discover_contacts_from_website": True})
        _warn(
            warnings,
            "contacts.discoverContactsFromWebsite",
            "Leads export view selected but contact discovery was disabled. Auto-enabled.",
        )

    if enrichment.enable_decision_maker_enrichment and not contacts.discover_contacts_from_website:
        enrichment = enrichment.model_copy(update={"enable_decision_maker_enrichment": False})
        _warn(
            warnings,
            "enrichment.enableDecisionMakerEnrichment",
            "Decision-maker enrichment disabled: contact discovery is off. "
            "Set contacts.discoverContactsFromWebsite to true to enable.",
        )

    search = config.search.model_copy(
        update={
            "search_terms": normalize_string_list(config.search.search_terms),
            "categories": normalize_string_list(config.search.categories),
            "exclude_keywords": normalize_string_list(config.search.exclude_keywords),
        }
    )
    contacts = contacts.model_copy(update={"scan_pages": normalize_string_list(contacts.scan_pages)})
    enrichment = enrichment.model_copy(
        update={"enrichment_targets": normalize_string_list(enrichment.enrichment_targets)}
    )

    safe_config = config.model_copy(
        update={
            "search": search,
            "reviews": reviews,
            "contacts": contacts,
            "enrichment": enrichment,
        }
    )
    return ComplianceResult(config=safe_config, warnings=tuple(warnings))

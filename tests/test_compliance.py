import itertools
import logging
from typing import Any, Dict, Iterator, Tuple

import pytest

from run_compiler.compliance import enforce_compliance, normalize_string_list
from run_compiler.models import RunConfig
from run_compiler.presets import merge_run_config
from run_compiler.summary import config_summary, estimate_cost


def _config(valid_config: RunConfig, **sections: Dict[str, Any]) -> RunConfig:
    return merge_run_config(valid_config, sections)


def test_reviewer_details_disabled_without_legal_basis(valid_config: RunConfig) -> None:
    config = _config(
        valid_config,
        reviews={"includeReviews": 10, "includeReviewerDetails": True},
        compliance={"reviewerDetailsLegalBasisConfirmed": False},
    )

    result = enforce_compliance(config)

    assert result.config.reviews.include_reviewer_details is False
    assert [warning.field for warning in result.warnings] == ["reviews.includeReviewerDetails"]
    assert result.warnings[0].auto_fixed is True
    assert "compliance.reviewerDetailsLegalBasisConfirmed" in result.warnings[0].message


def test_reviewer_details_kept_with_legal_basis(valid_config: RunConfig) -> None:
    config = _config(
        valid_config,
        reviews={"includeReviews": 10, "includeReviewerDetails": True},
        compliance={"reviewerDetailsLegalBasisConfirmed": True},
    )

    result = enforce_compliance(config)

    assert result.config.reviews.include_reviewer_details is True
    assert result.warnings == ()


def test_decision_maker_enrichment_disabled_without_legal_basis(valid_config: RunConfig) -> None:
    config = _config(valid_config, enrichment={"enableDecisionMakerEnrichment": True})

    result = enforce_compliance(config)

    assert result.config.enrichment.enable_decision_maker_enrichment is False
    assert [warning.field for warning in result.warnings] == ["enrichment.enableDecisionMakerEnrichment"]


def test_enrichment_disabled_without_contact_discovery(valid_config: RunConfig) -> None:
    config = _config(
        valid_config,
        contacts={"discoverContactsFromWebsite": False},
        enrichment={"enableDecisionMakerEnrichment": True},
        compliance={"decisionMakerEnrichmentLegalBasisConfirmed": True},
    )

    result = enforce_compliance(config)

    assert result.config.enrichment.enable_decision_maker_enrichment is False
    assert [warning.field for warning in result.warnings] == ["enrichment.enableDecisionMakerEnrichment"]
    assert "contacts.discoverContactsFromWebsite" in result.warnings[0].message
    assert "Decision-maker enrichment: ON" not in config_summary(result.config)
    assert "enrichment" not in estimate_cost(result.config).breakdown


def test_leads_view_keeps_enrichment_by_enabling_discovery(valid_config: RunConfig) -> None:
    config = _config(
        valid_config,
        output={"exportView": "leads"},
        contacts={"discoverContactsFromWebsite": False},
        enrichment={"enableDecisionMakerEnrichment": True},
        compliance={"decisionMakerEnrichmentLegalBasisConfirmed": True},
    )

    result = enforce_compliance(config)

    assert result.config.enrichment.enable_decision_maker_enrichment is True
    assert [warning.field for warning in result.warnings] == ["contacts.discoverContactsFromWebsite"]


def test_reviews_view_turns_reviews_on(valid_config: RunConfig) -> None:
    config = _config(valid_config, output={"exportView": "reviews"})

    result = enforce_compliance(config)

    assert result.config.reviews.include_reviews == 10
    assert result.warnings[0].field == "reviews.includeReviews"
    assert result.warnings[0].message.endswith("Auto-set to 10.")


def test_leads_view_turns_contact_discovery_on(valid_config: RunConfig) -> None:
    config = _config(valid_config, output={"exportView": "leads"})

    result = enforce_compliance(config)

    assert result.config.contacts.discover_contacts_from_website is True
    assert result.warnings[0].field == "contacts.discoverContactsFromWebsite"


def test_input_is_left_untouched(valid_config: RunConfig) -> None:
    config = _config(
        valid_config,
        enrichment={"enableDecisionMakerEnrichment": True},
        output={"exportView": "leads"},
        search={"searchTerms": [" coffee ", "coffee"]},
    )
    before = config.to_wire()

    enforce_compliance(config)

    assert config.to_wire() == before


def test_string_lists_are_normalized(valid_config: RunConfig) -> None:
    config = _config(
        valid_config,
        search={"searchTerms": ["  coffee ", "", "coffee", "tea"], "categories": ["Cafe", "cafe", " "]},
        contacts={"scanPages": ["/contact", "/contact ", ""]},
        enrichment={"enrichmentTargets": ["Owner", "Owner"]},
    )

    safe = enforce_compliance(config).config

    assert safe.search.search_terms == ("coffee", "tea")
    assert safe.search.categories == ("Cafe", "cafe")
    assert safe.contacts.scan_pages == ("/contact",)
    assert safe.enrichment.enrichment_targets == ("Owner",)


def test_normalize_string_list_handles_missing_input() -> None:
    assert normalize_string_list(None) == ()
    assert normalize_string_list(["b", " a", "b "]) == ("b", "a")


def test_each_downgrade_is_logged(valid_config: RunConfig, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="run_compiler")
    config = _config(
        valid_config,
        enrichment={"enableDecisionMakerEnrichment": True},
        output={"exportView": "leads"},
    )

    result = enforce_compliance(config)

    assert len(result.warnings) == 2
    assert sum("Compliance auto-fix" in record.getMessage() for record in caplog.records) == 2


def _booleans(data: Any, prefix: str = "") -> Iterator[Tuple[str, bool]]:
    if isinstance(data, dict):
        for key, value in data.items():
            yield from _booleans(value, f"{prefix}{key}.")
    elif isinstance(data, bool):
        yield prefix.rstrip("."), data


_SWEEP_FLAGS = (
    ("reviews", "includeReviewerDetails"),
    ("enrichment", "enableDecisionMakerEnrichment"),
    ("contacts", "discoverContactsFromWebsite"),
    ("compliance", "reviewerDetailsLegalBasisConfirmed"),
    ("compliance", "decisionMakerEnrichmentLegalBasisConfirmed"),
)


@pytest.mark.parametrize("view", ["places", "reviews", "leads", "competitor"])
def test_enforcer_only_enables_what_the_export_view_needs(valid_config: RunConfig, view: str) -> None:
    for values in itertools.product((False, True), repeat=len(_SWEEP_FLAGS)):
        patch: Dict[str, Dict[str, Any]] = {"output": {"exportView": view}}
        for (section, key), value in zip(_SWEEP_FLAGS, values):
            patch.setdefault(section, {})[key] = value
        config = merge_run_config(valid_config, patch)

        safe = enforce_compliance(config).config

        before = dict(_booleans(config.to_wire()))
        after = dict(_booleans(safe.to_wire()))
        turned_on = {path for path, value in after.items() if value and not before[path]}
        assert turned_on <= {"contacts.discoverContactsFromWebsite"}
        if turned_on:
            assert view == "leads"
        assert safe.reviews.include_reviews >= config.reviews.include_reviews

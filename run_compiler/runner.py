"""Compile a run and hand it to the extraction backend."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import httpx
from pydantic import Field, ValidationError

from .compliance import enforce_compliance
from .config import BackendSettings, backend_settings
from .errors import BackendError
from .hashing import config_hash
from .logging_utils import get_logger
from .models import ComplianceWarning, RunConfig, WireModel
from .prompt import build_prompt
from .schema import build_output_schema
from .validation import validate_run_config

logger = get_logger()


class CompiledRun(WireModel):
    """Everything the backend needs for one run, plus its audit trail."""

    prompt: str
    output_schema: Dict[str, Any] = Field(alias="schema")
    config: RunConfig
    warnings: Tuple[ComplianceWarning, ...] = ()
    config_hash: str


class Diagnostics(WireModel):
    pages_visited: int = 0
    total_results_found: int = 0
    total_places_returned: int = 0
    duration_ms: int = 0
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


class RunResult(WireModel):
    success: Literal[True] = True
    places: List[Dict[str, Any]] = Field(default_factory=list)
    reviews: List[Dict[str, Any]] = Field(default_factory=list)
    contacts: List[Dict[str, Any]] = Field(default_factory=list)
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    config_warnings: Tuple[ComplianceWarning, ...] = ()
    config_hash: str


class RunError(WireModel):
    success: Literal[False] = False
    error: str
    duration_ms: Optional[int] = None


def compile_run(config: RunConfig) -> CompiledRun:
    """Enforce policy, then compile prompt, schema and hash from the safe config."""

    enforced = enforce_compliance(config)
    safe_config = enforced.config
    return CompiledRun(
        prompt=build_prompt(safe_config),
        output_schema=build_output_schema(safe_config),
        config=safe_config,
        warnings=enforced.warnings,
        config_hash=config_hash(safe_config),
    )


def _as_list(value: Any) -> List[Dict[str, Any]]:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, Mapping)]
    return []


def _diagnostics(value: Any) -> Diagnostics:
    if not isinstance(value, Mapping):
        return Diagnostics()
    try:
        return Diagnostics.model_validate(value)
    except ValidationError:
        logger.warning("Ignoring malformed diagnostics from extraction backend")
        return Diagnostics()


class ExtractionClient:
    """Synchronous client for the extraction backend endpoint."""

    def __init__(
        self,
        settings: BackendSettings = backend_settings,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=settings.timeout_s)

    def __enter__(self) -> "ExtractionClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    def _post(self, compiled: CompiledRun) -> Dict[str, Any]:
        """Send one compiled run; raise ``BackendError`` on any failure."""

        payload = {
            "prompt": compiled.prompt,
            "schema": compiled.output_schema,
            "config": compiled.config.to_wire(),
        }
        timeout = compiled.config.automation.timeout_ms / 1000

        try:
            response = self._client.post(
                self.settings.url, json=payload, headers=self._headers(), timeout=timeout
            )
        except httpx.TimeoutException as exc:
            raise BackendError(f"Request timed out after {timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise BackendError(str(exc) or "Network error occurred") from exc

        if not response.is_success:
            message = f"Request failed: {response.status_code} {response.reason_phrase}"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, Mapping) and body.get("error"):
                message = str(body["error"])
            raise BackendError(message, duration_ms=0)

        try:
            body = response.json()
        except ValueError as exc:
            raise BackendError("Backend returned invalid JSON") from exc

        if not isinstance(body, Mapping):
            raise BackendError("Backend returned an unexpected payload")
        if not body.get("success"):
            duration_ms = body.get("durationMs")
            raise BackendError(
                str(body.get("error") or "Unknown error from extraction backend"),
                duration_ms=duration_ms if isinstance(duration_ms, int) else None,
            )
        return dict(body)

    def run(self, raw_config: Any) -> Union[RunResult, RunError]:
        """Validate, compile and execute a run.

        Never raises for expected failures; callers branch on ``.success``.
        """

        validation = validate_run_config(raw_config)
        if not validation.success or validation.config is None:
            return RunError(error=f"Invalid configuration: {', '.join(validation.errors)}")

        compiled = compile_run(validation.config)
        logger.info("Starting extraction run %s", compiled.config_hash[:12])
        started = time.monotonic()

        try:
            body = self._post(compiled)
        except BackendError as exc:
            duration_ms = exc.duration_ms
            if duration_ms is None:
                duration_ms = int((time.monotonic() - started) * 1000)
            logger.error("Extraction run %s failed: %s", compiled.config_hash[:12], exc)
            return RunError(error=str(exc), duration_ms=duration_ms)

        data = body.get("data") if isinstance(body.get("data"), Mapping) else {}
        result = RunResult(
            places=_as_list(data.get("places")),
            reviews=_as_list(data.get("reviews")),
            contacts=_as_list(data.get("contacts")),
            diagnostics=_diagnostics(body.get("diagnostics")),
            config_warnings=compiled.warnings,
            config_hash=compiled.config_hash,
        )
        logger.info(
            "Extraction run %s returned %d places", compiled.config_hash[:12], len(result.places)
        )
        return result


def merge_contacts_with_places(
    places: List[Dict[str, Any]], contacts: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Attach each place's contact record under ``contactInfo``."""

    by_place = {contact.get("placeId"): contact for contact in contacts}
    return [{**place, "contactInfo": by_place.get(place.get("placeId"))} for place in places]


def leads_from_results(
    places: List[Dict[str, Any]], contacts: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Flatten places with any reachable channel into lead rows."""

    by_place = {contact.get("placeId"): contact for contact in contacts}
    leads: List[Dict[str, Any]] = []

    for place in places:
        contact = by_place.get(place.get("placeId")) or {}
        emails = contact.get("emails") or []
        phones = contact.get("phones") or []
        decision_makers = contact.get("decisionMakers")
        if not (place.get("website") or place.get("phone") or emails or phones or decision_makers):
            continue
        leads.append(
            {
                "placeName": place.get("name"),
                "placeId": place.get("placeId"),
                "website": place.get("website"),
                "phone": place.get("phone"),
                "emails": emails,
                "phones": phones,
                "socialProfiles": contact.get("socialProfiles"),
                "decisionMakers": decision_makers,
            }
        )
    return leads

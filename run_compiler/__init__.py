"""Google Maps extraction run compiler."""

from .compliance import enforce_compliance
from .hashing import canonical_json, config_hash
from .models import ComplianceWarning, RunConfig, ValidationResult
from .presets import apply_preset, get_preset, list_presets, merge_run_config
from .prompt import build_prompt
from .runner import CompiledRun, ExtractionClient, RunError, RunResult, compile_run
from .schema import build_output_schema
from .validation import validate_run_config

__all__ = [
    "CompiledRun",
    "ComplianceWarning",
    "ExtractionClient",
    "RunConfig",
    "RunError",
    "RunResult",
    "ValidationResult",
    "apply_preset",
    "build_output_schema",
    "build_prompt",
    "canonical_json",
    "compile_run",
    "config_hash",
    "enforce_compliance",
    "get_preset",
    "list_presets",
    "merge_run_config",
    "validate_run_config",
]

"""Command-line entry point for compiling and running extraction jobs."""

from __future__ import annotations

import json
import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Any, Dict, List, Optional

from run_compiler.config import compiler_settings
from run_compiler.errors import ConfigError
from run_compiler.export import write_places_csv
from run_compiler.logging_utils import configure_logging
from run_compiler.presets import apply_preset, list_presets
from run_compiler.runner import ExtractionClient, compile_run
from run_compiler.summary import config_summary, estimate_cost
from run_compiler.validation import validate_run_config


def _read_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _load_config(args: Namespace) -> Dict[str, Any]:
    """Return the raw configuration from a file, or from a preset plus overrides."""

    if args.config:
        return _read_json(args.config)

    overrides = _read_json(args.override) if args.override else None
    preset_id = args.preset or compiler_settings.default_preset or ""
    return apply_preset(preset_id, overrides).to_wire()


def _add_source_arguments(parser: ArgumentParser) -> None:
    parser.add_argument("config", nargs="?", help="JSON file holding a full run configuration")
    parser.add_argument("--preset", help="Preset id to start from when no config file is given")
    parser.add_argument("--override", help="JSON file merged over the preset")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Compile Google Maps extraction runs into agent instructions")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    compile_cmd = commands.add_parser("compile", help="Print the prompt, schema and hash for a config")
    _add_source_arguments(compile_cmd)

    commands.add_parser("presets", help="List the available presets")

    run_cmd = commands.add_parser("run", help="Compile a config and send it to the extraction backend")
    _add_source_arguments(run_cmd)
    run_cmd.add_argument("--csv", help="Optional CSV file path for exporting the returned places")
    return parser


def _compile(args: Namespace) -> int:
    validation = validate_run_config(_load_config(args))
    if not validation.success or validation.config is None:
        print(json.dumps({"errors": list(validation.errors)}, indent=2))
        return 2

    compiled = compile_run(validation.config)
    report = {
        "configHash": compiled.config_hash,
        "warnings": [warning.to_wire() for warning in compiled.warnings],
        "summary": config_summary(compiled.config),
        "estimatedCost": estimate_cost(compiled.config).to_wire(),
        "prompt": compiled.prompt,
        "schema": compiled.output_schema,
    }
    print(json.dumps(report, indent=2))
    return 0


def _presets() -> int:
    for preset in list_presets():
        print(f"{preset.id}: {preset.name} - {preset.description}")
    return 0


def _run(args: Namespace) -> int:
    with ExtractionClient() as client:
        result = client.run(_load_config(args))

    print(json.dumps(result.to_wire(), indent=2))
    if not result.success:
        return 1

    if args.csv:
        written = write_places_csv(result.places, args.csv)
        print(f"Saved {written} places to {args.csv}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args: Namespace = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, level=compiler_settings.log_level)

    try:
        if args.command == "presets":
            return _presets()
        if args.command == "compile":
            return _compile(args)
        return _run(args)
    except (ConfigError, OSError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

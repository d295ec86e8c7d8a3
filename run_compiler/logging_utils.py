"""Logging helpers."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Configure application logging once for CLI usage."""
    resolved = logging.DEBUG if verbose else logging.getLevelName(level)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)


def get_logger() -> logging.Logger:
    """Return the package logger used across modules."""
    return logging.getLogger("run_compiler")

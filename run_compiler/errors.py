"""Custom exceptions for the run compiler."""

from __future__ import annotations

from typing import Optional


class CompilerError(Exception):
    """Base exception for this project."""


class ConfigError(CompilerError):
    """Raised when a preset override or runtime setting is ill-typed."""


class BackendError(CompilerError):
    """Raised when the extraction backend call fails."""

    def __init__(self, message: str, duration_ms: Optional[int] = None) -> None:
        super().__init__(message)
        self.duration_ms = duration_ms

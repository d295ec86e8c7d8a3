"""Environment-driven settings for the run compiler."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class BackendSettings:
    """Connection details for the extraction backend."""

    url: str = os.getenv("EXTRACTION_BACKEND_URL", "http://localhost:8888/.netlify/functions/rtrvr-run")
    api_key: Optional[str] = os.getenv("EXTRACTION_BACKEND_API_KEY") or None
    timeout_s: float = float(os.getenv("EXTRACTION_BACKEND_TIMEOUT_S", "300"))


@dataclass(frozen=True)
class CompilerSettings:
    """Defaults used by the command-line entry point."""

    default_preset: Optional[str] = os.getenv("COMPILER_DEFAULT_PRESET") or None
    log_level: str = os.getenv("COMPILER_LOG_LEVEL", "INFO").upper()


backend_settings = BackendSettings()
compiler_settings = CompilerSettings()

"""Canonical JSON serialization and configuration hashing."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    return value


def canonical_json(value: Any) -> str:
    """Serialize with object keys sorted at every depth; arrays keep their order."""

    return json.dumps(_plain(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def config_hash(config: Any) -> str:
    """Lowercase hex SHA-256 of the canonical form of ``config``."""

    return hashlib.sha256(canonical_json(config).encode("utf-8")).hexdigest()

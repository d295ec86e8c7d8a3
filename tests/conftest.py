from typing import Any, Dict

import pytest

from run_compiler.models import RunConfig
from run_compiler.validation import validate_run_config


def minimal_raw() -> Dict[str, Any]:
    return {
        "geo": {"geoMode": "city", "city": "Lisbon"},
        "search": {"searchTerms": ["coffee"]},
    }


@pytest.fixture
def raw_config() -> Dict[str, Any]:
    return minimal_raw()


@pytest.fixture
def valid_config() -> RunConfig:
    result = validate_run_config(minimal_raw())
    assert result.config is not None
    return result.config

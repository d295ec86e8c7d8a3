"""CSV export of extracted places."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Dict, List, Union

from .logging_utils import get_logger

logger = get_logger()

PLACE_CSV_COLUMNS = (
    "name",
    "category",
    "placeId",
    "address",
    "city",
    "state",
    "postalCode",
    "country",
    "website",
    "phone",
    "rating",
    "reviewsCount",
    "latitude",
    "longitude",
)


def write_places_csv(places: List[Dict[str, Any]], path: Union[str, Path]) -> int:
    """Write one row per place; returns the number of rows written.

    Nothing is written for an empty list.
    """

    if not places:
        return 0

    output_path = Path(path)
    with output_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=PLACE_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for place in places:
            writer.writerow({column: "" if place.get(column) is None else place.get(column) for column in PLACE_CSV_COLUMNS})

    logger.info("Wrote %d places to %s", len(places), output_path)
    return len(places)

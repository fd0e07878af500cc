"""Parse raw station and route rows into typed records."""

import logging
import math
from typing import Iterable

from src.tube_map.config import DuplicatePolicy
from src.tube_map.errors import DuplicateKey, MalformedRecord
from src.tube_map.models import Route, Station

logger = logging.getLogger(__name__)

# Literal used by the source tables for an absent value
NULL_SENTINEL = "NULL"


def parse_int(dataset: str, row_number: int, row: dict[str, str], field: str) -> int:
    """Parse a base-10 integer field, raising MalformedRecord on failure."""
    raw = row.get(field, "")
    try:
        return int(raw, 10)
    except (TypeError, ValueError) as e:
        raise MalformedRecord(dataset, row_number, field, raw) from e


def parse_float(dataset: str, row_number: int, row: dict[str, str], field: str) -> float:
    """Parse a finite floating-point field, raising MalformedRecord on failure."""
    raw = row.get(field, "")
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise MalformedRecord(dataset, row_number, field, raw) from e
    if not math.isfinite(value):
        raise MalformedRecord(dataset, row_number, field, raw)
    return value


def optional_value(raw: str | None) -> str | None:
    """Map the NULL sentinel (or an empty cell) to None."""
    if raw is None or raw == NULL_SENTINEL or raw == "":
        return None
    return raw


def normalize_stations(
    rows: Iterable[dict[str, str]],
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
) -> dict[str, Station]:
    """
    Build the station lookup from raw rows.

    Args:
        rows: Station rows in file order
        duplicate_policy: LAST_WINS keeps the later row for a repeated id,
            REJECT raises DuplicateKey

    Returns:
        Dict mapping station id to Station, in first-seen id order

    Raises:
        MalformedRecord: If a numeric field does not parse, or the
            rail/total_lines counts are inconsistent
        DuplicateKey: If an id repeats under the REJECT policy
    """
    stations: dict[str, Station] = {}

    # Row numbers are 1-based data rows (the header is not counted)
    for row_number, row in enumerate(rows, start=1):
        station_id = row["id"]
        rail = parse_int("stations", row_number, row, "rail")
        total_lines = parse_int("stations", row_number, row, "total_lines")
        if rail < 0:
            raise MalformedRecord("stations", row_number, "rail", row["rail"])
        if total_lines < rail:
            raise MalformedRecord("stations", row_number, "total_lines", row["total_lines"])

        station = Station(
            id=station_id,
            name=row["name"],
            # Only the exact sentinel is absent; empty names are kept verbatim
            display_name=None if row["display_name"] == NULL_SENTINEL else row["display_name"],
            rail=rail,
            total_lines=total_lines,
            latitude=parse_float("stations", row_number, row, "latitude"),
            longitude=parse_float("stations", row_number, row, "longitude"),
        )

        if station_id in stations:
            if duplicate_policy is DuplicatePolicy.REJECT:
                raise DuplicateKey("stations", station_id, row_number)
            logger.warning(f"Duplicate station id {station_id!r} at row {row_number}, keeping last")
        stations[station_id] = station

    logger.debug(f"Normalized {len(stations)} stations")
    return stations


def normalize_routes(
    rows: Iterable[dict[str, str]],
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
) -> dict[str, Route]:
    """
    Build the route lookup keyed by line.

    The stripe sentinel is resolved here, once; downstream code only ever
    sees None for "no stripe".
    """
    routes: dict[str, Route] = {}

    for row_number, row in enumerate(rows, start=1):
        line = row["line"]
        colour = row["colour"].strip().lstrip("#")
        if not colour:
            raise MalformedRecord("routes", row_number, "colour", row["colour"])

        stripe = optional_value(row["stripe"].strip())
        route = Route(line=line, colour=colour, stripe=stripe.lstrip("#") if stripe else None)

        if line in routes:
            if duplicate_policy is DuplicatePolicy.REJECT:
                raise DuplicateKey("routes", line, row_number)
            logger.warning(f"Duplicate route line {line!r} at row {row_number}, keeping last")
        routes[line] = route

    logger.debug(f"Normalized {len(routes)} routes")
    return routes

"""Resolve connection foreign keys and attach connections to their stations."""

import logging
from dataclasses import replace
from typing import Iterable

from src.tube_map.config import DuplicatePolicy
from src.tube_map.errors import UnresolvedReference
from src.tube_map.loader import RawDatasets
from src.tube_map.models import Connection, Route, Station, TransitNetwork
from src.tube_map.normalizer import normalize_routes, normalize_stations, parse_int

logger = logging.getLogger(__name__)


def link_network(
    stations: dict[str, Station],
    connection_rows: Iterable[dict[str, str]],
    routes: dict[str, Route],
) -> TransitNetwork:
    """
    Link raw connection rows against the station and route lookups.

    Connections are stored in one flat tuple in row order. Each station
    receives the indices of every connection that has it as an endpoint,
    in the same order. The input Station records are left untouched; the
    returned network holds updated copies.

    Args:
        stations: Station lookup from normalize_stations
        connection_rows: Raw connection rows in file order
        routes: Route lookup from normalize_routes

    Returns:
        Immutable TransitNetwork

    Raises:
        UnresolvedReference: If an endpoint id or line is unknown
        MalformedRecord: If a time value is not an integer
    """
    connections: list[Connection] = []
    station_links: dict[str, list[int]] = {station_id: [] for station_id in stations}

    for row_number, row in enumerate(connection_rows, start=1):
        station1 = row["station1"]
        station2 = row["station2"]
        for station_id in (station1, station2):
            if station_id not in stations:
                raise UnresolvedReference(row_number, station_id, kind="station")

        line = row["line"]
        if line not in routes:
            raise UnresolvedReference(row_number, line, kind="route")

        index = len(connections)
        connections.append(
            Connection(
                index=index,
                line=line,
                station1=station1,
                station2=station2,
                time=parse_int("connections", row_number, row, "time"),
            )
        )
        station_links[station1].append(index)
        station_links[station2].append(index)

    linked_stations = {
        station_id: replace(station, connections=tuple(station_links[station_id]))
        for station_id, station in stations.items()
    }

    logger.info(
        f"Linked network: {len(linked_stations)} stations, {len(connections)} connections, "
        f"{len(routes)} routes"
    )

    return TransitNetwork(
        stations=linked_stations,
        connections=tuple(connections),
        routes=dict(routes),
    )


def build_network(
    raw: RawDatasets,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
) -> TransitNetwork:
    """Run the normalizer and linker over freshly loaded datasets."""
    stations = normalize_stations(raw.stations, duplicate_policy)
    routes = normalize_routes(raw.routes, duplicate_policy)
    return link_network(stations, raw.connections, routes)

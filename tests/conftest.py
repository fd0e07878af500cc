"""
Shared pytest fixtures for tube map tests.

Fixtures here are available to all test files. Row fixtures mirror what
the loader returns (lists of string-valued dicts); the csv_dir fixture
writes the same tables to disk for loader and CLI tests.
"""

import csv

import pytest

from src.tube_map.linker import link_network
from src.tube_map.normalizer import normalize_routes, normalize_stations


def make_station_row(
    station_id: str,
    longitude: float,
    latitude: float,
    total_lines: int = 1,
    rail: int = 0,
    name: str | None = None,
    display_name: str = "NULL",
) -> dict[str, str]:
    return {
        "id": station_id,
        "name": name or f"Station {station_id}",
        "display_name": display_name,
        "rail": str(rail),
        "total_lines": str(total_lines),
        "latitude": str(latitude),
        "longitude": str(longitude),
    }


@pytest.fixture
def station_rows() -> list[dict[str, str]]:
    """
    Three stations forming a right angle: A at the origin, B ten degrees
    east and C ten degrees north. None of them is an interchange.
    """
    return [
        make_station_row("A", 0, 0),
        make_station_row("B", 10, 0),
        make_station_row("C", 0, 10),
    ]


@pytest.fixture
def route_rows() -> list[dict[str, str]]:
    return [
        {"line": "L1", "colour": "ff0000", "stripe": "NULL"},
        {"line": "L2", "colour": "00ff00", "stripe": "ffffff"},
    ]


@pytest.fixture
def connection_rows() -> list[dict[str, str]]:
    return [{"station1": "A", "station2": "B", "line": "L1", "time": "3"}]


@pytest.fixture
def network(station_rows, connection_rows, route_rows):
    """Linked network for the three-station fixture."""
    return link_network(
        normalize_stations(station_rows),
        connection_rows,
        normalize_routes(route_rows),
    )


@pytest.fixture
def striped_network(station_rows, route_rows):
    """
    Network with one plain and one striped segment, and A as an interchange.
    """
    station_rows[0]["total_lines"] = "3"
    connection_rows = [
        {"station1": "A", "station2": "B", "line": "L1", "time": "3"},
        {"station1": "A", "station2": "C", "line": "L2", "time": "4"},
    ]
    return link_network(
        normalize_stations(station_rows),
        connection_rows,
        normalize_routes(route_rows),
    )


def write_csv(path, rows: list[dict[str, str]]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)


@pytest.fixture
def csv_dir(tmp_path, station_rows, connection_rows, route_rows):
    """Directory holding stations.csv, connections.csv and routes.csv."""
    write_csv(tmp_path / "stations.csv", station_rows)
    write_csv(tmp_path / "connections.csv", connection_rows)
    write_csv(tmp_path / "routes.csv", route_rows)
    return tmp_path

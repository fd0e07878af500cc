"""Tests for the cross-reference linker."""

import dataclasses

import pytest

from conftest import make_station_row
from src.tube_map.config import DuplicatePolicy
from src.tube_map.errors import DuplicateKey, MalformedRecord, UnresolvedReference
from src.tube_map.linker import build_network, link_network
from src.tube_map.loader import RawDatasets
from src.tube_map.normalizer import normalize_routes, normalize_stations


@pytest.fixture
def stations(station_rows):
    return normalize_stations(station_rows)


@pytest.fixture
def routes(route_rows):
    return normalize_routes(route_rows)


class TestLinkNetwork:
    """Tests for link_network."""

    def test_referential_round_trip(self, stations, routes):
        """Every connection's endpoints exist and list the connection."""
        rows = [
            {"station1": "A", "station2": "B", "line": "L1", "time": "3"},
            {"station1": "B", "station2": "C", "line": "L2", "time": "5"},
            {"station1": "C", "station2": "A", "line": "L1", "time": "1"},
        ]

        network = link_network(stations, rows, routes)

        for connection in network.connections:
            assert connection.station1 in network.stations
            assert connection.station2 in network.stations
            start, end = network.endpoints(connection)
            assert connection in network.connections_of(start)
            assert connection in network.connections_of(end)

    def test_connection_order_follows_rows(self, stations, routes):
        """Each station lists its connections in input row order."""
        rows = [
            {"station1": "A", "station2": "B", "line": "L1", "time": "3"},
            {"station1": "C", "station2": "B", "line": "L2", "time": "5"},
            {"station1": "B", "station2": "A", "line": "L1", "time": "1"},
        ]

        network = link_network(stations, rows, routes)

        assert network.stations["A"].connections == (0, 2)
        assert network.stations["B"].connections == (0, 1, 2)
        assert network.stations["C"].connections == (1,)

    def test_time_parsed_as_int(self, stations, routes, connection_rows):
        network = link_network(stations, connection_rows, routes)
        assert network.connections[0].time == 3

    def test_malformed_time_raises(self, stations, routes):
        rows = [{"station1": "A", "station2": "B", "line": "L1", "time": "soon"}]

        with pytest.raises(MalformedRecord) as exc_info:
            link_network(stations, rows, routes)

        assert exc_info.value.dataset == "connections"
        assert exc_info.value.field == "time"

    def test_unknown_station_raises_unresolved_reference(self, stations, routes):
        rows = [
            {"station1": "A", "station2": "B", "line": "L1", "time": "3"},
            {"station1": "A", "station2": "Z", "line": "L1", "time": "3"},
        ]

        with pytest.raises(UnresolvedReference) as exc_info:
            link_network(stations, rows, routes)

        assert exc_info.value.kind == "station"
        assert exc_info.value.missing_key == "Z"
        assert exc_info.value.connection_row == 2

    def test_unknown_line_raises_unresolved_reference(self, stations, routes):
        rows = [{"station1": "A", "station2": "B", "line": "L9", "time": "3"}]

        with pytest.raises(UnresolvedReference) as exc_info:
            link_network(stations, rows, routes)

        assert exc_info.value.kind == "route"
        assert exc_info.value.missing_key == "L9"

    def test_input_stations_not_mutated(self, stations, routes, connection_rows):
        link_network(stations, connection_rows, routes)
        assert stations["A"].connections == ()

    def test_stations_are_frozen(self, network):
        with pytest.raises(dataclasses.FrozenInstanceError):
            network.stations["A"].name = "Changed"

    def test_route_for_resolves_line(self, network):
        assert network.route_for(network.connections[0]).colour == "ff0000"

    def test_lines_at_lists_distinct_lines(self, stations, routes):
        rows = [
            {"station1": "A", "station2": "B", "line": "L1", "time": "3"},
            {"station1": "A", "station2": "C", "line": "L2", "time": "3"},
            {"station1": "C", "station2": "A", "line": "L1", "time": "3"},
        ]
        network = link_network(stations, rows, routes)
        assert network.lines_at(network.stations["A"]) == ["L1", "L2"]

    def test_station_without_connections(self, network):
        assert network.stations["C"].connections == ()
        assert network.lines_at(network.stations["C"]) == []


class TestBuildNetwork:
    """Tests for build_network over raw datasets."""

    def test_builds_from_raw_rows(self, station_rows, connection_rows, route_rows):
        raw = RawDatasets(stations=station_rows, connections=connection_rows, routes=route_rows)

        network = build_network(raw)

        assert list(network.stations) == ["A", "B", "C"]
        assert len(network.connections) == 1
        assert set(network.routes) == {"L1", "L2"}

    def test_strict_policy_propagates(self, connection_rows, route_rows):
        rows = [make_station_row("A", 0, 0), make_station_row("A", 1, 1), make_station_row("B", 2, 2)]
        raw = RawDatasets(stations=rows, connections=connection_rows, routes=route_rows)

        with pytest.raises(DuplicateKey):
            build_network(raw, DuplicatePolicy.REJECT)

"""Typed records for stations, connections and routes."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Station:
    """A station with its position and the connections touching it."""

    id: str
    name: str
    display_name: str | None
    rail: int  # Rail-only lines
    total_lines: int
    latitude: float
    longitude: float
    connections: tuple[int, ...] = ()  # Indices into TransitNetwork.connections

    @property
    def is_junction(self) -> bool:
        """Interchange stations serve more than one line beyond their rail lines."""
        return self.total_lines - self.rail > 1

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @property
    def element_id(self) -> str:
        """Stable identifier used for hover targeting on the drawing surface."""
        return f"station{self.id}"


@dataclass(frozen=True)
class Route:
    """Display metadata for one line."""

    line: str
    colour: str  # Hex without leading '#'
    stripe: str | None = None

    @property
    def color(self) -> str:
        return f"#{self.colour}"

    @property
    def stripe_color(self) -> str | None:
        return f"#{self.stripe}" if self.stripe is not None else None


@dataclass(frozen=True)
class Connection:
    """A segment of a line between two stations."""

    index: int
    line: str
    station1: str
    station2: str
    time: int  # Traversal time in minutes


@dataclass(frozen=True)
class TransitNetwork:
    """
    Linked, read-only view of the three tables.

    Stations refer to connections by index, and connections refer to
    stations by id, so the graph holds no direct object cycles.
    """

    stations: dict[str, Station]
    connections: tuple[Connection, ...]
    routes: dict[str, Route]

    def endpoints(self, connection: Connection) -> tuple[Station, Station]:
        return self.stations[connection.station1], self.stations[connection.station2]

    def route_for(self, connection: Connection) -> Route:
        return self.routes[connection.line]

    def connections_of(self, station: Station) -> list[Connection]:
        return [self.connections[i] for i in station.connections]

    def lines_at(self, station: Station) -> list[str]:
        """Distinct lines serving a station, in first-seen order."""
        lines: list[str] = []
        for connection in self.connections_of(station):
            if connection.line not in lines:
                lines.append(connection.line)
        return lines

    def junctions(self) -> list[Station]:
        return [s for s in self.stations.values() if s.is_junction]

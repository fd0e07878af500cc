"""Build the renderable primitive list for a linked network."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.tube_map.models import TransitNetwork
from src.tube_map.projector import GeoProjector, nice_ticks

if TYPE_CHECKING:
    from src.tube_map.viewport import ViewportState

# Screen-space sizes; every one is divided by the zoom scale before drawing
ROUTE_WIDTH = 5.0
STRIPE_WIDTH = 4.0
MARKER_RADIUS = 2.5
HOVER_RADIUS = 3.0
MARKER_STROKE_WIDTH = 0.5

HOVER_TRANSITION_MS = 25
X_TICK_COUNT = 10
Y_TICK_COUNT = 5


@dataclass(frozen=True)
class Transform:
    """Pan/zoom transform applied to every marker and line."""

    translate: tuple[float, float] = (0.0, 0.0)
    scale: float = 1.0

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return self.translate[0] + self.scale * x, self.translate[1] + self.scale * y

    def invert(self, px: float, py: float) -> tuple[float, float]:
        return (px - self.translate[0]) / self.scale, (py - self.translate[1]) / self.scale


@dataclass(frozen=True)
class CircleStyle:
    """Visual state of a station marker."""

    r: float
    stroke: str
    stroke_width: float
    opacity: float


def resting_style(scale: float) -> CircleStyle:
    return CircleStyle(
        r=MARKER_RADIUS / scale,
        stroke="gray",
        stroke_width=MARKER_STROKE_WIDTH / scale,
        opacity=0.3,
    )


def hovered_style(scale: float) -> CircleStyle:
    return CircleStyle(
        r=HOVER_RADIUS / scale,
        stroke="black",
        stroke_width=MARKER_STROKE_WIDTH / scale,
        opacity=1.0,
    )


@dataclass(frozen=True)
class LinePrimitive:
    """A projected segment; kind is "route" or "stripe"."""

    kind: str
    line: str
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    stroke_width: float
    cap: str = "round"


@dataclass(frozen=True)
class CirclePrimitive:
    """A projected marker; kind is "junction" or "station"."""

    kind: str
    station_id: str
    cx: float
    cy: float
    r: float
    fill: str
    stroke: str
    stroke_width: float
    opacity: float = 1.0
    id: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class Tick:
    value: float  # Data coordinate (degrees)
    position: float  # Screen coordinate after the transform


@dataclass(frozen=True)
class AxisPrimitive:
    """
    Tick geometry for one axis.

    orientation is "bottom" (longitude) or "left" (latitude). A negative
    tick_size draws ticks across the whole plot as grid lines.
    """

    orientation: str
    ticks: tuple[Tick, ...]
    tick_size: float


@dataclass(frozen=True)
class Scene:
    """Everything the drawing surface needs for one redraw."""

    width: float
    height: float
    transform: Transform
    routes: tuple[LinePrimitive, ...]
    stripes: tuple[LinePrimitive, ...]
    junctions: tuple[CirclePrimitive, ...]
    stations: tuple[CirclePrimitive, ...]
    axes: tuple[AxisPrimitive, ...]

    @property
    def lines(self) -> tuple[LinePrimitive, ...]:
        return self.routes + self.stripes

    @property
    def circles(self) -> tuple[CirclePrimitive, ...]:
        return self.junctions + self.stations

    def station_marker(self, element_id: str) -> CirclePrimitive | None:
        for marker in self.stations:
            if marker.id == element_id:
                return marker
        return None


def compute_axes(projector: GeoProjector, transform: Transform) -> tuple[AxisPrimitive, ...]:
    """
    Tick geometry for the data range visible under the transform.

    The visible longitude/latitude interval is found by inverting the
    plot edges through the transform and the projection; ticks are then
    placed back on screen through the same mapping.
    """
    w, h = projector.width, projector.height
    k = transform.scale
    tx, ty = transform.translate

    lon_start = projector.invert_x((0 - tx) / k)
    lon_stop = projector.invert_x((w - tx) / k)
    x_ticks = tuple(
        Tick(value=value, position=tx + k * projector.x(value))
        for value in nice_ticks(lon_start, lon_stop, X_TICK_COUNT)
    )

    lat_start = projector.invert_y((h - ty) / k)
    lat_stop = projector.invert_y((0 - ty) / k)
    y_ticks = tuple(
        Tick(value=value, position=ty + k * projector.y(value))
        for value in nice_ticks(lat_start, lat_stop, Y_TICK_COUNT)
    )

    return (
        AxisPrimitive(orientation="bottom", ticks=x_ticks, tick_size=-h),
        AxisPrimitive(orientation="left", ticks=y_ticks, tick_size=-w),
    )


def build_scene(
    network: TransitNetwork,
    projector: GeoProjector,
    state: "ViewportState",
    hovered: frozenset[str] = frozenset(),
) -> Scene:
    """
    Produce the primitive groups for one redraw.

    Args:
        network: Linked network
        projector: Projection fitted to the network's stations
        state: Current viewport; read, never modified
        hovered: Element ids of station markers under the pointer

    Returns:
        Scene with route segments, stripe overlays, junction markers,
        station markers and axes. Sizes are divided by state.scale so
        they keep a constant apparent size once the transform is applied.
    """
    scale = state.scale
    transform = Transform(translate=tuple(state.translate), scale=scale)

    routes: list[LinePrimitive] = []
    stripes: list[LinePrimitive] = []
    for connection in network.connections:
        start, end = network.endpoints(connection)
        route = network.route_for(connection)
        x1, y1 = projector.project(start)
        x2, y2 = projector.project(end)

        routes.append(
            LinePrimitive(
                kind="route",
                line=connection.line,
                x1=x1, y1=y1, x2=x2, y2=y2,
                color=route.color,
                stroke_width=ROUTE_WIDTH / scale,
            )
        )
        if route.stripe is not None:
            stripes.append(
                LinePrimitive(
                    kind="stripe",
                    line=connection.line,
                    x1=x1, y1=y1, x2=x2, y2=y2,
                    color=route.stripe_color,
                    stroke_width=STRIPE_WIDTH / scale,
                )
            )

    junctions: list[CirclePrimitive] = []
    markers: list[CirclePrimitive] = []
    for station in network.stations.values():
        cx, cy = projector.project(station)

        if station.is_junction:
            junctions.append(
                CirclePrimitive(
                    kind="junction",
                    station_id=station.id,
                    cx=cx,
                    cy=cy,
                    r=MARKER_RADIUS / scale,
                    fill="white",
                    stroke="black",
                    stroke_width=MARKER_STROKE_WIDTH / scale,
                )
            )

        style = hovered_style(scale) if station.element_id in hovered else resting_style(scale)
        markers.append(
            CirclePrimitive(
                kind="station",
                station_id=station.id,
                cx=cx,
                cy=cy,
                r=style.r,
                fill="#ffffff",
                stroke=style.stroke,
                stroke_width=style.stroke_width,
                opacity=style.opacity,
                id=station.element_id,
                title=station.name,
            )
        )

    return Scene(
        width=projector.width,
        height=projector.height,
        transform=transform,
        routes=tuple(routes),
        stripes=tuple(stripes),
        junctions=tuple(junctions),
        stations=tuple(markers),
        axes=compute_axes(projector, transform),
    )

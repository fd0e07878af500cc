"""Plotly-based drawing surface and figure creation for tube maps."""

import logging
from collections import defaultdict
from typing import Callable, Iterable, Optional

import plotly.graph_objects as go

from src.tube_map.errors import TubeMapError
from src.tube_map.models import TransitNetwork
from src.tube_map.projector import MARGIN, GeoProjector
from src.tube_map.scene import AxisPrimitive, CirclePrimitive, LinePrimitive, Scene, Transform
from src.tube_map.viewport import GestureEvent, ViewportController, ViewportState

logger = logging.getLogger(__name__)

CIRCLE_TRACE_NAMES = {"junction": "Interchanges", "station": "Stations"}


class PlotlySurface:
    """
    Drawing surface backed by a Plotly figure.

    Primitives are drawn in plot coordinates and the current transform is
    applied the way an SVG group transform would be: positions and sizes
    are both multiplied by the scale. Lines and circles are batched into
    one trace per kind and colour, with None separators between segments.
    """

    def __init__(self, hover_texts: Optional[dict[str, str]] = None):
        self.figure: Optional[go.Figure] = None
        self.width = 0.0
        self.height = 0.0
        self.transform = Transform()
        self.hover_texts = hover_texts or {}
        self._line_batches: dict[tuple[str, str, str, float], list[LinePrimitive]] = defaultdict(list)
        self._circle_batches: dict[str, list[CirclePrimitive]] = defaultdict(list)
        self._enter_handlers: dict[str, list[Callable]] = defaultdict(list)
        self._exit_handlers: dict[str, list[Callable]] = defaultdict(list)
        self._gesture_handlers: list[Callable] = []

    def create_canvas(self, width: float, height: float) -> go.Figure:
        """Create an empty figure whose plot area is width x height."""
        self.width = width
        self.height = height
        self.figure = go.Figure()
        self.figure.update_layout(
            width=width + MARGIN["left"] + MARGIN["right"],
            height=height + MARGIN["top"] + MARGIN["bottom"],
            margin=dict(l=MARGIN["left"], r=MARGIN["right"], t=MARGIN["top"], b=MARGIN["bottom"]),
            plot_bgcolor="white",
            hovermode="closest",
            dragmode="pan",
            xaxis=dict(range=[0, width], zeroline=False, fixedrange=False),
            # Screen y grows downward
            yaxis=dict(range=[height, 0], zeroline=False, fixedrange=False),
        )
        return self.figure

    def set_transform(self, transform: Transform) -> None:
        self.transform = transform

    def draw_line(self, line: LinePrimitive) -> None:
        self._line_batches[(line.kind, line.line, line.color, line.stroke_width)].append(line)

    def draw_circle(self, circle: CirclePrimitive) -> None:
        self._circle_batches[circle.kind].append(circle)

    def draw_axis(self, axis: AxisPrimitive) -> None:
        """Place ticks at their screen positions, labelled with data values."""
        if self.figure is None:
            raise RuntimeError("draw_axis called before create_canvas")

        axis_settings = dict(
            tickmode="array",
            tickvals=[tick.position for tick in axis.ticks],
            ticktext=[f"{tick.value:g}" for tick in axis.ticks],
            showgrid=axis.tick_size < 0,
            gridcolor="rgb(230, 230, 230)",
            ticks="outside",
            ticklen=6 if axis.tick_size < 0 else abs(axis.tick_size),
        )
        if axis.orientation == "bottom":
            self.figure.update_xaxes(**axis_settings)
        elif axis.orientation == "left":
            self.figure.update_yaxes(**axis_settings)
        else:
            raise ValueError(f"Unknown axis orientation: {axis.orientation!r}")

    def flush(self) -> None:
        """Turn batched primitives into Plotly traces."""
        if self.figure is None:
            raise RuntimeError("flush called before create_canvas")

        for (kind, line_name, color, stroke_width), lines in self._line_batches.items():
            self._add_line_trace(kind, line_name, color, stroke_width, lines)
        for kind, circles in self._circle_batches.items():
            self._add_circle_trace(kind, circles)

        self._line_batches.clear()
        self._circle_batches.clear()

    def render(self, scene: Scene) -> go.Figure:
        """Redraw the whole scene, reusing the canvas if the size is unchanged."""
        if self.figure is None or (self.width, self.height) != (scene.width, scene.height):
            self.create_canvas(scene.width, scene.height)
        else:
            self.figure.data = []

        self.set_transform(scene.transform)
        # Routes first, stripes on top, markers above both
        for line in scene.routes:
            self.draw_line(line)
        for line in scene.stripes:
            self.draw_line(line)
        for circle in scene.junctions:
            self.draw_circle(circle)
        for circle in scene.stations:
            self.draw_circle(circle)
        self.flush()

        for axis in scene.axes:
            self.draw_axis(axis)
        return self.figure

    def on_pointer_enter(self, element_id: str, handler: Callable[[str], object]) -> None:
        self._enter_handlers[element_id].append(handler)

    def on_pointer_exit(self, element_id: str, handler: Callable[[str], object]) -> None:
        self._exit_handlers[element_id].append(handler)

    def on_gesture(self, handler: Callable[[GestureEvent], object]) -> None:
        self._gesture_handlers.append(handler)

    def emit_pointer_enter(self, element_id: str) -> list:
        return [handler(element_id) for handler in self._enter_handlers.get(element_id, [])]

    def emit_pointer_exit(self, element_id: str) -> list:
        return [handler(element_id) for handler in self._exit_handlers.get(element_id, [])]

    def emit_gesture(self, event: GestureEvent) -> list:
        return [handler(event) for handler in self._gesture_handlers]

    def _add_line_trace(
        self,
        kind: str,
        line_name: str,
        color: str,
        stroke_width: float,
        lines: list[LinePrimitive],
    ) -> None:
        x: list[float | None] = []
        y: list[float | None] = []
        for line in lines:
            x1, y1 = self.transform.apply(line.x1, line.y1)
            x2, y2 = self.transform.apply(line.x2, line.y2)
            x.extend([x1, x2, None])
            y.extend([y1, y2, None])

        is_route = kind == "route"
        self.figure.add_trace(
            go.Scatter(
                x=x,
                y=y,
                mode="lines",
                line=dict(color=color, width=stroke_width * self.transform.scale),
                hoverinfo="skip",
                name=line_name if is_route else f"{line_name} (stripe)",
                legendgroup=line_name,
                showlegend=is_route,
            )
        )

    def _add_circle_trace(self, kind: str, circles: list[CirclePrimitive]) -> None:
        scale = self.transform.scale
        positions = [self.transform.apply(c.cx, c.cy) for c in circles]
        is_station = kind == "station"

        self.figure.add_trace(
            go.Scatter(
                x=[p[0] for p in positions],
                y=[p[1] for p in positions],
                mode="markers",
                marker=dict(
                    size=[2 * c.r * scale for c in circles],
                    color=[c.fill for c in circles],
                    opacity=[c.opacity for c in circles],
                    line=dict(
                        color=[c.stroke for c in circles],
                        width=[c.stroke_width * scale for c in circles],
                    ),
                ),
                customdata=[c.id or c.station_id for c in circles],
                hovertext=[self.hover_texts.get(c.station_id, c.title or "") for c in circles],
                hoverinfo="text" if is_station else "skip",
                name=CIRCLE_TRACE_NAMES.get(kind, kind),
            )
        )


def build_hover_texts(network: TransitNetwork) -> dict[str, str]:
    """Hover text per station id: label, lines served and position."""
    texts: dict[str, str] = {}
    for station in network.stations.values():
        text = f"<b>{station.label}</b><br>"
        if station.display_name:
            text += f"Name: {station.name}<br>"
        text += f"ID: {station.id}<br>"
        lines = network.lines_at(station)
        if lines:
            text += f"Lines: {', '.join(lines)}<br>"
        if station.is_junction:
            text += "Interchange<br>"
        text += f"Position: ({station.longitude:.4f}, {station.latitude:.4f})"
        texts[station.id] = text
    return texts


def create_figure(
    network: TransitNetwork,
    width: float,
    height: float,
    state: Optional[ViewportState] = None,
    hovered: Optional[Iterable[str]] = None,
    zoom: float = 1.0,
    pan: Optional[tuple[float, float]] = None,
    title: str = "Tube Map",
) -> go.Figure:
    """
    Create an interactive Plotly figure for a linked network.

    Args:
        network: Linked network
        width: Plot area width in pixels
        height: Plot area height in pixels
        state: Initial pan/zoom; defaults to the identity transform
        hovered: Station ids to render in their highlighted state
        zoom: Zoom factor applied around the plot centre after mounting
        pan: Screen offset applied after the zoom
        title: Figure title

    Returns:
        Plotly Figure object ready for display

    Raises:
        EmptyDataset: If the network has no stations
        ValueError: If a hovered station id is unknown
    """
    projector = GeoProjector.from_stations(network.stations, width, height)
    surface = PlotlySurface(hover_texts=build_hover_texts(network))
    controller = ViewportController(network, projector, state=state or ViewportState())
    controller.attach(surface)
    controller.mount()
    if zoom != 1.0:
        controller.zoom(zoom)
    if pan is not None:
        controller.pan(*pan)

    for station_id in hovered or []:
        if station_id not in network.stations:
            raise ValueError(f"Unknown station id: {station_id!r}")
        surface.emit_pointer_enter(network.stations[station_id].element_id)

    fig = surface.figure
    fig.update_layout(
        title=dict(text=title, y=0.99, yanchor="top"),
        showlegend=True,
        legend=dict(
            yanchor="top",
            y=0.99,
            xanchor="right",
            x=0.99,
            bgcolor="rgba(255, 255, 255, 0.8)",
            itemclick="toggle",
            itemdoubleclick="toggleothers",
        ),
        updatemenus=_create_toggle_buttons(fig),
    )
    logger.info(
        f"Created figure: {len(network.connections)} segments, {len(network.stations)} stations, "
        f"scale={controller.state.scale:g}"
    )
    return fig


def _create_toggle_buttons(fig: go.Figure) -> list[dict]:
    """
    Create a dropdown menu for visibility control.

    Uses explicit visibility arrays since Plotly doesn't support "toggle".
    """
    trace_names = [trace.name for trace in fig.data]
    num_traces = len(trace_names)

    buttons = [
        dict(
            label="All Visible",
            method="restyle",
            args=[{"visible": [True] * num_traces}],
        ),
        dict(
            label="Markers Only",
            method="restyle",
            args=[{"visible": [name in CIRCLE_TRACE_NAMES.values() for name in trace_names]}],
        ),
        dict(
            label="Lines Only",
            method="restyle",
            args=[{"visible": [name not in CIRCLE_TRACE_NAMES.values() for name in trace_names]}],
        ),
    ]

    return [
        dict(
            type="dropdown",
            direction="down",
            buttons=buttons,
            pad={"r": 10, "t": 10},
            showactive=True,
            x=0.0,
            xanchor="left",
            y=1.0,
            yanchor="top",
        )
    ]


def create_error_figure(error: TubeMapError, title: str = "Tube Map") -> go.Figure:
    """Figure shown instead of a map when the data fails to load or link."""
    fig = go.Figure()
    fig.add_annotation(
        text=f"<b>Map unavailable</b><br>{error.error_code}: {error.detail}",
        xref="paper",
        yref="paper",
        x=0.5,
        y=0.5,
        showarrow=False,
        font=dict(size=16, color="rgb(180, 30, 30)"),
        align="center",
    )
    fig.update_layout(
        title=title,
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        plot_bgcolor="white",
    )
    return fig


def show_figure(fig: go.Figure) -> None:
    """Display figure in browser."""
    fig.show()


def export_html(fig: go.Figure, output_path: str) -> None:
    """Export figure as standalone HTML file."""
    fig.write_html(output_path, include_plotlyjs=True, full_html=True)

"""Pan/zoom state and the controller that keeps the scene in sync with it."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol

from src.tube_map.models import TransitNetwork
from src.tube_map.projector import GeoProjector
from src.tube_map.scene import (
    HOVER_TRANSITION_MS,
    CircleStyle,
    Scene,
    Transform,
    build_scene,
    hovered_style,
    resting_style,
)

logger = logging.getLogger(__name__)

MIN_SCALE = 1.0
MAX_SCALE = 10.0

GESTURE_KINDS = ("start", "pan", "zoom", "end")


def clamp_scale(scale: float) -> float:
    return min(MAX_SCALE, max(MIN_SCALE, scale))


@dataclass
class ViewportState:
    """Mutable zoom/pan parameters, owned by a ViewportController."""

    scale: float = 1.0
    translate: tuple[float, float] = (0.0, 0.0)

    def __post_init__(self):
        self.scale = clamp_scale(self.scale)

    @property
    def transform(self) -> Transform:
        return Transform(translate=tuple(self.translate), scale=self.scale)


class InteractionState(Enum):
    IDLE = "idle"
    INTERACTING = "interacting"


@dataclass(frozen=True)
class GestureEvent:
    """
    A pointer gesture delivered by the drawing surface.

    kind is one of "start", "pan", "zoom", "end". Pan events carry dx/dy
    in screen units; zoom events carry a multiplicative factor and an
    optional screen anchor that stays fixed.
    """

    kind: str
    dx: float = 0.0
    dy: float = 0.0
    factor: float = 1.0
    anchor: Optional[tuple[float, float]] = None


@dataclass(frozen=True)
class MarkerTransition:
    """Animated change of one station marker to a new style."""

    element_id: str
    style: CircleStyle
    duration_ms: int = HOVER_TRANSITION_MS


class Surface(Protocol):
    """The subset of the drawing surface the controller talks to."""

    def render(self, scene: Scene) -> None: ...

    def on_pointer_enter(self, element_id: str, handler: Callable[[str], object]) -> None: ...

    def on_pointer_exit(self, element_id: str, handler: Callable[[str], object]) -> None: ...

    def on_gesture(self, handler: Callable[[GestureEvent], object]) -> None: ...


@dataclass
class ViewportController:
    """
    Owns the viewport state and re-derives the scene on every change.

    The linked network and projector are fixed for the life of the
    controller; only the transform and hover set change. Every update
    clamps the scale, recomputes the axes and rebuilds the primitives
    so stroke widths and radii track 1/scale.
    """

    network: TransitNetwork
    projector: GeoProjector
    state: ViewportState = field(default_factory=ViewportState)
    interaction: InteractionState = InteractionState.IDLE
    hovered: set[str] = field(default_factory=set)
    scene: Optional[Scene] = None
    surface: Optional[Surface] = None

    def attach(self, surface: Surface) -> None:
        """Subscribe to a surface's events and render into it on every update."""
        self.surface = surface
        surface.on_gesture(self.handle_gesture)
        for station in self.network.stations.values():
            surface.on_pointer_enter(station.element_id, self.pointer_enter)
            surface.on_pointer_exit(station.element_id, self.pointer_exit)

    def mount(self) -> Scene:
        """Initial pass, identical to the update run after every gesture."""
        return self._zoomed()

    def begin_gesture(self) -> None:
        self.interaction = InteractionState.INTERACTING

    def end_gesture(self) -> None:
        self.interaction = InteractionState.IDLE

    def pan(self, dx: float, dy: float) -> Scene:
        """Shift the view by a screen-space delta."""
        implicit = self._ensure_interacting()
        tx, ty = self.state.translate
        self.state.translate = (tx + dx, ty + dy)
        scene = self._zoomed()
        if implicit:
            self.end_gesture()
        return scene

    def zoom(self, factor: float, anchor: Optional[tuple[float, float]] = None) -> Scene:
        """
        Multiply the scale by factor, keeping anchor fixed on screen.

        The anchor defaults to the centre of the plot area. The resulting
        scale is clamped to [MIN_SCALE, MAX_SCALE] before the translation
        is adjusted, so clamped zooms do not drift the view.
        """
        if factor <= 0:
            raise ValueError(f"Zoom factor must be positive, got {factor}")
        implicit = self._ensure_interacting()

        if anchor is None:
            anchor = (self.projector.width / 2, self.projector.height / 2)
        old_scale = clamp_scale(self.state.scale)
        new_scale = clamp_scale(old_scale * factor)
        ratio = new_scale / old_scale

        ax, ay = anchor
        tx, ty = self.state.translate
        self.state.translate = (ax - (ax - tx) * ratio, ay - (ay - ty) * ratio)
        self.state.scale = new_scale
        scene = self._zoomed()
        if implicit:
            self.end_gesture()
        return scene

    def handle_gesture(self, event: GestureEvent) -> Optional[Scene]:
        """Dispatch a surface gesture event."""
        if event.kind not in GESTURE_KINDS:
            raise ValueError(f"Unknown gesture kind: {event.kind!r}")

        if event.kind == "start":
            self.begin_gesture()
            return None
        if event.kind == "end":
            self.end_gesture()
            return None
        if event.kind == "pan":
            return self.pan(event.dx, event.dy)
        return self.zoom(event.factor, event.anchor)

    def pointer_enter(self, element_id: str) -> MarkerTransition:
        """Highlight a station marker."""
        self._check_element(element_id)
        self.hovered.add(element_id)
        self._zoomed()
        return MarkerTransition(element_id=element_id, style=hovered_style(self.state.scale))

    def pointer_exit(self, element_id: str) -> MarkerTransition:
        """Return a station marker to its resting style."""
        self._check_element(element_id)
        self.hovered.discard(element_id)
        self._zoomed()
        return MarkerTransition(element_id=element_id, style=resting_style(self.state.scale))

    def screen_to_data(self, px: float, py: float) -> tuple[float, float]:
        """Longitude and latitude under a screen point for the current transform."""
        x, y = self.state.transform.invert(px, py)
        return self.projector.invert_x(x), self.projector.invert_y(y)

    def _ensure_interacting(self) -> bool:
        # Wheel zooms arrive without a start event; they are a whole gesture
        # on their own and return to IDLE once applied
        if self.interaction is InteractionState.IDLE:
            self.begin_gesture()
            return True
        return False

    def _check_element(self, element_id: str) -> None:
        if not any(s.element_id == element_id for s in self.network.stations.values()):
            raise ValueError(f"Unknown station marker: {element_id!r}")

    def _zoomed(self) -> Scene:
        self.state.scale = clamp_scale(self.state.scale)
        self.scene = build_scene(
            self.network,
            self.projector,
            self.state,
            hovered=frozenset(self.hovered),
        )
        logger.debug(
            f"Viewport update: scale={self.state.scale:.3f}, translate={self.state.translate}"
        )
        if self.surface is not None:
            self.surface.render(self.scene)
        return self.scene

"""
Tests for the viewport controller state machine.

The drawing surface is replaced by a MagicMock so we can check what the
controller subscribes to and renders without creating a Plotly figure.
"""

import pytest
from unittest.mock import MagicMock

from src.tube_map.projector import GeoProjector
from src.tube_map.scene import HOVER_TRANSITION_MS
from src.tube_map.viewport import (
    MAX_SCALE,
    MIN_SCALE,
    GestureEvent,
    InteractionState,
    ViewportController,
    ViewportState,
    clamp_scale,
)


@pytest.fixture
def controller(network):
    projector = GeoProjector.from_stations(network.stations, 760, 500)
    return ViewportController(network, projector)


class TestClampScale:
    @pytest.mark.parametrize(
        "scale, expected",
        [(0.2, MIN_SCALE), (1.0, 1.0), (4.5, 4.5), (10.0, 10.0), (50.0, MAX_SCALE)],
    )
    def test_clamp(self, scale, expected):
        assert clamp_scale(scale) == expected

    @pytest.mark.parametrize("scale, expected", [(0.0, MIN_SCALE), (-3.0, MIN_SCALE), (12.0, MAX_SCALE)])
    def test_state_clamps_on_construction(self, scale, expected):
        assert ViewportState(scale=scale).scale == expected


class TestMount:
    def test_initial_scene(self, controller):
        scene = controller.mount()

        assert controller.scene is scene
        assert controller.interaction is InteractionState.IDLE
        assert scene.routes[0].stroke_width == 5.0

    def test_mount_clamps_initial_state(self, network):
        projector = GeoProjector.from_stations(network.stations, 760, 500)
        controller = ViewportController(network, projector, state=ViewportState(scale=40.0))

        scene = controller.mount()

        assert controller.state.scale == MAX_SCALE
        assert scene.routes[0].stroke_width == 5 / MAX_SCALE

    def test_zero_scale_state_is_clamped(self, network):
        projector = GeoProjector.from_stations(network.stations, 760, 500)
        controller = ViewportController(network, projector, state=ViewportState(scale=0.0))

        scene = controller.mount()

        assert controller.state.scale == MIN_SCALE
        assert scene.routes[0].stroke_width == 5.0

    def test_zoom_from_zero_scale(self, controller):
        """A scale written directly on the state is clamped before zooming."""
        controller.state.scale = 0.0

        controller.zoom(2.0)

        assert controller.state.scale == 2.0


class TestGestures:
    """Pan and zoom transitions."""

    def test_start_and_end_switch_state(self, controller):
        controller.handle_gesture(GestureEvent(kind="start"))
        assert controller.interaction is InteractionState.INTERACTING

        controller.handle_gesture(GestureEvent(kind="end"))
        assert controller.interaction is InteractionState.IDLE

    def test_pan_moves_translate(self, controller):
        controller.mount()
        controller.handle_gesture(GestureEvent(kind="start"))

        controller.handle_gesture(GestureEvent(kind="pan", dx=15.0, dy=-5.0))
        scene = controller.handle_gesture(GestureEvent(kind="pan", dx=5.0, dy=5.0))

        assert controller.state.translate == (20.0, 0.0)
        assert scene.transform.translate == (20.0, 0.0)

    def test_wheel_zoom_without_start_returns_to_idle(self, controller):
        """A zoom with no start event is a whole gesture on its own."""
        controller.handle_gesture(GestureEvent(kind="zoom", factor=2.0))

        assert controller.interaction is InteractionState.IDLE
        assert controller.state.scale == 2.0

    def test_pan_without_start_returns_to_idle(self, controller):
        controller.pan(10.0, 0.0)
        assert controller.interaction is InteractionState.IDLE

    def test_explicit_gesture_stays_interacting_until_end(self, controller):
        controller.handle_gesture(GestureEvent(kind="start"))
        controller.handle_gesture(GestureEvent(kind="zoom", factor=2.0))
        controller.handle_gesture(GestureEvent(kind="pan", dx=5.0, dy=0.0))
        assert controller.interaction is InteractionState.INTERACTING

        controller.handle_gesture(GestureEvent(kind="end"))
        assert controller.interaction is InteractionState.IDLE

    def test_default_anchor_is_plot_centre(self, controller):
        controller.mount()

        controller.zoom(3.0)

        assert controller.state.translate == (-760.0, -500.0)
        lon, lat = controller.screen_to_data(380.0, 250.0)
        assert lon == pytest.approx(5.0)
        assert lat == pytest.approx(5.0)

    def test_zoom_keeps_anchor_fixed(self, controller):
        """The data point under the anchor stays under the anchor."""
        anchor = (190.0, 125.0)
        before = controller.screen_to_data(*anchor)

        controller.zoom(2.5, anchor=anchor)

        after = controller.screen_to_data(*anchor)
        assert after[0] == pytest.approx(before[0])
        assert after[1] == pytest.approx(before[1])
        assert controller.state.scale == 2.5

    def test_zoom_is_clamped(self, controller):
        controller.zoom(4.0)
        controller.zoom(4.0)
        assert controller.state.scale == MAX_SCALE

        controller.zoom(0.001)
        assert controller.state.scale == MIN_SCALE

    def test_clamped_zoom_does_not_drift(self, controller):
        """Zooming out at minimum scale leaves the translation unchanged."""
        controller.pan(30.0, 40.0)
        controller.zoom(0.5, anchor=(100.0, 100.0))
        assert controller.state.translate == (30.0, 40.0)

    def test_stroke_widths_track_scale(self, controller):
        scene = controller.zoom(4.0, anchor=(0.0, 0.0))

        assert scene.routes[0].stroke_width == 5 / 4.0
        assert scene.station_marker("stationA").r == 2.5 / 4.0

    def test_invalid_gesture_kind(self, controller):
        with pytest.raises(ValueError):
            controller.handle_gesture(GestureEvent(kind="pinch"))

    def test_invalid_zoom_factor(self, controller):
        with pytest.raises(ValueError):
            controller.zoom(0.0)


class TestHover:
    """Pointer enter/exit transitions."""

    def test_pointer_enter_returns_hover_transition(self, controller):
        controller.zoom(2.0)

        transition = controller.pointer_enter("stationA")

        assert transition.element_id == "stationA"
        assert transition.duration_ms == HOVER_TRANSITION_MS == 25
        assert transition.style.r == 3 / 2.0
        assert transition.style.opacity == 1.0
        assert controller.scene.station_marker("stationA").stroke == "black"

    def test_pointer_exit_reverts(self, controller):
        controller.pointer_enter("stationA")

        transition = controller.pointer_exit("stationA")

        assert transition.style.r == 2.5
        assert transition.style.stroke == "gray"
        assert transition.duration_ms == 25
        assert controller.scene.station_marker("stationA").opacity == 0.3

    def test_hover_survives_zoom(self, controller):
        controller.pointer_enter("stationB")
        scene = controller.zoom(5.0)
        assert scene.station_marker("stationB").r == 3 / 5.0

    def test_unknown_marker(self, controller):
        with pytest.raises(ValueError):
            controller.pointer_enter("stationZ")


class TestScreenToData:
    def test_identity(self, controller):
        assert controller.screen_to_data(0.0, 500.0) == (0.0, 0.0)
        assert controller.screen_to_data(760.0, 0.0) == (10.0, 10.0)

    def test_after_pan_and_zoom(self, controller):
        controller.zoom(2.0, anchor=(0.0, 0.0))
        controller.pan(-760.0, 0.0)

        lon, lat = controller.screen_to_data(0.0, 0.0)

        assert lon == pytest.approx(5.0)
        assert lat == pytest.approx(10.0)


class TestAttach:
    """Tests for wiring to a drawing surface."""

    def test_subscribes_to_surface_events(self, controller):
        surface = MagicMock()

        controller.attach(surface)

        surface.on_gesture.assert_called_once_with(controller.handle_gesture)
        entered = [c.args[0] for c in surface.on_pointer_enter.call_args_list]
        exited = [c.args[0] for c in surface.on_pointer_exit.call_args_list]
        assert entered == ["stationA", "stationB", "stationC"]
        assert exited == ["stationA", "stationB", "stationC"]

    def test_renders_on_every_update(self, controller):
        surface = MagicMock()
        controller.attach(surface)

        controller.mount()
        controller.pan(1.0, 1.0)
        controller.pointer_enter("stationC")

        assert surface.render.call_count == 3
        assert surface.render.call_args.args[0] is controller.scene

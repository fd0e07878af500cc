"""Tube Map Viewer - Interactive transit maps from station, connection and route tables."""

from src.tube_map.linker import build_network, link_network
from src.tube_map.loader import DatasetPaths, RawDatasets, load_datasets
from src.tube_map.models import Connection, Route, Station, TransitNetwork
from src.tube_map.projector import GeoProjector
from src.tube_map.scene import Scene, build_scene
from src.tube_map.viewer import create_error_figure, create_figure
from src.tube_map.viewport import ViewportController, ViewportState

__all__ = [
    "DatasetPaths",
    "RawDatasets",
    "load_datasets",
    "build_network",
    "link_network",
    "Station",
    "Connection",
    "Route",
    "TransitNetwork",
    "GeoProjector",
    "Scene",
    "build_scene",
    "ViewportController",
    "ViewportState",
    "create_figure",
    "create_error_figure",
]

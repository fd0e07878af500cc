"""Linear projection from (longitude, latitude) to screen coordinates."""

import logging
import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from src.tube_map.errors import EmptyDataset
from src.tube_map.models import Station

logger = logging.getLogger(__name__)

# Smallest window the map is laid out for, and the margins around the plot area
MIN_WINDOW_WIDTH = 760
MIN_WINDOW_HEIGHT = 500
MARGIN = {"top": 20, "right": 20, "bottom": 30, "left": 40}


def plot_area(window_width: float, window_height: float) -> tuple[float, float]:
    """
    Derive the plot size from a window size.

    The window is floored at MIN_WINDOW_WIDTH x MIN_WINDOW_HEIGHT before
    the margins are subtracted.
    """
    width = max(MIN_WINDOW_WIDTH, window_width) - MARGIN["left"] - MARGIN["right"]
    height = max(MIN_WINDOW_HEIGHT, window_height) - MARGIN["top"] - MARGIN["bottom"]
    return float(width), float(height)


def nice_ticks(start: float, stop: float, count: int = 10) -> list[float]:
    """
    Round tick values covering [start, stop].

    Steps are 1, 2 or 5 times a power of ten, chosen so that roughly
    `count` ticks fall inside the interval.

    Example:
        >>> nice_ticks(0, 10, 5)
        [0.0, 2.0, 4.0, 6.0, 8.0, 10.0]
    """
    if count <= 0 or not (math.isfinite(start) and math.isfinite(stop)):
        return []
    if start == stop:
        return [float(start)]

    low, high = min(start, stop), max(start, stop)
    raw_step = (high - low) / count
    power = math.floor(math.log10(raw_step))
    error = raw_step / 10**power
    if error >= math.sqrt(50):
        factor = 10
    elif error >= math.sqrt(10):
        factor = 5
    elif error >= math.sqrt(2):
        factor = 2
    else:
        factor = 1

    # For fractional steps divide by the inverse step, so 3 / 10 gives
    # exactly 0.3 rather than 3 * 0.1
    if power < 0:
        inverse = 10.0**-power / factor
        first, last = round(low * inverse), round(high * inverse)
        if first / inverse < low:
            first += 1
        if last / inverse > high:
            last -= 1
        values = np.arange(first, last + 1) / inverse
    else:
        step = factor * 10.0**power
        first, last = round(low / step), round(high / step)
        if first * step < low:
            first += 1
        if last * step > high:
            last -= 1
        values = np.arange(first, last + 1) * step

    ticks = [float(v) for v in values]
    return ticks if start <= stop else ticks[::-1]


@dataclass(frozen=True)
class GeoProjector:
    """
    Two independent linear scales fitted to the stations' bounding box.

    x maps [min_lon, max_lon] onto [0, width]; y maps [min_lat, max_lat]
    onto [height, 0] (screen y grows downward). A zero-width extent maps
    every value to the middle of its range.
    """

    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float
    width: float
    height: float

    @classmethod
    def from_stations(
        cls,
        stations: Iterable[Station] | dict[str, Station],
        width: float,
        height: float,
    ) -> "GeoProjector":
        """
        Fit a projector to the exact bounding box of the stations.

        Raises:
            EmptyDataset: If there are no stations
            ValueError: If width or height is not positive
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport must be positive, got {width}x{height}")

        if isinstance(stations, dict):
            stations = stations.values()
        stations = list(stations)
        if not stations:
            raise EmptyDataset()

        lons = np.fromiter((s.longitude for s in stations), dtype=float, count=len(stations))
        lats = np.fromiter((s.latitude for s in stations), dtype=float, count=len(stations))

        projector = cls(
            min_lon=float(lons.min()),
            max_lon=float(lons.max()),
            min_lat=float(lats.min()),
            max_lat=float(lats.max()),
            width=float(width),
            height=float(height),
        )
        logger.debug(
            f"Projection domain lon [{projector.min_lon}, {projector.max_lon}], "
            f"lat [{projector.min_lat}, {projector.max_lat}] onto {width}x{height}"
        )
        return projector

    @property
    def lon_span(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def lat_span(self) -> float:
        return self.max_lat - self.min_lat

    def x(self, longitude):
        """Screen x for a longitude (scalar or numpy array)."""
        values = np.asarray(longitude, dtype=float)
        if self.lon_span == 0:
            result = np.full_like(values, self.width / 2)
        else:
            result = (values - self.min_lon) / self.lon_span * self.width
        return float(result) if result.ndim == 0 else result

    def y(self, latitude):
        """Screen y for a latitude (scalar or numpy array)."""
        values = np.asarray(latitude, dtype=float)
        if self.lat_span == 0:
            result = np.full_like(values, self.height / 2)
        else:
            result = self.height - (values - self.min_lat) / self.lat_span * self.height
        return float(result) if result.ndim == 0 else result

    def invert_x(self, px):
        """Longitude for a screen x. A degenerate axis inverts to its single value."""
        values = np.asarray(px, dtype=float)
        if self.lon_span == 0:
            result = np.full_like(values, self.min_lon)
        else:
            result = self.min_lon + values / self.width * self.lon_span
        return float(result) if result.ndim == 0 else result

    def invert_y(self, py):
        """Latitude for a screen y."""
        values = np.asarray(py, dtype=float)
        if self.lat_span == 0:
            result = np.full_like(values, self.min_lat)
        else:
            result = self.min_lat + (self.height - values) / self.height * self.lat_span
        return float(result) if result.ndim == 0 else result

    def project(self, station: Station) -> tuple[float, float]:
        return self.x(station.longitude), self.y(station.latitude)

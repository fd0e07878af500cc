"""Load the station, connection and route tables from CSV files."""

import asyncio
import logging
import os
from dataclasses import dataclass

import pandas as pd

from src.tube_map.errors import DatasetLoadError

logger = logging.getLogger(__name__)

# Columns every table must provide (extra columns are carried through untouched)
REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "stations": ("id", "name", "display_name", "rail", "total_lines", "latitude", "longitude"),
    "connections": ("station1", "station2", "line", "time"),
    "routes": ("line", "colour", "stripe"),
}

Row = dict[str, str]


@dataclass(frozen=True)
class DatasetPaths:
    """Locations of the three input tables."""

    stations: str
    connections: str
    routes: str

    @classmethod
    def from_dir(
        cls,
        data_dir: str,
        stations_file: str = "stations.csv",
        connections_file: str = "connections.csv",
        routes_file: str = "routes.csv",
    ) -> "DatasetPaths":
        return cls(
            stations=os.path.join(data_dir, stations_file),
            connections=os.path.join(data_dir, connections_file),
            routes=os.path.join(data_dir, routes_file),
        )


@dataclass
class RawDatasets:
    """Container for the three untyped row sets, in file order."""

    stations: list[Row]
    connections: list[Row]
    routes: list[Row]


def read_rows(path: str, dataset: str) -> list[Row]:
    """
    Read one CSV table into an ordered list of field maps.

    Every value is kept as the verbatim string from the file: pandas NA
    detection is disabled so sentinels such as "NULL" reach the normalizer
    untouched.

    Args:
        path: CSV file with a header row
        dataset: Table name ("stations", "connections" or "routes")

    Returns:
        One dict per data row, keyed by column name

    Raises:
        DatasetLoadError: If the file is missing, unparsable, or lacks
            a required column
    """
    if not os.path.exists(path):
        raise DatasetLoadError(dataset, path, "file not found")

    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise DatasetLoadError(dataset, path, "file is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise DatasetLoadError(dataset, path, str(e)) from e

    frame.columns = [str(column).strip() for column in frame.columns]

    missing = [c for c in REQUIRED_COLUMNS.get(dataset, ()) if c not in frame.columns]
    if missing:
        raise DatasetLoadError(dataset, path, f"missing columns: {', '.join(missing)}")

    rows: list[Row] = frame.to_dict(orient="records")
    logger.debug(f"Read {len(rows)} {dataset} rows from {path}")
    return rows


async def load_datasets_async(paths: DatasetPaths) -> RawDatasets:
    """
    Load the three tables concurrently and join on completion.

    The loads are independent and run in worker threads. Nothing is
    returned until all three have succeeded; the first failure propagates
    and the other results are discarded.

    Raises:
        DatasetLoadError: If any one of the tables fails to load
    """
    stations, connections, routes = await asyncio.gather(
        asyncio.to_thread(read_rows, paths.stations, "stations"),
        asyncio.to_thread(read_rows, paths.connections, "connections"),
        asyncio.to_thread(read_rows, paths.routes, "routes"),
    )

    logger.info(
        f"Loaded datasets: {len(stations)} stations, {len(connections)} connections, "
        f"{len(routes)} routes"
    )
    return RawDatasets(stations=stations, connections=connections, routes=routes)


def load_datasets(paths: DatasetPaths) -> RawDatasets:
    """Synchronous wrapper around load_datasets_async."""
    return asyncio.run(load_datasets_async(paths))

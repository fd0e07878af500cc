"""Runtime configuration loaded from the environment and an optional .env file."""

import logging
import os
from dataclasses import dataclass
from enum import Enum

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Configuration defaults
DEFAULT_DATA_DIR = "data"
DEFAULT_STATIONS_FILE = "stations.csv"
DEFAULT_CONNECTIONS_FILE = "connections.csv"
DEFAULT_ROUTES_FILE = "routes.csv"
DEFAULT_WINDOW_WIDTH = 760
DEFAULT_WINDOW_HEIGHT = 500


class DuplicatePolicy(Enum):
    """What to do when a station id or route line appears more than once."""

    LAST_WINS = "last_wins"  # Later rows overwrite earlier ones
    REJECT = "reject"  # Raise DuplicateKey


@dataclass
class MapConfig:
    """Resolved settings for one map build."""

    data_dir: str = DEFAULT_DATA_DIR
    stations_file: str = DEFAULT_STATIONS_FILE
    connections_file: str = DEFAULT_CONNECTIONS_FILE
    routes_file: str = DEFAULT_ROUTES_FILE
    window_width: int = DEFAULT_WINDOW_WIDTH
    window_height: int = DEFAULT_WINDOW_HEIGHT
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS

    @classmethod
    def from_env(cls) -> "MapConfig":
        """
        Build configuration from TUBE_MAP_* environment variables.

        A .env file in the working directory is loaded first; variables
        already present in the environment take precedence over it.

        Raises:
            ValueError: If a numeric or policy variable has an invalid value
        """
        load_dotenv()

        policy_name = os.getenv("TUBE_MAP_DUPLICATE_POLICY", DuplicatePolicy.LAST_WINS.value)
        try:
            policy = DuplicatePolicy(policy_name.strip().lower())
        except ValueError as e:
            raise ValueError(f"Invalid TUBE_MAP_DUPLICATE_POLICY: {policy_name!r}") from e

        config = cls(
            data_dir=os.getenv("TUBE_MAP_DATA_DIR", DEFAULT_DATA_DIR),
            stations_file=os.getenv("TUBE_MAP_STATIONS_FILE", DEFAULT_STATIONS_FILE),
            connections_file=os.getenv("TUBE_MAP_CONNECTIONS_FILE", DEFAULT_CONNECTIONS_FILE),
            routes_file=os.getenv("TUBE_MAP_ROUTES_FILE", DEFAULT_ROUTES_FILE),
            window_width=_int_from_env("TUBE_MAP_WINDOW_WIDTH", DEFAULT_WINDOW_WIDTH),
            window_height=_int_from_env("TUBE_MAP_WINDOW_HEIGHT", DEFAULT_WINDOW_HEIGHT),
            duplicate_policy=policy,
        )
        logger.debug(f"Loaded configuration: {config}")
        return config


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw, 10)
    except ValueError as e:
        raise ValueError(f"Invalid {name}: {raw!r} is not an integer") from e

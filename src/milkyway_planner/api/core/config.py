"""
Planner Configuration

Settings for ephemeris files, scoring thresholds and the default observer
location. Values are layered, lowest precedence first:

1. Built-in defaults
2. JSON file at ~/.config/milkyway-planner/config.json
3. Environment variables (a .env file is honoured by the CLI)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import deal

from milkyway_planner.api.core.exceptions import InvalidConfigurationError, InvalidCoordinateError
from milkyway_planner.api.location.observer import ObserverLocation


logger = logging.getLogger(__name__)


__all__ = [
    "PlannerConfig",
    "get_config_path",
    "load_config",
    "save_default_location",
]


def _default_skyfield_dir() -> Path:
    return Path.home() / ".skyfield"


@dataclass(frozen=True)
class PlannerConfig:
    """Runtime settings for the planner."""

    skyfield_dir: Path = field(default_factory=_default_skyfield_dir)
    ephemeris_file: str = "de440s.bsp"  # Must include the Moon and span 1900-2100
    quality_threshold: float = 0.3  # Minimum curve score for a "decent" period
    calendar_nights: int = 7
    timezone_cache_size: int = 256
    default_location: ObserverLocation | None = None


def get_config_path() -> Path:
    """Get path to the planner config file (not created if missing)."""
    return Path.home() / ".config" / "milkyway-planner" / "config.json"


def _parse_float(name: str, raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _parse_int(name: str, raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _build_location(latitude: Any, longitude: Any, name: Any = None, elevation: Any = 0.0) -> ObserverLocation:
    try:
        return ObserverLocation(
            latitude=_parse_float("latitude", latitude),
            longitude=_parse_float("longitude", longitude),
            elevation=_parse_float("elevation", elevation),
            name=name,
        )
    except InvalidCoordinateError as e:
        raise InvalidConfigurationError(str(e)) from e


def _apply_file(config: PlannerConfig, path: Path) -> PlannerConfig:
    if not path.exists():
        logger.debug(f"No config file found at {path}")
        return config

    try:
        with path.open() as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidConfigurationError(f"Could not read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"Config file {path} must contain a JSON object")

    updates: dict[str, Any] = {}
    if "skyfield_dir" in data:
        updates["skyfield_dir"] = Path(data["skyfield_dir"]).expanduser()
    if "ephemeris_file" in data:
        updates["ephemeris_file"] = str(data["ephemeris_file"])
    if "quality_threshold" in data:
        updates["quality_threshold"] = _parse_float("quality_threshold", data["quality_threshold"])
    if "calendar_nights" in data:
        updates["calendar_nights"] = _parse_int("calendar_nights", data["calendar_nights"])
    if "timezone_cache_size" in data:
        updates["timezone_cache_size"] = _parse_int("timezone_cache_size", data["timezone_cache_size"])

    location = data.get("location")
    if isinstance(location, dict) and "latitude" in location and "longitude" in location:
        updates["default_location"] = _build_location(
            location["latitude"],
            location["longitude"],
            location.get("name"),
            location.get("elevation", 0.0),
        )

    logger.debug(f"Loaded config file {path}: {sorted(updates)}")
    return replace(config, **updates)


def _apply_environment(config: PlannerConfig, environ: dict[str, str]) -> PlannerConfig:
    updates: dict[str, Any] = {}

    if environ.get("SKYFIELD_DIR"):
        updates["skyfield_dir"] = Path(environ["SKYFIELD_DIR"]).expanduser().resolve()
    if environ.get("MILKYWAY_EPHEMERIS"):
        updates["ephemeris_file"] = environ["MILKYWAY_EPHEMERIS"]
    if environ.get("MILKYWAY_QUALITY_THRESHOLD"):
        updates["quality_threshold"] = _parse_float(
            "MILKYWAY_QUALITY_THRESHOLD", environ["MILKYWAY_QUALITY_THRESHOLD"]
        )
    if environ.get("MILKYWAY_CALENDAR_NIGHTS"):
        updates["calendar_nights"] = _parse_int("MILKYWAY_CALENDAR_NIGHTS", environ["MILKYWAY_CALENDAR_NIGHTS"])
    if environ.get("MILKYWAY_TZ_CACHE_SIZE"):
        updates["timezone_cache_size"] = _parse_int("MILKYWAY_TZ_CACHE_SIZE", environ["MILKYWAY_TZ_CACHE_SIZE"])

    lat = environ.get("MILKYWAY_LATITUDE")
    lon = environ.get("MILKYWAY_LONGITUDE")
    if lat and lon:
        updates["default_location"] = _build_location(lat, lon, environ.get("MILKYWAY_LOCATION_NAME"))

    return replace(config, **updates)


def _validate(config: PlannerConfig) -> PlannerConfig:
    if not 0.0 <= config.quality_threshold <= 1.0:
        raise InvalidConfigurationError(f"quality_threshold must be within 0-1, got {config.quality_threshold}")
    if config.calendar_nights < 1:
        raise InvalidConfigurationError(f"calendar_nights must be at least 1, got {config.calendar_nights}")
    if config.timezone_cache_size < 1:
        raise InvalidConfigurationError(f"timezone_cache_size must be at least 1, got {config.timezone_cache_size}")
    return config


def load_config(path: Path | None = None, environ: dict[str, str] | None = None) -> PlannerConfig:
    """
    Load planner configuration from defaults, the config file and the environment.

    Args:
        path: Config file path (default: get_config_path())
        environ: Environment mapping (default: os.environ)

    Returns:
        Merged PlannerConfig

    Raises:
        InvalidConfigurationError: If any value cannot be parsed or is out of range
    """
    config = PlannerConfig()
    config = _apply_file(config, path or get_config_path())
    config = _apply_environment(config, dict(os.environ) if environ is None else environ)
    return _validate(config)


@deal.pre(lambda location, path=None: location is not None, message="Location must be provided")  # type: ignore[misc,arg-type]
def save_default_location(location: ObserverLocation, path: Path | None = None) -> Path:
    """
    Store the default observer location in the config file.

    Other keys already present in the file are preserved.

    Returns:
        Path of the written config file
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open() as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                data = loaded
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Overwriting unreadable config file {config_path}: {e}")

    data["location"] = {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "elevation": location.elevation,
        "name": location.name,
    }

    logger.info(f"Saving default location: {location.display_name}")
    with config_path.open("w") as f:
        json.dump(data, f, indent=2)

    return config_path

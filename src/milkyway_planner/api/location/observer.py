"""
Observer Location

The observer's geographic location used by every locator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from milkyway_planner.api.core.exceptions import InvalidCoordinateError


logger = logging.getLogger(__name__)


__all__ = [
    "DEFAULT_LOCATION",
    "ObserverLocation",
]


@dataclass(frozen=True)
class ObserverLocation:
    """Observer's geographic location."""

    latitude: float  # Degrees north (negative for south)
    longitude: float  # Degrees east (negative for west)
    elevation: float = 0.0  # Meters above sea level
    name: str | None = None  # Optional location name

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidCoordinateError(f"Latitude must be -90 to +90, got {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidCoordinateError(f"Longitude must be -180 to +180, got {self.longitude}")

    @property
    def display_name(self) -> str:
        """Name if set, otherwise formatted coordinates."""
        if self.name:
            return self.name
        lat_dir = "N" if self.latitude >= 0 else "S"
        lon_dir = "E" if self.longitude >= 0 else "W"
        return f"{abs(self.latitude):.2f}°{lat_dir}, {abs(self.longitude):.2f}°{lon_dir}"


# Default location (Joshua Tree National Park, a well-known dark sky site)
DEFAULT_LOCATION = ObserverLocation(
    latitude=34.0,
    longitude=-116.0,
    elevation=0.0,
    name="Joshua Tree (default)",
)

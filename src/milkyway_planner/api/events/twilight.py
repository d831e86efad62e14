"""
Twilight Locator

Astronomical dusk and dawn bounding one night, plus civil twilight,
sunset and sunrise.

Dusk is searched from the local start of the requested day, dawn from the
local start of the following day, so the pair always spans one continuous
dark period even when an event falls close to midnight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from returns.result import Failure, safe

from milkyway_planner.api.core.constants import (
    ASTRONOMICAL_TWILIGHT_ALTITUDE,
    CIVIL_TWILIGHT_ALTITUDE,
    SUNRISE_SUNSET_ALTITUDE,
)
from milkyway_planner.api.core.enums import CrossingDirection, SolarSystemBody
from milkyway_planner.api.core.utils import hours_between, local_day_start
from milkyway_planner.api.ephemeris.adapters import EphemerisAdapter, SkyfieldEphemeris
from milkyway_planner.api.location.observer import ObserverLocation


logger = logging.getLogger(__name__)

__all__ = [
    "NightWindow",
    "calculate_dark_duration",
    "locate_twilight",
]


SEARCH_DAYS = 1.0


@dataclass(frozen=True)
class NightWindow:
    """Twilight boundaries of one night (aware UTC datetimes)."""

    night: datetime | None  # Astronomical dusk (sun descending through -18°)
    day_end: datetime | None  # Astronomical dawn on the following day
    dusk: datetime | None = None  # Civil dusk (-6°)
    dawn: datetime | None = None  # Civil dawn (-6°) on the following day
    sunset: datetime | None = None  # Sun's upper limb sets (-0.833°)
    sunrise: datetime | None = None  # Sunrise on the following day

    @property
    def has_darkness(self) -> bool:
        return self.night is not None and self.day_end is not None


@safe
def _compute_twilight(
    day_start: datetime, location: ObserverLocation, ephemeris: EphemerisAdapter | None
) -> NightWindow:
    adapter: EphemerisAdapter = ephemeris or SkyfieldEphemeris()
    next_day_start = day_start + timedelta(days=1)

    def search(direction: CrossingDirection, start: datetime, altitude: float) -> datetime | None:
        return adapter.search_altitude_crossing(
            SolarSystemBody.SUN,
            location.latitude,
            location.longitude,
            direction,
            start,
            SEARCH_DAYS,
            altitude,
        )

    window = NightWindow(
        night=search(CrossingDirection.SETTING, day_start, ASTRONOMICAL_TWILIGHT_ALTITUDE),
        day_end=search(CrossingDirection.RISING, next_day_start, ASTRONOMICAL_TWILIGHT_ALTITUDE),
        dusk=search(CrossingDirection.SETTING, day_start, CIVIL_TWILIGHT_ALTITUDE),
        dawn=search(CrossingDirection.RISING, next_day_start, CIVIL_TWILIGHT_ALTITUDE),
        sunset=search(CrossingDirection.SETTING, day_start, SUNRISE_SUNSET_ALTITUDE),
        sunrise=search(CrossingDirection.RISING, next_day_start, SUNRISE_SUNSET_ALTITUDE),
    )
    logger.debug(f"Twilight from {day_start.isoformat()} at {location.display_name}: {window}")
    return window


def locate_twilight(
    date: date | datetime,
    location: ObserverLocation,
    ephemeris: EphemerisAdapter | None = None,
) -> NightWindow:
    """
    Find the twilight boundaries of the night starting on a calendar day.

    Args:
        date: Calendar day of the evening (see local_day_start)
        location: Observer location
        ephemeris: Ephemeris adapter (default: SkyfieldEphemeris)

    Returns:
        NightWindow. Fields are None where the sun does not reach the
        altitude (e.g. high-latitude summer), and all None if the
        ephemeris fails.
    """
    day_start = local_day_start(date, location.longitude)
    result = _compute_twilight(day_start, location, ephemeris)
    if isinstance(result, Failure):
        logger.warning(f"Twilight calculation failed for {location.display_name}: {result.failure()}")
    return result.value_or(NightWindow(night=None, day_end=None))


def calculate_dark_duration(window: NightWindow) -> float:
    """
    Hours of astronomical darkness in a night window.

    A non-positive difference is treated as wrapping past midnight and
    has 24 hours added.

    Returns:
        Duration in hours, or 0.0 when either bound is missing
    """
    if window.night is None or window.day_end is None:
        return 0.0

    hours = hours_between(window.night, window.day_end)
    return hours if hours > 0 else hours + 24.0

"""
Galactic Core Locator

Position of the Milky Way's galactic core for an observer, and the times it
rises above, transits and sets below a seasonal altitude threshold.

Rise and set are found by sampling the altitude every 10 minutes over a
window from 6 hours before to 36 hours after the requested time, with
linear interpolation between the samples that bracket each crossing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

import deal
from returns.result import Failure, safe

from milkyway_planner.api.core.constants import (
    DEGREES_PER_HOUR_ANGLE,
    GALACTIC_CENTER_DEC,
    GALACTIC_CENTER_RA,
    SIDEREAL_DAY_HOURS,
)
from milkyway_planner.api.core.utils import (
    ensure_utc,
    hours_between,
    normalize_hour_angle,
)
from milkyway_planner.api.ephemeris.adapters import EphemerisAdapter, SkyfieldEphemeris
from milkyway_planner.api.events.twilight import NightWindow
from milkyway_planner.api.location.observer import ObserverLocation
from milkyway_planner.api.location.timezone import TimezoneAdapter, format_time_in_location_timezone


logger = logging.getLogger(__name__)

__all__ = [
    "GalacticCoreState",
    "format_galactic_core_time",
    "galactic_core_dark_duration",
    "get_altitude_threshold",
    "locate_galactic_core",
]


SAMPLE_INTERVAL_MINUTES = 10
SEARCH_HOURS_BEFORE = 6.0
SEARCH_HOURS_AFTER = 36.0
MAX_TRANSIT_SHIFTS = 8  # Whole sidereal days tried when placing the transit
ASSUMED_VISIBLE_HOURS = 6.0  # Used for the dark-time overlap when no set time is known


@dataclass(frozen=True)
class GalacticCoreState:
    """Galactic core position and threshold events for one observer."""

    altitude: float  # Degrees at the requested time
    azimuth: float  # Degrees at the requested time
    is_visible: bool  # Altitude is at or above the threshold
    rise_time: datetime | None
    transit_time: datetime | None
    set_time: datetime | None
    threshold: float  # Altitude threshold used for rise/set (degrees)


@deal.pre(lambda month: 1 <= month <= 12, message="Month must be 1-12")  # type: ignore[misc,arg-type]
def get_altitude_threshold(month: int) -> float:
    """
    Seasonal altitude threshold for the galactic core.

    The core culminates lower later in the year, so the threshold widens:
    20° January to July, 15° August and September, 10° October to December.

    Args:
        month: Calendar month, 1-12

    Returns:
        Threshold altitude in degrees
    """
    if month <= 7:
        return 20.0
    if month <= 9:
        return 15.0
    return 10.0


@dataclass
class _Crossings:
    rises: list[datetime]
    sets: list[datetime]
    final_altitude: float


def _scan_crossings(
    altitude_at: Callable[[datetime], float],
    start: datetime,
    hours: float,
    threshold: float,
    initial_rise: bool,
) -> _Crossings:
    """Sample the altitude on a fixed grid and record threshold crossings."""
    step = timedelta(minutes=SAMPLE_INTERVAL_MINUTES)
    sample_count = int(hours * 60 / SAMPLE_INTERVAL_MINUTES)

    rises: list[datetime] = []
    sets: list[datetime] = []

    previous_time = start
    previous_altitude = altitude_at(start)
    if initial_rise and previous_altitude >= threshold:
        rises.append(start)

    for i in range(1, sample_count + 1):
        time = start + i * step
        altitude = altitude_at(time)

        rising = previous_altitude < threshold <= altitude
        setting = previous_altitude >= threshold > altitude
        if rising or setting:
            fraction = (threshold - previous_altitude) / (altitude - previous_altitude)
            crossing = previous_time + step * fraction
            (rises if rising else sets).append(crossing)

        previous_time = time
        previous_altitude = altitude

    return _Crossings(rises=rises, sets=sets, final_altitude=previous_altitude)


def _estimate_transit(
    date: datetime,
    location: ObserverLocation,
    ephemeris: EphemerisAdapter,
    rise: datetime | None,
    set_: datetime | None,
) -> datetime:
    """
    Transit time from local sidereal time, moved by whole sidereal days
    into [rise, set] when possible.
    """
    local_sidereal = ephemeris.sidereal_time(date) + location.longitude / DEGREES_PER_HOUR_ANGLE
    hour_angle = normalize_hour_angle(local_sidereal - GALACTIC_CENTER_RA)
    # Sidereal hours run slightly faster than solar hours
    raw_transit = date - timedelta(hours=hour_angle * SIDEREAL_DAY_HOURS / 24.0)

    if rise is None or set_ is None:
        return raw_transit

    sidereal_day = timedelta(hours=SIDEREAL_DAY_HOURS)
    transit = raw_transit
    for _ in range(MAX_TRANSIT_SHIFTS):
        if transit < rise:
            transit += sidereal_day
        elif transit > set_:
            transit -= sidereal_day
        else:
            return transit

    logger.debug(f"Transit estimate {raw_transit} could not be placed in [{rise}, {set_}]")
    return raw_transit


@safe
def _compute_galactic_core(
    date: datetime, location: ObserverLocation, ephemeris: EphemerisAdapter | None, threshold: float
) -> GalacticCoreState:
    adapter: EphemerisAdapter = ephemeris or SkyfieldEphemeris()

    def altitude_at(time: datetime) -> float:
        return adapter.horizontal_position(
            time,
            location.latitude,
            location.longitude,
            location.elevation,
            GALACTIC_CENTER_RA,
            GALACTIC_CENTER_DEC,
        ).altitude

    current = adapter.horizontal_position(
        date,
        location.latitude,
        location.longitude,
        location.elevation,
        GALACTIC_CENTER_RA,
        GALACTIC_CENTER_DEC,
    )

    window_start = date - timedelta(hours=SEARCH_HOURS_BEFORE)
    crossings = _scan_crossings(
        altitude_at, window_start, SEARCH_HOURS_BEFORE + SEARCH_HOURS_AFTER, threshold, initial_rise=True
    )

    rise = crossings.rises[0] if crossings.rises else None
    set_ = None
    if rise is not None:
        set_ = next((s for s in crossings.sets if s > rise), None)
        if set_ is None and crossings.final_altitude >= threshold:
            window_end = date + timedelta(hours=SEARCH_HOURS_AFTER)
            extended = _scan_crossings(altitude_at, window_end, SEARCH_HOURS_AFTER, threshold, initial_rise=False)
            set_ = extended.sets[0] if extended.sets else None

    transit = _estimate_transit(date, location, adapter, rise, set_)

    logger.debug(
        f"Galactic core at {date.isoformat()}: alt={current.altitude:.1f}° az={current.azimuth:.1f}° "
        f"threshold={threshold}° rise={rise} transit={transit} set={set_}"
    )

    return GalacticCoreState(
        altitude=current.altitude,
        azimuth=current.azimuth,
        is_visible=current.altitude >= threshold,
        rise_time=rise,
        transit_time=transit,
        set_time=set_,
        threshold=threshold,
    )


def locate_galactic_core(
    date: datetime,
    location: ObserverLocation,
    ephemeris: EphemerisAdapter | None = None,
) -> GalacticCoreState:
    """
    Locate the galactic core for an observer.

    Args:
        date: Time of interest (naive values are treated as UTC)
        location: Observer location
        ephemeris: Ephemeris adapter (default: SkyfieldEphemeris)

    Returns:
        GalacticCoreState. If the ephemeris fails, a neutral state with
        zero altitude/azimuth and no event times.
    """
    date = ensure_utc(date)
    threshold = get_altitude_threshold(date.month)

    result = _compute_galactic_core(date, location, ephemeris, threshold)
    if isinstance(result, Failure):
        logger.warning(f"Galactic core calculation failed for {location.display_name}: {result.failure()}")

    return result.value_or(
        GalacticCoreState(
            altitude=0.0,
            azimuth=0.0,
            is_visible=False,
            rise_time=None,
            transit_time=None,
            set_time=None,
            threshold=threshold,
        )
    )


def format_galactic_core_time(
    state: GalacticCoreState,
    location: ObserverLocation,
    timezone: TimezoneAdapter | None = None,
) -> str:
    """
    Format the galactic core rise time (or transit time) as local HH:MM.

    Returns:
        "HH:MM", or "Not visible" when neither time is known
    """
    time = state.rise_time or state.transit_time
    if time is None:
        return "Not visible"
    return format_time_in_location_timezone(time, location, timezone)


def galactic_core_dark_duration(state: GalacticCoreState, night: NightWindow) -> str:
    """
    Overlap of the galactic core's visible period with astronomical darkness.

    Assumes a 6 hour visible period when no set time is known.

    Returns:
        "Hh Mm", "No dark time" when the rise or darkness bounds are
        missing, or "No overlap"
    """
    if state.rise_time is None or night.night is None or night.day_end is None:
        return "No dark time"

    gc_end = state.set_time or state.rise_time + timedelta(hours=ASSUMED_VISIBLE_HOURS)
    overlap_start = max(state.rise_time, night.night)
    overlap_end = min(gc_end, night.day_end)
    if overlap_start >= overlap_end:
        return "No overlap"

    total_minutes = int(hours_between(overlap_start, overlap_end) * 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"

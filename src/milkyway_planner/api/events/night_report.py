"""
Night Report

Runs the full per-night pipeline (twilight, galactic core, moon, scoring,
window synthesis and point rating) and assembles the result into a
NightReport. A calendar of several nights computes each night
independently in worker threads and returns them in date order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from milkyway_planner.api.core.utils import local_day_start
from milkyway_planner.api.ephemeris.adapters import EphemerisAdapter, LunarAdapter, SkyfieldEphemeris
from milkyway_planner.api.events.galactic_core import GalacticCoreState, locate_galactic_core
from milkyway_planner.api.events.moon import LunarState, locate_moon
from milkyway_planner.api.events.optimal_window import OptimalWindow, get_optimal_viewing_window
from milkyway_planner.api.events.scoring import (
    ObservationScore,
    Rating,
    build_observation_inputs,
    compute_gc_observation_score,
    create_gc_altitude_function,
)
from milkyway_planner.api.events.twilight import NightWindow, calculate_dark_duration, locate_twilight
from milkyway_planner.api.events.visibility_rating import VisibilityRating, calculate_point_rating
from milkyway_planner.api.location.observer import ObserverLocation
from milkyway_planner.api.location.timezone import TimezoneAdapter, TimezoneFinderAdapter


logger = logging.getLogger(__name__)

__all__ = [
    "NightReport",
    "compute_calendar",
    "compute_calendar_async",
    "compute_night_report",
]


@dataclass(frozen=True)
class NightReport:
    """Everything known about one night's Milky Way viewing."""

    date: date  # Calendar date of the evening
    location: ObserverLocation
    galactic_core: GalacticCoreState
    moon: LunarState
    night_window: NightWindow
    optimal_window: OptimalWindow
    rating: Rating  # Scorer rating, 0-4
    visibility: VisibilityRating  # Point-based rating, 0-4 stars
    score: ObservationScore  # Full scorer output including the curve
    dark_hours: float


def _calendar_date(day: date | datetime) -> date:
    return day.date() if isinstance(day, datetime) else day


def compute_night_report(
    date: date | datetime,
    location: ObserverLocation,
    ephemeris: EphemerisAdapter | None = None,
    lunar: LunarAdapter | None = None,
    timezone: TimezoneAdapter | None = None,
    quality_threshold: float = 0.3,
) -> NightReport:
    """
    Compute the report for the night beginning on a calendar date.

    The galactic core and moon are located at the night's astronomical
    dusk (local noon when there is none), so their rise and set are the
    ones overlapping that night.

    Args:
        date: Calendar date of the evening
        location: Observer location
        ephemeris: Ephemeris adapter (default: SkyfieldEphemeris)
        lunar: Lunar adapter (default: the ephemeris adapter when it is a
            SkyfieldEphemeris, otherwise a new one)
        timezone: Timezone adapter for the daylight check
        quality_threshold: Minimum sample score for a quality period

    Returns:
        NightReport
    """
    if ephemeris is None:
        ephemeris = SkyfieldEphemeris()
    if lunar is None:
        lunar = ephemeris if isinstance(ephemeris, SkyfieldEphemeris) else SkyfieldEphemeris()
    if timezone is None:
        timezone = TimezoneFinderAdapter()

    night_date = _calendar_date(date)
    night = locate_twilight(date, location, ephemeris)
    anchor = night.night or local_day_start(date, location.longitude) + timedelta(hours=12)

    gc = locate_galactic_core(anchor, location, ephemeris)
    moon = locate_moon(anchor, location, lunar)

    inputs = build_observation_inputs(gc, moon, night, location, anchor, ephemeris, lunar)
    score = compute_gc_observation_score(inputs)
    window = get_optimal_viewing_window(
        gc, moon, night, location, anchor, quality_threshold, ephemeris, lunar, score=score
    )

    dark_hours = calculate_dark_duration(night)
    gc_altitude = gc.altitude
    if window.start_time is not None:
        gc_altitude = create_gc_altitude_function(location, ephemeris)(window.start_time)
    visibility = calculate_point_rating(gc_altitude, moon, dark_hours, window, location, timezone)

    logger.info(
        f"{night_date.isoformat()} at {location.display_name}: rating {score.rating} ({score.reason}), "
        f"{visibility.stars} stars, window {window.description}"
    )
    return NightReport(
        date=night_date,
        location=location,
        galactic_core=gc,
        moon=moon,
        night_window=night,
        optimal_window=window,
        rating=score.as_rating(),
        visibility=visibility,
        score=score,
        dark_hours=dark_hours,
    )


async def compute_calendar_async(
    start: date | datetime,
    location: ObserverLocation,
    nights: int = 7,
    ephemeris: EphemerisAdapter | None = None,
    lunar: LunarAdapter | None = None,
    timezone: TimezoneAdapter | None = None,
    quality_threshold: float = 0.3,
) -> list[NightReport]:
    """
    Compute reports for consecutive nights concurrently.

    Each night runs in its own worker thread. Results are sorted by date.
    """
    if ephemeris is None:
        ephemeris = SkyfieldEphemeris()
    if timezone is None:
        timezone = TimezoneFinderAdapter()

    first = _calendar_date(start)
    tasks = [
        asyncio.to_thread(
            compute_night_report,
            first + timedelta(days=offset),
            location,
            ephemeris,
            lunar,
            timezone,
            quality_threshold,
        )
        for offset in range(nights)
    ]
    reports = await asyncio.gather(*tasks)
    return sorted(reports, key=lambda report: report.date)


def compute_calendar(
    start: date | datetime,
    location: ObserverLocation,
    nights: int = 7,
    ephemeris: EphemerisAdapter | None = None,
    lunar: LunarAdapter | None = None,
    timezone: TimezoneAdapter | None = None,
    quality_threshold: float = 0.3,
) -> list[NightReport]:
    """
    Compute reports for `nights` consecutive nights starting on `start`.

    Returns:
        NightReports ordered by date
    """
    return asyncio.run(
        compute_calendar_async(start, location, nights, ephemeris, lunar, timezone, quality_threshold)
    )

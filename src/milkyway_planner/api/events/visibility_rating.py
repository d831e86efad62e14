"""
Point-Based Visibility Rating

A simple 0-4 star summary built from three point contributions:

- galactic core altitude: 1.5 points per degree, up to 50
- moon interference: up to 30 points subtracted
- hours of astronomical darkness: 0-30 points in steps

It is reported next to the scorer's rating as a cross-check and plays no
part in choosing the observation window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

import deal

from milkyway_planner.api.core.utils import ensure_utc
from milkyway_planner.api.events.moon import LunarState, moon_interference
from milkyway_planner.api.events.optimal_window import OptimalWindow
from milkyway_planner.api.location.observer import ObserverLocation
from milkyway_planner.api.location.timezone import TimezoneAdapter, longitude_offset_hours


logger = logging.getLogger(__name__)

__all__ = [
    "VisibilityRating",
    "altitude_points",
    "calculate_point_rating",
    "darkness_points",
    "get_visibility_description",
    "stars_for_points",
]


MAX_ALTITUDE_POINTS = 50.0
POINTS_PER_DEGREE = 1.5
MAX_MOON_PENALTY = 30.0
DAYLIGHT_HOURS = range(6, 19)  # Local hours 06:00-18:59

# (minimum dark hours, points), checked in order
DARKNESS_BUCKETS: tuple[tuple[float, float], ...] = (
    (8.0, 30.0),
    (6.0, 25.0),
    (4.0, 20.0),
    (2.0, 10.0),
)

# (minimum points, stars), checked in order
STAR_THRESHOLDS: tuple[tuple[float, int], ...] = (
    (60.0, 4),
    (45.0, 3),
    (25.0, 2),
)

_DESCRIPTIONS = {
    0: "No visibility - Milky Way not visible during dark hours",
    1: "Poor visibility - significant light pollution or unfavorable conditions",
    2: "Fair visibility - some details visible with patience",
    3: "Good visibility - clear Milky Way structure visible",
    4: "Excellent visibility - optimal conditions for observation and photography",
}


@dataclass(frozen=True)
class VisibilityRating:
    """Star rating and the points it was built from."""

    stars: int  # 0-4
    points: float
    altitude_points: float
    moon_penalty: float
    darkness_points: float
    reason: str


def altitude_points(gc_altitude: float) -> float:
    """Points for galactic core altitude, 0 to 50."""
    return max(0.0, min(gc_altitude * POINTS_PER_DEGREE, MAX_ALTITUDE_POINTS))


@deal.pre(lambda dark_hours: dark_hours >= 0, message="Dark hours cannot be negative")  # type: ignore[misc,arg-type]
def darkness_points(dark_hours: float) -> float:
    """Points for the length of astronomical darkness, 0 to 30."""
    for minimum, points in DARKNESS_BUCKETS:
        if dark_hours >= minimum:
            return points
    return 0.0


def stars_for_points(points: float) -> int:
    """Map a point total to 1-4 stars."""
    for minimum, stars in STAR_THRESHOLDS:
        if points >= minimum:
            return stars
    return 1


def get_visibility_description(stars: int) -> str:
    """Describe a star rating in words."""
    return _DESCRIPTIONS.get(stars, "Unknown visibility")


def _local_hour(time: datetime, location: ObserverLocation, timezone: TimezoneAdapter | None) -> int:
    if timezone is not None:
        try:
            return timezone.local_hour(time, location)
        except Exception as e:
            logger.warning(f"Timezone lookup failed for {location.display_name}, using longitude offset: {e}")

    return (ensure_utc(time).hour + longitude_offset_hours(location.longitude)) % 24


def _gate_reason(window: OptimalWindow, location: ObserverLocation, timezone: TimezoneAdapter | None) -> str | None:
    if window.start_time is None:
        return "No observation window"
    if window.duration <= 0:
        return "Observation window has no duration"
    hour = _local_hour(window.start_time, location, timezone)
    if hour in DAYLIGHT_HOURS:
        return f"Observation window starts in daylight ({hour:02d}:00 local)"
    return None


def calculate_point_rating(
    gc_altitude: float,
    moon: LunarState,
    dark_hours: float,
    window: OptimalWindow,
    location: ObserverLocation,
    timezone: TimezoneAdapter | None = None,
) -> VisibilityRating:
    """
    Rate a night from altitude, moon and darkness points.

    The rating is forced to 0 stars when the window is missing, has no
    duration, or starts during local daylight (06-18h). The local hour
    comes from the timezone adapter, or a longitude/15 offset when no
    adapter is given or it fails.

    Args:
        gc_altitude: Galactic core altitude in degrees (at the window start)
        moon: Lunar state
        dark_hours: Hours of astronomical darkness
        window: Recommended observation window
        location: Observer location
        timezone: Timezone adapter for the daylight check

    Returns:
        VisibilityRating with the stars and each point contribution
    """
    alt_points = altitude_points(gc_altitude)
    penalty = moon_interference(moon) * MAX_MOON_PENALTY
    dark_points = darkness_points(max(dark_hours, 0.0))
    total = max(0.0, alt_points - penalty + dark_points)

    gate = _gate_reason(window, location, timezone)
    if gate is not None:
        stars = 0
        reason = gate
    else:
        stars = stars_for_points(total)
        reason = (
            f"{total:.0f} points: altitude {alt_points:.0f}, moon -{penalty:.0f}, darkness {dark_points:.0f}"
        )

    logger.debug(f"Point rating for {location.display_name}: {stars} stars ({reason})")
    return VisibilityRating(
        stars=stars,
        points=total,
        altitude_points=alt_points,
        moon_penalty=penalty,
        darkness_points=dark_points,
        reason=reason,
    )

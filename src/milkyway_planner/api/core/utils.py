"""
Utility functions for coordinate handling and small numeric helpers
shared by the locators, the scorer and the CLI.

Angular math goes through Astropy so that wrap-around and unit handling
come from a well-tested astronomy library.
"""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, timedelta

from astropy import units as u
from astropy.coordinates import Angle
from astropy.coordinates import angular_separation as _astropy_separation

from milkyway_planner.api.core.constants import DEGREES_PER_HOUR_ANGLE


__all__ = [
    "angular_separation",
    "ensure_utc",
    "format_dec",
    "format_duration",
    "format_ra",
    "hours_between",
    "local_calendar_date",
    "local_day_start",
    "normalize_azimuth",
    "normalize_hour_angle",
    "round_half_up",
]


def ensure_utc(dt: datetime) -> datetime:
    """
    Return an aware UTC datetime.

    Naive datetimes are assumed to already be in UTC.
    """
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


def hours_between(start: datetime, end: datetime) -> float:
    """Signed number of hours from start to end."""
    return (end - start).total_seconds() / 3600.0


def normalize_azimuth(azimuth: float) -> float:
    """
    Wrap an azimuth into [0, 360).

    Args:
        azimuth: Azimuth in degrees, any range

    Returns:
        Azimuth in degrees within [0, 360)
    """
    wrapped = float(Angle(azimuth, unit=u.deg).wrap_at(360 * u.deg).degree)
    # wrap_at can return exactly 360.0 for values a hair below 0
    return 0.0 if wrapped >= 360.0 else wrapped


def normalize_hour_angle(hours: float) -> float:
    """Wrap an hour angle into [-12, 12)."""
    wrapped = float(Angle(hours, unit=u.hourangle).wrap_at(12 * u.hourangle).hour)
    return -12.0 if wrapped >= 12.0 else wrapped


def angular_separation(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """
    Calculate the great-circle separation between two points on the sphere.

    Works for any pair of spherical coordinates: (RA, Dec) in degrees or
    (azimuth, altitude) in degrees.

    Args:
        lon1: First longitude-like coordinate in degrees
        lat1: First latitude-like coordinate in degrees
        lon2: Second longitude-like coordinate in degrees
        lat2: Second latitude-like coordinate in degrees

    Returns:
        Angular separation in degrees (0-180)
    """
    separation = _astropy_separation(lon1 * u.deg, lat1 * u.deg, lon2 * u.deg, lat2 * u.deg)
    return float(separation.to_value(u.deg))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def format_duration(hours: float) -> str:
    """
    Format a duration in hours as a compact string.

    Returns:
        "Hh Mm", "Hh" or "Mm"; empty string for non-positive durations
    """
    if hours <= 0:
        return ""

    whole_hours = int(math.floor(hours))
    minutes = round_half_up((hours % 1) * 60)
    if minutes == 60:
        whole_hours += 1
        minutes = 0

    if whole_hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{whole_hours}h"
    return f"{whole_hours}h {minutes}m"


def format_ra(hours: float, precision: int = 0) -> str:
    """
    Format RA as a readable string.

    Args:
        hours: RA in decimal hours
        precision: Decimal places for seconds

    Returns:
        Formatted string (e.g., "17h 45m 33s")
    """
    angle = Angle(hours, unit=u.hour)
    hms = angle.hms
    width = precision + 3 if precision else 2
    return f"{int(hms.h):02d}h {int(hms.m):02d}m {hms.s:0{width}.{precision}f}s"


def format_dec(degrees: float, precision: int = 0) -> str:
    """
    Format Dec as a readable string.

    Args:
        degrees: Dec in decimal degrees
        precision: Decimal places for arcseconds

    Returns:
        Formatted string (e.g., "-29° 00' 25\"")
    """
    angle = Angle(degrees, unit=u.deg)
    dms = angle.dms
    sign = "+" if degrees >= 0 else "-"
    width = precision + 3 if precision else 2
    return f"{sign}{int(abs(dms.d)):02d}° {int(abs(dms.m)):02d}' {abs(dms.s):0{width}.{precision}f}\""


def local_day_start(day: date | datetime, longitude: float) -> datetime:
    """
    Start of the observer's calendar day, as an aware UTC datetime.

    Aware datetimes use midnight of their own date in their own timezone.
    Plain dates and naive datetimes are read as a calendar date at the
    observer, whose midnight is approximated by local mean time
    (UTC midnight shifted by -longitude/15 hours).

    Args:
        day: Calendar date, or a datetime whose date is used
        longitude: Observer longitude in degrees (positive east)

    Returns:
        Aware UTC datetime of local midnight
    """
    if isinstance(day, datetime) and day.tzinfo is not None:
        midnight = day.replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight.astimezone(UTC)

    utc_midnight = datetime(day.year, day.month, day.day, tzinfo=UTC)
    return utc_midnight - timedelta(hours=longitude / DEGREES_PER_HOUR_ANGLE)


def local_calendar_date(time: datetime, longitude: float) -> date:
    """Calendar date of an instant in the observer's local mean time."""
    return (ensure_utc(time) + timedelta(hours=longitude / DEGREES_PER_HOUR_ANGLE)).date()

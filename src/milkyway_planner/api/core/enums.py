"""
Common Enums

Enumerations used throughout the Milky Way planner API.
"""

from enum import IntEnum, StrEnum


__all__ = [
    "CrossingDirection",
    "MoonPhase",
    "SolarSystemBody",
    "ViewingQuality",
]


class MoonPhase(StrEnum):
    """Moon phase names."""

    NEW_MOON = "New Moon"
    WAXING_CRESCENT = "Waxing Crescent"
    FIRST_QUARTER = "First Quarter"
    WAXING_GIBBOUS = "Waxing Gibbous"
    FULL_MOON = "Full Moon"
    WANING_GIBBOUS = "Waning Gibbous"
    LAST_QUARTER = "Last Quarter"
    WANING_CRESCENT = "Waning Crescent"


class ViewingQuality(StrEnum):
    """Quality label attached to a period of the quality curve."""

    EXCELLENT = "excellent"  # average score >= 0.8
    GOOD = "good"  # average score >= 0.6
    FAIR = "fair"  # average score >= 0.4
    POOR = "poor"  # below 0.4


class SolarSystemBody(StrEnum):
    """Bodies the ephemeris adapter can search altitude crossings for."""

    SUN = "sun"
    MOON = "moon"


class CrossingDirection(IntEnum):
    """Direction of an altitude crossing."""

    RISING = 1
    SETTING = -1

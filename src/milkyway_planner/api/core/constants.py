"""
Physical and Astronomical Constants

Constants used throughout the Milky Way planner for galactic core,
twilight and scoring calculations.
"""

from typing import Final


__all__ = [
    "ASTRONOMICAL_TWILIGHT_ALTITUDE",
    "CIVIL_TWILIGHT_ALTITUDE",
    "DEGREES_PER_HOUR_ANGLE",
    "GALACTIC_CENTER_DEC",
    "GALACTIC_CENTER_RA",
    "MAX_VISIBLE_LATITUDE",
    "MIN_SCORING_ALTITUDE",
    "MIN_WINDOW_MINUTES",
    "SIDEREAL_DAY_HOURS",
    "SUNRISE_SUNSET_ALTITUDE",
]


# Galactic core (Sagittarius A*), J2000
GALACTIC_CENTER_RA: Final[float] = 17.759
"""Right ascension of the galactic core in hours (17h 45m 36s)."""

GALACTIC_CENTER_DEC: Final[float] = -29.007
"""Declination of the galactic core in degrees (-29° 0' 25")."""

# Astronomical constants
DEGREES_PER_HOUR_ANGLE: Final[float] = 15.0
"""Degrees of sky rotation per hour of Right Ascension."""

SIDEREAL_DAY_HOURS: Final[float] = 23.9344696
"""Length of one sidereal day in solar hours."""

# Sun altitudes that bound the night
ASTRONOMICAL_TWILIGHT_ALTITUDE: Final[float] = -18.0
"""Sun altitude (degrees) at which astronomical night begins and ends."""

CIVIL_TWILIGHT_ALTITUDE: Final[float] = -6.0
"""Sun altitude (degrees) at which civil twilight begins and ends."""

SUNRISE_SUNSET_ALTITUDE: Final[float] = -0.833
"""Sun altitude (degrees) at sunrise and sunset: upper limb on the horizon with standard refraction."""

# Scoring limits
MAX_VISIBLE_LATITUDE: Final[float] = 61.0
"""Beyond this absolute latitude the galactic core never clears the scoring cutoff."""

MIN_SCORING_ALTITUDE: Final[float] = 15.0
"""Samples with the galactic core below this altitude (degrees) are not scored."""

MIN_WINDOW_MINUTES: Final[float] = 30.0
"""Shortest night/core overlap (minutes) that is worth scoring."""

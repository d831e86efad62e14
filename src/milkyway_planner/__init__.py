"""
Milky Way Planner

Plans galactic core viewing: for any location and date it finds when the
core of the Milky Way is well placed in a dark, moon-free sky, rates the
night from 0 to 4, and recommends an observation window.

Example:
    >>> from datetime import date
    >>> from milkyway_planner import ObserverLocation, compute_night_report
    >>> report = compute_night_report(date(2024, 7, 15), ObserverLocation(34.0, -116.0))
    >>> print(report.rating.rating, report.rating.reason)
    >>> print(report.optimal_window.description)
"""

from milkyway_planner.api.core.exceptions import (
    ConfigurationError,
    EphemerisError,
    EphemerisFileNotFoundError,
    InvalidConfigurationError,
    InvalidCoordinateError,
    LocationError,
    MilkyWayPlannerError,
)
from milkyway_planner.api.events.night_report import NightReport, compute_calendar, compute_night_report
from milkyway_planner.api.location.observer import ObserverLocation


__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "EphemerisError",
    "EphemerisFileNotFoundError",
    "InvalidConfigurationError",
    "InvalidCoordinateError",
    "LocationError",
    "MilkyWayPlannerError",
    "NightReport",
    "ObserverLocation",
    "__version__",
    "compute_calendar",
    "compute_night_report",
]

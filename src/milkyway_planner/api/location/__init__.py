"""Location subpackage: observer location and timezone lookup."""

from milkyway_planner.api.location.observer import DEFAULT_LOCATION, ObserverLocation
from milkyway_planner.api.location.timezone import TimezoneCache, TimezoneFinderAdapter


__all__ = [
    "DEFAULT_LOCATION",
    "ObserverLocation",
    "TimezoneCache",
    "TimezoneFinderAdapter",
]

"""
Timezone Lookup

Maps an observer location to its IANA timezone. Used only to decide
whether a time falls in local daylight hours and to format times for
display.

Lookups are memoized in an explicit TimezoneCache that callers create and
pass in, so that independent computations never share hidden state.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from cachetools import LRUCache

from milkyway_planner.api.core.constants import DEGREES_PER_HOUR_ANGLE
from milkyway_planner.api.core.utils import ensure_utc


if TYPE_CHECKING:
    from timezonefinder import TimezoneFinder

    from milkyway_planner.api.location.observer import ObserverLocation


logger = logging.getLogger(__name__)


__all__ = [
    "TimezoneAdapter",
    "TimezoneCache",
    "TimezoneFinderAdapter",
    "format_time_in_location_timezone",
    "longitude_offset_hours",
]


def longitude_offset_hours(longitude: float) -> int:
    """Whole-hour offset from UTC approximated from longitude."""
    return round(longitude / DEGREES_PER_HOUR_ANGLE)


class TimezoneCache:
    """
    Bounded memo of location -> IANA timezone name.

    Keys are coordinates rounded to two decimals. A stored value of None
    records that the lookup failed, so the longitude fallback is used
    without retrying.
    """

    def __init__(self, maxsize: int = 256) -> None:
        self._cache: LRUCache[tuple[float, float], str | None] = LRUCache(maxsize=maxsize)
        self._lock = threading.Lock()

    @staticmethod
    def key(latitude: float, longitude: float) -> tuple[float, float]:
        return (round(latitude, 2), round(longitude, 2))

    def get(self, latitude: float, longitude: float) -> tuple[bool, str | None]:
        """Return (hit, timezone name)."""
        with self._lock:
            key = self.key(latitude, longitude)
            if key in self._cache:
                return True, self._cache[key]
            return False, None

    def put(self, latitude: float, longitude: float, tz_name: str | None) -> None:
        with self._lock:
            self._cache[self.key(latitude, longitude)] = tz_name

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class TimezoneAdapter(Protocol):
    """Anything that can tell the local hour at a location."""

    def local_hour(self, time: datetime, location: ObserverLocation) -> int: ...

    def local_time(self, time: datetime, location: ObserverLocation) -> datetime: ...


class TimezoneFinderAdapter:
    """TimezoneAdapter backed by timezonefinder and zoneinfo."""

    def __init__(self, cache: TimezoneCache | None = None, finder: TimezoneFinder | None = None) -> None:
        self.cache = cache if cache is not None else TimezoneCache()
        self._finder = finder

    def _get_finder(self) -> TimezoneFinder:
        if self._finder is None:
            from timezonefinder import TimezoneFinder

            self._finder = TimezoneFinder()
        return self._finder

    def timezone_name(self, location: ObserverLocation) -> str | None:
        """
        Get the IANA timezone name for a location.

        Returns:
            Timezone name, or None if it cannot be determined
        """
        hit, cached = self.cache.get(location.latitude, location.longitude)
        if hit:
            return cached

        tz_name: str | None = None
        try:
            tz_name = self._get_finder().timezone_at(lat=location.latitude, lng=location.longitude)
        except Exception as e:
            logger.debug(f"Timezone lookup failed for {location.display_name}: {e}")

        self.cache.put(location.latitude, location.longitude, tz_name)
        return tz_name

    def local_time(self, time: datetime, location: ObserverLocation) -> datetime:
        """
        Convert a time to the location's local time.

        Falls back to a fixed longitude/15 offset when no IANA zone is known.
        """
        utc_time = ensure_utc(time)
        tz_name = self.timezone_name(location)
        if tz_name:
            try:
                return utc_time.astimezone(ZoneInfo(tz_name))
            except ZoneInfoNotFoundError:
                logger.debug(f"Unknown zoneinfo key {tz_name}, using longitude offset")

        return utc_time + timedelta(hours=longitude_offset_hours(location.longitude))

    def local_hour(self, time: datetime, location: ObserverLocation) -> int:
        """Local hour of day (0-23) at the location."""
        return self.local_time(time, location).hour


def format_time_in_location_timezone(
    time: datetime | None,
    location: ObserverLocation,
    timezone: TimezoneAdapter | None = None,
) -> str:
    """
    Format a time as HH:MM (24-hour) in the location's timezone.

    Returns:
        "HH:MM", or "—" when no time is given
    """
    if time is None:
        return "—"

    adapter = timezone if timezone is not None else TimezoneFinderAdapter()
    return adapter.local_time(time, location).strftime("%H:%M")

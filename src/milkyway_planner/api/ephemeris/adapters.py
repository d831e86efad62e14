"""
Ephemeris Adapters

Interfaces the locators use to query the sky, plus the default
Skyfield-backed implementation.

Fixed targets (the galactic core) are observed as Skyfield stars from a
geodetic observer, so they are precessed and nutated to the date. All
queries use the JPL kernel configured in PlannerConfig (DE440s by
default), loaded lazily on first use.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol

from milkyway_planner.api.core.config import PlannerConfig, load_config
from milkyway_planner.api.core.enums import CrossingDirection, SolarSystemBody
from milkyway_planner.api.core.exceptions import EphemerisError, EphemerisFileNotFoundError
from milkyway_planner.api.core.utils import ensure_utc, local_day_start, normalize_azimuth
from milkyway_planner.api.ephemeris.skyfield_utils import get_skyfield_loader, get_timescale


if TYPE_CHECKING:
    from skyfield.jpllib import SpiceKernel


logger = logging.getLogger(__name__)

__all__ = [
    "EphemerisAdapter",
    "HorizontalPosition",
    "LunarAdapter",
    "MoonIllumination",
    "MoonTimes",
    "SkyfieldEphemeris",
    "SkyfieldLunarEphemeris",
]


class HorizontalPosition(NamedTuple):
    """Position in the observer's sky."""

    altitude: float  # Degrees above the horizon, -90 to 90
    azimuth: float  # Degrees east of north, 0 to 360


class MoonIllumination(NamedTuple):
    """Lunar phase and lit fraction."""

    phase: float  # 0 = new, 0.5 = full, 1 = next new
    fraction: float  # Illuminated fraction of the disk, 0 to 1


class MoonTimes(NamedTuple):
    """Moonrise and moonset for one calendar day (either may be missing)."""

    rise: datetime | None
    set: datetime | None


class EphemerisAdapter(Protocol):
    """Celestial ephemeris queries used by the galactic core and twilight locators."""

    def horizontal_position(
        self,
        time: datetime,
        latitude: float,
        longitude: float,
        elevation: float,
        ra_hours: float,
        dec_degrees: float,
    ) -> HorizontalPosition: ...

    def search_altitude_crossing(
        self,
        body: SolarSystemBody,
        latitude: float,
        longitude: float,
        direction: CrossingDirection,
        start: datetime,
        max_days: float,
        target_altitude: float,
    ) -> datetime | None: ...

    def sidereal_time(self, time: datetime) -> float: ...


class LunarAdapter(Protocol):
    """Lunar ephemeris queries used by the lunar locator."""

    def moon_position(self, time: datetime, latitude: float, longitude: float) -> HorizontalPosition: ...

    def moon_illumination(self, time: datetime) -> MoonIllumination: ...

    def moon_times(self, day: date | datetime, latitude: float, longitude: float) -> MoonTimes: ...


class SkyfieldEphemeris:
    """
    Skyfield implementation of the ephemeris and lunar adapter interfaces.

    One instance loads its kernel at most once; instances share no state.
    """

    # Sampling step for the discrete search, small enough not to miss
    # a Sun or Moon crossing
    _SEARCH_STEP_DAYS = 1.0 / 48.0

    def __init__(self, config: PlannerConfig | None = None) -> None:
        self._config = config if config is not None else load_config()
        self._ts = get_timescale()
        self._kernel: SpiceKernel | None = None
        self._kernel_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Kernel handling
    # ------------------------------------------------------------------

    def _get_kernel(self) -> SpiceKernel:
        with self._kernel_lock:
            if self._kernel is None:
                loader = get_skyfield_loader(self._config.skyfield_dir)
                filename = self._config.ephemeris_file
                try:
                    self._kernel = loader(filename)
                except FileNotFoundError as e:
                    logger.error(f"Ephemeris file {filename} not found in {self._config.skyfield_dir}: {e}")
                    raise EphemerisFileNotFoundError(f"Ephemeris file {filename} is not available") from e
                except OSError as e:
                    logger.error(f"Failed to load ephemeris {filename}: {e}")
                    raise EphemerisError(f"Failed to load ephemeris {filename}: {e}") from e
                logger.debug(f"Loaded ephemeris kernel {filename}")
            return self._kernel

    def _body(self, body: SolarSystemBody) -> Any:
        return self._get_kernel()[body.value]

    def _observer(self, latitude: float, longitude: float, elevation: float = 0.0) -> Any:
        from skyfield.api import wgs84

        earth = self._get_kernel()["earth"]
        return earth + wgs84.latlon(latitude, longitude, elevation_m=elevation)

    # ------------------------------------------------------------------
    # EphemerisAdapter
    # ------------------------------------------------------------------

    def sidereal_time(self, time: datetime) -> float:
        """Greenwich mean sidereal time in hours."""
        t = self._ts.from_datetime(ensure_utc(time))
        return float(t.gmst)

    def horizontal_position(
        self,
        time: datetime,
        latitude: float,
        longitude: float,
        elevation: float,
        ra_hours: float,
        dec_degrees: float,
    ) -> HorizontalPosition:
        """
        Apparent altitude and azimuth of a fixed J2000 RA/Dec for an observer.

        The position is precessed and nutated to the date of observation.
        No refraction is applied.
        """
        from skyfield.api import Star

        t = self._ts.from_datetime(ensure_utc(time))
        target = Star(ra_hours=ra_hours, dec_degrees=dec_degrees)
        observer = self._observer(latitude, longitude, elevation)
        alt, az, _distance = observer.at(t).observe(target).apparent().altaz()
        return HorizontalPosition(altitude=float(alt.degrees), azimuth=normalize_azimuth(float(az.degrees)))

    def search_altitude_crossing(
        self,
        body: SolarSystemBody,
        latitude: float,
        longitude: float,
        direction: CrossingDirection,
        start: datetime,
        max_days: float,
        target_altitude: float,
    ) -> datetime | None:
        """
        Find the first time a body crosses an altitude in the given direction.

        Args:
            body: Sun or Moon
            latitude: Observer latitude in degrees
            longitude: Observer longitude in degrees
            direction: RISING for an upward crossing, SETTING for downward
            start: Start of the search
            max_days: Length of the search in days
            target_altitude: Altitude to cross in degrees

        Returns:
            Aware UTC datetime of the crossing, or None if there is none
        """
        from skyfield.searchlib import find_discrete

        target = self._body(body)
        observer = self._observer(latitude, longitude)

        def is_above(t: Any) -> Any:
            alt, _az, _distance = observer.at(t).observe(target).apparent().altaz()
            return alt.degrees >= target_altitude

        is_above.step_days = self._SEARCH_STEP_DAYS  # type: ignore[attr-defined]

        begin = ensure_utc(start)
        t0 = self._ts.from_datetime(begin)
        t1 = self._ts.from_datetime(begin + timedelta(days=max_days))
        times, values = find_discrete(t0, t1, is_above)

        wanted = direction == CrossingDirection.RISING
        for t, above in zip(times, values, strict=True):
            if bool(above) == wanted:
                return ensure_utc(t.utc_datetime())
        return None

    # ------------------------------------------------------------------
    # LunarAdapter
    # ------------------------------------------------------------------

    def moon_position(self, time: datetime, latitude: float, longitude: float) -> HorizontalPosition:
        """Apparent altitude and azimuth of the Moon."""
        t = self._ts.from_datetime(ensure_utc(time))
        observer = self._observer(latitude, longitude)
        alt, az, _distance = observer.at(t).observe(self._body(SolarSystemBody.MOON)).apparent().altaz()
        return HorizontalPosition(altitude=float(alt.degrees), azimuth=normalize_azimuth(float(az.degrees)))

    def moon_illumination(self, time: datetime) -> MoonIllumination:
        """Phase (0 new, 0.5 full) and illuminated fraction of the Moon."""
        from skyfield import almanac

        kernel = self._get_kernel()
        t = self._ts.from_datetime(ensure_utc(time))
        phase_degrees = float(almanac.moon_phase(kernel, t).degrees)
        apparent = kernel["earth"].at(t).observe(kernel["moon"]).apparent()
        fraction = float(apparent.fraction_illuminated(kernel["sun"]))
        return MoonIllumination(phase=(phase_degrees % 360.0) / 360.0, fraction=fraction)

    def moon_times(self, day: date | datetime, latitude: float, longitude: float) -> MoonTimes:
        """
        First moonrise and moonset within the observer's calendar day.

        Args:
            day: Calendar day (see local_day_start for how it is interpreted)
            latitude: Observer latitude in degrees
            longitude: Observer longitude in degrees

        Returns:
            MoonTimes with either field None when the event does not occur
        """
        from skyfield import almanac
        from skyfield.api import wgs84
        from skyfield.searchlib import find_discrete

        kernel = self._get_kernel()
        topos = wgs84.latlon(latitude, longitude)
        rises_and_sets = almanac.risings_and_settings(kernel, kernel["moon"], topos)

        begin = local_day_start(day, longitude)
        t0 = self._ts.from_datetime(begin)
        t1 = self._ts.from_datetime(begin + timedelta(days=1))
        times, values = find_discrete(t0, t1, rises_and_sets)

        rise: datetime | None = None
        moon_set: datetime | None = None
        for t, is_rise in zip(times, values, strict=True):
            when = ensure_utc(t.utc_datetime())
            if is_rise and rise is None:
                rise = when
            elif not is_rise and moon_set is None:
                moon_set = when
        return MoonTimes(rise=rise, set=moon_set)


# The lunar interface is served by the same Skyfield-backed class
SkyfieldLunarEphemeris = SkyfieldEphemeris

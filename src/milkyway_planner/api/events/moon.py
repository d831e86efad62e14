"""
Lunar Locator

Moon position, phase, illumination and rise/set for an observer, and the
interference the Moon causes for Milky Way viewing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

import deal
from returns.result import Failure, safe

from milkyway_planner.api.core.enums import MoonPhase
from milkyway_planner.api.core.utils import ensure_utc, local_calendar_date
from milkyway_planner.api.ephemeris.adapters import LunarAdapter, SkyfieldLunarEphemeris
from milkyway_planner.api.location.observer import ObserverLocation


logger = logging.getLogger(__name__)

__all__ = [
    "LunarState",
    "locate_moon",
    "moon_interference",
    "moon_phase_name",
]


# Upper bounds of each named phase, as a fraction of the lunar cycle
_PHASE_BOUNDARIES: tuple[tuple[float, MoonPhase], ...] = (
    (0.0625, MoonPhase.NEW_MOON),
    (0.1875, MoonPhase.WAXING_CRESCENT),
    (0.3125, MoonPhase.FIRST_QUARTER),
    (0.4375, MoonPhase.WAXING_GIBBOUS),
    (0.5625, MoonPhase.FULL_MOON),
    (0.6875, MoonPhase.WANING_GIBBOUS),
    (0.8125, MoonPhase.LAST_QUARTER),
    (0.9375, MoonPhase.WANING_CRESCENT),
)


def moon_phase_name(phase: float) -> MoonPhase:
    """
    Name the lunar phase.

    Args:
        phase: Phase fraction (0 = new, 0.5 = full, 1 = next new)

    Returns:
        One of the eight MoonPhase names
    """
    for upper, name in _PHASE_BOUNDARIES:
        if phase < upper:
            return name
    return MoonPhase.NEW_MOON


@dataclass(frozen=True)
class LunarState:
    """Moon state for one observer and time."""

    phase: float  # 0 = new, 0.5 = full; (0, 0.5) waxing, (0.5, 1) waning
    illumination: float  # Illuminated fraction, 0 to 1
    altitude: float  # Degrees
    azimuth: float  # Degrees
    rise: datetime | None
    set: datetime | None

    @property
    def phase_name(self) -> MoonPhase:
        return moon_phase_name(self.phase)


NEUTRAL_LUNAR_STATE = LunarState(phase=0.0, illumination=0.0, altitude=0.0, azimuth=0.0, rise=None, set=None)


@safe
def _compute_moon(date: datetime, location: ObserverLocation, lunar: LunarAdapter | None) -> LunarState:
    adapter: LunarAdapter = lunar or SkyfieldLunarEphemeris()
    lat, lng = location.latitude, location.longitude

    position = adapter.moon_position(date, lat, lng)
    illumination = adapter.moon_illumination(date)

    day = local_calendar_date(date, lng)
    one_day = timedelta(days=1)
    times = adapter.moon_times(day, lat, lng)
    rise, moon_set = times.rise, times.set

    if rise is None and moon_set is not None:
        # Set today without a rise: the moon came up the day before
        rise = adapter.moon_times(day - one_day, lat, lng).rise
    elif rise is not None and moon_set is None:
        moon_set = adapter.moon_times(day + one_day, lat, lng).set

    if rise is not None and moon_set is not None and moon_set < rise:
        next_set = adapter.moon_times(day + one_day, lat, lng).set
        if next_set is not None and next_set > rise:
            moon_set = next_set
        else:
            logger.debug(f"No moonset after moonrise {rise.isoformat()}, dropping set time")
            moon_set = None

    state = LunarState(
        phase=illumination.phase,
        illumination=illumination.fraction,
        altitude=position.altitude,
        azimuth=position.azimuth,
        rise=rise,
        set=moon_set,
    )
    logger.debug(f"Moon at {date.isoformat()}: {state}")
    return state


def locate_moon(
    date: datetime,
    location: ObserverLocation,
    lunar: LunarAdapter | None = None,
) -> LunarState:
    """
    Locate the Moon for an observer.

    Position and illumination are for `date`; rise and set are for the
    observer's calendar day containing `date`, adjusted so that the set
    follows the rise when both exist.

    Args:
        date: Time of interest (naive values are treated as UTC)
        location: Observer location
        lunar: Lunar adapter (default: SkyfieldLunarEphemeris)

    Returns:
        LunarState, or a neutral all-zero state if the adapter fails
    """
    result = _compute_moon(ensure_utc(date), location, lunar)
    if isinstance(result, Failure):
        logger.warning(f"Moon calculation failed for {location.display_name}: {result.failure()}")
    return result.value_or(NEUTRAL_LUNAR_STATE)


@deal.pre(lambda state: 0.0 <= state.illumination <= 1.0, message="Illumination must be 0-1")  # type: ignore[misc,arg-type]
@deal.post(lambda result: 0.0 <= result <= 1.0)  # type: ignore[misc,arg-type]
def moon_interference(state: LunarState) -> float:
    """
    How much the Moon washes out the sky, from 0 (none) to 1 (maximum).

    Combines illumination with a non-linear altitude factor that reaches
    its maximum at 45°. A moon below the horizon causes no interference.
    """
    if state.altitude <= 0:
        return 0.0
    altitude_factor = min((state.altitude / 45.0) ** 0.7, 1.0)
    return state.illumination * altitude_factor

"""
Galactic Core Observation Scoring

Time-integrated quality score for viewing the galactic core over one
night, producing a 0-4 rating, a reason, and the sampled quality curve.

The observation window is the overlap of astronomical darkness with the
period the core is above its threshold. Within it the score is sampled
every 2 minutes over the first and last 30 minutes and every 8 minutes in
between. Each sample is weighted by its step, so the average approximates
a per-minute integral.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import NamedTuple

from returns.result import Failure, safe

from milkyway_planner.api.core.constants import (
    GALACTIC_CENTER_DEC,
    GALACTIC_CENTER_RA,
    MAX_VISIBLE_LATITUDE,
    MIN_SCORING_ALTITUDE,
    MIN_WINDOW_MINUTES,
)
from milkyway_planner.api.core.utils import angular_separation, hours_between, round_half_up
from milkyway_planner.api.ephemeris.adapters import (
    EphemerisAdapter,
    HorizontalPosition,
    LunarAdapter,
    SkyfieldEphemeris,
    SkyfieldLunarEphemeris,
)
from milkyway_planner.api.events.galactic_core import GalacticCoreState
from milkyway_planner.api.events.moon import LunarState
from milkyway_planner.api.events.twilight import NightWindow
from milkyway_planner.api.location.observer import ObserverLocation


logger = logging.getLogger(__name__)

__all__ = [
    "ObservationInputs",
    "ObservationScore",
    "Rating",
    "VisibilitySample",
    "build_observation_inputs",
    "calculate_visibility_rating",
    "compute_gc_observation_score",
    "create_gc_altitude_function",
    "create_gc_moon_angle_function",
    "create_moon_altitude_function",
]


EDGE_SPAN_MINUTES = 30
EDGE_STEP_MINUTES = 2
MIDDLE_STEP_MINUTES = 8
FULL_LENGTH_MINUTES = 120.0  # Window length that earns the full multiplier
MIN_LENGTH_MULTIPLIER = 0.7
BRIGHT_MOON_ILLUMINATION = 0.6  # Above this, separation no longer helps

REASON_NEVER_VISIBLE = "Galactic Center never visible at this latitude"
REASON_NO_DARKNESS = "No astronomical darkness (sun never reaches -18°)"
REASON_NO_RISE = "Galactic Center does not rise above 15°"
REASON_WINDOW_TOO_SHORT = "Observation window too short (< 30 minutes)"
REASON_NO_TIME_ABOVE_CUTOFF = "No observation time when Galactic Center is above 15°"
REASON_SCORING_FAILED = "Observation scoring failed"


class VisibilitySample(NamedTuple):
    """One evaluation of the viewing quality."""

    time: datetime
    score: float  # 0 to 1
    altitude_gc: float  # Galactic core altitude in degrees
    moon_altitude: float  # Degrees
    moon_angle: float  # Moon to galactic core separation in degrees


class Rating(NamedTuple):
    """A 0-4 viewing rating and its explanation."""

    rating: int
    reason: str


@dataclass(frozen=True)
class ObservationInputs:
    """Everything the scorer needs for one night."""

    latitude: float
    longitude: float
    date: datetime
    night_start: datetime | None
    night_end: datetime | None
    moon_rise: datetime | None
    moon_set: datetime | None
    moon_illumination: float  # 0 to 1
    gc_rise: datetime | None
    gc_set: datetime | None
    gc_altitude: Callable[[datetime], float]  # Degrees
    moon_altitude: Callable[[datetime], float]  # Degrees
    gc_moon_angle: Callable[[datetime], float]  # Degrees


@dataclass(frozen=True)
class ObservationScore:
    """Result of scoring one night."""

    best_time: datetime | None
    rating: int  # 0-4
    curve: tuple[VisibilitySample, ...] = field(default_factory=tuple)
    reason: str = ""

    def as_rating(self) -> Rating:
        return Rating(rating=self.rating, reason=self.reason)


# ----------------------------------------------------------------------
# Reason selection
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class _ReasonContext:
    illumination: float
    average_score: float
    window_minutes: float

    @property
    def percent(self) -> int:
        return round_half_up(self.illumination * 100)

    @property
    def minutes(self) -> int:
        return round_half_up(self.window_minutes)

    @property
    def hours(self) -> str:
        return f"{self.window_minutes / 60:.1f}"


class ReasonRule(NamedTuple):
    """A reason template and the condition under which it applies."""

    predicate: Callable[[_ReasonContext], bool]
    template: str


def _always(_ctx: _ReasonContext) -> bool:
    return True


# Rules per rating, checked in order; the first match wins
REASON_RULES: dict[int, tuple[ReasonRule, ...]] = {
    1: (
        ReasonRule(
            lambda c: c.illumination > 0.6 and c.average_score < 0.5,
            "Severe moon interference ({ctx.percent}% illuminated)",
        ),
        ReasonRule(lambda c: c.window_minutes < 60, "Very short observation window ({ctx.minutes} minutes)"),
        ReasonRule(_always, "Poor viewing conditions"),
    ),
    2: (
        ReasonRule(
            lambda c: c.illumination > 0.5 and c.average_score < 0.5,
            "Significant moon interference ({ctx.percent}% illuminated)",
        ),
        ReasonRule(lambda c: c.window_minutes < 90, "Limited observation window ({ctx.hours} hours)"),
        ReasonRule(_always, "Fair viewing conditions"),
    ),
    3: (
        ReasonRule(lambda c: c.illumination > 0.3, "Good conditions with some moon ({ctx.percent}% illuminated)"),
        ReasonRule(lambda c: c.window_minutes >= 120, "Good conditions with {ctx.hours} hour window"),
        ReasonRule(_always, "Good viewing conditions"),
    ),
    4: (
        ReasonRule(
            lambda c: c.illumination < 0.1 and c.window_minutes >= 120,
            "Excellent dark sky conditions ({ctx.hours} hours)",
        ),
        ReasonRule(lambda c: c.average_score > 0.9, "Perfect viewing conditions - moon below horizon"),
        ReasonRule(_always, "Excellent conditions ({ctx.hours} hour window)"),
    ),
}


def _rating_for(final_score: float) -> int:
    if final_score < 0.25:
        return 1
    if final_score < 0.5:
        return 2
    if final_score < 0.75:
        return 3
    return 4


def select_reason(rating: int, illumination: float, average_score: float, window_minutes: float) -> str:
    """Pick the reason text for a rating from its rule table."""
    ctx = _ReasonContext(illumination=illumination, average_score=average_score, window_minutes=window_minutes)
    rules = REASON_RULES[rating]
    for rule in rules:
        if rule.predicate(ctx):
            return rule.template.format(ctx=ctx)
    # A table without a catch-all rule falls back to its last entry
    return rules[-1].template.format(ctx=ctx)


# ----------------------------------------------------------------------
# Scoring
# ----------------------------------------------------------------------


def _segments(start: datetime, end: datetime) -> list[tuple[datetime, datetime, int]]:
    edge = timedelta(minutes=EDGE_SPAN_MINUTES)
    candidates = [
        (start, start + edge, EDGE_STEP_MINUTES),
        (start + edge, end - edge, MIDDLE_STEP_MINUTES),
        (end - edge, end, EDGE_STEP_MINUTES),
    ]
    return [(s, e, step) for s, e, step in candidates if e > s]


def _sample_score(moon_altitude: float, moon_illumination: float, moon_angle: float) -> float:
    if moon_altitude <= 0:
        return 1.0
    if moon_illumination > BRIGHT_MOON_ILLUMINATION:
        return (1.0 - moon_illumination) * 0.2
    return (1.0 - moon_illumination) * min(moon_angle / 90.0, 1.0)


def _length_multiplier(window_minutes: float) -> float:
    scaled = (window_minutes - MIN_WINDOW_MINUTES) / (FULL_LENGTH_MINUTES - MIN_WINDOW_MINUTES) * 0.3 + 0.7
    return max(MIN_LENGTH_MULTIPLIER, min(scaled, 1.0))


def _no_visibility(reason: str) -> ObservationScore:
    return ObservationScore(best_time=None, rating=0, curve=(), reason=reason)


@safe
def _score(inputs: ObservationInputs) -> ObservationScore:
    if abs(inputs.latitude) > MAX_VISIBLE_LATITUDE:
        return _no_visibility(REASON_NEVER_VISIBLE)
    if inputs.night_start is None or inputs.night_end is None:
        return _no_visibility(REASON_NO_DARKNESS)
    if inputs.gc_rise is None or inputs.gc_set is None:
        return _no_visibility(REASON_NO_RISE)

    window_start = max(inputs.night_start, inputs.gc_rise)
    window_end = min(inputs.night_end, inputs.gc_set)
    window_minutes = hours_between(window_start, window_end) * 60
    if window_minutes < MIN_WINDOW_MINUTES:
        return _no_visibility(REASON_WINDOW_TOO_SHORT)

    curve: list[VisibilitySample] = []
    accumulated = 0.0
    total_minutes = 0
    best_time: datetime | None = None
    best_score = float("-inf")

    for seg_start, seg_end, step in _segments(window_start, window_end):
        step_delta = timedelta(minutes=step)
        sample_count = int(hours_between(seg_start, seg_end) * 60 // step)
        for i in range(sample_count + 1):
            t = seg_start + i * step_delta
            altitude_gc = inputs.gc_altitude(t)
            if altitude_gc < MIN_SCORING_ALTITUDE:
                continue

            moon_altitude = inputs.moon_altitude(t)
            moon_angle = inputs.gc_moon_angle(t)
            score = _sample_score(moon_altitude, inputs.moon_illumination, moon_angle)
            curve.append(VisibilitySample(t, score, altitude_gc, moon_altitude, moon_angle))

            accumulated += score * step
            total_minutes += step
            if score > best_score:
                best_score = score
                best_time = t

    if total_minutes == 0:
        return _no_visibility(REASON_NO_TIME_ABOVE_CUTOFF)

    average_score = accumulated / total_minutes
    final_score = average_score * _length_multiplier(window_minutes)
    rating = _rating_for(final_score)
    reason = select_reason(rating, inputs.moon_illumination, average_score, window_minutes)

    logger.debug(
        f"Scored {len(curve)} samples over {window_minutes:.0f} min: "
        f"avg={average_score:.3f} final={final_score:.3f} rating={rating}"
    )
    return ObservationScore(best_time=best_time, rating=rating, curve=tuple(curve), reason=reason)


def compute_gc_observation_score(inputs: ObservationInputs) -> ObservationScore:
    """
    Score a night for galactic core observation.

    Returns rating 0 with a fixed reason when the latitude is too far from
    the equator, there is no astronomical darkness, the core has no
    rise/set, the observation window is under 30 minutes, or the core
    never reaches 15° inside the window. Otherwise rates 1-4 from the
    step-weighted average sample score scaled by a window length
    multiplier (0.7 at 30 minutes to 1.0 at two hours or more).

    Args:
        inputs: Night bounds, moon and galactic core data, and altitude
            and separation functions

    Returns:
        ObservationScore with the best sample time, rating, curve and reason
    """
    result = _score(inputs)
    if isinstance(result, Failure):
        logger.warning(f"Observation scoring failed: {result.failure()}")
    return result.value_or(_no_visibility(REASON_SCORING_FAILED))


# ----------------------------------------------------------------------
# Adapter-backed sample functions
# ----------------------------------------------------------------------


def _gc_position(ephemeris: EphemerisAdapter, location: ObserverLocation, time: datetime) -> HorizontalPosition:
    return ephemeris.horizontal_position(
        time,
        location.latitude,
        location.longitude,
        location.elevation,
        GALACTIC_CENTER_RA,
        GALACTIC_CENTER_DEC,
    )


def create_gc_altitude_function(
    location: ObserverLocation, ephemeris: EphemerisAdapter | None = None
) -> Callable[[datetime], float]:
    """Galactic core altitude (degrees) as a function of time; 0.0 on failure."""
    adapter = ephemeris or SkyfieldEphemeris()

    def gc_altitude(time: datetime) -> float:
        try:
            return _gc_position(adapter, location, time).altitude
        except Exception as e:
            logger.warning(f"Galactic core altitude failed at {time}: {e}")
            return 0.0

    return gc_altitude


def create_moon_altitude_function(
    location: ObserverLocation, lunar: LunarAdapter | None = None
) -> Callable[[datetime], float]:
    """Moon altitude (degrees) as a function of time; 0.0 on failure."""
    adapter = lunar or SkyfieldLunarEphemeris()

    def moon_altitude(time: datetime) -> float:
        try:
            return adapter.moon_position(time, location.latitude, location.longitude).altitude
        except Exception as e:
            logger.warning(f"Moon altitude failed at {time}: {e}")
            return 0.0

    return moon_altitude


def create_gc_moon_angle_function(
    location: ObserverLocation,
    ephemeris: EphemerisAdapter | None = None,
    lunar: LunarAdapter | None = None,
) -> Callable[[datetime], float]:
    """
    Angular separation between the Moon and the galactic core as a
    function of time, computed from both horizontal positions.

    Returns 0.0 on failure.
    """
    gc_adapter = ephemeris or SkyfieldEphemeris()
    moon_adapter = lunar or SkyfieldLunarEphemeris()

    def gc_moon_angle(time: datetime) -> float:
        try:
            gc = _gc_position(gc_adapter, location, time)
            moon = moon_adapter.moon_position(time, location.latitude, location.longitude)
            return angular_separation(gc.azimuth, gc.altitude, moon.azimuth, moon.altitude)
        except Exception as e:
            logger.warning(f"Moon separation failed at {time}: {e}")
            return 0.0

    return gc_moon_angle


def build_observation_inputs(
    gc: GalacticCoreState,
    moon: LunarState,
    night: NightWindow,
    location: ObserverLocation,
    date: datetime,
    ephemeris: EphemerisAdapter | None = None,
    lunar: LunarAdapter | None = None,
) -> ObservationInputs:
    """Assemble scorer inputs from located states and adapter-backed functions."""
    ephemeris = ephemeris or SkyfieldEphemeris()
    lunar = lunar or SkyfieldLunarEphemeris()
    return ObservationInputs(
        latitude=location.latitude,
        longitude=location.longitude,
        date=date,
        night_start=night.night,
        night_end=night.day_end,
        moon_rise=moon.rise,
        moon_set=moon.set,
        moon_illumination=moon.illumination,
        gc_rise=gc.rise_time,
        gc_set=gc.set_time,
        gc_altitude=create_gc_altitude_function(location, ephemeris),
        moon_altitude=create_moon_altitude_function(location, lunar),
        gc_moon_angle=create_gc_moon_angle_function(location, ephemeris, lunar),
    )


def calculate_visibility_rating(
    gc: GalacticCoreState,
    moon: LunarState,
    night: NightWindow,
    location: ObserverLocation,
    date: datetime,
    ephemeris: EphemerisAdapter | None = None,
    lunar: LunarAdapter | None = None,
) -> Rating:
    """Run the scorer for located states and return just its rating and reason."""
    inputs = build_observation_inputs(gc, moon, night, location, date, ephemeris, lunar)
    return compute_gc_observation_score(inputs).as_rating()

"""
Optimal Viewing Window

Turns the scorer's quality curve into one recommended observation window.

Contiguous runs of samples at or above a quality threshold are collected
as quality periods, and the period with the largest average score times
duration is recommended. When no run qualifies, the best sub-range of the
curve is searched for instead so that poor nights still get a suggestion.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import numpy as np

from milkyway_planner.api.core.enums import ViewingQuality
from milkyway_planner.api.core.utils import format_duration, hours_between
from milkyway_planner.api.ephemeris.adapters import EphemerisAdapter, LunarAdapter
from milkyway_planner.api.events.galactic_core import GalacticCoreState
from milkyway_planner.api.events.moon import LunarState
from milkyway_planner.api.events.scoring import (
    ObservationInputs,
    ObservationScore,
    VisibilitySample,
    compute_gc_observation_score,
    create_gc_altitude_function,
    create_gc_moon_angle_function,
    create_moon_altitude_function,
)
from milkyway_planner.api.events.twilight import NightWindow
from milkyway_planner.api.location.observer import ObserverLocation
from milkyway_planner.api.location.timezone import TimezoneAdapter, format_time_in_location_timezone


logger = logging.getLogger(__name__)

__all__ = [
    "OptimalWindow",
    "QualityPeriod",
    "calculate_integrated_optimal_window",
    "classify_quality",
    "create_quality_period",
    "find_best_available_period",
    "find_quality_periods",
    "format_optimal_viewing_duration",
    "format_optimal_viewing_time",
    "get_optimal_viewing_window",
    "synthesize_optimal_window",
]


MIN_PERIOD_HOURS = 0.25
CANDIDATE_MIN_DURATIONS = (0.25, 0.5, 1.0)  # Hours tried by the best-available search
NOMINAL_STEP_MINUTES = 8  # Typical spacing of curve samples
BASIC_OVERLAP_SCORE = 0.1
ASSUMED_VISIBLE_HOURS = 8.0  # Galactic core visibility assumed when no set time is known

NO_OPPORTUNITY = "No viewing opportunity available"
NO_VIABLE_TIME = "No viable observation time"
POOR_THROUGHOUT = "Poor viewing conditions throughout"
BASIC_OVERLAP_ONLY = "Poor viewing conditions (basic time overlap only)"


@dataclass(frozen=True)
class QualityPeriod:
    """A contiguous run of curve samples."""

    start: datetime
    end: datetime
    duration: float  # Hours from the first to the last sample
    average_score: float
    quality: ViewingQuality

    @property
    def weight(self) -> float:
        return self.average_score * self.duration


@dataclass(frozen=True)
class OptimalWindow:
    """Recommended observation window. start_time is None when there is none."""

    start_time: datetime | None
    end_time: datetime | None
    duration: float  # Hours
    description: str
    average_score: float = 0.0
    best_time: datetime | None = None
    quality_periods: tuple[QualityPeriod, ...] = field(default_factory=tuple)

    @property
    def has_window(self) -> bool:
        return self.start_time is not None and self.duration > 0


def _empty_window(description: str) -> OptimalWindow:
    return OptimalWindow(start_time=None, end_time=None, duration=0.0, description=description)


def classify_quality(average_score: float) -> ViewingQuality:
    """Quality label for an average score."""
    if average_score >= 0.8:
        return ViewingQuality.EXCELLENT
    if average_score >= 0.6:
        return ViewingQuality.GOOD
    if average_score >= 0.4:
        return ViewingQuality.FAIR
    return ViewingQuality.POOR


def create_quality_period(samples: Sequence[VisibilitySample]) -> QualityPeriod:
    """
    Summarize a non-empty run of samples.

    Duration runs from the first to the last sample time.
    """
    start = samples[0].time
    end = samples[-1].time
    average = sum(s.score for s in samples) / len(samples)
    return QualityPeriod(
        start=start,
        end=end,
        duration=hours_between(start, end),
        average_score=average,
        quality=classify_quality(average),
    )


def find_quality_periods(curve: Sequence[VisibilitySample], threshold: float) -> list[QualityPeriod]:
    """
    Find maximal runs of samples scoring at least `threshold`.

    Runs shorter than 15 minutes are dropped.

    Args:
        curve: Quality curve in time order
        threshold: Minimum sample score

    Returns:
        Quality periods in time order
    """
    periods: list[QualityPeriod] = []
    run: list[VisibilitySample] = []

    def close_run() -> None:
        if run:
            period = create_quality_period(run)
            if period.duration >= MIN_PERIOD_HOURS:
                periods.append(period)
            run.clear()

    for sample in curve:
        if sample.score >= threshold:
            run.append(sample)
        else:
            close_run()
    close_run()

    return periods


def _best_period_with_min_duration(
    curve: Sequence[VisibilitySample], min_duration_hours: float
) -> QualityPeriod | None:
    """Highest-average sub-range lasting at least `min_duration_hours`."""
    min_samples = max(1, int(min_duration_hours * 60 // NOMINAL_STEP_MINUTES))

    # Prefix sums keep the average of any sub-range O(1)
    prefix = np.concatenate(([0.0], np.cumsum([sample.score for sample in curve], dtype=np.float64)))

    best: tuple[int, int] | None = None
    best_average = 0.0
    for i in range(len(curve) - min_samples + 1):
        for j in range(i + min_samples - 1, len(curve)):
            if hours_between(curve[i].time, curve[j].time) < min_duration_hours:
                continue
            average = float(prefix[j + 1] - prefix[i]) / (j - i + 1)
            if average > best_average:
                best_average = average
                best = (i, j)

    if best is None:
        return None
    i, j = best
    return create_quality_period(curve[i : j + 1])


def find_best_available_period(curve: Sequence[VisibilitySample]) -> QualityPeriod | None:
    """
    Best period of the curve regardless of threshold.

    For each candidate minimum duration (15, 30 and 60 minutes) the
    sub-range with the highest average score is found; of those, the one
    with the largest average score times duration wins.

    Returns:
        The best period, or None if the curve has no positive-weight range
    """
    best: QualityPeriod | None = None
    best_weight = 0.0
    for min_duration in CANDIDATE_MIN_DURATIONS:
        period = _best_period_with_min_duration(curve, min_duration)
        if period is not None and period.weight > best_weight:
            best_weight = period.weight
            best = period
    return best


def synthesize_optimal_window(score: ObservationScore, threshold: float = 0.5) -> OptimalWindow:
    """
    Build the recommended window from a scored night.

    Args:
        score: Scorer output for the night
        threshold: Minimum sample score for a quality period

    Returns:
        OptimalWindow around the primary quality period, the best
        available period, or an empty window with the reason
    """
    if not score.curve:
        return _empty_window(NO_VIABLE_TIME)

    periods = find_quality_periods(score.curve, threshold)
    if not periods:
        fallback = find_best_available_period(score.curve)
        if fallback is None:
            return _empty_window(POOR_THROUGHOUT)
        return OptimalWindow(
            start_time=fallback.start,
            end_time=fallback.end,
            duration=fallback.duration,
            description=f"Limited viewing opportunity ({fallback.quality})",
            average_score=fallback.average_score,
            best_time=score.best_time,
            quality_periods=(fallback,),
        )

    primary = periods[0]
    for period in periods[1:]:
        if period.weight > primary.weight:
            primary = period

    logger.debug(f"Found {len(periods)} quality periods, primary {primary}")
    return OptimalWindow(
        start_time=primary.start,
        end_time=primary.end,
        duration=primary.duration,
        description=f"{primary.quality.value.capitalize()} viewing window",
        average_score=primary.average_score,
        best_time=score.best_time,
        quality_periods=tuple(periods),
    )


def calculate_integrated_optimal_window(
    location: ObserverLocation,
    date: datetime,
    night_start: datetime | None,
    night_end: datetime | None,
    moon_rise: datetime | None,
    moon_set: datetime | None,
    moon_illumination: float,
    gc_rise: datetime | None,
    gc_set: datetime | None,
    score_threshold: float = 0.5,
    ephemeris: EphemerisAdapter | None = None,
    lunar: LunarAdapter | None = None,
) -> OptimalWindow:
    """
    Score the night and synthesize the recommended window.

    Returns:
        OptimalWindow; "No viewing opportunity available" when darkness
        or the galactic core's rise/set is missing
    """
    if night_start is None or night_end is None or gc_rise is None or gc_set is None:
        return _empty_window(NO_OPPORTUNITY)

    inputs = ObservationInputs(
        latitude=location.latitude,
        longitude=location.longitude,
        date=date,
        night_start=night_start,
        night_end=night_end,
        moon_rise=moon_rise,
        moon_set=moon_set,
        moon_illumination=moon_illumination,
        gc_rise=gc_rise,
        gc_set=gc_set,
        gc_altitude=create_gc_altitude_function(location, ephemeris),
        moon_altitude=create_moon_altitude_function(location, lunar),
        gc_moon_angle=create_gc_moon_angle_function(location, ephemeris, lunar),
    )
    return synthesize_optimal_window(compute_gc_observation_score(inputs), score_threshold)


def get_optimal_viewing_window(
    gc: GalacticCoreState,
    moon: LunarState,
    night: NightWindow,
    location: ObserverLocation,
    date: datetime,
    quality_threshold: float = 0.3,
    ephemeris: EphemerisAdapter | None = None,
    lunar: LunarAdapter | None = None,
    score: ObservationScore | None = None,
) -> OptimalWindow:
    """
    Recommended window for a night from located states.

    When the quality analysis finds nothing but the galactic core and
    darkness still overlap, the plain overlap is returned with a low
    score so the night is not reported as empty.

    Args:
        gc: Galactic core state
        moon: Lunar state
        night: Twilight boundaries
        location: Observer location
        date: Date the night belongs to
        quality_threshold: Minimum sample score for a quality period
        ephemeris: Ephemeris adapter, used when `score` is not given
        lunar: Lunar adapter, used when `score` is not given
        score: Existing scorer output for the same night, to avoid rescoring

    Returns:
        OptimalWindow
    """
    if gc.rise_time is None or night.night is None or night.day_end is None:
        return _empty_window(NO_OPPORTUNITY)

    if score is not None:
        integrated = (
            synthesize_optimal_window(score, quality_threshold)
            if gc.set_time is not None
            else _empty_window(NO_OPPORTUNITY)
        )
    else:
        integrated = calculate_integrated_optimal_window(
            location,
            date,
            night.night,
            night.day_end,
            moon.rise,
            moon.set,
            moon.illumination,
            gc.rise_time,
            gc.set_time,
            quality_threshold,
            ephemeris,
            lunar,
        )

    if integrated.has_window:
        return integrated

    gc_end = gc.set_time or gc.rise_time + timedelta(hours=ASSUMED_VISIBLE_HOURS)
    overlap_start = max(gc.rise_time, night.night)
    overlap_end = min(gc_end, night.day_end)
    if overlap_start >= overlap_end:
        return integrated

    return OptimalWindow(
        start_time=overlap_start,
        end_time=overlap_end,
        duration=hours_between(overlap_start, overlap_end),
        description=BASIC_OVERLAP_ONLY,
        average_score=BASIC_OVERLAP_SCORE,
        best_time=integrated.best_time,
    )


def format_optimal_viewing_time(
    window: OptimalWindow,
    location: ObserverLocation | None = None,
    timezone: TimezoneAdapter | None = None,
) -> str:
    """
    Window start as HH:MM.

    Uses the location's timezone when a location is given, otherwise UTC.
    Returns an empty string when there is no window.
    """
    if window.start_time is None:
        return ""
    if location is not None:
        return format_time_in_location_timezone(window.start_time, location, timezone)
    return window.start_time.astimezone(UTC).strftime("%H:%M")


def format_optimal_viewing_duration(window: OptimalWindow) -> str:
    """Window length as "Hh Mm", "Hh" or "Mm"; empty when there is no window."""
    if window.start_time is None or window.duration <= 0:
        return ""
    return format_duration(window.duration)

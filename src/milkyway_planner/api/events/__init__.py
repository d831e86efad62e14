"""Galactic core, moon and twilight locators, scoring, and the night report pipeline."""

from milkyway_planner.api.events.galactic_core import GalacticCoreState, locate_galactic_core
from milkyway_planner.api.events.moon import LunarState, locate_moon
from milkyway_planner.api.events.night_report import NightReport, compute_calendar, compute_night_report
from milkyway_planner.api.events.optimal_window import OptimalWindow, QualityPeriod
from milkyway_planner.api.events.scoring import ObservationScore, Rating, compute_gc_observation_score
from milkyway_planner.api.events.twilight import NightWindow, locate_twilight
from milkyway_planner.api.events.visibility_rating import VisibilityRating, calculate_point_rating


__all__ = [
    "GalacticCoreState",
    "LunarState",
    "NightReport",
    "NightWindow",
    "ObservationScore",
    "OptimalWindow",
    "QualityPeriod",
    "Rating",
    "VisibilityRating",
    "calculate_point_rating",
    "compute_calendar",
    "compute_gc_observation_score",
    "compute_night_report",
    "locate_galactic_core",
    "locate_moon",
    "locate_twilight",
]

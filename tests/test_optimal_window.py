"""
Unit tests for optimal_window.py

Tests quality periods, the best-available fallback, window synthesis
and formatting.
"""

import unittest
from datetime import timedelta

from fakes import FakeEphemeris, FakeLunar, FakeTimezone, utc

from milkyway_planner.api.core.enums import ViewingQuality
from milkyway_planner.api.events.galactic_core import GalacticCoreState
from milkyway_planner.api.events.moon import NEUTRAL_LUNAR_STATE
from milkyway_planner.api.events.optimal_window import (
    BASIC_OVERLAP_ONLY,
    NO_OPPORTUNITY,
    NO_VIABLE_TIME,
    POOR_THROUGHOUT,
    OptimalWindow,
    calculate_integrated_optimal_window,
    classify_quality,
    create_quality_period,
    find_best_available_period,
    find_quality_periods,
    format_optimal_viewing_duration,
    format_optimal_viewing_time,
    get_optimal_viewing_window,
    synthesize_optimal_window,
)
from milkyway_planner.api.events.scoring import ObservationScore, VisibilitySample
from milkyway_planner.api.events.twilight import NightWindow
from milkyway_planner.api.location.observer import ObserverLocation


START = utc(2024, 7, 15, 3, 0)
LOCATION = ObserverLocation(latitude=34.0, longitude=-116.0)


def make_curve(scores, step_minutes=8):
    """Quality curve with evenly spaced samples starting at 03:00 UTC."""
    return tuple(
        VisibilitySample(START + timedelta(minutes=i * step_minutes), score, 45.0, 10.0, 90.0)
        for i, score in enumerate(scores)
    )


def make_score(scores):
    curve = make_curve(scores)
    return ObservationScore(best_time=curve[0].time if curve else None, rating=2, curve=curve, reason="")


def make_gc(rise, set_):
    return GalacticCoreState(
        altitude=30.0, azimuth=180.0, is_visible=True, rise_time=rise, transit_time=None, set_time=set_, threshold=20.0
    )


class TestClassifyQuality(unittest.TestCase):
    """Test suite for classify_quality function"""

    def test_boundaries(self):
        """Test quality label boundaries"""
        self.assertEqual(classify_quality(0.8), ViewingQuality.EXCELLENT)
        self.assertEqual(classify_quality(0.79), ViewingQuality.GOOD)
        self.assertEqual(classify_quality(0.6), ViewingQuality.GOOD)
        self.assertEqual(classify_quality(0.4), ViewingQuality.FAIR)
        self.assertEqual(classify_quality(0.39), ViewingQuality.POOR)


class TestQualityPeriods(unittest.TestCase):
    """Test suite for quality period detection"""

    def setUp(self):
        """Set up a curve with two qualifying runs and one short run"""
        self.scores = [0.2, 0.8, 0.8, 0.8, 0.2, 0.9, 0.9, 0.9, 0.9, 0.9, 0.1, 0.7, 0.7, 0.1]
        self.curve = make_curve(self.scores)

    def test_create_quality_period(self):
        """Test summarizing a run of samples"""
        period = create_quality_period(self.curve[1:4])
        self.assertEqual(period.start, self.curve[1].time)
        self.assertEqual(period.end, self.curve[3].time)
        self.assertAlmostEqual(period.duration, 16 / 60)
        self.assertAlmostEqual(period.average_score, 0.8)
        self.assertEqual(period.quality, ViewingQuality.EXCELLENT)
        self.assertAlmostEqual(period.weight, 0.8 * 16 / 60)

    def test_runs_found_and_short_runs_dropped(self):
        """Test maximal runs at or above the threshold"""
        periods = find_quality_periods(self.curve, 0.5)
        self.assertEqual(len(periods), 2)
        self.assertEqual(periods[0].start, self.curve[1].time)
        self.assertEqual(periods[1].start, self.curve[5].time)
        self.assertEqual(periods[1].end, self.curve[9].time)

    def test_run_at_curve_end(self):
        """Test that a run reaching the end of the curve is kept"""
        periods = find_quality_periods(make_curve([0.1, 0.6, 0.6, 0.6]), 0.5)
        self.assertEqual(len(periods), 1)
        self.assertEqual(periods[0].end, START + timedelta(minutes=24))

    def test_threshold_inclusive(self):
        """Test that samples equal to the threshold qualify"""
        periods = find_quality_periods(make_curve([0.5, 0.5, 0.5]), 0.5)
        self.assertEqual(len(periods), 1)

    def test_best_available_period(self):
        """Test the fallback search prefers a long decent stretch"""
        scores = [0.1] * 4 + [0.4] * 8 + [0.1] * 8
        period = find_best_available_period(make_curve(scores))
        self.assertIsNotNone(period)
        self.assertGreaterEqual(period.duration, 1.0)
        self.assertAlmostEqual(period.average_score, (0.1 + 0.4 * 8) / 9)

    def test_best_available_needs_positive_score(self):
        """Test that an all-zero curve has no best period"""
        self.assertIsNone(find_best_available_period(make_curve([0.0] * 12)))


class TestSynthesizeOptimalWindow(unittest.TestCase):
    """Test suite for synthesize_optimal_window function"""

    def test_primary_period(self):
        """Test that the highest-weight period is recommended"""
        scores = [0.2, 0.8, 0.8, 0.8, 0.2, 0.9, 0.9, 0.9, 0.9, 0.9, 0.1]
        window = synthesize_optimal_window(make_score(scores), threshold=0.5)
        curve = make_curve(scores)
        self.assertEqual(window.start_time, curve[5].time)
        self.assertEqual(window.end_time, curve[9].time)
        self.assertAlmostEqual(window.duration, 32 / 60)
        self.assertAlmostEqual(window.average_score, 0.9)
        self.assertEqual(window.description, "Excellent viewing window")
        self.assertEqual(len(window.quality_periods), 2)
        self.assertTrue(window.has_window)

    def test_empty_curve(self):
        """Test a night with no samples"""
        window = synthesize_optimal_window(make_score([]))
        self.assertIsNone(window.start_time)
        self.assertEqual(window.description, NO_VIABLE_TIME)
        self.assertFalse(window.has_window)

    def test_fallback_when_nothing_qualifies(self):
        """Test the limited opportunity fallback"""
        window = synthesize_optimal_window(make_score([0.2] * 12), threshold=0.5)
        self.assertIsNotNone(window.start_time)
        self.assertEqual(window.description, "Limited viewing opportunity (poor)")
        self.assertAlmostEqual(window.average_score, 0.2)

    def test_poor_throughout(self):
        """Test a curve with no usable stretch"""
        window = synthesize_optimal_window(make_score([0.0] * 12), threshold=0.5)
        self.assertIsNone(window.start_time)
        self.assertEqual(window.description, POOR_THROUGHOUT)


class TestGetOptimalViewingWindow(unittest.TestCase):
    """Test suite for get_optimal_viewing_window function"""

    def setUp(self):
        """Set up a night from 05:00 to 11:00 UTC"""
        self.night = NightWindow(night=utc(2024, 7, 15, 5, 0), day_end=utc(2024, 7, 15, 11, 0))

    def test_no_rise(self):
        """Test a core with no rise"""
        window = get_optimal_viewing_window(
            make_gc(None, None), NEUTRAL_LUNAR_STATE, self.night, LOCATION, START, score=make_score([])
        )
        self.assertEqual(window.description, NO_OPPORTUNITY)

    def test_no_darkness(self):
        """Test a night without darkness"""
        gc = make_gc(utc(2024, 7, 15, 4, 0), utc(2024, 7, 15, 8, 0))
        window = get_optimal_viewing_window(
            gc, NEUTRAL_LUNAR_STATE, NightWindow(None, None), LOCATION, START, score=make_score([])
        )
        self.assertEqual(window.description, NO_OPPORTUNITY)

    def test_basic_overlap_fallback(self):
        """Test the plain overlap when quality analysis finds nothing"""
        gc = make_gc(utc(2024, 7, 15, 4, 0), utc(2024, 7, 15, 8, 0))
        window = get_optimal_viewing_window(gc, NEUTRAL_LUNAR_STATE, self.night, LOCATION, START, score=make_score([]))
        self.assertEqual(window.start_time, utc(2024, 7, 15, 5, 0))
        self.assertEqual(window.end_time, utc(2024, 7, 15, 8, 0))
        self.assertAlmostEqual(window.duration, 3.0)
        self.assertEqual(window.description, BASIC_OVERLAP_ONLY)
        self.assertAlmostEqual(window.average_score, 0.1)

    def test_basic_overlap_assumes_eight_hours(self):
        """Test the assumed visibility when the core has no set time"""
        gc = make_gc(utc(2024, 7, 15, 4, 0), None)
        window = get_optimal_viewing_window(gc, NEUTRAL_LUNAR_STATE, self.night, LOCATION, START, score=make_score([]))
        self.assertEqual(window.start_time, utc(2024, 7, 15, 5, 0))
        self.assertEqual(window.end_time, utc(2024, 7, 15, 11, 0))
        self.assertEqual(window.description, BASIC_OVERLAP_ONLY)

    def test_no_overlap(self):
        """Test a core that is up only in daylight"""
        gc = make_gc(utc(2024, 7, 15, 12, 0), utc(2024, 7, 15, 14, 0))
        window = get_optimal_viewing_window(gc, NEUTRAL_LUNAR_STATE, self.night, LOCATION, START, score=make_score([]))
        self.assertIsNone(window.start_time)
        self.assertEqual(window.description, NO_VIABLE_TIME)

    def test_scored_through_adapters(self):
        """Test scoring the night when no score is passed in"""
        night = NightWindow(night=START, day_end=utc(2024, 7, 15, 10, 0))
        gc = make_gc(START, utc(2024, 7, 15, 10, 0))
        window = get_optimal_viewing_window(
            gc,
            NEUTRAL_LUNAR_STATE,
            night,
            LOCATION,
            START,
            ephemeris=FakeEphemeris(altitude=lambda _t: 45.0),
            lunar=FakeLunar(),
        )
        self.assertEqual(window.start_time, START)
        self.assertEqual(window.end_time, utc(2024, 7, 15, 10, 0))
        self.assertAlmostEqual(window.duration, 7.0)
        self.assertEqual(window.description, "Excellent viewing window")
        self.assertEqual(window.best_time, START)


class TestCalculateIntegratedOptimalWindow(unittest.TestCase):
    """Test suite for calculate_integrated_optimal_window function"""

    def test_missing_bounds(self):
        """Test that missing darkness or core times give no opportunity"""
        window = calculate_integrated_optimal_window(
            LOCATION, START, None, None, None, None, 0.0, START, START + timedelta(hours=2)
        )
        self.assertEqual(window.description, NO_OPPORTUNITY)
        self.assertIsNone(window.start_time)

    def test_bright_moon_window(self):
        """Test a night dominated by a bright moon"""
        end = START + timedelta(hours=4)
        window = calculate_integrated_optimal_window(
            LOCATION,
            START,
            START,
            end,
            None,
            None,
            0.9,
            START,
            end,
            score_threshold=0.5,
            ephemeris=FakeEphemeris(altitude=lambda _t: 45.0),
            lunar=FakeLunar(altitude=lambda _t: 40.0),
        )
        self.assertIsNotNone(window.start_time)
        self.assertTrue(window.description.startswith("Limited viewing opportunity"))


class TestFormatting(unittest.TestCase):
    """Test suite for window formatting"""

    def setUp(self):
        """Set up a window starting at 03:00 UTC"""
        self.window = OptimalWindow(
            start_time=START, end_time=START + timedelta(hours=2.5), duration=2.5, description="Good viewing window"
        )
        self.empty = OptimalWindow(start_time=None, end_time=None, duration=0.0, description=NO_OPPORTUNITY)

    def test_time_utc(self):
        """Test UTC formatting without a location"""
        self.assertEqual(format_optimal_viewing_time(self.window), "03:00")

    def test_time_local(self):
        """Test local formatting with a location"""
        self.assertEqual(format_optimal_viewing_time(self.window, LOCATION, FakeTimezone(-7)), "20:00")

    def test_time_no_window(self):
        """Test that no window gives an empty string"""
        self.assertEqual(format_optimal_viewing_time(self.empty), "")

    def test_duration(self):
        """Test duration formatting"""
        self.assertEqual(format_optimal_viewing_duration(self.window), "2h 30m")
        self.assertEqual(format_optimal_viewing_duration(self.empty), "")


if __name__ == "__main__":
    unittest.main()

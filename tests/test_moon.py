"""
Unit tests for moon.py

Tests phase naming, rise/set normalization, failure handling and the
moon interference factor.
"""

import unittest
from datetime import date

import deal
from fakes import FakeLunar, utc

from milkyway_planner.api.core.enums import MoonPhase
from milkyway_planner.api.ephemeris.adapters import MoonTimes
from milkyway_planner.api.events.moon import (
    NEUTRAL_LUNAR_STATE,
    LunarState,
    locate_moon,
    moon_interference,
    moon_phase_name,
)
from milkyway_planner.api.location.observer import ObserverLocation


PRIME_MERIDIAN = ObserverLocation(latitude=34.0, longitude=0.0)
TODAY = date(2024, 7, 15)
YESTERDAY = date(2024, 7, 14)
TOMORROW = date(2024, 7, 16)
NOON = utc(2024, 7, 15, 12, 0)


class TestMoonPhaseName(unittest.TestCase):
    """Test suite for moon_phase_name function"""

    def test_named_phases(self):
        """Test each principal phase"""
        self.assertEqual(moon_phase_name(0.0), MoonPhase.NEW_MOON)
        self.assertEqual(moon_phase_name(0.1), MoonPhase.WAXING_CRESCENT)
        self.assertEqual(moon_phase_name(0.25), MoonPhase.FIRST_QUARTER)
        self.assertEqual(moon_phase_name(0.4), MoonPhase.WAXING_GIBBOUS)
        self.assertEqual(moon_phase_name(0.5), MoonPhase.FULL_MOON)
        self.assertEqual(moon_phase_name(0.6), MoonPhase.WANING_GIBBOUS)
        self.assertEqual(moon_phase_name(0.75), MoonPhase.LAST_QUARTER)
        self.assertEqual(moon_phase_name(0.9), MoonPhase.WANING_CRESCENT)

    def test_wraps_to_new(self):
        """Test the end of the cycle"""
        self.assertEqual(moon_phase_name(0.97), MoonPhase.NEW_MOON)

    def test_state_property(self):
        """Test the LunarState phase_name property"""
        state = LunarState(phase=0.5, illumination=1.0, altitude=10.0, azimuth=90.0, rise=None, set=None)
        self.assertEqual(state.phase_name, MoonPhase.FULL_MOON)


class TestLocateMoon(unittest.TestCase):
    """Test suite for locate_moon function"""

    def test_position_and_illumination(self):
        """Test values passed through from the adapter"""
        lunar = FakeLunar(altitude=lambda _t: 25.0, azimuth=120.0, phase=0.3, fraction=0.6)
        state = locate_moon(NOON, PRIME_MERIDIAN, lunar)
        self.assertEqual(state.altitude, 25.0)
        self.assertEqual(state.azimuth, 120.0)
        self.assertEqual(state.phase, 0.3)
        self.assertEqual(state.illumination, 0.6)

    def test_rise_before_set(self):
        """Test a plain rise and set on the same day"""
        rise, moon_set = utc(2024, 7, 15, 14, 0), utc(2024, 7, 15, 23, 0)
        lunar = FakeLunar(times={TODAY: MoonTimes(rise, moon_set)})
        state = locate_moon(NOON, PRIME_MERIDIAN, lunar)
        self.assertEqual(state.rise, rise)
        self.assertEqual(state.set, moon_set)

    def test_set_before_rise_uses_next_day(self):
        """Test that a set before the rise is replaced by the next day's set"""
        rise = utc(2024, 7, 15, 18, 0)
        next_set = utc(2024, 7, 16, 4, 0)
        lunar = FakeLunar(
            times={
                TODAY: MoonTimes(rise, utc(2024, 7, 15, 3, 0)),
                TOMORROW: MoonTimes(utc(2024, 7, 16, 19, 0), next_set),
            }
        )
        state = locate_moon(NOON, PRIME_MERIDIAN, lunar)
        self.assertEqual(state.rise, rise)
        self.assertEqual(state.set, next_set)
        self.assertLess(state.rise, state.set)

    def test_set_before_rise_without_later_set(self):
        """Test that the set is dropped when no later set exists"""
        lunar = FakeLunar(times={TODAY: MoonTimes(utc(2024, 7, 15, 18, 0), utc(2024, 7, 15, 3, 0))})
        state = locate_moon(NOON, PRIME_MERIDIAN, lunar)
        self.assertIsNotNone(state.rise)
        self.assertIsNone(state.set)

    def test_missing_rise_uses_previous_day(self):
        """Test a moon that rose the day before"""
        previous_rise = utc(2024, 7, 14, 22, 0)
        moon_set = utc(2024, 7, 15, 9, 0)
        lunar = FakeLunar(
            times={
                YESTERDAY: MoonTimes(previous_rise, None),
                TODAY: MoonTimes(None, moon_set),
            }
        )
        state = locate_moon(NOON, PRIME_MERIDIAN, lunar)
        self.assertEqual(state.rise, previous_rise)
        self.assertEqual(state.set, moon_set)

    def test_missing_set_uses_next_day(self):
        """Test a moon that sets after midnight"""
        rise = utc(2024, 7, 15, 20, 0)
        next_set = utc(2024, 7, 16, 6, 0)
        lunar = FakeLunar(times={TODAY: MoonTimes(rise, None), TOMORROW: MoonTimes(None, next_set)})
        state = locate_moon(NOON, PRIME_MERIDIAN, lunar)
        self.assertEqual(state.rise, rise)
        self.assertEqual(state.set, next_set)

    def test_no_events(self):
        """Test a day with no rise or set"""
        state = locate_moon(NOON, PRIME_MERIDIAN, FakeLunar())
        self.assertIsNone(state.rise)
        self.assertIsNone(state.set)

    def test_local_day_used(self):
        """Test that the observer's calendar day selects the events"""
        west = ObserverLocation(latitude=34.0, longitude=-116.0)
        rise, moon_set = utc(2024, 7, 14, 20, 0), utc(2024, 7, 15, 4, 0)
        lunar = FakeLunar(times={YESTERDAY: MoonTimes(rise, moon_set)})
        # 05:00 UTC is still the evening of the 14th at -116°
        state = locate_moon(utc(2024, 7, 15, 5, 0), west, lunar)
        self.assertEqual(state.rise, rise)
        self.assertEqual(state.set, moon_set)

    def test_adapter_failure(self):
        """Test that a lunar failure yields a neutral state"""
        state = locate_moon(NOON, PRIME_MERIDIAN, FakeLunar(raise_error=True))
        self.assertEqual(state, NEUTRAL_LUNAR_STATE)


class TestMoonInterference(unittest.TestCase):
    """Test suite for moon_interference function"""

    def make_state(self, altitude, illumination):
        return LunarState(phase=0.5, illumination=illumination, altitude=altitude, azimuth=90.0, rise=None, set=None)

    def test_below_horizon(self):
        """Test that a set moon causes no interference"""
        self.assertEqual(moon_interference(self.make_state(-5.0, 1.0)), 0.0)
        self.assertEqual(moon_interference(self.make_state(0.0, 1.0)), 0.0)

    def test_full_at_45_degrees(self):
        """Test maximum altitude factor at 45°"""
        self.assertAlmostEqual(moon_interference(self.make_state(45.0, 1.0)), 1.0)
        self.assertAlmostEqual(moon_interference(self.make_state(80.0, 0.4)), 0.4)

    def test_low_moon(self):
        """Test the non-linear altitude factor"""
        expected = 0.5 * (0.5**0.7)
        self.assertAlmostEqual(moon_interference(self.make_state(22.5, 0.5)), expected)

    def test_invalid_illumination(self):
        """Test the contract on illumination"""
        with self.assertRaises(deal.PreContractError):
            moon_interference(self.make_state(10.0, 1.5))


if __name__ == "__main__":
    unittest.main()

"""
Unit tests for the milkyway command-line interface

Tests the planning and location commands with deterministic adapters.
"""

import tomllib
import unittest
from pathlib import Path
from unittest.mock import patch

from fakes import FakeEphemeris, FakeLunar, FakeTimezone, utc
from typer.testing import CliRunner

from milkyway_planner.api.core.config import PlannerConfig
from milkyway_planner.api.core.enums import CrossingDirection
from milkyway_planner.api.core.exceptions import InvalidConfigurationError
from milkyway_planner.api.location.observer import ObserverLocation
from milkyway_planner.cli.commands.milky_way import Adapters
from milkyway_planner.cli.main import app


SUN_EVENTS = {
    (CrossingDirection.SETTING, -18.0): [utc(2024, 7, 15, 21, 0)],
    (CrossingDirection.RISING, -18.0): [utc(2024, 7, 16, 3, 0)],
    (CrossingDirection.SETTING, -0.833): [utc(2024, 7, 15, 19, 30)],
    (CrossingDirection.RISING, -0.833): [utc(2024, 7, 16, 4, 30)],
}

TONIGHT = ["tonight", "--lat", "34.0", "--lng", "0.0", "--date", "2024-07-15"]


def core_altitude(time):
    return 45.0 if utc(2024, 7, 15, 20, 0) <= time < utc(2024, 7, 16, 2, 0) else 0.0


def make_adapters(_config=None):
    return Adapters(
        ephemeris=FakeEphemeris(altitude=core_altitude, sun_events=SUN_EVENTS),
        lunar=FakeLunar(),
        timezone=FakeTimezone(),
    )


class PlanningCommandTestCase(unittest.TestCase):
    """Base class that swaps in deterministic adapters and configuration"""

    config = PlannerConfig()

    def setUp(self):
        """Patch configuration loading and adapter construction"""
        self.runner = CliRunner()
        config_patch = patch("milkyway_planner.cli.commands.milky_way.load_config", return_value=self.config)
        adapters_patch = patch("milkyway_planner.cli.commands.milky_way.create_adapters", side_effect=make_adapters)
        self.load_config = config_patch.start()
        self.create_adapters = adapters_patch.start()
        self.addCleanup(config_patch.stop)
        self.addCleanup(adapters_patch.stop)


class TestTonightCommand(PlanningCommandTestCase):
    """Test suite for the tonight command"""

    def test_json_output(self):
        """Test the JSON report for a dark night"""
        result = self.runner.invoke(app, [*TONIGHT, "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"date": "2024-07-15"', result.output)
        self.assertIn('"rating": 4', result.output)
        self.assertIn('"description": "Excellent viewing window"', result.output)
        self.assertIn('"start_local": "21:00"', result.output)
        self.assertIn('"sunset": "2024-07-15 19:30:00+00:00"', result.output)
        self.assertIn('"sunrise": "2024-07-16 04:30:00+00:00"', result.output)

    def test_table_output(self):
        """Test the human-readable report"""
        result = self.runner.invoke(app, TONIGHT)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Milky Way Core for", result.output)
        self.assertIn("Excellent viewing window", result.output)
        self.assertIn("Astronomical Dusk", result.output)
        self.assertIn("Sunset / Sunrise", result.output)
        self.assertIn("19:30 / 04:30", result.output)

    def test_no_darkness_warning(self):
        """Test the warning for a night without astronomical darkness"""
        self.create_adapters.side_effect = None
        self.create_adapters.return_value = Adapters(
            ephemeris=FakeEphemeris(altitude=core_altitude), lunar=FakeLunar(), timezone=FakeTimezone()
        )
        result = self.runner.invoke(app, TONIGHT)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No astronomical darkness tonight", result.output)

    def test_threshold_option(self):
        """Test that --threshold is accepted"""
        result = self.runner.invoke(app, [*TONIGHT, "--threshold", "0.9", "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"rating": 4', result.output)

    def test_threshold_out_of_range(self):
        """Test that a threshold above 1 is rejected"""
        result = self.runner.invoke(app, [*TONIGHT, "--threshold", "1.5"])
        self.assertNotEqual(result.exit_code, 0)

    def test_single_coordinate(self):
        """Test that --lat without --lng is an error"""
        result = self.runner.invoke(app, ["tonight", "--lat", "34.0"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Both --lat and --lng are required", result.output)

    def test_invalid_latitude(self):
        """Test that an out-of-range latitude is an error"""
        result = self.runner.invoke(app, ["tonight", "--lat", "95.0", "--lng", "0.0"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Latitude must be -90 to +90", result.output)

    def test_built_in_default_location(self):
        """Test the fallback location when none is saved"""
        result = self.runner.invoke(app, ["tonight", "--date", "2024-07-15", "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Joshua Tree (default)", result.output)

    def test_invalid_configuration(self):
        """Test that a broken configuration exits with an error"""
        self.load_config.side_effect = InvalidConfigurationError("quality_threshold must be within 0-1")
        result = self.runner.invoke(app, TONIGHT)
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid configuration", result.output)


class TestSavedLocation(PlanningCommandTestCase):
    """Test suite for planning with a saved default location"""

    config = PlannerConfig(default_location=ObserverLocation(latitude=34.0, longitude=0.0, name="Backyard"))

    def test_saved_location_used(self):
        """Test that the saved location is used without --lat/--lng"""
        result = self.runner.invoke(app, ["tonight", "--date", "2024-07-15", "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"name": "Backyard"', result.output)
        self.assertNotIn("No location set", result.output)


class TestCalendarCommand(PlanningCommandTestCase):
    """Test suite for the calendar command"""

    def test_json_output(self):
        """Test one JSON report per night"""
        result = self.runner.invoke(
            app, ["calendar", "--lat", "34.0", "--lng", "0.0", "--start", "2024-07-15", "--nights", "2", "--json"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"date": "2024-07-15"', result.output)
        self.assertIn('"date": "2024-07-16"', result.output)
        self.assertNotIn('"date": "2024-07-17"', result.output)

    def test_table_output(self):
        """Test the calendar table"""
        result = self.runner.invoke(
            app, ["calendar", "--lat", "34.0", "--lng", "0.0", "--start", "2024-07-15", "-n", "3"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Milky Way Core Calendar", result.output)
        self.assertEqual(self.create_adapters.call_count, 1)


class TestLocationCommands(unittest.TestCase):
    """Test suite for the location commands"""

    def setUp(self):
        """Set up the CLI runner"""
        self.runner = CliRunner()

    @patch("milkyway_planner.cli.commands.location.save_default_location")
    def test_set(self, mock_save):
        """Test saving a named location"""
        mock_save.return_value = Path("/tmp/milkyway/config.json")
        result = self.runner.invoke(
            app, ["location", "set", "--lat", "34.0", "--lng", "-116.0", "--name", "Joshua Tree"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        mock_save.assert_called_once_with(ObserverLocation(latitude=34.0, longitude=-116.0, name="Joshua Tree"))
        self.assertIn("Default location set to Joshua Tree", result.output)

    @patch("milkyway_planner.cli.commands.location.save_default_location")
    def test_set_invalid(self, mock_save):
        """Test that invalid coordinates are not saved"""
        result = self.runner.invoke(app, ["location", "set", "--lat", "100.0", "--lng", "0.0"])
        self.assertEqual(result.exit_code, 1)
        mock_save.assert_not_called()

    @patch("milkyway_planner.cli.commands.location.load_config")
    def test_show_built_in_default(self, mock_load):
        """Test showing the built-in default location"""
        mock_load.return_value = PlannerConfig()
        result = self.runner.invoke(app, ["location", "show", "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"built_in_default": true', result.output)

    @patch("milkyway_planner.cli.commands.location.load_config")
    def test_show_saved(self, mock_load):
        """Test showing a saved location"""
        mock_load.return_value = PlannerConfig(
            default_location=ObserverLocation(latitude=-31.27, longitude=149.0, name="Warrumbungle")
        )
        result = self.runner.invoke(app, ["location", "show"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Warrumbungle", result.output)
        self.assertIn("31.2700°S", result.output)


class TestVersionCommand(unittest.TestCase):
    """Test suite for the version command"""

    def test_version(self):
        """Test the version string"""
        result = CliRunner().invoke(app, ["version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)


class TestPackaging(unittest.TestCase):
    """Test suite for the declared dependencies of the CLI"""

    def test_click_declared(self):
        """Test that click, imported directly by the CLI, is a declared dependency"""
        with (Path(__file__).parents[1] / "pyproject.toml").open("rb") as f:
            project = tomllib.load(f)["project"]
        names = {dep.split(">")[0].split("=")[0].strip() for dep in project["dependencies"]}
        self.assertIn("click", names)
        self.assertIn("typer", names)


if __name__ == "__main__":
    unittest.main()

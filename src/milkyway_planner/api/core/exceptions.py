"""
Custom exception classes for the Milky Way planner.

This module defines specific exceptions for the errors that can occur
while loading ephemeris data, validating locations and reading
configuration. Visibility conditions (no darkness, core below the
horizon, ...) are never exceptions; they are ordinary rating-0 results.
"""

from __future__ import annotations


__all__ = [
    # Configuration exceptions
    "ConfigurationError",
    # Ephemeris exceptions
    "EphemerisError",
    "EphemerisFileNotFoundError",
    "InvalidConfigurationError",
    "InvalidCoordinateError",
    # Location exceptions
    "LocationError",
    # Base exception
    "MilkyWayPlannerError",
]


class MilkyWayPlannerError(Exception):
    """
    Base exception for all Milky Way planner errors.

    All custom exceptions in this library inherit from this base class,
    making it easy to catch all planner-related errors.
    """

    pass


# ============================================================================
# Ephemeris Exceptions
# ============================================================================


class EphemerisError(MilkyWayPlannerError):
    """Base exception for ephemeris-related errors."""

    pass


class EphemerisFileNotFoundError(EphemerisError):
    """
    Raised when the ephemeris kernel cannot be loaded.

    This can occur when:
    - The kernel has not been downloaded and there is no network access
    - SKYFIELD_DIR points at a directory that is not writable
    - The configured kernel name does not exist
    """

    pass


# ============================================================================
# Location Exceptions
# ============================================================================


class LocationError(MilkyWayPlannerError):
    """Base exception for location-related errors."""

    pass


class InvalidCoordinateError(LocationError):
    """
    Raised when coordinates are out of valid range.

    This occurs when attempting to use coordinates that are:
    - Latitude outside -90 to +90 degrees range
    - Longitude outside -180 to +180 degrees range
    """

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(MilkyWayPlannerError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when a configuration value cannot be parsed or is out of range."""

    pass

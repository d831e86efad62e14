"""Ephemeris adapters and Skyfield loading helpers."""

from milkyway_planner.api.ephemeris.adapters import (
    EphemerisAdapter,
    HorizontalPosition,
    LunarAdapter,
    MoonIllumination,
    MoonTimes,
    SkyfieldEphemeris,
    SkyfieldLunarEphemeris,
)


__all__ = [
    "EphemerisAdapter",
    "HorizontalPosition",
    "LunarAdapter",
    "MoonIllumination",
    "MoonTimes",
    "SkyfieldEphemeris",
    "SkyfieldLunarEphemeris",
]

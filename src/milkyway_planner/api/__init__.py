"""
Milky Way Planner API

Computation layer of the planner, separate from CLI presentation.

The API is organized into subpackages:
- core: Constants, enums, configuration, exceptions and utilities
- location: Observer location and timezone lookup
- ephemeris: Ephemeris adapters backed by Skyfield
- events: Locators, scoring, window synthesis and the night report
"""

# Activate deal contracts for runtime validation
import deal


deal.activate()

__all__ = [
    # Package is organized into subpackages - import directly from them:
    # from milkyway_planner.api.events import ...
    # from milkyway_planner.api.location import ...
]

"""Command-line interface for the Milky Way planner."""

from milkyway_planner import __version__


__all__ = ["__version__"]

"""Core subpackage for shared constants, enums, utilities, configuration and exceptions."""

from milkyway_planner.api.core.utils import (
    angular_separation,
    ensure_utc,
    format_duration,
)


__all__ = [
    "angular_separation",
    "ensure_utc",
    "format_duration",
]

"""
Milky Way Planning Commands

Rate tonight (or any night) for galactic core viewing, and compare the
coming nights side by side.
"""

from datetime import date, datetime
from typing import Any, NamedTuple

import typer
from rich.table import Table

from milkyway_planner.api.core.config import PlannerConfig, load_config
from milkyway_planner.api.core.constants import GALACTIC_CENTER_DEC, GALACTIC_CENTER_RA
from milkyway_planner.api.core.exceptions import InvalidConfigurationError, InvalidCoordinateError
from milkyway_planner.api.core.utils import format_dec, format_ra
from milkyway_planner.api.ephemeris.adapters import EphemerisAdapter, LunarAdapter, SkyfieldEphemeris
from milkyway_planner.api.events.galactic_core import format_galactic_core_time, galactic_core_dark_duration
from milkyway_planner.api.events.night_report import NightReport, compute_calendar, compute_night_report
from milkyway_planner.api.events.optimal_window import format_optimal_viewing_duration, format_optimal_viewing_time
from milkyway_planner.api.events.visibility_rating import get_visibility_description
from milkyway_planner.api.location.observer import DEFAULT_LOCATION, ObserverLocation
from milkyway_planner.api.location.timezone import (
    TimezoneAdapter,
    TimezoneCache,
    TimezoneFinderAdapter,
    format_time_in_location_timezone,
)
from milkyway_planner.cli.utils.output import (
    console,
    format_rating,
    print_error,
    print_info,
    print_json,
    print_warning,
)


class Adapters(NamedTuple):
    """Adapters shared by one CLI invocation."""

    ephemeris: EphemerisAdapter
    lunar: LunarAdapter
    timezone: TimezoneAdapter


def create_adapters(config: PlannerConfig) -> Adapters:
    """Build the Skyfield and timezone adapters from configuration."""
    ephemeris = SkyfieldEphemeris(config)
    return Adapters(
        ephemeris=ephemeris,
        lunar=ephemeris,
        timezone=TimezoneFinderAdapter(TimezoneCache(maxsize=config.timezone_cache_size)),
    )


def _load_config() -> PlannerConfig:
    try:
        return load_config()
    except InvalidConfigurationError as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1) from e


def resolve_location(config: PlannerConfig, latitude: float | None, longitude: float | None) -> ObserverLocation:
    """
    Location from --lat/--lng, else the saved default, else the built-in default.

    Raises:
        typer.Exit: If only one coordinate is given or the coordinates are invalid
    """
    if latitude is not None or longitude is not None:
        if latitude is None or longitude is None:
            print_error("Both --lat and --lng are required to give a location")
            raise typer.Exit(code=1)
        try:
            return ObserverLocation(latitude=latitude, longitude=longitude)
        except InvalidCoordinateError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

    if config.default_location is not None:
        return config.default_location

    print_info(f"No location set, using {DEFAULT_LOCATION.display_name}")
    return DEFAULT_LOCATION


def _time(report: NightReport, time: datetime | None, timezone: TimezoneAdapter) -> str:
    return format_time_in_location_timezone(time, report.location, timezone)


def _report_to_dict(report: NightReport, timezone: TimezoneAdapter) -> dict[str, Any]:
    gc = report.galactic_core
    moon = report.moon
    window = report.optimal_window
    return {
        "date": report.date.isoformat(),
        "location": {
            "name": report.location.name,
            "latitude": report.location.latitude,
            "longitude": report.location.longitude,
        },
        "rating": report.rating.rating,
        "reason": report.rating.reason,
        "visibility": {
            "stars": report.visibility.stars,
            "points": round(report.visibility.points, 1),
            "reason": report.visibility.reason,
            "description": get_visibility_description(report.visibility.stars),
        },
        "night": {
            "sunset": report.night_window.sunset,
            "sunrise": report.night_window.sunrise,
            "astronomical_dusk": report.night_window.night,
            "astronomical_dawn": report.night_window.day_end,
            "civil_dusk": report.night_window.dusk,
            "civil_dawn": report.night_window.dawn,
            "dark_hours": round(report.dark_hours, 2),
        },
        "galactic_core": {
            "altitude": round(gc.altitude, 2),
            "azimuth": round(gc.azimuth, 2),
            "is_visible": gc.is_visible,
            "threshold": gc.threshold,
            "rise": gc.rise_time,
            "transit": gc.transit_time,
            "set": gc.set_time,
        },
        "moon": {
            "phase": round(moon.phase, 3),
            "phase_name": moon.phase_name.value,
            "illumination": round(moon.illumination, 3),
            "altitude": round(moon.altitude, 2),
            "rise": moon.rise,
            "set": moon.set,
        },
        "optimal_window": {
            "start": window.start_time,
            "end": window.end_time,
            "start_local": format_optimal_viewing_time(window, report.location, timezone),
            "duration_hours": round(window.duration, 2),
            "average_score": round(window.average_score, 3),
            "best_time": window.best_time,
            "description": window.description,
        },
    }


def _show_report(report: NightReport, timezone: TimezoneAdapter) -> None:
    gc = report.galactic_core
    moon = report.moon
    night = report.night_window
    window = report.optimal_window

    console.print(
        f"\n[bold cyan]Milky Way Core for {report.location.display_name}[/bold cyan] "
        f"[dim]({report.date.strftime('%A, %B %d, %Y')})[/dim]"
    )
    console.print(
        f"[dim]Galactic core at RA {format_ra(GALACTIC_CENTER_RA)}, Dec {format_dec(GALACTIC_CENTER_DEC)}; "
        f"times are local to the observer[/dim]\n"
    )

    console.print(f"Rating: {format_rating(report.rating.rating)}  {report.rating.reason}")
    console.print(
        f"Point rating: {format_rating(report.visibility.stars)}  "
        f"{get_visibility_description(report.visibility.stars)}\n"
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row(
        "Sunset / Sunrise", f"{_time(report, night.sunset, timezone)} / {_time(report, night.sunrise, timezone)}"
    )
    table.add_row("Astronomical Dusk", _time(report, night.night, timezone))
    table.add_row("Astronomical Dawn", _time(report, night.day_end, timezone))
    table.add_row("Civil Dusk / Dawn", f"{_time(report, night.dusk, timezone)} / {_time(report, night.dawn, timezone)}")
    table.add_row("Dark Hours", f"{report.dark_hours:.1f} h")
    table.add_row("", "")
    rise_text = format_galactic_core_time(gc, report.location, timezone)
    table.add_row("Core Rises Above", f"{gc.threshold:.0f}° at {rise_text}")
    table.add_row("Core Transit", _time(report, gc.transit_time, timezone))
    table.add_row("Core Sets Below", f"{gc.threshold:.0f}° at {_time(report, gc.set_time, timezone)}")
    table.add_row("Core in Darkness", galactic_core_dark_duration(gc, night))
    table.add_row("", "")
    table.add_row("Moon Phase", f"{moon.phase_name.value} ({moon.illumination * 100:.0f}% illuminated)")
    table.add_row("Moonrise / Moonset", f"{_time(report, moon.rise, timezone)} / {_time(report, moon.set, timezone)}")
    table.add_row("", "")
    table.add_row("Best Window", window.description)
    if window.start_time is not None:
        table.add_row(
            "Window Start",
            f"{format_optimal_viewing_time(window, report.location, timezone)} "
            f"for {format_optimal_viewing_duration(window)}",
        )
        table.add_row("Window Quality", f"{window.average_score * 100:.0f}%")
        table.add_row("Best Moment", _time(report, window.best_time, timezone))

    console.print(table)
    if not night.has_darkness:
        print_warning("No astronomical darkness tonight (the sun stays above -18°)")
    console.print()


def show_tonight(
    latitude: float | None = typer.Option(None, "--lat", help="Latitude in degrees (default: saved location)"),
    longitude: float | None = typer.Option(None, "--lng", help="Longitude in degrees (default: saved location)"),
    night: datetime | None = typer.Option(
        None, "--date", formats=["%Y-%m-%d"], help="Date of the evening (default: today)"
    ),
    threshold: float | None = typer.Option(
        None, "--threshold", min=0.0, max=1.0, help="Minimum sample score for a quality period"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Rate a night for galactic core viewing.

    Example:
        milkyway tonight
        milkyway tonight --lat 34.0 --lng -116.0 --date 2024-07-15
        milkyway tonight --json
    """
    config = _load_config()
    location = resolve_location(config, latitude, longitude)
    adapters = create_adapters(config)
    night_date = night.date() if night is not None else date.today()

    report = compute_night_report(
        night_date,
        location,
        ephemeris=adapters.ephemeris,
        lunar=adapters.lunar,
        timezone=adapters.timezone,
        quality_threshold=threshold if threshold is not None else config.quality_threshold,
    )

    if json_output:
        print_json(_report_to_dict(report, adapters.timezone))
        return

    _show_report(report, adapters.timezone)


def show_calendar(
    latitude: float | None = typer.Option(None, "--lat", help="Latitude in degrees (default: saved location)"),
    longitude: float | None = typer.Option(None, "--lng", help="Longitude in degrees (default: saved location)"),
    start: datetime | None = typer.Option(None, "--start", formats=["%Y-%m-%d"], help="First night (default: today)"),
    nights: int | None = typer.Option(None, "--nights", "-n", min=1, max=60, help="Number of nights"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Compare the coming nights for galactic core viewing.

    Example:
        milkyway calendar
        milkyway calendar --start 2024-07-01 --nights 14
    """
    config = _load_config()
    location = resolve_location(config, latitude, longitude)
    adapters = create_adapters(config)
    first = start.date() if start is not None else date.today()

    reports = compute_calendar(
        first,
        location,
        nights=nights or config.calendar_nights,
        ephemeris=adapters.ephemeris,
        lunar=adapters.lunar,
        timezone=adapters.timezone,
        quality_threshold=config.quality_threshold,
    )

    if json_output:
        print_json([_report_to_dict(report, adapters.timezone) for report in reports])
        return

    table = Table(
        title=f"Milky Way Core Calendar for {location.display_name}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Date", style="cyan")
    table.add_column("Rating")
    table.add_column("Points")
    table.add_column("Window", style="green")
    table.add_column("Moon", style="yellow")
    table.add_column("Reason", style="dim")

    for report in reports:
        window = report.optimal_window
        window_text = (
            f"{format_optimal_viewing_time(window, location, adapters.timezone)} "
            f"({format_optimal_viewing_duration(window)})"
            if window.start_time is not None
            else "—"
        )
        table.add_row(
            report.date.strftime("%a %b %d"),
            format_rating(report.rating.rating),
            format_rating(report.visibility.stars),
            window_text,
            f"{report.moon.illumination * 100:.0f}%",
            report.rating.reason,
        )

    console.print(table)

"""
Location Commands

Commands for managing the default observer location.
"""

import typer
from click import Context
from rich.table import Table
from typer.core import TyperGroup

from milkyway_planner.api.core.config import get_config_path, load_config, save_default_location
from milkyway_planner.api.core.exceptions import InvalidConfigurationError, InvalidCoordinateError
from milkyway_planner.api.location.observer import DEFAULT_LOCATION, ObserverLocation
from milkyway_planner.cli.utils.output import console, print_error, print_info, print_json, print_success


class SortedCommandsGroup(TyperGroup):
    """Custom Typer group that sorts commands alphabetically within each help panel."""

    def list_commands(self, ctx: Context) -> list[str]:
        """Return commands sorted alphabetically."""
        commands = super().list_commands(ctx)
        return sorted(commands)


app = typer.Typer(help="Observer location commands", cls=SortedCommandsGroup)


@app.command("set")
def set_location(
    latitude: float = typer.Option(..., "--lat", help="Latitude in degrees (-90 to +90, North is positive)"),
    longitude: float = typer.Option(..., "--lng", help="Longitude in degrees (-180 to +180, East is positive)"),
    elevation: float = typer.Option(0.0, "--elev", help="Elevation in meters above sea level"),
    name: str | None = typer.Option(None, "--name", help="Optional location name"),
) -> None:
    """
    Save the default observer location.

    Example:
        # Joshua Tree National Park
        milkyway location set --lat 34.0 --lng -116.0 --name "Joshua Tree"

        # Warrumbungle National Park
        milkyway location set --lat -31.27 --lng 149.0
    """
    try:
        location = ObserverLocation(latitude=latitude, longitude=longitude, elevation=elevation, name=name)
    except InvalidCoordinateError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    path = save_default_location(location)
    print_success(f"Default location set to {location.display_name}")
    print_info(f"Saved to {path}")


@app.command("show")
def show_location(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """
    Show the default observer location.

    Example:
        milkyway location show
        milkyway location show --json
    """
    try:
        config = load_config()
    except InvalidConfigurationError as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1) from e

    location = config.default_location or DEFAULT_LOCATION
    is_default = config.default_location is None

    if json_output:
        print_json(
            {
                "name": location.name,
                "latitude": location.latitude,
                "longitude": location.longitude,
                "elevation": location.elevation,
                "built_in_default": is_default,
                "config_file": str(get_config_path()),
            }
        )
        return

    table = Table(title="Observer Location", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    lat_dir = "N" if location.latitude >= 0 else "S"
    lon_dir = "E" if location.longitude >= 0 else "W"
    if location.name:
        table.add_row("Location Name", location.name)
    table.add_row("Latitude", f"{abs(location.latitude):.4f}°{lat_dir}")
    table.add_row("Longitude", f"{abs(location.longitude):.4f}°{lon_dir}")
    if location.elevation:
        table.add_row("Elevation", f"{location.elevation:.0f} m above sea level")

    console.print(table)
    if is_default:
        print_info("No location saved. Use 'milkyway location set' to configure yours.")

"""
Milky Way Planner CLI - Main Application

This is the main entry point for the milkyway command-line interface.
"""

import logging

import typer
from click import Context
from dotenv import load_dotenv
from rich.logging import RichHandler
from typer.core import TyperGroup

from milkyway_planner.cli.commands import location, milky_way
from milkyway_planner.cli.utils.output import console


class SortedCommandsGroup(TyperGroup):
    """Custom Typer group that sorts commands alphabetically within each help panel."""

    def list_commands(self, ctx: Context) -> list[str]:
        """Return commands sorted alphabetically."""
        commands = super().list_commands(ctx)
        return sorted(commands)


# Create main app
app = typer.Typer(
    name="milkyway",
    help="Milky Way galactic core visibility planner",
    add_completion=True,
    rich_markup_mode="rich",
    cls=SortedCommandsGroup,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """
    Milky Way Planner

    Find when the galactic core is best placed for viewing and photography.

    [bold green]Examples:[/bold green]

        milkyway location set --lat 34.0 --lng -116.0
        milkyway tonight
        milkyway calendar --nights 14

    [bold blue]Environment Variables:[/bold blue]

        SKYFIELD_DIR                        - Directory for ephemeris kernels
        MILKYWAY_EPHEMERIS                  - Kernel file name (default: de440s.bsp)
        MILKYWAY_LATITUDE, MILKYWAY_LONGITUDE - Default observer location
    """
    load_dotenv()

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=console, rich_tracebacks=True)],
        )
        console.print("[dim]Verbose mode enabled[/dim]")


@app.command(rich_help_panel="Utilities")
def version() -> None:
    """Show the CLI version."""
    from milkyway_planner.cli import __version__

    console.print(f"[bold]Milky Way Planner[/bold] version [cyan]{__version__}[/cyan]")


app.command("tonight", rich_help_panel="Planning")(milky_way.show_tonight)
app.command("calendar", rich_help_panel="Planning")(milky_way.show_calendar)
app.add_typer(location.app, name="location", help="Observer location commands", rich_help_panel="Configuration")


if __name__ == "__main__":
    app()

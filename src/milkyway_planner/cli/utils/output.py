"""
CLI Output Utilities

Rich console helpers shared by the planner commands.
"""

from typing import Any

from rich.console import Console


# Create console with unicode detection
# If terminal doesn't support unicode properly, Rich will use ASCII alternatives
console = Console()

_use_unicode = console.is_terminal and not console.legacy_windows


def print_success(message: str) -> None:
    """Print success message in green."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print error message in red."""
    console.print(f"[red]✗[/red] {message}", style="red")


def print_warning(message: str) -> None:
    """Print warning message in yellow."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    """Print info message in blue."""
    # U+2139 is in the Letterlike Symbols block, which most terminal fonts cover
    info_icon = "ℹ" if _use_unicode else "i"
    console.print(f"[blue]{info_icon}[/blue] {message}")


def print_json(data: dict[str, Any] | list[Any]) -> None:
    """Print data as JSON."""
    import json

    console.print_json(json.dumps(data, default=str))


def format_stars(stars: int, maximum: int = 4) -> str:
    """Render a 0-4 rating as filled and empty stars."""
    filled = "★" if _use_unicode else "*"
    empty = "☆" if _use_unicode else "."
    return filled * stars + empty * (maximum - stars)


def format_rating(rating: int) -> str:
    """Colorize a 0-4 rating."""
    colors = {
        0: "dim",
        1: "red",
        2: "yellow",
        3: "green",
        4: "bold bright_green",
    }
    style = colors.get(rating, "white")
    return f"[{style}]{format_stars(rating)}[/{style}]"

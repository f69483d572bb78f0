"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from chococtl.models.source import PackageSource

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "#f53263",
        "info": "#0ec1c8",
        "trusted": "#69B9A1",
    }
)


def _detect_color_system() -> str | None:
    """Use truecolor on interactive terminals, otherwise let Rich decide."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


def create_source_table(sources: Iterable[PackageSource], title: str = "Package Sources") -> Table:
    """Build a table listing package sources.

    Args:
        sources: Sources to display, in registry order.
        title: Table title.

    Returns:
        Rich Table with one row per source.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Location", style="text", overflow="fold")
    table.add_column("Trusted", justify="center")
    table.add_column("Registered", justify="center", style="muted")

    for source in sources:
        name = f"[trusted]{source.name}[/]" if source.trusted else source.name
        table.add_row(
            name,
            source.location,
            "[success]yes[/]" if source.trusted else "[muted]no[/]",
            "yes" if source.is_registered else "default",
        )
    return table


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")

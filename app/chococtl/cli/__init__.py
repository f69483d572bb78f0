"""CLI package for chococtl.

This package contains the Typer application and all subcommands.
"""

from chococtl.cli.main import app

__all__ = ["app"]

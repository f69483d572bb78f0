"""CLI commands for chococtl.

This package contains all subcommand implementations.
"""

from chococtl.cli.commands import install, shim, source

__all__ = ["install", "shim", "source"]

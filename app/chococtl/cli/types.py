"""Shared types and helpers for CLI commands."""

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from chococtl.core.paths import check_package_name
from chococtl.core.settings import ProviderSettings
from chococtl.sources.schema import get_schema


class ProviderChoice(str, Enum):
    """Registry document layouts selectable from the CLI."""

    CHOCOLATEY = "chocolatey"
    NUGET = "nuget"


def _package_name(value: str) -> str:
    try:
        return check_package_name(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


PackageNameArgument = Annotated[
    str,
    typer.Argument(help="Package name.", callback=_package_name),
]


def build_settings(
    provider: ProviderChoice = ProviderChoice.CHOCOLATEY,
    *,
    config_file: Path | None = None,
    force_x86: bool = False,
    skip_validate: bool = False,
) -> ProviderSettings:
    """Build engine settings for one CLI invocation.

    Args:
        provider: Registry document layout.
        config_file: Registry file overriding the default location.
        force_x86: Prefer 32-bit payloads.
        skip_validate: Add sources without validating them.

    Returns:
        Settings computed from the process environment.
    """
    return ProviderSettings.from_environment(
        config_file=config_file,
        force_x86=force_x86,
        skip_validate=skip_validate,
        schema=get_schema(provider.value),
    )

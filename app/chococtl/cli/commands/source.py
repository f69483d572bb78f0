"""Package source commands.

Lists, adds and removes package sources in the source registry.
"""

from pathlib import Path
from typing import Annotated

import typer

from chococtl.cli.types import ProviderChoice, build_settings
from chococtl.core.errors import ChococtlError
from chococtl.sources.registry import SourceRegistry
from chococtl.sources.store import ConfigStore
from chococtl.utils.formatting import (
    console,
    create_source_table,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Manage package sources.",
    invoke_without_command=True,
    no_args_is_help=True,
)

ProviderOption = Annotated[
    ProviderChoice,
    typer.Option(
        "--provider",
        "-p",
        help="Registry document layout.",
        case_sensitive=False,
    ),
]

ConfigFileOption = Annotated[
    Path | None,
    typer.Option(
        "--config-file",
        "-c",
        help="Source registry file (default: <root>/config/chococtl.toml).",
    ),
]


def _registry(
    provider: ProviderChoice,
    config_file: Path | None,
    skip_validate: bool = False,
) -> SourceRegistry:
    settings = build_settings(provider, config_file=config_file, skip_validate=skip_validate)
    store = ConfigStore(settings.config_path, settings.schema)
    return SourceRegistry(store, skip_validate=settings.skip_validate)


@app.command("list")
def list_sources(
    provider: ProviderOption = ProviderChoice.CHOCOLATEY,
    config_file: ConfigFileOption = None,
) -> None:
    """List registered package sources."""
    registry = _registry(provider, config_file)
    console.print(create_source_table(registry.list().values()))


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Source name.")],
    location: Annotated[str, typer.Argument(help="Source URL or path.")],
    trusted: Annotated[
        bool,
        typer.Option("--trusted", help="Mark the source as trusted."),
    ] = False,
    skip_validate: Annotated[
        bool,
        typer.Option("--skip-validate", help="Add the source without checking its location."),
    ] = False,
    provider: ProviderOption = ProviderChoice.CHOCOLATEY,
    config_file: ConfigFileOption = None,
) -> None:
    """Add a package source."""
    registry = _registry(provider, config_file, skip_validate)

    try:
        added = registry.add(name, location, trusted=trusted, validated=not skip_validate)
    except ChococtlError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not added:
        print_warning(f"Source location {location} could not be validated; {name} was not added.")
        raise typer.Exit(code=1)

    print_success(f"Added package source {name}.")


@app.command()
def remove(
    name: Annotated[str, typer.Argument(help="Source name.")],
    provider: ProviderOption = ProviderChoice.CHOCOLATEY,
    config_file: ConfigFileOption = None,
) -> None:
    """Remove a package source."""
    registry = _registry(provider, config_file)

    try:
        removed = registry.remove(name)
    except ChococtlError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not removed:
        print_info(f"No package source named {name}.")
        return

    print_success(f"Removed package source {name}.")

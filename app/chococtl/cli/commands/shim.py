"""Shim commands.

Generates or removes the shims of an installed package.
"""

import typer

from chococtl.cli.types import PackageNameArgument, build_settings
from chococtl.operators.shims import ShimManager
from chococtl.utils.formatting import console, print_info, print_success

app = typer.Typer(
    help="Generate and remove shims.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def generate(
    package: PackageNameArgument,
) -> None:
    """Generate shims for every executable of a package."""
    settings = build_settings()
    shims = ShimManager(settings.bin_dir).generate_shims(settings.package_dir(package))

    if not shims:
        print_info(f"No executables found for {package}.")
        return

    for path in shims:
        console.print(f"  [muted]{path}[/]")
    print_success(f"Generated {len(shims)} shim(s) for {package}.")


@app.command()
def remove(
    package: PackageNameArgument,
) -> None:
    """Remove the shims of a package."""
    settings = build_settings()
    removed = ShimManager(settings.bin_dir).remove_shims(settings.package_dir(package))

    if not removed:
        print_info(f"No shims found for {package}.")
        return

    print_success(f"Removed {len(removed)} shim(s) for {package}.")

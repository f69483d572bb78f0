"""Install and uninstall commands.

Drives the InstallOrchestrator for one package. Ctrl-C cancels the
running installer instead of aborting the whole program.
"""

import signal
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer

from chococtl.cli.types import PackageNameArgument, build_settings
from chococtl.core.errors import ChococtlError, ProcessKilledError
from chococtl.core.orchestrator import InstallOrchestrator
from chococtl.models.install import InstallRequest
from chococtl.operators.process import CancellationToken
from chococtl.utils.formatting import console, print_error, print_success, print_warning

app = typer.Typer(
    help="Install and uninstall packages.",
    invoke_without_command=True,
    no_args_is_help=True,
)

ForceX86Option = Annotated[
    bool,
    typer.Option("--force-x86", help="Use the 32-bit payload on 64-bit hosts."),
]

ExitCodeOption = Annotated[
    list[int] | None,
    typer.Option(
        "--valid-exit-code",
        help="Installer exit code counted as success (repeatable, default 0).",
    ),
]


@contextmanager
def _cancel_on_interrupt(token: CancellationToken) -> Iterator[None]:
    """Turn SIGINT into a cancellation request for the duration of the block."""

    def _handler(signum: int, frame: object) -> None:
        token.cancel("Interrupted by user")

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@contextmanager
def _orchestrator(force_x86: bool = False) -> Iterator[InstallOrchestrator]:
    """Build an orchestrator and report engine errors as CLI failures."""
    token = CancellationToken()
    settings = build_settings(force_x86=force_x86)
    with _cancel_on_interrupt(token):
        try:
            yield InstallOrchestrator.create(settings, token)
        except ProcessKilledError as e:
            print_warning(str(e))
            raise typer.Exit(code=130) from e
        except ChococtlError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e


def _exit_codes(values: list[int] | None) -> frozenset[int]:
    return frozenset(values) if values else frozenset({0})


@app.command()
def package(
    name: PackageNameArgument,
    file_type: Annotated[str, typer.Argument(help="Payload type: msi, msu, exe or zip.")],
    url: Annotated[str, typer.Argument(help="Payload URL or path.")],
    url64: Annotated[
        str | None,
        typer.Option("--url64", help="64-bit payload URL."),
    ] = None,
    silent_args: Annotated[
        str,
        typer.Option("--silent-args", "-s", help="Arguments for an unattended install."),
    ] = "",
    valid_exit_codes: ExitCodeOption = None,
    force_x86: ForceX86Option = False,
    post_install: Annotated[
        bool,
        typer.Option("--post-install/--no-post-install", help="Run the package install script."),
    ] = True,
) -> None:
    """Fetch and install a package payload."""
    request = InstallRequest(
        package_name=name,
        file_type=file_type,
        url=url,
        url64=url64,
        silent_args=silent_args,
        valid_exit_codes=_exit_codes(valid_exit_codes),
        working_directory=str(Path.cwd()),
    )

    with _orchestrator(force_x86) as orchestrator:
        report = orchestrator.install_package(request)
        if post_install and not orchestrator.post_install(name, install_arguments=silent_args):
            print_warning(f"Install script of {name} failed.")

    if report.added_files:
        console.print(f"[muted]{len(report.added_files)} file(s) added[/]")
    print_success(f"Installed {name}.")


@app.command("zip")
def install_zip(
    name: PackageNameArgument,
    url: Annotated[str, typer.Argument(help="Archive URL or path.")],
    url64: Annotated[
        str | None,
        typer.Option("--url64", help="64-bit archive URL."),
    ] = None,
    unzip_location: Annotated[
        Path | None,
        typer.Option("--unzip-location", "-d", help="Extraction directory (default: package folder)."),
    ] = None,
    specific_folder: Annotated[
        str | None,
        typer.Option("--specific-folder", help="Only extract this folder of the archive."),
    ] = None,
    force_x86: ForceX86Option = False,
) -> None:
    """Download an archive and extract it into a package folder."""
    with _orchestrator(force_x86) as orchestrator:
        report = orchestrator.install_zip_package(
            name,
            url,
            str(unzip_location) if unzip_location else None,
            url64,
            specific_folder,
        )

    console.print(f"[muted]{len(report.added_files)} file(s) added to {report.destination}[/]")
    print_success(f"Installed {name}.")


@app.command()
def uninstall(
    name: PackageNameArgument,
    file_type: Annotated[str, typer.Argument(help="Payload type: msi, exe or zip.")],
    file: Annotated[str, typer.Argument(help="Uninstaller, product file or archive name.")],
    silent_args: Annotated[
        str,
        typer.Option("--silent-args", "-s", help="Arguments for an unattended uninstall."),
    ] = "",
    valid_exit_codes: ExitCodeOption = None,
) -> None:
    """Uninstall a package."""
    with _orchestrator() as orchestrator:
        done = orchestrator.uninstall_package(
            name,
            file_type,
            silent_args,
            file,
            _exit_codes(valid_exit_codes),
            str(Path.cwd()),
        )

    if not done:
        print_error(f"Unsupported uninstall type: {file_type}")
        raise typer.Exit(code=1)
    print_success(f"Uninstalled {name}.")


@app.command("uninstall-zip")
def uninstall_zip(
    name: PackageNameArgument,
    zip_file_name: Annotated[str, typer.Argument(help="Archive the package was installed from.")],
) -> None:
    """Remove the files an archive install added."""
    with _orchestrator() as orchestrator:
        orchestrator.uninstall_zip_package(name, zip_file_name)
    print_success(f"Uninstalled {name}.")


@app.command()
def script(
    name: PackageNameArgument,
    script_path: Annotated[Path, typer.Argument(help="Where to store the script.")],
    url: Annotated[str, typer.Argument(help="Script URL.")],
    url64: Annotated[
        str | None,
        typer.Option("--url64", help="64-bit script URL."),
    ] = None,
) -> None:
    """Download a script and expose it as a command."""
    with _orchestrator() as orchestrator:
        shim_path = orchestrator.install_script_command(name, script_path, url, url64)

    if shim_path is None:
        print_error(f"Unable to download script {url}")
        raise typer.Exit(code=1)
    print_success(f"Installed command {shim_path.name}.")

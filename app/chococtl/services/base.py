"""Collaborator contracts consumed by the install orchestrator.

Downloading, unpacking, native package installation and script execution
are owned outside the orchestrator. It only depends on these protocols;
default implementations live next to this module.
"""

from pathlib import Path
from typing import Protocol

from chococtl.services.scripts import ScriptContext


class Downloader(Protocol):
    """Fetches a URI to a local file."""

    def fetch(self, uri: str, destination: Path) -> None:
        """Download uri to destination.

        The caller checks that destination exists afterwards.
        """


class ArchiveUnpacker(Protocol):
    """Extracts archives."""

    def unpack(self, archive: Path, destination: Path) -> list[Path]:
        """Extract archive into destination and return the extracted files.

        Raises:
            ExtractionFailedError: If the archive cannot be extracted.
        """


class NativeInstaller(Protocol):
    """Installs platform-native installer packages (msi/msu)."""

    def install_native_package(self, path: Path, silent_args: str) -> bool:
        """Install the package at path, returning True on success.

        Raises:
            ProcessKilledError: If the install was cancelled.
        """


class ScriptSandbox(Protocol):
    """Executes package scripts in-process."""

    def invoke(self, script: str, context: ScriptContext) -> None:
        """Run script with access to context only."""

"""Installation request and report models.

This module defines what the orchestrator is asked to do for one package
and what it reports back once the request has run.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from chococtl.core.paths import check_package_name


class PayloadKind(Enum):
    """Kind of payload a package installs.

    Attributes:
        MSI: Windows Installer package, handled by the native installer.
        MSU: Windows update package, handled by the native installer.
        EXE: Self-extracting or setup executable, run as a process.
        ZIP: Archive extracted into the package folder.
    """

    MSI = "msi"
    MSU = "msu"
    EXE = "exe"
    ZIP = "zip"

    @classmethod
    def parse(cls, value: str) -> "PayloadKind | None":
        """Look up a payload kind case-insensitively.

        Args:
            value: File type such as "MSI" or "exe".

        Returns:
            The matching PayloadKind, or None for an unknown type.
        """
        normalized = value.strip().lower().lstrip(".")
        for kind in cls:
            if kind.value == normalized:
                return kind
        return None

    @property
    def is_native(self) -> bool:
        """Check if the payload is handled by the native installer."""
        return self in (PayloadKind.MSI, PayloadKind.MSU)


class InstallState(Enum):
    """States an install request moves through."""

    STAGING = "staging"
    FETCHING = "fetching"
    INSTALLING = "installing"
    SHIM_GENERATION = "shim_generation"
    UNINSTALLING = "uninstalling"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class InstallRequest:
    """One package installation request.

    Attributes:
        package_name: Name of the package being installed.
        file_type: Payload type as supplied by the caller ("msi", "exe", ...).
        url: Payload URL or local path (32-bit or architecture neutral).
        url64: Optional 64-bit payload URL.
        silent_args: Arguments that make the installer run unattended.
        valid_exit_codes: Installer exit codes that count as success.
        working_directory: Directory used to resolve relative local paths.
        unzip_location: Extraction target for archive payloads.
        specific_folder: Sub-folder of the archive to extract.
    """

    package_name: str
    file_type: str
    url: str
    url64: str | None = None
    silent_args: str = ""
    valid_exit_codes: frozenset[int] = field(default_factory=lambda: frozenset({0}))
    working_directory: str | None = None
    unzip_location: str | None = None
    specific_folder: str | None = None

    def __post_init__(self) -> None:
        """Validate request data after initialization."""
        if not self.package_name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        check_package_name(self.package_name)
        if not self.url and not self.url64:
            msg = "At least one payload URL is required"
            raise ValueError(msg)


@dataclass(slots=True)
class InstallReport:
    """What happened while running one request.

    Attributes:
        package_name: Package the report belongs to.
        state: Last state reached.
        payload: Local payload file that was installed.
        destination: Directory the payload was extracted into (archives only).
        added_files: Files added by an archive extraction.
        content_log: Path of the written content log (archives only).
        failed_step: State that was active when the request failed.
    """

    package_name: str
    state: InstallState = InstallState.STAGING
    payload: Path | None = None
    destination: Path | None = None
    added_files: list[str] = field(default_factory=list)
    content_log: Path | None = None
    failed_step: InstallState | None = None

    @property
    def success(self) -> bool:
        """Check if the request reached the DONE state."""
        return self.state == InstallState.DONE

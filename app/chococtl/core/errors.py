"""Exception hierarchy for chococtl.

Configuration read problems never surface here: they are recovered with
the default document. Silent outcomes (a source that was not found or
not added) are reported through boolean returns instead of exceptions.
"""


class ChococtlError(Exception):
    """Base exception for chococtl errors."""


class ConfigError(ChococtlError):
    """Raised when the source registry file cannot be written."""


class DownloadFailedError(ChococtlError):
    """Raised when a payload is missing after the download service ran."""

    def __init__(self, url: str, destination: str) -> None:
        self.url = url
        self.destination = destination
        super().__init__(f"Failed to download file {url} to {destination}")


class UnsupportedPackageTypeError(ChococtlError):
    """Raised for a payload kind the orchestrator cannot install."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Unsupported package type: {kind}")


class ElevationRequiredError(ChococtlError):
    """Raised when an operation needs privileges the process does not hold.

    Automatic escalation is not attempted.
    """

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"Elevation required to run {target!r} (automatic elevation is not supported)")


class ProcessNonZeroExitError(ChococtlError):
    """Raised when a child process exits with a code outside the valid set."""

    def __init__(self, executable: str, exit_code: int) -> None:
        self.executable = executable
        self.exit_code = exit_code
        super().__init__(f"Process exited with non-successful exit code {executable} : {exit_code}")


class ProcessKilledError(ChococtlError):
    """Raised when a child process was terminated on cancellation."""

    def __init__(self, executable: str, reason: str = "Host requested cancellation") -> None:
        self.executable = executable
        self.reason = reason
        super().__init__(f"Killed process {executable}: {reason}")


class ExtractionFailedError(ChococtlError):
    """Raised when an archive cannot be unpacked."""


class InstallationFailedError(ChococtlError):
    """Raised when an install or uninstall step fails.

    Attributes:
        package_name: Package whose installation failed.
        step: Name of the failing step (e.g. "fetching", "installing").
    """

    def __init__(self, package_name: str, step: str, message: str = "Failed Installation") -> None:
        self.package_name = package_name
        self.step = step
        super().__init__(f"{message}: {package_name} ({step})")

"""Default native-installer service.

Installs msi packages through msiexec and msu packages through wusa,
running both elevated and hidden through the ProcessRunner.
"""

import logging
import shlex
from pathlib import Path

from chococtl.core.errors import ProcessKilledError
from chococtl.models.process import ProcessInvocation, WindowVisibility
from chococtl.operators.process import CancellationToken, ProcessRunner
from chococtl.utils.platform import is_windows

logger = logging.getLogger(__name__)

# 3010/1641: success, reboot required/initiated
NATIVE_SUCCESS_CODES: frozenset[int] = frozenset({0, 1641, 3010})


def split_args(silent_args: str) -> tuple[str, ...]:
    """Split an installer argument string the way the host shell would."""
    if not silent_args:
        return ()
    return tuple(shlex.split(silent_args, posix=not is_windows()))


class WindowsNativeInstaller:
    """Installs msi/msu packages with the Windows installer tools.

    Args:
        runner: Process runner used to launch the installer tools.
        cancel_token: Cancellation token forwarded to the runner.
    """

    def __init__(self, runner: ProcessRunner, cancel_token: CancellationToken | None = None) -> None:
        self._runner = runner
        self._cancel_token = cancel_token

    def build_invocation(self, path: Path, silent_args: str) -> ProcessInvocation:
        """Build the installer invocation for a package file.

        Raises:
            ValueError: If the file is neither an msi nor an msu package.
        """
        suffix = path.suffix.lower()
        if suffix == ".msi":
            executable = "msiexec.exe"
            arguments = ("/i", str(path), *split_args(silent_args))
        elif suffix == ".msu":
            executable = "wusa.exe"
            arguments = (str(path), *split_args(silent_args))
        else:
            msg = f"Not a native installer package: {path}"
            raise ValueError(msg)

        return ProcessInvocation(
            executable=executable,
            arguments=arguments,
            working_directory=str(path.parent),
            elevated=True,
            visibility=WindowVisibility.HIDDEN,
            valid_exit_codes=NATIVE_SUCCESS_CODES,
        )

    def install_native_package(self, path: Path, silent_args: str) -> bool:
        """Install a native package.

        Returns:
            True if the installer reported success.

        Raises:
            ProcessKilledError: If the installer was cancelled.
        """
        invocation = self.build_invocation(path, silent_args)
        logger.info("Installing native package %s", path)
        result = self._runner.run(invocation, self._cancel_token)
        if result.killed:
            raise ProcessKilledError(invocation.display_name, result.reason or "Host requested cancellation")
        return result.success

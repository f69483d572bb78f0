"""External process runner.

Launches installers, uninstallers and helper programs, honoring elevation,
window visibility, valid exit codes and cooperative cancellation. Script
targets run in-process through a ScriptSandbox when the process already
holds the privileges they need.
"""

import logging
import subprocess
import threading

from chococtl.core.errors import ElevationRequiredError, ProcessKilledError, ProcessNonZeroExitError
from chococtl.core.settings import ProviderSettings
from chococtl.models.process import ExitResult, ProcessInvocation, ProcessOutcome, WindowVisibility
from chococtl.services.base import ScriptSandbox
from chococtl.services.scripts import PythonScriptSandbox, ScriptContext
from chococtl.utils.platform import is_windows

logger = logging.getLogger(__name__)

# Executable name that routes an invocation to the in-process script sandbox
SCRIPT_INTERPRETER = "python"

_DEFAULT_CANCEL_REASON = "Host requested cancellation"


class CancellationToken:
    """Cancellation flag shared between a host and a running operation.

    Example:
        >>> token = CancellationToken()
        >>> signal.signal(signal.SIGINT, lambda *_: token.cancel())
        >>> runner.run(invocation, token)
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = _DEFAULT_CANCEL_REASON

    def cancel(self, reason: str = _DEFAULT_CANCEL_REASON) -> None:
        """Request cancellation."""
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    @property
    def reason(self) -> str:
        """Return the cancellation reason."""
        return self._reason


def _default_elevation_command() -> tuple[str, ...]:
    # Windows has no non-interactive way to elevate from here
    return () if is_windows() else ("sudo",)


class ProcessRunner:
    """Runs ProcessInvocations to a terminal ExitResult.

    Args:
        settings: Engine settings (elevation state is taken from here).
        sandbox: Executes script targets in-process.
        poll_interval: Seconds between completion checks of a child.
        elevation_command: Prefix that runs a command elevated. An empty
            tuple means elevation cannot be acquired.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        *,
        sandbox: ScriptSandbox | None = None,
        poll_interval: float = 0.05,
        elevation_command: tuple[str, ...] | None = None,
    ) -> None:
        self._settings = settings
        self._sandbox = sandbox if sandbox is not None else PythonScriptSandbox()
        self._poll_interval = poll_interval
        self._elevation_command = (
            elevation_command if elevation_command is not None else _default_elevation_command()
        )

    @staticmethod
    def is_script(invocation: ProcessInvocation) -> bool:
        """Check if an invocation targets the script interpreter."""
        return invocation.executable.lower() == SCRIPT_INTERPRETER

    def run(
        self,
        invocation: ProcessInvocation,
        cancel_token: CancellationToken | None = None,
        context: ScriptContext | None = None,
    ) -> ExitResult:
        """Run an invocation and block until it reaches a terminal state.

        Args:
            invocation: What to run.
            cancel_token: Checked between polls; kills the child when set.
            context: Data handed to in-process scripts.

        Returns:
            ExitResult with SUCCEEDED, FAILED or KILLED outcome.

        Raises:
            ElevationRequiredError: If elevation is needed but not available.
            OSError: If the executable cannot be started.
        """
        logger.debug(
            "Running %s args=%r elevated=%s visibility=%s valid_exit_codes=%s cwd=%s",
            invocation.executable,
            invocation.arguments,
            invocation.elevated,
            invocation.visibility.value,
            sorted(invocation.valid_exit_codes),
            invocation.working_directory,
        )

        if self.is_script(invocation):
            return self._run_script(invocation, context or ScriptContext())

        return self._run_process(invocation, cancel_token)

    def run_checked(
        self,
        invocation: ProcessInvocation,
        cancel_token: CancellationToken | None = None,
        context: ScriptContext | None = None,
    ) -> ExitResult:
        """Run an invocation and raise unless it succeeded.

        Raises:
            ProcessKilledError: If the process was cancelled.
            ProcessNonZeroExitError: If the exit code is not valid.
            ElevationRequiredError: If elevation is needed but not available.
        """
        result = self.run(invocation, cancel_token, context)
        if result.killed:
            raise ProcessKilledError(invocation.display_name, result.reason or _DEFAULT_CANCEL_REASON)
        if not result.success:
            raise ProcessNonZeroExitError(
                invocation.display_name,
                result.exit_code if result.exit_code is not None else -1,
            )
        return result

    def _run_script(self, invocation: ProcessInvocation, context: ScriptContext) -> ExitResult:
        """Run a script target in-process."""
        if invocation.elevated and not self._settings.is_elevated:
            logger.warning("Not elevated - cannot run script for %s", context.package_name or "host")
            raise ElevationRequiredError(invocation.display_name)

        logger.info("Already elevated - running script in process")
        script = " ".join(invocation.arguments)

        try:
            self._sandbox.invoke(script, context)
        except SystemExit as e:
            code = e.code if isinstance(e.code, int) else (0 if e.code is None else 1)
            return self._classify(invocation, code)
        except Exception as e:
            logger.warning("Script failed: %s", e)
            return ExitResult(invocation, ProcessOutcome.FAILED, reason=str(e))

        return ExitResult(invocation, ProcessOutcome.SUCCEEDED)

    def _build_args(self, invocation: ProcessInvocation) -> list[str]:
        """Build the command line, adding the elevation prefix if needed."""
        args = [invocation.executable, *invocation.arguments]
        if not invocation.elevated or self._settings.is_elevated:
            return args
        if not self._elevation_command:
            raise ElevationRequiredError(invocation.display_name)
        return [*self._elevation_command, *args]

    @staticmethod
    def _startupinfo(visibility: WindowVisibility) -> object | None:
        """Build Windows STARTUPINFO hiding the window, if requested."""
        startupinfo_cls = getattr(subprocess, "STARTUPINFO", None)
        if visibility != WindowVisibility.HIDDEN or startupinfo_cls is None:
            return None
        startupinfo = startupinfo_cls()
        startupinfo.dwFlags |= getattr(subprocess, "STARTF_USESHOWWINDOW", 1)
        startupinfo.wShowWindow = getattr(subprocess, "SW_HIDE", 0)
        return startupinfo

    def _run_process(
        self,
        invocation: ProcessInvocation,
        cancel_token: CancellationToken | None,
    ) -> ExitResult:
        """Start a child process and poll it until it exits or is cancelled."""
        args = self._build_args(invocation)
        logger.info("Launching process: %s", invocation.executable)

        process = subprocess.Popen(  # nosec: B603
            args,
            cwd=invocation.working_directory or None,
            startupinfo=self._startupinfo(invocation.visibility),
        )

        while True:
            try:
                exit_code = process.wait(timeout=self._poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel_token is not None and cancel_token.cancelled:
                    process.kill()
                    process.wait()
                    logger.warning(
                        "Process killed - %s: %s", cancel_token.reason, invocation.executable
                    )
                    return ExitResult(
                        invocation,
                        ProcessOutcome.KILLED,
                        reason=cancel_token.reason,
                    )

        return self._classify(invocation, exit_code)

    @staticmethod
    def _classify(invocation: ProcessInvocation, exit_code: int) -> ExitResult:
        """Map an exit code onto SUCCEEDED or FAILED."""
        if exit_code in invocation.valid_exit_codes:
            logger.info("Process exited successfully: %s", invocation.executable)
            return ExitResult(invocation, ProcessOutcome.SUCCEEDED, exit_code=exit_code)

        logger.warning("Process failed: %s exited with %d", invocation.executable, exit_code)
        return ExitResult(
            invocation,
            ProcessOutcome.FAILED,
            exit_code=exit_code,
            reason=f"exit code {exit_code} not in {sorted(invocation.valid_exit_codes)}",
        )

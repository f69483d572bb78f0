"""Process invocation models.

This module defines the description of an external process launch and
the result it ends in.
"""

from dataclasses import dataclass, field
from enum import Enum


class WindowVisibility(Enum):
    """Requested window state for a launched process.

    Only honored on Windows; POSIX children have no window to manage.
    """

    NORMAL = "normal"
    HIDDEN = "hidden"


class ProcessOutcome(Enum):
    """Terminal state of a process invocation.

    Attributes:
        SUCCEEDED: Exit code is in the valid exit code set.
        FAILED: Exit code is outside the valid exit code set.
        KILLED: Cancellation was requested while the process ran.
    """

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    KILLED = "killed"


@dataclass(frozen=True, slots=True)
class ProcessInvocation:
    """Everything needed to launch one external process.

    Attributes:
        executable: Program to run, or a script interpreter name.
        arguments: Arguments passed to the program. For an interpreter
            target this holds the script statements.
        working_directory: Directory to run in (None keeps the current one).
        elevated: Whether the process needs administrative privileges.
        visibility: Requested window state.
        valid_exit_codes: Exit codes that count as success.
    """

    executable: str
    arguments: tuple[str, ...] = ()
    working_directory: str | None = None
    elevated: bool = False
    visibility: WindowVisibility = WindowVisibility.NORMAL
    valid_exit_codes: frozenset[int] = field(default_factory=lambda: frozenset({0}))

    def __post_init__(self) -> None:
        """Validate invocation data after initialization."""
        if not self.executable:
            msg = "Executable cannot be empty"
            raise ValueError(msg)
        if not self.valid_exit_codes:
            msg = "At least one valid exit code is required"
            raise ValueError(msg)

    @property
    def display_name(self) -> str:
        """Return the executable as shown in log messages."""
        return self.executable


@dataclass(frozen=True, slots=True)
class ExitResult:
    """Outcome of a process invocation.

    Attributes:
        invocation: The invocation that produced this result.
        outcome: Terminal state.
        exit_code: Observed exit code (None for in-process scripts or
            when the process was killed before reporting one).
        reason: Human-readable detail, e.g. the cancellation reason.
    """

    invocation: ProcessInvocation
    outcome: ProcessOutcome
    exit_code: int | None = None
    reason: str | None = None

    @property
    def success(self) -> bool:
        """Check if the process succeeded."""
        return self.outcome == ProcessOutcome.SUCCEEDED

    @property
    def killed(self) -> bool:
        """Check if the process was killed on cancellation."""
        return self.outcome == ProcessOutcome.KILLED

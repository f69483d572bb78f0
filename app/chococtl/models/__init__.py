"""Data models for chococtl.

This module exports the core data structures used throughout the application.
"""

from chococtl.models.install import InstallReport, InstallRequest, InstallState, PayloadKind
from chococtl.models.process import (
    ExitResult,
    ProcessInvocation,
    ProcessOutcome,
    WindowVisibility,
)
from chococtl.models.source import PackageSource, SourceRecord, is_true

__all__ = [
    "ExitResult",
    "InstallReport",
    "InstallRequest",
    "InstallState",
    "PackageSource",
    "PayloadKind",
    "ProcessInvocation",
    "ProcessOutcome",
    "SourceRecord",
    "WindowVisibility",
    "is_true",
]

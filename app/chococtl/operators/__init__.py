"""Operators executing installer processes and shim files.

This module provides the process runner (elevation, exit codes,
cancellation) and the shim manager.
"""

from chococtl.operators.process import CancellationToken, ProcessRunner
from chococtl.operators.shims import ShimKind, ShimManager

__all__ = ["CancellationToken", "ProcessRunner", "ShimKind", "ShimManager"]

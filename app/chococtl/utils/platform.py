"""Host platform checks.

Elevation and architecture checks used to build ProviderSettings. They
are evaluated once at start-up, never lazily from deep inside the engine.
"""

import ctypes
import os
import platform
import sys

_64BIT_MACHINES = frozenset({"amd64", "x86_64", "arm64", "aarch64", "ia64", "ppc64le", "s390x"})


def is_windows() -> bool:
    """Check if the host runs Windows."""
    return sys.platform == "win32"


def is_elevated() -> bool:
    """Check if the current process holds administrative privileges.

    Returns:
        True for root on POSIX or a member of Administrators on Windows.
    """
    if hasattr(os, "geteuid"):
        return os.geteuid() == 0

    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
    except (AttributeError, OSError):
        return False


def is_64bit_os() -> bool:
    """Check if the operating system is 64-bit.

    A 32-bit interpreter on 64-bit Windows still reports a 64-bit OS
    through PROCESSOR_ARCHITEW6432.
    """
    if os.environ.get("PROCESSOR_ARCHITEW6432"):
        return True
    return platform.machine().lower() in _64BIT_MACHINES

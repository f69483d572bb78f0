"""Utility modules for chococtl.

This module exports commonly used utility functions.
"""

from chococtl.utils.formatting import (
    console,
    create_source_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from chococtl.utils.platform import is_64bit_os, is_elevated, is_windows

__all__ = [
    "console",
    "create_source_table",
    "err_console",
    "is_64bit_os",
    "is_elevated",
    "is_windows",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]

"""Filesystem tracking module.

This module provides before/after snapshots of directory trees and the
content logs written from them.
"""

from chococtl.filesystem.snapshot import FilesystemSnapshot, list_files, read_log

__all__ = ["FilesystemSnapshot", "list_files", "read_log"]

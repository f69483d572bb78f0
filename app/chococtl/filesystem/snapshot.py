"""Filesystem snapshots for install tracking.

Captures the files under a directory before an operation and diffs a
later listing against it, producing the list of files the operation
added. Archive installs have no installer manifest, so the written diff
(the content log) is what uninstall uses to clean up.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def list_files(root: Path) -> set[str]:
    """List every file below a directory.

    Args:
        root: Directory to scan recursively. A missing directory has no files.

    Returns:
        Set of absolute file paths.
    """
    if not root.is_dir():
        return set()

    files: set[str] = set()
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            files.add(os.path.join(os.path.abspath(dirpath), filename))
    return files


class FilesystemSnapshot:
    """Before/after file listing of one directory tree.

    Attributes:
        root: Directory being monitored.
        files_before: Files present when the snapshot was captured.

    Example:
        >>> snapshot = FilesystemSnapshot.capture(Path("/opt/pkg"))
        >>> unpack(archive, Path("/opt/pkg"))
        >>> snapshot.write_log(Path("/opt/pkg.txt"))
    """

    def __init__(self, root: Path, files_before: set[str]) -> None:
        self.root = root
        self.files_before = frozenset(files_before)

    @classmethod
    def capture(cls, root: Path) -> "FilesystemSnapshot":
        """Record the files currently under root."""
        files = list_files(root)
        logger.debug("Captured %d files under %s", len(files), root)
        return cls(root, files)

    def diff(self) -> list[str]:
        """Re-scan root and return files added since capture.

        Returns:
            Added file paths in lexical order.
        """
        return sorted(list_files(self.root) - self.files_before)

    def write_log(self, log_path: Path) -> list[str]:
        """Write the added files to a content log, one path per line.

        Args:
            log_path: Log file to write. Parent directories are created.

        Returns:
            The added file paths that were written.
        """
        added = self.diff()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.write_text("".join(f"{path}\n" for path in added), encoding="utf-8")
        logger.info("Wrote %d added files to %s", len(added), log_path)
        return added


def read_log(log_path: Path) -> list[str]:
    """Read a content log.

    A missing or unreadable log means nothing was tracked.

    Args:
        log_path: Content log written by FilesystemSnapshot.write_log().

    Returns:
        Non-empty lines of the log, in order.
    """
    try:
        text = log_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read content log %s: %s", log_path, e)
        return []

    return [line.strip() for line in text.splitlines() if line.strip()]

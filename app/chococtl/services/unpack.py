"""Default archive-unpack service.

Extracts zip and tar archives with the standard library. Archive members
that would land outside the destination are rejected.
"""

import logging
import tarfile
import zipfile
from pathlib import Path

from chococtl.core.errors import ExtractionFailedError
from chococtl.utils.platform import is_windows

logger = logging.getLogger(__name__)

# ZipInfo.create_system of entries written on Unix
_ZIP_UNIX = 3


def _check_member(destination: Path, name: str) -> None:
    target = (destination / name).resolve()
    if not target.is_relative_to(destination.resolve()):
        msg = f"Archive member escapes destination: {name}"
        raise ExtractionFailedError(msg)


def _restore_mode(path: Path, member: zipfile.ZipInfo) -> None:
    """Apply the Unix permission bits stored in a zip entry."""
    mode = (member.external_attr >> 16) & 0o777
    if member.create_system == _ZIP_UNIX and mode:
        path.chmod(mode)


class ArchiveExtractor:
    """Unpacks zip and tar(.gz/.bz2/.xz) archives."""

    def unpack(self, archive: Path, destination: Path) -> list[Path]:
        """Extract an archive.

        Args:
            archive: Archive file to extract.
            destination: Directory to extract into (created if missing).

        Returns:
            Extracted file paths.

        Raises:
            ExtractionFailedError: If the archive is missing, unsupported,
                corrupt, or contains unsafe paths.
        """
        if not archive.is_file():
            raise ExtractionFailedError(f"Archive not found: {archive}")

        destination.mkdir(parents=True, exist_ok=True)

        try:
            if zipfile.is_zipfile(archive):
                files = self._unpack_zip(archive, destination)
            elif tarfile.is_tarfile(archive):
                files = self._unpack_tar(archive, destination)
            else:
                raise ExtractionFailedError(f"Unsupported archive format: {archive}")
        except (OSError, zipfile.BadZipFile, tarfile.TarError) as e:
            raise ExtractionFailedError(f"Failed to extract {archive}: {e}") from e

        logger.info("Extracted %d files from %s to %s", len(files), archive, destination)
        return files

    @staticmethod
    def _unpack_zip(archive: Path, destination: Path) -> list[Path]:
        with zipfile.ZipFile(archive) as zf:
            members = zf.infolist()
            for member in members:
                _check_member(destination, member.filename)
            zf.extractall(destination)

        files = [m for m in members if not m.is_dir()]
        if not is_windows():
            for member in files:
                _restore_mode(destination / member.filename, member)
        return [destination / m.filename for m in files]

    @staticmethod
    def _unpack_tar(archive: Path, destination: Path) -> list[Path]:
        with tarfile.open(archive) as tf:
            members = tf.getmembers()
            for member in members:
                _check_member(destination, member.name)
            tf.extractall(destination, filter="data")
        return [destination / m.name for m in members if m.isfile()]

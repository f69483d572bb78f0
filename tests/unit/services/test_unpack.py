"""Unit tests for ArchiveExtractor."""

import io
import os
import tarfile
import zipfile
from pathlib import Path

import pytest

from chococtl.core.errors import ExtractionFailedError
from chococtl.services.unpack import ArchiveExtractor


class TestArchiveExtractor:
    """Tests for ArchiveExtractor.unpack."""

    def test_unpack_zip(self, tmp_path: Path, make_zip) -> None:
        """Zip members are extracted and listed."""
        archive = make_zip({"a.txt": "a", "dir/b.txt": "b"})
        destination = tmp_path / "out"

        files = ArchiveExtractor().unpack(archive, destination)

        assert sorted(files) == [destination / "a.txt", destination / "dir" / "b.txt"]
        assert (destination / "dir" / "b.txt").read_text() == "b"

    def test_unpack_tar_gz(self, tmp_path: Path) -> None:
        """Compressed tarballs are supported."""
        archive = tmp_path / "payload.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            data = b"hello"
            info = tarfile.TarInfo("pkg/hello.txt")
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))

        files = ArchiveExtractor().unpack(archive, tmp_path / "out")

        assert files == [tmp_path / "out" / "pkg" / "hello.txt"]

    def test_missing_archive(self, tmp_path: Path) -> None:
        """A missing archive raises ExtractionFailedError."""
        with pytest.raises(ExtractionFailedError, match="not found"):
            ArchiveExtractor().unpack(tmp_path / "none.zip", tmp_path / "out")

    def test_unsupported_format(self, tmp_path: Path) -> None:
        """Non-archives are rejected."""
        archive = tmp_path / "plain.zip"
        archive.write_bytes(b"not an archive at all")

        with pytest.raises(ExtractionFailedError, match="Unsupported"):
            ArchiveExtractor().unpack(archive, tmp_path / "out")

    def test_path_escape_rejected(self, tmp_path: Path) -> None:
        """Members escaping the destination are refused."""
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.txt", "x")

        with pytest.raises(ExtractionFailedError, match="escapes"):
            ArchiveExtractor().unpack(archive, tmp_path / "out")

        assert not (tmp_path / "escape.txt").exists()

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_zip_permissions_restored(self, tmp_path: Path) -> None:
        """Unix mode bits stored in zip entries survive extraction."""
        archive = tmp_path / "modes.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            tool = zipfile.ZipInfo("bin/tool")
            tool.create_system = 3
            tool.external_attr = 0o755 << 16
            zf.writestr(tool, "#!/bin/sh\nexit 0\n")
            zf.writestr("README.txt", "read me")
        destination = tmp_path / "out"

        ArchiveExtractor().unpack(archive, destination)

        assert os.access(destination / "bin" / "tool", os.X_OK)
        assert not os.access(destination / "README.txt", os.X_OK)

"""Unit tests for platform checks and console formatting."""

from unittest.mock import patch

from rich.console import Console

from chococtl.models.source import PackageSource
from chococtl.utils.formatting import THEME, create_source_table
from chococtl.utils.platform import is_64bit_os, is_elevated, is_windows


class TestPlatform:
    """Tests for host checks."""

    def test_is_windows(self) -> None:
        """is_windows follows sys.platform."""
        with patch("chococtl.utils.platform.sys.platform", "win32"):
            assert is_windows() is True
        with patch("chococtl.utils.platform.sys.platform", "linux"):
            assert is_windows() is False

    def test_is_elevated_posix(self) -> None:
        """Root is elevated."""
        with patch("chococtl.utils.platform.os.geteuid", return_value=0, create=True):
            assert is_elevated() is True
        with patch("chococtl.utils.platform.os.geteuid", return_value=1000, create=True):
            assert is_elevated() is False

    def test_is_64bit_os(self) -> None:
        """64-bit machines are detected."""
        with (
            patch.dict("os.environ", {}, clear=True),
            patch("chococtl.utils.platform.platform.machine", return_value="x86_64"),
        ):
            assert is_64bit_os() is True
        with (
            patch.dict("os.environ", {}, clear=True),
            patch("chococtl.utils.platform.platform.machine", return_value="i686"),
        ):
            assert is_64bit_os() is False

    def test_wow64_is_64bit(self) -> None:
        """A 32-bit process on 64-bit Windows sees a 64-bit OS."""
        with (
            patch.dict("os.environ", {"PROCESSOR_ARCHITEW6432": "AMD64"}),
            patch("chococtl.utils.platform.platform.machine", return_value="x86"),
        ):
            assert is_64bit_os() is True


class TestSourceTable:
    """Tests for create_source_table."""

    def test_renders_sources(self) -> None:
        """Each source becomes a row."""
        table = create_source_table(
            [
                PackageSource("default", "http://default/", is_registered=False),
                PackageSource("mine", "/srv/pkgs", trusted=True),
            ]
        )
        console = Console(theme=THEME, width=120, record=True)

        console.print(table)
        output = console.export_text()

        assert table.row_count == 2
        assert "default" in output
        assert "/srv/pkgs" in output

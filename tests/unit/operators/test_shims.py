"""Unit tests for ShimManager."""

import os
import subprocess
import time
from pathlib import Path

import pytest

from chococtl.operators.shims import ShimKind, ShimManager

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX sh shims")


def _executable(path: Path, body: str = "exit 0\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}", encoding="utf-8")
    path.chmod(0o755)
    return path


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """Shim directory."""
    return tmp_path / "bin"


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    """Package install folder."""
    return tmp_path / "lib" / "tool"


class TestShimPaths:
    """Tests for shim naming."""

    def test_windows_extension(self, bin_dir: Path) -> None:
        """Windows shims are batch files named after the target."""
        shims = ShimManager(bin_dir, windows=True)

        assert shims.shim_path(Path("C:/apps/tool.exe")) == bin_dir / "tool.bat"

    def test_posix_has_no_extension(self, bin_dir: Path) -> None:
        """POSIX shims carry no extension."""
        shims = ShimManager(bin_dir, windows=False)

        assert shims.shim_path(Path("/opt/tool/tool.sh")) == bin_dir / "tool"

    def test_explicit_name(self, bin_dir: Path) -> None:
        """An explicit name overrides the target's base name."""
        shims = ShimManager(bin_dir, windows=True)

        assert shims.shim_path("tool.exe", "renamed") == bin_dir / "renamed.bat"


class TestMarkers:
    """Tests for marker-file handling."""

    def test_kind_from_markers(self, tmp_path: Path) -> None:
        """.ignore and .gui markers select the launcher kind."""
        plain = tmp_path / "plain.exe"
        gui = tmp_path / "gui.exe"
        ignored = tmp_path / "ignored.exe"
        for path in (plain, gui, ignored):
            path.write_bytes(b"MZ")
        (tmp_path / "gui.exe.gui").touch()
        (tmp_path / "ignored.exe.ignore").touch()

        assert ShimManager.shim_kind(plain) == ShimKind.CONSOLE
        assert ShimManager.shim_kind(gui) == ShimKind.GUI
        assert ShimManager.shim_kind(ignored) is None

    def test_exe_files_found_on_windows(self, bin_dir: Path, package_root: Path) -> None:
        """.exe files are executables; markers are not."""
        package_root.mkdir(parents=True)
        (package_root / "tool.exe").write_bytes(b"MZ")
        (package_root / "tool.exe.gui").touch()
        (package_root / "readme.txt").touch()

        found = ShimManager(bin_dir, windows=True).find_executables(package_root)

        assert found == [package_root / "tool.exe"]


class TestBatchShims:
    """Tests for generated Windows launchers."""

    def test_console_shim_content(self, bin_dir: Path, package_root: Path) -> None:
        """Console shims use a path relative to the shim."""
        package_root.mkdir(parents=True)
        exe = package_root / "tool.exe"
        exe.write_bytes(b"MZ")

        shim = ShimManager(bin_dir, windows=True).generate_console_shim(exe)

        content = shim.read_text(encoding="utf-8")
        assert shim == bin_dir / "tool.bat"
        assert "%~dp0%" in content
        assert "..\\lib\\tool\\tool.exe" in content
        assert "exit /b %ERRORLEVEL%" in content

    def test_gui_shim_uses_start(self, bin_dir: Path, package_root: Path) -> None:
        """GUI shims start the target without waiting."""
        package_root.mkdir(parents=True)
        exe = package_root / "app.exe"
        exe.write_bytes(b"MZ")
        (package_root / "app.exe.gui").touch()

        generated = ShimManager(bin_dir, windows=True).generate_shims(package_root)

        assert generated == [bin_dir / "app.bat"]
        assert 'start ""' in generated[0].read_text(encoding="utf-8")

    def test_ps1_script_shim(self, bin_dir: Path, tmp_path: Path) -> None:
        """PowerShell scripts are launched through powershell."""
        script = tmp_path / "tool.ps1"
        script.write_text("Write-Host hi", encoding="utf-8")

        shim = ShimManager(bin_dir, windows=True).generate_script_shim(script)

        assert "powershell -NoProfile" in shim.read_text(encoding="utf-8")


@posix_only
class TestPosixShims:
    """Tests that run the generated sh launchers."""

    def test_generate_and_remove(self, bin_dir: Path, package_root: Path) -> None:
        """Every non-ignored executable gets a shim; removal is symmetric."""
        _executable(package_root / "a")
        _executable(package_root / "sub" / "b")
        _executable(package_root / "c")
        (package_root / "c.ignore").touch()
        shims = ShimManager(bin_dir, windows=False)

        generated = shims.generate_shims(package_root)

        assert generated == [bin_dir / "a", bin_dir / "b"]
        assert all(os.access(p, os.X_OK) for p in generated)

        removed = shims.remove_shims(package_root)

        assert removed == [bin_dir / "a", bin_dir / "b"]
        assert list(bin_dir.iterdir()) == []

    def test_remove_shims_for_listed_files(self, bin_dir: Path, package_root: Path) -> None:
        """Only executables among the listed files lose their shims."""
        tool = _executable(package_root / "tool")
        readme = package_root / "README"
        readme.write_text("docs", encoding="utf-8")
        shims = ShimManager(bin_dir, windows=False)
        shims.generate_console_shim(tool)
        unrelated = shims.generate_console_shim(_executable(package_root / "other" / "README"))

        removed = shims.remove_shims_for([tool, readme, package_root / "missing"])

        assert removed == [bin_dir / "tool"]
        assert unrelated.is_file()

    def test_remove_is_idempotent(self, bin_dir: Path) -> None:
        """Removing a missing shim is not an error."""
        assert ShimManager(bin_dir, windows=False).remove_shim("ghost") is False

    def test_console_shim_forwards_args_and_exit_code(self, bin_dir: Path, package_root: Path) -> None:
        """The shim passes arguments through and returns the target's exit code."""
        exe = _executable(package_root / "echoer", 'echo "$@"\nexit 7\n')
        shim = ShimManager(bin_dir, windows=False).generate_console_shim(exe)

        result = subprocess.run([str(shim), "one", "two words"], capture_output=True, text=True, check=False)

        assert result.returncode == 7
        assert result.stdout.strip() == "one two words"

    def test_shim_survives_relocation(self, tmp_path: Path) -> None:
        """Moving the whole root keeps shims working."""
        root = tmp_path / "root"
        exe = _executable(root / "lib" / "tool" / "tool", "exit 3\n")
        ShimManager(root / "bin", windows=False).generate_console_shim(exe)
        moved = tmp_path / "moved"
        root.rename(moved)

        result = subprocess.run([str(moved / "bin" / "tool")], check=False)

        assert result.returncode == 3

    def test_gui_shim_does_not_block(self, bin_dir: Path, package_root: Path) -> None:
        """GUI shims return before the target finishes."""
        exe = _executable(package_root / "slow", "sleep 5\n")
        shim = ShimManager(bin_dir, windows=False).generate_gui_shim(exe)
        started = time.monotonic()

        result = subprocess.run([str(shim)], check=False, timeout=10)

        assert result.returncode == 0
        assert time.monotonic() - started < 4

    def test_script_shim(self, bin_dir: Path, tmp_path: Path) -> None:
        """sh scripts run through their interpreter."""
        script = tmp_path / "scripts" / "hello.sh"
        script.parent.mkdir()
        script.write_text("echo hello\n", encoding="utf-8")

        shim = ShimManager(bin_dir, windows=False).generate_script_shim(script)
        result = subprocess.run([str(shim)], capture_output=True, text=True, check=False)

        assert shim == bin_dir / "hello"
        assert result.stdout.strip() == "hello"

"""Unit tests for the install and shim command groups."""

import os
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from chococtl.cli.main import app
from chococtl.core.errors import ProcessKilledError
from chococtl.core.orchestrator import InstallOrchestrator
from chococtl.core.paths import ROOT_ENV_VAR

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_root(tmp_path: Path):
    """Point the install root and staging area at tmp_path."""
    with (
        patch.dict(os.environ, {ROOT_ENV_VAR: str(tmp_path / "root")}),
        patch("chococtl.core.settings.get_temp_dir", return_value=tmp_path / "staging"),
    ):
        yield tmp_path / "root"


@pytest.fixture
def archive(tmp_path: Path) -> Path:
    """Zip archive with two files."""
    path = tmp_path / "tool.zip"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("tool.txt", "tool")
        zf.writestr("docs/readme.md", "docs")
    return path


class TestInstallCommands:
    """Tests for chococtl install."""

    def test_zip_install_and_uninstall(self, isolated_root: Path, archive: Path) -> None:
        """An archive installs into the package folder and uninstalls cleanly."""
        result = runner.invoke(app, ["install", "zip", "tool", archive.as_uri()])

        package_dir = isolated_root / "lib" / "tool"
        assert result.exit_code == 0, result.output
        assert (package_dir / "tool.txt").is_file()
        assert "2 file(s) added" in result.stdout

        result = runner.invoke(app, ["install", "uninstall-zip", "tool", "toolinstall.zip"])

        assert result.exit_code == 0
        assert not (package_dir / "tool.txt").exists()
        assert not (package_dir / "toolinstall.zip.txt").exists()

    def test_package_zip_runs_install_script(self, isolated_root: Path, tmp_path: Path) -> None:
        """install package runs the packaged install script."""
        path = tmp_path / "scripted.zip"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr(
                "tools/chocolateyinstall.py",
                "from pathlib import Path\nPath(context.package_folder, 'ran.txt').write_text('yes')\n",
            )

        result = runner.invoke(app, ["install", "package", "scripted", "zip", path.as_uri()])

        assert result.exit_code == 0, result.output
        assert (isolated_root / "lib" / "scripted" / "ran.txt").read_text() == "yes"

    def test_download_failure(self, tmp_path: Path) -> None:
        """A missing payload exits with an error."""
        result = runner.invoke(app, ["install", "zip", "tool", (tmp_path / "missing.zip").as_uri()])

        assert result.exit_code == 1

    def test_cancelled_install(self) -> None:
        """A cancelled installer exits with 130."""
        with patch.object(
            InstallOrchestrator, "install_package", side_effect=ProcessKilledError("setup.exe", "Interrupted by user")
        ):
            result = runner.invoke(app, ["install", "package", "app", "exe", "https://example.com/setup.exe"])

        assert result.exit_code == 130

    def test_path_like_name_rejected(self, tmp_path: Path, archive: Path) -> None:
        """Names that would resolve outside the package folders are refused."""
        victim = tmp_path / "victim"
        victim.mkdir()

        result = runner.invoke(app, ["install", "zip", "../victim", archive.as_uri()])

        assert result.exit_code == 2
        assert victim.is_dir()

    def test_uninstall_unsupported_type(self) -> None:
        """Unsupported uninstall types fail."""
        result = runner.invoke(app, ["install", "uninstall", "app", "msu", "KB1.msu"])

        assert result.exit_code == 1


@pytest.mark.skipif(os.name == "nt", reason="POSIX shims")
class TestShimCommands:
    """Tests for chococtl shim."""

    def test_generate_and_remove(self, isolated_root: Path) -> None:
        """Shims can be generated and removed for a package."""
        exe = isolated_root / "lib" / "tool" / "tool"
        exe.parent.mkdir(parents=True)
        exe.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
        exe.chmod(0o755)

        generated = runner.invoke(app, ["shim", "generate", "tool"])

        assert generated.exit_code == 0
        assert (isolated_root / "bin" / "tool").is_file()

        removed = runner.invoke(app, ["shim", "remove", "tool"])

        assert removed.exit_code == 0
        assert not (isolated_root / "bin" / "tool").exists()

    def test_generate_without_executables(self) -> None:
        """Packages without executables report so."""
        result = runner.invoke(app, ["shim", "generate", "empty"])

        assert result.exit_code == 0
        assert "No executables" in result.stdout

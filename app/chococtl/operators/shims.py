"""Shim generation for installed executables.

A shim is a small launcher in the shared bin directory that runs an
installed executable by a path relative to the shim itself, so the
install tree stays relocatable. Marker files next to an executable
control its shim:

- ``<exe>.ignore``: no shim is generated.
- ``<exe>.gui``: a GUI launcher that starts the target detached.
- neither: a console launcher that waits, forwards arguments and
  propagates the exit code.
"""

import logging
import os
import stat
from enum import Enum
from pathlib import Path

from chococtl.utils.platform import is_windows

logger = logging.getLogger(__name__)

IGNORE_MARKER = ".ignore"
GUI_MARKER = ".gui"

_MARKER_SUFFIXES = (IGNORE_MARKER, GUI_MARKER)


class ShimKind(Enum):
    """Kind of launcher generated for a target."""

    CONSOLE = "console"
    GUI = "gui"
    SCRIPT = "script"


# Batch launchers (Windows)
_BATCH_CONSOLE = """@echo off
SET DIR=%~dp0%
cmd /c "%DIR%{target} %*"
exit /b %ERRORLEVEL%"""

_BATCH_GUI = """@echo off
SET DIR=%~dp0%
start "" "%DIR%{target}" %*"""

_BATCH_PS1_SCRIPT = """@echo off
powershell -NoProfile -ExecutionPolicy unrestricted -Command "& '{script}'  %*\""""

_BATCH_SCRIPT = """@echo off
SET DIR=%~dp0%
{interpreter} "%DIR%{target}" %*
exit /b %ERRORLEVEL%"""

# POSIX sh launchers
_SH_HEADER = """#!/bin/sh
DIR="$(cd "$(dirname "$0")" && pwd)"
"""

_SH_CONSOLE = _SH_HEADER + """"$DIR/{target}" "$@"
exit $?
"""

_SH_GUI = _SH_HEADER + """nohup "$DIR/{target}" "$@" >/dev/null 2>&1 &
"""

_SH_SCRIPT = _SH_HEADER + """{interpreter} "$DIR/{target}" "$@"
exit $?
"""

_POSIX_INTERPRETERS: dict[str, str] = {
    ".py": "python3",
    ".ps1": "pwsh -NoProfile -File",
    ".sh": "sh",
}

_WINDOWS_INTERPRETERS: dict[str, str] = {
    ".py": "python",
    ".cmd": "cmd /c",
    ".bat": "cmd /c",
}


class ShimManager:
    """Generates and removes shims in a bin directory.

    Args:
        bin_dir: Directory receiving the shims.
        windows: Generate batch launchers instead of sh scripts. Defaults
            to the host platform.
    """

    def __init__(self, bin_dir: Path, *, windows: bool | None = None) -> None:
        self._bin_dir = bin_dir
        self._windows = is_windows() if windows is None else windows

    @property
    def bin_dir(self) -> Path:
        """Return the shim directory."""
        return self._bin_dir

    @property
    def extension(self) -> str:
        """Return the launcher extension (".bat" on Windows, none on POSIX)."""
        return ".bat" if self._windows else ""

    def shim_path(self, target: Path | str, name: str | None = None) -> Path:
        """Return the shim location for a target.

        Args:
            target: Executable or script the shim launches.
            name: Explicit shim name overriding the target's base name.

        Returns:
            Path of the shim inside the bin directory.
        """
        stem = Path(name).stem if name else Path(target).stem
        return self._bin_dir / f"{stem}{self.extension}"

    def find_executables(self, package_root: Path) -> list[Path]:
        """List executables below a package root, in lexical order."""
        if not package_root.is_dir():
            return []

        executables: list[Path] = []
        for path in sorted(package_root.rglob("*")):
            if not path.is_file() or path.name.lower().endswith(_MARKER_SUFFIXES):
                continue
            if self._is_executable(path):
                executables.append(path)
        return executables

    def _is_executable(self, path: Path) -> bool:
        if path.suffix.lower() == ".exe":
            return True
        if self._windows:
            return False
        return os.access(path, os.X_OK)

    @staticmethod
    def shim_kind(executable: Path) -> ShimKind | None:
        """Decide the launcher kind from the marker files next to an executable.

        Returns:
            CONSOLE or GUI, or None when the executable is ignored.
        """
        if Path(f"{executable}{IGNORE_MARKER}").exists():
            return None
        if Path(f"{executable}{GUI_MARKER}").exists():
            return ShimKind.GUI
        return ShimKind.CONSOLE

    def generate_shims(self, package_root: Path) -> list[Path]:
        """Generate a shim for every executable below a package root.

        Args:
            package_root: Install folder of a package.

        Returns:
            Paths of the generated shims.
        """
        generated: list[Path] = []
        for executable in self.find_executables(package_root):
            kind = self.shim_kind(executable)
            if kind is None:
                logger.debug("Ignoring %s", executable)
                continue
            if kind == ShimKind.GUI:
                generated.append(self.generate_gui_shim(executable))
            else:
                generated.append(self.generate_console_shim(executable))
        return generated

    def remove_shims(self, package_root: Path) -> list[Path]:
        """Remove the shims of every executable below a package root.

        Returns:
            Paths of the shims that existed and were removed.
        """
        return self.remove_shims_for(self.find_executables(package_root))

    def remove_shims_for(self, files: list[Path]) -> list[Path]:
        """Remove the shims of the executables among a list of files.

        Files that are missing, not executable, marker files or ignored
        are skipped.

        Returns:
            Paths of the shims that existed and were removed.
        """
        removed: list[Path] = []
        for path in files:
            if not path.is_file() or path.name.lower().endswith(_MARKER_SUFFIXES):
                continue
            if not self._is_executable(path) or self.shim_kind(path) is None:
                continue
            if self.remove_shim(path):
                removed.append(self.shim_path(path))
        return removed

    def generate_console_shim(self, executable: Path, name: str | None = None) -> Path:
        """Generate a launcher that waits for the target and returns its exit code."""
        template = _BATCH_CONSOLE if self._windows else _SH_CONSOLE
        return self._write_shim(ShimKind.CONSOLE, executable, name, template)

    def generate_gui_shim(self, executable: Path, name: str | None = None) -> Path:
        """Generate a launcher that starts the target detached."""
        template = _BATCH_GUI if self._windows else _SH_GUI
        return self._write_shim(ShimKind.GUI, executable, name, template)

    def generate_script_shim(self, script: Path, name: str | None = None) -> Path:
        """Generate a launcher running a script through its interpreter."""
        suffix = script.suffix.lower()
        if self._windows and suffix == ".ps1":
            path = self.shim_path(script, name)
            content = _BATCH_PS1_SCRIPT.format(script=script.resolve())
            return self._write(ShimKind.SCRIPT, path, content)

        interpreters = _WINDOWS_INTERPRETERS if self._windows else _POSIX_INTERPRETERS
        interpreter = interpreters.get(suffix, "cmd /c" if self._windows else "sh")
        template = _BATCH_SCRIPT if self._windows else _SH_SCRIPT
        path = self.shim_path(script, name)
        content = template.format(interpreter=interpreter, target=self._relative(script))
        return self._write(ShimKind.SCRIPT, path, content)

    def remove_shim(self, target: Path | str, name: str | None = None) -> bool:
        """Delete the shim of a target.

        Missing shims are not an error.

        Returns:
            True if a shim was deleted, False if none existed.
        """
        path = self.shim_path(target, name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug("Removed shim %s", path)
        return True

    def _relative(self, target: Path) -> str:
        """Return the target relative to the bin directory."""
        relative = os.path.relpath(target.resolve(), self._bin_dir.resolve())
        if self._windows:
            return relative.replace("/", "\\")
        return relative.replace(os.sep, "/")

    def _write_shim(
        self,
        kind: ShimKind,
        target: Path,
        name: str | None,
        template: str,
    ) -> Path:
        self._bin_dir.mkdir(parents=True, exist_ok=True)
        content = template.format(target=self._relative(target))
        return self._write(kind, self.shim_path(target, name), content)

    def _write(self, kind: ShimKind, path: Path, content: str) -> Path:
        """Write a launcher file, marking it executable on POSIX."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        if not self._windows:
            mode = path.stat().st_mode
            path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.info("Generated %s shim %s", kind.value, path)
        return path

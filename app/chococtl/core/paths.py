"""Install-root path management for chococtl.

All locations used by the engine derive from a single install root:

- Root: $CHOCOCTL_ROOT (default: ~/.local/share/chococtl/)
- Packages: <root>/lib/
- Shims: <root>/bin/
- Source registry: <root>/config/chococtl.toml
- Staging: <tmp>/chococtl/<package>/

The root is computed from the environment and written back to it, so
later lookups within the same session resolve to the same directory.
"""

import os
import tempfile
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "chococtl"

# Environment variable holding the install root
ROOT_ENV_VAR = "CHOCOCTL_ROOT"

CONFIG_FILENAME = "chococtl.toml"


def _default_root() -> Path:
    """Get the default install root, respecting XDG_DATA_HOME."""
    base = os.environ.get("XDG_DATA_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def get_root_dir() -> Path:
    """Get the install root directory.

    Reads CHOCOCTL_ROOT. When unset, the default location is used. A
    relative value is anchored at the filesystem root of the home
    directory. The resolved value is stored back into the environment.

    Returns:
        Absolute path to the install root.
    """
    value = os.environ.get(ROOT_ENV_VAR)
    root = Path(value) if value else _default_root()

    if not root.is_absolute():
        root = Path(Path.home().anchor) / str(root).lstrip("\\/")

    os.environ[ROOT_ENV_VAR] = str(root)
    return root


def get_lib_dir(root: Path | None = None) -> Path:
    """Get the package installation directory.

    Returns:
        Path to <root>/lib.
    """
    return (root or get_root_dir()) / "lib"


def get_bin_dir(root: Path | None = None) -> Path:
    """Get the shim directory.

    Returns:
        Path to <root>/bin.
    """
    return (root or get_root_dir()) / "bin"


def get_config_path(root: Path | None = None) -> Path:
    """Get the source registry file path.

    Returns:
        Path to <root>/config/chococtl.toml.
    """
    return (root or get_root_dir()) / "config" / CONFIG_FILENAME


def get_temp_dir() -> Path:
    """Get the staging directory shared by all packages.

    Returns:
        Path to <tmp>/chococtl.
    """
    return Path(tempfile.gettempdir()) / APP_NAME


def check_package_name(package_name: str) -> str:
    """Validate a package name for use as a single directory name.

    Args:
        package_name: Name to check.

    Returns:
        The unchanged name.

    Raises:
        ValueError: If the name is empty, "." or "..", or contains a path
            separator or drive colon.
    """
    if not package_name or package_name in (".", ".."):
        msg = f"Invalid package name: {package_name!r}"
        raise ValueError(msg)
    if any(char in package_name for char in ("/", "\\", ":", "\0")):
        msg = f"Package name must not contain path separators: {package_name!r}"
        raise ValueError(msg)
    return package_name


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_root_dir(root: Path | None = None) -> Path:
    """Create the install root if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(root or get_root_dir(), "install root")


def ensure_lib_dir(root: Path | None = None) -> Path:
    """Create the package directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_lib_dir(root), "package")


def ensure_bin_dir(root: Path | None = None) -> Path:
    """Create the shim directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_bin_dir(root), "shim")

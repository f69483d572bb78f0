"""Provider settings.

ProviderSettings is computed once at start-up from the environment and
handed to every component, so no component looks up paths or privilege
state on its own.
"""

from dataclasses import dataclass
from pathlib import Path

from chococtl.core.paths import (
    check_package_name,
    ensure_root_dir,
    get_bin_dir,
    get_config_path,
    get_lib_dir,
    get_root_dir,
    get_temp_dir,
)
from chococtl.sources.schema import CHOCOLATEY_SCHEMA, ConfigSchema
from chococtl.utils.platform import is_64bit_os, is_elevated


@dataclass(frozen=True, slots=True)
class ProviderSettings:
    """Immutable engine configuration.

    Attributes:
        root: Install root directory.
        lib_dir: Directory holding one folder per installed package.
        bin_dir: Directory holding generated shims.
        config_path: Source registry file.
        temp_dir: Staging directory shared by all packages.
        is_elevated: Whether the process holds administrative privileges.
        is_64bit: Whether the host operating system is 64-bit.
        force_x86: Prefer 32-bit payloads even on 64-bit hosts.
        skip_validate: Add sources without validating their location.
        schema: Registry document layout.
    """

    root: Path
    lib_dir: Path
    bin_dir: Path
    config_path: Path
    temp_dir: Path
    is_elevated: bool = False
    is_64bit: bool = True
    force_x86: bool = False
    skip_validate: bool = False
    schema: ConfigSchema = CHOCOLATEY_SCHEMA

    @classmethod
    def from_root(
        cls,
        root: Path,
        *,
        config_file: Path | None = None,
        temp_dir: Path | None = None,
        is_elevated: bool = False,
        is_64bit: bool = True,
        force_x86: bool = False,
        skip_validate: bool = False,
        schema: ConfigSchema = CHOCOLATEY_SCHEMA,
    ) -> "ProviderSettings":
        """Build settings for an explicit install root."""
        return cls(
            root=root,
            lib_dir=get_lib_dir(root),
            bin_dir=get_bin_dir(root),
            config_path=config_file or get_config_path(root),
            temp_dir=temp_dir or get_temp_dir(),
            is_elevated=is_elevated,
            is_64bit=is_64bit,
            force_x86=force_x86,
            skip_validate=skip_validate,
            schema=schema,
        )

    @classmethod
    def from_environment(
        cls,
        *,
        config_file: Path | None = None,
        force_x86: bool = False,
        skip_validate: bool = False,
        schema: ConfigSchema = CHOCOLATEY_SCHEMA,
    ) -> "ProviderSettings":
        """Build settings from the process environment.

        Resolves the install root (creating it when missing) and checks
        the host for elevation and architecture.

        Args:
            config_file: Explicit registry file overriding the default.
            force_x86: Prefer 32-bit payloads.
            skip_validate: Add sources without validation.
            schema: Registry document layout.

        Returns:
            Fully populated settings.

        Raises:
            RuntimeError: If the install root cannot be created.
        """
        root = ensure_root_dir(get_root_dir())
        return cls.from_root(
            root,
            config_file=config_file,
            is_elevated=is_elevated(),
            is_64bit=is_64bit_os(),
            force_x86=force_x86,
            skip_validate=skip_validate,
            schema=schema,
        )

    def package_dir(self, package_name: str) -> Path:
        """Return the install folder of a package.

        Raises:
            ValueError: If the name is not a plain directory name.
        """
        return self.lib_dir / check_package_name(package_name)

    def staging_dir(self, package_name: str) -> Path:
        """Return the temporary working directory of a package.

        Raises:
            ValueError: If the name is not a plain directory name.
        """
        return self.temp_dir / check_package_name(package_name)

"""In-process package script execution.

Package install scripts are Python files executed inside the running
process. A script only sees a ScriptContext holding the data it
legitimately needs; it gets no access to orchestrator state.
"""

import logging
import runpy
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Name a package install script must have (matched case-insensitively)
INSTALL_SCRIPT_NAME = "chocolateyinstall.py"

# __name__ seen by package scripts
SCRIPT_RUN_NAME = "__chococtl_script__"


@dataclass(frozen=True, slots=True)
class ScriptContext:
    """Data exposed to a package script.

    Attributes:
        package_name: Name of the package being installed.
        package_folder: Install folder of the package.
        install_arguments: Extra installer arguments from the caller.
        install_override: Whether the caller overrides the script's own arguments.
        working_directory: Directory the script should treat as current.
    """

    package_name: str = ""
    package_folder: str = ""
    install_arguments: str = ""
    install_override: bool = False
    working_directory: str | None = None


class PythonScriptSandbox:
    """Runs Python package scripts in-process.

    The script namespace holds only ``context`` (the ScriptContext) and the
    usual module dunders. Exceptions raised by the script propagate to the
    caller.
    """

    def invoke(self, script: str, context: ScriptContext) -> None:
        """Execute a script file or script source.

        Args:
            script: Path to a .py file, or Python source statements.
            context: Data made available to the script as ``context``.

        Raises:
            SyntaxError: If the script does not compile.
            Exception: Whatever the script raises.
        """
        path = Path(script)
        if script.endswith(".py") and path.is_file():
            logger.debug("Running script %s for package %s", path, context.package_name)
            runpy.run_path(str(path.resolve()), init_globals={"context": context}, run_name=SCRIPT_RUN_NAME)
            return

        logger.debug("Running inline script for package %s", context.package_name)
        namespace: dict[str, object] = {"__name__": SCRIPT_RUN_NAME, "context": context}
        exec(compile(script, "<chococtl-script>", "exec"), namespace)  # noqa: S102


def find_install_script(package_folder: Path) -> Path | None:
    """Find the first install script below a package folder.

    Args:
        package_folder: Folder to search recursively.

    Returns:
        Path of the script, or None when the package ships none.
    """
    if not package_folder.is_dir():
        return None

    for candidate in sorted(package_folder.rglob("*")):
        if candidate.is_file() and candidate.name.lower() == INSTALL_SCRIPT_NAME:
            return candidate
    return None

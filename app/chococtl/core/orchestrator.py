"""Install orchestrator.

Sequences one package installation or removal:

    STAGING -> FETCHING -> INSTALLING -> SHIM_GENERATION -> DONE

FAILED is reachable from every state. Failures while staging, fetching or
installing are logged with the package name and failing step, then
re-raised as InstallationFailedError. A cancelled child process is
re-raised as ProcessKilledError instead. Temporary state is left in place
after a failure for diagnostics.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from urllib.parse import unquote, urlparse

from chococtl.core.errors import (
    ChococtlError,
    DownloadFailedError,
    ElevationRequiredError,
    InstallationFailedError,
    ProcessKilledError,
    ProcessNonZeroExitError,
    UnsupportedPackageTypeError,
)
from chococtl.core.settings import ProviderSettings
from chococtl.filesystem.snapshot import FilesystemSnapshot, read_log
from chococtl.models.install import InstallReport, InstallRequest, InstallState, PayloadKind
from chococtl.models.process import ProcessInvocation, WindowVisibility
from chococtl.operators.process import SCRIPT_INTERPRETER, CancellationToken, ProcessRunner
from chococtl.operators.shims import ShimManager
from chococtl.services.base import ArchiveUnpacker, Downloader, NativeInstaller
from chococtl.services.download import HttpDownloader
from chococtl.services.native import WindowsNativeInstaller, split_args
from chococtl.services.scripts import PythonScriptSandbox, ScriptContext, find_install_script
from chococtl.services.unpack import ArchiveExtractor

logger = logging.getLogger(__name__)

PATH_SCOPES: tuple[str, ...] = ("user", "machine")


class InstallOrchestrator:
    """Runs install and uninstall requests for single packages.

    All collaborators are injected; use create() for the default wiring.

    Args:
        settings: Engine settings.
        downloader: Fetches payloads.
        unpacker: Extracts archive payloads.
        native_installer: Installs msi/msu payloads.
        runner: Runs installer and uninstaller processes.
        shims: Generates and removes shims.
        cancel_token: Cancellation token forwarded to every process run.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        *,
        downloader: Downloader,
        unpacker: ArchiveUnpacker,
        native_installer: NativeInstaller,
        runner: ProcessRunner,
        shims: ShimManager,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self._settings = settings
        self._downloader = downloader
        self._unpacker = unpacker
        self._native = native_installer
        self._runner = runner
        self._shims = shims
        self._cancel_token = cancel_token

    @classmethod
    def create(
        cls,
        settings: ProviderSettings,
        cancel_token: CancellationToken | None = None,
    ) -> "InstallOrchestrator":
        """Build an orchestrator with the default collaborators."""
        runner = ProcessRunner(settings, sandbox=PythonScriptSandbox())
        return cls(
            settings,
            downloader=HttpDownloader(),
            unpacker=ArchiveExtractor(),
            native_installer=WindowsNativeInstaller(runner, cancel_token),
            runner=runner,
            shims=ShimManager(settings.bin_dir),
            cancel_token=cancel_token,
        )

    @property
    def settings(self) -> ProviderSettings:
        """Return the engine settings."""
        return self._settings

    # =========================================================================
    # Helpers
    # =========================================================================

    def select_url(self, url: str | None, url64: str | None) -> str:
        """Pick the payload URL for the host architecture.

        The 64-bit URL wins on a 64-bit host unless 32-bit payloads are
        forced. It is also used when it is the only URL given.
        """
        if url64 and ((self._settings.is_64bit and not self._settings.force_x86) or not url):
            return url64
        return url or ""

    def content_log_path(self, package_name: str, archive_name: str) -> Path:
        """Return the content log of an archive installed for a package."""
        return self._settings.package_dir(package_name) / f"{Path(archive_name).name}.txt"

    @staticmethod
    def resolve_local_file(location: str, working_directory: str | None = None) -> Path | None:
        """Resolve a payload location to an existing local file.

        Args:
            location: URL or path of the payload.
            working_directory: Base directory for relative paths.

        Returns:
            The local file, or None when the location is not one.
        """
        if not location:
            return None

        parsed = urlparse(location)
        if parsed.scheme in ("http", "https", "ftp"):
            return None
        if parsed.scheme == "file":
            candidate = Path(unquote(parsed.path))
        else:
            candidate = Path(location)
            if not candidate.is_absolute() and working_directory:
                candidate = Path(working_directory) / candidate

        return candidate.resolve() if candidate.is_file() else None

    def _transition(self, report: InstallReport, state: InstallState) -> None:
        logger.debug("%s: %s -> %s", report.package_name, report.state.value, state.value)
        report.state = state

    @contextmanager
    def _step(self, report: InstallReport, state: InstallState) -> Iterator[None]:
        """Run one step, turning failures into InstallationFailedError."""
        self._transition(report, state)
        try:
            yield
        except ProcessKilledError as e:
            report.failed_step = state
            report.state = InstallState.FAILED
            logger.error("%s: %s cancelled: %s", report.package_name, state.value, e)
            raise
        except InstallationFailedError:
            report.failed_step = report.failed_step or state
            report.state = InstallState.FAILED
            raise
        except Exception as e:
            report.failed_step = state
            report.state = InstallState.FAILED
            logger.error(
                "Installation of %s failed while %s: %s",
                report.package_name,
                state.value,
                e,
                exc_info=True,
            )
            raise InstallationFailedError(report.package_name, state.value) from e

    def _stage(self, package_name: str) -> Path:
        """Recreate the package's temporary working directory."""
        staging = self._settings.staging_dir(package_name)
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True, exist_ok=True)
        return staging

    def _generate_shims(self, report: InstallReport, package_root: Path) -> None:
        """Generate shims; failures are logged and do not fail the install."""
        self._transition(report, InstallState.SHIM_GENERATION)
        try:
            self._shims.generate_shims(package_root)
        except OSError as e:
            logger.warning("Shim generation for %s failed: %s", report.package_name, e)

    def _remove_package_shims(self, package_name: str) -> None:
        try:
            self._shims.remove_shims(self._settings.package_dir(package_name))
        except OSError as e:
            logger.warning("Shim removal for %s failed: %s", package_name, e)

    # =========================================================================
    # Fetching
    # =========================================================================

    def get_web_file(
        self,
        package_name: str,
        file_path: Path,
        url: str | None,
        url64: str | None = None,
    ) -> Path:
        """Download a payload for the host architecture.

        Args:
            package_name: Package the file belongs to.
            file_path: Where to store the file.
            url: 32-bit or architecture-neutral URL.
            url64: Optional 64-bit URL.

        Returns:
            The downloaded file.

        Raises:
            DownloadFailedError: If the file does not exist afterwards.
        """
        logger.debug("Calling get_web_file %r %s %r %r", package_name, file_path, url, url64)
        selected = self.select_url(url, url64)
        logger.info("Fetching %s => %s", package_name, selected)

        if selected:
            self._downloader.fetch(selected, file_path)
        if not selected or not file_path.is_file():
            raise DownloadFailedError(selected, str(file_path))
        return file_path

    # =========================================================================
    # Installing
    # =========================================================================

    def install_package(self, request: InstallRequest) -> InstallReport:
        """Install a package from its payload URL.

        Args:
            request: What to install and how.

        Returns:
            Report in the DONE state.

        Raises:
            InstallationFailedError: If staging, fetching or installing failed.
            ProcessKilledError: If the installer was cancelled.
        """
        logger.debug("Calling install_package %r", request)
        report = InstallReport(package_name=request.package_name)

        with self._step(report, InstallState.STAGING):
            staging = self._stage(request.package_name)

        with self._step(report, InstallState.FETCHING):
            selected = self.select_url(request.url, request.url64)
            payload = self.resolve_local_file(selected, request.working_directory)
            if payload is None:
                payload = staging / f"{request.package_name}install.{request.file_type.lower()}"
                self.get_web_file(request.package_name, payload, request.url, request.url64)
            else:
                logger.info("Using local payload %s", payload)
            report.payload = payload

        with self._step(report, InstallState.INSTALLING):
            self._dispatch(
                report,
                request.file_type,
                request.silent_args,
                payload,
                request.valid_exit_codes,
                request.working_directory,
                request.unzip_location,
                request.specific_folder,
            )

        self._generate_shims(report, report.destination or self._settings.package_dir(request.package_name))
        self._transition(report, InstallState.DONE)
        logger.info("Package successfully installed: %s", request.package_name)
        return report

    def install_payload(
        self,
        package_name: str,
        file_type: str,
        silent_args: str,
        file: Path,
        valid_exit_codes: frozenset[int] = frozenset({0}),
        working_directory: str | None = None,
    ) -> InstallReport:
        """Install an already present payload file.

        Raises:
            InstallationFailedError: If the payload could not be installed.
            ProcessKilledError: If the installer was cancelled.
        """
        logger.debug(
            "Calling install_payload %r %r %r %s %s %r",
            package_name,
            file_type,
            silent_args,
            file,
            sorted(valid_exit_codes),
            working_directory,
        )
        report = InstallReport(package_name=package_name, payload=file)
        with self._step(report, InstallState.INSTALLING):
            self._dispatch(report, file_type, silent_args, file, valid_exit_codes, working_directory)
        self._transition(report, InstallState.DONE)
        return report

    def _dispatch(
        self,
        report: InstallReport,
        file_type: str,
        silent_args: str,
        file: Path,
        valid_exit_codes: frozenset[int],
        working_directory: str | None,
        unzip_location: str | None = None,
        specific_folder: str | None = None,
    ) -> None:
        """Install a payload according to its kind."""
        kind = PayloadKind.parse(file_type)
        if kind is None:
            raise UnsupportedPackageTypeError(file_type)

        if kind.is_native:
            if not self._native.install_native_package(file, silent_args):
                # The native installer reports success only, not its exit code
                raise ProcessNonZeroExitError(str(file), -1)
            return

        if kind == PayloadKind.EXE:
            invocation = ProcessInvocation(
                executable=str(file),
                arguments=split_args(silent_args),
                working_directory=working_directory,
                elevated=True,
                visibility=WindowVisibility.HIDDEN,
                valid_exit_codes=valid_exit_codes,
            )
            self._runner.run_checked(invocation, self._cancel_token)
            return

        destination = (
            Path(unzip_location)
            if unzip_location
            else self._settings.package_dir(report.package_name)
        )
        self._unzip_into(report, file, destination, specific_folder, report.package_name)

    def install_zip_package(
        self,
        package_name: str,
        url: str | None,
        unzip_location: str | None = None,
        url64: str | None = None,
        specific_folder: str | None = None,
    ) -> InstallReport:
        """Download an archive and extract it, recording the added files.

        Raises:
            InstallationFailedError: If the download or extraction failed.
        """
        logger.debug(
            "Calling install_zip_package %r %r %r %r %r",
            package_name,
            url,
            unzip_location,
            url64,
            specific_folder,
        )
        report = InstallReport(package_name=package_name)

        with self._step(report, InstallState.STAGING):
            staging = self._stage(package_name)

        with self._step(report, InstallState.FETCHING):
            payload = staging / f"{package_name}install.zip"
            report.payload = self.get_web_file(package_name, payload, url, url64)

        with self._step(report, InstallState.INSTALLING):
            destination = Path(unzip_location) if unzip_location else self._settings.package_dir(package_name)
            self._unzip_into(report, payload, destination, specific_folder, package_name)

        self._generate_shims(report, report.destination or self._settings.package_dir(package_name))
        self._transition(report, InstallState.DONE)
        logger.info("Package successfully installed: %s", package_name)
        return report

    def unzip(
        self,
        file: Path,
        destination: Path,
        specific_folder: str | None = None,
        package_name: str | None = None,
    ) -> Path:
        """Extract an archive, logging added files when a package is named.

        Args:
            file: Archive to extract.
            destination: Extraction target.
            specific_folder: Only extract this folder of the archive.
            package_name: Package owning the files. Enables the content log.

        Returns:
            The destination directory.

        Raises:
            ExtractionFailedError: If the archive cannot be extracted.
        """
        report = InstallReport(package_name=package_name or "")
        self._unzip_into(report, file, destination, specific_folder, package_name)
        return destination

    def _unzip_into(
        self,
        report: InstallReport,
        file: Path,
        destination: Path,
        specific_folder: str | None,
        package_name: str | None,
    ) -> None:
        logger.debug("Unzipping %s -> %s (folder=%r, package=%r)", file, destination, specific_folder, package_name)
        report.destination = destination

        if not package_name:
            self._extract(file, destination, specific_folder)
            return

        self._settings.package_dir(package_name).mkdir(parents=True, exist_ok=True)
        log_path = self.content_log_path(package_name, file.name)
        snapshot = FilesystemSnapshot.capture(destination)
        self._extract(file, destination, specific_folder)
        report.added_files = snapshot.write_log(log_path)
        report.content_log = log_path

    def _extract(self, file: Path, destination: Path, specific_folder: str | None) -> None:
        """Extract an archive, or one folder of it."""
        if not specific_folder:
            self._unpacker.unpack(file, destination)
            return

        self._settings.temp_dir.mkdir(parents=True, exist_ok=True)
        scratch = Path(tempfile.mkdtemp(prefix="unzip-", dir=self._settings.temp_dir))
        try:
            self._unpacker.unpack(file, scratch)
            source = scratch / specific_folder
            if not source.is_dir():
                msg = f"Folder {specific_folder!r} not found in {file}"
                raise ChococtlError(msg)
            shutil.copytree(source, destination, dirs_exist_ok=True)
        finally:
            shutil.rmtree(scratch, ignore_errors=True)

    # =========================================================================
    # Uninstalling
    # =========================================================================

    def uninstall_zip_package(self, package_name: str, zip_file_name: str) -> bool:
        """Delete the files an archive install added.

        A missing or unreadable content log, and files that are already
        gone, are tolerated. The log is deleted once processed.

        Returns:
            Always True.
        """
        logger.debug("Calling uninstall_zip_package %r %r", package_name, zip_file_name)
        self._remove_package_shims(package_name)

        log_path = self.content_log_path(package_name, zip_file_name)
        logged = [Path(entry) for entry in read_log(log_path)]

        # Archives extracted to a custom location have shims outside package_dir
        try:
            self._shims.remove_shims_for(logged)
        except OSError as e:
            logger.warning("Shim removal for %s failed: %s", package_name, e)

        for path in logged:
            if not path.is_file() and not path.is_symlink():
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.warning("Uninstall of %s: cannot delete %s: %s", package_name, path, e)

        try:
            log_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Cannot delete content log %s: %s", log_path, e)

        return True

    def uninstall_package(
        self,
        package_name: str,
        file_type: str,
        silent_args: str,
        file: str,
        valid_exit_codes: frozenset[int] = frozenset({0}),
        working_directory: str | None = None,
    ) -> bool:
        """Uninstall a package through its installer or content log.

        Returns:
            True on success, False for an unsupported payload kind.

        Raises:
            InstallationFailedError: If the uninstaller failed.
            ProcessKilledError: If the uninstaller was cancelled.
        """
        logger.debug(
            "Calling uninstall_package %r %r %r %r %s %r",
            package_name,
            file_type,
            silent_args,
            file,
            sorted(valid_exit_codes),
            working_directory,
        )
        kind = PayloadKind.parse(file_type)

        if kind == PayloadKind.ZIP:
            return self.uninstall_zip_package(package_name, file)

        if kind == PayloadKind.MSI:
            invocation = ProcessInvocation(
                executable="msiexec.exe",
                arguments=("/x", file, *split_args(silent_args)),
                working_directory=working_directory,
                elevated=True,
                visibility=WindowVisibility.HIDDEN,
                valid_exit_codes=valid_exit_codes,
            )
        elif kind == PayloadKind.EXE:
            invocation = ProcessInvocation(
                executable=file,
                arguments=split_args(silent_args),
                working_directory=working_directory,
                elevated=True,
                visibility=WindowVisibility.HIDDEN,
                valid_exit_codes=valid_exit_codes,
            )
        else:
            logger.warning("Unsupported uninstall type %s", file_type)
            return False

        report = InstallReport(package_name=package_name)
        self._remove_package_shims(package_name)
        with self._step(report, InstallState.UNINSTALLING):
            self._runner.run_checked(invocation, self._cancel_token)
        self._transition(report, InstallState.DONE)
        return True

    # =========================================================================
    # Package scripts and integration
    # =========================================================================

    def post_install(
        self,
        package_name: str,
        package_folder: Path | None = None,
        install_arguments: str = "",
        install_override: bool = False,
    ) -> bool:
        """Run the package's install script, then generate its shims.

        Returns:
            False if the install script failed, True otherwise.
        """
        folder = package_folder or self._settings.package_dir(package_name)
        script = find_install_script(folder)

        if script is not None:
            context = ScriptContext(
                package_name=package_name,
                package_folder=str(folder),
                install_arguments=install_arguments,
                install_override=install_override,
                working_directory=str(folder),
            )
            invocation = ProcessInvocation(
                executable=SCRIPT_INTERPRETER,
                arguments=(str(script),),
                working_directory=str(folder),
            )
            try:
                result = self._runner.run(invocation, self._cancel_token, context)
            except ElevationRequiredError as e:
                logger.error("Install script of %s not run: %s", package_name, e)
                return False
            if not result.success:
                logger.error("Install script of %s failed: %s", package_name, result.reason)
                return False

        self._shims.generate_shims(folder)
        return True

    def post_uninstall(self, package_name: str) -> bool:
        """Remove the shims of an uninstalled package."""
        self._remove_package_shims(package_name)
        return True

    def install_script_command(
        self,
        package_name: str,
        script_path: Path,
        url: str | None,
        url64: str | None = None,
    ) -> Path | None:
        """Download a script and expose it through a script shim.

        Returns:
            The generated shim, or None if the download failed.
        """
        logger.debug("Calling install_script_command %r %s %r %r", package_name, script_path, url, url64)
        try:
            self.get_web_file(package_name, script_path, url, url64)
        except DownloadFailedError:
            logger.warning("Unable to download script %s", url)
            return None
        return self._shims.generate_script_shim(script_path)

    def add_to_path(self, path: str, scope: str = "user") -> bool:
        """Append a directory to the session PATH.

        Machine scope requires elevation. Directories that no longer exist
        are pruned from the result.

        Returns:
            False if elevation was required but not held.

        Raises:
            ValueError: If the scope is unknown.
        """
        logger.debug("Calling add_to_path %r %r", path, scope)
        scope = scope.lower()
        if scope not in PATH_SCOPES:
            msg = f"Unknown PATH scope: {scope}. Expected one of: {', '.join(PATH_SCOPES)}"
            raise ValueError(msg)

        if scope == "machine" and not self._settings.is_elevated:
            logger.warning("Elevation required - may not modify system path without elevation")
            return False

        entries = [*os.environ.get("PATH", "").split(os.pathsep), path]
        kept = [entry for entry in dict.fromkeys(entries) if entry and Path(entry).is_dir()]
        os.environ["PATH"] = os.pathsep.join(kept)
        return True

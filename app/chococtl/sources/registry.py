"""Package source registry.

Typed view over the registry document: list, add and remove package
sources. Callers always see at least one source; when the document holds
no usable record the schema's built-in default source is returned.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx
from pydantic import ValidationError

from chococtl.models.source import PackageSource, SourceRecord
from chococtl.sources.store import ConfigStore

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES: tuple[str, ...] = ("http", "https", "file")

# Timeout for source reachability checks (seconds)
_VALIDATE_TIMEOUT: float = 10.0


class SourceMapping(Mapping[str, PackageSource]):
    """Read-only mapping of source name to PackageSource.

    Lookups are case-insensitive; iteration yields names as stored. When
    two sources share a name, the one added last wins.
    """

    def __init__(self, sources: list[PackageSource] | None = None) -> None:
        self._sources: dict[str, PackageSource] = {}
        for source in sources or []:
            self._sources[source.name.casefold()] = source

    def __getitem__(self, name: str) -> PackageSource:
        return self._sources[name.casefold()]

    def __iter__(self) -> Iterator[str]:
        return (source.name for source in self._sources.values())

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._sources

    def __repr__(self) -> str:
        return f"SourceMapping({list(self._sources.values())!r})"


def _local_path(location: str) -> Path | None:
    """Return the filesystem path a location refers to, if any."""
    parsed = urlparse(location)
    # Single-letter schemes are Windows drive letters, not URL schemes
    if not parsed.scheme or len(parsed.scheme) == 1:
        return Path(location)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return None


def validate_source_location(location: str, *, timeout: float = _VALIDATE_TIMEOUT) -> bool:
    """Check that a source location is reachable.

    Local paths (and file:// URLs) must exist. http(s) URLs must answer a
    HEAD request (or a GET, for servers rejecting HEAD) with a status
    below 400.

    Args:
        location: Source location to validate.
        timeout: Request timeout in seconds.

    Returns:
        True if the location is usable, False otherwise.
    """
    if not location:
        return False

    local = _local_path(location)
    if local is not None:
        return local.exists()

    scheme = urlparse(location).scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        logger.warning("Unsupported source scheme %r in %s", scheme, location)
        return False

    try:
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            response = client.head(location)
            if response.status_code == 405:
                response = client.get(location)
    except httpx.HTTPError as e:
        logger.info("Source location %s is not reachable: %s", location, e)
        return False

    return response.status_code < 400


class SourceRegistry:
    """Registry of package sources backed by a ConfigStore.

    Args:
        store: Store holding the registry document.
        skip_validate: If True, sources are added without validation.
        validator: Callable checking that a location is reachable.
    """

    def __init__(
        self,
        store: ConfigStore,
        *,
        skip_validate: bool = False,
        validator: Callable[[str], bool] = validate_source_location,
    ) -> None:
        self._store = store
        self._skip_validate = skip_validate
        self._validator = validator

    @property
    def store(self) -> ConfigStore:
        """Return the underlying document store."""
        return self._store

    def list(self) -> SourceMapping:
        """Resolve all registered sources.

        Records missing an identity or location are skipped. When no valid
        record remains, or the records cannot be parsed at all, the
        built-in default source is returned instead.

        Returns:
            Mapping of source name to PackageSource, never empty.
        """
        document = self._store.load()
        if document.is_default:
            return SourceMapping([document.schema.default_source])

        sources: list[PackageSource] = []
        try:
            for raw in document.records():
                if not isinstance(raw, dict):
                    continue
                try:
                    record = SourceRecord.model_validate(
                        {
                            "name": raw.get(document.schema.key_field),
                            "location": raw.get(document.schema.value_field),
                            "trusted": raw.get("trusted"),
                            "validated": raw.get("validated"),
                        }
                    )
                except ValidationError:
                    logger.debug("Skipping incomplete source record: %r", raw)
                    continue
                sources.append(record.to_source())
        except ValueError as e:
            logger.warning("Cannot parse package sources: %s", e)
            sources = []

        if not sources:
            return SourceMapping([self._store.schema.default_source])

        return SourceMapping(sources)

    def get(self, name: str) -> PackageSource | None:
        """Find a source by name (case-insensitive)."""
        return self.list().get(name)

    def add(
        self,
        name: str,
        location: str,
        trusted: bool = False,
        validated: bool = False,
    ) -> bool:
        """Register a new package source.

        The source is only added when validation is skipped or the
        location validates. Otherwise nothing happens.

        Args:
            name: Source identity.
            location: Source URL or path.
            trusted: Whether the source is trusted.
            validated: Whether the source is marked as validated.

        Returns:
            True if the source was written, False if it was skipped.

        Raises:
            ConfigError: If the registry file cannot be written.
        """
        if not self._skip_validate and not self._validator(location):
            logger.info("Not adding source %s: location %s failed validation", name, location)
            return False

        document = self._store.load()
        document.add_record(name, location, trusted=trusted, validated=validated)
        self._store.save(document)
        logger.info("Added package source %s -> %s", name, location)
        return True

    def remove(self, name: str) -> bool:
        """Unregister a package source.

        Args:
            name: Source identity, compared case-insensitively.

        Returns:
            True if a source was removed, False if none matched.

        Raises:
            ConfigError: If the registry file cannot be written.
        """
        document = self._store.load()
        if not document.remove_record(name):
            logger.debug("Package source %s not found, nothing to remove", name)
            return False

        self._store.save(document)
        logger.info("Removed package source %s", name)
        return True

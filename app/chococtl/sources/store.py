"""Source registry document I/O.

This module loads and saves the registry document in TOML format. Loading
never fails: a missing, unreadable or unexpected document is replaced by
the schema's default document. Saving rewrites the whole file atomically.
"""

import copy
import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w

from chococtl.core.errors import ConfigError
from chococtl.sources.schema import CHOCOLATEY_SCHEMA, ConfigSchema

logger = logging.getLogger(__name__)


class ConfigDocument:
    """In-memory registry document.

    Wraps the parsed TOML tree. Mutations happen in memory; persist them
    with ConfigStore.save().

    Attributes:
        schema: Layout the document follows.
        data: Parsed TOML tree with a single root table.
        is_default: True when the document is the built-in default.
    """

    def __init__(
        self,
        schema: ConfigSchema,
        data: dict[str, Any],
        *,
        is_default: bool = False,
    ) -> None:
        self.schema = schema
        self.data = data
        self.is_default = is_default

    @classmethod
    def default(cls, schema: ConfigSchema) -> "ConfigDocument":
        """Create the built-in default document for a schema."""
        return cls(schema, schema.default_data(), is_default=True)

    @property
    def root(self) -> dict[str, Any]:
        """Return the root table."""
        return self.data[self.schema.root]

    def records(self) -> list[Any]:
        """Return the raw source records.

        Returns:
            The record list, or an empty list when there is no container.

        Raises:
            ValueError: If the container exists but is not an array.
        """
        container = self.root.get(self.schema.container)
        if container is None:
            return []
        if not isinstance(container, list):
            msg = f"'{self.schema.container}' must be an array of tables"
            raise ValueError(msg)
        return container

    def ensure_records(self) -> list[Any]:
        """Return the record list, creating the container when absent."""
        container = self.root.get(self.schema.container)
        if not isinstance(container, list):
            container = []
            self.root[self.schema.container] = container
        return container

    def add_record(
        self,
        name: str,
        location: str,
        *,
        trusted: bool = False,
        validated: bool = False,
    ) -> None:
        """Append a source record.

        Boolean attributes are only written when true.
        """
        record: dict[str, Any] = {
            self.schema.key_field: name,
            self.schema.value_field: location,
        }
        if validated:
            record["validated"] = True
        if trusted:
            record["trusted"] = True
        self.ensure_records().append(record)

    def remove_record(self, name: str) -> bool:
        """Remove the most recently added record with the given identity.

        Args:
            name: Source identity, compared case-insensitively.

        Returns:
            True if a record was removed, False if none matched.
        """
        try:
            records = self.records()
        except ValueError:
            return False

        wanted = name.casefold()
        for index in range(len(records) - 1, -1, -1):
            record = records[index]
            if not isinstance(record, dict):
                continue
            key = record.get(self.schema.key_field)
            if isinstance(key, str) and key.casefold() == wanted:
                del records[index]
                return True
        return False

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the document tree."""
        return copy.deepcopy(self.data)


class ConfigStore:
    """Loads and saves the registry document at a fixed path.

    Attributes:
        path: Location of the TOML registry file.
        schema: Layout of the document.
    """

    def __init__(self, path: Path, schema: ConfigSchema = CHOCOLATEY_SCHEMA) -> None:
        self.path = path
        self.schema = schema

    def load(self) -> ConfigDocument:
        """Load the registry document.

        Returns:
            The parsed document, or the default document when the file is
            missing, unreadable, or has an unexpected root table.
        """
        try:
            with open(self.path, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            logger.debug("Registry file %s not found, using defaults", self.path)
            return ConfigDocument.default(self.schema)
        except (OSError, tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            logger.warning("Cannot read registry file %s, using defaults: %s", self.path, e)
            return ConfigDocument.default(self.schema)

        if set(data) != {self.schema.root} or not isinstance(data[self.schema.root], dict):
            logger.warning(
                "Registry file %s has unexpected root (expected [%s]), using defaults",
                self.path,
                self.schema.root,
            )
            return ConfigDocument.default(self.schema)

        return ConfigDocument(self.schema, data)

    def save(self, document: ConfigDocument | None) -> Path | None:
        """Write the document, replacing the file atomically.

        Args:
            document: Document to write. None is ignored.

        Returns:
            Path written, or None when nothing was saved.

        Raises:
            ConfigError: If the file cannot be written.
        """
        if document is None:
            return None

        logger.info("Saving registry %s", self.path)

        tmp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="wb",
                dir=self.path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                tomli_w.dump(document.data, f)
            os.replace(str(tmp_path), str(self.path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise ConfigError(f"Failed to write registry {self.path}: {e}") from e

        return self.path

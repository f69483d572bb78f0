"""Package source registry.

This module provides the registry document store, its schemas and the
typed source registry built over it.
"""

from chococtl.sources.registry import SourceMapping, SourceRegistry, validate_source_location
from chococtl.sources.schema import CHOCOLATEY_SCHEMA, NUGET_SCHEMA, ConfigSchema, get_schema
from chococtl.sources.store import ConfigDocument, ConfigStore

__all__ = [
    "CHOCOLATEY_SCHEMA",
    "NUGET_SCHEMA",
    "ConfigDocument",
    "ConfigSchema",
    "ConfigStore",
    "SourceMapping",
    "SourceRegistry",
    "get_schema",
    "validate_source_location",
]

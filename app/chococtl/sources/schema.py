"""Registry document schemas.

A schema names the root table of the registry document, the array of
source records inside it, the record fields holding identity and
location, and the default source used whenever the document is missing
or unusable.
"""

from dataclasses import dataclass
from typing import Any

from chococtl.models.source import PackageSource


@dataclass(frozen=True, slots=True)
class ConfigSchema:
    """Layout of one provider's registry document.

    Attributes:
        root: Name of the single top-level table.
        container: Name of the array of source records under the root.
        key_field: Record field holding the source identity.
        value_field: Record field holding the source location.
        default_source: Built-in source used when no user source exists.
        settings: Provider-specific top-level settings of the default document.
    """

    root: str
    container: str
    key_field: str
    value_field: str
    default_source: PackageSource
    settings: tuple[tuple[str, Any], ...] = ()

    def default_data(self) -> dict[str, Any]:
        """Build the default document as a fresh TOML-ready dictionary."""
        root: dict[str, Any] = dict(self.settings)
        root[self.container] = [
            {
                self.key_field: self.default_source.name,
                self.value_field: self.default_source.location,
            }
        ]
        return {self.root: root}


CHOCOLATEY_SCHEMA = ConfigSchema(
    root="chocolatey",
    container="sources",
    key_field="id",
    value_field="value",
    default_source=PackageSource(
        name="chocolatey",
        location="http://chocolatey.org/api/v2/",
        trusted=False,
        is_registered=False,
        is_validated=True,
    ),
    settings=(("useNuGetForSources", False),),
)

NUGET_SCHEMA = ConfigSchema(
    root="configuration",
    container="packageSources",
    key_field="key",
    value_field="value",
    default_source=PackageSource(
        name="nuget.org",
        location="https://www.nuget.org/api/v2/",
        trusted=False,
        is_registered=False,
        is_validated=True,
    ),
)

SCHEMAS: dict[str, ConfigSchema] = {
    "chocolatey": CHOCOLATEY_SCHEMA,
    "nuget": NUGET_SCHEMA,
}


def get_schema(provider: str) -> ConfigSchema:
    """Look up a schema by provider name.

    Args:
        provider: Provider name ("chocolatey" or "nuget"), case-insensitive.

    Returns:
        The provider's ConfigSchema.

    Raises:
        ValueError: If the provider is unknown.
    """
    try:
        return SCHEMAS[provider.lower()]
    except KeyError:
        msg = f"Unknown provider: {provider}. Expected one of: {', '.join(SCHEMAS)}"
        raise ValueError(msg) from None

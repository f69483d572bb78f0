"""Package source models.

This module defines the PackageSource record returned by the source
registry and the pydantic model used to validate raw registry records.
"""

from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})


def is_true(value: Any) -> bool:
    """Interpret a presence-as-true attribute value.

    Args:
        value: Raw attribute value (None when the attribute is absent).

    Returns:
        True for True, non-zero integers and true-ish strings.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


@dataclass(frozen=True, slots=True)
class PackageSource:
    """A named, located repository from which packages may be fetched.

    Attributes:
        name: Identity key, compared case-insensitively.
        location: URL or filesystem path of the repository.
        trusted: Whether packages from this source are trusted.
        is_registered: False only for the built-in default source.
        is_validated: Whether the location was validated when added.
    """

    name: str
    location: str
    trusted: bool = False
    is_registered: bool = True
    is_validated: bool = False

    def __post_init__(self) -> None:
        """Validate source data after initialization."""
        if not self.name:
            msg = "Source name cannot be empty"
            raise ValueError(msg)
        if not self.location:
            msg = "Source location cannot be empty"
            raise ValueError(msg)


class SourceRecord(BaseModel):
    """One source record as stored in the registry document.

    Missing or empty identity/location values fail validation, which makes
    the registry skip the record.
    """

    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, Field(min_length=1, description="Source identity key")]
    location: Annotated[str, Field(min_length=1, description="Source location")]
    trusted: bool = False
    validated: bool = False

    @field_validator("trusted", "validated", mode="before")
    @classmethod
    def presence_as_true(cls, v: object) -> bool:
        """Absent means false; present means its true-ish value."""
        return is_true(v)

    def to_source(self) -> PackageSource:
        """Convert the record into a registered PackageSource."""
        return PackageSource(
            name=self.name,
            location=self.location,
            trusted=self.trusted,
            is_registered=True,
            is_validated=self.validated,
        )

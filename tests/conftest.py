"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from chococtl.core.settings import ProviderSettings


@pytest.fixture
def settings(tmp_path: Path) -> ProviderSettings:
    """Settings rooted in a temporary install root."""
    return ProviderSettings.from_root(
        tmp_path / "root",
        temp_dir=tmp_path / "tmp",
        is_elevated=True,
        is_64bit=True,
    )


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    """Factory building a zip archive from a {member: content} mapping."""

    def _make(members: dict[str, str], name: str = "payload.zip") -> Path:
        archive = tmp_path / "archives" / name
        archive.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive, "w") as zf:
            for member, content in members.items():
                zf.writestr(member, content)
        return archive

    return _make


@pytest.fixture
def sample_registry() -> str:
    """Registry document with two user sources."""
    return """[chocolatey]
useNuGetForSources = false

[[chocolatey.sources]]
id = "internal"
value = "https://packages.example.com/api/v2/"
trusted = true

[[chocolatey.sources]]
id = "local"
value = "/srv/packages"
"""

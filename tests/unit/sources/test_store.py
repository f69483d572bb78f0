"""Unit tests for registry document I/O.

Tests for loading and saving the TOML source registry.
"""

import tomllib
from pathlib import Path
from unittest.mock import patch

import pytest

from chococtl.core.errors import ConfigError
from chococtl.sources.schema import CHOCOLATEY_SCHEMA, NUGET_SCHEMA
from chococtl.sources.store import ConfigDocument, ConfigStore


class TestConfigStoreLoad:
    """Tests for ConfigStore.load."""

    def test_missing_file_returns_default(self, tmp_path: Path) -> None:
        """A missing file yields the default document."""
        store = ConfigStore(tmp_path / "missing.toml")

        document = store.load()

        assert document.is_default
        assert document.to_dict() == CHOCOLATEY_SCHEMA.default_data()

    def test_corrupt_file_returns_default(self, tmp_path: Path) -> None:
        """Unparseable TOML yields the default document."""
        path = tmp_path / "chococtl.toml"
        path.write_text("[chocolatey\nsources = ", encoding="utf-8")

        document = ConfigStore(path).load()

        assert document.is_default

    def test_wrong_root_returns_default(self, tmp_path: Path) -> None:
        """A document rooted at another table yields the default document."""
        path = tmp_path / "chococtl.toml"
        path.write_text('[configuration]\nfoo = "bar"\n', encoding="utf-8")

        document = ConfigStore(path).load()

        assert document.is_default
        assert "chocolatey" in document.data

    def test_extra_top_level_key_returns_default(self, tmp_path: Path) -> None:
        """A second top-level table makes the root unexpected."""
        path = tmp_path / "chococtl.toml"
        path.write_text("[chocolatey]\n[other]\n", encoding="utf-8")

        assert ConfigStore(path).load().is_default

    def test_valid_file_is_loaded(self, tmp_path: Path, sample_registry: str) -> None:
        """A well-formed document is returned as stored."""
        path = tmp_path / "chococtl.toml"
        path.write_text(sample_registry, encoding="utf-8")

        document = ConfigStore(path).load()

        assert not document.is_default
        assert [r["id"] for r in document.records()] == ["internal", "local"]

    def test_nuget_schema_default(self, tmp_path: Path) -> None:
        """The NuGet schema has its own root and default source."""
        document = ConfigStore(tmp_path / "nuget.toml", NUGET_SCHEMA).load()

        assert document.to_dict() == {
            "configuration": {
                "packageSources": [{"key": "nuget.org", "value": "https://www.nuget.org/api/v2/"}]
            }
        }


class TestConfigStoreSave:
    """Tests for ConfigStore.save."""

    def test_save_none_is_noop(self, tmp_path: Path) -> None:
        """Saving None writes nothing."""
        path = tmp_path / "chococtl.toml"

        assert ConfigStore(path).save(None) is None
        assert not path.exists()

    def test_save_creates_parent_directories(self, tmp_path: Path) -> None:
        """save creates missing parent directories."""
        path = tmp_path / "config" / "nested" / "chococtl.toml"
        store = ConfigStore(path)

        result = store.save(store.load())

        assert result == path
        assert path.exists()

    def test_save_then_load_round_trips(self, tmp_path: Path, sample_registry: str) -> None:
        """A saved document loads back unchanged."""
        path = tmp_path / "chococtl.toml"
        path.write_text(sample_registry, encoding="utf-8")
        store = ConfigStore(path)
        original = store.load()

        store.save(original)

        assert store.load().to_dict() == original.to_dict()

    def test_save_leaves_no_temp_files(self, tmp_path: Path) -> None:
        """The atomic write cleans up after itself."""
        store = ConfigStore(tmp_path / "chococtl.toml")

        store.save(store.load())

        assert [p.name for p in tmp_path.iterdir()] == ["chococtl.toml"]

    def test_save_failure_raises_config_error(self, tmp_path: Path) -> None:
        """Write errors surface as ConfigError."""
        store = ConfigStore(tmp_path / "chococtl.toml")

        with (
            patch("chococtl.sources.store.os.replace", side_effect=OSError("disk full")),
            pytest.raises(ConfigError, match="disk full"),
        ):
            store.save(store.load())

        assert not (tmp_path / "chococtl.toml").exists()


class TestConfigDocument:
    """Tests for ConfigDocument record manipulation."""

    def test_add_record_omits_false_flags(self) -> None:
        """Boolean attributes are only written when true."""
        document = ConfigDocument.default(CHOCOLATEY_SCHEMA)

        document.add_record("plain", "https://example.com/")
        document.add_record("flagged", "https://example.org/", trusted=True, validated=True)

        plain, flagged = document.records()[-2:]
        assert plain == {"id": "plain", "value": "https://example.com/"}
        assert flagged == {
            "id": "flagged",
            "value": "https://example.org/",
            "validated": True,
            "trusted": True,
        }

    def test_remove_record_is_case_insensitive(self) -> None:
        """Removal matches the identity regardless of case."""
        document = ConfigDocument.default(CHOCOLATEY_SCHEMA)
        document.add_record("MySource", "https://example.com/")

        assert document.remove_record("mysource") is True
        assert document.to_dict() == CHOCOLATEY_SCHEMA.default_data()

    def test_remove_record_takes_last_match(self) -> None:
        """With duplicate identities the most recent record goes."""
        document = ConfigDocument.default(CHOCOLATEY_SCHEMA)
        document.add_record("dup", "https://first.example.com/")
        document.add_record("dup", "https://second.example.com/")

        document.remove_record("dup")

        assert document.records()[-1]["value"] == "https://first.example.com/"

    def test_remove_missing_record(self) -> None:
        """Removing an unknown identity reports False."""
        document = ConfigDocument.default(CHOCOLATEY_SCHEMA)

        assert document.remove_record("nope") is False

    def test_records_rejects_non_array_container(self) -> None:
        """A scalar container is a parse error."""
        document = ConfigDocument(CHOCOLATEY_SCHEMA, {"chocolatey": {"sources": "oops"}})

        with pytest.raises(ValueError, match="array"):
            document.records()

    def test_saved_file_is_valid_toml(self, tmp_path: Path) -> None:
        """The written file parses with tomllib."""
        store = ConfigStore(tmp_path / "chococtl.toml")
        document = store.load()
        document.add_record("extra", "https://example.com/", trusted=True)

        store.save(document)

        data = tomllib.loads((tmp_path / "chococtl.toml").read_text(encoding="utf-8"))
        assert data["chocolatey"]["useNuGetForSources"] is False
        assert data["chocolatey"]["sources"][-1]["trusted"] is True

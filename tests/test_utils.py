"""Unit tests for utility functions and configuration."""

import json
from pathlib import Path

import pytest

from ghostsync.config import DEFAULT_API_URL, Config
from ghostsync.utils import dump_document, is_valid_folder_name, strip_volatile_fields


class TestStripVolatileFields:
    """Tests for strip_volatile_fields function."""

    def test_removes_server_fields(self):
        document = {
            "_id": "t1",
            "name": "pay",
            "dateCreated": "2024-01-01",
            "dateUpdated": "2024-02-01",
            "suite": {"_id": "s1"},
            "steps": [],
        }

        assert strip_volatile_fields(document) == {"name": "pay", "steps": []}

    def test_does_not_mutate_input(self):
        document = {"_id": "t1", "name": "pay"}
        strip_volatile_fields(document)

        assert document == {"_id": "t1", "name": "pay"}

    def test_nested_fields_are_kept(self):
        document = {"name": "pay", "steps": [{"_id": "step1", "command": "click"}]}

        assert strip_volatile_fields(document) == document


class TestDumpDocument:
    """Tests for dump_document function."""

    def test_two_space_indent(self):
        assert dump_document({"a": {"b": 1}}) == b'{\n  "a": {\n    "b": 1\n  }\n}'

    def test_non_ascii_kept_as_utf8(self):
        data = dump_document({"name": "Kaufen ü"})

        assert "ü".encode("utf-8") in data
        assert json.loads(data.decode("utf-8")) == {"name": "Kaufen ü"}

    def test_key_order_preserved(self):
        assert dump_document({"z": 1, "a": 2}).index(b'"z"') < dump_document(
            {"z": 1, "a": 2}
        ).index(b'"a"')


class TestIsValidFolderName:
    """Tests for is_valid_folder_name function."""

    @pytest.mark.parametrize("name", ["Login", "Login Flow", "Checkout (v2)", "ü"])
    def test_valid_names(self, name):
        assert is_valid_folder_name(name)

    @pytest.mark.parametrize(
        "name", ["", "   ", ".", "..", "a/b", "a\\b", "../etc", "nul\x00"]
    )
    def test_invalid_names(self, name):
        assert not is_valid_folder_name(name)


class TestConfig:
    """Tests for environment-backed configuration."""

    def test_defaults(self, monkeypatch):
        for var in (
            Config.API_KEY_ENV,
            Config.FOLDER_ID_ENV,
            Config.API_URL_ENV,
            Config.MAPPING_FILE_ENV,
        ):
            monkeypatch.delenv(var, raising=False)
        config = Config()

        assert config.api_key is None
        assert config.folder_id is None
        assert config.api_url == DEFAULT_API_URL
        assert config.get_mapping_path(Path("suites")) == Path(
            "suites/suite-mapping.json"
        )

    def test_empty_values_count_as_missing(self, monkeypatch):
        monkeypatch.setenv(Config.API_KEY_ENV, "")
        monkeypatch.setenv(Config.FOLDER_ID_ENV, "")

        assert Config().api_key is None
        assert Config().folder_id is None

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv(Config.API_KEY_ENV, "key")
        monkeypatch.setenv(Config.FOLDER_ID_ENV, "f1")
        monkeypatch.setenv(Config.API_URL_ENV, "http://localhost:8080/v1/")

        config = Config()
        assert config.api_key == "key"
        assert config.folder_id == "f1"
        assert config.api_url == "http://localhost:8080/v1"

    def test_mapping_file_override(self, monkeypatch, tmp_path):
        absolute = tmp_path / "mapping.json"
        monkeypatch.setenv(Config.MAPPING_FILE_ENV, str(absolute))
        assert Config().get_mapping_path(Path("suites")) == absolute

        monkeypatch.setenv(Config.MAPPING_FILE_ENV, "state/map.json")
        assert Config().get_mapping_path(Path("suites")) == Path(
            "suites/state/map.json"
        )

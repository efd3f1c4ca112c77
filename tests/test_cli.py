"""Unit tests for the ghostsync CLI commands."""

import json
from unittest.mock import MagicMock, Mock, patch

import pytest
from click.testing import CliRunner

from ghostsync.api import GhostInspectorClient
from ghostsync.cli import main
from ghostsync.exceptions import GhostAPIError, GhostNotFoundError

LOGIN_TEST = {"name": "login", "steps": []}


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def env():
    """Environment with credentials set and no mapping file override."""
    return {
        "GHOST_INSPECTOR_API_KEY": "test_key",
        "GHOST_INSPECTOR_FOLDER_ID": "f1",
        "GHOST_INSPECTOR_MAPPING_FILE": "",
    }


@pytest.fixture
def api():
    """Patch the client class; yields (class mock, client mock)."""
    client = Mock(spec=GhostInspectorClient)
    with patch("ghostsync.cli.GhostInspectorClient") as client_class:
        client_class.return_value = MagicMock()
        client_class.return_value.__enter__.return_value = client
        yield client_class, client


def _read_mapping(root):
    return json.loads((root / "suite-mapping.json").read_text(encoding="utf-8"))


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "pull" in result.output
        assert "push" in result.output
        assert "--api-key" in result.output


class TestConfiguration:
    """Missing configuration is reported before any remote call."""

    def test_pull_without_api_key(self, runner, env, api, temp_dir):
        client_class, _ = api
        env["GHOST_INSPECTOR_API_KEY"] = ""

        result = runner.invoke(main, ["--root", str(temp_dir), "pull"], env=env)

        assert result.exit_code == 2
        client_class.assert_not_called()

    def test_pull_without_folder_id(self, runner, env, api, temp_dir):
        client_class, _ = api
        env["GHOST_INSPECTOR_FOLDER_ID"] = ""

        result = runner.invoke(main, ["--root", str(temp_dir), "pull"], env=env)

        assert result.exit_code == 2
        client_class.assert_not_called()
        assert not (temp_dir / "suite-mapping.json").exists()

    def test_push_without_api_key(self, runner, env, api, temp_dir):
        client_class, _ = api
        env["GHOST_INSPECTOR_API_KEY"] = ""

        result = runner.invoke(main, ["--root", str(temp_dir), "push"], env=env)

        assert result.exit_code == 2
        client_class.assert_not_called()

    def test_push_does_not_need_folder_id(self, runner, env, api, temp_dir):
        env["GHOST_INSPECTOR_FOLDER_ID"] = ""

        result = runner.invoke(main, ["--root", str(temp_dir), "push"], env=env)

        assert result.exit_code == 0

    def test_api_key_option_overrides_environment(self, runner, env, api, temp_dir):
        client_class, client = api
        env["GHOST_INSPECTOR_API_KEY"] = ""
        client.list_folder_suites.return_value = []

        result = runner.invoke(
            main, ["--api-key", "from-option", "--root", str(temp_dir), "pull"], env=env
        )

        assert result.exit_code == 0
        client_class.assert_called_once_with(api_key="from-option")


class TestPullCommand:
    """Tests for the pull command."""

    def test_pull_writes_folder_and_mapping(
        self, runner, env, api, temp_dir, export_factory
    ):
        _, client = api
        client.list_folder_suites.return_value = [{"_id": "s1", "name": "Login"}]
        client.get_suite.return_value = {"_id": "s1", "name": "Login"}
        client.export_suite.return_value = export_factory({"login.json": LOGIN_TEST})

        result = runner.invoke(main, ["--root", str(temp_dir), "pull"], env=env)

        assert result.exit_code == 0
        client.list_folder_suites.assert_called_once_with("f1")
        assert (temp_dir / "Login" / "login.json").is_file()
        assert _read_mapping(temp_dir) == {"s1": "Login"}

    def test_mapping_file_option(self, runner, env, api, temp_dir, export_factory):
        _, client = api
        client.list_folder_suites.return_value = [{"_id": "s1", "name": "Login"}]
        client.get_suite.return_value = {"_id": "s1", "name": "Login"}
        client.export_suite.return_value = export_factory({"login.json": LOGIN_TEST})
        mapping_file = temp_dir / "state" / "mapping.json"

        result = runner.invoke(
            main,
            ["--root", str(temp_dir), "--mapping-file", str(mapping_file), "pull"],
            env=env,
        )

        assert result.exit_code == 0
        assert json.loads(mapping_file.read_text()) == {"s1": "Login"}

    def test_suite_failure_exits_3_and_keeps_successes(
        self, runner, env, api, temp_dir, export_factory
    ):
        _, client = api
        client.list_folder_suites.return_value = [
            {"_id": "s1", "name": "Login"},
            {"_id": "s2", "name": "Cart"},
        ]

        def get_suite(suite_id):
            if suite_id == "s2":
                raise GhostNotFoundError("Resource not found")
            return {"_id": "s1", "name": "Login"}

        client.get_suite.side_effect = get_suite
        client.export_suite.return_value = export_factory({"login.json": LOGIN_TEST})

        result = runner.invoke(main, ["--root", str(temp_dir), "pull"], env=env)

        assert result.exit_code == 3
        assert _read_mapping(temp_dir) == {"s1": "Login"}

    def test_folder_listing_failure_exits_1(self, runner, env, api, temp_dir):
        _, client = api
        client.list_folder_suites.side_effect = GhostAPIError("Invalid API key")

        result = runner.invoke(main, ["--root", str(temp_dir), "pull"], env=env)

        assert result.exit_code == 1
        assert not (temp_dir / "suite-mapping.json").exists()

    def test_corrupt_mapping_exits_1(self, runner, env, api, temp_dir):
        client_class, _ = api
        (temp_dir / "suite-mapping.json").write_text("{not json")

        result = runner.invoke(main, ["--root", str(temp_dir), "pull"], env=env)

        assert result.exit_code == 1
        client_class.assert_not_called()
        assert (temp_dir / "suite-mapping.json").read_text() == "{not json"

    def test_dry_run_writes_nothing(self, runner, env, api, temp_dir, export_factory):
        _, client = api
        client.list_folder_suites.return_value = [{"_id": "s1", "name": "Login"}]
        client.get_suite.return_value = {"_id": "s1", "name": "Login"}
        client.export_suite.return_value = export_factory({"login.json": LOGIN_TEST})

        result = runner.invoke(
            main, ["--root", str(temp_dir), "pull", "--dry-run"], env=env
        )

        assert result.exit_code == 0
        assert not (temp_dir / "Login").exists()
        assert not (temp_dir / "suite-mapping.json").exists()

    def test_interrupt_exits_130(self, runner, env, api, temp_dir):
        _, client = api
        client.list_folder_suites.side_effect = KeyboardInterrupt

        result = runner.invoke(main, ["--root", str(temp_dir), "pull"], env=env)

        assert result.exit_code == 130


class TestPushCommand:
    """Tests for the push command."""

    def test_push_applies_changes(self, runner, env, api, temp_dir, test_writer):
        _, client = api
        (temp_dir / "suite-mapping.json").write_text('{"s1": "Login"}')
        test_writer(temp_dir / "Login", "login.json", LOGIN_TEST)
        client.list_suite_tests.return_value = [{"_id": "t9", "name": "old"}]

        result = runner.invoke(main, ["--root", str(temp_dir), "push"], env=env)

        assert result.exit_code == 0
        client.import_test.assert_called_once_with("s1", LOGIN_TEST)
        client.delete_test.assert_called_once_with("t9")

    def test_push_failures_exit_3(self, runner, env, api, temp_dir, test_writer):
        _, client = api
        (temp_dir / "suite-mapping.json").write_text('{"s1": "Login"}')
        test_writer(temp_dir / "Login", "login.json", LOGIN_TEST)
        client.list_suite_tests.return_value = []
        client.import_test.side_effect = GhostAPIError("invalid test")

        result = runner.invoke(main, ["--root", str(temp_dir), "push"], env=env)

        assert result.exit_code == 3

    def test_push_does_not_rewrite_mapping(
        self, runner, env, api, temp_dir, test_writer
    ):
        _, client = api
        mapping_file = temp_dir / "suite-mapping.json"
        mapping_file.write_text('{"s1": "Login", "s2": "Gone"}')
        test_writer(temp_dir / "Login", "login.json", LOGIN_TEST)
        client.list_suite_tests.return_value = [{"_id": "t1", "name": "login"}]
        client.get_test.return_value = {"_id": "t1", **LOGIN_TEST}

        result = runner.invoke(main, ["--root", str(temp_dir), "push"], env=env)

        assert result.exit_code == 0
        assert mapping_file.read_text() == '{"s1": "Login", "s2": "Gone"}'
        client.update_test.assert_not_called()

    def test_push_dry_run(self, runner, env, api, temp_dir, test_writer):
        _, client = api
        (temp_dir / "suite-mapping.json").write_text('{"s1": "Login"}')
        test_writer(temp_dir / "Login", "login.json", LOGIN_TEST)
        client.list_suite_tests.return_value = []

        result = runner.invoke(
            main, ["--root", str(temp_dir), "push", "--dry-run"], env=env
        )

        assert result.exit_code == 0
        client.import_test.assert_not_called()

"""
Tests for the namedsql command line interface.
"""

import json

import pytest
from click.testing import CliRunner

from namedsql.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def bad_file(tmp_path):
    path = tmp_path / "bad.sql"
    path.write_text("-- name: broken\nSELECT {% if %}\n")
    return path


class TestList:
    """Tests for the list command."""

    def test_table_output(self, runner, users_file):
        result = runner.invoke(cli, ["list", str(users_file)])
        assert result.exit_code == 0
        assert "create-user" in result.output
        assert "deactivate-user" in result.output

    def test_json_output(self, runner, users_file):
        result = runner.invoke(cli, ["--json", "list", str(users_file)])
        assert result.exit_code == 0
        queries = json.loads(result.output)
        assert list(queries) == [
            "create-users-table",
            "create-user",
            "find-user-by-email",
            "list-users",
            "deactivate-user",
        ]

    def test_directory(self, runner, tmp_path):
        (tmp_path / "one.sql").write_text("SELECT 1\n")
        (tmp_path / "two.sql").write_text("SELECT 2\n")
        result = runner.invoke(cli, ["--json", "list", str(tmp_path)])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"one": "SELECT 1\n", "two": "SELECT 2\n"}

    def test_no_queries(self, runner, tmp_path):
        path = tmp_path / "empty.sql"
        path.write_text("-- just a comment\n")
        result = runner.invoke(cli, ["list", str(path)])
        assert result.exit_code == 0
        assert "No queries found" in result.output

    def test_load_error_exits(self, runner, bad_file):
        result = runner.invoke(cli, ["list", str(bad_file)])
        assert result.exit_code == 1
        assert "broken" in result.output


class TestShow:
    """Tests for the show command."""

    def test_renders_query(self, runner, users_file):
        result = runner.invoke(cli, ["show", str(users_file), "list-users"])
        assert result.exit_code == 0
        assert "WHERE active = 1" not in result.output
        assert "SELECT id, email FROM users" in result.output

    def test_renders_with_data(self, runner, users_file):
        result = runner.invoke(cli, ["show", str(users_file), "list-users", "--data", '{"only_active": true}'])
        assert result.exit_code == 0
        assert "WHERE active = 1" in result.output

    def test_raw(self, runner, users_file):
        result = runner.invoke(cli, ["show", str(users_file), "list-users", "--raw"])
        assert result.exit_code == 0
        assert "{% if only_active %}" in result.output

    def test_json_output(self, runner, users_file):
        result = runner.invoke(cli, ["--json", "show", str(users_file), "create-user"])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["name"] == "create-user"
        assert payload["query"].startswith("INSERT INTO users")

    def test_unknown_name(self, runner, users_file):
        result = runner.invoke(cli, ["show", str(users_file), "nope"])
        assert result.exit_code == 1
        assert "'nope' could not be found" in result.output

    def test_invalid_json_data(self, runner, users_file):
        result = runner.invoke(cli, ["show", str(users_file), "list-users", "--data", "{nope"])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_data_must_be_object(self, runner, users_file):
        result = runner.invoke(cli, ["show", str(users_file), "list-users", "--data", "[1, 2]"])
        assert result.exit_code == 1
        assert "JSON object" in result.output

    def test_strict_flag(self, runner, tmp_path):
        path = tmp_path / "q.sql"
        path.write_text("-- name: q\nSELECT {{ missing }}\n")
        assert runner.invoke(cli, ["show", str(path), "q"]).exit_code == 0
        result = runner.invoke(cli, ["--strict", "show", str(path), "q"])
        assert result.exit_code == 1
        assert "failed to render" in result.output

    def test_recursive_directory(self, runner, tmp_path):
        nested = tmp_path / "reports"
        nested.mkdir()
        (tmp_path / "top.sql").write_text("SELECT 1\n")
        (nested / "monthly.sql").write_text("SELECT 2\n")

        assert runner.invoke(cli, ["show", str(tmp_path), "monthly"]).exit_code == 1
        result = runner.invoke(cli, ["show", str(tmp_path), "monthly", "-r"])
        assert result.exit_code == 0
        assert result.output == "SELECT 2\n"

    def test_plain_flag(self, runner, bad_file):
        result = runner.invoke(cli, ["--plain", "show", str(bad_file), "broken"])
        assert result.exit_code == 0
        assert result.output == "SELECT {% if %}\n"


class TestCheck:
    """Tests for the check command."""

    def test_all_valid(self, runner, users_file):
        result = runner.invoke(cli, ["check", str(users_file)])
        assert result.exit_code == 0
        assert "5 queries" in result.output

    def test_reports_failures(self, runner, users_file, bad_file):
        result = runner.invoke(cli, ["--json", "check", str(users_file), str(bad_file)])
        assert result.exit_code == 1
        results = json.loads(result.output)
        assert results[0] == {"path": str(users_file), "ok": True, "queries": 5}
        assert results[1]["ok"] is False
        assert "invalid template syntax" in results[1]["error"]

    def test_requires_a_path(self, runner):
        result = runner.invoke(cli, ["check"])
        assert result.exit_code != 0


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "namedsql" in result.output

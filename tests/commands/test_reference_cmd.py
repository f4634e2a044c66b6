"""Tests for the reference entity command groups."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from iamctl.cli import cli

# (command group, id prefix, error-code prefix)
GROUPS = [
    ("audience", "aud_", "AUD"),
    ("scope", "scp_", "SCP"),
    ("grant-type", "grt_", "GRT"),
    ("authority", "ath_", "ATH"),
    ("role", "rol_", "ROL"),
]


def _json(runner: CliRunner, *args: str) -> tuple[int, dict[str, Any]]:
    result = runner.invoke(cli, ["--json", *args])
    return result.exit_code, json.loads(result.output)


@pytest.mark.usefixtures("_isolated_root")
@pytest.mark.parametrize(("group", "prefix", "code"), GROUPS)
class TestReferenceCommands:
    def test_create(self, cli_runner: CliRunner, group: str, prefix: str, code: str) -> None:
        exit_code, data = _json(cli_runner, group, "create", "user", "--description", "Users")
        assert exit_code == 0
        assert data["ok"] is True
        assert data["instance"]["id"].startswith(prefix)
        assert data["instance"]["description"] == "Users"

    def test_create_human(self, cli_runner: CliRunner, group: str, prefix: str, code: str) -> None:
        result = cli_runner.invoke(cli, [group, "create", "user"])
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "name: user" in result.output

    def test_duplicate_exits_1(
        self, cli_runner: CliRunner, group: str, prefix: str, code: str
    ) -> None:
        cli_runner.invoke(cli, [group, "create", "user"])
        result = cli_runner.invoke(cli, [group, "create", "user"])
        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert f"{code}-0003" in result.output

    def test_get_find_update_delete(
        self, cli_runner: CliRunner, group: str, prefix: str, code: str
    ) -> None:
        _, created = _json(cli_runner, group, "create", "user")
        entity_id = created["instance"]["id"]

        exit_code, found = _json(cli_runner, group, "get", entity_id)
        assert exit_code == 0 and found["instance"]["name"] == "user"

        exit_code, found = _json(cli_runner, group, "find", "user")
        assert exit_code == 0 and found["instance"]["id"] == entity_id

        exit_code, updated = _json(cli_runner, group, "update", entity_id, "--name", "users")
        assert exit_code == 0
        assert updated["instance"]["name"] == "users"
        assert updated["instance"]["updated"] != updated["instance"]["created"]

        exit_code, deleted = _json(cli_runner, group, "delete", entity_id)
        assert exit_code == 0 and deleted["instance"]["id"] == entity_id

        exit_code, missing = _json(cli_runner, group, "get", entity_id)
        assert exit_code == 1
        assert missing["status"] == 404
        assert missing["errors"][0]["code"] == "SYS-0001"

    def test_list(self, cli_runner: CliRunner, group: str, prefix: str, code: str) -> None:
        for name in ("bravo", "alpha"):
            cli_runner.invoke(cli, [group, "create", name])
        _, data = _json(cli_runner, group, "list")
        assert [e["name"] for e in data["instance"]] == ["alpha", "bravo"]

    def test_update_unknown_id(
        self, cli_runner: CliRunner, group: str, prefix: str, code: str
    ) -> None:
        exit_code, data = _json(cli_runner, group, "update", f"{prefix}missing", "--name", "x")
        assert exit_code == 1
        assert data["op"].startswith("update_")
        assert data["errors"][0]["code"] == "SYS-0001"


@pytest.mark.usefixtures("_isolated_root")
class TestReferenceOutputModes:
    def test_quiet_prints_id_only(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "scope", "create", "read"])
        assert result.exit_code == 0
        assert result.output.strip().startswith("scp_")
        assert "\n" not in result.output.strip()

    def test_empty_list(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["scope", "list"])
        assert result.exit_code == 0
        assert "(none)" in result.output

    def test_list_table(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["audience", "create", "api", "--description", "Public API"])
        result = cli_runner.invoke(cli, ["audience", "list"])
        assert "Name" in result.output
        assert "Public API" in result.output

    def test_verbose_shows_telemetry(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "scope", "create", "read"])
        assert result.exit_code == 0
        assert "meta:" in result.output
        assert "EntityService.create" in result.output

    def test_blank_name_error_text(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["grant-type", "create", "  "])
        assert result.exit_code == 1
        assert "A grant type name is required." in result.output

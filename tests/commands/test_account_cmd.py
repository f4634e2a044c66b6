"""Tests for the account command group."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from iamctl.cli import cli


def _json(runner: CliRunner, *args: str) -> tuple[int, dict[str, Any]]:
    result = runner.invoke(cli, ["--json", *args])
    return result.exit_code, json.loads(result.output)


def _role(runner: CliRunner, name: str) -> str:
    _, data = _json(runner, "role", "create", name)
    return str(data["instance"]["id"])


@pytest.mark.usefixtures("_isolated_root")
class TestAccountCreate:
    def test_create_with_role(self, cli_runner: CliRunner) -> None:
        role_id = _role(cli_runner, "admin")
        exit_code, data = _json(
            cli_runner, "account", "create", "alice", "--password", "correct-horse", "--role", role_id
        )
        assert exit_code == 0
        assert data["instance"]["username"] == "alice"
        assert [r["name"] for r in data["instance"]["roles"]] == ["admin"]

    def test_password_never_printed(self, cli_runner: CliRunner) -> None:
        _, data = _json(cli_runner, "account", "create", "alice", "--password", "correct-horse")
        assert "password" not in data["instance"]
        human = cli_runner.invoke(cli, ["account", "get", data["instance"]["id"]])
        assert "pbkdf2" not in human.output

    def test_password_prompt(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["account", "create", "alice"], input="correct-horse\ncorrect-horse\n"
        )
        assert result.exit_code == 0
        assert "username: alice" in result.output

    def test_unknown_role_dropped_with_warning(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli,
            ["account", "create", "alice", "--password", "correct-horse", "--role", "rol_ghost"],
        )
        assert result.exit_code == 0
        assert "WARNING: Dropped unknown role id: rol_ghost" in result.output

    def test_warning_in_json_payload(self, cli_runner: CliRunner) -> None:
        _, data = _json(
            cli_runner, "account", "create", "alice", "--password", "correct-horse",
            "--role", "rol_ghost",
        )
        assert data["warnings"] == ["Dropped unknown role id: rol_ghost"]

    def test_short_password_rejected(self, cli_runner: CliRunner) -> None:
        exit_code, data = _json(cli_runner, "account", "create", "alice", "--password", "short")
        assert exit_code == 1
        assert data["errors"][0]["code"] == "ACC-0005"


@pytest.mark.usefixtures("_isolated_root")
class TestAccountMaintenance:
    def _create(self, runner: CliRunner) -> str:
        _, data = _json(runner, "account", "create", "alice", "--password", "correct-horse")
        return str(data["instance"]["id"])

    def test_lock_and_rename(self, cli_runner: CliRunner) -> None:
        account_id = self._create(cli_runner)
        exit_code, data = _json(
            cli_runner, "account", "update", account_id, "--locked", "--username", "alice2"
        )
        assert exit_code == 0
        assert data["instance"]["locked"] is True
        assert data["instance"]["username"] == "alice2"

        _, data = _json(cli_runner, "account", "update", account_id, "--unlocked")
        assert data["instance"]["locked"] is False
        assert data["instance"]["username"] == "alice2"

    def test_change_password(self, cli_runner: CliRunner) -> None:
        account_id = self._create(cli_runner)
        exit_code, data = _json(
            cli_runner,
            "account", "password", account_id,
            "--current", "correct-horse", "--new", "battery-staple",
        )
        assert exit_code == 0
        assert data["op"] == "update_account_password"

    def test_change_password_wrong_current(self, cli_runner: CliRunner) -> None:
        account_id = self._create(cli_runner)
        exit_code, data = _json(
            cli_runner,
            "account", "password", account_id,
            "--current", "wrong-horse", "--new", "battery-staple",
        )
        assert exit_code == 1
        assert [e["code"] for e in data["errors"]] == ["ACC-0012"]

    def test_find_and_list(self, cli_runner: CliRunner) -> None:
        account_id = self._create(cli_runner)
        _, found = _json(cli_runner, "account", "find", "alice")
        assert found["instance"]["id"] == account_id
        _, listed = _json(cli_runner, "account", "list")
        assert [a["username"] for a in listed["instance"]] == ["alice"]

    def test_role_delete_blocked_by_account(self, cli_runner: CliRunner) -> None:
        role_id = _role(cli_runner, "admin")
        _json(
            cli_runner, "account", "create", "alice", "--password", "correct-horse", "--role", role_id
        )
        result = cli_runner.invoke(cli, ["role", "delete", role_id])
        assert result.exit_code == 1
        assert "1 account is linked to this role" in result.output

    def test_delete(self, cli_runner: CliRunner) -> None:
        account_id = self._create(cli_runner)
        exit_code, _ = _json(cli_runner, "account", "delete", account_id)
        assert exit_code == 0
        exit_code, data = _json(cli_runner, "account", "find", "alice")
        assert exit_code == 1
        assert data["errors"][0]["code"] == "ACC-0008"

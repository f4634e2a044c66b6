"""Tests for output formatting and secret scrubbing."""

import json

from iamctl.domain.entities import Account, Client, GrantType, Scope
from iamctl.output.formatters import OutputSettings, format_result, result_payload, scrub
from iamctl.services.result import Result, ServiceError


class TestScrub:
    def test_drops_secret_keys(self) -> None:
        assert scrub({"id": "acc_1", "password": "hash"}) == {"id": "acc_1"}

    def test_recurses_into_lists(self) -> None:
        data = [{"client_secret": "s", "scopes": [{"name": "read", "password": "x"}]}]
        assert scrub(data) == [{"scopes": [{"name": "read"}]}]

    def test_leaves_scalars(self) -> None:
        assert scrub("password") == "password"


class TestResultPayload:
    def test_accepted(self) -> None:
        result = Result.accept(Scope(id="scp_1", name="read"), op="create_scope")
        payload = result_payload(result)
        assert payload["ok"] is True
        assert payload["status"] == 200
        assert payload["instance"]["name"] == "read"
        assert payload["errors"] == []

    def test_rejected(self) -> None:
        result = Result.reject(
            ServiceError.conflict("SCP-0005", "In use."), op="delete_scope"
        )
        payload = result_payload(result)
        assert payload["ok"] is False
        assert payload["status"] == 409
        assert payload["errors"][0]["code"] == "SCP-0005"

    def test_secrets_removed(self) -> None:
        account = Account(id="acc_1", username="alice", password="pbkdf2_sha256$1$a$b")
        client = Client(
            id="cli_1",
            client_id="web",
            client_secret="pbkdf2_sha256$1$a$b",
            grant_types=[GrantType(id="grt_1", name="password")],
        )
        assert "password" not in result_payload(Result.accept(account))["instance"]
        assert "client_secret" not in result_payload(Result.accept(client))["instance"]


class TestFormatResult:
    def test_json_mode(self) -> None:
        result = Result.accept(Scope(id="scp_1", name="read"), op="create_scope")
        text = format_result(result, settings=OutputSettings(json_output=True))
        data = json.loads(text)
        assert data["op"] == "create_scope"
        assert data["ok"] is True

    def test_quiet_mode(self) -> None:
        result = Result.accept(Scope(id="scp_1", name="read"), op="create_scope")
        assert format_result(result, settings=OutputSettings(quiet=True)) == "scp_1"

    def test_default_is_human(self) -> None:
        result = Result.accept(Scope(id="scp_1", name="read"), op="create_scope")
        output = format_result(result)
        assert "OK" in output
        assert "name: read" in output

"""Tests for operation-specific Rich renderers."""

from datetime import UTC, datetime

from iamctl.domain.entities import Account, Audience, Client, GrantType, Role, Scope
from iamctl.output.renderers import render_quiet, render_result
from iamctl.services.result import Result, ServiceError

# ── Error rendering ──────────────────────────────────────────────────


class TestErrorRenderer:
    def test_lists_every_error(self) -> None:
        result = Result.reject(
            ServiceError.unprocessable("CLI-0001", "A client identifier is required."),
            ServiceError.unprocessable("CLI-0004", "A client requires at least one grant type."),
            op="create_client",
        )
        output = render_result(result)
        assert "ERROR" in output
        assert "create_client" in output
        assert "(422)" in output
        assert "CLI-0001" in output
        assert "CLI-0004" in output

    def test_verbose_shows_detail(self) -> None:
        result = Result.reject(
            ServiceError.unprocessable("SCP-0003", "In use.", name="read"), op="create_scope"
        )
        assert "name: read" not in render_result(result)
        assert "name: read" in render_result(result, verbose=True)


# ── Entity renderer ──────────────────────────────────────────────────


class TestEntityRenderer:
    def test_reference(self) -> None:
        result = Result.accept(
            Audience(id="aud_1", name="api", description="Public API"), op="create_audience"
        )
        output = render_result(result)
        assert "OK" in output
        assert "create_audience" in output
        assert "id: aud_1" in output
        assert "description: Public API" in output

    def test_account_hides_password(self) -> None:
        account = Account(
            id="acc_1",
            username="alice",
            password="pbkdf2_sha256$1$salt$digest",
            roles=[Role(id="rol_1", name="admin")],
        )
        output = render_result(Result.accept(account, op="find_account"))
        assert "username: alice" in output
        assert "roles: admin" in output
        assert "pbkdf2" not in output

    def test_client_embedded_names(self) -> None:
        client = Client(
            id="cli_1",
            client_id="web",
            client_secret="hash",
            grant_types=[GrantType(id="grt_1", name="password")],
            access_token_validity_seconds=3600,
        )
        output = render_result(Result.accept(client, op="update_client"))
        assert "client_id: web" in output
        assert "grant_types: password" in output
        assert "scopes: -" in output
        assert "access_token_validity_seconds: 3600" in output
        assert "hash" not in output

    def test_timestamps_only_when_verbose(self) -> None:
        scope = Scope(id="scp_1", name="read", updated=datetime(2026, 1, 2, tzinfo=UTC))
        result = Result.accept(scope, op="update_scope")
        assert "updated:" not in render_result(result)
        assert "updated:" in render_result(result, verbose=True)


# ── List renderer ────────────────────────────────────────────────────


class TestListRenderer:
    def test_empty(self) -> None:
        output = render_result(Result.accept([], op="list_scopes"))
        assert "(none)" in output

    def test_reference_columns(self) -> None:
        items = [Scope(id="scp_1", name="read", description="Read access")]
        output = render_result(Result.accept(items, op="list_scopes"))
        assert "Name" in output
        assert "Description" in output
        assert "Read access" in output

    def test_account_columns(self) -> None:
        items = [Account(id="acc_1", username="alice", locked=True)]
        output = render_result(Result.accept(items, op="list_accounts"))
        assert "Username" in output
        assert "yes" in output


# ── Init and telemetry ───────────────────────────────────────────────


class TestInitRenderer:
    def test_fields(self) -> None:
        result = Result.accept(
            {"data_root": "/srv/iam", "config": "/srv/iam/iamctl.toml"}, op="init"
        )
        output = render_result(result)
        assert "init" in output
        assert "config: /srv/iam/iamctl.toml" in output


class TestTelemetryRendering:
    def test_span_tree(self) -> None:
        span = {
            "name": "ClientService.create",
            "duration_ms": 12.5,
            "children": [{"name": "ClientService.assemble", "duration_ms": 1.0}],
        }
        result = Result.accept(Scope(id="scp_1", name="read"), op="create_scope")
        result = result.model_copy(update={"meta": {"telemetry": span}})
        output = render_result(result, verbose=True)
        assert "meta:" in output
        assert "ClientService.create" in output
        assert "ClientService.assemble" in output
        assert "ClientService" not in render_result(result)


# ── Quiet mode ───────────────────────────────────────────────────────


class TestQuiet:
    def test_single_id(self) -> None:
        assert render_quiet(Result.accept(Scope(id="scp_1"), op="create_scope")) == "scp_1"

    def test_list_ids(self) -> None:
        items = [Scope(id="scp_1"), Scope(id="scp_2")]
        assert render_quiet(Result.accept(items, op="list_scopes")) == "scp_1\nscp_2"

    def test_error(self) -> None:
        result = Result.reject(ServiceError.not_found("SYS-0001", "Gone."), op="get")
        assert "SYS-0001" in render_quiet(result)

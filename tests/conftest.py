"""Shared pytest fixtures and test helpers for iamctl tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from iamctl.config.models import SecurityConfig
from iamctl.config.settings import IamSettings
from iamctl.domain.entities import (
    Account,
    Audience,
    Authority,
    Client,
    GrantType,
    Role,
    Scope,
)
from iamctl.infrastructure.database.engine import init_database
from iamctl.infrastructure.store import Store
from iamctl.services.telemetry import disable_telemetry

# Low PBKDF2 cost keeps hashing out of the test runtime.
TEST_HASH_ITERATIONS = 1_000


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host IAMCTL_* variables from leaking into settings."""
    for name in ("IAMCTL_CONFIG", "IAMCTL_DATA_ROOT", "IAMCTL_CACHE__ENABLED"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Iterator[None]:
    """``-v`` enables telemetry for the rest of the thread; switch it back off."""
    yield
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


def make_settings(root: Path, **overrides: object) -> IamSettings:
    overrides.setdefault("security", SecurityConfig(hash_iterations=TEST_HASH_ITERATIONS))
    return IamSettings.from_cli(data_root=root, **overrides)


@pytest.fixture
def store(tmp_path: Path) -> Iterator[Store]:
    """A Store over a fresh SQLite database in a temp directory."""
    s = Store(make_settings(tmp_path))
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp data root so the CLI creates an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes. The CLI uses the default hash cost there, so command tests
    write an ``iamctl.toml`` lowering it.
    """
    (tmp_path / "iamctl.toml").write_text(
        f"[security]\nhash_iterations = {TEST_HASH_ITERATIONS}\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def create_audience(store: Store, name: str, description: str | None = None) -> Audience:
    from iamctl.services.reference import AudienceService

    result = AudienceService(store).create(Audience(name=name, description=description))
    assert result.ok, result.errors
    return result.or_raise()  # type: ignore[return-value]


def create_scope(store: Store, name: str) -> Scope:
    from iamctl.services.reference import ScopeService

    result = ScopeService(store).create(Scope(name=name))
    assert result.ok, result.errors
    return result.or_raise()  # type: ignore[return-value]


def create_grant_type(store: Store, name: str) -> GrantType:
    from iamctl.services.reference import GrantTypeService

    result = GrantTypeService(store).create(GrantType(name=name))
    assert result.ok, result.errors
    return result.or_raise()  # type: ignore[return-value]


def create_authority(store: Store, name: str) -> Authority:
    from iamctl.services.reference import AuthorityService

    result = AuthorityService(store).create(Authority(name=name))
    assert result.ok, result.errors
    return result.or_raise()  # type: ignore[return-value]


def create_role(store: Store, name: str) -> Role:
    from iamctl.services.reference import RoleService

    result = RoleService(store).create(Role(name=name))
    assert result.ok, result.errors
    return result.or_raise()  # type: ignore[return-value]


def create_account(
    store: Store, username: str, password: str = "correct-horse", roles: list[Role] | None = None
) -> Account:
    from iamctl.services.account import AccountService

    result = AccountService(store).create(
        Account(username=username, password=password, roles=roles or [])
    )
    assert result.ok, result.errors
    return result.or_raise()


def create_client(
    store: Store,
    client_id: str,
    *,
    secret: str = "s3cret-value",
    grant_types: list[GrantType] | None = None,
    scopes: list[Scope] | None = None,
    authorities: list[Authority] | None = None,
    audiences: list[Audience] | None = None,
) -> Client:
    """Create a client, inventing a grant type when none is given."""
    from iamctl.services.client import ClientService

    if grant_types is None:
        grant_types = [create_grant_type(store, f"{client_id}-grant")]
    result = ClientService(store).create(
        Client(
            client_id=client_id,
            client_secret=secret,
            grant_types=grant_types,
            scopes=scopes or [],
            authorities=authorities or [],
            audiences=audiences or [],
            access_token_validity_seconds=600,
            refresh_token_validity_seconds=3600,
        )
    )
    assert result.ok, result.errors
    return result.or_raise()

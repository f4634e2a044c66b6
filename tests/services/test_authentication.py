"""Tests for the client authentication lookup."""

from __future__ import annotations

import pytest

from iamctl.infrastructure.store import Store
from iamctl.services.authentication import (
    BadClientCredentialsError,
    ClientAuthenticationError,
    ClientAuthenticationService,
    ClientNotFoundError,
)
from tests.conftest import create_audience, create_client, create_grant_type, create_scope


@pytest.fixture
def auth(store: Store) -> ClientAuthenticationService:
    return ClientAuthenticationService(store)


class TestLoadByClientId:
    @pytest.mark.parametrize("client_id", [None, "", "   ", "nonexistent"])
    def test_unknown_identifiers_raise_not_found(
        self, auth: ClientAuthenticationService, client_id: str | None
    ) -> None:
        with pytest.raises(ClientNotFoundError) as excinfo:
            auth.load_by_client_id(client_id)
        assert excinfo.value.client_id == client_id

    def test_not_found_is_an_authentication_error(
        self, auth: ClientAuthenticationService
    ) -> None:
        with pytest.raises(ClientAuthenticationError):
            auth.load_by_client_id("nonexistent")

    def test_returns_populated_aggregate(
        self, store: Store, auth: ClientAuthenticationService
    ) -> None:
        grant = create_grant_type(store, "client_credentials")
        scope = create_scope(store, "read")
        audience = create_audience(store, "api")
        created = create_client(
            store, "web", grant_types=[grant], scopes=[scope], audiences=[audience]
        )

        loaded = auth.load_by_client_id("web")

        assert loaded.id == created.id
        assert [g.id for g in loaded.grant_types] == [grant.id]
        assert [s.id for s in loaded.scopes] == [scope.id]
        assert [a.id for a in loaded.audiences] == [audience.id]
        assert loaded.authorities == []

    def test_second_lookup_served_from_cache(
        self, store: Store, auth: ClientAuthenticationService
    ) -> None:
        create_client(store, "web")
        auth.load_by_client_id("web")
        auth.load_by_client_id("web")
        assert store.client_cache.hits == 1


class TestAuthenticate:
    def test_valid_secret(self, store: Store, auth: ClientAuthenticationService) -> None:
        created = create_client(store, "web", secret="s3cret-value")
        assert auth.authenticate("web", "s3cret-value").id == created.id

    @pytest.mark.parametrize("secret", ["wrong", "", None])
    def test_bad_secret(
        self, store: Store, auth: ClientAuthenticationService, secret: str | None
    ) -> None:
        create_client(store, "web", secret="s3cret-value")
        with pytest.raises(BadClientCredentialsError):
            auth.authenticate("web", secret)

    def test_unknown_client(self, auth: ClientAuthenticationService) -> None:
        with pytest.raises(ClientNotFoundError):
            auth.authenticate("ghost", "whatever")

"""Client authentication lookup for the token flow.

This is the one service that speaks exceptions instead of Results: the
surrounding authentication framework expects a not-found signal it can
turn into an ``invalid_client`` response.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from iamctl.domain.ids import is_blank
from iamctl.services.base import BaseService
from iamctl.services.client import ClientService

if TYPE_CHECKING:
    from iamctl.domain.entities import Client
    from iamctl.infrastructure.store import Store

logger = logging.getLogger(__name__)


class ClientAuthenticationError(Exception):
    """Base for authentication-layer signals."""


class ClientNotFoundError(ClientAuthenticationError):
    """No client is registered under the requested identifier."""

    def __init__(self, client_id: str | None) -> None:
        self.client_id = client_id
        super().__init__(f"No client registered for client id: {client_id!r}")


class BadClientCredentialsError(ClientAuthenticationError):
    """The client exists but the presented secret does not match."""

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        super().__init__(f"Bad credentials for client id: {client_id!r}")


class ClientAuthenticationService(BaseService):
    """Resolves clients by public identifier through the client cache."""

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._clients = ClientService(store)

    def load_by_client_id(self, client_id: str | None) -> Client:
        """Return the client registered as *client_id*.

        Raises:
            ClientNotFoundError: For ``None``, blank, or unknown ids.
        """
        if client_id is None or is_blank(client_id):
            raise ClientNotFoundError(client_id)
        client = self._clients.load_client_id(client_id)
        if client is None:
            logger.debug("Client lookup missed: %s", client_id)
            raise ClientNotFoundError(client_id)
        return client

    def authenticate(self, client_id: str | None, client_secret: str | None) -> Client:
        """Load the client and verify *client_secret* against its stored hash.

        Raises:
            ClientNotFoundError: If the client does not exist.
            BadClientCredentialsError: If the secret does not match.
        """
        client = self.load_by_client_id(client_id)
        if not self._clients.hasher.verify(client_secret, client.client_secret):
            assert client.client_id is not None
            raise BadClientCredentialsError(client.client_id)
        return client

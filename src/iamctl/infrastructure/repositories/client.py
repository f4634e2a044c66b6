"""Repository for the client aggregate.

A client row plus four link tables. Reads hydrate every embedded set so
the returned :class:`Client` is a complete aggregate, ready to be cached.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from iamctl.domain.entities import REFERENCE_MODELS, Client, ReferenceEntity
from iamctl.domain.ids import generate_id
from iamctl.domain.kinds import EntityKind
from iamctl.infrastructure.database.schema import CLIENT_LINKS, REFERENCE_TABLES, clients
from iamctl.infrastructure.repositories.base import (
    TableRepository,
    from_db_time,
    next_timestamp,
    now_utc,
    to_db_time,
)

if TYPE_CHECKING:
    from sqlalchemy import Connection

# Client attribute holding each embedded kind.
_EMBEDDED_FIELDS: dict[EntityKind, str] = {
    EntityKind.SCOPE: "scopes",
    EntityKind.GRANT_TYPE: "grant_types",
    EntityKind.AUTHORITY: "authorities",
    EntityKind.AUDIENCE: "audiences",
}


class ClientRepository(TableRepository[Client]):
    """Encapsulates SQL for clients and their embedded reference sets."""

    def __init__(self, conn: Connection) -> None:
        super().__init__(conn, clients, Client)

    def _order_by(self) -> Any:
        return clients.c.client_id

    def _embedded(self, kind: EntityKind, client_pk: str) -> list[ReferenceEntity]:
        model = REFERENCE_MODELS[kind]
        rows = self._linked_rows(CLIENT_LINKS[kind], REFERENCE_TABLES[kind], client_pk)
        return [
            model(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                created=from_db_time(row["created"]),
                updated=from_db_time(row["updated"]),
            )
            for row in rows
        ]

    def _from_row(self, row: dict[str, Any]) -> Client:
        data: dict[str, Any] = {
            "id": row["id"],
            "client_id": row["client_id"],
            "client_secret": row["client_secret"],
            "access_token_validity_seconds": row["access_token_validity_seconds"],
            "refresh_token_validity_seconds": row["refresh_token_validity_seconds"],
            "created": from_db_time(row["created"]),
            "updated": from_db_time(row["updated"]),
        }
        for kind, attr in _EMBEDDED_FIELDS.items():
            data[attr] = self._embedded(kind, row["id"])
        return Client.model_validate(data)

    def find_by_client_id(self, client_id: str) -> Client | None:
        row = (
            self._conn.execute(select(clients).where(clients.c.client_id == client_id))
            .mappings()
            .first()
        )
        return self._from_row(dict(row)) if row is not None else None

    def client_id_taken(self, client_id: str, *, exclude_id: str | None = None) -> bool:
        stmt = select(clients.c.id).where(clients.c.client_id == client_id)
        if exclude_id is not None:
            stmt = stmt.where(clients.c.id != exclude_id)
        return self._conn.execute(stmt).first() is not None

    def _write_links(self, client: Client) -> None:
        assert client.id is not None
        for kind, members in client.embedded().items():
            self._replace_links(CLIENT_LINKS[kind], client.id, [m.id for m in members if m.id])

    def insert(self, client: Client) -> Client:
        """Persist a new client. ``client.client_secret`` must already be hashed."""
        now = now_utc()
        client.id = generate_id(EntityKind.CLIENT)
        self._conn.execute(
            insert(clients).values(
                id=client.id,
                client_id=client.client_id,
                client_secret=client.client_secret,
                access_token_validity_seconds=client.access_token_validity_seconds,
                refresh_token_validity_seconds=client.refresh_token_validity_seconds,
                created=to_db_time(now),
                updated=to_db_time(now),
            )
        )
        self._write_links(client)
        hydrated = self.find_by_id(client.id)
        assert hydrated is not None
        return hydrated

    def update(self, client: Client, *, client_secret: str | None = None) -> Client | None:
        """Overwrite the client row and its links. Returns None if missing.

        The stored secret hash is only replaced when *client_secret* (a
        hash) is given.
        """
        assert client.id is not None
        stamps = self.stored_timestamps(client.id)
        if stamps is None:
            return None
        _created, previous = stamps
        values: dict[str, Any] = {
            "client_id": client.client_id,
            "access_token_validity_seconds": client.access_token_validity_seconds,
            "refresh_token_validity_seconds": client.refresh_token_validity_seconds,
            "updated": to_db_time(next_timestamp(previous)),
        }
        if client_secret is not None:
            values["client_secret"] = client_secret
        self._conn.execute(update(clients).where(clients.c.id == client.id).values(**values))
        self._write_links(client)
        return self.find_by_id(client.id)

    def delete(self, client: Client) -> bool:
        for link in CLIENT_LINKS.values():
            self._conn.execute(delete(link.table).where(link.owner == client.id))
        return super().delete(client)

"""ClientService — the client aggregate, its cache, and assembly from ids.

Reads of a single client go through the process-wide client cache:

    get(key) → hit: fresh snapshot
             → miss: take generation, hydrate from the repository,
                     put under both keys (discarded if an eviction raced)

Every accepted write queues eviction of the client's ``id`` key and each
``client_id`` key it was reachable under (old and new on rename).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from iamctl.domain.entities import Client, ClientDraft, ReferenceEntity
from iamctl.domain.ids import is_blank
from iamctl.domain.kinds import EntityKind, info
from iamctl.infrastructure.repositories.client import ClientRepository
from iamctl.infrastructure.repositories.reference import ReferenceRepository
from iamctl.services.entity import EntityService
from iamctl.services.result import Result, ServiceError
from iamctl.services.rules import build_client_validator
from iamctl.services.security import PasswordHasher
from iamctl.services.telemetry import traced
from iamctl.services.validation import Operation, Validator

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from iamctl.infrastructure.store import Store, StoreTransaction

_CLI = info(EntityKind.CLIENT)

# Draft attribute holding the ids for each embedded kind.
_DRAFT_FIELDS: dict[EntityKind, str] = {
    EntityKind.SCOPE: "scope_ids",
    EntityKind.GRANT_TYPE: "grant_type_ids",
    EntityKind.AUTHORITY: "authority_ids",
    EntityKind.AUDIENCE: "audience_ids",
}

_CLIENT_FIELDS: dict[EntityKind, str] = {
    EntityKind.SCOPE: "scopes",
    EntityKind.GRANT_TYPE: "grant_types",
    EntityKind.AUTHORITY: "authorities",
    EntityKind.AUDIENCE: "audiences",
}


class ClientService(EntityService[Client]):
    """Client CRUD with a cache-first read path."""

    kind = EntityKind.CLIENT

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._hasher = PasswordHasher(store.settings.security.hash_iterations)

    @property
    def hasher(self) -> PasswordHasher:
        return self._hasher

    def _build_validator(self) -> Validator[Client]:
        return build_client_validator()

    def _repository(self, conn: Connection) -> ClientRepository:
        return ClientRepository(conn)

    def _insert(self, repo: ClientRepository, entity: Client) -> Client:
        assert entity.client_secret is not None
        entity.client_secret = self._hasher.hash(entity.client_secret)
        return repo.insert(entity)

    def _overwrite(self, repo: ClientRepository, entity: Client) -> Client | None:
        secret = entity.client_secret
        new_hash = None
        if secret and not PasswordHasher.is_hashed(secret):
            new_hash = self._hasher.hash(secret)
        return repo.update(entity, client_secret=new_hash)

    def _after_write(
        self,
        txn: StoreTransaction,
        entity: Client,
        operation: Operation,
        previous: Client | None,
    ) -> None:
        if operation is Operation.CREATE:
            return
        old_client_id = previous.client_id if previous is not None else None
        txn.evict_client(entity.id, old_client_id, entity.client_id)

    # ------------------------------------------------------------------
    # Cache-first reads
    # ------------------------------------------------------------------

    def _cached(self, conn: Connection, field: str, value: str) -> Client | None:
        cache = self._store.client_cache
        hit = cache.get(cache.key(field, value))
        if hit is not None:
            return hit
        generation = cache.generation
        repo = ClientRepository(conn)
        client = repo.find_by_id(value) if field == "id" else repo.find_by_client_id(value)
        if client is not None:
            assert client.id is not None and client.client_id is not None
            cache.put(
                [cache.key("id", client.id), cache.key("client_id", client.client_id)],
                client,
                generation=generation,
            )
        return client

    def _load(self, conn: Connection, entity_id: str) -> Client | None:
        return self._cached(conn, "id", entity_id)

    def load_client_id(self, client_id: str) -> Client | None:
        """Cache-first lookup by public identifier; None if unknown."""
        with self._store.read() as conn:
            return self._cached(conn, "client_id", client_id)

    @traced
    def find_by_client_id(self, client_id: str | None) -> Result[Client]:
        lookup = client_id.strip() if client_id is not None else None
        return self._find_by_key(
            "find_client",
            lookup,
            required=ServiceError.unprocessable(_CLI.code(1), "A client identifier is required."),
            missing=ServiceError.not_found(
                _CLI.code(8), f"No such client identifier: {lookup}", client_id=lookup
            ),
            loader=lambda conn, value: self._cached(conn, "client_id", value),
        )

    # ------------------------------------------------------------------
    # Assembly from reference ids
    # ------------------------------------------------------------------

    def assemble(self, draft: ClientDraft, *, client_pk: str | None = None) -> Result[Client]:
        """Build a :class:`Client` from *draft*, resolving reference ids.

        Unknown ids are dropped; each drop is reported as a warning.
        """
        warnings: list[str] = []
        embedded: dict[str, list[ReferenceEntity]] = {}
        with self._store.read() as conn:
            for kind, draft_field in _DRAFT_FIELDS.items():
                ids: list[str | None] = getattr(draft, draft_field)
                wanted = [i for i in dict.fromkeys(ids) if i is not None and not is_blank(i)]
                found = ReferenceRepository(conn, kind).find_many(wanted)
                members: list[ReferenceEntity] = []
                for entity_id in wanted:
                    if entity_id in found:
                        members.append(found[entity_id])
                    else:
                        warnings.append(f"Dropped unknown {info(kind).label} id: {entity_id}")
                embedded[_CLIENT_FIELDS[kind]] = members

        client = Client(
            id=client_pk,
            client_id=draft.client_id,
            client_secret=draft.client_secret,
            access_token_validity_seconds=draft.access_token_validity_seconds,
            refresh_token_validity_seconds=draft.refresh_token_validity_seconds,
            **embedded,  # type: ignore[arg-type]
        )
        return Result.accept(client, op="assemble_client", warnings=warnings)

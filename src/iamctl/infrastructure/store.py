"""Store — database access with transaction coordination and the client cache.

The Store is the single dependency injected into every service. It owns
the database engine and the process-wide client cache. It is created once
at process start and lives until :meth:`close`; the cache is only ever
emptied by explicit eviction.

:meth:`transaction` is the atomic unit for every mutation:

- **DB**: ``BEGIN IMMEDIATE`` on SQLite, commit on normal exit,
  rollback on exception.
- **Cache**: evictions requested inside the block are queued on the
  :class:`StoreTransaction` and applied only *after* the commit
  succeeds. A rolled-back transaction evicts nothing; a committed one
  evicts exactly what it queued.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from iamctl.domain.entities import Client
from iamctl.infrastructure.cache import AggregateCache
from iamctl.infrastructure.database.engine import init_database, write_options

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from iamctl.config.settings import IamSettings
    from iamctl.domain.kinds import EntityKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Deferred cache work for one transaction
# ---------------------------------------------------------------------------


@dataclass
class _Eviction:
    """A cache eviction queued until commit."""

    keys: tuple[str, ...] = ()
    everything: bool = False
    kind: EntityKind | None = None
    entity_id: str | None = None

    def apply(self, cache: AggregateCache[Client]) -> None:
        if self.everything:
            assert self.kind is not None
            cache.evict_all_embedding(self.kind, self.entity_id)
        else:
            cache.evict(*self.keys)


# ---------------------------------------------------------------------------
# StoreTransaction: yielded to callers within transaction()
# ---------------------------------------------------------------------------


@dataclass
class StoreTransaction:
    """Active transaction context: DB connection plus queued cache evictions."""

    conn: Connection
    _store: Store
    _evictions: list[_Eviction] = field(default_factory=list, repr=False)

    def evict_client(self, client_pk: str | None, *client_ids: str | None) -> None:
        """Queue eviction of one client's keys (by id and by client_id)."""
        cache = self._store.client_cache
        keys: list[str] = []
        if client_pk:
            keys.append(cache.key("id", client_pk))
        keys.extend(cache.key("client_id", cid) for cid in client_ids if cid)
        if keys:
            self._evictions.append(_Eviction(keys=tuple(keys)))

    def evict_clients_embedding(self, kind: EntityKind, entity_id: str | None) -> None:
        """Queue eviction of every cached client that may embed the entity."""
        self._evictions.append(_Eviction(everything=True, kind=kind, entity_id=entity_id))

    def _apply_evictions(self) -> None:
        for eviction in self._evictions:
            eviction.apply(self._store.client_cache)
        self._evictions.clear()


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class Store:
    """Repository host encapsulating database access and the client cache.

    Constructed once from :class:`IamSettings`. Services receive the Store
    via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: IamSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(
            settings.data_root,
            url=settings.database_url(),
            echo=settings.database.echo,
        )
        self._client_cache: AggregateCache[Client] = AggregateCache(
            Client, "clients", enabled=settings.cache.enabled
        )

    @property
    def root(self) -> Path:
        """The data root directory."""
        return self._settings.data_root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> IamSettings:
        return self._settings

    @property
    def client_cache(self) -> AggregateCache[Client]:
        """The process-wide cache of hydrated client aggregates."""
        return self._client_cache

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()

    @contextmanager
    def read(self) -> Iterator[Connection]:
        """Connection for read-only work (no write lock taken)."""
        with self._engine.connect() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Atomic unit for validation checks, guard counts, and writes.

        Usage::

            with store.transaction() as txn:
                repo = ReferenceRepository(txn.conn, kind)
                ...  # checks and writes share one transaction
                txn.evict_clients_embedding(kind, entity_id)
            # commit happened; queued evictions have been applied
        """
        engine = self._engine.execution_options(**write_options(self._engine.dialect.name))
        with engine.begin() as conn:
            txn = StoreTransaction(conn=conn, _store=self)
            yield txn
        # Reached only after a successful commit.
        txn._apply_evictions()

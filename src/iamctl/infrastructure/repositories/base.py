"""Shared repository plumbing: row mapping, timestamps, common lookups.

Repositories never open their own transactions. The caller passes a
``Connection`` obtained from the store (``store.transaction()`` for
writes, ``store.read()`` for reads), so repository reads and writes take
part in whatever atomic unit the service has opened.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import delete, select

from iamctl.domain.entities import Entity

if TYPE_CHECKING:
    from sqlalchemy import Connection, Table

    from iamctl.infrastructure.database.schema import Link

E = TypeVar("E", bound=Entity)

_TICK = timedelta(microseconds=1)


def now_utc() -> datetime:
    return datetime.now(UTC)


def next_timestamp(previous: datetime | None) -> datetime:
    """Current time, nudged forward so it is strictly after *previous*."""
    now = now_utc()
    if previous is not None and now <= previous:
        return previous + _TICK
    return now


def to_db_time(value: datetime) -> str:
    """Fixed-width ISO 8601 (microsecond precision) so text order is time order."""
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_time(value: str) -> datetime:
    return datetime.fromisoformat(value)


class TableRepository(Generic[E]):
    """Common reads and deletes for a table keyed by ``id``."""

    def __init__(self, conn: Connection, table: Table, model: type[E]) -> None:
        self._conn = conn
        self._table = table
        self._model = model

    @property
    def conn(self) -> Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _from_row(self, row: dict[str, Any]) -> E:
        data = dict(row)
        data["created"] = from_db_time(data["created"])
        data["updated"] = from_db_time(data["updated"])
        return self._model.model_validate(data)

    def _order_by(self) -> Any:
        return self._table.c.id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, entity_id: str) -> E | None:
        row = (
            self._conn.execute(select(self._table).where(self._table.c.id == entity_id))
            .mappings()
            .first()
        )
        return self._from_row(dict(row)) if row is not None else None

    def find_many(self, entity_ids: Iterable[str]) -> dict[str, E]:
        """Fetch every existing entity among *entity_ids*, keyed by id."""
        wanted = list(dict.fromkeys(entity_ids))
        if not wanted:
            return {}
        rows = (
            self._conn.execute(select(self._table).where(self._table.c.id.in_(wanted)))
            .mappings()
            .all()
        )
        return {str(row["id"]): self._from_row(dict(row)) for row in rows}

    def exists(self, entity_id: str) -> bool:
        stmt = select(self._table.c.id).where(self._table.c.id == entity_id)
        return self._conn.execute(stmt).first() is not None

    def stored_timestamps(self, entity_id: str) -> tuple[datetime, datetime] | None:
        """Return ``(created, updated)`` as persisted, or None if absent."""
        row = self._conn.execute(
            select(self._table.c.created, self._table.c.updated).where(
                self._table.c.id == entity_id
            )
        ).first()
        if row is None:
            return None
        return from_db_time(row.created), from_db_time(row.updated)

    def list(self) -> list[E]:
        rows = self._conn.execute(select(self._table).order_by(self._order_by())).mappings().all()
        return [self._from_row(dict(row)) for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def delete(self, entity: E) -> bool:
        """Delete the row for *entity*. Returns False if it did not exist."""
        result = self._conn.execute(delete(self._table).where(self._table.c.id == entity.id))
        return bool(result.rowcount)

    def _replace_links(self, link: Link, owner_id: str, target_ids: list[str]) -> None:
        """Rewrite the link rows of *owner_id* in the given order."""
        self._conn.execute(delete(link.table).where(link.owner == owner_id))
        if not target_ids:
            return
        self._conn.execute(
            link.table.insert(),
            [
                {link.owner.name: owner_id, link.target.name: target_id, "position": position}
                for position, target_id in enumerate(target_ids)
            ],
        )

    def _linked_rows(self, link: Link, target: Table, owner_id: str) -> list[dict[str, Any]]:
        """Fetch the target rows linked to *owner_id*, in link order."""
        stmt = (
            select(target)
            .join(link.table, link.target == target.c.id)
            .where(link.owner == owner_id)
            .order_by(link.position)
        )
        return [dict(row) for row in self._conn.execute(stmt).mappings().all()]

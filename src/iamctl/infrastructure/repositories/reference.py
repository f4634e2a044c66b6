"""Repository for reference entities (audiences, scopes, grant types, ...)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update

from iamctl.domain.entities import REFERENCE_MODELS, ReferenceEntity
from iamctl.domain.ids import generate_id
from iamctl.infrastructure.database.schema import GUARD_LINKS, REFERENCE_TABLES
from iamctl.infrastructure.repositories.base import (
    TableRepository,
    next_timestamp,
    now_utc,
    to_db_time,
)

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from iamctl.domain.kinds import EntityKind


class ReferenceRepository(TableRepository[ReferenceEntity]):
    """Encapsulates SQL for one reference entity kind."""

    def __init__(self, conn: Connection, kind: EntityKind) -> None:
        super().__init__(conn, REFERENCE_TABLES[kind], REFERENCE_MODELS[kind])
        self._kind = kind

    @property
    def kind(self) -> EntityKind:
        return self._kind

    def _order_by(self) -> Any:
        return self._table.c.name

    def find_by_name(self, name: str) -> ReferenceEntity | None:
        row = (
            self._conn.execute(select(self._table).where(self._table.c.name == name))
            .mappings()
            .first()
        )
        return self._from_row(dict(row)) if row is not None else None

    def name_taken(self, name: str, *, exclude_id: str | None = None) -> bool:
        """True if another entity of this kind already uses *name*."""
        stmt = select(self._table.c.id).where(self._table.c.name == name)
        if exclude_id is not None:
            stmt = stmt.where(self._table.c.id != exclude_id)
        return self._conn.execute(stmt).first() is not None

    def count_links(self, entity_id: str) -> int:
        """Count aggregate rows linked to *entity_id* (0 for unguarded kinds)."""
        entry = GUARD_LINKS.get(self._kind)
        if entry is None:
            return 0
        link, _owner = entry
        stmt = select(func.count()).select_from(link.table).where(link.target == entity_id)
        return int(self._conn.execute(stmt).scalar_one())

    def insert(self, entity: ReferenceEntity) -> ReferenceEntity:
        """Persist a new entity; assigns id and ``created == updated``."""
        now = now_utc()
        entity.id = generate_id(self._kind)
        entity.created = now
        entity.updated = now
        self._conn.execute(
            insert(self._table).values(
                id=entity.id,
                name=entity.name,
                description=entity.description,
                created=to_db_time(now),
                updated=to_db_time(now),
            )
        )
        return entity

    def update(self, entity: ReferenceEntity) -> ReferenceEntity | None:
        """Overwrite name/description. Returns None if the row is missing.

        ``created`` is reloaded from storage; ``updated`` strictly advances.
        """
        assert entity.id is not None
        stamps = self.stored_timestamps(entity.id)
        if stamps is None:
            return None
        created, previous = stamps
        updated = next_timestamp(previous)
        self._conn.execute(
            update(self._table)
            .where(self._table.c.id == entity.id)
            .values(
                name=entity.name,
                description=entity.description,
                updated=to_db_time(updated),
            )
        )
        entity.created = created
        entity.updated = updated
        return entity

"""Reference entity services — audiences, scopes, grant types, authorities, roles.

All five share one implementation; each concrete class only binds its
kind. Deletes consult the reference guard, and every accepted update or
delete flushes the client cache because clients embed copies of these
entities.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from iamctl.domain.entities import ReferenceEntity
from iamctl.domain.kinds import CACHE_INVALIDATING_KINDS, EntityKind, info
from iamctl.infrastructure.repositories.reference import ReferenceRepository
from iamctl.services._helpers import capitalize_first
from iamctl.services.entity import EntityService
from iamctl.services.guard import guard
from iamctl.services.result import Result, ServiceError
from iamctl.services.rules import build_reference_validator
from iamctl.services.telemetry import traced
from iamctl.services.validation import Operation, Validator

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from iamctl.infrastructure.store import Store, StoreTransaction


class ReferenceService(EntityService[ReferenceEntity]):
    """CRUD plus find-by-name for one reference kind."""

    def _build_validator(self) -> Validator[ReferenceEntity]:
        return build_reference_validator(self.kind)

    def _repository(self, conn: Connection) -> ReferenceRepository:
        return ReferenceRepository(conn, self.kind)

    def _check_delete(
        self, repo: ReferenceRepository, entity: ReferenceEntity
    ) -> Result[ReferenceEntity] | None:
        return guard(entity, repo)

    def _after_write(
        self,
        txn: StoreTransaction,
        entity: ReferenceEntity,
        operation: Operation,
        previous: ReferenceEntity | None,
    ) -> None:
        if operation is Operation.CREATE or self.kind not in CACHE_INVALIDATING_KINDS:
            return
        txn.evict_clients_embedding(self.kind, entity.id)

    @traced
    def find_by_name(self, name: str | None) -> Result[ReferenceEntity]:
        meta = info(self.kind)
        lookup = name.strip() if name is not None else None
        return self._find_by_key(
            self._op("find"),
            lookup,
            required=ServiceError.unprocessable(
                meta.code(1), f"{capitalize_first(meta.with_article)} name is required."
            ),
            missing=ServiceError.not_found(
                meta.code(8), f"No such {meta.label} name: {lookup}", name=lookup
            ),
            loader=lambda conn, value: ReferenceRepository(conn, self.kind).find_by_name(value),
        )


class AudienceService(ReferenceService):
    kind = EntityKind.AUDIENCE


class ScopeService(ReferenceService):
    kind = EntityKind.SCOPE


class GrantTypeService(ReferenceService):
    kind = EntityKind.GRANT_TYPE


class AuthorityService(ReferenceService):
    kind = EntityKind.AUTHORITY


class RoleService(ReferenceService):
    kind = EntityKind.ROLE


REFERENCE_SERVICES: dict[EntityKind, type[ReferenceService]] = {
    EntityKind.AUDIENCE: AudienceService,
    EntityKind.SCOPE: ScopeService,
    EntityKind.GRANT_TYPE: GrantTypeService,
    EntityKind.AUTHORITY: AuthorityService,
    EntityKind.ROLE: RoleService,
}


def reference_service(store: Store, kind: EntityKind) -> ReferenceService:
    """Instantiate the service for *kind*."""
    try:
        service_cls = REFERENCE_SERVICES[kind]
    except KeyError:
        msg = f"{kind} is not a reference entity kind"
        raise ValueError(msg) from None
    return service_cls(store)

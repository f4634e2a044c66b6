"""Reference guard — blocks deletion of entities that aggregates still embed.

Clients embed audiences, scopes, grant types and authorities; accounts
embed roles. The guard counts link rows with one query on the caller's
connection, so the count and the delete that follows happen in the same
write transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from iamctl.domain.kinds import info
from iamctl.infrastructure.database.schema import GUARD_LINKS
from iamctl.services._helpers import count_phrase
from iamctl.services.result import Result, ServiceError

if TYPE_CHECKING:
    from iamctl.domain.entities import ReferenceEntity
    from iamctl.infrastructure.repositories.reference import ReferenceRepository


def is_guarded(entity: ReferenceEntity) -> bool:
    return entity.kind in GUARD_LINKS


def guard(entity: ReferenceEntity, repository: ReferenceRepository) -> Result[ReferenceEntity]:
    """Accept *entity* for deletion only if nothing links to it."""
    if not is_guarded(entity) or entity.id is None:
        return Result.accept(entity)

    _link, owner = GUARD_LINKS[entity.kind]
    count = repository.count_links(entity.id)
    if count == 0:
        return Result.accept(entity)

    label = info(entity.kind).label
    return Result.reject(
        ServiceError.conflict(
            info(entity.kind).code(5),
            f"This {label} cannot be deleted, {count_phrase(count, owner)} linked to this {label}.",
            count=count,
            id=entity.id,
        )
    )

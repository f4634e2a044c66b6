"""Entity models — reference entities, accounts, and the client aggregate.

Models are mutable Pydantic models: services receive a candidate entity,
validation may normalize it in place, and the repository fills in ``id``,
``created`` and ``updated`` on persist.

Embedded collections (``Account.roles``, ``Client.scopes`` ...) behave as
sets keyed by entity id: :func:`unique_by_id` collapses duplicates while
preserving first-occurrence order.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import ClassVar, TypeVar

from pydantic import BaseModel, Field, field_validator

from iamctl.domain.kinds import EntityKind


class Entity(BaseModel):
    """Base for every persisted entity."""

    kind: ClassVar[EntityKind]

    id: str | None = None
    created: datetime | None = None
    updated: datetime | None = None


class ReferenceEntity(Entity):
    """A standalone named entity that aggregates may embed."""

    name: str | None = None
    description: str | None = None


class Audience(ReferenceEntity):
    kind: ClassVar[EntityKind] = EntityKind.AUDIENCE


class Scope(ReferenceEntity):
    kind: ClassVar[EntityKind] = EntityKind.SCOPE


class GrantType(ReferenceEntity):
    kind: ClassVar[EntityKind] = EntityKind.GRANT_TYPE


class Authority(ReferenceEntity):
    kind: ClassVar[EntityKind] = EntityKind.AUTHORITY


class Role(ReferenceEntity):
    kind: ClassVar[EntityKind] = EntityKind.ROLE


REFERENCE_MODELS: dict[EntityKind, type[ReferenceEntity]] = {
    EntityKind.AUDIENCE: Audience,
    EntityKind.SCOPE: Scope,
    EntityKind.GRANT_TYPE: GrantType,
    EntityKind.AUTHORITY: Authority,
    EntityKind.ROLE: Role,
}


E = TypeVar("E", bound="Entity")


def unique_by_id(items: Iterable[E]) -> list[E]:
    """Drop entries sharing an id with an earlier entry; keep order."""
    seen: set[str | None] = set()
    unique: list[E] = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


class Account(Entity):
    """A user account. ``password`` holds a hash once persisted."""

    kind: ClassVar[EntityKind] = EntityKind.ACCOUNT

    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    locked: bool = False
    roles: list[Role] = Field(default_factory=list)

    @field_validator("roles")
    @classmethod
    def _dedupe_roles(cls, value: list[Role]) -> list[Role]:
        return unique_by_id(value)


class Client(Entity):
    """The client aggregate: embeds copies of the reference entities it uses."""

    kind: ClassVar[EntityKind] = EntityKind.CLIENT

    client_id: str | None = None
    client_secret: str | None = Field(default=None, repr=False)
    scopes: list[Scope] = Field(default_factory=list)
    grant_types: list[GrantType] = Field(default_factory=list)
    authorities: list[Authority] = Field(default_factory=list)
    audiences: list[Audience] = Field(default_factory=list)
    access_token_validity_seconds: int | None = None
    refresh_token_validity_seconds: int | None = None

    @field_validator("scopes", "grant_types", "authorities", "audiences")
    @classmethod
    def _dedupe(cls, value: list[ReferenceEntity]) -> list[ReferenceEntity]:
        return unique_by_id(value)

    def embedded(self) -> dict[EntityKind, list[ReferenceEntity]]:
        """Embedded reference sets keyed by kind."""
        return {
            EntityKind.SCOPE: list(self.scopes),
            EntityKind.GRANT_TYPE: list(self.grant_types),
            EntityKind.AUTHORITY: list(self.authorities),
            EntityKind.AUDIENCE: list(self.audiences),
        }


# ---------------------------------------------------------------------------
# Drafts: inputs that reference embedded entities by id
# ---------------------------------------------------------------------------


class AccountDraft(BaseModel):
    """Account input carrying role ids instead of role entities."""

    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    locked: bool = False
    role_ids: list[str | None] = Field(default_factory=list)


class ClientDraft(BaseModel):
    """Client input carrying reference ids instead of embedded entities."""

    client_id: str | None = None
    client_secret: str | None = Field(default=None, repr=False)
    scope_ids: list[str | None] = Field(default_factory=list)
    grant_type_ids: list[str | None] = Field(default_factory=list)
    authority_ids: list[str | None] = Field(default_factory=list)
    audience_ids: list[str | None] = Field(default_factory=list)
    access_token_validity_seconds: int | None = None
    refresh_token_validity_seconds: int | None = None

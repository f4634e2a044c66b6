"""SQLAlchemy Core table definitions for the iamctl database.

Reference entities share one column layout (:func:`_reference_table`).
Accounts and clients embed reference entities through link tables; the
link tables double as the data source for the delete guard's count
query.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

from iamctl.domain.kinds import EntityKind

metadata = MetaData()


def _reference_table(name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Text, primary_key=True),
        Column("name", Text, nullable=False, unique=True),
        Column("description", Text),
        Column("created", Text, nullable=False),
        Column("updated", Text, nullable=False),
    )


audiences = _reference_table("audiences")
scopes = _reference_table("scopes")
grant_types = _reference_table("grant_types")
authorities = _reference_table("authorities")
roles = _reference_table("roles")

accounts = Table(
    "accounts",
    metadata,
    Column("id", Text, primary_key=True),
    Column("username", Text, nullable=False, unique=True),
    Column("password", Text, nullable=False),
    Column("locked", Integer, nullable=False, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("updated", Text, nullable=False),
)

account_roles = Table(
    "account_roles",
    metadata,
    Column("account_id", Text, ForeignKey("accounts.id"), nullable=False),
    Column("role_id", Text, ForeignKey("roles.id"), nullable=False),
    Column("position", Integer, nullable=False, default=0, server_default="0"),
    UniqueConstraint("account_id", "role_id"),
)

clients = Table(
    "clients",
    metadata,
    Column("id", Text, primary_key=True),
    Column("client_id", Text, nullable=False, unique=True),
    Column("client_secret", Text, nullable=False),
    Column("access_token_validity_seconds", Integer),
    Column("refresh_token_validity_seconds", Integer),
    Column("created", Text, nullable=False),
    Column("updated", Text, nullable=False),
)


def _client_link_table(name: str, target: str, column: str) -> Table:
    return Table(
        name,
        metadata,
        Column("client_ref", Text, ForeignKey("clients.id"), nullable=False),
        Column(column, Text, ForeignKey(f"{target}.id"), nullable=False),
        Column("position", Integer, nullable=False, default=0, server_default="0"),
        UniqueConstraint("client_ref", column),
    )


client_scopes = _client_link_table("client_scopes", "scopes", "scope_id")
client_grant_types = _client_link_table("client_grant_types", "grant_types", "grant_type_id")
client_authorities = _client_link_table("client_authorities", "authorities", "authority_id")
client_audiences = _client_link_table("client_audiences", "audiences", "audience_id")

# ---------------------------------------------------------------------------
# Indexes for link lookups (guard counts filter on the target column)
# ---------------------------------------------------------------------------

Index("ix_account_roles_role", account_roles.c.role_id)
Index("ix_client_scopes_scope", client_scopes.c.scope_id)
Index("ix_client_grant_types_grant_type", client_grant_types.c.grant_type_id)
Index("ix_client_authorities_authority", client_authorities.c.authority_id)
Index("ix_client_audiences_audience", client_audiences.c.audience_id)

# ---------------------------------------------------------------------------
# Lookup maps keyed by entity kind
# ---------------------------------------------------------------------------

REFERENCE_TABLES: dict[EntityKind, Table] = {
    EntityKind.AUDIENCE: audiences,
    EntityKind.SCOPE: scopes,
    EntityKind.GRANT_TYPE: grant_types,
    EntityKind.AUTHORITY: authorities,
    EntityKind.ROLE: roles,
}


class Link:
    """A link table joining an owner aggregate to one reference kind."""

    def __init__(self, table: Table, owner_column: str, target_column: str) -> None:
        self.table = table
        self.owner = table.c[owner_column]
        self.target = table.c[target_column]
        self.position = table.c.position


CLIENT_LINKS: dict[EntityKind, Link] = {
    EntityKind.SCOPE: Link(client_scopes, "client_ref", "scope_id"),
    EntityKind.GRANT_TYPE: Link(client_grant_types, "client_ref", "grant_type_id"),
    EntityKind.AUTHORITY: Link(client_authorities, "client_ref", "authority_id"),
    EntityKind.AUDIENCE: Link(client_audiences, "client_ref", "audience_id"),
}

ACCOUNT_ROLE_LINK = Link(account_roles, "account_id", "role_id")

# Link used by the delete guard for each embeddable kind, with the label
# of the aggregate that owns the link.
GUARD_LINKS: dict[EntityKind, tuple[Link, str]] = {
    **{kind: (link, "client") for kind, link in CLIENT_LINKS.items()},
    EntityKind.ROLE: (ACCOUNT_ROLE_LINK, "account"),
}

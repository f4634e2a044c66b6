"""SQLite database engine and schema via SQLAlchemy Core."""

from iamctl.infrastructure.database.engine import create_db_engine, init_database
from iamctl.infrastructure.database.schema import (
    account_roles,
    accounts,
    audiences,
    authorities,
    client_audiences,
    client_authorities,
    client_grant_types,
    client_scopes,
    clients,
    grant_types,
    metadata,
    roles,
    scopes,
)

__all__ = [
    "account_roles",
    "accounts",
    "audiences",
    "authorities",
    "client_audiences",
    "client_authorities",
    "client_grant_types",
    "client_scopes",
    "clients",
    "create_db_engine",
    "grant_types",
    "init_database",
    "metadata",
    "roles",
    "scopes",
]

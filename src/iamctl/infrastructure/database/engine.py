"""Database engine setup for SQLite with WAL mode.

SQLite is the default persistence layer: WAL mode for concurrent reads,
foreign keys for link integrity, ACID transactions for data integrity.
The DB is stored at {data_root}/.iamctl/iamctl.db unless configured
otherwise.

Write transactions open with ``BEGIN IMMEDIATE`` so the write lock is
taken before the first read. A uniqueness check or a delete-guard count
therefore sees the same data the following write acts on. Read-only
connections use a plain ``BEGIN``. Any other dialect configured through
``[database] url`` runs write transactions at ``SERIALIZABLE``.

SQLAlchemy Core (not ORM) is used: entities are plain Pydantic models
mapped by hand in the repositories.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import Connection, create_engine, event
from sqlalchemy.engine import Engine

from iamctl.infrastructure.database.schema import metadata

WRITE_OPTION = "iamctl_write"
DATA_DIRNAME = ".iamctl"
DB_FILENAME = "iamctl.db"


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine; SQLite URLs get WAL, foreign keys and explicit BEGIN."""
    engine = create_engine(url, echo=echo)
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        # Hand transaction control to the "begin" listener below.
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn: Connection) -> None:
        if conn.get_execution_options().get(WRITE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def write_options(dialect_name: str) -> dict[str, Any]:
    """Execution options for a write transaction on *dialect_name*.

    SQLite serializes writers through ``BEGIN IMMEDIATE``. Other dialects
    get ``SERIALIZABLE`` isolation so checks and the write they guard
    cannot interleave with another writer.
    """
    options: dict[str, Any] = {WRITE_OPTION: True}
    if dialect_name != "sqlite":
        options["isolation_level"] = "SERIALIZABLE"
    return options


def sqlite_url(db_path: Path) -> str:
    return f"sqlite:///{db_path}"


def init_database(data_root: Path, *, url: str | None = None, echo: bool = False) -> Engine:
    """Initialize the iamctl database.

    With no explicit *url*, creates ``{data_root}/.iamctl/`` and the SQLite
    file inside it. Creates all tables from :data:`schema.metadata`.

    Idempotent — safe to call on an existing database.

    Returns the engine ready for use.
    """
    if url is None:
        iamctl_dir = data_root / DATA_DIRNAME
        iamctl_dir.mkdir(parents=True, exist_ok=True)
        url = sqlite_url(iamctl_dir / DB_FILENAME)

    engine = create_db_engine(url, echo=echo)
    metadata.create_all(engine)
    return engine

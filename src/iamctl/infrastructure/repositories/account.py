"""Repository for accounts and their embedded roles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from iamctl.domain.entities import Account, Role
from iamctl.domain.ids import generate_id
from iamctl.domain.kinds import EntityKind
from iamctl.infrastructure.database.schema import ACCOUNT_ROLE_LINK, accounts, roles
from iamctl.infrastructure.repositories.base import (
    TableRepository,
    from_db_time,
    next_timestamp,
    now_utc,
    to_db_time,
)

if TYPE_CHECKING:
    from sqlalchemy import Connection


def _role_from_row(row: dict[str, Any]) -> Role:
    return Role(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        created=from_db_time(row["created"]),
        updated=from_db_time(row["updated"]),
    )


class AccountRepository(TableRepository[Account]):
    """Encapsulates SQL for accounts, hydrating roles on every read."""

    def __init__(self, conn: Connection) -> None:
        super().__init__(conn, accounts, Account)

    def _order_by(self) -> Any:
        return accounts.c.username

    def _from_row(self, row: dict[str, Any]) -> Account:
        return Account(
            id=row["id"],
            username=row["username"],
            password=row["password"],
            locked=bool(row["locked"]),
            roles=[
                _role_from_row(r) for r in self._linked_rows(ACCOUNT_ROLE_LINK, roles, row["id"])
            ],
            created=from_db_time(row["created"]),
            updated=from_db_time(row["updated"]),
        )

    def find_by_username(self, username: str) -> Account | None:
        row = (
            self._conn.execute(select(accounts).where(accounts.c.username == username))
            .mappings()
            .first()
        )
        return self._from_row(dict(row)) if row is not None else None

    def username_taken(self, username: str, *, exclude_id: str | None = None) -> bool:
        stmt = select(accounts.c.id).where(accounts.c.username == username)
        if exclude_id is not None:
            stmt = stmt.where(accounts.c.id != exclude_id)
        return self._conn.execute(stmt).first() is not None

    def insert(self, account: Account) -> Account:
        """Persist a new account. ``account.password`` must already be hashed."""
        now = now_utc()
        account.id = generate_id(EntityKind.ACCOUNT)
        account.created = now
        account.updated = now
        self._conn.execute(
            insert(accounts).values(
                id=account.id,
                username=account.username,
                password=account.password,
                locked=int(account.locked),
                created=to_db_time(now),
                updated=to_db_time(now),
            )
        )
        self._replace_links(ACCOUNT_ROLE_LINK, account.id, [r.id for r in account.roles if r.id])
        return account

    def update(self, account: Account, *, password: str | None = None) -> Account | None:
        """Overwrite username, lock state and roles.

        The stored password hash is only replaced when *password* (a hash)
        is given. Returns None if the row is missing.
        """
        assert account.id is not None
        stamps = self.stored_timestamps(account.id)
        if stamps is None:
            return None
        created, previous = stamps
        updated = next_timestamp(previous)
        values: dict[str, Any] = {
            "username": account.username,
            "locked": int(account.locked),
            "updated": to_db_time(updated),
        }
        if password is not None:
            values["password"] = password
        self._conn.execute(update(accounts).where(accounts.c.id == account.id).values(**values))
        self._replace_links(ACCOUNT_ROLE_LINK, account.id, [r.id for r in account.roles if r.id])
        return self.find_by_id(account.id)

    def delete(self, account: Account) -> bool:
        self._conn.execute(
            delete(ACCOUNT_ROLE_LINK.table).where(ACCOUNT_ROLE_LINK.owner == account.id)
        )
        return super().delete(account)

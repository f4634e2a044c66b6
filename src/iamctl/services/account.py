"""AccountService — accounts, their roles, and password management.

Passwords are hashed before they reach the repository. ``update`` never
touches the stored hash; only :meth:`AccountService.update_password`
replaces it, after checking the current password.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy.exc import SQLAlchemyError

from iamctl.domain.entities import Account, AccountDraft, Role
from iamctl.domain.ids import is_blank
from iamctl.domain.kinds import EntityKind, generic_code, info
from iamctl.infrastructure.repositories.account import AccountRepository
from iamctl.infrastructure.repositories.reference import ReferenceRepository
from iamctl.services.entity import EntityService
from iamctl.services.result import Result, ServiceError
from iamctl.services.rules import build_account_validator
from iamctl.services.security import PasswordHasher
from iamctl.services.telemetry import traced
from iamctl.services.validation import Validator

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from iamctl.infrastructure.store import Store

_ACC = info(EntityKind.ACCOUNT)


class AccountService(EntityService[Account]):
    """Account CRUD, role assembly and password changes."""

    kind = EntityKind.ACCOUNT

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        security = store.settings.security
        self._security = security
        self._hasher = PasswordHasher(security.hash_iterations)

    @property
    def hasher(self) -> PasswordHasher:
        return self._hasher

    def _build_validator(self) -> Validator[Account]:
        return build_account_validator(self._store.settings.security)

    def _repository(self, conn: Connection) -> AccountRepository:
        return AccountRepository(conn)

    def _insert(self, repo: AccountRepository, entity: Account) -> Account:
        assert entity.password is not None
        entity.password = self._hasher.hash(entity.password)
        return repo.insert(entity)

    def _overwrite(self, repo: AccountRepository, entity: Account) -> Account | None:
        return repo.update(entity)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @traced
    def find_by_username(self, username: str | None) -> Result[Account]:
        lookup = username.strip() if username is not None else None
        return self._find_by_key(
            "find_account",
            lookup,
            required=ServiceError.unprocessable(_ACC.code(1), "An account username is required."),
            missing=ServiceError.not_found(
                _ACC.code(8), f"No such username: {lookup}", username=lookup
            ),
            loader=lambda conn, value: AccountRepository(conn).find_by_username(value),
        )

    # ------------------------------------------------------------------
    # Assembly from role ids
    # ------------------------------------------------------------------

    def assemble(self, draft: AccountDraft, *, account_id: str | None = None) -> Result[Account]:
        """Build an :class:`Account` from *draft*, resolving role ids.

        Unknown role ids are dropped; each drop is reported as a warning.
        """
        warnings: list[str] = []
        wanted = [i for i in dict.fromkeys(draft.role_ids) if i is not None and not is_blank(i)]
        with self._store.read() as conn:
            found = ReferenceRepository(conn, EntityKind.ROLE).find_many(wanted)
        roles: list[Role] = []
        for role_id in wanted:
            role = found.get(role_id)
            if role is None:
                warnings.append(f"Dropped unknown role id: {role_id}")
                continue
            roles.append(role)  # type: ignore[arg-type]
        account = Account(
            id=account_id,
            username=draft.username,
            password=draft.password,
            locked=draft.locked,
            roles=roles,
        )
        return Result.accept(account, op="assemble_account", warnings=warnings)

    # ------------------------------------------------------------------
    # Password change
    # ------------------------------------------------------------------

    @traced
    def update_password(
        self,
        account: Account,
        current_password: str | None,
        new_password: str | None,
    ) -> Result[Account]:
        """Replace the stored password after verifying the current one.

        Every violation is reported together.
        """
        op = "update_account_password"
        errors: list[ServiceError] = []
        if is_blank(account.id):
            errors.append(ServiceError.unprocessable(generic_code(1), "An id is required."))
        if is_blank(current_password):
            errors.append(
                ServiceError.unprocessable(
                    _ACC.code(9), "Your current password must be provided."
                )
            )
        if new_password is None or is_blank(new_password):
            errors.append(
                ServiceError.unprocessable(_ACC.code(10), "Your new password must be provided.")
            )
        else:
            low = self._security.min_password_length
            high = self._security.max_new_password_length
            if not low <= len(new_password) <= high:
                errors.append(
                    ServiceError.unprocessable(
                        _ACC.code(11),
                        f"Your new password must be between {low} and {high} characters.",
                    )
                )

        try:
            with self._store.transaction() as txn:
                repo = AccountRepository(txn.conn)
                stored = None
                if account.id and not is_blank(account.id):
                    stored = repo.find_by_id(account.id)
                    if stored is None:
                        errors.append(self._no_such_id(account.id))
                if (
                    stored is not None
                    and current_password is not None
                    and not is_blank(current_password)
                    and not self._hasher.verify(current_password, stored.password)
                ):
                    errors.append(
                        ServiceError.unprocessable(
                            _ACC.code(12),
                            "The password you provided does not match your current password. "
                            "Please try again.",
                        )
                    )
                if errors:
                    return Result.reject(*errors, op=op)
                # No errors means the id resolved and a new password was given.
                stored = cast(Account, stored)
                saved = repo.update(stored, password=self._hasher.hash(cast(str, new_password)))
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)
        if saved is None:
            return Result.reject(self._no_such_id(cast(str, account.id)), op=op)
        return Result.accept(saved, op=op)

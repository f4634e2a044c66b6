"""EntityService — the uniform create/update/delete/find template.

Pipeline for every mutation (one store transaction):

    VALIDATE → GUARD (delete only) → WRITE → SCHEDULE EVICTION → COMMIT

Evictions are queued on the transaction and applied by the store after
the commit succeeds. Subclasses bind a kind, a repository and a validator
and override the hooks they need.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from iamctl.domain.entities import Entity
from iamctl.domain.ids import is_blank
from iamctl.domain.kinds import EntityKind, generic_code, info, system_code
from iamctl.services._helpers import capitalize_first, op_name
from iamctl.services.base import BaseService
from iamctl.services.result import Result, ServiceError
from iamctl.services.telemetry import trace_span, traced
from iamctl.services.validation import Operation, Validator

if TYPE_CHECKING:
    from sqlalchemy import Connection

    from iamctl.infrastructure.repositories.base import TableRepository
    from iamctl.infrastructure.store import Store, StoreTransaction

E = TypeVar("E", bound=Entity)


class EntityService(BaseService, Generic[E]):
    """Template service for one entity kind."""

    kind: ClassVar[EntityKind]

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._validator: Validator[E] = self._build_validator()

    @property
    def validator(self) -> Validator[E]:
        return self._validator

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _build_validator(self) -> Validator[E]:
        raise NotImplementedError

    def _repository(self, conn: Connection) -> TableRepository[E]:
        raise NotImplementedError

    def _insert(self, repo: Any, entity: E) -> E:
        return repo.insert(entity)  # type: ignore[no-any-return]

    def _overwrite(self, repo: Any, entity: E) -> E | None:
        return repo.update(entity)  # type: ignore[no-any-return]

    def _check_delete(self, repo: Any, entity: E) -> Result[E] | None:
        """Return a rejection to stop a delete, or None to proceed."""
        return None

    def _after_write(
        self, txn: StoreTransaction, entity: E, operation: Operation, previous: E | None
    ) -> None:
        """Queue cache evictions for an accepted write."""

    def _load(self, conn: Connection, entity_id: str) -> E | None:
        return self._repository(conn).find_by_id(entity_id)

    # ------------------------------------------------------------------
    # Error helpers
    # ------------------------------------------------------------------

    def _op(self, verb: str, *, plural: bool = False) -> str:
        return op_name(verb, self.kind, plural=plural)

    def _id_required(self) -> ServiceError:
        meta = info(self.kind)
        return ServiceError.unprocessable(
            meta.code(6), f"{capitalize_first(meta.with_article)} id is required."
        )

    @staticmethod
    def _missing_id() -> ServiceError:
        return ServiceError.unprocessable(generic_code(1), "An id is required.")

    def _no_such_id(self, entity_id: str) -> ServiceError:
        return ServiceError.not_found(
            system_code(1), f"No such {info(self.kind).label} id: {entity_id}", id=entity_id
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    def create(self, entity: E) -> Result[E]:
        """Validate and persist a new entity with a fresh id."""
        op = self._op("create")
        candidate = entity.model_copy(deep=True)
        try:
            with self._store.transaction() as txn:
                repo = self._repository(txn.conn)
                with trace_span("validate"):
                    validated = self._validator.validate(candidate, Operation.CREATE, repo)
                if validated.rejected():
                    return validated.with_op(op)
                with trace_span("write"):
                    saved = self._insert(repo, candidate)
                self._after_write(txn, saved, Operation.CREATE, None)
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)
        return Result.accept(saved, op=op)

    @traced
    def update(self, entity: E) -> Result[E]:
        """Validate and overwrite an existing entity.

        ``created`` is preserved from storage; ``updated`` strictly advances.
        """
        op = self._op("update")
        candidate = entity.model_copy(deep=True)
        try:
            with self._store.transaction() as txn:
                repo = self._repository(txn.conn)
                with trace_span("validate"):
                    validated = self._validator.validate(candidate, Operation.UPDATE, repo)
                if validated.rejected():
                    return validated.with_op(op)
                if candidate.id is None:
                    return Result.reject(self._missing_id(), op=op)
                previous = repo.find_by_id(candidate.id)
                with trace_span("write"):
                    saved = self._overwrite(repo, candidate)
                if saved is None:
                    return Result.reject(self._no_such_id(candidate.id), op=op)
                self._after_write(txn, saved, Operation.UPDATE, previous)
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)
        return Result.accept(saved, op=op)

    @traced
    def delete(self, entity: E) -> Result[E]:
        """Validate, consult the delete check, then remove the entity.

        The accepted result carries the entity as it was stored.
        """
        op = self._op("delete")
        candidate = entity.model_copy(deep=True)
        try:
            with self._store.transaction() as txn:
                repo = self._repository(txn.conn)
                with trace_span("validate"):
                    validated = self._validator.validate(candidate, Operation.DELETE, repo)
                if validated.rejected():
                    return validated.with_op(op)
                if candidate.id is None:
                    return Result.reject(self._missing_id(), op=op)
                stored = repo.find_by_id(candidate.id)
                if stored is None:
                    return Result.reject(self._no_such_id(candidate.id), op=op)
                with trace_span("guard"):
                    blocked = self._check_delete(repo, stored)
                if blocked is not None and blocked.rejected():
                    return blocked.with_op(op)
                with trace_span("write"):
                    repo.delete(stored)
                self._after_write(txn, stored, Operation.DELETE, stored)
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)
        return Result.accept(stored, op=op)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def find_by_id(self, entity_id: str | None) -> Result[E]:
        op = self._op("find")
        if entity_id is None or is_blank(entity_id):
            return Result.reject(self._id_required(), op=op)
        try:
            with self._store.read() as conn:
                found = self._load(conn, entity_id)
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)
        if found is None:
            return Result.reject(self._no_such_id(entity_id), op=op)
        return Result.accept(found, op=op)

    @traced
    def list(self) -> Result[list[E]]:
        """Every entity of this kind, in natural-key order."""
        op = self._op("list", plural=True)
        try:
            with self._store.read() as conn:
                items = self._repository(conn).list()
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)
        return Result.accept(items, op=op)

    def find_existing_by_id(self, entity_ids: Iterable[str | None]) -> Result[list[E]]:
        """Resolve *entity_ids*, silently dropping blanks and unknown ids.

        Accepted unless the store fails. Duplicates collapse to their first
        occurrence; input order is kept.
        """
        op = self._op("find_existing", plural=True)
        wanted = list(dict.fromkeys(i for i in entity_ids if i is not None and not is_blank(i)))
        if not wanted:
            return Result.accept([], op=op)
        try:
            with self._store.read() as conn:
                found = self._repository(conn).find_many(wanted)
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)
        return Result.accept([found[i] for i in wanted if i in found], op=op)

    def _find_by_key(
        self,
        op: str,
        value: str | None,
        *,
        required: ServiceError,
        missing: ServiceError,
        loader: Any,
    ) -> Result[E]:
        """Shared shape of find_by_name / find_by_username / find_by_client_id."""
        if value is None or is_blank(value):
            return Result.reject(required, op=op)
        try:
            with self._store.read() as conn:
                found = loader(conn, value)
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)
        if found is None:
            return Result.reject(missing, op=op)
        return Result.accept(found, op=op)

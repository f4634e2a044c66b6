"""Validation engine — composable, operation-scoped rule chains.

A :class:`Validator` holds the rule chain for one entity kind:

1. **Normalizers** run first, always, and may rewrite the entity in place
   (e.g. strip surrounding whitespace from names).
2. **Rules** run in registration order. A rule declares the operations it
   applies to; every matching rule runs and every error it yields is kept.

``validate`` never raises for invalid data. It returns an accepted
:class:`Result` carrying the normalized entity, or a rejected one
carrying every violation found. Rules may consult the repository, which
is bound to the caller's open transaction.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from iamctl.domain.entities import Entity
from iamctl.domain.kinds import EntityKind
from iamctl.services.result import Result, ServiceError

E = TypeVar("E", bound=Entity)


class Operation(StrEnum):
    """Marker selecting which rules apply to a validation run."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


ALL_OPERATIONS: frozenset[Operation] = frozenset(Operation)

Check = Callable[[Any, Any], Iterable[ServiceError]]
Normalizer = Callable[[Any], None]


@dataclass(frozen=True)
class Rule:
    """One named check bound to the operations it applies to."""

    name: str
    check: Check
    operations: frozenset[Operation]

    def applies_to(self, operation: Operation) -> bool:
        return operation in self.operations


class Validator(Generic[E]):
    """Rule chain for one entity kind.

    Rules are registered with the :meth:`rule` decorator::

        validator = Validator(EntityKind.AUDIENCE)

        @validator.rule(Operation.CREATE, Operation.UPDATE)
        def name_required(entity, repo):
            if is_blank(entity.name):
                yield ServiceError.unprocessable(...)
    """

    def __init__(self, kind: EntityKind) -> None:
        self._kind = kind
        self._normalizers: list[Normalizer] = []
        self._rules: list[Rule] = []

    @property
    def kind(self) -> EntityKind:
        return self._kind

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules)

    def rules_for(self, operation: Operation) -> list[Rule]:
        return [r for r in self._rules if r.applies_to(operation)]

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def normalizer(self, func: Normalizer) -> Normalizer:
        self._normalizers.append(func)
        return func

    def add_rule(self, rule: Rule) -> None:
        if any(r.name == rule.name for r in self._rules):
            msg = f"Duplicate rule {rule.name!r} for {self._kind}"
            raise ValueError(msg)
        if not rule.operations:
            msg = f"Rule {rule.name!r} applies to no operation"
            raise ValueError(msg)
        self._rules.append(rule)

    def rule(self, *operations: Operation, name: str | None = None) -> Callable[[Check], Check]:
        """Decorator registering *func* for *operations* (default: all)."""

        def decorator(func: Check) -> Check:
            self.add_rule(
                Rule(
                    name=name or func.__name__,
                    check=func,
                    operations=frozenset(operations) if operations else ALL_OPERATIONS,
                )
            )
            return func

        return decorator

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def validate(self, entity: E, operation: Operation, repository: Any) -> Result[E]:
        """Normalize *entity*, then run every rule matching *operation*."""
        if entity.kind != self._kind:
            msg = f"{self._kind} validator cannot validate a {entity.kind}"
            raise ValueError(msg)

        for normalize in self._normalizers:
            normalize(entity)

        errors: list[ServiceError] = []
        for rule in self.rules_for(operation):
            errors.extend(rule.check(entity, repository))

        if errors:
            return Result.reject(*errors)
        return Result.accept(entity)

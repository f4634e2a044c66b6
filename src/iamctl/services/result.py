"""Result and ServiceError — the universal service contract.

INVARIANT: All service-layer operations return a Result.
A Result is either accepted (carries a non-null ``instance``) or rejected
(carries at least one error). The CLI and any future interface consume
this type; only those boundaries convert a rejection into an exception
via :meth:`Result.or_raise`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Generic, Self, TypeVar

from pydantic import BaseModel, Field, model_validator

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Failure taxonomy. Each kind maps to an HTTP-style status."""

    UNPROCESSABLE = "unprocessable"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    SYSTEM_ERROR = "system_error"

    @property
    def status(self) -> int:
        return _STATUS[self]


_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UNPROCESSABLE: 422,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.SYSTEM_ERROR: 500,
}

# Most severe first; decides the status of a mixed rejection.
_SEVERITY: tuple[ErrorKind, ...] = (
    ErrorKind.SYSTEM_ERROR,
    ErrorKind.NOT_FOUND,
    ErrorKind.CONFLICT,
    ErrorKind.UNPROCESSABLE,
)


class ServiceError(BaseModel):
    """Structured error payload within a rejected Result."""

    model_config = {"frozen": True}

    code: str
    message: str
    kind: ErrorKind = ErrorKind.UNPROCESSABLE
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def unprocessable(cls, code: str, message: str, **detail: Any) -> ServiceError:
        return cls(code=code, message=message, kind=ErrorKind.UNPROCESSABLE, detail=detail)

    @classmethod
    def conflict(cls, code: str, message: str, **detail: Any) -> ServiceError:
        return cls(code=code, message=message, kind=ErrorKind.CONFLICT, detail=detail)

    @classmethod
    def not_found(cls, code: str, message: str, **detail: Any) -> ServiceError:
        return cls(code=code, message=message, kind=ErrorKind.NOT_FOUND, detail=detail)

    @classmethod
    def system_error(cls, code: str, message: str, **detail: Any) -> ServiceError:
        return cls(code=code, message=message, kind=ErrorKind.SYSTEM_ERROR, detail=detail)


class Result(BaseModel, Generic[T]):
    """Uniform outcome of every service operation.

    Attributes:
        op: Name of the operation (e.g. ``"create_audience"``).
        instance: The payload of an accepted result.
        errors: Every violation found, in rule order, for a rejected result.
        warnings: Non-fatal issues encountered during the operation.
        meta: Optional metadata (telemetry spans, counts).
    """

    model_config = {"frozen": True}

    op: str = ""
    instance: T | None = None
    errors: list[ServiceError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    meta: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _exactly_one_tag(self) -> Self:
        if self.errors and self.instance is not None:
            msg = "A rejected Result cannot carry an instance"
            raise ValueError(msg)
        if not self.errors and self.instance is None:
            msg = "An accepted Result requires an instance"
            raise ValueError(msg)
        return self

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def accept(cls, instance: T, *, op: str = "", warnings: list[str] | None = None) -> Result[T]:
        return cls(op=op, instance=instance, warnings=warnings or [])

    @classmethod
    def reject(cls, *errors: ServiceError, op: str = "") -> Result[T]:
        return cls(op=op, errors=list(errors))

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def accepted(self) -> bool:
        return not self.errors

    def rejected(self) -> bool:
        return bool(self.errors)

    @property
    def ok(self) -> bool:
        return self.accepted()

    @property
    def error(self) -> ServiceError | None:
        """The first error, or None for an accepted result."""
        return self.errors[0] if self.errors else None

    @property
    def status(self) -> int:
        """HTTP-style status: 200 when accepted, else the most severe error kind."""
        if not self.errors:
            return 200
        kinds = {e.kind for e in self.errors}
        for kind in _SEVERITY:
            if kind in kinds:
                return kind.status
        return ErrorKind.UNPROCESSABLE.status

    def has_code(self, code: str) -> bool:
        return any(e.code == code for e in self.errors)

    def messages(self) -> list[str]:
        return [e.message for e in self.errors]

    def or_raise(self) -> T:
        """Return the instance, or raise :class:`ResultError` if rejected."""
        if self.errors:
            raise ResultError(self)
        assert self.instance is not None
        return self.instance

    def with_op(self, op: str) -> Result[T]:
        """Copy of this result tagged with *op*."""
        return self.model_copy(update={"op": op})

    def with_warnings(self, warnings: list[str]) -> Result[T]:
        """Copy of this result with *warnings* prepended to its own."""
        if not warnings:
            return self
        return self.model_copy(update={"warnings": [*warnings, *self.warnings]})


class ResultError(Exception):
    """A rejected Result converted into an exception at a boundary."""

    def __init__(self, result: Result[Any]) -> None:
        self.result = result
        self.errors = list(result.errors)
        self.status = result.status
        super().__init__("; ".join(f"{e.code}: {e.message}" for e in self.errors))

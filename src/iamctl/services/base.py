"""BaseService — abstract foundation for all iamctl services.

Every service receives a :class:`Store` at construction time. The Store
provides transactional access to the database and the client cache.
Services own their transaction boundaries via ``self._store.transaction()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from iamctl.domain.kinds import system_code
from iamctl.services.result import Result, ServiceError

if TYPE_CHECKING:
    from sqlalchemy.exc import SQLAlchemyError

    from iamctl.infrastructure.store import Store

logger = logging.getLogger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class AudienceService(ReferenceService):
            def create(self, entity: Audience) -> Result[Audience]:
                with self._store.transaction() as txn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    @property
    def store(self) -> Store:
        return self._store

    def _store_failure(self, op: str, exc: SQLAlchemyError) -> Result[Any]:
        """Log a backing-store failure and turn it into a SystemError result."""
        logger.exception("Store failure during %s", op)
        return Result.reject(
            ServiceError.system_error(
                system_code(2),
                "An unexpected error occurred while accessing the data store.",
                error=type(exc).__name__,
            ),
            op=op,
        )

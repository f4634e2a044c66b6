"""Repository boundary — SQL for every entity kind.

Each repository wraps a caller-owned ``Connection``.
"""

from iamctl.infrastructure.repositories.account import AccountRepository
from iamctl.infrastructure.repositories.client import ClientRepository
from iamctl.infrastructure.repositories.reference import ReferenceRepository

__all__ = ["AccountRepository", "ClientRepository", "ReferenceRepository"]

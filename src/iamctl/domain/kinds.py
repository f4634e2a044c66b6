"""Entity kinds and their naming metadata.

Every managed entity type is identified by an :class:`EntityKind`. The
kind carries everything needed to phrase errors consistently: the human
label ("grant type"), the indefinite article, the stable error-code
prefix (``GRT``), and the identifier prefix (``grt_``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class EntityKind(StrEnum):
    """All entity types managed by iamctl."""

    AUDIENCE = "audience"
    SCOPE = "scope"
    GRANT_TYPE = "grant_type"
    AUTHORITY = "authority"
    ROLE = "role"
    ACCOUNT = "account"
    CLIENT = "client"


@dataclass(frozen=True)
class KindInfo:
    """Naming metadata for one entity kind."""

    label: str
    article: str
    code_prefix: str
    id_prefix: str
    plural: str

    def code(self, number: int) -> str:
        """Format an error code, e.g. ``AUD-0005``."""
        return f"{self.code_prefix}-{number:04d}"

    @property
    def with_article(self) -> str:
        """Label with its indefinite article, e.g. ``"an audience"``."""
        return f"{self.article} {self.label}"


KINDS: dict[EntityKind, KindInfo] = {
    EntityKind.AUDIENCE: KindInfo("audience", "an", "AUD", "aud_", "audiences"),
    EntityKind.SCOPE: KindInfo("scope", "a", "SCP", "scp_", "scopes"),
    EntityKind.GRANT_TYPE: KindInfo("grant type", "a", "GRT", "grt_", "grant types"),
    EntityKind.AUTHORITY: KindInfo("authority", "an", "ATH", "ath_", "authorities"),
    EntityKind.ROLE: KindInfo("role", "a", "ROL", "rol_", "roles"),
    EntityKind.ACCOUNT: KindInfo("account", "an", "ACC", "acc_", "accounts"),
    EntityKind.CLIENT: KindInfo("client", "a", "CLI", "cli_", "clients"),
}

# Kinds a Client aggregate embeds. Deleting one of these is guarded by a
# client link count.
CLIENT_EMBEDDED_KINDS: frozenset[EntityKind] = frozenset(
    {
        EntityKind.AUDIENCE,
        EntityKind.SCOPE,
        EntityKind.GRANT_TYPE,
        EntityKind.AUTHORITY,
    }
)

# Kinds whose accepted update/delete must flush the client cache.
CACHE_INVALIDATING_KINDS: frozenset[EntityKind] = CLIENT_EMBEDDED_KINDS | {EntityKind.ROLE}

# Codes that do not belong to a single entity kind.
GENERIC_PREFIX = "ENT"
SYSTEM_PREFIX = "SYS"


def info(kind: EntityKind) -> KindInfo:
    """Return the :class:`KindInfo` for *kind*."""
    return KINDS[kind]


def generic_code(number: int) -> str:
    return f"{GENERIC_PREFIX}-{number:04d}"


def system_code(number: int) -> str:
    return f"{SYSTEM_PREFIX}-{number:04d}"

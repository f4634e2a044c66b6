"""Identifier patterns, validation, and generation.

Every persisted entity receives an opaque prefixed identifier: the kind's
prefix followed by 32 lowercase hex characters (``aud_3f1c...``).

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import uuid

from iamctl.domain.kinds import KINDS, EntityKind

ID_PATTERNS: dict[EntityKind, re.Pattern[str]] = {
    kind: re.compile(rf"^{re.escape(meta.id_prefix)}[0-9a-f]{{32}}$") for kind, meta in KINDS.items()
}


def generate_id(kind: EntityKind) -> str:
    """Generate a fresh identifier for *kind*."""
    return f"{KINDS[kind].id_prefix}{uuid.uuid4().hex}"


def validate_id(entity_id: str, kind: EntityKind) -> bool:
    """Check whether *entity_id* matches the expected pattern for *kind*."""
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        return False
    return pattern.match(entity_id) is not None


def is_blank(value: str | None) -> bool:
    """True for ``None``, the empty string, and whitespace-only strings."""
    return value is None or not value.strip()

"""Shared service-layer helper functions."""

from __future__ import annotations

from iamctl.domain.kinds import EntityKind, info


def op_name(verb: str, kind: EntityKind, *, plural: bool = False) -> str:
    """Operation name for a Result, e.g. ``create_grant_type``.

    Examples:
        >>> op_name("create", EntityKind.GRANT_TYPE)
        'create_grant_type'
        >>> op_name("list", EntityKind.AUTHORITY, plural=True)
        'list_authorities'
    """
    noun = info(kind).plural if plural else info(kind).label
    return f"{verb}_{noun.replace(' ', '_')}"


def count_phrase(count: int, noun: str) -> str:
    """``"1 client is"`` / ``"3 clients are"``."""
    if count == 1:
        return f"1 {noun} is"
    return f"{count} {noun}s are"


def capitalize_first(text: str) -> str:
    """Uppercase only the first character (``"an audience"`` → ``"An audience"``)."""
    return text[:1].upper() + text[1:]

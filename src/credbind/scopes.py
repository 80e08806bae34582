"""Helpers for OAuth2 scope sets."""

from typing import Iterable, Optional


def scope_from_string(value: Optional[str]) -> frozenset[str]:
    """Parse a space-delimited scope string."""
    if not value:
        return frozenset()
    return frozenset(part for part in value.split(" ") if part)


def scope_to_string(scope: Optional[Iterable[str]]) -> str:
    """Join a scope set into its space-delimited form, in a stable order."""
    if not scope:
        return ""
    return " ".join(sorted(scope))


def is_null_or_empty(scope: Optional[Iterable[str]]) -> bool:
    return scope is None or not any(part.strip() for part in scope)

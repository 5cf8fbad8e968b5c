"""Wildcard name matching shared by filters and the in-memory client.

Patterns use shell wildcards (``*``, ``?``, ``[...]``) and match
case-insensitively, the way operators write collection filters such as
``Wave-*``.
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase


def name_matches(name: str, pattern: str) -> bool:
    """True when *name* matches the wildcard *pattern*, ignoring case."""
    return fnmatchcase(name.casefold(), pattern.casefold())


def first_match(name: str, patterns: Iterable[str]) -> str | None:
    """Return the first pattern that *name* matches, or ``None``."""
    for pattern in patterns:
        if name_matches(name, pattern):
            return pattern
    return None

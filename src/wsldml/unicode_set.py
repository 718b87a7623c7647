"""
Compact character-range notation used by LDML exemplar characters.

Patterns are ICU UnicodeSet syntax and are handled by ICU itself, so
everything ICU accepts is accepted here:
    [a b c] [a-z]       single characters and code point ranges
    [{ch} {ng}]         multi-character strings (grapheme clusters)
    [\\u0301 \\x{1F600}] escapes
    [[:Lu:]] [^a-z]     property sets, negation and set operators

Members come out in ICU's set order: code points ascending, then
multi-character strings.
"""

from __future__ import annotations

from typing import Iterable, List

import icu


def to_characters(pattern: str) -> List[str]:
    """
    Expand a UnicodeSet pattern into its members.

    An empty or blank pattern yields an empty list.

    Raises:
        ValueError: If ICU rejects the pattern
    """
    pattern = (pattern or "").strip()
    if not pattern:
        return []
    if not pattern.startswith("["):
        # Tolerate a bare member list without the enclosing brackets
        pattern = f"[{pattern}]"
    try:
        members = icu.UnicodeSet(pattern)
    except icu.ICUError as e:
        raise ValueError(f"Invalid UnicodeSet pattern {pattern!r}: {e}") from e
    return [str(member) for member in members]


def to_pattern(characters: Iterable[str]) -> str:
    """Build the UnicodeSet pattern of a member list, multi-character members in braces."""
    members = icu.UnicodeSet()
    for item in characters:
        if item:
            members.add(item)
    return str(members.toPattern())


__all__ = ["to_characters", "to_pattern"]

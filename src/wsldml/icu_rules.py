"""
ICU tailoring rule text helpers.

Two producers of ICU rule text:
    - simple_rules_to_icu: the "simple ordering" notation (one line per
      primary group, space separated tertiary variants on a line)
    - ldml_rules_to_icu: the legacy LDML XML <rules> syntax
      (<reset>, <p>, <s>, <t>, <i>, their *c list forms and <x>)

Neither compiles or executes the rules.
"""

from __future__ import annotations

import re
import unicodedata
from typing import List, Optional

from lxml import etree

from wsldml.xml_text import element_text

_ESCAPE_RE = re.compile(r"\\u([0-9A-Fa-f]{4})|\\U([0-9A-Fa-f]{8})")

_RELATIONS = {
    "p": "<",
    "s": "<<",
    "t": "<<<",
    "i": "=",
    "pc": "<*",
    "sc": "<<*",
    "tc": "<<<*",
    "ic": "=*",
}

_BEFORE = {"primary": "1", "secondary": "2", "tertiary": "3"}


def _unescape(item: str) -> str:
    return _ESCAPE_RE.sub(lambda m: chr(int(m.group(1) or m.group(2), 16)), item)


def quote_icu(text: str) -> str:
    """Quote `text` for ICU rules unless it is letters, marks and digits only."""
    if text and all(unicodedata.category(ch)[0] in "LMN" for ch in text):
        return text
    return "'" + text.replace("'", "''") + "'"


def simple_rules_to_icu(simple_rules: str) -> str:
    """
    Convert simple ordering rules to ICU rule text.

    Each non-blank line is a primary group; whitespace separated items on a
    line differ at the tertiary level. Items may use \\uXXXX escapes.

    Raises:
        ValueError: If an item appears more than once
    """
    groups: List[List[str]] = []
    seen = set()
    for line in (simple_rules or "").splitlines():
        items = [_unescape(item) for item in line.split()]
        if not items:
            continue
        for item in items:
            if item in seen:
                raise ValueError(f"Item '{item}' appears more than once in the simple rules")
            seen.add(item)
        groups.append(items)

    if not groups:
        return ""

    rules = ["&[before 1] [first regular]"]
    for items in groups:
        rules.append("< " + quote_icu(items[0]))
        rules.extend("<<< " + quote_icu(item) for item in items[1:])
    return " ".join(rules)


def _reset_to_icu(reset: etree._Element) -> str:
    if len(reset) and isinstance(reset[0].tag, str) and reset[0].tag != "cp":
        # logical positions such as <first_tertiary_ignorable/>
        target = "[" + reset[0].tag.replace("_", " ") + "]"
    else:
        target = quote_icu(element_text(reset))
    before = _BEFORE.get(reset.get("before", ""))
    if before:
        return f"&[before {before}]{target}"
    return "&" + target


def _relation_to_icu(element: etree._Element, context: str = "", extend: str = "") -> Optional[str]:
    relation = _RELATIONS.get(element.tag)
    if relation is None:
        return None
    operand = quote_icu(element_text(element))
    prefix = quote_icu(context) + "|" if context else ""
    suffix = "/" + quote_icu(extend) if extend else ""
    return f"{relation} {prefix}{operand}{suffix}"


def ldml_rules_to_icu(rules: Optional[etree._Element]) -> str:
    """Convert an LDML <rules> element to ICU rule text ("" when rules is None)."""
    if rules is None:
        return ""
    parts = []
    for child in rules:
        if not isinstance(child.tag, str):
            continue
        if child.tag == "reset":
            parts.append(_reset_to_icu(child))
        elif child.tag == "x":
            context = element_text(child.find("context"))
            extend = element_text(child.find("extend"))
            for relation in child:
                if isinstance(relation.tag, str) and relation.tag in _RELATIONS:
                    parts.append(_relation_to_icu(relation, context, extend))
        else:
            converted = _relation_to_icu(child)
            if converted is not None:
                parts.append(converted)
    return " ".join(parts)


__all__ = ["quote_icu", "simple_rules_to_icu", "ldml_rules_to_icu"]

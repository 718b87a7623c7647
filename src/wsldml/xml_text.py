"""
XML helpers shared by the LDML reader and writer.

Covers:
    - The SIL vendor namespace
    - Text escaping: code points XML cannot carry become <cp hex="X"/> elements
    - Reading element text back with <cp> escapes resolved
    - Small tree-editing helpers (get-or-create, remove, prune)
    - Pretty printing that leaves mixed content alone
"""

from __future__ import annotations

import copy
from typing import Callable, Iterable, Optional

from lxml import etree

SIL_NAMESPACE = "urn://www.sil.org/ldml/0.1"
NSMAP = {"sil": SIL_NAMESPACE}
CP_TAG = "cp"


def sil(local_name: str) -> str:
    """Qualified (Clark notation) name of an element in the SIL namespace."""
    return f"{{{SIL_NAMESPACE}}}{local_name}"


def local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def is_xml_char(code: int) -> bool:
    # 0xD is legal but parsers normalize it to 0xA, so it is escaped too.
    return (
        code == 0x9
        or code == 0xA
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def has_illegal_chars(text: str) -> bool:
    return any(not is_xml_char(ord(ch)) for ch in text)


def set_ldml_text(element: etree._Element, text: str) -> None:
    """
    Set the text content of `element`, escaping illegal code points.

    Every character outside the XML character ranges is written as a
    <cp hex="X"/> child; the literal runs around it go to element.text and
    to the tails of the cp elements.
    """
    element.text = None
    run = []
    last_cp = None
    for ch in text or "":
        code = ord(ch)
        if is_xml_char(code):
            run.append(ch)
            continue
        _flush_run(element, last_cp, run)
        last_cp = etree.SubElement(element, CP_TAG)
        last_cp.set("hex", f"{code:X}")
        run = []
    _flush_run(element, last_cp, run)


def _flush_run(element, last_cp, run):
    if not run:
        return
    if last_cp is None:
        element.text = "".join(run)
    else:
        last_cp.tail = "".join(run)


def set_cdata(element: etree._Element, text: str) -> None:
    """Set `text` as a CDATA section, falling back to escaped text when CDATA cannot hold it."""
    if "]]>" in text or has_illegal_chars(text):
        set_ldml_text(element, text)
    else:
        element.text = etree.CDATA(text)


def element_text(element: Optional[etree._Element]) -> str:
    """
    Concatenated text of an element and its descendants.

    <cp hex="X"/> escapes are turned back into the code points they stand for.
    """
    if element is None:
        return ""
    parts = [element.text or ""]
    for child in element:
        if not isinstance(child.tag, str):
            # comments and processing instructions carry no text value
            parts.append(child.tail or "")
            continue
        if child.tag == CP_TAG:
            parts.append(chr(int(child.get("hex", "0"), 16)))
        else:
            parts.append(element_text(child))
        parts.append(child.tail or "")
    return "".join(parts)


def get_attr(element: Optional[etree._Element], name: str, default: str = "") -> str:
    if element is None:
        return default
    value = element.get(name)
    return default if value is None else value


def child_attr(parent: etree._Element, child_tag: str, name: str) -> str:
    """Attribute of the first child named `child_tag`, or "" when either is missing."""
    return get_attr(parent.find(child_tag), name)


def set_optional_attr(element: etree._Element, name: str, value: Optional[str]) -> None:
    """Set the attribute when value is non-empty, otherwise remove it."""
    if value:
        element.set(name, value)
    elif name in element.attrib:
        del element.attrib[name]


def insert_before_special(parent: etree._Element, child: etree._Element) -> etree._Element:
    """Insert a base-schema child ahead of the first <special> so the vendor block stays last."""
    special = parent.find("special")
    if special is None:
        parent.append(child)
    else:
        special.addprevious(child)
    return child


def get_or_create(parent: etree._Element, tag: str, before_special: bool = False) -> etree._Element:
    child = parent.find(tag)
    if child is None:
        # Created in place so namespaced tags reuse the declarations in scope
        child = etree.SubElement(parent, tag)
        if before_special:
            insert_before_special(parent, child)
    return child


def remove_all(elements: Iterable[etree._Element]) -> None:
    for element in list(elements):
        parent = element.getparent()
        if parent is not None:
            _remove_preserving_tail(parent, element)


def remove_children(parent: etree._Element, predicate: Callable[[etree._Element], bool]) -> None:
    remove_all(child for child in parent if isinstance(child.tag, str) and predicate(child))


def _remove_preserving_tail(parent, element):
    tail = element.tail
    if tail and tail.strip():
        previous = element.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
    parent.remove(element)


def ensure_sil_namespace(root: etree._Element) -> etree._Element:
    """
    Return a root element that declares the SIL namespace.

    lxml cannot add a declaration to an existing element, so a root without
    one is rebuilt: attributes, children and the comments or processing
    instructions around it are moved to a new root.
    """
    if SIL_NAMESPACE in root.nsmap.values():
        return root
    nsmap = {prefix: uri for prefix, uri in root.nsmap.items() if prefix != "sil"}
    nsmap["sil"] = SIL_NAMESPACE
    new_root = etree.Element(root.tag, attrib=dict(root.attrib), nsmap=nsmap)
    new_root.text = root.text
    for child in list(root):
        new_root.append(child)
    for sibling in reversed(list(root.itersiblings(preceding=True))):
        new_root.addprevious(copy.deepcopy(sibling))
    for sibling in reversed(list(root.itersiblings())):
        new_root.addnext(copy.deepcopy(sibling))
    return new_root


def is_empty(element: etree._Element) -> bool:
    """True when the element has no children, no attributes and no meaningful text."""
    return len(element) == 0 and not element.attrib and not (element.text or "").strip()


def prune_if_empty(element: Optional[etree._Element]) -> None:
    if element is not None and is_empty(element):
        remove_all([element])


def _has_mixed_content(element: etree._Element) -> bool:
    if (element.text or "").strip():
        return True
    for child in element:
        if child.tag == CP_TAG:
            return True
        if (child.tail or "").strip():
            return True
    return False


def indent(element: etree._Element, space: str = "\t", level: int = 0) -> None:
    """
    Pretty print in place.

    Unlike etree.indent this never touches elements with mixed content, so
    text escaped with <cp> elements keeps its exact value.
    """
    if len(element) == 0 or _has_mixed_content(element):
        return
    child_indent = "\n" + space * (level + 1)
    element.text = child_indent
    for child in element:
        indent(child, space, level + 1)
        child.tail = child_indent
    element[-1].tail = "\n" + space * level


__all__ = [
    "SIL_NAMESPACE",
    "NSMAP",
    "sil",
    "local_name",
    "is_xml_char",
    "set_ldml_text",
    "set_cdata",
    "element_text",
    "get_attr",
    "child_attr",
    "set_optional_attr",
    "insert_before_special",
    "get_or_create",
    "remove_all",
    "remove_children",
    "ensure_sil_namespace",
    "is_empty",
    "prune_if_empty",
    "indent",
]

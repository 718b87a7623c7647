"""
Collation Sub-Mapper

Reads and writes the <collation> elements nested under <collations>.

A collation has exactly one of three shapes, chosen by the first child of its
<special> block:
    - <sil:inherited base=".." type=".."/>  -> InheritedCollationDefinition
    - <sil:simple>rules</sil:simple>        -> SimpleCollationDefinition
    - <sil:reordered .../>                  -> skipped (not modeled)
    - no special                            -> plain CollationDefinition (ICU rules)

The shape is fixed when the collation is read; writing re-derives it from the
model class.
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional

from lxml import etree

from wsldml.icu_rules import ldml_rules_to_icu
from wsldml.model import (
    CollationDefinition,
    InheritedCollationDefinition,
    SimpleCollationDefinition,
    WritingSystemDefinition,
)
from wsldml.xml_text import (
    element_text,
    get_attr,
    get_or_create,
    insert_before_special,
    local_name,
    prune_if_empty,
    remove_children,
    set_cdata,
    sil,
)

logger = logging.getLogger(__name__)

DEFAULT_COLLATION_TYPE = "standard"
INHERITED = "inherited"
SIMPLE = "simple"
REORDERED = "reordered"

_NEEDS_COMPILING_ATTRS = (sil("needsCompiling"), sil("needscompiling"))


def _needs_compiling(collation_elem: etree._Element) -> bool:
    for name in _NEEDS_COMPILING_ATTRS:
        value = collation_elem.get(name)
        if value is not None:
            return value.strip().lower() in ("true", "1")
    return False


def _first_child_element(element: etree._Element) -> Optional[etree._Element]:
    for child in element:
        if isinstance(child.tag, str):
            return child
    return None


def icu_rules_from_collation_element(collation_elem: etree._Element) -> str:
    """ICU rule text from <cr>, or converted from a legacy <rules> element."""
    cr = collation_elem.find("cr")
    if cr is not None:
        return element_text(cr)
    return ldml_rules_to_icu(collation_elem.find("rules"))


def read_collation(collation_elem: etree._Element) -> Optional[CollationDefinition]:
    """
    Build the collation described by a <collation> element.

    Returns:
        The collation, or None for shapes that are not modeled (reordering)
    """
    collation_type = get_attr(collation_elem, "type")
    special = collation_elem.find("special")
    discriminator = _first_child_element(special) if special is not None else None

    if discriminator is None:
        cd = CollationDefinition(collation_type)
    else:
        shape = local_name(discriminator)
        if shape == INHERITED:
            cd = InheritedCollationDefinition(
                collation_type,
                base_language_tag=get_attr(discriminator, "base"),
                base_type=get_attr(discriminator, "type"),
            )
        elif shape == SIMPLE:
            cd = SimpleCollationDefinition(collation_type, simple_rules=element_text(discriminator))
        else:
            logger.debug("Skipping collation %r with special %r", collation_type, shape)
            return None

    cd.icu_rules = icu_rules_from_collation_element(collation_elem)
    if _needs_compiling(collation_elem):
        # ICU rules are out of sync with the source rules
        ok, message = cd.validate()
        if not ok:
            warnings.warn(f"Collation '{collation_type}' is not valid: {message}", UserWarning)
    else:
        cd.is_valid = True
    return cd


def read_collations(collations_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    ws.clear_collations()
    default_elem = collations_elem.find("defaultCollation")
    default_type = element_text(default_elem).strip() if default_elem is not None else DEFAULT_COLLATION_TYPE
    for collation_elem in collations_elem.findall("collation"):
        cd = read_collation(collation_elem)
        if cd is None:
            continue
        ws.collations.append(cd)
        if cd.type == default_type and ws.default_collation is None:
            ws.default_collation = cd


def _find_collation_element(collations_elem: etree._Element, collation_type: str) -> Optional[etree._Element]:
    for collation_elem in collations_elem.findall("collation"):
        if get_attr(collation_elem, "type") == collation_type:
            return collation_elem
    return None


def write_collation(collations_elem: etree._Element, collation: CollationDefinition) -> etree._Element:
    """Update the matching <collation> in place, or append a new one."""
    collation_elem = _find_collation_element(collations_elem, collation.type)
    if collation_elem is None:
        collation_elem = etree.Element("collation")
        collation_elem.set("type", collation.type)
        insert_before_special(collations_elem, collation_elem)

    for name in _NEEDS_COMPILING_ATTRS:
        collation_elem.attrib.pop(name, None)
    if not collation.is_valid:
        collation_elem.set(sil("needsCompiling"), "true")

    remove_children(collation_elem, lambda e: e.tag == "cr")
    if collation.icu_rules:
        cr = etree.Element("cr")
        set_cdata(cr, collation.icu_rules)
        special = collation_elem.find("special")
        if special is None:
            collation_elem.append(cr)
        else:
            special.addprevious(cr)

    special = collation_elem.find("special")
    if special is not None:
        remove_children(special, lambda e: e.tag in (sil(INHERITED), sil(SIMPLE)))

    if isinstance(collation, InheritedCollationDefinition):
        special = get_or_create(collation_elem, "special")
        inherited = etree.SubElement(special, sil(INHERITED))
        # base and type are required
        inherited.set("base", collation.base_language_tag)
        inherited.set("type", collation.base_type)
        special.insert(0, inherited)
    elif isinstance(collation, SimpleCollationDefinition):
        special = get_or_create(collation_elem, "special")
        simple = etree.SubElement(special, sil(SIMPLE))
        set_cdata(simple, collation.simple_rules)
        special.insert(0, simple)

    prune_if_empty(collation_elem.find("special"))
    return collation_elem


def write_collations(collations_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    # Collations the model does not carry stay; only reordering markers go.
    for special in collations_elem.findall("collation/special"):
        remove_children(special, lambda e: e.tag == sil(REORDERED))
        prune_if_empty(special)

    if ws.default_collation is not None:
        default_elem = collations_elem.find("defaultCollation")
        if default_elem is None:
            default_elem = etree.Element("defaultCollation")
            collations_elem.insert(0, default_elem)
        default_elem.text = ws.default_collation.type

    for collation in ws.collations:
        write_collation(collations_elem, collation)


__all__ = [
    "DEFAULT_COLLATION_TYPE",
    "icu_rules_from_collation_element",
    "read_collation",
    "read_collations",
    "write_collation",
    "write_collations",
]

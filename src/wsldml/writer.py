"""
LDML Writer (WritingSystemDefinition -> LDML tree).

Updates an <ldml> tree in place from a writing system. The tree is either a
fresh skeleton or the previous version of the file.

Round-trip strategy (per section):
    1. Remove the sub-elements the mapper understands, by name
    2. Regenerate them from the model
    3. Prune the section if it ended up empty

Anything the mapper has no vocabulary for is never visited, so it rides
through unchanged.
"""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Optional, Tuple

from lxml import etree

from wsldml import unicode_set
from wsldml.codecs import (
    FONT_ENGINES,
    FONT_ROLES,
    KEYBOARD_FORMATS,
    PARAGRAPH_CONTINUE_TYPES,
    PUNCTUATION_CONTEXTS,
    QUOTATION_MARKING_TYPES,
    SPELLCHECK_FORMATS,
)
from wsldml.collation import write_collations
from wsldml.errors import LdmlFormatError
from wsldml.language_tag import split_language_tag
from wsldml.model import (
    FontDefinition,
    FontEngines,
    FontRoles,
    QuotationMarkingSystemType,
    QuotationParagraphContinueType,
    WritingSystemDefinition,
)
from wsldml.reader import MAIN_CHARACTER_SET, NUMERIC_CHARACTER_SET, RIGHT_TO_LEFT, ROOT_TAG
from wsldml.xml_text import (
    element_text,
    get_attr,
    get_or_create,
    insert_before_special,
    prune_if_empty,
    remove_children,
    set_ldml_text,
    set_optional_attr,
    sil,
)

logger = logging.getLogger(__name__)

GENERATION_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LEFT_TO_RIGHT = "left-to-right"
DEFAULT_NUMBERING_SYSTEM_ID = "standard"

# Exemplar sets with a home in base LDML; every other type goes to sil:exemplarCharacters
STANDARD_CHARACTER_SETS = ("main", "auxiliary", "index", "punctuation")

IDENTITY_ELEMENTS = ("version", "generation", "language", "script", "territory", "variant")
QUOTATION_ELEMENTS = ("quotationStart", "quotationEnd", "alternateQuotationStart", "alternateQuotationEnd")

# Top-level element order of the LDML DTD, used to place newly created sections
SECTION_ORDER = (
    "identity", "alias", "fallback", "localeDisplayNames", "layout", "contextTransforms",
    "characters", "delimiters", "measurement", "dates", "numbers", "units", "listPatterns",
    "collations", "posix", "segmentations", "rbnf", "annotations", "metadata", "references",
    "special",
)

Subtags = Tuple[str, str, str, str]


def _bool_attr(value: bool) -> str:
    return "true" if value else "false"


def get_or_create_section(root: etree._Element, tag: str) -> etree._Element:
    """Find a top-level section, creating it at its DTD position when missing."""
    section = root.find(tag)
    if section is not None:
        return section
    section = etree.Element(tag)
    position = SECTION_ORDER.index(tag)
    for child in root:
        if isinstance(child.tag, str) and child.tag in SECTION_ORDER[position + 1:]:
            child.addprevious(section)
            return section
    root.append(section)
    return section


# ======================================================================
# Identity
# ======================================================================

def write_identity(identity_elem: etree._Element, ws: WritingSystemDefinition,
                   legacy_subtags: Optional[Subtags] = None) -> None:
    """
    Regenerate version, generation, tag subtags and sil:identity.

    Args:
        legacy_subtags: Raw legacy private-use subtags to write verbatim
            instead of the model's canonical ones
    """
    remove_children(identity_elem, lambda e: e.tag in IDENTITY_ELEMENTS)

    # version is required by the schema, even with an empty number
    version_elem = insert_before_special(identity_elem, etree.Element("version"))
    version_elem.set("number", ws.version_number)
    if ws.version_description:
        set_ldml_text(version_elem, ws.version_description)

    generation_elem = insert_before_special(identity_elem, etree.Element("generation"))
    generation_elem.set("date", ws.date_modified.astimezone(timezone.utc).strftime(GENERATION_DATE_FORMAT))

    if legacy_subtags is not None:
        language, script, region, variant = legacy_subtags
    else:
        language, script, region, variant = split_language_tag(ws.language_tag)

    # language is required, the rest only when present
    for tag, value in (("language", language), ("script", script), ("territory", region), ("variant", variant)):
        if value or tag == "language":
            subtag_elem = insert_before_special(identity_elem, etree.Element(tag))
            subtag_elem.set("type", value)

    variant_name = ws.variants[0].name if ws.variants else ""
    special = identity_elem.find("special")
    sil_identity = special.find(sil("identity")) if special is not None else None
    if sil_identity is None and (ws.windows_lcid or ws.default_region or variant_name):
        special = get_or_create(identity_elem, "special")
        sil_identity = get_or_create(special, sil("identity"))
    if sil_identity is not None:
        # Other attributes (uid, source, ...) are kept as found
        set_optional_attr(sil_identity, "windowsLCID", ws.windows_lcid)
        set_optional_attr(sil_identity, "defaultRegion", ws.default_region)
        set_optional_attr(sil_identity, "variantName", variant_name)
        prune_if_empty(sil_identity)
        prune_if_empty(special)


# ======================================================================
# Characters
# ======================================================================

def write_characters(characters_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    remove_children(characters_elem, lambda e: e.tag == "exemplarCharacters")
    special = characters_elem.find("special")
    if special is not None:
        remove_children(special, lambda e: e.tag == sil("exemplarCharacters"))

    for csd in ws.character_sets:
        pattern = unicode_set.to_pattern(csd.characters)
        if csd.type in STANDARD_CHARACTER_SETS:
            exemplar_elem = insert_before_special(characters_elem, etree.Element("exemplarCharacters"))
            # main is the implied default type
            if csd.type != MAIN_CHARACTER_SET:
                exemplar_elem.set("type", csd.type)
        else:
            special = get_or_create(characters_elem, "special")
            exemplar_elem = etree.SubElement(special, sil("exemplarCharacters"))
            exemplar_elem.set("type", csd.type)
        set_ldml_text(exemplar_elem, pattern)

    prune_if_empty(characters_elem.find("special"))


# ======================================================================
# Delimiters
# ======================================================================

def _is_dedicated_quotation(qm) -> bool:
    return qm.level in (1, 2) and qm.type == QuotationMarkingSystemType.NORMAL


def _write_quotation_pair(delimiters_elem, start_tag, end_tag, qm) -> None:
    if qm is None:
        return
    set_ldml_text(insert_before_special(delimiters_elem, etree.Element(start_tag)), qm.open)
    set_ldml_text(insert_before_special(delimiters_elem, etree.Element(end_tag)), qm.close)


def write_delimiters(delimiters_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    remove_children(delimiters_elem, lambda e: e.tag in QUOTATION_ELEMENTS)
    _write_quotation_pair(delimiters_elem, "quotationStart", "quotationEnd", ws.get_quotation_mark(1))
    _write_quotation_pair(delimiters_elem, "alternateQuotationStart", "alternateQuotationEnd",
                          ws.get_quotation_mark(2))

    special = delimiters_elem.find("special")
    if special is not None:
        for container in special.findall(sil("matched-pairs")):
            remove_children(container, lambda e: e.tag == sil("matched-pair"))
        for container in special.findall(sil("punctuation-patterns")):
            remove_children(container, lambda e: e.tag == sil("punctuation-pattern"))
        for container in special.findall(sil("quotation-marks")):
            # Only unlabeled and narrative entries are regenerated from the model
            remove_children(container, lambda e: e.tag == sil("quotation")
                            and get_attr(e, "type") in ("", "narrative"))
            container.attrib.pop("paraContinueType", None)

    if ws.matched_pairs:
        special = get_or_create(delimiters_elem, "special")
        container = get_or_create(special, sil("matched-pairs"))
        for mp in ws.matched_pairs:
            pair_elem = etree.SubElement(container, sil("matched-pair"))
            pair_elem.set("open", mp.open)
            pair_elem.set("close", mp.close)
            pair_elem.set("paraClose", _bool_attr(mp.paragraph_close))

    if ws.punctuation_patterns:
        special = get_or_create(delimiters_elem, "special")
        container = get_or_create(special, sil("punctuation-patterns"))
        for pp in ws.punctuation_patterns:
            pattern_elem = etree.SubElement(container, sil("punctuation-pattern"))
            pattern_elem.set("pattern", pp.pattern)
            pattern_elem.set("context", PUNCTUATION_CONTEXTS.encode(pp.context))

    generic = [qm for qm in ws.quotation_marks if not _is_dedicated_quotation(qm)]
    continue_type = ws.quotation_paragraph_continue_type
    if generic or continue_type != QuotationParagraphContinueType.NONE:
        special = get_or_create(delimiters_elem, "special")
        container = get_or_create(special, sil("quotation-marks"))
        if continue_type != QuotationParagraphContinueType.NONE:
            container.set("paraContinueType", PARAGRAPH_CONTINUE_TYPES.encode(continue_type))
        for qm in generic:
            quotation_elem = etree.SubElement(container, sil("quotation"))
            # open and level are required
            quotation_elem.set("open", qm.open)
            set_optional_attr(quotation_elem, "close", qm.close)
            set_optional_attr(quotation_elem, "continue", qm.continue_)
            quotation_elem.set("level", str(qm.level))
            set_optional_attr(quotation_elem, "type", QUOTATION_MARKING_TYPES.encode(qm.type))

    special = delimiters_elem.find("special")
    if special is not None:
        for tag in ("matched-pairs", "punctuation-patterns", "quotation-marks"):
            for container in special.findall(sil(tag)):
                prune_if_empty(container)
        prune_if_empty(special)


# ======================================================================
# Layout / Numbers
# ======================================================================

def write_layout(layout_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    orientation = layout_elem.find("orientation")
    if orientation is not None:
        remove_children(orientation, lambda e: e.tag == "characterOrder")
        orientation.attrib.pop("characterOrder", None)

    # Written even when it is the default, as the reference distribution does
    orientation = get_or_create(layout_elem, "orientation", before_special=True)
    character_order = etree.Element("characterOrder")
    orientation.insert(0, character_order)
    character_order.text = RIGHT_TO_LEFT if ws.right_to_left_script else LEFT_TO_RIGHT


def write_numbers(numbers_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    removed_ids = set()
    for system in numbers_elem.findall("numberingSystem"):
        if get_attr(system, "type") == NUMERIC_CHARACTER_SET:
            removed_ids.add(get_attr(system, "id"))
    remove_children(numbers_elem, lambda e: e.tag == "numberingSystem"
                    and get_attr(e, "type") == NUMERIC_CHARACTER_SET)

    default_elem = numbers_elem.find("defaultNumberingSystem")
    csd = ws.get_character_set(NUMERIC_CHARACTER_SET)
    if csd is None:
        if default_elem is not None and element_text(default_elem).strip() in removed_ids:
            remove_children(numbers_elem, lambda e: e is default_elem)
        return

    remaining_ids = {get_attr(system, "id") for system in numbers_elem.findall("numberingSystem")}
    numbering_id = element_text(default_elem).strip() if default_elem is not None else ""
    if not numbering_id or numbering_id in remaining_ids:
        numbering_id = DEFAULT_NUMBERING_SYSTEM_ID
    if default_elem is None:
        default_elem = etree.Element("defaultNumberingSystem")
        numbers_elem.insert(0, default_elem)
    default_elem.text = numbering_id

    system = insert_before_special(numbers_elem, etree.Element("numberingSystem"))
    system.set("id", numbering_id)
    system.set("type", NUMERIC_CHARACTER_SET)
    system.set("digits", "".join(csd.characters))


# ======================================================================
# External resources
# ======================================================================

def _write_urls(parent: etree._Element, urls) -> None:
    for url in urls:
        set_ldml_text(etree.SubElement(parent, sil("url")), url)


def _write_font(resources_elem: etree._Element, font: FontDefinition) -> None:
    font_elem = etree.SubElement(resources_elem, sil("font"))
    font_elem.set("name", font.name)
    if font.roles != FontRoles.DEFAULT:
        font_elem.set("types", FONT_ROLES.encode_list(font.roles))
    if font.default_relative_size != 1.0:
        font_elem.set("size", f"{font.default_relative_size:g}")
    set_optional_attr(font_elem, "minversion", font.min_version)
    set_optional_attr(font_elem, "features", font.features)
    set_optional_attr(font_elem, "lang", font.language)
    set_optional_attr(font_elem, "otlang", font.open_type_language)
    set_optional_attr(font_elem, "subset", font.subset)
    if font.engines != (FontEngines.OPEN_TYPE | FontEngines.GRAPHITE):
        font_elem.set("engines", FONT_ENGINES.encode_list(font.engines))
    _write_urls(font_elem, font.urls)


def write_external_resources(root: etree._Element, ws: WritingSystemDefinition) -> None:
    special = next((s for s in root.findall("special") if s.find(sil("external-resources")) is not None), None)
    if special is None:
        if not (ws.fonts or ws.spell_check_dictionaries or ws.known_keyboards):
            return
        special = etree.SubElement(root, "special")

    resources_elem = get_or_create(special, sil("external-resources"))
    remove_children(resources_elem, lambda e: e.tag in (sil("font"), sil("spellcheck"), sil("kbd")))

    for font in ws.fonts:
        _write_font(resources_elem, font)

    for scd in ws.spell_check_dictionaries:
        spellcheck_elem = etree.SubElement(resources_elem, sil("spellcheck"))
        spellcheck_elem.set("type", SPELLCHECK_FORMATS.encode(scd.format))
        _write_urls(spellcheck_elem, scd.urls)

    for keyboard in ws.known_keyboards:
        if not keyboard.id:
            continue
        keyboard_elem = etree.SubElement(resources_elem, sil("kbd"))
        keyboard_elem.set("id", keyboard.id)
        keyboard_elem.set("type", KEYBOARD_FORMATS.encode(keyboard.format))
        _write_urls(keyboard_elem, keyboard.urls)

    prune_if_empty(resources_elem)
    prune_if_empty(special)


# ======================================================================
# Document
# ======================================================================

def write_ldml(root: etree._Element, ws: WritingSystemDefinition, legacy_subtags: Optional[Subtags] = None) -> None:
    """
    Update an <ldml> element in place from `ws`.

    Args:
        root: Root of the merge base (a fresh <ldml/> when there is no prior file)
        ws: Writing system to persist (only read)
        legacy_subtags: Raw identity subtags to keep in legacy form, if any

    Raises:
        LdmlFormatError: If root is not <ldml>
    """
    if root.tag != ROOT_TAG:
        raise LdmlFormatError("Unable to update writing system definition: Missing <ldml> tag.")

    sections = (
        ("identity", lambda elem: write_identity(elem, ws, legacy_subtags)),
        ("characters", lambda elem: write_characters(elem, ws)),
        ("delimiters", lambda elem: write_delimiters(elem, ws)),
        ("layout", lambda elem: write_layout(elem, ws)),
        ("numbers", lambda elem: write_numbers(elem, ws)),
        ("collations", lambda elem: write_collations(elem, ws)),
    )
    for tag, write_section in sections:
        logger.debug("Writing <%s>", tag)
        section_elem = get_or_create_section(root, tag)
        write_section(section_elem)
        prune_if_empty(section_elem)

    write_external_resources(root, ws)


__all__ = [
    "get_or_create_section",
    "write_identity",
    "write_characters",
    "write_delimiters",
    "write_layout",
    "write_numbers",
    "write_external_resources",
    "write_ldml",
]

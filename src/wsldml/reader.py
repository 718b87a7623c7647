"""
LDML Reader (parsed LDML tree -> WritingSystemDefinition).

Walks the known top-level sections of an <ldml> element and fills in the
writing system:
    identity, characters, delimiters, layout, numbers, collations and the
    top-level <special> blocks carrying <sil:external-resources>

Sections that are absent leave the corresponding model state untouched.

Failure policy:
    - A root element other than <ldml> raises LdmlFormatError
    - Malformed values (exemplar patterns, booleans, numbers) raise LdmlFormatError
    - Unknown codec tokens raise KeyError from the codec table
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import List, Optional, Tuple

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
from wsldml.collation import read_collations
from wsldml.errors import LdmlFormatError
from wsldml.language_tag import LanguageTagNormalizer, is_legacy_private_use
from wsldml.model import (
    CharacterSetDefinition,
    FontDefinition,
    KeyboardDefinition,
    MatchedPair,
    PunctuationPattern,
    QuotationMark,
    QuotationMarkingSystemType,
    SpellCheckDictionaryDefinition,
    WritingSystemDefinition,
    join_subtags,
)
from wsldml.xml_text import child_attr, element_text, get_attr, sil

logger = logging.getLogger(__name__)

ROOT_TAG = "ldml"
UNEXPANDED_DATE_KEYWORD = "$Date$"
RIGHT_TO_LEFT = "right-to-left"
MAIN_CHARACTER_SET = "main"
NUMERIC_CHARACTER_SET = "numeric"

# CVS keyword form: "$Date: 2008/06/18 22:52:35 $"
_CVS_DATE_RE = re.compile(r"^\$Date: (\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}) \$$")


def parse_generation_date(text: str) -> datetime:
    """
    Parse a <generation date="..."> value into a UTC datetime.

    Tries ISO-8601 first, then the CVS keyword form. Empty, unexpanded
    ("$Date$") or unparsable values yield the current time.
    """
    text = (text or "").strip()
    now = datetime.now(timezone.utc)
    if not text or text == UNEXPANDED_DATE_KEYWORD:
        return now
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        match = _CVS_DATE_RE.match(text)
        if match is None:
            logger.debug("Unparsable generation date %r, using current time", text)
            return now
        parsed = datetime.strptime(match.group(1), "%Y/%m/%d %H:%M:%S")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse an xs:boolean attribute value."""
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise LdmlFormatError(f"Invalid boolean value: {value!r}")


def _parse_int(value: Optional[str], default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise LdmlFormatError(f"Invalid integer value: {value!r}") from None


def _parse_float(value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise LdmlFormatError(f"Invalid number value: {value!r}") from None


def _urls(element: etree._Element) -> List[str]:
    return [element_text(url) for url in element.findall(sil("url"))]


# ======================================================================
# Identity
# ======================================================================

def identity_subtags(identity_elem: etree._Element) -> Tuple[str, str, str, str]:
    """Raw (language, script, region, variant) type attributes of an identity section."""
    return (
        child_attr(identity_elem, "language", "type"),
        child_attr(identity_elem, "script", "type"),
        child_attr(identity_elem, "territory", "type"),
        child_attr(identity_elem, "variant", "type"),
    )


def read_identity(identity_elem: etree._Element, ws: WritingSystemDefinition,
                  normalizer: LanguageTagNormalizer) -> bool:
    """
    Read the identity section.

    Returns:
        True when the document uses the legacy private-use tag convention
    """
    version_elem = identity_elem.find("version")
    if version_elem is not None:
        ws.version_number = get_attr(version_elem, "number")
        ws.version_description = element_text(version_elem)

    generation_elem = identity_elem.find("generation")
    if generation_elem is not None:
        ws.date_modified = parse_generation_date(get_attr(generation_elem, "date"))

    language, script, region, variant = identity_subtags(identity_elem)

    legacy = is_legacy_private_use(language)
    if legacy:
        ws.set_all_components(*normalizer.normalize(language, script, region, variant))
    else:
        ws.set_all_components(language, script, region, variant)

    # The id is whatever the file said, before any normalization
    ws.id = join_subtags(language, script, region, variant)

    sil_identity = identity_elem.find(f"special/{sil('identity')}")
    if sil_identity is not None:
        ws.windows_lcid = get_attr(sil_identity, "windowsLCID")
        ws.default_region = get_attr(sil_identity, "defaultRegion")
        variant_name = get_attr(sil_identity, "variantName")
        if variant_name and ws.variants:
            ws.variants[0].name = variant_name
    return legacy


# ======================================================================
# Characters
# ======================================================================

def _read_exemplar_characters(exemplar_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    set_type = exemplar_elem.get("type", MAIN_CHARACTER_SET)
    try:
        characters = unicode_set.to_characters(element_text(exemplar_elem))
    except ValueError as e:
        raise LdmlFormatError(f"Invalid exemplar characters of type '{set_type}': {e}") from e
    ws.set_character_set(CharacterSetDefinition(set_type, characters))


def read_characters(characters_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    for exemplar_elem in characters_elem.findall("exemplarCharacters"):
        _read_exemplar_characters(exemplar_elem, ws)

    special = characters_elem.find("special")
    if special is not None:
        for exemplar_elem in special.findall(sil("exemplarCharacters")):
            # sil:exemplarCharacters are required to have a type
            if exemplar_elem.get("type"):
                _read_exemplar_characters(exemplar_elem, ws)


# ======================================================================
# Delimiters
# ======================================================================

def _read_quotation_pair(delimiters_elem, start_tag, end_tag, level, ws):
    open_ = element_text(delimiters_elem.find(start_tag))
    close = element_text(delimiters_elem.find(end_tag))
    if open_ or close:
        ws.quotation_marks.append(QuotationMark(open_, close, "", level, QuotationMarkingSystemType.NORMAL))


def read_delimiters(delimiters_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    _read_quotation_pair(delimiters_elem, "quotationStart", "quotationEnd", 1, ws)
    _read_quotation_pair(delimiters_elem, "alternateQuotationStart", "alternateQuotationEnd", 2, ws)

    special = delimiters_elem.find("special")
    if special is None:
        return

    for pair_elem in special.findall(f"{sil('matched-pairs')}/{sil('matched-pair')}"):
        ws.matched_pairs.append(MatchedPair(
            get_attr(pair_elem, "open"),
            get_attr(pair_elem, "close"),
            parse_bool(pair_elem.get("paraClose")),
        ))

    for pattern_elem in special.findall(f"{sil('punctuation-patterns')}/{sil('punctuation-pattern')}"):
        ws.punctuation_patterns.append(PunctuationPattern(
            get_attr(pattern_elem, "pattern"),
            PUNCTUATION_CONTEXTS.decode(get_attr(pattern_elem, "context")),
        ))

    quotations_elem = special.find(sil("quotation-marks"))
    if quotations_elem is not None:
        ws.quotation_paragraph_continue_type = PARAGRAPH_CONTINUE_TYPES.decode(
            get_attr(quotations_elem, "paraContinueType"))
        for quotation_elem in quotations_elem.findall(sil("quotation")):
            level = _parse_int(quotation_elem.get("level"), 1)
            if level < 1:
                raise LdmlFormatError(f"Invalid quotation level: {level}")
            ws.quotation_marks.append(QuotationMark(
                get_attr(quotation_elem, "open"),
                get_attr(quotation_elem, "close"),
                get_attr(quotation_elem, "continue"),
                level,
                QUOTATION_MARKING_TYPES.decode(get_attr(quotation_elem, "type")),
            ))


# ======================================================================
# Layout / Numbers
# ======================================================================

def read_layout(layout_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    # Only horizontal character order is modeled: anything but right-to-left
    # (including vertical orders) is treated as left-to-right.
    orientation = layout_elem.find("orientation")
    if orientation is None:
        character_order = ""
    elif orientation.get("characterOrder") is not None:
        # older LDML carried the order as an attribute
        character_order = orientation.get("characterOrder")
    else:
        character_order = element_text(orientation.find("characterOrder")).strip()
    ws.right_to_left_script = character_order == RIGHT_TO_LEFT


def read_numbers(numbers_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    default_elem = numbers_elem.find("defaultNumberingSystem")
    if default_elem is None:
        return
    numbering_id = element_text(default_elem).strip()
    for system in numbers_elem.findall("numberingSystem"):
        if get_attr(system, "id") == numbering_id and get_attr(system, "type") == NUMERIC_CHARACTER_SET:
            ws.set_character_set(
                CharacterSetDefinition(NUMERIC_CHARACTER_SET, list(get_attr(system, "digits"))))
            return
    logger.debug("Default numbering system %r not found among numeric systems", numbering_id)


# ======================================================================
# External resources
# ======================================================================

def _read_fonts(resources_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    for font_elem in resources_elem.findall(sil("font")):
        name = get_attr(font_elem, "name")
        if not name:
            continue
        font = FontDefinition(name)
        font.roles = FONT_ROLES.decode_list(get_attr(font_elem, "types"))
        font.default_relative_size = _parse_float(font_elem.get("size"), 1.0)
        font.min_version = get_attr(font_elem, "minversion")
        font.features = get_attr(font_elem, "features")
        font.language = get_attr(font_elem, "lang")
        font.open_type_language = get_attr(font_elem, "otlang")
        engines = get_attr(font_elem, "engines")
        if engines.strip():
            font.engines = FONT_ENGINES.decode_list(engines)
        font.subset = get_attr(font_elem, "subset").lower()
        font.urls = _urls(font_elem)
        ws.fonts.append(font)


def _read_spellchecks(resources_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    for spellcheck_elem in resources_elem.findall(sil("spellcheck")):
        spellcheck_type = get_attr(spellcheck_elem, "type")
        if not spellcheck_type:
            continue
        ws.spell_check_dictionaries.append(SpellCheckDictionaryDefinition(
            ws.language_tag,
            SPELLCHECK_FORMATS.decode(spellcheck_type),
            _urls(spellcheck_elem),
        ))


def _read_keyboards(resources_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    for keyboard_elem in resources_elem.findall(sil("kbd")):
        keyboard_id = get_attr(keyboard_elem, "id")
        if not keyboard_id:
            continue
        ws.known_keyboards.append(KeyboardDefinition(
            keyboard_id,
            KEYBOARD_FORMATS.decode(get_attr(keyboard_elem, "type")),
            _urls(keyboard_elem),
        ))


def read_top_level_special(special_elem: etree._Element, ws: WritingSystemDefinition) -> None:
    resources_elem = special_elem.find(sil("external-resources"))
    if resources_elem is not None:
        _read_fonts(resources_elem, ws)
        _read_spellchecks(resources_elem, ws)
        _read_keyboards(resources_elem, ws)


# ======================================================================
# Document
# ======================================================================

def read_ldml(root: etree._Element, ws: WritingSystemDefinition, normalizer: LanguageTagNormalizer) -> bool:
    """
    Populate `ws` from an <ldml> element.

    Args:
        root: The document's root element
        ws: Writing system to fill in (mutated in place)
        normalizer: Converts legacy private-use identity subtags

    Returns:
        True when the identity used the legacy private-use convention

    Raises:
        LdmlFormatError: If root is not <ldml> or a value is malformed
        KeyError: If an attribute token is unknown to its codec table
    """
    if root.tag != ROOT_TAG:
        raise LdmlFormatError("Unable to load writing system definition: Missing <ldml> tag.")

    legacy = False
    identity_elem = root.find("identity")
    if identity_elem is not None:
        legacy = read_identity(identity_elem, ws, normalizer)

    sections = (
        ("characters", read_characters),
        ("delimiters", read_delimiters),
        ("layout", read_layout),
        ("numbers", read_numbers),
        ("collations", read_collations),
    )
    for tag, read_section in sections:
        section_elem = root.find(tag)
        if section_elem is not None:
            logger.debug("Reading <%s>", tag)
            read_section(section_elem, ws)

    for special_elem in root.findall("special"):
        read_top_level_special(special_elem, ws)

    ws.store_id = ""
    ws.accept_changes()
    return legacy


__all__ = [
    "parse_generation_date",
    "parse_bool",
    "identity_subtags",
    "read_identity",
    "read_characters",
    "read_delimiters",
    "read_layout",
    "read_numbers",
    "read_top_level_special",
    "read_ldml",
]

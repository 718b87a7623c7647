"""
Example writing system builder for demos and tests.

Builds a fully populated writing system for a Latin-script orthography with
IPA-style private-use variant, touching every section the LDML mapper writes:
identity, exemplar characters, delimiters, numbers, collations and external
resources.
"""
from datetime import datetime, timezone

from wsldml.model import (
    CharacterSetDefinition,
    CollationDefinition,
    FontDefinition,
    FontEngines,
    FontRoles,
    InheritedCollationDefinition,
    KeyboardDefinition,
    KeyboardFormat,
    MatchedPair,
    PunctuationPattern,
    PunctuationPatternContext,
    QuotationMark,
    QuotationMarkingSystemType,
    QuotationParagraphContinueType,
    SimpleCollationDefinition,
    SpellCheckDictionaryDefinition,
    SpellCheckDictionaryFormat,
    WritingSystemDefinition,
)


def build_example_writing_system(language: str = "en", region: str = "US") -> WritingSystemDefinition:
    ws = WritingSystemDefinition()
    ws.set_all_components(language, "Latn", region, "x-etic")
    ws.variants[0].name = "Phonetic"
    ws.version_number = "1.2"
    ws.version_description = "Example orthography"
    ws.date_modified = datetime(2024, 3, 1, 12, 30, 0, tzinfo=timezone.utc)
    ws.windows_lcid = "1033"
    ws.default_region = region

    # Exemplar characters: standard types plus one custom type
    ws.set_character_set(CharacterSetDefinition("main", list("abcdefghijklmnopqrstuvwxyz")))
    ws.set_character_set(CharacterSetDefinition("auxiliary", ["á", "é", "ch"]))
    ws.set_character_set(CharacterSetDefinition("index", list("ABC")))
    ws.set_character_set(CharacterSetDefinition("punctuation", ["!", ",", ".", "?"]))
    ws.set_character_set(CharacterSetDefinition("numeric", list("0123456789")))
    ws.set_character_set(CharacterSetDefinition("footnotes", ["*", "†"]))

    # Delimiters
    ws.quotation_marks = [
        QuotationMark("“", "”", "", 1),
        QuotationMark("‘", "’", "", 2),
        QuotationMark("«", "»", "«", 3),
        QuotationMark("—", "", "", 1, QuotationMarkingSystemType.NARRATIVE),
    ]
    ws.quotation_paragraph_continue_type = QuotationParagraphContinueType.OUTERMOST
    ws.matched_pairs = [MatchedPair("(", ")", True), MatchedPair("[", "]")]
    ws.punctuation_patterns = [
        PunctuationPattern("_."),
        PunctuationPattern("¿_", PunctuationPatternContext.INITIAL),
    ]

    # Collations: one of each shape, simple is the default
    standard = SimpleCollationDefinition("standard", simple_rules="a A\nb B\nc C")
    standard.validate()
    ws.collations = [
        standard,
        InheritedCollationDefinition("phonebook", base_language_tag="de", base_type="phonebook"),
        CollationDefinition("search", icu_rules="&a < z", is_valid=True),
    ]
    ws.default_collation = standard

    # External resources
    ws.fonts = [
        FontDefinition("Charis SIL", roles=FontRoles.DEFAULT | FontRoles.EMPHASIS, min_version="6.0",
                       features="smcp=1", urls=["https://example.org/fonts/CharisSIL.ttf"]),
        FontDefinition("Andika", roles=FontRoles.HEADING, default_relative_size=1.5,
                       engines=FontEngines.GRAPHITE),
    ]
    ws.spell_check_dictionaries = [
        SpellCheckDictionaryDefinition(ws.language_tag, SpellCheckDictionaryFormat.HUNSPELL,
                                       ["https://example.org/dict/en.dic"]),
    ]
    ws.known_keyboards = [
        KeyboardDefinition("basic_kbden", KeyboardFormat.COMPILED_KEYMAN, ["https://example.org/kbd/basic.kmx"]),
    ]
    return ws

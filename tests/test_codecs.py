"""
Tests for the Attribute Codec Tables.

These tests verify:
    - Known tokens decode to their enumeration values
    - Unknown tokens fail loudly with KeyError
    - Empty-string defaults are the only silent fallback
    - Bit-flag lists round-trip in both directions
"""

from itertools import combinations

import pytest

from wsldml.codecs import (
    FONT_ENGINES,
    FONT_ROLES,
    KEYBOARD_FORMATS,
    PARAGRAPH_CONTINUE_TYPES,
    PUNCTUATION_CONTEXTS,
    QUOTATION_MARKING_TYPES,
    SPELLCHECK_FORMATS,
    AttributeCodec,
)
from wsldml.model import (
    FontEngines,
    FontRoles,
    KeyboardFormat,
    PunctuationPatternContext,
    QuotationMarkingSystemType,
    QuotationParagraphContinueType,
    SpellCheckDictionaryFormat,
)


PLAIN_CODECS = [
    (SPELLCHECK_FORMATS, SpellCheckDictionaryFormat),
    (KEYBOARD_FORMATS, KeyboardFormat),
    (PUNCTUATION_CONTEXTS, PunctuationPatternContext),
    (PARAGRAPH_CONTINUE_TYPES, QuotationParagraphContinueType),
    (QUOTATION_MARKING_TYPES, QuotationMarkingSystemType),
]


class TestAttributeCodec:
    """Test single-token tables."""

    def test_decode_known_tokens(self):
        """Should decode the documented tokens."""
        assert SPELLCHECK_FORMATS.decode("hunspell") == SpellCheckDictionaryFormat.HUNSPELL
        assert KEYBOARD_FORMATS.decode("kmx") == KeyboardFormat.COMPILED_KEYMAN
        assert PUNCTUATION_CONTEXTS.decode("init") == PunctuationPatternContext.INITIAL
        assert PARAGRAPH_CONTINUE_TYPES.decode("outer") == QuotationParagraphContinueType.OUTERMOST
        assert QUOTATION_MARKING_TYPES.decode("narrative") == QuotationMarkingSystemType.NARRATIVE

    def test_unknown_token_raises_key_error(self):
        """Unknown tokens must not silently default."""
        with pytest.raises(KeyError):
            KEYBOARD_FORMATS.decode("xkb")
        with pytest.raises(LookupError):
            SPELLCHECK_FORMATS.decode("aspell")

    def test_empty_token_without_default_raises(self):
        """A table without an empty-string key rejects an absent attribute."""
        with pytest.raises(KeyError):
            PUNCTUATION_CONTEXTS.decode("")

    def test_empty_token_decodes_to_table_default(self):
        assert SPELLCHECK_FORMATS.decode("") == SpellCheckDictionaryFormat.UNKNOWN
        assert PARAGRAPH_CONTINUE_TYPES.decode("") == QuotationParagraphContinueType.NONE
        assert QUOTATION_MARKING_TYPES.decode("") == QuotationMarkingSystemType.NORMAL

    def test_error_message_names_the_attribute(self):
        with pytest.raises(KeyError) as exc:
            PUNCTUATION_CONTEXTS.decode("middle")
        assert "punctuation pattern context" in str(exc.value)

    @pytest.mark.parametrize("codec,enum_type", PLAIN_CODECS)
    def test_encode_is_total_and_inverse_of_decode(self, codec, enum_type):
        """Every enumeration member encodes, and decodes back to itself."""
        for member in enum_type:
            assert codec.decode(codec.encode(member)) == member

    def test_first_token_wins_for_encode(self):
        """Alias tokens decode but never get written."""
        codec = AttributeCodec("test", (("on", True), ("yes", True), ("off", False)))
        assert codec.decode("yes") is True
        assert codec.encode(True) == "on"
        assert codec.tokens() == ("on", "yes", "off")


class TestFlagCodec:
    """Test space separated bit-flag lists."""

    def test_engines_default_when_absent(self):
        """An absent engines attribute means both engines."""
        assert FONT_ENGINES.decode_list("") == FontEngines.OPEN_TYPE | FontEngines.GRAPHITE
        assert FONT_ENGINES.decode_list("   ") == FontEngines.OPEN_TYPE | FontEngines.GRAPHITE

    def test_engines_decode_list(self):
        assert FONT_ENGINES.decode_list("gr") == FontEngines.GRAPHITE
        assert FONT_ENGINES.decode_list("ot gr") == FontEngines.OPEN_TYPE | FontEngines.GRAPHITE

    def test_roles_default_when_absent(self):
        assert FONT_ROLES.decode_list("") == FontRoles.DEFAULT

    def test_unknown_flag_token_raises(self):
        with pytest.raises(KeyError):
            FONT_ROLES.decode_list("default bold")

    def test_encode_list_uses_table_order(self):
        flags = FontRoles.EMPHASIS | FontRoles.DEFAULT
        assert FONT_ROLES.encode_list(flags) == "default emphasis"

    def test_all_role_combinations_round_trip(self):
        """encode then decode is identity for every non-empty role combination (NONE is lossy, see below)."""
        for bits in range(1, 8):
            flags = FontRoles(bits)
            assert FONT_ROLES.decode_list(FONT_ROLES.encode_list(flags)) == flags

    def test_empty_role_set_reads_back_as_default(self):
        """NONE encodes to an empty list, and an empty list decodes to DEFAULT."""
        assert FONT_ROLES.encode_list(FontRoles.NONE) == ""
        assert FONT_ROLES.decode_list(FONT_ROLES.encode_list(FontRoles.NONE)) == FontRoles.DEFAULT

    def test_empty_engine_set_reads_back_as_both_engines(self):
        assert FONT_ENGINES.decode_list(FONT_ENGINES.encode_list(FontEngines.NONE)) == \
            FontEngines.OPEN_TYPE | FontEngines.GRAPHITE

    def test_all_role_token_lists_round_trip(self):
        """decode then encode is identity for every canonical token list."""
        tokens = ["default", "heading", "emphasis"]
        for size in range(1, len(tokens) + 1):
            for chosen in combinations(tokens, size):
                text = " ".join(chosen)
                assert FONT_ROLES.encode_list(FONT_ROLES.decode_list(text)) == text

"""
Tests for the exemplar character-range notation.
"""

import pytest

from wsldml.unicode_set import to_characters, to_pattern


class TestToCharacters:
    """Test expanding patterns into member lists."""

    def test_single_characters(self):
        assert to_characters("[a b c]") == ["a", "b", "c"]

    def test_whitespace_is_optional(self):
        assert to_characters("[abc]") == ["a", "b", "c"]

    def test_range(self):
        assert to_characters("[a-e]") == ["a", "b", "c", "d", "e"]

    def test_multi_character_members(self):
        """Braced members are grapheme clusters kept whole, after the single code points."""
        assert to_characters("[{ch} a {ng}]") == ["a", "ch", "ng"]

    def test_escapes(self):
        assert to_characters("[\\u0301 \\x{1F600} \\x41 \\-]") == ["-", "A", "\u0301", "\U0001F600"]

    def test_trailing_hyphen_is_literal(self):
        assert to_characters("[a b -]") == ["-", "a", "b"]

    def test_nested_sets_are_unioned(self):
        assert to_characters("[[a-b][x]]") == ["a", "b", "x"]

    def test_property_set(self):
        members = to_characters("[[:Lu:]]")
        assert "A" in members
        assert "Z" in members
        assert "a" not in members

    def test_negation(self):
        assert to_characters("[^\\u0000-\\U0010FFFE]") == ["\U0010FFFF"]

    def test_duplicates_dropped(self):
        assert to_characters("[c a c b a]") == ["a", "b", "c"]

    def test_empty_pattern(self):
        assert to_characters("") == []
        assert to_characters("[]") == []

    def test_brackets_may_be_omitted(self):
        assert to_characters("a b") == ["a", "b"]

    @pytest.mark.parametrize("pattern", [
        "[a",
        "[z-a]",
        "[a] b",
        "[\\p{NoSuchProperty}]",
    ])
    def test_malformed_patterns_raise(self, pattern):
        with pytest.raises(ValueError):
            to_characters(pattern)


class TestToPattern:
    """Test building patterns from member lists."""

    def test_simple_members(self):
        assert to_pattern(["c", "a"]) == "[ac]"

    def test_runs_become_ranges(self):
        assert to_pattern(["a", "b", "c", "d"]) == "[a-d]"

    def test_multi_character_members_are_braced(self):
        assert to_pattern(["a", "ch"]) == "[a{ch}]"

    def test_duplicates_and_empty_members_dropped(self):
        assert to_pattern(["a", "", "a"]) == "[a]"

    def test_empty(self):
        assert to_pattern([]) == "[]"

    def test_pattern_reads_back_to_same_members(self):
        """to_pattern output is always readable by to_characters, syntax and quote characters included."""
        members = ["a", "ch", "'", "-", "[", "\\", " ", "\u0301", "\U0001F600", "a b"]
        read_back = to_characters(to_pattern(members))
        assert len(read_back) == len(members)
        assert set(read_back) == set(members)

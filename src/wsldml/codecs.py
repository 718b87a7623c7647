"""
Attribute Codec Tables

Fixed two-way mappings between short LDML attribute tokens ("ot", "heading",
"hunspell", ...) and the model enumerations.

Each table is built from ONE tuple of (token, value) pairs so the decode and
encode directions cannot drift apart.

Default-key convention:
    - decode() of an unknown token raises KeyError
    - a table may define `empty_default`: the value an absent attribute ("")
      decodes to; this is the only silent default
    - encode() is total over the enumeration's defined members
"""

from __future__ import annotations

from enum import Enum, Flag
from typing import Dict, Generic, Iterable, Tuple, TypeVar

from wsldml.model import (
    FontEngines,
    FontRoles,
    KeyboardFormat,
    PunctuationPatternContext,
    QuotationMarkingSystemType,
    QuotationParagraphContinueType,
    SpellCheckDictionaryFormat,
)

E = TypeVar("E", bound=Enum)

_UNSET = object()


class AttributeCodec(Generic[E]):
    """
    Bidirectional token <-> enum table.

    Args:
        name: Attribute name, used in error messages
        pairs: (token, value) pairs; the first token listed for a value is
            the one encode() produces
        empty_default: Value that "" decodes to, when it differs from the
            pair whose token is ""
    """

    def __init__(self, name: str, pairs: Iterable[Tuple[str, E]], empty_default=_UNSET):
        self.name = name
        self.pairs: Tuple[Tuple[str, E], ...] = tuple(pairs)
        self._decode: Dict[str, E] = {}
        self._encode: Dict[E, str] = {}
        for token, value in self.pairs:
            self._decode.setdefault(token, value)
            self._encode.setdefault(value, token)
        if empty_default is not _UNSET:
            self._decode[""] = empty_default

    def decode(self, token: str) -> E:
        try:
            return self._decode[token]
        except KeyError:
            raise KeyError(f"Unknown {self.name} value: {token!r}") from None

    def encode(self, value: E) -> str:
        return self._encode[value]

    def tokens(self) -> Tuple[str, ...]:
        return tuple(token for token in self._decode if token)


F = TypeVar("F", bound=Flag)


def _is_single_bit(value: Flag) -> bool:
    bits = value.value
    return bits != 0 and bits & (bits - 1) == 0


class FlagCodec(AttributeCodec[F]):
    """Codec for space separated lists of bit flags ("ot gr", "default heading")."""

    def decode_list(self, text: str) -> F:
        tokens = (text or "").split()
        if not tokens:
            return self.decode("")
        result = None
        for token in tokens:
            value = self.decode(token)
            result = value if result is None else result | value
        return result

    def encode_list(self, flags: F) -> str:
        tokens = [
            token
            for token, value in self.pairs
            if token and _is_single_bit(value) and (flags & value) == value
        ]
        return " ".join(tokens)


FONT_ENGINES = FlagCodec(
    "font engine",
    (
        ("", FontEngines.NONE),
        ("ot", FontEngines.OPEN_TYPE),
        ("gr", FontEngines.GRAPHITE),
    ),
    empty_default=FontEngines.OPEN_TYPE | FontEngines.GRAPHITE,
)

FONT_ROLES = FlagCodec(
    "font role",
    (
        ("", FontRoles.NONE),
        ("default", FontRoles.DEFAULT),
        ("heading", FontRoles.HEADING),
        ("emphasis", FontRoles.EMPHASIS),
    ),
    empty_default=FontRoles.DEFAULT,
)

SPELLCHECK_FORMATS = AttributeCodec(
    "spellcheck type",
    (
        ("", SpellCheckDictionaryFormat.UNKNOWN),
        ("hunspell", SpellCheckDictionaryFormat.HUNSPELL),
        ("wordlist", SpellCheckDictionaryFormat.WORDLIST),
        ("lift", SpellCheckDictionaryFormat.LIFT),
    ),
)

KEYBOARD_FORMATS = AttributeCodec(
    "keyboard type",
    (
        ("", KeyboardFormat.UNKNOWN),
        ("kmn", KeyboardFormat.KEYMAN),
        ("kmx", KeyboardFormat.COMPILED_KEYMAN),
        ("msklc", KeyboardFormat.MSKLC),
        ("ldml", KeyboardFormat.LDML),
        ("keylayout", KeyboardFormat.KEYLAYOUT),
    ),
)

# No empty default: a punctuation pattern without a context is an error.
PUNCTUATION_CONTEXTS = AttributeCodec(
    "punctuation pattern context",
    (
        ("init", PunctuationPatternContext.INITIAL),
        ("medial", PunctuationPatternContext.MEDIAL),
        ("final", PunctuationPatternContext.FINAL),
        ("break", PunctuationPatternContext.BREAK),
        ("isolate", PunctuationPatternContext.ISOLATE),
    ),
)

PARAGRAPH_CONTINUE_TYPES = AttributeCodec(
    "paraContinueType",
    (
        ("", QuotationParagraphContinueType.NONE),
        ("all", QuotationParagraphContinueType.ALL),
        ("outer", QuotationParagraphContinueType.OUTERMOST),
        ("inner", QuotationParagraphContinueType.INNERMOST),
    ),
)

QUOTATION_MARKING_TYPES = AttributeCodec(
    "quotation type",
    (
        ("", QuotationMarkingSystemType.NORMAL),
        ("narrative", QuotationMarkingSystemType.NARRATIVE),
    ),
)


__all__ = [
    "AttributeCodec",
    "FlagCodec",
    "FONT_ENGINES",
    "FONT_ROLES",
    "SPELLCHECK_FORMATS",
    "KEYBOARD_FORMATS",
    "PUNCTUATION_CONTEXTS",
    "PARAGRAPH_CONTINUE_TYPES",
    "QUOTATION_MARKING_TYPES",
]

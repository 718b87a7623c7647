"""
Writing System Model Objects

Defines the in-memory writing system that the LDML mapper reads into and
writes from.

These are plain data classes representing:
    - Language tag components (language, script, region, variant)
    - Exemplar character sets
    - Delimiters (quotation marks, matched pairs, punctuation patterns)
    - Collations (plain ICU rules, simple orderings, inherited)
    - External resources (fonts, spell-check dictionaries, keyboards)
    - WritingSystemDefinition (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about XML or LDML element names
        - Never hold None for a tag component ("" means absent)
        - Are owned by the caller, never retained by the mapper
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, Flag
from typing import List, Optional, Tuple

from wsldml.icu_rules import simple_rules_to_icu


class FontEngines(Flag):
    """Rendering engines a font supports."""
    NONE = 0
    OPEN_TYPE = 1
    GRAPHITE = 2


class FontRoles(Flag):
    """Roles a font plays in a writing system."""
    NONE = 0
    DEFAULT = 1
    HEADING = 2
    EMPHASIS = 4


class SpellCheckDictionaryFormat(Enum):
    UNKNOWN = "unknown"
    HUNSPELL = "hunspell"
    WORDLIST = "wordlist"
    LIFT = "lift"


class KeyboardFormat(Enum):
    UNKNOWN = "unknown"
    KEYMAN = "keyman"
    COMPILED_KEYMAN = "compiled_keyman"
    MSKLC = "msklc"
    LDML = "ldml"
    KEYLAYOUT = "keylayout"


class PunctuationPatternContext(Enum):
    INITIAL = "initial"
    MEDIAL = "medial"
    FINAL = "final"
    BREAK = "break"
    ISOLATE = "isolate"


class QuotationParagraphContinueType(Enum):
    """Which quotation marks are repeated at the start of a continuing paragraph."""
    NONE = "none"
    ALL = "all"
    OUTERMOST = "outermost"
    INNERMOST = "innermost"


class QuotationMarkingSystemType(Enum):
    NORMAL = "normal"
    NARRATIVE = "narrative"


@dataclass
class VariantSubtag:
    """
    One variant subtag of a language tag.

    Properties:
        code: The subtag itself (e.g. "fonipa", or "etic" for a private-use part)
        name: Human-readable name (only ever persisted for the first variant)
        is_private_use: True for subtags that follow the "x" singleton
    """

    code: str
    name: str = ""
    is_private_use: bool = False


@dataclass
class CharacterSetDefinition:
    """
    A named group of exemplar characters.

    Standard types are "main", "auxiliary", "index", "punctuation" and
    "numeric"; any other string is a custom type.

    Characters are single code points or grapheme clusters, kept in insertion
    order without duplicates.
    """

    type: str
    characters: List[str] = field(default_factory=list)

    def add(self, character: str) -> None:
        if character not in self.characters:
            self.characters.append(character)


@dataclass
class QuotationMark:
    """
    A quotation mark pair at a given nesting level.

    Level 1 and 2 marks of type NORMAL map to dedicated LDML elements; every
    other (level, type) combination is persisted in the generic list.
    """

    open: str
    close: str = ""
    continue_: str = ""
    level: int = 1
    type: QuotationMarkingSystemType = QuotationMarkingSystemType.NORMAL

    def __post_init__(self):
        if self.level < 1:
            raise ValueError(f"Quotation mark level must be >= 1, got {self.level}")
        self.open = self.open or ""
        self.close = self.close or ""
        self.continue_ = self.continue_ or ""


@dataclass
class MatchedPair:
    open: str
    close: str
    paragraph_close: bool = False


@dataclass
class PunctuationPattern:
    pattern: str
    context: PunctuationPatternContext = PunctuationPatternContext.MEDIAL


@dataclass
class CollationDefinition:
    """
    A collation given directly as ICU rule text.

    Subclasses add the alternative shapes (simple ordering, inherited from
    another language). A collation never changes shape once constructed.

    Properties:
        type: Collation type attribute (e.g. "standard")
        icu_rules: ICU tailoring rules
        is_valid: False when the rules still need compiling
    """

    type: str
    icu_rules: str = ""
    is_valid: bool = False

    def validate(self) -> Tuple[bool, str]:
        """
        Bring icu_rules in line with the collation's source data.

        Returns:
            (is_valid, error message or "")
        """
        self.is_valid = True
        return True, ""


@dataclass
class SimpleCollationDefinition(CollationDefinition):
    """Collation given as a simple ordering: one line per primary group."""

    simple_rules: str = ""

    def validate(self) -> Tuple[bool, str]:
        try:
            self.icu_rules = simple_rules_to_icu(self.simple_rules)
        except ValueError as e:
            self.is_valid = False
            return False, str(e)
        self.is_valid = True
        return True, ""


@dataclass
class InheritedCollationDefinition(CollationDefinition):
    """Collation inherited from another language's LDML."""

    base_language_tag: str = ""
    base_type: str = ""

    def validate(self) -> Tuple[bool, str]:
        # Rules live in the base language's LDML, which is not loaded here.
        self.is_valid = False
        return False, (
            f"Unable to load collation '{self.base_type}' of '{self.base_language_tag}'"
        )


@dataclass
class FontDefinition:
    """A font used to render the writing system."""

    name: str
    roles: FontRoles = FontRoles.DEFAULT
    default_relative_size: float = 1.0
    min_version: str = ""
    features: str = ""
    language: str = ""
    open_type_language: str = ""
    engines: FontEngines = FontEngines.OPEN_TYPE | FontEngines.GRAPHITE
    subset: str = ""
    urls: List[str] = field(default_factory=list)


@dataclass
class SpellCheckDictionaryDefinition:
    language_tag: str
    format: SpellCheckDictionaryFormat = SpellCheckDictionaryFormat.UNKNOWN
    urls: List[str] = field(default_factory=list)


@dataclass
class KeyboardDefinition:
    id: str
    format: KeyboardFormat = KeyboardFormat.UNKNOWN
    urls: List[str] = field(default_factory=list)


def join_subtags(language: str, script: str, region: str, variant: str) -> str:
    """Dash-join the non-empty subtags."""
    return "-".join(part for part in (language, script, region, variant) if part)


def _parse_variants(variant: str) -> List[VariantSubtag]:
    variants = []
    private_use = False
    for part in variant.split("-"):
        if not part:
            continue
        if part.lower() == "x":
            private_use = True
            continue
        variants.append(VariantSubtag(code=part, is_private_use=private_use))
    return variants


def _assemble_variants(variants: List[VariantSubtag]) -> str:
    registered = [v.code for v in variants if not v.is_private_use]
    private = [v.code for v in variants if v.is_private_use]
    if private:
        registered += ["x"] + private
    return "-".join(registered)


@dataclass
class WritingSystemDefinition:
    """
    Root container for a writing system.

    The tag components are exposed as properties so they are never None and
    so that `variants` stays in sync with the variant subtag string.

    Lifecycle:
        - Constructed empty (or populated by the caller)
        - Filled in place by the LDML reader, which then calls accept_changes()
        - Only read by the LDML writer

    INVARIANTS:
        - Character set types are unique (see set_character_set)
        - default_collation, when set, is one of collations
    """

    id: str = ""
    store_id: str = ""
    version_number: str = ""
    version_description: str = ""
    date_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    right_to_left_script: bool = False
    windows_lcid: str = ""
    default_region: str = ""
    variants: List[VariantSubtag] = field(default_factory=list)
    character_sets: List[CharacterSetDefinition] = field(default_factory=list)
    quotation_marks: List[QuotationMark] = field(default_factory=list)
    matched_pairs: List[MatchedPair] = field(default_factory=list)
    punctuation_patterns: List[PunctuationPattern] = field(default_factory=list)
    quotation_paragraph_continue_type: QuotationParagraphContinueType = QuotationParagraphContinueType.NONE
    collations: List[CollationDefinition] = field(default_factory=list)
    fonts: List[FontDefinition] = field(default_factory=list)
    spell_check_dictionaries: List[SpellCheckDictionaryDefinition] = field(default_factory=list)
    known_keyboards: List[KeyboardDefinition] = field(default_factory=list)
    is_changed: bool = False

    def __post_init__(self):
        self._language = ""
        self._script = ""
        self._region = ""
        self._default_collation: Optional[CollationDefinition] = None

    # ------------------------------------------------------------------
    # Language tag components
    # ------------------------------------------------------------------

    @property
    def language(self) -> str:
        return self._language

    @language.setter
    def language(self, value: Optional[str]) -> None:
        self._language = value or ""
        self.is_changed = True

    @property
    def script(self) -> str:
        return self._script

    @script.setter
    def script(self, value: Optional[str]) -> None:
        self._script = value or ""
        self.is_changed = True

    @property
    def region(self) -> str:
        return self._region

    @region.setter
    def region(self, value: Optional[str]) -> None:
        self._region = value or ""
        self.is_changed = True

    @property
    def variant(self) -> str:
        return _assemble_variants(self.variants)

    @variant.setter
    def variant(self, value: Optional[str]) -> None:
        names = {v.code: v.name for v in self.variants}
        self.variants = _parse_variants(value or "")
        for v in self.variants:
            v.name = names.get(v.code, "")
        self.is_changed = True

    @property
    def language_tag(self) -> str:
        return join_subtags(self.language, self.script, self.region, self.variant)

    def set_all_components(self, language: str, script: str, region: str, variant: str) -> None:
        self.language = language
        self.script = script
        self.region = region
        self.variant = variant

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    @property
    def default_collation(self) -> Optional[CollationDefinition]:
        return self._default_collation

    @default_collation.setter
    def default_collation(self, collation: Optional[CollationDefinition]) -> None:
        if collation is not None and not any(c is collation for c in self.collations):
            raise ValueError(f"Collation '{collation.type}' is not part of this writing system")
        self._default_collation = collation
        self.is_changed = True

    def clear_collations(self) -> None:
        self.collations.clear()
        self._default_collation = None

    def get_character_set(self, set_type: str) -> Optional[CharacterSetDefinition]:
        """
        Retrieve a character set by type.

        Returns:
            CharacterSetDefinition or None if not found
        """
        for csd in self.character_sets:
            if csd.type == set_type:
                return csd
        return None

    def set_character_set(self, csd: CharacterSetDefinition) -> None:
        """Add a character set, replacing any existing set of the same type."""
        for i, existing in enumerate(self.character_sets):
            if existing.type == csd.type:
                self.character_sets[i] = csd
                break
        else:
            self.character_sets.append(csd)
        self.is_changed = True

    def get_quotation_mark(
        self, level: int, qm_type: QuotationMarkingSystemType = QuotationMarkingSystemType.NORMAL
    ) -> Optional[QuotationMark]:
        for qm in self.quotation_marks:
            if qm.level == level and qm.type == qm_type:
                return qm
        return None

    def accept_changes(self) -> None:
        """Mark the model as freshly persisted (no pending local edits)."""
        self.is_changed = False

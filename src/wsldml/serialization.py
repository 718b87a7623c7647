"""
Serialization helpers for writing system objects (snapshots, fixtures, debug dumps).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
The LDML mapper is the persistence format; these dicts are for inspecting and
comparing models.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional

import yaml

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


def collation_to_dict(c: CollationDefinition) -> Dict[str, Any]:
    d = {"type": c.type, "icu_rules": c.icu_rules, "is_valid": c.is_valid}
    if isinstance(c, SimpleCollationDefinition):
        d["kind"] = "simple"
        d["simple_rules"] = c.simple_rules
    elif isinstance(c, InheritedCollationDefinition):
        d["kind"] = "inherited"
        d["base_language_tag"] = c.base_language_tag
        d["base_type"] = c.base_type
    else:
        d["kind"] = "plain"
    return d


def collation_from_dict(d: Dict[str, Any]) -> CollationDefinition:
    kind = d.get("kind", "plain")
    common = dict(type=d["type"], icu_rules=d.get("icu_rules", ""), is_valid=d.get("is_valid", False))
    if kind == "simple":
        return SimpleCollationDefinition(simple_rules=d.get("simple_rules", ""), **common)
    if kind == "inherited":
        return InheritedCollationDefinition(
            base_language_tag=d.get("base_language_tag", ""),
            base_type=d.get("base_type", ""),
            **common,
        )
    if kind == "plain":
        return CollationDefinition(**common)
    raise TypeError(f"Unsupported collation dict kind: {kind}")


def font_to_dict(f: FontDefinition) -> Dict[str, Any]:
    return {
        "name": f.name,
        "roles": f.roles.value,
        "default_relative_size": f.default_relative_size,
        "min_version": f.min_version,
        "features": f.features,
        "language": f.language,
        "open_type_language": f.open_type_language,
        "engines": f.engines.value,
        "subset": f.subset,
        "urls": list(f.urls),
    }


def font_from_dict(d: Dict[str, Any]) -> FontDefinition:
    return FontDefinition(
        name=d["name"],
        roles=FontRoles(d.get("roles", FontRoles.DEFAULT.value)),
        default_relative_size=d.get("default_relative_size", 1.0),
        min_version=d.get("min_version", ""),
        features=d.get("features", ""),
        language=d.get("language", ""),
        open_type_language=d.get("open_type_language", ""),
        engines=FontEngines(d.get("engines", (FontEngines.OPEN_TYPE | FontEngines.GRAPHITE).value)),
        subset=d.get("subset", ""),
        urls=d.get("urls", []),
    )


def quotation_mark_to_dict(q: QuotationMark) -> Dict[str, Any]:
    return {"open": q.open, "close": q.close, "continue": q.continue_, "level": q.level, "type": q.type.value}


def quotation_mark_from_dict(d: Dict[str, Any]) -> QuotationMark:
    return QuotationMark(
        open=d["open"],
        close=d.get("close", ""),
        continue_=d.get("continue", ""),
        level=d.get("level", 1),
        type=QuotationMarkingSystemType(d.get("type", "normal")),
    )


def ws_to_dict(ws: WritingSystemDefinition) -> Dict[str, Any]:
    default_collation: Optional[str] = ws.default_collation.type if ws.default_collation is not None else None
    return {
        "id": ws.id,
        "language": ws.language,
        "script": ws.script,
        "region": ws.region,
        "variant": ws.variant,
        "variant_names": [v.name for v in ws.variants],
        "version_number": ws.version_number,
        "version_description": ws.version_description,
        "date_modified": ws.date_modified.isoformat(),
        "right_to_left_script": ws.right_to_left_script,
        "windows_lcid": ws.windows_lcid,
        "default_region": ws.default_region,
        "character_sets": {csd.type: list(csd.characters) for csd in ws.character_sets},
        "quotation_marks": [quotation_mark_to_dict(q) for q in ws.quotation_marks],
        "matched_pairs": [
            {"open": mp.open, "close": mp.close, "paragraph_close": mp.paragraph_close} for mp in ws.matched_pairs
        ],
        "punctuation_patterns": [
            {"pattern": pp.pattern, "context": pp.context.value} for pp in ws.punctuation_patterns
        ],
        "quotation_paragraph_continue_type": ws.quotation_paragraph_continue_type.value,
        "collations": [collation_to_dict(c) for c in ws.collations],
        "default_collation": default_collation,
        "fonts": [font_to_dict(f) for f in ws.fonts],
        "spell_check_dictionaries": [
            {"language_tag": s.language_tag, "format": s.format.value, "urls": list(s.urls)}
            for s in ws.spell_check_dictionaries
        ],
        "known_keyboards": [
            {"id": k.id, "format": k.format.value, "urls": list(k.urls)} for k in ws.known_keyboards
        ],
    }


def ws_from_dict(d: Dict[str, Any]) -> WritingSystemDefinition:
    ws = WritingSystemDefinition(id=d.get("id", ""))
    ws.set_all_components(d.get("language", ""), d.get("script", ""), d.get("region", ""), d.get("variant", ""))
    for variant, name in zip(ws.variants, d.get("variant_names", [])):
        variant.name = name
    ws.version_number = d.get("version_number", "")
    ws.version_description = d.get("version_description", "")
    if d.get("date_modified"):
        ws.date_modified = datetime.fromisoformat(d["date_modified"])
    ws.right_to_left_script = d.get("right_to_left_script", False)
    ws.windows_lcid = d.get("windows_lcid", "")
    ws.default_region = d.get("default_region", "")
    ws.character_sets = [
        CharacterSetDefinition(set_type, list(chars)) for set_type, chars in d.get("character_sets", {}).items()
    ]
    ws.quotation_marks = [quotation_mark_from_dict(q) for q in d.get("quotation_marks", [])]
    ws.matched_pairs = [
        MatchedPair(mp["open"], mp["close"], mp.get("paragraph_close", False)) for mp in d.get("matched_pairs", [])
    ]
    ws.punctuation_patterns = [
        PunctuationPattern(pp["pattern"], PunctuationPatternContext(pp.get("context", "medial")))
        for pp in d.get("punctuation_patterns", [])
    ]
    ws.quotation_paragraph_continue_type = QuotationParagraphContinueType(
        d.get("quotation_paragraph_continue_type", "none"))
    ws.collations = [collation_from_dict(c) for c in d.get("collations", [])]
    default_type = d.get("default_collation")
    if default_type is not None:
        ws.default_collation = next(c for c in ws.collations if c.type == default_type)
    ws.fonts = [font_from_dict(f) for f in d.get("fonts", [])]
    ws.spell_check_dictionaries = [
        SpellCheckDictionaryDefinition(s["language_tag"], SpellCheckDictionaryFormat(s["format"]), s.get("urls", []))
        for s in d.get("spell_check_dictionaries", [])
    ]
    ws.known_keyboards = [
        KeyboardDefinition(k["id"], KeyboardFormat(k["format"]), k.get("urls", []))
        for k in d.get("known_keyboards", [])
    ]
    ws.accept_changes()
    return ws


def ws_to_json(ws: WritingSystemDefinition) -> str:
    return json.dumps(ws_to_dict(ws), sort_keys=True, ensure_ascii=False)


def ws_from_json(s: str) -> WritingSystemDefinition:
    d = json.loads(s)
    return ws_from_dict(d)


def ws_to_yaml(ws: WritingSystemDefinition) -> str:
    return yaml.safe_dump(ws_to_dict(ws), allow_unicode=True)


def ws_from_yaml(s: str) -> WritingSystemDefinition:
    d = yaml.safe_load(s)
    return ws_from_dict(d)

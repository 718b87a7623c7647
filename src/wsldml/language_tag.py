"""
Language tag handling for the LDML identity section.

Two jobs:
    - Split a complete tag into language/script/region/variant parts for
      writing the identity elements
    - Normalize the legacy private-use convention, where the language
      subtag itself is private use ("x-kal", "x-audio"), into canonical parts

The legacy convention was written by older tools that stored tags such as
language="x-kal" script="Latn" variant="x-audio". These become
language="qaa" (the reserved private-use language) with the private-use
parts moved behind the "x" singleton of the variant.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Tuple

from wsldml.errors import UnsupportedConversionError
from wsldml.model import join_subtags

logger = logging.getLogger(__name__)

Subtags = Tuple[str, str, str, str]

PRIVATE_USE_LANGUAGE = "qaa"
PRIVATE_USE_SCRIPT = "Qaaa"
PRIVATE_USE_REGION = "QM"
AUDIO_SCRIPT = "Zxxx"
AUDIO_PRIVATE_USE = "audio"

_SUBTAG_RE = re.compile(r"^[A-Za-z0-9]{1,8}$")
_LANGUAGE_RE = re.compile(r"^[A-Za-z]{2,8}$")
_EXTLANG_RE = re.compile(r"^[A-Za-z]{3}$")
_SCRIPT_RE = re.compile(r"^[A-Za-z]{4}$")
_REGION_RE = re.compile(r"^(?:[A-Za-z]{2}|[0-9]{3})$")


def is_private_use(subtag: str) -> bool:
    """True for a subtag written in private-use form ("x" or "x-...")."""
    lowered = (subtag or "").lower()
    return lowered == "x" or lowered.startswith("x-")


def is_legacy_private_use(language: str) -> bool:
    """Legacy documents put the private-use marker in the language subtag itself."""
    return is_private_use(language)


def _private_parts(subtag: str) -> List[str]:
    return [part for part in subtag.split("-")[1:] if part]


def split_language_tag(tag: str) -> Subtags:
    """
    Split a complete tag into (language, script, region, variant).

    Extended language subtags stay with the language; everything after the
    region (variants, extensions, private use) is returned as the variant.
    """
    parts = [part for part in (tag or "").split("-") if part]
    language = script = region = ""
    i = 0
    if parts and parts[0].lower() != "x":
        language = parts[0]
        i = 1
        while i < len(parts) and i <= 3 and _EXTLANG_RE.match(parts[i]):
            language += "-" + parts[i]
            i += 1
        if i < len(parts) and _SCRIPT_RE.match(parts[i]):
            script = parts[i]
            i += 1
        if i < len(parts) and _REGION_RE.match(parts[i]):
            region = parts[i]
            i += 1
    variant = "-".join(parts[i:])
    return language, script, region, variant


class LanguageTagNormalizer(ABC):
    """Converts raw identity subtags detected as legacy private use into canonical subtags."""

    @abstractmethod
    def normalize(self, language: str, script: str, region: str, variant: str) -> Subtags:
        """
        Returns:
            Canonical (language, script, region, variant)

        Raises:
            UnsupportedConversionError: If the subtags cannot form a valid tag
        """
        raise NotImplementedError


class FlexPrivateUseTagInterpreter(LanguageTagNormalizer):
    """
    Normalizer for the legacy private-use convention.

    Private-use language, script and region subtags are replaced by their
    reserved placeholders (qaa, Qaaa, QM) and their content is appended to
    the private-use section of the variant. Audio writing systems
    ("x-audio") are forced onto the Zxxx script.
    """

    def normalize(self, language: str, script: str, region: str, variant: str) -> Subtags:
        language, script, region, variant = (s or "" for s in (language, script, region, variant))
        private: List[str] = []

        if is_private_use(language):
            private += _private_parts(language)
            language = PRIVATE_USE_LANGUAGE
        if is_private_use(script):
            private += _private_parts(script)
            script = PRIVATE_USE_SCRIPT
        if is_private_use(region):
            private += _private_parts(region)
            region = PRIVATE_USE_REGION

        registered: List[str] = []
        in_private = False
        for part in (p for p in variant.split("-") if p):
            if part.lower() == "x":
                in_private = True
            elif in_private:
                private.append(part)
            else:
                registered.append(part)

        private = _dedupe(private)
        if not private and language == PRIVATE_USE_LANGUAGE:
            raise UnsupportedConversionError(
                f"Private-use tag has no private-use content: "
                f"{join_subtags(language, script, region, variant)!r}"
            )
        if AUDIO_PRIVATE_USE in (p.lower() for p in private):
            script = AUDIO_SCRIPT

        for subtag in registered + private:
            if not _SUBTAG_RE.match(subtag):
                raise UnsupportedConversionError(f"Invalid subtag {subtag!r}")
        if not _LANGUAGE_RE.match(language):
            raise UnsupportedConversionError(f"Invalid language subtag {language!r}")

        new_variant = "-".join(registered + (["x"] + private if private else []))
        logger.debug(
            "Normalized legacy private-use tag to %s",
            join_subtags(language, script, region, new_variant),
        )
        return language, script, region, new_variant


def _dedupe(parts: List[str]) -> List[str]:
    seen = set()
    result = []
    for part in parts:
        if part.lower() not in seen:
            seen.add(part.lower())
            result.append(part)
    return result


__all__ = [
    "LanguageTagNormalizer",
    "FlexPrivateUseTagInterpreter",
    "is_private_use",
    "is_legacy_private_use",
    "split_language_tag",
    "join_subtags",
    "PRIVATE_USE_LANGUAGE",
]

"""
LdmlDataMapper: the public entry point for reading and writing LDML files.

Wraps the section reader and writer with everything around them:
    - Argument checking
    - Parsing (paths, binary or text streams, strings) with a locked-down parser
    - Merging against a prior version of the document
    - Serialization: XML declaration, tab indentation, trailing newline
    - Atomic replacement of destination files

ARCHITECTURAL RULE:
    The mapper keeps one piece of state between calls: the raw identity
    subtags of the last document read in the legacy private-use convention.
    It never keeps a reference to a WritingSystemDefinition.
"""

from __future__ import annotations

import io
import logging
import os
import tempfile
from enum import Enum
from typing import BinaryIO, Optional, TextIO, Tuple, Union

from lxml import etree

from wsldml.errors import LdmlFormatError, MissingArgumentError, UnsupportedConversionError
from wsldml.language_tag import FlexPrivateUseTagInterpreter, LanguageTagNormalizer, is_legacy_private_use
from wsldml.model import WritingSystemDefinition, join_subtags
from wsldml.reader import ROOT_TAG, identity_subtags, read_ldml
from wsldml.writer import write_ldml
from wsldml.xml_text import NSMAP, ensure_sil_namespace, indent

logger = logging.getLogger(__name__)

XML_DECLARATION = b'<?xml version="1.0" encoding="utf-8"?>\n'

Source = Union[str, "os.PathLike[str]", BinaryIO, TextIO]
Subtags = Tuple[str, str, str, str]


class Compatibility(Enum):
    """How identity subtags are written for documents read in legacy form."""
    STRICT = "strict"
    LEGACY_PRIVATE_USE = "legacy_private_use"


def _make_parser() -> etree.XMLParser:
    # Never fetch or expand anything external; keep CDATA so <cr> survives as written
    return etree.XMLParser(
        remove_blank_text=True,
        strip_cdata=False,
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
    )


def parse_document(source) -> etree._ElementTree:
    """
    Parse LDML from a path, a stream or raw bytes.

    Text streams are read whole and handed to the parser as UTF-8.

    Raises:
        LdmlFormatError: If the document is not well-formed XML
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            return etree.fromstring(bytes(source), _make_parser()).getroottree()
        if isinstance(source, io.TextIOBase):
            return etree.fromstring(source.read().encode("utf-8"), _make_parser()).getroottree()
        if isinstance(source, os.PathLike):
            source = os.fspath(source)
        return etree.parse(source, _make_parser())
    except etree.XMLSyntaxError as e:
        raise LdmlFormatError(f"Unable to parse LDML document: {e}") from e


def _atomic_write(path: str, data: bytes) -> None:
    """Write through a temporary file in the same directory, then swap it in."""
    directory = os.path.dirname(os.path.abspath(path))
    fd, temp_path = tempfile.mkstemp(prefix=".wsldml-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "wb") as temp_file:
            temp_file.write(data)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


class LdmlDataMapper:
    """
    Reads LDML into a WritingSystemDefinition and writes one back.

    Args:
        normalizer: Converts legacy private-use identity subtags
            (FlexPrivateUseTagInterpreter by default)
        compatibility: STRICT always writes canonical subtags;
            LEGACY_PRIVATE_USE writes the raw legacy subtags back when they
            still describe the model's tag
        indent: Indentation unit of the written document
    """

    def __init__(self, normalizer: Optional[LanguageTagNormalizer] = None,
                 compatibility: Compatibility = Compatibility.STRICT, indent: str = "\t"):
        self.normalizer = normalizer or FlexPrivateUseTagInterpreter()
        self.compatibility = compatibility
        self.indent = indent
        self._legacy_subtags: Optional[Subtags] = None

    @property
    def is_legacy_private_use(self) -> bool:
        """True when the last document read used the legacy private-use convention."""
        return self._legacy_subtags is not None

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read(self, source: Source, ws: WritingSystemDefinition) -> None:
        """
        Populate `ws` from an LDML file path or stream.

        Raises:
            MissingArgumentError: If source or ws is None
            LdmlFormatError: If the document is malformed or not <ldml>
            UnsupportedConversionError: If legacy subtags cannot be normalized
            KeyError: If an attribute token is unknown
        """
        if source is None:
            raise MissingArgumentError("source")
        if ws is None:
            raise MissingArgumentError("ws")
        logger.debug("Reading LDML from %r", source)
        self._read_root(parse_document(source).getroot(), ws)

    def read_string(self, xml: Union[str, bytes], ws: WritingSystemDefinition) -> None:
        if xml is None:
            raise MissingArgumentError("xml")
        if ws is None:
            raise MissingArgumentError("ws")
        if isinstance(xml, str):
            xml = xml.encode("utf-8")
        self._read_root(parse_document(xml).getroot(), ws)

    def _read_root(self, root: etree._Element, ws: WritingSystemDefinition) -> None:
        legacy = read_ldml(root, ws, self.normalizer)
        self._legacy_subtags = identity_subtags(root.find("identity")) if legacy else None

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(self, destination: Source, ws: WritingSystemDefinition, prior: Optional[Source] = None) -> None:
        """
        Write `ws` as LDML, merged against `prior` when given.

        Args:
            destination: File path (replaced atomically) or writable stream
                (left open)
            ws: Writing system to write
            prior: Previous version of the document (path, stream or bytes);
                everything the mapper does not model is carried over from it.
                It may be the same path as destination.

        Raises:
            MissingArgumentError: If destination or ws is None
            LdmlFormatError: If prior is malformed or not <ldml>
        """
        if destination is None:
            raise MissingArgumentError("destination")
        if ws is None:
            raise MissingArgumentError("ws")
        data = self._render(ws, prior)
        if isinstance(destination, (str, os.PathLike)):
            path = os.fspath(destination)
            logger.debug("Writing LDML to %s", path)
            _atomic_write(path, data)
        elif isinstance(destination, io.TextIOBase):
            destination.write(data.decode("utf-8"))
        else:
            destination.write(data)

    def write_string(self, ws: WritingSystemDefinition, prior: Optional[Union[str, bytes, Source]] = None) -> str:
        """Return `ws` as an LDML string, merged against `prior` when given."""
        if ws is None:
            raise MissingArgumentError("ws")
        if isinstance(prior, str) and prior.lstrip().startswith("<"):
            prior = prior.encode("utf-8")
        return self._render(ws, prior).decode("utf-8")

    def _render(self, ws: WritingSystemDefinition, prior) -> bytes:
        doctype = None
        if prior is None:
            root = etree.Element(ROOT_TAG, nsmap=NSMAP)
        else:
            tree = parse_document(prior)
            root = tree.getroot()
            if root.tag != ROOT_TAG:
                raise LdmlFormatError("Unable to merge writing system definition: Missing <ldml> tag.")
            rebuilt = ensure_sil_namespace(root)
            if rebuilt is not root:
                # the rebuilt root is detached from the original DOCTYPE
                doctype = tree.docinfo.doctype or None
                root = rebuilt

        write_ldml(root, ws, self._legacy_subtags_for(ws, root))
        indent(root, self.indent)
        body = etree.tostring(root.getroottree(), encoding="utf-8", xml_declaration=False, doctype=doctype)
        if not body.endswith(b"\n"):
            body += b"\n"
        return XML_DECLARATION + body

    def _legacy_subtags_for(self, ws: WritingSystemDefinition, root: etree._Element) -> Optional[Subtags]:
        """Raw legacy subtags to write verbatim, or None to write canonical ones."""
        if self.compatibility is not Compatibility.LEGACY_PRIVATE_USE:
            return None
        candidates = []
        identity_elem = root.find("identity")
        if identity_elem is not None:
            candidates.append(identity_subtags(identity_elem))
        if self._legacy_subtags is not None:
            candidates.append(self._legacy_subtags)

        for raw in candidates:
            if not is_legacy_private_use(raw[0]):
                continue
            try:
                normalized = self.normalizer.normalize(*raw)
            except UnsupportedConversionError:
                logger.debug("Legacy subtags %r no longer normalize, writing canonical form", raw)
                continue
            if join_subtags(*normalized) == ws.language_tag:
                return raw
        return None


__all__ = [
    "Compatibility",
    "LdmlDataMapper",
    "parse_document",
]

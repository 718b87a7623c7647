"""
Tests for reading LDML into a WritingSystemDefinition.

Each test reads a small document through LdmlDataMapper.read_string and checks
the populated model, section by section.
"""

import io
from datetime import datetime, timedelta, timezone

import pytest

from wsldml.errors import LdmlFormatError, MissingArgumentError, UnsupportedConversionError
from wsldml.mapper import LdmlDataMapper
from wsldml.model import (
    FontEngines,
    FontRoles,
    KeyboardFormat,
    PunctuationPatternContext,
    QuotationMarkingSystemType,
    QuotationParagraphContinueType,
    SpellCheckDictionaryFormat,
    WritingSystemDefinition,
)
from wsldml.reader import parse_generation_date

SIL = 'xmlns:sil="urn://www.sil.org/ldml/0.1"'


def read(xml: str, mapper: LdmlDataMapper = None) -> WritingSystemDefinition:
    ws = WritingSystemDefinition()
    (mapper or LdmlDataMapper()).read_string(xml, ws)
    return ws


class TestDocument:
    """Test document-level behavior."""

    def test_minimal_identity(self):
        """<ldml><identity><language type="en"/></identity></ldml> yields tag "en"."""
        ws = read('<ldml><identity><language type="en"/></identity></ldml>')
        assert ws.language == "en"
        assert ws.script == ""
        assert ws.region == ""
        assert ws.variant == ""
        assert ws.language_tag == "en"

    def test_wrong_root_element(self):
        with pytest.raises(LdmlFormatError, match="Missing <ldml> tag"):
            read("<locale><identity/></locale>")

    def test_malformed_xml(self):
        with pytest.raises(LdmlFormatError):
            read("<ldml><identity></ldml>")

    def test_missing_arguments(self):
        mapper = LdmlDataMapper()
        with pytest.raises(MissingArgumentError):
            mapper.read(None, WritingSystemDefinition())
        with pytest.raises(ValueError):
            mapper.read_string("<ldml/>", None)

    def test_model_marked_freshly_loaded(self):
        ws = WritingSystemDefinition()
        ws.language = "fr"
        LdmlDataMapper().read_string('<ldml><identity><language type="en"/></identity></ldml>', ws)
        assert not ws.is_changed
        assert ws.store_id == ""

    def test_absent_sections_leave_model_untouched(self):
        ws = WritingSystemDefinition()
        ws.right_to_left_script = True
        LdmlDataMapper().read_string('<ldml><identity><language type="he"/></identity></ldml>', ws)
        assert ws.right_to_left_script

    def test_read_from_text_and_binary_streams(self):
        xml = '<?xml version="1.0" encoding="utf-8"?><ldml><identity><language type="fr"/></identity></ldml>'
        for stream in (io.StringIO(xml), io.BytesIO(xml.encode("utf-8"))):
            ws = WritingSystemDefinition()
            LdmlDataMapper().read(stream, ws)
            assert ws.language == "fr"

    def test_read_from_path(self, tmp_path):
        path = tmp_path / "de.ldml"
        path.write_text('<ldml><identity><language type="de"/></identity></ldml>', encoding="utf-8")
        ws = WritingSystemDefinition()
        LdmlDataMapper().read(path, ws)
        assert ws.language == "de"


class TestIdentity:
    """Test the identity section."""

    def test_full_identity(self):
        ws = read(f"""<ldml {SIL}><identity>
            <version number="1.5">Revised</version>
            <generation date="2013-05-02T14:21:12"/>
            <language type="en"/><script type="Latn"/><territory type="US"/><variant type="fonipa-x-etic"/>
            <special><sil:identity uid="u-1" windowsLCID="1033" defaultRegion="GB" variantName="IPA"/></special>
        </identity></ldml>""")
        assert ws.version_number == "1.5"
        assert ws.version_description == "Revised"
        assert ws.date_modified == datetime(2013, 5, 2, 14, 21, 12, tzinfo=timezone.utc)
        assert ws.language_tag == "en-Latn-US-fonipa-x-etic"
        assert ws.id == "en-Latn-US-fonipa-x-etic"
        assert ws.windows_lcid == "1033"
        assert ws.default_region == "GB"
        assert ws.variants[0].name == "IPA"
        assert ws.variants[1].name == ""

    def test_legacy_private_use_is_normalized(self):
        mapper = LdmlDataMapper()
        ws = read('<ldml><identity><language type="x-kal"/><script type="Latn"/></identity></ldml>', mapper)
        assert ws.language == "qaa"
        assert ws.script == "Latn"
        assert ws.variant == "x-kal"
        assert ws.id == "x-kal-Latn"
        assert mapper.is_legacy_private_use

    def test_legacy_flag_reset_by_next_read(self):
        mapper = LdmlDataMapper()
        read('<ldml><identity><language type="x-kal"/></identity></ldml>', mapper)
        read('<ldml><identity><language type="en"/></identity></ldml>', mapper)
        assert not mapper.is_legacy_private_use

    def test_unconvertible_legacy_tag(self):
        with pytest.raises(UnsupportedConversionError):
            read('<ldml><identity><language type="x"/></identity></ldml>')


class TestGenerationDate:
    """Test generation date parsing fallbacks."""

    def test_iso_with_zone(self):
        assert parse_generation_date("2013-05-02T14:21:12+02:00") == datetime(2013, 5, 2, 12, 21, 12, tzinfo=timezone.utc)

    def test_iso_with_z_suffix(self):
        assert parse_generation_date("2013-05-02T14:21:12Z") == datetime(2013, 5, 2, 14, 21, 12, tzinfo=timezone.utc)

    def test_cvs_keyword(self):
        assert parse_generation_date("$Date: 2008/06/18 22:52:35 $") == datetime(2008, 6, 18, 22, 52, 35, tzinfo=timezone.utc)

    @pytest.mark.parametrize("text", ["$Date$", "", "yesterday"])
    def test_unusable_values_mean_now(self, text):
        parsed = parse_generation_date(text)
        assert abs(datetime.now(timezone.utc) - parsed) < timedelta(minutes=1)


class TestCharacters:
    """Test exemplar character sets."""

    def test_main_set_has_no_type_attribute(self):
        ws = read("<ldml><characters><exemplarCharacters>[a-c {ch}]</exemplarCharacters></characters></ldml>")
        assert ws.get_character_set("main").characters == ["a", "b", "c", "ch"]

    def test_typed_sets(self):
        ws = read(f"""<ldml {SIL}><characters>
            <exemplarCharacters type="auxiliary">[á]</exemplarCharacters>
            <exemplarCharacters type="index">[A B]</exemplarCharacters>
            <special>
                <sil:exemplarCharacters type="footnotes">[* †]</sil:exemplarCharacters>
                <sil:exemplarCharacters>[ignored]</sil:exemplarCharacters>
            </special>
        </characters></ldml>""")
        assert [csd.type for csd in ws.character_sets] == ["auxiliary", "index", "footnotes"]
        assert ws.get_character_set("footnotes").characters == ["*", "†"]

    def test_trailing_hyphen_is_a_member(self):
        ws = read("<ldml><characters><exemplarCharacters type='punctuation'>[. , -]</exemplarCharacters></characters></ldml>")
        assert ws.get_character_set("punctuation").characters == [",", "-", "."]

    def test_property_set_is_expanded(self):
        ws = read("<ldml><characters><exemplarCharacters type='index'>[[:Lu:]]</exemplarCharacters></characters></ldml>")
        index = ws.get_character_set("index").characters
        assert "A" in index
        assert "a" not in index

    def test_malformed_pattern(self):
        with pytest.raises(LdmlFormatError, match="main"):
            read("<ldml><characters><exemplarCharacters>[a-</exemplarCharacters></characters></ldml>")


class TestDelimiters:
    """Test quotation marks, matched pairs and punctuation patterns."""

    def test_dedicated_quotation_elements(self):
        ws = read("""<ldml><delimiters>
            <quotationStart>“</quotationStart><quotationEnd>”</quotationEnd>
            <alternateQuotationStart>‘</alternateQuotationStart><alternateQuotationEnd>’</alternateQuotationEnd>
        </delimiters></ldml>""")
        level1 = ws.get_quotation_mark(1)
        level2 = ws.get_quotation_mark(2)
        assert (level1.open, level1.close) == ("“", "”")
        assert (level2.open, level2.close) == ("‘", "’")

    def test_vendor_delimiters(self):
        ws = read(f"""<ldml {SIL}><delimiters><special>
            <sil:matched-pairs><sil:matched-pair open="(" close=")" paraClose="true"/></sil:matched-pairs>
            <sil:punctuation-patterns><sil:punctuation-pattern pattern="_." context="final"/></sil:punctuation-patterns>
            <sil:quotation-marks paraContinueType="inner">
                <sil:quotation open="«" close="»" continue="»" level="3"/>
                <sil:quotation open="—" type="narrative"/>
            </sil:quotation-marks>
        </special></delimiters></ldml>""")
        assert ws.matched_pairs[0].paragraph_close
        assert ws.punctuation_patterns[0].context == PunctuationPatternContext.FINAL
        assert ws.quotation_paragraph_continue_type == QuotationParagraphContinueType.INNERMOST
        level3, narrative = ws.quotation_marks
        assert (level3.open, level3.close, level3.continue_, level3.level) == ("«", "»", "»", 3)
        assert narrative.type == QuotationMarkingSystemType.NARRATIVE
        assert narrative.level == 1

    def test_unknown_punctuation_context_fails(self):
        with pytest.raises(KeyError):
            read(f"""<ldml {SIL}><delimiters><special><sil:punctuation-patterns>
                <sil:punctuation-pattern pattern="_" context="middle"/>
            </sil:punctuation-patterns></special></delimiters></ldml>""")

    def test_quotation_level_below_one_fails(self):
        with pytest.raises(LdmlFormatError, match="level"):
            read(f"""<ldml {SIL}><delimiters><special><sil:quotation-marks>
                <sil:quotation open="«" level="0"/>
            </sil:quotation-marks></special></delimiters></ldml>""")

    def test_cp_escapes_are_decoded(self):
        ws = read('<ldml><delimiters><quotationStart>a<cp hex="1"/></quotationStart></delimiters></ldml>')
        assert ws.get_quotation_mark(1).open == "a\x01"


class TestLayout:
    """Test character order."""

    @pytest.mark.parametrize("order,rtl", [
        ("right-to-left", True),
        ("left-to-right", False),
        ("top-to-bottom", False),
    ])
    def test_character_order(self, order, rtl):
        ws = read(f"<ldml><layout><orientation><characterOrder>{order}</characterOrder></orientation></layout></ldml>")
        assert ws.right_to_left_script is rtl

    def test_legacy_attribute_form(self):
        ws = read('<ldml><layout><orientation characterOrder="right-to-left"/></layout></ldml>')
        assert ws.right_to_left_script


class TestNumbers:
    """Test the numeric character set."""

    def test_default_numbering_system_digits(self):
        ws = read("""<ldml><numbers>
            <defaultNumberingSystem>thai</defaultNumberingSystem>
            <numberingSystem id="thai" type="numeric" digits="๐๑๒๓๔๕๖๗๘๙"/>
        </numbers></ldml>""")
        assert ws.get_character_set("numeric").characters == list("๐๑๒๓๔๕๖๗๘๙")

    def test_unknown_numbering_system_is_ignored(self):
        ws = read("""<ldml><numbers>
            <defaultNumberingSystem>missing</defaultNumberingSystem>
            <numberingSystem id="thai" type="numeric" digits="๐๑๒๓๔๕๖๗๘๙"/>
        </numbers></ldml>""")
        assert ws.get_character_set("numeric") is None


class TestExternalResources:
    """Test fonts, spellcheck dictionaries and keyboards."""

    DOC = f"""<ldml {SIL}>
        <identity><language type="en"/></identity>
        <special><sil:external-resources>
            <sil:font name="Charis SIL" types="default heading" size="1.5" minversion="5.0"
                      features="smcp=1" lang="en" otlang="ENG" engines="gr" subset="Latin">
                <sil:url>https://example.org/charis.ttf</sil:url>
            </sil:font>
            <sil:font name="Andika"/>
            <sil:spellcheck type="hunspell"><sil:url>https://example.org/en.dic</sil:url></sil:spellcheck>
            <sil:kbd id="basic_kbden" type="kmx"><sil:url>https://example.org/basic.kmx</sil:url></sil:kbd>
            <sil:kbd type="kmn"/>
        </sil:external-resources></special>
    </ldml>"""

    def test_fonts(self):
        ws = read(self.DOC)
        charis, andika = ws.fonts
        assert charis.roles == FontRoles.DEFAULT | FontRoles.HEADING
        assert charis.default_relative_size == 1.5
        assert charis.min_version == "5.0"
        assert charis.features == "smcp=1"
        assert charis.language == "en"
        assert charis.open_type_language == "ENG"
        assert charis.engines == FontEngines.GRAPHITE
        assert charis.subset == "latin"
        assert charis.urls == ["https://example.org/charis.ttf"]
        assert andika.roles == FontRoles.DEFAULT
        assert andika.engines == FontEngines.OPEN_TYPE | FontEngines.GRAPHITE

    def test_spellcheck(self):
        (scd,) = read(self.DOC).spell_check_dictionaries
        assert scd.format == SpellCheckDictionaryFormat.HUNSPELL
        assert scd.language_tag == "en"
        assert scd.urls == ["https://example.org/en.dic"]

    def test_keyboard_without_id_is_skipped(self):
        (keyboard,) = read(self.DOC).known_keyboards
        assert keyboard.id == "basic_kbden"
        assert keyboard.format == KeyboardFormat.COMPILED_KEYMAN

    def test_unknown_keyboard_type_fails(self):
        with pytest.raises(KeyError):
            read(f'<ldml {SIL}><special><sil:external-resources><sil:kbd id="k" type="xkb"/>'
                 f'</sil:external-resources></special></ldml>')

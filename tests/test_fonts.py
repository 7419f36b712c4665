# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for the font engine, metrics and ToUnicode modules."""

from io import BytesIO

import pytest
from fontTools.ttLib import TTFont

from pdfunicode.exceptions import FontEmbeddingError
from pdfunicode.fonts import FontEngine, FontMetricsExtractor, FontToolsEngine
from pdfunicode.fonts.tounicode import (
    build_unicode_to_gid,
    generate_cidfont_tounicode_cmap,
    invert_to_gid_map,
    parse_tounicode_cmap,
    validate_tounicode_cmap,
)


@pytest.fixture
def tt_font(font_bytes):
    font = TTFont(BytesIO(font_bytes))
    yield font
    font.close()


class TestFontToolsEngine:
    """Tests for FontToolsEngine.parse()."""

    def test_implements_protocol(self):
        assert isinstance(FontToolsEngine(), FontEngine)

    def test_parse_bundled_font(self, font_bytes):
        parsed = FontToolsEngine().parse(font_bytes)
        try:
            assert parsed.postscript_name == "Lato-Regular"
            assert ord("ł") in parsed.unicode_to_gid
            assert parsed.widths[ord("i")] < parsed.widths[ord("W")]
            assert parsed.ascent > 0 > parsed.descent
        finally:
            parsed.tt_font.close()

    def test_empty(self):
        with pytest.raises(FontEmbeddingError, match="empty"):
            FontToolsEngine().parse(b"")

    def test_garbage(self):
        with pytest.raises(FontEmbeddingError, match="Not a valid"):
            FontToolsEngine().parse(b"\x00\x01\x00\x00" + b"\xff" * 64)

    def test_missing_table(self, tt_font):
        del tt_font["OS/2"]
        buffer = BytesIO()
        tt_font.save(buffer)

        with pytest.raises(FontEmbeddingError, match="OS/2"):
            FontToolsEngine().parse(buffer.getvalue())


class TestFontMetricsExtractor:
    """Tests for FontMetricsExtractor."""

    def test_extract_metrics(self, tt_font):
        metrics = FontMetricsExtractor().extract_metrics(tt_font)

        assert metrics["Flags"] & 32
        assert metrics["Ascent"] > 0
        assert metrics["Descent"] < 0
        assert len(metrics["FontBBox"]) == 4

    def test_missing_tables(self, tt_font):
        del tt_font["OS/2"]

        assert FontMetricsExtractor().extract_metrics(tt_font) is None

    def test_glyph_widths_by_gid(self, tt_font):
        widths = FontMetricsExtractor().glyph_widths(tt_font)

        assert len(widths) == len(tt_font.getGlyphOrder())

    def test_w_array_ranges(self):
        w_array = FontMetricsExtractor().build_cidfont_w_array(
            [500, 500, 500, 500, 600, 700]
        )

        assert w_array == [0, 3, 500, 4, [600, 700]]

    def test_w_array_short_runs_listed(self):
        w_array = FontMetricsExtractor().build_cidfont_w_array([100, 100, 200])

        assert w_array == [0, [100, 100, 200]]

    def test_w_array_empty(self):
        assert FontMetricsExtractor().build_cidfont_w_array([]) == []


class TestToUnicode:
    """Tests for ToUnicode CMap generation and parsing."""

    def test_unicode_to_gid(self, tt_font):
        mapping = build_unicode_to_gid(tt_font)

        assert mapping[ord("A")] == tt_font.getGlyphID(tt_font.getBestCmap()[ord("A")])

    def test_invert_keeps_lowest_codepoint(self):
        assert invert_to_gid_map({0x20: 3, 0xA0: 3, 0x41: 4}) == {3: 0x20, 4: 0x41}

    def test_generate_and_parse(self):
        mapping = {1: 0x41, 2: 0x142, 3: 0x1F600}

        data = generate_cidfont_tounicode_cmap(mapping)

        assert b"<0003> <D83DDE00>" in data
        assert parse_tounicode_cmap(data) == mapping

    def test_invalid_destinations_dropped(self):
        data = generate_cidfont_tounicode_cmap({1: 0x41, 2: 0xFFFE, 3: 0xD800})

        assert parse_tounicode_cmap(data) == {1: 0x41}

    def test_chunks_of_100(self):
        data = generate_cidfont_tounicode_cmap({i: 0x100 + i for i in range(1, 251)})

        assert data.count(b"beginbfchar") == 3
        assert b"50 beginbfchar" in data

    def test_validate_missing_element(self):
        with pytest.raises(ValueError, match="begincmap"):
            validate_tounicode_cmap(b"/CIDInit /ProcSet findresource begin")

    def test_parse_bfrange(self):
        data = b"1 beginbfrange\n<0010> <0012> <0061>\nendbfrange"

        assert parse_tounicode_cmap(data) == {0x10: 0x61, 0x11: 0x62, 0x12: 0x63}

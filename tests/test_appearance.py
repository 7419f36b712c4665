# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for appearance.py."""

import re

import pytest
from conftest import new_pdf
from pikepdf import Array, Dictionary, Name, String

from pdfunicode.appearance import (
    _color_array_to_ops,
    auto_font_size,
    build_text_field_appearance,
    format_da_string,
    parse_da_string,
)
from pdfunicode.fonts.handle import FontHandle


def _helv(pdf) -> FontHandle:
    font_dict = pdf.make_indirect(
        Dictionary(Type=Name.Font, Subtype=Name.Type1, BaseFont=Name.Helvetica)
    )
    return FontHandle(
        resource_name="Helv",
        font_dict=font_dict,
        base_font="Helvetica",
        embedded=False,
        owner=None,
    )


def _text_x(content: bytes) -> float:
    match = re.search(rb"([\d.]+) [\d.]+ Td", content)
    return float(match.group(1))


def _widget(width=200, height=20, **extra) -> Dictionary:
    return Dictionary(
        Type=Name.Annot,
        Subtype=Name.Widget,
        Rect=Array([0, 0, width, height]),
        **extra,
    )


class TestParseDaString:
    """Tests for parse_da_string()."""

    def test_full(self):
        assert parse_da_string(String("/Helv 10 Tf 0 g")) == ("Helv", 10.0, "0 g")

    def test_color_before_font(self):
        assert parse_da_string("1 0 0 rg /F1 0 Tf") == ("F1", 0.0, "1 0 0 rg")

    def test_missing(self):
        assert parse_da_string(None) == (None, 12.0, "")
        assert parse_da_string("   ") == (None, 12.0, "")

    def test_no_font_operator(self):
        assert parse_da_string("0 g") == (None, 12.0, "0 g")


class TestFormatDaString:
    """Tests for format_da_string()."""

    def test_default_color(self):
        assert format_da_string("F1", 0) == "/F1 0 Tf 0 g"

    def test_fractional_size(self):
        assert format_da_string("F1", 9.5, "0 0 1 rg") == "/F1 9.5 Tf 0 0 1 rg"


class TestColorOps:
    """Tests for _color_array_to_ops()."""

    def test_gray(self):
        assert _color_array_to_ops(Array([0.5])) == "0.5 g"

    def test_rgb_stroke(self):
        assert _color_array_to_ops(Array([1, 0, 0]), stroke=True) == "1 0 0 RG"

    def test_cmyk(self):
        assert _color_array_to_ops(Array([0, 0, 0, 1])) == "0 0 0 1 k"

    def test_invalid(self):
        assert _color_array_to_ops(None) == ""
        assert _color_array_to_ops(Array([1, 0])) == ""


class TestAutoFontSize:
    """Tests for auto_font_size()."""

    def test_capped(self):
        font = _helv(new_pdf())

        assert auto_font_size("", font, 500, 200) == 12.0

    def test_shrinks_long_text(self):
        font = _helv(new_pdf())

        size = auto_font_size("x" * 200, font, 100, 20)

        assert size == 4.0

    def test_fits_height(self):
        font = _helv(new_pdf())

        size = auto_font_size("ab", font, 500, 9.25)

        assert size == pytest.approx(10.0)


class TestBuildTextFieldAppearance:
    """Tests for build_text_field_appearance()."""

    def test_form_xobject(self):
        pdf = new_pdf()
        font = _helv(pdf)

        stream = build_text_field_appearance(pdf, _widget(), font, 10, "0 g", "Hello")

        assert stream.Type == Name.XObject
        assert stream.Subtype == Name.Form
        assert [float(v) for v in stream.BBox] == [0, 0, 200, 20]
        assert "/Helv" in stream.Resources.Font
        content = stream.read_bytes()
        assert b"/Tx BMC" in content
        assert b"/Helv 10 Tf" in content
        assert b"(Hello) Tj" in content
        assert content.rstrip().endswith(b"EMC")

    def test_empty_text_has_no_text_object(self):
        pdf = new_pdf()

        stream = build_text_field_appearance(pdf, _widget(), _helv(pdf), 10, "", "")

        assert b"BT" not in stream.read_bytes()

    def test_border_and_background(self):
        pdf = new_pdf()
        widget = _widget(MK=Dictionary(BC=Array([0, 0, 0]), BG=Array([1, 1, 1])))

        content = build_text_field_appearance(
            pdf, widget, _helv(pdf), 10, "", "x"
        ).read_bytes()

        assert b"1 1 1 rg" in content
        assert b"0 0 0 RG" in content
        assert b"re S" in content

    def test_right_alignment(self):
        pdf = new_pdf()
        font = _helv(pdf)

        left = build_text_field_appearance(pdf, _widget(), font, 10, "", "ab")
        right = build_text_field_appearance(
            pdf, _widget(), font, 10, "", "ab", alignment=2
        )

        assert _text_x(left.read_bytes()) == 2
        assert _text_x(right.read_bytes()) == pytest.approx(187.74, abs=0.05)

    def test_cid_font_hex_text(self):
        pdf = new_pdf()
        font = FontHandle(
            resource_name="F1",
            font_dict=Dictionary(Type=Name.Font, Subtype=Name.Type0),
            base_font="Test",
            embedded=True,
            owner=None,
            glyph_ids={ord("ł"): 5},
        )

        content = build_text_field_appearance(
            pdf, _widget(), font, 10, "", "ł"
        ).read_bytes()

        assert b"<0005> Tj" in content

    def test_cid_font_missing_glyphs_use_notdef(self):
        """Astral and uncovered characters keep the 2-byte code alignment."""
        pdf = new_pdf()
        font = FontHandle(
            resource_name="F1",
            font_dict=Dictionary(Type=Name.Font, Subtype=Name.Type0),
            base_font="Test",
            embedded=True,
            owner=None,
            glyph_ids={ord("A"): 36, ord("B"): 37},
        )

        content = build_text_field_appearance(
            pdf, _widget(), font, 10, "", "A\U0001F600B一"
        ).read_bytes()

        hex_text = re.search(rb"<([0-9A-F]+)> Tj", content).group(1)
        assert len(hex_text) % 4 == 0
        assert hex_text == b"0024" b"0000" b"0025" b"0000"

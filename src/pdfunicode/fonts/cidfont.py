# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Type0/CIDFont structures for embedded Unicode fonts."""

from typing import TYPE_CHECKING

import pikepdf
from pikepdf import Array, Dictionary, Name, Stream

from .metrics import FontMetricsExtractor
from .tounicode import generate_cidfont_tounicode_cmap, invert_to_gid_map

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont


class CIDFontBuilder:
    """Builds the Type0 font hierarchy for an embedded font.

    Creates Type0 -> CIDFont -> FontDescriptor -> font program, with the
    /W array and a ToUnicode CMap. Glyphs are addressed by GID through
    Identity-H, which keeps every glyph of the font reachable.
    """

    def __init__(self, pdf: pikepdf.Pdf, metrics_extractor: FontMetricsExtractor) -> None:
        """Initializes the CIDFontBuilder.

        Args:
            pdf: Opened pikepdf PDF object.
            metrics_extractor: FontMetricsExtractor instance.
        """
        self._pdf = pdf
        self._metrics = metrics_extractor

    def build_structure(
        self,
        font_name: str,
        tt_font: "TTFont",
        font_data: bytes,
        unicode_to_gid: dict[int, int],
    ) -> Dictionary:
        """Creates the complete Type0/CIDFont structure.

        TrueType outlines go into /FontFile2 under a CIDFontType2, CFF
        outlines into /FontFile3 (/OpenType) under a CIDFontType0.

        Args:
            font_name: Value for /BaseFont.
            tt_font: fonttools TTFont object of the font.
            font_data: Raw font data as bytes.
            unicode_to_gid: Codepoint to glyph ID map for the ToUnicode CMap.

        Returns:
            Indirect pikepdf Dictionary for the Type0 font.

        Raises:
            ValueError: If the font lacks head or OS/2.
        """
        metrics = self._metrics.extract_metrics(tt_font)
        if metrics is None:
            raise ValueError(f"Font '{font_name}' missing head/OS2 tables")

        is_cff = "CFF " in tt_font or "CFF2" in tt_font

        font_stream = Stream(self._pdf, font_data)
        if is_cff:
            font_stream[Name.Subtype] = Name.OpenType
        else:
            font_stream[Name.Length1] = len(font_data)

        font_descriptor = Dictionary(
            Type=Name.FontDescriptor,
            FontName=Name(f"/{font_name}"),
            Flags=metrics["Flags"],
            FontBBox=Array(metrics["FontBBox"]),
            ItalicAngle=metrics["ItalicAngle"],
            Ascent=metrics["Ascent"],
            Descent=metrics["Descent"],
            CapHeight=metrics["CapHeight"],
            StemV=metrics["StemV"],
        )
        font_file_key = Name.FontFile3 if is_cff else Name.FontFile2
        font_descriptor[font_file_key] = self._pdf.make_indirect(font_stream)

        widths = self._metrics.glyph_widths(tt_font)
        w_array = [
            Array(item) if isinstance(item, list) else item
            for item in self._metrics.build_cidfont_w_array(widths)
        ]

        cid_font = Dictionary(
            Type=Name.Font,
            Subtype=Name.CIDFontType0 if is_cff else Name.CIDFontType2,
            BaseFont=Name(f"/{font_name}"),
            CIDSystemInfo=Dictionary(
                Registry=pikepdf.String("Adobe"),
                Ordering=pikepdf.String("Identity"),
                Supplement=0,
            ),
            FontDescriptor=self._pdf.make_indirect(font_descriptor),
            DW=self._metrics.default_width(tt_font),
            W=Array(w_array),
        )
        if not is_cff:
            cid_font[Name.CIDToGIDMap] = Name.Identity

        to_unicode_data = generate_cidfont_tounicode_cmap(
            invert_to_gid_map(unicode_to_gid)
        )

        type0_font = Dictionary(
            Type=Name.Font,
            Subtype=Name.Type0,
            BaseFont=Name(f"/{font_name}"),
            Encoding=Name("/Identity-H"),
            DescendantFonts=Array([self._pdf.make_indirect(cid_font)]),
            ToUnicode=self._pdf.make_indirect(Stream(self._pdf, to_unicode_data)),
        )
        return self._pdf.make_indirect(type0_font)

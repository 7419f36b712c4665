# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font metrics extraction for embedded fonts."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont

# Minimum run of equal widths written in /W range form
_W_RANGE_MIN = 4


class FontMetricsExtractor:
    """Extracts descriptor metrics and widths from TTFont objects.

    Stateless; all values are scaled to 1000 units per em.
    """

    def _compute_font_flags(self, tt_font: "TTFont") -> int:
        """Computes PDF font descriptor flags.

        Bit 1 FixedPitch, bit 2 Serif, bit 4 Script, bit 6 Nonsymbolic,
        bit 7 Italic (ISO 32000-1, table 123).
        """
        flags = 32  # Nonsymbolic

        if "post" in tt_font:
            post = tt_font["post"]
            if getattr(post, "isFixedPitch", 0):
                flags |= 1
            if getattr(post, "italicAngle", 0) != 0:
                flags |= 64

        os2 = tt_font.get("OS/2")
        if os2 is not None:
            family_class = getattr(os2, "sFamilyClass", 0) >> 8
            if 1 <= family_class <= 7:
                flags |= 2
            if family_class == 10:
                flags |= 8
            if getattr(os2, "fsSelection", 0) & 0x0001:
                flags |= 64

        return flags

    def extract_metrics(self, tt_font: "TTFont") -> dict | None:
        """Extracts FontDescriptor metrics.

        Args:
            tt_font: fonttools TTFont object.

        Returns:
            Dictionary with FontBBox, Ascent, Descent, CapHeight, StemV,
            ItalicAngle and Flags, or None if head or OS/2 is missing.
        """
        if "head" not in tt_font or "OS/2" not in tt_font:
            return None
        head = tt_font["head"]
        os2 = tt_font["OS/2"]
        scale = 1000.0 / head.unitsPerEm

        weight = getattr(os2, "usWeightClass", 400)
        italic_angle = tt_font["post"].italicAngle if "post" in tt_font else 0

        return {
            "FontBBox": [
                int(head.xMin * scale),
                int(head.yMin * scale),
                int(head.xMax * scale),
                int(head.yMax * scale),
            ],
            "Ascent": int(os2.sTypoAscender * scale),
            "Descent": int(os2.sTypoDescender * scale),
            "CapHeight": int(getattr(os2, "sCapHeight", 700) * scale),
            # StemV estimated from weight: 10 + 220 * (weight/1000)^2
            "StemV": int(10 + 220 * (weight / 1000) ** 2),
            "ItalicAngle": italic_angle,
            "Flags": self._compute_font_flags(tt_font),
        }

    def glyph_widths(self, tt_font: "TTFont") -> list[int]:
        """Returns the advance width of every glyph, indexed by GID."""
        hmtx = tt_font["hmtx"]
        scale = 1000.0 / tt_font["head"].unitsPerEm
        notdef = hmtx.metrics.get(".notdef", (500, 0))[0]
        return [
            round(hmtx.metrics.get(name, (notdef, 0))[0] * scale)
            for name in tt_font.getGlyphOrder()
        ]

    def default_width(self, tt_font: "TTFont") -> int:
        """Returns the .notdef width, used as /DW."""
        hmtx = tt_font["hmtx"]
        scale = 1000.0 / tt_font["head"].unitsPerEm
        return int(hmtx.metrics.get(".notdef", (500, 0))[0] * scale)

    def build_cidfont_w_array(self, widths: list[int]) -> list:
        """Creates the sparse /W array for a CIDFont with CID = GID.

        Runs of at least four equal widths use ``first last width``, other
        stretches use ``first [w1 w2 ...]``.

        Args:
            widths: Glyph widths indexed by GID.

        Returns:
            List in /W array layout.
        """
        w_array: list = []
        k = 0
        while k < len(widths):
            m = k + 1
            while m < len(widths) and widths[m] == widths[k]:
                m += 1
            if m - k >= _W_RANGE_MIN:
                w_array.extend([k, m - 1, widths[k]])
                k = m
                continue

            # Collect individual widths until the next long equal run
            end = m
            while end < len(widths):
                look = end + 1
                while look < len(widths) and widths[look] == widths[end]:
                    look += 1
                if look - end >= _W_RANGE_MIN:
                    break
                end = look
            w_array.extend([k, widths[k:end]])
            k = end

        return w_array

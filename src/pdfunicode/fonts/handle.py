# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font handles returned by the document engine."""

from dataclasses import dataclass, field
from typing import Any

from pikepdf import Dictionary

from .constants import (
    STANDARD_FONT_ASCENT,
    STANDARD_FONT_AVERAGE_WIDTH,
    STANDARD_FONT_DESCENT,
)


@dataclass(eq=False)
class FontHandle:
    """Reference to a font resource inside one document.

    Handles compare by identity. Embedding the same bytes twice yields two
    handles with two resource names.

    Attributes:
        resource_name: Key under ``/DR /Font`` (without the leading slash).
        font_dict: Indirect font dictionary.
        base_font: ``/BaseFont`` value (without the leading slash).
        embedded: True when the font program is embedded in the document.
        owner: Document that created the handle.
        glyph_ids: Unicode codepoint to glyph ID, for Identity-H fonts.
        widths: Unicode codepoint to advance width in 1000 units/em.
        default_width: Width used for codepoints missing from ``widths``.
        ascent: Typographic ascender in 1000 units/em.
        descent: Typographic descender in 1000 units/em (negative).
    """

    resource_name: str
    font_dict: Dictionary = field(repr=False)
    base_font: str
    embedded: bool
    owner: Any = field(repr=False)
    glyph_ids: dict[int, int] = field(default_factory=dict, repr=False)
    widths: dict[int, int] = field(default_factory=dict, repr=False)
    default_width: int = STANDARD_FONT_AVERAGE_WIDTH
    ascent: int = STANDARD_FONT_ASCENT
    descent: int = STANDARD_FONT_DESCENT

    @property
    def is_cid(self) -> bool:
        """True for Type0 (composite) fonts."""
        subtype = self.font_dict.get("/Subtype")
        return subtype is not None and str(subtype) == "/Type0"

    def covers(self, text: str) -> bool:
        """Checks whether every character of *text* has a glyph.

        Only meaningful for fonts embedded by this library; other fonts
        report False for anything outside Latin-1.
        """
        if self.glyph_ids:
            return all(ord(ch) in self.glyph_ids for ch in text)
        try:
            text.encode("cp1252")
        except UnicodeEncodeError:
            return False
        return True

    def text_width(self, text: str, font_size: float) -> float:
        """Returns the advance width of *text* in points."""
        total = sum(self.widths.get(ord(ch), self.default_width) for ch in text)
        return total * font_size / 1000.0

    def encode_text(self, text: str) -> str:
        """Encodes *text* as a content stream string operand.

        Composite fonts produce a hex string of 2-byte glyph IDs (Identity-H),
        simple fonts a literal string in WinAnsi encoding with unmappable
        characters replaced by ``?``. Characters without a glyph are written
        as GID 0 (``.notdef``).
        """
        if self.is_cid:
            parts = []
            for ch in text:
                cp = ord(ch)
                if self.glyph_ids:
                    code = self.glyph_ids.get(cp, 0)
                else:
                    code = cp if cp <= 0xFFFF else 0
                parts.append(f"{code:04X}")
            return "<" + "".join(parts) + ">"

        encoded = text.encode("cp1252", errors="replace").decode("latin-1")
        encoded = encoded.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        return f"({encoded})"

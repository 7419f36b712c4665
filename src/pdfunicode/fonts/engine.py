# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font engines: the capability a document needs to embed custom fonts.

A document refuses to embed font files until an engine is registered on
it. :class:`FontToolsEngine` parses fonts with fontTools and is the engine
used by the CLI.
"""

import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..exceptions import FontEmbeddingError
from .metrics import FontMetricsExtractor
from .tounicode import build_unicode_to_gid

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont

logger = logging.getLogger(__name__)

# Tables every embeddable font must provide
_REQUIRED_TABLES = ("head", "hhea", "hmtx", "maxp", "cmap", "OS/2")


@dataclass
class ParsedFont:
    """Font file parsed by an engine.

    Attributes:
        tt_font: fonttools TTFont object.
        postscript_name: Name used for /BaseFont.
        unicode_to_gid: Codepoint to glyph ID.
        widths: Codepoint to advance width in 1000 units/em.
        default_width: Width of .notdef in 1000 units/em.
        ascent: Typographic ascender in 1000 units/em.
        descent: Typographic descender in 1000 units/em.
    """

    tt_font: "TTFont"
    postscript_name: str
    unicode_to_gid: dict[int, int] = field(default_factory=dict)
    widths: dict[int, int] = field(default_factory=dict)
    default_width: int = 500
    ascent: int = 0
    descent: int = 0


@runtime_checkable
class FontEngine(Protocol):
    """Glyph-layout capability consumed by :meth:`Document.embed_font`."""

    def parse(self, font_data: bytes) -> ParsedFont:
        """Parses font bytes or raises FontEmbeddingError."""
        ...


class FontToolsEngine:
    """Font engine backed by fontTools."""

    def __init__(self) -> None:
        self._metrics = FontMetricsExtractor()

    def parse(self, font_data: bytes) -> ParsedFont:
        """Parses a TrueType or OpenType font.

        Args:
            font_data: Raw font file bytes.

        Returns:
            ParsedFont with glyph map and metrics.

        Raises:
            FontEmbeddingError: If the bytes are not a usable font.
        """
        from fontTools.ttLib import TTFont

        if not font_data:
            raise FontEmbeddingError("Font data is empty")

        try:
            tt_font = TTFont(BytesIO(font_data), lazy=False)
        except Exception as e:
            raise FontEmbeddingError(f"Not a valid TrueType/OpenType font: {e}") from e

        missing = [tag for tag in _REQUIRED_TABLES if tag not in tt_font]
        if "glyf" not in tt_font and "CFF " not in tt_font and "CFF2" not in tt_font:
            missing.append("glyf/CFF")
        if missing:
            tt_font.close()
            raise FontEmbeddingError(
                f"Font is missing required table(s): {', '.join(missing)}"
            )

        unicode_to_gid = build_unicode_to_gid(tt_font)
        if not unicode_to_gid:
            tt_font.close()
            raise FontEmbeddingError("Font has no Unicode cmap")

        glyph_widths = self._metrics.glyph_widths(tt_font)
        widths = {
            cp: glyph_widths[gid]
            for cp, gid in unicode_to_gid.items()
            if gid < len(glyph_widths)
        }
        scale = 1000.0 / tt_font["head"].unitsPerEm
        os2 = tt_font["OS/2"]

        parsed = ParsedFont(
            tt_font=tt_font,
            postscript_name=_postscript_name(tt_font),
            unicode_to_gid=unicode_to_gid,
            widths=widths,
            default_width=self._metrics.default_width(tt_font),
            ascent=int(os2.sTypoAscender * scale),
            descent=int(os2.sTypoDescender * scale),
        )
        logger.debug(
            "Parsed font %s: %d glyphs, %d codepoints",
            parsed.postscript_name,
            len(glyph_widths),
            len(unicode_to_gid),
        )
        return parsed


def _postscript_name(tt_font: "TTFont") -> str:
    """Returns a /BaseFont-safe PostScript name for the font."""
    name = None
    if "name" in tt_font:
        name = tt_font["name"].getDebugName(6) or tt_font["name"].getDebugName(4)
    if not name:
        return "UnicodeFont"
    cleaned = "".join(ch for ch in name if 33 <= ord(ch) <= 126 and ch not in "[](){}<>/%#")
    return cleaned or "UnicodeFont"

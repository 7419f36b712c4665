# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""ToUnicode CMaps for Identity-H fonts.

Embedded fonts use CID = GID, so the CMap maps 2-byte glyph IDs back to
Unicode. Viewers need it for copy/paste and search in filled form fields.
"""

import logging
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont

logger = logging.getLogger(__name__)

# Values that must not appear as ToUnicode destinations
INVALID_UNICODE_VALUES = frozenset({0x0000, 0xFEFF, 0xFFFE})

_SURROGATE_RANGE = range(0xD800, 0xE000)

# Maximum entries per bfchar block
_BFCHAR_CHUNK = 100

_BFCHAR_BLOCK_RE = re.compile(r"(\d+)\s+beginbfchar\s*(.*?)\s*endbfchar", re.DOTALL)
_BFRANGE_BLOCK_RE = re.compile(r"beginbfrange\s*(.*?)\s*endbfrange", re.DOTALL)
_PAIR_RE = re.compile(r"<([0-9A-Fa-f]+)>\s*<([0-9A-Fa-f]+)>")
_RANGE_RE = re.compile(r"<([0-9A-Fa-f]+)>\s*<([0-9A-Fa-f]+)>\s*<([0-9A-Fa-f]+)>")


def build_unicode_to_gid(tt_font: "TTFont") -> dict[int, int]:
    """Maps Unicode codepoints to glyph IDs using the font's best cmap.

    Args:
        tt_font: fonttools TTFont object.

    Returns:
        Dictionary mapping codepoints to glyph IDs.
    """
    try:
        cmap = tt_font.getBestCmap()
    except KeyError:
        cmap = None
    if not cmap:
        return {}

    glyph_order = tt_font.getGlyphOrder()
    name_to_gid = {name: gid for gid, name in enumerate(glyph_order)}
    return {cp: name_to_gid[name] for cp, name in cmap.items() if name in name_to_gid}


def invert_to_gid_map(unicode_to_gid: dict[int, int]) -> dict[int, int]:
    """Builds GID -> Unicode, keeping the lowest codepoint per glyph."""
    gid_to_unicode: dict[int, int] = {}
    for cp in sorted(unicode_to_gid):
        gid_to_unicode.setdefault(unicode_to_gid[cp], cp)
    return gid_to_unicode


def _is_invalid_unicode(val: int) -> bool:
    return val in INVALID_UNICODE_VALUES or val in _SURROGATE_RANGE


def generate_cidfont_tounicode_cmap(code_to_unicode: dict[int, int]) -> bytes:
    """Generates ToUnicode CMap data for a 2-byte Identity encoding.

    Entries whose destination is not a usable Unicode scalar value are
    left out.

    Args:
        code_to_unicode: Mapping from glyph IDs to Unicode codepoints.

    Returns:
        CMap data as bytes.
    """
    entries = {
        code: uni for code, uni in code_to_unicode.items() if not _is_invalid_unicode(uni)
    }
    dropped = len(code_to_unicode) - len(entries)
    if dropped:
        logger.debug("Dropped %d invalid ToUnicode destination(s)", dropped)

    lines = [
        "/CIDInit /ProcSet findresource begin",
        "12 dict begin",
        "begincmap",
        "/CIDSystemInfo <<",
        "  /Registry (Adobe)",
        "  /Ordering (UCS)",
        "  /Supplement 0",
        ">> def",
        "/CMapName /Adobe-Identity-UCS def",
        "/CMapType 2 def",
        "1 begincodespacerange",
        "<0000> <FFFF>",
        "endcodespacerange",
    ]

    codes = sorted(entries)
    for start in range(0, len(codes), _BFCHAR_CHUNK):
        chunk = codes[start : start + _BFCHAR_CHUNK]
        lines.append(f"{len(chunk)} beginbfchar")
        for code in chunk:
            lines.append(f"<{code:04X}> <{_encode_utf16_hex(entries[code])}>")
        lines.append("endbfchar")

    lines.extend(
        [
            "endcmap",
            "CMapName currentdict /CMap defineresource pop",
            "end",
            "end",
        ]
    )

    data = "\n".join(lines).encode("ascii")
    validate_tounicode_cmap(data)
    return data


def _encode_utf16_hex(codepoint: int) -> str:
    if codepoint <= 0xFFFF:
        return f"{codepoint:04X}"
    # Surrogate pair
    offset = codepoint - 0x10000
    return f"{0xD800 + (offset >> 10):04X}{0xDC00 + (offset & 0x3FF):04X}"


def _decode_utf16_hex(hex_str: str) -> int:
    if len(hex_str) == 8:
        high = int(hex_str[:4], 16)
        low = int(hex_str[4:], 16)
        if 0xD800 <= high <= 0xDBFF and 0xDC00 <= low <= 0xDFFF:
            return 0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00)
    return int(hex_str, 16)


def validate_tounicode_cmap(data: bytes) -> None:
    """Checks the structure of a generated ToUnicode CMap.

    Args:
        data: CMap data as bytes.

    Raises:
        ValueError: If the CMap is malformed.
    """
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError as e:
        raise ValueError(f"CMap contains non-ASCII bytes: {e}") from e

    for element in (
        "/CIDInit /ProcSet findresource begin",
        "begincmap",
        "endcmap",
        "/Registry (Adobe)",
        "/Ordering (UCS)",
        "begincodespacerange",
        "endcodespacerange",
        "CMapName currentdict /CMap defineresource pop",
    ):
        if element not in text:
            raise ValueError(f"Missing required CMap element: {element}")

    for block in _BFCHAR_BLOCK_RE.finditer(text):
        declared = int(block.group(1))
        if declared > _BFCHAR_CHUNK:
            raise ValueError(f"bfchar block declares {declared} entries (max 100)")
        found = len(_PAIR_RE.findall(block.group(2)))
        if found != declared:
            raise ValueError(
                f"bfchar block declares {declared} entries but contains {found}"
            )


def parse_tounicode_cmap(data: bytes) -> dict[int, int]:
    """Parses bfchar and incrementing bfrange entries of a ToUnicode CMap.

    Used for Type0 fonts already present in a loaded document.

    Args:
        data: Raw CMap stream bytes.

    Returns:
        Dictionary mapping character codes to Unicode codepoints.
    """
    text = data.decode("ascii", errors="replace")
    code_to_unicode: dict[int, int] = {}

    for block in _BFCHAR_BLOCK_RE.finditer(text):
        for src_hex, dst_hex in _PAIR_RE.findall(block.group(2)):
            code_to_unicode[int(src_hex, 16)] = _decode_utf16_hex(dst_hex)

    for block in _BFRANGE_BLOCK_RE.finditer(text):
        for start_hex, end_hex, dst_hex in _RANGE_RE.findall(block.group(1)):
            start = int(start_hex, 16)
            first = _decode_utf16_hex(dst_hex)
            for offset in range(int(end_hex, 16) - start + 1):
                code_to_unicode[start + offset] = first + offset

    return code_to_unicode

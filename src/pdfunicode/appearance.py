# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Default appearance strings and text field appearance streams.

Appearance streams are rebuilt when a document is saved, for text fields
whose value or font changed since it was opened.
"""

import logging
import re

from pikepdf import Array, Dictionary, Name, Pdf, Stream

from .fonts.constants import DEFAULT_DA_COLOR
from .fonts.handle import FontHandle
from .utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

_DA_FONT_RE = re.compile(r"/(\S+)\s+([\d.]+)\s+Tf")

# Font size used when /DA is missing entirely
_FALLBACK_FONT_SIZE = 12.0

# Bounds for auto-sized (size 0) text
_AUTO_SIZE_MIN = 4.0
_AUTO_SIZE_MAX = 12.0


def parse_da_string(da) -> tuple[str | None, float, str]:
    """Parses a /DA (Default Appearance) string.

    Args:
        da: The DA string value, or None.

    Returns:
        Tuple of (font_name, font_size, color_ops). font_name is None when
        the string has no ``Tf`` operator; a size of 0 means auto-size.
    """
    if da is None:
        return None, _FALLBACK_FONT_SIZE, ""

    da_str = str(da)
    if not da_str.strip():
        return None, _FALLBACK_FONT_SIZE, ""

    font_name = None
    font_size = _FALLBACK_FONT_SIZE

    m = _DA_FONT_RE.search(da_str)
    if m:
        font_name = m.group(1)
        try:
            font_size = float(m.group(2))
        except ValueError:
            font_size = _FALLBACK_FONT_SIZE

    color_ops = _DA_FONT_RE.sub("", da_str).strip()
    return font_name, font_size, color_ops


def format_da_string(font_name: str, font_size: float, color_ops: str = "") -> str:
    """Builds a /DA string selecting *font_name* at *font_size*."""
    return f"/{font_name} {font_size:g} Tf {color_ops or DEFAULT_DA_COLOR}"


def _color_array_to_ops(arr, stroke: bool = False) -> str:
    """Converts a /MK color array to content stream operators."""
    if arr is None:
        return ""
    try:
        components = [float(c) for c in arr]
    except (TypeError, ValueError):
        return ""

    values = " ".join(f"{c:.4g}" for c in components)
    if len(components) == 1:
        return f"{values} {'G' if stroke else 'g'}"
    if len(components) == 3:
        return f"{values} {'RG' if stroke else 'rg'}"
    if len(components) == 4:
        return f"{values} {'K' if stroke else 'k'}"
    return ""


def _get_rect_dimensions(widget) -> tuple[float, float]:
    rect = widget.get("/Rect")
    if rect is None or len(rect) != 4:
        return 0.0, 0.0
    x1, y1, x2, y2 = (float(v) for v in rect)
    return abs(x2 - x1), abs(y2 - y1)


def _get_border_width(widget) -> float:
    bs = widget.get("/BS")
    if bs is not None:
        width = _resolve(bs).get("/W")
        if width is not None:
            return float(width)
    return 1.0


def _build_border_background(w: float, h: float, widget) -> list[str]:
    mk = widget.get("/MK")
    if mk is None:
        return []
    mk = _resolve(mk)

    parts = []
    bg_ops = _color_array_to_ops(mk.get("/BG"))
    if bg_ops:
        parts.extend([bg_ops, f"0 0 {w:.4g} {h:.4g} re f"])

    border_width = _get_border_width(widget)
    bc_ops = _color_array_to_ops(mk.get("/BC"), stroke=True)
    if bc_ops and border_width > 0:
        inset = border_width / 2
        parts.extend(
            [
                bc_ops,
                f"{border_width:.4g} w",
                f"{inset:.4g} {inset:.4g} {w - border_width:.4g} "
                f"{h - border_width:.4g} re S",
            ]
        )
    return parts


def auto_font_size(text: str, font: FontHandle, width: float, height: float) -> float:
    """Picks a font size that fits *text* into a single line of the box."""
    line_height = (font.ascent - font.descent) / 1000.0 or 1.0
    size = min(height / line_height, _AUTO_SIZE_MAX)
    if text:
        text_width = font.text_width(text, size)
        if text_width > width > 0:
            size *= width / text_width
    return max(size, _AUTO_SIZE_MIN)


def build_text_field_appearance(
    pdf: Pdf,
    widget: Dictionary,
    font: FontHandle,
    font_size: float,
    color_ops: str,
    text: str,
    *,
    alignment: int = 0,
) -> Stream:
    """Builds a single-line appearance stream for a text field widget.

    Args:
        pdf: Document the stream belongs to.
        widget: Widget annotation dictionary.
        font: Font to render with.
        font_size: Size from /DA; 0 means auto-size.
        color_ops: Color operators from /DA.
        text: Field value.
        alignment: /Q value (0 left, 1 centered, 2 right).

    Returns:
        Form XObject stream for /AP /N.
    """
    w, h = _get_rect_dimensions(widget)
    margin = max(_get_border_width(widget) + 1, 2)
    available_width = max(w - 2 * margin, 0)

    if font_size == 0:
        font_size = auto_font_size(text, font, available_width, h - 2 * margin)

    text_width = font.text_width(text, font_size)
    if alignment == 1:
        tx = margin + max(0, (available_width - text_width) / 2)
    elif alignment == 2:
        tx = margin + max(0, available_width - text_width)
    else:
        tx = margin

    # Vertical centering from ascent/descent
    asc_pt = font.ascent * font_size / 1000.0
    desc_pt = abs(font.descent) * font_size / 1000.0
    ty = max((h - asc_pt - desc_pt) / 2.0 + desc_pt, margin)

    parts = _build_border_background(w, h, widget)
    parts.append("/Tx BMC")
    parts.append("q")
    parts.append(
        f"{margin:.4g} {margin:.4g} {available_width:.4g} {max(h - 2 * margin, 0):.4g} re W n"
    )
    if text:
        parts.append("BT")
        parts.append(color_ops or DEFAULT_DA_COLOR)
        parts.append(f"/{font.resource_name} {font_size:.4g} Tf")
        parts.append(f"{tx:.4g} {ty:.4g} Td")
        parts.append(f"{font.encode_text(text)} Tj")
        parts.append("ET")
    parts.append("Q")
    parts.append("EMC")

    font_resources = Dictionary()
    font_resources[Name("/" + font.resource_name)] = font.font_dict

    stream = pdf.make_stream("\n".join(parts).encode("latin-1"))
    stream[Name.Type] = Name.XObject
    stream[Name.Subtype] = Name.Form
    stream[Name.BBox] = Array([0, 0, w, h])
    stream[Name.Resources] = Dictionary(Font=font_resources)
    logger.debug(
        "Built appearance with /%s at %.4g pt for %d character(s)",
        font.resource_name,
        font_size,
        len(text),
    )
    return stream

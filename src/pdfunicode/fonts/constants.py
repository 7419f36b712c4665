# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font constants."""

# Base64 payload shipped under pdfunicode/resources/fonts
BUNDLED_FONT_FILE = "Lato-Regular.ttf.b64"

# Leading four bytes of TrueType (1.0 and Apple 'true') and CFF-based OpenType
SFNT_SIGNATURES = frozenset({b"\x00\x01\x00\x00", b"true", b"OTTO"})

# Built-in font used when nothing else is configured
STANDARD_FONT = "Helvetica"

# Resource name conventionally used for Helvetica in AcroForm /DR
STANDARD_FONT_RESOURCE = "Helv"

# Prefix for resource names of embedded fonts (F1, F2, ...)
EMBEDDED_FONT_PREFIX = "F"

# Helvetica metrics in 1000 units/em (Adobe AFM)
STANDARD_FONT_ASCENT = 718
STANDARD_FONT_DESCENT = -207
STANDARD_FONT_AVERAGE_WIDTH = 513

# Font size written into /DA when none is known; 0 means auto-size
DEFAULT_FONT_SIZE = 0

# Fill color written into /DA when none is known
DEFAULT_DA_COLOR = "0 g"

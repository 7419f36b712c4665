# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font assets, engines and embedding structures."""

from ..exceptions import AssetDecodeError, FontEmbeddingError
from .bundled import (
    DEFAULT_FONT_CACHE,
    BundledFontCache,
    get_bundled_font_bytes,
    get_bundled_font_bytes_async,
    is_bundled_font_loaded,
    preload_bundled_font,
    preload_bundled_font_async,
)
from .cidfont import CIDFontBuilder
from .constants import STANDARD_FONT, STANDARD_FONT_RESOURCE
from .engine import FontEngine, FontToolsEngine, ParsedFont
from .handle import FontHandle
from .metrics import FontMetricsExtractor
from .resolution import effective_field_font, effective_form_font, has_unicode_font

__all__ = [
    # Exceptions
    "AssetDecodeError",
    "FontEmbeddingError",
    # Bundled asset
    "DEFAULT_FONT_CACHE",
    "BundledFontCache",
    "get_bundled_font_bytes",
    "get_bundled_font_bytes_async",
    "is_bundled_font_loaded",
    "preload_bundled_font",
    "preload_bundled_font_async",
    # Constants
    "STANDARD_FONT",
    "STANDARD_FONT_RESOURCE",
    # Engines
    "FontEngine",
    "FontToolsEngine",
    "ParsedFont",
    # Handles and resolution
    "FontHandle",
    "effective_field_font",
    "effective_form_font",
    "has_unicode_font",
    # Helper classes
    "CIDFontBuilder",
    "FontMetricsExtractor",
]

# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""pdfunicode - Unicode font provisioning for PDF forms."""

from importlib.metadata import PackageNotFoundError, version

from .document import Document
from .exceptions import (
    AssetDecodeError,
    CapabilityNotRegisteredError,
    ConfigurationError,
    FontEmbeddingError,
    FontHandleError,
    FormFieldError,
    PDFUnicodeError,
)
from .fonts import (
    BundledFontCache,
    FontHandle,
    FontToolsEngine,
    get_bundled_font_bytes,
    get_bundled_font_bytes_async,
    is_bundled_font_loaded,
    preload_bundled_font,
    preload_bundled_font_async,
)
from .forms import Form, FormField, TextField
from .migration import migrate_existing_fields
from .options import DocumentOptions, EmbedFontOptions, SaveOptions
from .provisioning import UnicodeFontProvisioner
from .state import ProvisioningState, ProvisioningStatus

try:
    __version__ = version("pdfunicode")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "__version__",
    "Document",
    "DocumentOptions",
    "EmbedFontOptions",
    "SaveOptions",
    "Form",
    "FormField",
    "TextField",
    "FontHandle",
    "FontToolsEngine",
    "BundledFontCache",
    "UnicodeFontProvisioner",
    "ProvisioningState",
    "ProvisioningStatus",
    "migrate_existing_fields",
    "get_bundled_font_bytes",
    "get_bundled_font_bytes_async",
    "preload_bundled_font",
    "preload_bundled_font_async",
    "is_bundled_font_loaded",
    "PDFUnicodeError",
    "CapabilityNotRegisteredError",
    "AssetDecodeError",
    "FontEmbeddingError",
    "FontHandleError",
    "FormFieldError",
    "ConfigurationError",
]

# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Custom exceptions for pdfunicode."""


class PDFUnicodeError(Exception):
    """Base exception for all pdfunicode errors."""


class CapabilityNotRegisteredError(PDFUnicodeError):
    """No font engine is registered on the document."""


class AssetDecodeError(PDFUnicodeError):
    """Bundled font payload could not be decoded."""


class FontEmbeddingError(PDFUnicodeError):
    """Font could not be embedded."""


class FontHandleError(PDFUnicodeError):
    """Font handle does not belong to the document."""


class FormFieldError(PDFUnicodeError):
    """Form field is missing, duplicated or of the wrong type."""


class ConfigurationError(PDFUnicodeError):
    """Invalid document or save options."""

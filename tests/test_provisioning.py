# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for provisioning.py."""

import asyncio
import base64

import pytest
from conftest import new_document, open_document

from pdfunicode import ProvisioningStatus
from pdfunicode.exceptions import (
    AssetDecodeError,
    CapabilityNotRegisteredError,
    FontEmbeddingError,
    FontHandleError,
)
from pdfunicode.fonts.bundled import BundledFontCache

POLISH_PANGRAM = "Zażółć gęślą jaźń"


class TestProvisionBundledFont:
    """Tests for Form.provision_bundled_font()."""

    def test_provisions_unicode_default(self, document):
        """Bundled font becomes an embedded form default."""
        form = document.get_form()
        standard = document.standard_font()

        handle = form.provision_bundled_font()

        assert form.has_unicode_font() is True
        assert form.get_default_font() is handle
        assert handle is not standard
        assert handle.embedded is True
        assert handle.is_cid is True
        assert form.state.status is ProvisioningStatus.PROVISIONED

    def test_bundled_font_covers_polish(self, document):
        handle = document.get_form().provision_bundled_font()

        assert handle.covers(POLISH_PANGRAM)

    def test_writes_acroform_defaults(self, document):
        """AcroForm /DA selects the new font and /DR holds it."""
        form = document.get_form()

        handle = form.provision_bundled_font()

        assert str(form.acroform.DA).startswith(f"/{handle.resource_name} ")
        assert f"/{handle.resource_name}" in form.acroform.DR.Font

    def test_without_engine_rejected(self):
        """Provisioning without a font engine leaves the form unchanged."""
        document = new_document()
        form = document.get_form()

        with pytest.raises(CapabilityNotRegisteredError):
            form.provision_bundled_font()

        assert form.has_unicode_font() is False
        assert form.state.status is ProvisioningStatus.NOT_PROVISIONED

    def test_uses_injected_cache(self):
        """The document's cache supplies the bytes."""
        cache = BundledFontCache()
        document = new_document(font_cache=cache)
        document.register_font_engine()

        assert cache.is_loaded() is False
        document.get_form().provision_bundled_font()
        assert cache.is_loaded() is True

    def test_corrupt_bundle(self):
        """A corrupt payload surfaces as AssetDecodeError; nothing changes."""
        cache = BundledFontCache(lambda: base64.b64encode(b"garbage data here"))
        document = new_document(font_cache=cache)
        document.register_font_engine()
        form = document.get_form()

        with pytest.raises(AssetDecodeError):
            form.provision_bundled_font()

        assert form.has_unicode_font() is False

    def test_async(self, document):
        form = document.get_form()

        handle = asyncio.run(form.provision_bundled_font_async())

        assert form.get_default_font() is handle


class TestProvisionFont:
    """Tests for Form.provision_font()."""

    def test_provision_from_bytes(self, document, font_bytes):
        form = document.get_form()

        handle = form.provision_font(font_bytes)

        assert form.get_default_font() is handle
        assert handle.base_font == "Lato-Regular"

    def test_invalid_bytes_leave_state_unchanged(self, document):
        form = document.get_form()

        with pytest.raises(FontEmbeddingError):
            form.provision_font(b"definitely not a font")

        assert form.has_unicode_font() is False
        assert form.state.status is ProvisioningStatus.NOT_PROVISIONED
        assert form.state.error is None

    def test_reprovisioning_replaces_default(self, document, font_bytes):
        """Each call embeds again and the last one wins."""
        form = document.get_form()

        first = form.provision_bundled_font()
        second = form.provision_font(font_bytes)

        assert second is not first
        assert second.resource_name != first.resource_name
        assert form.get_default_font() is second

    def test_async(self, document, font_bytes):
        form = document.get_form()

        handle = asyncio.run(form.provision_font_async(font_bytes))

        assert form.get_default_font() is handle

    def test_update_existing_fields(self, form_pdf_bytes, font_bytes):
        """Only the field without its own font moves to the new font."""
        document = open_document(form_pdf_bytes)
        document.register_font_engine()
        form = document.get_form()

        handle = form.provision_font(font_bytes, update_existing_fields=True)

        assert form.get_field("name").font is handle
        assert form.get_field("name").effective_font is handle
        assert form.get_field("city").font.resource_name == "Helv"
        assert form.get_field("city").effective_font is not handle

    def test_without_update_fields_inherit(self, form_pdf_bytes, font_bytes):
        """Fields without their own font follow the default without an override."""
        document = open_document(form_pdf_bytes)
        document.register_font_engine()
        form = document.get_form()

        handle = form.provision_font(font_bytes)

        name = form.get_field("name")
        assert name.font is None
        assert name.effective_font is handle


class TestExplicitDefault:
    """Tests for set_default_font() and get_default_font()."""

    def test_fallback_to_standard_font(self):
        """Without provisioning the standard font is the default."""
        document = new_document()
        form = document.get_form()

        font = form.get_default_font()

        assert font is document.standard_font()
        assert font.base_font == "Helvetica"
        assert font.embedded is False
        assert form.has_unicode_font() is False

    def test_last_writer_wins(self, document, font_bytes):
        form = document.get_form()
        h1 = document.embed_font(font_bytes)
        h2 = document.embed_font(font_bytes)

        form.set_default_font(h1)
        form.set_default_font(h2)

        assert form.get_default_font() is h2
        assert form.state.status is ProvisioningStatus.PROVISIONED

    def test_foreign_handle_rejected(self, document, font_bytes):
        other = new_document()
        other.register_font_engine()
        foreign = other.embed_font(font_bytes)
        form = document.get_form()

        with pytest.raises(FontHandleError):
            form.set_default_font(foreign)

        assert form.has_unicode_font() is False

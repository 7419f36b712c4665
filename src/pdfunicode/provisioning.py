# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Unicode font provisioning for forms.

Provisioning embeds font bytes into the form's document and records the
resulting handle as the form default. A failed call leaves the form as it
was. Running provisioning again embeds again and replaces the default;
fields migrated earlier keep the font they were given.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from .exceptions import CapabilityNotRegisteredError
from .fonts import resolution
from .fonts.bundled import BundledFontCache
from .fonts.handle import FontHandle
from .migration import migrate_existing_fields
from .state import ProvisioningStatus

if TYPE_CHECKING:
    from .forms import Form

logger = logging.getLogger(__name__)


class UnicodeFontProvisioner:
    """Obtains font bytes, embeds them and sets the form default font."""

    def __init__(self, font_cache: BundledFontCache) -> None:
        """Initializes the provisioner.

        Args:
            font_cache: Source of the bundled font bytes.
        """
        self._font_cache = font_cache

    def provision_from_bundle(self, form: "Form") -> FontHandle:
        """Embeds the bundled font and makes it the form default.

        Raises:
            CapabilityNotRegisteredError: If the document has no font engine.
            AssetDecodeError: If the bundled payload is corrupt.
            FontEmbeddingError: If the document engine rejects the font.
        """
        self._require_font_engine(form)
        font_data = self._font_cache.get_bytes()
        handle = form.document.embed_font(font_data)
        self._store(form, handle)
        logger.info("Bundled Unicode font provisioned as /%s", handle.resource_name)
        return handle

    def provision_from_bytes(
        self,
        form: "Form",
        font_data: bytes,
        *,
        update_existing_fields: bool = False,
    ) -> FontHandle:
        """Embeds caller-supplied font bytes and makes them the form default.

        Args:
            form: Form to provision.
            font_data: TrueType/OpenType font bytes.
            update_existing_fields: Give fields without their own font the
                new font as override.

        Raises:
            CapabilityNotRegisteredError: If the document has no font engine.
            FontEmbeddingError: If the document engine rejects the font.
        """
        self._require_font_engine(form)
        handle = form.document.embed_font(font_data)
        self._store(form, handle)
        logger.info("Unicode font provisioned as /%s", handle.resource_name)
        if update_existing_fields:
            migrate_existing_fields(form, handle)
        return handle

    async def provision_from_bundle_async(self, form: "Form") -> FontHandle:
        """Asynchronous counterpart to :meth:`provision_from_bundle`."""
        return await asyncio.to_thread(self.provision_from_bundle, form)

    async def provision_from_bytes_async(
        self,
        form: "Form",
        font_data: bytes,
        *,
        update_existing_fields: bool = False,
    ) -> FontHandle:
        """Asynchronous counterpart to :meth:`provision_from_bytes`."""
        return await asyncio.to_thread(
            self.provision_from_bytes,
            form,
            font_data,
            update_existing_fields=update_existing_fields,
        )

    def set_explicit_font(self, form: "Form", handle: FontHandle) -> None:
        """Makes an already embedded font the form default.

        Existing fields are not migrated.

        Raises:
            FontHandleError: If *handle* belongs to another document.
        """
        form.document.check_owned(handle)
        self._store(form, handle)

    def get_default_font(self, form: "Form") -> FontHandle:
        """Returns the form default, or the document's standard font."""
        font = resolution.effective_form_font(form.state)
        if font is None:
            font = form.document.standard_font()
        return font

    def has_unicode_font(self, form: "Form") -> bool:
        return resolution.has_unicode_font(form.state)

    def _require_font_engine(self, form: "Form") -> None:
        if not form.document.is_font_engine_registered():
            raise CapabilityNotRegisteredError(
                "A font engine must be registered with register_font_engine() "
                "before provisioning a Unicode font"
            )

    def _store(self, form: "Form", handle: FontHandle) -> None:
        form.apply_default_font(handle)
        state = form.state
        state.default_font = handle
        state.status = ProvisioningStatus.PROVISIONED
        state.error = None

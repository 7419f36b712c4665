# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Options for creating, loading and saving documents."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _coerce_font_bytes(value: Any, option: str) -> bytes | None:
    if value is None:
        return None
    if isinstance(value, (bytearray, memoryview)):
        value = bytes(value)
    if not isinstance(value, bytes):
        raise ConfigurationError(
            f"{option} must be bytes, got {type(value).__name__}"
        )
    if not value:
        raise ConfigurationError(f"{option} must not be empty")
    return value


@dataclass(frozen=True)
class DocumentOptions:
    """Options accepted by :meth:`Document.create` and :meth:`Document.open`.

    Attributes:
        unicode_font_bytes: Font file (TTF/OTF) to provision as the form
            default on first access through ``ensure_form_provisioned`` or
            ``get_form_async``. A font engine must be registered by then.
        update_existing_fields: Also move fields without their own font to
            the provisioned font. Only used with ``unicode_font_bytes``.
        update_metadata: Write /Producer and dates into the document
            information dictionary.
    """

    unicode_font_bytes: bytes | None = None
    update_existing_fields: bool = False
    update_metadata: bool = True

    def __post_init__(self) -> None:
        font_bytes = _coerce_font_bytes(self.unicode_font_bytes, "unicode_font_bytes")
        object.__setattr__(self, "unicode_font_bytes", font_bytes)

        for name in ("update_existing_fields", "update_metadata"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a bool")

        if self.update_existing_fields and font_bytes is None:
            logger.warning(
                "update_existing_fields has no effect without unicode_font_bytes"
            )

    @property
    def defers_provisioning(self) -> bool:
        """True when a font is waiting to be provisioned on form access."""
        return self.unicode_font_bytes is not None

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "DocumentOptions":
        """Builds options from a plain mapping, rejecting unknown keys.

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        if mapping is None:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown document option(s): {', '.join(unknown)}. "
                f"Allowed: {', '.join(sorted(known))}"
            )
        return cls(**mapping)


@dataclass(frozen=True)
class EmbedFontOptions:
    """Options for :meth:`Document.embed_font`.

    Attributes:
        custom_name: /BaseFont to use instead of the font's PostScript name.
    """

    custom_name: str | None = None

    def __post_init__(self) -> None:
        if self.custom_name is None:
            return
        if not isinstance(self.custom_name, str) or not self.custom_name:
            raise ConfigurationError("custom_name must be a non-empty string")
        if any(ch.isspace() or ch in "/[](){}<>%#" for ch in self.custom_name):
            raise ConfigurationError(
                f"custom_name contains characters not allowed in a PDF name: "
                f"{self.custom_name!r}"
            )


@dataclass(frozen=True)
class SaveOptions:
    """Options for :meth:`Document.save`.

    Attributes:
        update_field_appearances: Regenerate appearance streams of text
            fields whose value or font changed. Other changed fields get
            /NeedAppearances instead.
    """

    update_field_appearances: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.update_field_appearances, bool):
            raise ConfigurationError("update_field_appearances must be a bool")

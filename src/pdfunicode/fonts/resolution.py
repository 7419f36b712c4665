# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font precedence across form and field scopes.

Field override wins over the form default, which wins over the document
engine's standard font. A None result tells the caller to fall back to the
standard font.
"""

from typing import TYPE_CHECKING

from .handle import FontHandle

if TYPE_CHECKING:
    from ..state import ProvisioningState


def effective_form_font(state: "ProvisioningState") -> FontHandle | None:
    """Returns the form default font, or None."""
    return state.default_font


def effective_field_font(
    field_override: FontHandle | None, state: "ProvisioningState"
) -> FontHandle | None:
    """Returns the font a field renders with, or None for the standard font.

    Args:
        field_override: The field's own font, if any.
        state: Provisioning state of the field's form.
    """
    if field_override is not None:
        return field_override
    return effective_form_font(state)


def has_unicode_font(state: "ProvisioningState") -> bool:
    """True if the form has a default font.

    Does not check glyph coverage of the font.
    """
    return state.default_font is not None

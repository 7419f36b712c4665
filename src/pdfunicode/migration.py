# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Moving existing form fields to a newly provisioned font."""

import logging
from typing import TYPE_CHECKING

from .fonts.handle import FontHandle

if TYPE_CHECKING:
    from .forms import Form

logger = logging.getLogger(__name__)


def migrate_existing_fields(form: "Form", handle: FontHandle) -> list[str]:
    """Gives every field without its own font *handle* as override.

    Fields that already have a font keep it. Values, geometry and
    appearance streams are left alone; changed fields get new appearances
    when the document is saved. Running it twice changes nothing the
    second time.

    Args:
        form: Form whose fields are migrated.
        handle: Font owned by the form's document.

    Returns:
        Names of the fields that were changed.

    Raises:
        FontHandleError: If *handle* belongs to another document.
    """
    form.document.check_owned(handle)

    migrated = []
    for field in form.fields:
        if field.font is not None:
            continue
        field.font = handle
        migrated.append(field.name)

    logger.info(
        "Migrated %d existing field(s) to /%s", len(migrated), handle.resource_name
    )
    return migrated

# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Per-form provisioning state."""

from dataclasses import dataclass
from enum import Enum

from .fonts.handle import FontHandle


class ProvisioningStatus(Enum):
    """Lifecycle of a form's Unicode font."""

    NOT_PROVISIONED = "not_provisioned"
    PROVISIONING = "provisioning"
    PROVISIONED = "provisioned"
    FAILED = "failed"


@dataclass
class ProvisioningState:
    """Default font and provisioning status of one form.

    Only the operations of :class:`~pdfunicode.provisioning.UnicodeFontProvisioner`
    and the document's deferred provisioning write to this object.

    Attributes:
        default_font: Form-level default font, or None.
        status: Current provisioning status.
        error: Exception that moved the state to FAILED.
    """

    default_font: FontHandle | None = None
    status: ProvisioningStatus = ProvisioningStatus.NOT_PROVISIONED
    error: BaseException | None = None

# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Interactive form (AcroForm) access.

A field's own /DA entry is its font override. Fields without one inherit
the AcroForm /DA, which holds the form default font, so changing the form
default reaches them without touching the fields themselves.
"""

import logging
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING

from pikepdf import Array, Dictionary, Name, Page, String

from .appearance import build_text_field_appearance, format_da_string, parse_da_string
from .exceptions import FormFieldError
from .fonts.constants import DEFAULT_FONT_SIZE
from .fonts.handle import FontHandle
from .fonts.resolution import effective_field_font
from .state import ProvisioningState
from .utils import resolve_indirect as _resolve

if TYPE_CHECKING:
    from .document import Document
    from .provisioning import UnicodeFontProvisioner

logger = logging.getLogger(__name__)

# Annotation flag: print
_ANNOT_FLAG_PRINT = 4


def _get_inheritable(node, key: str, acroform=None):
    """Looks up an inheritable field attribute.

    Walks the /Parent chain, then falls back to the AcroForm dictionary.
    """
    visited: set[tuple[int, int]] = set()
    current = node
    while current is not None:
        objgen = current.objgen
        if objgen != (0, 0):
            if objgen in visited:
                break
            visited.add(objgen)

        val = current.get(key)
        if val is not None:
            return val

        parent = current.get("/Parent")
        current = _resolve(parent) if parent is not None else None

    if acroform is not None:
        return acroform.get(key)
    return None


def _is_widget(node) -> bool:
    subtype = node.get("/Subtype")
    return subtype is not None and str(subtype) == "/Widget"


def _rgb_array(color: Sequence[float] | None) -> Array | None:
    if color is None:
        return None
    return Array([float(c) for c in color])


class FormField:
    """A terminal field of the form."""

    def __init__(self, form: "Form", obj: Dictionary, name: str) -> None:
        self._form = form
        self._obj = obj
        self._name = name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"

    @property
    def name(self) -> str:
        """Fully qualified field name (parent names joined with dots)."""
        return self._name

    @property
    def obj(self) -> Dictionary:
        """The underlying field dictionary."""
        return self._obj

    @property
    def field_type(self) -> str | None:
        """Field type without the slash (``Tx``, ``Btn``, ``Ch``, ``Sig``)."""
        ft = _get_inheritable(self._obj, "/FT", self._form.acroform)
        return str(ft)[1:] if ft is not None else None

    @property
    def flags(self) -> int:
        ff = _get_inheritable(self._obj, "/Ff", self._form.acroform)
        return int(ff) if ff is not None else 0

    @property
    def font(self) -> FontHandle | None:
        """The field's own font, or None when it inherits the form default.

        A /DA naming a resource missing from /DR counts as no font.
        """
        da = self._obj.get("/DA")
        if da is None:
            return None
        font_name, _size, _color = parse_da_string(da)
        if font_name is None:
            return None
        return self._form.document.font_for_resource(font_name)

    @font.setter
    def font(self, handle: FontHandle | None) -> None:
        if handle is None:
            if "/DA" in self._obj:
                del self._obj["/DA"]
                self._form.mark_dirty(self)
            return

        self._form.document.check_owned(handle)
        self._form.register_font_resource(handle)
        font_size, color_ops = self._da_size_and_color()
        self._obj.DA = String(format_da_string(handle.resource_name, font_size, color_ops))
        self._form.mark_dirty(self)

    @property
    def font_size(self) -> float:
        """Font size from the effective /DA; 0 means auto-size."""
        font_size, _color = self._da_size_and_color()
        return font_size

    @property
    def effective_font(self) -> FontHandle:
        """Font the field renders with; never None."""
        return self._form.effective_font(self)

    @property
    def widgets(self) -> list[Dictionary]:
        """Widget annotations of the field."""
        if _is_widget(self._obj):
            return [self._obj]
        result = []
        for kid in self._obj.get("/Kids", []):
            kid = _resolve(kid)
            if _is_widget(kid) and "/T" not in kid:
                result.append(kid)
        return result

    def _inherited_da(self):
        return _get_inheritable(self._obj, "/DA", self._form.acroform)

    def _da_size_and_color(self) -> tuple[float, str]:
        """Size and color of the effective /DA.

        A /DA without Tf takes its size from the parent chain or the form.
        """
        font_name, font_size, color_ops = parse_da_string(self._inherited_da())
        if font_name is None and "/DA" in self._obj:
            acroform = self._form.acroform
            parent = self._obj.get("/Parent")
            if parent is not None:
                outer = _get_inheritable(_resolve(parent), "/DA", acroform)
            else:
                outer = acroform.get("/DA")
            _outer_name, font_size, _outer_color = parse_da_string(outer)
        return font_size, color_ops

    def update_appearances(self) -> bool:
        """Rebuilds appearance streams of the field's widgets.

        Returns:
            False when the field type has no generator here and the viewer
            has to build the appearance itself.
        """
        return False


class TextField(FormField):
    """A text field (/FT /Tx)."""

    def get_text(self) -> str | None:
        """Returns the field value, or None when empty."""
        value = _get_inheritable(self._obj, "/V")
        if value is None:
            return None
        return str(value)

    def set_text(self, text: str | None) -> None:
        """Sets the field value. The font override is left untouched."""
        if text is None:
            if "/V" in self._obj:
                del self._obj["/V"]
        else:
            self._obj.V = String(text)
        self._form.mark_dirty(self)

    def add_to_page(
        self,
        page: Page,
        *,
        x: float,
        y: float,
        width: float,
        height: float,
        border_color: Sequence[float] | None = (0, 0, 0),
        background_color: Sequence[float] | None = None,
        border_width: float = 1,
    ) -> Dictionary:
        """Adds a widget for this field to *page*.

        Args:
            page: Page to place the widget on.
            x: Left edge in points.
            y: Bottom edge in points.
            width: Widget width in points.
            height: Widget height in points.
            border_color: RGB border color, or None for no border.
            background_color: RGB background color, or None.
            border_width: Border width in points.

        Returns:
            The new widget annotation.
        """
        if width <= 0 or height <= 0:
            raise FormFieldError(f"Widget of {self._name} needs a positive size")

        pdf = self._form.document.pdf
        mk = Dictionary()
        if border_color is not None:
            mk.BC = _rgb_array(border_color)
        if background_color is not None:
            mk.BG = _rgb_array(background_color)

        widget = pdf.make_indirect(
            Dictionary(
                Type=Name.Annot,
                Subtype=Name.Widget,
                Rect=Array([x, y, x + width, y + height]),
                F=_ANNOT_FLAG_PRINT,
                P=page.obj,
                Parent=self._obj,
                MK=mk,
                BS=Dictionary(W=border_width),
            )
        )

        if "/Kids" not in self._obj:
            self._obj.Kids = Array()
        self._obj.Kids.append(widget)

        if "/Annots" not in page.obj:
            page.obj.Annots = Array()
        page.obj.Annots.append(widget)

        self._form.mark_dirty(self)
        return widget

    def update_appearances(self) -> bool:
        font = self.effective_font
        font_size, color_ops = self._da_size_and_color()
        q = _get_inheritable(self._obj, "/Q", self._form.acroform)
        alignment = int(q) if q is not None else 0
        text = self.get_text() or ""

        if not font.covers(text):
            logger.warning(
                "Font %s has no glyphs for some characters of field %s",
                font.base_font,
                self._name,
            )

        pdf = self._form.document.pdf
        for widget in self.widgets:
            stream = build_text_field_appearance(
                pdf, widget, font, font_size, color_ops, text, alignment=alignment
            )
            widget.AP = Dictionary(N=stream)
        return True


class Form:
    """The document's interactive form.

    Obtained from :meth:`Document.get_form`; one instance per document.
    """

    def __init__(
        self,
        document: "Document",
        acroform: Dictionary,
        provisioner: "UnicodeFontProvisioner",
    ) -> None:
        self._document = document
        self._acroform = acroform
        self._provisioner = provisioner
        self._state = ProvisioningState()
        self._dirty: dict[tuple[int, int], Dictionary] = {}
        self._needs_viewer_appearances = False

        if "/Fields" not in acroform:
            acroform.Fields = Array()
        if "/DR" not in acroform:
            acroform.DR = Dictionary()
        if "/Font" not in _resolve(acroform.DR):
            _resolve(acroform.DR).Font = Dictionary()
        if "/DA" not in acroform:
            standard = document.standard_font()
            self.register_font_resource(standard)
            acroform.DA = String(format_da_string(standard.resource_name, DEFAULT_FONT_SIZE))

    @property
    def document(self) -> "Document":
        return self._document

    @property
    def acroform(self) -> Dictionary:
        return self._acroform

    @property
    def state(self) -> ProvisioningState:
        """Provisioning state. Treat as read-only."""
        return self._state

    # -- Fields --

    def _iter_fields(self) -> Iterator[tuple[str, Dictionary]]:
        visited: set[tuple[int, int]] = set()

        def walk(node, parent_name: str):
            node = _resolve(node)
            objgen = node.objgen
            if objgen != (0, 0):
                if objgen in visited:
                    return
                visited.add(objgen)

            partial = node.get("/T")
            if partial is None:
                name = parent_name
            elif parent_name:
                name = f"{parent_name}.{partial}"
            else:
                name = str(partial)

            child_fields = [
                kid for kid in node.get("/Kids", []) if "/T" in _resolve(kid)
            ]
            if child_fields:
                for kid in child_fields:
                    yield from walk(kid, name)
            else:
                yield name, node

        for root in _resolve(self._acroform.Fields):
            yield from walk(root, "")

    def _wrap(self, name: str, obj: Dictionary) -> FormField:
        ft = _get_inheritable(obj, "/FT", self._acroform)
        if ft is not None and str(ft) == "/Tx":
            return TextField(self, obj, name)
        return FormField(self, obj, name)

    @property
    def fields(self) -> list[FormField]:
        """All terminal fields, in document order."""
        return [self._wrap(name, obj) for name, obj in self._iter_fields()]

    def get_field(self, name: str) -> FormField:
        """Returns the field with the fully qualified *name*.

        Raises:
            FormFieldError: If no such field exists.
        """
        for field_name, obj in self._iter_fields():
            if field_name == name:
                return self._wrap(field_name, obj)
        raise FormFieldError(f"No form field named {name!r}")

    def get_text_field(self, name: str) -> TextField:
        """Returns the text field with the fully qualified *name*.

        Raises:
            FormFieldError: If the field is missing or not a text field.
        """
        field = self.get_field(name)
        if not isinstance(field, TextField):
            raise FormFieldError(
                f"Field {name!r} is a {field.field_type} field, not a text field"
            )
        return field

    def create_text_field(self, name: str) -> TextField:
        """Creates a text field without widgets.

        Dotted names create the intermediate parent fields.

        Raises:
            FormFieldError: If the name is malformed or already taken.
        """
        parts = name.split(".") if name else []
        if not parts or any(not part for part in parts):
            raise FormFieldError(f"Invalid field name: {name!r}")
        if any(field_name == name for field_name, _obj in self._iter_fields()):
            raise FormFieldError(f"A form field named {name!r} already exists")

        pdf = self._document.pdf
        parent = None
        siblings = _resolve(self._acroform.Fields)
        for part in parts[:-1]:
            node = None
            for candidate in siblings:
                candidate = _resolve(candidate)
                if str(candidate.get("/T", "")) == part:
                    node = candidate
                    break
            if node is None:
                node = pdf.make_indirect(Dictionary(T=String(part), Kids=Array()))
                if parent is not None:
                    node.Parent = parent
                siblings.append(node)
            elif "/FT" in node and "/Kids" not in node:
                raise FormFieldError(f"{part!r} in {name!r} is already a terminal field")
            if "/Kids" not in node:
                node.Kids = Array()
            parent = node
            siblings = node.Kids

        field = pdf.make_indirect(Dictionary(FT=Name.Tx, T=String(parts[-1])))
        if parent is not None:
            field.Parent = parent
        siblings.append(field)

        logger.debug("Created text field %s", name)
        return TextField(self, field, name)

    # -- Fonts --

    def register_font_resource(self, handle: FontHandle) -> None:
        """Makes *handle* available under its resource name in /DR."""
        fonts = _resolve(_resolve(self._acroform.DR).Font)
        key = Name("/" + handle.resource_name)
        if key not in fonts:
            fonts[key] = handle.font_dict

    def effective_font(self, field: FormField) -> FontHandle:
        """Font *field* renders with: override, form default, standard font."""
        font = effective_field_font(field.font, self._state)
        if font is None:
            font = self._document.standard_font()
        return font

    def apply_default_font(self, handle: FontHandle) -> None:
        """Writes *handle* as the AcroForm default font.

        Called by the provisioner; the ProvisioningState is updated there.
        """
        self.register_font_resource(handle)
        _font_name, font_size, color_ops = parse_da_string(self._acroform.get("/DA"))
        if self._acroform.get("/DA") is None:
            font_size = DEFAULT_FONT_SIZE
        self._acroform.DA = String(
            format_da_string(handle.resource_name, font_size, color_ops)
        )
        for field in self.fields:
            if field.font is None:
                self.mark_dirty(field)

    def provision_bundled_font(self) -> FontHandle:
        """Embeds the bundled Unicode font and makes it the form default."""
        return self._provisioner.provision_from_bundle(self)

    def provision_font(
        self, font_data: bytes, *, update_existing_fields: bool = False
    ) -> FontHandle:
        """Embeds *font_data* and makes it the form default.

        Args:
            font_data: TrueType/OpenType font bytes.
            update_existing_fields: Also give fields without their own font
                the new font as override.
        """
        return self._provisioner.provision_from_bytes(
            self, font_data, update_existing_fields=update_existing_fields
        )

    async def provision_bundled_font_async(self) -> FontHandle:
        """Asynchronous counterpart to :meth:`provision_bundled_font`."""
        return await self._provisioner.provision_from_bundle_async(self)

    async def provision_font_async(
        self, font_data: bytes, *, update_existing_fields: bool = False
    ) -> FontHandle:
        """Asynchronous counterpart to :meth:`provision_font`."""
        return await self._provisioner.provision_from_bytes_async(
            self, font_data, update_existing_fields=update_existing_fields
        )

    def set_default_font(self, handle: FontHandle) -> None:
        """Uses an already embedded font as the form default."""
        self._provisioner.set_explicit_font(self, handle)

    def get_default_font(self) -> FontHandle:
        """Returns the form default, or the standard font when unset."""
        return self._provisioner.get_default_font(self)

    def has_unicode_font(self) -> bool:
        return self._provisioner.has_unicode_font(self)

    # -- Appearances --

    def mark_dirty(self, field: FormField) -> None:
        """Schedules *field* for appearance regeneration on save."""
        objgen = field.obj.objgen
        if objgen == (0, 0):
            self._needs_viewer_appearances = True
            return
        self._dirty[objgen] = field.obj

    @property
    def has_pending_appearances(self) -> bool:
        return bool(self._dirty) or self._needs_viewer_appearances

    def update_field_appearances(self) -> int:
        """Rebuilds appearances of changed fields.

        Fields without a generator here set /NeedAppearances so the viewer
        builds them.

        Returns:
            Number of fields whose appearance streams were rebuilt.
        """
        updated = 0
        for name, obj in self._iter_fields():
            if obj.objgen not in self._dirty:
                continue
            if self._wrap(name, obj).update_appearances():
                updated += 1
            else:
                self._needs_viewer_appearances = True
        self._dirty.clear()

        if self._needs_viewer_appearances:
            self._acroform.NeedAppearances = True
            self._needs_viewer_appearances = False
        if updated:
            logger.debug("Rebuilt appearance streams for %d field(s)", updated)
        return updated

    def request_viewer_appearances(self) -> None:
        """Leaves appearance generation of changed fields to the viewer."""
        if self.has_pending_appearances:
            self._acroform.NeedAppearances = True
        self._dirty.clear()
        self._needs_viewer_appearances = False

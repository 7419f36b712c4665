# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Documents: pikepdf wrapper that embeds fonts and owns the form."""

import asyncio
import logging
import threading
from io import BytesIO
from pathlib import Path
from typing import BinaryIO

import pikepdf
from pikepdf import Dictionary, Name, Page, Pdf

from .exceptions import (
    CapabilityNotRegisteredError,
    ConfigurationError,
    FontEmbeddingError,
    FontHandleError,
)
from .fonts.bundled import DEFAULT_FONT_CACHE, BundledFontCache
from .fonts.cidfont import CIDFontBuilder
from .fonts.constants import (
    EMBEDDED_FONT_PREFIX,
    STANDARD_FONT,
    STANDARD_FONT_RESOURCE,
)
from .fonts.engine import FontEngine, FontToolsEngine
from .fonts.handle import FontHandle
from .fonts.metrics import FontMetricsExtractor
from .fonts.tounicode import parse_tounicode_cmap
from .forms import Form
from .options import DocumentOptions, EmbedFontOptions, SaveOptions
from .provisioning import UnicodeFontProvisioner
from .state import ProvisioningStatus
from .utils import format_pdf_date
from .utils import resolve_indirect as _resolve

logger = logging.getLogger(__name__)

PRODUCER = "pdfunicode"

# US Letter in points
_DEFAULT_PAGE_SIZE = (612, 792)


def _is_font_embedded(font_dict: Dictionary) -> bool:
    """Checks whether a font dictionary carries its font program."""
    descriptor = font_dict.get("/FontDescriptor")
    if descriptor is None:
        descendants = font_dict.get("/DescendantFonts")
        if descendants:
            descriptor = _resolve(descendants[0]).get("/FontDescriptor")
    if descriptor is None:
        return False
    descriptor = _resolve(descriptor)
    return any(key in descriptor for key in ("/FontFile", "/FontFile2", "/FontFile3"))


class Document:
    """A PDF document able to provision Unicode fonts for its form.

    Use :meth:`create` or :meth:`open` rather than the constructor.
    """

    def __init__(
        self,
        pdf: Pdf,
        options: DocumentOptions | None = None,
        *,
        font_cache: BundledFontCache | None = None,
    ) -> None:
        """Wraps an opened pikepdf document.

        Args:
            pdf: Opened pikepdf PDF object.
            options: Document options.
            font_cache: Cache providing the bundled font. Defaults to the
                process-wide cache.
        """
        self._pdf = pdf
        self._options = options or DocumentOptions()
        self._font_cache = font_cache or DEFAULT_FONT_CACHE
        self._provisioner = UnicodeFontProvisioner(self._font_cache)
        self._metrics = FontMetricsExtractor()
        self._font_engine: FontEngine | None = None
        self._font_handles: dict[str, FontHandle] = {}
        self._standard_font: FontHandle | None = None
        self._form: Form | None = None
        self._form_lock = threading.Lock()
        self._provision_lock = threading.Lock()

    @classmethod
    def create(
        cls,
        options: DocumentOptions | None = None,
        *,
        font_cache: BundledFontCache | None = None,
    ) -> "Document":
        """Creates an empty document.

        Args:
            options: Document options.
            font_cache: Cache providing the bundled font.
        """
        document = cls(Pdf.new(), options, font_cache=font_cache)
        if document._options.update_metadata:
            now = format_pdf_date()
            document._pdf.docinfo[Name.Producer] = PRODUCER
            document._pdf.docinfo[Name.Creator] = PRODUCER
            document._pdf.docinfo[Name.CreationDate] = now
            document._pdf.docinfo[Name.ModDate] = now
        return document

    @classmethod
    def open(
        cls,
        source: str | Path | bytes | BinaryIO,
        options: DocumentOptions | None = None,
        *,
        font_cache: BundledFontCache | None = None,
        password: str = "",
    ) -> "Document":
        """Opens an existing document.

        Args:
            source: Path, raw PDF bytes or a binary stream.
            options: Document options.
            font_cache: Cache providing the bundled font.
            password: Password for encrypted documents.

        Raises:
            pikepdf.PdfError: If the document cannot be parsed.
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = BytesIO(bytes(source))
        document = cls(Pdf.open(source, password=password), options, font_cache=font_cache)
        if document._options.update_metadata:
            document._pdf.docinfo[Name.Producer] = PRODUCER
            document._pdf.docinfo[Name.ModDate] = format_pdf_date()
        logger.debug("Opened document with %d page(s)", len(document._pdf.pages))
        return document

    def close(self) -> None:
        """Closes the underlying pikepdf document."""
        self._pdf.close()

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def pdf(self) -> Pdf:
        """The underlying pikepdf document."""
        return self._pdf

    @property
    def options(self) -> DocumentOptions:
        return self._options

    @property
    def font_cache(self) -> BundledFontCache:
        return self._font_cache

    @property
    def provisioner(self) -> UnicodeFontProvisioner:
        return self._provisioner

    # -- Pages --

    @property
    def pages(self) -> list[Page]:
        return list(self._pdf.pages)

    def add_page(self, width: float = _DEFAULT_PAGE_SIZE[0], height: float = _DEFAULT_PAGE_SIZE[1]) -> Page:
        """Appends a blank page of the given size in points."""
        return self._pdf.add_blank_page(page_size=(width, height))

    # -- Font engine --

    def register_font_engine(self, engine: FontEngine | None = None) -> None:
        """Registers the engine needed for embedding font files.

        Args:
            engine: Engine to use. Defaults to :class:`FontToolsEngine`.

        Raises:
            ConfigurationError: If *engine* has no ``parse`` method.
        """
        if engine is None:
            engine = FontToolsEngine()
        elif not isinstance(engine, FontEngine):
            raise ConfigurationError(
                f"{type(engine).__name__} does not implement FontEngine.parse"
            )
        self._font_engine = engine
        logger.debug("Font engine registered: %s", type(engine).__name__)

    def is_font_engine_registered(self) -> bool:
        return self._font_engine is not None

    # -- Fonts --

    def _dr_fonts(self) -> Dictionary | None:
        acroform = self._pdf.Root.get("/AcroForm")
        if acroform is None:
            return None
        dr = _resolve(acroform).get("/DR")
        if dr is None:
            return None
        fonts = _resolve(dr).get("/Font")
        return _resolve(fonts) if fonts is not None else None

    def _next_resource_name(self, prefix: str) -> str:
        taken = set(self._font_handles)
        dr_fonts = self._dr_fonts()
        if dr_fonts is not None:
            taken.update(str(key)[1:] for key in dr_fonts.keys())
        index = 1
        while f"{prefix}{index}" in taken:
            index += 1
        return f"{prefix}{index}"

    def embed_font(self, font_data: bytes, options: EmbedFontOptions | None = None) -> FontHandle:
        """Embeds a TrueType/OpenType font as a Type0 Identity-H font.

        Every call embeds again and returns a new handle.

        Args:
            font_data: Raw font file bytes.
            options: Embedding options.

        Returns:
            Handle of the embedded font.

        Raises:
            CapabilityNotRegisteredError: If no font engine is registered.
            FontEmbeddingError: If the bytes are not a usable font.
        """
        if self._font_engine is None:
            raise CapabilityNotRegisteredError(
                "A font engine must be registered with register_font_engine() "
                "before embedding fonts"
            )
        options = options or EmbedFontOptions()
        font_data = bytes(font_data)

        parsed = self._font_engine.parse(font_data)
        base_font = options.custom_name or parsed.postscript_name
        try:
            builder = CIDFontBuilder(self._pdf, self._metrics)
            font_dict = builder.build_structure(
                base_font, parsed.tt_font, font_data, parsed.unicode_to_gid
            )
        except (ValueError, KeyError, AttributeError) as e:
            raise FontEmbeddingError(f"Could not embed font '{base_font}': {e}") from e
        finally:
            parsed.tt_font.close()

        handle = FontHandle(
            resource_name=self._next_resource_name(EMBEDDED_FONT_PREFIX),
            font_dict=font_dict,
            base_font=base_font,
            embedded=True,
            owner=self,
            glyph_ids=parsed.unicode_to_gid,
            widths=parsed.widths,
            default_width=parsed.default_width,
            ascent=parsed.ascent,
            descent=parsed.descent,
        )
        self._font_handles[handle.resource_name] = handle
        logger.info(
            "Font embedded: %s as /%s (%d bytes)",
            base_font,
            handle.resource_name,
            len(font_data),
        )
        return handle

    def standard_font(self) -> FontHandle:
        """Returns the built-in Helvetica font, creating it on first use.

        An existing ``/DR /Helv`` Helvetica resource is reused.
        """
        if self._standard_font is not None:
            return self._standard_font

        dr_fonts = self._dr_fonts()
        if dr_fonts is not None:
            existing = dr_fonts.get(Name("/" + STANDARD_FONT_RESOURCE))
            if existing is not None:
                base_font = _resolve(existing).get("/BaseFont")
                if base_font is not None and str(base_font) == f"/{STANDARD_FONT}":
                    self._standard_font = self.font_for_resource(STANDARD_FONT_RESOURCE)
                    return self._standard_font

        resource_name = STANDARD_FONT_RESOURCE
        if resource_name in self._font_handles or (
            dr_fonts is not None and Name("/" + resource_name) in dr_fonts
        ):
            resource_name = self._next_resource_name(STANDARD_FONT_RESOURCE)

        font_dict = self._pdf.make_indirect(
            Dictionary(
                Type=Name.Font,
                Subtype=Name.Type1,
                BaseFont=Name("/" + STANDARD_FONT),
                Encoding=Name.WinAnsiEncoding,
            )
        )
        self._standard_font = FontHandle(
            resource_name=resource_name,
            font_dict=font_dict,
            base_font=STANDARD_FONT,
            embedded=False,
            owner=self,
        )
        self._font_handles[resource_name] = self._standard_font
        return self._standard_font

    def font_for_resource(self, resource_name: str) -> FontHandle | None:
        """Returns the handle for a form font resource.

        Handles are cached, so repeated lookups return the same object.

        Args:
            resource_name: Key under ``/DR /Font`` without the slash.

        Returns:
            The handle, or None if the resource is not in ``/DR /Font``.
        """
        dr_fonts = self._dr_fonts()
        if dr_fonts is None:
            return None
        font_obj = dr_fonts.get(Name("/" + resource_name))
        if font_obj is None:
            return None

        handle = self._font_handles.get(resource_name)
        if handle is not None and handle.font_dict.objgen == font_obj.objgen:
            return handle

        font_dict = _resolve(font_obj)
        base_font = font_dict.get("/BaseFont")
        glyph_ids: dict[int, int] = {}
        to_unicode = font_dict.get("/ToUnicode")
        if to_unicode is not None and str(font_dict.get("/Subtype")) == "/Type0":
            try:
                code_to_unicode = parse_tounicode_cmap(_resolve(to_unicode).read_bytes())
            except pikepdf.PdfError:
                logger.debug("Unreadable ToUnicode in /%s", resource_name, exc_info=True)
            else:
                glyph_ids = {uni: code for code, uni in code_to_unicode.items()}

        handle = FontHandle(
            resource_name=resource_name,
            font_dict=font_obj,
            base_font=str(base_font)[1:] if base_font is not None else resource_name,
            embedded=_is_font_embedded(font_dict),
            owner=self,
            glyph_ids=glyph_ids,
        )
        self._font_handles[resource_name] = handle
        return handle

    def owns(self, handle: FontHandle) -> bool:
        return handle.owner is self

    def check_owned(self, handle: FontHandle) -> None:
        """Raises FontHandleError if *handle* belongs to another document."""
        if not self.owns(handle):
            raise FontHandleError(
                f"Font /{handle.resource_name} ({handle.base_font}) belongs to "
                "another document"
            )

    # -- Form --

    def get_form(self) -> Form:
        """Returns the form, creating /AcroForm if needed.

        Does not run deferred provisioning; see :meth:`ensure_form_provisioned`.
        """
        with self._form_lock:
            if self._form is None:
                acroform = self._pdf.Root.get("/AcroForm")
                if acroform is None:
                    self._pdf.Root.AcroForm = self._pdf.make_indirect(Dictionary())
                    acroform = self._pdf.Root.AcroForm
                self._form = Form(self, _resolve(acroform), self._provisioner)
            return self._form

    def ensure_form_provisioned(self) -> Form:
        """Returns the form after running deferred provisioning once.

        With ``DocumentOptions.unicode_font_bytes`` set, the first call
        embeds that font as the form default. Concurrent callers wait for
        the running attempt. A failed attempt is not repeated; its error is
        raised again.

        Raises:
            CapabilityNotRegisteredError: If no font engine is registered
                yet. The attempt may be repeated after registering one.
            FontEmbeddingError: If the configured font cannot be embedded.
        """
        form = self.get_form()
        if not self._options.defers_provisioning:
            return form

        with self._provision_lock:
            state = form.state
            if state.status is ProvisioningStatus.PROVISIONED:
                return form
            if state.status is ProvisioningStatus.FAILED:
                raise state.error.with_traceback(None)
            if not self.is_font_engine_registered():
                raise CapabilityNotRegisteredError(
                    "A font engine must be registered with register_font_engine() "
                    "before the form can be provisioned"
                )

            state.status = ProvisioningStatus.PROVISIONING
            try:
                self._provisioner.provision_from_bytes(
                    form,
                    self._options.unicode_font_bytes,
                    update_existing_fields=self._options.update_existing_fields,
                )
            except Exception as e:
                state.status = ProvisioningStatus.FAILED
                state.error = e
                logger.error("Deferred font provisioning failed: %s", e)
                raise
        return form

    async def get_form_async(self) -> Form:
        """Asynchronous counterpart to :meth:`ensure_form_provisioned`."""
        return await asyncio.to_thread(self.ensure_form_provisioned)

    # -- Saving --

    def save(
        self,
        target: str | Path | BinaryIO,
        options: SaveOptions | None = None,
    ) -> None:
        """Writes the document.

        Args:
            target: Output path or binary stream.
            options: Save options.
        """
        options = options or SaveOptions()
        if self._form is not None:
            if options.update_field_appearances:
                self._form.update_field_appearances()
            else:
                self._form.request_viewer_appearances()
        self._pdf.save(target)

    def to_bytes(self, options: SaveOptions | None = None) -> bytes:
        """Returns the saved document as bytes."""
        buffer = BytesIO()
        self.save(buffer, options)
        return buffer.getvalue()

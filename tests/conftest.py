# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Pytest fixtures for the pdfunicode test suite."""

from io import BytesIO
from pathlib import Path

import pikepdf
import pytest
from pikepdf import Array, Dictionary, Name, Pdf, String

from pdfunicode import Document, DocumentOptions
from pdfunicode.fonts.bundled import BundledFontCache

# -- Global tracker --

_tracked_pdfs: list[Pdf] = []
_tracked_documents: list[Document] = []


@pytest.fixture(autouse=True)
def _auto_close():
    """Close all tracked PDF and document objects after each test."""
    yield
    for document in reversed(_tracked_documents):
        try:
            document.close()
        except Exception:
            pass
    _tracked_documents.clear()
    for pdf in reversed(_tracked_pdfs):
        try:
            pdf.close()
        except Exception:
            pass
    _tracked_pdfs.clear()


def new_pdf(**kwargs) -> Pdf:
    """Create a tracked Pdf (auto-closed after test)."""
    pdf = Pdf.new(**kwargs)
    _tracked_pdfs.append(pdf)
    return pdf


def open_pdf(source, **kwargs) -> Pdf:
    """Open a tracked Pdf (auto-closed after test)."""
    if isinstance(source, bytes):
        source = BytesIO(source)
    pdf = Pdf.open(source, **kwargs)
    _tracked_pdfs.append(pdf)
    return pdf


def new_document(options: DocumentOptions | None = None, **kwargs) -> Document:
    """Create a tracked Document (auto-closed after test)."""
    document = Document.create(options, **kwargs)
    _tracked_documents.append(document)
    return document


def open_document(source, options: DocumentOptions | None = None, **kwargs) -> Document:
    """Open a tracked Document (auto-closed after test)."""
    document = Document.open(source, options, **kwargs)
    _tracked_documents.append(document)
    return document


def save_and_reopen(document: Document) -> Pdf:
    """Save a document and reopen it as a tracked pikepdf object."""
    return open_pdf(document.to_bytes())


def resolve(obj):
    """Resolve an indirect pikepdf object."""
    try:
        return obj.get_object()
    except Exception:
        return obj


def make_form_pdf() -> Pdf:
    """Build a one-page form with two filled text fields.

    ``name`` has no /DA of its own and inherits the form default.
    ``city`` selects /Helv at 10 pt in its own /DA.
    """
    pdf = new_pdf()
    pdf.add_blank_page(page_size=(612, 792))
    page = pdf.pages[0]

    helv = pdf.make_indirect(
        Dictionary(
            Type=Name.Font,
            Subtype=Name.Type1,
            BaseFont=Name.Helvetica,
            Encoding=Name.WinAnsiEncoding,
        )
    )

    name_field = pdf.make_indirect(
        Dictionary(
            Type=Name.Annot,
            Subtype=Name.Widget,
            FT=Name.Tx,
            T=String("name"),
            V=String("Jan"),
            Rect=Array([50, 700, 250, 720]),
            P=page.obj,
        )
    )
    city_field = pdf.make_indirect(
        Dictionary(
            Type=Name.Annot,
            Subtype=Name.Widget,
            FT=Name.Tx,
            T=String("city"),
            V=String("Lodz"),
            DA=String("/Helv 10 Tf 0 g"),
            Rect=Array([50, 660, 250, 680]),
            P=page.obj,
        )
    )
    page.obj.Annots = Array([name_field, city_field])

    pdf.Root.AcroForm = pdf.make_indirect(
        Dictionary(
            Fields=Array([name_field, city_field]),
            DR=Dictionary(Font=Dictionary(Helv=helv)),
            DA=String("/Helv 0 Tf 0 g"),
        )
    )
    return pdf


# -- Fixtures --


@pytest.fixture(scope="session")
def font_bytes() -> bytes:
    """Decoded bundled font, from a private cache."""
    return BundledFontCache().get_bytes()


@pytest.fixture
def document() -> Document:
    """Empty one-page document with the fontTools engine registered."""
    document = new_document()
    document.add_page()
    document.register_font_engine()
    return document


@pytest.fixture
def form_pdf_bytes() -> bytes:
    """Form PDF with two pre-existing text fields, as bytes."""
    pdf = make_form_pdf()
    buffer = BytesIO()
    pdf.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def form_pdf(tmp_path: Path, form_pdf_bytes: bytes) -> Path:
    """Form PDF with two pre-existing text fields, on disk."""
    pdf_path = tmp_path / "form.pdf"
    pdf_path.write_bytes(form_pdf_bytes)
    return pdf_path


@pytest.fixture
def encrypted_pdf(tmp_path: Path) -> Path:
    """Encrypted PDF for error tests."""
    pdf = new_pdf()
    pdf.add_blank_page()
    encrypted_path = tmp_path / "encrypted.pdf"
    pdf.save(encrypted_path, encryption=pikepdf.Encryption(owner="o", user="secret"))
    return encrypted_path

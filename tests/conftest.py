from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Tuple
import sys

import pytest
from pypdf import PdfReader, PdfWriter
from reportlab.pdfgen import canvas

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdfcompose.types import SourceDocument  # noqa: E402


def _write(writer: PdfWriter) -> bytes:
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture()
def page_texts() -> Callable[[bytes], list[str]]:
    """Extracted text of every page, stripped."""

    def _texts(data: bytes) -> list[str]:
        return [(page.extract_text() or "").strip() for page in PdfReader(io.BytesIO(data)).pages]

    return _texts


@pytest.fixture()
def page_sizes() -> Callable[[bytes], list[Tuple[float, float]]]:
    def _sizes(data: bytes) -> list[Tuple[float, float]]:
        return [
            (float(page.mediabox.width), float(page.mediabox.height))
            for page in PdfReader(io.BytesIO(data)).pages
        ]

    return _sizes


@pytest.fixture()
def blank_pdf() -> Callable[..., bytes]:
    """Build a PDF of blank pages; one ``(width, height)`` per page."""

    def _create(sizes: Sequence[Tuple[float, float]] = ((200, 200),), title: Optional[str] = None) -> bytes:
        writer = PdfWriter()
        for width, height in sizes:
            writer.add_blank_page(width=width, height=height)
        if title is not None:
            writer.add_metadata({"/Title": title})
        return _write(writer)

    return _create


@pytest.fixture()
def marked_pdf() -> Callable[..., bytes]:
    """Build a PDF with one page per marker, each page showing its marker."""

    def _create(markers: Iterable[str], size: Tuple[float, float] = (200, 200), title: Optional[str] = None) -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=size)
        if title is not None:
            pdf.setTitle(title)
        for marker in markers:
            pdf.setFont("Helvetica", 24)
            pdf.drawString(20, 100, marker)
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    return _create


@pytest.fixture()
def encrypted_pdf(blank_pdf: Callable[..., bytes]) -> Callable[..., bytes]:
    def _create(user_password: str = "secret", owner_password: Optional[str] = "owner", pages: int = 2) -> bytes:
        writer = PdfWriter(clone_from=PdfReader(io.BytesIO(blank_pdf([(150, 150)] * pages))))
        writer.encrypt(user_password=user_password, owner_password=owner_password)
        return _write(writer)

    return _create


@pytest.fixture()
def make_source() -> Callable[..., SourceDocument]:
    """A source record with no real PDF behind it, for order bookkeeping."""

    def _create(source_id: str, page_count: int) -> SourceDocument:
        return SourceDocument(id=source_id, name=f"{source_id}.pdf", data=b"%PDF-", page_count=page_count)

    return _create


@pytest.fixture()
def pdf_files(tmp_path: Path, marked_pdf: Callable[..., bytes]) -> list[Path]:
    paths = []
    for name, markers in (("one.pdf", ["A", "B"]), ("two.pdf", ["C"])):
        path = tmp_path / name
        path.write_bytes(marked_pdf(markers, title=name))
        paths.append(path)
    return paths

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from pdfcompose.exceptions import PdfLoadError, PdfPasswordRequiredError
from pdfcompose.loader import (
    SourceInput,
    get_document_info,
    load_document,
    load_source,
    load_sources,
    open_source,
    read_source_file,
)


def test_load_document_reads_pages(blank_pdf: Callable[..., bytes]) -> None:
    document = load_document(blank_pdf([(100, 200), (300, 400)]), name="two.pdf")

    assert document.page_count == 2
    assert document.name == "two.pdf"
    assert document.page_size(1) == (300.0, 400.0)
    assert not document.is_encrypted


@pytest.mark.parametrize("data", [b"", b"not a pdf at all"])
def test_load_document_rejects_invalid_buffers(data: bytes) -> None:
    with pytest.raises(PdfLoadError) as excinfo:
        load_document(data, name="broken.pdf")

    assert not isinstance(excinfo.value, PdfPasswordRequiredError)
    assert excinfo.value.name == "broken.pdf"


def test_load_document_rejects_non_bytes() -> None:
    with pytest.raises(PdfLoadError):
        load_document("a string", name="text.pdf")  # type: ignore[arg-type]


def test_encrypted_document_requires_password(encrypted_pdf: Callable[..., bytes]) -> None:
    with pytest.raises(PdfPasswordRequiredError) as excinfo:
        load_document(encrypted_pdf(), name="locked.pdf")

    assert excinfo.value.incorrect_password is False


def test_wrong_password_is_flagged(encrypted_pdf: Callable[..., bytes]) -> None:
    with pytest.raises(PdfPasswordRequiredError) as excinfo:
        load_document(encrypted_pdf(), password="nope", name="locked.pdf")

    assert excinfo.value.incorrect_password is True


def test_correct_password_opens_document(encrypted_pdf: Callable[..., bytes]) -> None:
    document = load_document(encrypted_pdf(pages=3), password="secret", name="locked.pdf")

    assert document.page_count == 3
    assert document.is_encrypted


def test_empty_user_password_opens_without_prompt(encrypted_pdf: Callable[..., bytes]) -> None:
    document = load_document(encrypted_pdf(user_password=""), name="owner-only.pdf")

    assert document.page_count == 2


def test_load_source_keeps_original_bytes(blank_pdf: Callable[..., bytes]) -> None:
    data = blank_pdf([(200, 200)] * 3)

    source = load_source(data, "three.pdf")

    assert source.data == data
    assert source.page_count == 3
    assert source.id.startswith("src-")
    assert open_source(source).page_count == 3


def test_load_sources_preserves_order_and_reports_failures(
    blank_pdf: Callable[..., bytes], encrypted_pdf: Callable[..., bytes]
) -> None:
    report = load_sources(
        [
            SourceInput("a.pdf", blank_pdf([(100, 100)])),
            SourceInput("locked.pdf", encrypted_pdf()),
            ("b.pdf", blank_pdf([(100, 100)] * 2)),
            SourceInput("broken.pdf", b"garbage"),
        ],
        max_workers=2,
    )

    assert [source.name for source in report.sources] == ["a.pdf", "b.pdf"]
    assert [failure.name for failure in report.failures] == ["locked.pdf", "broken.pdf"]
    assert report.failures[0].needs_password
    assert not report.failures[1].needs_password
    assert not report.ok


def test_load_sources_with_password(encrypted_pdf: Callable[..., bytes]) -> None:
    report = load_sources([SourceInput("locked.pdf", encrypted_pdf(), "secret")])

    assert report.ok
    assert report.sources[0].password == "secret"


def test_read_source_file(tmp_path: Path, blank_pdf: Callable[..., bytes]) -> None:
    path = tmp_path / "disk.pdf"
    path.write_bytes(blank_pdf())

    item = read_source_file(path)

    assert item.name == "disk.pdf"
    assert item.data == path.read_bytes()
    assert item.password is None


def test_read_source_file_missing(tmp_path: Path) -> None:
    with pytest.raises(PdfLoadError):
        read_source_file(tmp_path / "missing.pdf")


def test_get_document_info(blank_pdf: Callable[..., bytes]) -> None:
    data = blank_pdf([(100, 150), (200, 250)], title="Report")

    info = get_document_info(load_document(data, name="report.pdf"))

    assert info.page_count == 2
    assert info.file_size == len(data)
    assert info.page_sizes == [(100.0, 150.0), (200.0, 250.0)]
    assert info.metadata.get("/Title") == "Report"

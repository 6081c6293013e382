from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest
from pypdf import PdfReader

from pdfcompose import ComposeConfig, ComposerSession
from pdfcompose.exceptions import AnnotationError, PdfExportError, PdfPasswordRequiredError
from pdfcompose.loader import SourceInput
from pdfcompose.types import MergedDocument, SingleDocument, TextAnnotation


@pytest.fixture()
def session(marked_pdf: Callable[..., bytes]) -> ComposerSession:
    composer = ComposerSession()
    report = composer.add_sources(
        [
            SourceInput("ab.pdf", marked_pdf(["A", "B"])),
            SourceInput("c.pdf", marked_pdf(["C"], size=(300, 400))),
        ]
    )
    assert report.ok
    return composer


def test_empty_session() -> None:
    composer = ComposerSession()

    assert composer.view() is None
    assert composer.working_document is None
    assert composer.page_count == 0


def test_view_depends_on_source_count(marked_pdf: Callable[..., bytes], session: ComposerSession) -> None:
    single = ComposerSession()
    single.add_source(marked_pdf(["A"]), "a.pdf")

    assert isinstance(single.view(), SingleDocument)
    view = session.view()
    assert isinstance(view, MergedDocument)
    assert view.page_count == 3


def test_working_document_is_cached(session: ComposerSession) -> None:
    first = session.working_document

    assert first is session.working_document
    assert first is not None
    assert first.page_count == 3


def test_working_document_rebuilt_after_source_change(
    marked_pdf: Callable[..., bytes], session: ComposerSession
) -> None:
    before = session.working_document
    session.add_source(marked_pdf(["D"]), "d.pdf")

    after = session.working_document
    assert after is not before
    assert after is not None and after.page_count == 4


def test_add_source_errors_propagate(encrypted_pdf: Callable[..., bytes]) -> None:
    composer = ComposerSession()

    with pytest.raises(PdfPasswordRequiredError):
        composer.add_source(encrypted_pdf(), "locked.pdf")
    assert composer.sources == []


def test_add_files_with_passwords(
    tmp_path: Path, pdf_files: list[Path], encrypted_pdf: Callable[..., bytes]
) -> None:
    locked = tmp_path / "locked.pdf"
    locked.write_bytes(encrypted_pdf(pages=2))
    composer = ComposerSession()

    report = composer.add_files([*pdf_files, locked], passwords={"locked.pdf": "secret"})

    assert report.ok
    assert [source.name for source in composer.sources] == ["one.pdf", "two.pdf", "locked.pdf"]
    assert composer.page_count == 5


def test_failed_files_are_reported_not_added(
    tmp_path: Path, pdf_files: list[Path], encrypted_pdf: Callable[..., bytes]
) -> None:
    locked = tmp_path / "locked.pdf"
    locked.write_bytes(encrypted_pdf())
    composer = ComposerSession()

    report = composer.add_files([locked, *pdf_files])

    assert [failure.name for failure in report.failures] == ["locked.pdf"]
    assert report.failures[0].needs_password
    assert composer.page_count == 3


def test_reorder_and_page_size(session: ComposerSession) -> None:
    assert session.reorder_page(2, 0)

    assert session.page_order == [2, 0, 1]
    assert session.has_custom_order
    assert session.page_size(0) == (300.0, 400.0)
    assert [ref.source_id for ref in session.page_references()] == [
        session.sources[1].id,
        session.sources[0].id,
        session.sources[0].id,
    ]


def test_adding_pages_resets_order(marked_pdf: Callable[..., bytes], session: ComposerSession) -> None:
    session.reorder_page(0, 2)
    session.add_source(marked_pdf(["D"]), "d.pdf")

    assert session.page_order == [0, 1, 2, 3]
    assert not session.has_custom_order


def test_moving_sources_keeps_pages_in_place(
    marked_pdf: Callable[..., bytes], page_texts: Callable[[bytes], list]
) -> None:
    composer = ComposerSession()
    composer.add_sources(
        [
            SourceInput("a.pdf", marked_pdf(["A"])),
            SourceInput("b.pdf", marked_pdf(["B"])),
            SourceInput("c.pdf", marked_pdf(["C"])),
        ]
    )
    composer.reorder_page(2, 0)
    assert page_texts(composer.export().data) == ["C", "A", "B"]

    assert composer.move_source(0, 2)

    assert [source.name for source in composer.sources] == ["b.pdf", "c.pdf", "a.pdf"]
    assert page_texts(composer.export().data) == ["C", "A", "B"]
    assert composer.move_source(0, 5) is False


def test_remove_and_clear(session: ComposerSession) -> None:
    removed = session.remove_source(session.sources[1].id)

    assert removed.name == "c.pdf"
    assert session.page_count == 2
    with pytest.raises(KeyError):
        session.get_source(removed.id)

    session.clear()
    assert session.sources == []
    assert session.page_count == 0


def test_commit_annotation_replaces_by_id(session: ComposerSession) -> None:
    session.commit_annotation(TextAnnotation.create(0, "draft", 10, 10, id="a1"))
    session.commit_annotation(TextAnnotation.create(1, "other", 10, 10, id="a2"))
    session.commit_annotation(
        {
            "id": "a1",
            "page_index": 0,
            "text": "final",
            "position": {"x": 10, "y": 10},
            "style": {"font_size": 12, "color": "#000"},
        }
    )

    assert [annotation.id for annotation in session.annotations] == ["a1", "a2"]
    assert session.annotations[0].text == "final"
    assert [a.id for a in session.annotations_for_page(1)] == ["a2"]
    assert session.remove_annotation("a2")
    assert not session.remove_annotation("a2")


def test_commit_invalid_annotation_raises(session: ComposerSession) -> None:
    with pytest.raises(AnnotationError):
        session.commit_annotation({"page_index": 0, "text": ""})
    assert session.annotations == []


def test_export_applies_order_and_annotations(
    session: ComposerSession, page_texts: Callable[[bytes], list]
) -> None:
    session.reorder_page(2, 0)
    session.commit_annotation(TextAnnotation.create(0, "cover", 20, 20, id="cover"))

    result = session.export(filename="final.pdf", document_info={"title": "Final"})

    texts = page_texts(result.data)
    assert texts[0].startswith("C") and "cover" in texts[0]
    assert texts[1:] == ["A", "B"]
    assert result.filename == "final.pdf"
    assert result.applied_annotations == ["cover"]


def test_export_leaves_session_untouched(session: ComposerSession) -> None:
    session.reorder_page(1, 0)
    session.commit_annotation(TextAnnotation.create(0, "note", 20, 20, id="n"))
    sources_before = [source.data for source in session.sources]

    session.export()

    assert [source.data for source in session.sources] == sources_before
    assert session.page_order == [1, 0, 2]
    assert [annotation.id for annotation in session.annotations] == ["n"]


def test_export_empty_session_fails_while_merging() -> None:
    with pytest.raises(PdfExportError) as excinfo:
        ComposerSession().export()

    assert excinfo.value.stage == "merging"


def test_bookmarks_survive_cached_working_document(marked_pdf: Callable[..., bytes]) -> None:
    composer = ComposerSession(ComposeConfig(add_bookmarks=True))
    composer.add_sources([SourceInput("a.pdf", marked_pdf(["A"])), SourceInput("b.pdf", marked_pdf(["B"]))])
    assert composer.working_document is not None

    result = composer.export()

    assert [item.title for item in PdfReader(io.BytesIO(result.data)).outline] == ["a.pdf", "b.pdf"]

"""Page copying for the :mod:`pdfcompose.merge` package."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from pypdf import PdfWriter

from ..exceptions import PdfComposeError, PdfMergeError
from ..loader import LoadedDocument, document_from_writer, load_document
from ..types import PageReference

LOGGER = logging.getLogger("pdfcompose.merge")

MERGED_NAME = "merged.pdf"


def _source_label(index: int, source_ids: Optional[Sequence[str]], document: LoadedDocument) -> str:
    if source_ids is not None and index < len(source_ids):
        return source_ids[index]
    return document.name


def _copy_metadata(document: LoadedDocument, writer: PdfWriter) -> bool:
    metadata = document.metadata()
    if not metadata:
        return False
    LOGGER.debug("Setting metadata from %s: %s", document.name, metadata)
    writer.add_metadata(metadata)
    return True


def _finish(writer: PdfWriter, name: str) -> LoadedDocument:
    try:
        return document_from_writer(writer, name)
    except PdfComposeError as exc:
        raise PdfMergeError(f"Failed to write {name}: {exc}") from exc


def merge_documents(
    documents: Sequence[LoadedDocument],
    *,
    metadata: bool = True,
    bookmarks: Optional[Sequence[Optional[str]]] = None,
    source_ids: Optional[Sequence[str]] = None,
    name: str = MERGED_NAME,
) -> LoadedDocument:
    """Copy every page of *documents*, in order, into one new document.

    Args:
        documents: Loaded handles, concatenated in list order. Pages keep
            their order within each document.
        metadata: When ``True`` metadata from the first input carrying any
            is copied into the result.
        bookmarks: Optional outline titles, one per input, each pointing at
            that input's first page. Missing titles fall back to the input
            name.
        source_ids: Identifiers reported in errors instead of input names.

    Raises:
        PdfMergeError: If no inputs are given or any page cannot be copied.
            The error carries ``source_id`` and ``source_index`` of the
            failing input; no partial output is produced.
    """

    if not documents:
        raise PdfMergeError("No input documents provided")

    if len(documents) == 1 and not bookmarks:
        only = documents[0]
        LOGGER.debug("Single input %s, copying directly", only.name)
        if not only.is_encrypted:
            return load_document(only.data, name=name)

    writer = PdfWriter()
    metadata_copied = False
    bookmark_targets: list[tuple[str, int]] = []

    for index, document in enumerate(documents):
        label = _source_label(index, source_ids, document)
        start_page_index = len(writer.pages)
        try:
            for page_index, page in enumerate(document.iter_pages()):
                LOGGER.debug("Adding page %s from %s", page_index, label)
                writer.add_page(page)
        except Exception as exc:
            LOGGER.error("Failed to copy pages from %s: %s", label, exc)
            raise PdfMergeError(
                f"Failed to copy pages from {label}: {exc}",
                source_id=label,
                source_index=index,
            ) from exc

        if bookmarks is not None and document.page_count:
            title = bookmarks[index] if index < len(bookmarks) else None
            bookmark_targets.append((title or document.name or f"Document {index + 1}", start_page_index))

        if metadata and not metadata_copied:
            metadata_copied = _copy_metadata(document, writer)

    for title, page_index in bookmark_targets:
        try:
            writer.add_outline_item(title, page_index)
        except Exception as exc:  # pragma: no cover - outline errors vary
            LOGGER.warning("Failed to add bookmark '%s': %s", title, exc)

    result = _finish(writer, name)
    LOGGER.info("Merged %d document(s) into %d page(s)", len(documents), result.page_count)
    return result


def _validate_order(order: Sequence[int], page_count: int) -> list[int]:
    indexes = list(order)
    if sorted(indexes) != list(range(page_count)):
        raise PdfMergeError(
            f"Page order must be a permutation of 0..{page_count - 1}, got {indexes!r}"
        )
    return indexes


def reorder_pages(
    document: LoadedDocument,
    order: Sequence[int],
    *,
    name: Optional[str] = None,
) -> LoadedDocument:
    """Rebuild *document* with its pages physically placed in *order*.

    ``order[i]`` is the current index of the page that ends up at position
    ``i``. Metadata is carried over.
    """

    indexes = _validate_order(order, document.page_count)
    writer = PdfWriter()
    for position, page_index in enumerate(indexes):
        LOGGER.debug("Placing page %s at position %s", page_index, position)
        try:
            writer.add_page(document.get_page(page_index))
        except Exception as exc:  # pragma: no cover - pypdf copy errors vary
            raise PdfMergeError(f"Failed to copy page {page_index}: {exc}") from exc
    _copy_metadata(document, writer)

    result = _finish(writer, name or document.name)
    LOGGER.info("Reordered %d page(s)", result.page_count)
    return result


def compose_pages(
    documents: Mapping[str, LoadedDocument],
    references: Sequence[PageReference],
    *,
    name: str = MERGED_NAME,
) -> LoadedDocument:
    """Build a document straight from page references against the sources.

    Each page may be referenced once and the logical indexes must run
    ``0..len(references) - 1``.
    """

    if not references:
        raise PdfMergeError("No pages to compose")
    pages = {(ref.source_id, ref.page_number) for ref in references}
    if len(pages) != len(references):
        raise PdfMergeError("Page references must not repeat a page")
    logical = sorted(ref.logical_index for ref in references)
    if logical != list(range(len(references))):
        raise PdfMergeError(
            f"Logical indexes must run 0..{len(references) - 1}, got {logical!r}"
        )

    writer = PdfWriter()
    for reference in sorted(references, key=lambda ref: ref.logical_index):
        document = documents.get(reference.source_id)
        if document is None:
            raise PdfMergeError(
                f"Unknown source {reference.source_id!r}", source_id=reference.source_id
            )
        if not 1 <= reference.page_number <= document.page_count:
            raise PdfMergeError(
                f"Source {reference.source_id!r} has no page {reference.page_number}",
                source_id=reference.source_id,
            )
        try:
            writer.add_page(document.get_page(reference.page_number - 1))
        except Exception as exc:  # pragma: no cover - pypdf copy errors vary
            raise PdfMergeError(
                f"Failed to copy page {reference.page_number} of {reference.source_id}: {exc}",
                source_id=reference.source_id,
            ) from exc

    result = _finish(writer, name)
    LOGGER.info("Composed %d page(s) from %d source(s)", result.page_count, len(documents))
    return result


__all__ = ["merge_documents", "reorder_pages", "compose_pages", "MERGED_NAME"]

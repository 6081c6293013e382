"""Export pipeline: merge, reorder, annotate, serialize.

The serializer walks ``IDLE -> MERGING -> [REORDERING] -> [ANNOTATING] ->
SERIALIZING -> SERIALIZED``. ``SERIALIZED`` is recorded only once the bytes
have been written and checked. Reordering runs only for a non-identity page order and
annotating only for a non-empty annotation list. A failure in any stage moves
the serializer to ``FAILED`` and raises :class:`PdfExportError` naming the
stage; no bytes are handed out in that case.
"""

from __future__ import annotations

import enum
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Union

from pypdf import PdfWriter

from .annotate import AnnotationCompositor, FontFamily, SkippedAnnotation
from .config import DEFAULT_CONFIG, ComposeConfig
from .exceptions import PdfComposeError, PdfExportError, PdfMergeError
from .loader import LoadedDocument, open_source, serialize_writer
from .merge import merge_documents, reorder_pages
from .types import SourceDocument, WorkingDocument
from .utils import PathLike, ensure_path, is_pdf_bytes

LOGGER = logging.getLogger("pdfcompose.export")

PDF_CONTENT_TYPE = "application/pdf"

_METADATA_KEY_MAP = {
    "title": "/Title",
    "author": "/Author",
    "subject": "/Subject",
    "keywords": "/Keywords",
    "creator": "/Creator",
}


class ExportStage(str, enum.Enum):
    IDLE = "idle"
    MERGING = "merging"
    REORDERING = "reordering"
    ANNOTATING = "annotating"
    SERIALIZING = "serializing"
    SERIALIZED = "serialized"
    FAILED = "failed"


@dataclass
class ExportResult:
    """Bytes of an exported document plus what happened to the annotations."""

    data: bytes = field(repr=False)
    filename: str
    page_count: int
    applied_annotations: List[str] = field(default_factory=list)
    skipped_annotations: List[SkippedAnnotation] = field(default_factory=list)
    content_type: str = PDF_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.data)

    def write(self, path: PathLike) -> Path:
        destination = ensure_path(path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.data)
        LOGGER.info("Wrote %d bytes to %s", self.size, destination)
        return destination


def is_identity_order(order: Optional[Sequence[int]]) -> bool:
    if order is None:
        return True
    return all(value == index for index, value in enumerate(order))


def build_document_info(document_info: Mapping[str, object]) -> dict[str, str]:
    """Translate friendly keys (``title``, ``author``...) into PDF info keys."""

    metadata: dict[str, str] = {}
    for key, value in document_info.items():
        if value is None:
            continue
        string_value = str(value).strip()
        if not string_value:
            continue
        pdf_key = _METADATA_KEY_MAP.get(str(key).lower())
        if pdf_key is None:
            pdf_key = key if str(key).startswith("/") else f"/{key}"
        metadata[pdf_key] = string_value
    return metadata


class ExportSerializer:
    """Runs one export and records the stages it went through."""

    def __init__(
        self,
        config: ComposeConfig = DEFAULT_CONFIG,
        *,
        font_family: Union[str, FontFamily, None] = None,
    ) -> None:
        self.config = config
        self.font_family = font_family
        self.state = ExportStage.IDLE
        self.history: List[ExportStage] = [ExportStage.IDLE]
        self.failure: Optional[PdfExportError] = None

    @contextmanager
    def _stage(self, stage: ExportStage) -> Iterator[None]:
        self.state = stage
        self.history.append(stage)
        LOGGER.debug("Export entering %s", stage.value)
        try:
            yield
        except Exception as exc:
            error = PdfExportError(stage.value, str(exc))
            self.failure = error
            self.state = ExportStage.FAILED
            self.history.append(ExportStage.FAILED)
            LOGGER.error("Export failed while %s: %s", stage.value, exc)
            raise error from exc

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _merge(
        self,
        sources: Sequence[SourceDocument],
        working: Optional[WorkingDocument],
    ) -> LoadedDocument:
        if working is not None and working.is_current(sources):
            LOGGER.debug("Reusing working document built from %d source(s)", len(sources))
            return working.document
        if not sources:
            raise PdfMergeError("No source documents to export")
        handles = [open_source(source) for source in sources]
        bookmarks = [source.name for source in sources] if self.config.add_bookmarks else None
        return merge_documents(
            handles,
            metadata=self.config.copy_metadata,
            bookmarks=bookmarks,
            source_ids=[source.id for source in sources],
        )

    def _serialize(
        self,
        document: LoadedDocument,
        document_info: Optional[Mapping[str, object]],
    ) -> bytes:
        writer = PdfWriter(clone_from=document.reader)
        metadata = {"/Producer": self.config.producer}
        if document_info:
            metadata.update(build_document_info(document_info))
        writer.add_metadata(metadata)
        data = serialize_writer(writer)
        if not is_pdf_bytes(data):
            raise PdfComposeError("Serialized output is not a PDF")
        return data

    # ------------------------------------------------------------------
    def export(
        self,
        sources: Sequence[SourceDocument],
        *,
        order: Optional[Sequence[int]] = None,
        annotations: Sequence[Any] = (),
        working: Optional[WorkingDocument] = None,
        document_info: Optional[Mapping[str, object]] = None,
        filename: Optional[str] = None,
    ) -> ExportResult:
        """Produce the final PDF bytes.

        Args:
            sources: The session's sources in merge order.
            order: Logical page order as natural page indexes; ``None`` or the
                identity skips reordering.
            annotations: Annotation records or mappings, by logical index.
            working: A previously merged document, reused when it was built
                from exactly ``sources``.
            document_info: Optional title/author/subject/keywords overrides.
            filename: Suggested download name.

        Raises:
            PdfExportError: ``stage`` names the stage that failed.
        """

        if self.state is not ExportStage.IDLE:
            raise PdfComposeError("An ExportSerializer runs a single export")

        with self._stage(ExportStage.MERGING):
            document = self._merge(sources, working)

        if not is_identity_order(order):
            with self._stage(ExportStage.REORDERING):
                document = reorder_pages(document, list(order or ()))

        applied: List[str] = []
        skipped: List[SkippedAnnotation] = []
        if annotations:
            with self._stage(ExportStage.ANNOTATING):
                compositor = AnnotationCompositor(self.config, font_family=self.font_family)
                composite = compositor.composite(document, annotations)
                document, applied, skipped = composite.document, composite.applied, composite.skipped

        with self._stage(ExportStage.SERIALIZING):
            data = self._serialize(document, document_info)
        self.state = ExportStage.SERIALIZED
        self.history.append(ExportStage.SERIALIZED)

        result = ExportResult(
            data=data,
            filename=filename or self.config.export_filename,
            page_count=document.page_count,
            applied_annotations=applied,
            skipped_annotations=skipped,
        )
        LOGGER.info(
            "Exported %d page(s), %d byte(s), %d annotation(s) applied, %d skipped",
            result.page_count,
            result.size,
            len(applied),
            len(skipped),
        )
        return result


def export_document(
    sources: Sequence[SourceDocument],
    *,
    order: Optional[Sequence[int]] = None,
    annotations: Sequence[Any] = (),
    config: ComposeConfig = DEFAULT_CONFIG,
    document_info: Optional[Mapping[str, object]] = None,
    filename: Optional[str] = None,
) -> ExportResult:
    """Convenience wrapper running a fresh :class:`ExportSerializer`."""

    return ExportSerializer(config).export(
        sources,
        order=order,
        annotations=annotations,
        document_info=document_info,
        filename=filename,
    )


__all__ = [
    "ExportStage",
    "ExportResult",
    "ExportSerializer",
    "export_document",
    "is_identity_order",
    "build_document_info",
    "PDF_CONTENT_TYPE",
]

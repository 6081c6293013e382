"""Per-session composition state.

A :class:`ComposerSession` owns the loaded sources, the cached working
document, the page order and the annotations of one editing session. Create
one per session and pass it around; nothing here is module-global.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .annotate import FontFamily
from .config import DEFAULT_CONFIG, ComposeConfig
from .export import ExportResult, ExportSerializer
from .loader import LoadReport, SourceInput, load_source, load_sources, open_source, read_source_file
from .merge import merge_documents
from .ordering import PageOrderTracker
from .types import (
    Annotation,
    DocumentView,
    MergedDocument,
    PageReference,
    SingleDocument,
    SourceDocument,
    WorkingDocument,
    parse_annotation,
)
from .utils import PathLike

LOGGER = logging.getLogger("pdfcompose.session")


class ComposerSession:
    """Sources, page order and annotations for one editing session."""

    def __init__(
        self,
        config: ComposeConfig = DEFAULT_CONFIG,
        *,
        font_family: Union[str, FontFamily, None] = None,
    ) -> None:
        self.config = config
        self.font_family = font_family
        self._sources: List[SourceDocument] = []
        self._working: Optional[WorkingDocument] = None
        self._tracker = PageOrderTracker()
        self._annotations: List[Annotation] = []

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------
    @property
    def sources(self) -> List[SourceDocument]:
        return list(self._sources)

    def get_source(self, source_id: str) -> SourceDocument:
        for source in self._sources:
            if source.id == source_id:
                return source
        raise KeyError(f"Unknown source {source_id!r}")

    def _sources_changed(self) -> None:
        self._working = None
        if self._tracker.sync(self._sources):
            LOGGER.info("Page order reset to natural order (%d page(s))", len(self._tracker))

    def add_source(self, data: bytes, name: str, *, password: Optional[str] = None) -> SourceDocument:
        """Load one source and append it. Load errors propagate to the caller."""

        source = load_source(data, name, password=password)
        self._sources.append(source)
        self._sources_changed()
        return source

    def add_sources(self, items: Iterable[Union[SourceInput, Tuple[Any, ...]]]) -> LoadReport:
        """Load several sources concurrently; failures are reported, not raised."""

        report = load_sources(items, max_workers=self.config.max_workers)
        if report.sources:
            self._sources.extend(report.sources)
            self._sources_changed()
        return report

    def add_files(self, paths: Iterable[PathLike], *, passwords: Optional[Mapping[str, str]] = None) -> LoadReport:
        """Load PDFs from disk; ``passwords`` maps file names to credentials."""

        passwords = passwords or {}
        inputs = []
        for path in paths:
            item = read_source_file(path)
            inputs.append(item._replace(password=passwords.get(item.name)))
        return self.add_sources(inputs)

    def remove_source(self, source_id: str) -> SourceDocument:
        source = self.get_source(source_id)
        self._sources.remove(source)
        self._sources_changed()
        LOGGER.info("Removed source %s (%s)", source.name, source.id)
        return source

    def move_source(self, start_index: int, end_index: int) -> bool:
        """Move a source within the merge order. Out-of-range moves are ignored."""

        size = len(self._sources)
        if not (0 <= start_index < size and 0 <= end_index < size):
            return False
        source = self._sources.pop(start_index)
        self._sources.insert(end_index, source)
        self._sources_changed()
        return True

    def clear(self) -> None:
        self._sources.clear()
        self._sources_changed()

    # ------------------------------------------------------------------
    # Working document
    # ------------------------------------------------------------------
    @property
    def working_document(self) -> Optional[WorkingDocument]:
        """The merged document for the current sources, built on first use."""

        if not self._sources:
            return None
        if self._working is None or not self._working.is_current(self._sources):
            handles = [open_source(source) for source in self._sources]
            bookmarks = [source.name for source in self._sources] if self.config.add_bookmarks else None
            document = merge_documents(
                handles,
                metadata=self.config.copy_metadata,
                bookmarks=bookmarks,
                source_ids=[source.id for source in self._sources],
            )
            self._working = WorkingDocument(
                document=document,
                source_ids=tuple(source.id for source in self._sources),
            )
        return self._working

    def view(self) -> Optional[DocumentView]:
        if not self._sources:
            return None
        if len(self._sources) == 1:
            return SingleDocument(self._sources[0])
        working = self.working_document
        if working is None:
            return None
        return MergedDocument(working)

    @property
    def page_count(self) -> int:
        return len(self._tracker)

    def page_size(self, logical_index: int) -> Tuple[float, float]:
        """Size in points of the page shown at ``logical_index``."""

        reference = self._tracker.reference_at(logical_index)
        document = open_source(self.get_source(reference.source_id))
        return document.page_size(reference.page_number - 1)

    # ------------------------------------------------------------------
    # Page order
    # ------------------------------------------------------------------
    @property
    def page_order(self) -> List[int]:
        return self._tracker.order

    @property
    def has_custom_order(self) -> bool:
        return not self._tracker.is_identity

    def page_references(self) -> List[PageReference]:
        return self._tracker.references()

    def reorder_page(self, old_index: int, new_index: int) -> bool:
        return self._tracker.reorder(old_index, new_index)

    def set_page_order(self, order: Sequence[int]) -> None:
        self._tracker.set_order(order)

    def reset_page_order(self) -> None:
        self._tracker.reset()

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------
    @property
    def annotations(self) -> List[Annotation]:
        return list(self._annotations)

    def commit_annotation(self, annotation: Union[Annotation, Mapping[str, Any]]) -> Annotation:
        """Add *annotation*, replacing the first existing one with the same id."""

        record = parse_annotation(annotation)
        for index, existing in enumerate(self._annotations):
            if existing.id == record.id:
                self._annotations[index] = record
                LOGGER.debug("Replaced annotation %s", record.id)
                return record
        self._annotations.append(record)
        LOGGER.debug("Added annotation %s on page %d", record.id, record.page_index)
        return record

    def remove_annotation(self, annotation_id: str) -> bool:
        for index, existing in enumerate(self._annotations):
            if existing.id == annotation_id:
                del self._annotations[index]
                return True
        return False

    def clear_annotations(self) -> None:
        self._annotations.clear()

    def annotations_for_page(self, page_index: int) -> List[Annotation]:
        return [annotation for annotation in self._annotations if annotation.page_index == page_index]

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export(
        self,
        *,
        filename: Optional[str] = None,
        document_info: Optional[Mapping[str, object]] = None,
    ) -> ExportResult:
        """Export the composed document; session state is never modified."""

        serializer = ExportSerializer(self.config, font_family=self.font_family)
        return serializer.export(
            self.sources,
            order=self._tracker.order,
            annotations=self.annotations,
            working=self._working,
            document_info=document_info,
            filename=filename,
        )


__all__ = ["ComposerSession"]

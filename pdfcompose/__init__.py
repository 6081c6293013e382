"""
pdfcompose - composition engine for multi-document PDF editing.

Merge several uploaded PDFs into one page sequence, reorder pages freely,
stamp styled text (and image) annotations, and export the result as bytes.

Quick Start:
    >>> from pdfcompose import ComposerSession, TextAnnotation
    >>> session = ComposerSession()
    >>> report = session.add_files(["a.pdf", "b.pdf"])
    >>> session.reorder_page(0, 1)
    >>> session.commit_annotation(TextAnnotation.create(0, "hello", 72, 720))
    >>> session.export().write("edited.pdf")

For CLI usage, use the 'pdfcompose' command after installation.
"""

from __future__ import annotations

from . import coords
from .annotate import (
    AnnotationCompositor,
    CompositeResult,
    FontFamily,
    SkippedAnnotation,
    composite_annotations,
    hex_to_rgb,
    register_ttf_family,
    resolve_font,
    resolve_variant,
)
from .config import DEFAULT_CONFIG, ComposeConfig
from .exceptions import (
    AnnotationError,
    PdfComposeError,
    PdfExportError,
    PdfLoadError,
    PdfMergeError,
    PdfPasswordRequiredError,
)
from .export import ExportResult, ExportSerializer, ExportStage, export_document
from .loader import (
    DocumentInfo,
    LoadedDocument,
    LoadFailure,
    LoadReport,
    SourceInput,
    get_document_info,
    load_document,
    load_source,
    load_sources,
)
from .merge import compose_pages, merge_documents, reorder_pages
from .ordering import PageOrderTracker
from .session import ComposerSession
from .types import (
    FontVariant,
    ImageAnnotation,
    MergedDocument,
    PageReference,
    SingleDocument,
    SourceDocument,
    TextAnnotation,
    TextFormat,
    TextStyle,
    WorkingDocument,
)

__version__ = "1.0.0"

__all__ = [
    "coords",
    "ComposerSession",
    "ComposeConfig",
    "DEFAULT_CONFIG",
    # Loading
    "load_document",
    "load_source",
    "load_sources",
    "get_document_info",
    "LoadedDocument",
    "DocumentInfo",
    "SourceInput",
    "LoadReport",
    "LoadFailure",
    # Merging and ordering
    "merge_documents",
    "reorder_pages",
    "compose_pages",
    "PageOrderTracker",
    # Annotations
    "AnnotationCompositor",
    "CompositeResult",
    "SkippedAnnotation",
    "composite_annotations",
    "FontFamily",
    "register_ttf_family",
    "resolve_font",
    "resolve_variant",
    "hex_to_rgb",
    # Export
    "ExportSerializer",
    "ExportStage",
    "ExportResult",
    "export_document",
    # Data model
    "SourceDocument",
    "WorkingDocument",
    "SingleDocument",
    "MergedDocument",
    "PageReference",
    "TextAnnotation",
    "ImageAnnotation",
    "TextStyle",
    "TextFormat",
    "FontVariant",
    # Exceptions
    "PdfComposeError",
    "PdfLoadError",
    "PdfPasswordRequiredError",
    "PdfMergeError",
    "AnnotationError",
    "PdfExportError",
    "__version__",
]

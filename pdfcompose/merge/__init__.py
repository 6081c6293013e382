"""Merge utilities for the :mod:`pdfcompose` engine."""

from __future__ import annotations

from ..exceptions import PdfMergeError
from .merger import MERGED_NAME, compose_pages, merge_documents, reorder_pages

__all__ = [
    "merge_documents",
    "reorder_pages",
    "compose_pages",
    "MERGED_NAME",
    "PdfMergeError",
]

"""Annotation compositing for the :mod:`pdfcompose` engine."""

from __future__ import annotations

from .colors import expand_hex, hex_to_rgb
from .compositor import AnnotationCompositor, CompositeResult, SkippedAnnotation, composite_annotations
from .fonts import (
    STANDARD_FAMILIES,
    FontFamily,
    can_encode,
    measure_text,
    register_ttf_family,
    resolve_family,
    resolve_font,
    resolve_variant,
)

__all__ = [
    "AnnotationCompositor",
    "CompositeResult",
    "SkippedAnnotation",
    "composite_annotations",
    "FontFamily",
    "STANDARD_FAMILIES",
    "can_encode",
    "measure_text",
    "register_ttf_family",
    "resolve_family",
    "resolve_font",
    "resolve_variant",
    "expand_hex",
    "hex_to_rgb",
]

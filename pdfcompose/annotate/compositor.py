"""Stamping text and image annotations onto document pages.

Each page that receives annotations gets one overlay page, drawn with a
reportlab canvas in that page's user space and merged on top of a copy of the
page. Annotations on the same page are drawn in input order.
"""

from __future__ import annotations

import io
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pypdf import PageObject, PdfReader, PdfWriter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..config import DEFAULT_CONFIG, ComposeConfig
from ..exceptions import AnnotationError, PdfComposeError
from ..loader import LoadedDocument, document_from_writer
from ..types import Annotation, ImageAnnotation, TextAnnotation, parse_annotation
from .colors import hex_to_rgb
from .fonts import FontFamily, can_encode, measure_text, resolve_family, resolve_variant, unicode_fallback_font

LOGGER = logging.getLogger("pdfcompose.annotate")

LINE_SPACING = 1.2


@dataclass(frozen=True)
class SkippedAnnotation:
    id: Optional[str]
    reason: str


@dataclass
class CompositeResult:
    document: LoadedDocument
    applied: List[str] = field(default_factory=list)
    skipped: List[SkippedAnnotation] = field(default_factory=list)


@dataclass(frozen=True)
class _TextPlacement:
    annotation: TextAnnotation
    font_name: str
    color: Tuple[float, float, float]
    line_widths: Tuple[float, ...]


@dataclass(frozen=True)
class _ImagePlacement:
    annotation: ImageAnnotation
    image: ImageReader
    width: float
    height: float


_Placement = Union[_TextPlacement, _ImagePlacement]


def _annotation_id(raw: Any) -> Optional[str]:
    if isinstance(raw, (TextAnnotation, ImageAnnotation)):
        return raw.id
    if isinstance(raw, Mapping) and raw.get("id") is not None:
        return str(raw["id"])
    return None


class AnnotationCompositor:
    """Composites annotation records onto a loaded document."""

    def __init__(
        self,
        config: ComposeConfig = DEFAULT_CONFIG,
        *,
        font_family: Union[str, FontFamily, None] = None,
    ) -> None:
        self.config = config
        self.family = resolve_family(font_family or config.font_family)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    def _place_text(self, annotation: TextAnnotation) -> _TextPlacement:
        font_name = self.family.font_for(resolve_variant(annotation.formats))
        color = hex_to_rgb(annotation.style.color)
        lines = annotation.text.splitlines() or [annotation.text]
        try:
            if not can_encode(annotation.text, font_name):
                fallback = unicode_fallback_font()
                LOGGER.warning(
                    "Font %s cannot encode annotation %s, drawing it with %s",
                    font_name,
                    annotation.id,
                    fallback or font_name,
                )
                font_name = fallback or font_name
            widths = tuple(measure_text(line, font_name, annotation.style.font_size) for line in lines)
        except Exception as exc:  # pragma: no cover - reportlab encoding errors vary
            raise AnnotationError(f"Cannot measure text with {font_name}: {exc}") from exc
        return _TextPlacement(annotation, font_name, color, widths)

    def _place_image(self, annotation: ImageAnnotation) -> _ImagePlacement:
        try:
            image = ImageReader(io.BytesIO(annotation.data))
            natural_width, natural_height = image.getSize()
        except Exception as exc:
            raise AnnotationError(f"Unreadable {annotation.mime} image: {exc}") from exc
        width = annotation.width if annotation.width is not None else float(natural_width)
        height = annotation.height if annotation.height is not None else float(natural_height)
        return _ImagePlacement(annotation, image, float(width), float(height))

    def plan(
        self, annotations: Iterable[Any], page_count: int
    ) -> Tuple[Dict[int, List[_Placement]], List[str], List[SkippedAnnotation]]:
        """Resolve fonts, colours and target pages without touching a document.

        Returns placements grouped by page index, the ids that will be applied
        and the annotations skipped with their reasons.
        """

        by_page: Dict[int, List[_Placement]] = defaultdict(list)
        applied: List[str] = []
        skipped: List[SkippedAnnotation] = []

        for raw in annotations:
            try:
                annotation: Annotation = parse_annotation(raw)
                if not 0 <= annotation.page_index < page_count:
                    raise AnnotationError(
                        f"Page index {annotation.page_index} is outside 0..{page_count - 1}"
                    )
                if isinstance(annotation, TextAnnotation):
                    placement: _Placement = self._place_text(annotation)
                else:
                    placement = self._place_image(annotation)
            except (AnnotationError, TypeError, ValueError) as exc:
                annotation_id = _annotation_id(raw)
                LOGGER.warning("Skipping annotation %s: %s", annotation_id, exc)
                skipped.append(SkippedAnnotation(annotation_id, str(exc)))
                continue
            by_page[annotation.page_index].append(placement)
            applied.append(annotation.id)

        return dict(by_page), applied, skipped

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def _draw_text(self, pdf_canvas: canvas.Canvas, placement: _TextPlacement, left: float, bottom: float) -> None:
        annotation = placement.annotation
        size = annotation.style.font_size
        x = left + annotation.x
        baseline = bottom + annotation.y
        pdf_canvas.setFillColorRGB(*placement.color)
        pdf_canvas.setStrokeColorRGB(*placement.color)

        lines = annotation.text.splitlines() or [annotation.text]
        for line, width in zip(lines, placement.line_widths):
            if annotation.underline and width > 0:
                underline_y = baseline - self.config.underline_offset_ratio * size
                pdf_canvas.setLineWidth(
                    max(self.config.min_underline_thickness, size * self.config.underline_thickness_ratio)
                )
                pdf_canvas.line(x, underline_y, x + width, underline_y)
            pdf_canvas.setFont(placement.font_name, size)
            pdf_canvas.drawString(x, baseline, line)
            baseline -= size * LINE_SPACING

    def _draw_image(self, pdf_canvas: canvas.Canvas, placement: _ImagePlacement, left: float, bottom: float) -> None:
        annotation = placement.annotation
        pdf_canvas.drawImage(
            placement.image,
            left + annotation.x,
            bottom + annotation.y,
            width=placement.width,
            height=placement.height,
            mask="auto",
        )

    def _render_overlay(self, page: PageObject, placements: List[_Placement]) -> PageObject:
        box = page.mediabox
        left, bottom = float(box.left), float(box.bottom)
        buffer = io.BytesIO()
        pdf_canvas = canvas.Canvas(
            buffer,
            pagesize=(max(1.0, float(box.right)), max(1.0, float(box.top))),
        )
        for placement in placements:
            if isinstance(placement, _TextPlacement):
                self._draw_text(pdf_canvas, placement, left, bottom)
            else:
                self._draw_image(pdf_canvas, placement, left, bottom)
        pdf_canvas.showPage()
        pdf_canvas.save()
        return PdfReader(io.BytesIO(buffer.getvalue())).pages[0]

    def composite(self, document: LoadedDocument, annotations: Iterable[Any]) -> CompositeResult:
        """Return a new document with *annotations* stamped on.

        Individual invalid or out-of-range annotations are skipped and reported
        in the result. An empty list returns *document* unchanged.
        """

        records = list(annotations)
        if not records:
            return CompositeResult(document=document)

        by_page, applied, skipped = self.plan(records, document.page_count)
        if not by_page:
            LOGGER.info("No applicable annotations; %d skipped", len(skipped))
            return CompositeResult(document=document, skipped=skipped)

        try:
            # The clone carries outline and metadata along with the pages.
            writer = PdfWriter(clone_from=document.reader)
            for page_index, placements in sorted(by_page.items()):
                LOGGER.debug("Stamping %d annotation(s) on page %d", len(placements), page_index)
                target = writer.pages[page_index]
                target.merge_page(self._render_overlay(target, placements))
        except PdfComposeError:
            raise
        except Exception as exc:  # pragma: no cover - pypdf/reportlab errors vary
            LOGGER.error("Failed to stamp annotations: %s", exc)
            raise PdfComposeError(f"Failed to stamp annotations: {exc}") from exc

        result = document_from_writer(writer, document.name)
        LOGGER.info("Applied %d annotation(s), skipped %d", len(applied), len(skipped))
        return CompositeResult(document=result, applied=applied, skipped=skipped)


def composite_annotations(
    document: LoadedDocument,
    annotations: Iterable[Any],
    *,
    config: ComposeConfig = DEFAULT_CONFIG,
    font_family: Union[str, FontFamily, None] = None,
) -> CompositeResult:
    return AnnotationCompositor(config, font_family=font_family).composite(document, annotations)


__all__ = [
    "AnnotationCompositor",
    "CompositeResult",
    "SkippedAnnotation",
    "composite_annotations",
]

"""Conversions between screen pixels and PDF native point space.

Screen space has its origin at the top-left corner of the rendered page and
grows downwards; native space has its origin at the bottom-left corner of the
page and grows upwards. Only the vertical axis is flipped. Every function here
is pure and takes the zoom ``scale`` and page height explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .config import CSS_PIXELS_PER_POINT, DEFAULT_CONFIG, ComposeConfig
from .types import TextAnnotation

# Approximate glyph advance and line height relative to the font size, used
# for hit testing only; exact widths come from the font metrics at export.
_GLYPH_WIDTH_RATIO = 0.6
_LINE_HEIGHT_RATIO = 1.2


@dataclass(frozen=True)
class ScreenPoint:
    x: float
    y: float


@dataclass(frozen=True)
class NativePoint:
    x: float
    y: float


@dataclass(frozen=True)
class ScreenBox:
    left: float
    top: float
    right: float
    bottom: float

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


def _factor(scale: float, resolution: float) -> float:
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale!r}")
    if resolution <= 0:
        raise ValueError(f"resolution must be positive, got {resolution!r}")
    return scale * resolution


def px_to_points(px: float, scale: float, resolution: float = CSS_PIXELS_PER_POINT) -> float:
    return px / _factor(scale, resolution)


def points_to_px(points: float, scale: float, resolution: float = CSS_PIXELS_PER_POINT) -> float:
    return points * _factor(scale, resolution)


def page_height_px(
    height_points: float, scale: float, resolution: float = CSS_PIXELS_PER_POINT
) -> float:
    """Rendered height of a page ``height_points`` tall."""

    return points_to_px(height_points, scale, resolution)


def screen_y_to_native(
    y_from_top_px: float,
    page_height_px: float,
    scale: float,
    resolution: float = CSS_PIXELS_PER_POINT,
) -> float:
    return (page_height_px - y_from_top_px) / _factor(scale, resolution)


def native_y_to_screen(
    y_points: float,
    page_height_px: float,
    scale: float,
    resolution: float = CSS_PIXELS_PER_POINT,
) -> float:
    return page_height_px - y_points * _factor(scale, resolution)


def to_native(
    point: ScreenPoint,
    page_height_px: float,
    scale: float,
    resolution: float = CSS_PIXELS_PER_POINT,
) -> NativePoint:
    """Convert a click position relative to the page's top-left corner."""

    return NativePoint(
        x=px_to_points(point.x, scale, resolution),
        y=screen_y_to_native(point.y, page_height_px, scale, resolution),
    )


def to_screen(
    point: NativePoint,
    page_height_px: float,
    scale: float,
    resolution: float = CSS_PIXELS_PER_POINT,
) -> ScreenPoint:
    return ScreenPoint(
        x=points_to_px(point.x, scale, resolution),
        y=native_y_to_screen(point.y, page_height_px, scale, resolution),
    )


# ----------------------------------------------------------------------
# Zoom helpers
# ----------------------------------------------------------------------
def clamp_scale(scale: float, config: ComposeConfig = DEFAULT_CONFIG) -> float:
    return round(min(config.max_scale, max(config.min_scale, scale)), 4)


def zoom_in(scale: float, config: ComposeConfig = DEFAULT_CONFIG) -> float:
    return clamp_scale(scale + config.scale_step, config)


def zoom_out(scale: float, config: ComposeConfig = DEFAULT_CONFIG) -> float:
    return clamp_scale(scale - config.scale_step, config)


def reset_zoom() -> float:
    return 1.0


# ----------------------------------------------------------------------
# Hit testing
# ----------------------------------------------------------------------
def annotation_screen_box(
    annotation: TextAnnotation,
    page_height_px: float,
    scale: float,
    resolution: float = CSS_PIXELS_PER_POINT,
) -> ScreenBox:
    """Approximate on-screen box of ``annotation``, anchored at its baseline."""

    font_px = points_to_px(annotation.style.font_size, scale, resolution)
    anchor = to_screen(NativePoint(annotation.x, annotation.y), page_height_px, scale, resolution)
    width = len(annotation.text) * font_px * _GLYPH_WIDTH_RATIO
    height = font_px * _LINE_HEIGHT_RATIO
    return ScreenBox(
        left=anchor.x,
        top=anchor.y - height,
        right=anchor.x + width,
        bottom=anchor.y,
    )


def hit_test(
    annotations: Iterable[TextAnnotation],
    x_px: float,
    y_px: float,
    page_height_px: float,
    scale: float,
    *,
    page_index: Optional[int] = None,
    resolution: float = CSS_PIXELS_PER_POINT,
) -> Optional[TextAnnotation]:
    """Return the first text annotation whose box contains ``(x_px, y_px)``."""

    for annotation in annotations:
        if not isinstance(annotation, TextAnnotation):
            continue
        if page_index is not None and annotation.page_index != page_index:
            continue
        box = annotation_screen_box(annotation, page_height_px, scale, resolution)
        if box.contains(x_px, y_px):
            return annotation
    return None


__all__ = [
    "ScreenPoint",
    "NativePoint",
    "ScreenBox",
    "px_to_points",
    "points_to_px",
    "page_height_px",
    "screen_y_to_native",
    "native_y_to_screen",
    "to_native",
    "to_screen",
    "clamp_scale",
    "zoom_in",
    "zoom_out",
    "reset_zoom",
    "annotation_screen_box",
    "hit_test",
]

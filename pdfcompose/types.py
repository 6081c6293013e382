"""
Data model for the composition engine.

This module defines the records shared by the loader, merge engine, order
tracker, annotation compositor and export serializer. Records are plain
dataclasses; annotations are frozen so that only the session's commit
operation can replace them.
"""

from __future__ import annotations

import enum
import re
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

from .exceptions import AnnotationError

if TYPE_CHECKING:  # pragma: no cover
    from .loader import LoadedDocument

_HEX_COLOR = re.compile(r"^#?(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_IMAGE_MIME_TYPES = ("image/png", "image/jpeg")


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


class TextFormat(str, enum.Enum):
    """Formatting flags a text annotation can carry."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"


class FontVariant(str, enum.Enum):
    REGULAR = "regular"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bold_italic"


@dataclass(frozen=True)
class SourceDocument:
    """
    A successfully loaded, user-supplied PDF.

    Attributes:
        id: Opaque token identifying the source within a session
        name: Display name, usually the uploaded file name
        data: The original bytes; never modified
        page_count: Number of pages in the document
        password: Credential used to open the document, if any
    """
    id: str
    name: str
    data: bytes = field(repr=False)
    page_count: int
    password: Optional[str] = field(default=None, repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class WorkingDocument:
    """The merged result of the session's current source list."""

    document: "LoadedDocument"
    source_ids: Tuple[str, ...]

    @property
    def page_count(self) -> int:
        return self.document.page_count

    def is_current(self, sources: Iterable[SourceDocument]) -> bool:
        return self.source_ids == tuple(source.id for source in sources)


@dataclass(frozen=True)
class SingleDocument:
    """Document view when the session holds exactly one source."""

    source: SourceDocument

    @property
    def page_count(self) -> int:
        return self.source.page_count


@dataclass(frozen=True)
class MergedDocument:
    """Document view when the session holds several sources."""

    working: WorkingDocument

    @property
    def page_count(self) -> int:
        return self.working.page_count


DocumentView = Union[SingleDocument, MergedDocument]


@dataclass(frozen=True)
class PageReference:
    source_id: str
    page_number: int
    logical_index: int


@dataclass(frozen=True)
class TextStyle:
    font_size: float = 14.0
    color: str = "#000000"

    def __post_init__(self) -> None:
        if isinstance(self.font_size, bool) or not isinstance(self.font_size, (int, float)):
            raise AnnotationError(f"Font size must be a number, got {self.font_size!r}")
        if self.font_size <= 0:
            raise AnnotationError(f"Font size must be positive, got {self.font_size!r}")
        if not isinstance(self.color, str) or not _HEX_COLOR.match(self.color):
            raise AnnotationError(f"Invalid hex colour: {self.color!r}")


def _require(data: Mapping[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None:
        raise AnnotationError(f"Annotation is missing required field '{key}'")
    return value


def _coerce_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AnnotationError(f"Annotation field '{name}' must be a number, got {value!r}")
    return float(value)


def _coerce_formats(values: Iterable[Any]) -> FrozenSet[TextFormat]:
    formats = set()
    for value in values:
        try:
            formats.add(TextFormat(str(getattr(value, "value", value)).lower()))
        except ValueError as exc:
            raise AnnotationError(f"Unknown text format: {value!r}") from exc
    return frozenset(formats)


@dataclass(frozen=True)
class TextAnnotation:
    """
    Text stamped onto a page.

    Attributes:
        id: Identity used to replace an annotation on re-commit
        page_index: 0-based logical index of the target page
        text: The glyph run to draw; must not be empty
        x: Horizontal position in points from the page's left edge
        y: Baseline position in points from the page's bottom edge
        style: Font size and colour
        formats: Any of bold, italic and underline
    """
    id: str
    page_index: int
    text: str
    x: float
    y: float
    style: TextStyle = field(default_factory=TextStyle)
    formats: FrozenSet[TextFormat] = frozenset()

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text:
            raise AnnotationError("Annotation text must be a non-empty string")
        if isinstance(self.page_index, bool) or not isinstance(self.page_index, int):
            raise AnnotationError(f"Page index must be an integer, got {self.page_index!r}")
        object.__setattr__(self, "x", _coerce_number(self.x, "x"))
        object.__setattr__(self, "y", _coerce_number(self.y, "y"))
        object.__setattr__(self, "formats", _coerce_formats(self.formats))

    @property
    def bold(self) -> bool:
        return TextFormat.BOLD in self.formats

    @property
    def italic(self) -> bool:
        return TextFormat.ITALIC in self.formats

    @property
    def underline(self) -> bool:
        return TextFormat.UNDERLINE in self.formats

    @classmethod
    def create(
        cls,
        page_index: int,
        text: str,
        x: float,
        y: float,
        *,
        font_size: float = 14.0,
        color: str = "#000000",
        formats: Iterable[Any] = (),
        id: str | None = None,
    ) -> "TextAnnotation":
        return cls(
            id=id or new_id("text"),
            page_index=page_index,
            text=text,
            x=x,
            y=y,
            style=TextStyle(font_size=font_size, color=color),
            formats=frozenset(formats),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TextAnnotation":
        """Build an annotation from a JSON-style mapping.

        Accepts ``position`` as ``{"x": .., "y": ..}`` or top-level ``x``/``y``,
        ``style`` as ``{"font_size"|"fontSize": .., "color": ..}``, and
        ``formats`` as a list of names or a ``{"bold": true, ...}`` mapping.
        """

        if not isinstance(data, Mapping):
            raise AnnotationError(f"Annotation must be a mapping, got {type(data).__name__}")

        position = data.get("position")
        if isinstance(position, Mapping):
            x, y = position.get("x"), position.get("y")
        elif isinstance(position, (list, tuple)) and len(position) == 2:
            x, y = position
        else:
            x, y = data.get("x"), data.get("y")
        if x is None or y is None:
            raise AnnotationError("Annotation is missing required field 'position'")

        style = _require(data, "style")
        if not isinstance(style, Mapping):
            raise AnnotationError("Annotation field 'style' must be a mapping")
        font_size = style.get("font_size", style.get("fontSize"))
        color = style.get("color")
        if font_size is None or color is None:
            raise AnnotationError("Annotation style requires 'font_size' and 'color'")

        raw_formats = data.get("formats") or ()
        if isinstance(raw_formats, Mapping):
            raw_formats = [name for name, enabled in raw_formats.items() if enabled]
        elif isinstance(raw_formats, str) or not isinstance(raw_formats, (list, tuple, set, frozenset)):
            raise AnnotationError(f"Annotation formats must be a list, got {raw_formats!r}")

        page_index = data.get("page_index", data.get("pageIndex"))
        if page_index is None:
            raise AnnotationError("Annotation is missing required field 'page_index'")

        return cls(
            id=str(data.get("id") or new_id("text")),
            page_index=page_index,
            text=_require(data, "text"),
            x=x,
            y=y,
            style=TextStyle(font_size=font_size, color=color),
            formats=raw_formats,
        )


@dataclass(frozen=True)
class ImageAnnotation:
    """An image stamped with its bottom-left corner at ``(x, y)``."""

    id: str
    page_index: int
    data: bytes = field(repr=False)
    x: float
    y: float
    mime: str = "image/png"
    width: Optional[float] = None
    height: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.data:
            raise AnnotationError("Image annotation requires image data")
        if self.mime not in _IMAGE_MIME_TYPES:
            raise AnnotationError(f"Unsupported image type: {self.mime!r}")
        if isinstance(self.page_index, bool) or not isinstance(self.page_index, int):
            raise AnnotationError(f"Page index must be an integer, got {self.page_index!r}")
        object.__setattr__(self, "x", _coerce_number(self.x, "x"))
        object.__setattr__(self, "y", _coerce_number(self.y, "y"))
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and _coerce_number(value, name) <= 0:
                raise AnnotationError(f"Image {name} must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImageAnnotation":
        if not isinstance(data, Mapping):
            raise AnnotationError(f"Annotation must be a mapping, got {type(data).__name__}")
        page_index = data.get("page_index", data.get("pageIndex"))
        if page_index is None:
            raise AnnotationError("Annotation is missing required field 'page_index'")
        return cls(
            id=str(data.get("id") or new_id("image")),
            page_index=page_index,
            data=_require(data, "data"),
            x=_require(data, "x"),
            y=_require(data, "y"),
            mime=data.get("mime", "image/png"),
            width=data.get("width"),
            height=data.get("height"),
        )


Annotation = Union[TextAnnotation, ImageAnnotation]


def parse_annotation(data: Any) -> Annotation:
    """Return ``data`` as an annotation record, parsing mappings as needed."""

    if isinstance(data, (TextAnnotation, ImageAnnotation)):
        return data
    if isinstance(data, Mapping):
        if data.get("type") == "image" or "data" in data:
            return ImageAnnotation.from_dict(data)
        return TextAnnotation.from_dict(data)
    raise AnnotationError(f"Unsupported annotation record: {type(data).__name__}")


__all__ = [
    "TextFormat",
    "FontVariant",
    "SourceDocument",
    "WorkingDocument",
    "SingleDocument",
    "MergedDocument",
    "DocumentView",
    "PageReference",
    "TextStyle",
    "TextAnnotation",
    "ImageAnnotation",
    "Annotation",
    "parse_annotation",
    "new_id",
]

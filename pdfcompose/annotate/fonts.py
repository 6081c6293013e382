"""Font variant resolution and text measurement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Dict, Optional, Union

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFont

from ..exceptions import AnnotationError
from ..types import FontVariant, TextFormat
from ..utils import PathLike, ensure_path

LOGGER = logging.getLogger("pdfcompose.annotate")

UNICODE_FALLBACK_FONT = "STSong-Light"


@dataclass(frozen=True)
class FontFamily:
    """Names of the four registered fonts making up a family."""

    name: str
    regular: str
    bold: str
    italic: str
    bold_italic: str

    def font_for(self, variant: FontVariant) -> str:
        return {
            FontVariant.REGULAR: self.regular,
            FontVariant.BOLD: self.bold,
            FontVariant.ITALIC: self.italic,
            FontVariant.BOLD_ITALIC: self.bold_italic,
        }[variant]


STANDARD_FAMILIES: Dict[str, FontFamily] = {
    "Helvetica": FontFamily(
        "Helvetica", "Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"
    ),
    "Times": FontFamily("Times", "Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "Courier": FontFamily(
        "Courier", "Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"
    ),
}


def resolve_variant(formats: AbstractSet[TextFormat]) -> FontVariant:
    """Pick the font variant for *formats*. Underline never affects the result."""

    bold = TextFormat.BOLD in formats
    italic = TextFormat.ITALIC in formats
    if bold and italic:
        return FontVariant.BOLD_ITALIC
    if bold:
        return FontVariant.BOLD
    if italic:
        return FontVariant.ITALIC
    return FontVariant.REGULAR


def resolve_family(family: Union[str, FontFamily]) -> FontFamily:
    if isinstance(family, FontFamily):
        return family
    try:
        return STANDARD_FAMILIES[family]
    except KeyError as exc:
        raise AnnotationError(
            f"Unknown font family {family!r}; expected one of {sorted(STANDARD_FAMILIES)}"
        ) from exc


def resolve_font(formats: AbstractSet[TextFormat], family: Union[str, FontFamily] = "Helvetica") -> str:
    return resolve_family(family).font_for(resolve_variant(formats))


def measure_text(text: str, font_name: str, font_size: float) -> float:
    """Rendered width of *text* in points."""

    return float(pdfmetrics.stringWidth(text, font_name, font_size))


def can_encode(text: str, font_name: str) -> bool:
    """Whether *font_name* has glyphs for every character of *text*.

    TrueType and CID fonts are treated as Unicode capable. The standard 14
    fonts are limited to WinAnsi, which matches cp1252.
    """

    font = pdfmetrics.getFont(font_name)
    if isinstance(font, (TTFont, UnicodeCIDFont)):
        return True
    try:
        text.encode("cp1252")
    except UnicodeEncodeError:
        return False
    return True


def unicode_fallback_font(name: str = UNICODE_FALLBACK_FONT) -> Optional[str]:
    """Register the CID fallback font once and return its name, or ``None``."""

    if name in pdfmetrics.getRegisteredFontNames():
        return name
    try:
        pdfmetrics.registerFont(UnicodeCIDFont(name))
    except Exception as exc:
        LOGGER.warning("Failed to register fallback font %s: %s", name, exc)
        return None
    LOGGER.debug("Registered fallback font %s", name)
    return name


def register_ttf_family(
    name: str,
    regular: PathLike,
    bold: PathLike | None = None,
    italic: PathLike | None = None,
    bold_italic: PathLike | None = None,
) -> FontFamily:
    """Register TrueType files with reportlab and return their family.

    Missing variants fall back to the regular face so resolution stays
    total; the fallback is logged.
    """

    faces = {
        "regular": regular,
        "bold": bold,
        "italic": italic,
        "bold_italic": bold_italic,
    }
    names: Dict[str, str] = {}
    for variant, path in faces.items():
        if path is None:
            LOGGER.warning("Font family %s has no %s face, using regular", name, variant)
            names[variant] = names["regular"]
            continue
        font_name = name if variant == "regular" else f"{name}-{variant}"
        pdfmetrics.registerFont(TTFont(font_name, str(ensure_path(path))))
        names[variant] = font_name

    pdfmetrics.registerFontFamily(
        name,
        normal=names["regular"],
        bold=names["bold"],
        italic=names["italic"],
        boldItalic=names["bold_italic"],
    )
    LOGGER.info("Registered font family %s", name)
    return FontFamily(name=name, **names)


__all__ = [
    "FontFamily",
    "STANDARD_FAMILIES",
    "resolve_variant",
    "resolve_family",
    "resolve_font",
    "measure_text",
    "can_encode",
    "unicode_fallback_font",
    "UNICODE_FALLBACK_FONT",
    "register_ttf_family",
]

"""Colour parsing for annotations."""

from __future__ import annotations

import re
from typing import Tuple

from ..exceptions import AnnotationError

_SHORT_HEX = re.compile(r"^[0-9a-fA-F]{3}$")
_LONG_HEX = re.compile(r"^[0-9a-fA-F]{6}$")


def expand_hex(color: str) -> str:
    """Return *color* as ``#rrggbb``; ``#abc`` expands to ``#aabbcc``."""

    clean = color.strip().lstrip("#")
    if _SHORT_HEX.match(clean):
        clean = "".join(nibble * 2 for nibble in clean)
    elif not _LONG_HEX.match(clean):
        raise AnnotationError(f"Invalid hex colour: {color!r}")
    return "#" + clean.lower()


def hex_to_rgb(color: str) -> Tuple[float, float, float]:
    """Normalised ``(r, g, b)`` channels in ``0.0..1.0`` for a hex colour."""

    value = int(expand_hex(color)[1:], 16)
    red = (value >> 16) & 0xFF
    green = (value >> 8) & 0xFF
    blue = value & 0xFF
    return red / 255, green / 255, blue / 255


__all__ = ["expand_hex", "hex_to_rgb"]

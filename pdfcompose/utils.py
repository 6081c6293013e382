"""Utility helpers shared across :mod:`pdfcompose`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger with a stream handler attached once.

    Intended for command line entry points; library modules use
    ``logging.getLogger`` directly and leave handler setup to the caller.
    """

    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def ensure_path(path: PathLike) -> Path:
    """Return an expanded, resolved :class:`~pathlib.Path` for *path*."""

    return Path(path).expanduser().resolve(strict=False)


def is_pdf_bytes(data: bytes) -> bool:
    """``True`` when *data* starts with a PDF header (leading whitespace allowed)."""

    return data[:1024].lstrip().startswith(b"%PDF-")


__all__ = ["PathLike", "get_logger", "ensure_path", "is_pdf_bytes"]

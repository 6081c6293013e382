"""Custom exceptions raised by :mod:`pdfcompose`."""

from __future__ import annotations


class PdfComposeError(Exception):
    """Base exception for all errors raised by :mod:`pdfcompose`."""


class PdfLoadError(PdfComposeError):
    """Raised when a source buffer cannot be parsed as a PDF."""

    def __init__(self, message: str, *, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class PdfPasswordRequiredError(PdfLoadError):
    """Raised when a PDF needs a viewing password to be opened.

    ``incorrect_password`` is ``True`` when a password was supplied but did
    not unlock the document, so callers can tell "ask" from "ask again".
    """

    def __init__(
        self,
        message: str = "PDF is encrypted. Supply a password to open it.",
        *,
        name: str | None = None,
        incorrect_password: bool = False,
    ) -> None:
        super().__init__(message, name=name)
        self.incorrect_password = incorrect_password


class PdfMergeError(PdfComposeError):
    """Raised when pages cannot be copied into a new document."""

    def __init__(
        self,
        message: str,
        *,
        source_id: str | None = None,
        source_index: int | None = None,
    ) -> None:
        super().__init__(message)
        self.source_id = source_id
        self.source_index = source_index


class AnnotationError(PdfComposeError):
    """Raised when an annotation record is missing or has invalid fields."""


class PdfExportError(PdfComposeError):
    """Raised when an export stage fails. ``stage`` names the failing stage."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage} failed: {message}")
        self.stage = stage
        self.reason = message


__all__ = [
    "PdfComposeError",
    "PdfLoadError",
    "PdfPasswordRequiredError",
    "PdfMergeError",
    "AnnotationError",
    "PdfExportError",
]

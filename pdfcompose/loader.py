"""Parsing raw PDF buffers into document handles."""

from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from .exceptions import PdfComposeError, PdfLoadError, PdfPasswordRequiredError
from .types import SourceDocument, new_id
from .utils import PathLike, ensure_path

LOGGER = logging.getLogger("pdfcompose.loader")


@dataclass
class LoadedDocument:
    """An opened PDF: the pypdf reader plus the bytes it was parsed from."""

    reader: PdfReader = field(repr=False)
    data: bytes = field(repr=False)
    name: str = "document.pdf"

    @property
    def page_count(self) -> int:
        return len(self.reader.pages)

    @property
    def is_encrypted(self) -> bool:
        return bool(self.reader.is_encrypted)

    def get_page(self, index: int) -> PageObject:
        return self.reader.pages[index]

    def iter_pages(self) -> Iterator[PageObject]:
        return iter(self.reader.pages)

    def page_size(self, index: int) -> Tuple[float, float]:
        """Width and height of page ``index`` in points."""

        box = self.reader.pages[index].mediabox
        return float(box.width), float(box.height)

    def metadata(self) -> Dict[str, str]:
        metadata = self.reader.metadata
        if not metadata:
            return {}
        return {
            key: str(value)
            for key, value in metadata.items()
            if isinstance(key, str) and value is not None
        }


@dataclass(frozen=True)
class DocumentInfo:
    """Summary information describing a loaded document."""

    name: str
    page_count: int
    file_size: int
    is_encrypted: bool
    page_sizes: List[Tuple[float, float]]
    metadata: Dict[str, Any]


class SourceInput(NamedTuple):
    name: str
    data: bytes
    password: Optional[str] = None


@dataclass(frozen=True)
class LoadFailure:
    name: str
    error: PdfLoadError

    @property
    def needs_password(self) -> bool:
        return isinstance(self.error, PdfPasswordRequiredError)

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class LoadReport:
    """Outcome of loading several sources; failures do not block the rest."""

    sources: List[SourceDocument] = field(default_factory=list)
    failures: List[LoadFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _unlock(reader: PdfReader, password: Optional[str], name: str) -> None:
    candidates = [password] if password else [""]
    for candidate in candidates:
        try:
            unlocked = reader.decrypt(candidate)
        except Exception as exc:  # pragma: no cover - decrypt errors vary
            LOGGER.error("Failed to decrypt %s: %s", name, exc)
            raise PdfLoadError(f"Unable to decrypt {name}: {exc}", name=name) from exc
        if unlocked:
            LOGGER.debug("Decrypted %s", name)
            return

    if password:
        raise PdfPasswordRequiredError(
            f"Incorrect password for {name}", name=name, incorrect_password=True
        )
    raise PdfPasswordRequiredError(f"{name} is encrypted. Supply a password to open it.", name=name)


def load_document(
    data: bytes,
    *,
    password: Optional[str] = None,
    name: Optional[str] = None,
) -> LoadedDocument:
    """Parse *data* into a :class:`LoadedDocument`.

    Raises:
        PdfPasswordRequiredError: The document is encrypted and neither the
            supplied password nor the empty user password opens it.
        PdfLoadError: The buffer is not a readable PDF.
    """

    label = name or "document.pdf"
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise PdfLoadError(f"Expected a bytes buffer for {label}", name=name)
    data = bytes(data)
    if not data:
        raise PdfLoadError(f"{label} is empty", name=name)

    try:
        reader = PdfReader(io.BytesIO(data))
    except PdfReadError as exc:
        LOGGER.error("Failed to read %s: %s", label, exc)
        raise PdfLoadError(f"Corrupted or invalid PDF: {label}. Error: {exc}", name=name) from exc
    except Exception as exc:  # pragma: no cover - dependency exceptions vary
        LOGGER.error("Unexpected error reading %s: %s", label, exc)
        raise PdfLoadError(f"Unable to read PDF: {label}. Error: {exc}", name=name) from exc

    if reader.is_encrypted:
        _unlock(reader, password, label)

    try:
        page_count = len(reader.pages)
    except Exception as exc:  # pragma: no cover - broken page trees vary
        raise PdfLoadError(f"Unable to read the page tree of {label}: {exc}", name=name) from exc

    if page_count == 0:
        LOGGER.warning("PDF %s contains no pages", label)
    LOGGER.debug("Loaded %s with %d page(s)", label, page_count)
    return LoadedDocument(reader=reader, data=data, name=label)


def load_source(
    data: bytes,
    name: str,
    *,
    password: Optional[str] = None,
    source_id: Optional[str] = None,
) -> SourceDocument:
    """Validate *data* and wrap it as an immutable :class:`SourceDocument`."""

    document = load_document(data, password=password, name=name)
    source = SourceDocument(
        id=source_id or new_id("src"),
        name=name,
        data=document.data,
        page_count=document.page_count,
        password=password,
    )
    LOGGER.info("Loaded source %s (%s) with %d page(s)", source.name, source.id, source.page_count)
    return source


def open_source(source: SourceDocument) -> LoadedDocument:
    """Return a fresh handle over ``source``'s bytes."""

    return load_document(source.data, password=source.password, name=source.name)


def load_sources(
    items: Iterable[SourceInput | Tuple[Any, ...]],
    *,
    max_workers: int = 4,
) -> LoadReport:
    """Load several sources concurrently, preserving input order.

    Each failure is recorded in the report instead of being raised, so one
    broken or password-protected file never blocks the others.
    """

    inputs = [item if isinstance(item, SourceInput) else SourceInput(*item) for item in items]
    report = LoadReport()
    if not inputs:
        return report

    def _load(item: SourceInput) -> SourceDocument | LoadFailure:
        try:
            return load_source(item.data, item.name, password=item.password)
        except PdfLoadError as exc:
            LOGGER.warning("Failed to load %s: %s", item.name, exc)
            return LoadFailure(name=item.name, error=exc)

    workers = max(1, min(max_workers, len(inputs)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(_load, inputs))

    for result in results:
        if isinstance(result, LoadFailure):
            report.failures.append(result)
        else:
            report.sources.append(result)
    return report


def read_source_file(path: PathLike) -> SourceInput:
    """Read a PDF from disk as a :class:`SourceInput`."""

    pdf_path = ensure_path(path)
    try:
        data = pdf_path.read_bytes()
    except OSError as exc:
        raise PdfLoadError(f"Unable to read PDF file: {pdf_path}. Error: {exc}", name=pdf_path.name) from exc
    return SourceInput(name=pdf_path.name, data=data)


def get_document_info(document: LoadedDocument) -> DocumentInfo:
    return DocumentInfo(
        name=document.name,
        page_count=document.page_count,
        file_size=len(document.data),
        is_encrypted=document.is_encrypted,
        page_sizes=[document.page_size(index) for index in range(document.page_count)],
        metadata=document.metadata(),
    )


def serialize_writer(writer: PdfWriter) -> bytes:
    """Write *writer* to an in-memory buffer and return the bytes."""

    buffer = io.BytesIO()
    try:
        writer.write(buffer)
    except Exception as exc:  # pragma: no cover - writer errors vary
        LOGGER.error("Failed to serialize PDF: %s", exc)
        raise PdfComposeError(f"Failed to serialize PDF: {exc}") from exc
    return buffer.getvalue()


def document_from_writer(writer: PdfWriter, name: str) -> LoadedDocument:
    """Serialize *writer* and reopen the result as a new handle."""

    return load_document(serialize_writer(writer), name=name)


__all__ = [
    "LoadedDocument",
    "DocumentInfo",
    "SourceInput",
    "LoadFailure",
    "LoadReport",
    "load_document",
    "load_source",
    "open_source",
    "load_sources",
    "read_source_file",
    "get_document_info",
    "serialize_writer",
    "document_from_writer",
]

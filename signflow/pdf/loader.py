"""PDF loading helpers."""

from __future__ import annotations

from pathlib import Path

import fitz

from signflow.model.document import PdfDocument


class PdfLoadError(RuntimeError):
    """Raised when a PDF cannot be opened."""


def load_pdf_bytes(data: bytes) -> PdfDocument:
    if not data:
        raise PdfLoadError("Empty document")

    try:
        handle = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise PdfLoadError("Failed to open PDF data") from exc

    if handle.page_count == 0:
        handle.close()
        raise PdfLoadError("Document has no pages")
    return PdfDocument(data=bytes(data), handle=handle)


def read_pdf(path: str | Path) -> bytes:
    source_path = Path(path)
    if not source_path.exists():
        raise PdfLoadError(f"File not found: {source_path}")
    try:
        return source_path.read_bytes()
    except OSError as exc:
        raise PdfLoadError(f"Failed to read PDF: {source_path}") from exc

"""PDF rendering helpers using PyMuPDF."""

from __future__ import annotations

from dataclasses import dataclass

import fitz

from signflow.model.document import PdfDocument
from signflow.viewer.geometry import PageMetrics


class PdfRenderError(RuntimeError):
    """Raised when a page cannot be rendered."""


@dataclass(slots=True, frozen=True)
class RenderedPage:
    page_index: int
    zoom: float
    pixel_width: int
    pixel_height: int
    page_width_pt: float
    page_height_pt: float
    samples: bytes
    stride: int

    def metrics(self) -> PageMetrics:
        return PageMetrics(
            zoom=self.zoom,
            page_width_pt=self.page_width_pt,
            page_height_pt=self.page_height_pt,
            pixel_width=self.pixel_width,
            pixel_height=self.pixel_height,
        )


def render_page(document: PdfDocument, page_index: int, zoom: float = 1.5) -> RenderedPage:
    if page_index < 0 or page_index >= document.page_count:
        raise PdfRenderError(f"Page index out of range: {page_index}")
    if zoom <= 0:
        raise PdfRenderError(f"Zoom must be positive, got {zoom}")

    try:
        page = document.handle.load_page(page_index)
        matrix = fitz.Matrix(zoom, zoom)
        pix = page.get_pixmap(matrix=matrix, alpha=False, annots=False)
    except Exception as exc:  # pragma: no cover
        raise PdfRenderError(f"Failed to render page {page_index + 1}") from exc

    return RenderedPage(
        page_index=page_index,
        zoom=zoom,
        pixel_width=pix.width,
        pixel_height=pix.height,
        page_width_pt=float(page.rect.width),
        page_height_pt=float(page.rect.height),
        samples=bytes(pix.samples),
        stride=pix.stride,
    )

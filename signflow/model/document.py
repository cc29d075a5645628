"""Document model for an opened PDF held in memory."""

from __future__ import annotations

from dataclasses import dataclass

import fitz


@dataclass(slots=True)
class PdfDocument:
    data: bytes
    handle: fitz.Document

    @property
    def page_count(self) -> int:
        return self.handle.page_count

    def page_size(self, page_index: int) -> tuple[float, float]:
        rect = self.handle.load_page(page_index).rect
        return float(rect.width), float(rect.height)

    def close(self) -> None:
        if not self.handle.is_closed:
            self.handle.close()

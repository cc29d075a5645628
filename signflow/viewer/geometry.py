"""Conversions between document space (points, bottom-left origin) and render space.

Render space is the rasterized page as displayed: pixels, top-left origin,
scaled by the session zoom. Document values are rounded to two decimals on
every conversion so stored geometry stays stable; render values are not.
"""

from __future__ import annotations

from dataclasses import dataclass

from signflow.model.field import FormField, round_pt


@dataclass(slots=True, frozen=True)
class PageMetrics:
    zoom: float
    page_width_pt: float
    page_height_pt: float
    pixel_width: int
    pixel_height: int


@dataclass(slots=True, frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def translated(self, dx: float, dy: float) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)


def rect_from_points(x0: float, y0: float, x1: float, y1: float) -> Rect:
    return Rect(min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))


def centered_rect(cx: float, cy: float, width: float, height: float) -> Rect:
    return Rect(cx - width / 2.0, cy - height / 2.0, width, height)


def clamp_rect(rect: Rect, max_width: float, max_height: float) -> Rect:
    x = max(0.0, min(rect.x, max_width - rect.width))
    y = max(0.0, min(rect.y, max_height - rect.height))
    return Rect(x, y, rect.width, rect.height)


def _check_space(zoom: float, page_height_pt: float) -> None:
    if zoom <= 0:
        raise ValueError(f"zoom must be positive, got {zoom}")
    if page_height_pt <= 0:
        raise ValueError(f"page height must be positive, got {page_height_pt}")


def to_document_space(render_rect: Rect, zoom: float, page_height_pt: float) -> Rect:
    _check_space(zoom, page_height_pt)
    return Rect(
        x=round_pt(render_rect.x / zoom),
        y=round_pt(page_height_pt - (render_rect.y + render_rect.height) / zoom),
        width=round_pt(render_rect.width / zoom),
        height=round_pt(render_rect.height / zoom),
    )


def to_render_space(document_rect: Rect, zoom: float, page_height_pt: float) -> Rect:
    _check_space(zoom, page_height_pt)
    return Rect(
        x=document_rect.x * zoom,
        y=(page_height_pt - (document_rect.y + document_rect.height)) * zoom,
        width=document_rect.width * zoom,
        height=document_rect.height * zoom,
    )


def field_document_rect(field: FormField) -> Rect:
    return Rect(field.x, field.y, field.width, field.height)


def field_render_rect(field: FormField, metrics: PageMetrics) -> Rect:
    return to_render_space(field_document_rect(field), metrics.zoom, metrics.page_height_pt)

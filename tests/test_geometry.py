"""Tests for render/document coordinate conversions."""

import pytest

from conftest import make_field
from signflow.viewer.geometry import (
    Rect,
    centered_rect,
    clamp_rect,
    field_render_rect,
    rect_from_points,
    to_document_space,
    to_render_space,
)


# ---------------------------------------------------------------------------
# Document space
# ---------------------------------------------------------------------------

class TestToDocumentSpace:

    def test_drawn_text_rectangle_on_letter_page(self):
        drawn = rect_from_points(100, 100, 220, 140)
        doc = to_document_space(drawn, 1.5, 792)
        assert (doc.x, doc.y, doc.width, doc.height) == (66.67, 698.67, 80.0, 26.67)

    def test_drawn_text_rectangle_on_short_page(self):
        drawn = rect_from_points(100, 100, 220, 140)
        doc = to_document_space(drawn, 1.5, 528)
        assert (doc.x, doc.y, doc.width, doc.height) == (66.67, 434.67, 80.0, 26.67)

    def test_vertical_axis_is_flipped(self):
        top = to_document_space(Rect(0, 0, 10, 10), 1.0, 100)
        bottom = to_document_space(Rect(0, 90, 10, 10), 1.0, 100)
        assert top.y == 90
        assert bottom.y == 0

    def test_values_are_rounded_to_two_decimals(self):
        doc = to_document_space(Rect(10, 10, 10, 10), 3.0, 100)
        assert doc.x == 3.33
        assert doc.width == 3.33
        assert doc.y == 93.33

    @pytest.mark.parametrize("zoom, height", [(0, 792), (-1, 792), (1.5, 0)])
    def test_invalid_space_rejected(self, zoom, height):
        with pytest.raises(ValueError):
            to_document_space(Rect(0, 0, 10, 10), zoom, height)


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("zoom", [0.5, 1.0, 1.25, 1.5, 2.0, 3.7])
@pytest.mark.parametrize("height", [100.0, 792.0, 842.0])
@pytest.mark.parametrize(
    "rect",
    [Rect(0, 0, 30, 20), Rect(100.3, 57.9, 120.4, 41.1), Rect(12.345, 400.001, 18, 18)],
)
def test_round_trip_within_rounding_tolerance(rect, zoom, height):
    back = to_render_space(to_document_space(rect, zoom, height), zoom, height)
    tolerance = 0.011 * zoom
    assert back.x == pytest.approx(rect.x, abs=tolerance)
    assert back.y == pytest.approx(rect.y, abs=tolerance)
    assert back.width == pytest.approx(rect.width, abs=tolerance)
    assert back.height == pytest.approx(rect.height, abs=tolerance)


def test_render_space_is_not_rounded():
    rect = to_render_space(Rect(10.01, 20.0, 5.0, 5.0), 1.5, 792)
    assert rect.x == pytest.approx(15.015)


def test_field_render_rect_uses_page_metrics(metrics):
    field = make_field(x=66.67, y=698.67, width=80, height=26.67)
    rect = field_render_rect(field, metrics)
    assert rect.x == pytest.approx(100.005)
    assert rect.y == pytest.approx(99.99, abs=0.01)
    assert rect.width == pytest.approx(120)


# ---------------------------------------------------------------------------
# Rect helpers
# ---------------------------------------------------------------------------

class TestRectHelpers:

    def test_rect_from_points_normalizes_any_drag_direction(self):
        assert rect_from_points(220, 140, 100, 100) == Rect(100, 100, 120, 40)

    def test_contains_includes_edges(self):
        rect = Rect(10, 10, 20, 20)
        assert rect.contains(10, 10)
        assert rect.contains(30, 30)
        assert not rect.contains(30.1, 20)

    def test_centered_rect(self):
        assert centered_rect(50, 50, 20, 20) == Rect(40, 40, 20, 20)

    def test_clamp_keeps_rect_inside_page(self):
        assert clamp_rect(Rect(-5, 95, 20, 20), 100, 100) == Rect(0, 80, 20, 20)

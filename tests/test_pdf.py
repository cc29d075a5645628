"""Tests for PDF loading, rendering and form-field import."""

import pytest

from signflow.model.field import FieldType
from signflow.pdf.importer import PdfImportError, import_pdf_fields
from signflow.pdf.loader import PdfLoadError, load_pdf_bytes, read_pdf
from signflow.pdf.renderer import PdfRenderError, render_page


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class TestLoader:

    def test_loads_pages(self, two_page_pdf):
        document = load_pdf_bytes(two_page_pdf)
        try:
            assert document.page_count == 2
            assert document.page_size(0) == pytest.approx((612, 792))
            assert document.page_size(1) == pytest.approx((595, 842))
        finally:
            document.close()

    def test_close_is_idempotent(self, letter_pdf):
        document = load_pdf_bytes(letter_pdf)
        document.close()
        document.close()

    @pytest.mark.parametrize("data", [b"", b"definitely not a pdf"])
    def test_invalid_data(self, data):
        with pytest.raises(PdfLoadError):
            load_pdf_bytes(data)

    def test_read_pdf(self, tmp_path, letter_pdf):
        path = tmp_path / "form.pdf"
        path.write_bytes(letter_pdf)
        assert read_pdf(path) == letter_pdf

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(PdfLoadError):
            read_pdf(tmp_path / "missing.pdf")


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class TestRenderer:

    def test_render_metrics(self, letter_pdf):
        document = load_pdf_bytes(letter_pdf)
        try:
            page = render_page(document, 0, 1.5)
        finally:
            document.close()

        metrics = page.metrics()
        assert (metrics.pixel_width, metrics.pixel_height) == (918, 1188)
        assert metrics.page_height_pt == pytest.approx(792)
        assert metrics.zoom == 1.5
        assert len(page.samples) == page.stride * page.pixel_height

    @pytest.mark.parametrize("page_index, zoom", [(1, 1.5), (-1, 1.5), (0, 0)])
    def test_invalid_request(self, letter_pdf, page_index, zoom):
        document = load_pdf_bytes(letter_pdf)
        try:
            with pytest.raises(PdfRenderError):
                render_page(document, page_index, zoom)
        finally:
            document.close()


# ---------------------------------------------------------------------------
# Importer
# ---------------------------------------------------------------------------

class TestImporter:

    def test_plain_pdf_has_no_fields(self, letter_pdf):
        assert import_pdf_fields(letter_pdf) == []

    def test_imports_text_field(self, acroform_pdf):
        fields = {item.field_name: item for item in import_pdf_fields(acroform_pdf)}
        full_name = fields["full_name"]
        assert full_name.field_type is FieldType.TEXT
        assert full_name.page == 0
        assert full_name.x == pytest.approx(72, abs=1)
        assert full_name.y == pytest.approx(700, abs=1)
        assert full_name.width == pytest.approx(200, abs=1)
        assert full_name.height == pytest.approx(20, abs=1)
        assert full_name.current_value == "Ada"
        assert full_name.assigned_to == ""

    def test_imports_checkbox(self, acroform_pdf):
        fields = {item.field_name: item for item in import_pdf_fields(acroform_pdf)}
        agree = fields["agree"]
        assert agree.field_type is FieldType.CHECKBOX
        assert agree.current_value == "true"
        assert agree.group_name is None

    def test_radio_widgets_share_a_group(self, acroform_pdf):
        radios = [item for item in import_pdf_fields(acroform_pdf) if item.field_type is FieldType.RADIO]
        assert len(radios) == 2
        assert {item.group_name for item in radios} == {"choice"}
        assert len({item.field_name for item in radios}) == 2
        assert sorted(item.current_value for item in radios) == ["false", "true"]

    def test_second_page_field(self, acroform_pdf):
        fields = {item.field_name: item for item in import_pdf_fields(acroform_pdf)}
        assert fields["city"].page == 1

    def test_names_are_unique(self, acroform_pdf):
        names = [item.field_name for item in import_pdf_fields(acroform_pdf)]
        assert len(names) == len(set(names)) == 5

    def test_reads_from_path(self, tmp_path, acroform_pdf):
        path = tmp_path / "form.pdf"
        path.write_bytes(acroform_pdf)
        assert len(import_pdf_fields(path)) == 5

    def test_garbage_raises(self):
        with pytest.raises(PdfImportError):
            import_pdf_fields(b"definitely not a pdf")

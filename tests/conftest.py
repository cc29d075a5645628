"""Pytest configuration and shared fixtures for signflow tests."""

from io import BytesIO

import fitz
import pytest

from signflow.config import EditorConfig
from signflow.model.field import FieldType, FormField
from signflow.model.signer import make_signer
from signflow.state.session import FieldNameMinter, FieldStore
from signflow.viewer.editor import PlacementEditor
from signflow.viewer.geometry import PageMetrics

LETTER = (612.0, 792.0)
ZOOM = 1.5


def make_pdf(page_sizes=(LETTER,)):
    """Build an in-memory PDF with one labelled page per size."""
    doc = fitz.open()
    for number, (width, height) in enumerate(page_sizes, start=1):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), f"Page {number}")
    data = doc.tobytes()
    doc.close()
    return data


def make_acroform_pdf():
    """Two-page PDF with text, checkbox and radio widgets built by reportlab."""
    from reportlab.pdfgen import canvas

    buffer = BytesIO()
    report = canvas.Canvas(buffer, pagesize=LETTER)
    report.acroForm.textfield(name="full_name", x=72, y=700, width=200, height=20, value="Ada")
    report.acroForm.checkbox(name="agree", x=72, y=650, size=14, checked=True)
    report.acroForm.radio(name="choice", value="yes", selected=True, x=72, y=600, size=14)
    report.acroForm.radio(name="choice", value="no", selected=False, x=120, y=600, size=14)
    report.showPage()
    report.acroForm.textfield(name="city", x=100, y=500, width=150, height=18)
    report.showPage()
    report.save()
    return buffer.getvalue()


def make_field(name="text_a_1", field_type=FieldType.TEXT, page=0, x=100.0, y=600.0,
               width=80.0, height=20.0, **kwargs):
    if field_type is FieldType.RADIO:
        kwargs.setdefault("group_name", "group1")
    return FormField(field_name=name, field_type=field_type, page=page, x=x, y=y,
                     width=width, height=height, **kwargs)


@pytest.fixture
def metrics():
    return PageMetrics(zoom=ZOOM, page_width_pt=LETTER[0], page_height_pt=LETTER[1],
                       pixel_width=918, pixel_height=1188)


@pytest.fixture
def signers():
    return [make_signer("Alice Martin", 1), make_signer("Bob Léger", 2)]


@pytest.fixture
def store():
    return FieldStore(page_count=2)


@pytest.fixture
def config():
    return EditorConfig(zoom=ZOOM)


@pytest.fixture
def changes():
    return []


@pytest.fixture
def editor(store, metrics, signers, config, changes):
    return PlacementEditor(
        store=store,
        page=0,
        metrics=metrics,
        list_signers=lambda: signers,
        minter=FieldNameMinter(),
        config=config,
        on_change=lambda: changes.append(len(store)),
    )


@pytest.fixture
def letter_pdf():
    return make_pdf()


@pytest.fixture
def two_page_pdf():
    return make_pdf((LETTER, (595.0, 842.0)))


@pytest.fixture
def acroform_pdf():
    return make_acroform_pdf()

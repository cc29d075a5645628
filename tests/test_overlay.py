"""Tests for the signer fill overlay and value session."""

import base64

import pytest

from conftest import make_field
from signflow.model.field import FieldType
from signflow.state.filling import FillSession, SignerDocument, SignerDocumentError
from signflow.viewer.geometry import Rect
from signflow.viewer.overlay import (
    DEFAULT_PLACEHOLDER,
    FillOverlay,
    build_controls,
    decode_bool,
    encode_bool,
)


@pytest.fixture
def form_fields():
    return [
        make_field("text_bob_1", label="Full name"),
        make_field("checkbox_bob_2", FieldType.CHECKBOX, y=500, width=14, height=14),
        make_field("radio_bob_3", FieldType.RADIO, y=400, width=12, height=12, label="Yes"),
        make_field("radio_bob_4", FieldType.RADIO, x=150, y=400, width=12, height=12),
        make_field("text_bob_5", page=1, height=8),
    ]


# ---------------------------------------------------------------------------
# Controls
# ---------------------------------------------------------------------------

class TestControls:

    def test_controls_are_aligned_with_page(self, form_fields, metrics):
        controls = build_controls(form_fields, metrics, {}, page=0)
        assert [control.field_name for control in controls] == [
            "text_bob_1", "checkbox_bob_2", "radio_bob_3", "radio_bob_4",
        ]
        assert controls[0].rect == Rect(150, 258, 120, 30)

    def test_text_control_placeholder_and_font(self, form_fields, metrics):
        first, *_ = build_controls(form_fields, metrics, {"text_bob_1": "Bob"}, page=0)
        assert first.text == "Bob"
        assert first.placeholder == "Full name"
        assert first.font_size == 14.0

        (small,) = build_controls(form_fields, metrics, {}, page=1)
        assert small.placeholder == DEFAULT_PLACEHOLDER
        assert small.font_size == 8.0

    def test_checked_state_comes_from_values(self, form_fields, metrics):
        values = {"checkbox_bob_2": "true", "radio_bob_3": "false", "radio_bob_4": "TRUE"}
        controls = build_controls(form_fields, metrics, values, page=0)
        assert [control.checked for control in controls[1:]] == [True, False, True]
        assert controls[2].group_name == "group1"

    def test_current_value_is_used_when_no_value_stored(self, metrics):
        field = make_field("text_bob_1", current_value="prefilled")
        (control,) = build_controls([field], metrics, {})
        assert control.text == "prefilled"

    def test_bool_encoding(self):
        assert decode_bool("true")
        assert not decode_bool(None)
        assert not decode_bool("yes")
        assert encode_bool(True) == "true"
        assert encode_bool(False) == "false"


# ---------------------------------------------------------------------------
# Overlay events
# ---------------------------------------------------------------------------

class TestFillOverlay:

    def test_reports_changes(self, form_fields):
        seen = []
        overlay = FillOverlay(form_fields, on_change=lambda name, value: seen.append((name, value)))
        overlay.edit_text("text_bob_1", "Bob")
        overlay.toggle("checkbox_bob_2", False)
        overlay.toggle("radio_bob_4", True)
        assert seen == [
            ("text_bob_1", "Bob"),
            ("checkbox_bob_2", "false"),
            ("radio_bob_4", "true"),
        ]

    def test_radio_cannot_be_unchecked_directly(self, form_fields):
        seen = []
        overlay = FillOverlay(form_fields, on_change=lambda name, value: seen.append(name))
        overlay.toggle("radio_bob_3", False)
        assert seen == []

    def test_wrong_control_kind_is_rejected(self, form_fields):
        overlay = FillOverlay(form_fields)
        with pytest.raises(ValueError):
            overlay.edit_text("checkbox_bob_2", "x")
        with pytest.raises(ValueError):
            overlay.toggle("text_bob_1", True)
        with pytest.raises(KeyError):
            overlay.toggle("missing", True)

    def test_pages(self, form_fields):
        assert FillOverlay(form_fields).pages() == [0, 1]


# ---------------------------------------------------------------------------
# Value session
# ---------------------------------------------------------------------------

class TestFillSession:

    def test_defaults_for_boolean_fields(self, form_fields):
        session = FillSession(form_fields)
        assert session.values == {
            "checkbox_bob_2": "false",
            "radio_bob_3": "false",
            "radio_bob_4": "false",
        }
        assert session.value_of("text_bob_1") == ""

    def test_radio_selection_is_exclusive(self, form_fields):
        session = FillSession(form_fields)
        session.apply_change("radio_bob_3", "true")
        values = session.apply_change("radio_bob_4", "true")
        assert values["radio_bob_3"] == "false"
        assert values["radio_bob_4"] == "true"

    def test_other_groups_are_untouched(self):
        fields = [
            make_field("radio_a_1", FieldType.RADIO, group_name="g1"),
            make_field("radio_a_2", FieldType.RADIO, group_name="g2"),
        ]
        session = FillSession(fields)
        session.apply_change("radio_a_1", "true")
        session.apply_change("radio_a_2", "true")
        assert session.values == {"radio_a_1": "true", "radio_a_2": "true"}

    def test_apply_change_returns_new_mapping(self, form_fields):
        session = FillSession(form_fields)
        before = session.values
        after = session.apply_change("text_bob_1", "Bob")
        assert after is not before
        assert "text_bob_1" not in before

    def test_unknown_field(self, form_fields):
        with pytest.raises(KeyError):
            FillSession(form_fields).apply_change("nope", "x")

    def test_stored_values_keep_one_selection_per_group(self, form_fields):
        session = FillSession(form_fields, {"radio_bob_3": "true", "radio_bob_4": "true"})
        assert session.values["radio_bob_3"] == "true"
        assert session.values["radio_bob_4"] == "false"

    def test_checklist(self, form_fields):
        session = FillSession(form_fields)
        items = {item.key: item for item in session.checklist()}
        assert set(items) == {"text_bob_1", "checkbox_bob_2", "group1", "text_bob_5"}
        assert items["text_bob_1"].label == "Full name"
        assert not items["text_bob_1"].filled
        assert items["checkbox_bob_2"].filled
        assert not items["group1"].filled
        assert not session.is_complete()

    def test_complete_after_filling(self, form_fields):
        session = FillSession(form_fields)
        session.apply_change("text_bob_1", "Bob")
        session.apply_change("text_bob_5", "Paris")
        session.apply_change("radio_bob_4", "true")
        assert session.is_complete()

    def test_blank_text_is_not_filled(self, form_fields):
        session = FillSession(form_fields)
        session.apply_change("text_bob_1", "   ")
        assert not {item.key: item for item in session.checklist()}["text_bob_1"].filled

    def test_fill_payload(self, form_fields):
        session = FillSession(form_fields)
        session.apply_change("text_bob_1", "Bob")
        payload = session.fill_payload("Bob Léger")
        assert payload["signerName"] == "Bob Léger"
        assert payload["fields"]["text_bob_1"] == "Bob"
        assert payload["fields"]["checkbox_bob_2"] == "false"
        assert payload["fields"]["text_bob_5"] == ""


# ---------------------------------------------------------------------------
# Signer document response
# ---------------------------------------------------------------------------

class TestSignerDocument:

    def test_from_response(self, letter_pdf):
        document = SignerDocument.from_response({
            "workflowId": 42,
            "signerName": "Bob Léger",
            "pdfBase64": base64.b64encode(letter_pdf).decode("ascii"),
            "fields": [{
                "fieldName": "radio_bob-leger_1",
                "fieldType": "radio",
                "groupName": "group1",
                "page": 0,
                "x": 10, "y": 20, "width": 12, "height": 12,
                "assignedTo": "bob-leger",
                "currentValue": "true",
            }],
        })
        assert document.workflow_id == "42"
        assert document.signer_id == "bob-leger"
        assert document.pdf_bytes == letter_pdf
        (field,) = document.fields
        assert field.field_type is FieldType.RADIO
        assert field.current_value == "true"
        assert FillSession(document.fields).values == {"radio_bob-leger_1": "true"}

    @pytest.mark.parametrize("payload", [
        {"signerName": "x", "pdfBase64": ""},
        {"workflowId": "1", "pdfBase64": "not base64!"},
        {"workflowId": "1", "pdfBase64": "", "fields": [{"fieldName": "a"}]},
    ])
    def test_malformed_response(self, payload):
        with pytest.raises(SignerDocumentError):
            SignerDocument.from_response(payload)

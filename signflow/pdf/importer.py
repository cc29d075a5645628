"""Import existing AcroForm widgets from a PDF as unassigned fields."""

from __future__ import annotations

from io import BytesIO
import logging
from pathlib import Path

from pypdf import PdfReader

from signflow.model.field import FieldType, FormField, round_pt

logger = logging.getLogger(__name__)

_RADIO_FLAG = 1 << 15
_PUSHBUTTON_FLAG = 1 << 16
_OFF_STATES = {"", "/Off", "Off"}


class PdfImportError(RuntimeError):
    """Raised when existing form fields cannot be imported."""


def _inherited(annot, key: str):
    node = annot
    while node is not None:
        value = node.get(key)
        if value is not None:
            return value
        parent = node.get("/Parent")
        node = parent.get_object() if parent is not None else None
    return None


def _qualified_name(annot) -> str:
    parts: list[str] = []
    node = annot
    while node is not None:
        partial = node.get("/T")
        if partial:
            parts.append(str(partial))
        parent = node.get("/Parent")
        node = parent.get_object() if parent is not None else None
    return ".".join(reversed(parts))


def _classify(annot) -> FieldType | None:
    field_type = _inherited(annot, "/FT")
    if field_type == "/Tx":
        return FieldType.TEXT
    if field_type != "/Btn":
        # Choice and signature fields have no counterpart.
        return None
    flags = int(_inherited(annot, "/Ff") or 0)
    if flags & _PUSHBUTTON_FLAG:
        return None
    if flags & _RADIO_FLAG:
        return FieldType.RADIO
    return FieldType.CHECKBOX


def _current_value(annot, field_type: FieldType) -> str:
    if field_type is FieldType.TEXT:
        return str(_inherited(annot, "/V") or "")
    appearance = str(annot.get("/AS") or "")
    if field_type is FieldType.CHECKBOX:
        value = str(_inherited(annot, "/V") or "")
        checked = value not in _OFF_STATES or appearance not in _OFF_STATES
    else:
        checked = appearance not in _OFF_STATES
    return "true" if checked else "false"


def import_pdf_fields(source: bytes | str | Path) -> list[FormField]:
    if isinstance(source, (bytes, bytearray)):
        stream = BytesIO(bytes(source))
        label = "<memory>"
    else:
        stream = str(source)
        label = str(source)

    widgets: list[tuple[int, object, FieldType, str]] = []
    try:
        reader = PdfReader(stream)
        for page_index, page in enumerate(reader.pages):
            annots = page.get("/Annots")
            if annots is None:
                continue
            for annot_ref in annots.get_object():
                annot = annot_ref.get_object()
                if annot.get("/Subtype") != "/Widget" or annot.get("/Rect") is None:
                    continue
                field_type = _classify(annot)
                if field_type is None:
                    continue
                widgets.append((page_index, annot, field_type, _qualified_name(annot)))

        widget_totals: dict[str, int] = {}
        for _page, _annot, _type, base in widgets:
            if base:
                widget_totals[base] = widget_totals.get(base, 0) + 1

        imported: list[FormField] = []
        used: set[str] = set()
        positions: dict[str, int] = {}
        unnamed = 0
        for page_index, annot, field_type, base in widgets:
            rect = [float(value) for value in annot["/Rect"]]
            llx, urx = sorted((rect[0], rect[2]))
            lly, ury = sorted((rect[1], rect[3]))
            if round_pt(urx - llx) <= 0 or round_pt(ury - lly) <= 0:
                continue

            if base:
                position = positions.get(base, 0)
                positions[base] = position + 1
                name = f"{base}_{position}" if widget_totals[base] > 1 else base
            else:
                name = f"{field_type.value}_imported_{unnamed}"
                unnamed += 1

            if name in used:
                suffix = 1
                while f"{name}_{suffix}" in used:
                    suffix += 1
                name = f"{name}_{suffix}"
            used.add(name)

            group_name = None
            if field_type is FieldType.RADIO:
                group_name = base.rsplit(".", maxsplit=1)[-1] if base else f"group_imported_{page_index}"

            imported.append(
                FormField(
                    field_name=name,
                    field_type=field_type,
                    page=page_index,
                    x=round_pt(llx),
                    y=round_pt(lly),
                    width=round_pt(urx - llx),
                    height=round_pt(ury - lly),
                    group_name=group_name,
                    current_value=_current_value(annot, field_type),
                )
            )
    except Exception as exc:
        raise PdfImportError(f"Failed to import form fields from: {label}") from exc

    logger.info("Imported %d existing form field(s) from %s", len(imported), label)
    return imported

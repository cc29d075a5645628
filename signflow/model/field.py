"""Form field model definitions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class FieldType(str, Enum):
    TEXT = "text"
    CHECKBOX = "checkbox"
    RADIO = "radio"


class FieldValidationError(ValueError):
    """Raised when a field breaks one of the model invariants."""


def round_pt(value: float) -> float:
    return round(float(value), 2)


@dataclass(slots=True)
class FormField:
    field_name: str
    field_type: FieldType
    page: int
    x: float
    y: float
    width: float
    height: float
    label: str = ""
    assigned_to: str = ""
    signer_name: str = ""
    group_name: str | None = None
    current_value: str | None = None

    @property
    def is_assigned(self) -> bool:
        return bool(self.assigned_to)

    @property
    def has_handle(self) -> bool:
        return self.field_type is not FieldType.TEXT


def validate_field(field: FormField, page_count: int | None = None) -> None:
    if not field.field_name:
        raise FieldValidationError("Field name must not be empty")
    if field.width <= 0 or field.height <= 0:
        raise FieldValidationError(
            f"Field {field.field_name!r} has a degenerate size {field.width}x{field.height}"
        )
    if field.page < 0 or (page_count is not None and field.page >= page_count):
        raise FieldValidationError(f"Field {field.field_name!r} is on invalid page {field.page}")
    if field.field_type is FieldType.RADIO:
        if not field.group_name:
            raise FieldValidationError(f"Radio field {field.field_name!r} needs a group name")
    elif field.group_name:
        raise FieldValidationError(
            f"Only radio fields carry a group name ({field.field_name!r} is {field.field_type.value})"
        )


def to_wire(field: FormField) -> dict[str, Any]:
    record: dict[str, Any] = {
        "fieldName": field.field_name,
        "label": field.label,
        "assignedTo": field.assigned_to,
        "fieldType": field.field_type.value,
        "page": field.page,
        "x": round_pt(field.x),
        "y": round_pt(field.y),
        "width": round_pt(field.width),
        "height": round_pt(field.height),
    }
    if field.field_type is FieldType.RADIO:
        record["groupName"] = field.group_name
    return record


def field_from_wire(record: Mapping[str, Any]) -> FormField:
    try:
        field_type = FieldType(record.get("fieldType") or FieldType.TEXT.value)
        current = record.get("currentValue")
        field = FormField(
            field_name=str(record["fieldName"]),
            field_type=field_type,
            page=int(record.get("page", 0)),
            x=round_pt(record["x"]),
            y=round_pt(record["y"]),
            width=round_pt(record["width"]),
            height=round_pt(record["height"]),
            label=str(record.get("label") or ""),
            assigned_to=str(record.get("assignedTo") or ""),
            signer_name=str(record.get("signerName") or ""),
            group_name=(record.get("groupName") or None)
            if field_type is FieldType.RADIO
            else None,
            current_value=None if current is None else str(current),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise FieldValidationError(f"Malformed field record: {dict(record)!r}") from exc

    validate_field(field)
    return field

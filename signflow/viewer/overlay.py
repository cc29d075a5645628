"""Signer-side fill overlay: one input control per assigned field.

Checkbox and radio values travel as the strings ``"true"``/``"false"`` so the
value map stays homogeneous; the overlay decodes them to booleans for its own
logic and encodes them back when it reports a change. It only reports
changes; fanning a radio selection out to its group is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from signflow.model.field import FieldType, FormField
from signflow.viewer.geometry import PageMetrics, Rect, field_render_rect

DEFAULT_PLACEHOLDER = "Your entry..."


def decode_bool(value: str | None) -> bool:
    return (value or "false").strip().lower() == "true"


def encode_bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass(slots=True, frozen=True)
class FillControl:
    kind: FieldType
    field_name: str
    rect: Rect
    text: str = ""
    checked: bool = False
    placeholder: str = ""
    group_name: str | None = None
    font_size: float = 10.0


def stored_value(item: FormField, values: Mapping[str, str]) -> str | None:
    if item.field_name in values:
        return values[item.field_name]
    return item.current_value


def build_control(item: FormField, metrics: PageMetrics, values: Mapping[str, str]) -> FillControl:
    rect = field_render_rect(item, metrics)
    value = stored_value(item, values)
    if item.field_type is FieldType.TEXT:
        return FillControl(
            kind=FieldType.TEXT,
            field_name=item.field_name,
            rect=rect,
            text=value or "",
            placeholder=item.label or DEFAULT_PLACEHOLDER,
            font_size=max(8.0, min(14.0, rect.height * 0.6)),
        )
    return FillControl(
        kind=item.field_type,
        field_name=item.field_name,
        rect=rect,
        checked=decode_bool(value),
        placeholder=item.label,
        group_name=item.group_name,
    )


def build_controls(
    fields: list[FormField],
    metrics: PageMetrics,
    values: Mapping[str, str],
    page: int | None = None,
) -> list[FillControl]:
    return [
        build_control(item, metrics, values)
        for item in fields
        if page is None or item.page == page
    ]


class FillOverlay:
    def __init__(
        self,
        fields: list[FormField],
        on_change: Callable[[str, str], None] | None = None,
    ) -> None:
        self._fields = {item.field_name: item for item in fields}
        self._order = [item.field_name for item in fields]
        self.on_change = on_change

    @property
    def fields(self) -> list[FormField]:
        return [self._fields[name] for name in self._order]

    def pages(self) -> list[int]:
        return sorted({item.page for item in self._fields.values()})

    def controls_for_page(
        self, page: int, metrics: PageMetrics, values: Mapping[str, str]
    ) -> list[FillControl]:
        return build_controls(self.fields, metrics, values, page=page)

    def edit_text(self, field_name: str, text: str) -> None:
        item = self._require(field_name)
        if item.field_type is not FieldType.TEXT:
            raise ValueError(f"{field_name} is not a text field")
        self._emit(field_name, text)

    def toggle(self, field_name: str, checked: bool) -> None:
        item = self._require(field_name)
        if item.field_type is FieldType.TEXT:
            raise ValueError(f"{field_name} is not a checkbox or radio field")
        if item.field_type is FieldType.RADIO and not checked:
            return
        self._emit(field_name, encode_bool(checked))

    def _require(self, field_name: str) -> FormField:
        try:
            return self._fields[field_name]
        except KeyError:
            raise KeyError(f"Unknown field: {field_name}") from None

    def _emit(self, field_name: str, value: str) -> None:
        if self.on_change is not None:
            self.on_change(field_name, value)

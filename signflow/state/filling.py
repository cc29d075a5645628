"""Signer-side value state: defaults, radio fan-out and completeness."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
import logging
from typing import Any, Mapping

from signflow.model.field import FieldType, FormField, field_from_wire
from signflow.model.signer import slugify

logger = logging.getLogger(__name__)


class SignerDocumentError(ValueError):
    """Raised when a signer document response cannot be decoded."""


@dataclass(slots=True)
class SignerDocument:
    workflow_id: str
    signer_name: str
    signer_id: str
    pdf_bytes: bytes
    fields: list[FormField] = field(default_factory=list)
    workflow_name: str = ""

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> SignerDocument:
        try:
            if payload.get("pdfBytes") is not None:
                pdf_bytes = bytes(payload["pdfBytes"])
            else:
                pdf_bytes = base64.b64decode(payload["pdfBase64"], validate=True)
            signer_name = str(payload.get("signerName") or "")
            fields = [field_from_wire(record) for record in payload.get("fields") or []]
            return cls(
                workflow_id=str(payload["workflowId"]),
                signer_name=signer_name,
                signer_id=str(payload.get("signerId") or slugify(signer_name)),
                pdf_bytes=pdf_bytes,
                fields=fields,
                workflow_name=str(payload.get("workflowName") or ""),
            )
        except (KeyError, TypeError, ValueError, binascii.Error) as exc:
            raise SignerDocumentError("Malformed signer document response") from exc


@dataclass(slots=True, frozen=True)
class ChecklistItem:
    key: str
    label: str
    field_type: FieldType
    filled: bool


class FillSession:
    def __init__(self, fields: list[FormField], values: Mapping[str, str] | None = None) -> None:
        self.fields = list(fields)
        self._by_name = {item.field_name: item for item in self.fields}
        self.values: dict[str, str] = {}
        for item in self.fields:
            if item.field_type is not FieldType.TEXT:
                self.values[item.field_name] = item.current_value or "false"
        if values:
            self.values.update({str(key): str(value) for key, value in values.items()})
        self._normalize_groups()

    def value_of(self, field_name: str) -> str:
        if field_name in self.values:
            return self.values[field_name]
        item = self._by_name.get(field_name)
        if item is not None and item.current_value is not None:
            return item.current_value
        return ""

    def apply_change(self, field_name: str, value: str) -> dict[str, str]:
        item = self._by_name.get(field_name)
        if item is None:
            raise KeyError(f"Unknown field: {field_name}")

        updated = dict(self.values)
        updated[field_name] = value
        if item.field_type is FieldType.RADIO and value == "true":
            for sibling in self._group(item.group_name):
                if sibling.field_name != field_name:
                    updated[sibling.field_name] = "false"
        self.values = updated
        logger.debug("Field %s changed to %r", field_name, value)
        return updated

    def checklist(self) -> list[ChecklistItem]:
        items: list[ChecklistItem] = []
        seen_groups: set[str] = set()
        for item in self.fields:
            if item.field_type is FieldType.RADIO:
                group = item.group_name or ""
                if group in seen_groups:
                    continue
                seen_groups.add(group)
                selected = any(self.values.get(sibling.field_name) == "true"
                               for sibling in self._group(group))
                items.append(ChecklistItem(group, item.label or group, FieldType.RADIO, selected))
            elif item.field_type is FieldType.CHECKBOX:
                items.append(ChecklistItem(item.field_name, item.label or item.field_name,
                                           FieldType.CHECKBOX, True))
            else:
                filled = bool(self.value_of(item.field_name).strip())
                items.append(ChecklistItem(item.field_name, item.label or item.field_name,
                                           FieldType.TEXT, filled))
        return items

    def is_complete(self) -> bool:
        return all(entry.filled for entry in self.checklist())

    def fill_payload(self, signer_name: str) -> dict[str, Any]:
        fields = {item.field_name: self.value_of(item.field_name) for item in self.fields}
        return {"signerName": signer_name, "fields": fields}

    def _group(self, group_name: str | None) -> list[FormField]:
        return [
            item
            for item in self.fields
            if item.field_type is FieldType.RADIO and item.group_name == group_name
        ]

    def _normalize_groups(self) -> None:
        # Stored values from older partial fills may select several options.
        seen: set[str | None] = set()
        for item in self.fields:
            if item.field_type is not FieldType.RADIO or self.values.get(item.field_name) != "true":
                continue
            if item.group_name in seen:
                self.values[item.field_name] = "false"
            seen.add(item.group_name)

"""In-memory field store for one editing session."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Iterable, Iterator

from signflow.model.field import FieldType, FormField, round_pt, to_wire, validate_field

logger = logging.getLogger(__name__)

_GROUP_PATTERN = re.compile(r"^group(\d+)$")
_UNSET = object()


class DuplicateFieldNameError(ValueError):
    """Raised when a field name is already live or was used earlier in the session."""


class UnassignedFieldError(ValueError):
    """Raised when submission requires every field to be assigned."""


class FieldNameMinter:
    """Mints ``{type}_{signer}_{n}`` names from a monotonic counter."""

    def __init__(self) -> None:
        self._counter = 1

    def next_name(self, field_type: FieldType, signer_id: str = "") -> str:
        name = f"{field_type.value}_{signer_id or 'unassigned'}_{self._counter}"
        self._counter += 1
        return name

    def sync(self, names: Iterable[str]) -> None:
        highest = self._counter - 1
        for name in names:
            parts = name.rsplit("_", maxsplit=1)
            if len(parts) != 2:
                continue
            try:
                value = int(parts[1])
            except ValueError:
                continue
            highest = max(highest, value)
        self._counter = highest + 1


@dataclass(slots=True)
class FieldStore:
    page_count: int | None = None
    _fields: list[FormField] = field(default_factory=list)
    _used_names: set[str] = field(default_factory=set)

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[FormField]:
        return iter(self._fields)

    def __getitem__(self, index: int) -> FormField:
        return self._fields[index]

    def all_fields(self) -> list[FormField]:
        return list(self._fields)

    def page_fields(self, page: int) -> list[tuple[int, FormField]]:
        return [(index, item) for index, item in enumerate(self._fields) if item.page == page]

    def index_of(self, field_name: str) -> int | None:
        for index, item in enumerate(self._fields):
            if item.field_name == field_name:
                return index
        return None

    def add(self, new_field: FormField) -> int:
        validate_field(new_field, self.page_count)
        if new_field.field_name in self._used_names:
            raise DuplicateFieldNameError(f"Field name already used: {new_field.field_name}")
        self._fields.append(new_field)
        self._used_names.add(new_field.field_name)
        logger.debug("Added %s field %s on page %d", new_field.field_type.value,
                      new_field.field_name, new_field.page)
        return len(self._fields) - 1

    def replace_all(self, new_fields: Iterable[FormField]) -> None:
        incoming = list(new_fields)
        seen: set[str] = set()
        for item in incoming:
            validate_field(item, self.page_count)
            if item.field_name in seen:
                raise DuplicateFieldNameError(f"Field name already used: {item.field_name}")
            seen.add(item.field_name)
        self._fields = incoming
        self._used_names = seen
        logger.debug("Replaced field store content with %d field(s)", len(incoming))

    def reassign(
        self,
        index: int,
        *,
        assigned_to: object = _UNSET,
        signer_name: object = _UNSET,
        label: object = _UNSET,
        group_name: object = _UNSET,
    ) -> FormField:
        target = self._fields[index]
        if assigned_to is not _UNSET:
            target.assigned_to = str(assigned_to or "")
        if signer_name is not _UNSET:
            target.signer_name = str(signer_name or "")
        if label is not _UNSET:
            target.label = str(label or "")
        if group_name is not _UNSET:
            if target.field_type is not FieldType.RADIO:
                raise ValueError(f"Only radio fields carry a group name: {target.field_name}")
            if not group_name:
                raise ValueError(f"Radio field {target.field_name} needs a group name")
            target.group_name = str(group_name)
        logger.debug("Reassigned %s to %r", target.field_name, target.assigned_to)
        return target

    def move(self, index: int, x: float, y: float) -> FormField:
        target = self._fields[index]
        target.x = round_pt(x)
        target.y = round_pt(y)
        logger.debug("Moved %s to (%.2f, %.2f)", target.field_name, target.x, target.y)
        return target

    def remove(self, index: int) -> FormField:
        removed = self._fields.pop(index)
        logger.debug("Removed field %s", removed.field_name)
        return removed

    def group_names(self) -> list[str]:
        names: list[str] = []
        for item in self._fields:
            if item.field_type is FieldType.RADIO and item.group_name and item.group_name not in names:
                names.append(item.group_name)
        return names

    def next_group_name(self, extra: Iterable[str] = ()) -> str:
        highest = 0
        for name in [*self.group_names(), *extra]:
            match = _GROUP_PATTERN.match(name)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"group{highest + 1}"

    def unassigned_fields(self) -> list[FormField]:
        return [item for item in self._fields if not item.is_assigned]

    def serialize(self, require_assignment: bool = False) -> list[dict]:
        if require_assignment:
            missing = self.unassigned_fields()
            if missing:
                names = ", ".join(item.field_name for item in missing)
                raise UnassignedFieldError(f"Unassigned field(s): {names}")
        return [to_wire(item) for item in self._fields]

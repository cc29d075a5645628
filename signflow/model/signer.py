"""Signer model and ordered signer list helpers."""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
import unicodedata

from signflow.model.field import FormField


class DuplicateSignerError(ValueError):
    """Raised when two signers would share the same identifier."""


SIGNER_COLORS = (
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
)
UNASSIGNED_COLOR = "#64748b"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


@dataclass(slots=True, frozen=True)
class Signer:
    name: str
    signer_id: str
    order: int


def slugify(name: str | None) -> str:
    """Normalize a display name into the signer identifier shared with the backend.

    Accents are stripped, the result is lowercased and every run of characters
    outside ``[a-z0-9]`` collapses into a single dash.
    """
    if not name or not name.strip():
        return ""
    decomposed = unicodedata.normalize("NFD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("-", stripped.lower()).strip("-")


def make_signer(name: str, order: int) -> Signer:
    return Signer(name=name.strip(), signer_id=slugify(name), order=order)


def add_signer(signers: list[Signer], name: str) -> list[Signer]:
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Signer name must not be blank")

    signer = make_signer(cleaned, len(signers) + 1)
    if not signer.signer_id:
        raise ValueError(f"Signer name {cleaned!r} has no usable characters")
    if any(existing.signer_id == signer.signer_id for existing in signers):
        raise DuplicateSignerError(
            f"A signer with this name (or a similar one) already exists: {cleaned}"
        )
    return [*signers, signer]


def remove_signer(signers: list[Signer], index: int) -> list[Signer]:
    kept = [signer for position, signer in enumerate(signers) if position != index]
    return [replace(signer, order=position + 1) for position, signer in enumerate(kept)]


def signer_index(field: FormField, signers: list[Signer]) -> int:
    if not field.assigned_to:
        return -1
    for index, signer in enumerate(signers):
        if signer.signer_id == field.assigned_to:
            return index
    return -1


def signer_color(index: int) -> str:
    if index < 0:
        return UNASSIGNED_COLOR
    return SIGNER_COLORS[index % len(SIGNER_COLORS)]

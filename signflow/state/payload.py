"""Wire payloads handed to the external workflow backend."""

from __future__ import annotations

from typing import Any

from signflow.model.signer import Signer
from signflow.state.session import FieldStore


def build_workflow_payload(
    name: str,
    signers: list[Signer],
    store: FieldStore,
    require_assignment: bool = False,
) -> dict[str, Any]:
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Workflow name must not be blank")
    if not signers:
        raise ValueError("Add at least one signer")
    if len(store) == 0:
        raise ValueError("Place at least one field")

    return {
        "name": cleaned,
        "signers": [
            {"name": signer.name, "order": signer.order}
            for signer in sorted(signers, key=lambda item: item.order)
        ],
        "fields": store.serialize(require_assignment=require_assignment),
    }

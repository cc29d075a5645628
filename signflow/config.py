"""Editor and session configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields
import json
from pathlib import Path
from typing import Any, Mapping


class ConfigError(ValueError):
    """Raised when a configuration file or mapping is invalid."""


@dataclass(slots=True, frozen=True)
class EditorConfig:
    zoom: float = 1.5
    min_text_width_px: float = 15.0
    min_text_height_px: float = 10.0
    checkbox_size_px: float = 20.0
    radio_size_px: float = 18.0
    handle_size_px: float = 10.0
    drag_threshold_px: float = 5.0
    # Submission policy: refuse to serialize fields nobody is assigned to.
    require_assignment: bool = False

    def __post_init__(self) -> None:
        if self.zoom <= 0:
            raise ConfigError(f"zoom must be positive, got {self.zoom}")
        for name in (
            "min_text_width_px",
            "min_text_height_px",
            "checkbox_size_px",
            "radio_size_px",
            "handle_size_px",
            "drag_threshold_px",
        ):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> EditorConfig:
        known = {item.name: item for item in fields(cls)}
        unknown = sorted(set(values) - set(known))
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            if key == "require_assignment":
                if not isinstance(value, bool):
                    raise ConfigError("require_assignment must be true or false")
                kwargs[key] = value
                continue
            try:
                kwargs[key] = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"{key} must be a number, got {value!r}") from exc
        return cls(**kwargs)


def load_config(path: str | Path | None) -> EditorConfig:
    if path is None:
        return EditorConfig()

    source = Path(path)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Failed to read configuration: {source}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a JSON object: {source}")
    return EditorConfig.from_mapping(data)

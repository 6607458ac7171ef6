from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_TEXT_SIZE = 30.0

@dataclass(frozen=True)
class WidgetConfig:
    instance_id: int
    entity_id: str
    attribute_keys: tuple[str, ...] = ()
    label: str | None = None
    text_size: float = DEFAULT_TEXT_SIZE
    state_separator: str = ""
    attribute_separator: str = ""

    @property
    def display_label(self) -> str:
        return self.label or self.entity_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "entity_id": self.entity_id,
            "attribute_keys": list(self.attribute_keys),
            "label": self.label,
            "text_size": self.text_size,
            "state_separator": self.state_separator,
            "attribute_separator": self.attribute_separator,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> WidgetConfig:
        return cls(
            instance_id=int(raw["instance_id"]),
            entity_id=str(raw["entity_id"]),
            attribute_keys=tuple(raw.get("attribute_keys") or ()),
            label=raw.get("label"),
            text_size=float(raw.get("text_size", DEFAULT_TEXT_SIZE)),
            state_separator=str(raw.get("state_separator") or ""),
            attribute_separator=str(raw.get("attribute_separator") or ""),
        )

@dataclass(frozen=True)
class EntitySnapshot:
    entity_id: str
    state: str
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> EntitySnapshot:
        # Shape of GET /api/states/<entity_id>
        return cls(
            entity_id=str(payload["entity_id"]),
            state=str(payload["state"]),
            attributes=dict(payload.get("attributes") or {}),
        )

@dataclass(frozen=True)
class ResolvedText:
    text: str | None
    is_error: bool = False

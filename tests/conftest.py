# tests/conftest.py
from __future__ import annotations

import pytest

from entityboard.errors import FetchError
from entityboard.models import DEFAULT_TEXT_SIZE, EntitySnapshot
from entityboard.widgets.base import WidgetResult


class FakeEntityClient:
    def __init__(self, entities: dict[str, EntitySnapshot] | None = None) -> None:
        self.entities = dict(entities or {})
        self.calls: list[str] = []
        self.fail = False

    def get_entity(self, entity_id: str) -> EntitySnapshot:
        self.calls.append(entity_id)
        if self.fail or entity_id not in self.entities:
            raise FetchError(f"Entity {entity_id!r} not found")
        return self.entities[entity_id]


class RecordingSink:
    def __init__(self) -> None:
        self.published: list[tuple[int, str | None, str, bool]] = []
        self.forgotten: list[int] = []

    def publish(self, instance_id, text, label, is_error, text_size=DEFAULT_TEXT_SIZE, stale=False):
        self.published.append((instance_id, text, label, is_error))
        return WidgetResult(
            instance_id=instance_id,
            title=label,
            text=text or "",
            text_size=text_size,
            ok=not is_error,
            stale=stale or is_error,
        )

    def forget(self, instance_ids):
        self.forgotten.extend(instance_ids)


@pytest.fixture
def client() -> FakeEntityClient:
    return FakeEntityClient({
        "light.kitchen": EntitySnapshot("light.kitchen", "on", {"a": "1", "b": "2", "brightness": 254}),
        "sensor.outside": EntitySnapshot("sensor.outside", "12.5", {"unit_of_measurement": "°C"}),
    })


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()

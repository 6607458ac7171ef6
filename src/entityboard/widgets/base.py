from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..models import DEFAULT_TEXT_SIZE

@dataclass(frozen=True)
class WidgetResult:
    instance_id: int
    title: str
    text: str
    text_size: float = DEFAULT_TEXT_SIZE
    ok: bool = True
    stale: bool = False

class RenderSink(Protocol):
    def publish(
        self,
        instance_id: int,
        text: str | None,
        label: str,
        is_error: bool,
        text_size: float = DEFAULT_TEXT_SIZE,
        stale: bool = False,
    ) -> WidgetResult:
        ...

    def forget(self, instance_ids: list[int]) -> None:
        ...

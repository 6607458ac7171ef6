from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
from .widgets.base import WidgetResult

@dataclass(frozen=True)
class DashboardData:
    results: list[WidgetResult]

def collect_all(latest: dict[int, WidgetResult], order: Iterable[int] | None = None) -> DashboardData:
    """Arrange the latest card per instance, in ``order`` or by instance id."""
    ids = list(order) if order is not None else sorted(latest)
    return DashboardData(results=[latest[i] for i in ids if i in latest])

from __future__ import annotations

import asyncio
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from .models import WidgetConfig

logger = logging.getLogger(__name__)


class WidgetStore(ABC):
    """Per-instance widget configuration plus the last resolved text."""

    @abstractmethod
    async def get(self, instance_id: int) -> WidgetConfig | None: ...

    @abstractmethod
    async def get_all(self) -> list[WidgetConfig]: ...

    @abstractmethod
    async def save(self, config: WidgetConfig) -> None: ...

    @abstractmethod
    async def delete(self, instance_ids: Iterable[int]) -> None: ...

    @abstractmethod
    async def get_last_good(self, instance_id: int) -> str | None: ...

    @abstractmethod
    async def update_last_good(self, instance_id: int, text: str) -> None: ...


class MemoryWidgetStore(WidgetStore):
    def __init__(self):
        self._configs: dict[int, WidgetConfig] = {}
        self._last_good: dict[int, str] = {}

    async def get(self, instance_id: int) -> WidgetConfig | None:
        return self._configs.get(instance_id)

    async def get_all(self) -> list[WidgetConfig]:
        return list(self._configs.values())

    async def save(self, config: WidgetConfig) -> None:
        self._configs[config.instance_id] = config

    async def delete(self, instance_ids: Iterable[int]) -> None:
        for instance_id in instance_ids:
            self._configs.pop(instance_id, None)
            self._last_good.pop(instance_id, None)

    async def get_last_good(self, instance_id: int) -> str | None:
        return self._last_good.get(instance_id)

    async def update_last_good(self, instance_id: int, text: str) -> None:
        # Deleted or never configured: nothing to update
        if instance_id in self._configs:
            self._last_good[instance_id] = text


class JsonWidgetStore(WidgetStore):
    """Widget records kept in a single JSON document.

    Layout::

        {"widgets": {"<instance_id>": {...config..., "last_update": "..."}}}

    Every mutation re-reads the file under a lock and replaces it atomically,
    so concurrent updates to different instances never clobber each other.
    File I/O runs in a worker thread.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}
        raw = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        if not isinstance(raw, dict):
            raise ValueError(f"{self._path} must contain a JSON object at top level.")
        return dict(raw.get("widgets", {}))

    def _write(self, widgets: dict[str, dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps({"widgets": widgets}, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self._path)

    def _get_sync(self, instance_id: int) -> WidgetConfig | None:
        with self._lock:
            rec = self._read().get(str(instance_id))
        if rec is None or "entity_id" not in rec:
            return None
        return WidgetConfig.from_dict(rec)

    def _get_all_sync(self) -> list[WidgetConfig]:
        with self._lock:
            widgets = self._read()
        return [WidgetConfig.from_dict(rec) for rec in widgets.values() if "entity_id" in rec]

    def _save_sync(self, config: WidgetConfig) -> None:
        with self._lock:
            widgets = self._read()
            key = str(config.instance_id)
            rec = config.to_dict()
            previous = widgets.get(key) or {}
            # Only a configured widget hands its text over to a re-configuration
            rec["last_update"] = previous.get("last_update", "") if "entity_id" in previous else ""
            widgets[key] = rec
            self._write(widgets)

    def _delete_sync(self, instance_ids: Iterable[int]) -> None:
        with self._lock:
            widgets = self._read()
            for instance_id in instance_ids:
                widgets.pop(str(instance_id), None)
            self._write(widgets)

    def _get_last_good_sync(self, instance_id: int) -> str | None:
        with self._lock:
            rec = self._read().get(str(instance_id))
        if rec is None or "entity_id" not in rec:
            return None
        return rec.get("last_update")

    def _update_last_good_sync(self, instance_id: int, text: str) -> None:
        with self._lock:
            widgets = self._read()
            rec = widgets.get(str(instance_id))
            # Deleted or never configured: nothing to update
            if rec is None or "entity_id" not in rec:
                return
            rec["last_update"] = text
            self._write(widgets)

    async def get(self, instance_id: int) -> WidgetConfig | None:
        return await asyncio.to_thread(self._get_sync, instance_id)

    async def get_all(self) -> list[WidgetConfig]:
        return await asyncio.to_thread(self._get_all_sync)

    async def save(self, config: WidgetConfig) -> None:
        await asyncio.to_thread(self._save_sync, config)

    async def delete(self, instance_ids: Iterable[int]) -> None:
        await asyncio.to_thread(self._delete_sync, list(instance_ids))

    async def get_last_good(self, instance_id: int) -> str | None:
        return await asyncio.to_thread(self._get_last_good_sync, instance_id)

    async def update_last_good(self, instance_id: int, text: str) -> None:
        await asyncio.to_thread(self._update_last_good_sync, instance_id, text)


def get_widget_store(store_type: str = "json", path: str | Path | None = None) -> WidgetStore:
    if store_type == "memory":
        return MemoryWidgetStore()
    if store_type == "json":
        if path is None:
            raise ValueError("json widget store requires a path")
        return JsonWidgetStore(path)
    raise ValueError(f"widget store {store_type!r} not supported")

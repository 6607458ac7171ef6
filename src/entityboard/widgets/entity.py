"""Host-independent lifecycle of entity state widgets.

A host (desktop surface, web page, test harness) drives instances through
``on_create``/``on_refresh``/``on_delete`` and forwards push events to
``on_external_event``; rendering goes to the injected sink.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Coroutine, Iterable, Mapping

from ..errors import ConfigError
from ..models import DEFAULT_TEXT_SIZE, EntitySnapshot, WidgetConfig
from ..resolver import TextResolver
from ..store import WidgetStore
from .base import RenderSink, WidgetResult

logger = logging.getLogger(__name__)

ENTITY_ID = "entity_id"
ATTRIBUTE_IDS = "attribute_ids"
LABEL = "label"
TEXT_SIZE = "text_size"
STATE_SEPARATOR = "state_separator"
ATTRIBUTE_SEPARATOR = "attribute_separator"


def _parse_attribute_ids(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = raw.split(",")
    return tuple(key.strip() for key in raw if key and key.strip())


def _parse_text_size(raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return DEFAULT_TEXT_SIZE


def parse_widget_config(instance_id: int, extras: Mapping[str, Any]) -> WidgetConfig:
    """Turn raw user input into a WidgetConfig.

    Raises:
        ConfigError: If no entity id was supplied.
    """
    entity_id = str(extras.get(ENTITY_ID) or "").strip()
    if not entity_id:
        raise ConfigError(f"Widget {instance_id} has no entity id")

    label = extras.get(LABEL)
    return WidgetConfig(
        instance_id=instance_id,
        entity_id=entity_id,
        attribute_keys=_parse_attribute_ids(extras.get(ATTRIBUTE_IDS)),
        label=str(label) if label else None,
        text_size=_parse_text_size(extras.get(TEXT_SIZE)),
        state_separator=str(extras.get(STATE_SEPARATOR) or ""),
        attribute_separator=str(extras.get(ATTRIBUTE_SEPARATOR) or ""),
    )


class EntityWidget:
    """Entity state widgets backed by a store, a resolver and a render sink.

    Example:
        widget = EntityWidget(store, TextResolver(client, store), sink)

        await widget.save_entity_configuration(7, {"entity_id": "sun.sun"})
        await widget.on_external_event("sun.sun", snapshot)
    """

    def __init__(
        self,
        store: WidgetStore,
        resolver: TextResolver,
        sink: RenderSink,
        max_concurrent: int = 8,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._sink = sink
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: set[asyncio.Task] = set()

    async def list_widgets(self) -> list[WidgetConfig]:
        return sorted(await self._store.get_all(), key=lambda c: c.instance_id)

    async def all_widget_ids(self) -> list[int]:
        return [config.instance_id for config in await self.list_widgets()]

    async def cached_text(self, instance_id: int) -> str | None:
        return await self._store.get_last_good(instance_id)

    async def save_entity_configuration(
        self,
        instance_id: int,
        extras: Mapping[str, Any] | None,
    ) -> WidgetResult | None:
        """Validate and persist user input, then render the instance.

        Incomplete input is logged and ignored; the stored record and its
        cached text are left untouched.
        """
        if not extras:
            return None
        try:
            config = parse_widget_config(instance_id, extras)
        except ConfigError:
            logger.error("Did not receive complete widget configuration for %s", instance_id)
            return None

        logger.info(
            "Saving entity state config data",
            extra={
                "instance_id": instance_id,
                "entity": config.entity_id,
                "attributes": list(config.attribute_keys) or "N/A",
            },
        )
        await self._store.save(config)
        return await self.on_refresh(instance_id)

    async def on_create(self, instance_id: int, config: WidgetConfig) -> WidgetResult | None:
        if config.instance_id != instance_id:
            config = replace(config, instance_id=instance_id)
        await self._store.save(config)
        return await self.on_refresh(instance_id)

    async def on_refresh(
        self,
        instance_id: int,
        suggested_entity: EntitySnapshot | None = None,
    ) -> WidgetResult | None:
        async with self._semaphore:
            try:
                config = await self._store.get(instance_id)
            except Exception:
                logger.exception("Unable to load configuration for widget %s", instance_id)
                return None
            if config is None:
                logger.debug("Widget %s is not configured", instance_id)
                return None

            resolved = await self._resolver.resolve(config, suggested_entity)

            # Deleted while resolving (or unreadable): drop the result
            try:
                current = await self._store.get(instance_id)
            except Exception:
                logger.exception("Unable to recheck widget %s; discarding result", instance_id)
                return None
            if current is None:
                logger.debug("Discarding result for deleted widget %s", instance_id)
                return None

            return self._sink.publish(
                instance_id,
                resolved.text,
                config.display_label,
                resolved.is_error,
                config.text_size,
            )

    async def on_refresh_all(self, instance_ids: Iterable[int] | None = None) -> list[WidgetResult]:
        configs = await self._store.get_all()
        if instance_ids is not None:
            wanted = set(instance_ids)
            configs = [c for c in configs if c.instance_id in wanted]
        return await self._refresh_many(configs)

    async def on_external_event(self, entity_id: str, snapshot: EntitySnapshot) -> int:
        """Refresh every instance showing ``entity_id`` with the pushed snapshot.

        Returns:
            Number of instances refreshed.
        """
        matching = [c for c in await self._store.get_all() if c.entity_id == entity_id]
        if not matching:
            logger.debug("No widgets show entity %s", entity_id)
            return 0

        logger.debug("Refreshing %d widget(s) for entity %s", len(matching), entity_id)
        await self._refresh_many(matching, snapshot)
        return len(matching)

    async def show_cached(self) -> list[WidgetResult]:
        """Publish every instance's stored text without resolving it."""
        results = []
        for config in await self._store.get_all():
            text = await self._store.get_last_good(config.instance_id)
            results.append(self._sink.publish(
                config.instance_id,
                text,
                config.display_label,
                False,
                config.text_size,
                stale=True,
            ))
        return results

    async def on_delete(self, instance_ids: Iterable[int]) -> None:
        instance_ids = list(instance_ids)
        await self._store.delete(instance_ids)
        self._sink.forget(instance_ids)
        logger.info("Deleted widgets %s", instance_ids)

    def handle_push(self, entity_id: str, snapshot: EntitySnapshot) -> asyncio.Task:
        """Subscription callback for the push channel; returns immediately."""
        return self.launch(self.on_external_event(entity_id, snapshot))

    def launch(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    async def drain(self) -> None:
        """Wait for every launched task to finish."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Widget task failed", exc_info=exc)

    async def _refresh_many(
        self,
        configs: list[WidgetConfig],
        snapshot: EntitySnapshot | None = None,
    ) -> list[WidgetResult]:
        outcomes = await asyncio.gather(
            *(self.on_refresh(c.instance_id, snapshot) for c in configs),
            return_exceptions=True,
        )
        results: list[WidgetResult] = []
        for config, outcome in zip(configs, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Refreshing widget %s failed", config.instance_id, exc_info=outcome)
            elif outcome is not None:
                results.append(outcome)
        return results

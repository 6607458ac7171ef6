"""Text resolution with last-known-good fallback.

One pass picks a snapshot (pushed or fetched), composes the display text,
writes it back to the store and returns it. Failures never escape: they turn
into ``ResolvedText(is_error=True)`` carrying the previously stored text.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, Sequence

from .errors import FormatError
from .models import EntitySnapshot, ResolvedText, WidgetConfig
from .store import WidgetStore

logger = logging.getLogger(__name__)


class EntityClient(Protocol):
    def get_entity(self, entity_id: str) -> EntitySnapshot:
        ...


def _display_value(value: Any) -> str:
    # Missing attributes render as an empty segment
    return "" if value is None else str(value)


def compose_text(
    snapshot: EntitySnapshot | None,
    attribute_keys: Sequence[str],
    state_separator: str,
    attribute_separator: str,
) -> str:
    """Build ``state + state_separator + values`` for the requested attributes.

    Raises FormatError when there is no snapshot to format or the snapshot
    does not have the expected shape.
    """
    if snapshot is None:
        raise FormatError("No entity snapshot to format")
    try:
        attributes = snapshot.attributes or {}
        values = [_display_value(attributes.get(key)) for key in attribute_keys]
        return (
            snapshot.state
            + (state_separator if values else "")
            + attribute_separator.join(values)
        )
    except Exception as e:
        raise FormatError(f"Unable to format {snapshot.entity_id!r}: {e}") from e


class TextResolver:
    def __init__(self, client: EntityClient, store: WidgetStore) -> None:
        self._client = client
        self._store = store

    async def resolve(
        self,
        config: WidgetConfig,
        pushed_snapshot: EntitySnapshot | None = None,
        cached_text: str | None = None,
    ) -> ResolvedText:
        """Resolve the text for one widget instance.

        Args:
            config: The instance configuration.
            pushed_snapshot: A snapshot delivered by a push event; used as-is
                when it belongs to ``config.entity_id``.
            cached_text: The last good text, read from the store when omitted.
        """
        snapshot: EntitySnapshot | None = None
        fetch_failed = False
        if pushed_snapshot is not None and pushed_snapshot.entity_id == config.entity_id:
            snapshot = pushed_snapshot
        else:
            try:
                snapshot = await asyncio.to_thread(self._client.get_entity, config.entity_id)
            except Exception:
                logger.exception("Unable to fetch entity %s", config.entity_id)
                fetch_failed = True

        if cached_text is None:
            cached_text = await self._read_last_good(config.instance_id)

        if not config.attribute_keys:
            text = snapshot.state if snapshot is not None else (cached_text or "")
            await self._write_last_good(config.instance_id, text)
            stored = await self._read_last_good(config.instance_id)
            return ResolvedText(stored if stored is not None else text, fetch_failed)

        try:
            text = compose_text(
                snapshot,
                config.attribute_keys,
                config.state_separator,
                config.attribute_separator,
            )
        except FormatError:
            logger.exception("Unable to fetch entity state and attributes for %s", config.entity_id)
            fallback = cached_text or ""
            await self._write_last_good(config.instance_id, fallback)
            return ResolvedText(fallback, True)

        await self._write_last_good(config.instance_id, text)
        return ResolvedText(text)

    async def _read_last_good(self, instance_id: int) -> str | None:
        try:
            return await self._store.get_last_good(instance_id)
        except Exception:
            logger.exception("Unable to read cached text for widget %s", instance_id)
            return None

    async def _write_last_good(self, instance_id: int, text: str) -> None:
        try:
            await self._store.update_last_good(instance_id, text)
        except Exception:
            logger.exception("Unable to store text for widget %s", instance_id)

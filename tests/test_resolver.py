from __future__ import annotations

import pytest

from entityboard.errors import FormatError
from entityboard.models import EntitySnapshot, WidgetConfig
from entityboard.resolver import TextResolver, compose_text
from entityboard.store import MemoryWidgetStore


def _config(**kw) -> WidgetConfig:
    base = dict(instance_id=1, entity_id="light.kitchen")
    base.update(kw)
    return WidgetConfig(**base)


async def _store() -> MemoryWidgetStore:
    store = MemoryWidgetStore()
    await store.save(_config())
    return store


class FailingStore(MemoryWidgetStore):
    async def get_last_good(self, instance_id):
        raise OSError("disk gone")

    async def update_last_good(self, instance_id, text):
        raise OSError("disk gone")


def test_compose_text_joins_state_and_attributes():
    snap = EntitySnapshot("light.kitchen", "on", {"a": "1", "b": "2"})
    assert compose_text(snap, ["a", "b"], "-", ",") == "on-1,2"


def test_compose_text_missing_attribute_is_empty_segment():
    snap = EntitySnapshot("light.kitchen", "on", {"a": "1"})
    assert compose_text(snap, ["a", "b"], "-", ",") == "on-1,"


def test_compose_text_coerces_values_to_str():
    snap = EntitySnapshot("light.kitchen", "on", {"brightness": 254})
    assert compose_text(snap, ["brightness"], " ", "") == "on 254"


def test_compose_text_without_snapshot_raises():
    with pytest.raises(FormatError):
        compose_text(None, ["a"], "-", ",")


@pytest.mark.asyncio
async def test_no_attributes_uses_fetched_state_and_caches_it(client):
    store = await _store()
    resolver = TextResolver(client, store)

    resolved = await resolver.resolve(_config())

    assert resolved.text == "on"
    assert resolved.is_error is False
    assert await store.get_last_good(1) == "on"
    assert client.calls == ["light.kitchen"]


@pytest.mark.asyncio
async def test_fetch_failure_falls_back_to_cached_text(client):
    store = await _store()
    await store.update_last_good(1, "previous")
    client.fail = True
    resolver = TextResolver(client, store)

    resolved = await resolver.resolve(_config())

    assert resolved.text == "previous"
    assert resolved.is_error is True
    assert await store.get_last_good(1) == "previous"


@pytest.mark.asyncio
async def test_fetch_failure_in_attribute_mode_falls_back(client):
    store = await _store()
    await store.update_last_good(1, "on-1,2")
    client.fail = True
    resolver = TextResolver(client, store)

    resolved = await resolver.resolve(_config(attribute_keys=("a", "b"), state_separator="-", attribute_separator=","))

    assert resolved.text == "on-1,2"
    assert resolved.is_error is True
    assert await store.get_last_good(1) == "on-1,2"


@pytest.mark.asyncio
async def test_fetch_failure_without_cache_yields_empty_text(client):
    store = await _store()
    client.fail = True
    resolver = TextResolver(client, store)

    resolved = await resolver.resolve(_config(attribute_keys=("a",)))

    assert resolved.text == ""
    assert resolved.is_error is True


@pytest.mark.asyncio
async def test_attribute_mode_composes_and_caches(client):
    store = await _store()
    resolver = TextResolver(client, store)
    config = _config(attribute_keys=("a", "b"), state_separator="-", attribute_separator=",")

    resolved = await resolver.resolve(config)

    assert resolved.text == "on-1,2"
    assert resolved.is_error is False
    assert await store.get_last_good(1) == "on-1,2"


@pytest.mark.asyncio
async def test_matching_pushed_snapshot_skips_fetch(client):
    store = await _store()
    resolver = TextResolver(client, store)
    pushed = EntitySnapshot("light.kitchen", "off", {"a": "9"})

    resolved = await resolver.resolve(_config(attribute_keys=("a",), state_separator=":"), pushed)

    assert resolved.text == "off:9"
    assert client.calls == []


@pytest.mark.asyncio
async def test_pushed_snapshot_for_other_entity_is_ignored(client):
    store = await _store()
    resolver = TextResolver(client, store)
    pushed = EntitySnapshot("sensor.outside", "3.0")

    resolved = await resolver.resolve(_config(), pushed)

    assert resolved.text == "on"
    assert client.calls == ["light.kitchen"]


@pytest.mark.asyncio
async def test_explicit_cached_text_is_used_for_fallback(client):
    store = await _store()
    client.fail = True
    resolver = TextResolver(client, store)

    resolved = await resolver.resolve(_config(attribute_keys=("a",)), cached_text="given")

    assert resolved.text == "given"
    assert resolved.is_error is True


@pytest.mark.asyncio
async def test_resolve_is_idempotent(client):
    store = await _store()
    resolver = TextResolver(client, store)
    config = _config(attribute_keys=("a", "missing"), state_separator="-", attribute_separator=",")

    first = await resolver.resolve(config)
    second = await resolver.resolve(config)

    assert first == second
    assert first.text == "on-1,"


@pytest.mark.asyncio
async def test_resolve_is_idempotent_on_failure(client):
    store = await _store()
    client.fail = True
    resolver = TextResolver(client, store)
    config = _config(attribute_keys=("a",))

    assert await resolver.resolve(config) == await resolver.resolve(config)


@pytest.mark.asyncio
async def test_store_errors_do_not_escape(client):
    resolver = TextResolver(client, FailingStore())

    resolved = await resolver.resolve(_config())
    assert resolved.text == "on"
    assert resolved.is_error is False

    client.fail = True
    resolved = await resolver.resolve(_config(attribute_keys=("a",)))
    assert resolved.text == ""
    assert resolved.is_error is True


@pytest.mark.asyncio
async def test_unprintable_attribute_falls_back(client):
    class Unprintable:
        def __str__(self):
            raise ValueError("no text form")

    store = await _store()
    await store.update_last_good(1, "previous")
    pushed = EntitySnapshot("light.kitchen", "on", {"a": Unprintable()})
    resolver = TextResolver(client, store)

    resolved = await resolver.resolve(_config(attribute_keys=("a",)), pushed)

    assert resolved.text == "previous"
    assert resolved.is_error is True


def test_compose_text_wraps_any_value_error():
    class Unprintable:
        def __str__(self):
            raise LookupError("broken")

    with pytest.raises(FormatError):
        compose_text(EntitySnapshot("x.y", "on", {"a": Unprintable()}), ["a"], "-", ",")

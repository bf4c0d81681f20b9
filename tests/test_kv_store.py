"""Tests for the key-value store."""
import asyncio

import pytest

from medapp.errors import PersistenceError, SerializationError
from medapp.storage import UNCHANGED, InMemoryBackend, KeyValueStore, StorageKeys, TTLCache

from conftest import FailingBackend, SlowBackend


class TestBasicOperations:
    """get / set / remove / clear_all."""

    @pytest.mark.asyncio
    async def test_set_then_get_round_trip(self, store):
        value = {"theme": "dark", "items": [1, 2, 3], "nested": {"ok": True}}
        await store.set("settings", value)
        assert await store.get("settings") == value

    @pytest.mark.asyncio
    async def test_keys_are_namespaced_in_backend(self, store, backend):
        await store.set(StorageKeys.TOKEN, "abc")
        assert await backend.get("@MedicalApp:token") == '"abc"'

    @pytest.mark.asyncio
    async def test_get_missing_returns_default(self, store):
        assert await store.get("nothing") is None
        assert await store.get("nothing", []) == []

    @pytest.mark.asyncio
    async def test_corrupt_document_degrades_to_default(self, clock):
        backend = InMemoryBackend({"@MedicalApp:appointments": "{not json"})
        store = KeyValueStore(backend, cache=TTLCache(clock=clock))
        assert await store.get("appointments", []) == []

    @pytest.mark.asyncio
    async def test_unserializable_value_raises(self, store):
        with pytest.raises(SerializationError):
            await store.set("bad", {"when": object()})
        assert await store.get("bad") is None

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self, clock):
        backend = FailingBackend()
        store = KeyValueStore(backend, cache=TTLCache(clock=clock))
        backend.fail_on_next_set()

        with pytest.raises(PersistenceError):
            await store.set("user", {"id": "1"})
        assert store.cache_size() == 0

    @pytest.mark.asyncio
    async def test_returned_values_do_not_alias_cache(self, store):
        await store.set("appointments", [{"id": "1"}])
        value = await store.get("appointments")
        value.append({"id": "2"})
        assert await store.get("appointments") == [{"id": "1"}]

    @pytest.mark.asyncio
    async def test_remove(self, store, backend):
        await store.set("token", "abc")
        await store.remove("token")
        assert await store.get("token") is None
        assert await backend.get("@MedicalApp:token") is None

    @pytest.mark.asyncio
    async def test_clear_all_only_touches_namespace(self, clock):
        backend = InMemoryBackend({"other:key": "1"})
        store = KeyValueStore(backend, cache=TTLCache(clock=clock))
        await store.set("user", {"id": "1"})
        await store.set("token", "abc")

        await store.clear_all()

        assert await backend.list_keys() == ["other:key"]
        assert store.cache_size() == 0
        assert await store.get("user") is None


class TestTTL:
    """Cache expiry falls back to the persistent medium."""

    @pytest.mark.asyncio
    async def test_stale_value_refetched_after_ttl(self, store, backend, clock):
        await store.set("appointments", [{"id": "1"}], ttl_minutes=5)
        await backend.set("@MedicalApp:appointments", '[{"id": "2"}]')

        # Still served from the cache
        assert await store.get("appointments") == [{"id": "1"}]

        clock.advance(6)
        assert await store.get("appointments") == [{"id": "2"}]

    @pytest.mark.asyncio
    async def test_expired_and_removed_returns_default(self, store, backend, clock):
        await store.set("token", "abc", ttl_minutes=1)
        await backend.remove("@MedicalApp:token")

        clock.advance(2)
        assert await store.get("token", "none") == "none"

    @pytest.mark.asyncio
    async def test_cache_miss_repopulates(self, store, backend):
        await backend.set("@MedicalApp:settings", '{"theme": "dark"}')
        assert store.cache_size() == 0
        assert await store.get("settings") == {"theme": "dark"}
        assert store.cache_size() == 1


class TestMutate:
    """Serialized read-modify-write."""

    @pytest.mark.asyncio
    async def test_mutate_uses_default_for_missing_key(self, store):
        result = await store.mutate("appointments", lambda items: items + [1], default=[])
        assert result == [1]
        assert await store.get("appointments") == [1]

    @pytest.mark.asyncio
    async def test_unchanged_skips_write(self, store, backend):
        result = await store.mutate("appointments", lambda items: UNCHANGED, default=[])
        assert result == []
        assert await backend.list_keys() == []

    @pytest.mark.asyncio
    async def test_corrupt_document_is_not_overwritten(self, clock):
        backend = InMemoryBackend({"@MedicalApp:appointments": "{not json"})
        store = KeyValueStore(backend, cache=TTLCache(clock=clock))

        with pytest.raises(SerializationError):
            await store.mutate("appointments", lambda items: [], default=[])
        assert await backend.get("@MedicalApp:appointments") == "{not json"

    @pytest.mark.asyncio
    async def test_concurrent_mutations_do_not_lose_updates(self, clock):
        store = KeyValueStore(SlowBackend(), cache=TTLCache(clock=clock))

        async def append(i):
            await store.mutate("appointments", lambda items: [*items, i], default=[])

        await asyncio.gather(*(append(i) for i in range(25)))

        stored = await store.get("appointments")
        assert sorted(stored) == list(range(25))

    @pytest.mark.asyncio
    async def test_concurrent_mutations_survive_cache_clear(self, clock):
        store = KeyValueStore(SlowBackend(), cache=TTLCache(clock=clock))

        async def append(i):
            store.clear_cache()
            await store.mutate("appointments", lambda items: [*items, i], default=[])

        await asyncio.gather(*(append(i) for i in range(10)))
        store.clear_cache()

        assert len(await store.get("appointments")) == 10

    @pytest.mark.asyncio
    async def test_mutate_reads_persisted_document_not_cache(self, store, backend):
        await store.set("appointments", [1])
        # Another writer changed the backend behind the cached copy.
        await backend.set("@MedicalApp:appointments", "[1, 2]")

        result = await store.mutate("appointments", lambda items: [*items, 3], default=[])

        assert result == [1, 2, 3]
        assert await backend.get("@MedicalApp:appointments") == "[1, 2, 3]"


class TestMultiKey:
    """All-or-nothing multi-key writes."""

    @pytest.mark.asyncio
    async def test_set_many_writes_every_key(self, store):
        await store.set_many({"user": {"id": "1"}, "token": "abc"})
        assert await store.get("user") == {"id": "1"}
        assert await store.get("token") == "abc"

    @pytest.mark.asyncio
    async def test_set_many_rolls_back_on_backend_failure(self, clock):
        backend = FailingBackend({"@MedicalApp:a": "1"})
        store = KeyValueStore(backend, cache=TTLCache(clock=clock))
        backend.fail_on_next_set(2)

        with pytest.raises(PersistenceError):
            await store.set_many({"a": 2, "b": 3, "c": 4})

        assert await backend.get("@MedicalApp:a") == "1"
        assert await backend.get("@MedicalApp:b") is None
        assert await backend.get("@MedicalApp:c") is None
        assert await store.get("a") == 1
        assert await store.get("b") is None

    @pytest.mark.asyncio
    async def test_set_many_serializes_before_writing(self, store, backend):
        with pytest.raises(SerializationError):
            await store.set_many({"a": 1, "b": object()})
        assert await backend.list_keys() == []

    @pytest.mark.asyncio
    async def test_remove_many(self, store):
        await store.set_many({"user": {"id": "1"}, "token": "abc", "settings": {}})
        await store.remove_many(["user", "token"])

        assert await store.get("user") is None
        assert await store.get("token") is None
        assert await store.get("settings") == {}


class TestIntrospection:
    """Storage diagnostics."""

    @pytest.mark.asyncio
    async def test_storage_info(self, store, clock):
        await store.set("user", {"id": "1"})
        await store.set("token", "abc")

        info = await store.storage_info()
        assert info.cache_size == 2
        assert info.total_keys == 2
        assert info.last_access == {
            "user": clock.now.isoformat(),
            "token": clock.now.isoformat(),
        }
        assert info.to_document()["cacheSize"] == 2

    @pytest.mark.asyncio
    async def test_clear_cache_keeps_backend(self, store):
        await store.set("user", {"id": "1"})
        store.clear_cache()

        assert store.cache_size() == 0
        assert await store.key_count() == 1
        assert await store.get("user") == {"id": "1"}

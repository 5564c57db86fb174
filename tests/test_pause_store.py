"""
Tests for pause-state stores. Redis is mocked, no server is needed.
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import RedisError

from flow_engine.core.context import ExecutionContext
from flow_engine.core.exceptions import PauseStoreError
from flow_engine.services.pause_store import InMemoryPauseStore, RedisPauseStore


@pytest.fixture
def snapshot():
    context = ExecutionContext(flow_id="flow-1", payload={"a": 1})
    context.set("v", [1, 2])
    context.mark_paused("n1")
    return context.snapshot()


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.mark.asyncio
class TestInMemoryPauseStore:
    async def test_put_get_delete(self, snapshot):
        store = InMemoryPauseStore()
        await store.put(snapshot.run_id, snapshot, ttl=60)

        loaded = await store.get(snapshot.run_id)
        assert loaded == snapshot
        assert await store.delete(snapshot.run_id) is True
        assert await store.get(snapshot.run_id) is None
        assert await store.delete(snapshot.run_id) is False

    async def test_entries_expire(self, snapshot):
        clock = FakeClock()
        store = InMemoryPauseStore(clock=clock)
        await store.put(snapshot.run_id, snapshot, ttl=60)

        clock.now += 59
        assert await store.get(snapshot.run_id) is not None
        clock.now += 1
        assert await store.get(snapshot.run_id) is None
        assert len(store) == 0

    async def test_stored_copy_is_independent(self, snapshot):
        store = InMemoryPauseStore()
        await store.put(snapshot.run_id, snapshot, ttl=60)
        snapshot.variables["v"].append(3)
        assert (await store.get(snapshot.run_id)).variables["v"] == [1, 2]


@pytest.mark.asyncio
class TestRedisPauseStore:
    async def test_put_uses_setex_with_prefix(self, settings, snapshot):
        client = AsyncMock()
        store = RedisPauseStore(settings=settings, client=client)

        await store.put(snapshot.run_id, snapshot, ttl=604800)

        client.setex.assert_awaited_once()
        key, ttl, raw = client.setex.await_args.args
        assert key == f"flow_engine:paused:{snapshot.run_id}"
        assert ttl == 604800
        assert '"pause_cursor":"n1"' in raw

    async def test_get_round_trips_json(self, settings, snapshot):
        client = AsyncMock()
        client.get.return_value = snapshot.model_dump_json()
        store = RedisPauseStore(settings=settings, client=client)

        loaded = await store.get(snapshot.run_id)
        assert loaded.run_id == snapshot.run_id
        assert loaded.variables == {"v": [1, 2]}
        client.get.assert_awaited_once_with(store.key(snapshot.run_id))

    async def test_get_missing(self, settings):
        client = AsyncMock()
        client.get.return_value = None
        store = RedisPauseStore(settings=settings, client=client)
        assert await store.get("unknown") is None

    async def test_delete(self, settings):
        client = AsyncMock()
        client.delete.return_value = 1
        store = RedisPauseStore(settings=settings, client=client)
        assert await store.delete("run-1") is True
        client.delete.assert_awaited_once_with("flow_engine:paused:run-1")

    async def test_backend_errors_are_wrapped(self, settings, snapshot):
        client = AsyncMock()
        client.setex.side_effect = RedisError("down")
        store = RedisPauseStore(settings=settings, client=client)
        with pytest.raises(PauseStoreError):
            await store.put(snapshot.run_id, snapshot, ttl=10)

    async def test_corrupt_payload(self, settings):
        client = AsyncMock()
        client.get.return_value = "{not json"
        store = RedisPauseStore(settings=settings, client=client)
        with pytest.raises(PauseStoreError):
            await store.get("run-1")

    async def test_close(self, settings):
        client = AsyncMock()
        store = RedisPauseStore(settings=settings, client=client)
        await store.close()
        client.aclose.assert_awaited_once()

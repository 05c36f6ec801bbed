"""Unit tests for persistent stores (learnquest/store/)"""
import pytest
from unittest.mock import AsyncMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from learnquest.store import InMemoryStore, RedisStore, store_key


def test_store_key_namespacing():
    assert store_key("learnquest", "learner_42", "user_xp") == "learnquest:learner_42:user_xp"


# ============================================================================
# InMemoryStore Tests
# ============================================================================

@pytest.mark.asyncio
async def test_memory_store_get_set_delete():
    store = InMemoryStore()

    assert await store.get("k") is None
    assert await store.set("k", "v") is True
    assert await store.get("k") == "v"
    assert await store.delete("k") is True
    assert await store.delete("k") is False


@pytest.mark.asyncio
async def test_memory_store_initial_and_snapshot():
    store = InMemoryStore({"a": "1"})
    await store.set("b", "2")

    snapshot = store.snapshot()
    snapshot["c"] = "3"

    assert store.snapshot() == {"a": "1", "b": "2"}


# ============================================================================
# RedisStore Tests
# ============================================================================

@pytest.fixture
def redis_client():
    client = AsyncMock()
    client.get = AsyncMock(return_value="150")
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_redis_store_get_and_set(redis_client):
    store = RedisStore(client=redis_client)

    assert await store.get("learnquest:u:user_xp") == "150"
    assert await store.set("learnquest:u:user_xp", "200") is True

    redis_client.set.assert_awaited_once_with("learnquest:u:user_xp", "200")
    stats = store.get_stats()
    assert stats["reads"] == 1
    assert stats["writes"] == 1
    assert stats["errors"] == 0


@pytest.mark.asyncio
async def test_redis_store_degrades_on_errors(redis_client):
    redis_client.get.side_effect = RedisConnectionError("connection reset")
    redis_client.set.side_effect = RedisConnectionError("connection reset")
    store = RedisStore(client=redis_client)

    # A failed read must not look like a missing key
    with pytest.raises(RedisConnectionError):
        await store.get("k")
    assert await store.set("k", "v") is False
    assert store.get_stats()["errors"] == 2


@pytest.mark.asyncio
async def test_redis_store_unavailable_without_connection():
    store = RedisStore("redis://localhost:6379/0")

    assert await store.get("k") is None
    assert await store.set("k", "v") is False
    assert store.get_stats()["available"] is False


@pytest.mark.asyncio
async def test_redis_store_connect_success(redis_client):
    redis_client.ping = AsyncMock(return_value=True)

    with patch("learnquest.store.redis_store.redis.from_url", return_value=redis_client) as from_url:
        store = RedisStore("redis://cache:6379/1")
        assert await store.connect() is True

    from_url.assert_called_once()
    assert store.available is True


@pytest.mark.asyncio
async def test_redis_store_connect_failure(redis_client):
    redis_client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))

    with patch("learnquest.store.redis_store.redis.from_url", return_value=redis_client):
        store = RedisStore("redis://cache:6379/1")
        assert await store.connect() is False

    assert store.available is False
    assert await store.set("k", "v") is False


@pytest.mark.asyncio
async def test_redis_store_close(redis_client):
    store = RedisStore(client=redis_client)

    await store.close()

    redis_client.aclose.assert_awaited_once()
    assert store.available is False

"""
Unit Tests for Caches
=====================
In-memory and Redis caches, including atomic test-and-set.
"""

import asyncio
import json
import threading
from unittest.mock import AsyncMock

import pytest

from conftest import FakeClock


class TestInMemoryCache:
    """Tests for the process-local cache."""

    @pytest.mark.asyncio
    async def test_get_set_delete(self):
        """Should store, return and remove values."""
        from signgate_core.cache import InMemoryCache

        cache = InMemoryCache()
        await cache.set("k", {"a": 1})

        assert await cache.get("k") == {"a": 1}
        await cache.delete("k")
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self):
        """Should expire values after their TTL."""
        from signgate_core.cache import InMemoryCache

        clock = FakeClock()
        cache = InMemoryCache(clock=clock)
        await cache.set("k", "v", ttl=2.5)

        clock.advance(2)
        assert await cache.get("k") == "v"
        clock.advance(1)
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_set_if_absent(self):
        """Should only set a key that is absent or expired."""
        from signgate_core.cache import InMemoryCache

        clock = FakeClock()
        cache = InMemoryCache(clock=clock)

        assert await cache.set_if_absent("k", 1, ttl=1) is True
        assert await cache.set_if_absent("k", 2, ttl=1) is False
        assert await cache.get("k") == 1
        clock.advance(2)
        assert await cache.set_if_absent("k", 3, ttl=1) is True
        assert await cache.get("k") == 3

    @pytest.mark.asyncio
    async def test_set_if_absent_concurrent_coroutines(self):
        """Should let exactly one of many concurrent callers win."""
        from signgate_core.cache import InMemoryCache

        cache = InMemoryCache()

        results = await asyncio.gather(*[cache.set_if_absent("nonce", i, ttl=5) for i in range(50)])

        assert results.count(True) == 1

    def test_set_if_absent_concurrent_threads(self):
        """Should stay atomic across threads."""
        from signgate_core.cache import InMemoryCache

        cache = InMemoryCache()
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(asyncio.run(cache.set_if_absent("nonce", "x", ttl=5)))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1

    @pytest.mark.asyncio
    async def test_sweep_removes_expired_keys(self):
        """Should drop expired entries during periodic sweeps."""
        from signgate_core.cache import InMemoryCache

        clock = FakeClock()
        cache = InMemoryCache(clock=clock, sweep_interval=10)
        for i in range(5):
            await cache.set(f"k{i}", i, ttl=1)
        assert len(cache) == 5

        clock.advance(11)
        await cache.set("fresh", 1)

        assert len(cache) == 1


class TestRedisCache:
    """Tests for the Redis cache against a mocked client."""

    @pytest.mark.asyncio
    async def test_set_if_absent_uses_nx_px(self):
        """Should map test-and-set onto SET NX PX."""
        from signgate_core.cache import RedisCache

        redis = AsyncMock()
        redis.set.return_value = True
        cache = RedisCache(redis, prefix="test")

        assert await cache.set_if_absent("nonce:app:abc", 12.5, ttl=5) is True
        redis.set.assert_awaited_once_with("test:nonce:app:abc", json.dumps(12.5), nx=True, px=5000)

    @pytest.mark.asyncio
    async def test_ttl_rounds_up_to_whole_milliseconds(self):
        """Should never let a key expire before its TTL."""
        from signgate_core.cache import RedisCache

        redis = AsyncMock()
        redis.set.return_value = True

        await RedisCache(redis).set_if_absent("k", 1, ttl=1.0005)

        assert redis.set.await_args.kwargs["px"] == 1001

    @pytest.mark.asyncio
    async def test_set_if_absent_existing_key(self):
        """Should report False when Redis refuses the write."""
        from signgate_core.cache import RedisCache

        redis = AsyncMock()
        redis.set.return_value = None
        cache = RedisCache(redis)

        assert await cache.set_if_absent("k", 1, ttl=0.0001) is False
        assert redis.set.await_args.kwargs["px"] == 1

    @pytest.mark.asyncio
    async def test_get_decodes_json(self):
        """Should decode stored JSON values."""
        from signgate_core.cache import RedisCache

        redis = AsyncMock()
        redis.get.return_value = b'{"a": [1, 2]}'
        cache = RedisCache(redis)

        assert await cache.get("k") == {"a": [1, 2]}
        redis.get.assert_awaited_once_with("signgate:k")

    @pytest.mark.asyncio
    async def test_get_missing(self):
        """Should return None for absent keys."""
        from signgate_core.cache import RedisCache

        redis = AsyncMock()
        redis.get.return_value = None

        assert await RedisCache(redis).get("k") is None

    @pytest.mark.asyncio
    async def test_set_without_ttl(self):
        """Should store without expiry when no TTL is given."""
        from signgate_core.cache import RedisCache

        redis = AsyncMock()
        cache = RedisCache(redis)

        await cache.set("k", [1])
        await cache.delete("k")

        redis.set.assert_awaited_once_with("signgate:k", "[1]", px=None)
        redis.delete.assert_awaited_once_with("signgate:k")

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        """Should not hide Redis failures."""
        from signgate_core.cache import RedisCache

        redis = AsyncMock()
        redis.set.side_effect = ConnectionError("redis down")

        with pytest.raises(ConnectionError):
            await RedisCache(redis).set_if_absent("k", 1, ttl=1)

"""
Redis Cache
===========
Redis-backed cache. Test-and-set maps onto ``SET key value NX PX ttl``,
which Redis executes atomically, so the nonce ledger stays correct across
any number of server processes.
"""

import json
import math
from typing import Any, Optional
import structlog

from .base import KeyValueCache

logger = structlog.get_logger(__name__)


def _ttl_ms(ttl: Optional[float]) -> Optional[int]:
    if ttl is None:
        return None
    # PX must be a positive integer; round up so keys never expire early
    return max(1, math.ceil(ttl * 1000))


class RedisCache(KeyValueCache):
    """
    Redis-backed cache storing JSON-encoded values.

    Errors from Redis propagate: a ledger that cannot be consulted must
    not accept requests.
    """

    def __init__(self, redis_client, prefix: str = "signgate"):
        """
        Args:
            redis_client: Async Redis client (redis.asyncio.Redis)
            prefix: Namespace prepended to every key
        """
        self.redis = redis_client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "signgate") -> "RedisCache":
        from redis.asyncio import Redis

        client = Redis.from_url(url, decode_responses=True)
        logger.info("redis_cache_configured", prefix=prefix)
        return cls(client, prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.redis.get(self._key(key))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        await self.redis.set(self._key(key), json.dumps(value), px=_ttl_ms(ttl))

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))

    async def set_if_absent(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        result = await self.redis.set(
            self._key(key),
            json.dumps(value),
            nx=True,
            px=_ttl_ms(ttl),
        )
        return bool(result)

    async def close(self) -> None:
        await self.redis.aclose()

"""
Nonce Ledger
============
Replay protection: remembers consumed nonces until their request could
no longer pass the freshness check anyway, plus a margin of one second.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable
import structlog

from ..cache.base import KeyValueCache
from .models import NonceRecord

logger = structlog.get_logger(__name__)

# Records outlive the last instant the freshness check still accepts
RETENTION_MARGIN_SECONDS = 1.0


class NonceLedger(ABC):
    """Tracks consumed (api key, nonce) pairs."""

    @abstractmethod
    async def check_and_store(self, record: NonceRecord) -> bool:
        """
        Atomically check whether the nonce is fresh and record it.

        Args:
            record: The nonce to consume

        Returns:
            True if the nonce was unused (it is now recorded),
            False if an unexpired record already exists
        """


class CacheNonceLedger(NonceLedger):
    """
    Nonce ledger on top of a KeyValueCache.

    Atomicity comes from ``KeyValueCache.set_if_absent``; swap an
    InMemoryCache for a RedisCache without touching the authenticator.
    """

    def __init__(self, cache: KeyValueCache, clock: Callable[[], float] = time.time):
        self.cache = cache
        self._clock = clock

    async def check_and_store(self, record: NonceRecord) -> bool:
        ttl = record.expires_at + RETENTION_MARGIN_SECONDS - self._clock()
        if ttl <= 0:
            # Already past its window; keep it briefly so a racing
            # duplicate still collides.
            ttl = 0.001

        stored = await self.cache.set_if_absent(record.key, record.expires_at, ttl=ttl)
        if not stored:
            logger.warning(
                "Replay attack detected",
                api_key_id=record.api_key_id,
                nonce=record.nonce[:8],
            )
        return stored

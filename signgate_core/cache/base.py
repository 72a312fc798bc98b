"""
Key-Value Cache Interface
=========================
The cache contract used for application data and the nonce ledger.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class KeyValueCache(ABC):
    """
    Async key-value cache.

    Values are JSON-compatible. ``ttl`` is in seconds and may be
    fractional; None means no expiry.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the value for key, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store value under key."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    async def set_if_absent(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """
        Atomic test-and-set.

        Returns:
            True if the key was absent (or expired) and is now set,
            False if an unexpired value already existed
        """

    async def close(self) -> None:
        """Release connections held by the cache."""

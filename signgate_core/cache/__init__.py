"""
Cache Module
============
Key-value caches backing application data and the nonce ledger.
"""

from .base import KeyValueCache
from .memory import InMemoryCache
from .redis_cache import RedisCache

__all__ = [
    "KeyValueCache",
    "InMemoryCache",
    "RedisCache",
]

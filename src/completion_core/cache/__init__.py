"""
Cache store for completed generations.

- base.py: BaseCache contract and InMemoryCache
- keys.py: deterministic cache signature and digest helpers
- redis_client.py: pooled async Redis client
- redis_cache.py: Redis-backed BaseCache

Cache instances are injected into the LLM facade by whoever builds it;
there is no process-wide cache.
"""

from completion_core.cache.base import BaseCache, InMemoryCache
from completion_core.cache.keys import cache_digest, cache_signature
from completion_core.cache.redis_cache import RedisCache
from completion_core.cache.redis_client import RedisClient

__all__ = [
    "BaseCache",
    "InMemoryCache",
    "RedisCache",
    "RedisClient",
    "cache_digest",
    "cache_signature",
]

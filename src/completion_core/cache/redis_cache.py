"""
Redis-backed cache store.

Storage Strategy:
- One string key per (prompt, signature): "{prefix}{sha256}"
- Value: JSON array of Generation objects
- TTL: optional, applied on every update
"""

from typing import Optional

import structlog
from pydantic import TypeAdapter, ValidationError
from redis.asyncio import Redis as AsyncRedis

from completion_core.cache.base import BaseCache
from completion_core.cache.keys import cache_digest
from completion_core.models.llm_models import Generation

logger = structlog.get_logger(__name__)

_generations_adapter = TypeAdapter(list[Generation])


class RedisCache(BaseCache):
    """
    Cache of generation lists shared between processes through Redis.

    The client must be created with decode_responses=True (RedisClient does).
    """

    DEFAULT_PREFIX = "llm:cache:"

    def __init__(
        self,
        redis_client: AsyncRedis,
        ttl_seconds: Optional[int] = None,
        prefix: str = DEFAULT_PREFIX,
    ):
        """
        Initialize Redis cache.

        Args:
            redis_client: Async Redis client
            ttl_seconds: Expiry applied to each entry (None = no expiry)
            prefix: Namespace for keys owned by this cache
        """
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _key(self, prompt: str, signature: str) -> str:
        return f"{self.prefix}{cache_digest(prompt, signature)}"

    async def lookup(self, prompt: str, signature: str) -> Optional[list[Generation]]:
        raw = await self.redis.get(self._key(prompt, signature))
        if raw is None:
            return None
        try:
            return _generations_adapter.validate_json(raw)
        except ValidationError as e:
            # An unreadable entry is treated as a miss and overwritten on fill
            logger.warning(
                "Discarding unreadable cache entry",
                key=self._key(prompt, signature),
                error=str(e),
            )
            return None

    async def update(self, prompt: str, signature: str, generations: list[Generation]) -> None:
        payload = _generations_adapter.dump_json(generations).decode("utf-8")
        await self.redis.set(self._key(prompt, signature), payload, ex=self.ttl_seconds)

    async def clear(self) -> None:
        deleted = 0
        async for key in self.redis.scan_iter(match=f"{self.prefix}*"):
            deleted += await self.redis.delete(key)
        logger.info("Cleared Redis cache", prefix=self.prefix, deleted=deleted)

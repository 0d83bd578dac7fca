"""
Result cache over Redis.

Memoizes embeddings, search results and completions as JSON values with
a per-entry TTL. The cache is advisory: Redis failures are logged and
treated as misses so a cache outage never fails a request.

Dependencies: redis
System role: Shared memoization layer for deterministic computations
"""

import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class ResultCache:
    """JSON get/set with TTL on top of a shared Redis client."""

    def __init__(self, redis: Redis, key_prefix: str = "", enabled: bool = True) -> None:
        """
        Initialize result cache.

        Args:
            redis: Async Redis client (decode_responses=True)
            key_prefix: Namespace prepended to every key
            enabled: When False every lookup misses and writes are skipped
        """
        self._redis = redis
        self._prefix = key_prefix
        self.enabled = enabled

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Any | None:
        """Return the cached value or None on miss."""
        if not self.enabled:
            return None
        try:
            raw = await self._redis.get(self._key(key))
        except RedisError as e:
            logger.warning(
                f"{__name__}:get - Cache read failed, treating as miss",
                extra={"error_type": type(e).__name__},
            )
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"{__name__}:get - Dropping undecodable cache entry")
            return None

    async def get_many(self, keys: list[str]) -> list[Any | None]:
        """Batch lookup preserving key order."""
        if not self.enabled or not keys:
            return [None] * len(keys)
        try:
            raws = await self._redis.mget([self._key(k) for k in keys])
        except RedisError as e:
            logger.warning(
                f"{__name__}:get_many - Cache read failed, treating as miss",
                extra={"error_type": type(e).__name__, "key_count": len(keys)},
            )
            return [None] * len(keys)

        values: list[Any | None] = []
        for raw in raws:
            try:
                values.append(json.loads(raw) if raw is not None else None)
            except ValueError:
                values.append(None)
        return values

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Store value as JSON with expiry in seconds."""
        if not self.enabled:
            return
        try:
            await self._redis.set(self._key(key), json.dumps(value), ex=ttl)
        except RedisError as e:
            logger.warning(
                f"{__name__}:set - Cache write failed",
                extra={"error_type": type(e).__name__},
            )

    async def set_many(self, items: dict[str, Any], ttl: int) -> None:
        if not self.enabled or not items:
            return
        try:
            async with self._redis.pipeline(transaction=False) as pipe:
                for key, value in items.items():
                    pipe.set(self._key(key), json.dumps(value), ex=ttl)
                await pipe.execute()
        except RedisError as e:
            logger.warning(
                f"{__name__}:set_many - Cache write failed",
                extra={"error_type": type(e).__name__, "key_count": len(items)},
            )

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except RedisError as e:
            logger.warning(
                f"{__name__}:delete - Cache delete failed",
                extra={"error_type": type(e).__name__},
            )

    async def invalidate(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Used to drop cached search results when a knowledge base changes.

        Returns:
            int: Number of keys removed
        """
        removed = 0
        try:
            async for key in self._redis.scan_iter(match=self._key(pattern)):
                removed += await self._redis.delete(key)
        except RedisError as e:
            logger.warning(
                f"{__name__}:invalidate - Cache invalidation failed",
                extra={"error_type": type(e).__name__, "pattern": pattern},
            )
        return removed

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False

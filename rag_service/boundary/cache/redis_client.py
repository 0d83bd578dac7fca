"""
Redis connection factory.

Dependencies: redis
System role: Shared async Redis client for cache and conversation history
"""

import logging

from redis.asyncio import Redis

from rag_service.configs.cache import CacheSettings

logger = logging.getLogger(__name__)


def get_redis_client(settings: CacheSettings) -> Redis:
    """
    Create an async Redis client from settings.

    The client owns a connection pool; close it with ``await client.aclose()``.

    Args:
        settings: Cache settings with the Redis URL

    Returns:
        Redis: Client returning ``str`` values
    """
    logger.info(f"{__name__}:get_redis_client - Connecting to Redis")
    return Redis.from_url(settings.url, decode_responses=True)

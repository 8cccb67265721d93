"""Redis connection pool for the refresh token store.

Listing and transaction state never touches Redis; PostgreSQL is the only
source of truth for availability.
"""

import logging

import redis.asyncio as aioredis

from config.settings import settings

logger = logging.getLogger(__name__)

_pool: aioredis.ConnectionPool | None = None
_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Shared client over a bounded pool, created on first use."""
    global _pool, _client  # noqa: PLW0603
    if _client is None:
        _pool = aioredis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True,
        )
        _client = aioredis.Redis(connection_pool=_pool)
        logger.info("Redis pool created (max %d connections)", settings.REDIS_MAX_CONNECTIONS)
    return _client


async def close_redis() -> None:
    global _pool, _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
    if _pool is not None:
        await _pool.disconnect()
        _pool = None

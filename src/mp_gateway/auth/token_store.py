"""Refresh token store backed by Redis.

Keys:
    refresh:{jti}            -> user_id, expires with the token
    refresh_user:{user_id}   -> SET of live jtis, used to revoke everything
                                for a user (logout-all, account purge)

Lives outside the process so it survives restarts and is shared by every
API instance.
"""

import logging

import redis.asyncio as aioredis

from src.mp_common.redis_client import get_redis

logger = logging.getLogger(__name__)


def _token_key(jti: str) -> str:
    return f"refresh:{jti}"


def _user_key(user_id: str) -> str:
    return f"refresh_user:{user_id}"


class RefreshTokenStore:
    def __init__(self, redis: aioredis.Redis | None = None) -> None:
        self._redis = redis

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def save(self, user_id: str, jti: str, ttl_seconds: int) -> None:
        client = await self._client()
        await client.set(_token_key(jti), user_id, ex=ttl_seconds)
        await client.sadd(_user_key(user_id), jti)
        await client.expire(_user_key(user_id), ttl_seconds)

    async def is_active(self, user_id: str, jti: str) -> bool:
        client = await self._client()
        owner = await client.get(_token_key(jti))
        return owner == user_id

    async def revoke(self, user_id: str, jti: str) -> None:
        client = await self._client()
        await client.delete(_token_key(jti))
        await client.srem(_user_key(user_id), jti)

    async def revoke_all(self, user_id: str) -> int:
        """Revoke every refresh token of a user. Returns how many were live."""
        client = await self._client()
        jtis = await client.smembers(_user_key(user_id))
        if jtis:
            await client.delete(*[_token_key(jti) for jti in jtis])
        await client.delete(_user_key(user_id))
        logger.info("Revoked %d refresh tokens for user %s", len(jtis), user_id)
        return len(jtis)

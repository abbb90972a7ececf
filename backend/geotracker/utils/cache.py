"""
Redis cache utilities
The fallback tier of the result store lives here.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from geotracker.config import get_settings

_pool: Optional[ConnectionPool] = None


async def get_redis() -> redis.Redis:
    """Client on the shared pool, created on first use"""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            get_settings().REDIS_URL,
            max_connections=20,
            decode_responses=True,
        )
    return redis.Redis(connection_pool=_pool)


async def close_redis():
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


class CacheService:
    """
    JSON values under a key prefix.

    Connection and timeout errors surface as redis exceptions; callers
    that treat the cache as best-effort catch them.
    """

    def __init__(self, prefix: str, ttl: Optional[int] = None):
        self.prefix = prefix
        self.ttl = ttl

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await (await get_redis()).get(self._key(key))
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store `value` as JSON; the TTL defaults to RESULT_CACHE_TTL"""
        expires = ttl or self.ttl or get_settings().RESULT_CACHE_TTL
        return await (await get_redis()).setex(self._key(key), expires, json.dumps(value))

    async def delete(self, key: str) -> bool:
        return await (await get_redis()).delete(self._key(key)) > 0


class ResultCache(CacheService):
    """Last known client, prompt and audit-result lists, keyed per client"""

    def __init__(self, ttl: Optional[int] = None):
        super().__init__(prefix="geotracker:store", ttl=ttl)


result_cache = ResultCache()

"""
Redis cache adapter.

Every call is bounded by a timeout; Redis errors and timeouts both
surface as CacheError so callers decide whether to fail open.
"""

import asyncio
from typing import List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from bank_auth.app.services.cache import CacheError, ICache


class RedisCache(ICache):
    """ICache implementation backed by redis.asyncio"""

    def __init__(self, redis_client: Redis, timeout_seconds: float = 0.5):
        self._redis = redis_client
        self._timeout = timeout_seconds

    async def _call(self, operation, description: str):
        try:
            return await asyncio.wait_for(operation, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise CacheError(f"Cache {description} timed out") from e
        except RedisError as e:
            raise CacheError(f"Cache {description} failed: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        value = await self._call(self._redis.get(key), "get")
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def get_many(self, *keys: str) -> List[Optional[str]]:
        if not keys:
            return []
        values = await self._call(self._redis.mget(keys), "get_many")
        return [
            v.decode("utf-8") if isinstance(v, bytes) else v
            for v in values
        ]

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._call(self._redis.set(key, value, ex=ttl_seconds), "set")

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._call(self._redis.delete(*keys), "delete")

    async def exists(self, key: str) -> bool:
        return bool(await self._call(self._redis.exists(key), "exists"))

    async def incr(self, key: str, ttl_seconds: int) -> int:
        async def _incr() -> int:
            count = await self._redis.incr(key)
            if count == 1:
                await self._redis.expire(key, ttl_seconds)
            return count

        return await self._call(_incr(), "incr")

"""
Redis cache tier.

Keys are namespaced under a prefix so ``flush_all`` only removes this
engine's entries. Outside production every failure is logged and treated as
a miss; in production failures raise CacheUnavailableError.
"""

import asyncio
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ridesearch.error_handling import CacheUnavailableError

logger = logging.getLogger(__name__)


class RedisSearchCache:
    """Distributed cache tier over redis.asyncio"""

    FLUSH_BATCH_SIZE = 500

    def __init__(self, client: redis.Redis, prefix: str = "ridesearch", strict: bool = False):
        self.client = client
        self.prefix = prefix
        self.strict = strict

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(self._key(key))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            self._handle_failure("get", e)
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self.client.setex(self._key(key), int(ttl_seconds), value)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            self._handle_failure("set", e)

    async def flush_all(self) -> int:
        """Delete every key under the prefix; returns the number deleted"""
        deleted = 0
        try:
            batch = []
            async for key in self.client.scan_iter(match=f"{self.prefix}:*"):
                batch.append(key)
                if len(batch) >= self.FLUSH_BATCH_SIZE:
                    deleted += await self.client.delete(*batch)
                    batch = []
            if batch:
                deleted += await self.client.delete(*batch)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            self._handle_failure("flush", e)
        return deleted

    def _handle_failure(self, operation: str, error: BaseException) -> None:
        if self.strict:
            raise CacheUnavailableError(f"Redis {operation} failed: {error}") from error
        logger.warning(f"Redis {operation} failed, continuing without distributed cache: {error}")

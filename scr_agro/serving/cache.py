"""
Redis Cache Module

Derived dashboard values (pending count, today's sales, live stock, reports)
are stored as JSON under "<namespace>:<key>" with a TTL. Change notifications
remove them early; the TTL bounds staleness when the listener is down.
"""

import json
from datetime import timedelta
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

import structlog
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from scr_agro.config import get_settings

logger = structlog.get_logger(__name__)

_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None

# RuntimeError: client never initialized
CACHE_ERRORS = (RedisError, RuntimeError)


async def init_redis() -> Redis:
    """Connect the shared Redis client; raises if the server does not answer PING"""
    global _redis_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    cfg = get_settings().redis
    pool = ConnectionPool.from_url(
        cfg.get_url(),
        max_connections=cfg.max_connections,
        socket_timeout=cfg.socket_timeout,
        decode_responses=cfg.decode_responses,
    )
    client = Redis(connection_pool=pool)

    try:
        await client.ping()
    except Exception as e:
        logger.error("Redis unreachable", host=cfg.host, port=cfg.port, error=str(e))
        await pool.disconnect()
        raise

    _redis_pool, _redis_client = pool, client
    logger.info("Redis connected", host=cfg.host, port=cfg.port, db=cfg.db)
    return client


async def close_redis() -> None:
    global _redis_pool, _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
    if _redis_pool is not None:
        await _redis_pool.disconnect()
    _redis_pool = _redis_client = None


def get_redis() -> Redis:
    if _redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_client


def _seconds(ttl: Union[int, timedelta]) -> int:
    return int(ttl.total_seconds()) if isinstance(ttl, timedelta) else int(ttl)


class CacheManager:
    """
    JSON cache scoped to one key namespace.

    Example:
        cache = CacheManager("admin")
        await cache.set("orders_pending", 4, ttl=300)
        pending = await cache.get("orders_pending")
    """

    def __init__(self, namespace: str, default_ttl: int = 300, client: Optional[Redis] = None):
        self.namespace = namespace
        self.default_ttl = default_ttl
        self._client = client
        # bumped by every invalidation; a compute that overlaps one is not stored
        self._generation = 0

    @property
    def client(self) -> Redis:
        # resolved lazily so the manager can be built before init_redis()
        return self._client if self._client is not None else get_redis()

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.client.get(self._key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw

    async def set(self, key: str, value: Any, ttl: Optional[Union[int, timedelta]] = None) -> bool:
        """
        Store a JSON-serializable value.

        Args:
            key: Key inside the namespace
            value: Value to store; datetimes fall back to str()
            ttl: Seconds or timedelta; defaults to default_ttl, 0 means no expiry

        Returns:
            False when the value cannot be serialized
        """
        try:
            payload = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.warning("Value not cacheable", key=key, error=str(e))
            return False

        seconds = _seconds(self.default_ttl if ttl is None else ttl)
        if seconds > 0:
            await self.client.setex(self._key(key), seconds, payload)
        else:
            await self.client.set(self._key(key), payload)
        return True

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self.client.delete(*[self._key(k) for k in keys])

    async def delete_pattern(self, pattern: str) -> int:
        """Delete namespaced keys matching a glob pattern"""
        matched = await self.client.keys(self._key(pattern))
        return await self.client.delete(*matched) if matched else 0

    async def invalidate(self, keys: Iterable[str]) -> int:
        """
        Remove the given keys; a key ending in "*" removes every match.

        Returns:
            Number of entries removed
        """
        self._generation += 1
        keys = list(keys)
        removed = await self.delete(*[k for k in keys if not k.endswith("*")])
        for pattern in (k for k in keys if k.endswith("*")):
            removed += await self.delete_pattern(pattern)
        return removed

    async def invalidate_all(self) -> int:
        self._generation += 1
        return await self.delete_pattern("*")

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[Union[int, timedelta]] = None,
    ) -> Any:
        """
        Return the cached value, computing and storing it on a miss.

        Falsy values count as hits. With Redis unreachable the value is
        computed on every call.
        """
        try:
            cached = await self.get(key)
        except CACHE_ERRORS as e:
            logger.warning("Cache read failed, computing", key=key, error=str(e))
            return await factory()
        if cached is not None:
            return cached

        generation = self._generation
        value = await factory()
        if generation != self._generation:
            logger.debug("Cache invalidated during compute, not storing", key=key)
            return value
        try:
            await self.set(key, value, ttl)
            # an invalidation that raced the write itself
            if generation != self._generation:
                await self.delete(key)
        except CACHE_ERRORS as e:
            logger.warning("Cache write failed", key=key, error=str(e))
        return value

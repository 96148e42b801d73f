"""
Redis Cache implementation.

Cache-aside storage for product detail documents, serialized with msgpack
and expired with a jittered TTL. Every failure degrades to a cache miss.
"""
import random
from typing import Optional

import msgpack
import redis.asyncio as aioredis
from redis.asyncio import Redis

from pkg.logger.logger import get_logger


logger = get_logger(__name__)


# Default TTL in seconds (1 hour)
DEFAULT_TTL = 3600
# Maximum jitter in seconds (2 minutes)
MAX_JITTER = 120


class RedisCache:
    """
    Redis cache with msgpack values and jittered expiry.

    Jitter spreads out the expiry of keys written together so they are not
    all rebuilt at once.
    """

    def __init__(
        self,
        redis_url: str,
        default_ttl: int = DEFAULT_TTL,
        max_jitter: int = MAX_JITTER,
    ) -> None:
        """
        Initialize the Redis cache.

        Args:
            redis_url: Redis connection URL.
            default_ttl: Default TTL in seconds.
            max_jitter: Maximum jitter to add to TTL.
        """
        self._redis_url = redis_url
        self._default_ttl = default_ttl
        self._max_jitter = max_jitter
        self._redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Connect to Redis and verify the connection."""
        self._redis = aioredis.from_url(
            self._redis_url,
            decode_responses=False,
        )
        await self._redis.ping()
        logger.info("Connected to Redis", url=self._redis_url)

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    def _get_ttl_with_jitter(self, ttl: Optional[int] = None) -> int:
        base_ttl = ttl or self._default_ttl
        return base_ttl + random.randint(0, self._max_jitter)

    async def get(self, key: str) -> Optional[dict]:
        """
        Get a value from cache.

        Args:
            key: Cache key.

        Returns:
            Cached value as dict, or None on a miss or any error.
        """
        if not self._redis:
            return None

        try:
            data = await self._redis.get(key)
            if data is None:
                logger.debug("Cache miss", key=key)
                return None

            value = msgpack.unpackb(data, raw=False)
            logger.debug("Cache hit", key=key)
            return value
        except Exception as e:
            logger.error("Cache get error", key=key, error=str(e))
            return None

    async def set(
        self,
        key: str,
        value: dict,
        ttl: Optional[int] = None,
    ) -> bool:
        """
        Set a value in cache with TTL.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: TTL in seconds. Uses default if not provided.

        Returns:
            True if successful, False otherwise.
        """
        if not self._redis:
            return False

        try:
            # Decimal and datetime values fall back to their string form
            data = msgpack.packb(value, use_bin_type=True, default=str)
            ttl_with_jitter = self._get_ttl_with_jitter(ttl)
            await self._redis.setex(key, ttl_with_jitter, data)
            logger.debug("Cache set", key=key, ttl=ttl_with_jitter)
            return True
        except Exception as e:
            logger.error("Cache set error", key=key, error=str(e))
            return False

    async def invalidate(self, *keys: str) -> int:
        """
        Delete cache keys.

        Args:
            keys: Keys to delete.

        Returns:
            Number of keys deleted.
        """
        if not self._redis or not keys:
            return 0

        try:
            deleted = await self._redis.delete(*keys)
            logger.debug("Cache invalidated", keys=list(keys), deleted=deleted)
            return deleted
        except Exception as e:
            logger.error("Cache invalidate error", keys=list(keys), error=str(e))
            return 0


class ProductCacheService:
    """
    Product detail cache.

    A product can be looked up by id or by slug, so both keys are cached
    independently and both are dropped on every write.
    """

    def __init__(self, cache: RedisCache, ttl: Optional[int] = None) -> None:
        """
        Initialize the product cache service.

        Args:
            cache: RedisCache instance.
            ttl: TTL for product entries; the cache default when omitted.
        """
        self._cache = cache
        self._ttl = ttl

    def _product_key(self, id_or_slug: str) -> str:
        return f"product:{id_or_slug}"

    async def get_product(self, key: str) -> Optional[dict]:
        """Get a product document cached under an id or slug."""
        return await self._cache.get(self._product_key(key))

    async def set_product(self, key: str, product_data: dict) -> bool:
        """Cache a product document under an id or slug."""
        return await self._cache.set(self._product_key(key), product_data, ttl=self._ttl)

    async def invalidate_product(self, product_id: str, slug: Optional[str] = None) -> int:
        """
        Invalidate cached entries for a product.

        Args:
            product_id: Product identifier.
            slug: Product slug, when known.

        Returns:
            Number of keys deleted.
        """
        keys = [self._product_key(product_id)]
        if slug:
            keys.append(self._product_key(slug))
        return await self._cache.invalidate(*keys)

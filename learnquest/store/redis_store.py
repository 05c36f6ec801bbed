"""
Redis-backed persistent store for gamification state.

Provides async Redis operations with:
- Graceful degradation on Redis failures (writes report False, failed reads
  raise so callers can tell them from a missing key)
- Connection pooling
- Operation statistics
"""

import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisStore:
    """
    Async Redis key-value store with graceful degradation.

    Values are opaque strings (callers serialize). Keys never expire:
    gamification state is durable.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", client: Optional[Any] = None):
        """
        Initialize Redis store.

        Args:
            redis_url: Redis connection URL
            client: Pre-built redis.asyncio client (skips connect())
        """
        self.redis_url = redis_url
        self._client: Optional[Any] = client
        self.available = client is not None
        self._stats = {
            "reads": 0,
            "writes": 0,
            "errors": 0,
        }

    async def connect(self) -> bool:
        """
        Establish Redis connection.

        Returns:
            True if Redis answered a ping
        """
        try:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=10,
            )
            await self._client.ping()
            self.available = True
            logger.info(f"Redis connected: {self.redis_url}")
        except RedisError as e:
            logger.error(f"Redis connection failed: {e}")
            logger.warning("Gamification state will not be persisted this session")
            self.available = False
            self._client = None
        return self.available

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            try:
                await self._client.aclose()
                logger.info("Redis connection closed")
            except RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")
            finally:
                self._client = None
                self.available = False

    async def get(self, key: str) -> Optional[str]:
        """
        Get stored value.

        Args:
            key: Store key

        Returns:
            Stored string, or None if absent or Redis is unavailable

        Raises:
            RedisError: If the read fails
        """
        if not self.available or not self._client:
            return None

        try:
            value = await self._client.get(key)
            self._stats["reads"] += 1
            return value
        except RedisError as e:
            logger.error(f"Redis GET error for key '{key}': {e}")
            self._stats["errors"] += 1
            raise

    async def set(self, key: str, value: str) -> bool:
        """
        Store value.

        Args:
            key: Store key
            value: Serialized value

        Returns:
            True if successful, False otherwise
        """
        if not self.available or not self._client:
            return False

        try:
            await self._client.set(key, value)
            self._stats["writes"] += 1
            logger.debug(f"Redis SET: {key}")
            return True
        except RedisError as e:
            logger.error(f"Redis SET error for key '{key}': {e}")
            self._stats["errors"] += 1
            return False

    async def delete(self, key: str) -> bool:
        """Delete key, returns True if it existed"""
        if not self.available or not self._client:
            return False

        try:
            return await self._client.delete(key) > 0
        except RedisError as e:
            logger.error(f"Redis DELETE error for key '{key}': {e}")
            self._stats["errors"] += 1
            return False

    def get_stats(self) -> dict[str, Any]:
        """
        Get store statistics.

        Returns:
            Dictionary with availability and operation counts
        """
        return {
            "available": self.available,
            "reads": self._stats["reads"],
            "writes": self._stats["writes"],
            "errors": self._stats["errors"],
        }

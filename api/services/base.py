"""Base service class for all services."""

import logging
from abc import ABC

from db.redis_database import RedisWrapper


class BaseService(ABC):
    """Base class for all services.

    Provides common functionality like logging and cache access.
    """

    def __init__(
        self,
        redis: RedisWrapper | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize the service.

        Args:
            redis: Optional cache client. None means caching is disabled.
            logger: Optional logger instance. If not provided, creates one.
        """
        self._redis = redis
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def logger(self) -> logging.Logger:
        """Get the logger."""
        return self._logger

    @property
    def redis(self) -> RedisWrapper | None:
        """Get the Redis client."""
        return self._redis

    async def get_cached(self, key: str) -> bytes | str | None:
        """Raw cached value for key, None on a miss.

        Backend failures propagate as CacheUnavailableError.
        """
        return await self._redis.get(key)

    async def set_cached(self, key: str, value: bytes | str, ttl: int) -> None:
        """Store an encoded value under key, expiring after ttl seconds."""
        await self._redis.setex(key, ttl, value)

    async def delete_cached(self, key: str) -> None:
        await self._redis.delete(key)
